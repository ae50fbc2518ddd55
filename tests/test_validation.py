"""Tests for address and swap parameter validation."""

import pytest

from conftest import BASE_USDC, BASE_WETH, STARKNET_ETH, STARKNET_USDC
from fibrous_mcp.errors import UnsupportedChainError
from fibrous_mcp.swap.models import SwapParams
from fibrous_mcp.utils.validation import (
    is_valid_address,
    is_valid_address_for_chain,
    is_valid_decimals,
    is_valid_slippage,
    is_valid_starknet_address,
    validate_chain,
    validate_swap_params,
)


def base_params(**overrides) -> SwapParams:
    values = {
        "amount": "1000000",
        "token_in_address": BASE_USDC,
        "token_out_address": BASE_WETH,
        "chain_name": "base",
    }
    values.update(overrides)
    return SwapParams(**values)


class TestAddressChecks:
    """Tests for per-family address shapes."""

    def test_evm_address(self):
        assert is_valid_address(BASE_USDC)
        assert not is_valid_address("0x1234")
        assert not is_valid_address("833589fCD6eDb6E08f4c7C32D4f71b54bdA02913")
        assert not is_valid_address("")
        assert not is_valid_address(BASE_USDC + "\n")

    def test_starknet_address(self):
        assert is_valid_starknet_address(STARKNET_ETH)
        assert is_valid_starknet_address("0x1")
        assert not is_valid_starknet_address("0x" + "a" * 65)
        assert not is_valid_starknet_address("0xzz")
        assert not is_valid_starknet_address("0x1\n")

    def test_address_for_chain(self):
        assert is_valid_address_for_chain(STARKNET_ETH, "starknet")
        assert not is_valid_address_for_chain(STARKNET_ETH, "base")
        assert is_valid_address_for_chain(BASE_USDC, "scroll")
        assert not is_valid_address_for_chain(BASE_USDC, "ethereum")

    def test_slippage_and_decimals(self):
        assert is_valid_slippage(0.01)
        assert is_valid_slippage(50)
        assert not is_valid_slippage(0.001)
        assert not is_valid_slippage(51)
        assert is_valid_decimals(18)
        assert not is_valid_decimals(31)
        assert not is_valid_decimals(True)


class TestValidateChain:
    """Tests for chain name validation."""

    def test_supported(self):
        assert validate_chain("starknet") == "starknet"

    def test_unsupported(self):
        with pytest.raises(UnsupportedChainError) as exc:
            validate_chain("ethereum")

        assert exc.value.code == "UnsupportedChain"
        assert "Supported chains: base, starknet, scroll" in str(exc.value)


class TestValidateSwapParams:
    """Tests for swap request validation."""

    def test_valid_request(self):
        result = validate_swap_params(base_params(slippage=1.0, receiver_address=BASE_WETH))

        assert result.is_valid
        assert result.errors == []

    def test_valid_starknet_request(self):
        params = SwapParams(
            amount="1000000000000000000",
            token_in_address=STARKNET_ETH,
            token_out_address=STARKNET_USDC,
            chain_name="starknet",
        )

        assert validate_swap_params(params).is_valid

    def test_identical_tokens(self):
        result = validate_swap_params(base_params(token_out_address=BASE_USDC))

        assert not result.is_valid
        assert "Token in and token out addresses must be different" in result.errors

    def test_identical_tokens_ignores_case(self):
        result = validate_swap_params(base_params(token_out_address=BASE_USDC.lower()))

        assert "Token in and token out addresses must be different" in result.errors

    @pytest.mark.parametrize("amount", ["0", ""])
    def test_zero_amount(self, amount):
        result = validate_swap_params(base_params(amount=amount))

        assert result.errors == ["Amount must be greater than 0"]

    def test_malformed_amount(self):
        result = validate_swap_params(base_params(amount="1.5"))

        assert result.errors == ["Invalid amount format"]

    def test_missing_tokens(self):
        result = validate_swap_params(base_params(token_in_address="", token_out_address=""))

        assert result.errors == ["Token in address is required", "Token out address is required"]

    def test_wrong_family_address(self):
        result = validate_swap_params(base_params(token_in_address=STARKNET_ETH))

        assert result.errors == ["Invalid token in address for base"]

    def test_slippage_out_of_range(self):
        result = validate_swap_params(base_params(slippage=75.0))

        assert result.errors == ["Slippage must be between 0.01% and 50%"]

    def test_invalid_receiver(self):
        result = validate_swap_params(base_params(receiver_address="0x123"))

        assert result.errors == ["Invalid receiver address for base"]

    def test_unsupported_chain_collects_other_errors(self):
        result = validate_swap_params(base_params(chain_name="ethereum", amount="0"))

        assert not result.is_valid
        assert len(result.errors) == 2
        assert result.errors[0].startswith("Unsupported chain: ethereum")
