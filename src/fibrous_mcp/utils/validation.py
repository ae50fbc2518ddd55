"""Validation helpers for chain names, addresses and swap parameters.

All checks here are pure: they run before any network I/O so invalid
requests fail fast without side effects.
"""

import re
from typing import TYPE_CHECKING

from fibrous_mcp.chains import CHAINS, SUPPORTED_CHAINS, ChainFamily, ValidationResult
from fibrous_mcp.errors import InvalidFormatError, UnsupportedChainError
from fibrous_mcp.utils.amounts import MAX_DECIMALS, MIN_DECIMALS, parse_amount

if TYPE_CHECKING:
    from fibrous_mcp.swap.models import SwapParams

MIN_SLIPPAGE = 0.01
MAX_SLIPPAGE = 50.0

_EVM_ADDRESS_RE = re.compile(r"0x[a-fA-F0-9]{40}")
_STARKNET_ADDRESS_RE = re.compile(r"0x[a-fA-F0-9]{1,64}")


def is_supported_chain(chain_name: str) -> bool:
    return chain_name in CHAINS


def validate_chain(chain_name: str) -> str:
    """Return the chain name if supported.

    Raises:
        UnsupportedChainError: chain is not one of base, starknet, scroll
    """
    if not is_supported_chain(chain_name):
        raise UnsupportedChainError(chain_name, SUPPORTED_CHAINS)
    return chain_name


def is_valid_address(address: str) -> bool:
    """EVM address: 0x followed by 40 hex characters."""
    return bool(address) and bool(_EVM_ADDRESS_RE.fullmatch(address))


def is_valid_starknet_address(address: str) -> bool:
    """Starknet address: 0x followed by 1 to 64 hex characters."""
    return bool(address) and bool(_STARKNET_ADDRESS_RE.fullmatch(address))


def is_valid_address_for_chain(address: str, chain_name: str) -> bool:
    spec = CHAINS.get(chain_name)
    if spec is None:
        return False
    if spec.family == ChainFamily.STARKNET:
        return is_valid_starknet_address(address)
    return is_valid_address(address)


def is_valid_slippage(slippage: float) -> bool:
    return MIN_SLIPPAGE <= slippage <= MAX_SLIPPAGE


def is_valid_decimals(decimals: int) -> bool:
    return (
        isinstance(decimals, int)
        and not isinstance(decimals, bool)
        and MIN_DECIMALS <= decimals <= MAX_DECIMALS
    )


def validate_swap_params(params: "SwapParams") -> ValidationResult:
    """Collect every problem with a swap request.

    Returns:
        ValidationResult listing all errors (empty when valid)
    """
    errors: list[str] = []
    chain_known = is_supported_chain(params.chain_name)

    if not chain_known:
        errors.append(
            f"Unsupported chain: {params.chain_name}. "
            f"Supported chains: {', '.join(SUPPORTED_CHAINS)}"
        )

    if not params.amount or params.amount == "0":
        errors.append("Amount must be greater than 0")
    else:
        try:
            if parse_amount(params.amount) == 0:
                errors.append("Amount must be greater than 0")
        except InvalidFormatError:
            errors.append("Invalid amount format")

    if not params.token_in_address:
        errors.append("Token in address is required")
    elif chain_known and not is_valid_address_for_chain(params.token_in_address, params.chain_name):
        errors.append(f"Invalid token in address for {params.chain_name}")

    if not params.token_out_address:
        errors.append("Token out address is required")
    elif chain_known and not is_valid_address_for_chain(params.token_out_address, params.chain_name):
        errors.append(f"Invalid token out address for {params.chain_name}")

    if (
        params.token_in_address
        and params.token_out_address
        and params.token_in_address.lower() == params.token_out_address.lower()
    ):
        errors.append("Token in and token out addresses must be different")

    if params.slippage is not None and not is_valid_slippage(params.slippage):
        errors.append(f"Slippage must be between {MIN_SLIPPAGE}% and {MAX_SLIPPAGE:g}%")

    if (
        params.receiver_address
        and chain_known
        and not is_valid_address_for_chain(params.receiver_address, params.chain_name)
    ):
        errors.append(f"Invalid receiver address for {params.chain_name}")

    return ValidationResult.from_errors(errors)
