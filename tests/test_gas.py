"""Tests for gas price scaling and fallback estimates."""

import pytest

from fibrous_mcp.chains import ChainFamily
from fibrous_mcp.swap.gas import apply_gas_multiplier, fallback_estimate, multiplier_percent
from fibrous_mcp.swap.models import GasEstimate


class TestGasMultiplier:
    """Tests for integer gas price scaling."""

    def test_default_multiplier(self):
        assert apply_gas_multiplier(1_000_000_000, 1.2) == 1_200_000_000

    def test_identity(self):
        assert apply_gas_multiplier(123_456_789, 1.0) == 123_456_789

    def test_floor_division(self):
        assert apply_gas_multiplier(7, 1.5) == 10

    @pytest.mark.parametrize(
        "multiplier,percent",
        [(1.2, 120), (1.005, 100), (1.125, 113), (2.5, 250), (5.0, 500)],
    )
    def test_percent_rounds_float_product_half_up(self, multiplier, percent):
        """Halves round up on the float product: 1.005 * 100 is just below 100.5."""
        assert multiplier_percent(multiplier) == percent

    def test_float_product_rounding_reaches_price(self):
        assert apply_gas_multiplier(1000, 1.005) == 1000

    def test_large_price_stays_exact(self):
        price = 10**30 + 1
        assert apply_gas_multiplier(price, 1.2) == price * 120 // 100


class TestFallbackEstimate:
    """Tests for fixed per-family estimates."""

    def test_evm(self):
        estimate = fallback_estimate(ChainFamily.EVM)

        assert estimate == GasEstimate(
            gas_estimate="200000",
            gas_price="20000000000",
            estimated_cost="4000000000000000",
        )

    def test_starknet(self):
        estimate = fallback_estimate(ChainFamily.STARKNET)

        assert estimate.gas_estimate == "50000"
        assert estimate.gas_price == "1000000000"
        assert estimate.estimated_cost == "50000000000000"

    def test_deterministic(self):
        assert fallback_estimate(ChainFamily.EVM) == fallback_estimate(ChainFamily.EVM)

    def test_to_dict(self):
        assert fallback_estimate(ChainFamily.EVM).to_dict() == {
            "gasEstimate": "200000",
            "gasPrice": "20000000000",
            "estimatedCost": "4000000000000000",
        }
