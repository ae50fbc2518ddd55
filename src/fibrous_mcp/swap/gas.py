"""Gas price multiplier and fallback estimates."""

import math

from fibrous_mcp.chains import ChainFamily
from fibrous_mcp.swap.models import GasEstimate

# Fallback (gas units, gas price in smallest fee unit) per chain family
GAS_FALLBACKS: dict[ChainFamily, tuple[int, int]] = {
    ChainFamily.STARKNET: (50_000, 1_000_000_000),  # 1 gwei-equivalent
    ChainFamily.EVM: (200_000, 20_000_000_000),  # 20 gwei
}


def multiplier_percent(multiplier: float) -> int:
    """round(multiplier * 100) on the float product, halves rounding up."""
    return math.floor(multiplier * 100 + 0.5)


def apply_gas_multiplier(gas_price: int, multiplier: float) -> int:
    """Scale a gas price in integer arithmetic: price * round(m * 100) // 100.

    The percent rounding is an accepted approximation of the float multiplier.
    """
    return gas_price * multiplier_percent(multiplier) // 100


def fallback_estimate(family: ChainFamily) -> GasEstimate:
    gas, price = GAS_FALLBACKS[family]
    return GasEstimate.from_ints(gas, price)
