"""Swap execution module.

Provides:
- SwapEngine: execute and estimate swaps on any supported chain
- Chain-family backends for EVM (Base, Scroll) and Starknet
"""

from fibrous_mcp.swap.base import ChainBackend, PreparedSwap
from fibrous_mcp.swap.evm import EVMBackend, EVMSigner
from fibrous_mcp.swap.executor import SwapEngine, estimate_swap_gas, execute_swap
from fibrous_mcp.swap.gas import GAS_FALLBACKS, apply_gas_multiplier
from fibrous_mcp.swap.models import (
    GasEstimate,
    SwapOptions,
    SwapParams,
    SwapRequest,
    SwapResult,
)
from fibrous_mcp.swap.starknet import StarknetAccountClient, StarknetBackend

__all__ = [
    # Engine
    "SwapEngine",
    "execute_swap",
    "estimate_swap_gas",
    # Backends
    "ChainBackend",
    "PreparedSwap",
    "EVMBackend",
    "EVMSigner",
    "StarknetBackend",
    "StarknetAccountClient",
    # Gas
    "GAS_FALLBACKS",
    "apply_gas_multiplier",
    # Models
    "GasEstimate",
    "SwapOptions",
    "SwapParams",
    "SwapRequest",
    "SwapResult",
]
