"""Fibrous MCP - DeFi swap aggregation tools for AI agents.

Exposes Fibrous Finance route-finding, calldata building and on-chain swap
execution across Base, Scroll (EVM) and Starknet.
"""

__version__ = "1.0.0"
