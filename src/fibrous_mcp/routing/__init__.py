"""Routing module: Fibrous aggregator client and chain registry."""

from fibrous_mcp.routing.base import (
    ChainInfo,
    ChainRegistry,
    RouteAndCalldata,
    RouteClient,
    RouteOptions,
    StarknetCall,
)
from fibrous_mcp.routing.fibrous import FibrousClient, create_fibrous_client

__all__ = [
    "ChainInfo",
    "ChainRegistry",
    "RouteAndCalldata",
    "RouteClient",
    "RouteOptions",
    "StarknetCall",
    "FibrousClient",
    "create_fibrous_client",
]
