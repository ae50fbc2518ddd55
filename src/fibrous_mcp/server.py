"""Fibrous swap MCP server (FastMCP).

Tools forward their arguments to ``fibrous_mcp.tools.handlers`` and return
its text. Failed calls raise ToolError so the client sees ``isError: true``
with the same text.
"""

import json
import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from typing import Optional

from mcp.server.fastmcp import Context, FastMCP
from mcp.server.fastmcp.exceptions import ToolError

from fibrous_mcp.chains import ChainConfigStore
from fibrous_mcp.config import get_settings
from fibrous_mcp.routing.base import ChainRegistry
from fibrous_mcp.routing.fibrous import FibrousClient
from fibrous_mcp.swap.models import SwapOptions, SwapParams
from fibrous_mcp.tools import handlers
from fibrous_mcp.tools.handlers import AppContext
from fibrous_mcp.utils.responses import ToolResponse

logger = logging.getLogger(__name__)


@asynccontextmanager
async def fibrous_lifespan(server: FastMCP) -> AsyncIterator[AppContext]:
    """Create the Fibrous client, load the chain registry and build the engine."""
    settings = get_settings()
    route_client = FibrousClient.from_settings(settings)

    try:
        registry = await route_client.fetch_chain_registry()
    except Exception as e:
        logger.error(f"Failed to load chain registry from Fibrous: {e}")
        registry = ChainRegistry()

    config_store = ChainConfigStore(settings)
    config_store.log_status()

    try:
        yield AppContext(
            settings=settings,
            route_client=route_client,
            registry=registry,
            config_store=config_store,
        )
    finally:
        await route_client.aclose()
        logger.info("Fibrous MCP server shutdown complete")


mcp = FastMCP(
    "fibrous-mcp",
    instructions="Token swaps on Base, Scroll and Starknet through the Fibrous aggregator",
    lifespan=fibrous_lifespan,
)


def _app(ctx: Context) -> AppContext:
    return ctx.request_context.lifespan_context


def _unwrap(response: ToolResponse) -> str:
    if response.is_error:
        raise ToolError(response.text)
    return response.text


def _swap_params(
    amount: str,
    token_in_address: str,
    token_out_address: str,
    chain_name: str,
    slippage: Optional[float],
    receiver_address: Optional[str],
    direct: Optional[bool],
    exclude_protocols: Optional[list[str]],
) -> SwapParams:
    options = None
    if direct is not None or exclude_protocols:
        options = SwapOptions(direct=bool(direct), exclude_protocols=tuple(exclude_protocols or ()))
    return SwapParams(
        amount=amount,
        token_in_address=token_in_address,
        token_out_address=token_out_address,
        chain_name=chain_name,
        slippage=slippage,
        receiver_address=receiver_address,
        options=options,
    )


# ======================
# Discovery & Routing
# ======================


@mcp.tool(name="get-supported-tokens")
async def get_supported_tokens(ctx: Context, chainName: str) -> str:
    """Get supported tokens on a chain.

    Args:
        chainName: base, starknet or scroll
    """
    return _unwrap(await handlers.get_supported_tokens_handler(chainName, _app(ctx)))


@mcp.tool(name="get-supported-protocols")
async def get_supported_protocols(ctx: Context, chainName: str) -> str:
    """Get DEX protocols the aggregator routes through on a chain."""
    return _unwrap(await handlers.get_supported_protocols_handler(chainName, _app(ctx)))


@mcp.tool(name="get-token")
async def get_token(ctx: Context, address: str, chainName: str) -> str:
    """Get token metadata by address."""
    return _unwrap(await handlers.get_token_handler(address, chainName, _app(ctx)))


@mcp.tool(name="get-best-route")
async def get_best_route(
    ctx: Context,
    amount: str,
    tokenInAddress: str,
    tokenOutAddress: str,
    chainName: str,
    direct: Optional[bool] = None,
    excludeProtocols: Optional[list[str]] = None,
) -> str:
    """Find the best swap route.

    Args:
        amount: Input amount in the token's smallest unit
        tokenInAddress: Token to sell
        tokenOutAddress: Token to buy
        chainName: base, starknet or scroll
        direct: Only consider single-hop routes
        excludeProtocols: Protocol ids to skip
    """
    return _unwrap(
        await handlers.get_best_route_handler(
            amount,
            tokenInAddress,
            tokenOutAddress,
            chainName,
            _app(ctx),
            direct=direct,
            exclude_protocols=excludeProtocols,
        )
    )


@mcp.tool(name="get-best-route-batch")
async def get_best_route_batch(
    ctx: Context,
    amounts: list[str],
    tokenInAddresses: list[str],
    tokenOutAddresses: list[str],
    chainName: str = "starknet",
) -> str:
    """Find best routes for several swaps at once (Starknet only)."""
    return _unwrap(
        await handlers.get_best_route_batch_handler(
            amounts, tokenInAddresses, tokenOutAddresses, chainName, _app(ctx)
        )
    )


@mcp.tool(name="build-transaction")
async def build_transaction(
    ctx: Context,
    amount: str,
    tokenInAddress: str,
    tokenOutAddress: str,
    slippage: float,
    receiverAddress: str,
    chainName: str,
    direct: Optional[bool] = None,
    excludeProtocols: Optional[list[str]] = None,
) -> str:
    """Build route and router calldata without submitting anything."""
    return _unwrap(
        await handlers.build_transaction_handler(
            amount,
            tokenInAddress,
            tokenOutAddress,
            slippage,
            receiverAddress,
            chainName,
            _app(ctx),
            direct=direct,
            exclude_protocols=excludeProtocols,
        )
    )


@mcp.tool(name="build-batch-transaction")
async def build_batch_transaction(
    ctx: Context,
    amounts: list[str],
    tokenInAddresses: list[str],
    tokenOutAddresses: list[str],
    slippage: float,
    receiverAddress: str,
    chainName: str = "starknet",
) -> str:
    """Build calldata for several swaps at once (Starknet only)."""
    return _unwrap(
        await handlers.build_batch_transaction_handler(
            amounts,
            tokenInAddresses,
            tokenOutAddresses,
            slippage,
            receiverAddress,
            chainName,
            _app(ctx),
        )
    )


@mcp.tool(name="format-token-amount")
async def format_token_amount(amount: str, decimals: int, operation: str) -> str:
    """Convert between human-readable and smallest-unit amounts.

    Args:
        amount: Amount to convert
        decimals: Token decimals (0-30)
        operation: toSmallestUnit or toHumanUnit
    """
    return _unwrap(await handlers.format_token_amount_handler(amount, decimals, operation))


# ======================
# Swap Execution
# ======================


@mcp.tool(name="execute-swap")
async def execute_swap(
    ctx: Context,
    amount: str,
    tokenInAddress: str,
    tokenOutAddress: str,
    chainName: str,
    slippage: Optional[float] = None,
    receiverAddress: Optional[str] = None,
    direct: Optional[bool] = None,
    excludeProtocols: Optional[list[str]] = None,
) -> str:
    """Execute a token swap with the configured wallet.

    Args:
        amount: Input amount in the token's smallest unit
        tokenInAddress: Token to sell
        tokenOutAddress: Token to buy
        chainName: base, starknet or scroll
        slippage: Percent (0.01-50), defaults to the server setting
        receiverAddress: Output recipient, defaults to the wallet
    """
    params = _swap_params(
        amount, tokenInAddress, tokenOutAddress, chainName,
        slippage, receiverAddress, direct, excludeProtocols,
    )
    return _unwrap(await handlers.execute_swap_handler(params, _app(ctx)))


@mcp.tool(name="estimate-swap")
async def estimate_swap(
    ctx: Context,
    amount: str,
    tokenInAddress: str,
    tokenOutAddress: str,
    chainName: str,
    slippage: Optional[float] = None,
    receiverAddress: Optional[str] = None,
    direct: Optional[bool] = None,
    excludeProtocols: Optional[list[str]] = None,
) -> str:
    """Estimate the network fee of a swap without executing it."""
    params = _swap_params(
        amount, tokenInAddress, tokenOutAddress, chainName,
        slippage, receiverAddress, direct, excludeProtocols,
    )
    return _unwrap(await handlers.estimate_swap_handler(params, _app(ctx)))


# ======================
# Resources
# ======================


@mcp.resource("fibrous://config", mime_type="application/json")
def config_resource() -> str:
    """Server configuration with credentials masked."""
    app = mcp.get_context().request_context.lifespan_context
    return json.dumps(handlers.config_status(app), indent=2)


@mcp.resource("chain://{chain_name}/info", mime_type="application/json")
def chain_info_resource(chain_name: str) -> str:
    """Static and aggregator-side information about a chain."""
    app = mcp.get_context().request_context.lifespan_context
    return json.dumps(handlers.chain_info(chain_name, app), indent=2)


@mcp.resource("greeting://{name}")
def greeting_resource(name: str) -> str:
    """Personalized welcome listing the available tools."""
    return handlers.greeting(name)


# ======================
# Prompts
# ======================


@mcp.prompt(name="analyze-swap")
def analyze_swap(tokenIn: str, tokenOut: str, amount: str, chainName: str) -> str:
    """Analyze a token swap across routes and protocols."""
    return handlers.analyze_swap_prompt(tokenIn, tokenOut, amount, chainName)


@mcp.prompt(name="defi-strategy")
def defi_strategy(portfolio: str, goal: str, riskTolerance: Optional[str] = None) -> str:
    """DeFi portfolio strategy analysis."""
    return handlers.defi_strategy_prompt(portfolio, goal, riskTolerance)


@mcp.prompt(name="help")
def help_docs() -> str:
    """Server documentation and usage examples."""
    return handlers.help_prompt()
