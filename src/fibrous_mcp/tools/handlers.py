"""Tool handlers.

Protocol-independent: each handler validates its input, calls the route
client or swap engine, and returns a ToolResponse. The MCP adapter in
``fibrous_mcp.server`` only forwards arguments.
"""

import json
import logging
from dataclasses import dataclass, field
from typing import Optional, Sequence

from fibrous_mcp.chains import CHAINS, SUPPORTED_CHAINS, ChainConfigStore
from fibrous_mcp.config import Settings
from fibrous_mcp.errors import InvalidParametersError
from fibrous_mcp.routing.base import ChainRegistry, RouteClient, RouteOptions
from fibrous_mcp.swap.executor import SwapEngine
from fibrous_mcp.swap.models import SwapParams
from fibrous_mcp.utils.amounts import convert_amount, parse_amount
from fibrous_mcp.utils.responses import (
    ToolResponse,
    empty_response,
    error_response,
    info_response,
    success_response,
)
from fibrous_mcp.utils.validation import validate_chain, validate_swap_params

logger = logging.getLogger(__name__)


@dataclass
class AppContext:
    """Process-wide collaborators shared by every tool call (all read-only)."""

    settings: Settings
    route_client: RouteClient
    registry: ChainRegistry
    config_store: ChainConfigStore
    engine: SwapEngine = field(init=False)

    def __post_init__(self):
        self.engine = SwapEngine(self.route_client, self.registry, self.settings)


def _options(direct: Optional[bool], exclude_protocols: Optional[Sequence[str]]) -> Optional[RouteOptions]:
    if direct is None and not exclude_protocols:
        return None
    return RouteOptions(direct=bool(direct), exclude_protocols=tuple(exclude_protocols or ()))


def _require_starknet(chain_name: str, what: str) -> None:
    if chain_name != "starknet":
        raise InvalidParametersError([f"{what} are only supported on Starknet"], chain_name)


# ======================
# Discovery & Routing
# ======================


async def get_supported_tokens_handler(chain_name: str, ctx: AppContext) -> ToolResponse:
    try:
        validate_chain(chain_name)
        tokens = await ctx.route_client.supported_tokens(chain_name)
        if not tokens:
            return empty_response("tokens", chain_name)
        return success_response(tokens, f"Supported tokens for {chain_name}")
    except Exception as e:
        logger.error(f"Error fetching tokens on {chain_name}: {e}")
        return error_response(e, "get-supported-tokens", chain_name)


async def get_supported_protocols_handler(chain_name: str, ctx: AppContext) -> ToolResponse:
    try:
        validate_chain(chain_name)
        protocols = await ctx.route_client.supported_protocols(chain_name)
        return success_response(protocols, f"Supported protocols for {chain_name}")
    except Exception as e:
        logger.error(f"Error fetching protocols on {chain_name}: {e}")
        return error_response(e, "get-supported-protocols", chain_name)


async def get_token_handler(address: str, chain_name: str, ctx: AppContext) -> ToolResponse:
    try:
        validate_chain(chain_name)
        token = await ctx.route_client.get_token(address, chain_name)
        if not token:
            return info_response(f"Token not found: {address} on {chain_name}")
        symbol = token.get("symbol", address)
        return success_response(token, f"Token information for {symbol}")
    except Exception as e:
        logger.error(f"Error fetching token {address} on {chain_name}: {e}")
        return error_response(e, "get-token", chain_name)


async def get_best_route_handler(
    amount: str,
    token_in_address: str,
    token_out_address: str,
    chain_name: str,
    ctx: AppContext,
    direct: Optional[bool] = None,
    exclude_protocols: Optional[Sequence[str]] = None,
) -> ToolResponse:
    try:
        validate_chain(chain_name)
        route = await ctx.route_client.get_best_route(
            amount=parse_amount(amount),
            token_in_address=token_in_address,
            token_out_address=token_out_address,
            chain_name=chain_name,
            chain_id=ctx.registry.chain_id(chain_name),
            options=_options(direct, exclude_protocols),
        )
        return success_response(route, f"Best route for {chain_name} swap")
    except Exception as e:
        logger.error(f"Error finding route on {chain_name}: {e}")
        return error_response(e, "get-best-route", chain_name)


async def get_best_route_batch_handler(
    amounts: Sequence[str],
    token_in_addresses: Sequence[str],
    token_out_addresses: Sequence[str],
    chain_name: str,
    ctx: AppContext,
) -> ToolResponse:
    try:
        validate_chain(chain_name)
        _require_starknet(chain_name, "Batch routes")
        logger.info(f"Finding batch routes on {chain_name}: {len(amounts)} swaps")

        routes = await ctx.route_client.get_best_route_batch(
            amounts=[parse_amount(a) for a in amounts],
            token_in_addresses=token_in_addresses,
            token_out_addresses=token_out_addresses,
            chain_name=chain_name,
            chain_id=ctx.registry.chain_id(chain_name),
        )
        return success_response(routes, f"Batch routes for {chain_name}")
    except Exception as e:
        logger.error(f"Error finding batch routes on {chain_name}: {e}")
        return error_response(e, "get-best-route-batch", chain_name)


async def build_transaction_handler(
    amount: str,
    token_in_address: str,
    token_out_address: str,
    slippage: float,
    receiver_address: str,
    chain_name: str,
    ctx: AppContext,
    direct: Optional[bool] = None,
    exclude_protocols: Optional[Sequence[str]] = None,
) -> ToolResponse:
    try:
        validate_chain(chain_name)
        result = await ctx.route_client.build_route_and_calldata(
            input_amount=parse_amount(amount),
            token_in_address=token_in_address,
            token_out_address=token_out_address,
            slippage=slippage,
            destination=receiver_address,
            chain_name=chain_name,
            chain_id=ctx.registry.chain_id(chain_name),
            options=_options(direct, exclude_protocols),
        )
        return success_response(result.to_dict(), f"Transaction data for {chain_name} swap")
    except Exception as e:
        logger.error(f"Error building transaction on {chain_name}: {e}")
        return error_response(e, "build-transaction", chain_name)


async def build_batch_transaction_handler(
    amounts: Sequence[str],
    token_in_addresses: Sequence[str],
    token_out_addresses: Sequence[str],
    slippage: float,
    receiver_address: str,
    chain_name: str,
    ctx: AppContext,
) -> ToolResponse:
    try:
        validate_chain(chain_name)
        _require_starknet(chain_name, "Batch transactions")
        logger.info(f"Building batch transaction on {chain_name}")

        calls = await ctx.route_client.build_batch_transaction(
            input_amounts=[parse_amount(a) for a in amounts],
            token_in_addresses=token_in_addresses,
            token_out_addresses=token_out_addresses,
            slippage=slippage,
            destination=receiver_address,
            chain_name=chain_name,
            chain_id=ctx.registry.chain_id(chain_name),
        )
        return success_response(calls, f"Batch transaction calls for {chain_name}")
    except Exception as e:
        logger.error(f"Error building batch transaction on {chain_name}: {e}")
        return error_response(e, "build-batch-transaction", chain_name)


async def format_token_amount_handler(amount: str, decimals: int, operation: str) -> ToolResponse:
    try:
        result = convert_amount(amount, decimals, operation)
        return info_response(
            f"Amount conversion: {amount} -> {result} ({operation}, {decimals} decimals)"
        )
    except Exception as e:
        logger.error(f"Error formatting amount: {e}")
        return error_response(e, "format-token-amount")


# ======================
# Swap Execution
# ======================


async def execute_swap_handler(params: SwapParams, ctx: AppContext) -> ToolResponse:
    """Validate config and params, then execute the swap on-chain."""
    chain_name = params.chain_name
    try:
        validate_chain(chain_name)

        chain_validation = ctx.config_store.validate(chain_name)
        if not chain_validation.is_valid:
            return error_response(
                f"Wallet configuration invalid for {chain_name}: {', '.join(chain_validation.errors)}",
                "execute-swap",
                chain_name,
            )

        param_validation = validate_swap_params(params)
        if not param_validation.is_valid:
            return error_response(
                f"Invalid swap parameters: {', '.join(param_validation.errors)}",
                "execute-swap",
                chain_name,
            )

        config = ctx.config_store.resolve(chain_name)
        logger.info(f"Executing swap on {chain_name}...")
        result = await ctx.engine.execute_swap(params, config)

        if result.success:
            return success_response(result.to_dict(), f"Swap executed successfully on {chain_name}")

        logger.error(f"Swap failed: {result.error}")
        return error_response(result.error or "Swap execution failed", "execute-swap", chain_name)

    except Exception as e:
        logger.error(f"Error executing swap on {chain_name}: {e}")
        return error_response(e, "execute-swap", chain_name)


async def estimate_swap_handler(params: SwapParams, ctx: AppContext) -> ToolResponse:
    """Validate config, then estimate the swap's fee (fallback on RPC failure)."""
    chain_name = params.chain_name
    try:
        validate_chain(chain_name)

        chain_validation = ctx.config_store.validate(chain_name)
        if not chain_validation.is_valid:
            return error_response(
                f"Wallet configuration invalid for {chain_name}: {', '.join(chain_validation.errors)}",
                "estimate-swap",
                chain_name,
            )

        config = ctx.config_store.resolve(chain_name)
        estimate = await ctx.engine.estimate_swap_gas(params, config)
        return success_response(estimate.to_dict(), f"Gas estimation for {chain_name} swap")

    except Exception as e:
        logger.error(f"Error estimating gas on {chain_name}: {e}")
        return error_response(e, "estimate-swap", chain_name)


# ======================
# Resources
# ======================


def config_status(ctx: AppContext) -> dict:
    """Masked server configuration and per-chain validity."""
    safe = ctx.settings.get_safe_dict()
    chains = {}
    for name in CHAINS:
        validation = ctx.config_store.validate(name)
        chains[name] = {
            **safe["chains"][name],
            "valid": validation.is_valid,
            "errors": validation.errors,
        }
    safe["chains"] = chains
    safe["available_chains"] = ctx.config_store.valid_chains()
    return safe


def chain_info(chain_name: str, ctx: AppContext) -> dict:
    validate_chain(chain_name)
    spec = CHAINS[chain_name]
    info = ctx.registry.get(chain_name)
    return {
        "name": spec.name,
        "displayName": spec.display_name,
        "family": spec.family.value,
        "explorer": spec.explorer_tx_url,
        "chainId": info.chain_id if info else None,
        "routerAddress": info.router_address if info else None,
        "configured": ctx.config_store.validate(chain_name).is_valid,
    }


def greeting(name: str) -> str:
    return (
        f"Hello {name}! Welcome to Fibrous MCP Server.\n\n"
        f"Available tools: {', '.join(TOOL_DESCRIPTIONS)}\n\n"
        f"Supported chains: {', '.join(SUPPORTED_CHAINS)}\n\n"
        'Use "help" prompt for detailed documentation.'
    )


# ======================
# Prompts
# ======================

TOOL_DESCRIPTIONS = {
    "get-supported-tokens": "Get available tokens for a chain",
    "get-supported-protocols": "List DEX protocols",
    "get-best-route": "Find optimal swap routes",
    "get-best-route-batch": "Find routes for several swaps at once (starknet)",
    "build-transaction": "Generate transaction data",
    "build-batch-transaction": "Generate calldata for several swaps (starknet)",
    "format-token-amount": "Convert amounts",
    "get-token": "Get token info by address",
    "execute-swap": "Execute a swap with the configured wallet",
    "estimate-swap": "Estimate the network fee of a swap",
}


def analyze_swap_prompt(token_in: str, token_out: str, amount: str, chain_name: str) -> str:
    return (
        f"Analyze this token swap on {chain_name}:\n\n"
        f"From: {token_in}\n"
        f"To: {token_out}\n"
        f"Amount: {amount}\n\n"
        "Please use Fibrous SDK tools to:\n"
        "1. Get route analysis with get-best-route\n"
        "2. Provide slippage recommendations\n"
        "3. Assess costs and risks\n"
        "4. Suggest optimization strategies"
    )


def defi_strategy_prompt(portfolio: str, goal: str, risk_tolerance: Optional[str] = None) -> str:
    return (
        "Analyze DeFi portfolio strategy:\n\n"
        f"Portfolio: {portfolio}\n"
        f"Goal: {goal}\n"
        f"Risk Tolerance: {risk_tolerance or 'Not specified'}\n\n"
        "Use Fibrous tools to analyze rebalancing opportunities and provide "
        "actionable recommendations."
    )


def help_prompt() -> str:
    tools = "\n".join(f"- {name} - {text}" for name, text in TOOL_DESCRIPTIONS.items())
    example = json.dumps(
        {
            "name": "get-best-route",
            "arguments": {
                "amount": "1000000000000000000",
                "tokenInAddress": "0x...",
                "tokenOutAddress": "0x...",
                "chainName": "base",
            },
        },
        indent=2,
    )
    return (
        "Fibrous MCP Server Documentation\n\n"
        f"TOOLS:\n{tools}\n\n"
        f"SUPPORTED CHAINS: {', '.join(SUPPORTED_CHAINS)}\n\n"
        f"EXAMPLE USAGE:\n{example}\n\n"
        "For detailed help with any specific tool or operation, just ask!"
    )
