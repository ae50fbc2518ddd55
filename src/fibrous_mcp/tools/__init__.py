"""Protocol-independent tool handlers."""

from fibrous_mcp.tools.handlers import (
    AppContext,
    build_batch_transaction_handler,
    build_transaction_handler,
    chain_info,
    config_status,
    estimate_swap_handler,
    execute_swap_handler,
    format_token_amount_handler,
    get_best_route_batch_handler,
    get_best_route_handler,
    get_supported_protocols_handler,
    get_supported_tokens_handler,
    get_token_handler,
)

__all__ = [
    "AppContext",
    "build_batch_transaction_handler",
    "build_transaction_handler",
    "chain_info",
    "config_status",
    "estimate_swap_handler",
    "execute_swap_handler",
    "format_token_amount_handler",
    "get_best_route_batch_handler",
    "get_best_route_handler",
    "get_supported_protocols_handler",
    "get_supported_tokens_handler",
    "get_token_handler",
]
