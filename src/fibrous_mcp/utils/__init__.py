"""Utility modules for Fibrous MCP."""

from fibrous_mcp.utils.amounts import (
    AmountOperation,
    convert_amount,
    parse_amount,
    pretty_format,
    to_human_unit,
    to_smallest_unit,
)
from fibrous_mcp.utils.responses import (
    ToolResponse,
    empty_response,
    error_response,
    info_response,
    success_response,
)
from fibrous_mcp.utils.validation import (
    is_supported_chain,
    is_valid_address,
    is_valid_address_for_chain,
    is_valid_decimals,
    is_valid_slippage,
    is_valid_starknet_address,
    validate_chain,
    validate_swap_params,
)

__all__ = [
    # Amounts
    "AmountOperation",
    "convert_amount",
    "parse_amount",
    "pretty_format",
    "to_human_unit",
    "to_smallest_unit",
    # Responses
    "ToolResponse",
    "empty_response",
    "error_response",
    "info_response",
    "success_response",
    # Validation
    "is_supported_chain",
    "is_valid_address",
    "is_valid_address_for_chain",
    "is_valid_decimals",
    "is_valid_slippage",
    "is_valid_starknet_address",
    "validate_chain",
    "validate_swap_params",
]
