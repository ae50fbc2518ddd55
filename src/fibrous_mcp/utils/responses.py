"""Text envelopes returned by tool handlers."""

import json
from dataclasses import dataclass
from typing import Any, Optional

from fibrous_mcp.chains import SUPPORTED_CHAINS


@dataclass
class ToolResponse:
    """Tool output: a text body and whether it reports a failure."""

    text: str
    is_error: bool = False


def _json_default(value: Any) -> Any:
    if isinstance(value, (set, tuple)):
        return list(value)
    if hasattr(value, "to_dict"):
        return value.to_dict()
    return str(value)


def success_response(data: Any, context: str) -> ToolResponse:
    """Context line followed by pretty-printed JSON."""
    body = json.dumps(data, indent=2, default=_json_default)
    return ToolResponse(text=f"{context}:\n\n{body}")


def info_response(message: str) -> ToolResponse:
    return ToolResponse(text=message)


def empty_response(resource_type: str, chain_name: str) -> ToolResponse:
    return info_response(
        f"No {resource_type} found for {chain_name}. Check API connectivity."
    )


def error_response(
    error: Any,
    context: str,
    chain_name: Optional[str] = None,
) -> ToolResponse:
    """Error envelope naming the failing tool, the supported chains and the chain."""
    message = str(error) if isinstance(error, Exception) and str(error) else None
    if message is None:
        message = error if isinstance(error, str) and error else "Unknown error"

    text = f"Error in {context}: {message}\n\nSupported chains: {', '.join(SUPPORTED_CHAINS)}"
    if chain_name:
        text += f"\nChain: {chain_name}"
    return ToolResponse(text=text, is_error=True)
