"""Uniform success and error envelopes for tool results."""

import json
from typing import Any, Optional

from mcp.types import CallToolResult, TextContent

from .client import CatalogueResponse


def _text(text: str, is_error: bool = False) -> CallToolResult:
    return CallToolResult(content=[TextContent(type="text", text=text)], isError=is_error)


def body_as_text(body: Any) -> str:
    if body is None:
        return ""
    if isinstance(body, (dict, list)):
        return json.dumps(body, indent=2, ensure_ascii=False)
    return str(body)


def success_result(data: Any, raw: bool = False) -> CallToolResult:
    """
    Wrap a payload as a single text result.

    Args:
        data: Structured payload, or text when raw
        raw: Pass text through untouched (export formats)

    Returns:
        CallToolResult with one TextContent
    """
    if raw:
        return _text("" if data is None else str(data))
    return _text(json.dumps(data, indent=2, ensure_ascii=False, default=str))


def error_result(message: str, http_code: Optional[int] = None, body: Any = None) -> CallToolResult:
    """
    Build an in-band error result.

    The message, upstream status and upstream body are joined into one
    diagnostic string; empty parts are skipped.
    """
    parts = [f"Error: {message}"]
    if http_code:
        parts.append(f"Status: {http_code}")
    body_text = body_as_text(body)
    if body_text:
        parts.append(body_text)
    return _text("\n".join(parts), is_error=True)


def upstream_error(response: CatalogueResponse, context: Optional[str] = None) -> CallToolResult:
    message = response.error or "Catalogue request failed"
    if context:
        message = f"{context}: {message}"
    return error_result(message, response.http_code, response.body)


def auth_required_result(tool_name: str) -> CallToolResult:
    return _text(
        f"""Authentication required: '{tool_name}' modifies catalogue content and needs catalogue credentials.

The server operator must set, in the MCP server environment:
  CATALOGUE_USERNAME=<catalogue user>
  CATALOGUE_PASSWORD=<password>

Then restart this MCP server to pick up the credentials.""",
        is_error=True,
    )
