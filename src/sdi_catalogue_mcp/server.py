"""MCP server setup, tool registration and dispatch for the SDI catalogue."""

import asyncio
import logging
from typing import Any, Dict, Mapping, Optional

from mcp.server import Server
from mcp.types import CallToolResult, Tool

from .client import CatalogueClient
from .config import CatalogueConfig
from .errors import AuthError, DispatchError, DispatchErrorKind
from .formatters import auth_required_result, error_result
from .security import AuditLogger, ValidationError
from .tools import ToolContext, ToolHandler, ToolName
from .tools.attachments import DeleteAttachmentTool, GetAttachmentsTool, UploadFileToRecordTool
from .tools.catalogue import GetRegionsTool, GetSiteInfoTool, GetSourcesTool, GetTagsTool, ListGroupsTool
from .tools.edit import (
    AddRecordTagsTool,
    DeleteRecordTagsTool,
    DuplicateRecordTool,
    UpdateRecordTitleTool,
    UpdateRecordTool,
)
from .tools.records import (
    ExportRecordTool,
    GetRecordByIdTool,
    GetRecordFormattersTool,
    GetRecordTool,
    GetRelatedRecordsTool,
)
from .tools.search import SearchByExtentTool, SearchRecordsTool

logger = logging.getLogger(__name__)

# Create MCP server
app = Server("eea-sdi-catalogue")

# Initialize all tool handlers
TOOL_HANDLERS: Dict[ToolName, ToolHandler] = {
    handler.descriptor.name: handler
    for handler in (
        SearchRecordsTool(),
        GetRecordTool(),
        GetRecordFormattersTool(),
        ExportRecordTool(),
        ListGroupsTool(),
        GetSourcesTool(),
        GetSiteInfoTool(),
        GetRelatedRecordsTool(),
        GetTagsTool(),
        GetRegionsTool(),
        SearchByExtentTool(),
        DuplicateRecordTool(),
        UpdateRecordTool(),
        GetRecordByIdTool(),
        UpdateRecordTitleTool(),
        AddRecordTagsTool(),
        DeleteRecordTagsTool(),
        GetAttachmentsTool(),
        DeleteAttachmentTool(),
        UploadFileToRecordTool(),
    )
}


def lookup_handler(name: str) -> ToolHandler:
    """
    Find the handler registered for a tool name.

    Raises:
        DispatchError if no tool has that name
    """
    try:
        return TOOL_HANDLERS[ToolName(name)]
    except ValueError:
        raise DispatchError(
            DispatchErrorKind.UNKNOWN_TOOL,
            "Unknown tool: {}\n\nAvailable tools: {}".format(
                name, ", ".join(tool.value for tool in TOOL_HANDLERS)
            ),
        ) from None


def dispatch(
    name: str,
    arguments: Optional[Mapping[str, Any]],
    config: Optional[CatalogueConfig] = None,
) -> CallToolResult:
    """
    Run one tool call from lookup to formatted result.

    A new HTTP client is created for the call, and privileged tools sign in
    afresh; neither outlives the call. Every failure comes back as an error
    result rather than an exception.

    Args:
        name: Tool name to execute
        arguments: Tool arguments from MCP
        config: Catalogue settings (read from the environment when omitted)

    Returns:
        CallToolResult for the MCP client
    """
    try:
        handler = lookup_handler(name)
    except DispatchError as e:
        logger.warning("Rejected call to unknown tool %r", name)
        return error_result(str(e))

    if config is None:
        config = CatalogueConfig.from_environment()

    if handler.requires_auth and not config.has_credentials():
        logger.info("%s called without configured credentials", name)
        return auth_required_result(name)

    try:
        args = handler.parse_arguments(arguments)
    except ValidationError as e:
        return error_result(f"Invalid arguments for {name}: {e}")

    logger.info("Tool call: %s", name)

    with CatalogueClient(config) as client:
        context = ToolContext(config=config, client=client, audit=AuditLogger(config.audit_log))
        try:
            if handler.requires_auth:
                context.authenticate()
            return handler.run_tool(args, context)
        except AuthError as e:
            logger.warning("%s: authentication failed (%s)", name, e.kind.value)
            context.audit_log("AUTH_FAILED", "-", f"{name}: {e}")
            return error_result(f"Authentication failed: {e}", e.http_code)
        except Exception as e:
            logger.exception("Unexpected error in %s", name)
            return error_result(
                f"""Unexpected error executing {name}: {e}

Please check:
1. Tool arguments are correct
2. Catalogue credentials are valid (for write operations)
3. Network connectivity to the catalogue

Error details: {type(e).__name__}: {e}"""
            )
        finally:
            # The session belongs to this call only
            context.session = None


@app.list_tools()
async def list_tools() -> list[Tool]:
    """
    List all available catalogue tools.

    Returns:
        List of Tool descriptions for MCP
    """
    return [handler.get_tool_description() for handler in TOOL_HANDLERS.values()]


@app.call_tool()
async def call_tool(name: str, arguments: dict) -> CallToolResult:
    """
    Execute a catalogue tool with given arguments.

    The blocking HTTP work runs on a worker thread so concurrent calls
    do not hold up the event loop.

    Args:
        name: Tool name to execute
        arguments: Tool arguments from MCP

    Returns:
        CallToolResult (isError set on failure)
    """
    return await asyncio.to_thread(dispatch, name, arguments)
