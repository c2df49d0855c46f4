"""SDI Catalogue MCP: Model Context Protocol server for the EEA GeoNetwork catalogue."""

import asyncio
import logging
import os
import sys
from .server import app


async def main():
    """
    Main entry point for the SDI Catalogue MCP server.

    Sets up stdio-based MCP server and runs it.
    """
    from mcp.server.stdio import stdio_server

    async with stdio_server() as (read_stream, write_stream):
        await app.run(
            read_stream,
            write_stream,
            app.create_initialization_options()
        )


def configure_logging():
    """Log to stderr; stdout carries the MCP stream."""
    level = os.getenv("LOG_LEVEL", "INFO").upper()
    logging.basicConfig(
        level=getattr(logging, level, logging.INFO),
        stream=sys.stderr,
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
    )


def run():
    """Synchronous wrapper for main() to use as console script entry point."""
    configure_logging()
    try:
        asyncio.run(main())
    except KeyboardInterrupt:
        print("\nSDI Catalogue MCP server stopped.", file=sys.stderr)
        sys.exit(0)
    except Exception as e:
        print(f"Fatal error: {e}", file=sys.stderr)
        sys.exit(1)


__version__ = "2.0.0"
__all__ = ["main", "run", "app"]
