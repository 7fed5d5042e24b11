#!/usr/bin/env python3
"""MCP server exposing TIE reputation tools.

Tool modules live in tools/ and each exposes a register_tools(mcp) function.
"""

import logging
import sys
from pathlib import Path

# Add parent src/ to path for tie_client imports
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from mcp.server.fastmcp import FastMCP

# Configure logging (never use print - breaks STDIO transport)
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    stream=sys.stderr,
)
logger = logging.getLogger("tie-mcp")

mcp = FastMCP("tie-client")

from tools import attribute_tools
from tools import health_tools
from tools import tie_tools

attribute_tools.register_tools(mcp)
tie_tools.register_tools(mcp)
health_tools.register_tools(mcp)


def main():
    """Run the MCP server with stdio transport."""
    logger.info("Starting TIE MCP server")
    try:
        mcp.run()
    finally:
        tie_tools.close_client()


if __name__ == "__main__":
    main()
