"""Health check and diagnostic tools for the MCP server."""

from __future__ import annotations

import importlib.util
import json
import logging
import sys
from datetime import datetime, timezone

from mcp.server.fastmcp import FastMCP

logger = logging.getLogger("tie-mcp.health")


def register_tools(mcp: FastMCP) -> None:
    """Register health check tools with the MCP server."""

    @mcp.tool()
    def health_check() -> str:
        """Check MCP server health and TIE fabric configuration.

        Returns:
            JSON string with health status of all components:
            - Server status
            - Python version
            - TIE settings
            - DXL client availability
        """
        logger.info("Running health check")

        health = {
            "status": "healthy",
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "server": {
                "name": "tie-mcp",
                "python_version": sys.version,
            },
            "services": {},
        }

        try:
            from tie_client.settings import TieSettings

            settings = TieSettings.load()
            health["settings"] = {
                "dxl_config_configured": settings.dxl_config is not None,
                "query_limit": settings.query_limit,
                "request_timeout": settings.request_timeout,
            }
        except Exception as e:
            health["settings"] = {"error": str(e)}
            settings = None

        dxl_installed = importlib.util.find_spec("dxlclient") is not None
        if not dxl_installed:
            health["services"]["dxl"] = {"status": "not_installed"}
        elif settings is None or not settings.dxl_config:
            health["services"]["dxl"] = {"status": "no_config"}
        else:
            health["services"]["dxl"] = {"status": "available", "config": settings.dxl_config}

        if "error" in health["settings"]:
            health["status"] = "degraded"
            health["errors"] = ["settings"]

        return json.dumps(health, indent=2)
