"""Offline tools for reading TIE reputation attributes and codes."""

from __future__ import annotations

import json
import logging

from mcp.server.fastmcp import FastMCP

from tie_client.constants import AtdTrustLevel, FileType, TrustLevel
from tie_client.decoders import to_aggregate_array, to_local_time_string, to_version_array

logger = logging.getLogger("tie-mcp.attributes")

AGGREGATE_FIELDS = [
    "file_count",
    "max_trust_level",
    "min_trust_level",
    "last_trust_level",
    "avg_trust_level",
]


def register_tools(mcp: FastMCP) -> None:
    """Register attribute decoding tools with the MCP server."""

    @mcp.tool()
    def decode_version_attribute(value: str) -> str:
        """Decode a packed version attribute (e.g. the Enterprise SERVER_VERSION).

        Args:
            value: Attribute value as a decimal string (e.g. "73183493944770750")

        Returns:
            JSON string with the version parts and dotted version string.
        """
        logger.info(f"Decoding version attribute: {value}")
        try:
            parts = to_version_array(value)
        except ValueError as e:
            return json.dumps({"error": str(e)})

        return json.dumps(
            {
                "value": value,
                "version": ".".join(str(p) for p in parts),
                "major": parts[0],
                "minor": parts[1],
                "patch": parts[2],
                "build": parts[3],
            },
            indent=2,
        )

    @mcp.tool()
    def decode_aggregate_attribute(value: str) -> str:
        """Decode a base64 aggregate attribute (e.g. the Enterprise MIN_LOCAL_REP).

        Args:
            value: Base64 attribute value

        Returns:
            JSON string with file count and max/min/last/average trust levels.
        """
        logger.info(f"Decoding aggregate attribute: {value}")
        try:
            values = to_aggregate_array(value)
        except ValueError as e:
            return json.dumps({"error": str(e)})

        return json.dumps(dict(zip(AGGREGATE_FIELDS, values)), indent=2)

    @mcp.tool()
    def format_epoch_time(epoch_time: int) -> str:
        """Convert an Epoch time from a reputation or event to local time.

        Args:
            epoch_time: Seconds since the Epoch (e.g. a createDate or FIRST_CONTACT value)

        Returns:
            JSON string with the local time as YYYY-MM-DD HH:MM:SS.
        """
        try:
            local_time = to_local_time_string(epoch_time)
        except (ValueError, OverflowError, OSError) as e:
            return json.dumps({"error": str(e)})
        return json.dumps({"epoch_time": epoch_time, "local_time": local_time})

    @mcp.tool()
    def describe_trust_level(trust_level: int, atd: bool = False) -> str:
        """Name a numeric trust level.

        Args:
            trust_level: Trust level value from a reputation or event
            atd: Interpret as an ATD score attribute instead of a standard trust level

        Returns:
            JSON string with the trust level name, or an error if unknown.
        """
        catalog = AtdTrustLevel if atd else TrustLevel
        if not catalog.has_value(trust_level):
            return json.dumps({"error": f"Unknown trust level: {trust_level}"})
        return json.dumps({"trust_level": trust_level, "name": catalog.name_of(trust_level)})

    @mcp.tool()
    def describe_file_type(file_type: int) -> str:
        """Name a numeric file type code.

        Args:
            file_type: File type code (e.g. 18 for a PE executable)

        Returns:
            JSON string with the file type name, or an error if unknown.
        """
        if not FileType.has_value(file_type):
            return json.dumps({"error": f"Unknown file type: {file_type}"})
        return json.dumps({"file_type": file_type, "name": FileType.name_of(file_type)})
