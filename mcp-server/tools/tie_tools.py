"""TIE reputation lookup tools (requires a DXL fabric connection)."""

from __future__ import annotations

import json
import logging
from concurrent.futures import TimeoutError as FuturesTimeoutError
from functools import lru_cache
from typing import Any, Optional

from mcp.server.fastmcp import FastMCP

from tie_client.client import TieClient, wait_for_result
from tie_client.constants import CertProvider, FileProvider, FirstRefProp, ReputationProp, TrustLevel
from tie_client.decoders import to_local_time_string
from tie_client.errors import TieError
from tie_client.settings import TieSettings

logger = logging.getLogger("tie-mcp.tie")


@lru_cache(maxsize=1)
def get_settings() -> TieSettings:
    """Load settings once per server process."""
    return TieSettings.load()


@lru_cache(maxsize=1)
def get_client() -> TieClient:
    """Get or create the TieClient singleton, connecting to the fabric on first use."""
    settings = get_settings()
    if not settings.dxl_config:
        raise TieError("No DXL configuration file configured (set TIE_DXL_CONFIG)")
    try:
        from tie_client.dxl import connect_dxl_fabric
    except ImportError as e:
        raise TieError(f"DXL support is not installed: {e}") from e
    return TieClient(connect_dxl_fabric(settings.dxl_config), settings)


def close_client() -> None:
    """Disconnect the singleton client, if one was created."""
    if get_client.cache_info().currsize:
        get_client().fabric.close()
        get_client.cache_clear()


def _hashes(md5: str, sha1: str, sha256: str) -> dict[str, str]:
    return {k: v for k, v in (("md5", md5), ("sha1", sha1), ("sha256", sha256)) if v}


def _summarize_reputations(reputations: dict, providers: Any) -> dict[str, Any]:
    summary = []
    for provider_id, reputation in reputations.items():
        trust_level = reputation.get(ReputationProp.TRUST_LEVEL)
        create_date = reputation.get(ReputationProp.CREATE_DATE)
        summary.append(
            {
                "provider_id": provider_id,
                "provider": providers.name_of(provider_id),
                "trust_level": trust_level,
                "trust_level_name": TrustLevel.name_of(trust_level),
                "created": to_local_time_string(create_date) if create_date else None,
                "attributes": reputation.get(ReputationProp.ATTRIBUTES, {}),
            }
        )
    return {"count": len(summary), "reputations": summary}


def _summarize_agents(agents: list) -> dict[str, Any]:
    return {
        "count": len(agents),
        "systems": [
            {
                "system_guid": agent.get(FirstRefProp.SYSTEM_GUID),
                "first_reference": (
                    to_local_time_string(agent[FirstRefProp.DATE])
                    if agent.get(FirstRefProp.DATE)
                    else None
                ),
            }
            for agent in agents
        ],
    }


def _run(operation_name: str, *args: Any, **kwargs: Any) -> Any:
    """Run a TieClient operation by name and wait for it."""
    client = get_client()
    operation = getattr(client, operation_name)
    return wait_for_result(operation, *args, timeout=client.settings.request_timeout, **kwargs)


def register_tools(mcp: FastMCP) -> None:
    """Register TIE lookup tools with the MCP server."""

    @mcp.tool()
    def get_file_reputation(md5: str = "", sha1: str = "", sha256: str = "") -> str:
        """Look up a file's reputations from every TIE provider.

        Args:
            md5: MD5 of the file (hex)
            sha1: SHA-1 of the file (hex)
            sha256: SHA-256 of the file (hex)

        Returns:
            JSON string with one entry per provider (GTI, ENTERPRISE, ATD, ...)
            including trust level name and raw attributes.
        """
        hashes = _hashes(md5, sha1, sha256)
        if not hashes:
            return json.dumps({"error": "At least one hash is required"})
        logger.info(f"Looking up file reputation: {hashes}")

        try:
            reputations = _run("get_file_reputation", hashes)
        except (TieError, FuturesTimeoutError) as e:
            return json.dumps({"error": str(e) or "Timed out waiting for TIE"})

        return json.dumps(_summarize_reputations(reputations, FileProvider), indent=2)

    @mcp.tool()
    def get_certificate_reputation(sha1: str, public_key_sha1: str = "") -> str:
        """Look up a certificate's reputations from every TIE provider.

        Args:
            sha1: SHA-1 of the certificate body (hex)
            public_key_sha1: SHA-1 of the certificate's public key (hex)

        Returns:
            JSON string with one entry per certificate provider.
        """
        logger.info(f"Looking up certificate reputation: {sha1}")

        try:
            reputations = _run(
                "get_certificate_reputation", sha1, public_key_sha1=public_key_sha1 or None
            )
        except (TieError, FuturesTimeoutError) as e:
            return json.dumps({"error": str(e) or "Timed out waiting for TIE"})

        return json.dumps(_summarize_reputations(reputations, CertProvider), indent=2)

    @mcp.tool()
    def get_file_first_references(
        md5: str = "",
        sha1: str = "",
        sha256: str = "",
        query_limit: Optional[int] = None,
    ) -> str:
        """List systems in the enterprise that first referenced a file.

        Args:
            md5: MD5 of the file (hex)
            sha1: SHA-1 of the file (hex)
            sha256: SHA-256 of the file (hex)
            query_limit: Maximum number of systems (default from settings, 500)

        Returns:
            JSON string with system GUIDs and first reference times.
        """
        hashes = _hashes(md5, sha1, sha256)
        if not hashes:
            return json.dumps({"error": "At least one hash is required"})
        logger.info(f"Getting file first references: {hashes}")

        try:
            agents = _run("get_file_first_references", hashes, query_limit=query_limit)
        except (TieError, FuturesTimeoutError) as e:
            return json.dumps({"error": str(e) or "Timed out waiting for TIE"})

        return json.dumps(_summarize_agents(agents), indent=2)

    @mcp.tool()
    def get_certificate_first_references(
        sha1: str,
        public_key_sha1: str = "",
        query_limit: Optional[int] = None,
    ) -> str:
        """List systems in the enterprise that first referenced a certificate.

        Args:
            sha1: SHA-1 of the certificate body (hex)
            public_key_sha1: SHA-1 of the certificate's public key (hex)
            query_limit: Maximum number of systems (default from settings, 500)

        Returns:
            JSON string with system GUIDs and first reference times.
        """
        logger.info(f"Getting certificate first references: {sha1}")

        try:
            agents = _run(
                "get_certificate_first_references",
                sha1,
                public_key_sha1=public_key_sha1 or None,
                query_limit=query_limit,
            )
        except (TieError, FuturesTimeoutError) as e:
            return json.dumps({"error": str(e) or "Timed out waiting for TIE"})

        return json.dumps(_summarize_agents(agents), indent=2)
