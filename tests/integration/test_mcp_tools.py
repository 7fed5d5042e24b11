"""Integration tests for MCP server tools.

These tests verify that MCP tools are correctly registered and return
valid JSON responses.

Requires: pip install mcp
"""

import json
import sys
from pathlib import Path
from unittest.mock import patch

import pytest

# Skip all tests in this module if mcp is not installed
pytest.importorskip("mcp", reason="MCP package not installed")

# Add mcp-server to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent.parent / "mcp-server"))

from tie_client.client import (  # noqa: E402
    TIE_GET_CERT_REPUTATION_TOPIC,
    TIE_GET_FILE_FIRST_REFS_TOPIC,
    TIE_GET_FILE_REPUTATION_TOPIC,
    TieClient,
)
from tie_client.errors import FabricError, TieError  # noqa: E402
from tie_client.settings import TieSettings  # noqa: E402

from conftest import EMPTY_MD5, EMPTY_SHA1  # noqa: E402


class MockFastMCP:
    """Mock FastMCP server for testing tool registration."""

    def __init__(self, name: str = "test"):
        self.name = name
        self.tools: dict[str, callable] = {}

    def tool(self):
        """Decorator to register tools."""
        def decorator(func):
            self.tools[func.__name__] = func
            return func
        return decorator


@pytest.fixture
def attribute_tools():
    from tools import attribute_tools

    mcp = MockFastMCP()
    attribute_tools.register_tools(mcp)
    return mcp.tools


@pytest.fixture
def tie_tools(fabric):
    from tools import tie_tools

    mcp = MockFastMCP()
    tie_tools.register_tools(mcp)
    client = TieClient(fabric, TieSettings(request_timeout=1))
    with patch.object(tie_tools, "get_client", return_value=client):
        yield mcp.tools


class TestAttributeTools:
    """Tests for offline attribute decoding tools."""

    def test_registration(self, attribute_tools):
        assert set(attribute_tools) == {
            "decode_version_attribute",
            "decode_aggregate_attribute",
            "format_epoch_time",
            "describe_trust_level",
            "describe_file_type",
        }

    def test_decode_version(self, attribute_tools):
        data = json.loads(attribute_tools["decode_version_attribute"]("73183493944770750"))
        assert data["version"] == "1.4.0.190"
        assert data["major"] == 1
        assert data["build"] == 190

    def test_decode_version_invalid(self, attribute_tools):
        data = json.loads(attribute_tools["decode_version_attribute"]("not a version"))
        assert "error" in data

    def test_decode_aggregate(self, attribute_tools):
        data = json.loads(attribute_tools["decode_aggregate_attribute"]("AgBkADIAZABMHQ=="))
        assert data == {
            "file_count": 2,
            "max_trust_level": 100,
            "min_trust_level": 50,
            "last_trust_level": 100,
            "avg_trust_level": 75.0,
        }

    def test_decode_aggregate_invalid(self, attribute_tools):
        data = json.loads(attribute_tools["decode_aggregate_attribute"]("AgBkAA=="))
        assert "error" in data

    def test_format_epoch_time(self, attribute_tools):
        data = json.loads(attribute_tools["format_epoch_time"](1481301038))
        assert data["epoch_time"] == 1481301038
        assert data["local_time"].startswith("2016-12-")

    def test_describe_trust_level(self, attribute_tools):
        data = json.loads(attribute_tools["describe_trust_level"](15))
        assert data["name"] == "MOST_LIKELY_MALICIOUS"

    def test_describe_atd_trust_level(self, attribute_tools):
        data = json.loads(attribute_tools["describe_trust_level"](-1, atd=True))
        assert data["name"] == "KNOWN_TRUSTED"

    def test_describe_unknown_trust_level(self, attribute_tools):
        data = json.loads(attribute_tools["describe_trust_level"](42))
        assert "error" in data

    def test_describe_file_type(self, attribute_tools):
        data = json.loads(attribute_tools["describe_file_type"](18))
        assert data["name"] == "PEEXE"


class TestTieTools:
    """Tests for reputation lookup tools."""

    def test_registration(self):
        from tools import tie_tools

        mcp = MockFastMCP()
        tie_tools.register_tools(mcp)

        assert set(mcp.tools) == {
            "get_file_reputation",
            "get_certificate_reputation",
            "get_file_first_references",
            "get_certificate_first_references",
        }

    def test_file_reputation(self, tie_tools, fabric):
        fabric.respond(
            TIE_GET_FILE_REPUTATION_TOPIC,
            {
                "reputations": [
                    {"providerId": 1, "trustLevel": 99, "createDate": 1200000000},
                    {"providerId": 3, "trustLevel": 0, "attributes": {"2101652": "1"}},
                ]
            },
        )
        data = json.loads(tie_tools["get_file_reputation"](md5=EMPTY_MD5))

        assert data["count"] == 2
        gti, enterprise = data["reputations"]
        assert gti["provider"] == "GTI"
        assert gti["trust_level_name"] == "KNOWN_TRUSTED"
        assert gti["created"] is not None
        assert enterprise["provider"] == "ENTERPRISE"
        assert enterprise["attributes"] == {"2101652": "1"}
        assert enterprise["created"] is None

    def test_file_reputation_requires_hash(self, tie_tools, fabric):
        data = json.loads(tie_tools["get_file_reputation"]())
        assert "error" in data
        assert fabric.requests == []

    def test_file_reputation_invalid_hash(self, tie_tools):
        data = json.loads(tie_tools["get_file_reputation"](md5="xyz"))
        assert "Invalid md5 hash value" in data["error"]

    def test_file_reputation_service_error(self, tie_tools, fabric):
        fabric.respond(TIE_GET_FILE_REPUTATION_TOPIC, error=FabricError("Service not found"))
        data = json.loads(tie_tools["get_file_reputation"](sha1=EMPTY_SHA1))
        assert data == {"error": "Service not found"}

    def test_certificate_reputation(self, tie_tools, fabric):
        fabric.respond(
            TIE_GET_CERT_REPUTATION_TOPIC,
            {"reputations": [{"providerId": 4, "trustLevel": 1}]},
        )
        data = json.loads(
            tie_tools["get_certificate_reputation"](EMPTY_SHA1, public_key_sha1=EMPTY_SHA1)
        )

        assert data["reputations"][0]["provider"] == "ENTERPRISE"
        assert data["reputations"][0]["trust_level_name"] == "KNOWN_MALICIOUS"
        assert "publicKeySha1" in fabric.requests[0][1]

    def test_file_first_references(self, tie_tools, fabric):
        fabric.respond(
            TIE_GET_FILE_FIRST_REFS_TOPIC,
            {"agents": [{"agentGuid": "{68125cd6-a5d8-11e6-348e-000c29663178}", "date": 1475873692}]},
        )
        data = json.loads(tie_tools["get_file_first_references"](md5=EMPTY_MD5, query_limit=10))

        assert fabric.requests[0][1]["queryLimit"] == 10
        assert data["count"] == 1
        assert data["systems"][0]["system_guid"] == "{68125cd6-a5d8-11e6-348e-000c29663178}"
        assert data["systems"][0]["first_reference"] is not None

    def test_certificate_first_references_default_limit(self, tie_tools, fabric):
        data = json.loads(tie_tools["get_certificate_first_references"](EMPTY_SHA1))
        assert data == {"count": 0, "systems": []}
        assert fabric.requests[0][1]["queryLimit"] == 500

    def test_unconfigured_client(self):
        from tools import tie_tools

        mcp = MockFastMCP()
        tie_tools.register_tools(mcp)
        with patch.object(tie_tools, "get_client", side_effect=TieError("No DXL configuration")):
            data = json.loads(mcp.tools["get_file_reputation"](md5=EMPTY_MD5))
        assert data == {"error": "No DXL configuration"}


class TestHealthTools:
    """Tests for health check tools."""

    def test_health_check(self, monkeypatch):
        from tools import health_tools

        monkeypatch.setenv("TIE_QUERY_LIMIT", "50")
        mcp = MockFastMCP()
        health_tools.register_tools(mcp)
        data = json.loads(mcp.tools["health_check"]())

        assert data["status"] == "healthy"
        assert data["settings"]["query_limit"] == 50
        assert data["services"]["dxl"]["status"] in {"not_installed", "no_config"}
