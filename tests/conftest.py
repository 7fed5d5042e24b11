"""Shared test fixtures."""

import json
import os
from collections import defaultdict

import pytest

from tie_client.fabric import FabricMessage

# Keep developer TIE settings out of the tests.
for _name in ("TIE_DXL_CONFIG", "TIE_QUERY_LIMIT", "TIE_REQUEST_TIMEOUT"):
    os.environ.pop(_name, None)


class FakeFabric:
    """In-memory fabric that records traffic and answers requests immediately."""

    def __init__(self):
        self.requests: list[tuple[str, dict]] = []
        self.events: list[tuple[str, dict]] = []
        self.handlers: dict[str, list] = defaultdict(list)
        self.closed = False
        self._responses: dict[str, tuple] = {}

    def respond(self, topic, body=None, error=None, raw=None):
        """Configure the reply to requests on ``topic``."""
        payload = raw if raw is not None else json.dumps(body or {}).encode("utf-8")
        self._responses[topic] = (error, payload)

    def async_request(self, topic, payload, callback):
        self.requests.append((topic, json.loads(payload)))
        error, response = self._responses.get(topic, (None, b"{}"))
        if error is not None:
            callback(error, None)
        else:
            callback(None, FabricMessage(destination_topic=topic, payload=response))

    def send_event(self, topic, payload):
        self.events.append((topic, json.loads(payload)))

    def add_event_callback(self, topic, callback):
        self.handlers[topic].append(callback)

    def remove_event_callback(self, topic, callback):
        if callback in self.handlers[topic]:
            self.handlers[topic].remove(callback)

    def publish(self, topic, body=None, raw=None):
        """Deliver an event to every handler registered on ``topic``."""
        payload = raw if raw is not None else json.dumps(body).encode("utf-8")
        message = FabricMessage(destination_topic=topic, payload=payload, message_id="evt-1")
        for handler in list(self.handlers[topic]):
            handler(message)
        return message

    def close(self):
        self.closed = True


@pytest.fixture
def fabric():
    """A fresh FakeFabric."""
    return FakeFabric()


# Digests of the empty string, in hex and base64.
EMPTY_MD5 = "d41d8cd98f00b204e9800998ecf8427e"
EMPTY_MD5_B64 = "1B2M2Y8AsgTpgAmY7PhCfg=="
EMPTY_SHA1 = "da39a3ee5e6b4b0d3255bfef95601890afd80709"
EMPTY_SHA1_B64 = "2jmj7l5rSw0yVb/vlWAYkK/YBwk="
EMPTY_SHA256 = "e3b0c44298fc1c149afbf4c8996fb92427ae41e4649b934ca495991b7852b855"
EMPTY_SHA256_B64 = "47DEQpj8HBSa+/TImW+5JCeuQeRkm5NMpJWZG3hSuFU="


@pytest.fixture
def digests():
    """Known hex/base64 digest pairs."""
    return {
        "md5": (EMPTY_MD5, EMPTY_MD5_B64),
        "sha1": (EMPTY_SHA1, EMPTY_SHA1_B64),
        "sha256": (EMPTY_SHA256, EMPTY_SHA256_B64),
    }
