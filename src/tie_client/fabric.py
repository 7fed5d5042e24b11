"""Messaging fabric interface used by the TIE client.

``TieClient`` talks to the fabric only through ``FabricClient``, so any
transport that can send a request, publish an event and deliver events to
registered handlers can carry TIE traffic. ``tie_client.dxl`` provides the
OpenDXL implementation.
"""

from __future__ import annotations

import json
from dataclasses import dataclass
from typing import Any, Callable, Optional, Protocol, Union


@dataclass
class FabricMessage:
    """A response or event delivered by the fabric."""

    destination_topic: str
    payload: Union[bytes, str] = b""
    message_id: Optional[str] = None


ResponseHandler = Callable[[Optional[Exception], Optional[FabricMessage]], None]
EventHandler = Callable[[FabricMessage], None]


class FabricClient(Protocol):
    """Minimal capabilities the TIE client needs from a messaging client.

    ``async_request`` must not block and must invoke ``callback`` exactly once,
    either with ``(None, response)`` or with ``(error, None)``.
    """

    def async_request(self, topic: str, payload: bytes, callback: ResponseHandler) -> None:
        ...

    def send_event(self, topic: str, payload: bytes) -> None:
        ...

    def add_event_callback(self, topic: str, callback: EventHandler) -> None:
        ...

    def remove_event_callback(self, topic: str, callback: EventHandler) -> None:
        ...


def dict_to_json_payload(obj: Any) -> bytes:
    """Encode an object as a UTF-8 JSON message payload."""
    return json.dumps(obj).encode("utf-8")


def json_payload_to_dict(message: FabricMessage) -> Any:
    """Decode the JSON payload of a fabric message.

    Raises:
        ValueError: If the payload is not valid UTF-8 JSON
    """
    payload = message.payload
    if isinstance(payload, (bytes, bytearray)):
        payload = payload.decode("utf-8")
    return json.loads(payload)
