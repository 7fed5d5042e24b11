"""OpenDXL implementation of the fabric interface.

Requires the ``dxlclient`` package (``pip install tie-client[dxl]``).
"""

from __future__ import annotations

import logging
import threading
from contextlib import contextmanager
from typing import Iterator

from dxlclient.callbacks import EventCallback, ResponseCallback
from dxlclient.client import DxlClient
from dxlclient.client_config import DxlClientConfig
from dxlclient.message import Event, Message, Request

from .errors import FabricError
from .fabric import EventHandler, FabricMessage, ResponseHandler

logger = logging.getLogger(__name__)


def _to_fabric_message(message: Message) -> FabricMessage:
    return FabricMessage(
        destination_topic=message.destination_topic,
        payload=message.payload,
        message_id=message.message_id,
    )


class _ResponseRelay(ResponseCallback):
    """Forwards a DXL response (or error response) to a fabric response handler."""

    def __init__(self, callback: ResponseHandler):
        super().__init__()
        self._callback = callback

    def on_response(self, response: Message) -> None:
        if response.message_type == Message.MESSAGE_TYPE_ERROR:
            error = FabricError(
                f"Error response from fabric: {response.error_message}",
                code=response.error_code,
            )
            self._callback(error, None)
        else:
            self._callback(None, _to_fabric_message(response))


class _EventRelay(EventCallback):
    def __init__(self, callback: EventHandler):
        super().__init__()
        self._callback = callback

    def on_event(self, event: Event) -> None:
        self._callback(_to_fabric_message(event))


class DxlFabric:
    """``FabricClient`` backed by a connected ``dxlclient.client.DxlClient``."""

    def __init__(self, dxl_client: DxlClient):
        self.dxl_client = dxl_client
        self._relays_lock = threading.Lock()
        self._relays: dict[tuple[str, EventHandler], _EventRelay] = {}

    def async_request(self, topic: str, payload: bytes, callback: ResponseHandler) -> None:
        request = Request(topic)
        request.payload = payload
        try:
            self.dxl_client.async_request(request, _ResponseRelay(callback))
        except Exception as e:
            logger.warning(f"Failed to send request to {topic}: {e}")
            callback(e, None)

    def send_event(self, topic: str, payload: bytes) -> None:
        event = Event(topic)
        event.payload = payload
        self.dxl_client.send_event(event)

    def add_event_callback(self, topic: str, callback: EventHandler) -> None:
        relay = _EventRelay(callback)
        with self._relays_lock:
            self._relays[(topic, callback)] = relay
        self.dxl_client.add_event_callback(topic, relay)

    def remove_event_callback(self, topic: str, callback: EventHandler) -> None:
        with self._relays_lock:
            relay = self._relays.pop((topic, callback), None)
        if relay is not None:
            self.dxl_client.remove_event_callback(topic, relay)

    def close(self) -> None:
        """Disconnect and release the underlying DXL client."""
        self.dxl_client.destroy()


def connect_dxl_fabric(config_file: str) -> DxlFabric:
    """Connect to the fabric described by a DXL client configuration file.

    The caller owns the returned fabric and must ``close()`` it.
    """
    config = DxlClientConfig.create_dxl_config_from_file(config_file)
    client = DxlClient(config)
    logger.info(f"Connecting to DXL fabric using {config_file}")
    client.connect()
    return DxlFabric(client)


@contextmanager
def open_dxl_fabric(config_file: str) -> Iterator[DxlFabric]:
    """Context manager form of ``connect_dxl_fabric``."""
    fabric = connect_dxl_fabric(config_file)
    try:
        yield fabric
    finally:
        fabric.close()
