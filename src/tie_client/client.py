"""Threat Intelligence Exchange (TIE) client.

Issues reputation requests over a messaging fabric and normalizes responses
and events into caller-friendly structures. All operations are non-blocking:
results are delivered to the ``callback`` passed to each call, exactly once.
Argument errors are raised synchronously, before anything is sent.
"""

from __future__ import annotations

import logging
import threading
from collections import defaultdict
from concurrent.futures import Future
from typing import Any, Callable, Mapping, Optional

from .constants import CertProvider, FileProvider, FileType, HashType, TrustLevel
from .errors import TiePayloadError, TieValidationError
from .fabric import (
    EventHandler,
    FabricClient,
    FabricMessage,
    dict_to_json_payload,
    json_payload_to_dict,
)
from .settings import TieSettings
from .transform import (
    hashes_to_wire,
    hex_to_base64,
    normalize_change_event,
    normalize_hash_event,
    normalize_reputations,
)

logger = logging.getLogger(__name__)

TIE_GET_FILE_REPUTATION_TOPIC = "/mcafee/service/tie/file/reputation"
TIE_SET_FILE_REPUTATION_TOPIC = "/mcafee/service/tie/file/reputation/set"
TIE_GET_FILE_FIRST_REFS_TOPIC = "/mcafee/service/tie/file/agents"
TIE_GET_CERT_REPUTATION_TOPIC = "/mcafee/service/tie/cert/reputation"
TIE_SET_CERT_REPUTATION_TOPIC = "/mcafee/service/tie/cert/reputation/set"
TIE_GET_CERT_FIRST_REFS_TOPIC = "/mcafee/service/tie/cert/agents"

TIE_EVENT_FILE_DETECTION_TOPIC = "/mcafee/event/tie/file/detection"
TIE_EVENT_FILE_FIRST_INSTANCE_TOPIC = "/mcafee/event/tie/file/firstinstance"
TIE_EVENT_FILE_REPUTATION_CHANGE_TOPIC = "/mcafee/event/tie/file/repchange/broadcast"
TIE_EVENT_CERT_REPUTATION_CHANGE_TOPIC = "/mcafee/event/tie/cert/repchange/broadcast"
TIE_EVENT_EXTERNAL_FILE_REPORT_TOPIC = "/mcafee/event/external/file/report"

PUBLIC_KEY_SHA1_KEY = "publicKeySha1"

ReputationCallback = Callable[[Optional[Exception], Optional[dict]], None]
FirstReferencesCallback = Callable[[Optional[Exception], Optional[list]], None]
CompletionCallback = Callable[[Optional[Exception]], None]
EventCallback = Callable[[dict, FabricMessage], None]


def _require_hashes(hashes: Mapping[Any, str]) -> None:
    if not hashes:
        raise TieValidationError("At least one hash must be specified")
    for hash_type, value in hashes.items():
        if not value:
            raise TieValidationError(f"Empty {getattr(hash_type, 'value', hash_type)} hash value")


def _cert_request(sha1: str, public_key_sha1: Optional[str]) -> tuple[dict, dict]:
    """Hashes and extra payload identifying a certificate."""
    payload = {}
    if public_key_sha1:
        try:
            payload[PUBLIC_KEY_SHA1_KEY] = hex_to_base64(public_key_sha1)
        except (ValueError, TypeError) as e:
            raise TieValidationError(f"Invalid public key SHA-1: {public_key_sha1!r}") from e
    return {HashType.SHA1: sha1}, payload


class TieClient:
    """Client for the TIE reputation service.

    The client holds a ``FabricClient`` and never manages its connection; the
    caller connects the fabric before use and tears it down afterwards.

    Example::

        def on_reputations(error, reputations):
            if error is None:
                print(reputations[FileProvider.GTI][FileReputationProp.TRUST_LEVEL])

        tie = TieClient(fabric)
        tie.get_file_reputation({HashType.MD5: "f2c7bb8acc97f92e987a2d4087d021b1"},
                                callback=on_reputations)
    """

    def __init__(self, fabric: FabricClient, settings: Optional[TieSettings] = None):
        self.fabric = fabric
        self.settings = settings or TieSettings()
        self._listeners_lock = threading.Lock()
        self._listeners: dict[tuple[str, Callable], list[EventHandler]] = defaultdict(list)

    # -- requests ---------------------------------------------------------

    def _send_request(
        self,
        topic: str,
        payload: dict,
        on_response: Callable[[Optional[Exception], Optional[FabricMessage]], None],
    ) -> None:
        logger.debug(f"Sending TIE request to {topic}")
        self.fabric.async_request(topic, dict_to_json_payload(payload), on_response)

    def _get_reputation(
        self,
        topic: str,
        hashes: Mapping[Any, str],
        callback: ReputationCallback,
        payload: Optional[dict] = None,
    ) -> None:
        _require_hashes(hashes)
        request = dict(payload or {})
        request["hashes"] = hashes_to_wire(hashes)

        def on_response(error: Optional[Exception], response: Optional[FabricMessage]) -> None:
            reputations = None
            if error is None:
                try:
                    body = json_payload_to_dict(response)
                    reputations = normalize_reputations(body.get("reputations") or [])
                except (ValueError, TypeError, KeyError, AttributeError) as e:
                    logger.warning(f"Invalid reputation response on {topic}: {e}")
                    error = TiePayloadError(f"Invalid reputation response: {e}")
                    reputations = None
            else:
                logger.warning(f"Reputation request to {topic} failed: {error}")
            callback(error, reputations)

        self._send_request(topic, request, on_response)

    def _set_reputation(
        self,
        topic: str,
        trust_level: Any,
        provider_id: int,
        hashes: Mapping[Any, str],
        payload: Optional[dict] = None,
        comment: Optional[str] = None,
        callback: Optional[CompletionCallback] = None,
    ) -> None:
        if trust_level is None:
            raise TieValidationError("trust_level was not specified")
        try:
            numeric_level = float(trust_level)
        except (TypeError, ValueError, OverflowError) as e:
            raise TieValidationError(f"trust_level was not a number: {trust_level!r}") from e
        if not numeric_level.is_integer():
            raise TieValidationError(f"trust_level was not a whole number: {trust_level!r}")
        trust_level = int(numeric_level)
        _require_hashes(hashes)

        request = dict(payload or {})
        request["trustLevel"] = trust_level
        request["providerId"] = provider_id
        request["comment"] = comment or ""
        request["hashes"] = hashes_to_wire(hashes)

        def on_response(error: Optional[Exception], response: Optional[FabricMessage]) -> None:
            if error is not None:
                logger.warning(f"Set reputation request to {topic} failed: {error}")
            if callback:
                callback(error)

        self._send_request(topic, request, on_response)

    def _get_first_references(
        self,
        topic: str,
        hashes: Mapping[Any, str],
        callback: FirstReferencesCallback,
        payload: Optional[dict] = None,
        query_limit: Optional[int] = None,
    ) -> None:
        _require_hashes(hashes)
        request = dict(payload or {})
        request["queryLimit"] = self.settings.query_limit if query_limit is None else query_limit
        request["hashes"] = hashes_to_wire(hashes)

        def on_response(error: Optional[Exception], response: Optional[FabricMessage]) -> None:
            agents = None
            if error is None:
                try:
                    body = json_payload_to_dict(response)
                    agents = body.get("agents") or []
                    if not isinstance(agents, list):
                        raise TypeError(f"agents is a {type(agents).__name__}, expected a list")
                except (ValueError, TypeError, AttributeError) as e:
                    logger.warning(f"Invalid first references response on {topic}: {e}")
                    error = TiePayloadError(f"Invalid first references response: {e}")
                    agents = None
            else:
                logger.warning(f"First references request to {topic} failed: {error}")
            callback(error, agents)

        self._send_request(topic, request, on_response)

    # -- files ------------------------------------------------------------

    def get_file_reputation(self, hashes: Mapping[Any, str], callback: ReputationCallback) -> None:
        """Look up the reputations of a file.

        Args:
            hashes: ``{HashType: hex}`` identifying the file
            callback: Called with ``(error, reputations)``; ``reputations``
                maps each ``FileProvider`` id to its reputation record and is
                ``{}`` when no provider knows the file
        """
        self._get_reputation(TIE_GET_FILE_REPUTATION_TOPIC, hashes, callback)

    def set_file_reputation(
        self,
        trust_level: Any,
        hashes: Mapping[Any, str],
        filename: str = "",
        comment: str = "",
        callback: Optional[CompletionCallback] = None,
    ) -> None:
        """Set the Enterprise reputation of a file.

        Args:
            trust_level: New ``TrustLevel``
            hashes: ``{HashType: hex}`` identifying the file
            filename: Name associated with the file
            comment: Comment stored with the reputation
            callback: Called with ``(error)`` once the service answers

        Raises:
            TieValidationError: If the trust level is missing or not numeric
        """
        self._set_reputation(
            TIE_SET_FILE_REPUTATION_TOPIC,
            trust_level,
            FileProvider.ENTERPRISE,
            hashes,
            payload={"filename": filename or ""},
            comment=comment,
            callback=callback,
        )

    def get_file_first_references(
        self,
        hashes: Mapping[Any, str],
        callback: FirstReferencesCallback,
        query_limit: Optional[int] = None,
    ) -> None:
        """List the systems that first referenced a file.

        Entries hold ``FirstRefProp.SYSTEM_GUID`` and ``FirstRefProp.DATE``,
        in service order. ``query_limit`` defaults to ``settings.query_limit``.
        """
        self._get_first_references(
            TIE_GET_FILE_FIRST_REFS_TOPIC, hashes, callback, query_limit=query_limit
        )

    def set_external_file_reputation(
        self,
        trust_level: Any,
        hashes: Mapping[Any, str],
        file_type: Any,
        filename: str = "",
        comment: str = "",
        provider_id: int = FileProvider.EXTERNAL,
        callback: Optional[Callable[[], None]] = None,
    ) -> None:
        """Report a file reputation determined by an external provider.

        The report is published as an event: nothing acknowledges it, and
        ``callback`` is called with no arguments right after publishing.

        Raises:
            TieValidationError: If the trust level is not a ``TrustLevel``, the
                file type is not a ``FileType``, no hash is given or a
                hash is not hex
        """
        if not TrustLevel.has_value(trust_level):
            raise TieValidationError(f"Invalid trust level: {trust_level!r}")
        if not FileType.has_value(file_type):
            raise TieValidationError(f"Invalid file type: {file_type!r}")
        _require_hashes(hashes)
        # Rejects non-hex values; the event itself carries the hex map
        hashes_to_wire(hashes)

        event = {
            "file": {
                "type": int(file_type),
                "hashes": {getattr(k, "value", k): v for k, v in hashes.items()},
                "reputation": {"score": int(trust_level)},
                "attributes": {"filename": filename or ""},
            },
            "provider": {"id": int(provider_id)},
            "comment": comment or "",
        }
        logger.debug(f"Publishing external file report to {TIE_EVENT_EXTERNAL_FILE_REPORT_TOPIC}")
        self.fabric.send_event(TIE_EVENT_EXTERNAL_FILE_REPORT_TOPIC, dict_to_json_payload(event))
        if callback:
            callback()

    # -- certificates -----------------------------------------------------

    def get_certificate_reputation(
        self,
        sha1: str,
        callback: ReputationCallback,
        public_key_sha1: Optional[str] = None,
    ) -> None:
        """Look up the reputations of a certificate.

        Args:
            sha1: Hex SHA-1 of the certificate body
            callback: Called with ``(error, reputations)`` keyed by
                ``CertProvider`` id
            public_key_sha1: Hex SHA-1 of the certificate's public key
        """
        hashes, payload = _cert_request(sha1, public_key_sha1)
        self._get_reputation(TIE_GET_CERT_REPUTATION_TOPIC, hashes, callback, payload)

    def set_certificate_reputation(
        self,
        trust_level: Any,
        sha1: str,
        public_key_sha1: Optional[str] = None,
        comment: str = "",
        callback: Optional[CompletionCallback] = None,
    ) -> None:
        """Set the Enterprise reputation of a certificate."""
        hashes, payload = _cert_request(sha1, public_key_sha1)
        self._set_reputation(
            TIE_SET_CERT_REPUTATION_TOPIC,
            trust_level,
            CertProvider.ENTERPRISE,
            hashes,
            payload=payload,
            comment=comment,
            callback=callback,
        )

    def get_certificate_first_references(
        self,
        sha1: str,
        callback: FirstReferencesCallback,
        public_key_sha1: Optional[str] = None,
        query_limit: Optional[int] = None,
    ) -> None:
        """List the systems that first referenced a certificate."""
        hashes, payload = _cert_request(sha1, public_key_sha1)
        self._get_first_references(
            TIE_GET_CERT_FIRST_REFS_TOPIC, hashes, callback, payload, query_limit
        )

    # -- events -----------------------------------------------------------

    def _add_callback(
        self,
        topic: str,
        transform: Callable[[dict], dict],
        callback: EventCallback,
    ) -> None:
        def listener(message: FabricMessage) -> None:
            try:
                payload = transform(json_payload_to_dict(message))
            except (ValueError, TypeError, KeyError, AttributeError) as e:
                logger.warning(f"Dropping undecodable event on {topic}: {e}")
                return
            callback(payload, message)

        with self._listeners_lock:
            self._listeners[(topic, callback)].append(listener)
        self.fabric.add_event_callback(topic, listener)
        logger.debug(f"Registered event callback on {topic}")

    def _remove_callback(self, topic: str, callback: EventCallback) -> None:
        with self._listeners_lock:
            listeners = self._listeners.get((topic, callback))
            if not listeners:
                logger.debug(f"No event callback registered on {topic} for {callback!r}")
                return
            listener = listeners.pop()
            if not listeners:
                del self._listeners[(topic, callback)]
        self.fabric.remove_event_callback(topic, listener)
        logger.debug(f"Removed event callback on {topic}")

    def add_file_detection_callback(self, callback: EventCallback) -> None:
        """Receive file detection events as ``callback(detection, message)``.

        ``detection`` holds the ``DetectionEventProp`` properties with hashes
        as ``{hash_type: hex}``.
        """
        self._add_callback(TIE_EVENT_FILE_DETECTION_TOPIC, normalize_hash_event, callback)

    def remove_file_detection_callback(self, callback: EventCallback) -> None:
        self._remove_callback(TIE_EVENT_FILE_DETECTION_TOPIC, callback)

    def add_file_first_instance_callback(self, callback: EventCallback) -> None:
        """Receive first-instance events (a file seen for the first time in the enterprise)."""
        self._add_callback(TIE_EVENT_FILE_FIRST_INSTANCE_TOPIC, normalize_hash_event, callback)

    def remove_file_first_instance_callback(self, callback: EventCallback) -> None:
        self._remove_callback(TIE_EVENT_FILE_FIRST_INSTANCE_TOPIC, callback)

    def add_file_reputation_change_callback(self, callback: EventCallback) -> None:
        """Receive file reputation changes.

        The payload holds the ``FileRepChangeEventProp`` properties, with old
        and new reputations keyed by provider id.
        """
        self._add_callback(
            TIE_EVENT_FILE_REPUTATION_CHANGE_TOPIC, normalize_change_event, callback
        )

    def remove_file_reputation_change_callback(self, callback: EventCallback) -> None:
        self._remove_callback(TIE_EVENT_FILE_REPUTATION_CHANGE_TOPIC, callback)

    def add_certificate_reputation_change_callback(self, callback: EventCallback) -> None:
        """Receive certificate reputation changes (``CertRepChangeEventProp``)."""
        self._add_callback(
            TIE_EVENT_CERT_REPUTATION_CHANGE_TOPIC, normalize_change_event, callback
        )

    def remove_certificate_reputation_change_callback(self, callback: EventCallback) -> None:
        self._remove_callback(TIE_EVENT_CERT_REPUTATION_CHANGE_TOPIC, callback)


def wait_for_result(
    operation: Callable[..., None],
    *args: Any,
    timeout: Optional[float] = None,
    **kwargs: Any,
) -> Any:
    """Call a callback-style ``TieClient`` operation and block for its outcome.

    Example::

        reputations = wait_for_result(tie.get_file_reputation, hashes, timeout=30)

    Returns:
        The operation's result (``None`` for operations that only report
        completion)

    Raises:
        The error passed to the callback, ``TieValidationError`` for invalid
        arguments, or ``concurrent.futures.TimeoutError``
    """
    future: Future = Future()

    def on_done(error: Optional[Exception] = None, result: Any = None) -> None:
        if error is not None:
            future.set_exception(error)
        else:
            future.set_result(result)

    operation(*args, callback=on_done, **kwargs)
    return future.result(timeout=timeout)
