"""Conversions between TIE wire payloads and caller-facing structures.

On the wire, hashes are arrays of ``{"type", "value"}`` objects with base64
values and reputations are arrays of per-provider records. Callers see hash
maps keyed by hash type with hex values and reputation maps keyed by provider
id. Inbound conversions work in place on the decoded JSON object.
"""

from __future__ import annotations

import base64
from enum import Enum
from typing import Any, Iterable, Mapping

from .constants import (
    CertRepChangeEventProp,
    CertReputationOverriddenProp,
    CertReputationProp,
    FileRepChangeEventProp,
    RepChangeEventProp,
    ReputationProp,
)
from .errors import TieValidationError

HASHES_KEY = "hashes"
REPUTATIONS_KEY = "reputations"
CERTIFICATE_KEY = "certificate"


def hex_to_base64(hex_value: str) -> str:
    """Re-encode a hex digest as base64."""
    return base64.b64encode(bytes.fromhex(hex_value)).decode("ascii")


def base64_to_hex(base64_value: str) -> str:
    """Re-encode a base64 digest as lowercase hex."""
    return base64.b64decode(base64_value).hex()


def _plain(value: Any) -> Any:
    return value.value if isinstance(value, Enum) else value


def hashes_to_wire(hashes: Mapping[Any, str]) -> list[dict[str, str]]:
    """Convert ``{hash_type: hex}`` into the wire array of typed base64 hashes.

    Raises:
        TieValidationError: If a hash value is not a hex string
    """
    wire = []
    for hash_type, hex_value in hashes.items():
        try:
            value = hex_to_base64(hex_value)
        except (ValueError, TypeError) as e:
            raise TieValidationError(
                f"Invalid {_plain(hash_type)} hash value: {hex_value!r}"
            ) from e
        wire.append({"type": _plain(hash_type), "value": value})
    return wire


def hashes_from_wire(wire_hashes: Iterable[Mapping[str, str]]) -> dict[str, str]:
    """Convert the wire array of typed base64 hashes into ``{hash_type: hex}``."""
    return {entry["type"]: base64_to_hex(entry["value"]) for entry in wire_hashes}


def transform_hashes_from_wire(obj: dict[str, Any], key: str = HASHES_KEY) -> None:
    """Replace the wire hashes stored under ``key`` in place, if present."""
    wire_hashes = obj.get(key)
    if wire_hashes is not None:
        obj[key] = hashes_from_wire(wire_hashes)


def normalize_reputations(reputations: Iterable[dict[str, Any]]) -> dict[Any, dict[str, Any]]:
    """Key a wire reputation array by provider id.

    Provider ids are expected to be unique; if one repeats, the last record
    wins. Hashes of files overriding a certificate reputation are converted.
    """
    result: dict[Any, dict[str, Any]] = {}
    for reputation in reputations:
        result[reputation[ReputationProp.PROVIDER_ID]] = reputation
        overridden = reputation.get(CertReputationProp.OVERRIDDEN)
        if overridden and overridden.get(CertReputationOverriddenProp.FILES):
            for overridden_file in overridden[CertReputationOverriddenProp.FILES]:
                transform_hashes_from_wire(overridden_file)
    return result


def _decode_public_key(obj: dict[str, Any]) -> None:
    public_key = obj.get(CertRepChangeEventProp.PUBLIC_KEY_SHA1)
    if public_key:
        obj[CertRepChangeEventProp.PUBLIC_KEY_SHA1] = base64_to_hex(public_key)


def normalize_change_event(payload: dict[str, Any]) -> dict[str, Any]:
    """Normalize a file or certificate reputation change event in place.

    Converts the subject hashes, replaces ``newReputations``/``oldReputations``
    with provider-keyed maps, and decodes certificate public key hashes (for a
    file's related certificate and for certificate events) to hex.
    """
    transform_hashes_from_wire(payload, RepChangeEventProp.HASHES)

    for key in (RepChangeEventProp.NEW_REPUTATIONS, RepChangeEventProp.OLD_REPUTATIONS):
        reputations = payload.get(key)
        if reputations is not None:
            payload[key] = normalize_reputations(reputations.get(REPUTATIONS_KEY) or [])

    relationships = payload.get(FileRepChangeEventProp.RELATIONSHIPS)
    if relationships:
        certificate = relationships.get(CERTIFICATE_KEY)
        if certificate:
            transform_hashes_from_wire(certificate)
            _decode_public_key(certificate)

    _decode_public_key(payload)
    return payload


def normalize_hash_event(payload: dict[str, Any]) -> dict[str, Any]:
    """Normalize a detection or first-instance event (hashes only), in place."""
    transform_hashes_from_wire(payload)
    return payload

