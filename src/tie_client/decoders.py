"""Decoders for the binary and time encodings found in reputation attributes."""

from __future__ import annotations

import base64
import binascii
import struct
from datetime import datetime
from typing import Union

LOCAL_TIME_FORMAT = "%Y-%m-%d %H:%M:%S"

_MAX_UINT64 = (1 << 64) - 1

# fileCount, maxTrustLevel, minTrustLevel, lastTrustLevel, avgTrustLevel * 100
_AGGREGATE_LAYOUT = struct.Struct("<5H")


def to_version_array(version_attrib: Union[str, int]) -> list[int]:
    """Split a packed 64-bit version attribute into its fields.

    The attribute is a decimal string holding an unsigned 64-bit integer laid
    out as major (bits 56-63), minor (bits 48-55), patch (bits 32-47) and
    build (bits 0-31).

    Args:
        version_attrib: Version attribute value, e.g. ``"73183493944770750"``

    Returns:
        ``[major, minor, patch, build]``, e.g. ``[1, 4, 0, 190]``

    Raises:
        ValueError: If the value is not an unsigned 64-bit integer
    """
    try:
        version = int(version_attrib)
    except (TypeError, ValueError) as e:
        raise ValueError(f"Invalid version attribute: {version_attrib!r}") from e
    if not 0 <= version <= _MAX_UINT64:
        raise ValueError(f"Version attribute out of range: {version_attrib!r}")

    return [
        (version >> 56) & 0xFF,
        (version >> 48) & 0xFF,
        (version >> 32) & 0xFFFF,
        version & 0xFFFFFFFF,
    ]


def to_version_string(version_attrib: Union[str, int]) -> str:
    """Dotted form of a packed version attribute, e.g. ``"1.4.0.190"``."""
    return ".".join(str(part) for part in to_version_array(version_attrib))


def to_aggregate_array(aggregate_attrib: str) -> list[Union[int, float]]:
    """Decode a base64 aggregate attribute into its five statistics.

    The decoded bytes are little-endian 16-bit words. The fifth word is the
    average trust level multiplied by 100 and is scaled back when positive.
    Words past the fifth are ignored.

    Returns:
        ``[file_count, max_trust_level, min_trust_level, last_trust_level,
        avg_trust_level]``

    Raises:
        ValueError: If the value is not base64 or holds fewer than five words
    """
    try:
        raw = base64.b64decode(aggregate_attrib, validate=True)
    except (binascii.Error, TypeError) as e:
        raise ValueError(f"Invalid aggregate attribute: {aggregate_attrib!r}") from e
    if len(raw) < _AGGREGATE_LAYOUT.size:
        raise ValueError(
            f"Aggregate attribute too short: {len(raw)} bytes, "
            f"expected at least {_AGGREGATE_LAYOUT.size}"
        )

    values: list[Union[int, float]] = list(_AGGREGATE_LAYOUT.unpack_from(raw))
    if values[4] > 0:
        values[4] = values[4] / 100
    return values


def to_local_time(epoch_time: Union[str, int]) -> datetime:
    """Convert an Epoch time (seconds) to a naive datetime in local time."""
    return datetime.fromtimestamp(int(epoch_time))


def to_local_time_string(epoch_time: Union[str, int]) -> str:
    """Convert an Epoch time to a ``YYYY-MM-DD HH:MM:SS`` local time string."""
    return to_local_time(epoch_time).strftime(LOCAL_TIME_FORMAT)
