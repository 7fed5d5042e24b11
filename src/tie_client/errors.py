"""Exceptions raised by the TIE client."""

from __future__ import annotations

from typing import Optional


class TieError(Exception):
    """Base exception for TIE client errors."""

    pass


class TieValidationError(TieError, ValueError):
    """Raised before anything is sent when an argument is invalid."""

    pass


class TiePayloadError(TieError):
    """Raised when a response body cannot be decoded or has an unexpected shape."""

    pass


class FabricError(TieError):
    """Raised when the messaging fabric reports a failed request."""

    def __init__(self, message: str, code: Optional[int] = None):
        super().__init__(message)
        self.code = code
