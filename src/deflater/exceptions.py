"""Deflater exceptions."""

from __future__ import annotations


class DeflaterError(Exception):
    """Base class for deflater errors."""


class UnsupportedEncodingError(DeflaterError, ValueError):
    """No compressor exists for the requested content coding."""

    def __init__(self, encoding: str) -> None:
        self.encoding = encoding
        super().__init__(f"Unsupported content coding '{encoding}'")


class BodyConsumedError(DeflaterError, RuntimeError):
    """A response body was consumed more than once."""

    def __init__(self) -> None:
        super().__init__("Response body has already been consumed")
