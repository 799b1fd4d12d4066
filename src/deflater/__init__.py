"""Streaming HTTP response compression."""

from __future__ import annotations

from deflater.config import DeflaterConfig
from deflater.handler import Deflater
from deflater.middleware import DeflaterMiddleware
from deflater.types import Response

__all__ = [
    "Deflater",
    "DeflaterConfig",
    "DeflaterMiddleware",
    "Response",
]
