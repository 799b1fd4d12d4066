"""Decide whether a response should be compressed."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

from deflater.helpers.headers import has_directive, media_type

if TYPE_CHECKING:
    from starlette.datastructures import MutableHeaders
    from starlette.requests import Request

    from deflater.config import DeflaterConfig

logger = logging.getLogger(__name__)


def status_has_no_body(status: int) -> bool:
    """1xx, 204 and 304 responses never carry a body."""
    return 100 <= status < 200 or status in {204, 304}  # noqa: PLR2004


def content_length_is_zero(headers: MutableHeaders) -> bool:
    """Check for a ``content-length`` that parses to zero."""
    try:
        return int(headers.get("content-length", "")) == 0
    except ValueError:
        return False


def skip_reason(  # noqa: PLR0911
    config: DeflaterConfig,
    request: Request,
    status: int,
    headers: MutableHeaders,
    body: Any,  # noqa: ANN401
) -> str | None:
    """Return why a response must not be compressed, or ``None`` if it may be.

    Checks run in a fixed order and stop at the first failure: the ``if``
    predicate, the ``exclude`` predicate, the status, the ``include`` media
    types, ``cache-control: no-transform``, an existing ``content-encoding``
    and finally an empty ``content-length``.
    """
    if config.condition is not None and not config.condition(request, status, headers, body):
        return "condition"

    if config.exclude is not None and config.exclude(request, status, headers, body):
        return "excluded"

    if status_has_no_body(status):
        return f"status {status}"

    if config.include:
        mime = media_type(headers)
        if mime is None or not mime.startswith(config.include):
            return f"content-type {mime!r}"

    if has_directive(headers, "cache-control", "no-transform"):
        return "no-transform"

    encoding = headers.get("content-encoding")
    if encoding is not None and encoding.strip().lower() != "identity":
        return f"content-encoding {encoding!r}"

    if content_length_is_zero(headers):
        return "empty body"

    return None


def should_deflate(
    config: DeflaterConfig,
    request: Request,
    status: int,
    headers: MutableHeaders,
    body: Any,  # noqa: ANN401
) -> bool:
    """Check whether a response is eligible for compression."""
    reason = skip_reason(config, request, status, headers, body)
    if reason is not None:
        logger.debug("Not compressing %s %s: %s", request.method, request.url.path, reason)
        return False
    return True
