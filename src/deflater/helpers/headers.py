"""Response header helpers."""

from __future__ import annotations

import datetime
import email.utils
from typing import TYPE_CHECKING

from starlette.datastructures import MutableHeaders

if TYPE_CHECKING:
    from deflater.types import RawHeaders

VARY_VALUE = "Accept-Encoding"

#: Largest mtime the 32-bit gzip header field can hold.
MAX_GZIP_MTIME = 0xFFFFFFFF


def to_headers(headers: RawHeaders | MutableHeaders) -> MutableHeaders:
    """Normalise handler headers to case-insensitive ``MutableHeaders``.

    List values become one header line per element.
    """
    if isinstance(headers, MutableHeaders):
        return headers

    raw: list[tuple[bytes, bytes]] = []
    for name, value in headers.items():
        values = [value] if isinstance(value, str) else value
        raw.extend((name.lower().encode("latin-1"), v.encode("latin-1")) for v in values)
    return MutableHeaders(raw=raw)


def split_tokens(value: str) -> list[str]:
    """Split a comma-separated header value into stripped, non-empty tokens."""
    return [token.strip() for token in value.split(",") if token.strip()]


def merge_vary(headers: MutableHeaders) -> None:
    """Declare that the response varies on ``Accept-Encoding``.

    A ``*`` value, or one that already names ``Accept-Encoding``, is left alone.

    Examples:
        >>> headers = MutableHeaders({"vary": "Do-Not-Accept-Encoding"})
        >>> merge_vary(headers)
        >>> headers["vary"]
        'Do-Not-Accept-Encoding,Accept-Encoding'
    """
    vary = split_tokens(",".join(headers.getlist("vary")))
    if "*" in vary or any(token.lower() == "accept-encoding" for token in vary):
        return

    vary.append(VARY_VALUE)
    headers["vary"] = ",".join(vary)


def media_type(headers: MutableHeaders) -> str | None:
    """Return the lowercased media type of ``content-type``, without parameters."""
    content_type = headers.get("content-type")
    if content_type is None:
        return None
    return content_type.partition(";")[0].strip().lower()


def has_directive(headers: MutableHeaders, name: str, directive: str) -> bool:
    """Check whether a comma-separated header lists ``directive``."""
    values = ",".join(headers.getlist(name))
    return any(token.partition("=")[0].strip().lower() == directive for token in split_tokens(values))


def last_modified_timestamp(headers: MutableHeaders) -> int | None:
    """Parse ``last-modified`` into a POSIX timestamp for the gzip header.

    Returns ``None`` if the header is absent, invalid, or outside the range a
    gzip mtime can store. A date without a zone (``-0000``) is taken as UTC.
    """
    value = headers.get("last-modified")
    if not value:
        return None
    try:
        modified = email.utils.parsedate_to_datetime(value)
    except (TypeError, ValueError):
        return None
    if modified.tzinfo is None:
        modified = modified.replace(tzinfo=datetime.UTC)
    timestamp = int(modified.timestamp())
    if not 0 <= timestamp <= MAX_GZIP_MTIME:
        return None
    return timestamp
