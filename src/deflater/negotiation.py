"""Content-coding negotiation for the ``Accept-Encoding`` request header."""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import Sequence

#: Server preference order. ``identity`` is the uncompressed fallback.
SUPPORTED_ENCODINGS = ("gzip", "deflate", "identity")


def _parse_quality(params: str) -> float:
    """Return the ``q`` weight of a parameter list, 0.0 when malformed."""
    for param in params.split(";"):
        name, sep, value = param.partition("=")
        if name.strip().lower() != "q":
            continue
        if not sep:
            return 0.0
        try:
            quality = float(value.strip())
        except ValueError:
            return 0.0
        if not 0.0 <= quality <= 1.0:  # also rejects nan
            return 0.0
        return quality

    return 1.0


def parse_accept_encoding(header_value: str | None) -> list[tuple[str, float]]:
    """Parse an ``Accept-Encoding`` header value.

    Args:
        header_value: Raw header value, or ``None`` when the header is absent.

    Returns:
        ``(coding, quality)`` pairs in header order. Codings are lowercased, a
        missing weight is 1.0 and an unparseable one is 0.0.

    Examples:
        >>> parse_accept_encoding("gzip;q=0.5, br")
        [('gzip', 0.5), ('br', 1.0)]
        >>> parse_accept_encoding("gzip;q=high")
        [('gzip', 0.0)]
    """
    if not header_value:
        return []

    result: list[tuple[str, float]] = []
    for item in header_value.split(","):
        coding, _, params = item.partition(";")
        coding = coding.strip().lower()
        if not coding:
            continue
        result.append((coding, _parse_quality(params) if params else 1.0))

    return result


def select_best_encoding(available: Sequence[str], accept_encoding: Sequence[tuple[str, float]]) -> str | None:
    """Pick the best content coding the client accepts.

    Candidates are ranked by descending weight; ties are broken by the order of
    ``available`` (the server's preference), never by header order. A ``*``
    entry stands for every available coding the client did not name. Any
    coding with a weight of 0, including ``identity`` and ``*``, is not
    acceptable. ``identity`` is acceptable unless excluded that way.

    Args:
        available: Codings the server can produce, most preferred first.
        accept_encoding: Parsed header, see :func:`parse_accept_encoding`.

    Returns:
        The selected coding, or ``None`` when nothing acceptable is available.
    """
    named = {coding for coding, _ in accept_encoding}
    expanded: list[tuple[str, float, int]] = []
    for coding, quality in accept_encoding:
        if coding == "*":
            expanded.extend(
                (other, quality, available.index(other)) for other in available if other not in named
            )
        else:
            preference = available.index(coding) if coding in available else len(available)
            expanded.append((coding, quality, preference))

    ranked = [coding for coding, _, _ in sorted(expanded, key=lambda entry: (-entry[1], entry[2]))]
    if "identity" not in ranked:
        ranked.append("identity")

    refused = {coding for coding, quality, _ in expanded if quality == 0.0}
    for coding in ranked:
        if coding not in refused and coding in available:
            return coding

    return None


def negotiate(header_value: str | None, available: Sequence[str] = SUPPORTED_ENCODINGS) -> str | None:
    """Parse ``header_value`` and select the best of ``available``."""
    return select_best_encoding(available, parse_accept_encoding(header_value))
