"""Test Accept-Encoding negotiation."""

from __future__ import annotations

import pytest

from deflater.negotiation import SUPPORTED_ENCODINGS, negotiate, parse_accept_encoding, select_best_encoding


@pytest.mark.parametrize(
    ("header_value", "expected"),
    [
        pytest.param(None, [], id="absent"),
        pytest.param("", [], id="empty"),
        pytest.param("gzip", [("gzip", 1.0)], id="single"),
        pytest.param("GZip , Deflate", [("gzip", 1.0), ("deflate", 1.0)], id="case-and-spaces"),
        pytest.param("gzip;q=0.5, br;q=0", [("gzip", 0.5), ("br", 0.0)], id="weights"),
        pytest.param("gzip; Q=0.3", [("gzip", 0.3)], id="uppercase-q"),
        pytest.param("gzip;level=1;q=0.2", [("gzip", 0.2)], id="other-params"),
        pytest.param("gzip;level=1", [("gzip", 1.0)], id="no-q-param"),
        pytest.param("gzip;q=abc", [("gzip", 0.0)], id="malformed-weight"),
        pytest.param("gzip;q", [("gzip", 0.0)], id="missing-weight"),
        pytest.param("gzip;q=1.5", [("gzip", 0.0)], id="weight-above-one"),
        pytest.param("gzip;q=-1", [("gzip", 0.0)], id="negative-weight"),
        pytest.param("gzip;q=nan", [("gzip", 0.0)], id="nan-weight"),
        pytest.param(",, gzip ,;q=1", [("gzip", 1.0)], id="empty-items"),
    ],
)
def test_parse_accept_encoding(header_value: str | None, expected: list[tuple[str, float]]) -> None:
    """Test parsing never raises and applies the default weights."""
    assert parse_accept_encoding(header_value) == expected


@pytest.mark.parametrize(
    ("header_value", "expected"),
    [
        pytest.param(None, "identity", id="absent"),
        pytest.param("gzip", "gzip", id="gzip"),
        pytest.param("deflate", "deflate", id="deflate"),
        pytest.param("deflate, gzip", "gzip", id="tie-uses-server-order"),
        pytest.param("gzip, deflate", "gzip", id="tie-header-order-ignored"),
        pytest.param("gzip;q=0.5, deflate", "deflate", id="weight-wins"),
        pytest.param("gzip;q=0.5, deflate;q=0.9", "deflate", id="both-weighted"),
        pytest.param("superzip", "identity", id="unsupported"),
        pytest.param("br, zstd", "identity", id="only-unsupported"),
        pytest.param("*", "gzip", id="wildcard"),
        pytest.param("gzip;q=0, *", "deflate", id="wildcard-skips-named"),
        pytest.param("*;q=0", None, id="wildcard-refused"),
        pytest.param("*;q=0, identity", "identity", id="wildcard-refused-identity-allowed"),
        pytest.param("identity;q=0", None, id="identity-refused"),
        pytest.param("gzip;q=0", "identity", id="gzip-refused"),
        pytest.param("gzip;q=0, identity;q=0", None, id="nothing-acceptable"),
        pytest.param("identity;q=0, deflate;q=0.1", "deflate", id="identity-refused-deflate-ok"),
        pytest.param("gzip;q=0, gzip", "identity", id="zero-weight-wins-over-duplicate"),
        pytest.param("identity, gzip;q=0.5", "identity", id="identity-preferred"),
        pytest.param("gzip;q=abc", "identity", id="malformed-weight-refuses"),
    ],
)
def test_negotiate(header_value: str | None, expected: str | None) -> None:
    """Test selection of the best supported coding."""
    assert negotiate(header_value) == expected


def test_select_best_encoding_custom_server_order() -> None:
    """Test ties follow the order of the available codings."""
    accept = parse_accept_encoding("gzip, deflate")
    assert select_best_encoding(("deflate", "gzip", "identity"), accept) == "deflate"
    assert select_best_encoding(SUPPORTED_ENCODINGS, accept) == "gzip"


def test_select_best_encoding_without_identity() -> None:
    """Test identity is only a fallback when the server offers it."""
    assert select_best_encoding(("gzip",), parse_accept_encoding("br")) is None
    assert select_best_encoding(("gzip",), parse_accept_encoding("br, *")) == "gzip"
