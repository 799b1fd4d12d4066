"""Shared fixtures."""

from __future__ import annotations

from typing import TYPE_CHECKING

import pytest
from starlette.requests import Request

if TYPE_CHECKING:
    from collections.abc import Callable, Mapping

type RequestFactory = Callable[..., Request]


@pytest.fixture
def make_request() -> RequestFactory:
    """Build a request context from a path, query string and headers."""

    def _make_request(
        path: str = "/",
        *,
        method: str = "GET",
        query_string: bytes = b"",
        headers: Mapping[str, str] | None = None,
    ) -> Request:
        raw_headers = [
            (name.lower().encode("latin-1"), value.encode("latin-1")) for name, value in (headers or {}).items()
        ]
        return Request({
            "type": "http",
            "method": method,
            "path": path,
            "query_string": query_string,
            "headers": raw_headers,
        })

    return _make_request
