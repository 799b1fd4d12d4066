"""Types shared across the deflater package."""

from __future__ import annotations

from collections.abc import Callable, Iterable, Mapping, Sequence
from typing import TYPE_CHECKING, Any, NamedTuple, Protocol

if TYPE_CHECKING:
    from starlette.datastructures import MutableHeaders
    from starlette.requests import Request


class Writable(Protocol):
    """Sink handed to streaming bodies."""

    def write(self, data: bytes, /) -> object: ...

    def close(self) -> None: ...


type StreamingBody = Callable[[Writable], object]
type Body = Iterable[bytes] | StreamingBody
type RawHeaders = Mapping[str, str | Sequence[str]]

type Predicate = Callable[[Request, int, MutableHeaders, Any], object]


class Response(NamedTuple):
    """A ``(status, headers, body)`` response triple."""

    status: int
    headers: MutableHeaders
    body: Body


type Handler = Callable[[Request], tuple[int, RawHeaders | MutableHeaders, Body]]
