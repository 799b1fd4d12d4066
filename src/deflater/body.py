"""Response body lifecycle helpers."""

from __future__ import annotations

from collections.abc import Iterable
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import Callable, Iterator

    from deflater.types import Body, Writable


def close_body(body: object) -> None:
    """Close ``body`` if it supports closing."""
    close = getattr(body, "close", None)
    if callable(close):
        close()


def is_enumerable(body: object) -> bool:
    """Enumerable bodies take precedence over streaming ones."""
    return isinstance(body, Iterable)


class BodyProxy:
    """Wrap a body and run ``callback`` after it has been closed.

    Iteration and streaming calls go straight to the wrapped body. ``close``
    closes the wrapped body and then runs the callback, each exactly once no
    matter how often it is called.
    """

    def __init__(self, body: Body, callback: Callable[[], object]) -> None:
        self.body = body
        self.callback = callback
        self.closed = False

    def __iter__(self) -> Iterator[bytes]:
        return iter(self.body)  # type: ignore[arg-type]

    def __call__(self, stream: Writable) -> object:
        return self.body(stream)  # type: ignore[operator]

    def close(self) -> None:
        if self.closed:
            return
        self.closed = True
        try:
            close_body(self.body)
        finally:
            self.callback()
