"""ASGI middleware for streaming response compression.

Works with any ASGI application, including Starlette, FastAPI and Litestar.
The ``Accept-Encoding`` negotiation, eligibility rules and compressors are the
same as those of :class:`deflater.handler.Deflater`; this front end applies
them to ``http.response.*`` messages instead of a response triple.

Follows the Starlette ``GZipMiddleware`` responder pattern: the response start
message is held back until the first body message arrives.
"""

from __future__ import annotations

import enum
import logging
from typing import TYPE_CHECKING, Any

from starlette.datastructures import MutableHeaders
from starlette.requests import Request

from deflater.compressors import create_compressor
from deflater.conditions import should_deflate
from deflater.handler import build_config, full_path, not_acceptable_message
from deflater.helpers.headers import last_modified_timestamp, merge_vary
from deflater.negotiation import SUPPORTED_ENCODINGS, negotiate
from deflater.streams import deflate_chunk

if TYPE_CHECKING:
    from starlette.types import ASGIApp, Message, Receive, Scope, Send

    from deflater.compressors import Compressor
    from deflater.config import DeflaterConfig
    from deflater.types import Predicate

logger = logging.getLogger(__name__)


class Mode(enum.Enum):
    PENDING = "pending"
    PASSTHROUGH = "passthrough"
    COMPRESS = "compress"
    REJECT = "reject"


class DeflateResponder:
    """Per-request state: the held start message and the compressor."""

    def __init__(self, app: ASGIApp, config: DeflaterConfig) -> None:
        self.app = app
        self.config = config
        self.send: Send = unattached_send
        self.request: Request | None = None
        self.initial_message: Message = {}
        self.mode = Mode.PENDING
        self.compressor: Compressor | None = None

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        self.send = send
        self.request = Request(scope, receive)
        try:
            await self.app(scope, receive, self.send_with_deflate)
        finally:
            if self.compressor is not None:
                self.compressor.close()
                self.compressor = None

    async def send_with_deflate(self, message: Message) -> None:
        match message["type"], self.mode:
            case "http.response.start", _:
                self.initial_message = message
            case "http.response.body", Mode.PENDING:
                await self.start(message)
            case "http.response.body", _:
                await self.forward_body(message)
            case _, Mode.PENDING:
                # e.g. http.response.pathsend: nothing we can compress.
                self.mode = Mode.PASSTHROUGH
                await self.send(self.initial_message)
                await self.send(message)
            case _, Mode.REJECT:
                pass
            case _:
                await self.send(message)

    async def start(self, message: Message) -> None:
        """Decide how to answer, based on the start message and the first body chunk."""
        assert self.request is not None  # noqa: S101
        status: int = self.initial_message["status"]
        headers = MutableHeaders(raw=list(self.initial_message.get("headers", [])))

        if not should_deflate(self.config, self.request, status, headers, message.get("body", b"")):
            self.mode = Mode.PASSTHROUGH
            await self.send(self.initial_message)
            await self.send(message)
            return

        encoding = negotiate(self.request.headers.get("accept-encoding"), SUPPORTED_ENCODINGS)
        merge_vary(headers)

        match encoding:
            case "gzip" | "deflate":
                logger.debug("Compressing %s %s with %s", self.request.method, self.request.url.path, encoding)
                headers["content-encoding"] = encoding
                if "content-length" in headers:
                    del headers["content-length"]
                self.compressor = create_compressor(
                    encoding,
                    level=self.config.compresslevel,
                    mtime=last_modified_timestamp(headers),
                )
                self.mode = Mode.COMPRESS
                self.initial_message["headers"] = headers.raw
                await self.send(self.initial_message)
                await self.forward_body(message)
            case "identity":
                self.mode = Mode.PASSTHROUGH
                self.initial_message["headers"] = headers.raw
                await self.send(self.initial_message)
                await self.send(message)
            case _:
                self.mode = Mode.REJECT
                await self.not_acceptable()

    async def forward_body(self, message: Message) -> None:
        match self.mode:
            case Mode.PASSTHROUGH:
                await self.send(message)
            case Mode.COMPRESS:
                await self.send_compressed(message)
            case _:
                pass

    async def send_compressed(self, message: Message) -> None:
        assert self.compressor is not None  # noqa: S101
        body: bytes = message.get("body", b"")
        more_body: bool = message.get("more_body", False)

        data = deflate_chunk(self.compressor, body, sync=self.config.sync) if body else b""
        if not more_body:
            data += self.compressor.finish()
        elif not data:
            return

        await self.send({"type": "http.response.body", "body": data, "more_body": more_body})

    async def not_acceptable(self) -> None:
        assert self.request is not None  # noqa: S101
        logger.debug("No acceptable encoding for %s %s", self.request.method, full_path(self.request))
        message = not_acceptable_message(self.request).encode()
        headers = MutableHeaders({"content-type": "text/plain", "content-length": str(len(message))})
        await self.send({"type": "http.response.start", "status": 406, "headers": headers.raw})
        await self.send({"type": "http.response.body", "body": message, "more_body": False})


async def unattached_send(message: Message) -> None:
    raise RuntimeError("send awaitable not set")  # pragma: no cover


class DeflaterMiddleware:
    """Middleware that compresses responses with gzip or deflate.

    The coding is negotiated from the request's ``Accept-Encoding`` header, with
    gzip preferred over deflate when the client weighs them equally. Bodies are
    compressed as they stream; with ``sync`` (the default) every body message is
    flushed to the client immediately.

    Example::

        app = fastapi.FastAPI()
        app.add_middleware(DeflaterMiddleware, include=["text/", "application/json"])
    """

    def __init__(  # noqa: PLR0913
        self,
        app: ASGIApp,
        *,
        include: Any = None,  # noqa: ANN401
        exclude: Predicate | None = None,
        condition: Predicate | None = None,
        sync: bool = True,
        compresslevel: int = 6,
        config: DeflaterConfig | None = None,
    ) -> None:
        """Initialize the middleware.

        Args:
            app: The ASGI application.
            include: Media type prefixes to compress. Empty or ``None`` means all.
            exclude: Predicate ``(request, status, headers, body)``; truthy skips compression.
            condition: Predicate ``(request, status, headers, body)``; falsy skips compression.
            sync: Flush compressed output after every body message.
            compresslevel: zlib compression level, 1 to 9.
            config: Prebuilt configuration, used instead of the options above.
        """
        self.app = app
        self.config = build_config(
            config,
            include=include,
            exclude=exclude,
            condition=condition,
            sync=sync,
            compresslevel=compresslevel,
        )

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        """Handle the ASGI request.

        Args:
            scope: The ASGI scope
            receive: The receive callable
            send: The send callable
        """
        if scope["type"] != "http":
            await self.app(scope, receive, send)
            return

        responder = DeflateResponder(self.app, self.config)
        await responder(scope, receive, send)
