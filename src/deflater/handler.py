"""Compress the responses of a ``(status, headers, body)`` handler."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

from starlette.datastructures import MutableHeaders

from deflater.body import BodyProxy, close_body, is_enumerable
from deflater.conditions import should_deflate
from deflater.config import DeflaterConfig
from deflater.helpers.headers import last_modified_timestamp, merge_vary, to_headers
from deflater.negotiation import SUPPORTED_ENCODINGS, negotiate
from deflater.streams import DeflateStream, DeflateStreamingBody
from deflater.types import Response

if TYPE_CHECKING:
    from starlette.requests import Request

    from deflater.types import Handler, Predicate

logger = logging.getLogger(__name__)


def full_path(request: Request) -> str:
    """Path of the request, with its query string if any."""
    if query := request.url.query:
        return f"{request.url.path}?{query}"
    return request.url.path


def not_acceptable_message(request: Request) -> str:
    """Body of the 406 response sent when no content coding is acceptable."""
    return f"An acceptable encoding for the requested resource {full_path(request)} could not be found."


def build_config(
    config: DeflaterConfig | None,
    *,
    include: Any = None,  # noqa: ANN401
    exclude: Predicate | None = None,
    condition: Predicate | None = None,
    sync: bool = True,
    compresslevel: int = 6,
) -> DeflaterConfig:
    """Use ``config`` if given, otherwise validate the keyword options into one."""
    if config is not None:
        return config
    return DeflaterConfig(
        include=include,
        exclude=exclude,
        condition=condition,
        sync=sync,
        compresslevel=compresslevel,
    )


class Deflater:
    """Wrap a handler so its responses are compressed when the client allows it.

    The wrapped handler is called exactly once per request. Responses that are
    not eligible are returned unchanged; eligible ones get a ``Vary`` header and
    are either compressed, passed through (``identity``), or replaced by a
    ``406 Not Acceptable`` response when the client refuses every coding.

    Example::

        def app(request):
            return 200, {"content-type": "text/plain"}, [b"Hello", b"World"]

        app = Deflater(app, include=["text/"])
    """

    def __init__(  # noqa: PLR0913
        self,
        app: Handler,
        *,
        include: Any = None,  # noqa: ANN401
        exclude: Predicate | None = None,
        condition: Predicate | None = None,
        sync: bool = True,
        compresslevel: int = 6,
        config: DeflaterConfig | None = None,
    ) -> None:
        self.app = app
        self.config = build_config(
            config,
            include=include,
            exclude=exclude,
            condition=condition,
            sync=sync,
            compresslevel=compresslevel,
        )

    def __call__(self, request: Request) -> Response:
        status, raw_headers, body = self.app(request)
        headers = to_headers(raw_headers)

        if not should_deflate(self.config, request, status, headers, body):
            return Response(status, headers, body)

        encoding = negotiate(request.headers.get("accept-encoding"), SUPPORTED_ENCODINGS)
        merge_vary(headers)

        match encoding:
            case "gzip" | "deflate":
                logger.debug("Compressing %s %s with %s", request.method, request.url.path, encoding)
                headers["content-encoding"] = encoding
                if "content-length" in headers:
                    del headers["content-length"]
                return Response(status, headers, self.wrap_body(body, encoding, headers))
            case "identity":
                return Response(status, headers, body)
            case _:
                return self.not_acceptable(request, body)

    def wrap_body(
        self,
        body: Any,  # noqa: ANN401
        encoding: str,
        headers: MutableHeaders,
    ) -> DeflateStream | DeflateStreamingBody:
        """Wrap ``body`` in the compressing body of the same capability."""
        options = {
            "sync": self.config.sync,
            "mtime": last_modified_timestamp(headers),
            "level": self.config.compresslevel,
        }
        if is_enumerable(body):
            return DeflateStream(body, encoding, **options)
        if callable(body):
            return DeflateStreamingBody(body, encoding, **options)
        msg = f"Response body must be iterable or callable, got {type(body).__name__}"
        raise TypeError(msg)

    def not_acceptable(self, request: Request, body: Any) -> Response:  # noqa: ANN401
        """Replace the response with a 406 that still closes the original body."""
        message = not_acceptable_message(request).encode()
        logger.debug("No acceptable encoding for %s %s", request.method, full_path(request))
        headers = MutableHeaders({"content-type": "text/plain", "content-length": str(len(message))})
        return Response(406, headers, BodyProxy([message], lambda: close_body(body)))
