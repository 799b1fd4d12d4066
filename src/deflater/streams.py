"""Body wrappers that compress a response while it is being sent."""

from __future__ import annotations

import io
import logging
from typing import TYPE_CHECKING

from deflater.body import close_body
from deflater.compressors import create_compressor
from deflater.exceptions import BodyConsumedError

if TYPE_CHECKING:
    from collections.abc import Generator, Iterable, Iterator

    from deflater.compressors import Compressor
    from deflater.types import StreamingBody, Writable

logger = logging.getLogger(__name__)

#: Read size for file bodies, which would otherwise be iterated line by line.
BUFFER_LENGTH = 128 * 1024


def iter_chunks(body: Iterable[bytes]) -> Iterator[bytes]:
    """Iterate over the chunks of an enumerable body."""
    if isinstance(body, (io.RawIOBase, io.BufferedIOBase)):
        return iter(lambda: body.read(BUFFER_LENGTH), b"")
    return iter(body)


def deflate_chunk(compressor: Compressor, chunk: bytes, *, sync: bool) -> bytes:
    """Compress one chunk, sync flushing the engine when ``sync`` is set."""
    data = compressor.compress(chunk)
    if sync:
        data += compressor.flush()
    return data


class _DeflatingBody:
    """Compressor ownership and close propagation shared by both wrappers."""

    def __init__(
        self,
        body: object,
        encoding: str,
        *,
        sync: bool = True,
        mtime: int | None = None,
        level: int = 6,
    ) -> None:
        if isinstance(body, (str, bytes, bytearray, memoryview)):
            msg = f"Response body must yield bytes chunks, not be {type(body).__name__}"
            raise TypeError(msg)
        self.body = body
        self.encoding = encoding
        self.sync = sync
        self.mtime = mtime
        self.level = level
        self.consumed = False
        self.closed = False
        self._compressor: Compressor | None = None

    def _open_compressor(self) -> Compressor:
        if self.consumed or self.closed:
            raise BodyConsumedError
        self.consumed = True
        self._compressor = create_compressor(self.encoding, level=self.level, mtime=self.mtime)
        return self._compressor

    def _release_compressor(self) -> None:
        if self._compressor is not None:
            self._compressor.close()
            self._compressor = None

    def close(self) -> None:
        """Release the compressor and close the original body, once."""
        if self.closed:
            return
        self.closed = True
        try:
            self._release_compressor()
        finally:
            close_body(self.body)


class DeflateStream(_DeflatingBody):
    """Enumerable body yielding the compressed chunks of another enumerable body.

    With ``sync`` every non-empty source chunk produces a chunk of output, so a
    slow or long-lived response reaches the client as it is generated. Without
    it the compressor buffers freely and output arrives in fewer, larger
    chunks. The original body is only closed by :meth:`close`.
    """

    body: Iterable[bytes]

    def __init__(
        self,
        body: Iterable[bytes],
        encoding: str,
        *,
        sync: bool = True,
        mtime: int | None = None,
        level: int = 6,
    ) -> None:
        super().__init__(body, encoding, sync=sync, mtime=mtime, level=level)
        self._iterator: Generator[bytes] | None = None
        self.finished = False

    def __iter__(self) -> Iterator[bytes]:
        self._iterator = self._generate(self._open_compressor())
        return self._iterator

    def _generate(self, compressor: Compressor) -> Generator[bytes]:
        try:
            for chunk in iter_chunks(self.body):
                if not chunk:
                    continue
                if data := deflate_chunk(compressor, chunk, sync=self.sync):
                    yield data
            self.finished = True
            if data := compressor.finish():
                yield data
        finally:
            self._release_compressor()

    def close(self) -> None:
        # Closing a suspended generator runs its cleanup without producing output.
        if self._iterator is not None and not self.closed:
            if not self.finished:
                logger.debug("%s response body closed before it was fully sent", self.encoding)
            self._iterator.close()
        super().close()


class DeflatingWriter:
    """Sink given to a streaming body; compresses into the real stream."""

    def __init__(self, stream: Writable, compressor: Compressor, *, sync: bool = True) -> None:
        self.stream = stream
        self.compressor = compressor
        self.sync = sync
        self.closed = False

    def write(self, data: bytes) -> int:
        if self.closed:
            msg = "write to closed stream"
            raise ValueError(msg)
        if data and (compressed := deflate_chunk(self.compressor, data, sync=self.sync)):
            self.stream.write(compressed)
        return len(data)

    def flush(self) -> None:
        if not self.closed and (data := self.compressor.flush()):
            self.stream.write(data)

    def close(self) -> None:
        """Write the trailer and close the underlying stream."""
        if self.closed:
            return
        self.closed = True
        try:
            if data := self.compressor.finish():
                self.stream.write(data)
        finally:
            self.stream.close()


class DeflateStreamingBody(_DeflatingBody):
    """Streaming body that compresses what another streaming body writes.

    The original body is called with a :class:`DeflatingWriter`. When it
    returns, or closes the writer itself, the trailer is written and the real
    stream is closed.
    """

    body: StreamingBody

    def __call__(self, stream: Writable) -> None:
        writer = DeflatingWriter(stream, self._open_compressor(), sync=self.sync)
        try:
            self.body(writer)
            writer.close()
        finally:
            self._release_compressor()
