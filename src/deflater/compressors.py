"""Incremental compression engines for the supported content codings."""

from __future__ import annotations

import abc
import gzip
import io
import zlib
from typing import TYPE_CHECKING, ClassVar, Self, override

from deflater.exceptions import UnsupportedEncodingError

if TYPE_CHECKING:
    from types import TracebackType


class Compressor(abc.ABC):
    """A stateful compressor fed one chunk at a time.

    Every method returns the compressed bytes the engine is ready to release,
    which may be empty. :meth:`close` releases the engine without producing
    output and is safe to call at any point, any number of times.
    """

    encoding: ClassVar[str]

    @abc.abstractmethod
    def compress(self, data: bytes) -> bytes:
        """Feed ``data`` to the engine."""

    @abc.abstractmethod
    def flush(self) -> bytes:
        """Force out everything fed so far (a sync flush)."""

    @abc.abstractmethod
    def finish(self) -> bytes:
        """End the stream and return the remaining bytes and trailer."""

    @abc.abstractmethod
    def close(self) -> None:
        """Release the engine."""

    def __enter__(self) -> Self:
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc_value: BaseException | None,
        traceback: TracebackType | None,
    ) -> None:
        self.close()


class GzipCompressor(Compressor):
    """gzip container around a deflate stream.

    Output goes through a :class:`gzip.GzipFile` writing into an in-memory
    buffer, which is drained after every call.
    """

    encoding = "gzip"

    def __init__(self, *, level: int = 6, mtime: int | None = None) -> None:
        self._buffer = io.BytesIO()
        self._file = gzip.GzipFile(mode="wb", fileobj=self._buffer, compresslevel=level, mtime=mtime)

    def _drain(self) -> bytes:
        data = self._buffer.getvalue()
        self._buffer.seek(0)
        self._buffer.truncate()
        return data

    @override
    def compress(self, data: bytes) -> bytes:
        self._file.write(data)
        return self._drain()

    @override
    def flush(self) -> bytes:
        self._file.flush(zlib.Z_SYNC_FLUSH)
        return self._drain()

    @override
    def finish(self) -> bytes:
        self._file.close()
        return self._drain()

    @override
    def close(self) -> None:
        if not self._file.closed:
            self._file.close()
        self._buffer.close()


class DeflateCompressor(Compressor):
    """Raw deflate stream, without zlib header or checksum."""

    encoding = "deflate"

    def __init__(self, *, level: int = 6, mtime: int | None = None) -> None:  # noqa: ARG002
        self._engine: zlib._Compress | None = zlib.compressobj(level, zlib.DEFLATED, -zlib.MAX_WBITS)

    @property
    def engine(self) -> zlib._Compress:
        if self._engine is None:
            msg = "Compressor is closed"
            raise ValueError(msg)
        return self._engine

    @override
    def compress(self, data: bytes) -> bytes:
        return self.engine.compress(data)

    @override
    def flush(self) -> bytes:
        return self.engine.flush(zlib.Z_SYNC_FLUSH)

    @override
    def finish(self) -> bytes:
        data = self.engine.flush(zlib.Z_FINISH)
        self._engine = None
        return data

    @override
    def close(self) -> None:
        self._engine = None


COMPRESSORS: dict[str, type[Compressor]] = {
    GzipCompressor.encoding: GzipCompressor,
    DeflateCompressor.encoding: DeflateCompressor,
}


def create_compressor(encoding: str, *, level: int = 6, mtime: int | None = None) -> Compressor:
    """Create a fresh compressor for ``encoding``.

    Args:
        encoding: Content coding, ``gzip`` or ``deflate``.
        level: zlib compression level.
        mtime: Modification time stored in the gzip header. Defaults to now.

    Returns:
        A compressor private to one response.

    Raises:
        UnsupportedEncodingError: If no compressor exists for ``encoding``.
    """
    try:
        compressor_class = COMPRESSORS[encoding]
    except KeyError:
        raise UnsupportedEncodingError(encoding) from None
    return compressor_class(level=level, mtime=mtime)
