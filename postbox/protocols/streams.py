from __future__ import annotations

from typing import Protocol, runtime_checkable


@runtime_checkable
class WritableStream(Protocol):
    """
    Destination of a serialized envelope.

    Anything with blocking `write(bytes)` and `close()` methods qualifies:
    binary files, sockets wrapped with `makefile("wb")`, pipes, buffers.
    """

    def write(self, data: bytes, /) -> object: ...

    def close(self) -> object: ...


@runtime_checkable
class ReadableStream(Protocol):
    """
    Source of the body of a part.

    `read(size)` must return at most `size` bytes and `b""` once the
    source is exhausted.
    """

    def read(self, size: int = -1, /) -> bytes: ...
