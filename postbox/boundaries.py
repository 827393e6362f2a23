from __future__ import annotations

import secrets
from collections.abc import Callable
from types import TracebackType

from postbox._internal._wire import CRLF
from postbox.datastructures import Headers
from postbox.enums import BoundaryState, MultipartSubtype
from postbox.exceptions import BoundaryStateError, RandomSourceError
from postbox.logging import logger
from postbox.protocols.streams import WritableStream

TokenBytes = Callable[[int], bytes]

# Random bytes behind every boundary token, written as 60 hex characters.
BOUNDARY_SIZE = 30


def random_boundary(token_bytes: TokenBytes | None = None) -> str:
    """
    Generates a new boundary identifier: `BOUNDARY_SIZE` random bytes in
    hexadecimal.

    Args:
        token_bytes: The random source, called with the number of bytes
            wanted. Defaults to `secrets.token_bytes`. Tests inject a
            seeded generator here.

    Raises:
        RandomSourceError: If the source fails or returns fewer bytes than
            requested. There is no fallback to a weaker source.
    """
    token_bytes = token_bytes or secrets.token_bytes
    try:
        buffer = token_bytes(BOUNDARY_SIZE)
    except Exception as e:
        raise RandomSourceError(f"The random source failed to produce a boundary: {e}") from e

    if len(buffer) != BOUNDARY_SIZE:
        raise RandomSourceError(
            f"The random source returned {len(buffer)} bytes instead of {BOUNDARY_SIZE}."
        )
    return buffer.hex()


class Boundary:
    """
    One level of multipart nesting.

    A boundary is created by `open_boundary()`, which already wrote the
    multipart `Content-Type` header. Every `mark()` starts a new body part
    and `end()` closes the level for good:

        CREATED -> MARKED (any number of times) -> ENDED

    Using the boundary after `end()` raises `BoundaryStateError` and
    writes nothing.
    """

    def __init__(self, identifier: str, output: WritableStream) -> None:
        self.identifier = identifier
        self.output = output
        self.state = BoundaryState.CREATED
        self.marks = 0

    @property
    def delimiter(self) -> bytes:
        return b"--" + self.identifier.encode("ascii")

    def mark(self) -> None:
        """
        Announces a new body part within this boundary.
        """
        self._check_not_ended("mark")
        self.output.write(self.delimiter + CRLF)
        self.state = BoundaryState.MARKED
        self.marks += 1

    def end(self) -> None:
        """
        Writes the close delimiter. The boundary cannot be used afterwards.
        """
        self._check_not_ended("end")
        self.output.write(self.delimiter + b"--" + CRLF + CRLF)
        self.state = BoundaryState.ENDED
        logger.debug(f"Boundary {self.identifier} ended after {self.marks} part(s).")

    @property
    def ended(self) -> bool:
        return self.state is BoundaryState.ENDED

    def _check_not_ended(self, operation: str) -> None:
        if self.ended:
            raise BoundaryStateError(
                f"Cannot {operation} boundary {self.identifier}: it was already ended."
            )

    def __enter__(self) -> Boundary:
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc_value: BaseException | None,
        traceback: TracebackType | None,
    ) -> None:
        if exc_type is None and not self.ended:
            self.end()

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(identifier={self.identifier!r}, state={self.state!s})"


def open_boundary(
    output: WritableStream,
    subtype: MultipartSubtype | str,
    token_bytes: TokenBytes | None = None,
) -> Boundary:
    """
    Starts a multipart section.

    Generates a fresh boundary identifier, writes
    `Content-Type: multipart/<subtype>; boundary=<identifier>` followed by a
    blank line, and returns the `Boundary` bound to `output`.

    Args:
        output: The stream receiving the section.
        subtype: `mixed`, `related`, `alternative`... A value already
            prefixed with `multipart/` is used as is.
        token_bytes: The random source, see `random_boundary()`.
    """
    if isinstance(subtype, MultipartSubtype):
        media_type = subtype.media_type
    elif subtype.startswith("multipart/"):
        media_type = subtype
    else:
        media_type = f"multipart/{subtype}"

    identifier = random_boundary(token_bytes)
    headers = Headers({"Content-Type": [media_type, f"boundary={identifier}"]})
    headers.write(output)
    output.write(CRLF)

    logger.debug(f"Opened {media_type} boundary {identifier}.")
    return Boundary(identifier, output)
