from __future__ import annotations

import binascii
from abc import ABC, abstractmethod
from typing import Any, ClassVar

from postbox._internal._wire import CR, CRLF, LF
from postbox.conf import settings
from postbox.datastructures import Headers
from postbox.enums import Encoding
from postbox.exceptions import UnsupportedEncoding
from postbox.logging import logger
from postbox.protocols.streams import ReadableStream, WritableStream

# RFC 2045, section 6.7 (5) and 6.8
MAX_LINE_LENGTH = 76

_SPACE = ord(" ")
_TAB = ord("\t")
_CR = ord(CR)
_LF = ord(LF)
_LITERALS = frozenset(range(33, 127)) - {ord("=")}


def to_encoding(value: Any) -> Encoding:
    """
    Returns the `Encoding` matching `value`, either an `Encoding` or its
    MIME token.

    Raises:
        UnsupportedEncoding: If the token is unknown.
    """
    if isinstance(value, Encoding):
        return value
    try:
        return Encoding(str(value).lower())
    except ValueError:
        tokens = ", ".join(repr(member.value) for member in Encoding)
        raise UnsupportedEncoding(
            f"'{value}' is not a supported encoding. Available encodings: {tokens}."
        ) from None


class TransferEncoder(ABC):
    """
    Streaming Content-Transfer-Encoding of a single body.

    An encoder accepts the body in chunks of any size through `write()`
    and must be closed once the body is exhausted so that whatever it
    still holds is flushed to the output. It is owned by one part and
    discarded after `close()`.
    """

    encoding: ClassVar[Encoding]

    def __init__(self, output: WritableStream) -> None:
        self.output = output
        self.closed = False

    @abstractmethod
    def write(self, data: bytes) -> None:
        raise NotImplementedError("`write()` must be implemented in subclasses.")

    def close(self) -> None:
        self.closed = True

    def _check_open(self) -> None:
        if self.closed:
            raise ValueError(f"{self.__class__.__name__} is already closed.")


class PassthroughEncoder(TransferEncoder):
    encoding = Encoding.UNENCODED

    def write(self, data: bytes) -> None:
        self._check_open()
        if data:
            self.output.write(data)


class Base64Encoder(TransferEncoder):
    """
    Base64 with the standard alphabet.

    Input is only encoded by whole groups of three bytes, the remaining
    one or two bytes are carried over to the next `write()`. `close()`
    encodes the carry with the `=` padding. Output lines are wrapped
    every `line_length` characters, `0` disables the wrapping.
    """

    encoding = Encoding.BASE64

    def __init__(self, output: WritableStream, line_length: int = MAX_LINE_LENGTH) -> None:
        super().__init__(output)
        self.line_length = line_length
        self._carry = b""
        self._column = 0

    def write(self, data: bytes) -> None:
        self._check_open()
        data = self._carry + data
        whole = len(data) - len(data) % 3
        self._carry = data[whole:]
        if whole:
            self._emit(binascii.b2a_base64(data[:whole], newline=False))

    def close(self) -> None:
        if self.closed:
            return
        if self._carry:
            self._emit(binascii.b2a_base64(self._carry, newline=False))
            self._carry = b""
        super().close()

    def _emit(self, encoded: bytes) -> None:
        if not self.line_length:
            self.output.write(encoded)
            return

        pieces: list[bytes] = []
        position = 0
        while position < len(encoded):
            # The break is only written once more output follows.
            if self._column == self.line_length:
                pieces.append(CRLF)
                self._column = 0
            size = min(self.line_length - self._column, len(encoded) - position)
            pieces.append(encoded[position : position + size])
            position += size
            self._column += size
        self.output.write(b"".join(pieces))


class QuotedPrintableEncoder(TransferEncoder):
    """
    Quoted-printable as defined by RFC 2045, section 6.7.

    Line breaks of the source, CRLF or a bare LF, are written as CRLF hard
    breaks. Longer lines are split with `=` soft breaks so that no encoded
    line exceeds 76 characters. Spaces and tabs are only escaped at the end
    of a line, which is why they (and a CR) are held back until the next
    byte is known.
    """

    encoding = Encoding.QUOTED_PRINTABLE

    def __init__(self, output: WritableStream, line_length: int = MAX_LINE_LENGTH) -> None:
        super().__init__(output)
        self.line_length = line_length
        self._column = 0
        self._held = bytearray()

    def write(self, data: bytes) -> None:
        self._check_open()
        buffer = bytearray()
        for byte in data:
            if byte == _LF:
                self._release(buffer, line_end=True, hard_break=True)
                buffer += CRLF
                self._column = 0
            elif byte == _CR:
                if self._held.endswith(CR):
                    self._release(buffer)
                self._held.append(byte)
            elif byte in (_SPACE, _TAB):
                self._release(buffer)
                self._held.append(byte)
            else:
                self._release(buffer)
                self._put(buffer, byte)
        if buffer:
            self.output.write(bytes(buffer))

    def close(self) -> None:
        if self.closed:
            return
        buffer = bytearray()
        self._release(buffer, line_end=True)
        if buffer:
            self.output.write(bytes(buffer))
        super().close()

    def _release(
        self, buffer: bytearray, line_end: bool = False, hard_break: bool = False
    ) -> None:
        for byte in self._held:
            if byte == _CR:
                if not hard_break:
                    self._put(buffer, byte)
            elif line_end:
                self._put(buffer, byte)
            else:
                self._put_token(buffer, bytes((byte,)))
        self._held.clear()

    def _put(self, buffer: bytearray, byte: int) -> None:
        if byte in _LITERALS:
            self._put_token(buffer, bytes((byte,)))
        else:
            self._put_token(buffer, b"=%02X" % byte)

    def _put_token(self, buffer: bytearray, token: bytes) -> None:
        # Room is kept for the "=" of a soft break.
        if self._column + len(token) > self.line_length - 1:
            buffer += b"=" + CRLF
            self._column = 0
        buffer += token
        self._column += len(token)


TRANSFER_ENCODERS: dict[Encoding, type[TransferEncoder]] = {
    Encoding.QUOTED_PRINTABLE: QuotedPrintableEncoder,
    Encoding.BASE64: Base64Encoder,
    Encoding.UNENCODED: PassthroughEncoder,
}


def get_transfer_encoder(encoding: Encoding | str, output: WritableStream) -> TransferEncoder:
    """
    Builds the streaming encoder of `encoding` writing into `output`.
    """
    encoding = to_encoding(encoding)
    encoder_class = TRANSFER_ENCODERS[encoding]
    if encoder_class is Base64Encoder:
        return Base64Encoder(output, line_length=settings.base64_line_length)
    return encoder_class(output)


def encode(
    output: WritableStream,
    encoding: Encoding | str,
    charset: str,
    content_type: str,
    source: ReadableStream,
    chunk_size: int | None = None,
) -> int:
    """
    Writes one content part: its headers, a blank line, the body read from
    `source` and transformed according to `encoding`, and a trailing blank
    line.

    The source is read sequentially, once, until it returns no data. Any
    failure reading `source` or writing `output` aborts the part and
    propagates.

    Args:
        output: The stream receiving the part.
        encoding: The Content-Transfer-Encoding of the body.
        charset: Charset label written in the `Content-Type`.
        content_type: Media type of the body, e.g. `text/plain`.
        source: The body.
        chunk_size: Bytes requested per read. Defaults to `settings.chunk_size`.

    Returns:
        The number of bytes read from `source`.

    Raises:
        UnsupportedEncoding: If `encoding` is unknown.
        ValueError: If `chunk_size` is lower than 1.
    """
    if chunk_size is None:
        chunk_size = settings.chunk_size
    if chunk_size < 1:
        raise ValueError(f"chunk_size must be at least 1, got {chunk_size}.")

    encoder = get_transfer_encoder(encoding, output)
    headers = Headers(
        {
            "Content-Type": [content_type, f"charset={charset}"],
            "Content-Transfer-Encoding": [encoder.encoding.value],
        }
    )
    headers.write(output)
    output.write(CRLF)

    consumed = 0
    while True:
        chunk = source.read(chunk_size)
        if not chunk:
            break
        consumed += len(chunk)
        encoder.write(chunk)
    encoder.close()

    output.write(CRLF)
    logger.debug(f"Encoded {consumed} bytes of {content_type} as {encoder.encoding}.")
    return consumed
