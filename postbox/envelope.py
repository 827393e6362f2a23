from __future__ import annotations

import io
from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import datetime
from email.utils import format_datetime

from postbox._internal._wire import CRLF
from postbox.boundaries import TokenBytes, open_boundary
from postbox.conf import settings
from postbox.datastructures import Headers
from postbox.encoders import encode, to_encoding
from postbox.enums import Encoding, MultipartSubtype
from postbox.logging import logger
from postbox.protocols.streams import ReadableStream, WritableStream

MIME_VERSION = "1.0"


@dataclass
class Part:
    """
    A content part of the message, e.g. the plain text or the HTML
    rendering of the body.

    The `reader` is consumed once, sequentially, while the envelope is
    written. It must not be shared with anything else during that time.
    """

    content_type: str
    encoding: Encoding
    reader: ReadableStream

    def __post_init__(self) -> None:
        self.encoding = to_encoding(self.encoding)

    def write(self, output: WritableStream, charset: str) -> int:
        return encode(output, self.encoding, charset, self.content_type, self.reader)


@dataclass
class File:
    """
    A file meant to be embedded (RFC 2387) or attached (RFC 1341, 7.2).

    Files are held by the envelope but not placed in the multipart tree
    yet. `write()` defines how one is framed: its headers, a blank line,
    whatever `copy` writes and a trailing blank line.
    """

    name: str
    headers: Headers = field(default_factory=Headers)
    copy: Callable[[WritableStream], None] | None = None

    def __post_init__(self) -> None:
        if not isinstance(self.headers, Headers):
            self.headers = Headers(self.headers)

    def write(self, output: WritableStream, encoding: str | None = None) -> None:
        self.headers.write(output, encoding)
        output.write(CRLF)
        if self.copy is not None:
            self.copy(output)
        output.write(CRLF)


@dataclass
class Envelope:
    """
    Everything needed to render an RFC 2822 message.

    Standards:
        - RFC 2822 - Internet Message Format
        - RFC 2387 - The MIME Multipart/Related Content-type
        - RFC 1341 - MIME (Multipurpose Internet Mail Extensions)
        - RFC 4021 - Registration of Mail and MIME Header Fields

    An envelope is written once, by a single `write()` call, and is not
    modified by it.
    """

    date: datetime | None = None  # RFC 4021 2.1.1
    from_address: str = ""  # RFC 4021 2.1.2
    sender: str = ""  # RFC 4021 2.1.3
    reply_to: str = ""  # RFC 4021 2.1.4
    to: list[str] = field(default_factory=list)  # RFC 4021 2.1.5
    cc: list[str] = field(default_factory=list)  # RFC 4021 2.1.6
    subject: str = ""  # RFC 4021 2.1.11
    charset: str = ""
    parts: list[Part] = field(default_factory=list)  # RFC 1341 7.2
    embedded: list[File] = field(default_factory=list)  # RFC 2387
    attachments: list[File] = field(default_factory=list)  # RFC 1341 7.2

    def write(self, output: WritableStream, token_bytes: TokenBytes | None = None) -> None:
        """
        Writes the message to `output` and closes it.
        """
        EnvelopeWriter(self, token_bytes=token_bytes).write(output)


def format_date(date: datetime | None) -> str:
    """
    RFC 1123 date with a numeric zone, e.g. `Tue, 10 Nov 2009 23:00:00 +0100`.

    A missing date is replaced by the current time and a naive one is
    taken as local time.
    """
    if date is None:
        date = datetime.now()
    if date.tzinfo is None or date.utcoffset() is None:
        date = date.astimezone()
    return format_datetime(date)


class EnvelopeWriter:
    """
    Serializes an `Envelope` into a stream.

    The layout is always the same, whatever the number of parts:

        headers
        multipart/mixed
          multipart/related
            multipart/alternative
              part 1 ... part N

    The boundaries are closed in the reverse order they were opened and
    the output is closed as the very last step.
    """

    def __init__(self, envelope: Envelope, token_bytes: TokenBytes | None = None) -> None:
        self.envelope = envelope
        self.token_bytes = token_bytes

    @property
    def charset(self) -> str:
        if self.envelope.charset:
            return self.envelope.charset
        return settings.default_charset

    def build_headers(self) -> Headers:
        envelope = self.envelope
        return Headers(
            [
                ("Date", [format_date(envelope.date)]),
                ("From", [envelope.from_address]),
                ("To", envelope.to),
                ("Cc", envelope.cc),
                ("Reply-To", [envelope.reply_to]),
                ("Subject", [envelope.subject]),
                ("Mime-Version", [MIME_VERSION]),
            ]
        )

    def write(self, output: WritableStream) -> None:
        """
        Writes the whole message and closes `output`.

        Errors raised by the output, a part reader or the random source
        abort the write and propagate. The output is closed in every case;
        when the write already failed, a failure to close is only logged
        so that the original error reaches the caller.
        """
        try:
            self.write_message(output)
        except Exception:
            self._close_after_failure(output)
            raise
        output.close()

    def write_message(self, output: WritableStream) -> None:
        envelope = self.envelope
        self.build_headers().write(output)

        mixed = open_boundary(output, MultipartSubtype.MIXED, self.token_bytes)
        mixed.mark()

        related = open_boundary(output, MultipartSubtype.RELATED, self.token_bytes)
        related.mark()

        alternative = open_boundary(output, MultipartSubtype.ALTERNATIVE, self.token_bytes)

        charset = self.charset
        for part in envelope.parts:
            alternative.mark()
            part.write(output, charset)

        alternative.end()
        related.end()
        mixed.end()

        skipped = len(envelope.embedded) + len(envelope.attachments)
        if skipped:
            logger.warning(
                f"{skipped} embedded or attached file(s) were not written, "
                "files are not placed in the message yet."
            )
        logger.debug(f"Wrote envelope {envelope.subject!r} with {len(envelope.parts)} part(s).")

    def _close_after_failure(self, output: WritableStream) -> None:
        try:
            output.close()
        except Exception as e:
            logger.warning(f"Failed to close the output after an aborted write: {e}")


def write_envelope(
    envelope: Envelope, output: WritableStream, token_bytes: TokenBytes | None = None
) -> None:
    """
    Writes `envelope` to `output` and closes `output`.
    """
    EnvelopeWriter(envelope, token_bytes=token_bytes).write(output)


class _BufferStream:
    def __init__(self) -> None:
        self.buffer = io.BytesIO()
        self.closed = False

    def write(self, data: bytes) -> int:
        return self.buffer.write(data)

    def close(self) -> None:
        self.closed = True


def render(envelope: Envelope, token_bytes: TokenBytes | None = None) -> bytes:
    """
    Returns the serialized `envelope` as bytes.

    **Example**

    ```python
    from io import BytesIO

    from postbox import Envelope, Part, render

    body = Part("text/plain", "8bit", BytesIO(b"hello"))
    message = render(Envelope(from_address="john@example.com", parts=[body]))
    ```
    """
    stream = _BufferStream()
    write_envelope(envelope, stream, token_bytes=token_bytes)
    return stream.buffer.getvalue()


def build_part(
    content_type: str,
    body: bytes | str,
    encoding: Encoding | str = Encoding.QUOTED_PRINTABLE,
    charset: str = "utf-8",
) -> Part:
    """
    Builds a `Part` from an in-memory body. Text is encoded with `charset`.
    """
    if isinstance(body, str):
        body = body.encode(charset)
    return Part(content_type=content_type, encoding=encoding, reader=io.BytesIO(body))
