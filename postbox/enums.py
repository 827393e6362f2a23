from __future__ import annotations

from enum import Enum


class StrEnum(str, Enum):
    def __str__(self) -> str:
        return self.value  # type: ignore

    def __repr__(self) -> str:
        return str(self)


class Encoding(StrEnum):
    """
    Content-Transfer-Encoding applied to the body of a part.

    The value is the canonical MIME token written to the wire.
    """

    QUOTED_PRINTABLE = "quoted-printable"
    BASE64 = "base64"
    # The body is passed through untouched.
    UNENCODED = "8bit"


class MultipartSubtype(StrEnum):
    MIXED = "mixed"
    RELATED = "related"
    ALTERNATIVE = "alternative"

    @property
    def media_type(self) -> str:
        return f"multipart/{self.value}"


class BoundaryState(StrEnum):
    CREATED = "created"
    MARKED = "marked"
    ENDED = "ended"
