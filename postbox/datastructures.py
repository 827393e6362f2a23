from __future__ import annotations

from collections.abc import Iterable, Mapping, Sequence
from typing import Any

from postbox._internal._wire import CRLF
from postbox.conf import settings
from postbox.protocols.streams import WritableStream


class Headers(dict[str, list[str]]):
    """
    Header fields of a message or of a part, mapped to their values.

    Fields are emitted in insertion order. A field may carry any number
    of values, including none at all.

    **Example**

    ```python
    headers = Headers({"To": ["bil@example.com", "dan@example.com"], "Cc": []})
    headers.to_bytes()
    # b"To: bil@example.com; dan@example.com\\r\\nCc:\\r\\n"
    ```
    """

    def __init__(
        self,
        fields: Mapping[str, Sequence[str]] | Iterable[tuple[str, Sequence[str]]] | None = None,
    ) -> None:
        super().__init__()
        if fields is not None:
            self.update(fields)

    def __setitem__(self, name: str, values: Any) -> None:
        if isinstance(values, (str, bytes)):
            raise TypeError(f"Values of '{name}' must be a sequence of strings, not a string.")
        super().__setitem__(name, list(values))

    def update(self, *args: Any, **kwargs: Any) -> None:  # type: ignore[override]
        if len(args) > 1:
            raise TypeError(f"update expected at most 1 argument, got {len(args)}")
        if args:
            fields = args[0]
            items = fields.items() if isinstance(fields, Mapping) else fields
            for name, values in items:
                self[name] = values
        for name, values in kwargs.items():
            self[name] = values

    def setdefault(self, name: str, values: Any = ()) -> list[str]:  # type: ignore[override]
        if name not in self:
            self[name] = values
        return self[name]

    def add(self, name: str, value: str) -> None:
        """
        Appends a value to a field, creating the field when missing.
        """
        self.setdefault(name).append(value)

    def render_line(self, name: str) -> str:
        values = self[name]
        if not values:
            return f"{name}:"
        return f"{name}: {'; '.join(values)}"

    def write(self, output: WritableStream, encoding: str | None = None) -> None:
        """
        Writes every field to `output` as one CRLF terminated line.

        Values are written verbatim: no escaping, folding or line
        wrapping is performed. A failing write aborts the remaining
        fields and the error propagates.

        Args:
            output: The stream receiving the lines.
            encoding: Codec of the header text. Defaults to
                `settings.header_encoding`.
        """
        if encoding is None:
            encoding = settings.header_encoding

        for name in self:
            output.write(self.render_line(name).encode(encoding) + CRLF)

    def to_bytes(self, encoding: str = "utf-8") -> bytes:
        return b"".join(self.render_line(name).encode(encoding) + CRLF for name in self)

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}({dict(self)!r})"
