class PostboxError(Exception):
    """
    Base exception for all the errors raised by postbox.

    I/O errors coming from the output stream or from a part reader are
    not wrapped and reach the caller unchanged.
    """

    ...


class UnsupportedEncoding(PostboxError, ValueError):
    """
    Raised when a part declares a Content-Transfer-Encoding postbox
    does not know how to produce.

    Example:
        ```python
        Part(content_type="text/plain", encoding="uuencode", reader=source)
        ```
    """

    ...


class BoundaryStateError(PostboxError):
    """
    Raised when a boundary is used out of order, i.e. `mark()` or `end()`
    called on a boundary that was already ended.

    Nothing is written to the stream when this is raised.
    """

    ...


class RandomSourceError(PostboxError):
    """
    Raised when the random source cannot produce a boundary token.

    A message cannot be safely framed without an unpredictable boundary,
    so there is no fallback to a weaker source.
    """

    ...
