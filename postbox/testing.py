from __future__ import annotations

from collections.abc import Callable
from functools import wraps
from typing import Any

from postbox.conf import _monkay


class override_settings:
    """
    Replaces some settings while a block or a test function runs.

    The replacement is an instance of the active settings class built from
    its current values and the given overrides. Unknown names raise
    `TypeError` when the block is entered.

    ```python
    with override_settings(base64_line_length=0):
        render(envelope)


    @override_settings(chunk_size=1)
    def test_byte_by_byte(): ...
    ```
    """

    def __init__(self, **overrides: Any) -> None:
        self.overrides = overrides
        self._context: Any = None

    def __enter__(self) -> None:
        current = _monkay.settings
        replacement = current.__class__(**{**current.dict(), **self.overrides})
        self._context = _monkay.with_settings(replacement)
        self._context.__enter__()

    def __exit__(self, exc_type: Any, exc_value: Any, traceback: Any) -> None:
        self._context.__exit__(exc_type, exc_value, traceback)
        self._context = None

    def __call__(self, func: Callable[..., Any]) -> Callable[..., Any]:
        @wraps(func)
        def wrapper(*args: Any, **kwargs: Any) -> Any:
            with self:
                return func(*args, **kwargs)

        return wrapper
