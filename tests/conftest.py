from __future__ import annotations

import random
from collections.abc import Callable

import pytest

from postbox import logging as postbox_logging


class RecordingStream:
    """
    In-memory destination recording every write and every close.
    """

    def __init__(self, fail_on_write: int | None = None, fail_on_close: bool = False) -> None:
        self.chunks: list[bytes] = []
        self.close_calls = 0
        self.fail_on_write = fail_on_write
        self.fail_on_close = fail_on_close

    def write(self, data: bytes) -> int:
        if self.fail_on_write is not None and len(self.chunks) >= self.fail_on_write:
            raise OSError("broken pipe")
        self.chunks.append(bytes(data))
        return len(data)

    def close(self) -> None:
        self.close_calls += 1
        if self.fail_on_close:
            raise OSError("close failed")

    @property
    def value(self) -> bytes:
        return b"".join(self.chunks)


@pytest.fixture
def stream() -> RecordingStream:
    return RecordingStream()


@pytest.fixture
def token_bytes() -> Callable[[int], bytes]:
    return random.Random(2822).randbytes


@pytest.fixture(autouse=True)
def reset_logger():
    postbox_logging.logger.bind_logger(None)
    yield
    postbox_logging.logger.bind_logger(None)
