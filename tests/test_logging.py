import logging
import threading
from typing import Any

import loguru
import pytest
import structlog
from loguru import logger as loguru_logger

from postbox.logging import LoggingConfig, StandardLoggingConfig, setup_logging
from postbox.testing import override_settings


class CustomLoguruLoggingConfig(LoggingConfig):
    def __init__(self, sink_list, **kwargs: Any) -> None:
        super().__init__(**kwargs)
        self.sink_list = sink_list

    def configure(self) -> None:
        loguru_logger.remove()
        loguru_logger.add(
            sink=self.sink_list.append,
            level=self.level,
            format="{level} | {message}",
        )

    def get_logger(self) -> Any:
        return loguru.logger


class ListLogger:
    def __init__(self, sink: list[str]):
        self.sink = sink

    def info(self, event: str, **kwargs):
        self.sink.append(event)

    def debug(self, event: str, **kwargs):
        self.sink.append(event)

    def warning(self, event: str, **kwargs):
        self.sink.append(event)

    def error(self, event: str, **kwargs):
        self.sink.append(event)

    def critical(self, event: str, **kwargs):
        self.sink.append(event)


class CustomStructlogLoggingConfig(LoggingConfig):
    def __init__(self, sink_list, **kwargs: Any) -> None:
        super().__init__(**kwargs)
        self.sink_list = sink_list

    def configure(self) -> None:
        structlog.configure(
            wrapper_class=structlog.make_filtering_bound_logger(logging.DEBUG),
            processors=[],
            context_class=dict,
            logger_factory=lambda *_: ListLogger(self.sink_list),
        )

    def get_logger(self) -> Any:
        return structlog.get_logger(__name__)


def test_loguru_logger_setup():
    sink = []
    setup_logging(CustomLoguruLoggingConfig(sink_list=sink))
    from postbox.logging import logger

    logger.debug("Debug message from Loguru")
    logger.info("Info message from Loguru")

    assert any("Debug message from Loguru" in message for message in sink)
    assert any("Info message from Loguru" in message for message in sink)


def test_structlog_logger_capture():
    sink = []
    setup_logging(CustomStructlogLoggingConfig(sink_list=sink))
    from postbox.logging import logger

    logger.info("Info message from Structlog")
    logger.error("Error message from Structlog")

    assert any("Info message from Structlog" in message for message in sink)
    assert any("Error message from Structlog" in message for message in sink)


def test_serializer_logs_through_the_bound_logger():
    sink = []
    setup_logging(CustomStructlogLoggingConfig(sink_list=sink))
    from postbox import Envelope, File, render

    render(Envelope(attachments=[File("report.pdf")]))

    assert any("multipart/mixed" in message for message in sink)
    assert any("not written" in message for message in sink)


def test_invalid_logging_config():
    with pytest.raises(ValueError):
        setup_logging(logging_config="not_a_valid_config")


def test_standard_logging_fallback():
    setup_logging()

    from postbox.logging import logger

    assert logger.name == "postbox"
    assert hasattr(logger, "debug")


@override_settings(logging_level="ERROR")
def test_fallback_uses_the_settings_level():
    setup_logging()

    assert logging.getLogger("postbox").level == logging.ERROR


def test_lazy_setup_on_first_use():
    from postbox.logging import logger

    assert logger.getEffectiveLevel() == logging.INFO


def test_default_logging_propagates_to_the_application(caplog):
    caplog.set_level(logging.DEBUG)
    from postbox import Envelope, File, render

    render(Envelope(attachments=[File("report.pdf")]))

    standard_logger = logging.getLogger("postbox")
    assert standard_logger.propagate is True
    assert not [
        h for h in standard_logger.handlers if not isinstance(h, logging.NullHandler)
    ]
    assert any(
        record.name == "postbox"
        and record.levelno == logging.WARNING
        and "not written" in record.getMessage()
        for record in caplog.records
    )


def test_default_logging_keeps_the_application_handlers():
    standard_logger = logging.getLogger("postbox")
    handler = logging.StreamHandler()
    standard_logger.addHandler(handler)
    try:
        setup_logging()
        setup_logging()

        assert handler in standard_logger.handlers
        assert (
            len([h for h in standard_logger.handlers if isinstance(h, logging.NullHandler)])
            == 1
        )
    finally:
        standard_logger.removeHandler(handler)


@pytest.mark.parametrize("level", ["info", "Warning", "DEBUG"])
def test_level_is_case_insensitive(level):
    assert StandardLoggingConfig(level=level).level == level.upper()


def test_standard_config_accepts_a_custom_dict():
    config = StandardLoggingConfig(
        config={"version": 1, "disable_existing_loggers": False}, level="WARNING"
    )
    setup_logging(config)

    from postbox.logging import logger

    assert logger is logging.getLogger("postbox")


@pytest.mark.parametrize(
    "level", [None, "postbox", 1, 2.5, "5-da"], ids=["none", "str", "int", "float", "str-int"]
)
def test_raises_assert_error(level):
    with pytest.raises(AssertionError):

        class CustomLog(LoggingConfig):
            def __init__(self):
                super().__init__(level=level)

            def configure(self) -> None:
                return None

            def get_logger(self) -> Any:
                return structlog.get_logger(__name__)

        CustomLog()


def test_concurrent_logging_after_initial_setup():
    sink: list[str] = []
    setup_logging(CustomLoguruLoggingConfig(sink_list=sink))

    errors: list[Exception] = []

    def worker():
        from postbox.logging import logger

        for _ in range(500):
            try:
                logger.info("thread-safe test")
            except Exception as e:
                errors.append(e)

    threads = [threading.Thread(target=worker) for _ in range(4)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()

    assert not errors
    assert len(sink) == 2000
