from __future__ import annotations

import logging.config
import threading
from abc import ABC, abstractmethod
from typing import Annotated, Any, cast

from typing_extensions import Doc

from postbox.conf import settings
from postbox.protocols.logging import LoggerProtocol

LOGGER_NAME = "postbox"


class LoggerProxy:
    """
    The logger every postbox module writes to.

    Nothing is bound at import time. The first record goes through
    `setup_logging()` with the active settings, unless a logger was bound
    before that.
    """

    def __init__(self) -> None:
        self._logger: LoggerProtocol | None = None
        self._lock = threading.RLock()

    def bind_logger(self, logger: LoggerProtocol | None) -> None:  # noqa
        with self._lock:
            self._logger = logger

    def __getattr__(self, item: str) -> Any:
        with self._lock:
            if self._logger is None:
                setup_logging()
            return getattr(self._logger, item)


logger: LoggerProtocol = cast(LoggerProtocol, LoggerProxy())


class LoggingConfig(ABC):
    """
    Base of every logging configuration accepted by `setup_logging()`.

    Subclass it to plug loguru, structlog or any other logger in place
    of the standard library one.

    **Example**

    ```python
    from postbox.logging import StandardLoggingConfig, setup_logging

    setup_logging(StandardLoggingConfig(level="debug"))
    ```
    """

    __logging_levels__: list[str] = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]

    def __init__(
        self,
        level: Annotated[
            str,
            Doc(
                """
                The logging level, case insensitive.
                """
            ),
        ] = "DEBUG",
        **kwargs: Any,
    ) -> None:
        if isinstance(level, str):
            level = level.upper()
        levels = ", ".join(self.__logging_levels__)
        assert level in self.__logging_levels__, (
            f"'{level}' is not a valid logging level. Available levels: '{levels}'."
        )

        self.level = level
        self.options = kwargs
        self.skip_setup_configure: bool = kwargs.get("skip_setup_configure", False)

    @abstractmethod
    def configure(self) -> None:
        """
        Applies the configuration to the underlying logging system.
        """

    @abstractmethod
    def get_logger(self) -> Any:
        """
        Returns the logger bound to `postbox.logging.logger`.
        """


class StandardLoggingConfig(LoggingConfig):
    """
    The standard library `postbox` logger.

    Without `config` only the level of the logger is set and a
    `logging.NullHandler` is attached: records propagate to the handlers
    of the application and whatever it attached to `postbox` is kept.
    A `config` dictionary is handed to `logging.config.dictConfig` as is.
    """

    def __init__(self, config: dict[str, Any] | None = None, **kwargs: Any) -> None:
        super().__init__(**kwargs)
        self.config = config

    def configure(self) -> None:
        if self.config is not None:
            logging.config.dictConfig(self.config)
            return

        standard_logger = logging.getLogger(LOGGER_NAME)
        standard_logger.setLevel(self.level)
        if not any(isinstance(h, logging.NullHandler) for h in standard_logger.handlers):
            standard_logger.addHandler(logging.NullHandler())

    def get_logger(self) -> Any:
        return logging.getLogger(LOGGER_NAME)


def setup_logging(logging_config: LoggingConfig | None = None) -> None:
    """
    Binds the logger used by postbox.

    Args:
        logging_config: The configuration to apply. Defaults to the
            `logging_config` of the active settings.

    Raises:
        ValueError: If `logging_config` is not an instance of `LoggingConfig`.
    """
    if logging_config is not None and not isinstance(logging_config, LoggingConfig):
        raise ValueError("`logging_config` must be an instance of LoggingConfig.")

    if logging_config is None:
        logging_config = settings.logging_config or StandardLoggingConfig()

    if not logging_config.skip_setup_configure:
        logging_config.configure()

    logger.bind_logger(logging_config.get_logger())
