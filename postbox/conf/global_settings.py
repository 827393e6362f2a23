from __future__ import annotations

import builtins
import os
from typing import Annotated, Any, ClassVar, get_args, get_origin, get_type_hints

from typing_extensions import Doc

from postbox.logging import LoggingConfig, StandardLoggingConfig


class BaseSettings:
    """
    Base of all the settings for postbox.

    Every annotated attribute can be overridden by an environment variable
    with the same name in upper case, e.g. `CHUNK_SIZE=4096`. Keyword
    arguments win over the environment.
    """

    __type_hints__: ClassVar[dict[str, Any] | None] = None

    def __init__(self, **kwargs: Any) -> None:
        fields = self.fields()
        for key in kwargs:
            if key not in fields:
                raise TypeError(f"'{key}' is not a setting of {self.__class__.__name__}.")

        for key, typ in fields.items():
            if key in kwargs:
                value = kwargs[key]
            else:
                env_value = os.getenv(key.upper(), None)
                if env_value is not None:
                    value = self._cast(env_value, self._extract_base_type(typ))
                else:
                    value = getattr(self, key, None)
            setattr(self, key, value)

    @classmethod
    def fields(cls) -> dict[str, Any]:
        """
        The annotated settings of the class, resolved once and cached.
        """
        hints = cls.__dict__.get("__type_hints__")
        if hints is None:
            # `dict` would otherwise resolve to the method defined below.
            resolved = get_type_hints(cls, localns={"dict": builtins.dict}, include_extras=True)
            hints = {
                name: typ for name, typ in resolved.items() if get_origin(typ) is not ClassVar
            }
            cls.__type_hints__ = hints
        return hints

    def _extract_base_type(self, typ: Any) -> Any:
        if get_origin(typ) is Annotated:
            return get_args(typ)[0]
        return typ

    def _cast(self, value: str, typ: type[Any]) -> Any:
        """
        Casts the value of an environment variable to the annotated type.

        Raises:
            ValueError: If the value cannot be cast to the specified type.
        """
        try:
            return typ(value)
        except (TypeError, ValueError):
            type_name = getattr(typ, "__name__", str(typ))
            raise ValueError(f"Cannot cast value '{value}' to type '{type_name}'") from None

    def dict(self, exclude_none: bool = False, upper: bool = False) -> dict[str, Any]:
        """
        Dumps all the settings into a python dictionary.
        """
        result = {}
        for key in self.fields():
            value = getattr(self, key, None)
            if exclude_none and value is None:
                continue
            result[key.upper() if upper else key] = value
        return result


class Settings(BaseSettings):
    default_charset: Annotated[
        str,
        Doc(
            """
            Charset label written in the `Content-Type` of every part when
            the envelope does not declare one.

            Only the label is written, bodies are never transcoded.
            """
        ),
    ] = "utf-8"
    header_encoding: Annotated[
        str,
        Doc(
            """
            Codec used to turn header lines into bytes. Header values are
            written verbatim, without RFC 2047 encoded-words.
            """
        ),
    ] = "utf-8"
    chunk_size: Annotated[
        int,
        Doc(
            """
            Number of bytes requested from a part reader on every `read()`.
            Must be at least 1.
            """
        ),
    ] = 8192
    base64_line_length: Annotated[
        int,
        Doc(
            """
            Length of the base64 body lines. RFC 2045 caps them at 76
            characters. Use `0` to write the whole body on a single line.
            """
        ),
    ] = 76
    logging_level: Annotated[
        str,
        Doc(
            """
            The logging level used by the default `StandardLoggingConfig`.
            """
        ),
    ] = "INFO"

    @property
    def logging_config(self) -> LoggingConfig | None:
        """
        An instance of `LoggingConfig` applied by `setup_logging()` when none
        is given explicitly.

        **Example**

        ```python
        from postbox.conf.global_settings import Settings
        from postbox.logging import StandardLoggingConfig


        class CustomSettings(Settings):
            @property
            def logging_config(self) -> StandardLoggingConfig:
                return StandardLoggingConfig(level="DEBUG")
        ```
        """
        return StandardLoggingConfig(level=self.logging_level)
