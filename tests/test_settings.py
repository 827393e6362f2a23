import io

import pytest

from postbox import Encoding, Envelope, Part, render
from postbox.conf import reload_settings, settings
from postbox.conf.global_settings import Settings
from postbox.logging import StandardLoggingConfig
from postbox.testing import override_settings


@pytest.fixture
def environ_settings(monkeypatch):
    """
    Rebuilds the global settings from the environment for one test.
    """
    yield monkeypatch
    monkeypatch.undo()
    reload_settings()


def test_defaults():
    assert settings.default_charset == "utf-8"
    assert settings.header_encoding == "utf-8"
    assert settings.chunk_size == 8192
    assert settings.base64_line_length == 76
    assert settings.logging_level == "INFO"


def test_fields_are_the_annotated_settings():
    assert set(Settings.fields()) == {
        "default_charset",
        "header_encoding",
        "chunk_size",
        "base64_line_length",
        "logging_level",
    }


def test_logging_config_follows_the_level():
    config = Settings(logging_level="WARNING").logging_config

    assert isinstance(config, StandardLoggingConfig)
    assert config.level == "WARNING"


def test_environment_variables_are_cast(monkeypatch):
    monkeypatch.setenv("CHUNK_SIZE", "1024")
    monkeypatch.setenv("DEFAULT_CHARSET", "iso-8859-15")

    custom = Settings()

    assert custom.chunk_size == 1024
    assert custom.default_charset == "iso-8859-15"


def test_environment_is_used_when_rendering(environ_settings):
    environ_settings.setenv("LOGGING_LEVEL", "info")
    environ_settings.setenv("DEFAULT_CHARSET", "iso-8859-1")
    environ_settings.setenv("CHUNK_SIZE", "2")
    reload_settings()

    part = Part(
        content_type="text/plain", encoding=Encoding.UNENCODED, reader=io.BytesIO(b"hello")
    )
    message = render(Envelope(parts=[part]))

    assert settings.chunk_size == 2
    assert b"Content-Type: text/plain; charset=iso-8859-1\r\n" in message
    assert b"\r\n\r\nhello\r\n" in message


def test_invalid_environment_value(monkeypatch):
    monkeypatch.setenv("CHUNK_SIZE", "thirty")

    with pytest.raises(ValueError, match="thirty"):
        Settings()


def test_keyword_arguments_win(monkeypatch):
    monkeypatch.setenv("CHUNK_SIZE", "1024")

    assert Settings(chunk_size=1).chunk_size == 1


def test_unknown_keyword_argument():
    with pytest.raises(TypeError, match="boundary_size"):
        Settings(boundary_size=4)


def test_dict():
    dumped = Settings().dict(upper=True)

    assert dumped["BASE64_LINE_LENGTH"] == 76
    assert "LOGGING_CONFIG" not in dumped
    assert "__TYPE_HINTS__" not in dumped


def test_override_settings_context_manager():
    with override_settings(default_charset="us-ascii"):
        assert settings.default_charset == "us-ascii"

    assert settings.default_charset == "utf-8"


@override_settings(chunk_size=3, base64_line_length=0)
def test_override_settings_decorator():
    assert settings.chunk_size == 3
    assert settings.base64_line_length == 0


def test_boundary_size_cannot_be_overridden():
    with pytest.raises(TypeError):
        with override_settings(boundary_size=4):
            pass

    assert settings.chunk_size == 8192
