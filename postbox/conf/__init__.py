from __future__ import annotations

import os
from typing import TYPE_CHECKING, Any, cast

from monkay import Monkay

if TYPE_CHECKING:
    from postbox.conf.global_settings import Settings

ENVIRONMENT_VARIABLE = "POSTBOX_SETTINGS_MODULE"
DEFAULT_SETTINGS = "postbox.conf.global_settings.Settings"


def settings_path() -> str:
    """
    Import path of the settings class, `module.Class`.
    """
    return os.environ.get(ENVIRONMENT_VARIABLE) or DEFAULT_SETTINGS


_monkay: Monkay[Any, Settings] = Monkay(globals(), settings_path=settings_path)


class SettingsForward:
    """
    Forwards every attribute to the active settings instance, so that
    `from postbox.conf import settings` keeps working across
    `reload_settings()` and `override_settings`.
    """

    def __getattribute__(self, name: str) -> Any:
        return getattr(_monkay.settings, name)

    def __setattr__(self, name: str, value: Any) -> None:
        setattr(_monkay.settings, name, value)


settings: Settings = cast("Settings", SettingsForward())


def reload_settings() -> None:
    """
    Builds the settings again, picking up changes of
    `POSTBOX_SETTINGS_MODULE` and of the per-setting environment variables.
    """
    _monkay.settings = settings_path()
