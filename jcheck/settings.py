"""
jcheck runtime settings.

Loaded from environment variables with the ``JCHECK_`` prefix:
- JCHECK_LOCALE: locale for violation messages, e.g. ``de`` or ``fr_CA`` (default: en)
- JCHECK_TAB_WIDTH: tab width for column computation (default: 8)
- JCHECK_JOBS: number of files processed in parallel (default: 1)
- JCHECK_CHARSET: charset of audited files (default: utf-8)
- JCHECK_SEVERITY: default severity of modules (default: error)
"""

from functools import lru_cache
from typing import Literal

from pydantic_settings import BaseSettings, SettingsConfigDict


class EngineSettings(BaseSettings):
    """Defaults applied when the configuration does not set a value."""

    model_config = SettingsConfigDict(
        env_prefix="JCHECK_",
        env_file=".env",
        extra="ignore",
    )

    locale: str = "en"
    tab_width: int = 8
    jobs: int = 1
    charset: str = "utf-8"
    severity: Literal["ignore", "info", "warning", "error"] = "error"

    @property
    def locale_language(self) -> str:
        return self.locale.split("_", 1)[0]

    @property
    def locale_country(self) -> str:
        parts = self.locale.split("_", 1)
        return parts[1] if len(parts) > 1 else ""


@lru_cache
def get_settings() -> EngineSettings:
    return EngineSettings()
