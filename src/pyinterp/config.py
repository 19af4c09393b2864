"""Configuration management using pydantic-settings.

Settings are read from the environment and from ``.env`` / ``.env.local``
(local overrides shared). Every variable uses the ``PYINTERP_`` prefix
through an explicit ``validation_alias``.

Usage:
    from pyinterp.config import settings
    print(settings.executable)
"""

from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

LogLevel = Literal["DEBUG", "INFO", "WARNING", "ERROR"]


class Settings(BaseSettings):
    """Bridge settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=(".env", ".env.local"),
        extra="ignore",
    )

    executable: str = Field(
        default="python3",
        min_length=1,
        validation_alias="PYINTERP_EXECUTABLE",
        description="Interpreter executable started for each bridge",
    )

    read_size: int = Field(
        default=1024,
        gt=0,
        validation_alias="PYINTERP_READ_SIZE",
        description="Maximum characters of script output returned by run()",
    )

    log_level: LogLevel = Field(
        default="INFO",
        validation_alias="PYINTERP_LOG_LEVEL",
        description="Log level used by the CLI",
    )


# Singleton instance
settings = Settings.model_validate({})
