"""Service settings loaded from the environment and an optional ``.env`` file.

:func:`get_settings` caches one :class:`SettingModel` per process;
:func:`reset_settings` drops it so tests can load fresh values.

Examples
--------
.. code-block:: python

    from slack_bridge.settings import get_settings

    settings = get_settings(no_env_file=True)
    settings.runtime_url  # "http://runtime:8080", trailing "/" removed
"""

from enum import Enum
from typing import Optional

from pydantic import Field, SecretStr, field_validator
from pydantic_settings import (
    BaseSettings,
    PydanticBaseSettingsSource,
    SettingsConfigDict,
)

__all__: list[str] = ["LogLevel", "SettingModel", "get_settings", "reset_settings"]


class LogLevel(str, Enum):
    """Supported logging levels."""

    CRITICAL = "CRITICAL"
    ERROR = "ERROR"
    WARNING = "WARNING"
    INFO = "INFO"
    DEBUG = "DEBUG"
    NOTSET = "NOTSET"


class SettingModel(BaseSettings):
    """
    Configuration model for the Slack bridge service.
    Loads values from environment variables or a .env file.

    ``SLACK_BOT_SIGNING_KEY``, ``RUNTIME_URL`` and ``CREDS_URL`` are required;
    constructing the model without them raises ``pydantic.ValidationError``.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        case_sensitive=False,
    )

    # Required collaborators
    slack_bot_signing_key: SecretStr
    runtime_url: str
    creds_url: str

    # Outbound HTTP behaviour
    http_timeout: float = Field(default=10.0, gt=0)
    forward_retry: int = Field(default=3, ge=0)
    slack_retry: int = Field(default=3, ge=0)

    # Opt-in bounds for retained events (unbounded when unset)
    retained_events_max: Optional[int] = Field(default=None, gt=0)
    retained_events_ttl: Optional[float] = Field(default=None, gt=0)

    # Logging settings
    log_level: LogLevel = Field(default=LogLevel.INFO)
    log_file: Optional[str] = Field(default=None)
    log_dir: str = Field(default="logs")
    log_format: str = Field(default="%(asctime)s [%(levelname)8s] %(name)s: %(message)s")

    @field_validator("runtime_url", "creds_url", mode="before")
    @classmethod
    def strip_trailing_slash(cls, v):
        """Drop trailing slashes so paths can be appended safely."""
        if isinstance(v, str):
            v = v.strip()
            if not v:
                raise ValueError("URL must not be empty")
            return v.rstrip("/")
        return v

    @field_validator("retained_events_max", "retained_events_ttl", mode="before")
    @classmethod
    def empty_as_none(cls, v):
        """Treat an empty environment value as unset."""
        if isinstance(v, str) and not v.strip():
            return None
        return v

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[BaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,
        dotenv_settings: PydanticBaseSettingsSource,
        file_secret_settings: PydanticBaseSettingsSource,
    ) -> tuple[PydanticBaseSettingsSource, ...]:
        """
        Customize the settings sources to prioritize .env file over environment variables.
        This matches the behavior of load_dotenv(override=True) in the entry point.
        """
        return init_settings, dotenv_settings, env_settings, file_secret_settings


_settings: Optional[SettingModel] = None


def get_settings(
    env_file: Optional[str] = ".env", no_env_file: bool = False, force_reload: bool = False, **kwargs
) -> SettingModel:
    """
    Get the global settings instance.

    Parameters
    ----------
    env_file : Optional[str], optional
        Path to the .env file, by default ".env"
    no_env_file : bool, optional
        Whether to skip loading the .env file, by default False
    force_reload : bool, optional
        Whether to force a reload of the settings, by default False
    **kwargs
        Additional settings to override

    Returns
    -------
    SettingModel
        The settings instance

    Raises
    ------
    pydantic.ValidationError
        If a required setting is missing or a value is invalid
    """
    global _settings

    if _settings is None or force_reload:
        actual_env_file = None if no_env_file else env_file
        _settings = SettingModel(_env_file=actual_env_file, **kwargs)
    return _settings


def reset_settings() -> None:
    """Drop the cached settings instance (for testing purposes)."""
    global _settings
    _settings = None
