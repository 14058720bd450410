from __future__ import annotations

from pathlib import Path
from typing import Any, Literal

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    SecretStr,
    ValidationError,
    field_validator,
)
from pydantic_settings import BaseSettings, SettingsConfigDict
from pydantic_settings.sources import TomlConfigSettingsSource

from .config import ConfigError, resolve_config_path

type LibraryId = Literal["discord", "telegram"]


class DiscordSettings(BaseModel):
    model_config = ConfigDict(extra="forbid")

    bot_token: SecretStr | None = None
    guild_id: int | None = None

    @field_validator("guild_id", mode="before")
    @classmethod
    def _validate_guild_id(cls, value: Any) -> Any:
        if value is None:
            return None
        if isinstance(value, bool) or not isinstance(value, int):
            raise ValueError("guild_id must be an integer")
        return value


class TelegramSettings(BaseModel):
    model_config = ConfigDict(extra="forbid")

    bot_token: SecretStr | None = None
    poll_timeout_s: int = Field(default=50, ge=0)


class CollectorSettings(BaseModel):
    model_config = ConfigDict(extra="forbid")

    timeout_s: float = Field(default=60.0, gt=0)
    count: int = Field(default=100, ge=1)
    ignore_bots: bool = True
    case_sensitive: bool = True
    settle_s: float = Field(default=0.5, ge=0)


class LoggingSettings(BaseModel):
    model_config = ConfigDict(extra="forbid")

    level: str = "INFO"
    format: Literal["console", "json"] = "console"


class CogworkSettings(BaseSettings):
    model_config = SettingsConfigDict(
        extra="forbid",
        env_prefix="COGWORK__",
        env_nested_delimiter="__",
    )

    library: LibraryId = "discord"
    discord: DiscordSettings = Field(default_factory=DiscordSettings)
    telegram: TelegramSettings = Field(default_factory=TelegramSettings)
    collector: CollectorSettings = Field(default_factory=CollectorSettings)
    logging: LoggingSettings = Field(default_factory=LoggingSettings)
    modules: list[str] = Field(default_factory=list)

    @field_validator("library", mode="before")
    @classmethod
    def _normalize_library(cls, value: Any) -> Any:
        if isinstance(value, str):
            return value.strip().lower()
        return value

    @field_validator("modules", mode="before")
    @classmethod
    def _validate_modules(cls, value: Any) -> Any:
        if value is None:
            return []
        if not isinstance(value, list):
            raise ValueError("modules must be a list of import paths")
        cleaned: list[str] = []
        for item in value:
            if not isinstance(item, str) or ":" not in item:
                raise ValueError(
                    f"invalid module path {item!r}; expected 'package.module:factory'"
                )
            cleaned.append(item.strip())
        return cleaned

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls,
        init_settings,
        env_settings,
        dotenv_settings,
        file_secret_settings,
    ):
        return (
            init_settings,
            env_settings,
            dotenv_settings,
            TomlConfigSettingsSource(settings_cls),
            file_secret_settings,
        )

    def bot_token(self) -> str:
        """Token of the selected library, or ConfigError when missing."""
        section = self.discord if self.library == "discord" else self.telegram
        token = section.bot_token
        if token is None or not token.get_secret_value().strip():
            raise ConfigError(f"Missing `{self.library}.bot_token`.")
        return token.get_secret_value().strip()


def load_settings(path: str | Path | None = None) -> tuple[CogworkSettings, Path]:
    cfg_path = resolve_config_path(path)
    if cfg_path.exists() and not cfg_path.is_file():
        raise ConfigError(f"Config path {cfg_path} exists but is not a file.") from None
    if not cfg_path.exists():
        raise ConfigError(f"Missing config file {cfg_path}.") from None
    return _load_settings_from_path(cfg_path), cfg_path


def load_settings_if_exists(
    path: str | Path | None = None,
) -> tuple[CogworkSettings, Path] | None:
    cfg_path = resolve_config_path(path)
    if not cfg_path.exists():
        return None
    return load_settings(cfg_path)


def validate_settings_data(
    data: dict[str, Any], *, config_path: Path
) -> CogworkSettings:
    try:
        return CogworkSettings.model_validate(data)
    except ValidationError as exc:
        raise ConfigError(f"Invalid config in {config_path}: {exc}") from exc


def _load_settings_from_path(cfg_path: Path) -> CogworkSettings:
    cfg = dict(CogworkSettings.model_config)
    cfg["toml_file"] = cfg_path
    Bound = type(
        "CogworkSettingsBound",
        (CogworkSettings,),
        {"model_config": SettingsConfigDict(**cfg)},
    )
    try:
        return Bound()
    except ValidationError as exc:
        raise ConfigError(f"Invalid config in {cfg_path}: {exc}") from exc
    except Exception as exc:  # pragma: no cover - safety net
        raise ConfigError(f"Failed to load config {cfg_path}: {exc}") from exc
