from pathlib import Path

import pytest

from cogwork.config import ConfigError, read_config
from cogwork.settings import (
    CogworkSettings,
    load_settings,
    load_settings_if_exists,
    validate_settings_data,
)


def _write_config(path: Path, body: str) -> Path:
    path.write_text(body, encoding="utf-8")
    return path


def test_defaults() -> None:
    settings = CogworkSettings()

    assert settings.library == "discord"
    assert settings.collector.timeout_s == 60.0
    assert settings.collector.count == 100
    assert settings.collector.ignore_bots is True
    assert settings.collector.case_sensitive is True
    assert settings.collector.settle_s == 0.5
    assert settings.modules == []


def test_library_is_normalized(tmp_path: Path) -> None:
    settings = validate_settings_data(
        {"library": " Telegram ", "telegram": {"bot_token": "  token  "}},
        config_path=tmp_path / "cogwork.toml",
    )

    assert settings.library == "telegram"
    assert settings.bot_token() == "token"


def test_unknown_library_is_rejected(tmp_path: Path) -> None:
    with pytest.raises(ConfigError, match="library"):
        validate_settings_data({"library": "eris"}, config_path=tmp_path / "x.toml")


def test_bool_guild_id_is_rejected(tmp_path: Path) -> None:
    data = {"discord": {"bot_token": "token", "guild_id": True}}
    with pytest.raises(ConfigError, match="guild_id"):
        validate_settings_data(data, config_path=tmp_path / "cogwork.toml")


def test_module_paths_need_a_factory(tmp_path: Path) -> None:
    with pytest.raises(ConfigError, match="modules"):
        validate_settings_data(
            {"modules": ["pkg.fun"]}, config_path=tmp_path / "cogwork.toml"
        )


def test_missing_token() -> None:
    with pytest.raises(ConfigError, match="discord.bot_token"):
        CogworkSettings().bot_token()


def test_load_settings_from_toml(tmp_path: Path) -> None:
    cfg = _write_config(
        tmp_path / "cogwork.toml",
        'library = "telegram"\n'
        'modules = ["pkg.fun:Fun"]\n'
        "\n"
        "[telegram]\n"
        'bot_token = "token"\n'
        "\n"
        "[collector]\n"
        "timeout_s = 5\n",
    )

    settings, path = load_settings(cfg)

    assert path == cfg
    assert settings.library == "telegram"
    assert settings.modules == ["pkg.fun:Fun"]
    assert settings.collector.timeout_s == 5
    assert settings.bot_token() == "token"


def test_env_overrides_toml(tmp_path: Path, monkeypatch) -> None:
    cfg = _write_config(
        tmp_path / "cogwork.toml",
        '[discord]\nbot_token = "from-file"\n',
    )
    monkeypatch.setenv("COGWORK__DISCORD__BOT_TOKEN", "from-env")

    settings, _ = load_settings(cfg)

    assert settings.bot_token() == "from-env"


def test_load_settings_missing_file(tmp_path: Path) -> None:
    with pytest.raises(ConfigError, match="Missing config file"):
        load_settings(tmp_path / "nope.toml")
    assert load_settings_if_exists(tmp_path / "nope.toml") is None


def test_load_settings_defaults_to_home_path(tmp_path: Path) -> None:
    _write_config(tmp_path / "cogwork.toml", 'library = "discord"\n')

    result = load_settings_if_exists()

    assert result is not None
    assert result[1] == tmp_path / "cogwork.toml"


def test_invalid_config_file(tmp_path: Path) -> None:
    cfg = _write_config(tmp_path / "cogwork.toml", "surprise = 1\n")
    with pytest.raises(ConfigError, match="Invalid config"):
        load_settings(cfg)


def test_read_config_errors(tmp_path: Path) -> None:
    with pytest.raises(ConfigError, match="Missing config file"):
        read_config(tmp_path / "nope.toml")
    with pytest.raises(ConfigError, match="not a file"):
        read_config(tmp_path)
    bad = _write_config(tmp_path / "bad.toml", "library = \n")
    with pytest.raises(ConfigError, match="Malformed TOML"):
        read_config(bad)
