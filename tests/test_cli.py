from pathlib import Path

from typer.testing import CliRunner

from cogwork import __version__, cli


def _write_config(path: Path, body: str) -> Path:
    path.write_text(body, encoding="utf-8")
    return path


def test_version() -> None:
    result = CliRunner().invoke(cli.app, ["--version"])
    assert result.exit_code == 0
    assert result.output.strip() == __version__


def test_check_valid_config(tmp_path: Path) -> None:
    cfg = _write_config(
        tmp_path / "cogwork.toml",
        'library = "telegram"\nmodules = ["pkg.fun:Fun"]\n',
    )

    result = CliRunner().invoke(cli.app, ["check", "--config", str(cfg)])

    assert result.exit_code == 0
    assert "library=telegram" in result.output
    assert "modules=1" in result.output


def test_check_invalid_config(tmp_path: Path) -> None:
    cfg = _write_config(tmp_path / "cogwork.toml", 'library = "eris"\n')

    result = CliRunner().invoke(cli.app, ["check", "--config", str(cfg)])

    assert result.exit_code == 1
    assert "Invalid config" in result.output


def test_check_missing_config(tmp_path: Path) -> None:
    result = CliRunner().invoke(
        cli.app, ["check", "--config", str(tmp_path / "nope.toml")]
    )
    assert result.exit_code == 1
    assert "Missing config file" in result.output


def test_run_reports_missing_token(tmp_path: Path, monkeypatch) -> None:
    monkeypatch.setattr(cli, "setup_logging", lambda **_kwargs: None)
    cfg = _write_config(tmp_path / "cogwork.toml", 'library = "discord"\n')

    result = CliRunner().invoke(cli.app, ["run", "--config", str(cfg)])

    assert result.exit_code == 1
    assert "bot_token" in result.output


def test_events_table() -> None:
    result = CliRunner().invoke(cli.app, ["events", "--library", "telegram"])

    assert result.exit_code == 0
    assert "message_create" in result.output
    assert "channel_post" in result.output
    assert "unsupported" in result.output


def test_events_unknown_library() -> None:
    result = CliRunner().invoke(cli.app, ["events", "--library", "eris"])
    assert result.exit_code == 1
    assert "Unknown library" in result.output
