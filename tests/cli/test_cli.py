"""Tests for the capshare CLI."""

import dataclasses
import json
from pathlib import Path

import pytest
from typer.testing import CliRunner

from capshare import __version__
from capshare.cli import EXIT_CANCELED, EXIT_FAILED, EXIT_INVALID_CONFIG, app
from capshare.plugins.builtin import SAVE_FILE

runner = CliRunner()


@pytest.fixture
def env(config_dir: Path) -> dict[str, str]:
    return {
        "CAPSHARE_CONFIG_DIR": str(config_dir),
        "CAPSHARE_LOG_LEVEL": "WARNING",
        "CAPSHARE_LOAD_ENTRYPOINTS": "false",
    }


@pytest.fixture
def export_file(tmp_path: Path) -> Path:
    path = tmp_path / "capture.mp4"
    path.write_bytes(b"\x00\x00\x00\x18ftypmp42")
    return path


@pytest.fixture
def save_dir(config_dir: Path, tmp_path: Path) -> Path:
    directory = tmp_path / "saved"
    config_dir.mkdir(parents=True)
    (config_dir / "save-file.json").write_text(
        json.dumps({"directory": str(directory), "overwrite": False})
    )
    return directory


class TestGlobalOptions:
    def test_version(self) -> None:
        result = runner.invoke(app, ["--version"])

        assert result.exit_code == 0
        assert f"capshare version {__version__}" in result.output

    def test_missing_settings_file(self, env: dict[str, str], tmp_path: Path) -> None:
        result = runner.invoke(
            app, ["--settings", str(tmp_path / "nope.yaml"), "plugins", "list"], env=env
        )

        assert result.exit_code == 1
        assert "Settings file not found" in result.output

    def test_invalid_settings_file(self, env: dict[str, str], tmp_path: Path) -> None:
        settings_file = tmp_path / "settings.yaml"
        settings_file.write_text("start_export_delay_seconds: -1\n")

        result = runner.invoke(app, ["-s", str(settings_file), "plugins", "list"], env=env)

        assert result.exit_code == 1
        assert "start_export_delay_seconds" in result.output


class TestPluginsList:
    def test_lists_builtin(self, env: dict[str, str]) -> None:
        result = runner.invoke(app, ["plugins", "list"], env=env)

        assert result.exit_code == 0
        assert "save-file" in result.output
        assert "Save to Disk" in result.output
        assert "apng, gif, mp4, webm" in result.output

    def test_filter_by_format(self, env: dict[str, str]) -> None:
        result = runner.invoke(app, ["plugins", "list", "--format", "avi"], env=env)

        assert result.exit_code == 0
        assert "(none available)" in result.output


class TestConfigCommands:
    def test_path(self, env: dict[str, str], config_dir: Path) -> None:
        result = runner.invoke(app, ["config", "path", "save-file"], env=env)

        assert result.exit_code == 0
        assert result.output.strip() == str(config_dir / "save-file.json")

    def test_show_seeded_defaults(self, env: dict[str, str]) -> None:
        result = runner.invoke(app, ["config", "show", "save-file"], env=env)

        assert result.exit_code == 0
        assert json.loads(result.stdout) == {
            "directory": "~/Movies/Capshare",
            "overwrite": False,
        }

    def test_show_schema(self, env: dict[str, str]) -> None:
        result = runner.invoke(app, ["config", "show", "save-file", "--schema"], env=env)

        assert result.exit_code == 0
        schema = json.loads(result.stdout)
        assert schema["required"] == ["directory"]
        assert schema["properties"]["overwrite"] == {
            "title": "Overwrite existing files",
            "type": "boolean",
            "default": False,
        }

    def test_validate_ok(self, env: dict[str, str]) -> None:
        result = runner.invoke(app, ["config", "validate", "save-file"], env=env)

        assert result.exit_code == 0
        assert "Config valid: save-file" in result.output

    def test_validate_reports_issues(self, env: dict[str, str], config_dir: Path) -> None:
        config_dir.mkdir(parents=True)
        (config_dir / "save-file.json").write_text(
            json.dumps({"directory": "", "overwrite": "yes"})
        )

        result = runner.invoke(app, ["config", "validate", "save-file"], env=env)

        assert result.exit_code == 1
        assert "Config errors for save-file" in result.output
        assert "Config `directory`" in result.output
        assert "Config `overwrite`" in result.output

    def test_unknown_plugin(self, env: dict[str, str]) -> None:
        result = runner.invoke(app, ["config", "path", "giphy"], env=env)

        assert result.exit_code == 1
        assert "Unknown plugin 'giphy'" in result.output


class TestExport:
    def test_completed(self, env: dict[str, str], export_file: Path, save_dir: Path) -> None:
        result = runner.invoke(
            app,
            ["export", "save-file", str(export_file), "--format", "mp4", "--fps", "30"],
            env=env,
        )

        assert result.exit_code == 0
        assert "Export completed: Save to Disk" in result.output
        assert (save_dir / "capture.mp4").read_bytes() == export_file.read_bytes()

    def test_file_name_option(
        self, env: dict[str, str], export_file: Path, save_dir: Path
    ) -> None:
        result = runner.invoke(
            app,
            ["export", "save-file", str(export_file), "-f", "mp4", "--file-name", "demo.mp4"],
            env=env,
        )

        assert result.exit_code == 0
        assert (save_dir / "demo.mp4").exists()

    def test_unsupported_format(self, env: dict[str, str], export_file: Path) -> None:
        result = runner.invoke(
            app, ["export", "save-file", str(export_file), "--format", "avi"], env=env
        )

        assert result.exit_code == 1
        assert "does not accept format 'avi'" in result.output

    def test_action_failure(
        self, env: dict[str, str], tmp_path: Path, save_dir: Path
    ) -> None:
        result = runner.invoke(
            app,
            ["export", "save-file", str(tmp_path / "missing.mp4"), "--format", "mp4"],
            env=env,
        )

        assert result.exit_code == EXIT_FAILED
        assert "Error in plugin save-file" in result.output
        assert "FileNotFoundError" in result.output

    def test_invalid_config(
        self, env: dict[str, str], export_file: Path, config_dir: Path
    ) -> None:
        config_dir.mkdir(parents=True)
        (config_dir / "save-file.json").write_text(json.dumps({"directory": ""}))

        result = runner.invoke(
            app,
            ["--no-open", "export", "save-file", str(export_file), "--format", "mp4"],
            env=env,
        )

        assert result.exit_code == EXIT_INVALID_CONFIG
        assert "Config `directory`" in result.output
        assert f"Edit the config at: {config_dir / 'save-file.json'}" in result.output

    def test_canceled(
        self,
        env: dict[str, str],
        export_file: Path,
        save_dir: Path,
        monkeypatch: pytest.MonkeyPatch,
    ) -> None:
        def cancel(ctx) -> None:
            ctx.cancel()

        monkeypatch.setattr(
            "capshare.plugins.builtin.save_file.SAVE_FILE",
            dataclasses.replace(SAVE_FILE, action=cancel),
        )

        result = runner.invoke(
            app, ["export", "save-file", str(export_file), "--format", "mp4"], env=env
        )

        assert result.exit_code == EXIT_CANCELED
        assert "Export canceled." in result.output
        assert not save_dir.exists()
