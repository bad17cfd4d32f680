"""Tests for CLI commands - update, status, swap."""

import json
import logging
from pathlib import Path
from unittest.mock import patch

import pytest
from click.testing import CliRunner

from toolsync.client.cli import (
    build_config,
    cli,
    get_config_dir,
    get_config_file,
    load_config,
    save_config,
)
from toolsync.client.cli.config import HOME_ENV_VAR
from toolsync.client.state import VersionLedger
from toolsync.core.types import VersionCategory

MANIFEST_URL = "http://updates.test/UpdateStatus.properties"
CATALOG_URL = "http://skins.test/Skins.xml"


@pytest.fixture
def runner() -> CliRunner:
    """Create a CLI test runner."""
    return CliRunner()


@pytest.fixture
def home(tmp_path: Path, monkeypatch) -> Path:  # type: ignore[no-untyped-def]
    """Point the CLI at a temporary home with a fake server configured."""
    home = tmp_path / ".codenameone"
    home.mkdir()
    (home / "toolsync.json").write_text(json.dumps({
        "base_url": "http://updates.test/",
        "skin_base_url": "http://skins.test",
        "manifest_retries": 0,
    }))
    monkeypatch.setenv(HOME_ENV_VAR, str(home))
    return home


@pytest.fixture(autouse=True)
def reset_logging():  # type: ignore[no-untyped-def]
    """Drop handlers installed by commands so they don't outlive the runner streams."""
    yield
    logger = logging.getLogger("toolsync")
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()


class TestUpdateCommand:
    """Tests for 'toolsync update' command."""

    def test_update_installs_and_syncs_project(
        self, runner: CliRunner, home: Path, tmp_path: Path, httpx_mock
    ) -> None:  # type: ignore[no-untyped-def]
        project = tmp_path / "MyApp"
        project.mkdir()
        httpx_mock.add_response(url=MANIFEST_URL, text="CodenameOneJar=2\n")
        httpx_mock.add_response(url="http://updates.test/CodenameOne.jar", content=b"cn1")
        httpx_mock.add_response(url=CATALOG_URL, content=b"<Skins/>")

        result = runner.invoke(cli, ["update", str(project)])

        assert result.exit_code == 0, result.output
        assert "Updated CodenameOneJar" in result.output
        assert f"Updated project files in {project}: CodenameOneJar" in result.output
        assert (home / "CodenameOne.jar").read_bytes() == b"cn1"
        assert (project / "lib" / "CodenameOne.jar").read_bytes() == b"cn1"
        assert (home / "toolsync.log").exists()
        assert not (home / "UpdateStatus.lock").exists()

    def test_second_run_is_throttled(self, runner: CliRunner, home: Path, httpx_mock) -> None:  # type: ignore[no-untyped-def]
        httpx_mock.add_response(url=MANIFEST_URL, text="")
        httpx_mock.add_response(url=CATALOG_URL, content=b"<Skins/>")
        runner.invoke(cli, ["update"])

        result = runner.invoke(cli, ["update"])

        assert result.exit_code == 0
        assert "checked recently" in result.output
        assert len(httpx_mock.get_requests()) == 2

    @pytest.mark.parametrize("args", [["update", "--force"], ["update", "force"], ["update", "FORCE"]])
    def test_force_checks_again(
        self, runner: CliRunner, home: Path, httpx_mock, args: list[str]
    ) -> None:  # type: ignore[no-untyped-def]
        """Both --force and a trailing "force" argument bypass the throttle."""
        with VersionLedger(home / "UpdateStatus.db") as ledger:
            ledger.set_last_update(9_999_999_999.0)
            ledger.set_last_skin_update(9_999_999_999.0)
        httpx_mock.add_response(url=MANIFEST_URL, text="")

        result = runner.invoke(cli, args)

        assert result.exit_code == 0, result.output
        assert "checked recently" not in result.output
        assert [str(r.url) for r in httpx_mock.get_requests()] == [MANIFEST_URL]

    def test_force_named_project_is_a_project(
        self, runner: CliRunner, home: Path, tmp_path: Path, monkeypatch, httpx_mock
    ) -> None:  # type: ignore[no-untyped-def]
        """An existing directory called "force" is synced, not read as the flag."""
        (tmp_path / "force").mkdir()
        monkeypatch.chdir(tmp_path)
        with VersionLedger(home / "UpdateStatus.db") as ledger:
            ledger.set_last_update(9_999_999_999.0)
            ledger.set_last_skin_update(9_999_999_999.0)

        result = runner.invoke(cli, ["update", "force"])

        assert result.exit_code == 0, result.output
        assert "Project files are up to date in force" in result.output
        assert httpx_mock.get_requests() == []

    def test_partial_failure_exit_code(self, runner: CliRunner, home: Path, httpx_mock) -> None:  # type: ignore[no-untyped-def]
        httpx_mock.add_response(url=MANIFEST_URL, text="CodenameOneJar=2\n")
        httpx_mock.add_response(url="http://updates.test/CodenameOne.jar", status_code=404)
        httpx_mock.add_response(url=CATALOG_URL, content=b"<Skins/>")

        result = runner.invoke(cli, ["update"])

        assert result.exit_code == 2
        assert "Failed to update: CodenameOneJar" in result.output

    def test_manifest_failure_exit_code(self, runner: CliRunner, home: Path, httpx_mock) -> None:  # type: ignore[no-untyped-def]
        httpx_mock.add_response(url=MANIFEST_URL, status_code=500)

        result = runner.invoke(cli, ["update"])

        assert result.exit_code == 1
        assert "Update failed" in result.output
        assert not (home / "UpdateStatus.lock").exists()

    def test_busy_exit_code(self, runner: CliRunner, home: Path, httpx_mock) -> None:  # type: ignore[no-untyped-def]
        """A live lock file makes the run give up immediately."""
        (home / "UpdateStatus.lock").write_text("12345")

        result = runner.invoke(cli, ["update"])

        assert result.exit_code == 3
        assert "in progress" in result.output
        assert (home / "UpdateStatus.lock").exists()
        assert not (home / "UpdateStatus.db").exists()


class TestStatusCommand:
    """Tests for 'toolsync status' command."""

    def test_status_before_first_run(self, runner: CliRunner, home: Path) -> None:
        result = runner.invoke(cli, ["status"])
        assert result.exit_code == 0
        assert "No update has run yet." in result.output

    def test_status_lists_versions(self, runner: CliRunner, home: Path) -> None:
        with VersionLedger(home / "UpdateStatus.db") as ledger:
            ledger.set_version("JavaSEJar", "7")
            ledger.set_version("skins/phone.skin", "3", VersionCategory.RESOURCE)

        result = runner.invoke(cli, ["status"])

        assert result.exit_code == 0
        assert "JavaSEJar: 7" in result.output
        assert "CodenameOneJar: 0" in result.output
        assert "skins/phone.skin: 3" in result.output
        assert "Last update check: never" in result.output


class TestSwapCommand:
    """Tests for 'toolsync swap' command."""

    def test_swap_success(self, runner: CliRunner, tmp_path: Path) -> None:
        staged, dest = tmp_path / "a.new", tmp_path / "a.jar"
        with patch("toolsync.client.sync.swap.swap_with_retry", return_value=True) as swap:
            result = runner.invoke(cli, ["swap", str(staged), str(dest)])

        assert result.exit_code == 0
        swap.assert_called_once_with(staged, dest)

    def test_swap_failure(self, runner: CliRunner, tmp_path: Path) -> None:
        with patch("toolsync.client.sync.swap.swap_with_retry", return_value=False):
            result = runner.invoke(cli, ["swap", str(tmp_path / "a.new"), str(tmp_path / "a.jar")])

        assert result.exit_code == 1


class TestConfigFile:
    """Tests for the toolsync.json helpers."""

    def test_home_override(self, home: Path) -> None:
        assert get_config_dir() == home
        assert get_config_file() == home / "toolsync.json"

    def test_default_home(self, monkeypatch, tmp_path: Path) -> None:  # type: ignore[no-untyped-def]
        monkeypatch.delenv(HOME_ENV_VAR, raising=False)
        monkeypatch.setenv("HOME", str(tmp_path))
        assert get_config_dir() == tmp_path / ".codenameone"

    def test_save_then_build(self, home: Path) -> None:
        """Saved overrides flow into the run configuration; unknown keys are ignored."""
        save_config({**load_config(), "timeout": 5, "legacy_option": True})

        config = build_config()

        assert config.home_dir == home
        assert config.timeout == 5
        assert config.manifest_url == "http://updates.test/UpdateStatus.properties"

    def test_missing_file(self, tmp_path: Path, monkeypatch) -> None:  # type: ignore[no-untyped-def]
        monkeypatch.setenv(HOME_ENV_VAR, str(tmp_path / "empty"))
        assert load_config() == {}
