"""Tests for atomic artifact replacement."""

import subprocess
import sys
from pathlib import Path
from unittest.mock import MagicMock, patch

import pytest

from toolsync.client.sync import replace as replace_module
from toolsync.client.sync.replace import AtomicReplacer, launch_swap_helper, staged_path
from toolsync.core.types import InstallOutcome


@pytest.fixture
def lock_file(monkeypatch):  # type: ignore[no-untyped-def]
    """Make writes to selected paths fail as if another process held them."""
    locked: set[Path] = set()
    real_write = replace_module._write_file

    def write(path: Path, data: bytes) -> None:
        if path in locked:
            raise PermissionError(f"[Errno 13] Permission denied: '{path}'")
        real_write(path, data)

    monkeypatch.setattr(replace_module, "_write_file", write)
    return locked.add


class TestStagedPath:
    """Tests for the staged sibling name."""

    def test_replaces_extension(self) -> None:
        assert staged_path(Path("/x/JavaSE.jar")) == Path("/x/JavaSE.new")

    def test_adds_extension(self) -> None:
        assert staged_path(Path("/x/tool")) == Path("/x/tool.new")


class TestAtomicReplacer:
    """Tests for AtomicReplacer.install."""

    def test_direct_write(self, tmp_path: Path) -> None:
        """An unlocked destination is written in place."""
        launcher = MagicMock()
        dest = tmp_path / "lib" / "CodenameOne.jar"

        outcome = AtomicReplacer(launch_swap=launcher).install(b"new", dest)

        assert outcome is InstallOutcome.INSTALLED
        assert dest.read_bytes() == b"new"
        assert not staged_path(dest).exists()
        launcher.assert_not_called()

    def test_overwrites_existing(self, tmp_path: Path) -> None:
        dest = tmp_path / "CodenameOne.jar"
        dest.write_bytes(b"old content that is longer")

        AtomicReplacer(launch_swap=MagicMock()).install(b"new", dest)

        assert dest.read_bytes() == b"new"

    def test_locked_destination_is_staged(self, tmp_path: Path, lock_file) -> None:  # type: ignore[no-untyped-def]
        """Contention never raises; bytes are staged and a swap scheduled."""
        launcher = MagicMock()
        dest = tmp_path / "CodenameOne.jar"
        dest.write_bytes(b"old")
        lock_file(dest)

        outcome = AtomicReplacer(launch_swap=launcher).install(b"new", dest)

        assert outcome is InstallOutcome.DEFERRED
        assert dest.read_bytes() == b"old"
        assert staged_path(dest).read_bytes() == b"new"
        launcher.assert_called_once_with(staged_path(dest), dest)

    def test_protected_destination_gets_no_helper(self, tmp_path: Path, lock_file) -> None:  # type: ignore[no-untyped-def]
        """The running updater's own file is staged but never swapped out."""
        launcher = MagicMock()
        dest = tmp_path / "UpdateCodenameOne.jar"
        dest.write_bytes(b"running")
        lock_file(dest)

        outcome = AtomicReplacer(protected=[dest], launch_swap=launcher).install(b"new", dest)

        assert outcome is InstallOutcome.DEFERRED
        assert staged_path(dest).read_bytes() == b"new"
        launcher.assert_not_called()

    def test_helper_launch_failure_is_not_raised(self, tmp_path: Path, lock_file) -> None:  # type: ignore[no-untyped-def]
        dest = tmp_path / "CodenameOne.jar"
        lock_file(dest)
        launcher = MagicMock(side_effect=OSError("no interpreter"))

        outcome = AtomicReplacer(launch_swap=launcher).install(b"new", dest)

        assert outcome is InstallOutcome.DEFERRED
        assert staged_path(dest).read_bytes() == b"new"

    def test_staging_failure_raises(self, tmp_path: Path, lock_file) -> None:  # type: ignore[no-untyped-def]
        dest = tmp_path / "CodenameOne.jar"
        lock_file(dest)
        lock_file(staged_path(dest))

        with pytest.raises(OSError):
            AtomicReplacer(launch_swap=MagicMock()).install(b"new", dest)


class TestLaunchSwapHelper:
    """Tests for the detached helper process."""

    def test_starts_detached_process(self, tmp_path: Path) -> None:
        staged = tmp_path / "CodenameOne.new"
        dest = tmp_path / "CodenameOne.jar"

        with patch("toolsync.client.sync.replace.subprocess.Popen") as popen, \
                patch("toolsync.client.sync.replace.tempfile.NamedTemporaryFile") as tmp:
            tmp.return_value.__enter__.return_value.name = str(tmp_path / "UpdaterLog1.log")
            launch_swap_helper(staged, dest)

        popen.assert_called_once()
        command = popen.call_args.args[0]
        assert command[1:] == ["-m", "toolsync.client.cli", "swap", str(staged), str(dest)]
        kwargs = popen.call_args.kwargs
        assert kwargs["stderr"] == subprocess.STDOUT
        assert kwargs["stdout"] is tmp.return_value.__enter__.return_value
        if sys.platform != "win32":
            assert kwargs["start_new_session"] is True
        tmp.assert_called_once_with(prefix="UpdaterLog", suffix=".log", delete=False)
