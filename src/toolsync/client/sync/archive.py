"""Archive installation with path-traversal protection.

A bundle is installed by emptying its target directory and extracting every
entry into it. All entry names are checked before the first byte is written,
so a malicious archive leaves the directory empty rather than half-filled.
"""

from __future__ import annotations

import io
import logging
import shutil
import zipfile
import zlib
from pathlib import Path, PureWindowsPath

from toolsync.client.sync.types import IntegrityError, SecurityError

logger = logging.getLogger(__name__)


def clear_directory(target_dir: Path) -> None:
    """Remove everything under target_dir and recreate it empty."""
    if target_dir.is_symlink() or target_dir.is_file():
        target_dir.unlink()
    elif target_dir.exists():
        shutil.rmtree(target_dir)
    target_dir.mkdir(parents=True, exist_ok=True)


def resolve_entry(base: Path, name: str) -> Path | None:
    """Resolve an archive entry name below base.

    Args:
        base: Resolved extraction root.
        name: Entry name as stored in the archive.

    Returns:
        The output path, or None for entries naming the root itself.

    Raises:
        SecurityError: If the entry is absolute or escapes base.
    """
    if name.startswith(("/", "\\")) or PureWindowsPath(name).drive:
        raise SecurityError(f"Archive contains an absolute path entry: {name!r}")
    target = (base / name).resolve()
    if target == base:
        return None
    if base not in target.parents:
        raise SecurityError(f"Archive entry {name!r} resolves outside {base}")
    return target


def install_archive(bundle: bytes | Path, target_dir: Path) -> list[Path]:
    """Replace the contents of target_dir with the entries of a zip bundle.

    Args:
        bundle: Zip content, or the path of a zip file.
        target_dir: Directory to clear and populate.

    Returns:
        Paths of the files written.

    Raises:
        SecurityError: If any entry would land outside target_dir. Nothing is
            extracted in that case.
        IntegrityError: If the bundle is not a readable zip archive, or an
            entry fails its CRC or decompression check.
    """
    source = io.BytesIO(bundle) if isinstance(bundle, bytes) else bundle
    try:
        archive = zipfile.ZipFile(source)
    except zipfile.BadZipFile as e:
        raise IntegrityError(f"Invalid archive for {target_dir}: {e}") from e

    written: list[Path] = []
    with archive:
        clear_directory(target_dir)
        base = target_dir.resolve()
        plan = [(info, resolve_entry(base, info.filename)) for info in archive.infolist()]

        for info, target in plan:
            if target is None:
                continue
            if info.is_dir():
                target.mkdir(parents=True, exist_ok=True)
                continue
            target.parent.mkdir(parents=True, exist_ok=True)
            try:
                with archive.open(info, "r") as src, target.open("wb") as out:
                    shutil.copyfileobj(src, out)
            except (zipfile.BadZipFile, zlib.error, EOFError) as e:
                raise IntegrityError(f"Corrupt entry {info.filename!r} in archive for {target_dir}: {e}") from e
            written.append(target)

    logger.info(f"Extracted {len(written)} files into {target_dir}")
    return written
