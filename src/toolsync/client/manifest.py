"""Manifest and catalog document formats.

This module provides:
- parse_properties / dump_properties: Flat key=value documents used by the
  remote manifest and the per-project version stamp
- parse_catalog: The XML resource catalog listing optional resources
"""

from __future__ import annotations

import logging
import xml.etree.ElementTree as ET

from toolsync.core.errors import ManifestError
from toolsync.core.types import CatalogEntry

logger = logging.getLogger(__name__)

_ESCAPES = {"t": "\t", "n": "\n", "r": "\r", "f": "\f"}


def _unescape(text: str) -> str:
    out: list[str] = []
    i = 0
    while i < len(text):
        ch = text[i]
        if ch != "\\" or i + 1 >= len(text):
            out.append(ch)
            i += 1
            continue
        nxt = text[i + 1]
        if nxt == "u" and i + 6 <= len(text):
            try:
                out.append(chr(int(text[i + 2 : i + 6], 16)))
            except ValueError as e:
                raise ManifestError(f"Bad unicode escape: {text[i:i + 6]!r}") from e
            i += 6
            continue
        out.append(_ESCAPES.get(nxt, nxt))
        i += 2
    return "".join(out)


def _escape(text: str, is_key: bool) -> str:
    out: list[str] = []
    for ch in text:
        if ch == "\\":
            out.append("\\\\")
        elif ch in "=:#!" or (is_key and ch == " "):
            out.append("\\" + ch)
        elif ch == "\n":
            out.append("\\n")
        elif ch == "\t":
            out.append("\\t")
        elif ch == "\r":
            out.append("\\r")
        else:
            out.append(ch)
    return "".join(out)


def _logical_lines(text: str) -> list[str]:
    """Join backslash-continued lines, dropping blanks and comments."""
    lines: list[str] = []
    pending = ""
    for raw in text.splitlines():
        line = raw.lstrip()
        if not pending and (not line or line[0] in "#!"):
            continue
        trailing = len(line) - len(line.rstrip("\\"))
        if trailing % 2 == 1:
            pending += line[:-1]
            continue
        lines.append(pending + line)
        pending = ""
    if pending:
        lines.append(pending)
    return lines


def parse_properties(text: str) -> dict[str, str]:
    """Parse a properties document into a dictionary.

    Keys and values are separated by the first unescaped '=', ':' or
    whitespace. Later duplicates win.

    Args:
        text: Document contents.

    Returns:
        Mapping of keys to (unescaped) values.
    """
    result: dict[str, str] = {}
    for line in _logical_lines(text):
        key_end = len(line)
        i = 0
        while i < len(line):
            ch = line[i]
            if ch == "\\":
                i += 2
                continue
            if ch in "=: \t\f":
                key_end = i
                break
            i += 1
        key = line[:key_end]
        rest = line[key_end:].lstrip(" \t\f")
        if rest[:1] in ("=", ":"):
            rest = rest[1:].lstrip(" \t\f")
        result[_unescape(key)] = _unescape(rest)
    return result


def dump_properties(values: dict[str, str], comment: str | None = None) -> str:
    """Serialize a mapping as a properties document, keys sorted."""
    lines: list[str] = []
    if comment:
        lines.append(f"#{comment}")
    for key in sorted(values):
        lines.append(f"{_escape(key, True)}={_escape(values[key], False)}")
    return "\n".join(lines) + "\n"


def parse_catalog(content: bytes) -> list[CatalogEntry]:
    """Parse the resource catalog.

    Every <Skin> element contributes one entry; its "url" attribute is the
    resource path and the optional "version" attribute defaults to 0.

    Args:
        content: Raw XML document.

    Returns:
        Catalog entries in document order.

    Raises:
        ManifestError: If the document is not valid XML or a record is
            malformed.
    """
    try:
        root = ET.fromstring(content)
    except ET.ParseError as e:
        raise ManifestError(f"Invalid resource catalog: {e}") from e

    entries: list[CatalogEntry] = []
    for node in root.iter("Skin"):
        path = node.get("url")
        if not path:
            logger.warning("Skipping catalog record without a url attribute")
            continue
        raw_version = node.get("version", "0")
        try:
            version = int(raw_version)
        except ValueError as e:
            raise ManifestError(f"Invalid version {raw_version!r} for {path}") from e
        entries.append(CatalogEntry(path=path, version=version))
    return entries
