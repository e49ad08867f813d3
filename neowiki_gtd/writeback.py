"""Apply staged line replacements to a document or a markdown file."""

from __future__ import annotations

import logging
from collections.abc import Mapping, Sequence
from pathlib import Path

logger = logging.getLogger(__name__)


def apply_changes(lines: Sequence[str], changes: Mapping[int, str]) -> list[str]:
    """Return a copy of ``lines`` with 1-based replacements applied.

    Replacements outside the document are ignored.
    """
    new_lines = list(lines)
    for lnum, text in changes.items():
        if 1 <= lnum <= len(new_lines):
            new_lines[lnum - 1] = text
        else:
            logger.warning("[WRITEBACK] ignoring replacement for line %d", lnum)
    return new_lines


def read_lines(path: str | Path) -> list[str]:
    """Read a markdown file as a list of lines without line endings."""
    return Path(path).read_text(encoding="utf-8").splitlines()


def write_changes(path: str | Path, changes: Mapping[int, str]) -> bool:
    """Write line replacements into a file in place.

    Line endings of the original file are preserved per line.

    Returns:
        True if the file was modified, False if no changes were needed.
    """
    if not changes:
        return False

    p = Path(path)
    with p.open(encoding="utf-8", newline="") as fh:
        lines = fh.read().splitlines(keepends=True)
    modified = False

    for lnum, text in sorted(changes.items()):
        if not 1 <= lnum <= len(lines):
            logger.warning("[WRITEBACK] %s has no line %d", p, lnum)
            continue
        old = lines[lnum - 1]
        body = old.rstrip("\r\n")
        eol = old[len(body):]
        if body == text:
            continue
        lines[lnum - 1] = text + eol
        modified = True
        logger.debug("[WRITEBACK] %s:%d %r -> %r", p, lnum, body, text)

    if modified:
        with p.open("w", encoding="utf-8", newline="") as fh:
            fh.write("".join(lines))

    return modified
