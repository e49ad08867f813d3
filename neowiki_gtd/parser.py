"""Parser for markdown list items and GTD task trees."""

from __future__ import annotations

import re
from collections.abc import Sequence
from pathlib import Path

from .models import LineKind, ParsedLineInfo, TaskNode, TaskTree

# Regex patterns. A marker is an unordered bullet or an ordered "12." / "12)".
_MARKER = r"(?:[*+-]|\d+[.)])"
RE_TASK_PREFIX = re.compile(rf"^(\s*){_MARKER}\s*\[(.)\]\s+", re.ASCII | re.DOTALL)
RE_LIST_PREFIX = re.compile(rf"^(\s*){_MARKER}\s+", re.ASCII)

DONE_CHAR = "x"
OPEN_CHAR = " "


def classify_line(line: str) -> ParsedLineInfo | None:
    """Classify a line as a task, a plain list item, or neither.

    Task markers take priority over plain list markers. Returns None for
    anything that is not a list item.
    """
    m = RE_TASK_PREFIX.match(line)
    if m:
        return ParsedLineInfo(
            kind=LineKind.TASK,
            indent_level=len(m.group(1)),
            content_start_column=m.end() + 1,
            is_done=m.group(2) == DONE_CHAR,
            checkbox_column=m.start(2) + 1,
        )

    m = RE_LIST_PREFIX.match(line)
    if m:
        return ParsedLineInfo(
            kind=LineKind.LIST_ITEM,
            indent_level=len(m.group(1)),
            content_start_column=m.end() + 1,
        )

    return None


def build_tree(lines: Sequence[str], source_path: str = "") -> TaskTree:
    """Build a TaskTree from the full document, nesting by indentation."""
    tree = TaskTree(line_count=len(lines), source_path=source_path)

    # Pass 1: one node per list item
    for lnum, line in enumerate(lines, start=1):
        info = classify_line(line)
        if info is None:
            continue
        tree.nodes_by_lnum[lnum] = TaskNode(
            lnum=lnum,
            line=line,
            indent_level=info.indent_level,
            content_start_column=info.content_start_column,
            is_task=info.is_task,
            is_done=info.is_done,
            checkbox_column=info.checkbox_column,
        )

    # Pass 2: link nodes to the nearest shallower node seen so far
    last_seen_at_level: dict[int, TaskNode] = {}
    for lnum in range(1, len(lines) + 1):
        node = tree.nodes_by_lnum.get(lnum)
        if node is None:
            continue

        level = node.indent_level
        last_seen_at_level[level] = node
        # Deeper entries belong to a closed branch
        for stale in [lv for lv in last_seen_at_level if lv > level]:
            del last_seen_at_level[stale]

        for parent_level in range(level - 1, -1, -1):
            parent = last_seen_at_level.get(parent_level)
            if parent is not None:
                node.parent = parent
                parent.children.append(node)
                break
        else:
            tree.roots.append(node)

    return tree


def parse_markdown(content: str, source_path: str = "") -> TaskTree:
    """Parse a markdown string into a TaskTree."""
    return build_tree(content.splitlines(), source_path=source_path)


def parse_file(path: str | Path) -> TaskTree:
    """Parse a markdown file from disk."""
    p = Path(path)
    content = p.read_text(encoding="utf-8")
    return parse_markdown(content, source_path=str(p))


def set_checkbox(line: str, done: bool) -> str:
    """Return ``line`` with its checkbox set to ``done``.

    Only the character inside the brackets changes. Lines that are not tasks,
    or that are already in the requested state, come back unchanged.
    """
    info = classify_line(line)
    if info is None or not info.is_task or info.is_done == done:
        return line
    col = info.checkbox_column - 1
    return line[:col] + (DONE_CHAR if done else OPEN_CHAR) + line[col + 1:]


def insert_checkbox(line: str, done: bool = False) -> str:
    """Promote a plain list item to a task by inserting a checkbox."""
    info = classify_line(line)
    if info is None or info.is_task:
        return line
    pos = info.content_start_column - 1
    marker = f"[{DONE_CHAR if done else OPEN_CHAR}] "
    return line[:pos] + marker + line[pos:]
