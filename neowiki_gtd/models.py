"""Data models for GTD task trees parsed from markdown lines."""

from __future__ import annotations

import enum
from dataclasses import dataclass, field


class LineKind(enum.Enum):
    TASK = "task"
    LIST_ITEM = "list_item"


@dataclass(frozen=True)
class ParsedLineInfo:
    """Classification of a single line.

    Columns are 1-based, matching editor line/column conventions.
    """

    kind: LineKind
    indent_level: int
    content_start_column: int
    is_done: bool = False
    checkbox_column: int | None = None  # column of the char inside [ ]

    @property
    def is_task(self) -> bool:
        return self.kind is LineKind.TASK


@dataclass(eq=False)
class TaskNode:
    """A list item or task, linked into the tree by indentation."""

    lnum: int
    line: str
    indent_level: int
    content_start_column: int
    is_task: bool
    is_done: bool = False
    checkbox_column: int | None = None
    parent: TaskNode | None = field(default=None, repr=False)
    children: list[TaskNode] = field(default_factory=list, repr=False)

    @property
    def task_children(self) -> list[TaskNode]:
        return [c for c in self.children if c.is_task]

    def descendants(self) -> list[TaskNode]:
        """Return all descendants in document order."""
        result: list[TaskNode] = []
        for child in self.children:
            result.append(child)
            result.extend(child.descendants())
        return result

    def ancestors(self) -> list[TaskNode]:
        """Return the parent chain, nearest first."""
        result: list[TaskNode] = []
        node = self.parent
        while node is not None:
            result.append(node)
            node = node.parent
        return result


@dataclass
class TaskTree:
    """The forest of list items for one document snapshot."""

    roots: list[TaskNode] = field(default_factory=list)
    nodes_by_lnum: dict[int, TaskNode] = field(default_factory=dict)
    line_count: int = 0
    source_path: str = ""

    def get(self, lnum: int) -> TaskNode | None:
        return self.nodes_by_lnum.get(lnum)

    @property
    def tasks(self) -> list[TaskNode]:
        return [n for _, n in sorted(self.nodes_by_lnum.items()) if n.is_task]

    def line(self, lnum: int) -> str | None:
        node = self.nodes_by_lnum.get(lnum)
        return node.line if node is not None else None


@dataclass(frozen=True)
class ProgressResult:
    fraction: float
    has_task_children: bool


@dataclass(frozen=True)
class ChildTaskStats:
    total_progress: float
    task_child_count: int
    all_done: bool


@dataclass(frozen=True)
class SingleLine:
    lnum: int


@dataclass(frozen=True)
class VisualRange:
    start_lnum: int
    end_lnum: int

    def lnums(self) -> range:
        lo, hi = sorted((self.start_lnum, self.end_lnum))
        return range(lo, hi + 1)


Selection = SingleLine | VisualRange


class ValidationError(Exception):
    """A batch selection that cannot be toggled as a whole."""

    MIXED_OR_NON_LIST = "mixed-or-non-list selection"
    MIXED_TASK_STATES = "mixed task states"

    def __init__(self, reason: str) -> None:
        super().__init__(reason)
        self.reason = reason


@dataclass
class ToggleResult:
    """Outcome of a toggle: staged line replacements or a validation error."""

    changes: dict[int, str] = field(default_factory=dict)
    error: ValidationError | None = None

    @property
    def ok(self) -> bool:
        return self.error is None


@dataclass
class GtdConfig:
    """Host-facing settings for progress annotations."""

    show_progress: bool = True
    progress_format: str = " [ {percent:.0f}% ]"
