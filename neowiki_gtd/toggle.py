"""Single-line and visual-range task toggling."""

from __future__ import annotations

import enum
import logging
from collections.abc import Callable, Sequence

from .models import (
    Selection,
    SingleLine,
    TaskNode,
    TaskTree,
    ToggleResult,
    ValidationError,
    VisualRange,
)
from .parser import classify_line, insert_checkbox, set_checkbox

logger = logging.getLogger(__name__)

ConfirmAncestors = Callable[[Sequence[TaskNode]], bool]


class LineState(enum.Enum):
    INVALID = "invalid"
    LIST_ITEM = "list_item"
    DONE = "done"
    NOT_DONE = "not_done"


def line_state(tree: TaskTree, lnum: int) -> LineState:
    node = tree.get(lnum)
    if node is None:
        return LineState.INVALID
    if not node.is_task:
        return LineState.LIST_ITEM
    return LineState.DONE if node.is_done else LineState.NOT_DONE


def validate_range(tree: TaskTree, selection: VisualRange) -> ValidationError | None:
    """Check that every line in the range is a list item in the same state."""
    states = {line_state(tree, lnum) for lnum in selection.lnums()}
    if LineState.INVALID in states:
        return ValidationError(ValidationError.MIXED_OR_NON_LIST)
    if len(states) > 1:
        return ValidationError(ValidationError.MIXED_TASK_STATES)
    return None


class _Staging:
    """Replacements staged for one toggle, read back as the "future" document."""

    def __init__(self, tree: TaskTree) -> None:
        self.tree = tree
        self.changes: dict[int, str] = {}

    def future_line(self, node: TaskNode) -> str:
        return self.changes.get(node.lnum, node.line)

    def stage(self, node: TaskNode, text: str) -> None:
        if text != self.future_line(node):
            self.changes[node.lnum] = text

    def all_task_children_done(self, node: TaskNode) -> bool:
        has_task_children = False
        for child in node.children:
            info = classify_line(self.future_line(child))
            if info is None or not info.is_task:
                continue
            has_task_children = True
            if not info.is_done:
                return False
        return has_task_children

    def promote(self, node: TaskNode) -> None:
        done = self.all_task_children_done(node)
        self.stage(node, insert_checkbox(self.future_line(node), done))
        logger.debug(
            "[TOGGLE] promoted line %d (%s)", node.lnum, "done" if done else "open"
        )

    def flip(self, node: TaskNode) -> None:
        done = not node.is_done
        self.stage(node, set_checkbox(self.future_line(node), done))
        logger.debug(
            "[TOGGLE] line %d -> %s", node.lnum, "done" if done else "open"
        )
        self.cascade(node, done)

    def cascade(self, node: TaskNode, done: bool) -> None:
        for child in node.descendants():
            if child.is_task:
                self.stage(child, set_checkbox(self.future_line(child), done))

    def apply(self, node: TaskNode) -> None:
        if node.is_task:
            self.flip(node)
        else:
            self.promote(node)


def _promotable_ancestors(node: TaskNode) -> list[TaskNode]:
    """Consecutive non-task ancestors of ``node``, nearest first."""
    result: list[TaskNode] = []
    for ancestor in node.ancestors():
        if ancestor.is_task:
            break
        result.append(ancestor)
    return result


def toggle(
    tree: TaskTree,
    selection: Selection,
    confirm_ancestors: ConfirmAncestors | None = None,
) -> ToggleResult:
    """Toggle the task(s) under ``selection``.

    Plain list items are promoted to tasks; existing tasks flip and cascade
    their new state to every task below them. A visual range must be uniform
    (all plain items, all done, or all open) or nothing is changed and the
    result carries a ValidationError.

    ``confirm_ancestors`` is consulted after a single-line promotion when the
    item sits under plain list items; returning True promotes those too.

    The returned replacements must be applied as one update, followed by a
    rebuild and a repair pass.
    """
    staging = _Staging(tree)

    if isinstance(selection, VisualRange):
        error = validate_range(tree, selection)
        if error is not None:
            logger.info("[TOGGLE] rejected lines %d-%d: %s",
                        selection.start_lnum, selection.end_lnum, error.reason)
            return ToggleResult(error=error)
        for lnum in selection.lnums():
            staging.apply(tree.nodes_by_lnum[lnum])
        return ToggleResult(changes=staging.changes)

    if not isinstance(selection, SingleLine):
        raise TypeError(f"unsupported selection: {selection!r}")

    node = tree.get(selection.lnum)
    if node is None:
        logger.debug("[TOGGLE] line %d is not a list item", selection.lnum)
        return ToggleResult()

    staging.apply(node)
    if not node.is_task and confirm_ancestors is not None:
        ancestors = _promotable_ancestors(node)
        if ancestors and confirm_ancestors(ancestors):
            for ancestor in ancestors:
                staging.promote(ancestor)

    return ToggleResult(changes=staging.changes)
