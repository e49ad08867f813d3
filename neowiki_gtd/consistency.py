"""Bottom-up repair of parent task states against their task children."""

from __future__ import annotations

import logging

from .models import TaskNode, TaskTree
from .parser import set_checkbox

logger = logging.getLogger(__name__)


def repair(tree: TaskTree) -> dict[int, str]:
    """Compute the line replacements that make every parent task consistent.

    A task with at least one task child must be done exactly when all of its
    task children are done. A task whose children are all plain list items
    has nothing to be complete against and is reopened. Leaf tasks keep
    their own state.

    Nodes are visited from the bottom of the document up, so every child has
    its final state staged before its parent is evaluated. Returns an empty
    dict when the tree is already consistent.
    """
    changes: dict[int, str] = {}
    staged_done: dict[int, bool] = {}

    def is_done(node: TaskNode) -> bool:
        return staged_done.get(node.lnum, node.is_done)

    for lnum in sorted(tree.nodes_by_lnum, reverse=True):
        node = tree.nodes_by_lnum[lnum]
        if not node.is_task:
            continue

        if not node.children:
            continue

        task_children = node.task_children
        should_be_done = bool(task_children) and all(
            is_done(c) for c in task_children
        )
        if should_be_done == node.is_done:
            continue

        staged_done[lnum] = should_be_done
        changes[lnum] = set_checkbox(node.line, should_be_done)
        logger.debug(
            "[REPAIR] line %d -> %s", lnum, "done" if should_be_done else "open"
        )

    return changes
