"""Nested completion progress for task trees."""

from __future__ import annotations

from .models import ChildTaskStats, GtdConfig, ProgressResult, TaskNode, TaskTree


def _own_fraction(node: TaskNode) -> float:
    return 1.0 if node.is_task and node.is_done else 0.0


def progress(node: TaskNode) -> ProgressResult:
    """Compute the completion fraction of ``node``.

    A node with no task children falls back to its own checkbox state.
    Otherwise its fraction is the mean of its task children's fractions.
    """
    if not node.children:
        return ProgressResult(fraction=_own_fraction(node), has_task_children=False)

    stats = child_task_stats(node)
    if stats.task_child_count == 0:
        return ProgressResult(fraction=_own_fraction(node), has_task_children=True)

    return ProgressResult(
        fraction=stats.total_progress / stats.task_child_count,
        has_task_children=True,
    )


def child_task_stats(node: TaskNode) -> ChildTaskStats:
    """Aggregate progress over the direct task children of ``node``.

    ``all_done`` is False when there are no task children at all.
    """
    total = 0.0
    count = 0
    all_done = True
    for child in node.children:
        if not child.is_task:
            continue
        count += 1
        total += progress(child).fraction
        if not child.is_done:
            all_done = False
    return ChildTaskStats(
        total_progress=total,
        task_child_count=count,
        all_done=all_done and count > 0,
    )


def compute_progress(tree: TaskTree, lnum: int) -> ProgressResult | None:
    """Progress of the node on line ``lnum``, or None if it is not a list item."""
    node = tree.get(lnum)
    if node is None:
        return None
    return progress(node)


def progress_by_lnum(tree: TaskTree) -> dict[int, float]:
    """Fractions for every task node, keyed by line number."""
    return {node.lnum: progress(node).fraction for node in tree.tasks}


def progress_annotations(
    tree: TaskTree, config: GtdConfig | None = None
) -> dict[int, str]:
    """End-of-line annotation text for partially complete parent tasks.

    Tasks without children and tasks at 100% get nothing.
    """
    config = config or GtdConfig()
    if not config.show_progress:
        return {}

    annotations: dict[int, str] = {}
    for node in tree.tasks:
        result = progress(node)
        if result.has_task_children and result.fraction < 1.0:
            annotations[node.lnum] = config.progress_format.format(
                percent=result.fraction * 100
            )
    return annotations
