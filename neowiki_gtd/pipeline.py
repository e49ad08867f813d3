"""Update pipeline: build, repair, rebuild and annotate a document snapshot."""

from __future__ import annotations

import logging
from collections.abc import Sequence
from dataclasses import dataclass, field

from .consistency import repair
from .models import GtdConfig, Selection, TaskTree, ValidationError
from .parser import build_tree
from .progress import progress_annotations
from .toggle import ConfirmAncestors, toggle
from .writeback import apply_changes

logger = logging.getLogger(__name__)


@dataclass
class PipelineResult:
    """Stable document state after an update."""

    lines: list[str]
    tree: TaskTree
    toggled: dict[int, str] = field(default_factory=dict)
    repaired: dict[int, str] = field(default_factory=dict)
    annotations: dict[int, str] = field(default_factory=dict)
    error: ValidationError | None = None

    @property
    def changed_lines(self) -> dict[int, str]:
        """Every line touched by the toggle or the repair, with its final text."""
        merged = {**self.toggled, **self.repaired}
        return {lnum: self.lines[lnum - 1] for lnum in sorted(merged)}


def run_update_pipeline(
    lines: Sequence[str],
    config: GtdConfig | None = None,
    source_path: str = "",
) -> PipelineResult:
    """Bring a document to a consistent state and compute its annotations."""
    tree = build_tree(lines, source_path=source_path)
    repaired = repair(tree)
    new_lines = list(lines)
    if repaired:
        logger.debug("[PIPELINE] repair changed %d line(s)", len(repaired))
        new_lines = apply_changes(new_lines, repaired)
        tree = build_tree(new_lines, source_path=source_path)

    return PipelineResult(
        lines=new_lines,
        tree=tree,
        repaired=repaired,
        annotations=progress_annotations(tree, config),
    )


def toggle_and_stabilize(
    lines: Sequence[str],
    selection: Selection,
    config: GtdConfig | None = None,
    confirm_ancestors: ConfirmAncestors | None = None,
    source_path: str = "",
) -> PipelineResult:
    """Toggle ``selection`` and run the update pipeline on the result.

    On a validation error the document is returned unchanged.
    """
    tree = build_tree(lines, source_path=source_path)
    outcome = toggle(tree, selection, confirm_ancestors=confirm_ancestors)
    if not outcome.ok:
        return PipelineResult(
            lines=list(lines),
            tree=tree,
            annotations=progress_annotations(tree, config),
            error=outcome.error,
        )

    toggled_lines = apply_changes(lines, outcome.changes)
    result = run_update_pipeline(toggled_lines, config, source_path=source_path)
    result.toggled = outcome.changes
    return result
