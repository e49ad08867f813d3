"""CLI entry point for neowiki-gtd."""

from __future__ import annotations

import argparse
import json
import logging
import sys
from collections.abc import Sequence
from pathlib import Path

from .models import GtdConfig, SingleLine, TaskNode, VisualRange
from .pipeline import run_update_pipeline, toggle_and_stabilize
from .progress import progress_by_lnum
from .writeback import read_lines, write_changes


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(
        prog="neowiki-gtd",
        description="Toggle and repair GTD task lists in a markdown wiki page.",
    )
    parser.add_argument(
        "markdown_file",
        type=str,
        help="Path to the markdown page",
    )
    action = parser.add_mutually_exclusive_group()
    action.add_argument(
        "--toggle",
        type=int,
        default=None,
        metavar="LNUM",
        help="Toggle the task (or promote the list item) on this 1-based line",
    )
    action.add_argument(
        "--toggle-range",
        type=int,
        nargs=2,
        default=None,
        metavar=("START", "END"),
        help="Toggle every line in an inclusive range; all lines must share one state",
    )
    parser.add_argument(
        "--promote-ancestors",
        action="store_true",
        help="When promoting a single list item, also promote its plain list parents",
    )
    parser.add_argument(
        "--dry-run",
        action="store_true",
        help="Log what would change without writing the file",
    )
    parser.add_argument(
        "--no-progress",
        action="store_true",
        help="Do not report progress annotations",
    )
    parser.add_argument(
        "--verbose", "-v",
        action="store_true",
        help="Enable verbose logging",
    )
    parser.add_argument(
        "--output-json",
        type=str,
        default=None,
        help="Write the changed lines and progress values to a JSON file",
    )

    args = parser.parse_args(argv)

    # Configure logging
    level = logging.DEBUG if args.verbose else logging.INFO
    logging.basicConfig(
        level=level,
        format="%(levelname)s %(message)s",
    )

    # Validate file exists
    md_path = Path(args.markdown_file)
    if not md_path.is_file():
        logging.error("Markdown file not found: %s", md_path)
        return 1

    config = GtdConfig(show_progress=not args.no_progress)
    lines = read_lines(md_path)
    logging.debug("Read %d lines from %s", len(lines), md_path)

    def confirm_ancestors(ancestors: Sequence[TaskNode]) -> bool:
        if args.promote_ancestors:
            logging.info(
                "Promoting %d parent item(s): %s",
                len(ancestors),
                ", ".join(str(a.lnum) for a in ancestors),
            )
        return args.promote_ancestors

    if args.toggle is not None:
        result = toggle_and_stabilize(
            lines, SingleLine(args.toggle), config,
            confirm_ancestors=confirm_ancestors, source_path=str(md_path),
        )
    elif args.toggle_range is not None:
        start, end = args.toggle_range
        result = toggle_and_stabilize(
            lines, VisualRange(start, end), config, source_path=str(md_path),
        )
    else:
        result = run_update_pipeline(lines, config, source_path=str(md_path))

    if result.error is not None:
        logging.error("Cannot toggle selection: %s", result.error.reason)

    changed = result.changed_lines
    if args.dry_run:
        for lnum, text in changed.items():
            logging.info("[DRY RUN] line %d -> %s", lnum, text)
        if not changed:
            logging.info("[DRY RUN] No changes for %s", md_path)
    elif write_changes(md_path, changed):
        logging.info("Updated %d line(s) in %s", len(changed), md_path)
    else:
        logging.info("No changes needed for %s", md_path)

    for lnum, text in sorted(result.annotations.items()):
        logging.info("%d:%s", lnum, text)

    # Write JSON output for CI
    if args.output_json:
        out = {
            "changed_lines": {str(k): v for k, v in changed.items()},
            "progress": {
                str(k): v for k, v in progress_by_lnum(result.tree).items()
            } if config.show_progress else {},
            "error": result.error.reason if result.error else None,
        }
        Path(args.output_json).write_text(json.dumps(out, indent=2))
        logging.info("Results written to %s", args.output_json)

    return 1 if result.error else 0


if __name__ == "__main__":
    sys.exit(main())
