"""Tests for single-line and visual-range toggling."""

from neowiki_gtd.models import SingleLine, ValidationError, VisualRange
from neowiki_gtd.parser import build_tree
from neowiki_gtd.toggle import LineState, line_state, toggle, validate_range


def _toggle(lines, selection, **kwargs):
    return toggle(build_tree(lines), selection, **kwargs)


class _Recorder:
    """Stand-in for the host's "promote parents too?" prompt."""

    def __init__(self, answer):
        self.answer = answer
        self.calls = []

    def __call__(self, ancestors):
        self.calls.append([a.lnum for a in ancestors])
        return self.answer


# ---------------------------------------------------------------------------
# single line: existing tasks
# ---------------------------------------------------------------------------


def test_toggle_open_task():
    result = _toggle(["- [ ] a"], SingleLine(1))
    assert result.ok
    assert result.changes == {1: "- [x] a"}


def test_toggle_done_task():
    assert _toggle(["  1) [x] a"], SingleLine(1)).changes == {1: "  1) [ ] a"}


def test_toggle_cascades_to_all_descendants():
    lines = [
        "- [ ] A",
        "  - [ ] B",
        "    - [x] C",
        "  - [ ] D",
        "- [ ] E",
    ]
    result = _toggle(lines, SingleLine(1))
    assert result.changes == {
        1: "- [x] A",
        2: "  - [x] B",
        4: "  - [x] D",
    }


def test_cascade_skips_descendants_already_in_state():
    lines = ["- [ ] A", "  - [x] B", "  - [x] C"]
    assert _toggle(lines, SingleLine(1)).changes == {1: "- [x] A"}


def test_toggle_cascade_inverse():
    lines = ["- [x] A", "  - [x] B", "    - [x] C"]
    result = _toggle(lines, SingleLine(1))
    assert result.changes == {1: "- [ ] A", 2: "  - [ ] B", 3: "    - [ ] C"}


def test_cascade_passes_through_plain_items():
    lines = ["- [ ] A", "  - note", "    - [ ] deep"]
    result = _toggle(lines, SingleLine(1))
    assert result.changes == {1: "- [x] A", 3: "    - [x] deep"}


def test_toggle_child_does_not_touch_parent():
    lines = ["- [ ] Parent", "  - [x] Child A", "  - [ ] Child B"]
    assert _toggle(lines, SingleLine(3)).changes == {3: "  - [x] Child B"}


def test_toggle_non_list_line_is_noop():
    result = _toggle(["# Heading", "- [ ] a"], SingleLine(1))
    assert result.ok
    assert result.changes == {}
    assert _toggle(["- [ ] a"], SingleLine(5)).changes == {}


# ---------------------------------------------------------------------------
# single line: promotion
# ---------------------------------------------------------------------------


def test_promote_plain_item():
    assert _toggle(["  - plain item"], SingleLine(1)).changes == {1: "  - [ ] plain item"}


def test_promote_ordered_item():
    assert _toggle(["2. second"], SingleLine(1)).changes == {1: "2. [ ] second"}


def test_promote_with_all_children_done():
    lines = ["- parent", "  - [x] a", "  - [x] b"]
    assert _toggle(lines, SingleLine(1)).changes == {1: "- [x] parent"}


def test_promote_with_open_child():
    lines = ["- parent", "  - [x] a", "  - [ ] b"]
    assert _toggle(lines, SingleLine(1)).changes == {1: "- [ ] parent"}


def test_promote_with_only_plain_children():
    lines = ["- parent", "  - note"]
    assert _toggle(lines, SingleLine(1)).changes == {1: "- [ ] parent"}


def test_promote_ancestors_when_confirmed():
    lines = ["- top", "  - mid", "    - leaf"]
    confirm = _Recorder(True)
    result = _toggle(lines, SingleLine(3), confirm_ancestors=confirm)
    assert confirm.calls == [[2, 1]]
    assert result.changes == {
        3: "    - [ ] leaf",
        2: "  - [ ] mid",
        1: "- [ ] top",
    }


def test_promote_ancestors_declined():
    lines = ["- top", "  - mid", "    - leaf"]
    confirm = _Recorder(False)
    result = _toggle(lines, SingleLine(3), confirm_ancestors=confirm)
    assert confirm.calls == [[2, 1]]
    assert result.changes == {3: "    - [ ] leaf"}


def test_ancestor_chain_stops_at_task():
    lines = ["- [ ] top", "  - mid", "    - leaf"]
    confirm = _Recorder(True)
    result = _toggle(lines, SingleLine(3), confirm_ancestors=confirm)
    assert confirm.calls == [[2]]
    assert 1 not in result.changes


def test_no_prompt_without_plain_ancestors():
    confirm = _Recorder(True)
    _toggle(["- [ ] top", "  - leaf"], SingleLine(2), confirm_ancestors=confirm)
    _toggle(["- root"], SingleLine(1), confirm_ancestors=confirm)
    _toggle(["- [ ] top", "  - plain"], SingleLine(1), confirm_ancestors=confirm)
    assert confirm.calls == []


def test_ancestor_state_reads_staged_lines():
    lines = [
        "- top",
        "  - [x] a",
        "  - b",
        "    - [x] c",
    ]
    result = _toggle(lines, SingleLine(3), confirm_ancestors=_Recorder(True))
    assert result.changes == {3: "  - [x] b", 1: "- [x] top"}


# ---------------------------------------------------------------------------
# visual range
# ---------------------------------------------------------------------------


def test_range_mixed_states_rejected():
    result = _toggle(["- [ ] a", "- [x] b"], VisualRange(1, 2))
    assert not result.ok
    assert isinstance(result.error, ValidationError)
    assert result.error.reason == ValidationError.MIXED_TASK_STATES
    assert result.changes == {}


def test_range_uniform_open_tasks_toggled():
    result = _toggle(["- [ ] a", "- [ ] b"], VisualRange(1, 2))
    assert result.ok
    assert result.changes == {1: "- [x] a", 2: "- [x] b"}


def test_range_with_non_list_line_rejected():
    result = _toggle(["- [ ] a", "text", "- [ ] b"], VisualRange(1, 3))
    assert result.error.reason == ValidationError.MIXED_OR_NON_LIST
    assert result.changes == {}


def test_range_mixing_list_items_and_tasks_rejected():
    result = _toggle(["- a", "- [ ] b"], VisualRange(1, 2))
    assert result.error.reason == ValidationError.MIXED_TASK_STATES


def test_range_past_end_of_document_rejected():
    result = _toggle(["- [ ] a", "- [ ] b"], VisualRange(1, 4))
    assert result.error.reason == ValidationError.MIXED_OR_NON_LIST


def test_range_reversed_bounds():
    result = _toggle(["- [x] a", "- [x] b"], VisualRange(2, 1))
    assert result.changes == {1: "- [ ] a", 2: "- [ ] b"}


def test_range_promotes_without_prompt():
    confirm = _Recorder(True)
    result = _toggle(["- top", "  - a", "  - b"], VisualRange(2, 3), confirm_ancestors=confirm)
    assert confirm.calls == []
    assert result.changes == {2: "  - [ ] a", 3: "  - [ ] b"}


def test_range_nested_tasks_end_in_same_state():
    result = _toggle(["- [ ] A", "  - [ ] B", "    - [ ] C"], VisualRange(1, 2))
    assert result.changes == {1: "- [x] A", 2: "  - [x] B", 3: "    - [x] C"}


def test_range_nested_promotion_reads_staged_children():
    # The parent is promoted before its child, so it cannot see the child's
    # new checkbox yet; the follow-up repair pass settles it.
    lines = ["- p", "  - q", "    - [x] r"]
    result = _toggle(lines, VisualRange(1, 2))
    assert result.changes == {1: "- [ ] p", 2: "  - [x] q"}


# ---------------------------------------------------------------------------
# helpers
# ---------------------------------------------------------------------------


def test_line_state():
    tree = build_tree(["- [ ] a", "- [x] b", "- c", "d"])
    assert [line_state(tree, n) for n in range(1, 5)] == [
        LineState.NOT_DONE,
        LineState.DONE,
        LineState.LIST_ITEM,
        LineState.INVALID,
    ]


def test_validate_range_ok():
    tree = build_tree(["- a", "- b"])
    assert validate_range(tree, VisualRange(1, 2)) is None
