from __future__ import annotations

import random

import pytest

from core.pivot import AggNode, Level, build_pivot, check_invariants, iter_nodes, sort_group_keys, sorted_children
from core.settings import PivotSettings
from tests.helpers import make_row


def _shape(node: AggNode):
    return (
        node.level,
        node.key,
        dict(node.by_status),
        node.total,
        [_shape(c) for c in sorted_children(node)],
    )


def test_counts_are_consistent_at_every_node(sample_rows):
    result = build_pivot(sample_rows)
    assert check_invariants(result.root) == []
    for node in iter_nodes(result.root):
        assert node.total == sum(node.by_status.values())
        assert set(node.by_status) == set(result.statuses)


def test_rows_without_key_are_excluded(sample_rows):
    result = build_pivot(sample_rows)
    keyed = [r for r in sample_rows if r.application_key]
    assert result.root.total == len(keyed) == 8
    assert result.filtered_count == 8
    assert result.total_count == len(sample_rows)
    assert "Apps" not in result.root.children["Engineering"].children


def test_tree_levels_and_counts(sample_rows):
    root = build_pivot(sample_rows).root
    assert root.level is Level.ROOT and root.key is None
    sales = root.children["Sales"]
    assert sales.level is Level.OU0
    assert sales.total == 4
    assert sales.by_status["Approved"] == 2
    east = sales.children["East"]
    assert east.level is Level.OU1 and east.total == 3
    boston = east.children["Boston"]
    assert boston.level is Level.OU2 and boston.is_leaf
    assert boston.by_status == {"Draft": 0, "Submitted": 1, "Approved": 1, "Rejected": 0, "Cancelled": 0, "Zeta": 0}
    assert boston.children == {}


def test_status_columns_follow_priority(sample_rows):
    result = build_pivot(sample_rows)
    assert result.statuses == ["Draft", "Submitted", "Approved", "Rejected", "Cancelled", "Zeta"]


def test_blank_group_sorts_last():
    rows = [
        make_row("(blank)", "(blank)", "(blank)", "K1", "Submitted"),
        make_row("Zulu", "a", "b", "K2", "Submitted"),
        make_row("Alpha", "a", "b", "K3", "Submitted"),
        make_row("(blank)", "(blank)", "(blank)", "K4", "Approved"),
    ]
    result = build_pivot(rows)
    top = [n.key for n in sorted_children(result.root)]
    assert top == ["Alpha", "Zulu", "(blank)"]
    blank = result.root.children["(blank)"]
    assert blank.total == 2
    assert list(blank.children) == ["(blank)"]


def test_sort_group_keys_only_moves_blank_when_asked():
    keys = ["b", "(blank)", "A", "c"]
    assert sort_group_keys(keys) == ["(blank)", "A", "b", "c"]
    assert sort_group_keys(keys, blank_last=True) == ["A", "b", "c", "(blank)"]


def test_case_variants_of_a_status_share_one_column():
    rows = [
        make_row("Sales", "East", "Boston", "K1", "Approved"),
        make_row("Sales", "East", "Boston", "K2", "approved "),
    ]
    result = build_pivot(rows)
    assert result.statuses == ["Approved"]
    assert result.root.by_status == {"Approved": 2}


def test_hidden_statuses_still_count_in_totals(sample_rows):
    result = build_pivot(sample_rows, PivotSettings(hidden_statuses=("Draft",)))
    assert "Draft" not in result.visible_statuses
    assert "Draft" in result.statuses
    assert result.root.total == 8
    assert result.root.by_status["Draft"] == 1


def test_build_is_idempotent_and_order_independent(sample_rows):
    first = build_pivot(sample_rows)
    second = build_pivot(sample_rows)
    assert _shape(first.root) == _shape(second.root)
    assert first.statuses == second.statuses

    shuffled = list(sample_rows)
    random.Random(7).shuffle(shuffled)
    third = build_pivot(shuffled)
    assert _shape(third.root) == _shape(first.root)
    assert third.statuses == first.statuses


def test_empty_input_gives_empty_pivot():
    result = build_pivot([])
    assert result.is_empty
    assert result.root.total == 0
    assert result.statuses == []


def test_leaf_nodes_cannot_grow_children():
    leaf = AggNode.empty(Level.OU2, "x", ["Draft"])
    with pytest.raises(ValueError):
        leaf.child("y", ["Draft"])


def test_check_invariants_reports_tampering(sample_rows):
    root = build_pivot(sample_rows).root
    root.children["Sales"].total += 1
    problems = check_invariants(root)
    assert any("Sales" in p for p in problems)
    assert any(p.startswith("root") for p in problems)
