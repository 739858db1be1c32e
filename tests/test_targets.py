from __future__ import annotations

from core.targets import TargetSet, compute_targets, grand_target, group_target, growth_target, progress
from tests.helpers import make_row


def test_growth_target_rounds_up_exactly():
    assert growth_target(90) == 99
    assert growth_target(7) == 8
    assert growth_target(10) == 11
    assert growth_target(0) == 0
    assert growth_target(100, 1.25) == 125


def test_compute_targets_counts_keyed_rows(prior_rows):
    targets = compute_targets(prior_rows)
    assert targets.prior_grand_count == 11
    assert targets.grand_target == 13
    assert targets.prior_group_counts == {"Sales": 7, "Engineering": 3, "Legacy": 1}
    assert targets.per_group == {"Sales": 8, "Engineering": 4, "Legacy": 2}


def test_grand_target_from_ninety_prior_rows():
    rows = [make_row("G", "a", "b", f"K{i}", "Approved") for i in range(90)]
    targets = compute_targets(rows)
    assert targets.grand_target == 99
    assert targets.per_group == {"G": 99}


def test_group_without_prior_counterpart_falls_back_to_current_total(prior_rows):
    targets = compute_targets(prior_rows)
    assert group_target(targets, "Sales", current_total=50) == 8
    assert group_target(targets, "Marketing", current_total=20) == 22
    assert group_target(targets, "Marketing", current_total=20) != targets.grand_target


def test_unavailable_targets_fall_back_locally():
    assert group_target(None, "Sales", current_total=7) == 8
    assert grand_target(None, current_total=90) == 99


def test_grand_target_ignores_current_total_when_prior_known(prior_rows):
    targets = compute_targets(prior_rows)
    assert grand_target(targets, current_total=1000) == 13


def test_empty_prior_still_yields_grand_target():
    targets = compute_targets([])
    assert targets == TargetSet(grand_target=0, prior_grand_count=0)
    assert grand_target(targets, current_total=5) == 0


def test_progress():
    assert progress(5, 10) == 0.5
    assert progress(5, 0) is None
    assert progress(5, None) is None
