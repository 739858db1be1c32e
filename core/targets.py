"""Year-over-year targets derived from a prior-period dataset.

Each target is ``ceil(prior_count * growth_factor)``. Counts only include rows
with an application key; statuses do not matter here.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from decimal import ROUND_CEILING, Decimal
from typing import Dict, Optional, Sequence

from core.data import Row
from core.settings import GROWTH_FACTOR


def growth_target(count: int, growth_factor: float = GROWTH_FACTOR) -> int:
    # Decimal keeps 90 * 1.1 at exactly 99 instead of 99.00000000000001.
    value = Decimal(str(count)) * Decimal(str(growth_factor))
    return int(value.to_integral_value(rounding=ROUND_CEILING))


@dataclass(frozen=True)
class TargetSet:
    per_group: Dict[str, int] = field(default_factory=dict)
    grand_target: int = 0
    prior_grand_count: int = 0
    prior_group_counts: Dict[str, int] = field(default_factory=dict)
    growth_factor: float = GROWTH_FACTOR


def compute_targets(prior_rows: Sequence[Row], growth_factor: float = GROWTH_FACTOR) -> TargetSet:
    counts: Dict[str, int] = {}
    grand = 0
    for r in prior_rows:
        if not r.application_key:
            continue
        grand += 1
        counts[r.ou0] = counts.get(r.ou0, 0) + 1

    return TargetSet(
        per_group={k: growth_target(c, growth_factor) for k, c in counts.items()},
        grand_target=growth_target(grand, growth_factor),
        prior_grand_count=grand,
        prior_group_counts=counts,
        growth_factor=growth_factor,
    )


def group_target(
    targets: Optional[TargetSet],
    key: str,
    current_total: int,
    growth_factor: float = GROWTH_FACTOR,
) -> int:
    if targets is not None and key in targets.per_group:
        return targets.per_group[key]
    return growth_target(current_total, growth_factor)


def grand_target(targets: Optional[TargetSet], current_total: int, growth_factor: float = GROWTH_FACTOR) -> int:
    if targets is not None:
        return targets.grand_target
    return growth_target(current_total, growth_factor)


def progress(total: int, target: Optional[int]) -> Optional[float]:
    if not target:
        return None
    return total / target
