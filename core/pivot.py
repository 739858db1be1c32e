"""Three-level rollup of submissions by status.

The tree is root -> OU Level 0 -> OU Level 1 -> OU Level 2. Every node carries
a count per status (all statuses of the run, zero-initialized) and a total.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from enum import IntEnum
from typing import Dict, Iterable, Iterator, List, Optional, Sequence

from core.data import Row
from core.settings import BLANK_LABEL, PivotSettings
from core.status import rank_statuses, status_key, visible_statuses


logger = logging.getLogger(__name__)


class Level(IntEnum):
    ROOT = -1
    OU0 = 0
    OU1 = 1
    OU2 = 2

    @property
    def child(self) -> Optional["Level"]:
        return None if self is Level.OU2 else Level(self + 1)


@dataclass
class AggNode:
    level: Level
    key: Optional[str]
    by_status: Dict[str, int]
    total: int = 0
    children: Dict[str, "AggNode"] = field(default_factory=dict)

    @classmethod
    def empty(cls, level: Level, key: Optional[str], statuses: Sequence[str]) -> "AggNode":
        return cls(level=level, key=key, by_status={s: 0 for s in statuses})

    def add(self, status: str, inc: int = 1) -> None:
        self.total += inc
        self.by_status[status] = self.by_status.get(status, 0) + inc

    def child(self, key: str, statuses: Sequence[str]) -> "AggNode":
        child_level = self.level.child
        if child_level is None:
            raise ValueError(f"{self.level.name} nodes have no children")
        node = self.children.get(key)
        if node is None:
            node = AggNode.empty(child_level, key, statuses)
            self.children[key] = node
        return node

    @property
    def is_leaf(self) -> bool:
        return self.level is Level.OU2


@dataclass(frozen=True)
class PivotResult:
    statuses: List[str]
    visible_statuses: List[str]
    root: AggNode
    filtered_count: int
    total_count: int

    @property
    def is_empty(self) -> bool:
        return not self.root.children


def sort_group_keys(keys: Iterable[str], *, blank_label: str = BLANK_LABEL, blank_last: bool = False) -> List[str]:
    def sort_key(k: str):
        return (blank_last and k == blank_label, k.casefold(), k)

    return sorted(keys, key=sort_key)


def sorted_children(node: AggNode, blank_label: str = BLANK_LABEL) -> List[AggNode]:
    keys = sort_group_keys(node.children, blank_label=blank_label, blank_last=node.level is Level.ROOT)
    return [node.children[k] for k in keys]


def iter_nodes(root: AggNode, blank_label: str = BLANK_LABEL) -> Iterator[AggNode]:
    """Yield every non-root node in display order (parents before children)."""
    for child in sorted_children(root, blank_label):
        yield child
        yield from iter_nodes(child, blank_label)


def build_pivot(rows: Sequence[Row], settings: Optional[PivotSettings] = None) -> PivotResult:
    settings = settings or PivotSettings()
    filtered = [r for r in rows if r.application_key]
    statuses = rank_statuses((r.status for r in filtered), settings.status_priority)
    literal_by_key = {status_key(s): s for s in statuses}

    root = AggNode.empty(Level.ROOT, None, statuses)
    for r in filtered:
        status = literal_by_key[status_key(r.status)]
        root.add(status)
        n0 = root.child(r.ou0, statuses)
        n0.add(status)
        n1 = n0.child(r.ou1, statuses)
        n1.add(status)
        n2 = n1.child(r.ou2, statuses)
        n2.add(status)

    logger.debug("Aggregated %d of %d rows into %d top-level groups", len(filtered), len(rows), len(root.children))
    return PivotResult(
        statuses=statuses,
        visible_statuses=visible_statuses(statuses, settings.hidden_statuses),
        root=root,
        filtered_count=len(filtered),
        total_count=len(rows),
    )


def check_invariants(node: AggNode) -> List[str]:
    """Return a description of every broken count invariant under ``node``."""
    problems: List[str] = []
    label = node.key if node.key is not None else "root"
    if node.total != sum(node.by_status.values()):
        problems.append(f"{label}: total {node.total} != sum of statuses {sum(node.by_status.values())}")
    if node.children:
        child_total = sum(c.total for c in node.children.values())
        if child_total != node.total:
            problems.append(f"{label}: total {node.total} != children total {child_total}")
        for status, count in node.by_status.items():
            child_count = sum(c.by_status.get(status, 0) for c in node.children.values())
            if child_count != count:
                problems.append(f"{label}: {status} {count} != children {child_count}")
    for child in node.children.values():
        if child.level != node.level + 1:
            problems.append(f"{child.key}: level {child.level.name} under {node.level.name}")
        problems.extend(check_invariants(child))
    return problems
