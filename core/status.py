"""Status column ordering.

Statuses are ranked by their position in a canonical business workflow list.
Anything outside that list sorts after every ranked status, alphabetically.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, Iterable, List, Sequence, Tuple

from core.data import normalize_header
from core.settings import STATUS_PRIORITY

UNRANKED = 9999


def status_key(value: object) -> str:
    return normalize_header(value)


@dataclass(frozen=True)
class StatusOrdering:
    priority: Tuple[str, ...] = STATUS_PRIORITY

    def __post_init__(self) -> None:
        index: Dict[str, int] = {}
        for i, status in enumerate(self.priority):
            index.setdefault(status_key(status), i)
        object.__setattr__(self, "_index", index)

    def rank(self, status: str) -> int:
        return self._index.get(status_key(status), UNRANKED)  # type: ignore[attr-defined]

    def sort_key(self, status: str) -> Tuple[int, str, str]:
        return (self.rank(status), status_key(status), status)

    def compare(self, a: str, b: str) -> int:
        ka, kb = self.sort_key(a), self.sort_key(b)
        return (ka > kb) - (ka < kb)


def dedupe_statuses(statuses: Iterable[str]) -> List[str]:
    seen: Dict[str, str] = {}
    for status in statuses:
        seen.setdefault(status_key(status), status)
    return list(seen.values())


def rank_statuses(statuses: Iterable[str], priority: Sequence[str] = STATUS_PRIORITY) -> List[str]:
    ordering = StatusOrdering(tuple(priority))
    return sorted(dedupe_statuses(statuses), key=ordering.sort_key)


def visible_statuses(ordered: Sequence[str], hidden: Iterable[str] = ()) -> List[str]:
    hidden_keys = {status_key(s) for s in hidden}
    return [s for s in ordered if status_key(s) not in hidden_keys]
