from __future__ import annotations

import html
from dataclasses import asdict, dataclass
from typing import Any, Dict, List, Optional

import pandas as pd

from core.charts import progress_chart, to_vega_spec
from core.pivot import AggNode, Level, PivotResult, iter_nodes
from core.settings import PivotSettings
from core.targets import TargetSet, grand_target, group_target, progress

GRAND_TOTAL_LABEL = "Grand Total"
ROW_HEADER = "BG-Unit-Subunit"

_KIND_BY_LEVEL = {Level.OU0: "group0", Level.OU1: "group1", Level.OU2: "leaf"}


@dataclass(frozen=True)
class PivotLine:
    label: str
    level: int
    kind: str
    by_status: Dict[str, int]
    total: int
    target: Optional[int] = None
    progress: Optional[float] = None


def _line(node: AggNode, label: str, kind: str, statuses: List[str], target: Optional[int]) -> PivotLine:
    return PivotLine(
        label=label,
        level=max(int(node.level), 0),
        kind=kind,
        by_status={s: node.by_status.get(s, 0) for s in statuses},
        total=node.total,
        target=target,
        progress=progress(node.total, target),
    )


def flatten_pivot(
    pivot: PivotResult,
    targets: Optional[TargetSet] = None,
    settings: Optional[PivotSettings] = None,
) -> List[PivotLine]:
    """Display lines in order, ending with the Grand Total (the root re-labeled).

    Only the visible statuses become columns; totals still include hidden ones.
    Targets are attached to top-level groups and to the Grand Total.
    """
    settings = settings or PivotSettings()
    statuses = pivot.visible_statuses
    lines: List[PivotLine] = []
    for node in iter_nodes(pivot.root, settings.blank_label):
        target = None
        if node.level is Level.OU0:
            target = group_target(targets, node.key or "", node.total, settings.growth_factor)
        lines.append(_line(node, node.key or "", _KIND_BY_LEVEL[node.level], statuses, target))

    root_target = grand_target(targets, pivot.root.total, settings.growth_factor)
    lines.append(_line(pivot.root, GRAND_TOTAL_LABEL, "grand", statuses, root_target))
    return lines


def status_html(message: str, kind: str) -> str:
    """Status line markup; the message may carry sheet/column names from the upload."""
    return f"<div class='status-line' data-kind='{html.escape(kind)}'>{html.escape(message)}</div>"


def format_number(n: Optional[float]) -> str:
    if n is None or pd.isna(n):
        return ""
    return f"{n:,.0f}"


def pivot_frame(lines: List[PivotLine], statuses: List[str], *, indent: str = "    ") -> pd.DataFrame:
    records = []
    for line in lines:
        rec: Dict[str, Any] = {ROW_HEADER: f"{indent * line.level}{line.label}"}
        for s in statuses:
            rec[s] = line.by_status.get(s, 0)
        rec[GRAND_TOTAL_LABEL] = line.total
        rec["Target"] = line.target
        rec["Progress"] = line.progress
        records.append(rec)
    columns = [ROW_HEADER, *statuses, GRAND_TOTAL_LABEL, "Target", "Progress"]
    df = pd.DataFrame(records, columns=columns)
    df["Target"] = df["Target"].astype("Int64")
    return df


def targets_payload(targets: Optional[TargetSet]) -> Dict[str, Any]:
    if targets is None:
        return {"available": False}
    return {
        "available": True,
        "per_group": dict(targets.per_group),
        "grand_target": targets.grand_target,
        "prior_grand_count": targets.prior_grand_count,
        "growth_factor": targets.growth_factor,
    }


def compute_pivot_payload(
    pivot: PivotResult,
    targets: Optional[TargetSet] = None,
    settings: Optional[PivotSettings] = None,
) -> Dict[str, Any]:
    settings = settings or PivotSettings()
    lines = flatten_pivot(pivot, targets, settings)
    group_lines = [ln for ln in lines if ln.kind == "group0"]

    charts: Dict[str, Any] = {}
    if group_lines:
        charts["progress"] = to_vega_spec(progress_chart(group_lines))

    return {
        "settings": asdict(settings),
        "statuses": list(pivot.visible_statuses),
        "all_statuses": list(pivot.statuses),
        "rows": [asdict(ln) for ln in lines[:-1]],
        "grand_total": asdict(lines[-1]),
        "counts": {"filtered": pivot.filtered_count, "total": pivot.total_count},
        "targets": targets_payload(targets),
        "empty": pivot.is_empty,
        "charts": charts,
    }
