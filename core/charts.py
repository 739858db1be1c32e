from __future__ import annotations

from typing import TYPE_CHECKING, Any, Dict, List

import altair as alt
import pandas as pd

if TYPE_CHECKING:
    from core.metrics_pivot import PivotLine

alt.data_transformers.disable_max_rows()


def to_vega_spec(chart: alt.Chart) -> Dict[str, Any]:
    """Convert an Altair chart into a Vega-Lite spec dict (JSON-serializable)."""
    return chart.to_dict()


def progress_chart(lines: List["PivotLine"]) -> alt.LayerChart:
    """Submissions per top-level group against the group's target."""
    df = pd.DataFrame(
        {
            "group": [ln.label for ln in lines],
            "total": [ln.total for ln in lines],
            "target": [ln.target for ln in lines],
            "progress": [ln.progress for ln in lines],
        }
    )
    order = df["group"].tolist()
    bars = (
        alt.Chart(df)
        .mark_bar()
        .encode(
            y=alt.Y("group:N", sort=order, title=None),
            x=alt.X("total:Q", title="Submissions"),
            tooltip=["group", "total", "target", alt.Tooltip("progress:Q", format=".0%")],
        )
    )
    ticks = (
        alt.Chart(df)
        .mark_tick(color="#dc2626", thickness=2)
        .encode(y=alt.Y("group:N", sort=order), x="target:Q")
    )
    return (bars + ticks).properties(height=max(120, 28 * len(order)))
