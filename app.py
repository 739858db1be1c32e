import altair as alt
import pandas as pd
import streamlit as st
from concurrent.futures import ThreadPoolExecutor
from typing import Optional, Tuple

from core.charts import progress_chart
from core.coordinator import PivotCoordinator
from core.metrics_pivot import GRAND_TOTAL_LABEL, PivotLine, flatten_pivot, format_number, pivot_frame, status_html
from core.settings import GROWTH_FACTOR, STATUS_PRIORITY, PivotSettings, normalize_settings

alt.data_transformers.disable_max_rows()


# ---------- UI / layout helpers ----------
def inject_base_styles():
    if st.session_state.get("_base_css_injected"):
        return
    st.markdown(
        """
        <style>
        .status-line {padding: 6px 10px;border-radius: 8px;font-size: 0.92rem;margin-bottom: 10px;}
        .status-line[data-kind="info"] {background: #f3f4f6;color: #374151;}
        .status-line[data-kind="success"] {background: #ecfdf5;color: #065f46;}
        .status-line[data-kind="error"] {background: #fef2f2;color: #991b1b;}
        </style>
        """,
        unsafe_allow_html=True,
    )
    st.session_state["_base_css_injected"] = True


@st.cache_resource
def shared_executor() -> ThreadPoolExecutor:
    return ThreadPoolExecutor(max_workers=4, thread_name_prefix="pivot")


def get_coordinator() -> PivotCoordinator:
    if "coordinator" not in st.session_state:
        st.session_state["coordinator"] = PivotCoordinator(executor=shared_executor())
    return st.session_state["coordinator"]


def upload_signature(upload) -> Optional[Tuple[str, int]]:
    if upload is None:
        return None
    return (upload.name, upload.size)


def render_status(message: str, kind: str):
    st.markdown(status_html(message, kind), unsafe_allow_html=True)


def render_progress(grand: PivotLine, prior_grand_count: Optional[int]):
    cols = st.columns(4)
    cols[0].metric("Submissions", format_number(grand.total))
    cols[1].metric("Target", format_number(grand.target))
    cols[2].metric("Progress", f"{grand.progress:.0%}" if grand.progress is not None else "N/A")
    cols[3].metric(
        "Prior period",
        format_number(prior_grand_count) if prior_grand_count is not None else "N/A",
        help="Applications with a key in the prior-period file. Targets fall back to current totals without it.",
    )
    if grand.progress is not None:
        st.progress(min(grand.progress, 1.0))


def render_pivot(lines: list, statuses: list):
    frame = pivot_frame(lines, statuses, indent=" ")
    st.dataframe(
        frame,
        hide_index=True,
        use_container_width=True,
        column_config={
            "Progress": st.column_config.ProgressColumn("Progress", min_value=0.0, max_value=1.0, format="%.2f"),
        },
    )


# ---------- UI setup ----------
st.set_page_config(page_title="OU Submission Pivot", layout="wide")
inject_base_styles()
st.title("OU Submission Pivot")
st.caption("Submissions by organizational unit and status, tracked against last year's volume.")

with st.sidebar:
    st.markdown("### Files")
    current_file = st.file_uploader("Current period (.xlsx)", type=["xlsx"])
    prior_file = st.file_uploader("Prior period (.xlsx, optional)", type=["xlsx"])

    st.markdown("---")
    with st.expander("Advanced settings", expanded=False):
        hidden_statuses = st.multiselect("Hide status columns", options=list(STATUS_PRIORITY), default=[])
        growth_factor = st.slider("Growth target multiplier", 1.0, 1.5, GROWTH_FACTOR, 0.01)

settings: PivotSettings = normalize_settings({"hidden_statuses": hidden_statuses, "growth_factor": growth_factor})
coordinator = get_coordinator()

signature = (upload_signature(current_file), upload_signature(prior_file), settings)
if current_file is None:
    if st.session_state.get("_pivot_signature") is not None:
        coordinator.clear()
    st.session_state["_pivot_signature"] = None
elif signature != st.session_state.get("_pivot_signature"):
    st.session_state["_pivot_signature"] = signature
    future = coordinator.submit(current_file, prior_file, settings=settings)
    with st.spinner(coordinator.state.status_message):
        future.result()

state = coordinator.state
render_status(state.status_message, state.status_kind)

if state.pivot is not None and not state.pivot.is_empty:
    lines = flatten_pivot(state.pivot, state.targets, settings)
    grand = lines[-1]
    render_progress(grand, state.targets.prior_grand_count if state.targets is not None else None)

    tab_table, tab_progress = st.tabs(["Pivot", "Progress by group"])
    with tab_table:
        render_pivot(lines, state.pivot.visible_statuses)
    with tab_progress:
        group_lines = [ln for ln in lines if ln.kind == "group0"]
        st.altair_chart(progress_chart(group_lines), use_container_width=True)
        progress_df = pd.DataFrame(
            [{"Group": ln.label, "Submissions": ln.total, "Target": ln.target, "Progress": ln.progress} for ln in group_lines]
        )
        st.dataframe(progress_df, hide_index=True, use_container_width=True)
        st.caption(f"{GRAND_TOTAL_LABEL}: {format_number(grand.total)} of {format_number(grand.target)}")
