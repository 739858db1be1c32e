from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, Optional, Tuple


SHEET_NAME = "Dashboard"
BLANK_LABEL = "(blank)"
GROWTH_FACTOR = 1.10

OU_COLUMNS = ("OU Level 0", "OU Level 1", "OU Level 2")
KEY_COLUMN = "Application Key"
STATUS_COLUMN = "Submission Status"

STATUS_PRIORITY = (
    "Draft",
    "Submitted",
    "Approved",
    "Rejected",
    "Returned",
    "In Review",
    "In-Review",
    "Resubmitted",
    "Cancelled",
)


@dataclass(frozen=True)
class PivotSettings:
    sheet_name: str = SHEET_NAME
    ou_columns: Tuple[str, str, str] = OU_COLUMNS
    key_column: str = KEY_COLUMN
    status_column: str = STATUS_COLUMN
    status_priority: Tuple[str, ...] = STATUS_PRIORITY
    # Statuses counted in totals but left out of the displayed status columns.
    hidden_statuses: Tuple[str, ...] = ()
    growth_factor: float = GROWTH_FACTOR
    blank_label: str = BLANK_LABEL

    @property
    def required_columns(self) -> Tuple[str, ...]:
        return (*self.ou_columns, self.key_column, self.status_column)


def _as_str_tuple(values: Optional[Iterable[object]], default: Tuple[str, ...]) -> Tuple[str, ...]:
    if values is None:
        return default
    if isinstance(values, str):
        values = [values]
    out = [str(v).strip() for v in values if v is not None and str(v).strip()]
    return tuple(out)


def normalize_settings(raw: Optional[dict]) -> PivotSettings:
    raw = raw or {}
    defaults = PivotSettings()

    sheet_name = str(raw.get("sheet_name") or defaults.sheet_name).strip() or defaults.sheet_name

    ou_columns = _as_str_tuple(raw.get("ou_columns"), defaults.ou_columns)
    if len(ou_columns) != 3:
        ou_columns = defaults.ou_columns

    key_column = str(raw.get("key_column") or defaults.key_column).strip() or defaults.key_column
    status_column = str(raw.get("status_column") or defaults.status_column).strip() or defaults.status_column

    status_priority = _as_str_tuple(raw.get("status_priority"), defaults.status_priority)
    if not status_priority:
        status_priority = defaults.status_priority
    hidden_statuses = _as_str_tuple(raw.get("hidden_statuses"), defaults.hidden_statuses)

    growth_factor = raw.get("growth_factor", defaults.growth_factor)
    try:
        growth_factor = float(growth_factor)
    except (TypeError, ValueError):
        growth_factor = defaults.growth_factor
    if not growth_factor > 0:
        growth_factor = defaults.growth_factor

    blank_label = str(raw.get("blank_label") or defaults.blank_label)

    return PivotSettings(
        sheet_name=sheet_name,
        ou_columns=ou_columns,  # type: ignore[arg-type]
        key_column=key_column,
        status_column=status_column,
        status_priority=status_priority,
        hidden_statuses=hidden_statuses,
        growth_factor=growth_factor,
        blank_label=blank_label,
    )
