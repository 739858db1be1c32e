from __future__ import annotations

import io
from typing import Dict, Optional, Sequence

import pandas as pd

from core.data import Row

HEADERS = ["OU Level 0", "OU Level 1", "OU Level 2", "Application Key", "Submission Status"]


def make_row(ou0: str, ou1: str, ou2: str, key: str, status: str) -> Row:
    return Row(ou0=ou0, ou1=ou1, ou2=ou2, application_key=key, status=status)


def make_xlsx(
    records: Sequence[Sequence[object]],
    *,
    headers: Sequence[str] = HEADERS,
    sheet_name: str = "Dashboard",
    extra_sheets: Optional[Dict[str, pd.DataFrame]] = None,
) -> bytes:
    buf = io.BytesIO()
    with pd.ExcelWriter(buf, engine="openpyxl") as writer:
        pd.DataFrame(list(records), columns=list(headers)).to_excel(writer, sheet_name=sheet_name, index=False)
        for name, frame in (extra_sheets or {}).items():
            frame.to_excel(writer, sheet_name=name, index=False)
    return buf.getvalue()
