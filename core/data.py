from __future__ import annotations

import io
import logging
import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import IO, Dict, Iterable, List, Mapping, Optional, Sequence, Union

import pandas as pd

from core.errors import SchemaError
from core.settings import BLANK_LABEL, PivotSettings


logger = logging.getLogger(__name__)

ExcelSource = Union[bytes, bytearray, str, Path, IO[bytes]]


@dataclass(frozen=True)
class Row:
    ou0: str
    ou1: str
    ou2: str
    application_key: str
    status: str


@dataclass(frozen=True)
class SourceTable:
    """One parsed sheet plus the sheet names of the workbook it came from."""

    frame: pd.DataFrame
    sheet_names: List[str] = field(default_factory=list)
    name: Optional[str] = None


def _cell_text(value: object) -> str:
    if value is None:
        return ""
    try:
        if pd.isna(value):
            return ""
    except (TypeError, ValueError):
        pass
    return str(value)


def normalize_header(value: object) -> str:
    return re.sub(r"\s+", " ", _cell_text(value).strip()).lower()


def normalize_cell(value: object, blank_label: str = BLANK_LABEL) -> str:
    s = _cell_text(value).strip()
    return s if s else blank_label


def normalize_key(value: object) -> str:
    return _cell_text(value).strip()


def resolve_columns(
    headers: Iterable[object],
    required: Sequence[str],
    *,
    sheet_name: str,
    available_sheets: Sequence[str] = (),
) -> Dict[str, str]:
    """Map each required column name to the actual header that matches it.

    Matching ignores case and treats any run of whitespace as a single space.
    Raises SchemaError listing every required column that has no match.
    """
    header_map: Dict[str, str] = {}
    for header in headers:
        header_map.setdefault(normalize_header(header), header)  # type: ignore[arg-type]

    resolved: Dict[str, str] = {}
    missing: List[str] = []
    for req in required:
        actual = header_map.get(normalize_header(req))
        if actual is None:
            missing.append(req)
        else:
            resolved[req] = actual

    if missing:
        raise SchemaError(
            f"Missing required columns in “{sheet_name}”: {', '.join(missing)}",
            missing_columns=missing,
            available_sheets=available_sheets,
        )
    return resolved


def normalize_row(record: Mapping[str, object], resolved: Mapping[str, str], settings: PivotSettings) -> Row:
    ou0_col, ou1_col, ou2_col = settings.ou_columns
    blank = settings.blank_label
    return Row(
        ou0=normalize_cell(record.get(resolved[ou0_col]), blank),
        ou1=normalize_cell(record.get(resolved[ou1_col]), blank),
        ou2=normalize_cell(record.get(resolved[ou2_col]), blank),
        application_key=normalize_key(record.get(resolved[settings.key_column])),
        status=normalize_cell(record.get(resolved[settings.status_column]), blank),
    )


def rows_from_frame(
    frame: Optional[pd.DataFrame],
    settings: Optional[PivotSettings] = None,
    *,
    available_sheets: Sequence[str] = (),
) -> List[Row]:
    settings = settings or PivotSettings()
    if frame is None or frame.empty:
        return []

    resolved = resolve_columns(
        frame.columns,
        settings.required_columns,
        sheet_name=settings.sheet_name,
        available_sheets=available_sheets,
    )
    return [normalize_row(record, resolved, settings) for record in frame.to_dict(orient="records")]


def source_name(source: object) -> Optional[str]:
    if isinstance(source, (str, Path)):
        return Path(source).name
    name = getattr(source, "filename", None) or getattr(source, "name", None)
    return str(name) if name else None


def _as_excel_input(source: ExcelSource):
    if isinstance(source, (bytes, bytearray)):
        return io.BytesIO(bytes(source))
    if hasattr(source, "seek"):
        source.seek(0)  # type: ignore[union-attr]
    return source


def load_table(source: ExcelSource, settings: Optional[PivotSettings] = None) -> SourceTable:
    settings = settings or PivotSettings()
    with pd.ExcelFile(_as_excel_input(source)) as book:
        sheet_names = [str(name) for name in book.sheet_names]
        if settings.sheet_name not in sheet_names:
            available = ", ".join(sheet_names)
            raise SchemaError(
                f"Sheet “{settings.sheet_name}” not found. Available sheets: {available or '(none)'}",
                available_sheets=sheet_names,
            )
        frame = book.parse(settings.sheet_name, dtype=str, keep_default_na=False)
    logger.debug("Loaded %d rows from sheet %s", len(frame), settings.sheet_name)
    return SourceTable(frame=frame, sheet_names=sheet_names, name=source_name(source))


def load_rows(source: ExcelSource, settings: Optional[PivotSettings] = None) -> List[Row]:
    settings = settings or PivotSettings()
    table = load_table(source, settings)
    return rows_from_frame(table.frame, settings, available_sheets=table.sheet_names)
