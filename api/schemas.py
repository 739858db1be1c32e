from __future__ import annotations

from typing import List

from pydantic import BaseModel, Field

from core.settings import (
    BLANK_LABEL,
    GROWTH_FACTOR,
    KEY_COLUMN,
    OU_COLUMNS,
    SHEET_NAME,
    STATUS_COLUMN,
    STATUS_PRIORITY,
)


class SettingsModel(BaseModel):
    sheet_name: str = SHEET_NAME
    ou_columns: List[str] = Field(default_factory=lambda: list(OU_COLUMNS), min_length=3, max_length=3)
    key_column: str = KEY_COLUMN
    status_column: str = STATUS_COLUMN
    status_priority: List[str] = Field(default_factory=lambda: list(STATUS_PRIORITY))
    hidden_statuses: List[str] = Field(default_factory=list)
    growth_factor: float = Field(default=GROWTH_FACTOR, gt=0)
    blank_label: str = BLANK_LABEL


class ErrorResponse(BaseModel):
    error: str
    type: str
    missing_columns: List[str] = Field(default_factory=list)
    available_sheets: List[str] = Field(default_factory=list)
