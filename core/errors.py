from __future__ import annotations

from typing import Iterable, List, Optional


class PivotError(Exception):
    """Base class for failures whose message is safe to show as-is."""


class SchemaError(PivotError):
    """The expected sheet or one of the required columns is missing."""

    def __init__(
        self,
        message: str,
        *,
        missing_columns: Optional[Iterable[str]] = None,
        available_sheets: Optional[Iterable[str]] = None,
    ) -> None:
        super().__init__(message)
        self.missing_columns: List[str] = list(missing_columns or [])
        self.available_sheets: List[str] = list(available_sheets or [])


class ComputationFailure(PivotError):
    pass
