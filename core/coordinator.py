"""Runs the pivot pipeline off the caller's thread.

Every submission gets a strictly increasing request id. Only the result of the
latest submission is applied to the visible state; anything older that
finishes later is dropped.
"""

from __future__ import annotations

import logging
import threading
from concurrent.futures import Future, ThreadPoolExecutor
from dataclasses import dataclass, replace
from typing import Callable, Optional, Tuple

from core.data import ExcelSource, load_rows, source_name
from core.errors import ComputationFailure, PivotError, SchemaError
from core.pivot import PivotResult, build_pivot
from core.settings import PivotSettings
from core.targets import TargetSet, compute_targets


logger = logging.getLogger(__name__)

IDLE_MESSAGE = "Select an .xlsx file to generate the pivot table."
EMPTY_MESSAGE = "No rows found with a non-empty Application Key."
GENERIC_FAILURE = "Failed to process file."


@dataclass(frozen=True)
class PipelineOutcome:
    request_id: int
    ok: bool
    pivot: Optional[PivotResult] = None
    targets: Optional[TargetSet] = None
    error: Optional[str] = None
    error_kind: Optional[str] = None
    applied: bool = False


@dataclass(frozen=True)
class DashboardState:
    request_id: int = 0
    pivot: Optional[PivotResult] = None
    targets: Optional[TargetSet] = None
    status_message: str = IDLE_MESSAGE
    status_kind: str = "info"
    error_message: Optional[str] = None
    pending: bool = False


Pipeline = Callable[[int, ExcelSource, Optional[ExcelSource], PivotSettings], PipelineOutcome]


def error_message(exc: BaseException) -> str:
    if isinstance(exc, PivotError):
        return str(exc) or GENERIC_FAILURE
    return str(exc).strip() or GENERIC_FAILURE


def compute(
    current: ExcelSource,
    prior: Optional[ExcelSource] = None,
    settings: Optional[PivotSettings] = None,
) -> Tuple[PivotResult, Optional[TargetSet]]:
    """Load both inputs concurrently, then aggregate and derive targets.

    Raises SchemaError for a missing sheet/column and ComputationFailure for
    anything unexpected.
    """
    settings = settings or PivotSettings()
    try:
        with ThreadPoolExecutor(max_workers=2, thread_name_prefix="pivot-read") as pool:
            current_future = pool.submit(load_rows, current, settings)
            prior_future = pool.submit(load_rows, prior, settings) if prior is not None else None
            current_rows = current_future.result()
            prior_rows = prior_future.result() if prior_future is not None else None

        pivot = build_pivot(current_rows, settings)
        targets = compute_targets(prior_rows, settings.growth_factor) if prior_rows is not None else None
    except PivotError:
        raise
    except Exception as exc:
        logger.exception("pivot computation failed")
        raise ComputationFailure(error_message(exc)) from exc
    return pivot, targets


def run_pipeline(
    request_id: int,
    current: ExcelSource,
    prior: Optional[ExcelSource] = None,
    settings: Optional[PivotSettings] = None,
) -> PipelineOutcome:
    try:
        pivot, targets = compute(current, prior, settings)
    except PivotError as exc:
        kind = "schema" if isinstance(exc, SchemaError) else "computation"
        return PipelineOutcome(request_id=request_id, ok=False, error=error_message(exc), error_kind=kind)
    return PipelineOutcome(request_id=request_id, ok=True, pivot=pivot, targets=targets)


class PivotCoordinator:
    def __init__(
        self,
        settings: Optional[PivotSettings] = None,
        *,
        executor: Optional[ThreadPoolExecutor] = None,
        pipeline: Pipeline = run_pipeline,
    ) -> None:
        self.settings = settings or PivotSettings()
        self._owns_executor = executor is None
        self._executor = executor or ThreadPoolExecutor(max_workers=2, thread_name_prefix="pivot")
        self._pipeline = pipeline
        self._lock = threading.Lock()
        self._latest = 0
        self._state = DashboardState()

    @property
    def latest_request_id(self) -> int:
        with self._lock:
            return self._latest

    @property
    def state(self) -> DashboardState:
        with self._lock:
            return self._state

    def submit(
        self,
        current: ExcelSource,
        prior: Optional[ExcelSource] = None,
        *,
        settings: Optional[PivotSettings] = None,
    ) -> "Future[PipelineOutcome]":
        settings = settings or self.settings
        with self._lock:
            self._latest += 1
            request_id = self._latest
            # Old pivot and targets go away before the new work starts.
            self._state = DashboardState(
                request_id=request_id,
                status_message=f"Reading {source_name(current) or 'file'}...",
                pending=True,
            )
        logger.debug("Dispatching pivot request %d", request_id)
        return self._executor.submit(self._run, request_id, current, prior, settings)

    def _run(
        self,
        request_id: int,
        current: ExcelSource,
        prior: Optional[ExcelSource],
        settings: PivotSettings,
    ) -> PipelineOutcome:
        try:
            outcome = self._pipeline(request_id, current, prior, settings)
        except Exception as exc:
            logger.exception("pivot request %d failed", request_id)
            outcome = PipelineOutcome(
                request_id=request_id, ok=False, error=error_message(exc), error_kind="computation"
            )
        applied = self.apply(outcome, settings)
        return replace(outcome, applied=applied)

    def apply(self, outcome: PipelineOutcome, settings: Optional[PivotSettings] = None) -> bool:
        """Publish ``outcome`` if it belongs to the latest request."""
        settings = settings or self.settings
        with self._lock:
            if outcome.request_id != self._latest:
                logger.debug("Discarding stale pivot result %d (latest is %d)", outcome.request_id, self._latest)
                return False

            cleared = DashboardState(request_id=outcome.request_id)
            if not outcome.ok or outcome.pivot is None:
                message = outcome.error or GENERIC_FAILURE
                self._state = replace(cleared, status_message=message, status_kind="error", error_message=message)
                return True

            pivot = outcome.pivot
            if pivot.is_empty:
                message, kind = EMPTY_MESSAGE, "info"
            else:
                message, kind = f"Rendered {pivot.total_count} rows from “{settings.sheet_name}”.", "success"
            self._state = replace(
                cleared, pivot=pivot, targets=outcome.targets, status_message=message, status_kind=kind
            )
        logger.info("Applied pivot request %d", outcome.request_id)
        return True

    def clear(self, message: str = IDLE_MESSAGE) -> None:
        """Drop visible output and supersede anything still running."""
        with self._lock:
            self._latest += 1
            self._state = DashboardState(request_id=self._latest, status_message=message)

    def shutdown(self, wait: bool = True) -> None:
        if self._owns_executor:
            self._executor.shutdown(wait=wait)
