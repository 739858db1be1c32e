from __future__ import annotations

import logging
import math
from typing import Optional

import numpy as np
import pandas as pd
from fastapi import FastAPI, File, Form, UploadFile
from fastapi.encoders import jsonable_encoder
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from pydantic import ValidationError

from api.schemas import ErrorResponse, SettingsModel
from core.coordinator import compute, error_message
from core.errors import ComputationFailure, SchemaError
from core.metrics_pivot import compute_pivot_payload, flatten_pivot, pivot_frame
from core.settings import PivotSettings, normalize_settings


app = FastAPI(title="OU Pivot API", version="0.1.0")
logger = logging.getLogger(__name__)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["http://localhost:3000", "http://127.0.0.1:3000"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


def _settings_from_form(raw: Optional[str]) -> PivotSettings:
    model = SettingsModel.model_validate_json(raw) if raw else SettingsModel()
    return normalize_settings(model.model_dump())


def _json(data: object) -> JSONResponse:
    """Return JSON with safe encoding for pandas/numpy objects."""

    def _safe_float(value: object) -> float | None:
        try:
            out = float(value)  # type: ignore[arg-type]
        except Exception:
            return None
        if math.isnan(out) or math.isinf(out):
            return None
        return out

    return JSONResponse(
        content=jsonable_encoder(
            data,
            custom_encoder={
                type(pd.NA): lambda _: None,
                np.integer: int,
                float: _safe_float,
                np.floating: _safe_float,
                np.bool_: bool,
                np.ndarray: lambda arr: arr.tolist(),
            },
        )
    )


def _error(status_code: int, exc: Exception, message: Optional[str] = None) -> JSONResponse:
    body = ErrorResponse(error=message or error_message(exc), type=type(exc).__name__)
    if isinstance(exc, SchemaError):
        body.missing_columns = exc.missing_columns
        body.available_sheets = exc.available_sheets
    return JSONResponse(status_code=status_code, content=body.model_dump())


@app.get("/meta/settings")
def meta_settings():
    return _json(SettingsModel().model_dump())


@app.post("/pivot")
def pivot(
    current: UploadFile = File(...),
    prior: Optional[UploadFile] = File(default=None),
    settings: Optional[str] = Form(default=None),
):
    try:
        cfg = _settings_from_form(settings)
    except ValidationError as exc:
        return _error(422, exc, message=str(exc))

    try:
        current_bytes = current.file.read()
        prior_bytes = prior.file.read() if prior is not None else None
        result, targets = compute(current_bytes, prior_bytes, cfg)
        payload = compute_pivot_payload(result, targets, cfg)
        lines = flatten_pivot(result, targets, cfg)
        payload["table"] = pivot_frame(lines, result.visible_statuses).to_dict(orient="records")
        logger.info("pivot: %s -> %d groups", current.filename, len(result.root.children))
        return _json(payload)
    except SchemaError as exc:
        return _error(422, exc)
    except ComputationFailure as exc:
        return _error(500, exc)
    except Exception as exc:
        logger.exception("pivot failed")
        return _error(500, exc)
