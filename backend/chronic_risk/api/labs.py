"""Lab Normalization API Endpoints.

Accepts lab results already decoded from their file format, either as
(label, value, unit) rows, delimited text, or flattened document text,
and returns canonical analyte keys.
"""

import logging
from typing import Any

from fastapi import APIRouter
from pydantic import BaseModel, Field, model_validator

from chronic_risk.services.lab_normalizer import (
    BIOMETRIC_KEYS,
    NormalizedLabs,
    get_lab_normalizer_service,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/labs", tags=["Labs"])


# ============================================================================
# Request/Response Models
# ============================================================================


class NormalizeLabsRequest(BaseModel):
    """Lab input in exactly one of three shapes."""

    rows: list[list[str | float | None]] | None = Field(
        None, description="Rows of [label, value, unit?] cells (spreadsheet or CSV rows)"
    )
    delimited: str | None = Field(
        None, description="Comma, semicolon or tab separated lines"
    )
    text: str | None = Field(
        None, description="Text extracted from a lab report document"
    )

    @model_validator(mode="after")
    def exactly_one_source(self) -> "NormalizeLabsRequest":
        provided = [f for f in ("rows", "delimited", "text") if getattr(self, f) is not None]
        if len(provided) != 1:
            raise ValueError("Provide exactly one of rows, delimited or text")
        return self


class AnalyteValueResponse(BaseModel):
    value: float
    unit: str
    inferred: bool = Field(False, description="Unit guessed from magnitude")


class NormalizeLabsResponse(BaseModel):
    """Canonical lab values, plus the Labs-shaped payload for /risk/assess."""

    values: dict[str, AnalyteValueResponse]
    unmatched: list[str]
    labs: dict[str, Any]
    biometrics: dict[str, float]


def _to_response(result: NormalizedLabs) -> NormalizeLabsResponse:
    return NormalizeLabsResponse(
        values=result.as_dict(),
        unmatched=result.unmatched,
        labs=result.to_labs().model_dump(mode="json", exclude_none=True),
        biometrics={key: v.value for key, v in result.values.items() if key in BIOMETRIC_KEYS},
    )


# ============================================================================
# Endpoints
# ============================================================================


@router.post("/normalize", response_model=NormalizeLabsResponse)
def normalize_labs(request: NormalizeLabsRequest) -> NormalizeLabsResponse:
    """Map raw lab input onto canonical analyte keys.

    Unrecognised labels are returned in ``unmatched`` rather than failing
    the request.
    """
    service = get_lab_normalizer_service()

    if request.rows is not None:
        result = service.normalize_rows(request.rows)
    elif request.delimited is not None:
        result = service.normalize_delimited(request.delimited)
    else:
        result = service.normalize_text(request.text)

    logger.debug(f"Normalized {len(result)} lab values, {len(result.unmatched)} unmatched")
    return _to_response(result)
