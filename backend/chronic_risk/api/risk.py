"""Risk Assessment API Endpoints.

Provides endpoints for:
- Full assessment of a client record
- Listing the scoring models
- Running a single scoring model with keyword inputs
"""

import dataclasses
import logging
from typing import Any

from fastapi import APIRouter, Body, HTTPException, status
from pydantic import BaseModel, Field

from chronic_risk.schemas.base import ConcentrationUnit, DiseaseCategory, RiskCategory
from chronic_risk.schemas.client_record import ClientRecord
from chronic_risk.services.risk_banding import RiskBand, RiskResult
from chronic_risk.services.risk_engine import RiskReport, get_risk_engine_service
from chronic_risk.services.risk_models import ModelResult, get_risk_model_service

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/risk", tags=["Risk"])


# ============================================================================
# Response Models
# ============================================================================


class RiskBandResponse(BaseModel):
    """Display band for a percentage."""

    label: RiskCategory
    color_class: str
    color: str


class RiskResultResponse(BaseModel):
    """Percentage risk with its band."""

    percent: float | None = None
    band: RiskBandResponse


class ModelResultResponse(BaseModel):
    """Output of one scoring model."""

    model_name: str
    score: float
    score_unit: str
    percent: float | None = None
    band: RiskBandResponse
    interpretation: str
    components: dict[str, Any] = Field(default_factory=dict)
    references: list[str] = Field(default_factory=list)

    model_config = {"protected_namespaces": ()}


class MetabolicCriterionResponse(BaseModel):
    name: str
    passed: bool
    value: str


class MetabolicSyndromeResponse(BaseModel):
    """ATP III criteria and diagnosis."""

    criteria: list[MetabolicCriterionResponse]
    count: int
    diagnosis: bool


class PhenotypicAgeResponse(BaseModel):
    """Phenotypic age, 10-year mortality and delta to chronological age."""

    pheno_age: float | None = None
    mortality_10yr_pct: float | None = None
    age_delta: float | None = None
    band: RiskBandResponse


class BiomarkersResponse(BaseModel):
    bmi: float | None = None
    waist_to_height: float | None = None
    homa_ir: float | None = None
    tyg_index: float | None = None
    aip: float | None = None
    vai: float | None = None


class DiseaseRiskResponse(BaseModel):
    """Base and family-history-adjusted risk for one disease category."""

    category: DiseaseCategory
    base_percent: float | None = None
    adjusted: RiskResultResponse
    model: ModelResultResponse | None = None


class RiskReportResponse(BaseModel):
    """Full assessment of one client record."""

    client_id: str | None = None
    label: str | None = None
    country: str
    units: dict[str, ConcentrationUnit]
    biomarkers: BiomarkersResponse
    metabolic_syndrome: MetabolicSyndromeResponse
    phenotypic_age: PhenotypicAgeResponse
    egfr: float | None = None
    creatinine_umol_l: float | None = None
    kdigo_category: str | None = None
    disease_risks: list[DiseaseRiskResponse]
    executive_summary: dict[str, RiskResultResponse]


class ModelInfo(BaseModel):
    name: str
    description: str


class ModelListResponse(BaseModel):
    """Available scoring models."""

    total: int
    models: list[ModelInfo]


class ModelCalculationResponse(BaseModel):
    """Result of running one model by name; ``result`` is None when inputs are incomplete."""

    model: str
    result: dict[str, Any] | float | None = None


# ============================================================================
# Conversion helpers
# ============================================================================


def _band(band: RiskBand) -> RiskBandResponse:
    return RiskBandResponse(label=band.label, color_class=band.color_class, color=band.color)


def _risk(risk: RiskResult) -> RiskResultResponse:
    return RiskResultResponse(percent=risk.percent, band=_band(risk.band))


def _model(result: ModelResult | None) -> ModelResultResponse | None:
    if result is None:
        return None
    return ModelResultResponse(
        model_name=result.model_name,
        score=result.score,
        score_unit=result.score_unit,
        percent=result.percent,
        band=_band(result.band),
        interpretation=result.interpretation,
        components=result.components,
        references=result.references,
    )


def report_to_response(report: RiskReport) -> RiskReportResponse:
    """Convert a RiskReport into its JSON response model."""
    pheno = report.phenotypic_age
    metabolic = report.metabolic_syndrome
    return RiskReportResponse(
        client_id=report.client_id,
        label=report.label,
        country=report.country,
        units=dataclasses.asdict(report.units),
        biomarkers=BiomarkersResponse(**dataclasses.asdict(report.biomarkers)),
        metabolic_syndrome=MetabolicSyndromeResponse(
            criteria=[
                MetabolicCriterionResponse(name=c.name, passed=c.passed, value=c.value)
                for c in metabolic.criteria
            ],
            count=metabolic.count,
            diagnosis=metabolic.diagnosis,
        ),
        phenotypic_age=PhenotypicAgeResponse(
            pheno_age=pheno.pheno_age,
            mortality_10yr_pct=pheno.mortality_10yr_pct,
            age_delta=pheno.age_delta,
            band=_band(pheno.band),
        ),
        egfr=report.egfr,
        creatinine_umol_l=report.creatinine_umol_l,
        kdigo_category=report.kdigo_category,
        disease_risks=[
            DiseaseRiskResponse(
                category=risk.category,
                base_percent=risk.base_percent,
                adjusted=_risk(risk.adjusted),
                model=_model(risk.model),
            )
            for risk in report.disease_risks.values()
        ],
        executive_summary={
            category.value: _risk(result) for category, result in report.executive_summary.items()
        },
    )


def _plain(result: Any) -> dict[str, Any] | float | None:
    if result is None or isinstance(result, (int, float)):
        return result
    if dataclasses.is_dataclass(result):
        return dataclasses.asdict(result)
    raise TypeError(f"Unsupported model result type: {type(result).__name__}")


# ============================================================================
# Endpoints
# ============================================================================


@router.post("/assess", response_model=RiskReportResponse)
def assess_client(record: ClientRecord) -> RiskReportResponse:
    """Run every risk model over a client record.

    Missing inputs never fail the request; the affected models report
    a null percentage with the N/A band.
    """
    report = get_risk_engine_service().assess(record)
    return report_to_response(report)


@router.get("/models", response_model=ModelListResponse)
def list_models() -> ModelListResponse:
    """List available scoring models."""
    models = get_risk_model_service().get_available_models()
    return ModelListResponse(
        total=len(models),
        models=[ModelInfo(name=name, description=desc) for name, desc in models.items()],
    )


@router.post("/models/{name}", response_model=ModelCalculationResponse)
def calculate_model(
    name: str,
    params: dict[str, Any] = Body(default_factory=dict),
) -> ModelCalculationResponse:
    """Run a single scoring model with keyword inputs.

    Raises:
        HTTPException 404: Unknown model name.
        HTTPException 422: Parameters the model does not accept.
    """
    service = get_risk_model_service()
    model_name = name.lower().replace("-", "_")

    if model_name not in service.get_available_models():
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Unknown model: {name}",
        )

    try:
        result = service.calculate(model_name, **params)
    except ValueError as e:
        logger.debug(f"Rejected parameters for {model_name}: {e}")
        raise HTTPException(
            status_code=422,
            detail=str(e),
        ) from e

    return ModelCalculationResponse(model=model_name, result=_plain(result))
