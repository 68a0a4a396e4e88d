"""Services for the Chronic Risk Engine.

Services implement the calculations:
- units: glucose, lipid and creatinine unit conversion
- LabNormalizerService: raw lab rows / document text to canonical keys
- biomarkers: BMI, WHtR, HOMA-IR, TyG, AIP, VAI
- RiskModelService: registry of the scoring models
- risk_banding: percentage bands and family history adjustment
- RiskEngineService: full assessment of one client record
"""

from chronic_risk.services.biomarkers import DerivedBiomarkers
from chronic_risk.services.lab_normalizer import (
    LabNormalizerService,
    NormalizedLabs,
    get_lab_normalizer_service,
    reset_lab_normalizer_service,
)
from chronic_risk.services.risk_banding import (
    RiskBand,
    RiskResult,
    adjust_for_family_history,
    risk_band,
)
from chronic_risk.services.risk_engine import (
    DiseaseRisk,
    ResolvedUnits,
    RiskEngineService,
    RiskReport,
    get_risk_engine_service,
    reset_risk_engine_service,
)
from chronic_risk.services.risk_models import (
    MetabolicSyndromeResult,
    ModelResult,
    PhenotypicAgeResult,
    RiskModelService,
    get_risk_model_service,
    reset_risk_model_service,
)
from chronic_risk.services.units import AnalyteValue

__all__ = [
    # Units
    "AnalyteValue",
    # Lab normalizer
    "LabNormalizerService",
    "NormalizedLabs",
    "get_lab_normalizer_service",
    "reset_lab_normalizer_service",
    # Biomarkers
    "DerivedBiomarkers",
    # Banding
    "RiskBand",
    "RiskResult",
    "adjust_for_family_history",
    "risk_band",
    # Models
    "MetabolicSyndromeResult",
    "ModelResult",
    "PhenotypicAgeResult",
    "RiskModelService",
    "get_risk_model_service",
    "reset_risk_model_service",
    # Engine
    "DiseaseRisk",
    "ResolvedUnits",
    "RiskEngineService",
    "RiskReport",
    "get_risk_engine_service",
    "reset_risk_engine_service",
]
