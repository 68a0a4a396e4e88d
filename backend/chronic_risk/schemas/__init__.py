"""Pydantic schemas for the Chronic Risk Engine."""

from chronic_risk.schemas.base import (
    Analyte,
    ConcentrationUnit,
    DiseaseCategory,
    RiskCategory,
    Sex,
)
from chronic_risk.schemas.client_record import (
    Biometrics,
    ClientRecord,
    Demographics,
    FamilyHistory,
    FamilyHistoryCounts,
    Labs,
    Lifestyle,
)

__all__ = [
    # Enums
    "Analyte",
    "ConcentrationUnit",
    "DiseaseCategory",
    "RiskCategory",
    "Sex",
    # Client record
    "Biometrics",
    "ClientRecord",
    "Demographics",
    "FamilyHistory",
    "FamilyHistoryCounts",
    "Labs",
    "Lifestyle",
]
