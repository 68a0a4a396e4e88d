"""Unit conversion for glucose, lipids and creatinine.

Conversions are linear and each pair is the exact inverse of the other.
Nothing is rounded here; rounding is a display concern.
"""

import logging
from dataclasses import dataclass

from chronic_risk.schemas.base import Analyte, ConcentrationUnit

logger = logging.getLogger(__name__)


# mg/dL per mmol/L (µmol/L per mg/dL for creatinine)
GLUCOSE_FACTOR = 18.0
TRIGLYCERIDE_FACTOR = 88.57
CHOLESTEROL_FACTOR = 38.67
CREATININE_FACTOR = 88.4


@dataclass(frozen=True)
class AnalyteValue:
    """A lab value together with the unit it is expressed in.

    ``inferred`` marks units guessed from magnitude rather than read from
    source text.
    """

    value: float
    unit: str
    inferred: bool = False


# ============================================================================
# Pairwise conversions
# ============================================================================

def mgdl_to_mmol_glucose(value: float) -> float:
    return value / GLUCOSE_FACTOR


def mmol_to_mgdl_glucose(value: float) -> float:
    return value * GLUCOSE_FACTOR


def mgdl_to_mmol_trig(value: float) -> float:
    return value / TRIGLYCERIDE_FACTOR


def mmol_to_mgdl_trig(value: float) -> float:
    return value * TRIGLYCERIDE_FACTOR


def mgdl_to_mmol_chol(value: float) -> float:
    return value / CHOLESTEROL_FACTOR


def mmol_to_mgdl_chol(value: float) -> float:
    return value * CHOLESTEROL_FACTOR


def umol_to_mgdl_creatinine(value: float) -> float:
    return value / CREATININE_FACTOR


def mgdl_to_umol_creatinine(value: float) -> float:
    return value * CREATININE_FACTOR


_MOLAR_FACTORS: dict[Analyte, float] = {
    Analyte.GLUCOSE: GLUCOSE_FACTOR,
    Analyte.TRIGLYCERIDES: TRIGLYCERIDE_FACTOR,
    Analyte.CHOLESTEROL: CHOLESTEROL_FACTOR,
}


# ============================================================================
# Unit-aware helpers
# ============================================================================

def to_mg_dl(
    value: float | None,
    unit: ConcentrationUnit | str | None,
    analyte: Analyte,
) -> float | None:
    """Express a value in mg/dL.

    Args:
        value: The measured value, or None.
        unit: Unit the value is in. None is treated as mg/dL.
        analyte: Which conversion factor to use.

    Returns:
        The mg/dL-equivalent value, or None if value is None.
    """
    if value is None:
        return None

    unit = ConcentrationUnit(unit) if unit is not None else ConcentrationUnit.MG_DL

    if analyte == Analyte.CREATININE:
        if unit == ConcentrationUnit.UMOL_L:
            return umol_to_mgdl_creatinine(value)
        return value

    if unit == ConcentrationUnit.MMOL_L:
        return value * _MOLAR_FACTORS[analyte]
    return value


def to_mmol_l(
    value: float | None,
    unit: ConcentrationUnit | str | None,
    analyte: Analyte,
) -> float | None:
    """Express a glucose or lipid value in mmol/L (µmol/L for creatinine)."""
    if value is None:
        return None

    unit = ConcentrationUnit(unit) if unit is not None else ConcentrationUnit.MG_DL

    if analyte == Analyte.CREATININE:
        if unit == ConcentrationUnit.UMOL_L:
            return value
        return mgdl_to_umol_creatinine(value)

    if unit == ConcentrationUnit.MMOL_L:
        return value
    return value / _MOLAR_FACTORS[analyte]
