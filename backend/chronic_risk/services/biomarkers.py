"""Derived biomarkers: body-composition indices and insulin-resistance proxies.

Every function returns None when an input it needs is missing, rather
than computing on zero.
"""

import logging
import math
from dataclasses import dataclass

from chronic_risk.schemas.base import Analyte, ConcentrationUnit, Sex
from chronic_risk.services.units import to_mg_dl, to_mmol_l

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class DerivedBiomarkers:
    """Biomarkers derived from the biometric and lab panel."""

    bmi: float | None = None
    waist_to_height: float | None = None
    homa_ir: float | None = None
    tyg_index: float | None = None
    aip: float | None = None
    vai: float | None = None


# ============================================================================
# Body composition
# ============================================================================

def calculate_bmi(height_cm: float | None, weight_kg: float | None) -> float | None:
    """Body Mass Index in kg/m². None if height or weight is missing or zero."""
    if not height_cm or not weight_kg:
        return None
    return weight_kg / (height_cm / 100) ** 2


def calculate_whtr(waist_cm: float | None, height_cm: float | None) -> float | None:
    """Waist-to-height ratio. None if waist or height is missing or zero."""
    if not waist_cm or not height_cm:
        return None
    return waist_cm / height_cm


# ============================================================================
# Insulin resistance and lipids
# ============================================================================

def calculate_homa_ir(
    glucose: float | None,
    insulin: float | None,
    glucose_unit: ConcentrationUnit | str | None = ConcentrationUnit.MG_DL,
) -> float | None:
    """HOMA-IR = glucose (mg/dL) × insulin (µU/mL) / 405."""
    if glucose is None or insulin is None:
        return None
    glucose_mgdl = to_mg_dl(glucose, glucose_unit, Analyte.GLUCOSE)
    return (glucose_mgdl * insulin) / 405.0


def calculate_tyg(
    triglycerides: float | None,
    glucose: float | None,
    trig_unit: ConcentrationUnit | str | None = ConcentrationUnit.MG_DL,
    glucose_unit: ConcentrationUnit | str | None = ConcentrationUnit.MG_DL,
) -> float | None:
    """Triglyceride-glucose index = ln(TG mg/dL × glucose mg/dL / 2)."""
    if triglycerides is None or glucose is None:
        return None
    tg = to_mg_dl(triglycerides, trig_unit, Analyte.TRIGLYCERIDES)
    glu = to_mg_dl(glucose, glucose_unit, Analyte.GLUCOSE)
    product = (tg * glu) / 2.0
    if product <= 0:
        return None
    return math.log(product)


def calculate_aip(
    triglycerides: float | None,
    hdl: float | None,
    unit: ConcentrationUnit | str | None = ConcentrationUnit.MG_DL,
    hdl_unit: ConcentrationUnit | str | None = None,
) -> float | None:
    """Atherogenic Index of Plasma = log10(TG / HDL), both in mg/dL.

    Args:
        triglycerides: Triglyceride value.
        hdl: HDL cholesterol value.
        unit: Unit of the triglyceride value (and of HDL unless hdl_unit is set).
        hdl_unit: Unit of the HDL value when it differs from ``unit``.
    """
    if triglycerides is None or hdl is None or hdl == 0:
        return None
    tg = to_mg_dl(triglycerides, unit, Analyte.TRIGLYCERIDES)
    h = to_mg_dl(hdl, hdl_unit or unit, Analyte.CHOLESTEROL)
    if tg <= 0 or h <= 0:
        return None
    return math.log10(tg / h)


def calculate_vai(
    sex: Sex | None,
    waist_cm: float | None,
    bmi: float | None,
    triglycerides: float | None,
    hdl: float | None,
    unit: ConcentrationUnit | str | None = ConcentrationUnit.MMOL_L,
    hdl_unit: ConcentrationUnit | str | None = None,
) -> float | None:
    """Visceral Adiposity Index (sex-specific, lipids in mmol/L).

    Male:   (WC / (39.68 + 1.88 × BMI)) × (TG / 1.03) × (1.31 / HDL)
    Female: (WC / (36.58 + 1.89 × BMI)) × (TG / 0.81) × (1.52 / HDL)
    """
    if sex is None or not waist_cm or not bmi or not triglycerides or not hdl:
        return None

    tg = to_mmol_l(triglycerides, unit, Analyte.TRIGLYCERIDES)
    h = to_mmol_l(hdl, hdl_unit or unit, Analyte.CHOLESTEROL)

    if sex == Sex.MALE:
        return (waist_cm / (39.68 + 1.88 * bmi)) * (tg / 1.03) * (1.31 / h)
    return (waist_cm / (36.58 + 1.89 * bmi)) * (tg / 0.81) * (1.52 / h)
