"""Base schemas and enums for the Chronic Risk Engine."""

from enum import Enum


class Sex(str, Enum):
    """Biological sex used by sex-specific formulas."""

    MALE = "male"
    FEMALE = "female"


class ConcentrationUnit(str, Enum):
    """Reporting unit for glucose, lipids and creatinine."""

    MG_DL = "mg/dL"
    MMOL_L = "mmol/L"
    UMOL_L = "µmol/L"  # Creatinine only


class Analyte(str, Enum):
    """Analytes that carry a unit companion and have conversion factors."""

    GLUCOSE = "glucose"
    TRIGLYCERIDES = "triglycerides"
    CHOLESTEROL = "cholesterol"  # TC, HDL and LDL share a factor
    CREATININE = "creatinine"


class DiseaseCategory(str, Enum):
    """Disease categories carrying family history and adjusted risks."""

    CVD = "cvd"
    T2D = "t2d"
    CANCER = "cancer"
    COPD = "copd"
    NEURO = "neuro"
    CKD = "ckd"


class RiskCategory(str, Enum):
    """Display band for a percentage risk."""

    LOW = "Low"
    MEDIUM = "Medium"
    HIGH = "High"
    NOT_AVAILABLE = "N/A"


def parse_sex(value: object) -> Sex | None:
    """Parse loosely typed sex input ("M", "Male", "female", ...)."""
    if value is None or isinstance(value, Sex):
        return value
    text = str(value).strip().lower()
    if text.startswith("m"):
        return Sex.MALE
    if text.startswith("f"):
        return Sex.FEMALE
    return None


def parse_unit(value: object) -> ConcentrationUnit | None:
    """Parse loosely typed unit text into a ConcentrationUnit."""
    if value is None or isinstance(value, ConcentrationUnit):
        return value
    text = str(value).strip().lower().replace(" ", "")
    if not text:
        return None
    if "mmol" in text:
        return ConcentrationUnit.MMOL_L
    if "mol" in text:
        return ConcentrationUnit.UMOL_L
    if "mg/dl" in text:
        return ConcentrationUnit.MG_DL
    raise ValueError(f"Unrecognised unit: {value}")
