"""Chronic Disease Risk Models.

Provides the scoring models behind the risk report:
- Metabolic Syndrome (ATP III)
- Framingham general CVD (10-year)
- FINDRISC (type 2 diabetes, 10-year)
- COPD-PS likelihood mapping
- CAIDE (dementia, 20-year)
- CKD-EPI 2021 eGFR and KDIGO staging
- General cancer risk (indicative only)
- Phenotypic Age (Levine 2018) with 10-year mortality

Every model is a pure function. A model whose required inputs are missing
returns None instead of scoring on zero. Educational decision support only.
"""

import logging
import math
from dataclasses import dataclass, field
from threading import Lock
from typing import Any

from chronic_risk.schemas.base import Sex, parse_sex
from chronic_risk.services.risk_banding import RiskBand, RiskResult, risk_band

logger = logging.getLogger(__name__)


@dataclass
class ModelResult:
    """Result from a scoring model."""

    model_name: str
    score: float
    score_unit: str
    percent: float | None
    band: RiskBand
    interpretation: str
    components: dict[str, Any] = field(default_factory=dict)
    references: list[str] = field(default_factory=list)

    @property
    def risk(self) -> RiskResult:
        """The percentage and band as a RiskResult."""
        return RiskResult(percent=self.percent, band=self.band)


def _finite(*values: float | None) -> bool:
    """True when every value is present and finite."""
    for v in values:
        if v is None:
            return False
        try:
            if not math.isfinite(float(v)):
                return False
        except (TypeError, ValueError):
            return False
    return True


def floor_lookup(table: dict[int, float], points: float) -> float:
    """Look up the entry for the largest key <= points.

    Points below the smallest key resolve to the smallest key's entry.
    """
    keys = sorted(table)
    chosen = keys[0]
    for key in keys:
        if points >= key:
            chosen = key
    return table[chosen]


# ============================================================================
# Metabolic Syndrome (ATP III)
# ============================================================================

@dataclass
class MetabolicCriterion:
    """One ATP III criterion with its display value."""

    name: str
    passed: bool
    value: str


@dataclass
class MetabolicSyndromeResult:
    """All five ATP III criteria and the resulting diagnosis."""

    criteria: list[MetabolicCriterion]
    count: int
    diagnosis: bool


def _fmt(value: float | None, unit: str = "") -> str:
    if value is None:
        return ""
    text = f"{value:g}"
    return f"{text} {unit}".strip()


def calculate_metabolic_syndrome(
    sex: Sex | str | None,
    waist_cm: float | None = None,
    triglycerides_mg_dl: float | None = None,
    hdl_mg_dl: float | None = None,
    sbp: float | None = None,
    dbp: float | None = None,
    glucose_mg_dl: float | None = None,
    hba1c_pct: float | None = None,
    display_values: dict[str, str] | None = None,
) -> MetabolicSyndromeResult:
    """Evaluate the five ATP III metabolic syndrome criteria.

    Each criterion is judged on its own inputs; a missing value fails that
    criterion only. Sex-specific criteria fail when sex is unknown.

    Args:
        sex: Biological sex.
        waist_cm: Waist circumference in cm.
        triglycerides_mg_dl: Triglycerides in mg/dL.
        hdl_mg_dl: HDL cholesterol in mg/dL.
        sbp: Systolic blood pressure in mmHg.
        dbp: Diastolic blood pressure in mmHg.
        glucose_mg_dl: Fasting glucose in mg/dL.
        hba1c_pct: HbA1c in percent.
        display_values: Display text for "triglycerides", "hdl" and "glucose"
            as originally entered. Defaults to the mg/dL value.

    Returns:
        MetabolicSyndromeResult with per-criterion status.
    """
    sex = parse_sex(sex)
    male = sex == Sex.MALE
    display = display_values or {}
    criteria: list[MetabolicCriterion] = []

    # 1) Abdominal obesity
    waist_limit = 102 if male else 88
    criteria.append(MetabolicCriterion(
        name="Abdominal obesity (waist ≥102 cm men, ≥88 cm women)",
        passed=sex is not None and waist_cm is not None and waist_cm >= waist_limit,
        value=_fmt(waist_cm, "cm"),
    ))

    # 2) Triglycerides
    criteria.append(MetabolicCriterion(
        name="Triglycerides ≥150 mg/dL (1.7 mmol/L)",
        passed=triglycerides_mg_dl is not None and triglycerides_mg_dl >= 150,
        value=display.get("triglycerides", _fmt(triglycerides_mg_dl, "mg/dL")),
    ))

    # 3) Low HDL
    hdl_limit = 40 if male else 50
    criteria.append(MetabolicCriterion(
        name="Low HDL (<40 mg/dL men, <50 mg/dL women)",
        passed=sex is not None and hdl_mg_dl is not None and hdl_mg_dl < hdl_limit,
        value=display.get("hdl", _fmt(hdl_mg_dl, "mg/dL")),
    ))

    # 4) Blood pressure
    criteria.append(MetabolicCriterion(
        name="BP ≥130/85 mmHg",
        passed=(sbp is not None and sbp >= 130) or (dbp is not None and dbp >= 85),
        value=f"{sbp:g}/{dbp:g} mmHg" if sbp is not None and dbp is not None else "",
    ))

    # 5) Glycaemia
    glucose_text = display.get("glucose", _fmt(glucose_mg_dl, "mg/dL"))
    if hba1c_pct is not None:
        glucose_text = ", ".join(filter(None, [glucose_text, f"HbA1c {hba1c_pct:g}%"]))
    criteria.append(MetabolicCriterion(
        name="Fasting glucose ≥100 mg/dL or HbA1c ≥5.7%",
        passed=(glucose_mg_dl is not None and glucose_mg_dl >= 100)
        or (hba1c_pct is not None and hba1c_pct >= 5.7),
        value=glucose_text,
    ))

    count = sum(1 for c in criteria if c.passed)
    return MetabolicSyndromeResult(criteria=criteria, count=count, diagnosis=count >= 3)


# ============================================================================
# Framingham General CVD (D'Agostino 2008, points -> 10-year %)
# ============================================================================

# (lower age bound, points), checked from the top; below the last bound gets the default.
# Ages past either end of the 20-79 table score the nearest band.
_FRAMINGHAM_AGE_POINTS = {
    Sex.MALE: ([(75, 13), (70, 12), (65, 11), (60, 10), (55, 8), (50, 6), (45, 3), (40, 0), (35, -4)], -9),
    Sex.FEMALE: ([(75, 16), (70, 14), (65, 12), (60, 10), (55, 8), (50, 6), (45, 3), (40, 0), (35, -3)], -7),
}

# Points for TC 160-199, 200-239, 240-279, >=280 by age decade
_FRAMINGHAM_TC_POINTS = {
    Sex.MALE: {
        "20-39": (4, 7, 9, 11),
        "40-49": (3, 5, 6, 8),
        "50-59": (2, 3, 4, 5),
        "60-69": (1, 1, 2, 3),
        "70-79": (0, 0, 1, 1),
    },
    Sex.FEMALE: {
        "20-39": (4, 8, 11, 13),
        "40-49": (3, 6, 8, 10),
        "50-59": (2, 4, 5, 7),
        "60-69": (1, 2, 3, 4),
        "70-79": (1, 1, 2, 2),
    },
}

# Points for SBP <120, 120-129, 130-139, 140-159, >=160 as (untreated, treated)
_FRAMINGHAM_SBP_POINTS = {
    Sex.MALE: ((0, 0, 1, 1, 2), (0, 1, 2, 2, 3)),
    Sex.FEMALE: ((0, 1, 2, 3, 4), (0, 3, 4, 5, 6)),
}

# Smoking points by age decade
_FRAMINGHAM_SMOKING_POINTS = {
    Sex.MALE: (8, 5, 3, 1, 1),
    Sex.FEMALE: (9, 7, 4, 2, 1),
}

_FRAMINGHAM_DIABETES_POINTS = {Sex.MALE: 2, Sex.FEMALE: 4}

FRAMINGHAM_RISK_TABLE: dict[Sex, dict[int, float]] = {
    Sex.MALE: {
        -100: 1, -1: 1, 0: 1, 1: 1, 2: 1, 3: 1, 4: 1, 5: 2, 6: 2, 7: 3, 8: 4, 9: 5,
        10: 6, 11: 8, 12: 10, 13: 12, 14: 16, 15: 20, 16: 25, 17: 31, 18: 37,
        19: 45, 20: 53, 21: 63,
    },
    Sex.FEMALE: {
        -100: 1, -1: 1, 0: 1, 1: 1, 2: 1, 3: 1, 4: 1, 5: 1, 6: 1, 7: 2, 8: 2, 9: 2,
        10: 3, 11: 4, 12: 5, 13: 6, 14: 8, 15: 11, 16: 14, 17: 17, 18: 22,
        19: 27, 20: 33, 21: 40,
    },
}


def _age_decade_index(age: float) -> int:
    """0 for <40, 1 for 40s, 2 for 50s, 3 for 60s, 4 for 70+."""
    if age < 40:
        return 0
    if age < 50:
        return 1
    if age < 60:
        return 2
    if age < 70:
        return 3
    return 4


def _sbp_index(sbp: float) -> int:
    if sbp < 120:
        return 0
    if sbp < 130:
        return 1
    if sbp < 140:
        return 2
    if sbp < 160:
        return 3
    return 4


def calculate_framingham(
    age: float | None,
    sex: Sex | str | None,
    total_cholesterol_mg_dl: float | None,
    hdl_mg_dl: float | None,
    sbp: float | None = None,
    bp_treated: bool = False,
    smoker: bool = False,
    diabetic: bool = False,
) -> ModelResult | None:
    """Calculate Framingham general cardiovascular 10-year risk.

    Args:
        age: Age in years.
        sex: Biological sex.
        total_cholesterol_mg_dl: Total cholesterol in mg/dL.
        hdl_mg_dl: HDL cholesterol in mg/dL.
        sbp: Systolic blood pressure; missing scores no BP points.
        bp_treated: On antihypertensive treatment.
        smoker: Current smoker.
        diabetic: Has diabetes.

    Returns:
        ModelResult with total points and 10-year %, or None when age, sex,
        total cholesterol or HDL is missing.
    """
    sex = parse_sex(sex)
    if sex is None or not _finite(age, total_cholesterol_mg_dl, hdl_mg_dl):
        logger.debug("Framingham skipped: missing age, sex, total cholesterol or HDL")
        return None

    components: dict[str, int] = {}
    decade = _age_decade_index(age)

    bands, default = _FRAMINGHAM_AGE_POINTS[sex]
    components["Age"] = next((pts for lower, pts in bands if age >= lower), default)

    tc_points = _FRAMINGHAM_TC_POINTS[sex][("20-39", "40-49", "50-59", "60-69", "70-79")[decade]]
    tc = total_cholesterol_mg_dl
    if tc >= 280:
        components["Total cholesterol"] = tc_points[3]
    elif tc >= 240:
        components["Total cholesterol"] = tc_points[2]
    elif tc >= 200:
        components["Total cholesterol"] = tc_points[1]
    elif tc >= 160:
        components["Total cholesterol"] = tc_points[0]
    else:
        components["Total cholesterol"] = 0

    if hdl_mg_dl >= 60:
        components["HDL"] = -1
    elif hdl_mg_dl >= 50:
        components["HDL"] = 0
    elif hdl_mg_dl >= 40:
        components["HDL"] = 1
    else:
        components["HDL"] = 2

    if sbp is not None:
        untreated, treated = _FRAMINGHAM_SBP_POINTS[sex]
        components["Systolic BP"] = (treated if bp_treated else untreated)[_sbp_index(sbp)]
    else:
        components["Systolic BP"] = 0

    if smoker:
        components["Smoking"] = _FRAMINGHAM_SMOKING_POINTS[sex][decade]
    if diabetic:
        components["Diabetes"] = _FRAMINGHAM_DIABETES_POINTS[sex]

    points = sum(components.values())
    risk_pct = floor_lookup(FRAMINGHAM_RISK_TABLE[sex], points)

    return ModelResult(
        model_name="Framingham General CVD (10-year)",
        score=points,
        score_unit="points",
        percent=risk_pct,
        band=risk_band(risk_pct),
        interpretation=f"Estimated 10-year cardiovascular risk {risk_pct:g}%",
        components=components,
        references=["D'Agostino RB, et al. Circulation 2008"],
    )


# ============================================================================
# FINDRISC (type 2 diabetes, 10-year)
# ============================================================================

def findrisc_percent(score: int) -> float:
    """Map a FINDRISC score to its 10-year risk band."""
    if score <= 11:
        return 1
    if score <= 14:
        return 4
    if score <= 20:
        return 17
    return 33


def calculate_findrisc(
    age: float | None,
    bmi: float | None,
    waist_cm: float | None,
    physically_active: bool = False,
    daily_produce: bool = False,
    bp_treated: bool = False,
    high_glucose_history: bool = False,
    family_history: str | None = None,
) -> ModelResult | None:
    """Calculate the FINDRISC type 2 diabetes score.

    Args:
        age: Age in years.
        bmi: Body mass index.
        waist_cm: Waist circumference in cm (94/102 cm bands).
        physically_active: 30+ minutes of activity daily.
        daily_produce: Eats vegetables or fruit every day.
        bp_treated: On antihypertensive medication.
        high_glucose_history: Ever had raised glucose or HbA1c.
        family_history: "first", "second" or None.

    Returns:
        ModelResult with the score and 10-year %, or None when age, BMI or
        waist is missing.
    """
    if not _finite(age, bmi, waist_cm):
        logger.debug("FINDRISC skipped: missing age, BMI or waist")
        return None

    components: dict[str, int] = {}

    if age < 45:
        components["Age"] = 0
    elif age < 55:
        components["Age"] = 2
    elif age < 65:
        components["Age"] = 3
    else:
        components["Age"] = 4

    if bmi < 25:
        components["BMI"] = 0
    elif bmi < 30:
        components["BMI"] = 1
    else:
        components["BMI"] = 3

    # Single set of waist bands for both sexes
    if waist_cm < 94:
        components["Waist"] = 0
    elif waist_cm < 102:
        components["Waist"] = 3
    else:
        components["Waist"] = 4

    components["Inactivity"] = 0 if physically_active else 2
    components["Low produce intake"] = 0 if daily_produce else 1
    components["BP medication"] = 2 if bp_treated else 0
    components["High glucose history"] = 5 if high_glucose_history else 0

    if family_history == "first":
        components["Family history"] = 5
    elif family_history == "second":
        components["Family history"] = 3
    else:
        components["Family history"] = 0

    score = sum(components.values())
    risk_pct = findrisc_percent(score)

    return ModelResult(
        model_name="FINDRISC (10-year T2D)",
        score=score,
        score_unit="points",
        percent=risk_pct,
        band=risk_band(risk_pct),
        interpretation=f"Estimated 10-year type 2 diabetes risk {risk_pct:g}%",
        components=components,
        references=["Lindström J, Tuomilehto J. Diabetes Care 2003"],
    )


# ============================================================================
# COPD-PS mapping
# ============================================================================

def copd_ps_score(pack_years: float | None, smoker: bool | None) -> int | None:
    """Derive a COPD-PS style score from smoking exposure.

    round(pack-years / 5), plus 2 for a current smoker, capped to [0, 10].
    None when both inputs are unknown.
    """
    if pack_years is None and smoker is None:
        return None
    raw = math.floor((pack_years or 0) / 5 + 0.5) + (2 if smoker else 0)
    return int(max(0, min(10, raw)))


def calculate_copd_ps(score: int | None) -> ModelResult | None:
    """Map a COPD-PS score to a likelihood band (5/15/25/35%)."""
    if score is None:
        return None

    if score <= 4:
        risk_pct = 5
    elif score <= 6:
        risk_pct = 15
    elif score <= 8:
        risk_pct = 25
    else:
        risk_pct = 35

    return ModelResult(
        model_name="COPD-PS Likelihood",
        score=score,
        score_unit="points",
        percent=risk_pct,
        band=risk_band(risk_pct),
        interpretation=f"Chronic respiratory disease likelihood ~{risk_pct}%",
        components={"COPD-PS score": score},
        references=["Martinez FJ, et al. COPD 2008"],
    )


# ============================================================================
# CAIDE (dementia, 20-year)
# ============================================================================

# (max score, risk %) tiers; scores above the last tier map to 100%
_CAIDE_TIERS = [(5, 1.0), (6, 1.9), (7, 4.2), (8, 7.4), (9, 14.0), (10, 19.6), (11, 31.7), (12, 52.6)]


def calculate_caide(
    age: float | None,
    sex: Sex | str | None = None,
    education_years: float | None = None,
    sbp: float | None = None,
    bmi: float | None = None,
    total_cholesterol_mmol_l: float | None = None,
    physically_active: bool | None = None,
) -> ModelResult | None:
    """Calculate the CAIDE 20-year dementia risk score.

    Missing optional factors score zero. Returns None when age is missing.
    """
    if not _finite(age):
        logger.debug("CAIDE skipped: missing age")
        return None

    sex = parse_sex(sex)
    components: dict[str, int] = {}

    if 47 <= age <= 53:
        components["Age"] = 3
    elif age > 53:
        components["Age"] = 4
    else:
        components["Age"] = 0

    if sex == Sex.MALE:
        components["Male sex"] = 1
    if education_years is not None and education_years < 10:
        components["Education <10 years"] = 2
    if sbp is not None and sbp >= 140:
        components["SBP ≥140"] = 2
    if bmi is not None and bmi >= 30:
        components["BMI ≥30"] = 2
    if total_cholesterol_mmol_l is not None and total_cholesterol_mmol_l >= 6.5:
        components["Total cholesterol ≥6.5 mmol/L"] = 2
    if physically_active is False:
        components["Physical inactivity"] = 1

    score = sum(components.values())
    risk_pct = next((pct for limit, pct in _CAIDE_TIERS if score <= limit), 100.0)

    return ModelResult(
        model_name="CAIDE Dementia Risk (20-year)",
        score=score,
        score_unit="points",
        percent=risk_pct,
        band=risk_band(risk_pct),
        interpretation=f"Estimated 20-year dementia risk {risk_pct:g}%",
        components=components,
        references=["Kivipelto M, et al. Lancet Neurol 2006"],
    )


# ============================================================================
# CKD-EPI 2021 eGFR and KDIGO grid
# ============================================================================

def calculate_egfr(
    creatinine_mg_dl: float | None,
    age: float | None,
    sex: Sex | str | None,
) -> float | None:
    """Calculate eGFR using the race-free CKD-EPI 2021 equation.

    eGFR = 142 × min(Scr/κ, 1)^α × max(Scr/κ, 1)^-1.200 × 0.9938^Age × 1.012 [female]

    Returns:
        eGFR in mL/min/1.73m², or None when creatinine, age or sex is missing.
    """
    sex = parse_sex(sex)
    if sex is None or not _finite(creatinine_mg_dl, age) or creatinine_mg_dl <= 0 or not age:
        return None

    female = sex == Sex.FEMALE
    kappa = 0.7 if female else 0.9
    alpha = -0.241 if female else -0.302

    ratio = creatinine_mg_dl / kappa
    egfr = 142 * min(ratio, 1.0) ** alpha * max(ratio, 1.0) ** -1.200 * 0.9938 ** age
    if female:
        egfr *= 1.012
    return egfr


KDIGO_GRID: dict[str, dict[str, float]] = {
    "G1": {"A1": 5, "A2": 10, "A3": 20},
    "G2": {"A1": 7, "A2": 15, "A3": 25},
    "G3a": {"A1": 10, "A2": 20, "A3": 35},
    "G3b": {"A1": 15, "A2": 30, "A3": 45},
    "G4": {"A1": 25, "A2": 45, "A3": 60},
    "G5": {"A1": 60, "A2": 75, "A3": 90},
}


def gfr_category(egfr: float) -> str:
    if egfr >= 90:
        return "G1"
    if egfr >= 60:
        return "G2"
    if egfr >= 45:
        return "G3a"
    if egfr >= 30:
        return "G3b"
    if egfr >= 15:
        return "G4"
    return "G5"


def albuminuria_category(acr_mg_g: float) -> str:
    if acr_mg_g < 30:
        return "A1"
    if acr_mg_g < 300:
        return "A2"
    return "A3"


def calculate_kdigo(egfr: float | None, acr_mg_g: float | None) -> ModelResult | None:
    """Place eGFR and ACR on the KDIGO grid.

    Returns:
        ModelResult whose interpretation names the "G?-A?" cell, or None when
        eGFR or ACR is missing.
    """
    if not _finite(egfr, acr_mg_g):
        return None

    g = gfr_category(egfr)
    a = albuminuria_category(acr_mg_g)
    risk_pct = KDIGO_GRID[g][a]

    return ModelResult(
        model_name="KDIGO CKD Risk",
        score=egfr,
        score_unit="mL/min/1.73m²",
        percent=risk_pct,
        band=risk_band(risk_pct),
        interpretation=f"{g}-{a}",
        components={"gfr_category": g, "albuminuria_category": a, "acr_mg_g": acr_mg_g},
        references=["KDIGO 2012 CKD Guideline"],
    )


# ============================================================================
# Cancer (general) - indicative only
# ============================================================================

def calculate_cancer_risk(
    age: float | None,
    smoker: bool | None = None,
    alcohol_units_per_week: float | None = None,
    bmi: float | None = None,
    activity_days_per_week: float | None = None,
) -> ModelResult | None:
    """Heuristic general cancer risk. Returns None when age is missing."""
    if not _finite(age):
        return None

    components: dict[str, float] = {}
    if age >= 70:
        components["Age"] = 15.0
    elif age >= 60:
        components["Age"] = 10.0
    elif age >= 50:
        components["Age"] = 6.0
    else:
        components["Age"] = 2.0

    if smoker:
        components["Smoking"] = 5.0
    if alcohol_units_per_week is not None and alcohol_units_per_week > 14:
        components["Alcohol >14 units/week"] = 2.0
    if bmi is not None and bmi >= 30:
        components["BMI ≥30"] = 2.0
    if activity_days_per_week is not None and activity_days_per_week >= 5:
        components["Active ≥5 days/week"] = -1.0

    risk_pct = max(0.5, sum(components.values()))

    return ModelResult(
        model_name="Cancer (general, indicative)",
        score=risk_pct,
        score_unit="%",
        percent=risk_pct,
        band=risk_band(risk_pct),
        interpretation="Indicative only; not a validated cancer risk model",
        components=components,
    )


# ============================================================================
# Phenotypic Age (Levine 2018)
# ============================================================================

@dataclass
class PhenotypicAgeResult:
    """Phenotypic age and 10-year mortality; both None if any input is missing."""

    pheno_age: float | None
    mortality_10yr_pct: float | None
    band: RiskBand
    age_delta: float | None = None


PHENO_GAMMA = 0.0077
PHENO_HORIZON_MONTHS = 120
CRP_LOG_FLOOR = 1e-9


def calculate_phenotypic_age(
    albumin_g_l: float | None,
    creatinine_umol_l: float | None,
    glucose_mmol_l: float | None,
    crp_mg_dl: float | None,
    lymphocyte_pct: float | None,
    mcv_fl: float | None,
    rdw_pct: float | None,
    alp_u_l: float | None,
    wbc_10e3_ul: float | None,
    age: float | None,
) -> PhenotypicAgeResult:
    """Calculate Levine phenotypic age and 10-year mortality.

    All nine biomarkers and chronological age are required. If any one is
    missing or non-finite, both outputs are None.
    """
    values = [
        albumin_g_l, creatinine_umol_l, glucose_mmol_l, crp_mg_dl, lymphocyte_pct,
        mcv_fl, rdw_pct, alp_u_l, wbc_10e3_ul, age,
    ]
    if not _finite(*values):
        logger.debug("Phenotypic age skipped: incomplete biomarker panel")
        return PhenotypicAgeResult(pheno_age=None, mortality_10yr_pct=None, band=risk_band(None))

    crp_log = math.log(max(crp_mg_dl, CRP_LOG_FLOOR))
    xb = (
        -0.0336 * albumin_g_l
        + 0.0095 * creatinine_umol_l
        + 0.1953 * glucose_mmol_l
        + 0.0954 * crp_log
        - 0.0120 * lymphocyte_pct
        + 0.0268 * mcv_fl
        + 0.3306 * rdw_pct
        + 0.0019 * alp_u_l
        + 0.0554 * wbc_10e3_ul
        + 0.0804 * age
        - 19.9067
    )

    try:
        hazard = math.exp(xb) * (math.exp(PHENO_HORIZON_MONTHS * PHENO_GAMMA) - 1) / PHENO_GAMMA
        mortality = 1 - math.exp(-hazard)
    except OverflowError:
        mortality = 1.0

    if not 0 < mortality < 1:
        # Inversion is undefined at the extremes
        pheno_age = None
    else:
        pheno_age = 141.50225 + math.log(-0.00553 * math.log(1 - mortality)) / 0.090165

    mortality_pct = mortality * 100.0
    return PhenotypicAgeResult(
        pheno_age=pheno_age,
        mortality_10yr_pct=mortality_pct,
        band=risk_band(mortality_pct),
        age_delta=pheno_age - age if pheno_age is not None else None,
    )


# ============================================================================
# Risk Model Service
# ============================================================================

def _copd_from_exposure(pack_years: float | None = None, smoker: bool | None = None) -> ModelResult | None:
    return calculate_copd_ps(copd_ps_score(pack_years, smoker))


class RiskModelService:
    """Registry of the scoring models.

    Usage:
        service = RiskModelService()
        result = service.calculate("framingham",
            age=55, sex="male", total_cholesterol_mg_dl=210, hdl_mg_dl=45, sbp=135)
    """

    MODELS = {
        "metabolic_syndrome": calculate_metabolic_syndrome,
        "framingham": calculate_framingham,
        "findrisc": calculate_findrisc,
        "copd_ps": _copd_from_exposure,
        "caide": calculate_caide,
        "egfr": calculate_egfr,
        "kdigo": calculate_kdigo,
        "cancer": calculate_cancer_risk,
        "phenotypic_age": calculate_phenotypic_age,
    }

    DESCRIPTIONS = {
        "metabolic_syndrome": "Metabolic Syndrome (ATP III, 5 criteria)",
        "framingham": "Framingham General CVD 10-Year Risk",
        "findrisc": "FINDRISC Type 2 Diabetes 10-Year Risk",
        "copd_ps": "COPD-PS Likelihood (from pack-years and smoking status)",
        "caide": "CAIDE Dementia 20-Year Risk",
        "egfr": "CKD-EPI 2021 eGFR (race-free)",
        "kdigo": "KDIGO CKD Risk Grid",
        "cancer": "Cancer (general, indicative only)",
        "phenotypic_age": "Phenotypic Age (Levine 2018) + 10-year mortality",
    }

    def get_available_models(self) -> dict[str, str]:
        """Get the available models with descriptions."""
        return dict(self.DESCRIPTIONS)

    def calculate(self, model: str, **kwargs: Any) -> Any:
        """Run a scoring model by name.

        Args:
            model: Name of the model to run.
            **kwargs: Parameters for the model.

        Returns:
            The model's result, or None when its required inputs are missing.

        Raises:
            ValueError: If the model is unknown or the parameters are invalid.
        """
        model_name = model.lower().replace("-", "_")

        if model_name not in self.MODELS:
            available = ", ".join(self.MODELS.keys())
            raise ValueError(f"Unknown model: {model}. Available: {available}")

        try:
            return self.MODELS[model_name](**kwargs)
        except TypeError as e:
            raise ValueError(f"Invalid parameters for {model}: {e}") from e

    def get_stats(self) -> dict[str, Any]:
        """Get statistics about available models."""
        return {
            "total_models": len(self.MODELS),
            "model_list": list(self.MODELS.keys()),
        }


# Singleton instance and lock
_risk_model_service: RiskModelService | None = None
_risk_model_lock = Lock()


def get_risk_model_service() -> RiskModelService:
    """Get the singleton RiskModelService instance."""
    global _risk_model_service

    if _risk_model_service is None:
        with _risk_model_lock:
            if _risk_model_service is None:
                logger.info("Creating singleton RiskModelService instance")
                _risk_model_service = RiskModelService()

    return _risk_model_service


def reset_risk_model_service() -> None:
    """Reset the singleton instance (for testing)."""
    global _risk_model_service
    with _risk_model_lock:
        _risk_model_service = None
