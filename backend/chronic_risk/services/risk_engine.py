"""Risk engine: assembles every model's output for one client record.

Control flow:
    BMI/WHtR -> derived biomarkers -> each risk model independently ->
    family history adjustment -> banding

Models never feed each other, apart from eGFR feeding the KDIGO grid and
family history scaling each disease's base risk.
"""

import logging
from dataclasses import dataclass, field
from threading import Lock
from typing import Any

from chronic_risk.core.config import settings
from chronic_risk.schemas.base import Analyte, ConcentrationUnit, DiseaseCategory
from chronic_risk.schemas.client_record import ClientRecord, FamilyHistoryCounts
from chronic_risk.services.biomarkers import (
    DerivedBiomarkers,
    calculate_aip,
    calculate_bmi,
    calculate_homa_ir,
    calculate_tyg,
    calculate_vai,
    calculate_whtr,
)
from chronic_risk.services.risk_banding import (
    RiskResult,
    adjust_for_family_history,
    make_risk_result,
)
from chronic_risk.services.risk_models import (
    MetabolicSyndromeResult,
    ModelResult,
    PhenotypicAgeResult,
    calculate_caide,
    calculate_cancer_risk,
    calculate_copd_ps,
    calculate_egfr,
    calculate_findrisc,
    calculate_framingham,
    calculate_kdigo,
    calculate_metabolic_syndrome,
    calculate_phenotypic_age,
    copd_ps_score,
)
from chronic_risk.services.units import (
    mgdl_to_umol_creatinine,
    to_mg_dl,
    to_mmol_l,
    umol_to_mgdl_creatinine,
)

logger = logging.getLogger(__name__)


# HbA1c at or above this counts as diabetic for Framingham
DIABETES_HBA1C_PCT = 6.5
# HbA1c at or above this counts as a high-glucose history for FINDRISC
PREDIABETES_HBA1C_PCT = 5.7
HIGH_GLUCOSE_MG_DL = 100

FINDRISC_ACTIVE_DAYS = 5
CAIDE_ACTIVE_DAYS = 2


# ============================================================================
# Report types
# ============================================================================

@dataclass(frozen=True)
class ResolvedUnits:
    """Units in effect for glucose and lipids after country defaults."""

    glucose: ConcentrationUnit
    triglycerides: ConcentrationUnit
    hdl: ConcentrationUnit
    total_cholesterol: ConcentrationUnit
    ldl: ConcentrationUnit


@dataclass
class DiseaseRisk:
    """One disease category: the model behind it, its base and adjusted risk."""

    category: DiseaseCategory
    model: ModelResult | None
    base_percent: float | None
    adjusted: RiskResult


@dataclass
class RiskReport:
    """Structured output for one client record."""

    client_id: str | None
    label: str | None
    country: str
    units: ResolvedUnits
    biomarkers: DerivedBiomarkers
    metabolic_syndrome: MetabolicSyndromeResult
    phenotypic_age: PhenotypicAgeResult
    egfr: float | None
    creatinine_umol_l: float | None
    kdigo_category: str | None
    disease_risks: dict[DiseaseCategory, DiseaseRisk] = field(default_factory=dict)

    @property
    def bmi(self) -> float | None:
        return self.biomarkers.bmi

    @property
    def whtr(self) -> float | None:
        return self.biomarkers.waist_to_height

    @property
    def executive_summary(self) -> dict[DiseaseCategory, RiskResult]:
        """Adjusted risk per disease category, in display order."""
        return {category: risk.adjusted for category, risk in self.disease_risks.items()}


# ============================================================================
# Input resolution
# ============================================================================

def resolve_units(record: ClientRecord) -> ResolvedUnits:
    """Fill missing units from the country default.

    Glucose and triglycerides fall back to the country default, HDL falls
    back to the triglyceride unit, total cholesterol and LDL to the HDL unit.
    """
    default = (
        ConcentrationUnit.MMOL_L if settings.uses_mmol(record.country) else ConcentrationUnit.MG_DL
    )
    labs = record.labs
    trig = labs.triglycerides_unit or default
    hdl = labs.hdl_unit or trig
    return ResolvedUnits(
        glucose=labs.glucose_unit or default,
        triglycerides=trig,
        hdl=hdl,
        total_cholesterol=labs.total_cholesterol_unit or hdl,
        ldl=labs.ldl_unit or hdl,
    )


def resolve_creatinine_umol(record: ClientRecord) -> float | None:
    """Creatinine in µmol/L; an explicit µmol/L value wins over mg/dL."""
    labs = record.labs
    if labs.creatinine_umol_l is not None:
        return labs.creatinine_umol_l
    if labs.creatinine_mg_dl is not None:
        return mgdl_to_umol_creatinine(labs.creatinine_mg_dl)
    return None


def _findrisc_family_degree(counts: FamilyHistoryCounts | None) -> str | None:
    if counts is None:
        return None
    if counts.first:
        return "first"
    if counts.second:
        return "second"
    return None


def _entered_values(**values: tuple[float | None, ConcentrationUnit]) -> dict[str, str]:
    """Display text for lab values in the unit they were reported in."""
    return {
        name: f"{value:g} {unit.value}"
        for name, (value, unit) in values.items()
        if value is not None
    }


def _at_least(value: float | None, threshold: float) -> bool | None:
    if value is None:
        return None
    return value >= threshold


# ============================================================================
# Risk Engine Service
# ============================================================================

class RiskEngineService:
    """Runs every model over a client record and assembles a RiskReport.

    Usage:
        engine = RiskEngineService()
        report = engine.assess(record)
        report.executive_summary[DiseaseCategory.CVD].band.label
    """

    def __init__(self) -> None:
        self._assessments = 0

    def derive_biomarkers(self, record: ClientRecord, units: ResolvedUnits) -> DerivedBiomarkers:
        """Compute BMI, WHtR and the lab-derived indices."""
        bio, labs = record.biometrics, record.labs
        bmi = calculate_bmi(bio.height_cm, bio.weight_kg)
        return DerivedBiomarkers(
            bmi=bmi,
            waist_to_height=calculate_whtr(bio.waist_cm, bio.height_cm),
            homa_ir=calculate_homa_ir(labs.glucose, labs.insulin, units.glucose),
            tyg_index=calculate_tyg(labs.triglycerides, labs.glucose, units.triglycerides, units.glucose),
            aip=calculate_aip(labs.triglycerides, labs.hdl, units.triglycerides, units.hdl),
            vai=calculate_vai(
                record.demographics.sex, bio.waist_cm, bmi,
                labs.triglycerides, labs.hdl, units.triglycerides, units.hdl,
            ),
        )

    def assess(self, record: ClientRecord) -> RiskReport:
        """Assess one client record.

        Args:
            record: Validated client intake data. Never modified.

        Returns:
            RiskReport with biomarkers, metabolic syndrome, phenotypic age,
            kidney staging and the six adjusted disease risks.
        """
        demo, bio, life, labs = record.demographics, record.biometrics, record.lifestyle, record.labs
        units = resolve_units(record)
        biomarkers = self.derive_biomarkers(record, units)
        bmi = biomarkers.bmi

        glucose_mg_dl = to_mg_dl(labs.glucose, units.glucose, Analyte.GLUCOSE)
        tg_mg_dl = to_mg_dl(labs.triglycerides, units.triglycerides, Analyte.TRIGLYCERIDES)
        hdl_mg_dl = to_mg_dl(labs.hdl, units.hdl, Analyte.CHOLESTEROL)
        tc_mg_dl = to_mg_dl(labs.total_cholesterol, units.total_cholesterol, Analyte.CHOLESTEROL)
        creatinine_umol = resolve_creatinine_umol(record)
        creatinine_mg_dl = (
            umol_to_mgdl_creatinine(creatinine_umol) if creatinine_umol is not None else None
        )

        metabolic = calculate_metabolic_syndrome(
            sex=demo.sex,
            waist_cm=bio.waist_cm,
            triglycerides_mg_dl=tg_mg_dl,
            hdl_mg_dl=hdl_mg_dl,
            sbp=bio.sbp,
            dbp=bio.dbp,
            glucose_mg_dl=glucose_mg_dl,
            hba1c_pct=labs.hba1c_pct,
            display_values=_entered_values(
                triglycerides=(labs.triglycerides, units.triglycerides),
                hdl=(labs.hdl, units.hdl),
                glucose=(labs.glucose, units.glucose),
            ),
        )

        pheno = calculate_phenotypic_age(
            albumin_g_l=labs.albumin_g_l,
            creatinine_umol_l=creatinine_umol,
            glucose_mmol_l=to_mmol_l(labs.glucose, units.glucose, Analyte.GLUCOSE),
            crp_mg_dl=labs.crp_mg_dl,
            lymphocyte_pct=labs.lymphocyte_pct,
            mcv_fl=labs.mcv_fl,
            rdw_pct=labs.rdw_pct,
            alp_u_l=labs.alp_u_l,
            wbc_10e3_ul=labs.wbc_10e3_ul,
            age=demo.age,
        )

        activity = life.activity_days_per_week
        high_glucose = bool(_at_least(labs.hba1c_pct, PREDIABETES_HBA1C_PCT)) or bool(
            _at_least(glucose_mg_dl, HIGH_GLUCOSE_MG_DL)
        )

        egfr = calculate_egfr(creatinine_mg_dl, demo.age, demo.sex)
        kdigo = calculate_kdigo(egfr, labs.acr_mg_g)

        models: dict[DiseaseCategory, ModelResult | None] = {
            DiseaseCategory.CVD: calculate_framingham(
                age=demo.age,
                sex=demo.sex,
                total_cholesterol_mg_dl=tc_mg_dl,
                hdl_mg_dl=hdl_mg_dl,
                sbp=bio.sbp,
                bp_treated=bio.bp_treated,
                smoker=bool(life.smoker),
                diabetic=bool(_at_least(labs.hba1c_pct, DIABETES_HBA1C_PCT)),
            ),
            DiseaseCategory.T2D: calculate_findrisc(
                age=demo.age,
                bmi=bmi,
                waist_cm=bio.waist_cm,
                physically_active=bool(_at_least(activity, FINDRISC_ACTIVE_DAYS)),
                daily_produce=bool(life.daily_produce),
                bp_treated=bio.bp_treated,
                high_glucose_history=high_glucose,
                family_history=_findrisc_family_degree(record.family_history.t2d),
            ),
            DiseaseCategory.COPD: calculate_copd_ps(copd_ps_score(life.pack_years, life.smoker)),
            DiseaseCategory.NEURO: calculate_caide(
                age=demo.age,
                sex=demo.sex,
                education_years=demo.education_years,
                sbp=bio.sbp,
                bmi=bmi,
                total_cholesterol_mmol_l=to_mmol_l(
                    labs.total_cholesterol, units.total_cholesterol, Analyte.CHOLESTEROL
                ),
                physically_active=_at_least(activity, CAIDE_ACTIVE_DAYS),
            ),
            DiseaseCategory.CKD: kdigo,
            DiseaseCategory.CANCER: calculate_cancer_risk(
                age=demo.age,
                smoker=life.smoker,
                alcohol_units_per_week=life.alcohol_units_per_week,
                bmi=bmi,
                activity_days_per_week=activity,
            ),
        }

        disease_risks: dict[DiseaseCategory, DiseaseRisk] = {}
        for category, result in models.items():
            base = result.percent if result is not None else None
            adjusted = adjust_for_family_history(base, record.family_history.for_category(category))
            if base is None:
                logger.debug(f"No {category.value} risk: model inputs incomplete")
            disease_risks[category] = DiseaseRisk(
                category=category,
                model=result,
                base_percent=base,
                adjusted=make_risk_result(adjusted),
            )

        self._assessments += 1
        logger.info(
            f"Assessed client {record.client_id or '<anonymous>'}: "
            f"{sum(1 for r in disease_risks.values() if r.base_percent is not None)}/"
            f"{len(disease_risks)} disease risks available"
        )

        return RiskReport(
            client_id=record.client_id,
            label=record.label,
            country=record.country or settings.default_country,
            units=units,
            biomarkers=biomarkers,
            metabolic_syndrome=metabolic,
            phenotypic_age=pheno,
            egfr=egfr,
            creatinine_umol_l=creatinine_umol,
            kdigo_category=kdigo.interpretation if kdigo is not None else None,
            disease_risks=disease_risks,
        )

    def get_stats(self) -> dict[str, Any]:
        """Get engine statistics."""
        return {
            "disease_categories": [c.value for c in DiseaseCategory],
            "assessments": self._assessments,
        }


# Singleton instance and lock
_risk_engine_service: RiskEngineService | None = None
_risk_engine_lock = Lock()


def get_risk_engine_service() -> RiskEngineService:
    """Get the singleton RiskEngineService instance."""
    global _risk_engine_service

    if _risk_engine_service is None:
        with _risk_engine_lock:
            if _risk_engine_service is None:
                logger.info("Creating singleton RiskEngineService instance")
                _risk_engine_service = RiskEngineService()

    return _risk_engine_service


def reset_risk_engine_service() -> None:
    """Reset the singleton instance (for testing)."""
    global _risk_engine_service
    with _risk_engine_lock:
        _risk_engine_service = None
