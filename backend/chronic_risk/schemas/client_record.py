"""ClientRecord schema: the read-only input to every risk calculation.

All fields are optional. A model whose required inputs are missing returns
``None`` instead of guessing a value.
"""

from pydantic import BaseModel, Field, field_validator

from chronic_risk.schemas.base import ConcentrationUnit, DiseaseCategory, Sex, parse_sex, parse_unit


class Demographics(BaseModel):
    """Age, sex and schooling."""

    age: float | None = Field(None, ge=0, le=130, description="Age in years")
    sex: Sex | None = Field(None, description="Biological sex")
    education_years: float | None = Field(None, ge=0, description="Years of formal education")

    model_config = {"frozen": True}

    @field_validator("sex", mode="before")
    @classmethod
    def coerce_sex(cls, v: object) -> Sex | None:
        """Accept "M", "Male", "f" and similar spellings."""
        return parse_sex(v)


class Biometrics(BaseModel):
    """Body measurements and blood pressure."""

    height_cm: float | None = Field(None, ge=0, description="Height in centimetres")
    weight_kg: float | None = Field(None, ge=0, description="Weight in kilograms")
    waist_cm: float | None = Field(None, ge=0, description="Waist circumference in centimetres")
    sbp: float | None = Field(None, ge=0, description="Systolic blood pressure (mmHg)")
    dbp: float | None = Field(None, ge=0, description="Diastolic blood pressure (mmHg)")
    bp_treated: bool = Field(default=False, description="On antihypertensive medication")

    model_config = {"frozen": True}


class Lifestyle(BaseModel):
    """Smoking, activity, diet and alcohol."""

    smoker: bool | None = Field(None, description="Current smoker")
    pack_years: float | None = Field(None, ge=0, description="Cumulative pack-years")
    activity_days_per_week: float | None = Field(
        None, ge=0, le=7, description="Days per week with 30+ minutes of activity"
    )
    daily_produce: bool | None = Field(None, description="Eats vegetables or fruit every day")
    alcohol_units_per_week: float | None = Field(None, ge=0, description="Standard drinks per week")

    model_config = {"frozen": True}


class Labs(BaseModel):
    """Laboratory values keyed by canonical analyte name.

    Glucose and lipids carry a unit companion. Creatinine may be given in
    either unit; µmol/L wins when both are present.
    """

    hba1c_pct: float | None = Field(None, description="HbA1c (%)")
    glucose: float | None = Field(None, description="Fasting glucose")
    glucose_unit: ConcentrationUnit | None = Field(None, description="Glucose unit")
    insulin: float | None = Field(None, description="Fasting insulin (µU/mL)")
    total_cholesterol: float | None = Field(None, description="Total cholesterol")
    total_cholesterol_unit: ConcentrationUnit | None = Field(None, description="Total cholesterol unit")
    hdl: float | None = Field(None, description="HDL cholesterol")
    hdl_unit: ConcentrationUnit | None = Field(None, description="HDL unit")
    ldl: float | None = Field(None, description="LDL cholesterol")
    ldl_unit: ConcentrationUnit | None = Field(None, description="LDL unit")
    triglycerides: float | None = Field(None, description="Triglycerides")
    triglycerides_unit: ConcentrationUnit | None = Field(None, description="Triglycerides unit")
    creatinine_umol_l: float | None = Field(None, description="Serum creatinine (µmol/L)")
    creatinine_mg_dl: float | None = Field(None, description="Serum creatinine (mg/dL)")
    acr_mg_g: float | None = Field(None, description="Urine albumin-to-creatinine ratio (mg/g)")
    albumin_g_l: float | None = Field(None, description="Serum albumin (g/L)")
    crp_mg_dl: float | None = Field(None, description="C-reactive protein (mg/dL)")
    lymphocyte_pct: float | None = Field(None, description="Lymphocytes (%)")
    mcv_fl: float | None = Field(None, description="Mean corpuscular volume (fL)")
    rdw_pct: float | None = Field(None, description="Red cell distribution width (%)")
    alp_u_l: float | None = Field(None, description="Alkaline phosphatase (U/L)")
    wbc_10e3_ul: float | None = Field(None, description="White cell count (10^3/µL)")

    model_config = {"frozen": True}

    @field_validator(
        "glucose_unit",
        "total_cholesterol_unit",
        "hdl_unit",
        "ldl_unit",
        "triglycerides_unit",
        mode="before",
    )
    @classmethod
    def coerce_unit(cls, v: object) -> ConcentrationUnit | None:
        """Accept unit text in any case ("mg/dl", "MMOL/L")."""
        unit = parse_unit(v)
        if unit == ConcentrationUnit.UMOL_L:
            raise ValueError("µmol/L is only valid for creatinine")
        return unit


class FamilyHistoryCounts(BaseModel):
    """Number of affected relatives by degree of kinship."""

    first: int = Field(default=0, ge=0, description="Affected first-degree relatives")
    second: int = Field(default=0, ge=0, description="Affected second-degree relatives")
    third: int = Field(default=0, ge=0, description="Affected third-degree relatives")

    model_config = {"frozen": True}


class FamilyHistory(BaseModel):
    """Family history counts per disease category."""

    cvd: FamilyHistoryCounts | None = None
    t2d: FamilyHistoryCounts | None = None
    cancer: FamilyHistoryCounts | None = None
    copd: FamilyHistoryCounts | None = None
    neuro: FamilyHistoryCounts | None = None
    ckd: FamilyHistoryCounts | None = None

    model_config = {"frozen": True}

    def for_category(self, category: DiseaseCategory) -> FamilyHistoryCounts | None:
        """Get the counts recorded for a disease category."""
        return getattr(self, category.value)


class ClientRecord(BaseModel):
    """Schema for one client's intake data.

    Constructed once per report, never mutated by the engine.
    """

    client_id: str | None = Field(None, description="Client identifier")
    label: str | None = Field(None, description="Display label for the record")
    country: str | None = Field(None, description="Country; selects default lab units")
    demographics: Demographics = Field(default_factory=Demographics)
    biometrics: Biometrics = Field(default_factory=Biometrics)
    lifestyle: Lifestyle = Field(default_factory=Lifestyle)
    labs: Labs = Field(default_factory=Labs)
    family_history: FamilyHistory = Field(default_factory=FamilyHistory)

    model_config = {"frozen": True}
