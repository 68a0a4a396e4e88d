"""Tests for the Risk Engine Service (report assembly)."""

import pytest

from chronic_risk.schemas.base import ConcentrationUnit, DiseaseCategory, RiskCategory
from chronic_risk.schemas.client_record import ClientRecord, Labs
from chronic_risk.services.risk_engine import (
    RiskEngineService,
    get_risk_engine_service,
    reset_risk_engine_service,
    resolve_creatinine_umol,
    resolve_units,
)


class TestServiceInit:
    """Test service initialization."""

    def setup_method(self):
        """Reset singleton before each test."""
        reset_risk_engine_service()

    def test_singleton_pattern(self):
        """Test singleton pattern works."""
        assert get_risk_engine_service() is get_risk_engine_service()

    def test_stats_count_assessments(self):
        """Test the assessment counter."""
        engine = RiskEngineService()
        engine.assess(ClientRecord())
        stats = engine.get_stats()
        assert stats["assessments"] == 1
        assert len(stats["disease_categories"]) == 6


# ============================================================================
# Input Resolution
# ============================================================================


class TestResolveUnits:
    """Test country defaults and unit fallback chain."""

    def test_australia_defaults_to_mmol(self):
        """Test Australia reports glucose and lipids in mmol/L."""
        units = resolve_units(ClientRecord(country="Australia"))
        assert units.glucose == ConcentrationUnit.MMOL_L
        assert units.total_cholesterol == ConcentrationUnit.MMOL_L

    def test_missing_country_uses_default(self):
        """Test a missing country falls back to the default country."""
        units = resolve_units(ClientRecord())
        assert units.triglycerides == ConcentrationUnit.MMOL_L

    def test_other_country_defaults_to_mg_dl(self):
        """Test other countries default to mg/dL."""
        units = resolve_units(ClientRecord(country="United States"))
        assert units.glucose == ConcentrationUnit.MG_DL
        assert units.hdl == ConcentrationUnit.MG_DL

    def test_hdl_follows_triglycerides_and_tc_follows_hdl(self):
        """Test HDL falls back to the TG unit and TC/LDL to the HDL unit."""
        record = ClientRecord(
            country="United States",
            labs=Labs(triglycerides=1.5, triglycerides_unit="mmol/L"),
        )
        units = resolve_units(record)
        assert units.glucose == ConcentrationUnit.MG_DL
        assert units.hdl == ConcentrationUnit.MMOL_L
        assert units.total_cholesterol == ConcentrationUnit.MMOL_L
        assert units.ldl == ConcentrationUnit.MMOL_L

    def test_explicit_units_win(self):
        """Test explicit units are never overridden."""
        record = ClientRecord(
            country="Australia",
            labs=Labs(hdl_unit="mg/dL", total_cholesterol_unit="mmol/L"),
        )
        units = resolve_units(record)
        assert units.triglycerides == ConcentrationUnit.MMOL_L
        assert units.hdl == ConcentrationUnit.MG_DL
        assert units.total_cholesterol == ConcentrationUnit.MMOL_L


class TestResolveCreatinine:
    """Test creatinine unit precedence."""

    def test_umol_wins(self):
        """Test µmol/L wins when both units are present."""
        record = ClientRecord(labs=Labs(creatinine_umol_l=80, creatinine_mg_dl=2.0))
        assert resolve_creatinine_umol(record) == 80

    def test_mg_dl_converted(self):
        """Test mg/dL is converted when it is the only value."""
        record = ClientRecord(labs=Labs(creatinine_mg_dl=1.0))
        assert resolve_creatinine_umol(record) == pytest.approx(88.4)

    def test_missing(self):
        assert resolve_creatinine_umol(ClientRecord()) is None


# ============================================================================
# Assessment
# ============================================================================


class TestAssess:
    """Test full assessment of a client record."""

    def setup_method(self):
        self.engine = RiskEngineService()

    def test_complete_record(self, complete_record: ClientRecord):
        """Test every section is populated for a complete record."""
        report = self.engine.assess(complete_record)

        assert report.client_id == "c-001"
        assert report.bmi == pytest.approx(92 / 1.78 ** 2)
        assert report.whtr == pytest.approx(105 / 178)
        assert report.biomarkers.homa_ir == pytest.approx(110 * 12 / 405)
        assert report.metabolic_syndrome.count == 5
        assert report.metabolic_syndrome.diagnosis is True
        assert report.phenotypic_age.pheno_age is not None
        assert report.phenotypic_age.age_delta == pytest.approx(report.phenotypic_age.pheno_age - 55)
        assert report.creatinine_umol_l == pytest.approx(88.4)
        assert report.kdigo_category == "G2-A1"

    def test_disease_risks(self, complete_record: ClientRecord):
        """Test base and adjusted risks for each disease category."""
        report = self.engine.assess(complete_record)
        risks = report.disease_risks

        # Framingham 17 points -> 31%, one first-degree relative -> x1.10
        assert risks[DiseaseCategory.CVD].base_percent == 31
        assert risks[DiseaseCategory.CVD].adjusted.percent == pytest.approx(34.1)
        assert risks[DiseaseCategory.CVD].adjusted.band.label == RiskCategory.HIGH

        # FINDRISC 19 points -> 17%, one second-degree relative -> x1.05
        assert risks[DiseaseCategory.T2D].model.score == 19
        assert risks[DiseaseCategory.T2D].adjusted.percent == pytest.approx(17.85)

        assert risks[DiseaseCategory.COPD].adjusted.percent == 15
        assert risks[DiseaseCategory.NEURO].adjusted.percent == pytest.approx(1.9)
        assert risks[DiseaseCategory.CKD].adjusted.percent == 7
        assert risks[DiseaseCategory.CANCER].adjusted.percent == pytest.approx(11.0)

    def test_executive_summary_covers_all_categories(self, complete_record: ClientRecord):
        """Test the summary has one entry per disease category."""
        summary = self.engine.assess(complete_record).executive_summary
        assert set(summary) == set(DiseaseCategory)

    def test_empty_record(self):
        """Test an empty record yields N/A everywhere without raising."""
        report = self.engine.assess(ClientRecord())

        assert report.bmi is None
        assert report.egfr is None
        assert report.kdigo_category is None
        assert report.metabolic_syndrome.count == 0
        assert report.phenotypic_age.pheno_age is None
        for risk in report.executive_summary.values():
            assert risk.percent is None
            assert risk.band.label == RiskCategory.NOT_AVAILABLE

    def test_family_history_on_null_base(self):
        """Test family history never creates a risk from nothing."""
        record = ClientRecord.model_validate({"family_history": {"cvd": {"first": 3}}})
        report = self.engine.assess(record)
        assert report.disease_risks[DiseaseCategory.CVD].adjusted.percent is None

    def test_diabetic_flag_from_hba1c(self, complete_record_data: dict):
        """Test HbA1c >=6.5% adds Framingham diabetes points."""
        complete_record_data["labs"]["hba1c_pct"] = 6.8
        report = self.engine.assess(ClientRecord.model_validate(complete_record_data))
        model = report.disease_risks[DiseaseCategory.CVD].model
        assert model.components["Diabetes"] == 2

    def test_mmol_record_matches_mg_dl_record(self, complete_record_data: dict):
        """Test the same labs in mmol/L give the same risks."""
        mg_dl = self.engine.assess(ClientRecord.model_validate(complete_record_data))

        labs = complete_record_data["labs"]
        labs.update(
            glucose=110 / 18.0,
            total_cholesterol=220 / 38.67,
            hdl=38 / 38.67,
            triglycerides=180 / 88.57,
            glucose_unit=None,
            total_cholesterol_unit=None,
            hdl_unit=None,
            triglycerides_unit=None,
        )
        complete_record_data["country"] = "Australia"
        mmol = self.engine.assess(ClientRecord.model_validate(complete_record_data))

        for category in DiseaseCategory:
            assert mmol.executive_summary[category].percent == pytest.approx(
                mg_dl.executive_summary[category].percent
            )
        assert mmol.biomarkers.tyg_index == pytest.approx(mg_dl.biomarkers.tyg_index)

    def test_metabolic_values_shown_as_entered(self):
        """Test metabolic criteria display the entered value and unit."""
        record = ClientRecord.model_validate({
            "country": "Australia",
            "demographics": {"sex": "male"},
            "labs": {"triglycerides": 1.8, "hdl": 0.9, "glucose": 6.1, "hba1c_pct": 5.9},
        })
        criteria = self.engine.assess(record).metabolic_syndrome.criteria

        assert criteria[1].value == "1.8 mmol/L"
        assert criteria[1].passed is True
        assert criteria[2].value == "0.9 mmol/L"
        assert criteria[4].value == "6.1 mmol/L, HbA1c 5.9%"

    def test_record_not_modified(self, complete_record: ClientRecord):
        """Test assessing a record leaves it unchanged."""
        before = complete_record.model_dump()
        self.engine.assess(complete_record)
        assert complete_record.model_dump() == before

    def test_copd_needs_smoking_information(self):
        """Test COPD is N/A when neither smoking status nor pack-years is known."""
        report = self.engine.assess(ClientRecord.model_validate({"lifestyle": {"smoker": False}}))
        assert report.disease_risks[DiseaseCategory.COPD].adjusted.percent == 5

        report = self.engine.assess(ClientRecord())
        assert report.disease_risks[DiseaseCategory.COPD].adjusted.percent is None

    def test_family_history_counts_used_per_category(self):
        """Test each category reads its own family history."""
        record = ClientRecord.model_validate({
            "demographics": {"age": 65},
            "lifestyle": {"smoker": False},
            "family_history": {"cancer": {"first": 2}, "copd": {"third": 5}},
        })
        report = self.engine.assess(record)
        assert report.disease_risks[DiseaseCategory.CANCER].adjusted.percent == pytest.approx(12.0)
        assert report.disease_risks[DiseaseCategory.COPD].adjusted.percent == pytest.approx(5.5)
