"""Tests for derived biomarkers."""

import math

import pytest

from chronic_risk.schemas.base import ConcentrationUnit, Sex
from chronic_risk.services.biomarkers import (
    calculate_aip,
    calculate_bmi,
    calculate_homa_ir,
    calculate_tyg,
    calculate_vai,
    calculate_whtr,
)


class TestBodyComposition:
    """Test BMI and waist-to-height ratio."""

    def test_bmi(self):
        """Test BMI = kg / m²."""
        assert calculate_bmi(170, 72.25) == pytest.approx(25.0)

    @pytest.mark.parametrize("height,weight", [(None, 70), (170, None), (0, 70), (170, 0)])
    def test_bmi_missing(self, height, weight):
        """Test BMI is None for missing or zero inputs."""
        assert calculate_bmi(height, weight) is None

    def test_whtr(self):
        """Test waist / height."""
        assert calculate_whtr(85, 170) == pytest.approx(0.5)

    def test_whtr_missing(self):
        """Test WHtR is None when height is missing or zero."""
        assert calculate_whtr(85, None) is None
        assert calculate_whtr(85, 0) is None


class TestHomaIr:
    """Test HOMA-IR."""

    def test_mg_dl(self):
        """Test glucose 90 mg/dL × insulin 9 / 405 = 2.0."""
        assert calculate_homa_ir(90, 9) == pytest.approx(2.0)

    def test_mmol(self):
        """Test mmol/L glucose is converted first."""
        assert calculate_homa_ir(5.0, 9, ConcentrationUnit.MMOL_L) == pytest.approx(2.0)

    def test_missing(self):
        """Test missing insulin gives None."""
        assert calculate_homa_ir(90, None) is None


class TestTyG:
    """Test the triglyceride-glucose index."""

    def test_mg_dl(self):
        """Test ln(TG × glucose / 2)."""
        assert calculate_tyg(150, 90) == pytest.approx(math.log(6750))

    def test_mixed_units(self):
        """Test each analyte is converted with its own unit."""
        expected = math.log(150 * 90 / 2)
        tg_mmol = 150 / 88.57
        assert calculate_tyg(tg_mmol, 5.0, "mmol/L", "mmol/L") == pytest.approx(expected)

    def test_non_positive_product(self):
        """Test non-positive products give None instead of a math error."""
        assert calculate_tyg(0, 90) is None
        assert calculate_tyg(-1, 90) is None

    def test_missing(self):
        """Test missing glucose gives None."""
        assert calculate_tyg(150, None) is None


class TestAIP:
    """Test the Atherogenic Index of Plasma."""

    def test_mg_dl(self):
        """Test log10(TG / HDL)."""
        assert calculate_aip(150, 50) == pytest.approx(math.log10(3))

    def test_mmol(self):
        """Test mmol/L inputs are converted with their own factors."""
        assert calculate_aip(1.0, 1.0, ConcentrationUnit.MMOL_L) == pytest.approx(math.log10(88.57 / 38.67))

    def test_separate_hdl_unit(self):
        """Test HDL can be given in a different unit."""
        assert calculate_aip(150, 50 / 38.67, "mg/dL", "mmol/L") == pytest.approx(math.log10(3))

    def test_zero_hdl(self):
        """Test HDL of zero gives None."""
        assert calculate_aip(150, 0) is None


class TestVAI:
    """Test the Visceral Adiposity Index."""

    def test_male(self):
        """Test the male formula."""
        expected = (100 / (39.68 + 1.88 * 25)) * (1.5 / 1.03) * (1.31 / 1.2)
        assert calculate_vai(Sex.MALE, 100, 25, 1.5, 1.2) == pytest.approx(expected)

    def test_female(self):
        """Test the female formula."""
        expected = (90 / (36.58 + 1.89 * 27)) * (1.2 / 0.81) * (1.52 / 1.4)
        assert calculate_vai(Sex.FEMALE, 90, 27, 1.2, 1.4) == pytest.approx(expected)

    def test_mg_dl_inputs_converted(self):
        """Test mg/dL lipids are converted to mmol/L."""
        expected = calculate_vai(Sex.MALE, 100, 25, 1.5, 1.2)
        result = calculate_vai(Sex.MALE, 100, 25, 1.5 * 88.57, 1.2 * 38.67, ConcentrationUnit.MG_DL)
        assert result == pytest.approx(expected)

    def test_unknown_sex(self):
        """Test VAI is None without sex."""
        assert calculate_vai(None, 100, 25, 1.5, 1.2) is None

    @pytest.mark.parametrize(
        "waist,bmi,tg,hdl",
        [(None, 25, 1.5, 1.2), (100, None, 1.5, 1.2), (100, 25, 0, 1.2), (100, 25, 1.5, 0)],
    )
    def test_missing_or_zero(self, waist, bmi, tg, hdl):
        """Test VAI is None when any input is missing or zero."""
        assert calculate_vai(Sex.MALE, waist, bmi, tg, hdl) is None
