"""Tests for the risk assessment API endpoints."""

import pytest
from httpx import AsyncClient


# ============================================================================
# POST /api/v1/risk/assess
# ============================================================================


class TestAssessEndpoint:
    """Test full record assessment."""

    @pytest.mark.asyncio
    async def test_assess_complete_record(self, client: AsyncClient, complete_record_data: dict) -> None:
        """Test a complete record returns every report section."""
        response = await client.post("/api/v1/risk/assess", json=complete_record_data)
        assert response.status_code == 200

        data = response.json()
        assert data["client_id"] == "c-001"
        assert data["metabolic_syndrome"]["count"] == 5
        assert data["kdigo_category"] == "G2-A1"
        assert set(data["executive_summary"]) == {"cvd", "t2d", "cancer", "copd", "neuro", "ckd"}
        assert data["executive_summary"]["cvd"]["band"]["label"] == "High"
        assert data["executive_summary"]["cvd"]["band"]["color"] == "#D72638"
        assert data["units"]["glucose"] == "mg/dL"

    @pytest.mark.asyncio
    async def test_assess_disease_risk_details(self, client: AsyncClient, complete_record_data: dict) -> None:
        """Test each disease risk includes its model breakdown."""
        response = await client.post("/api/v1/risk/assess", json=complete_record_data)
        risks = {r["category"]: r for r in response.json()["disease_risks"]}

        cvd = risks["cvd"]
        assert cvd["base_percent"] == 31
        assert cvd["model"]["score"] == 17
        assert cvd["model"]["components"]["Smoking"] == 3

    @pytest.mark.asyncio
    async def test_assess_empty_record(self, client: AsyncClient) -> None:
        """Test an empty record is valid and yields N/A bands."""
        response = await client.post("/api/v1/risk/assess", json={})
        assert response.status_code == 200

        data = response.json()
        for risk in data["executive_summary"].values():
            assert risk["percent"] is None
            assert risk["band"]["label"] == "N/A"
        assert data["phenotypic_age"]["pheno_age"] is None

    @pytest.mark.asyncio
    async def test_assess_invalid_age_returns_422(self, client: AsyncClient) -> None:
        """Test out-of-range values are rejected."""
        response = await client.post("/api/v1/risk/assess", json={"demographics": {"age": -5}})
        assert response.status_code == 422

    @pytest.mark.asyncio
    async def test_assess_invalid_unit_returns_422(self, client: AsyncClient) -> None:
        """Test unknown unit text is rejected."""
        response = await client.post("/api/v1/risk/assess", json={"labs": {"glucose": 5, "glucose_unit": "grains"}})
        assert response.status_code == 422


# ============================================================================
# /api/v1/risk/models
# ============================================================================


class TestModelEndpoints:
    """Test listing and running individual models."""

    @pytest.mark.asyncio
    async def test_list_models(self, client: AsyncClient) -> None:
        """Test all models are listed with descriptions."""
        response = await client.get("/api/v1/risk/models")
        assert response.status_code == 200

        data = response.json()
        assert data["total"] == 9
        names = {m["name"] for m in data["models"]}
        assert {"framingham", "findrisc", "kdigo", "phenotypic_age"} <= names

    @pytest.mark.asyncio
    async def test_calculate_framingham(self, client: AsyncClient) -> None:
        """Test running Framingham by name."""
        response = await client.post(
            "/api/v1/risk/models/framingham",
            json={
                "age": 55,
                "sex": "male",
                "total_cholesterol_mg_dl": 220,
                "hdl_mg_dl": 38,
                "sbp": 138,
                "smoker": True,
            },
        )
        assert response.status_code == 200

        data = response.json()
        assert data["model"] == "framingham"
        assert data["result"]["percent"] == 31
        assert data["result"]["band"]["label"] == "High"

    @pytest.mark.asyncio
    async def test_calculate_egfr_returns_number(self, client: AsyncClient) -> None:
        """Test eGFR returns a bare number."""
        response = await client.post(
            "/api/v1/risk/models/egfr",
            json={"creatinine_mg_dl": 0.8, "age": 60, "sex": "female"},
        )
        assert response.status_code == 200
        assert response.json()["result"] == pytest.approx(84.3, abs=0.5)

    @pytest.mark.asyncio
    async def test_calculate_incomplete_inputs_returns_null(self, client: AsyncClient) -> None:
        """Test a model with missing inputs returns a null result."""
        response = await client.post(
            "/api/v1/risk/models/kdigo",
            json={"egfr": 80, "acr_mg_g": None},
        )
        assert response.status_code == 200
        assert response.json()["result"] is None

    @pytest.mark.asyncio
    async def test_unknown_model_returns_404(self, client: AsyncClient) -> None:
        """Test unknown model names return 404."""
        response = await client.post("/api/v1/risk/models/qrisk3", json={})
        assert response.status_code == 404

    @pytest.mark.asyncio
    async def test_bad_parameters_return_422(self, client: AsyncClient) -> None:
        """Test parameters the model does not accept return 422."""
        response = await client.post("/api/v1/risk/models/egfr", json={"creatinine": 1.0})
        assert response.status_code == 422
