"""Tests for the lab normalization API endpoint."""

import pytest
from httpx import AsyncClient


class TestNormalizeEndpoint:
    """Test POST /api/v1/labs/normalize."""

    @pytest.mark.asyncio
    async def test_normalize_rows(self, client: AsyncClient) -> None:
        """Test rows are normalized and returned in Labs shape."""
        response = await client.post(
            "/api/v1/labs/normalize",
            json={
                "rows": [
                    ["Creatinine", "1.0", ""],
                    ["Glucose", "5.4"],
                    ["SBP", 128],
                    ["Potassium", "4.1", "mmol/L"],
                ]
            },
        )
        assert response.status_code == 200

        data = response.json()
        assert data["values"]["creatinine_umol_l"]["value"] == pytest.approx(88.4)
        assert data["values"]["glucose"]["inferred"] is True
        assert data["labs"]["glucose_unit"] == "mmol/L"
        assert data["biometrics"]["sbp"] == 128
        assert data["unmatched"] == ["Potassium"]

    @pytest.mark.asyncio
    async def test_normalize_delimited(self, client: AsyncClient) -> None:
        """Test delimited text input."""
        response = await client.post(
            "/api/v1/labs/normalize",
            json={"delimited": "HDL,1.2,mmol/L\nTriglycerides;150;mg/dL"},
        )
        assert response.status_code == 200

        labs = response.json()["labs"]
        assert labs["hdl"] == pytest.approx(1.2)
        assert labs["triglycerides_unit"] == "mg/dL"

    @pytest.mark.asyncio
    async def test_normalize_text(self, client: AsyncClient) -> None:
        """Test document text input."""
        response = await client.post(
            "/api/v1/labs/normalize",
            json={"text": "Total Cholesterol 210 mg/dL\nHbA1c 5.9 %"},
        )
        assert response.status_code == 200

        values = response.json()["values"]
        assert values["total_cholesterol"] == {"value": 210.0, "unit": "mg/dL", "inferred": False}
        assert values["hba1c_pct"]["value"] == pytest.approx(5.9)

    @pytest.mark.asyncio
    async def test_requires_exactly_one_source(self, client: AsyncClient) -> None:
        """Test zero or multiple input shapes are rejected."""
        response = await client.post("/api/v1/labs/normalize", json={})
        assert response.status_code == 422

        response = await client.post(
            "/api/v1/labs/normalize",
            json={"text": "HbA1c 5.9 %", "delimited": "HbA1c,5.9"},
        )
        assert response.status_code == 422
