"""Pytest configuration and fixtures for backend tests."""

from collections.abc import AsyncGenerator

import pytest
from httpx import ASGITransport, AsyncClient

from chronic_risk.main import app
from chronic_risk.schemas.client_record import ClientRecord


@pytest.fixture
async def client() -> AsyncGenerator[AsyncClient, None]:
    """Create async test client."""
    async with AsyncClient(
        transport=ASGITransport(app=app),
        base_url="http://test",
    ) as ac:
        yield ac


@pytest.fixture
def complete_record_data() -> dict:
    """A client record with every input populated (US units)."""
    return {
        "client_id": "c-001",
        "label": "Test Client",
        "country": "United States",
        "demographics": {"age": 55, "sex": "Male", "education_years": 14},
        "biometrics": {
            "height_cm": 178,
            "weight_kg": 92,
            "waist_cm": 105,
            "sbp": 138,
            "dbp": 86,
            "bp_treated": False,
        },
        "lifestyle": {
            "smoker": True,
            "pack_years": 20,
            "activity_days_per_week": 1,
            "daily_produce": False,
            "alcohol_units_per_week": 10,
        },
        "labs": {
            "hba1c_pct": 5.9,
            "glucose": 110,
            "glucose_unit": "mg/dL",
            "insulin": 12,
            "total_cholesterol": 220,
            "total_cholesterol_unit": "mg/dL",
            "hdl": 38,
            "hdl_unit": "mg/dL",
            "triglycerides": 180,
            "triglycerides_unit": "mg/dL",
            "creatinine_mg_dl": 1.0,
            "acr_mg_g": 12,
            "albumin_g_l": 44,
            "crp_mg_dl": 0.2,
            "lymphocyte_pct": 30,
            "mcv_fl": 90,
            "rdw_pct": 13,
            "alp_u_l": 70,
            "wbc_10e3_ul": 6.0,
        },
        "family_history": {
            "cvd": {"first": 1},
            "t2d": {"second": 1},
        },
    }


@pytest.fixture
def complete_record(complete_record_data: dict) -> ClientRecord:
    """Validated ClientRecord built from complete_record_data."""
    return ClientRecord.model_validate(complete_record_data)
