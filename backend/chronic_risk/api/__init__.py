"""API routers for the Chronic Risk Engine."""

from chronic_risk.api.labs import router as labs_router
from chronic_risk.api.risk import router as risk_router

__all__ = [
    "labs_router",
    "risk_router",
]
