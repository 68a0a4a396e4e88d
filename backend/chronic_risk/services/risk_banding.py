"""Risk banding and family history adjustment.

Banding is shared by every model's display layer. The family history
modifier is the only place where one result feeds another.
"""

import logging
import math
from dataclasses import dataclass

from chronic_risk.schemas.base import RiskCategory
from chronic_risk.schemas.client_record import FamilyHistoryCounts

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RiskBand:
    """Display band for a percentage."""

    label: RiskCategory
    color_class: str
    color: str


@dataclass(frozen=True)
class RiskResult:
    """A percentage risk and its band. ``percent`` is None when not computable."""

    percent: float | None
    band: RiskBand


LOW_BAND = RiskBand(label=RiskCategory.LOW, color_class="low", color="#00A651")
MEDIUM_BAND = RiskBand(label=RiskCategory.MEDIUM, color_class="med", color="#F5C518")
HIGH_BAND = RiskBand(label=RiskCategory.HIGH, color_class="high", color="#D72638")
NOT_AVAILABLE_BAND = RiskBand(label=RiskCategory.NOT_AVAILABLE, color_class="", color="#9ca3af")

# Relative bump per affected relative, by degree
FIRST_DEGREE_WEIGHT = 0.10
SECOND_DEGREE_WEIGHT = 0.05
THIRD_DEGREE_WEIGHT = 0.02
FAMILY_HISTORY_CAP = 95.0


def risk_band(percent: float | None) -> RiskBand:
    """Map a percentage to Low (<10), Medium (<20) or High.

    None, NaN and infinities map to the N/A band.
    """
    if percent is None:
        return NOT_AVAILABLE_BAND
    try:
        p = float(percent)
    except (TypeError, ValueError):
        return NOT_AVAILABLE_BAND
    if not math.isfinite(p):
        return NOT_AVAILABLE_BAND
    if p < 10:
        return LOW_BAND
    if p < 20:
        return MEDIUM_BAND
    return HIGH_BAND


def make_risk_result(percent: float | None) -> RiskResult:
    """Wrap a percentage in a RiskResult with its band."""
    if percent is not None and not math.isfinite(percent):
        percent = None
    return RiskResult(percent=percent, band=risk_band(percent))


def clamp(value: float, low: float, high: float) -> float:
    return max(low, min(high, value))


def family_history_multiplier(counts: FamilyHistoryCounts | None) -> float:
    """Relative multiplier for a family history record (1.0 when absent)."""
    if counts is None:
        return 1.0
    return (
        1
        + counts.first * FIRST_DEGREE_WEIGHT
        + counts.second * SECOND_DEGREE_WEIGHT
        + counts.third * THIRD_DEGREE_WEIGHT
    )


def adjust_for_family_history(
    base_percent: float | None,
    counts: FamilyHistoryCounts | None,
) -> float | None:
    """Scale a base percentage by family history and cap it at 95%.

    Args:
        base_percent: Unadjusted model output, or None.
        counts: Affected relatives for the model's disease category.

    Returns:
        The adjusted percentage in [0, 95], or None when the base is None.
    """
    if base_percent is None:
        return None
    adjusted = base_percent * family_history_multiplier(counts)
    return clamp(adjusted, 0.0, FAMILY_HISTORY_CAP)
