"""
Stockout risk classification and reorder recommendations
"""

import math
from enum import IntEnum
from typing import NamedTuple

from demand_forecast.config import RISK_THRESHOLDS, REORDER_COVER_DAYS, STOCKOUT_SENTINEL_DAYS
from demand_forecast.exceptions import InvalidFeatureError


class RiskLevel(IntEnum):
    """Stockout risk tiers, ordered by severity"""
    LOW = 0
    MEDIUM = 1
    HIGH = 2
    CRITICAL = 3

    @property
    def label(self) -> str:
        return self.name.title()


class RiskAssessment(NamedTuple):
    days_until_stockout: int
    risk_level: RiskLevel
    reorder_quantity: int


def days_until_stockout(current_stock: float, predicted_demand: float) -> int:
    """
    Whole days the current stock lasts at the predicted daily demand

    Returns STOCKOUT_SENTINEL_DAYS when no demand is expected.
    """
    if predicted_demand <= 0:
        return STOCKOUT_SENTINEL_DAYS
    return min(int(math.floor(current_stock / predicted_demand)), STOCKOUT_SENTINEL_DAYS)


def risk_level_for(days: int) -> RiskLevel:
    if days <= RISK_THRESHOLDS['critical']:
        return RiskLevel.CRITICAL
    elif days <= RISK_THRESHOLDS['high']:
        return RiskLevel.HIGH
    elif days <= RISK_THRESHOLDS['medium']:
        return RiskLevel.MEDIUM
    else:
        return RiskLevel.LOW


def reorder_quantity(risk_level: RiskLevel, predicted_demand: float) -> int:
    """Units to reorder: predicted demand times the tier's cover days, rounded half up"""
    cover_days = REORDER_COVER_DAYS[risk_level.name.lower()]
    return int(math.floor(max(0.0, predicted_demand) * cover_days + 0.5))


def classify(current_stock: float, predicted_demand: float) -> RiskAssessment:
    """
    Map stock and predicted demand to days until stockout, risk tier and reorder quantity

    Args:
        current_stock: Units on hand
        predicted_demand: Predicted daily demand (negative values are clamped to 0)

    Returns:
        RiskAssessment: (days_until_stockout, risk_level, reorder_quantity)
    """
    if not math.isfinite(current_stock) or current_stock < 0:
        raise InvalidFeatureError(f"current_stock must be finite and non-negative, got {current_stock}")
    if math.isnan(predicted_demand):
        raise InvalidFeatureError("predicted_demand is NaN")

    demand = max(0.0, float(predicted_demand))
    days = days_until_stockout(current_stock, demand)
    level = risk_level_for(days)

    return RiskAssessment(days, level, reorder_quantity(level, demand))
