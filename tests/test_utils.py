"""
Unit tests for metrics and report helpers.
"""

from datetime import date

import numpy as np
import pytest

from demand_forecast.forecaster import ForecastResult
from demand_forecast.risk import RiskLevel
from demand_forecast.simulator import DailyForecast
from demand_forecast.utils import (
    calculate_metrics, calculate_wape, daily_forecasts_to_frame, forecasts_to_frame,
    format_forecast_table, format_number, get_alert_items, summarize_forecasts
)


def _result(product_id, level, days, reorder, demand=2.0, store_id="s1"):
    return ForecastResult(
        product_name=f"Product {product_id}",
        store_id=store_id,
        current_stock=10,
        predicted_demand=demand,
        days_until_stockout=days,
        risk_level=level,
        recommended_reorder_quantity=reorder,
        daily_forecasts=[DailyForecast(date(2025, 10, 30), demand, 8), DailyForecast(date(2025, 10, 31), demand, 6)],
        product_id=product_id,
    )


@pytest.fixture
def results():
    return [
        _result("a", RiskLevel.HIGH, 5, 14),
        _result("b", RiskLevel.LOW, 999, 0, demand=0.0, store_id="s2"),
        _result("c", RiskLevel.CRITICAL, 1, 28),
        _result("d", RiskLevel.CRITICAL, 0, 35),
    ]


def test_metrics_for_perfect_predictions():
    y = np.array([1.0, 2.0, 3.0])
    metrics = calculate_metrics(y, y)

    assert metrics == {"MAE": 0.0, "RMSE": 0.0, "WAPE": 0.0, "R2": 1.0}


def test_metrics_values():
    metrics = calculate_metrics(np.array([2.0, 4.0]), np.array([3.0, 3.0]))

    assert metrics["MAE"] == pytest.approx(1.0)
    assert metrics["RMSE"] == pytest.approx(1.0)
    assert metrics["WAPE"] == pytest.approx(100 * 2 / 6)
    assert metrics["R2"] == pytest.approx(0.0)


def test_wape_with_zero_actuals():
    assert calculate_wape(np.zeros(3), np.ones(3)) == 0.0


def test_summarize_forecasts(results):
    summary = summarize_forecasts(results)

    assert summary["total_items"] == 4
    assert summary["items_at_risk"] == 3
    assert summary["items_by_risk_level"] == {"Critical": 2, "High": 1, "Medium": 0, "Low": 1}
    assert list(summary["items_by_risk_level"]) == ["Critical", "High", "Medium", "Low"]
    assert summary["total_reorder_quantity"] == 77
    assert summary["total_predicted_demand"] == pytest.approx(6.0)
    assert summary["stores"] == ["s1", "s2"]


def test_alert_items_most_urgent_first(results):
    alerts = get_alert_items(results)

    assert [r.product_id for r in alerts] == ["d", "c", "a"]
    assert [r.product_id for r in get_alert_items(results, RiskLevel.CRITICAL)] == ["d", "c"]


def test_forecasts_to_frame(results):
    df = forecasts_to_frame(results)

    assert len(df) == 4
    assert df.loc[0, "risk_level"] == "High"
    assert df["recommended_reorder_quantity"].sum() == 77
    assert forecasts_to_frame([]).empty


def test_daily_forecasts_to_frame(results):
    df = daily_forecasts_to_frame(results)

    assert len(df) == 8
    assert df["projected_stock"].tolist()[:2] == [8, 6]


def test_format_forecast_table(results):
    table = format_forecast_table(results)

    assert list(table.columns) == ["Product", "Store", "Stock", "Daily Demand", "Days Left", "Risk", "Reorder Qty"]
    assert table.loc[1, "Days Left"] == "-"
    assert table.loc[0, "Days Left"] == "5"
    assert table.loc[0, "Daily Demand"] == "2.0"


def test_format_number():
    assert format_number(1234567) == "1,234,567"
    assert format_number(1234.5678, decimals=2) == "1,234.57"
