"""
Utility functions for the forecasting engine
Includes metrics calculation, report tables and logging setup
"""

import logging
from typing import Iterable, List, Optional

import numpy as np
import pandas as pd

from demand_forecast.config import LOG_LEVEL, LOG_FORMAT, STOCKOUT_SENTINEL_DAYS
from demand_forecast.risk import RiskLevel


def calculate_wape(y_true: np.ndarray, y_pred: np.ndarray) -> float:
    """
    Calculate Weighted Absolute Percentage Error

    Args:
        y_true: Actual values
        y_pred: Predicted values

    Returns:
        float: WAPE percentage (0 when all actuals are zero)
    """
    total = np.sum(np.abs(y_true))
    if total == 0:
        return 0.0
    return float(100 * np.sum(np.abs(y_true - y_pred)) / total)


def calculate_metrics(y_true: np.ndarray, y_pred: np.ndarray) -> dict:
    """
    Calculate regression evaluation metrics

    Args:
        y_true: Actual values
        y_pred: Predicted values

    Returns:
        dict: MAE, RMSE, WAPE and R2
    """
    from sklearn.metrics import mean_absolute_error, mean_squared_error

    y_true = np.asarray(y_true, dtype=float)
    y_pred = np.asarray(y_pred, dtype=float)

    metrics = {}

    # Error metrics
    metrics['MAE'] = float(mean_absolute_error(y_true, y_pred))
    metrics['RMSE'] = float(np.sqrt(mean_squared_error(y_true, y_pred)))
    metrics['WAPE'] = calculate_wape(y_true, y_pred)

    # R-squared
    ss_res = np.sum((y_true - y_pred) ** 2)
    ss_tot = np.sum((y_true - y_true.mean()) ** 2)
    metrics['R2'] = float(1 - (ss_res / ss_tot)) if ss_tot > 0 else 0.0

    return metrics


def forecasts_to_frame(results: Iterable) -> pd.DataFrame:
    """
    One row per forecast result (daily forecasts excluded)

    Args:
        results: ForecastResult objects

    Returns:
        pd.DataFrame: Flat forecast report
    """
    rows = [{
        'store_id': r.store_id,
        'product_id': r.product_id,
        'product_name': r.product_name,
        'current_stock': r.current_stock,
        'predicted_demand': r.predicted_demand,
        'days_until_stockout': r.days_until_stockout,
        'risk_level': r.risk_level.label,
        'recommended_reorder_quantity': r.recommended_reorder_quantity
    } for r in results]

    return pd.DataFrame(rows, columns=[
        'store_id', 'product_id', 'product_name', 'current_stock', 'predicted_demand',
        'days_until_stockout', 'risk_level', 'recommended_reorder_quantity'
    ])


def daily_forecasts_to_frame(results: Iterable) -> pd.DataFrame:
    """
    One row per item and forecast day

    Args:
        results: ForecastResult objects

    Returns:
        pd.DataFrame: Long-format daily projections
    """
    rows = [{
        'store_id': r.store_id,
        'product_id': r.product_id,
        'date': pd.Timestamp(day.date),
        'predicted_demand': day.predicted_demand,
        'projected_stock': day.projected_stock
    } for r in results for day in r.daily_forecasts]

    return pd.DataFrame(rows, columns=['store_id', 'product_id', 'date',
                                       'predicted_demand', 'projected_stock'])


def format_forecast_table(results: Iterable) -> pd.DataFrame:
    """
    Format forecast results for display

    Args:
        results: ForecastResult objects

    Returns:
        pd.DataFrame: Formatted table
    """
    display_columns = {
        'product_name': 'Product',
        'store_id': 'Store',
        'current_stock': 'Stock',
        'predicted_demand': 'Daily Demand',
        'days_until_stockout': 'Days Left',
        'risk_level': 'Risk',
        'recommended_reorder_quantity': 'Reorder Qty'
    }

    df_display = forecasts_to_frame(results)[list(display_columns.keys())].copy()
    df_display.columns = list(display_columns.values())

    df_display['Daily Demand'] = df_display['Daily Demand'].apply(lambda x: f"{x:.1f}")
    df_display['Days Left'] = df_display['Days Left'].apply(
        lambda x: '-' if x >= STOCKOUT_SENTINEL_DAYS else str(x)
    )

    return df_display


def get_alert_items(results: Iterable, min_level: RiskLevel = RiskLevel.HIGH) -> List:
    """
    Results at or above a risk level, most severe first

    Args:
        results: ForecastResult objects
        min_level: Lowest risk level to include

    Returns:
        list: Results requiring attention
    """
    alerts = [r for r in results if r.risk_level >= min_level]
    return sorted(alerts, key=lambda r: (-r.risk_level, r.days_until_stockout))


def summarize_forecasts(results: Iterable) -> dict:
    """
    Summary statistics over a forecast report

    Args:
        results: ForecastResult objects

    Returns:
        dict: Item counts per risk level and reorder totals
    """
    results = list(results)

    by_level = {level.label: 0 for level in sorted(RiskLevel, reverse=True)}
    for r in results:
        by_level[r.risk_level.label] += 1

    summary = {
        'total_items': len(results),
        'items_at_risk': sum(1 for r in results if r.risk_level >= RiskLevel.HIGH),
        'items_by_risk_level': by_level,
        'total_predicted_demand': float(sum(r.predicted_demand for r in results)),
        'total_reorder_quantity': int(sum(r.recommended_reorder_quantity for r in results)),
        'stores': sorted({r.store_id for r in results})
    }

    return summary


def format_number(value: float, decimals: int = 0) -> str:
    """
    Format large numbers with thousands separators

    Args:
        value: Numeric value
        decimals: Number of decimal places

    Returns:
        str: Formatted number string
    """
    if decimals == 0:
        return f"{value:,.0f}"
    else:
        return f"{value:,.{decimals}f}"


def setup_logging(level: Optional[str] = None) -> None:
    """
    Configure console logging for command line use

    Args:
        level: Log level name (default: from config)
    """
    level_name = (level or LOG_LEVEL).upper()

    root_logger = logging.getLogger()
    root_logger.setLevel(getattr(logging, level_name, logging.INFO))

    # Remove existing handlers
    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)

    console_handler = logging.StreamHandler()
    console_handler.setFormatter(logging.Formatter(LOG_FORMAT))
    root_logger.addHandler(console_handler)
