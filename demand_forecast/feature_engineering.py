"""
Feature engineering module
Builds the fixed-order feature vectors consumed by the demand model
"""

import math
from dataclasses import astuple, dataclass, fields
from datetime import date, datetime
from typing import Iterable, List, Optional, Union

import numpy as np
import pandas as pd

from demand_forecast.config import (
    FEATURE_COLUMNS,
    MOVING_AVERAGE_7_STOCK_FACTOR, MOVING_AVERAGE_30_STOCK_FACTOR
)
from demand_forecast.exceptions import InvalidFeatureError
from demand_forecast.inventory import InventoryItem


@dataclass(frozen=True)
class FeatureVector:
    """
    Model input for one item on one day
    Field order matches FEATURE_COLUMNS and is part of the model schema
    """
    day_of_year: float
    is_weekend: float
    is_holiday: float
    seasonal_index: float
    moving_average_7_days: float
    moving_average_30_days: float
    price_point: float
    current_stock: float

    def __post_init__(self):
        for f in fields(self):
            value = getattr(self, f.name)
            if value is None or not math.isfinite(value):
                raise InvalidFeatureError(f"Feature '{f.name}' must be finite, got {value!r}")

        if not 1 <= self.day_of_year <= 366:
            raise InvalidFeatureError(f"day_of_year out of range: {self.day_of_year}")
        if self.is_weekend not in (0, 1) or self.is_holiday not in (0, 1):
            raise InvalidFeatureError("is_weekend and is_holiday must be 0 or 1")
        if self.current_stock < 0:
            raise InvalidFeatureError(f"current_stock must be non-negative, got {self.current_stock}")
        if self.price_point < 0:
            raise InvalidFeatureError(f"price_point must be non-negative, got {self.price_point}")

    @classmethod
    def feature_names(cls) -> List[str]:
        return [f.name for f in fields(cls)]

    def to_array(self) -> np.ndarray:
        return np.array(astuple(self), dtype=float)

    def to_series(self) -> pd.Series:
        return pd.Series(self.to_array(), index=self.feature_names())


def calculate_seasonal_index(month: Union[int, np.ndarray]) -> Union[float, np.ndarray]:
    """
    Cyclical yearly demand multiplier, between 0.4 and 1.2

    Args:
        month: Calendar month (1-12), scalar or array

    Returns:
        Seasonal index with the same shape as month
    """
    return 0.8 + 0.4 * np.sin(2 * np.pi * np.asarray(month) / 12.0)


def is_weekend(day: Union[date, datetime]) -> bool:
    return day.weekday() >= 5


class FeatureEngine:
    """
    Handles feature creation for training corpora and inference
    """

    def __init__(self, ma7_stock_factor: float = MOVING_AVERAGE_7_STOCK_FACTOR,
                 ma30_stock_factor: float = MOVING_AVERAGE_30_STOCK_FACTOR):
        """
        Initialize the FeatureEngine

        Args:
            ma7_stock_factor: Share of current stock used as the 7-day moving average
            ma30_stock_factor: Share of current stock used as the 30-day moving average
        """
        self.ma7_stock_factor = ma7_stock_factor
        self.ma30_stock_factor = ma30_stock_factor

    @staticmethod
    def create_temporal_features(df: pd.DataFrame) -> pd.DataFrame:
        """
        Create calendar features from the date column

        Args:
            df: DataFrame with date column

        Returns:
            pd.DataFrame: Data with day_of_year, is_weekend and seasonal_index added
        """
        dates = pd.to_datetime(df['date'])

        df['day_of_year'] = dates.dt.dayofyear.astype(float)
        df['is_weekend'] = (dates.dt.dayofweek >= 5).astype(float)
        df['seasonal_index'] = calculate_seasonal_index(dates.dt.month.to_numpy())

        return df

    def build_for_item(self, item: InventoryItem, reference_date: Optional[date] = None,
                       is_holiday: bool = False) -> FeatureVector:
        """
        Build the inference-time feature vector for an inventory item

        Args:
            item: Inventory item
            reference_date: Date to forecast for (default: today)
            is_holiday: Whether the reference date is a holiday

        Returns:
            FeatureVector: Model input for the item
        """
        if item.current_stock < 0 or item.price_point < 0:
            raise InvalidFeatureError(
                f"Negative stock or price for product '{item.product_id}'",
                details={'current_stock': item.current_stock, 'price_point': item.price_point}
            )

        day = reference_date or date.today()
        stock = float(item.current_stock)

        return FeatureVector(
            day_of_year=float(day.timetuple().tm_yday),
            is_weekend=1.0 if is_weekend(day) else 0.0,
            is_holiday=1.0 if is_holiday else 0.0,
            seasonal_index=float(calculate_seasonal_index(day.month)),
            moving_average_7_days=stock * self.ma7_stock_factor,
            moving_average_30_days=stock * self.ma30_stock_factor,
            price_point=float(item.price_point),
            current_stock=stock
        )


def vectors_to_frame(vectors: Iterable[FeatureVector]) -> pd.DataFrame:
    """
    Stack feature vectors into a DataFrame with FEATURE_COLUMNS

    Args:
        vectors: Feature vectors

    Returns:
        pd.DataFrame: One row per vector
    """
    rows = [vector.to_array() for vector in vectors]
    return pd.DataFrame(np.vstack(rows) if rows else np.empty((0, len(FEATURE_COLUMNS))),
                        columns=FEATURE_COLUMNS)
