"""
Daily forecast simulator
Projects stock depletion over a short horizon with a randomised daily demand walk
"""

import math
from dataclasses import dataclass
from datetime import date, timedelta
from typing import List, Optional

import numpy as np

from demand_forecast.config import FORECAST_HORIZON_DAYS, DAILY_DEMAND_VARIATION


@dataclass(frozen=True)
class DailyForecast:
    date: date
    predicted_demand: float
    projected_stock: int


class DailyForecastSimulator:
    """
    Simulates day-by-day demand around an average and the resulting stock level
    """

    def __init__(self, horizon_days: int = FORECAST_HORIZON_DAYS,
                 variation: float = DAILY_DEMAND_VARIATION):
        """
        Args:
            horizon_days: Default number of days to project
            variation: Full width of the uniform demand spread, relative to the average
        """
        self.horizon_days = horizon_days
        self.variation = variation

    def simulate(self, current_stock: float, average_demand: float,
                 horizon_days: Optional[int] = None, rng=None,
                 start_date: Optional[date] = None) -> List[DailyForecast]:
        """
        Project stock over the horizon, starting today

        Args:
            current_stock: Units on hand
            average_demand: Expected daily demand
            horizon_days: Number of days (default: horizon_days)
            rng: Random source exposing random() in [0, 1) (default: fresh entropy-seeded generator)
            start_date: First forecast day (default: today)

        Returns:
            list: One DailyForecast per day, dates increasing by one day
        """
        horizon = self.horizon_days if horizon_days is None else horizon_days
        if horizon < 0:
            raise ValueError(f"horizon_days must be non-negative, got {horizon}")

        rng = rng if rng is not None else np.random.default_rng()
        start = start_date or date.today()
        average = max(0.0, float(average_demand))
        stock = max(0.0, float(current_stock))

        forecasts = []
        for day in range(horizon):
            daily_demand = max(0.0, average + (float(rng.random()) - 0.5) * average * self.variation)
            stock = max(0.0, stock - daily_demand)

            forecasts.append(DailyForecast(
                date=start + timedelta(days=day),
                predicted_demand=daily_demand,
                projected_stock=int(math.floor(stock))
            ))

        return forecasts
