"""
Training data module
Generates reproducible synthetic demand corpora and loads historical demand ledgers
"""

import logging
from datetime import date
from pathlib import Path
from typing import Optional, Sequence, Union

import numpy as np
import pandas as pd

from demand_forecast.config import (
    FEATURE_COLUMNS, TARGET_COLUMN, HISTORY_COLUMNS,
    TRAINING_SAMPLES, TRAINING_SEED, HISTORY_WINDOW_DAYS, HOLIDAY_PROBABILITY,
    STOCK_RANGE, PRICE_RANGE, BASE_DEMAND_RATE, WEEKEND_DEMAND_FACTOR,
    MIN_PRICE_FACTOR, MIN_TRAINING_DEMAND, DEMAND_NOISE_STD,
    MOVING_AVERAGE_7_SCALE, MOVING_AVERAGE_7_NOISE_STD,
    MOVING_AVERAGE_30_SCALE, MOVING_AVERAGE_30_NOISE_STD
)
from demand_forecast.exceptions import TrainingError
from demand_forecast.feature_engineering import FeatureEngine

logger = logging.getLogger(__name__)

CORPUS_COLUMNS = ['date'] + FEATURE_COLUMNS + [TARGET_COLUMN]


class SyntheticDataGenerator:
    """
    Generates a training corpus when no historical demand ledger is available
    """

    def __init__(self, n_samples: int = TRAINING_SAMPLES, seed: int = TRAINING_SEED):
        """
        Initialize the generator

        Args:
            n_samples: Default number of examples
            seed: Default random seed
        """
        self.n_samples = n_samples
        self.seed = seed

    def generate(self, n: Optional[int] = None, seed: Optional[int] = None,
                 reference_date: Optional[date] = None) -> pd.DataFrame:
        """
        Generate a synthetic training corpus

        Args:
            n: Number of examples (default: n_samples)
            seed: Random seed (default: seed)
            reference_date: Last day of the trailing year dates are drawn from (default: today)

        Returns:
            pd.DataFrame: Corpus with date, feature and demand_quantity columns
        """
        n = self.n_samples if n is None else n
        seed = self.seed if seed is None else seed
        if n < 0:
            raise ValueError(f"Number of examples must be non-negative, got {n}")

        rng = np.random.default_rng(seed)
        end = pd.Timestamp(reference_date or date.today()).normalize()

        offsets = rng.integers(0, HISTORY_WINDOW_DAYS, size=n)
        base_stock = rng.integers(STOCK_RANGE[0], STOCK_RANGE[1], size=n).astype(float)
        price = rng.uniform(PRICE_RANGE[0], PRICE_RANGE[1], size=n)
        holiday = (rng.random(size=n) < HOLIDAY_PROBABILITY).astype(float)
        demand_noise = rng.normal(0.0, DEMAND_NOISE_STD, size=n)
        ma7_noise = rng.normal(0.0, MOVING_AVERAGE_7_NOISE_STD, size=n)
        ma30_noise = rng.normal(0.0, MOVING_AVERAGE_30_NOISE_STD, size=n)

        df = pd.DataFrame({'date': end - pd.to_timedelta(offsets, unit='D')})
        df = FeatureEngine.create_temporal_features(df)

        weekend_factor = np.where(df['is_weekend'] == 1.0, WEEKEND_DEMAND_FACTOR, 1.0)
        price_factor = np.maximum(MIN_PRICE_FACTOR, 2.0 - price / 50.0)

        demand = np.maximum(
            MIN_TRAINING_DEMAND,
            base_stock * BASE_DEMAND_RATE * df['seasonal_index'].to_numpy()
            * weekend_factor * price_factor + demand_noise
        )

        df['is_holiday'] = holiday
        df['moving_average_7_days'] = demand * MOVING_AVERAGE_7_SCALE + ma7_noise
        df['moving_average_30_days'] = demand * MOVING_AVERAGE_30_SCALE + ma30_noise
        df['price_point'] = price
        df['current_stock'] = base_stock
        df[TARGET_COLUMN] = demand

        logger.debug("Generated %d synthetic examples (seed=%s)", n, seed)

        return df[CORPUS_COLUMNS]

    @staticmethod
    def relabel_linear(corpus: pd.DataFrame, coefficients: Sequence[float], intercept: float = 0.0,
                       noise_std: float = 0.0, seed: Optional[int] = None) -> pd.DataFrame:
        """
        Replace the demand label with a known linear function of the features

        Args:
            corpus: Corpus with FEATURE_COLUMNS
            coefficients: One weight per feature, in FEATURE_COLUMNS order
            intercept: Constant term
            noise_std: Standard deviation of added gaussian noise
            seed: Random seed for the noise

        Returns:
            pd.DataFrame: Copy of the corpus with the new label
        """
        if len(coefficients) != len(FEATURE_COLUMNS):
            raise ValueError(
                f"Expected {len(FEATURE_COLUMNS)} coefficients, got {len(coefficients)}"
            )

        rng = np.random.default_rng(seed)
        df = corpus.copy()
        X = df[FEATURE_COLUMNS].to_numpy(dtype=float)
        df[TARGET_COLUMN] = X @ np.asarray(coefficients, dtype=float) + intercept \
            + rng.normal(0.0, noise_std, size=len(df))

        return df


class HistoricalDataLoader:
    """
    Builds a training corpus from a historical demand ledger
    Produces the same columns as SyntheticDataGenerator
    """

    def __init__(self, path: Union[str, Path], holidays: Sequence[date]):
        """
        Args:
            path: CSV file with HISTORY_COLUMNS
            holidays: Holiday calendar covering the ledger's date range
        """
        if not holidays:
            raise TrainingError(
                "A holiday calendar is required to build is_holiday from history",
                code="NO_HOLIDAY_CALENDAR",
                details={'path': str(path)},
            )

        self.path = Path(path)
        self.holidays = {pd.Timestamp(day).normalize() for day in holidays}

    def load_history(self) -> pd.DataFrame:
        """
        Load the raw demand ledger

        Returns:
            pd.DataFrame: One row per product, store and day
        """
        logger.info("Loading demand history from %s", self.path)
        df = pd.read_csv(self.path, dtype={'product_id': str, 'store_id': str})

        missing = [col for col in HISTORY_COLUMNS if col not in df.columns and col != 'category']
        if missing:
            raise TrainingError(f"Demand history missing columns: {missing}",
                                details={'path': str(self.path)})

        df['date'] = pd.to_datetime(df['date']).dt.normalize()
        logger.info("Loaded %d demand records for %d products",
                    len(df), df['product_id'].nunique())

        return df

    @staticmethod
    def create_moving_averages(df: pd.DataFrame) -> pd.DataFrame:
        """
        Rolling mean of prior-day demand per product and store

        Args:
            df: Demand history

        Returns:
            pd.DataFrame: History with moving_average_7_days and moving_average_30_days added
        """
        df = df.sort_values(['product_id', 'store_id', 'date']).reset_index(drop=True)
        grouped = df.groupby(['product_id', 'store_id'])[TARGET_COLUMN]

        # Shift before rolling so a day's own demand never leaks into its features
        df['moving_average_7_days'] = grouped.transform(
            lambda s: s.shift(1).rolling(window=7, min_periods=1).mean()
        )
        df['moving_average_30_days'] = grouped.transform(
            lambda s: s.shift(1).rolling(window=30, min_periods=1).mean()
        )

        return df

    def load_corpus(self) -> pd.DataFrame:
        """
        Complete pipeline: load, add calendar features and moving averages

        Returns:
            pd.DataFrame: Training corpus
        """
        df = self.load_history()
        df = FeatureEngine.create_temporal_features(df)
        df['is_holiday'] = df['date'].isin(self.holidays).astype(float)
        df = self.create_moving_averages(df)

        # First day of every series has no history yet
        df = df.dropna(subset=['moving_average_7_days', 'moving_average_30_days'])
        df = df[CORPUS_COLUMNS].reset_index(drop=True)

        # A flag that never fires makes the design matrix singular
        if len(df) and not df['is_holiday'].any():
            raise TrainingError(
                "No holiday in the calendar falls within the demand history",
                code="NO_HOLIDAYS_IN_HISTORY",
                details={'path': str(self.path), 'first_date': str(df['date'].min().date()),
                         'last_date': str(df['date'].max().date())},
            )

        logger.info("Historical corpus: %d examples", len(df))

        return df

    def generate(self, n: Optional[int] = None, seed: Optional[int] = None,
                 reference_date: Optional[date] = None) -> pd.DataFrame:
        """
        Same call shape as SyntheticDataGenerator.generate

        Args:
            n: Sample this many examples (default: the whole corpus)
            seed: Random seed for sampling
            reference_date: Drop history after this date

        Returns:
            pd.DataFrame: Training corpus
        """
        df = self.load_corpus()

        if reference_date is not None:
            df = df[df['date'] <= pd.Timestamp(reference_date)]
        if n is not None and n < len(df):
            df = df.sample(n=n, random_state=seed)

        return df.reset_index(drop=True)
