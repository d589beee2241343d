"""
Unit tests for synthetic and historical training data.
"""

from datetime import date

import numpy as np
import pandas as pd
import pytest

from demand_forecast.config import FEATURE_COLUMNS, TARGET_COLUMN
from demand_forecast.data_loader import CORPUS_COLUMNS, HistoricalDataLoader, SyntheticDataGenerator
from demand_forecast.exceptions import TrainingError
from demand_forecast.feature_engineering import calculate_seasonal_index
from demand_forecast.forecaster import DemandForecastingService
from demand_forecast.model import ModelStore
from demand_forecast.trainer import ModelTrainer

HOLIDAYS = [date(2025, 1, 6)]


class TestSyntheticDataGenerator:

    def test_same_seed_gives_identical_corpus(self, reference_date):
        generator = SyntheticDataGenerator()
        first = generator.generate(500, seed=11, reference_date=reference_date)
        second = generator.generate(500, seed=11, reference_date=reference_date)

        pd.testing.assert_frame_equal(first, second)

    def test_different_seeds_differ(self, reference_date):
        generator = SyntheticDataGenerator()
        first = generator.generate(100, seed=1, reference_date=reference_date)
        second = generator.generate(100, seed=2, reference_date=reference_date)

        assert not first[TARGET_COLUMN].equals(second[TARGET_COLUMN])

    def test_defaults_come_from_constructor(self, reference_date):
        generator = SyntheticDataGenerator(n_samples=25, seed=3)
        corpus = generator.generate(reference_date=reference_date)

        assert len(corpus) == 25
        pd.testing.assert_frame_equal(corpus, generator.generate(25, 3, reference_date))

    def test_shape_and_columns(self, corpus):
        assert len(corpus) == 1000
        assert list(corpus.columns) == CORPUS_COLUMNS

    def test_empty_and_negative_sizes(self, reference_date):
        generator = SyntheticDataGenerator()
        empty = generator.generate(0, seed=1, reference_date=reference_date)

        assert len(empty) == 0
        assert list(empty.columns) == CORPUS_COLUMNS
        with pytest.raises(ValueError):
            generator.generate(-1, seed=1)

    def test_value_ranges(self, corpus, reference_date):
        end = pd.Timestamp(reference_date)

        assert corpus["date"].max() <= end
        assert corpus["date"].min() > end - pd.Timedelta(days=365)
        assert corpus["current_stock"].between(10, 999).all()
        assert (corpus["current_stock"] % 1 == 0).all()
        assert ((corpus["price_point"] >= 10) & (corpus["price_point"] < 110)).all()
        assert (corpus[TARGET_COLUMN] >= 1).all()
        assert set(corpus["is_holiday"].unique()) <= {0.0, 1.0}
        assert np.isfinite(corpus[FEATURE_COLUMNS].to_numpy()).all()

    def test_calendar_features_match_dates(self, corpus):
        dates = corpus["date"]

        assert (corpus["day_of_year"] == dates.dt.dayofyear).all()
        assert (corpus["is_weekend"] == (dates.dt.dayofweek >= 5).astype(float)).all()
        np.testing.assert_allclose(corpus["seasonal_index"], calculate_seasonal_index(dates.dt.month.to_numpy()))

    def test_holiday_rate_is_about_five_percent(self, corpus):
        assert 0.02 < corpus["is_holiday"].mean() < 0.08

    def test_moving_averages_track_demand(self, corpus):
        residual_7 = corpus["moving_average_7_days"] - 0.9 * corpus[TARGET_COLUMN]
        residual_30 = corpus["moving_average_30_days"] - 0.8 * corpus[TARGET_COLUMN]

        assert abs(residual_7.mean()) < 0.5
        assert residual_7.std() == pytest.approx(2.0, rel=0.15)
        assert residual_30.std() == pytest.approx(3.0, rel=0.15)

    def test_relabel_linear_without_noise(self, corpus):
        coefficients = [1.0, 2.0, 3.0, 4.0, 5.0, 6.0, 7.0, 8.0]
        relabelled = SyntheticDataGenerator.relabel_linear(corpus, coefficients, intercept=2.5)

        expected = corpus[FEATURE_COLUMNS].to_numpy() @ np.array(coefficients) + 2.5
        np.testing.assert_allclose(relabelled[TARGET_COLUMN], expected)
        # Original corpus untouched
        assert not corpus[TARGET_COLUMN].equals(relabelled[TARGET_COLUMN])

    def test_relabel_linear_checks_coefficient_count(self, corpus):
        with pytest.raises(ValueError):
            SyntheticDataGenerator.relabel_linear(corpus, [1.0, 2.0])


@pytest.fixture
def history_file(tmp_path):
    dates = pd.date_range("2025-01-01", periods=10, freq="D")
    df = pd.DataFrame({
        "date": dates.strftime("%Y-%m-%d"),
        "product_id": "p1",
        "store_id": "s1",
        "demand_quantity": np.arange(1, 11, dtype=float),
        "price_point": 12.0,
        "current_stock": np.arange(100, 90, -1),
        "category": "dairy",
    })
    path = tmp_path / "history.csv"
    df.to_csv(path, index=False)
    return path


class TestHistoricalDataLoader:

    def test_load_corpus_drops_first_day(self, history_file):
        corpus = HistoricalDataLoader(history_file, HOLIDAYS).load_corpus()

        assert list(corpus.columns) == CORPUS_COLUMNS
        assert len(corpus) == 9

    def test_moving_averages_use_only_prior_days(self, history_file):
        corpus = HistoricalDataLoader(history_file, HOLIDAYS).load_corpus()

        assert corpus["moving_average_7_days"].iloc[0] == pytest.approx(1.0)
        assert corpus["moving_average_7_days"].iloc[1] == pytest.approx(1.5)
        # Last day (demand 10): previous seven days are 3..9
        assert corpus["moving_average_7_days"].iloc[-1] == pytest.approx(6.0)
        assert corpus["moving_average_30_days"].iloc[-1] == pytest.approx(5.0)

    def test_series_are_kept_apart(self, tmp_path):
        df = pd.DataFrame({
            "date": ["2025-01-01", "2025-01-02", "2025-01-01", "2025-01-02"],
            "product_id": ["p1", "p1", "p1", "p1"],
            "store_id": ["s1", "s1", "s2", "s2"],
            "demand_quantity": [10.0, 20.0, 100.0, 200.0],
            "price_point": [1.0, 1.0, 1.0, 1.0],
            "current_stock": [5, 5, 5, 5],
        })
        path = tmp_path / "two_stores.csv"
        df.to_csv(path, index=False)

        corpus = HistoricalDataLoader(path, [date(2025, 1, 2)]).load_corpus()

        assert sorted(corpus["moving_average_7_days"].tolist()) == [10.0, 100.0]

    def test_holidays_are_flagged(self, history_file):
        corpus = HistoricalDataLoader(history_file, holidays=HOLIDAYS).load_corpus()
        flagged = corpus.loc[corpus["is_holiday"] == 1.0, "date"]

        assert flagged.tolist() == [pd.Timestamp("2025-01-06")]

    def test_missing_columns(self, tmp_path):
        path = tmp_path / "bad.csv"
        pd.DataFrame({"date": ["2025-01-01"], "product_id": ["p1"]}).to_csv(path, index=False)

        with pytest.raises(TrainingError):
            HistoricalDataLoader(path, HOLIDAYS).load_corpus()

    def test_generate_samples_and_cuts_off(self, history_file):
        loader = HistoricalDataLoader(history_file, HOLIDAYS)

        assert len(loader.generate(n=3, seed=0)) == 3
        assert len(loader.generate(reference_date=date(2025, 1, 5))) == 4
        assert len(loader.generate()) == 9

    def test_holiday_calendar_is_required(self, history_file):
        with pytest.raises(TrainingError) as excinfo:
            HistoricalDataLoader(history_file, holidays=[])
        assert excinfo.value.code == "NO_HOLIDAY_CALENDAR"

    def test_calendar_outside_history(self, history_file):
        loader = HistoricalDataLoader(history_file, holidays=[date(2024, 12, 25)])

        with pytest.raises(TrainingError) as excinfo:
            loader.load_corpus()
        assert excinfo.value.code == "NO_HOLIDAYS_IN_HISTORY"


@pytest.fixture
def ledger_file(tmp_path):
    """Half a year of noisy demand for four products in three stores."""
    rng = np.random.default_rng(7)
    dates = pd.date_range("2025-01-01", periods=180, freq="D")
    frames = []
    for product in range(4):
        for store in range(3):
            base = 5.0 + 3 * product + store
            frames.append(pd.DataFrame({
                "date": dates.strftime("%Y-%m-%d"),
                "product_id": f"p{product}",
                "store_id": f"s{store}",
                "demand_quantity": np.maximum(1.0, base + rng.normal(0.0, 2.0, len(dates))),
                "price_point": np.round(10.0 + 5 * product + rng.uniform(0.0, 2.0, len(dates)), 2),
                "current_stock": rng.integers(20, 500, len(dates)),
                "category": "grocery",
            }))
    path = tmp_path / "ledger.csv"
    pd.concat(frames).to_csv(path, index=False)
    return path


LEDGER_HOLIDAYS = [date(2025, 1, 6), date(2025, 2, 14), date(2025, 4, 18), date(2025, 5, 26)]


def test_historical_corpus_trains_a_model(ledger_file):
    corpus = HistoricalDataLoader(ledger_file, LEDGER_HOLIDAYS).generate()

    model = ModelTrainer().fit(corpus)

    assert len(corpus) == 12 * 179
    assert corpus["is_holiday"].sum() == 12 * 4
    assert model.n_samples == len(corpus)
    assert np.isfinite(model.weights).all()


def test_historical_loader_can_replace_synthetic_generator(ledger_file, tmp_path, make_item, reference_date):
    service = DemandForecastingService(
        data_generator=HistoricalDataLoader(ledger_file, LEDGER_HOLIDAYS),
        model_store=ModelStore(tmp_path / "historical_model.joblib"),
    )

    results = service.get_all_forecasts([make_item()], today=reference_date)

    assert service.model.n_samples == 12 * 179
    assert len(results) == 1
