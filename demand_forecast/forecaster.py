"""
Main forecasting orchestrator
Combines model loading/training, prediction, risk classification and daily simulation
"""

import logging
import threading
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from datetime import date, datetime, timezone
from enum import Enum
from typing import List, Optional, Sequence

import numpy as np

from demand_forecast.config import TRAINING_SEED
from demand_forecast.data_loader import SyntheticDataGenerator
from demand_forecast.exceptions import (
    ItemForecastError, ModelNotFoundError, PersistenceError, TrainingError
)
from demand_forecast.feature_engineering import FeatureEngine
from demand_forecast.inventory import InventoryItem, InventorySource
from demand_forecast.model import ModelStore, TrainedModel, predict
from demand_forecast.risk import RiskLevel, classify
from demand_forecast.simulator import DailyForecast, DailyForecastSimulator
from demand_forecast.trainer import ModelTrainer
from demand_forecast.utils import summarize_forecasts

logger = logging.getLogger(__name__)


class ModelState(Enum):
    UNLOADED = 'unloaded'
    LOADING = 'loading'
    READY = 'ready'
    ERROR = 'error'


@dataclass(frozen=True)
class ForecastResult:
    """Forecast, stockout risk and reorder recommendation for one item"""
    product_name: str
    store_id: str
    current_stock: int
    predicted_demand: float
    days_until_stockout: int
    risk_level: RiskLevel
    recommended_reorder_quantity: int
    daily_forecasts: List[DailyForecast] = field(default_factory=list)
    product_id: str = ''


class DemandForecastingService:
    """
    Owns the trained model and produces per-item and fleet-wide forecasts
    The model is loaded, or trained and saved, on first use
    """

    def __init__(
        self,
        inventory_source: Optional[InventorySource] = None,
        model_store: Optional[ModelStore] = None,
        trainer: Optional[ModelTrainer] = None,
        data_generator=None,
        feature_engine: Optional[FeatureEngine] = None,
        simulator: Optional[DailyForecastSimulator] = None,
        training_seed: int = TRAINING_SEED,
        simulation_seed: Optional[int] = None,
        max_workers: int = 1
    ):
        """
        Initialize the service

        Args:
            inventory_source: Supplies items when get_all_forecasts is called without any
            model_store: Where the model artifact lives (default: config.MODEL_FILE)
            trainer: Model trainer
            data_generator: Training data source with generate(n, seed, reference_date)
            feature_engine: Builds inference feature vectors
            simulator: Daily forecast simulator
            training_seed: Seed for the first synthetic corpus
            simulation_seed: Seed for daily simulations (default: OS entropy)
            max_workers: Thread pool size for fleet forecasts (1 runs inline)
        """
        self.inventory_source = inventory_source
        self.model_store = model_store or ModelStore()
        self.trainer = trainer or ModelTrainer()
        self.data_generator = data_generator or SyntheticDataGenerator()
        self.feature_engine = feature_engine or FeatureEngine()
        self.simulator = simulator or DailyForecastSimulator()
        self.training_seed = training_seed
        self.max_workers = max_workers

        self._seed_sequence = np.random.SeedSequence(simulation_seed)
        self._lock = threading.Lock()
        self._seed_lock = threading.Lock()
        self._model: Optional[TrainedModel] = None
        self._state = ModelState.UNLOADED
        self._last_error: Optional[Exception] = None

    @property
    def state(self) -> ModelState:
        return self._state

    @property
    def model(self) -> Optional[TrainedModel]:
        return self._model

    @property
    def last_error(self) -> Optional[Exception]:
        return self._last_error

    # ------------------------------------------------------------------
    # Model lifecycle
    # ------------------------------------------------------------------

    def _train(self, seed: int) -> TrainedModel:
        """Train on a fresh corpus, retrying once with the next seed"""
        try:
            corpus = self.data_generator.generate(seed=seed)
            return self.trainer.fit(corpus)
        except TrainingError as e:
            logger.warning("Training with seed %s failed (%s), retrying with seed %s",
                           seed, e, seed + 1)

        corpus = self.data_generator.generate(seed=seed + 1)
        return self.trainer.fit(corpus)

    def _save(self, model: TrainedModel) -> None:
        try:
            self.model_store.save(model)
        except PersistenceError as e:
            # The in-memory model stays usable for this process
            logger.warning("Model trained but not saved: %s", e)

    def ensure_model_ready(self) -> TrainedModel:
        """
        Load the model, or train and save one if no artifact exists

        Returns:
            TrainedModel: The published model
        """
        model = self._model
        if model is not None:
            return model

        with self._lock:
            if self._model is not None:
                return self._model

            self._state = ModelState.LOADING
            try:
                try:
                    model = self.model_store.load()
                except ModelNotFoundError:
                    logger.info("No saved model found, training a new one")
                    model = self._train(self.training_seed)
                    self._save(model)
            except Exception as e:
                self._state = ModelState.ERROR
                self._last_error = e
                logger.error("Model could not be made ready: %s", e)
                raise

            self._model = model
            self._state = ModelState.READY
            self._last_error = None

        return model

    def retrain(self, seed: Optional[int] = None) -> TrainedModel:
        """
        Train a new model and replace the current one once it is complete

        Args:
            seed: Seed for the synthetic corpus (default: training_seed)

        Returns:
            TrainedModel: The new model
        """
        model = self._train(self.training_seed if seed is None else seed)

        # The saved artifact is always the published model
        with self._lock:
            self._model = model
            self._state = ModelState.READY
            self._last_error = None
            self._save(model)

        logger.info("Model retrained on %d examples", model.n_samples)

        return model

    def reload(self) -> TrainedModel:
        """
        Replace the current model with the saved artifact

        Returns:
            TrainedModel: The reloaded model
        """
        model = self.model_store.load()

        with self._lock:
            self._model = model
            self._state = ModelState.READY
            self._last_error = None

        return model

    # ------------------------------------------------------------------
    # Forecasting
    # ------------------------------------------------------------------

    def forecast_item(self, item: InventoryItem, model: Optional[TrainedModel] = None,
                      today: Optional[date] = None, rng=None) -> ForecastResult:
        """
        Forecast demand, stockout risk and reorder quantity for one item

        Args:
            item: Inventory item
            model: Model to use (default: the service's model)
            today: Reference date (default: today)
            rng: Random source for the daily simulation

        Returns:
            ForecastResult: Forecast for the item
        """
        model = model or self.ensure_model_ready()
        today = today or date.today()

        features = self.feature_engine.build_for_item(item, today)
        predicted_demand = max(0.0, predict(model, features))
        assessment = classify(item.current_stock, predicted_demand)

        daily_forecasts = self.simulator.simulate(
            item.current_stock, predicted_demand, rng=rng, start_date=today
        )

        return ForecastResult(
            product_name=item.product_name,
            store_id=item.store_id,
            current_stock=item.current_stock,
            predicted_demand=predicted_demand,
            days_until_stockout=assessment.days_until_stockout,
            risk_level=assessment.risk_level,
            recommended_reorder_quantity=assessment.reorder_quantity,
            daily_forecasts=daily_forecasts,
            product_id=item.product_id
        )

    def _forecast_one(self, item: InventoryItem, model: TrainedModel, today: date,
                      seed: np.random.SeedSequence) -> ForecastResult:
        try:
            return self.forecast_item(item, model, today, rng=np.random.default_rng(seed))
        except Exception as e:
            raise ItemForecastError(
                f"Forecast failed for product '{item.product_id}' in store '{item.store_id}': {e}",
                code=type(e).__name__,
                store_id=item.store_id,
                product_id=item.product_id
            ) from e

    def get_all_forecasts(self, items: Optional[Sequence[InventoryItem]] = None,
                          today: Optional[date] = None) -> List[ForecastResult]:
        """
        Forecast every item, most at-risk first

        Args:
            items: Inventory items (default: all items from inventory_source)
            today: Reference date (default: today)

        Returns:
            list: ForecastResults ordered Critical > High > Medium > Low, input order within a tier
        """
        if items is None:
            if self.inventory_source is None:
                raise ValueError("No items given and no inventory source configured")
            items = self.inventory_source.list_items()
        items = list(items)

        model = self.ensure_model_ready()
        today = today or date.today()
        with self._seed_lock:
            seeds = self._seed_sequence.spawn(len(items))

        if self.max_workers > 1 and len(items) > 1:
            with ThreadPoolExecutor(max_workers=self.max_workers) as executor:
                results = list(executor.map(
                    lambda args: self._forecast_one(args[0], model, today, args[1]),
                    zip(items, seeds)
                ))
        else:
            results = [self._forecast_one(item, model, today, seed) for item, seed in zip(items, seeds)]

        # sorted() is stable, so ties keep input order
        results = sorted(results, key=lambda r: r.risk_level, reverse=True)

        logger.info("Generated forecasts for %d items (%d at high or critical risk)",
                    len(results), sum(1 for r in results if r.risk_level >= RiskLevel.HIGH))

        return results

    def generate_report(self, items: Optional[Sequence[InventoryItem]] = None,
                        today: Optional[date] = None) -> dict:
        """
        Fleet-wide forecast with summary statistics

        Args:
            items: Inventory items (default: all items from inventory_source)
            today: Reference date (default: today)

        Returns:
            dict: forecasts, summary, model metadata and generation time
        """
        today = today or date.today()
        forecasts = self.get_all_forecasts(items, today)
        model = self._model

        return {
            'reference_date': today.isoformat(),
            'forecasts': forecasts,
            'summary': summarize_forecasts(forecasts),
            'model': {
                'trained_at': model.trained_at,
                'n_samples': model.n_samples,
                'metrics': model.metrics
            },
            'generated_at': datetime.now(timezone.utc).isoformat()
        }
