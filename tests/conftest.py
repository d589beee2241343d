"""
Pytest configuration and fixtures.
"""

from datetime import date

import pytest

from demand_forecast.config import FEATURE_COLUMNS
from demand_forecast.data_loader import SyntheticDataGenerator
from demand_forecast.inventory import InventoryItem
from demand_forecast.model import ModelStore, TrainedModel
from demand_forecast.trainer import ModelTrainer

# A Thursday
REFERENCE_DATE = date(2025, 10, 30)


@pytest.fixture
def reference_date():
    return REFERENCE_DATE


@pytest.fixture(scope="session")
def corpus():
    """Default-sized synthetic corpus."""
    return SyntheticDataGenerator().generate(n=1000, seed=42, reference_date=REFERENCE_DATE)


@pytest.fixture(scope="session")
def trained_model(corpus):
    return ModelTrainer().fit(corpus)


@pytest.fixture
def constant_model():
    """Factory for a model that predicts the same demand for every input."""
    def _make(demand):
        return TrainedModel(weights=(0.0,) * len(FEATURE_COLUMNS), bias=demand)
    return _make


@pytest.fixture
def model_store(tmp_path):
    return ModelStore(tmp_path / "demand_model.joblib")


@pytest.fixture
def make_item():
    """Factory for inventory items."""
    counter = {"n": 0}

    def _make(current_stock=100, price_point=20.0, minimum_stock=10, store_id="store-1", product_id=None):
        counter["n"] += 1
        product_id = product_id or f"sku-{counter['n']}"
        return InventoryItem(
            store_id=store_id,
            product_id=product_id,
            product_name=f"Product {product_id}",
            current_stock=current_stock,
            minimum_stock=minimum_stock,
            price_point=price_point,
            category="grocery",
        )
    return _make
