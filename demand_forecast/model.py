"""
Model interface for persisting trained models and generating predictions
"""

import hashlib
import logging
import os
from dataclasses import asdict, dataclass, field
from pathlib import Path
from typing import Dict, Optional, Sequence, Tuple, Union

import joblib
import numpy as np
import pandas as pd

from demand_forecast.config import MODEL_FILE, FEATURE_COLUMNS
from demand_forecast.exceptions import ModelNotFoundError, PersistenceError, SchemaMismatchError
from demand_forecast.feature_engineering import FeatureVector

logger = logging.getLogger(__name__)


def schema_fingerprint(feature_columns: Sequence[str]) -> str:
    """Stable hash of the ordered feature names"""
    joined = '\x1f'.join(feature_columns)
    return hashlib.sha256(joined.encode('utf-8')).hexdigest()[:16]


@dataclass(frozen=True)
class TrainedModel:
    """
    Linear demand model: prediction = weights . features + bias
    """
    weights: Tuple[float, ...]
    bias: float
    feature_columns: Tuple[str, ...] = tuple(FEATURE_COLUMNS)
    schema_fingerprint: str = ''
    trained_at: Optional[str] = None
    n_samples: int = 0
    metrics: Dict[str, float] = field(default_factory=dict)

    def __post_init__(self):
        object.__setattr__(self, 'weights', tuple(float(w) for w in self.weights))
        object.__setattr__(self, 'bias', float(self.bias))
        object.__setattr__(self, 'feature_columns', tuple(self.feature_columns))

        if len(self.weights) != len(self.feature_columns):
            raise SchemaMismatchError(
                f"Model has {len(self.weights)} weights for {len(self.feature_columns)} features"
            )

        expected = schema_fingerprint(self.feature_columns)
        if not self.schema_fingerprint:
            object.__setattr__(self, 'schema_fingerprint', expected)
        elif self.schema_fingerprint != expected:
            raise SchemaMismatchError(
                "Stored schema fingerprint does not match feature columns",
                details={'stored': self.schema_fingerprint, 'computed': expected}
            )

    @property
    def coefficients(self) -> Dict[str, float]:
        return dict(zip(self.feature_columns, self.weights))

    def to_dict(self) -> dict:
        payload = asdict(self)
        payload['weights'] = list(self.weights)
        payload['feature_columns'] = list(self.feature_columns)
        return payload


class ModelStore:
    """
    Saves and loads trained models as a single joblib artifact
    """

    def __init__(self, model_path: Union[str, Path, None] = None):
        """
        Args:
            model_path: Default artifact location (default: from config)
        """
        self.model_path = Path(model_path or MODEL_FILE)

    def exists(self, source: Union[str, Path, None] = None) -> bool:
        return Path(source or self.model_path).exists()

    def save(self, model: TrainedModel, destination: Union[str, Path, None] = None) -> Path:
        """
        Write the model artifact, replacing any previous one

        Args:
            model: Trained model
            destination: Artifact path (default: model_path)

        Returns:
            Path: Location written
        """
        path = Path(destination or self.model_path)
        tmp_path = path.with_name(path.name + '.tmp')

        try:
            joblib.dump(model.to_dict(), tmp_path)
            os.replace(tmp_path, path)
        except OSError as e:
            if tmp_path.exists():
                tmp_path.unlink()
            raise PersistenceError(f"Could not save model to {path}: {e}",
                                   details={'path': str(path)}) from e

        logger.info("Model saved to %s", path)
        return path

    def load(self, source: Union[str, Path, None] = None) -> TrainedModel:
        """
        Read a model artifact

        Args:
            source: Artifact path (default: model_path)

        Returns:
            TrainedModel: Loaded model
        """
        path = Path(source or self.model_path)

        if not path.exists():
            raise ModelNotFoundError(f"Model file not found: {path}", details={'path': str(path)})

        try:
            payload = joblib.load(path)
        except Exception as e:
            raise PersistenceError(f"Could not read model from {path}: {e}",
                                   details={'path': str(path)}) from e

        if not isinstance(payload, dict):
            raise PersistenceError(f"Unexpected model artifact format in {path}",
                                   details={'path': str(path)})

        try:
            model = TrainedModel(**payload)
        except TypeError as e:
            raise PersistenceError(f"Malformed model artifact {path}: {e}",
                                   details={'path': str(path)}) from e

        logger.info("Model loaded from %s (trained %s)", path, model.trained_at)
        return model


def predict(model: TrainedModel, features: Union[FeatureVector, pd.Series]) -> float:
    """
    Point estimate of demand for one feature vector

    Args:
        model: Trained model
        features: FeatureVector, or a Series indexed by feature name

    Returns:
        float: weights . features + bias
    """
    if isinstance(features, FeatureVector):
        names = features.feature_names()
        values = features.to_array()
    elif isinstance(features, pd.Series):
        names = [str(name) for name in features.index]
        values = features.to_numpy(dtype=float)
    else:
        raise TypeError(f"Expected FeatureVector or pandas Series, got {type(features).__name__}")

    if len(values) != len(model.weights) or schema_fingerprint(names) != model.schema_fingerprint:
        raise SchemaMismatchError(
            "Feature vector does not match the model's training schema",
            details={'expected': list(model.feature_columns), 'received': names}
        )

    return float(np.dot(np.asarray(model.weights), values) + model.bias)


def predict_frame(model: TrainedModel, df: pd.DataFrame) -> np.ndarray:
    """
    Score every row of a DataFrame holding the model's feature columns

    Args:
        model: Trained model
        df: DataFrame with (at least) the model's feature columns

    Returns:
        np.ndarray: One prediction per row
    """
    missing = [col for col in model.feature_columns if col not in df.columns]
    if missing:
        raise SchemaMismatchError(
            f"DataFrame missing model features: {missing}",
            details={'expected': list(model.feature_columns)}
        )

    X = df[list(model.feature_columns)].to_numpy(dtype=float)
    return X @ np.asarray(model.weights) + model.bias
