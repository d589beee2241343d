"""
Model trainer
Fits an ordinary least squares demand model over the fixed feature order
"""

import logging
from datetime import datetime, timezone

import numpy as np
import pandas as pd
from sklearn.linear_model import LinearRegression

from demand_forecast.config import FEATURE_COLUMNS, TARGET_COLUMN
from demand_forecast.exceptions import TrainingError
from demand_forecast.model import TrainedModel, schema_fingerprint
from demand_forecast.utils import calculate_metrics

logger = logging.getLogger(__name__)


class ModelTrainer:
    """Trains linear demand models from training corpora."""

    def __init__(self, feature_columns=None, target_column=TARGET_COLUMN):
        self.feature_columns = list(feature_columns or FEATURE_COLUMNS)
        self.target_column = target_column

    def _design_matrix(self, corpus: pd.DataFrame):
        if corpus is None or len(corpus) == 0:
            raise TrainingError("Training corpus is empty", code='EMPTY_CORPUS')

        missing = [col for col in self.feature_columns + [self.target_column] if col not in corpus.columns]
        if missing:
            raise TrainingError(f"Training corpus missing columns: {missing}", code='MISSING_COLUMNS')

        X = corpus[self.feature_columns].to_numpy(dtype=float)
        y = corpus[self.target_column].to_numpy(dtype=float)

        if not (np.isfinite(X).all() and np.isfinite(y).all()):
            raise TrainingError("Training corpus contains NaN or infinite values", code='NON_FINITE')

        constant = [col for col, spread in zip(self.feature_columns, np.ptp(X, axis=0)) if spread == 0]
        if constant:
            raise TrainingError(
                f"Zero-variance feature columns: {constant}",
                code='SINGULAR_DESIGN',
                details={'columns': constant}
            )

        # With an intercept, rank is measured on the centred matrix
        rank = np.linalg.matrix_rank(X - X.mean(axis=0))
        if rank < len(self.feature_columns):
            raise TrainingError(
                f"Design matrix is rank deficient ({rank} < {len(self.feature_columns)})",
                code='SINGULAR_DESIGN'
            )

        return X, y

    def fit(self, corpus: pd.DataFrame) -> TrainedModel:
        """
        Fit a least squares model to a training corpus

        Args:
            corpus: DataFrame with feature columns and the demand label

        Returns:
            TrainedModel: Fitted weights, bias and schema fingerprint

        Raises:
            TrainingError: If the corpus is empty or degenerate
        """
        X, y = self._design_matrix(corpus)

        logger.info("Training linear demand model on %d examples, %d features",
                    X.shape[0], X.shape[1])

        regressor = LinearRegression()
        regressor.fit(X, y)

        metrics = calculate_metrics(y, regressor.predict(X))

        model = TrainedModel(
            weights=tuple(regressor.coef_),
            bias=float(regressor.intercept_),
            feature_columns=tuple(self.feature_columns),
            schema_fingerprint=schema_fingerprint(self.feature_columns),
            trained_at=datetime.now(timezone.utc).isoformat(),
            n_samples=int(X.shape[0]),
            metrics=metrics
        )

        logger.info("Training complete: MAE=%.3f RMSE=%.3f R2=%.3f",
                    metrics['MAE'], metrics['RMSE'], metrics['R2'])

        return model
