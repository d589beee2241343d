"""
Exception types raised by the demand forecasting engine
"""


class ForecastingError(Exception):
    """Base exception for demand forecasting errors."""

    default_message = "An error occurred in the demand forecasting engine"

    def __init__(self, message=None, code=None, details=None):
        """Initialize the exception.

        Args:
            message: Error message
            code: Error code
            details: Additional error details
        """
        self.message = message or self.default_message
        self.code = code
        self.details = details
        super().__init__(self.message)

    def __str__(self):
        if self.code:
            return f"[{self.code}] {self.message}"
        return self.message

    def to_dict(self):
        """Convert the exception to a dictionary."""
        error_dict = {
            'error': self.__class__.__name__,
            'message': self.message,
        }

        if self.code:
            error_dict['code'] = self.code

        if self.details:
            error_dict['details'] = self.details

        return error_dict


class TrainingError(ForecastingError):
    """Raised when a corpus cannot produce a model (empty or degenerate)."""

    default_message = "Model training failed"


class ModelNotFoundError(ForecastingError):
    """Raised when no model artifact exists at the requested location."""

    default_message = "Model artifact not found"


class SchemaMismatchError(ForecastingError):
    """Raised when features do not match the model's training-time schema."""

    default_message = "Feature schema does not match the trained model"


class PersistenceError(ForecastingError):
    """Raised on I/O failures while saving or loading a model."""

    default_message = "Model persistence failed"


class InvalidFeatureError(ForecastingError):
    """Raised for negative, missing or non-finite feature inputs."""

    default_message = "Invalid feature value"


class ItemForecastError(ForecastingError):
    """Raised when forecasting a single inventory item fails."""

    default_message = "Forecast failed for inventory item"

    def __init__(self, message=None, code=None, details=None, store_id=None, product_id=None):
        self.store_id = store_id
        self.product_id = product_id
        details = dict(details or {})
        details.setdefault('store_id', store_id)
        details.setdefault('product_id', product_id)
        super().__init__(message, code, details)
