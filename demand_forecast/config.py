"""
Configuration file for Demand Forecasting
Contains paths, feature definitions, and model parameters
"""

import os
from pathlib import Path

# ============================================================================
# PATHS
# ============================================================================

# Base directories
BASE_DIR = Path(__file__).parent.parent
MODEL_DIR = BASE_DIR / 'models'

# Model file (single artifact holding weights, bias and feature schema)
MODEL_FILE = Path(os.environ.get('DEMAND_FORECAST_MODEL_FILE', MODEL_DIR / 'demand_model.joblib'))

# ============================================================================
# FEATURE DEFINITIONS
# ============================================================================

# Model input, in the order used to build the design matrix
FEATURE_COLUMNS = [
    # Calendar
    'day_of_year', 'is_weekend', 'is_holiday', 'seasonal_index',

    # Demand history proxies
    'moving_average_7_days', 'moving_average_30_days',

    # Item state
    'price_point', 'current_stock'
]

TARGET_COLUMN = 'demand_quantity'

# Columns expected in a historical demand ledger
HISTORY_COLUMNS = [
    'date', 'product_id', 'store_id', 'demand_quantity',
    'price_point', 'current_stock', 'category'
]

# ============================================================================
# SYNTHETIC TRAINING DATA
# ============================================================================

TRAINING_SAMPLES = 1000
TRAINING_SEED = 42

# Dates are drawn from the trailing year
HISTORY_WINDOW_DAYS = 365

HOLIDAY_PROBABILITY = 0.05

STOCK_RANGE = (10, 1000)     # integer units, upper bound exclusive
PRICE_RANGE = (10.0, 110.0)

BASE_DEMAND_RATE = 0.05
WEEKEND_DEMAND_FACTOR = 0.7
MIN_PRICE_FACTOR = 0.1
MIN_TRAINING_DEMAND = 1.0

DEMAND_NOISE_STD = 5.0
MOVING_AVERAGE_7_SCALE, MOVING_AVERAGE_7_NOISE_STD = 0.9, 2.0
MOVING_AVERAGE_30_SCALE, MOVING_AVERAGE_30_NOISE_STD = 0.8, 3.0

# ============================================================================
# INFERENCE PARAMETERS
# ============================================================================

# Current stock stands in for demand history until a real ledger is wired in
MOVING_AVERAGE_7_STOCK_FACTOR = 0.1
MOVING_AVERAGE_30_STOCK_FACTOR = 0.05

# ============================================================================
# BUSINESS PARAMETERS
# ============================================================================

# Days-until-stockout reported when no demand is expected
STOCKOUT_SENTINEL_DAYS = 999

# Inclusive upper bounds on days until stockout, evaluated in order
RISK_THRESHOLDS = {
    'critical': 1,
    'high': 7,
    'medium': 30
}

# Days of predicted demand to reorder per risk level
REORDER_COVER_DAYS = {
    'critical': 14,
    'high': 7,
    'medium': 3,
    'low': 0
}

# Daily forecast horizon and relative spread of simulated daily demand
FORECAST_HORIZON_DAYS = 7
DAILY_DEMAND_VARIATION = 0.3

# ============================================================================
# LOGGING
# ============================================================================

LOG_LEVEL = os.environ.get('DEMAND_FORECAST_LOG_LEVEL', 'INFO')
LOG_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'
