"""
Store Demand Forecasting Engine

This package provides modular components for store-level demand forecasting:
- Synthetic and historical training data
- Linear demand model training and persistence
- Stockout risk classification and reorder recommendations
- Daily stock projection and fleet-wide forecasting
"""

__version__ = "1.0.0"
