"""
Inventory records consumed by the forecasting engine
The engine only reads inventory; storage belongs to the surrounding application
"""

import math
from dataclasses import dataclass, field
from datetime import datetime, timezone
from pathlib import Path
from typing import Iterable, List, Optional, Protocol, Union

import pandas as pd

from demand_forecast.exceptions import InvalidFeatureError

# Record keys accepted from camelCase sources (document stores, JSON APIs)
CAMEL_CASE_FIELDS = {
    'storeId': 'store_id',
    'productId': 'product_id',
    'productName': 'product_name',
    'currentStock': 'current_stock',
    'minimumStock': 'minimum_stock',
    'pricePoint': 'price_point',
    'lastUpdated': 'last_updated'
}


@dataclass(frozen=True)
class InventoryItem:
    """
    Stock level of one product in one store
    """
    store_id: str
    product_id: str
    product_name: str
    current_stock: int
    minimum_stock: int = 0
    price_point: float = 0.0
    category: str = ''
    last_updated: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    id: Optional[str] = None

    def __post_init__(self):
        if self.current_stock < 0:
            raise InvalidFeatureError(
                f"Negative stock for product '{self.product_id}' in store '{self.store_id}'",
                details={'current_stock': self.current_stock}
            )
        if self.minimum_stock < 0:
            raise InvalidFeatureError(
                f"Negative minimum stock for product '{self.product_id}' in store '{self.store_id}'",
                details={'minimum_stock': self.minimum_stock}
            )
        if not math.isfinite(self.price_point) or self.price_point < 0:
            raise InvalidFeatureError(
                f"Invalid price for product '{self.product_id}' in store '{self.store_id}'",
                details={'price_point': self.price_point}
            )

    @property
    def is_low_stock(self) -> bool:
        return self.current_stock <= self.minimum_stock

    @classmethod
    def from_record(cls, record: dict) -> 'InventoryItem':
        """
        Build an item from a camelCase or snake_case record
        Blank optional fields (None, NaN, empty string) take their defaults

        Args:
            record: Mapping with inventory fields

        Returns:
            InventoryItem: Parsed item

        Raises:
            InvalidFeatureError: If a required field is missing or a number cannot be parsed
        """
        data = {CAMEL_CASE_FIELDS.get(key, key): value for key, value in record.items()}
        data = {key: value for key, value in data.items() if not _is_blank(value)}

        missing = [key for key in ('store_id', 'product_id', 'current_stock') if key not in data]
        if missing:
            raise InvalidFeatureError(f"Inventory record missing fields: {missing}",
                                      details={'record': {k: str(v) for k, v in record.items()}})

        if 'last_updated' in data:
            last_updated = pd.Timestamp(data['last_updated']).to_pydatetime()
        else:
            last_updated = datetime.now(timezone.utc)

        record_id = data.get('id', data.get('_id'))

        try:
            current_stock = int(data['current_stock'])
            minimum_stock = int(data.get('minimum_stock', 0))
            price_point = float(data.get('price_point', 0.0))
        except (TypeError, ValueError) as e:
            raise InvalidFeatureError(
                f"Unreadable number for product '{data['product_id']}' in store '{data['store_id']}': {e}",
                details={'product_id': str(data['product_id']), 'store_id': str(data['store_id'])}
            ) from e

        return cls(
            store_id=str(data['store_id']),
            product_id=str(data['product_id']),
            product_name=str(data.get('product_name', data['product_id'])),
            current_stock=current_stock,
            minimum_stock=minimum_stock,
            price_point=price_point,
            category=str(data.get('category', '')),
            last_updated=last_updated,
            id=None if record_id is None else str(record_id)
        )


def _is_blank(value) -> bool:
    if isinstance(value, str):
        return not value.strip()
    return pd.api.types.is_scalar(value) and pd.isna(value)


class InventorySource(Protocol):
    """Anything that can list the current inventory"""

    def list_items(self) -> List[InventoryItem]:
        ...


class InMemoryInventorySource:
    """
    Inventory source backed by a list of items
    """

    def __init__(self, items: Optional[Iterable[InventoryItem]] = None):
        self._items = list(items or [])

    def list_items(self) -> List[InventoryItem]:
        return list(self._items)


class CsvInventorySource:
    """
    Inventory source reading a CSV export of inventory records
    Column names may be camelCase or snake_case
    """

    def __init__(self, path: Union[str, Path]):
        self.path = Path(path)

    def list_items(self) -> List[InventoryItem]:
        df = pd.read_csv(self.path, dtype={'storeId': str, 'store_id': str,
                                           'productId': str, 'product_id': str})
        return [InventoryItem.from_record(record) for record in df.to_dict(orient='records')]


def get_low_stock_items(items: Iterable[InventoryItem]) -> List[InventoryItem]:
    """
    Items at or below their minimum stock level

    Args:
        items: Inventory items

    Returns:
        list: Items where current stock <= minimum stock
    """
    return [item for item in items if item.is_low_stock]
