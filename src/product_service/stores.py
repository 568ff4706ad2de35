"""
Store ports over the product and stock key-value tables.

Each store offers single-item put/get with overwrite semantics. There is no
cross-store transaction: callers sequence the two writes themselves.
"""

import threading
from abc import ABC, abstractmethod
from decimal import Decimal
from typing import Any, Optional

from botocore.exceptions import BotoCoreError, ClientError

from .exceptions import StoreError
from .models import Product, Stock


class ProductStore(ABC):
    """Read/write capability over product records keyed by ``id``."""

    @abstractmethod
    def put(self, product: Product) -> None:
        """Persist a product, overwriting any record with the same id."""

    @abstractmethod
    def get(self, product_id: str) -> Optional[Product]:
        """Return a product by its id, or None if not found."""

    @abstractmethod
    def list_all(self) -> list[Product]:
        """Return every stored product."""


class StockStore(ABC):
    """Read/write capability over stock records keyed by ``product_id``."""

    @abstractmethod
    def put(self, stock: Stock) -> None:
        """Persist a stock record, overwriting any record for the same product."""

    @abstractmethod
    def get(self, product_id: str) -> Optional[Stock]:
        """Return the stock record of a product, or None if not found."""

    @abstractmethod
    def list_all(self) -> list[Stock]:
        """Return every stored stock record."""


def _to_dynamo_number(value: float) -> Decimal:
    return Decimal(str(value))


def _from_dynamo_number(value: Any) -> Any:
    if isinstance(value, Decimal):
        return int(value) if value == value.to_integral_value() else float(value)
    return value


class _DynamoTable:
    """Shared DynamoDB table access with error wrapping."""

    store_name = "dynamodb"

    def __init__(self, table):
        self.table = table

    def _put_item(self, item: dict) -> None:
        try:
            self.table.put_item(Item=item)
        except (ClientError, BotoCoreError) as e:
            raise StoreError(
                message=f"Failed to write item to {self.store_name}: {e}",
                store=self.store_name,
                operation="PutItem",
                original_exception=e,
            )

    def _get_item(self, key: dict) -> Optional[dict]:
        try:
            response = self.table.get_item(Key=key)
        except (ClientError, BotoCoreError) as e:
            raise StoreError(
                message=f"Failed to read item from {self.store_name}: {e}",
                store=self.store_name,
                operation="GetItem",
                original_exception=e,
            )
        return response.get("Item")

    def _scan(self) -> list[dict]:
        items = []
        kwargs = {}
        try:
            while True:
                response = self.table.scan(**kwargs)
                items.extend(response.get("Items", []))
                last_key = response.get("LastEvaluatedKey")
                if not last_key:
                    break
                kwargs["ExclusiveStartKey"] = last_key
        except (ClientError, BotoCoreError) as e:
            raise StoreError(
                message=f"Failed to scan {self.store_name}: {e}",
                store=self.store_name,
                operation="Scan",
                original_exception=e,
            )
        return items


class DynamoProductStore(_DynamoTable, ProductStore):
    """Product store backed by a DynamoDB table with partition key ``id``."""

    store_name = "products"

    def put(self, product: Product) -> None:
        self._put_item({
            "id": product.id,
            "title": product.title,
            "description": product.description,
            "price": _to_dynamo_number(product.price),
        })

    def get(self, product_id: str) -> Optional[Product]:
        item = self._get_item({"id": product_id})
        return self._to_product(item) if item else None

    def list_all(self) -> list[Product]:
        return [self._to_product(item) for item in self._scan()]

    @staticmethod
    def _to_product(item: dict) -> Product:
        return Product(
            id=item["id"],
            title=item.get("title", ""),
            description=item.get("description") or "",
            price=float(item.get("price", 0)),
        )


class DynamoStockStore(_DynamoTable, StockStore):
    """Stock store backed by a DynamoDB table with partition key ``product_id``."""

    store_name = "stock"

    def put(self, stock: Stock) -> None:
        self._put_item({
            "product_id": stock.product_id,
            "count": stock.count,
        })

    def get(self, product_id: str) -> Optional[Stock]:
        item = self._get_item({"product_id": product_id})
        return self._to_stock(item) if item else None

    def list_all(self) -> list[Stock]:
        return [self._to_stock(item) for item in self._scan()]

    @staticmethod
    def _to_stock(item: dict) -> Stock:
        return Stock(
            product_id=item["product_id"],
            count=int(_from_dynamo_number(item.get("count", 0))),
        )


class InMemoryProductStore(ProductStore):
    """Thread-safe dict-backed product store for local runs and tests."""

    def __init__(self):
        self._items: dict[str, Product] = {}
        self._lock = threading.Lock()

    def put(self, product: Product) -> None:
        with self._lock:
            self._items[product.id] = product

    def get(self, product_id: str) -> Optional[Product]:
        with self._lock:
            return self._items.get(product_id)

    def list_all(self) -> list[Product]:
        with self._lock:
            return list(self._items.values())

    def __len__(self) -> int:
        return len(self._items)


class InMemoryStockStore(StockStore):
    """Thread-safe dict-backed stock store for local runs and tests."""

    def __init__(self):
        self._items: dict[str, Stock] = {}
        self._lock = threading.Lock()

    def put(self, stock: Stock) -> None:
        with self._lock:
            self._items[stock.product_id] = stock

    def get(self, product_id: str) -> Optional[Stock]:
        with self._lock:
            return self._items.get(product_id)

    def list_all(self) -> list[Stock]:
        with self._lock:
            return list(self._items.values())

    def __len__(self) -> int:
        return len(self._items)
