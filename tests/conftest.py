"""Pytest fixtures and configuration."""

import json
import os
import pytest

os.environ["AWS_DEFAULT_REGION"] = "us-east-1"
os.environ["AWS_ACCESS_KEY_ID"] = "testing"
os.environ["AWS_SECRET_ACCESS_KEY"] = "testing"
os.environ["PRODUCTS_TABLE_NAME"] = "test-products"
os.environ["STOCK_TABLE_NAME"] = "test-stock"

from product_service.exceptions import StoreError
from product_service.models import QueueMessage
from product_service.service import ProductService
from product_service.stores import InMemoryProductStore, InMemoryStockStore


class FailingProductStore(InMemoryProductStore):
    """Product store whose writes always fail."""

    def __init__(self):
        super().__init__()
        self.put_attempts = 0

    def put(self, product):
        self.put_attempts += 1
        raise StoreError(
            message="Throttled writing product",
            store="products",
            operation="PutItem",
        )


class FailingStockStore(InMemoryStockStore):
    """Stock store whose writes always fail."""

    def __init__(self):
        super().__init__()
        self.put_attempts = 0

    def put(self, stock):
        self.put_attempts += 1
        raise StoreError(
            message="Throttled writing stock",
            store="stock",
            operation="PutItem",
        )


@pytest.fixture
def widget_body():
    """Return a valid product message body."""
    return json.dumps({"title": "Widget", "description": "A widget", "price": 9.99})


@pytest.fixture
def empty_title_body():
    """Return a well-formed body that fails validation."""
    return json.dumps({"title": "", "price": 5})


@pytest.fixture
def product_store():
    return InMemoryProductStore()


@pytest.fixture
def stock_store():
    return InMemoryStockStore()


@pytest.fixture
def service(product_store, stock_store):
    return ProductService(product_store, stock_store)


@pytest.fixture
def failing_product_store():
    return FailingProductStore()


@pytest.fixture
def failing_stock_store():
    return FailingStockStore()


@pytest.fixture
def sample_batch(widget_body, empty_title_body):
    """Return the three-message batch: one valid, one invalid, one unparsable."""
    return [
        QueueMessage(id="msg-1", body=widget_body),
        QueueMessage(id="msg-2", body=empty_title_body),
        QueueMessage(id="msg-3", body="not-json"),
    ]


@pytest.fixture
def sample_sqs_event(widget_body, empty_title_body):
    """Return a sample SQS event."""
    return {
        "Records": [
            {"messageId": "msg-1", "body": widget_body, "eventSource": "aws:sqs"},
            {"messageId": "msg-2", "body": empty_title_body, "eventSource": "aws:sqs"},
            {"messageId": "msg-3", "body": "not-json", "eventSource": "aws:sqs"},
        ]
    }
