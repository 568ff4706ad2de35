"""
Product Service - product catalog with batch ingestion.

This package provides the batch ingestion pipeline that turns queued
product messages into product and stock records, plus the Lambda handlers
for the read-only lookups and the Basic authorizer.
"""

from .exceptions import (
    AuthorizationError,
    BadRequestError,
    CancelledError,
    ConfigurationError,
    NotFoundError,
    ParseError,
    PersistenceError,
    ProductServiceError,
    StoreError,
    ValidationError,
)
from .models import (
    AvailableProduct,
    BatchReport,
    ItemFailure,
    ItemSuccess,
    Product,
    ProductInput,
    QueueMessage,
    Stock,
    parse_input,
)
from .pipeline import BatchPipeline
from .service import ProductService

__all__ = [
    "BatchPipeline",
    "ProductService",
    "parse_input",
    "ProductInput",
    "Product",
    "AvailableProduct",
    "Stock",
    "QueueMessage",
    "ItemSuccess",
    "ItemFailure",
    "BatchReport",
    "ProductServiceError",
    "ParseError",
    "ValidationError",
    "StoreError",
    "PersistenceError",
    "CancelledError",
    "NotFoundError",
    "BadRequestError",
    "AuthorizationError",
    "ConfigurationError",
]

__version__ = "1.0.0"
