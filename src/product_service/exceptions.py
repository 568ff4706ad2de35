"""
Custom exceptions for the product service.
Provides structured error handling with rich context for debugging and monitoring.
"""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Optional


class ErrorSeverity(Enum):
    """Severity levels for errors."""
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    CRITICAL = "critical"


class ErrorCategory(Enum):
    """Categories of errors for routing and handling."""
    PARSE = "parse"
    VALIDATION = "validation"
    PERSISTENCE = "persistence"
    CANCELLATION = "cancellation"
    NOT_FOUND = "not_found"
    AUTHORIZATION = "authorization"
    CONFIGURATION = "configuration"


@dataclass
class ErrorContext:
    """Rich context for error tracking and debugging."""
    correlation_id: Optional[str] = None
    message_id: Optional[str] = None
    product_id: Optional[str] = None
    field_name: Optional[str] = None
    expected_type: Optional[str] = None
    actual_value: Optional[Any] = None
    batch_id: Optional[str] = None
    timestamp: str = field(
        default_factory=lambda: datetime.now(timezone.utc).isoformat()
    )
    additional_data: dict = field(default_factory=dict)

    def to_dict(self) -> dict:
        """Convert context to dictionary for logging."""
        return {
            "correlation_id": self.correlation_id,
            "message_id": self.message_id,
            "product_id": self.product_id,
            "field_name": self.field_name,
            "expected_type": self.expected_type,
            "actual_value": str(self.actual_value) if self.actual_value is not None else None,
            "batch_id": self.batch_id,
            "timestamp": self.timestamp,
            **self.additional_data,
        }


class ProductServiceError(Exception):
    """Base exception for all product service errors."""

    kind = "ProductServiceError"

    def __init__(
        self,
        message: str,
        context: Optional[ErrorContext] = None,
        severity: ErrorSeverity = ErrorSeverity.MEDIUM,
        category: ErrorCategory = ErrorCategory.VALIDATION,
        retryable: bool = False,
        original_exception: Optional[Exception] = None,
    ):
        super().__init__(message)
        self.message = message
        self.context = context or ErrorContext()
        self.severity = severity
        self.category = category
        self.retryable = retryable
        self.original_exception = original_exception

    def to_dict(self) -> dict:
        """Serialize exception for logging and monitoring."""
        return {
            "error_type": self.kind,
            "message": self.message,
            "severity": self.severity.value,
            "category": self.category.value,
            "retryable": self.retryable,
            "context": self.context.to_dict(),
            "original_exception": str(self.original_exception) if self.original_exception else None,
        }


class ParseError(ProductServiceError):
    """Raised when a message body cannot be decoded into a ProductInput."""

    kind = "ParseError"

    def __init__(
        self,
        message: str,
        context: Optional[ErrorContext] = None,
        original_exception: Optional[Exception] = None,
    ):
        super().__init__(
            message=message,
            context=context,
            severity=ErrorSeverity.LOW,
            category=ErrorCategory.PARSE,
            retryable=False,
            original_exception=original_exception,
        )


class ValidationError(ProductServiceError):
    """Raised when well-formed input fails semantic validation."""

    kind = "ValidationError"

    def __init__(
        self,
        message: str,
        field_name: str,
        expected: str,
        actual: Any,
        context: Optional[ErrorContext] = None,
    ):
        ctx = context or ErrorContext()
        ctx.field_name = field_name
        ctx.expected_type = expected
        ctx.actual_value = actual

        super().__init__(
            message=message,
            context=ctx,
            severity=ErrorSeverity.LOW,
            category=ErrorCategory.VALIDATION,
            retryable=False,
        )
        self.field_name = field_name
        self.expected = expected
        self.actual = actual


class StoreError(ProductServiceError):
    """Raised by a store adapter when a single read or write fails."""

    kind = "StoreError"

    def __init__(
        self,
        message: str,
        store: str,
        operation: str,
        context: Optional[ErrorContext] = None,
        original_exception: Optional[Exception] = None,
    ):
        ctx = context or ErrorContext()
        ctx.additional_data["store"] = store
        ctx.additional_data["operation"] = operation

        super().__init__(
            message=message,
            context=ctx,
            severity=ErrorSeverity.HIGH,
            category=ErrorCategory.PERSISTENCE,
            retryable=True,
            original_exception=original_exception,
        )
        self.store = store
        self.operation = operation


class PersistenceError(ProductServiceError):
    """
    Raised when one of the two writes of a product creation fails.

    ``stage`` is ``"product"`` or ``"stock"``. A failure at the stock stage
    leaves the already written product behind; its id is kept in
    ``orphan_product_id``.
    """

    kind = "PersistenceError"

    def __init__(
        self,
        message: str,
        stage: str,
        product_id: Optional[str] = None,
        orphan_product_id: Optional[str] = None,
        context: Optional[ErrorContext] = None,
        original_exception: Optional[Exception] = None,
    ):
        ctx = context or ErrorContext()
        ctx.product_id = product_id
        ctx.additional_data["stage"] = stage
        if orphan_product_id:
            ctx.additional_data["orphan_product_id"] = orphan_product_id

        super().__init__(
            message=message,
            context=ctx,
            severity=ErrorSeverity.HIGH,
            category=ErrorCategory.PERSISTENCE,
            retryable=True,
            original_exception=original_exception,
        )
        self.stage = stage
        self.orphan_product_id = orphan_product_id


class CancelledError(ProductServiceError):
    """Raised for batch items that never started because the batch was cancelled."""

    kind = "Cancelled"

    def __init__(self, message: str = "Batch cancelled before item was processed",
                 context: Optional[ErrorContext] = None):
        super().__init__(
            message=message,
            context=context,
            severity=ErrorSeverity.MEDIUM,
            category=ErrorCategory.CANCELLATION,
            retryable=True,
        )


class NotFoundError(ProductServiceError):
    """Raised when a looked-up product does not exist."""

    kind = "NotFound"

    def __init__(self, product_id: str, context: Optional[ErrorContext] = None):
        ctx = context or ErrorContext()
        ctx.product_id = product_id

        super().__init__(
            message=f"Not Found: product {product_id}",
            context=ctx,
            severity=ErrorSeverity.LOW,
            category=ErrorCategory.NOT_FOUND,
            retryable=False,
        )
        self.product_id = product_id


class BadRequestError(ProductServiceError):
    """Raised by the HTTP handlers when a request body is rejected."""

    kind = "BadRequest"

    def __init__(
        self,
        detail: str,
        context: Optional[ErrorContext] = None,
        original_exception: Optional[Exception] = None,
    ):
        super().__init__(
            message=f"Bad Request: {detail}",
            context=context,
            severity=ErrorSeverity.LOW,
            category=ErrorCategory.VALIDATION,
            retryable=False,
            original_exception=original_exception,
        )
        self.detail = detail


class AuthorizationError(ProductServiceError):
    """Raised when a request carries no usable authorization token."""

    kind = "Unauthorized"

    def __init__(self, message: str = "Unauthorized", context: Optional[ErrorContext] = None):
        super().__init__(
            message=message,
            context=context,
            severity=ErrorSeverity.LOW,
            category=ErrorCategory.AUTHORIZATION,
            retryable=False,
        )


class ConfigurationError(ProductServiceError):
    """Raised when configuration or the invocation event is invalid."""

    kind = "ConfigurationError"

    def __init__(
        self,
        message: str,
        config_key: str,
        context: Optional[ErrorContext] = None,
    ):
        ctx = context or ErrorContext()
        ctx.additional_data["config_key"] = config_key

        super().__init__(
            message=message,
            context=ctx,
            severity=ErrorSeverity.CRITICAL,
            category=ErrorCategory.CONFIGURATION,
            retryable=False,
        )
        self.config_key = config_key
