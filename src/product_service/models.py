"""
Data models for the product service.
Pydantic models describe the persisted entities and the untrusted input
accepted from a queue message; dataclasses carry per-batch results.
"""

import base64
import json
from dataclasses import dataclass, field
from typing import Any, Optional, Union

from pydantic import BaseModel, ConfigDict, field_validator
from pydantic import ValidationError as PydanticValidationError

from .exceptions import ErrorContext, ParseError, ValidationError


class ProductInput(BaseModel):
    """Product description received from a queue message or a POST body."""
    title: str
    description: str = ""
    price: float
    count: int = 0

    @field_validator("description", mode="before")
    @classmethod
    def _description_default(cls, value: Any) -> Any:
        return "" if value is None else value

    @field_validator("count", mode="before")
    @classmethod
    def _count_default(cls, value: Any) -> Any:
        if value is None:
            return 0
        if isinstance(value, bool):
            raise ValueError("count must be a number, not a boolean")
        return value

    @field_validator("price", mode="before")
    @classmethod
    def _reject_boolean_price(cls, value: Any) -> Any:
        if isinstance(value, bool):
            raise ValueError("price must be a number, not a boolean")
        return value


class Product(BaseModel):
    """Persisted product record, keyed by ``id``."""
    id: str
    title: str
    description: str = ""
    price: float

    model_config = ConfigDict(frozen=True)

    def to_dict(self) -> dict:
        return self.model_dump(mode="json")


class AvailableProduct(Product):
    """Product joined with its stock count, as served by the lookups."""
    count: int = 0


class Stock(BaseModel):
    """Persisted stock record, keyed by ``product_id``."""
    product_id: str
    count: int = 0

    model_config = ConfigDict(frozen=True)


@dataclass(frozen=True)
class QueueMessage:
    """A raw message as delivered by the queue transport."""
    id: str
    body: Union[str, bytes]

    @classmethod
    def from_sqs_record(cls, record: dict, index: int = 0) -> "QueueMessage":
        """Build a message from one entry of an SQS event ``Records`` list."""
        message_id = record.get("messageId") or f"record-{index}"
        return cls(id=str(message_id), body=record.get("body") or "")


def encode_body(body: Union[str, bytes]) -> tuple[str, str]:
    """
    Render a raw message body for JSON reports and logs.

    Text and UTF-8 bytes are returned as text. Other bytes are base64 encoded
    so the original payload can be restored exactly.

    Returns:
        Tuple of (rendered body, encoding), encoding is "utf-8" or "base64"
    """
    if isinstance(body, (bytes, bytearray)):
        try:
            return bytes(body).decode("utf-8"), "utf-8"
        except UnicodeDecodeError:
            return base64.b64encode(bytes(body)).decode("ascii"), "base64"
    return body, "utf-8"


def decode_body(rendered: str, encoding: str) -> Union[str, bytes]:
    """Inverse of encode_body, for replaying a reported failure."""
    if encoding == "base64":
        return base64.b64decode(rendered)
    return rendered


@dataclass(frozen=True)
class ItemSuccess:
    """A message that produced a fully persisted product."""
    message_id: str
    product: Product

    succeeded = True


@dataclass(frozen=True)
class ItemFailure:
    """
    A message that could not be turned into a persisted product.

    ``raw_body`` is the body exactly as delivered. ``details`` holds the
    serialized error (context, category, retryable) when the failure came
    from a service error.
    """
    message_id: str
    raw_body: Union[str, bytes]
    error: str
    error_type: str
    details: Optional[dict] = None

    succeeded = False

    def to_dict(self) -> dict:
        rendered, encoding = encode_body(self.raw_body)
        result = {
            "messageId": self.message_id,
            "rawBody": rendered,
            "rawBodyEncoding": encoding,
            "error": self.error,
            "errorType": self.error_type,
        }
        if self.details is not None:
            result["details"] = self.details
        return result


BatchItemResult = Union[ItemSuccess, ItemFailure]


@dataclass(frozen=True)
class BatchReport:
    """Aggregate outcome of one batch invocation."""
    processed_count: int = 0
    error_count: int = 0
    results: tuple = field(default_factory=tuple)
    errors: tuple = field(default_factory=tuple)

    @classmethod
    def from_results(cls, item_results: list) -> "BatchReport":
        products = tuple(r.product for r in item_results if r.succeeded)
        failures = tuple(r for r in item_results if not r.succeeded)
        return cls(
            processed_count=len(products),
            error_count=len(failures),
            results=products,
            errors=failures,
        )

    @property
    def total_count(self) -> int:
        return self.processed_count + self.error_count

    def to_dict(self) -> dict:
        return {
            "processedCount": self.processed_count,
            "errorCount": self.error_count,
            "results": [p.to_dict() for p in self.results],
            "errors": [f.to_dict() for f in self.errors],
        }


def _summarize_validation_error(error: PydanticValidationError) -> str:
    parts = []
    for detail in error.errors():
        location = ".".join(str(loc) for loc in detail.get("loc", ())) or "body"
        parts.append(f"{location}: {detail.get('msg')}")
    return "; ".join(parts)


def parse_input(raw: Union[bytes, str], message_id: Optional[str] = None) -> ProductInput:
    """
    Deserialize a message body into a ProductInput.

    Args:
        raw: UTF-8 encoded JSON body
        message_id: Optional id of the carrying message, for error context

    Returns:
        ProductInput with defaults applied

    Raises:
        ParseError: If the body is not UTF-8, not a JSON object, or misses
            required fields
        ValidationError: If a field is present but has an unusable value
    """
    context = ErrorContext(message_id=message_id)

    if isinstance(raw, (bytes, bytearray)):
        try:
            text = bytes(raw).decode("utf-8")
        except UnicodeDecodeError as e:
            raise ParseError(
                message=f"Message body is not valid UTF-8: {e}",
                context=context,
                original_exception=e,
            )
    else:
        text = raw

    try:
        data = json.loads(text)
    except (json.JSONDecodeError, TypeError) as e:
        raise ParseError(
            message=f"Message body is not valid JSON: {e}",
            context=context,
            original_exception=e,
        )

    return input_from_mapping(data, message_id=message_id)


def input_from_mapping(data: Any, message_id: Optional[str] = None) -> ProductInput:
    """
    Build a ProductInput from already decoded data.

    Raises:
        ParseError: If ``data`` is not an object or misses required fields
        ValidationError: If a field is present but has an unusable value
    """
    context = ErrorContext(message_id=message_id)

    if not isinstance(data, dict):
        raise ParseError(
            message=f"Message body must be a JSON object, got {type(data).__name__}",
            context=context,
        )

    try:
        return ProductInput.model_validate(data)
    except PydanticValidationError as e:
        details = e.errors()
        if any(d.get("type") == "missing" for d in details):
            raise ParseError(
                message=f"Message body does not match product input: {_summarize_validation_error(e)}",
                context=context,
                original_exception=e,
            )
        first = details[0]
        field_name = ".".join(str(loc) for loc in first.get("loc", ())) or "body"
        raise ValidationError(
            message=f"Invalid {field_name}: {first.get('msg')}",
            field_name=field_name,
            expected=first.get("type", "valid value"),
            actual=first.get("input"),
            context=context,
        )
