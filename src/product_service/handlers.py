"""
AWS Lambda handlers for the product service.

- ``catalog_batch_process``: SQS trigger, runs the batch ingestion pipeline
- ``get_products`` / ``get_product_by_id`` / ``create_product``: API Gateway
  (non-proxy) integrations
- ``basic_authorizer``: API Gateway token authorizer
"""

import os
import time
import uuid
from typing import Any, Optional

from .auth import BasicAuthorizer, generate_policy
from .clients import AWSClientFactory
from .config import Settings, load_settings
from .exceptions import (
    AuthorizationError,
    BadRequestError,
    ConfigurationError,
    NotFoundError,
    ParseError,
    ValidationError,
)
from .logging_config import configure_logging, set_batch_id, set_correlation_id
from .models import QueueMessage, input_from_mapping
from .pipeline import BatchPipeline
from .service import ProductService
from .stores import DynamoProductStore, DynamoStockStore

logger = configure_logging(
    level=os.environ.get("LOG_LEVEL", "INFO"),
    service_name="product-service",
)


class ServiceFactory:
    """Builds the service objects once per Lambda container."""

    _settings: Optional[Settings] = None
    _service: Optional[ProductService] = None
    _pipeline: Optional[BatchPipeline] = None
    _authorizer: Optional[BasicAuthorizer] = None

    @classmethod
    def get_settings(cls) -> Settings:
        if cls._settings is None:
            cls._settings = load_settings()
        return cls._settings

    @classmethod
    def get_service(cls) -> ProductService:
        if cls._service is None:
            settings = cls.get_settings()
            cls._service = ProductService(
                product_store=DynamoProductStore(
                    AWSClientFactory.get_table(settings.products_table_name, settings)
                ),
                stock_store=DynamoStockStore(
                    AWSClientFactory.get_table(settings.stock_table_name, settings)
                ),
            )
        return cls._service

    @classmethod
    def get_pipeline(cls) -> BatchPipeline:
        if cls._pipeline is None:
            cls._pipeline = BatchPipeline(
                cls.get_service(),
                max_workers=cls.get_settings().batch_max_workers,
            )
        return cls._pipeline

    @classmethod
    def get_authorizer(cls) -> BasicAuthorizer:
        if cls._authorizer is None:
            cls._authorizer = BasicAuthorizer(cls.get_settings().basic_auth_credentials)
        return cls._authorizer

    @classmethod
    def configure(
        cls,
        settings: Optional[Settings] = None,
        service: Optional[ProductService] = None,
        authorizer: Optional[BasicAuthorizer] = None,
    ) -> None:
        """Install prebuilt objects (useful for testing and local runs)."""
        cls.reset()
        cls._settings = settings
        cls._service = service
        cls._authorizer = authorizer

    @classmethod
    def reset(cls) -> None:
        cls._settings = None
        cls._service = None
        cls._pipeline = None
        cls._authorizer = None


def _messages_from_records(records: list) -> list[QueueMessage]:
    messages = []
    for idx, record in enumerate(records):
        if isinstance(record, dict):
            messages.append(QueueMessage.from_sqs_record(record, idx))
        else:
            messages.append(QueueMessage(id=f"record-{idx}", body=str(record)))
    return messages


def catalog_batch_process(event: dict, context: Any) -> dict:
    """
    SQS handler for the product ingestion queue.

    Every record becomes one queue message; item failures are reported in
    the returned body and never fail the invocation.

    Raises:
        ConfigurationError: If the event carries no ``Records`` list
    """
    start_time = time.perf_counter()

    correlation_id = set_correlation_id(
        getattr(context, "aws_request_id", None) if context else None
    )
    batch_id = str(uuid.uuid4())
    set_batch_id(batch_id)

    records = event.get("Records") if isinstance(event, dict) else None
    if not isinstance(records, list):
        logger.error("Invalid event structure: missing Records")
        raise ConfigurationError(
            message="Invalid event structure: missing Records",
            config_key="event.Records",
        )

    logger.info(
        f"catalogBatchProcess received {len(records)} records",
        extra={"metrics": {"record_count": len(records)}},
    )

    report = ServiceFactory.get_pipeline().process_batch(_messages_from_records(records))

    return build_response(
        200,
        {
            **report.to_dict(),
            "correlationId": correlation_id,
            "batchId": batch_id,
        },
        start_time,
    )


def build_response(status_code: int, body: dict, start_time: float) -> dict:
    """Build Lambda response with timing metadata."""
    duration_ms = (time.perf_counter() - start_time) * 1000

    body["durationMs"] = round(duration_ms, 2)

    logger.info(
        "Lambda invocation complete",
        extra={"status_code": status_code, "duration_ms": round(duration_ms, 2)},
    )

    return {
        "statusCode": status_code,
        "body": body,
    }


def get_products(event: dict, context: Any = None) -> list[dict]:
    """Return every product with its stock count."""
    set_correlation_id()
    products = ServiceFactory.get_service().list_products()
    logger.info(f"Listing {len(products)} products")
    return [p.to_dict() for p in products]


def get_product_by_id(event: dict, context: Any = None) -> dict:
    """
    Return one product with its stock count.

    Raises:
        NotFoundError: If the product does not exist; its message contains
            "Not Found" for the integration response mapping
    """
    set_correlation_id()
    product_id = str((event or {}).get("id") or "")
    logger.info(f"getProductById {product_id}", extra={"product_id": product_id})
    if not product_id:
        raise NotFoundError(product_id)
    return ServiceFactory.get_service().get_product_by_id(product_id).to_dict()


def create_product(event: dict, context: Any = None) -> dict:
    """
    Create a product from a POST body mapped to ``title``/``description``/``price``.

    Raises:
        BadRequestError: If the body cannot be parsed or fails validation
        PersistenceError: If a store write fails
    """
    set_correlation_id()
    try:
        product_input = input_from_mapping(event)
        product = ServiceFactory.get_service().create_product_from_input(product_input)
    except (ParseError, ValidationError) as e:
        logger.warning(f"Rejected product creation: {e.message}", extra={"error": e.to_dict()})
        raise BadRequestError(e.message, original_exception=e)
    return product.to_dict()


def basic_authorizer(event: dict, context: Any = None) -> dict:
    """
    API Gateway token authorizer for ``Basic`` credentials.

    Raises:
        AuthorizationError: If no token was sent (API Gateway answers 401)
    """
    token = (event or {}).get("authorizationToken")
    resource = (event or {}).get("methodArn") or "*"

    try:
        decision = ServiceFactory.get_authorizer().authorize(token)
    except AuthorizationError:
        logger.warning("Authorization token missing")
        raise

    if decision.allowed:
        logger.info(f"Access allowed for {decision.principal}")
        return generate_policy(
            decision.principal,
            decision.effect,
            resource,
            context={"username": decision.principal},
        )

    logger.warning(f"Access denied: {decision.reason}")
    return generate_policy(decision.principal or "anonymous", decision.effect, resource)
