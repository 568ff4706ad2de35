"""
Batch ingestion pipeline.

Turns a batch of queue messages into persisted products, one independent
result per message, and folds the results into a BatchReport. A failing
message never stops the rest of the batch.
"""

import contextvars
import threading
from concurrent.futures import ThreadPoolExecutor, as_completed
from typing import Iterable, Optional

from .exceptions import CancelledError, ProductServiceError
from .logging_config import get_logger, log_execution_time
from .models import (
    BatchItemResult,
    BatchReport,
    ItemFailure,
    ItemSuccess,
    QueueMessage,
    encode_body,
    parse_input,
)
from .service import ProductService

logger = get_logger(__name__)


class BatchPipeline:
    """
    Processes batches of product messages.

    Items are processed sequentially when ``max_workers`` is 1, otherwise on
    a thread pool bounded by the batch size. Each item writes into its own
    result slot, so completion order does not affect the report.
    """

    def __init__(self, service: ProductService, max_workers: int = 1):
        if max_workers < 1:
            raise ValueError("max_workers must be at least 1")
        self.service = service
        self.max_workers = max_workers

    @log_execution_time(logger)
    def process_batch(
        self,
        messages: Iterable[QueueMessage],
        cancel_event: Optional[threading.Event] = None,
    ) -> BatchReport:
        """
        Process a batch of messages.

        Args:
            messages: Messages delivered together by the queue transport
            cancel_event: When set, items not yet started are reported as
                cancelled instead of being processed

        Returns:
            BatchReport with one entry per message, in results or errors
        """
        messages = list(messages)

        logger.info(
            f"Starting batch of {len(messages)} messages",
            extra={"metrics": {"input_count": len(messages)}},
        )

        if self.max_workers > 1 and len(messages) > 1:
            item_results = self._process_concurrently(messages, cancel_event)
        else:
            item_results = [self.process_message(m, cancel_event) for m in messages]

        report = BatchReport.from_results(item_results)

        logger.info(
            "Batch processing complete",
            extra={
                "metrics": {
                    "processed_count": report.processed_count,
                    "error_count": report.error_count,
                }
            },
        )
        return report

    def _process_concurrently(
        self,
        messages: list[QueueMessage],
        cancel_event: Optional[threading.Event],
    ) -> list[BatchItemResult]:
        slots: list[Optional[BatchItemResult]] = [None] * len(messages)
        workers = min(self.max_workers, len(messages))

        with ThreadPoolExecutor(max_workers=workers, thread_name_prefix="batch-item") as executor:
            futures = {}
            for idx, message in enumerate(messages):
                ctx = contextvars.copy_context()
                future = executor.submit(ctx.run, self.process_message, message, cancel_event)
                futures[future] = idx

            for future in as_completed(futures):
                slots[futures[future]] = future.result()

        return slots

    def process_message(
        self,
        message: QueueMessage,
        cancel_event: Optional[threading.Event] = None,
    ) -> BatchItemResult:
        """Process one message into a success or a failure; never raises."""
        msg_logger = logger.with_message(message.id)

        try:
            self._check_cancelled(cancel_event)
            product_input = parse_input(message.body, message_id=message.id)
            self._check_cancelled(cancel_event)
            product = self.service.create_product_from_input(product_input)
        except ProductServiceError as e:
            return self._failure(message, e.message, e.kind, e.to_dict(), msg_logger)
        except Exception as e:
            details = {"type": type(e).__name__, "message": str(e)}
            return self._failure(
                message, f"{type(e).__name__}: {e}", type(e).__name__, details, msg_logger, exc_info=True
            )

        msg_logger.info(
            f"Message {message.id} stored as product {product.id}",
            extra={"product_id": product.id},
        )
        return ItemSuccess(message_id=message.id, product=product)

    @staticmethod
    def _check_cancelled(cancel_event: Optional[threading.Event]) -> None:
        if cancel_event is not None and cancel_event.is_set():
            raise CancelledError()

    @staticmethod
    def _failure(
        message: QueueMessage,
        error: str,
        error_type: str,
        details: dict,
        msg_logger,
        exc_info: bool = False,
    ) -> ItemFailure:
        failure = ItemFailure(
            message_id=message.id,
            raw_body=message.body,
            error=error,
            error_type=error_type,
            details=details,
        )
        rendered, encoding = encode_body(message.body)
        log = msg_logger.error if exc_info else msg_logger.warning
        log(
            f"Message {message.id} failed with {error_type}: {error}",
            extra={
                "raw_body": rendered,
                "raw_body_encoding": encoding,
                "error_type": error_type,
                "error": details,
            },
            exc_info=exc_info,
        )
        return failure
