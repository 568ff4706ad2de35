"""
Product service: validates one input and performs the two-store write.

The product and stock tables offer no shared transaction. A product is
written first and its stock second; when the stock write fails the product
is left in place (an orphan) and the creation is reported as failed.
"""

import uuid
from typing import Callable, Optional

from .exceptions import ErrorContext, NotFoundError, PersistenceError, StoreError
from .logging_config import get_correlation_id, get_logger
from .models import AvailableProduct, Product, ProductInput, Stock
from .stores import ProductStore, StockStore
from .validator import ProductValidator

logger = get_logger(__name__)


def generate_product_id() -> str:
    """Generate a new unique product id."""
    return str(uuid.uuid4())


class ProductService:
    """Creates and looks up products across the product and stock stores."""

    def __init__(
        self,
        product_store: ProductStore,
        stock_store: StockStore,
        id_factory: Callable[[], str] = generate_product_id,
    ):
        self.product_store = product_store
        self.stock_store = stock_store
        self.id_factory = id_factory

    def create_product_from_input(self, product_input: ProductInput) -> Product:
        """
        Validate an input and persist it as a product with its stock row.

        Args:
            product_input: Parsed product input

        Returns:
            The persisted Product

        Raises:
            ValidationError: If the input is semantically invalid; nothing is written
            PersistenceError: If either store write fails
        """
        validator = ProductValidator()
        if not validator.validate(product_input):
            for error in validator.validation_errors:
                logger.warning(f"Validation failed: {error.message}")
            raise validator.validation_errors[0]

        product_id = self.id_factory()
        product = Product(
            id=product_id,
            title=product_input.title,
            description=product_input.description,
            price=product_input.price,
        )
        stock = Stock(product_id=product_id, count=product_input.count or 0)

        context = ErrorContext(
            correlation_id=get_correlation_id(),
            product_id=product_id,
        )

        try:
            self.product_store.put(product)
        except Exception as e:
            raise PersistenceError(
                message=f"Failed to write product {product_id}: {self._describe(e)}",
                stage="product",
                product_id=product_id,
                context=context,
                original_exception=e,
            )

        try:
            self.stock_store.put(stock)
        except Exception as e:
            logger.warning(
                f"Stock write failed after product {product_id} was written; "
                f"product left without stock",
                extra={"product_id": product_id},
            )
            raise PersistenceError(
                message=f"Failed to write stock for product {product_id}: {self._describe(e)}",
                stage="stock",
                product_id=product_id,
                orphan_product_id=product_id,
                context=context,
                original_exception=e,
            )

        logger.info(
            f"Created product {product_id}",
            extra={"product_id": product_id},
        )
        return product

    def get_product_by_id(self, product_id: str) -> AvailableProduct:
        """
        Look up a product and its stock count.

        Raises:
            NotFoundError: If no product has this id
        """
        product = self.product_store.get(product_id)
        if product is None:
            raise NotFoundError(product_id)
        stock = self.stock_store.get(product_id)
        return self._join(product, stock)

    def list_products(self) -> list[AvailableProduct]:
        """Return every product joined with its stock count."""
        stock_by_id = {s.product_id: s for s in self.stock_store.list_all()}
        return [
            self._join(product, stock_by_id.get(product.id))
            for product in self.product_store.list_all()
        ]

    @staticmethod
    def _join(product: Product, stock: Optional[Stock]) -> AvailableProduct:
        return AvailableProduct(
            **product.model_dump(),
            count=stock.count if stock else 0,
        )

    @staticmethod
    def _describe(error: Exception) -> str:
        if isinstance(error, StoreError):
            return error.message
        return f"{type(error).__name__}: {error}"
