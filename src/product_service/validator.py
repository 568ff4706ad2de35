"""Semantic validation of product input before anything is persisted."""

import math

from .exceptions import ValidationError
from .models import ProductInput


class ProductValidator:
    """Validates a parsed ProductInput."""

    def __init__(self):
        self.validation_errors: list[ValidationError] = []

    def validate(self, product_input: ProductInput) -> bool:
        """
        Validate a product input.

        Args:
            product_input: Parsed product input

        Returns:
            True if valid, False otherwise; details are left in
            ``validation_errors``
        """
        self.validation_errors.clear()

        if not product_input.title.strip():
            self.validation_errors.append(
                ValidationError(
                    message="Product title must not be empty",
                    field_name="title",
                    expected="non-empty string",
                    actual=product_input.title,
                )
            )

        price = product_input.price
        if not math.isfinite(price):
            self.validation_errors.append(
                ValidationError(
                    message=f"Product price must be a finite number, got {price}",
                    field_name="price",
                    expected="finite number",
                    actual=price,
                )
            )
        elif price < 0:
            self.validation_errors.append(
                ValidationError(
                    message=f"Product price must not be negative, got {price}",
                    field_name="price",
                    expected="number >= 0",
                    actual=price,
                )
            )

        if product_input.count < 0:
            self.validation_errors.append(
                ValidationError(
                    message=f"Stock count must not be negative, got {product_input.count}",
                    field_name="count",
                    expected="integer >= 0",
                    actual=product_input.count,
                )
            )

        return len(self.validation_errors) == 0
