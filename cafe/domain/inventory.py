"""
Domain model for per-(product, serving type) stock.
"""
from __future__ import annotations

from decimal import Decimal
from uuid import UUID

from cafe.domain.errors import InsufficientStock, ValidationError
from cafe.domain.order import ServingType


class StockLevel:
    """Stock count and availability of one sellable menu item."""

    def __init__(
        self,
        product_id: UUID,
        product_name: str,
        serving_type: ServingType,
        stock_quantity: int,
        is_available: bool,
        price: Decimal = Decimal("0.00"),
        id: UUID | None = None,
    ):
        if stock_quantity < 0:
            raise ValidationError("Stock quantity cannot be negative")

        self.id = id
        self.product_id = product_id
        self.product_name = product_name
        self.serving_type = ServingType(serving_type)
        self._stock_quantity = stock_quantity
        self._is_available = is_available and stock_quantity > 0
        self.price = price

    @property
    def stock_quantity(self) -> int:
        return self._stock_quantity

    @property
    def is_available(self) -> bool:
        return self._is_available

    @property
    def display_name(self) -> str:
        return f"{self.product_name} ({self.serving_type.value})"

    def ensure_sufficient(self, quantity: int) -> None:
        """Raise InsufficientStock unless ``quantity`` units can be taken."""
        if self._stock_quantity < quantity:
            raise InsufficientStock(
                item_name=self.display_name,
                available=self._stock_quantity,
                requested=quantity,
            )

    def decrement(self, quantity: int) -> None:
        """Take ``quantity`` units; running out disables the item."""
        if quantity <= 0:
            raise ValidationError("Decrement quantity must be positive")
        self.ensure_sufficient(quantity)

        self._stock_quantity -= quantity
        if self._stock_quantity <= 0:
            self._stock_quantity = 0
            self._is_available = False
