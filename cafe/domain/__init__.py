"""
Domain layer: order aggregate, stock levels, lifecycle events and errors.
"""

from cafe.domain.order import Order, OrderItem, OrderStatus, PaymentStatus
from cafe.domain.inventory import StockLevel

__all__ = ["Order", "OrderItem", "OrderStatus", "PaymentStatus", "StockLevel"]
