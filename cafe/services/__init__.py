"""
Application services. Every public operation returns a ``Result``.
"""

from cafe.services.catalog import CatalogService
from cafe.services.inventory import InventoryLedger
from cafe.services.orders import OrderService
from cafe.services.payments import PaymentReconciliationService
from cafe.services.ratings import RatingService

__all__ = [
    "CatalogService",
    "InventoryLedger",
    "OrderService",
    "PaymentReconciliationService",
    "RatingService",
]
