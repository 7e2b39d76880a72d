"""
Inventory ledger: stock checks and decrements per (product, serving type).
"""
from __future__ import annotations

import logging
from collections import OrderedDict

from django.db import transaction

from cafe.domain.errors import MenuItemNotFound
from cafe.domain.inventory import StockLevel
from cafe.domain.order import OrderItem
from cafe.infra.repositories import InventoryRepository

logger = logging.getLogger(__name__)


class InventoryLedger:
    """
    The only writer of menu item stock.

    Stock only ever goes down here; restocking belongs to catalog
    management. Failures are raised (InsufficientStock, MenuItemNotFound)
    so the caller's transaction rolls back.
    """

    def __init__(self, inventory_repo: InventoryRepository | None = None):
        self.inventory_repo = inventory_repo or InventoryRepository()

    def check_sufficient_stock(self, product_id, serving_type: str, quantity: int) -> bool:
        stock = self.inventory_repo.get(product_id, serving_type)
        if stock is None:
            raise MenuItemNotFound(product_id, serving_type)
        stock.ensure_sufficient(quantity)
        return True

    def decrement(self, product_id, serving_type: str, quantity: int) -> StockLevel:
        """Lock, check and decrement a single menu item."""
        with transaction.atomic():
            stock = self.inventory_repo.get(product_id, serving_type, for_update=True)
            if stock is None:
                raise MenuItemNotFound(product_id, serving_type)
            stock.decrement(quantity)
            self.inventory_repo.save(stock)
        return stock

    def decrement_for_items(self, items: list[OrderItem]) -> list[StockLevel]:
        """
        All-or-nothing decrement for every line of an order.

        Lines for the same menu item (e.g. different customizations) are
        summed before checking. Every row is locked and checked before any
        row is written.
        """
        requested: OrderedDict[tuple[str, str], int] = OrderedDict()
        names: dict[tuple[str, str], str] = {}
        for item in items:
            key = item.stock_key
            requested[key] = requested.get(key, 0) + item.quantity
            names.setdefault(key, item.display_name)

        with transaction.atomic():
            stock_levels = self.inventory_repo.lock_many(sorted(requested))

            for key, quantity in requested.items():
                stock = stock_levels.get(key)
                if stock is None:
                    raise MenuItemNotFound(*key)
                stock.ensure_sufficient(quantity)

            for key, quantity in requested.items():
                stock = stock_levels[key]
                stock.decrement(quantity)
                self.inventory_repo.save(stock)
                if not stock.is_available:
                    logger.info(
                        "menu_item_sold_out",
                        extra={"event": stock.display_name},
                    )

        return [stock_levels[key] for key in requested]
