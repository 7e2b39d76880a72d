"""
Order lifecycle: creation, staff status transitions and staff queues.
"""
from __future__ import annotations

import logging
from enum import Enum

from django.db import transaction

from cafe.domain.errors import (
    EmptyOrder,
    MenuItemNotFound,
    MenuItemUnavailable,
    OrderNotFound,
    ValidationError,
)
from cafe.domain.order import (
    PROCESSING_ROLES,
    Customization,
    CustomerDetails,
    Order,
    OrderItem,
    OrderSource,
    OrderStatus,
    PaymentMethod,
)
from cafe.domain.results import returns_result
from cafe.infra.notifications import NotificationFanout, get_fanout
from cafe.infra.pii_masker import mask_pii_in_dict
from cafe.infra.repositories import (
    AdminUserRepository,
    CatalogRepository,
    OrderRepository,
)
from cafe.services.authorization import require_staff
from cafe.services.inventory import InventoryLedger

logger = logging.getLogger(__name__)


def parse_choice(enum_cls: type[Enum], value, field: str):
    """Enum member from user input, or a ValidationError naming the field."""
    try:
        return enum_cls(value)
    except ValueError:
        raise ValidationError(f"Invalid {field}: {value!r}", field=field) from None


class OrderService:
    """Service for order lifecycle operations."""

    def __init__(
        self,
        order_repo: OrderRepository | None = None,
        catalog_repo: CatalogRepository | None = None,
        admin_repo: AdminUserRepository | None = None,
        ledger: InventoryLedger | None = None,
        fanout: NotificationFanout | None = None,
    ):
        self.order_repo = order_repo or OrderRepository()
        self.catalog_repo = catalog_repo or CatalogRepository()
        self.admin_repo = admin_repo or AdminUserRepository()
        self.ledger = ledger or InventoryLedger()
        self._fanout = fanout

    @property
    def fanout(self) -> NotificationFanout:
        return self._fanout or get_fanout()

    @returns_result
    @transaction.atomic
    def submit_customer_order(self, customer: dict, items: list[dict], payment_method: str) -> dict:
        """Storefront checkout: creates an unpaid order awaiting confirmation."""
        payment_method = parse_choice(PaymentMethod, payment_method, "paymentMethod")
        details = CustomerDetails(
            name=(customer or {}).get("name"),
            phone=(customer or {}).get("phone"),
            email=(customer or {}).get("email"),
        )
        if not details.name or not details.phone:
            raise ValidationError("Customer name and phone are required.", field="customer")

        order = Order.place(
            order_source=OrderSource.CUSTOMER_ONLINE,
            payment_method=payment_method,
            items=self._build_items(items),
            customer=details,
        )
        self.order_repo.create(order)

        logger.info(
            "order_created",
            extra={
                "order_id": str(order.id),
                "operation": "submit_customer_order",
                "status": order.status.value,
                "customer": mask_pii_in_dict(details.as_dict()),
            },
        )
        self.fanout.notify_order_updated(order.id, order.status.value, order.payment_status.value)
        return {"order": order}

    @returns_result
    @transaction.atomic
    def create_manual_order(
        self,
        acting_staff_id,
        items: list[dict],
        payment_method: str,
        customer_name: str | None = None,
        customer_phone: str | None = None,
    ) -> dict:
        """Counter order taken by staff; paid on the spot."""
        staff = require_staff(self.admin_repo, acting_staff_id)
        payment_method = parse_choice(PaymentMethod, payment_method, "paymentMethod")

        order = Order.place(
            order_source=OrderSource.STAFF_MANUAL,
            payment_method=payment_method,
            items=self._build_items(items),
            customer=CustomerDetails(name=customer_name, phone=customer_phone),
            taken_by_id=staff.id,
        )
        self.order_repo.create(order)

        logger.info(
            "order_created",
            extra={
                "order_id": str(order.id),
                "staff_id": str(staff.id),
                "operation": "create_manual_order",
                "status": order.status.value,
            },
        )
        self.fanout.notify_order_updated(order.id, order.status.value, order.payment_status.value)
        return {"order": order}

    @returns_result
    @transaction.atomic
    def update_status(self, order_id, new_status: str, acting_staff_id) -> dict:
        """
        Move an order along the kitchen workflow.

        Completing an order decrements stock for all of its items in this
        same transaction; if any item is short nothing is written.
        """
        staff = require_staff(self.admin_repo, acting_staff_id, PROCESSING_ROLES)
        new_status = parse_choice(OrderStatus, new_status, "status")

        order = self.order_repo.get_for_update(order_id)
        if order is None:
            raise OrderNotFound()

        previous_status = order.status
        order.transition_to(new_status, processed_by_id=staff.id)

        if new_status == OrderStatus.COMPLETED:
            self.ledger.decrement_for_items(order.items)

        self.order_repo.save_state(order)

        logger.info(
            "order_status_updated",
            extra={
                "order_id": str(order.id),
                "staff_id": str(staff.id),
                "operation": "update_status",
                "status": f"{previous_status.value}->{order.status.value}",
            },
        )
        self.fanout.notify_order_updated(order.id, order.status.value, order.payment_status.value)
        return {"order": order}

    @returns_result
    def get_order(self, order_id) -> dict:
        order = self.order_repo.get_by_id(order_id)
        if order is None:
            raise OrderNotFound()
        return {"order": order}

    @returns_result
    def list_processable_orders(self, acting_staff_id) -> dict:
        require_staff(self.admin_repo, acting_staff_id, PROCESSING_ROLES)
        return {"orders": self.order_repo.list_processable()}

    @returns_result
    def list_pending_cash_orders(self, acting_staff_id) -> dict:
        require_staff(self.admin_repo, acting_staff_id)
        return {"orders": self.order_repo.list_pending_cash()}

    def _build_items(self, items: list[dict]) -> list[OrderItem]:
        """Resolve requested lines against the catalog and snapshot name/price."""
        if not items:
            raise EmptyOrder()

        order_items = []
        for raw in items:
            serving_type = raw.get("servingType")
            try:
                quantity = int(raw.get("quantity", 0))
            except (TypeError, ValueError):
                raise ValidationError("Quantity must be a whole number.", field="quantity") from None

            menu_item = self.catalog_repo.get_menu_item(raw.get("productId"), serving_type)
            if menu_item is None:
                raise MenuItemNotFound(raw.get("productId"), serving_type)
            product = menu_item.product
            if not (menu_item.is_available and product.is_available):
                raise MenuItemUnavailable(f"{product.name} ({menu_item.serving_type})")

            order_items.append(OrderItem(
                product_id=product.id,
                product_name=product.name,
                category=product.category,
                serving_type=menu_item.serving_type,
                quantity=quantity,
                price_at_purchase=menu_item.price,
                customization=parse_choice(
                    Customization,
                    raw.get("customization") or Customization.NORMAL.value,
                    "customization",
                ),
            ))
        return order_items
