"""
Infrastructure repositories for domain entities.
"""
from __future__ import annotations

from uuid import UUID

from django.db.models import Prefetch, Q
from django.utils import timezone

from cafe.domain.inventory import StockLevel
from cafe.domain.order import (
    CustomerDetails,
    Order,
    OrderItem,
    OrderSource,
    OrderStatus,
    PaymentMethod,
    PaymentStatus,
)
from cafe.infra.models import (
    AdminUserORM,
    ExperienceRatingORM,
    MenuItemORM,
    OrderItemORM,
    OrderORM,
    ProductORM,
    ProductRatingORM,
)
import logging

logger = logging.getLogger(__name__)


def parse_uuid(value) -> UUID | None:
    """UUID from user input, or None when it is not a valid id."""
    if isinstance(value, UUID):
        return value
    try:
        return UUID(str(value))
    except (ValueError, TypeError, AttributeError):
        return None


class AdminUserRepository:
    """Repository for staff identities."""

    def get_active(self, staff_id) -> AdminUserORM | None:
        staff_uuid = parse_uuid(staff_id)
        if staff_uuid is None:
            return None
        return AdminUserORM.objects.filter(id=staff_uuid, is_active=True).first()


class CatalogRepository:
    """Read access to products and menu items."""

    def get_menu_item(self, product_id, serving_type: str) -> MenuItemORM | None:
        product_uuid = parse_uuid(product_id)
        if product_uuid is None:
            return None
        return (
            MenuItemORM.objects
            .select_related("product")
            .filter(product_id=product_uuid, serving_type=serving_type)
            .first()
        )

    def list_available_menu(self) -> list[ProductORM]:
        """Available products with their available menu items (no N+1)."""
        return list(
            ProductORM.objects
            .filter(is_available=True)
            .prefetch_related(
                Prefetch(
                    "menu_items",
                    queryset=MenuItemORM.objects.filter(is_available=True).order_by("serving_type"),
                )
            )
            .order_by("category", "name")
        )


class InventoryRepository:
    """Persistence for stock levels."""

    def get(self, product_id, serving_type: str, for_update: bool = False) -> StockLevel | None:
        product_uuid = parse_uuid(product_id)
        if product_uuid is None:
            return None
        qs = MenuItemORM.objects.select_related("product")
        if for_update:
            qs = qs.select_for_update(of=("self",))
        menu_item = qs.filter(product_id=product_uuid, serving_type=serving_type).first()
        if menu_item is None:
            return None
        return self._to_domain(menu_item)

    def lock_many(self, keys: list[tuple[str, str]]) -> dict[tuple[str, str], StockLevel]:
        """
        Lock the menu item rows for ``keys`` (product id, serving type).

        Rows are locked in (product, serving type) order so two completions
        touching the same items always queue instead of deadlocking.
        """
        if not keys:
            return {}
        condition = Q()
        for product_id, serving_type in keys:
            condition |= Q(product_id=parse_uuid(product_id), serving_type=serving_type)

        menu_items = (
            MenuItemORM.objects
            .select_related("product")
            .select_for_update(of=("self",))
            .filter(condition)
            .order_by("product_id", "serving_type")
        )
        return {
            (str(item.product_id), item.serving_type): self._to_domain(item)
            for item in menu_items
        }

    def save(self, stock: StockLevel) -> None:
        MenuItemORM.objects.filter(id=stock.id).update(
            stock_quantity=stock.stock_quantity,
            is_available=stock.is_available,
            updated_at=timezone.now(),
        )

    def _to_domain(self, menu_item: MenuItemORM) -> StockLevel:
        return StockLevel(
            id=menu_item.id,
            product_id=menu_item.product_id,
            product_name=menu_item.product.name,
            serving_type=menu_item.serving_type,
            stock_quantity=menu_item.stock_quantity,
            is_available=menu_item.is_available,
            price=menu_item.price,
        )


class OrderRepository:
    """Repository for Order aggregate."""

    def get_by_id(self, order_id) -> Order | None:
        """Get order by ID with items (optimized, no N+1)."""
        order_uuid = parse_uuid(order_id)
        if order_uuid is None:
            return None
        order_orm = (
            OrderORM.objects
            .prefetch_related("items")
            .filter(id=order_uuid)
            .first()
        )
        if order_orm is None:
            return None
        return self._to_domain(order_orm)

    def get_for_update(self, order_id, gateway_order_id: str | None = None) -> Order | None:
        """
        Load and row-lock an order for the rest of the transaction.

        With ``gateway_order_id`` the row must match both ids.
        """
        order_uuid = parse_uuid(order_id)
        if order_uuid is None:
            return None
        qs = OrderORM.objects.select_for_update().filter(id=order_uuid)
        if gateway_order_id is not None:
            qs = qs.filter(gateway_order_id=gateway_order_id)
        order_orm = qs.first()
        if order_orm is None:
            return None
        return self._to_domain(order_orm)

    def find_id_by_gateway_order_id(self, gateway_order_id: str) -> UUID | None:
        if not gateway_order_id:
            return None
        return (
            OrderORM.objects
            .filter(gateway_order_id=gateway_order_id)
            .values_list("id", flat=True)
            .first()
        )

    def create(self, order: Order) -> UUID:
        """Insert order and its items (caller provides the transaction)."""
        order_orm = OrderORM.objects.create(
            id=order.id,
            customer_name=order.customer.name,
            customer_phone=order.customer.phone,
            customer_email=order.customer.email,
            total_amount=order.total_amount,
            payment_method=order.payment_method.value,
            payment_status=order.payment_status.value,
            status=order.status.value,
            order_source=order.order_source.value,
            taken_by_id=order.taken_by_id,
        )
        OrderItemORM.objects.bulk_create([
            OrderItemORM(
                order=order_orm,
                product_id=item.product_id,
                product_name=item.product_name,
                category=item.category.value,
                serving_type=item.serving_type.value,
                quantity=item.quantity,
                price_at_purchase=item.price_at_purchase,
                customization=item.customization.value,
            )
            for item in order.items
        ])
        order.created_at = order_orm.created_at
        order.updated_at = order_orm.updated_at
        return order_orm.id

    def save_state(self, order: Order) -> None:
        """
        Persist lifecycle fields only.

        Items and totals are never rewritten after creation.
        """
        now = timezone.now()
        OrderORM.objects.filter(id=order.id).update(
            status=order.status.value,
            payment_status=order.payment_status.value,
            processed_by_id=order.processed_by_id,
            gateway_order_id=order.gateway_order_id,
            gateway_payment_id=order.gateway_payment_id,
            updated_at=now,
        )
        order.updated_at = now

    def set_gateway_order_id(self, order_id: UUID, gateway_order_id: str) -> None:
        OrderORM.objects.filter(id=order_id).update(
            gateway_order_id=gateway_order_id,
            updated_at=timezone.now(),
        )

    def list_processable(self) -> list[Order]:
        """Paid orders waiting in the kitchen, oldest first."""
        orders_orm = (
            OrderORM.objects
            .filter(
                payment_status=PaymentStatus.PAID.value,
                status__in=[
                    OrderStatus.PENDING_PREPARATION.value,
                    OrderStatus.PREPARING.value,
                    OrderStatus.READY_FOR_PICKUP.value,
                ],
            )
            .prefetch_related("items")
            .order_by("created_at")
        )
        return [self._to_domain(order_orm) for order_orm in orders_orm]

    def list_pending_cash(self) -> list[Order]:
        """Online cash orders still waiting for the counter to take the money."""
        orders_orm = (
            OrderORM.objects
            .filter(
                payment_method=PaymentMethod.CASH.value,
                payment_status=PaymentStatus.PENDING.value,
                order_source=OrderSource.CUSTOMER_ONLINE.value,
                status=OrderStatus.AWAITING_PAYMENT_CONFIRMATION.value,
            )
            .prefetch_related("items")
            .order_by("created_at")
        )
        return [self._to_domain(order_orm) for order_orm in orders_orm]

    def _to_domain(self, order_orm: OrderORM) -> Order:
        """Convert ORM model to domain entity."""
        items = [
            OrderItem(
                id=item_orm.id,
                product_id=item_orm.product_id,
                product_name=item_orm.product_name,
                category=item_orm.category,
                serving_type=item_orm.serving_type,
                quantity=item_orm.quantity,
                price_at_purchase=item_orm.price_at_purchase,
                customization=item_orm.customization,
            )
            for item_orm in order_orm.items.all()
        ]

        return Order(
            id=order_orm.id,
            items=items,
            payment_method=order_orm.payment_method,
            payment_status=order_orm.payment_status,
            status=order_orm.status,
            order_source=order_orm.order_source,
            customer=CustomerDetails(
                name=order_orm.customer_name,
                phone=order_orm.customer_phone,
                email=order_orm.customer_email,
            ),
            total_amount=order_orm.total_amount,
            gateway_order_id=order_orm.gateway_order_id,
            gateway_payment_id=order_orm.gateway_payment_id,
            taken_by_id=order_orm.taken_by_id,
            processed_by_id=order_orm.processed_by_id,
            created_at=order_orm.created_at,
            updated_at=order_orm.updated_at,
        )


class RatingRepository:
    """Repository for post-order ratings."""

    def has_experience_rating(self, order_id: UUID) -> bool:
        return ExperienceRatingORM.objects.filter(order_id=order_id).exists()

    def create(
        self,
        order_id: UUID,
        overall_rating: int,
        overall_comment: str,
        product_ratings: list[dict],
    ) -> None:
        ExperienceRatingORM.objects.create(
            order_id=order_id,
            rating=overall_rating,
            comment=overall_comment or "",
        )
        ProductRatingORM.objects.bulk_create([
            ProductRatingORM(
                order_id=order_id,
                product_id=rating["product_id"],
                product_name=rating["product_name"],
                rating=rating["rating"],
                comment=rating.get("comment") or "",
            )
            for rating in product_ratings
        ])
