"""
Domain model for Order aggregate.
"""
from __future__ import annotations

from datetime import datetime
from decimal import Decimal, ROUND_HALF_UP
from enum import Enum
from uuid import UUID, uuid4

from cafe.domain.errors import (
    EmptyOrder,
    InvalidTransition,
    PaymentMethodNotAllowed,
    ValidationError,
)


class OrderStatus(str, Enum):
    """Order status enumeration."""
    AWAITING_PAYMENT_CONFIRMATION = "AWAITING_PAYMENT_CONFIRMATION"
    PENDING_PREPARATION = "PENDING_PREPARATION"
    PREPARING = "PREPARING"
    READY_FOR_PICKUP = "READY_FOR_PICKUP"
    COMPLETED = "COMPLETED"
    CANCELLED = "CANCELLED"


class PaymentStatus(str, Enum):
    """Payment status enumeration."""
    PENDING = "PENDING"
    PAID = "PAID"
    FAILED = "FAILED"
    REFUNDED = "REFUNDED"


class PaymentMethod(str, Enum):
    """How the customer pays."""
    CASH = "Cash"
    RAZORPAY = "Razorpay"
    UPI = "UPI"


class OrderSource(str, Enum):
    """Where the order was entered."""
    CUSTOMER_ONLINE = "CUSTOMER_ONLINE"
    STAFF_MANUAL = "STAFF_MANUAL"


class ServingType(str, Enum):
    CONE = "Cone"
    CUP = "Cup"


class ItemCategory(str, Enum):
    COFFEE = "COFFEE"
    SHAKES = "SHAKES"


class Customization(str, Enum):
    NORMAL = "normal"
    SWEET = "sweet"
    BITTER = "bitter"


class AdminRole(str, Enum):
    """Staff roles."""
    MANUAL_ORDER_TAKER = "MANUAL_ORDER_TAKER"
    ORDER_PROCESSOR = "ORDER_PROCESSOR"
    BUSINESS_MANAGER = "BUSINESS_MANAGER"


# Roles allowed to move orders through the kitchen workflow
PROCESSING_ROLES = frozenset({AdminRole.ORDER_PROCESSOR, AdminRole.BUSINESS_MANAGER})

# Payment methods accepted per order source (checked at creation time)
ALLOWED_PAYMENT_METHODS = {
    OrderSource.CUSTOMER_ONLINE: frozenset({PaymentMethod.CASH, PaymentMethod.RAZORPAY}),
    OrderSource.STAFF_MANUAL: frozenset({PaymentMethod.CASH, PaymentMethod.UPI}),
}

# Transitions a staff member may request through update_status
STAFF_TRANSITIONS: dict[OrderStatus, frozenset[OrderStatus]] = {
    OrderStatus.AWAITING_PAYMENT_CONFIRMATION: frozenset(),
    OrderStatus.PENDING_PREPARATION: frozenset({OrderStatus.PREPARING, OrderStatus.CANCELLED}),
    OrderStatus.PREPARING: frozenset({OrderStatus.READY_FOR_PICKUP, OrderStatus.CANCELLED}),
    OrderStatus.READY_FOR_PICKUP: frozenset({OrderStatus.COMPLETED, OrderStatus.CANCELLED}),
    OrderStatus.COMPLETED: frozenset(),
    OrderStatus.CANCELLED: frozenset(),
}

TERMINAL_STATUSES = frozenset({OrderStatus.COMPLETED, OrderStatus.CANCELLED})

TWO_PLACES = Decimal("0.01")


def to_money(value) -> Decimal:
    """Normalize an amount to 2-decimal currency semantics."""
    return Decimal(str(value)).quantize(TWO_PLACES, rounding=ROUND_HALF_UP)


class CustomerDetails:
    """Contact info captured at checkout (optional for staff orders)."""

    def __init__(self, name: str | None = None, phone: str | None = None, email: str | None = None):
        self.name = name or None
        self.phone = phone or None
        self.email = email or None

    def as_dict(self) -> dict:
        return {"name": self.name, "phone": self.phone, "email": self.email}


class OrderItem:
    """
    Order line item value object.

    Name, category and price are snapshots taken when the order was placed;
    later catalog edits never change them.
    """

    def __init__(
        self,
        product_id: UUID,
        product_name: str,
        category: ItemCategory,
        serving_type: ServingType,
        quantity: int,
        price_at_purchase: Decimal,
        customization: Customization = Customization.NORMAL,
        id: UUID | None = None,
    ):
        if quantity <= 0:
            raise ValidationError("Quantity must be positive")
        if price_at_purchase < 0:
            raise ValidationError("Price must be non-negative")

        self.id = id
        self.product_id = product_id
        self.product_name = product_name
        self.category = ItemCategory(category)
        self.serving_type = ServingType(serving_type)
        self.quantity = quantity
        self.price_at_purchase = to_money(price_at_purchase)
        self.customization = Customization(customization)

    @property
    def subtotal(self) -> Decimal:
        """Calculate item subtotal."""
        return self.price_at_purchase * self.quantity

    @property
    def display_name(self) -> str:
        return f"{self.product_name} ({self.serving_type.value})"

    @property
    def stock_key(self) -> tuple[str, str]:
        """Key of the menu item this line draws stock from."""
        return (str(self.product_id), self.serving_type.value)


class Order:
    """Order aggregate root."""

    def __init__(
        self,
        id: UUID | None = None,
        items: list[OrderItem] | None = None,
        payment_method: PaymentMethod = PaymentMethod.CASH,
        payment_status: PaymentStatus = PaymentStatus.PENDING,
        status: OrderStatus = OrderStatus.AWAITING_PAYMENT_CONFIRMATION,
        order_source: OrderSource = OrderSource.CUSTOMER_ONLINE,
        customer: CustomerDetails | None = None,
        total_amount: Decimal | None = None,
        gateway_order_id: str | None = None,
        gateway_payment_id: str | None = None,
        taken_by_id: UUID | None = None,
        processed_by_id: UUID | None = None,
        created_at: datetime | None = None,
        updated_at: datetime | None = None,
    ):
        self.id = id or uuid4()
        self._items = list(items or [])
        self.payment_method = PaymentMethod(payment_method)
        self._payment_status = PaymentStatus(payment_status)
        self._status = OrderStatus(status)
        self.order_source = OrderSource(order_source)
        self.customer = customer or CustomerDetails()
        self._total_amount = to_money(total_amount) if total_amount is not None else None
        self.gateway_order_id = gateway_order_id
        self.gateway_payment_id = gateway_payment_id
        self.taken_by_id = taken_by_id
        self.processed_by_id = processed_by_id
        self.created_at = created_at
        self.updated_at = updated_at

    @classmethod
    def place(
        cls,
        order_source: OrderSource,
        payment_method: PaymentMethod,
        items: list[OrderItem],
        customer: CustomerDetails | None = None,
        taken_by_id: UUID | None = None,
    ) -> "Order":
        """
        Create a new order with the initial state for its source.

        Staff-entered orders are paid at the counter and go straight to the
        kitchen; online orders wait for one of the payment confirmation paths
        whatever the chosen method.
        """
        if not items:
            raise EmptyOrder()

        order_source = OrderSource(order_source)
        payment_method = PaymentMethod(payment_method)
        if payment_method not in ALLOWED_PAYMENT_METHODS[order_source]:
            raise PaymentMethodNotAllowed(
                f"{payment_method.value} is not accepted for {order_source.value} orders.",
                payment_method=payment_method.value,
                order_source=order_source.value,
            )

        if order_source == OrderSource.STAFF_MANUAL:
            payment_status = PaymentStatus.PAID
            status = OrderStatus.PENDING_PREPARATION
        else:
            payment_status = PaymentStatus.PENDING
            status = OrderStatus.AWAITING_PAYMENT_CONFIRMATION

        return cls(
            items=items,
            payment_method=payment_method,
            payment_status=payment_status,
            status=status,
            order_source=order_source,
            customer=customer,
            taken_by_id=taken_by_id,
        )

    @property
    def items(self) -> list[OrderItem]:
        """Get order items (immutable)."""
        return list(self._items)

    @property
    def status(self) -> OrderStatus:
        return self._status

    @property
    def payment_status(self) -> PaymentStatus:
        return self._payment_status

    @property
    def total_amount(self) -> Decimal:
        """Stored total if loaded from storage, otherwise the sum of the items."""
        if self._total_amount is not None:
            return self._total_amount
        return to_money(sum((item.subtotal for item in self._items), Decimal("0")))

    @property
    def is_terminal(self) -> bool:
        return self._status in TERMINAL_STATUSES

    @property
    def is_paid(self) -> bool:
        return self._payment_status == PaymentStatus.PAID

    def state(self) -> dict:
        """Current state, reported with state-conflict errors."""
        return {
            "status": self._status.value,
            "payment_status": self._payment_status.value,
        }

    def allowed_next_statuses(self) -> frozenset[OrderStatus]:
        return STAFF_TRANSITIONS[self._status]

    def transition_to(self, new_status: OrderStatus, processed_by_id: UUID | None = None) -> None:
        """Apply a staff-requested status change."""
        new_status = OrderStatus(new_status)
        if new_status not in self.allowed_next_statuses():
            if self.is_terminal:
                message = f"Order is already {self._status.value} and cannot be changed."
            else:
                message = f"Cannot change status from {self._status.value} to {new_status.value}."
            raise InvalidTransition(message, requested_status=new_status.value, **self.state())

        if new_status == OrderStatus.COMPLETED:
            if not self._items:
                raise EmptyOrder("Cannot complete an order without items.")
            if not self.is_paid:
                raise InvalidTransition(
                    "Cannot complete an unpaid order.",
                    requested_status=new_status.value,
                    **self.state(),
                )

        self._status = new_status
        self.processed_by_id = processed_by_id

    def is_awaiting_cash_confirmation(self) -> bool:
        """Exact state in which staff may confirm a cash payment."""
        return (
            self.payment_method == PaymentMethod.CASH
            and self._payment_status == PaymentStatus.PENDING
            and self.order_source == OrderSource.CUSTOMER_ONLINE
            and self._status == OrderStatus.AWAITING_PAYMENT_CONFIRMATION
        )

    def mark_paid(
        self,
        processed_by_id: UUID | None = None,
        gateway_payment_id: str | None = None,
        gateway_order_id: str | None = None,
    ) -> None:
        """Move an unpaid online order to the kitchen queue."""
        if (
            self._payment_status != PaymentStatus.PENDING
            or self._status != OrderStatus.AWAITING_PAYMENT_CONFIRMATION
        ):
            raise InvalidTransition("Only orders awaiting payment can be marked as paid.", **self.state())

        self._payment_status = PaymentStatus.PAID
        self._status = OrderStatus.PENDING_PREPARATION
        if processed_by_id is not None:
            self.processed_by_id = processed_by_id
        if gateway_payment_id is not None:
            self.gateway_payment_id = gateway_payment_id
        if gateway_order_id is not None:
            self.gateway_order_id = gateway_order_id
