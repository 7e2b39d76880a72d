"""
Unit tests for domain models.
"""
from decimal import Decimal
from uuid import uuid4

from django.test import SimpleTestCase

from cafe.domain.errors import (
    EmptyOrder,
    InsufficientStock,
    InvalidTransition,
    OrderNotFound,
    PaymentMethodNotAllowed,
    ValidationError,
)
from cafe.domain.inventory import StockLevel
from cafe.domain.order import (
    STAFF_TRANSITIONS,
    ItemCategory,
    Order,
    OrderItem,
    OrderSource,
    OrderStatus,
    PaymentMethod,
    PaymentStatus,
    ServingType,
)
from cafe.domain.results import Result, returns_result


def make_item(quantity=1, price="150.00"):
    return OrderItem(
        product_id=uuid4(),
        product_name="Mocha Cold Coffee",
        category=ItemCategory.COFFEE,
        serving_type=ServingType.CUP,
        quantity=quantity,
        price_at_purchase=Decimal(price),
    )


def paid_order(status=OrderStatus.PENDING_PREPARATION):
    return Order(
        items=[make_item()],
        payment_method=PaymentMethod.CASH,
        payment_status=PaymentStatus.PAID,
        status=status,
        order_source=OrderSource.STAFF_MANUAL,
    )


class OrderItemTest(SimpleTestCase):
    """Tests for OrderItem value object."""

    def test_subtotal(self):
        item = make_item(quantity=2, price="150.00")
        self.assertEqual(item.subtotal, Decimal("300.00"))
        self.assertEqual(item.display_name, "Mocha Cold Coffee (Cup)")

    def test_quantity_must_be_positive(self):
        with self.assertRaises(ValidationError):
            make_item(quantity=0)

    def test_price_must_be_non_negative(self):
        with self.assertRaises(ValidationError):
            make_item(price="-1.00")


class OrderPlacementTest(SimpleTestCase):
    """Initial state per order source."""

    def test_online_order_waits_for_payment(self):
        for method in (PaymentMethod.CASH, PaymentMethod.RAZORPAY):
            order = Order.place(OrderSource.CUSTOMER_ONLINE, method, [make_item(quantity=2)])
            self.assertEqual(order.status, OrderStatus.AWAITING_PAYMENT_CONFIRMATION)
            self.assertEqual(order.payment_status, PaymentStatus.PENDING)
            self.assertEqual(order.total_amount, Decimal("300.00"))

    def test_manual_order_is_paid_immediately(self):
        staff_id = uuid4()
        order = Order.place(OrderSource.STAFF_MANUAL, PaymentMethod.UPI, [make_item()], taken_by_id=staff_id)
        self.assertEqual(order.status, OrderStatus.PENDING_PREPARATION)
        self.assertEqual(order.payment_status, PaymentStatus.PAID)
        self.assertEqual(order.taken_by_id, staff_id)

    def test_empty_order_rejected(self):
        with self.assertRaises(EmptyOrder):
            Order.place(OrderSource.CUSTOMER_ONLINE, PaymentMethod.CASH, [])

    def test_payment_method_per_source(self):
        with self.assertRaises(PaymentMethodNotAllowed):
            Order.place(OrderSource.CUSTOMER_ONLINE, PaymentMethod.UPI, [make_item()])
        with self.assertRaises(PaymentMethodNotAllowed):
            Order.place(OrderSource.STAFF_MANUAL, PaymentMethod.RAZORPAY, [make_item()])


class OrderTransitionTest(SimpleTestCase):
    """Staff status transitions."""

    def test_happy_path_to_completed(self):
        order = paid_order()
        staff_id = uuid4()
        for status in (OrderStatus.PREPARING, OrderStatus.READY_FOR_PICKUP, OrderStatus.COMPLETED):
            order.transition_to(status, processed_by_id=staff_id)
        self.assertEqual(order.status, OrderStatus.COMPLETED)
        self.assertEqual(order.processed_by_id, staff_id)
        self.assertTrue(order.is_terminal)

    def test_every_transition_outside_table_is_rejected(self):
        for current in OrderStatus:
            for requested in OrderStatus:
                if requested in STAFF_TRANSITIONS[current]:
                    continue
                order = paid_order(status=current)
                with self.assertRaises(InvalidTransition):
                    order.transition_to(requested)
                self.assertEqual(order.status, current)

    def test_terminal_order_reports_current_status(self):
        order = paid_order(status=OrderStatus.COMPLETED)
        with self.assertRaises(InvalidTransition) as context:
            order.transition_to(OrderStatus.CANCELLED)
        self.assertIn("already COMPLETED", context.exception.message)
        self.assertEqual(context.exception.details["status"], "COMPLETED")

    def test_ready_order_can_be_cancelled(self):
        order = paid_order(status=OrderStatus.READY_FOR_PICKUP)
        order.transition_to(OrderStatus.CANCELLED)
        self.assertEqual(order.status, OrderStatus.CANCELLED)

    def test_unpaid_order_cannot_complete(self):
        order = Order(
            items=[make_item()],
            payment_status=PaymentStatus.PENDING,
            status=OrderStatus.READY_FOR_PICKUP,
        )
        with self.assertRaises(InvalidTransition):
            order.transition_to(OrderStatus.COMPLETED)
        self.assertEqual(order.status, OrderStatus.READY_FOR_PICKUP)

    def test_awaiting_order_has_no_staff_transitions(self):
        order = Order.place(OrderSource.CUSTOMER_ONLINE, PaymentMethod.CASH, [make_item()])
        with self.assertRaises(InvalidTransition):
            order.transition_to(OrderStatus.PREPARING)
        with self.assertRaises(InvalidTransition):
            order.transition_to(OrderStatus.CANCELLED)


class MarkPaidTest(SimpleTestCase):

    def test_mark_paid_moves_to_kitchen(self):
        order = Order.place(OrderSource.CUSTOMER_ONLINE, PaymentMethod.RAZORPAY, [make_item()])
        order.mark_paid(gateway_payment_id="pay_1", gateway_order_id="order_1")
        self.assertEqual(order.status, OrderStatus.PENDING_PREPARATION)
        self.assertEqual(order.payment_status, PaymentStatus.PAID)
        self.assertEqual(order.gateway_payment_id, "pay_1")

    def test_mark_paid_twice_fails(self):
        order = Order.place(OrderSource.CUSTOMER_ONLINE, PaymentMethod.CASH, [make_item()])
        order.mark_paid()
        with self.assertRaises(InvalidTransition):
            order.mark_paid()

    def test_cash_confirmation_eligibility(self):
        cash = Order.place(OrderSource.CUSTOMER_ONLINE, PaymentMethod.CASH, [make_item()])
        card = Order.place(OrderSource.CUSTOMER_ONLINE, PaymentMethod.RAZORPAY, [make_item()])
        manual = Order.place(OrderSource.STAFF_MANUAL, PaymentMethod.CASH, [make_item()])
        self.assertTrue(cash.is_awaiting_cash_confirmation())
        self.assertFalse(card.is_awaiting_cash_confirmation())
        self.assertFalse(manual.is_awaiting_cash_confirmation())


class StockLevelTest(SimpleTestCase):

    def make_stock(self, quantity):
        return StockLevel(
            product_id=uuid4(),
            product_name="Oreo Shake",
            serving_type=ServingType.CONE,
            stock_quantity=quantity,
            is_available=quantity > 0,
        )

    def test_decrement_to_zero_disables(self):
        stock = self.make_stock(2)
        stock.decrement(2)
        self.assertEqual(stock.stock_quantity, 0)
        self.assertFalse(stock.is_available)

    def test_insufficient_stock_reports_counts(self):
        stock = self.make_stock(1)
        with self.assertRaises(InsufficientStock) as context:
            stock.decrement(3)
        self.assertEqual(context.exception.item_name, "Oreo Shake (Cone)")
        self.assertEqual(context.exception.available, 1)
        self.assertEqual(context.exception.requested, 3)
        self.assertEqual(stock.stock_quantity, 1)


class ResultTest(SimpleTestCase):

    def test_expected_failure_becomes_result(self):
        @returns_result
        def fails():
            raise OrderNotFound()

        result = fails()
        self.assertFalse(result.success)
        self.assertEqual(result.error_code, "ORDER_NOT_FOUND")
        self.assertEqual(result.as_payload()["error"]["message"], "Order not found.")

    def test_unexpected_failure_is_internal_error(self):
        @returns_result
        def crashes():
            raise KeyError("boom")

        with self.assertLogs("cafe.domain.results", level="ERROR"):
            result = crashes()
        self.assertEqual(result.error_code, "INTERNAL_ERROR")
        self.assertNotIn("boom", result.message)

    def test_dict_return_becomes_success(self):
        @returns_result
        def succeeds():
            return {"value": 1}

        result = succeeds()
        self.assertEqual(result, Result.ok(value=1))
        self.assertEqual(result.as_payload(), {"success": True, "value": 1, "error": None})
