"""
Tests for order creation, status transitions and staff queues.
"""
from decimal import Decimal
from uuid import uuid4

from django.test import TestCase

from cafe.domain.order import AdminRole, OrderStatus, PaymentStatus
from cafe.infra.models import MenuItemORM, OrderORM
from cafe.services import OrderService, PaymentReconciliationService
from cafe.test.factories import CUSTOMER, line, make_fanout, make_menu_item, make_staff


class OrderServiceTestCase(TestCase):

    def setUp(self):
        self.fanout, self.received = make_fanout()
        self.service = OrderService(fanout=self.fanout)
        self.payments = PaymentReconciliationService(fanout=self.fanout)
        self.processor = make_staff(AdminRole.ORDER_PROCESSOR)
        self.taker = make_staff(AdminRole.MANUAL_ORDER_TAKER)
        self.coffee = make_menu_item(name="Mocha Cold Coffee", price="150.00", stock=10)

    def submit(self, quantity=2, payment_method="Cash"):
        result = self.service.submit_customer_order(CUSTOMER, [line(self.coffee, quantity)], payment_method)
        self.assertTrue(result.success, result.message)
        return result.data["order"]

    def paid_order(self, quantity=2):
        result = self.service.create_manual_order(self.taker.id, [line(self.coffee, quantity)], "Cash")
        self.assertTrue(result.success, result.message)
        return result.data["order"]

    def advance(self, order_id, *statuses):
        result = None
        for status in statuses:
            result = self.service.update_status(order_id, status, self.processor.id)
            self.assertTrue(result.success, result.message)
        return result


class SubmitCustomerOrderTest(OrderServiceTestCase):

    def test_cash_checkout_awaits_confirmation(self):
        with self.captureOnCommitCallbacks(execute=True):
            order = self.submit(quantity=2)

        stored = OrderORM.objects.get(id=order.id)
        self.assertEqual(stored.status, OrderStatus.AWAITING_PAYMENT_CONFIRMATION.value)
        self.assertEqual(stored.payment_status, PaymentStatus.PENDING.value)
        self.assertEqual(stored.total_amount, Decimal("300.00"))
        self.assertEqual(stored.items.get().product_name, "Mocha Cold Coffee")

        self.coffee.refresh_from_db()
        self.assertEqual(self.coffee.stock_quantity, 10)
        self.assertEqual(self.received[0]["type"], "ORDERS_UPDATED")
        self.assertEqual(self.received[0]["payload"]["orderId"], str(order.id))

    def test_price_is_snapshotted(self):
        order = self.submit(quantity=1)
        MenuItemORM.objects.filter(id=self.coffee.id).update(price=Decimal("999.00"))

        reloaded = self.service.get_order(order.id).data["order"]
        self.assertEqual(reloaded.items[0].price_at_purchase, Decimal("150.00"))
        self.assertEqual(reloaded.total_amount, Decimal("150.00"))

    def test_upi_not_accepted_online(self):
        result = self.service.submit_customer_order(CUSTOMER, [line(self.coffee)], "UPI")
        self.assertEqual(result.error_code, "PAYMENT_METHOD_NOT_ALLOWED")
        self.assertFalse(OrderORM.objects.exists())

    def test_empty_order(self):
        result = self.service.submit_customer_order(CUSTOMER, [], "Cash")
        self.assertEqual(result.error_code, "EMPTY_ORDER")

    def test_contact_details_required(self):
        result = self.service.submit_customer_order({"name": "Asha"}, [line(self.coffee)], "Cash")
        self.assertEqual(result.error_code, "VALIDATION_ERROR")

    def test_unknown_and_unavailable_items(self):
        unknown = {"productId": str(uuid4()), "servingType": "Cup", "quantity": 1}
        result = self.service.submit_customer_order(CUSTOMER, [unknown], "Cash")
        self.assertEqual(result.error_code, "MENU_ITEM_NOT_FOUND")

        sold_out = make_menu_item(name="Oreo Shake", stock=0)
        result = self.service.submit_customer_order(CUSTOMER, [line(sold_out)], "Cash")
        self.assertEqual(result.error_code, "MENU_ITEM_UNAVAILABLE")

    def test_failed_checkout_does_not_notify(self):
        with self.captureOnCommitCallbacks(execute=True):
            self.service.submit_customer_order(CUSTOMER, [line(self.coffee, 0)], "Cash")
        self.assertEqual(self.received, [])


class CreateManualOrderTest(OrderServiceTestCase):

    def test_manual_order_starts_paid(self):
        order = self.paid_order()
        stored = OrderORM.objects.get(id=order.id)
        self.assertEqual(stored.status, OrderStatus.PENDING_PREPARATION.value)
        self.assertEqual(stored.payment_status, PaymentStatus.PAID.value)
        self.assertEqual(stored.taken_by_id, self.taker.id)

    def test_requires_staff_session(self):
        result = self.service.create_manual_order(None, [line(self.coffee)], "Cash")
        self.assertEqual(result.error_code, "UNAUTHORIZED")
        result = self.service.create_manual_order(uuid4(), [line(self.coffee)], "Cash")
        self.assertEqual(result.error_code, "UNAUTHORIZED")

    def test_inactive_staff_rejected(self):
        former = make_staff(AdminRole.BUSINESS_MANAGER, is_active=False)
        result = self.service.create_manual_order(former.id, [line(self.coffee)], "UPI")
        self.assertEqual(result.error_code, "UNAUTHORIZED")

    def test_card_not_accepted_at_counter(self):
        result = self.service.create_manual_order(self.taker.id, [line(self.coffee)], "Razorpay")
        self.assertEqual(result.error_code, "PAYMENT_METHOD_NOT_ALLOWED")


class UpdateStatusTest(OrderServiceTestCase):

    def test_completion_decrements_stock(self):
        order = self.paid_order(quantity=3)
        result = self.advance(order.id, "PREPARING", "READY_FOR_PICKUP", "COMPLETED")

        self.assertEqual(result.data["order"].status, OrderStatus.COMPLETED)
        self.assertEqual(result.data["order"].processed_by_id, self.processor.id)
        self.coffee.refresh_from_db()
        self.assertEqual(self.coffee.stock_quantity, 7)

    def test_completion_with_short_stock_changes_nothing(self):
        order = self.paid_order(quantity=3)
        self.advance(order.id, "PREPARING", "READY_FOR_PICKUP")
        MenuItemORM.objects.filter(id=self.coffee.id).update(stock_quantity=2)

        result = self.service.update_status(order.id, "COMPLETED", self.processor.id)

        self.assertEqual(result.error_code, "INSUFFICIENT_STOCK")
        self.assertEqual(result.details["available"], 2)
        self.assertEqual(result.details["requested"], 3)
        self.assertIn("Mocha Cold Coffee (Cup)", result.message)
        self.assertEqual(OrderORM.objects.get(id=order.id).status, OrderStatus.READY_FOR_PICKUP.value)
        self.coffee.refresh_from_db()
        self.assertEqual(self.coffee.stock_quantity, 2)

    def test_order_taker_cannot_process(self):
        order = self.paid_order()
        result = self.service.update_status(order.id, "PREPARING", self.taker.id)
        self.assertEqual(result.error_code, "UNAUTHORIZED")
        self.assertEqual(OrderORM.objects.get(id=order.id).status, OrderStatus.PENDING_PREPARATION.value)

    def test_unpaid_online_order_cannot_be_started(self):
        order = self.submit()
        result = self.service.update_status(order.id, "PREPARING", self.processor.id)
        self.assertEqual(result.error_code, "INVALID_TRANSITION")
        self.assertEqual(result.details["status"], OrderStatus.AWAITING_PAYMENT_CONFIRMATION.value)

    def test_completed_order_cannot_be_cancelled(self):
        order = self.paid_order()
        self.advance(order.id, "PREPARING", "READY_FOR_PICKUP", "COMPLETED")
        result = self.service.update_status(order.id, "CANCELLED", self.processor.id)
        self.assertEqual(result.error_code, "INVALID_TRANSITION")
        self.assertIn("already COMPLETED", result.message)

    def test_cancel_does_not_touch_stock(self):
        order = self.paid_order(quantity=2)
        self.advance(order.id, "PREPARING", "CANCELLED")
        self.coffee.refresh_from_db()
        self.assertEqual(self.coffee.stock_quantity, 10)

    def test_unknown_order_and_status(self):
        result = self.service.update_status(uuid4(), "PREPARING", self.processor.id)
        self.assertEqual(result.error_code, "ORDER_NOT_FOUND")
        order = self.paid_order()
        result = self.service.update_status(order.id, "EATEN", self.processor.id)
        self.assertEqual(result.error_code, "VALIDATION_ERROR")

    def test_every_change_is_notified(self):
        order = self.paid_order()
        with self.captureOnCommitCallbacks(execute=True):
            self.advance(order.id, "PREPARING")
        self.assertEqual(self.received[-1]["payload"]["status"], "PREPARING")


class StaffQueuesTest(OrderServiceTestCase):

    def test_processable_orders_are_paid_and_open(self):
        waiting_cash = self.submit()
        kitchen = self.paid_order()
        done = self.paid_order()
        self.advance(done.id, "PREPARING", "READY_FOR_PICKUP", "COMPLETED")

        result = self.service.list_processable_orders(self.processor.id)
        ids = [order.id for order in result.data["orders"]]
        self.assertEqual(ids, [kitchen.id])
        self.assertNotIn(waiting_cash.id, ids)

    def test_pending_cash_queue(self):
        cash = self.submit(payment_method="Cash")
        self.submit(payment_method="Razorpay")
        self.paid_order()

        result = self.service.list_pending_cash_orders(self.taker.id)
        self.assertEqual([order.id for order in result.data["orders"]], [cash.id])

        self.payments.confirm_cash_payment(cash.id, self.taker.id)
        result = self.service.list_pending_cash_orders(self.taker.id)
        self.assertEqual(result.data["orders"], [])

    def test_queues_require_staff(self):
        self.assertEqual(self.service.list_processable_orders(None).error_code, "UNAUTHORIZED")
        self.assertEqual(self.service.list_processable_orders(self.taker.id).error_code, "UNAUTHORIZED")
        self.assertEqual(self.service.list_pending_cash_orders(None).error_code, "UNAUTHORIZED")
