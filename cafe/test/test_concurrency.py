"""
Concurrent completions and payment confirmations against a real database.

Row locks are only meaningful on PostgreSQL; SQLite serializes whole
transactions, so these tests are skipped there.
"""
import threading

from django.db import connections
from django.test import TransactionTestCase, skipUnlessDBFeature

from cafe.domain.order import AdminRole
from cafe.infra.gateway import compute_signature
from cafe.infra.models import MenuItemORM, OrderORM
from cafe.services import OrderService, PaymentReconciliationService
from cafe.test.factories import CUSTOMER, line, make_fanout, make_menu_item, make_staff


def run_concurrently(*calls):
    """Start every call at the same moment; each thread uses its own connection."""
    barrier = threading.Barrier(len(calls))
    results = [None] * len(calls)

    def worker(index, call):
        try:
            barrier.wait()
            results[index] = call()
        finally:
            connections.close_all()

    threads = [threading.Thread(target=worker, args=(i, call)) for i, call in enumerate(calls)]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join(timeout=30)
    return results


@skipUnlessDBFeature("has_select_for_update")
class ConcurrentCompletionTest(TransactionTestCase):

    def setUp(self):
        fanout, _ = make_fanout()
        self.service = OrderService(fanout=fanout)
        self.payments = PaymentReconciliationService(fanout=fanout, webhook_secret="whsec_race")
        self.processor = make_staff(AdminRole.ORDER_PROCESSOR)
        self.taker = make_staff(AdminRole.MANUAL_ORDER_TAKER)

    def ready_order(self, menu_item, quantity=1):
        order = self.service.create_manual_order(self.taker.id, [line(menu_item, quantity)], "Cash").data["order"]
        for status in ("PREPARING", "READY_FOR_PICKUP"):
            self.service.update_status(order.id, status, self.processor.id)
        return order

    def test_last_unit_goes_to_exactly_one_order(self):
        mocha = make_menu_item(name="Mocha Cold Coffee", stock=1)
        first = self.ready_order(mocha)
        second = self.ready_order(mocha)

        results = run_concurrently(
            lambda: self.service.update_status(first.id, "COMPLETED", self.processor.id),
            lambda: self.service.update_status(second.id, "COMPLETED", self.processor.id),
        )

        self.assertEqual(sorted(result.success for result in results), [False, True])
        failure = next(result for result in results if not result.success)
        self.assertEqual(failure.error_code, "INSUFFICIENT_STOCK")
        self.assertEqual(MenuItemORM.objects.get(id=mocha.id).stock_quantity, 0)

    def test_same_order_completed_once(self):
        coffee = make_menu_item(stock=5)
        order = self.ready_order(coffee, quantity=2)

        results = run_concurrently(
            lambda: self.service.update_status(order.id, "COMPLETED", self.processor.id),
            lambda: self.service.update_status(order.id, "COMPLETED", self.processor.id),
        )

        self.assertEqual(sorted(result.success for result in results), [False, True])
        failure = next(result for result in results if not result.success)
        self.assertEqual(failure.error_code, "INVALID_TRANSITION")
        self.assertEqual(MenuItemORM.objects.get(id=coffee.id).stock_quantity, 3)

    def test_cash_confirmation_races_webhook(self):
        coffee = make_menu_item(stock=5)
        order = self.service.submit_customer_order(CUSTOMER, [line(coffee)], "Cash").data["order"]
        body = (
            '{"event": "payment.captured", "payload": {"payment": {"entity": '
            '{"id": "pay_race", "order_id": "order_race", "notes": {"internalOrderId": "%s"}}}}}' % order.id
        ).encode("utf-8")
        signature = compute_signature("whsec_race", body)

        cash, webhook = run_concurrently(
            lambda: self.payments.confirm_cash_payment(order.id, self.taker.id),
            lambda: self.payments.handle_gateway_webhook(body, signature),
        )

        self.assertTrue(webhook.success)
        if cash.success:
            self.assertTrue(webhook.data["duplicate"])
        else:
            self.assertEqual(cash.error_code, "ORDER_NOT_ELIGIBLE")
            self.assertTrue(webhook.data["processed"])
        stored = OrderORM.objects.get(id=order.id)
        self.assertEqual((stored.status, stored.payment_status), ("PENDING_PREPARATION", "PAID"))

