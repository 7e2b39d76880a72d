"""
Payment reconciliation: the three ways an online order becomes paid.

Cash confirmation by staff, the checkout callback signed with the key
secret, and the asynchronous webhook signed with the webhook secret all end
in the same PAID / PENDING_PREPARATION state. Each path locks the order row
first, so when two of them race exactly one performs the transition.
"""
from __future__ import annotations

import json
import logging
from decimal import Decimal

from django.conf import settings
from django.db import transaction

from cafe.domain.errors import (
    GatewayNotConfigured,
    InvalidWebhookSignature,
    MalformedWebhook,
    OrderMismatch,
    OrderNotEligible,
    OrderNotFound,
    OrderResolutionFailed,
    SignatureMismatch,
)
from cafe.domain.order import Order, OrderSource, OrderStatus, PaymentMethod, PaymentStatus
from cafe.domain.results import returns_result
from cafe.infra.gateway import (
    RazorpayClient,
    compute_signature,
    payment_signature_message,
    signatures_match,
)
from cafe.infra.notifications import NotificationFanout, get_fanout
from cafe.infra.repositories import AdminUserRepository, OrderRepository, parse_uuid
from cafe.services.authorization import require_staff

logger = logging.getLogger(__name__)
security_logger = logging.getLogger("cafe.security")

# Webhook events that mean the money has been captured
RECONCILED_EVENTS = frozenset({"payment.captured", "order.paid"})


class PaymentReconciliationService:
    """Service for payment confirmation operations."""

    def __init__(
        self,
        order_repo: OrderRepository | None = None,
        admin_repo: AdminUserRepository | None = None,
        gateway: RazorpayClient | None = None,
        fanout: NotificationFanout | None = None,
        key_secret: str | None = None,
        webhook_secret: str | None = None,
    ):
        self.order_repo = order_repo or OrderRepository()
        self.admin_repo = admin_repo or AdminUserRepository()
        self._gateway = gateway
        self._fanout = fanout
        self._key_secret = key_secret
        self._webhook_secret = webhook_secret

    @property
    def fanout(self) -> NotificationFanout:
        return self._fanout or get_fanout()

    @property
    def gateway(self) -> RazorpayClient:
        if self._gateway is None:
            self._gateway = RazorpayClient.from_settings(settings)
        return self._gateway

    @property
    def key_secret(self) -> str:
        return self._key_secret if self._key_secret is not None else settings.RAZORPAY_KEY_SECRET

    @property
    def webhook_secret(self) -> str:
        return self._webhook_secret if self._webhook_secret is not None else settings.RAZORPAY_WEBHOOK_SECRET

    @returns_result
    def create_gateway_order(self, internal_order_id) -> dict:
        """Open a gateway order for an unpaid online card order."""
        order = self.order_repo.get_by_id(internal_order_id)
        if order is None:
            raise OrderNotFound()
        if not (
            order.payment_method == PaymentMethod.RAZORPAY
            and order.order_source == OrderSource.CUSTOMER_ONLINE
            and order.payment_status == PaymentStatus.PENDING
            and order.status == OrderStatus.AWAITING_PAYMENT_CONFIRMATION
        ):
            raise OrderNotEligible("Order is not awaiting an online card payment.", **order.state())

        remote = self.gateway.create_remote_order(
            amount_minor_units=amount_in_minor_units(order),
            currency=settings.CAFFICO_CURRENCY,
            receipt=str(order.id),
            notes={"internalOrderId": str(order.id)},
        )

        with transaction.atomic():
            self.order_repo.set_gateway_order_id(order.id, remote["gateway_order_id"])

        logger.info(
            "gateway_order_created",
            extra={
                "order_id": str(order.id),
                "gateway_order_id": remote["gateway_order_id"],
            },
        )
        return {
            "order_id": order.id,
            "gateway_order_id": remote["gateway_order_id"],
            "amount": remote["amount"],
            "currency": remote["currency"],
            "key_id": self.gateway.key_id,
        }

    @returns_result
    @transaction.atomic
    def confirm_cash_payment(self, order_id, acting_staff_id) -> dict:
        """Staff took the cash at the counter for an online order."""
        staff = require_staff(self.admin_repo, acting_staff_id)

        order = self.order_repo.get_for_update(order_id)
        if order is None:
            raise OrderNotEligible()
        if not order.is_awaiting_cash_confirmation():
            raise OrderNotEligible(**order.state())

        order.mark_paid(processed_by_id=staff.id)
        self.order_repo.save_state(order)

        logger.info(
            "cash_payment_confirmed",
            extra={"order_id": str(order.id), "staff_id": str(staff.id)},
        )
        self.fanout.notify_order_updated(order.id, order.status.value, order.payment_status.value)
        return {"order": order}

    @returns_result
    @transaction.atomic
    def verify_gateway_payment(
        self,
        payment_id: str,
        gateway_order_id: str,
        signature: str,
        internal_order_id,
    ) -> dict:
        """Checkout callback: trust the payment only if the signature matches."""
        if not self.key_secret:
            raise GatewayNotConfigured()

        expected = compute_signature(
            self.key_secret,
            payment_signature_message(gateway_order_id or "", payment_id or ""),
        )
        if not signatures_match(expected, signature):
            security_logger.warning(
                "gateway_signature_mismatch",
                extra={
                    "order_id": str(internal_order_id),
                    "gateway_order_id": gateway_order_id,
                },
            )
            raise SignatureMismatch()

        # Both ids must match the same row: a valid signature for another
        # order must not pay for this one.
        order = self.order_repo.get_for_update(internal_order_id, gateway_order_id=gateway_order_id)
        if order is None:
            raise OrderMismatch()

        if order.is_paid:
            logger.info(
                "gateway_payment_already_recorded",
                extra={"order_id": str(order.id), "gateway_order_id": gateway_order_id},
            )
            return {"order": order, "already_paid": True}

        order.mark_paid(gateway_payment_id=payment_id)
        self.order_repo.save_state(order)

        logger.info(
            "gateway_payment_verified",
            extra={"order_id": str(order.id), "gateway_order_id": gateway_order_id},
        )
        self.fanout.notify_order_updated(order.id, order.status.value, order.payment_status.value)
        return {"order": order, "already_paid": False}

    @returns_result
    @transaction.atomic
    def handle_gateway_webhook(self, raw_body: bytes, signature_header: str | None) -> dict:
        """
        Gateway webhook. The signature covers the raw bytes, so the body is
        only parsed after it has been verified. Redelivery of an event for an
        already-paid order is a successful no-op.
        """
        if not self.webhook_secret:
            raise GatewayNotConfigured("Webhook secret not configured.")
        if not signature_header:
            security_logger.warning("webhook_signature_missing")
            raise InvalidWebhookSignature("Signature missing.")

        expected = compute_signature(self.webhook_secret, raw_body)
        if not signatures_match(expected, signature_header):
            security_logger.warning("webhook_signature_invalid")
            raise InvalidWebhookSignature()

        try:
            event = json.loads(raw_body)
        except (ValueError, UnicodeDecodeError):
            raise MalformedWebhook() from None
        if not isinstance(event, dict):
            raise MalformedWebhook()

        event_name = event.get("event")
        if event_name not in RECONCILED_EVENTS:
            logger.info("webhook_event_ignored", extra={"event": event_name})
            return {"processed": False, "duplicate": False, "event": event_name, "order": None}

        payload = event.get("payload") or {}
        payment_entity = (payload.get("payment") or {}).get("entity") or {}
        order_entity = (payload.get("order") or {}).get("entity") or {}

        order_id = self._resolve_internal_order_id(payment_entity, order_entity)
        if order_id is None:
            logger.error(
                "webhook_order_unresolved",
                extra={"event": event_name, "gateway_order_id": payment_entity.get("order_id")},
            )
            raise OrderResolutionFailed()

        order = self.order_repo.get_for_update(order_id)
        if order is None:
            logger.error("webhook_order_not_found", extra={"order_id": str(order_id)})
            raise OrderNotFound()

        if order.is_paid:
            logger.info(
                "webhook_duplicate_ignored",
                extra={"order_id": str(order.id), "event": event_name},
            )
            return {"processed": False, "duplicate": True, "event": event_name, "order": order}

        order.mark_paid(
            gateway_payment_id=payment_entity.get("id"),
            gateway_order_id=payment_entity.get("order_id") or order_entity.get("id") or order.gateway_order_id,
        )
        self.order_repo.save_state(order)

        logger.info(
            "webhook_processed",
            extra={"order_id": str(order.id), "event": event_name},
        )
        self.fanout.notify_order_updated(order.id, order.status.value, order.payment_status.value)
        return {"processed": True, "duplicate": False, "event": event_name, "order": order}

    def _resolve_internal_order_id(self, payment_entity: dict, order_entity: dict):
        """
        Internal order id from, in priority order: the notes we attached,
        the gateway order's receipt, then the stored gateway order id.
        """
        candidates = [
            (payment_entity.get("notes") or {}).get("internalOrderId")
            if isinstance(payment_entity.get("notes"), dict) else None,
            (order_entity.get("notes") or {}).get("internalOrderId")
            if isinstance(order_entity.get("notes"), dict) else None,
            order_entity.get("receipt"),
        ]
        for candidate in candidates:
            order_id = parse_uuid(candidate) if candidate else None
            if order_id is not None:
                return order_id

        gateway_order_id = payment_entity.get("order_id") or order_entity.get("id")
        return self.order_repo.find_id_by_gateway_order_id(gateway_order_id)


def amount_in_minor_units(order: Order) -> int:
    return int((order.total_amount * Decimal(100)).to_integral_value())
