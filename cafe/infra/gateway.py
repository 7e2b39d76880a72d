"""
Razorpay payment gateway client and signature helpers.
"""
from __future__ import annotations

import hashlib
import hmac
import logging

import requests

from cafe.domain.errors import GatewayError, GatewayNotConfigured
from cafe.infra.retry import retry_with_backoff

logger = logging.getLogger(__name__)


def compute_signature(secret: str, message: str | bytes) -> str:
    """HMAC-SHA256 hex digest of ``message`` keyed with ``secret``."""
    if isinstance(message, str):
        message = message.encode("utf-8")
    return hmac.new(secret.encode("utf-8"), message, hashlib.sha256).hexdigest()


def signatures_match(expected: str, supplied: str | None) -> bool:
    """Constant-time comparison of two hex signatures."""
    if not supplied:
        return False
    return hmac.compare_digest(expected.encode("utf-8"), supplied.strip().encode("utf-8"))


def payment_signature_message(gateway_order_id: str, payment_id: str) -> str:
    """Message the gateway signs for checkout callbacks."""
    return f"{gateway_order_id}|{payment_id}"


class RazorpayClient:
    """Thin client for the parts of the Razorpay Orders API we use."""

    def __init__(
        self,
        key_id: str,
        key_secret: str,
        base_url: str = "https://api.razorpay.com/v1",
        timeout: float = 10.0,
        session: requests.Session | None = None,
    ):
        self.key_id = key_id
        self.key_secret = key_secret
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.session = session or requests.Session()
        self.session.headers.update({"Content-Type": "application/json"})

    @classmethod
    def from_settings(cls, settings) -> "RazorpayClient":
        return cls(
            key_id=settings.RAZORPAY_KEY_ID,
            key_secret=settings.RAZORPAY_KEY_SECRET,
            base_url=settings.RAZORPAY_API_BASE,
            timeout=settings.RAZORPAY_TIMEOUT,
        )

    @property
    def configured(self) -> bool:
        return bool(self.key_id and self.key_secret)

    def create_remote_order(
        self,
        amount_minor_units: int,
        currency: str,
        receipt: str,
        notes: dict | None = None,
    ) -> dict:
        """Create a gateway order; returns ``{"gateway_order_id", "amount", "currency"}``."""
        if not self.configured:
            raise GatewayNotConfigured()

        body = {
            "amount": amount_minor_units,
            "currency": currency,
            "receipt": receipt,
            "notes": notes or {},
        }
        try:
            data = self._post("/orders", body)
        except requests.RequestException as e:
            logger.error(
                "gateway_order_failed",
                extra={"order_id": receipt, "error": str(e)},
            )
            raise GatewayError(f"Failed to create gateway order: {e}") from e

        if not data.get("id"):
            raise GatewayError("Gateway response did not contain an order id.")

        return {
            "gateway_order_id": data["id"],
            "amount": data.get("amount", amount_minor_units),
            "currency": data.get("currency", currency),
        }

    @retry_with_backoff(
        max_retries=2,
        exceptions=(requests.ConnectionError, requests.Timeout),
    )
    def _post(self, path: str, body: dict) -> dict:
        response = self.session.post(
            f"{self.base_url}{path}",
            json=body,
            auth=(self.key_id, self.key_secret),
            timeout=self.timeout,
        )
        response.raise_for_status()
        return response.json()
