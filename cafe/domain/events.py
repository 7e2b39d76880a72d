"""
Lifecycle events published to the notification fan-out.
"""
from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from uuid import UUID

ORDERS_UPDATED = "ORDERS_UPDATED"


class EventVersion(str, Enum):
    """Event version for consumers that pin a payload shape."""
    V1 = "1.0"


@dataclass
class OrdersUpdated:
    """An order was created or changed status/payment state."""
    order_id: UUID
    status: str
    payment_status: str | None = None
    event_type: str = ORDERS_UPDATED
    version: EventVersion = EventVersion.V1

    def payload(self) -> dict:
        data = {
            "orderId": str(self.order_id),
            "status": self.status,
        }
        if self.payment_status is not None:
            data["paymentStatus"] = self.payment_status
        return data
