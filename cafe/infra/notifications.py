"""
Best-effort notification fan-out for live order-list refresh.

The core only ever calls ``NotificationFanout.notify_order_updated``; how
the event reaches connected viewers is up to the configured bus.
"""
from __future__ import annotations

import json
import logging
import threading
from concurrent.futures import Executor, ThreadPoolExecutor
from typing import Callable
from uuid import UUID

import redis
from django.db import transaction

from cafe.domain.events import OrdersUpdated
from cafe.infra.retry import retry_with_backoff

logger = logging.getLogger(__name__)


class EventBus:
    """Publish side of a pub/sub transport."""

    def publish(self, event_type: str, payload: dict) -> None:
        raise NotImplementedError

    def close(self) -> None:
        pass


class InMemoryEventBus(EventBus):
    """Single-process bus: delivers straight to local subscribers."""

    def __init__(self):
        self._subscribers: list[Callable[[dict], None]] = []
        self._lock = threading.Lock()

    def subscribe(self, callback: Callable[[dict], None]) -> Callable[[], None]:
        """Register a subscriber; returns a function that unsubscribes it."""
        with self._lock:
            self._subscribers.append(callback)

        def unsubscribe() -> None:
            with self._lock:
                if callback in self._subscribers:
                    self._subscribers.remove(callback)

        return unsubscribe

    def publish(self, event_type: str, payload: dict) -> None:
        message = {"type": event_type, "payload": payload}
        with self._lock:
            subscribers = list(self._subscribers)

        for callback in subscribers:
            try:
                callback(message)
            except Exception:
                # A broken viewer is dropped, the others still get the event
                logger.warning("subscriber_failed", exc_info=True)
                with self._lock:
                    if callback in self._subscribers:
                        self._subscribers.remove(callback)


class RedisEventBus(EventBus):
    """Multi-instance bus: every app instance relays the channel to its viewers."""

    def __init__(self, url: str, channel: str, client: redis.Redis | None = None):
        self.channel = channel
        self._client = client or redis.Redis.from_url(
            url,
            socket_connect_timeout=2,
            socket_timeout=2,
        )

    @retry_with_backoff(
        max_retries=2,
        exceptions=(redis.exceptions.ConnectionError, redis.exceptions.TimeoutError),
    )
    def publish(self, event_type: str, payload: dict) -> None:
        message = json.dumps({"type": event_type, "payload": payload})
        self._client.publish(self.channel, message)

    def close(self) -> None:
        self._client.close()


class NotificationFanout:
    """
    Non-blocking, best-effort publisher.

    Sends run on a small thread pool so a slow or dead bus never delays the
    request, and every failure is logged and dropped.
    """

    def __init__(self, bus: EventBus, max_workers: int = 2, executor: Executor | None = None):
        self.bus = bus
        self._executor = executor or ThreadPoolExecutor(
            max_workers=max_workers,
            thread_name_prefix="cafe-notify",
        )

    def publish(self, event_type: str, payload: dict) -> None:
        try:
            self._executor.submit(self._send, event_type, payload)
        except RuntimeError:
            # Executor already shut down (process is exiting)
            logger.warning(
                "notification_dropped",
                extra={"operation": event_type, "status": "executor_shutdown"},
            )

    def notify_order_updated(
        self,
        order_id: UUID,
        status: str,
        payment_status: str | None = None,
    ) -> None:
        """Publish ORDERS_UPDATED once the surrounding transaction commits."""
        event = OrdersUpdated(order_id=order_id, status=status, payment_status=payment_status)
        transaction.on_commit(lambda: self.publish(event.event_type, event.payload()))

    def shutdown(self, wait: bool = True) -> None:
        self._executor.shutdown(wait=wait)
        self.bus.close()

    def _send(self, event_type: str, payload: dict) -> None:
        try:
            self.bus.publish(event_type, payload)
        except Exception as e:
            logger.warning(
                "notification_failed",
                extra={
                    "operation": event_type,
                    "order_id": payload.get("orderId"),
                    "error": str(e),
                },
            )


def build_event_bus(settings) -> EventBus:
    """Pick the bus from settings; Redis needs REDIS_URL."""
    backend = getattr(settings, "CAFFICO_EVENT_BUS", "memory")
    if backend == "redis":
        if not settings.REDIS_URL:
            logger.warning(
                "redis_not_configured",
                extra={"status": "falling back to in-memory event bus"},
            )
            return InMemoryEventBus()
        return RedisEventBus(settings.REDIS_URL, settings.CAFFICO_EVENT_CHANNEL)
    return InMemoryEventBus()


def build_fanout(settings) -> NotificationFanout:
    return NotificationFanout(
        build_event_bus(settings),
        max_workers=getattr(settings, "CAFFICO_NOTIFICATION_WORKERS", 2),
    )


def get_fanout() -> NotificationFanout:
    """Fan-out instance constructed by the app config at startup."""
    from django.apps import apps

    return apps.get_app_config("cafe").fanout
