"""
Error taxonomy for the order lifecycle and payment reconciliation core.
"""
from __future__ import annotations


class ErrorCategory:
    """Error category names (used by the API layer to pick a response)."""
    VALIDATION = "validation"
    AUTHORIZATION = "authorization"
    STATE_CONFLICT = "state_conflict"
    RESOURCE = "resource"
    SECURITY = "security"
    INTERNAL = "internal"


class CafeError(Exception):
    """Base class for every expected failure of a core operation."""
    code = "CAFE_ERROR"
    category = ErrorCategory.INTERNAL
    default_message = "Operation failed"

    def __init__(self, message: str | None = None, **details):
        self.message = message or self.default_message
        self.details = details
        super().__init__(self.message)


# Validation errors
class ValidationError(CafeError):
    code = "VALIDATION_ERROR"
    category = ErrorCategory.VALIDATION
    default_message = "Invalid input"


class EmptyOrder(ValidationError):
    code = "EMPTY_ORDER"
    default_message = "Order must contain at least one item."


class PaymentMethodNotAllowed(ValidationError):
    code = "PAYMENT_METHOD_NOT_ALLOWED"
    default_message = "Payment method is not allowed for this order source."


class InvalidRating(ValidationError):
    code = "INVALID_RATING"
    default_message = "Rating must be between 1 and 5."


# Authorization errors
class Unauthorized(CafeError):
    code = "UNAUTHORIZED"
    category = ErrorCategory.AUTHORIZATION
    default_message = "Unauthorized: Insufficient privileges."


# State-conflict errors
class OrderNotFound(CafeError):
    code = "ORDER_NOT_FOUND"
    category = ErrorCategory.STATE_CONFLICT
    default_message = "Order not found."


class InvalidTransition(CafeError):
    code = "INVALID_TRANSITION"
    category = ErrorCategory.STATE_CONFLICT
    default_message = "Status transition is not allowed."


class OrderNotEligible(CafeError):
    code = "ORDER_NOT_ELIGIBLE"
    category = ErrorCategory.STATE_CONFLICT
    default_message = "Order not found or already processed."


class OrderMismatch(CafeError):
    code = "ORDER_MISMATCH"
    category = ErrorCategory.STATE_CONFLICT
    default_message = "Order not found or gateway order id mismatch."


class AlreadyRated(CafeError):
    code = "ALREADY_RATED"
    category = ErrorCategory.STATE_CONFLICT
    default_message = "This order has already been rated."


# Resource errors
class InsufficientStock(CafeError):
    code = "INSUFFICIENT_STOCK"
    category = ErrorCategory.RESOURCE

    def __init__(self, item_name: str, available: int, requested: int):
        super().__init__(
            f"Insufficient stock for {item_name}. Available: {available}, requested: {requested}",
            item_name=item_name,
            available=available,
            requested=requested,
        )
        self.item_name = item_name
        self.available = available
        self.requested = requested


class MenuItemNotFound(CafeError):
    code = "MENU_ITEM_NOT_FOUND"
    category = ErrorCategory.RESOURCE

    def __init__(self, product_id, serving_type: str):
        super().__init__(
            f"Menu item {product_id}/{serving_type} not found",
            product_id=str(product_id),
            serving_type=serving_type,
        )


class MenuItemUnavailable(CafeError):
    code = "MENU_ITEM_UNAVAILABLE"
    category = ErrorCategory.RESOURCE

    def __init__(self, item_name: str):
        super().__init__(f"{item_name} is currently unavailable", item_name=item_name)


# Security errors
class SignatureMismatch(CafeError):
    code = "SIGNATURE_MISMATCH"
    category = ErrorCategory.SECURITY
    default_message = "Payment verification failed."


class InvalidWebhookSignature(CafeError):
    code = "INVALID_WEBHOOK_SIGNATURE"
    category = ErrorCategory.SECURITY
    default_message = "Invalid signature."


# Webhook processing
class OrderResolutionFailed(CafeError):
    code = "ORDER_RESOLUTION_FAILED"
    category = ErrorCategory.VALIDATION
    default_message = "Internal order ID missing in webhook payload."


class MalformedWebhook(CafeError):
    code = "MALFORMED_WEBHOOK"
    category = ErrorCategory.VALIDATION
    default_message = "Webhook body could not be parsed."


# Gateway / configuration
class GatewayNotConfigured(CafeError):
    code = "GATEWAY_NOT_CONFIGURED"
    category = ErrorCategory.INTERNAL
    default_message = "Payment gateway is not configured on the server."


class GatewayError(CafeError):
    code = "GATEWAY_ERROR"
    category = ErrorCategory.INTERNAL
    default_message = "Payment gateway request failed."
