"""
GraphQL schema definition using Ariadne.
"""
from ariadne import (
    QueryType,
    MutationType,
    make_executable_schema,
    ScalarType,
    load_schema_from_path,
)
from decimal import Decimal
from uuid import UUID
from datetime import datetime
from pathlib import Path

from cafe.domain.order import Order
from cafe.domain.results import Result
from cafe.services import CatalogService, OrderService, PaymentReconciliationService, RatingService

# Load schema from .graphql files
SCHEMAS_DIR = Path(__file__).parent / "schemas"
type_defs = "\n".join([
    load_schema_from_path(SCHEMAS_DIR / "common.graphql"),
    load_schema_from_path(SCHEMAS_DIR / "query.graphql"),
    load_schema_from_path(SCHEMAS_DIR / "mutation.graphql"),
])

query = QueryType()
mutation = MutationType()


def acting_staff_id(info):
    """Staff id from the admin session cookie, None for anonymous callers."""
    identity = info.context.get("identity")
    return identity.staff_id if identity else None


def serialize_order(order: Order) -> dict:
    return {
        "id": order.id,
        "customer": order.customer.as_dict(),
        "totalAmount": order.total_amount,
        "paymentMethod": order.payment_method.value,
        "paymentStatus": order.payment_status.value,
        "status": order.status.value,
        "orderSource": order.order_source.value,
        "gatewayOrderId": order.gateway_order_id,
        "gatewayPaymentId": order.gateway_payment_id,
        "takenById": order.taken_by_id,
        "processedById": order.processed_by_id,
        "createdAt": order.created_at,
        "updatedAt": order.updated_at,
        "items": [
            {
                "productId": item.product_id,
                "productName": item.product_name,
                "category": item.category.value,
                "servingType": item.serving_type.value,
                "quantity": item.quantity,
                "priceAtPurchase": item.price_at_purchase,
                "customization": item.customization.value,
                "subtotal": item.subtotal,
            }
            for item in order.items
        ],
    }


def serialize_product(product) -> dict:
    return {
        "id": product.id,
        "name": product.name,
        "category": product.category,
        "description": product.description,
        "imageHint": product.image_hint,
        "imageUrl": product.image_url,
        "menuItems": [
            {
                "id": menu_item.id,
                "servingType": menu_item.serving_type,
                "price": menu_item.price,
                "stockQuantity": menu_item.stock_quantity,
                "isAvailable": menu_item.is_available,
            }
            for menu_item in product.menu_items.all()
        ],
    }


def order_payload(result: Result) -> dict:
    payload = result.as_payload()
    if payload.get("order") is not None:
        payload["order"] = serialize_order(payload["order"])
    if payload.get("orders") is not None:
        payload["orders"] = [serialize_order(order) for order in payload["orders"]]
    if "already_paid" in payload:
        payload["alreadyPaid"] = payload.pop("already_paid")
    return payload


@query.field("menu")
def resolve_menu(_, info):
    payload = CatalogService().list_menu().as_payload()
    if payload.get("products") is not None:
        payload["products"] = [serialize_product(product) for product in payload["products"]]
    return payload


@query.field("order")
def resolve_order(_, info, id):
    return order_payload(OrderService().get_order(id))


@query.field("processableOrders")
def resolve_processable_orders(_, info):
    return order_payload(OrderService().list_processable_orders(acting_staff_id(info)))


@query.field("pendingCashOrders")
def resolve_pending_cash_orders(_, info):
    return order_payload(OrderService().list_pending_cash_orders(acting_staff_id(info)))


@mutation.field("submitCustomerOrder")
def resolve_submit_customer_order(_, info, input: dict):
    result = OrderService().submit_customer_order(
        customer=input["customer"],
        items=input["items"],
        payment_method=input["paymentMethod"],
    )
    return order_payload(result)


@mutation.field("createManualOrder")
def resolve_create_manual_order(_, info, input: dict):
    result = OrderService().create_manual_order(
        acting_staff_id(info),
        items=input["items"],
        payment_method=input["paymentMethod"],
        customer_name=input.get("customerName"),
        customer_phone=input.get("customerPhone"),
    )
    return order_payload(result)


@mutation.field("updateOrderStatus")
def resolve_update_order_status(_, info, orderId, status):
    return order_payload(OrderService().update_status(orderId, status, acting_staff_id(info)))


@mutation.field("confirmCashPayment")
def resolve_confirm_cash_payment(_, info, orderId):
    return order_payload(
        PaymentReconciliationService().confirm_cash_payment(orderId, acting_staff_id(info))
    )


@mutation.field("createGatewayOrder")
def resolve_create_gateway_order(_, info, orderId):
    payload = PaymentReconciliationService().create_gateway_order(orderId).as_payload()
    for snake, camel in (
        ("order_id", "orderId"),
        ("gateway_order_id", "gatewayOrderId"),
        ("key_id", "keyId"),
    ):
        if snake in payload:
            payload[camel] = payload.pop(snake)
    return payload


@mutation.field("verifyGatewayPayment")
def resolve_verify_gateway_payment(_, info, input: dict):
    result = PaymentReconciliationService().verify_gateway_payment(
        payment_id=input["paymentId"],
        gateway_order_id=input["gatewayOrderId"],
        signature=input["signature"],
        internal_order_id=input["internalOrderId"],
    )
    return order_payload(result)


@mutation.field("submitRatings")
def resolve_submit_ratings(_, info, input: dict):
    payload = RatingService().submit_ratings(
        order_id=input["orderId"],
        overall_rating=input["overallRating"],
        overall_comment=input.get("overallComment") or "",
        product_ratings=input.get("productRatings"),
    ).as_payload()
    if "order_id" in payload:
        payload["orderId"] = payload.pop("order_id")
    return payload


# Define custom scalars
decimal_scalar = ScalarType("Decimal")
uuid_scalar = ScalarType("UUID")
datetime_scalar = ScalarType("DateTime")
json_scalar = ScalarType("JSON")


@decimal_scalar.serializer
def serialize_decimal(value):
    """Serialize Decimal to string."""
    return str(value)


@decimal_scalar.value_parser
def parse_decimal_value(value):
    return Decimal(str(value))


@uuid_scalar.serializer
def serialize_uuid(value):
    return str(value)


@uuid_scalar.value_parser
def parse_uuid_value(value):
    if isinstance(value, UUID):
        return value
    return UUID(str(value))


@datetime_scalar.serializer
def serialize_datetime(value):
    """Serialize DateTime to ISO format string."""
    if isinstance(value, datetime):
        return value.isoformat()
    return str(value)


@json_scalar.serializer
def serialize_json(value):
    return value


# Create executable schema
schema = make_executable_schema(
    type_defs,
    query,
    mutation,
    datetime_scalar,
    decimal_scalar,
    uuid_scalar,
    json_scalar,
)
