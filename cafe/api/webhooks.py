"""
Payment gateway webhook endpoint.

The gateway retries anything that is not a 2xx, so only genuinely bad
requests get a 4xx and duplicates are acknowledged with 200.
"""
import logging
from uuid import uuid4

from django.http import JsonResponse
from django.views.decorators.csrf import csrf_exempt
from django.views.decorators.http import require_http_methods

from cafe.api.middleware import ErrorHandler
from cafe.services import PaymentReconciliationService

logger = logging.getLogger(__name__)

SIGNATURE_HEADER = "X-Razorpay-Signature"


@csrf_exempt
@require_http_methods(["POST"])
def razorpay_webhook_view(request):
    """Gateway webhook (signature verified over the raw body)."""
    request_id = request.headers.get("X-Request-ID") or str(uuid4())
    result = PaymentReconciliationService().handle_gateway_webhook(
        request.body,
        request.headers.get(SIGNATURE_HEADER),
    )
    if not result.success:
        response = ErrorHandler.result_response(result)
        logger.info(
            "webhook_rejected",
            extra={
                "request_id": request_id,
                "error": result.error_code,
                "status": response.status_code,
            },
        )
        return response

    order = result.data.get("order")
    logger.info(
        "webhook_acknowledged",
        extra={
            "request_id": request_id,
            "event": result.data.get("event"),
            "order_id": str(order.id) if order else None,
        },
    )
    return JsonResponse({
        "status": "success",
        "processed": result.data["processed"],
        "duplicate": result.data["duplicate"],
    })
