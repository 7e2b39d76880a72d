"""
GraphQL view with idempotency and logging support.
"""
import hashlib
import json
import logging
from uuid import uuid4

from ariadne import graphql_sync
from django.db import IntegrityError
from django.http import JsonResponse
from django.views.decorators.csrf import csrf_exempt
from django.views.decorators.http import require_http_methods

from cafe.api.middleware import ErrorHandler
from cafe.api.schema import schema
from cafe.infra.identity import resolve_identity
from cafe.infra.models import IdempotencyKey
from cafe.infra.pii_masker import mask_pii_in_dict

logger = logging.getLogger(__name__)

# Mutations whose responses are replayed for a repeated Idempotency-Key
IDEMPOTENT_MUTATIONS = {
    "submitCustomerOrder": "SUBMIT_CUSTOMER_ORDER",
    "createManualOrder": "CREATE_MANUAL_ORDER",
}


class CafeGraphQLView:
    """GraphQL view with idempotency and structured logging."""

    def dispatch(self, request, *args, **kwargs):
        """Handle GraphQL request with idempotency."""
        request_id = request.headers.get("X-Request-ID") or str(uuid4())
        idempotency_key = request.headers.get("Idempotency-Key")
        identity = resolve_identity(request)

        logger.info(
            "graphql_request",
            extra={
                "request_id": request_id,
                "staff_id": str(identity.staff_id) if identity else None,
                "idempotency_key": idempotency_key[:8] + "..." if idempotency_key else None,
                "operation": "graphql",
            },
        )

        if request.method == "GET":
            return JsonResponse({"message": "GraphQL endpoint. Use POST for queries."})

        try:
            data = json.loads(request.body)
        except (json.JSONDecodeError, UnicodeDecodeError):
            return JsonResponse(
                {"error": {"code": "VALIDATION_ERROR", "message": "Invalid JSON"}},
                status=400,
            )
        if not isinstance(data, dict):
            return JsonResponse(
                {"error": {"code": "VALIDATION_ERROR", "message": "Invalid JSON"}},
                status=400,
            )

        operation = self._extract_operation(data.get("query") or "")
        if idempotency_key and operation:
            response = self._dispatch_idempotent(
                request, data, identity, request_id, idempotency_key, operation
            )
        else:
            response = self._execute(request, data, identity, request_id)

        logger.info(
            "graphql_response",
            extra={
                "request_id": request_id,
                "status": response.status_code,
            },
        )
        return response

    def _dispatch_idempotent(self, request, data, identity, request_id, idempotency_key, operation):
        request_hash = self._create_request_hash(data.get("query") or "", data.get("variables") or {})

        existing = IdempotencyKey.objects.filter(key=idempotency_key, operation=operation).first()
        if existing:
            if existing.request_hash == request_hash:
                logger.info(
                    "idempotent_request_cached",
                    extra={
                        "request_id": request_id,
                        "idempotency_key": idempotency_key,
                        "operation": operation,
                    },
                )
                return JsonResponse(existing.response_payload, safe=False)

            logger.warning(
                "idempotency_key_conflict",
                extra={
                    "request_id": request_id,
                    "idempotency_key": idempotency_key,
                    "operation": operation,
                },
            )
            return JsonResponse(
                {
                    "error": {
                        "code": "DUPLICATE_REQUEST",
                        "message": "Idempotency key already used with different request",
                    }
                },
                status=409,
            )

        response = self._execute(request, data, identity, request_id)
        response_data = json.loads(response.content)
        if response.status_code == 200 and self._succeeded(response_data):
            try:
                IdempotencyKey.objects.create(
                    key=idempotency_key,
                    operation=operation,
                    request_hash=request_hash,
                    response_payload=response_data,
                )
            except IntegrityError:
                # A concurrent request with the same key stored its response first
                logger.warning(
                    "idempotency_key_race",
                    extra={
                        "request_id": request_id,
                        "idempotency_key": idempotency_key,
                        "operation": operation,
                    },
                )
        return response

    def _execute(self, request, data, identity, request_id):
        """Run the GraphQL operation."""
        logger.debug(
            "graphql_variables",
            extra={
                "request_id": request_id,
                "customer": mask_pii_in_dict(data.get("variables") or {}),
            },
        )
        try:
            success, result = graphql_sync(
                schema,
                data,
                context_value={"request": request, "identity": identity, "request_id": request_id},
            )
        except Exception as e:
            return ErrorHandler.handle_error(e)

        status_code = 200 if success else 400
        return JsonResponse(result, status=status_code)

    def _create_request_hash(self, query: str, variables: dict) -> str:
        """Create hash of request for deduplication."""
        content = json.dumps({"query": query, "variables": variables}, sort_keys=True)
        return hashlib.sha256(content.encode()).hexdigest()

    def _extract_operation(self, query: str) -> str | None:
        """Idempotent operation named in a mutation document, if any."""
        if not query.lstrip().startswith("mutation"):
            return None
        for field_name, operation in IDEMPOTENT_MUTATIONS.items():
            if field_name in query:
                return operation
        return None

    def _succeeded(self, response_data: dict) -> bool:
        if response_data.get("errors"):
            return False
        payloads = (response_data.get("data") or {}).values()
        return bool(payloads) and all(payload and payload.get("success") for payload in payloads)


@csrf_exempt
@require_http_methods(["GET", "POST"])
def graphql_view(request):
    """GraphQL endpoint."""
    view = CafeGraphQLView()
    return view.dispatch(request)
