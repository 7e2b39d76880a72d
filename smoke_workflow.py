#!/usr/bin/env python3
"""
Smoke script walking one cash order through the running service.

    python manage.py seed_menu
    python manage.py create_staff barista@example.com --role ORDER_PROCESSOR
    ADMIN_SESSION=<cookie value printed above> python smoke_workflow.py
"""
import json
import os
import sys
from uuid import uuid4

import requests

BASE_URL = os.environ.get("CAFFICO_URL", "http://localhost:8000") + "/graphql/"
COOKIE_NAME = os.environ.get("CAFFICO_ADMIN_SESSION_COOKIE", "admin_session")

ORDER_FIELDS = "success error { code message details } order { id status paymentStatus totalAmount }"


def graphql(query, variables=None, headers=None, cookies=None):
    """Execute GraphQL query."""
    payload = {"query": query}
    if variables:
        payload["variables"] = variables

    response = requests.post(BASE_URL, json=payload, headers=headers or {}, cookies=cookies or {}, timeout=10)

    print(f"Status: {response.status_code}")
    print(f"Response: {json.dumps(response.json(), indent=2)}")
    return response.json()


def main():
    admin_session = os.environ.get("ADMIN_SESSION")
    if not admin_session:
        print("ADMIN_SESSION is not set; run `manage.py create_staff` first")
        return 1
    staff_cookies = {COOKIE_NAME: admin_session}

    print("=" * 60)
    print("Caffico order workflow")
    print("=" * 60)

    print("\n[1] Menu")
    menu = graphql("{ menu { success products { id name menuItems { servingType price stockQuantity } } } }")
    products = menu["data"]["menu"]["products"]
    if not products:
        print("Menu is empty; run `manage.py seed_menu` first")
        return 1
    product = products[0]
    serving_type = product["menuItems"][0]["servingType"]

    print("\n[2] Customer checkout (cash), sent twice with the same Idempotency-Key")
    submit = f"""
        mutation Submit($input: CustomerOrderInput!) {{
            submitCustomerOrder(input: $input) {{ {ORDER_FIELDS} }}
        }}
    """
    variables = {
        "input": {
            "customer": {"name": "Smoke Test", "phone": "9876543210"},
            "items": [{"productId": product["id"], "servingType": serving_type, "quantity": 1}],
            "paymentMethod": "Cash",
        }
    }
    headers = {"Idempotency-Key": str(uuid4())}
    first = graphql(submit, variables, headers=headers)
    second = graphql(submit, variables, headers=headers)
    order = first["data"]["submitCustomerOrder"]["order"]
    if second["data"]["submitCustomerOrder"]["order"]["id"] != order["id"]:
        print("Idempotent retry created a second order")
        return 1

    print("\n[3] Pending cash queue")
    graphql("{ pendingCashOrders { success orders { id status } } }", cookies=staff_cookies)

    print("\n[4] Confirm cash payment")
    graphql(
        f"mutation Confirm($id: String!) {{ confirmCashPayment(orderId: $id) {{ {ORDER_FIELDS} }} }}",
        {"id": order["id"]},
        cookies=staff_cookies,
    )

    update = f"""
        mutation Update($id: String!, $status: OrderStatus!) {{
            updateOrderStatus(orderId: $id, status: $status) {{ {ORDER_FIELDS} }}
        }}
    """
    for step, status in enumerate(("PREPARING", "READY_FOR_PICKUP", "COMPLETED"), start=5):
        print(f"\n[{step}] Move to {status}")
        result = graphql(update, {"id": order["id"], "status": status}, cookies=staff_cookies)
        if not result["data"]["updateOrderStatus"]["success"]:
            return 1

    print("\n[8] Rate the order")
    graphql(
        """
        mutation Rate($input: RatingsInput!) {
            submitRatings(input: $input) { success error { code message } orderId }
        }
        """,
        {"input": {"orderId": order["id"], "overallRating": 5, "overallComment": "Smoke test"}},
    )

    print("\n" + "=" * 60)
    print("Workflow completed")
    print("=" * 60)
    return 0


if __name__ == "__main__":
    sys.exit(main())
