"""
Post-order ratings from the storefront.
"""
from __future__ import annotations

import logging

from django.db import IntegrityError, transaction

from cafe.domain.errors import AlreadyRated, InvalidRating, OrderNotFound, ValidationError
from cafe.domain.results import returns_result
from cafe.infra.repositories import OrderRepository, RatingRepository, parse_uuid

logger = logging.getLogger(__name__)


def validate_rating(value, label: str) -> int:
    try:
        rating = int(value)
    except (TypeError, ValueError):
        raise InvalidRating(f"Rating for {label} must be between 1 and 5.") from None
    if rating < 1 or rating > 5:
        raise InvalidRating(f"Rating for {label} must be between 1 and 5.")
    return rating


class RatingService:

    def __init__(
        self,
        order_repo: OrderRepository | None = None,
        rating_repo: RatingRepository | None = None,
    ):
        self.order_repo = order_repo or OrderRepository()
        self.rating_repo = rating_repo or RatingRepository()

    @returns_result
    def submit_ratings(
        self,
        order_id,
        overall_rating,
        overall_comment: str = "",
        product_ratings: list[dict] | None = None,
    ) -> dict:
        """One overall rating plus optional per-product ratings, once per order."""
        overall = validate_rating(overall_rating, "overall experience")
        cleaned = []
        for entry in product_ratings or []:
            product_name = entry.get("productName") or ""
            product_id = parse_uuid(entry.get("productId"))
            if product_id is None:
                raise ValidationError("Invalid product id in ratings.", field="productId")
            cleaned.append({
                "product_id": product_id,
                "product_name": product_name,
                "rating": validate_rating(entry.get("rating"), product_name or "product"),
                "comment": entry.get("comment") or "",
            })

        order = self.order_repo.get_by_id(order_id)
        if order is None:
            raise OrderNotFound()
        if self.rating_repo.has_experience_rating(order.id):
            raise AlreadyRated()

        try:
            with transaction.atomic():
                self.rating_repo.create(order.id, overall, overall_comment, cleaned)
        except IntegrityError:
            # Lost a race with another submission for the same order
            raise AlreadyRated() from None

        logger.info(
            "ratings_submitted",
            extra={"order_id": str(order.id), "status": f"{overall}/5"},
        )
        return {"order_id": order.id}
