"""
Expose ORM models for Django's auto-discovery while keeping real definitions
under the infrastructure module.
"""

from cafe.infra.models import (
    AdminUserORM,
    ExperienceRatingORM,
    IdempotencyKey,
    MenuItemORM,
    OrderItemORM,
    OrderORM,
    ProductORM,
    ProductRatingORM,
)

__all__ = [
    "AdminUserORM",
    "ExperienceRatingORM",
    "IdempotencyKey",
    "MenuItemORM",
    "OrderItemORM",
    "OrderORM",
    "ProductORM",
    "ProductRatingORM",
]
