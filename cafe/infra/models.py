from __future__ import annotations

from uuid import uuid4

from django.db import models
from django.db.models import Q


ROLE_CHOICES = (
    ("MANUAL_ORDER_TAKER", "Manual order taker"),
    ("ORDER_PROCESSOR", "Order processor"),
    ("BUSINESS_MANAGER", "Business manager"),
)

CATEGORY_CHOICES = (
    ("COFFEE", "Blended Cold Coffee"),
    ("SHAKES", "Shakes"),
)

SERVING_TYPE_CHOICES = (
    ("Cone", "Cone"),
    ("Cup", "Cup"),
)

CUSTOMIZATION_CHOICES = (
    ("normal", "Normal"),
    ("sweet", "Sweet"),
    ("bitter", "Bitter"),
)

OPERATION_TYPE = (
    ("SUBMIT_CUSTOMER_ORDER", "Customer checkout"),
    ("CREATE_MANUAL_ORDER", "Manual order entry"),
)


class TimeStampedModel(models.Model):
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        abstract = True


class AdminUserORM(TimeStampedModel):
    id = models.UUIDField(primary_key=True, default=uuid4, editable=False)
    email = models.EmailField(unique=True)
    role = models.CharField(max_length=32, choices=ROLE_CHOICES)
    is_active = models.BooleanField(default=True)

    class Meta:
        indexes = [
            models.Index(fields=("role",)),
        ]

    def __str__(self):
        return f"{self.email} ({self.role})"


class ProductORM(TimeStampedModel):
    id = models.UUIDField(primary_key=True, default=uuid4, editable=False)
    name = models.CharField(max_length=255)
    category = models.CharField(max_length=16, choices=CATEGORY_CHOICES)
    description = models.TextField(blank=True, default="")
    image_hint = models.CharField(max_length=255, blank=True, default="")
    image_url = models.CharField(max_length=500, blank=True, default="")
    is_available = models.BooleanField(default=True)

    class Meta:
        indexes = [
            models.Index(fields=("category", "is_available")),
        ]

    def __str__(self):
        return self.name


class MenuItemORM(TimeStampedModel):
    id = models.UUIDField(primary_key=True, default=uuid4, editable=False)
    product = models.ForeignKey(
        ProductORM,
        on_delete=models.CASCADE,
        related_name="menu_items",
    )
    serving_type = models.CharField(max_length=8, choices=SERVING_TYPE_CHOICES)
    price = models.DecimalField(max_digits=10, decimal_places=2)
    stock_quantity = models.PositiveIntegerField(default=0)
    is_available = models.BooleanField(default=True)

    class Meta:
        constraints = [
            models.UniqueConstraint(
                fields=("product", "serving_type"),
                name="unique_menu_item_per_serving_type",
            ),
            models.CheckConstraint(
                condition=Q(stock_quantity__gte=0),
                name="menu_item_stock_non_negative",
            ),
        ]

    def save(self, *args, **kwargs):
        # Out of stock always means unavailable; restocking does not re-enable.
        if self.stock_quantity <= 0:
            self.is_available = False
            update_fields = kwargs.get("update_fields")
            if update_fields is not None and "is_available" not in update_fields:
                kwargs["update_fields"] = list(update_fields) + ["is_available"]
        super().save(*args, **kwargs)

    def __str__(self):
        return f"{self.product.name} ({self.serving_type})"


class OrderORM(TimeStampedModel):

    STATUS_CHOICES = (
        ("AWAITING_PAYMENT_CONFIRMATION", "Awaiting payment confirmation"),
        ("PENDING_PREPARATION", "Pending preparation"),
        ("PREPARING", "Preparing"),
        ("READY_FOR_PICKUP", "Ready for pickup"),
        ("COMPLETED", "Completed"),
        ("CANCELLED", "Cancelled"),
    )

    PAYMENT_STATUS_CHOICES = (
        ("PENDING", "Pending"),
        ("PAID", "Paid"),
        ("FAILED", "Failed"),
        ("REFUNDED", "Refunded"),
    )

    PAYMENT_METHOD_CHOICES = (
        ("Cash", "Cash"),
        ("Razorpay", "Card (Razorpay)"),
        ("UPI", "UPI"),
    )

    SOURCE_CHOICES = (
        ("CUSTOMER_ONLINE", "Customer online"),
        ("STAFF_MANUAL", "Staff manual"),
    )

    id = models.UUIDField(primary_key=True, default=uuid4, editable=False)
    customer_name = models.CharField(max_length=255, null=True, blank=True)
    customer_phone = models.CharField(max_length=32, null=True, blank=True)
    customer_email = models.EmailField(null=True, blank=True)
    total_amount = models.DecimalField(max_digits=12, decimal_places=2)
    payment_method = models.CharField(max_length=16, choices=PAYMENT_METHOD_CHOICES)
    payment_status = models.CharField(max_length=16, choices=PAYMENT_STATUS_CHOICES)
    status = models.CharField(max_length=32, choices=STATUS_CHOICES)
    order_source = models.CharField(max_length=16, choices=SOURCE_CHOICES)
    gateway_order_id = models.CharField(max_length=64, null=True, blank=True)
    gateway_payment_id = models.CharField(max_length=64, null=True, blank=True)
    taken_by = models.ForeignKey(
        AdminUserORM,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="orders_taken",
    )
    processed_by = models.ForeignKey(
        AdminUserORM,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="orders_processed",
    )

    class Meta:
        indexes = [
            models.Index(fields=("payment_status", "status")),
            models.Index(fields=("gateway_order_id",)),
            models.Index(fields=("created_at",)),
        ]
        constraints = [
            models.CheckConstraint(
                condition=~Q(status="COMPLETED") | Q(payment_status="PAID"),
                name="completed_order_is_paid",
            ),
        ]


class OrderItemORM(TimeStampedModel):
    id = models.UUIDField(primary_key=True, default=uuid4, editable=False)
    order = models.ForeignKey(
        OrderORM,
        on_delete=models.CASCADE,
        related_name="items",
    )
    product = models.ForeignKey(
        ProductORM,
        on_delete=models.PROTECT,
        related_name="order_items",
    )
    product_name = models.CharField(max_length=255)
    category = models.CharField(max_length=16, choices=CATEGORY_CHOICES)
    serving_type = models.CharField(max_length=8, choices=SERVING_TYPE_CHOICES)
    quantity = models.PositiveIntegerField()
    price_at_purchase = models.DecimalField(max_digits=10, decimal_places=2)
    customization = models.CharField(max_length=16, choices=CUSTOMIZATION_CHOICES, default="normal")

    class Meta:
        indexes = [
            models.Index(fields=("order",)),
        ]


class ExperienceRatingORM(TimeStampedModel):
    id = models.UUIDField(primary_key=True, default=uuid4, editable=False)
    order = models.OneToOneField(
        OrderORM,
        on_delete=models.CASCADE,
        related_name="experience_rating",
    )
    rating = models.PositiveSmallIntegerField()
    comment = models.TextField(blank=True, default="")


class ProductRatingORM(TimeStampedModel):
    id = models.UUIDField(primary_key=True, default=uuid4, editable=False)
    order = models.ForeignKey(
        OrderORM,
        on_delete=models.CASCADE,
        related_name="product_ratings",
    )
    product_id = models.UUIDField()
    product_name = models.CharField(max_length=255)
    rating = models.PositiveSmallIntegerField()
    comment = models.TextField(blank=True, default="")

    class Meta:
        indexes = [
            models.Index(fields=("product_id",)),
        ]


class IdempotencyKey(TimeStampedModel):
    key = models.CharField(max_length=255)
    operation = models.CharField(max_length=32, choices=OPERATION_TYPE)
    request_hash = models.CharField(max_length=255)
    response_payload = models.JSONField()

    class Meta:
        unique_together = [("key", "operation")]
        indexes = [
            models.Index(fields=("request_hash",)),
        ]
