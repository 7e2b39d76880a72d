from django.contrib import admin

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


@admin.register(AdminUserORM)
class AdminUserAdmin(admin.ModelAdmin):
    list_display = ("id", "email", "role", "is_active", "created_at")
    list_filter = ("role", "is_active")
    search_fields = ("email",)


class MenuItemInline(admin.TabularInline):
    model = MenuItemORM
    extra = 0


@admin.register(ProductORM)
class ProductAdmin(admin.ModelAdmin):
    list_display = ("id", "name", "category", "is_available", "created_at")
    list_filter = ("category", "is_available")
    search_fields = ("name",)
    inlines = (MenuItemInline,)


@admin.register(MenuItemORM)
class MenuItemAdmin(admin.ModelAdmin):
    list_display = ("id", "product", "serving_type", "price", "stock_quantity", "is_available")
    list_filter = ("serving_type", "is_available")
    list_editable = ("stock_quantity", "is_available")
    search_fields = ("product__name",)


class OrderItemInline(admin.TabularInline):
    model = OrderItemORM
    extra = 0
    can_delete = False
    readonly_fields = (
        "product", "product_name", "category", "serving_type",
        "quantity", "price_at_purchase", "customization",
    )


@admin.register(OrderORM)
class OrderAdmin(admin.ModelAdmin):
    list_display = ("id", "customer_name", "status", "payment_status", "payment_method", "total_amount", "created_at")
    list_filter = ("status", "payment_status", "payment_method", "order_source", "created_at")
    search_fields = ("id", "customer_name", "gateway_order_id", "gateway_payment_id")
    # Lifecycle fields only change through the order and payment services
    readonly_fields = (
        "id", "total_amount", "payment_method", "payment_status", "status", "order_source",
        "gateway_order_id", "gateway_payment_id", "taken_by", "processed_by",
    )
    inlines = (OrderItemInline,)


@admin.register(ExperienceRatingORM)
class ExperienceRatingAdmin(admin.ModelAdmin):
    list_display = ("id", "order", "rating", "created_at")
    list_filter = ("rating", "created_at")


@admin.register(ProductRatingORM)
class ProductRatingAdmin(admin.ModelAdmin):
    list_display = ("id", "order", "product_name", "rating", "created_at")
    list_filter = ("rating", "created_at")


@admin.register(IdempotencyKey)
class IdempotencyAdmin(admin.ModelAdmin):
    list_display = ("key", "operation", "created_at")
    list_filter = ("operation", "created_at")
    search_fields = ("key",)
