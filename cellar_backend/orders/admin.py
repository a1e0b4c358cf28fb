# orders/admin.py

from django.contrib import admin

from orders.models import (
    PrivateClientContact,
    PrivateClientOrder,
    PrivateClientOrderActivityLog,
    PrivateClientOrderItem,
)


class PrivateClientOrderItemInline(admin.TabularInline):
    model = PrivateClientOrderItem
    extra = 0
    readonly_fields = ("line_total_usd", "stock_confirmed_at")


@admin.register(PrivateClientOrder)
class PrivateClientOrderAdmin(admin.ModelAdmin):
    list_display = ("order_number", "partner", "distributor", "client_name", "status", "total_usd", "created_at")
    list_filter = ("status", "partner", "distributor")
    search_fields = ("order_number", "client_name", "client_email", "payment_reference")
    readonly_fields = (
        "order_number",
        "subtotal_usd",
        "duty_usd",
        "logistics_usd",
        "vat_usd",
        "total_usd",
        "total_aed",
        "created_at",
        "updated_at",
    )
    inlines = [PrivateClientOrderItemInline]


@admin.register(PrivateClientContact)
class PrivateClientContactAdmin(admin.ModelAdmin):
    list_display = ("name", "partner", "email", "phone", "city_drinks_verified_at")
    search_fields = ("name", "email", "phone")
    list_filter = ("partner",)


@admin.register(PrivateClientOrderActivityLog)
class PrivateClientOrderActivityLogAdmin(admin.ModelAdmin):
    list_display = ("order", "action", "previous_status", "new_status", "user", "created_at")
    list_filter = ("action",)

    def has_change_permission(self, request, obj=None):
        return False

    def has_delete_permission(self, request, obj=None):
        return False
