# logistics/admin.py

from django.contrib import admin

from logistics.models import Shipment, ShipmentActivityLog, ShipmentItem


class ShipmentItemInline(admin.TabularInline):
    model = ShipmentItem
    extra = 0
    readonly_fields = (
        "allocated_freight",
        "allocated_insurance",
        "allocated_handling",
        "allocated_government",
        "landed_cost_total",
        "landed_cost_per_bottle",
        "margin_percent",
    )


@admin.register(Shipment)
class ShipmentAdmin(admin.ModelAdmin):
    list_display = ("shipment_number", "partner", "transport_mode", "status", "etd", "eta", "created_at")
    list_filter = ("status", "transport_mode")
    search_fields = ("shipment_number", "tracking_number", "carrier_name")
    readonly_fields = ("shipment_number",)
    inlines = [ShipmentItemInline]


@admin.register(ShipmentActivityLog)
class ShipmentActivityLogAdmin(admin.ModelAdmin):
    list_display = ("shipment", "action", "previous_status", "new_status", "created_at")

    def has_change_permission(self, request, obj=None):
        return False

    def has_delete_permission(self, request, obj=None):
        return False
