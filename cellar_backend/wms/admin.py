# wms/admin.py

from django.contrib import admin

from wms.models import (
    CycleCount,
    CycleCountItem,
    DispatchBatch,
    DispatchBatchOrder,
    Location,
    PickList,
    PickListItem,
    Stock,
    StockMovement,
    StockReservation,
)


@admin.register(Location)
class LocationAdmin(admin.ModelAdmin):
    list_display = ("location_code", "location_type", "aisle", "bay", "level", "is_active")
    list_filter = ("location_type", "is_active")
    search_fields = ("location_code",)


@admin.register(Stock)
class StockAdmin(admin.ModelAdmin):
    list_display = (
        "lwin18",
        "product_name",
        "location",
        "owner",
        "quantity_cases",
        "reserved_cases",
        "available_cases",
        "expiry_date",
    )
    list_filter = ("sales_arrangement", "is_perishable", "owner")
    search_fields = ("lwin18", "product_name", "producer", "lot_number")
    # quantities change only through wms.services
    readonly_fields = ("quantity_cases", "reserved_cases", "available_cases")


@admin.register(StockMovement)
class StockMovementAdmin(admin.ModelAdmin):
    list_display = ("movement_number", "movement_type", "lwin18", "quantity_cases", "performed_at")
    list_filter = ("movement_type",)
    search_fields = ("movement_number", "lwin18", "order_id")

    def has_change_permission(self, request, obj=None):
        return False

    def has_delete_permission(self, request, obj=None):
        return False


@admin.register(StockReservation)
class StockReservationAdmin(admin.ModelAdmin):
    list_display = ("order_number", "order_type", "lwin18", "quantity_cases", "status", "created_at")
    list_filter = ("status", "order_type")
    search_fields = ("order_number", "order_id", "lwin18")


class PickListItemInline(admin.TabularInline):
    model = PickListItem
    extra = 0


@admin.register(PickList)
class PickListAdmin(admin.ModelAdmin):
    list_display = ("pick_list_number", "order_number", "status", "total_items", "picked_items", "created_at")
    list_filter = ("status",)
    inlines = [PickListItemInline]


class CycleCountItemInline(admin.TabularInline):
    model = CycleCountItem
    extra = 0


@admin.register(CycleCount)
class CycleCountAdmin(admin.ModelAdmin):
    list_display = ("count_number", "location", "status", "created_at", "reconciled_at")
    list_filter = ("status",)
    inlines = [CycleCountItemInline]


class DispatchBatchOrderInline(admin.TabularInline):
    model = DispatchBatchOrder
    extra = 0


@admin.register(DispatchBatch)
class DispatchBatchAdmin(admin.ModelAdmin):
    list_display = ("batch_number", "distributor", "status", "order_count", "total_cases", "dispatched_at")
    list_filter = ("status", "distributor")
    inlines = [DispatchBatchOrderInline]
