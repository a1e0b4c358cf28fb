# wms/api/serializers.py

from rest_framework import serializers

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


# ======================================================
# READ / CRUD
# ======================================================


class LocationSerializer(serializers.ModelSerializer):
    class Meta:
        model = Location
        fields = [
            "id",
            "location_code",
            "location_type",
            "aisle",
            "bay",
            "level",
            "capacity_cases",
            "requires_forklift",
            "is_active",
            "notes",
            "created_at",
            "updated_at",
        ]
        read_only_fields = ["id", "created_at", "updated_at"]


class StockSerializer(serializers.ModelSerializer):
    location_code = serializers.CharField(source="location.location_code", read_only=True)
    owner_name = serializers.CharField(source="owner.name", read_only=True)

    class Meta:
        model = Stock
        fields = [
            "id",
            "location",
            "location_code",
            "owner",
            "owner_name",
            "lwin18",
            "product_name",
            "producer",
            "vintage",
            "bottle_size",
            "case_config",
            "lot_number",
            "quantity_cases",
            "reserved_cases",
            "available_cases",
            "sales_arrangement",
            "consignment_commission_percent",
            "received_at",
            "shipment",
            "expiry_date",
            "is_perishable",
            "created_at",
            "updated_at",
        ]
        read_only_fields = fields


class StockMovementSerializer(serializers.ModelSerializer):
    from_location_code = serializers.CharField(source="from_location.location_code", read_only=True, default=None)
    to_location_code = serializers.CharField(source="to_location.location_code", read_only=True, default=None)

    class Meta:
        model = StockMovement
        fields = [
            "id",
            "movement_number",
            "movement_type",
            "lwin18",
            "product_name",
            "quantity_cases",
            "from_location",
            "from_location_code",
            "to_location",
            "to_location_code",
            "from_owner",
            "to_owner",
            "lot_number",
            "order_type",
            "order_id",
            "reason_code",
            "notes",
            "performed_by",
            "performed_at",
        ]
        read_only_fields = fields


class StockReservationSerializer(serializers.ModelSerializer):
    class Meta:
        model = StockReservation
        fields = [
            "id",
            "stock",
            "order_type",
            "order_id",
            "order_number",
            "order_item_id",
            "lwin18",
            "product_name",
            "quantity_cases",
            "status",
            "created_at",
            "released_at",
            "fulfilled_at",
        ]
        read_only_fields = fields


class PickListItemSerializer(serializers.ModelSerializer):
    suggested_location_code = serializers.CharField(
        source="suggested_location.location_code", read_only=True, default=None
    )

    class Meta:
        model = PickListItem
        fields = [
            "id",
            "order_item_id",
            "lwin18",
            "product_name",
            "quantity_cases",
            "suggested_location",
            "suggested_location_code",
            "picked_quantity",
            "picked_from_location",
            "is_picked",
            "picked_at",
            "picked_by",
        ]
        read_only_fields = fields


class PickListSerializer(serializers.ModelSerializer):
    items = PickListItemSerializer(many=True, read_only=True)

    class Meta:
        model = PickList
        fields = [
            "id",
            "pick_list_number",
            "order_type",
            "order_id",
            "order_number",
            "status",
            "total_items",
            "picked_items",
            "assigned_to",
            "notes",
            "created_at",
            "started_at",
            "completed_at",
            "items",
        ]
        read_only_fields = fields


class CycleCountItemSerializer(serializers.ModelSerializer):
    class Meta:
        model = CycleCountItem
        fields = [
            "id",
            "stock",
            "lwin18",
            "product_name",
            "expected_quantity",
            "counted_quantity",
            "discrepancy",
            "counted_at",
            "counted_by",
        ]
        read_only_fields = fields


class CycleCountSerializer(serializers.ModelSerializer):
    location_code = serializers.CharField(source="location.location_code", read_only=True)
    items = CycleCountItemSerializer(many=True, read_only=True)

    class Meta:
        model = CycleCount
        fields = [
            "id",
            "count_number",
            "location",
            "location_code",
            "status",
            "notes",
            "created_by",
            "created_at",
            "completed_at",
            "reconciled_at",
            "reconciled_by",
            "items",
        ]
        read_only_fields = fields


class DispatchBatchOrderSerializer(serializers.ModelSerializer):
    class Meta:
        model = DispatchBatchOrder
        fields = ["id", "order_type", "order_id", "order_number", "case_count", "added_at"]
        read_only_fields = fields


class DispatchBatchSerializer(serializers.ModelSerializer):
    distributor_name = serializers.CharField(source="distributor.name", read_only=True)
    orders = DispatchBatchOrderSerializer(many=True, read_only=True)

    class Meta:
        model = DispatchBatch
        fields = [
            "id",
            "batch_number",
            "distributor",
            "distributor_name",
            "status",
            "order_count",
            "total_cases",
            "notes",
            "created_by",
            "created_at",
            "dispatched_at",
            "delivered_at",
            "orders",
        ]
        read_only_fields = fields


# ======================================================
# COMMANDS
# ======================================================


class PickListLineSerializer(serializers.Serializer):
    order_item_id = serializers.CharField(required=False, allow_blank=True)
    lwin18 = serializers.CharField(max_length=18)
    product_name = serializers.CharField(required=False, allow_blank=True)
    quantity_cases = serializers.IntegerField(min_value=1)


class PickListCreateSerializer(serializers.Serializer):
    order_type = serializers.ChoiceField(choices=StockReservation.ORDER_TYPE_CHOICES)
    order_id = serializers.CharField(max_length=64)
    order_number = serializers.CharField(required=False, allow_blank=True)
    items = PickListLineSerializer(many=True, allow_empty=False)
    assigned_to = serializers.UUIDField(required=False, allow_null=True)
    notes = serializers.CharField(required=False, allow_blank=True)


class PickSerializer(serializers.Serializer):
    item_id = serializers.UUIDField()
    location_id = serializers.UUIDField()
    picked_quantity = serializers.IntegerField(min_value=1, required=False)


class TransferSerializer(serializers.Serializer):
    stock_id = serializers.UUIDField()
    to_location_id = serializers.UUIDField()
    quantity_cases = serializers.IntegerField(min_value=1)
    notes = serializers.CharField(required=False, allow_blank=True)
    putaway = serializers.BooleanField(default=False)


class OwnershipTransferSerializer(serializers.Serializer):
    stock_id = serializers.UUIDField()
    new_owner_id = serializers.UUIDField()
    quantity_cases = serializers.IntegerField(min_value=1, required=False)
    sales_arrangement = serializers.ChoiceField(choices=Stock.ARRANGEMENT_CHOICES, required=False)
    commission_percent = serializers.DecimalField(max_digits=5, decimal_places=2, required=False)
    notes = serializers.CharField(required=False, allow_blank=True)


class ReceiveLineSerializer(serializers.Serializer):
    lwin18 = serializers.CharField(max_length=18)
    product_name = serializers.CharField(required=False, allow_blank=True)
    producer = serializers.CharField(required=False, allow_blank=True)
    vintage = serializers.CharField(required=False, allow_blank=True)
    bottle_size = serializers.CharField(required=False)
    case_config = serializers.IntegerField(min_value=1, required=False)
    lot_number = serializers.CharField(required=False, allow_blank=True)
    quantity_cases = serializers.IntegerField(min_value=1)
    sales_arrangement = serializers.ChoiceField(choices=Stock.ARRANGEMENT_CHOICES, required=False)
    expiry_date = serializers.DateField(required=False, allow_null=True)
    is_perishable = serializers.BooleanField(required=False)


class ReceiveSerializer(serializers.Serializer):
    location_id = serializers.UUIDField()
    owner_id = serializers.UUIDField()
    shipment_id = serializers.UUIDField(required=False, allow_null=True)
    lines = ReceiveLineSerializer(many=True, allow_empty=False)


class AdjustSerializer(serializers.Serializer):
    stock_id = serializers.UUIDField()
    new_quantity = serializers.IntegerField(min_value=0)
    reason_code = serializers.CharField(required=False, allow_blank=True)
    notes = serializers.CharField(required=False, allow_blank=True)


class CycleCountCreateSerializer(serializers.Serializer):
    location_id = serializers.UUIDField()
    notes = serializers.CharField(required=False, allow_blank=True)


class CountLineSerializer(serializers.Serializer):
    item_id = serializers.UUIDField()
    counted_quantity = serializers.IntegerField(min_value=0)


class RecordCountsSerializer(serializers.Serializer):
    counts = CountLineSerializer(many=True, allow_empty=False)


class ReconcileSerializer(serializers.Serializer):
    approvals = serializers.ListField(child=serializers.UUIDField(), required=False, allow_null=True)


class DispatchBatchCreateSerializer(serializers.Serializer):
    distributor_id = serializers.UUIDField()
    notes = serializers.CharField(required=False, allow_blank=True)


class BatchOrdersSerializer(serializers.Serializer):
    order_ids = serializers.ListField(child=serializers.UUIDField(), allow_empty=False)


class BatchOrderRemoveSerializer(serializers.Serializer):
    order_id = serializers.UUIDField()


class BatchStatusSerializer(serializers.Serializer):
    status = serializers.ChoiceField(choices=DispatchBatch.STATUS_CHOICES)


class QuickDispatchSerializer(serializers.Serializer):
    distributor_id = serializers.UUIDField()
    order_ids = serializers.ListField(child=serializers.UUIDField(), allow_empty=False)
    notes = serializers.CharField(required=False, allow_blank=True)
