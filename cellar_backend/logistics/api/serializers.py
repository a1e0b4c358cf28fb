# logistics/api/serializers.py

from rest_framework import serializers

from logistics.models import Shipment, ShipmentActivityLog, ShipmentItem


class ShipmentItemSerializer(serializers.ModelSerializer):
    bottle_count = serializers.IntegerField(read_only=True)

    class Meta:
        model = ShipmentItem
        fields = [
            "id",
            "product_name",
            "lwin",
            "cases",
            "bottles_per_case",
            "total_bottles",
            "bottle_count",
            "gross_weight_kg",
            "product_cost_per_bottle",
            "declared_value_usd",
            "target_selling_price",
            "allocated_freight",
            "allocated_insurance",
            "allocated_handling",
            "allocated_government",
            "landed_cost_total",
            "landed_cost_per_bottle",
            "margin_percent",
        ]
        read_only_fields = [
            "id",
            "allocated_freight",
            "allocated_insurance",
            "allocated_handling",
            "allocated_government",
            "landed_cost_total",
            "landed_cost_per_bottle",
            "margin_percent",
        ]


class ShipmentActivityLogSerializer(serializers.ModelSerializer):
    class Meta:
        model = ShipmentActivityLog
        fields = ["id", "action", "previous_status", "new_status", "notes", "metadata", "user", "created_at"]
        read_only_fields = fields


class ShipmentSerializer(serializers.ModelSerializer):
    partner_name = serializers.CharField(source="partner.name", read_only=True, default=None)
    items = ShipmentItemSerializer(many=True, read_only=True)

    class Meta:
        model = Shipment
        fields = [
            "id",
            "shipment_number",
            "partner",
            "partner_name",
            "transport_mode",
            "status",
            "origin_country",
            "origin_city",
            "destination_country",
            "destination_city",
            "carrier_name",
            "tracking_number",
            "etd",
            "eta",
            "atd",
            "ata",
            "freight_cost_usd",
            "insurance_cost_usd",
            "origin_handling_usd",
            "destination_handling_usd",
            "customs_clearance_usd",
            "gov_fees_usd",
            "delivery_cost_usd",
            "other_costs_usd",
            "cost_allocation_method",
            "notes",
            "items",
            "created_at",
            "updated_at",
        ]
        read_only_fields = ["id", "shipment_number", "status", "atd", "ata", "created_at", "updated_at"]


class ShipmentStatusSerializer(serializers.Serializer):
    status = serializers.ChoiceField(choices=Shipment.STATUS_CHOICES)
    notes = serializers.CharField(required=False, allow_blank=True)
