# quotes/api/serializers.py

from rest_framework import serializers

from quotes.models import Quote, QuoteActivityLog, QuoteLineItem
from quotes.services.b2b_calculator import MARGIN_TYPES


class QuoteLineItemSerializer(serializers.ModelSerializer):
    effective_quantity = serializers.IntegerField(read_only=True)

    class Meta:
        model = QuoteLineItem
        fields = [
            "id",
            "product_key",
            "product_name",
            "producer",
            "vintage",
            "lwin",
            "bottle_size",
            "bottles_per_case",
            "quantity",
            "confirmed_quantity",
            "effective_quantity",
            "original_price_usd",
            "base_price_usd",
            "line_total_usd",
            "admin_notes",
            "admin_alternatives",
            "accepted_alternative",
        ]
        read_only_fields = fields


class LineItemWriteSerializer(serializers.Serializer):
    product_key = serializers.CharField(max_length=64, required=False, allow_blank=True)
    product_name = serializers.CharField(max_length=255)
    producer = serializers.CharField(max_length=255, required=False, allow_blank=True)
    vintage = serializers.CharField(max_length=10, required=False, allow_blank=True)
    lwin = serializers.CharField(max_length=18, required=False, allow_blank=True)
    bottle_size = serializers.CharField(max_length=20, required=False)
    bottles_per_case = serializers.IntegerField(min_value=1, required=False)
    quantity = serializers.IntegerField(min_value=1)
    price_per_case_usd = serializers.DecimalField(max_digits=14, decimal_places=2, min_value=0)

    def validate(self, attrs):
        # blank keys fall back to lwin / product name in the service
        if not attrs.get("product_key"):
            attrs.pop("product_key", None)
        return attrs


class QuoteActivityLogSerializer(serializers.ModelSerializer):
    class Meta:
        model = QuoteActivityLog
        fields = ["id", "action", "previous_status", "new_status", "notes", "metadata", "user", "created_at"]
        read_only_fields = fields


class QuoteSerializer(serializers.ModelSerializer):
    partner_name = serializers.CharField(source="partner.name", read_only=True, default=None)
    created_by_email = serializers.EmailField(source="created_by.email", read_only=True)
    line_items = QuoteLineItemSerializer(many=True, read_only=True)

    class Meta:
        model = Quote
        fields = [
            "id",
            "quote_number",
            "status",
            "name",
            "client_name",
            "customer_type",
            "notes",
            "partner",
            "partner_name",
            "created_by",
            "created_by_email",
            "transfer_cost_usd",
            "import_tax_percent",
            "margin_type",
            "margin_value",
            "total_usd",
            "total_aed",
            "revision_reason",
            "delivery_lead_time",
            "cc_confirmation_notes",
            "payment_reference",
            "po_number",
            "submitted_at",
            "confirmed_at",
            "paid_at",
            "po_submitted_at",
            "po_confirmed_at",
            "delivered_at",
            "line_items",
            "created_at",
            "updated_at",
        ]
        read_only_fields = [
            "id",
            "quote_number",
            "status",
            "partner",
            "created_by",
            "total_usd",
            "total_aed",
            "revision_reason",
            "delivery_lead_time",
            "cc_confirmation_notes",
            "payment_reference",
            "po_number",
            "submitted_at",
            "confirmed_at",
            "paid_at",
            "po_submitted_at",
            "po_confirmed_at",
            "delivered_at",
            "created_at",
            "updated_at",
        ]


class QuoteCreateSerializer(serializers.ModelSerializer):
    items = LineItemWriteSerializer(many=True, required=False)

    class Meta:
        model = Quote
        fields = [
            "name",
            "client_name",
            "customer_type",
            "notes",
            "transfer_cost_usd",
            "import_tax_percent",
            "margin_type",
            "margin_value",
            "items",
        ]


# -------------------------
# command payloads
# -------------------------
class ReasonSerializer(serializers.Serializer):
    reason = serializers.CharField()


class AlternativeSerializer(serializers.Serializer):
    product_name = serializers.CharField(max_length=255)
    price_per_case = serializers.DecimalField(max_digits=14, decimal_places=2, min_value=0)
    bottles_per_case = serializers.IntegerField(min_value=1, required=False)
    bottle_size = serializers.CharField(max_length=20, required=False)
    quantity_available = serializers.IntegerField(min_value=0)


class LineAdjustmentSerializer(serializers.Serializer):
    line_item_id = serializers.UUIDField()
    confirmed_quantity = serializers.IntegerField(min_value=0, required=False)
    admin_notes = serializers.CharField(required=False, allow_blank=True)
    admin_alternatives = AlternativeSerializer(many=True, required=False)


class ConfirmQuoteSerializer(serializers.Serializer):
    delivery_lead_time = serializers.CharField(max_length=100)
    notes = serializers.CharField(required=False, allow_blank=True)
    adjustments = LineAdjustmentSerializer(many=True, required=False)


class AcceptAlternativeSerializer(serializers.Serializer):
    line_item_id = serializers.UUIDField()
    alternative_index = serializers.IntegerField(min_value=-1)


class PaymentSerializer(serializers.Serializer):
    reference = serializers.CharField(required=False, allow_blank=True)


class PurchaseOrderSerializer(serializers.Serializer):
    po_number = serializers.CharField(max_length=100)


class B2BCalculatorSerializer(serializers.Serializer):
    in_bond_price_usd = serializers.DecimalField(max_digits=14, decimal_places=2, min_value=0)
    transfer_cost_usd = serializers.DecimalField(max_digits=12, decimal_places=2, min_value=0, default=200)
    import_tax_percent = serializers.DecimalField(max_digits=6, decimal_places=2, min_value=0, default=20)
    margin_type = serializers.ChoiceField(choices=sorted(MARGIN_TYPES), default="percentage")
    margin_value = serializers.DecimalField(max_digits=12, decimal_places=2, min_value=0, default=15)
