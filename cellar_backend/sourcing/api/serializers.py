# sourcing/api/serializers.py

from rest_framework import serializers

from sourcing.models import LwinWine, Rfq, RfqItem, RfqPartner, RfqQuote
from sourcing.services.rfq_service import STRATEGY_LOWEST_PRICE, STRATEGIES


# ======================================================
# READ
# ======================================================


class RfqQuoteSerializer(serializers.ModelSerializer):
    partner_name = serializers.CharField(source="partner.name", read_only=True)

    class Meta:
        model = RfqQuote
        fields = [
            "id",
            "item",
            "partner",
            "partner_name",
            "quote_type",
            "quoted_vintage",
            "cost_price_per_case_usd",
            "currency",
            "case_config",
            "bottle_size",
            "available_quantity",
            "lead_time_days",
            "stock_location",
            "alternative_product_name",
            "notes",
            "is_selected",
            "created_at",
        ]
        read_only_fields = fields


class RfqItemSerializer(serializers.ModelSerializer):
    quotes = RfqQuoteSerializer(many=True, read_only=True)

    class Meta:
        model = RfqItem
        fields = [
            "id",
            "product_name",
            "producer",
            "vintage",
            "lwin",
            "quantity",
            "quantity_unit",
            "status",
            "selected_quote",
            "selected_at",
            "calculated_price_usd",
            "final_price_usd",
            "quotes",
        ]
        read_only_fields = fields


class PartnerRfqItemSerializer(serializers.ModelSerializer):
    """
    What an invited partner sees: the request only, never other quotes.
    """

    class Meta:
        model = RfqItem
        fields = ["id", "product_name", "producer", "vintage", "lwin", "quantity", "quantity_unit"]
        read_only_fields = fields


class RfqPartnerSerializer(serializers.ModelSerializer):
    partner_name = serializers.CharField(source="partner.name", read_only=True)

    class Meta:
        model = RfqPartner
        fields = [
            "id",
            "partner",
            "partner_name",
            "status",
            "viewed_at",
            "submitted_at",
            "quote_count",
            "partner_notes",
        ]
        read_only_fields = fields


class RfqSerializer(serializers.ModelSerializer):
    items = RfqItemSerializer(many=True, read_only=True)
    partners = RfqPartnerSerializer(many=True, read_only=True)

    class Meta:
        model = Rfq
        fields = [
            "id",
            "rfq_number",
            "name",
            "status",
            "response_deadline",
            "distributor_name",
            "notes",
            "sent_at",
            "finalized_at",
            "created_at",
            "items",
            "partners",
        ]
        read_only_fields = ["id", "rfq_number", "status", "sent_at", "finalized_at", "created_at"]


class PartnerRfqSerializer(serializers.ModelSerializer):
    rfq_id = serializers.UUIDField(source="rfq.id", read_only=True)
    rfq_number = serializers.CharField(source="rfq.rfq_number", read_only=True)
    name = serializers.CharField(source="rfq.name", read_only=True)
    rfq_status = serializers.CharField(source="rfq.status", read_only=True)
    response_deadline = serializers.DateTimeField(source="rfq.response_deadline", read_only=True)
    items = PartnerRfqItemSerializer(source="rfq.items", many=True, read_only=True)

    class Meta:
        model = RfqPartner
        fields = [
            "id",
            "rfq_id",
            "rfq_number",
            "name",
            "rfq_status",
            "response_deadline",
            "status",
            "submitted_at",
            "quote_count",
            "items",
        ]
        read_only_fields = fields


class LwinWineSerializer(serializers.ModelSerializer):
    class Meta:
        model = LwinWine
        fields = ["lwin", "display_name", "producer_name", "country", "region", "colour"]


# ======================================================
# COMMANDS
# ======================================================


class RfqItemWriteSerializer(serializers.Serializer):
    product_name = serializers.CharField(max_length=255)
    producer = serializers.CharField(max_length=255, required=False, allow_blank=True)
    vintage = serializers.CharField(max_length=10, required=False, allow_blank=True)
    lwin = serializers.CharField(max_length=18, required=False, allow_blank=True)
    quantity = serializers.IntegerField(min_value=1, default=1)
    quantity_unit = serializers.ChoiceField(choices=RfqItem.UNIT_CHOICES, default=RfqItem.UNIT_CASES)


class RfqCreateSerializer(serializers.Serializer):
    name = serializers.CharField(max_length=255)
    response_deadline = serializers.DateTimeField(required=False, allow_null=True)
    distributor_name = serializers.CharField(required=False, allow_blank=True)
    notes = serializers.CharField(required=False, allow_blank=True)
    items = RfqItemWriteSerializer(many=True, required=False)


class RfqItemsSerializer(serializers.Serializer):
    items = RfqItemWriteSerializer(many=True, allow_empty=False)


class RfqPartnersSerializer(serializers.Serializer):
    partner_ids = serializers.ListField(child=serializers.UUIDField(), allow_empty=False)


class QuoteWriteSerializer(serializers.Serializer):
    item_id = serializers.UUIDField()
    quote_type = serializers.ChoiceField(choices=RfqQuote.TYPE_CHOICES, default=RfqQuote.TYPE_EXACT)
    quoted_vintage = serializers.CharField(max_length=10, required=False, allow_blank=True)
    cost_price_per_case_usd = serializers.DecimalField(
        max_digits=14, decimal_places=2, min_value=0, required=False, allow_null=True
    )
    currency = serializers.CharField(max_length=3, required=False)
    case_config = serializers.IntegerField(min_value=1, required=False, allow_null=True)
    bottle_size = serializers.CharField(max_length=20, required=False, allow_blank=True)
    available_quantity = serializers.IntegerField(min_value=0, required=False, allow_null=True)
    lead_time_days = serializers.IntegerField(min_value=0, required=False, allow_null=True)
    stock_location = serializers.CharField(required=False, allow_blank=True)
    alternative_product_name = serializers.CharField(required=False, allow_blank=True)
    notes = serializers.CharField(required=False, allow_blank=True)


class SubmitQuotesSerializer(serializers.Serializer):
    rfq_id = serializers.UUIDField()
    quotes = QuoteWriteSerializer(many=True, allow_empty=False)
    partner_notes = serializers.CharField(required=False, allow_blank=True)


class SelectQuoteSerializer(serializers.Serializer):
    item_id = serializers.UUIDField()
    quote_id = serializers.UUIDField()


class AutoSelectSerializer(serializers.Serializer):
    strategy = serializers.ChoiceField(choices=sorted(STRATEGIES), default=STRATEGY_LOWEST_PRICE)
    partner_id = serializers.UUIDField(required=False, allow_null=True)


class MarkItemSerializer(serializers.Serializer):
    status = serializers.ChoiceField(choices=[RfqItem.STATUS_SELF_SOURCED, RfqItem.STATUS_UNSOURCEABLE])


class AdjustPriceSerializer(serializers.Serializer):
    final_price_usd = serializers.DecimalField(max_digits=14, decimal_places=2, min_value=0)


class ProfitSerializer(serializers.Serializer):
    sell_prices = serializers.DictField(
        child=serializers.DecimalField(max_digits=14, decimal_places=2, min_value=0),
        help_text="{item_id: sell price per case USD}",
    )
