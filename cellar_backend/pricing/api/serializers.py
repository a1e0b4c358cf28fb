# pricing/api/serializers.py

from rest_framework import serializers

from pricing.models import ExchangeRate, PricingVariable
from pricing.services.pricing_engine import PRODUCT_SOURCES


class PCOCalculateSerializer(serializers.Serializer):
    supplier_price_usd = serializers.DecimalField(max_digits=14, decimal_places=2, min_value=0)
    is_bespoke = serializers.BooleanField(required=False, default=False)
    variables = serializers.DictField(
        child=serializers.DecimalField(max_digits=12, decimal_places=4),
        required=False,
        help_text="Admin-only bespoke overrides (ignored for partners).",
    )


class B2BCalculateSerializer(serializers.Serializer):
    supplier_price_usd = serializers.DecimalField(max_digits=14, decimal_places=2, min_value=0)


class PocketCellarCalculateSerializer(serializers.Serializer):
    supplier_price_usd = serializers.DecimalField(max_digits=14, decimal_places=2, min_value=0)
    product_source = serializers.ChoiceField(choices=sorted(PRODUCT_SOURCES))
    bottle_count = serializers.IntegerField(min_value=1, default=1)


class PricingVariableSerializer(serializers.ModelSerializer):
    class Meta:
        model = PricingVariable
        fields = ("id", "module", "key", "value", "updated_at")
        read_only_fields = ("id", "updated_at")
        # upsert semantics: set_module_variable replaces an existing row
        validators = []


class ExchangeRateSerializer(serializers.ModelSerializer):
    class Meta:
        model = ExchangeRate
        fields = ("id", "from_currency", "to_currency", "rate", "effective_date", "source")
        read_only_fields = ("id",)
