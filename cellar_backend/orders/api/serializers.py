# orders/api/serializers.py

from rest_framework import serializers

from orders.models import (
    PrivateClientContact,
    PrivateClientOrder,
    PrivateClientOrderActivityLog,
    PrivateClientOrderItem,
)


# ======================================================
# READ
# ======================================================


class PrivateClientContactSerializer(serializers.ModelSerializer):
    is_verified = serializers.BooleanField(read_only=True)

    class Meta:
        model = PrivateClientContact
        fields = [
            "id",
            "partner",
            "name",
            "email",
            "phone",
            "address",
            "notes",
            "is_verified",
            "city_drinks_verified_at",
            "city_drinks_account_name",
            "city_drinks_phone",
            "created_at",
        ]
        read_only_fields = [
            "partner",
            "city_drinks_verified_at",
            "city_drinks_account_name",
            "city_drinks_phone",
            "created_at",
        ]


class PrivateClientOrderItemSerializer(serializers.ModelSerializer):
    class Meta:
        model = PrivateClientOrderItem
        fields = [
            "id",
            "product_name",
            "producer",
            "vintage",
            "lwin",
            "bottle_size",
            "case_config",
            "quantity",
            "price_per_case_usd",
            "line_total_usd",
            "source",
            "stock_status",
            "stock_confirmed_at",
            "stock_expected_at",
            "stock_notes",
            "notes",
        ]
        read_only_fields = [
            "line_total_usd",
            "stock_status",
            "stock_confirmed_at",
            "stock_expected_at",
            "stock_notes",
        ]


class ActivityLogSerializer(serializers.ModelSerializer):
    user_email = serializers.EmailField(source="user.email", read_only=True, default=None)

    class Meta:
        model = PrivateClientOrderActivityLog
        fields = [
            "id",
            "action",
            "previous_status",
            "new_status",
            "notes",
            "metadata",
            "user",
            "user_email",
            "partner",
            "created_at",
        ]


class PrivateClientOrderSerializer(serializers.ModelSerializer):
    items = PrivateClientOrderItemSerializer(many=True, read_only=True)
    partner_name = serializers.CharField(source="partner.name", read_only=True)
    distributor_name = serializers.CharField(source="distributor.name", read_only=True, default=None)
    status_display = serializers.CharField(source="get_status_display", read_only=True)

    class Meta:
        model = PrivateClientOrder
        exclude = ["admin_notes"]
        read_only_fields = [f.name for f in PrivateClientOrder._meta.fields]


class AdminPrivateClientOrderSerializer(PrivateClientOrderSerializer):
    class Meta(PrivateClientOrderSerializer.Meta):
        exclude = None
        fields = "__all__"


# ======================================================
# COMMANDS
# ======================================================


class ItemWriteSerializer(serializers.Serializer):
    product_name = serializers.CharField(max_length=255)
    producer = serializers.CharField(max_length=255, required=False, allow_blank=True)
    vintage = serializers.CharField(max_length=10, required=False, allow_blank=True)
    lwin = serializers.CharField(max_length=18, required=False, allow_blank=True)
    bottle_size = serializers.CharField(max_length=20, required=False)
    case_config = serializers.IntegerField(min_value=1, required=False)
    quantity = serializers.IntegerField(min_value=1)
    price_per_case_usd = serializers.DecimalField(max_digits=14, decimal_places=2, min_value=0)
    source = serializers.ChoiceField(choices=PrivateClientOrderItem.SOURCE_CHOICES, required=False)
    notes = serializers.CharField(required=False, allow_blank=True)


class ItemUpdateSerializer(ItemWriteSerializer):
    product_name = serializers.CharField(max_length=255, required=False)
    quantity = serializers.IntegerField(min_value=1, required=False)
    price_per_case_usd = serializers.DecimalField(max_digits=14, decimal_places=2, min_value=0, required=False)


class OrderCreateSerializer(serializers.Serializer):
    partner_id = serializers.UUIDField(required=False, help_text="Admins only: order on behalf of a partner")
    client_id = serializers.UUIDField(required=False)
    client_name = serializers.CharField(max_length=255, required=False, allow_blank=True)
    client_email = serializers.EmailField(required=False, allow_blank=True)
    client_phone = serializers.CharField(max_length=50, required=False, allow_blank=True)
    client_address = serializers.CharField(required=False, allow_blank=True)
    notes = serializers.CharField(required=False, allow_blank=True)
    items = ItemWriteSerializer(many=True, required=False)

    def validate(self, attrs):
        if not attrs.get("client_id") and not (attrs.get("client_name") or "").strip():
            raise serializers.ValidationError("client_id or client_name is required")
        return attrs


class ReasonSerializer(serializers.Serializer):
    reason = serializers.CharField(required=False, allow_blank=True)


class NotesSerializer(serializers.Serializer):
    notes = serializers.CharField(required=False, allow_blank=True)


class ItemSourceSerializer(serializers.Serializer):
    item_id = serializers.UUIDField()
    source = serializers.ChoiceField(choices=PrivateClientOrderItem.SOURCE_CHOICES, required=False)
    stock_expected_at = serializers.DateTimeField(required=False, allow_null=True)


class ApproveSerializer(serializers.Serializer):
    item_sources = ItemSourceSerializer(many=True, required=False)
    notes = serializers.CharField(required=False, allow_blank=True)


class AssignDistributorSerializer(serializers.Serializer):
    distributor_id = serializers.UUIDField()


class PartnerVerificationSerializer(serializers.Serializer):
    response = serializers.ChoiceField(choices=PrivateClientOrder.PARTNER_VERIFICATION_CHOICES)
    notes = serializers.CharField(required=False, allow_blank=True)


class DistributorVerificationSerializer(serializers.Serializer):
    response = serializers.ChoiceField(choices=PrivateClientOrder.DISTRIBUTOR_VERIFICATION_CHOICES)
    notes = serializers.CharField(required=False, allow_blank=True)


class ResetVerificationSerializer(serializers.Serializer):
    target_status = serializers.ChoiceField(
        choices=[
            PrivateClientOrder.STATUS_AWAITING_PARTNER_VERIFICATION,
            PrivateClientOrder.STATUS_AWAITING_DISTRIBUTOR_VERIFICATION,
            PrivateClientOrder.STATUS_AWAITING_CLIENT_PAYMENT,
        ]
    )
    notes = serializers.CharField(required=False, allow_blank=True)


class DistributorStatusSerializer(serializers.Serializer):
    status = serializers.ChoiceField(
        choices=[
            PrivateClientOrder.STATUS_AWAITING_CLIENT_VERIFICATION,
            PrivateClientOrder.STATUS_AWAITING_CLIENT_PAYMENT,
            PrivateClientOrder.STATUS_CLIENT_PAID,
            PrivateClientOrder.STATUS_AWAITING_DISTRIBUTOR_PAYMENT,
            PrivateClientOrder.STATUS_DISTRIBUTOR_PAID,
            PrivateClientOrder.STATUS_WITH_DISTRIBUTOR,
            PrivateClientOrder.STATUS_OUT_FOR_DELIVERY,
            PrivateClientOrder.STATUS_DELIVERED,
        ]
    )
    notes = serializers.CharField(required=False, allow_blank=True)
    city_drinks_account_name = serializers.CharField(required=False, allow_blank=True)
    city_drinks_phone = serializers.CharField(required=False, allow_blank=True)


class ConfirmPaymentSerializer(serializers.Serializer):
    stage = serializers.ChoiceField(choices=["client", "distributor", "partner"])
    reference = serializers.CharField(required=False, allow_blank=True)


class AdminStatusSerializer(serializers.Serializer):
    status = serializers.ChoiceField(choices=PrivateClientOrder.STATUS_CHOICES)
    notes = serializers.CharField(required=False, allow_blank=True)


class StockStatusSerializer(serializers.Serializer):
    item_id = serializers.UUIDField(required=False)
    item_ids = serializers.ListField(child=serializers.UUIDField(), required=False)
    stock_status = serializers.ChoiceField(choices=PrivateClientOrderItem.STOCK_STATUS_CHOICES)
    notes = serializers.CharField(required=False, allow_blank=True)
    expected_at = serializers.DateTimeField(required=False, allow_null=True)

    def validate(self, attrs):
        if not attrs.get("item_id") and not attrs.get("item_ids"):
            raise serializers.ValidationError("item_id or item_ids is required")
        return attrs


class StockReceiptSerializer(serializers.Serializer):
    item_ids = serializers.ListField(child=serializers.UUIDField(), allow_empty=False)
    notes = serializers.CharField(required=False, allow_blank=True)
