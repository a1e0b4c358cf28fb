# partners/api/serializers.py

from rest_framework import serializers

from partners.models import Partner, PartnerMember


class PartnerSerializer(serializers.ModelSerializer):
    member_count = serializers.IntegerField(source="members.count", read_only=True)

    class Meta:
        model = Partner
        fields = "__all__"
        read_only_fields = ("id", "created_at", "updated_at")

    def validate(self, attrs):
        partner_type = attrs.get("type", getattr(self.instance, "type", None))
        code = attrs.get("distributor_code")
        if code is not None:
            attrs["distributor_code"] = code.strip().upper() or None
        if partner_type != Partner.TYPE_DISTRIBUTOR and attrs.get("requires_client_verification"):
            raise serializers.ValidationError(
                {"requires_client_verification": "Only distributors can require client verification"}
            )
        return attrs


class PartnerMemberSerializer(serializers.ModelSerializer):
    email = serializers.EmailField(source="user.email", read_only=True)

    class Meta:
        model = PartnerMember
        fields = ("id", "partner", "user", "email", "role", "created_at")
        read_only_fields = ("id", "partner", "created_at")


class AddMemberSerializer(serializers.Serializer):
    user_id = serializers.UUIDField()
    role = serializers.ChoiceField(
        choices=[PartnerMember.ROLE_OWNER, PartnerMember.ROLE_MEMBER],
        default=PartnerMember.ROLE_MEMBER,
    )
