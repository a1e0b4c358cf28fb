from rest_framework import serializers

from notifications.models import Notification


class NotificationSerializer(serializers.ModelSerializer):
    class Meta:
        model = Notification
        fields = (
            "id",
            "type",
            "title",
            "message",
            "entity_type",
            "entity_id",
            "action_url",
            "metadata",
            "is_read",
            "read_at",
            "created_at",
        )
        read_only_fields = fields
