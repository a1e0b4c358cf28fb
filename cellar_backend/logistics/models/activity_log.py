# logistics/models/activity_log.py

from django.conf import settings
from django.core.exceptions import ValidationError
from django.db import models

from .shipment import Shipment


class ShipmentActivityLog(models.Model):
    """
    Append-only shipment history.
    """

    shipment = models.ForeignKey(Shipment, on_delete=models.CASCADE, related_name="activity_logs")
    user = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="+",
    )
    action = models.CharField(max_length=50)
    previous_status = models.CharField(max_length=20, blank=True)
    new_status = models.CharField(max_length=20, blank=True)
    notes = models.TextField(blank=True)
    metadata = models.JSONField(default=dict, blank=True)

    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ["-created_at"]

    def save(self, *args, **kwargs):
        if not self._state.adding:
            raise ValidationError("Shipment activity log entries are immutable")
        return super().save(*args, **kwargs)

    def delete(self, *args, **kwargs):
        raise ValidationError("Shipment activity log entries cannot be deleted")

    def __str__(self):
        return f"{self.shipment_id} | {self.action}"
