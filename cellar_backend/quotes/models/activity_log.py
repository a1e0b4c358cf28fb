# quotes/models/activity_log.py

from django.conf import settings
from django.core.exceptions import ValidationError
from django.db import models

from .quote import Quote


class QuoteActivityLog(models.Model):
    """
    Append-only quote history.
    """

    quote = models.ForeignKey(Quote, on_delete=models.CASCADE, related_name="activity_logs")
    user = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="+",
    )
    action = models.CharField(max_length=50)
    previous_status = models.CharField(max_length=30, blank=True)
    new_status = models.CharField(max_length=30, blank=True)
    notes = models.TextField(blank=True)
    metadata = models.JSONField(default=dict, blank=True)

    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ["-created_at"]

    def save(self, *args, **kwargs):
        if not self._state.adding:
            raise ValidationError("Quote activity log entries are immutable")
        return super().save(*args, **kwargs)

    def delete(self, *args, **kwargs):
        raise ValidationError("Quote activity log entries cannot be deleted")

    def __str__(self):
        return f"{self.quote_id} | {self.action}"
