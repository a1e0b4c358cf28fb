# sourcing/models/lwin_wine.py

from django.db import models


class LwinWine(models.Model):
    """
    Liv-ex LWIN reference data (wine-level LWIN, 7 digits), imported in bulk.
    """

    lwin = models.CharField(max_length=18, unique=True)
    display_name = models.CharField(max_length=500, db_index=True)
    producer_name = models.CharField(max_length=255, blank=True)
    country = models.CharField(max_length=100, blank=True)
    region = models.CharField(max_length=100, blank=True)
    colour = models.CharField(max_length=30, blank=True)

    class Meta:
        ordering = ["display_name"]

    def __str__(self):
        return f"{self.lwin} {self.display_name}"
