"""
======================================================
PATH: pricing/migrations/0001_initial.py
======================================================
MIGRATION: CREATE ExchangeRate, PricingVariable

Purpose:
- Daily FX snapshots (one per pair per day, rate > 0).
- Admin overrides of calculator variables, one per module/key.
"""

from __future__ import annotations

import uuid

from django.conf import settings
from django.db import migrations, models
import django.db.models.deletion


class Migration(migrations.Migration):
    initial = True

    dependencies = [
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
    ]

    operations = [
        migrations.CreateModel(
            name="ExchangeRate",
            fields=[
                (
                    "id",
                    models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False),
                ),
                ("from_currency", models.CharField(max_length=3)),
                ("to_currency", models.CharField(max_length=3)),
                ("rate", models.DecimalField(decimal_places=6, max_digits=14)),
                ("effective_date", models.DateField()),
                ("source", models.CharField(default="manual", max_length=32)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
            ],
            options={
                "ordering": ["-effective_date", "from_currency", "to_currency"],
                "constraints": [
                    models.UniqueConstraint(
                        fields=("from_currency", "to_currency", "effective_date"),
                        name="uniq_exchange_rate_per_day",
                    ),
                    models.CheckConstraint(condition=models.Q(("rate__gt", 0)), name="chk_exchange_rate_gt_zero"),
                ],
            },
        ),
        migrations.CreateModel(
            name="PricingVariable",
            fields=[
                (
                    "id",
                    models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False),
                ),
                (
                    "module",
                    models.CharField(
                        choices=[("pco", "pco"), ("b2b", "b2b"), ("pocket_cellar", "pocket_cellar")],
                        max_length=32,
                    ),
                ),
                ("key", models.CharField(max_length=64)),
                ("value", models.DecimalField(decimal_places=4, max_digits=12)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                (
                    "updated_by",
                    models.ForeignKey(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.SET_NULL,
                        related_name="+",
                        to=settings.AUTH_USER_MODEL,
                    ),
                ),
            ],
            options={
                "ordering": ["module", "key"],
                "constraints": [
                    models.UniqueConstraint(fields=("module", "key"), name="uniq_pricing_variable"),
                ],
            },
        ),
    ]
