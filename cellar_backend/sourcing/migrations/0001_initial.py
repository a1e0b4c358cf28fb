"""
======================================================
PATH: sourcing/migrations/0001_initial.py
======================================================
MIGRATION: CREATE SOURCING (RFQ) TABLES

Purpose:
- LwinWine reference data
- Rfq, RfqItem, RfqPartner, RfqQuote
- RfqItem.selected_quote is added last: RfqQuote points back at RfqItem.
"""

from __future__ import annotations

import uuid

from django.conf import settings
from django.db import migrations, models
import django.db.models.deletion


def uuid_pk():
    return models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)


def user_fk():
    return models.ForeignKey(
        blank=True,
        null=True,
        on_delete=django.db.models.deletion.SET_NULL,
        related_name="+",
        to=settings.AUTH_USER_MODEL,
    )


class Migration(migrations.Migration):
    initial = True

    dependencies = [
        ("partners", "0001_initial"),
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
    ]

    operations = [
        migrations.CreateModel(
            name="LwinWine",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("lwin", models.CharField(max_length=18, unique=True)),
                ("display_name", models.CharField(db_index=True, max_length=500)),
                ("producer_name", models.CharField(blank=True, max_length=255)),
                ("country", models.CharField(blank=True, max_length=100)),
                ("region", models.CharField(blank=True, max_length=100)),
                ("colour", models.CharField(blank=True, max_length=30)),
            ],
            options={
                "ordering": ["display_name"],
            },
        ),
        migrations.CreateModel(
            name="Rfq",
            fields=[
                ("id", uuid_pk()),
                ("rfq_number", models.CharField(db_index=True, max_length=32, unique=True)),
                ("name", models.CharField(max_length=255)),
                (
                    "status",
                    models.CharField(
                        choices=[
                            ("draft", "Draft"),
                            ("sent", "Sent"),
                            ("collecting", "Collecting"),
                            ("comparing", "Comparing"),
                            ("selecting", "Selecting"),
                            ("finalized", "Finalized"),
                            ("quote_generated", "Quote Generated"),
                            ("cancelled", "Cancelled"),
                        ],
                        db_index=True,
                        default="draft",
                        max_length=20,
                    ),
                ),
                ("response_deadline", models.DateTimeField(blank=True, null=True)),
                ("distributor_name", models.CharField(blank=True, max_length=255)),
                ("notes", models.TextField(blank=True)),
                ("sent_at", models.DateTimeField(blank=True, null=True)),
                ("finalized_at", models.DateTimeField(blank=True, null=True)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                ("created_by", user_fk()),
            ],
            options={
                "ordering": ["-created_at"],
            },
        ),
        migrations.CreateModel(
            name="RfqItem",
            fields=[
                ("id", uuid_pk()),
                ("product_name", models.CharField(max_length=255)),
                ("producer", models.CharField(blank=True, max_length=255)),
                ("vintage", models.CharField(blank=True, max_length=10)),
                ("lwin", models.CharField(blank=True, db_index=True, max_length=18)),
                ("quantity", models.PositiveIntegerField(default=1)),
                (
                    "quantity_unit",
                    models.CharField(
                        choices=[("cases", "Cases"), ("bottles", "Bottles")],
                        default="cases",
                        max_length=10,
                    ),
                ),
                (
                    "status",
                    models.CharField(
                        choices=[
                            ("pending", "Pending"),
                            ("quoted", "Quoted"),
                            ("selected", "Selected"),
                            ("self_sourced", "Self-sourced"),
                            ("unsourceable", "Unsourceable"),
                        ],
                        default="pending",
                        max_length=20,
                    ),
                ),
                ("selected_at", models.DateTimeField(blank=True, null=True)),
                (
                    "calculated_price_usd",
                    models.DecimalField(blank=True, decimal_places=2, max_digits=14, null=True),
                ),
                ("final_price_usd", models.DecimalField(blank=True, decimal_places=2, max_digits=14, null=True)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("price_adjusted_by", user_fk()),
                (
                    "rfq",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="items",
                        to="sourcing.rfq",
                    ),
                ),
                ("selected_by", user_fk()),
            ],
            options={
                "ordering": ["created_at"],
                "constraints": [
                    models.CheckConstraint(condition=models.Q(("quantity__gt", 0)), name="chk_rfq_item_qty_gt_zero"),
                ],
            },
        ),
        migrations.CreateModel(
            name="RfqPartner",
            fields=[
                ("id", uuid_pk()),
                (
                    "status",
                    models.CharField(
                        choices=[
                            ("pending", "Pending"),
                            ("viewed", "Viewed"),
                            ("submitted", "Submitted"),
                            ("declined", "Declined"),
                            ("expired", "Expired"),
                        ],
                        default="pending",
                        max_length=20,
                    ),
                ),
                ("viewed_at", models.DateTimeField(blank=True, null=True)),
                ("submitted_at", models.DateTimeField(blank=True, null=True)),
                ("quote_count", models.PositiveIntegerField(default=0)),
                ("partner_notes", models.TextField(blank=True)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                (
                    "partner",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="rfq_assignments",
                        to="partners.partner",
                    ),
                ),
                (
                    "rfq",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="partners",
                        to="sourcing.rfq",
                    ),
                ),
            ],
            options={
                "ordering": ["created_at"],
                "constraints": [
                    models.UniqueConstraint(fields=("rfq", "partner"), name="uniq_rfq_partner"),
                ],
            },
        ),
        migrations.CreateModel(
            name="RfqQuote",
            fields=[
                ("id", uuid_pk()),
                (
                    "quote_type",
                    models.CharField(
                        choices=[
                            ("exact", "Exact match"),
                            ("alternative", "Alternative"),
                            ("not_available", "Not available"),
                        ],
                        default="exact",
                        max_length=20,
                    ),
                ),
                ("quoted_vintage", models.CharField(blank=True, max_length=10)),
                (
                    "cost_price_per_case_usd",
                    models.DecimalField(blank=True, decimal_places=2, max_digits=14, null=True),
                ),
                ("currency", models.CharField(default="USD", max_length=3)),
                ("case_config", models.PositiveIntegerField(blank=True, null=True)),
                ("bottle_size", models.CharField(blank=True, max_length=20)),
                ("available_quantity", models.PositiveIntegerField(blank=True, null=True)),
                ("lead_time_days", models.PositiveIntegerField(blank=True, null=True)),
                ("stock_location", models.CharField(blank=True, max_length=255)),
                ("alternative_product_name", models.CharField(blank=True, max_length=255)),
                ("notes", models.TextField(blank=True)),
                ("is_selected", models.BooleanField(default=False)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                (
                    "item",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="quotes",
                        to="sourcing.rfqitem",
                    ),
                ),
                (
                    "partner",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="rfq_quotes",
                        to="partners.partner",
                    ),
                ),
                (
                    "rfq",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="quotes",
                        to="sourcing.rfq",
                    ),
                ),
                (
                    "rfq_partner",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="quotes",
                        to="sourcing.rfqpartner",
                    ),
                ),
            ],
            options={
                "ordering": ["created_at"],
                "constraints": [
                    models.CheckConstraint(
                        condition=models.Q(
                            ("cost_price_per_case_usd__isnull", True),
                            ("cost_price_per_case_usd__gte", 0),
                            _connector="OR",
                        ),
                        name="chk_rfq_quote_price_gte_zero",
                    ),
                ],
            },
        ),
        migrations.AddField(
            model_name="rfqitem",
            name="selected_quote",
            field=models.ForeignKey(
                blank=True,
                null=True,
                on_delete=django.db.models.deletion.SET_NULL,
                related_name="+",
                to="sourcing.rfqquote",
            ),
        ),
    ]
