"""
======================================================
PATH: quotes/migrations/0001_initial.py
======================================================
MIGRATION: CREATE Quote, QuoteLineItem, QuoteActivityLog

Purpose:
- Customer quotes with the B2B calculator inputs (defaults 200 / 20% / 15%).
- One line per product per quote.
- Append-only quote history.
"""

from __future__ import annotations

import uuid
from decimal import Decimal

from django.conf import settings
from django.db import migrations, models
import django.db.models.deletion


class Migration(migrations.Migration):
    initial = True

    dependencies = [
        ("partners", "0001_initial"),
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
    ]

    operations = [
        migrations.CreateModel(
            name="Quote",
            fields=[
                (
                    "id",
                    models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False),
                ),
                ("quote_number", models.CharField(editable=False, max_length=32, unique=True)),
                ("name", models.CharField(blank=True, max_length=255)),
                ("client_name", models.CharField(blank=True, max_length=255)),
                (
                    "customer_type",
                    models.CharField(
                        choices=[("b2b", "B2B"), ("b2c", "B2C")],
                        default="b2c",
                        max_length=10,
                    ),
                ),
                (
                    "status",
                    models.CharField(
                        choices=[
                            ("draft", "Draft"),
                            ("sent", "Sent"),
                            ("buy_request_submitted", "Buy Request Submitted"),
                            ("under_cc_review", "Under Review"),
                            ("revision_requested", "Revision Requested"),
                            ("cc_confirmed", "Confirmed"),
                            ("awaiting_payment", "Awaiting Payment"),
                            ("paid", "Paid"),
                            ("po_submitted", "PO Submitted"),
                            ("po_confirmed", "PO Confirmed"),
                            ("delivered", "Delivered"),
                        ],
                        db_index=True,
                        default="draft",
                        max_length=30,
                    ),
                ),
                ("notes", models.TextField(blank=True)),
                (
                    "transfer_cost_usd",
                    models.DecimalField(decimal_places=2, default=Decimal("200.00"), max_digits=12),
                ),
                (
                    "import_tax_percent",
                    models.DecimalField(decimal_places=2, default=Decimal("20.00"), max_digits=6),
                ),
                (
                    "margin_type",
                    models.CharField(
                        choices=[("percentage", "Percentage of in-bond price"), ("fixed", "Fixed amount (USD)")],
                        default="percentage",
                        max_length=12,
                    ),
                ),
                ("margin_value", models.DecimalField(decimal_places=2, default=Decimal("15.00"), max_digits=12)),
                ("total_usd", models.DecimalField(decimal_places=2, default=0, max_digits=14)),
                ("total_aed", models.DecimalField(decimal_places=2, default=0, max_digits=14)),
                ("revision_reason", models.TextField(blank=True)),
                ("delivery_lead_time", models.CharField(blank=True, max_length=100)),
                ("cc_confirmation_notes", models.TextField(blank=True)),
                ("payment_reference", models.CharField(blank=True, max_length=100)),
                ("po_number", models.CharField(blank=True, max_length=100)),
                ("submitted_at", models.DateTimeField(blank=True, null=True)),
                ("confirmed_at", models.DateTimeField(blank=True, null=True)),
                ("paid_at", models.DateTimeField(blank=True, null=True)),
                ("po_submitted_at", models.DateTimeField(blank=True, null=True)),
                ("po_confirmed_at", models.DateTimeField(blank=True, null=True)),
                ("delivered_at", models.DateTimeField(blank=True, null=True)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                (
                    "confirmed_by",
                    models.ForeignKey(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.SET_NULL,
                        related_name="+",
                        to=settings.AUTH_USER_MODEL,
                    ),
                ),
                (
                    "created_by",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="quotes",
                        to=settings.AUTH_USER_MODEL,
                    ),
                ),
                (
                    "partner",
                    models.ForeignKey(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.SET_NULL,
                        related_name="quotes",
                        to="partners.partner",
                    ),
                ),
            ],
            options={
                "ordering": ["-created_at"],
                "indexes": [
                    models.Index(fields=["created_by", "status"], name="quotes_quot_created_65de96_idx"),
                ],
                "constraints": [
                    models.CheckConstraint(condition=models.Q(("total_usd__gte", 0)), name="chk_quote_total_usd_gte_zero"),
                    models.CheckConstraint(
                        condition=models.Q(("transfer_cost_usd__gte", 0)),
                        name="chk_quote_transfer_cost_gte_zero",
                    ),
                    models.CheckConstraint(
                        condition=models.Q(("import_tax_percent__gte", 0)),
                        name="chk_quote_import_tax_gte_zero",
                    ),
                    models.CheckConstraint(
                        condition=models.Q(("margin_value__gte", 0)),
                        name="chk_quote_margin_value_gte_zero",
                    ),
                ],
            },
        ),
        migrations.CreateModel(
            name="QuoteLineItem",
            fields=[
                (
                    "id",
                    models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False),
                ),
                ("product_key", models.CharField(max_length=64)),
                ("product_name", models.CharField(max_length=255)),
                ("producer", models.CharField(blank=True, max_length=255)),
                ("vintage", models.CharField(blank=True, max_length=10)),
                ("lwin", models.CharField(blank=True, db_index=True, max_length=18)),
                ("bottle_size", models.CharField(default="750ml", max_length=20)),
                ("bottles_per_case", models.PositiveIntegerField(default=12)),
                ("quantity", models.PositiveIntegerField(default=1)),
                ("confirmed_quantity", models.PositiveIntegerField(blank=True, null=True)),
                ("original_price_usd", models.DecimalField(decimal_places=2, max_digits=14)),
                ("base_price_usd", models.DecimalField(decimal_places=2, max_digits=14)),
                ("line_total_usd", models.DecimalField(decimal_places=2, default=0, max_digits=14)),
                ("admin_notes", models.TextField(blank=True)),
                ("admin_alternatives", models.JSONField(blank=True, default=list)),
                ("accepted_alternative", models.JSONField(blank=True, null=True)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                (
                    "quote",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="line_items",
                        to="quotes.quote",
                    ),
                ),
            ],
            options={
                "ordering": ["created_at"],
                "constraints": [
                    models.UniqueConstraint(fields=("quote", "product_key"), name="uniq_quote_line_product"),
                    models.CheckConstraint(
                        condition=models.Q(("quantity__gt", 0)),
                        name="chk_quote_line_quantity_gt_zero",
                    ),
                    models.CheckConstraint(
                        condition=models.Q(("base_price_usd__gte", 0)),
                        name="chk_quote_line_price_gte_zero",
                    ),
                ],
            },
        ),
        migrations.CreateModel(
            name="QuoteActivityLog",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("action", models.CharField(max_length=50)),
                ("previous_status", models.CharField(blank=True, max_length=30)),
                ("new_status", models.CharField(blank=True, max_length=30)),
                ("notes", models.TextField(blank=True)),
                ("metadata", models.JSONField(blank=True, default=dict)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                (
                    "quote",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="activity_logs",
                        to="quotes.quote",
                    ),
                ),
                (
                    "user",
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
                "ordering": ["-created_at"],
            },
        ),
    ]
