"""
======================================================
PATH: logistics/migrations/0001_initial.py
======================================================
MIGRATION: CREATE Shipment, ShipmentItem, ShipmentActivityLog
"""

from __future__ import annotations

import uuid

from django.conf import settings
from django.db import migrations, models
import django.db.models.deletion


def usd(**kwargs):
    kwargs.setdefault("default", 0)
    return models.DecimalField(decimal_places=2, max_digits=14, **kwargs)


def optional_usd():
    return models.DecimalField(blank=True, decimal_places=2, max_digits=14, null=True)


class Migration(migrations.Migration):
    initial = True

    dependencies = [
        ("partners", "0001_initial"),
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
    ]

    operations = [
        migrations.CreateModel(
            name="Shipment",
            fields=[
                (
                    "id",
                    models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False),
                ),
                ("shipment_number", models.CharField(db_index=True, max_length=32, unique=True)),
                (
                    "transport_mode",
                    models.CharField(
                        choices=[
                            ("air", "Air"),
                            ("sea_fcl", "Sea (FCL)"),
                            ("sea_lcl", "Sea (LCL)"),
                            ("road", "Road"),
                        ],
                        default="sea_fcl",
                        max_length=10,
                    ),
                ),
                (
                    "status",
                    models.CharField(
                        choices=[
                            ("draft", "Draft"),
                            ("booked", "Booked"),
                            ("picked_up", "Picked Up"),
                            ("in_transit", "In Transit"),
                            ("arrived_port", "Arrived at Port"),
                            ("customs_clearance", "Customs Clearance"),
                            ("cleared", "Cleared"),
                            ("at_warehouse", "At Warehouse"),
                            ("delivered", "Delivered"),
                            ("cancelled", "Cancelled"),
                        ],
                        db_index=True,
                        default="draft",
                        max_length=20,
                    ),
                ),
                ("origin_country", models.CharField(blank=True, max_length=100)),
                ("origin_city", models.CharField(blank=True, max_length=100)),
                ("destination_country", models.CharField(blank=True, max_length=100)),
                ("destination_city", models.CharField(blank=True, max_length=100)),
                ("carrier_name", models.CharField(blank=True, max_length=255)),
                ("tracking_number", models.CharField(blank=True, max_length=100)),
                ("etd", models.DateField(blank=True, null=True)),
                ("eta", models.DateField(blank=True, null=True)),
                ("atd", models.DateField(blank=True, null=True)),
                ("ata", models.DateField(blank=True, null=True)),
                ("freight_cost_usd", usd()),
                ("insurance_cost_usd", usd()),
                ("origin_handling_usd", usd()),
                ("destination_handling_usd", usd()),
                ("customs_clearance_usd", usd()),
                ("gov_fees_usd", usd()),
                ("delivery_cost_usd", usd()),
                ("other_costs_usd", usd()),
                (
                    "cost_allocation_method",
                    models.CharField(
                        choices=[
                            ("by_bottle", "By bottle"),
                            ("by_weight", "By weight"),
                            ("by_value", "By declared value"),
                        ],
                        default="by_bottle",
                        max_length=20,
                    ),
                ),
                ("notes", models.TextField(blank=True)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                (
                    "created_by",
                    models.ForeignKey(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.SET_NULL,
                        related_name="+",
                        to=settings.AUTH_USER_MODEL,
                    ),
                ),
                (
                    "partner",
                    models.ForeignKey(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.SET_NULL,
                        related_name="shipments",
                        to="partners.partner",
                    ),
                ),
            ],
            options={
                "ordering": ["-created_at"],
                "indexes": [
                    models.Index(fields=["partner", "status"], name="logistics_s_partner_7a5123_idx"),
                ],
            },
        ),
        migrations.CreateModel(
            name="ShipmentItem",
            fields=[
                (
                    "id",
                    models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False),
                ),
                ("product_name", models.CharField(max_length=255)),
                ("lwin", models.CharField(blank=True, db_index=True, max_length=18)),
                ("cases", models.PositiveIntegerField(default=0)),
                ("bottles_per_case", models.PositiveIntegerField(default=12)),
                ("total_bottles", models.PositiveIntegerField(blank=True, null=True)),
                ("gross_weight_kg", models.DecimalField(blank=True, decimal_places=2, max_digits=12, null=True)),
                ("product_cost_per_bottle", optional_usd()),
                ("declared_value_usd", optional_usd()),
                ("target_selling_price", optional_usd()),
                ("allocated_freight", usd()),
                ("allocated_insurance", usd()),
                ("allocated_handling", usd()),
                ("allocated_government", usd()),
                ("landed_cost_total", usd()),
                ("landed_cost_per_bottle", usd()),
                ("margin_percent", models.DecimalField(blank=True, decimal_places=2, max_digits=8, null=True)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                (
                    "shipment",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="items",
                        to="logistics.shipment",
                    ),
                ),
            ],
            options={
                "ordering": ["created_at"],
                "constraints": [
                    models.CheckConstraint(
                        condition=models.Q(
                            ("product_cost_per_bottle__isnull", True),
                            ("product_cost_per_bottle__gte", 0),
                            _connector="OR",
                        ),
                        name="chk_shipment_item_cost_gte_zero",
                    ),
                ],
            },
        ),
        migrations.CreateModel(
            name="ShipmentActivityLog",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("action", models.CharField(max_length=50)),
                ("previous_status", models.CharField(blank=True, max_length=20)),
                ("new_status", models.CharField(blank=True, max_length=20)),
                ("notes", models.TextField(blank=True)),
                ("metadata", models.JSONField(blank=True, default=dict)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                (
                    "shipment",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="activity_logs",
                        to="logistics.shipment",
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
