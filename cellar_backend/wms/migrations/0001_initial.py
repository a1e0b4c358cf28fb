"""
======================================================
PATH: wms/migrations/0001_initial.py
======================================================
MIGRATION: CREATE WAREHOUSE TABLES

Purpose:
- Location, Stock (quantities never negative), StockReservation
- StockMovement ledger (append-only)
- PickList / PickListItem, DispatchBatch / DispatchBatchOrder
- CycleCount / CycleCountItem
"""

from __future__ import annotations

import uuid

from django.conf import settings
from django.db import migrations, models
import django.db.models.deletion
import django.utils.timezone


def uuid_pk():
    return models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)


def user_fk(related_name="+"):
    return models.ForeignKey(
        blank=True,
        null=True,
        on_delete=django.db.models.deletion.SET_NULL,
        related_name=related_name,
        to=settings.AUTH_USER_MODEL,
    )


def location_fk():
    return models.ForeignKey(
        blank=True,
        null=True,
        on_delete=django.db.models.deletion.SET_NULL,
        related_name="+",
        to="wms.location",
    )


def partner_fk():
    return models.ForeignKey(
        blank=True,
        null=True,
        on_delete=django.db.models.deletion.SET_NULL,
        related_name="+",
        to="partners.partner",
    )


class Migration(migrations.Migration):
    initial = True

    dependencies = [
        ("logistics", "0001_initial"),
        ("partners", "0001_initial"),
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
    ]

    operations = [
        migrations.CreateModel(
            name="Location",
            fields=[
                ("id", uuid_pk()),
                ("location_code", models.CharField(max_length=32, unique=True)),
                (
                    "location_type",
                    models.CharField(
                        choices=[
                            ("rack", "Rack"),
                            ("floor", "Floor"),
                            ("receiving", "Receiving"),
                            ("shipping", "Shipping"),
                            ("bonded", "Bonded"),
                        ],
                        default="rack",
                        max_length=20,
                    ),
                ),
                ("aisle", models.CharField(blank=True, max_length=10)),
                ("bay", models.CharField(blank=True, max_length=10)),
                ("level", models.CharField(blank=True, max_length=10)),
                ("capacity_cases", models.PositiveIntegerField(blank=True, null=True)),
                ("requires_forklift", models.BooleanField(default=False)),
                ("is_active", models.BooleanField(default=True)),
                ("notes", models.TextField(blank=True)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
            ],
            options={
                "ordering": ["location_code"],
            },
        ),
        migrations.CreateModel(
            name="Stock",
            fields=[
                ("id", uuid_pk()),
                ("lwin18", models.CharField(db_index=True, max_length=18)),
                ("product_name", models.CharField(max_length=255)),
                ("producer", models.CharField(blank=True, max_length=255)),
                ("vintage", models.CharField(blank=True, max_length=10)),
                ("bottle_size", models.CharField(default="750ml", max_length=20)),
                ("case_config", models.PositiveIntegerField(default=12)),
                ("lot_number", models.CharField(blank=True, max_length=64)),
                ("quantity_cases", models.IntegerField(default=0)),
                ("reserved_cases", models.IntegerField(default=0)),
                ("available_cases", models.IntegerField(default=0)),
                (
                    "sales_arrangement",
                    models.CharField(
                        choices=[("consignment", "Consignment"), ("purchased", "Purchased")],
                        default="consignment",
                        max_length=20,
                    ),
                ),
                (
                    "consignment_commission_percent",
                    models.DecimalField(blank=True, decimal_places=2, max_digits=5, null=True),
                ),
                ("received_at", models.DateTimeField(blank=True, null=True)),
                ("expiry_date", models.DateField(blank=True, null=True)),
                ("is_perishable", models.BooleanField(default=False)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                (
                    "location",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="stock",
                        to="wms.location",
                    ),
                ),
                (
                    "owner",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="wms_stock",
                        to="partners.partner",
                    ),
                ),
                (
                    "shipment",
                    models.ForeignKey(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.SET_NULL,
                        related_name="stock",
                        to="logistics.shipment",
                    ),
                ),
            ],
            options={
                "ordering": ["product_name", "location__location_code"],
                "indexes": [
                    models.Index(fields=["lwin18", "owner"], name="wms_stock_lwin18_38e586_idx"),
                    models.Index(fields=["location", "lwin18"], name="wms_stock_locatio_0efede_idx"),
                    models.Index(fields=["expiry_date"], name="wms_stock_expiry__f7e2e9_idx"),
                ],
                "constraints": [
                    models.CheckConstraint(condition=models.Q(("quantity_cases__gte", 0)), name="chk_stock_qty_gte_zero"),
                    models.CheckConstraint(
                        condition=models.Q(("reserved_cases__gte", 0)),
                        name="chk_stock_reserved_gte_zero",
                    ),
                    models.CheckConstraint(
                        condition=models.Q(("available_cases__gte", 0)),
                        name="chk_stock_available_gte_zero",
                    ),
                ],
            },
        ),
        migrations.CreateModel(
            name="StockReservation",
            fields=[
                ("id", uuid_pk()),
                (
                    "order_type",
                    models.CharField(
                        choices=[("zoho", "Zoho sales order"), ("pco", "Private client order")],
                        max_length=10,
                    ),
                ),
                ("order_id", models.CharField(db_index=True, max_length=64)),
                ("order_number", models.CharField(blank=True, max_length=64)),
                ("order_item_id", models.CharField(blank=True, max_length=64)),
                ("lwin18", models.CharField(max_length=18)),
                ("product_name", models.CharField(blank=True, max_length=255)),
                ("quantity_cases", models.PositiveIntegerField()),
                (
                    "status",
                    models.CharField(
                        choices=[("active", "Active"), ("released", "Released"), ("fulfilled", "Fulfilled")],
                        db_index=True,
                        default="active",
                        max_length=12,
                    ),
                ),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("released_at", models.DateTimeField(blank=True, null=True)),
                ("fulfilled_at", models.DateTimeField(blank=True, null=True)),
                (
                    "stock",
                    models.ForeignKey(
                        null=True,
                        on_delete=django.db.models.deletion.SET_NULL,
                        related_name="reservations",
                        to="wms.stock",
                    ),
                ),
            ],
            options={
                "ordering": ["created_at"],
                "indexes": [
                    models.Index(fields=["order_type", "order_id", "status"], name="wms_stockre_order_t_07084a_idx"),
                ],
                "constraints": [
                    models.CheckConstraint(
                        condition=models.Q(("quantity_cases__gt", 0)),
                        name="chk_reservation_qty_gt_zero",
                    ),
                ],
            },
        ),
        migrations.CreateModel(
            name="StockMovement",
            fields=[
                ("id", uuid_pk()),
                ("movement_number", models.CharField(max_length=32, unique=True)),
                (
                    "movement_type",
                    models.CharField(
                        choices=[
                            ("receive", "Receive"),
                            ("putaway", "Putaway"),
                            ("transfer", "Transfer"),
                            ("pick", "Pick"),
                            ("dispatch", "Dispatch"),
                            ("ownership_transfer", "Ownership transfer"),
                            ("count", "Cycle count"),
                            ("adjustment", "Adjustment"),
                        ],
                        db_index=True,
                        max_length=24,
                    ),
                ),
                ("lwin18", models.CharField(db_index=True, max_length=18)),
                ("product_name", models.CharField(blank=True, max_length=255)),
                ("quantity_cases", models.IntegerField()),
                ("lot_number", models.CharField(blank=True, max_length=64)),
                ("order_type", models.CharField(blank=True, max_length=10)),
                ("order_id", models.CharField(blank=True, max_length=64)),
                ("reason_code", models.CharField(blank=True, max_length=50)),
                ("notes", models.TextField(blank=True)),
                ("performed_at", models.DateTimeField(default=django.utils.timezone.now)),
                ("from_location", location_fk()),
                ("to_location", location_fk()),
                ("from_owner", partner_fk()),
                ("to_owner", partner_fk()),
                ("performed_by", user_fk(related_name="wms_movements")),
            ],
            options={
                "ordering": ["-performed_at"],
                "indexes": [
                    models.Index(fields=["movement_type", "performed_at"], name="wms_stockmo_movemen_91a382_idx"),
                    models.Index(fields=["order_type", "order_id"], name="wms_stockmo_order_t_06a1ed_idx"),
                ],
            },
        ),
        migrations.CreateModel(
            name="PickList",
            fields=[
                ("id", uuid_pk()),
                ("pick_list_number", models.CharField(max_length=32, unique=True)),
                ("order_type", models.CharField(max_length=10)),
                ("order_id", models.CharField(db_index=True, max_length=64)),
                ("order_number", models.CharField(blank=True, max_length=64)),
                (
                    "status",
                    models.CharField(
                        choices=[
                            ("pending", "Pending"),
                            ("in_progress", "In progress"),
                            ("completed", "Completed"),
                            ("cancelled", "Cancelled"),
                        ],
                        default="pending",
                        max_length=20,
                    ),
                ),
                ("total_items", models.PositiveIntegerField(default=0)),
                ("picked_items", models.PositiveIntegerField(default=0)),
                ("notes", models.TextField(blank=True)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("started_at", models.DateTimeField(blank=True, null=True)),
                ("completed_at", models.DateTimeField(blank=True, null=True)),
                ("assigned_to", user_fk(related_name="assigned_pick_lists")),
            ],
            options={
                "ordering": ["-created_at"],
            },
        ),
        migrations.CreateModel(
            name="PickListItem",
            fields=[
                ("id", uuid_pk()),
                ("order_item_id", models.CharField(blank=True, max_length=64)),
                ("lwin18", models.CharField(max_length=18)),
                ("product_name", models.CharField(blank=True, max_length=255)),
                ("quantity_cases", models.PositiveIntegerField()),
                ("picked_quantity", models.PositiveIntegerField(default=0)),
                ("is_picked", models.BooleanField(default=False)),
                ("picked_at", models.DateTimeField(blank=True, null=True)),
                (
                    "pick_list",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="items",
                        to="wms.picklist",
                    ),
                ),
                ("suggested_location", location_fk()),
                ("picked_from_location", location_fk()),
                ("picked_by", user_fk()),
            ],
            options={
                "ordering": ["product_name"],
                "constraints": [
                    models.CheckConstraint(
                        condition=models.Q(("quantity_cases__gt", 0)),
                        name="chk_pick_item_qty_gt_zero",
                    ),
                ],
            },
        ),
        migrations.CreateModel(
            name="DispatchBatch",
            fields=[
                ("id", uuid_pk()),
                ("batch_number", models.CharField(max_length=32, unique=True)),
                (
                    "status",
                    models.CharField(
                        choices=[
                            ("draft", "Draft"),
                            ("picking", "Picking"),
                            ("staged", "Staged"),
                            ("dispatched", "Dispatched"),
                            ("delivered", "Delivered"),
                        ],
                        db_index=True,
                        default="draft",
                        max_length=20,
                    ),
                ),
                ("order_count", models.PositiveIntegerField(default=0)),
                ("total_cases", models.PositiveIntegerField(default=0)),
                ("notes", models.TextField(blank=True)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                ("dispatched_at", models.DateTimeField(blank=True, null=True)),
                ("delivered_at", models.DateTimeField(blank=True, null=True)),
                ("created_by", user_fk()),
                (
                    "distributor",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="dispatch_batches",
                        to="partners.partner",
                    ),
                ),
            ],
            options={
                "ordering": ["-created_at"],
                "verbose_name_plural": "dispatch batches",
            },
        ),
        migrations.CreateModel(
            name="DispatchBatchOrder",
            fields=[
                ("id", uuid_pk()),
                ("order_type", models.CharField(default="pco", max_length=10)),
                ("order_id", models.CharField(max_length=64)),
                ("order_number", models.CharField(blank=True, max_length=64)),
                ("case_count", models.PositiveIntegerField(default=0)),
                ("added_at", models.DateTimeField(auto_now_add=True)),
                (
                    "batch",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="orders",
                        to="wms.dispatchbatch",
                    ),
                ),
            ],
            options={
                "ordering": ["added_at"],
                "constraints": [
                    models.UniqueConstraint(
                        fields=("batch", "order_type", "order_id"),
                        name="uniq_dispatch_batch_order",
                    ),
                ],
            },
        ),
        migrations.CreateModel(
            name="CycleCount",
            fields=[
                ("id", uuid_pk()),
                ("count_number", models.CharField(max_length=32, unique=True)),
                (
                    "status",
                    models.CharField(
                        choices=[
                            ("pending", "Pending"),
                            ("in_progress", "In progress"),
                            ("completed", "Completed"),
                            ("reconciled", "Reconciled"),
                        ],
                        default="pending",
                        max_length=20,
                    ),
                ),
                ("notes", models.TextField(blank=True)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("completed_at", models.DateTimeField(blank=True, null=True)),
                ("reconciled_at", models.DateTimeField(blank=True, null=True)),
                ("created_by", user_fk()),
                (
                    "location",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="cycle_counts",
                        to="wms.location",
                    ),
                ),
                ("reconciled_by", user_fk()),
            ],
            options={
                "ordering": ["-created_at"],
            },
        ),
        migrations.CreateModel(
            name="CycleCountItem",
            fields=[
                ("id", uuid_pk()),
                ("lwin18", models.CharField(max_length=18)),
                ("product_name", models.CharField(blank=True, max_length=255)),
                ("expected_quantity", models.IntegerField(default=0)),
                ("counted_quantity", models.IntegerField(blank=True, null=True)),
                ("discrepancy", models.IntegerField(default=0)),
                ("counted_at", models.DateTimeField(blank=True, null=True)),
                ("counted_by", user_fk()),
                (
                    "cycle_count",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="items",
                        to="wms.cyclecount",
                    ),
                ),
                (
                    "stock",
                    models.ForeignKey(
                        null=True,
                        on_delete=django.db.models.deletion.SET_NULL,
                        related_name="+",
                        to="wms.stock",
                    ),
                ),
            ],
            options={
                "ordering": ["product_name"],
            },
        ),
    ]
