"""
======================================================
PATH: orders/migrations/0001_initial.py
======================================================
MIGRATION: CREATE PRIVATE CLIENT ORDER TABLES

Purpose:
- PrivateClientContact (end clients known to a partner)
- PrivateClientOrder, PrivateClientOrderItem
- PrivateClientOrderActivityLog (append-only)
"""

from __future__ import annotations

import uuid

from django.conf import settings
from django.db import migrations, models
import django.db.models.deletion


def user_fk(**kwargs):
    return models.ForeignKey(
        blank=True,
        null=True,
        on_delete=django.db.models.deletion.SET_NULL,
        to=settings.AUTH_USER_MODEL,
        **kwargs,
    )


def stamp():
    return models.DateTimeField(blank=True, null=True)


def usd():
    return models.DecimalField(decimal_places=2, default=0, max_digits=14)


class Migration(migrations.Migration):
    initial = True

    dependencies = [
        ("partners", "0001_initial"),
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
    ]

    operations = [
        migrations.CreateModel(
            name="PrivateClientContact",
            fields=[
                (
                    "id",
                    models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False),
                ),
                ("name", models.CharField(max_length=255)),
                ("email", models.EmailField(blank=True, max_length=254)),
                ("phone", models.CharField(blank=True, max_length=50)),
                ("address", models.TextField(blank=True)),
                ("notes", models.TextField(blank=True)),
                ("city_drinks_verified_at", stamp()),
                ("city_drinks_account_name", models.CharField(blank=True, max_length=255)),
                ("city_drinks_phone", models.CharField(blank=True, max_length=50)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                ("city_drinks_verified_by", user_fk(related_name="+")),
                (
                    "partner",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="private_clients",
                        to="partners.partner",
                    ),
                ),
            ],
            options={
                "ordering": ["name"],
                "indexes": [
                    models.Index(fields=["partner", "name"], name="orders_priv_partner_717996_idx"),
                ],
            },
        ),
        migrations.CreateModel(
            name="PrivateClientOrder",
            fields=[
                (
                    "id",
                    models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False),
                ),
                ("order_number", models.CharField(db_index=True, max_length=32, unique=True)),
                ("client_name", models.CharField(blank=True, max_length=255)),
                ("client_email", models.EmailField(blank=True, max_length=254)),
                ("client_phone", models.CharField(blank=True, max_length=50)),
                ("client_address", models.TextField(blank=True)),
                (
                    "status",
                    models.CharField(
                        choices=[
                            ("draft", "Draft"),
                            ("submitted", "Submitted"),
                            ("under_cc_review", "Under C&C Review"),
                            ("revision_requested", "Revision Requested"),
                            ("cc_approved", "C&C Approved"),
                            ("awaiting_partner_verification", "Awaiting Partner Verification"),
                            ("awaiting_distributor_verification", "Awaiting Distributor Verification"),
                            ("verification_suspended", "Verification Suspended"),
                            ("awaiting_client_verification", "Awaiting Client Verification"),
                            ("awaiting_client_payment", "Awaiting Client Payment"),
                            ("awaiting_payment_verification", "Awaiting Payment Verification"),
                            ("client_paid", "Client Paid"),
                            ("awaiting_distributor_payment", "Awaiting Distributor Payment"),
                            ("distributor_paid", "Distributor Paid"),
                            ("awaiting_partner_payment", "Awaiting Partner Payment"),
                            ("partner_paid", "Partner Paid"),
                            ("stock_in_transit", "Stock In Transit"),
                            ("with_distributor", "With Distributor"),
                            ("out_for_delivery", "Out For Delivery"),
                            ("delivered", "Delivered"),
                            ("cancelled", "Cancelled"),
                        ],
                        db_index=True,
                        default="draft",
                        max_length=40,
                    ),
                ),
                ("subtotal_usd", usd()),
                ("duty_usd", usd()),
                ("logistics_usd", usd()),
                ("vat_usd", usd()),
                ("total_usd", usd()),
                ("total_aed", usd()),
                ("usd_to_aed_rate", models.DecimalField(blank=True, decimal_places=4, max_digits=10, null=True)),
                ("item_count", models.PositiveIntegerField(default=0)),
                ("case_count", models.PositiveIntegerField(default=0)),
                ("payment_reference", models.CharField(blank=True, max_length=64)),
                ("client_payment_reference", models.CharField(blank=True, max_length=128)),
                ("distributor_payment_reference", models.CharField(blank=True, max_length=128)),
                ("partner_payment_reference", models.CharField(blank=True, max_length=128)),
                (
                    "partner_verification_response",
                    models.CharField(
                        blank=True,
                        choices=[("yes", "Yes"), ("no", "No"), ("dont_know", "Don't know")],
                        max_length=20,
                    ),
                ),
                ("partner_verification_at", stamp()),
                (
                    "distributor_verification_response",
                    models.CharField(
                        blank=True,
                        choices=[("verified", "Verified"), ("not_verified", "Not verified")],
                        max_length=20,
                    ),
                ),
                ("distributor_verification_at", stamp()),
                ("distributor_verification_notes", models.TextField(blank=True)),
                ("client_verified_at", stamp()),
                ("submitted_at", stamp()),
                ("approved_at", stamp()),
                ("distributor_assigned_at", stamp()),
                ("client_paid_at", stamp()),
                ("client_payment_confirmed_at", stamp()),
                ("distributor_paid_at", stamp()),
                ("partner_paid_at", stamp()),
                ("stock_in_transit_at", stamp()),
                ("stock_received_at", stamp()),
                ("out_for_delivery_at", stamp()),
                ("delivered_at", stamp()),
                ("cancelled_at", stamp()),
                ("cancellation_reason", models.TextField(blank=True)),
                ("partner_notes", models.TextField(blank=True)),
                ("admin_notes", models.TextField(blank=True)),
                ("distributor_notes", models.TextField(blank=True)),
                ("revision_reason", models.TextField(blank=True)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                ("approved_by", user_fk(related_name="+")),
                (
                    "client",
                    models.ForeignKey(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.SET_NULL,
                        related_name="orders",
                        to="orders.privateclientcontact",
                    ),
                ),
                ("client_verified_by", user_fk(related_name="+")),
                ("created_by", user_fk(related_name="created_private_client_orders")),
                (
                    "distributor",
                    models.ForeignKey(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="distributed_orders",
                        to="partners.partner",
                    ),
                ),
                ("distributor_verification_by", user_fk(related_name="+")),
                (
                    "partner",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="private_client_orders",
                        to="partners.partner",
                    ),
                ),
                ("partner_verification_by", user_fk(related_name="+")),
            ],
            options={
                "ordering": ["-created_at"],
                "indexes": [
                    models.Index(fields=["partner", "status"], name="orders_priv_partner_f23734_idx"),
                    models.Index(fields=["distributor", "status"], name="orders_priv_distrib_f5896f_idx"),
                    models.Index(fields=["status", "created_at"], name="orders_priv_status_d12723_idx"),
                ],
                "constraints": [
                    models.CheckConstraint(condition=models.Q(("total_usd__gte", 0)), name="chk_pco_total_usd_gte_zero"),
                ],
            },
        ),
        migrations.CreateModel(
            name="PrivateClientOrderItem",
            fields=[
                (
                    "id",
                    models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False),
                ),
                ("product_name", models.CharField(max_length=255)),
                ("producer", models.CharField(blank=True, max_length=255)),
                ("vintage", models.CharField(blank=True, max_length=10)),
                ("lwin", models.CharField(blank=True, db_index=True, max_length=18)),
                ("bottle_size", models.CharField(default="750ml", max_length=20)),
                ("case_config", models.PositiveIntegerField(default=12)),
                ("quantity", models.PositiveIntegerField(help_text="Cases")),
                ("price_per_case_usd", models.DecimalField(decimal_places=2, max_digits=14)),
                ("line_total_usd", usd()),
                (
                    "source",
                    models.CharField(
                        choices=[
                            ("cc_inventory", "C&C Inventory"),
                            ("partner_airfreight", "Partner Airfreight"),
                            ("partner_local", "Partner Local"),
                            ("manual", "Manual"),
                        ],
                        default="manual",
                        max_length=32,
                    ),
                ),
                (
                    "stock_status",
                    models.CharField(
                        choices=[
                            ("pending", "Pending"),
                            ("confirmed", "Confirmed"),
                            ("at_cc_bonded", "At C&C Bonded"),
                            ("in_transit_to_cc", "In Transit to C&C"),
                            ("at_distributor", "At Distributor"),
                            ("delivered", "Delivered"),
                        ],
                        db_index=True,
                        default="pending",
                        max_length=32,
                    ),
                ),
                ("stock_confirmed_at", stamp()),
                ("stock_expected_at", stamp()),
                ("stock_notes", models.TextField(blank=True)),
                ("notes", models.TextField(blank=True)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                (
                    "order",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="items",
                        to="orders.privateclientorder",
                    ),
                ),
            ],
            options={
                "ordering": ["created_at"],
                "constraints": [
                    models.CheckConstraint(condition=models.Q(("quantity__gt", 0)), name="chk_pco_item_qty_gt_zero"),
                    models.CheckConstraint(
                        condition=models.Q(("price_per_case_usd__gte", 0)),
                        name="chk_pco_item_price_gte_zero",
                    ),
                ],
            },
        ),
        migrations.CreateModel(
            name="PrivateClientOrderActivityLog",
            fields=[
                (
                    "id",
                    models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False),
                ),
                ("action", models.CharField(db_index=True, max_length=50)),
                ("previous_status", models.CharField(blank=True, max_length=40)),
                ("new_status", models.CharField(blank=True, max_length=40)),
                ("notes", models.TextField(blank=True)),
                ("metadata", models.JSONField(blank=True, default=dict)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                (
                    "order",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="activity_logs",
                        to="orders.privateclientorder",
                    ),
                ),
                (
                    "partner",
                    models.ForeignKey(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.SET_NULL,
                        related_name="+",
                        to="partners.partner",
                    ),
                ),
                ("user", user_fk(related_name="+")),
            ],
            options={
                "ordering": ["-created_at"],
                "indexes": [
                    models.Index(fields=["order", "created_at"], name="orders_priv_order_i_db1e75_idx"),
                ],
            },
        ),
    ]
