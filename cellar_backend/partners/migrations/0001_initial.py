"""
======================================================
PATH: partners/migrations/0001_initial.py
======================================================
MIGRATION: CREATE Partner, PartnerMember

Purpose:
- Wine partners and distributors, and the users acting for them.
- distributor_code is unique only when present.
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
            name="Partner",
            fields=[
                (
                    "id",
                    models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False),
                ),
                ("name", models.CharField(max_length=255)),
                (
                    "type",
                    models.CharField(
                        choices=[("wine_partner", "Wine Partner"), ("distributor", "Distributor")],
                        db_index=True,
                        max_length=20,
                    ),
                ),
                ("business_email", models.EmailField(blank=True, max_length=254)),
                ("business_phone", models.CharField(blank=True, max_length=50)),
                (
                    "distributor_code",
                    models.CharField(
                        blank=True,
                        db_index=True,
                        help_text="Short code used as payment reference prefix (distributors only).",
                        max_length=20,
                        null=True,
                    ),
                ),
                ("requires_client_verification", models.BooleanField(default=False)),
                ("is_active", models.BooleanField(default=True)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
            ],
            options={
                "ordering": ["name"],
                "constraints": [
                    models.UniqueConstraint(
                        condition=models.Q(("distributor_code__isnull", False), models.Q(("distributor_code", ""), _negated=True)),
                        fields=("distributor_code",),
                        name="uniq_partner_distributor_code_when_present",
                    ),
                ],
            },
        ),
        migrations.CreateModel(
            name="PartnerMember",
            fields=[
                (
                    "id",
                    models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False),
                ),
                (
                    "role",
                    models.CharField(
                        choices=[("owner", "Owner"), ("member", "Member")],
                        default="member",
                        max_length=20,
                    ),
                ),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                (
                    "partner",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="members",
                        to="partners.partner",
                    ),
                ),
                (
                    "user",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="partner_memberships",
                        to=settings.AUTH_USER_MODEL,
                    ),
                ),
            ],
            options={
                "ordering": ["created_at"],
                "constraints": [
                    models.UniqueConstraint(fields=("partner", "user"), name="uniq_partner_member"),
                ],
            },
        ),
    ]
