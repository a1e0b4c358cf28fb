# wms/services/reports.py

from __future__ import annotations

from datetime import timedelta

from django.conf import settings
from django.db.models import Count, Sum
from django.utils import timezone

from wms.models import Stock


def get_expiring_stock(days: int | None = None):
    """
    Perishable stock whose expiry falls within `days` (already expired rows
    included), soonest first.
    """
    if days is None:
        days = getattr(settings, "WMS_EXPIRY_WARNING_DAYS", 90)

    cutoff = timezone.localdate() + timedelta(days=int(days))
    return (
        Stock.objects.select_related("location", "owner")
        .filter(is_perishable=True, expiry_date__isnull=False, expiry_date__lte=cutoff)
        .order_by("expiry_date")
    )


def get_stock_overview() -> dict:
    totals = Stock.objects.aggregate(
        quantity_cases=Sum("quantity_cases"),
        reserved_cases=Sum("reserved_cases"),
        available_cases=Sum("available_cases"),
        rows=Count("id"),
    )

    by_owner = (
        Stock.objects.values("owner_id", "owner__name")
        .annotate(
            quantity_cases=Sum("quantity_cases"),
            reserved_cases=Sum("reserved_cases"),
            available_cases=Sum("available_cases"),
            products=Count("lwin18", distinct=True),
        )
        .order_by("owner__name")
    )

    by_product = (
        Stock.objects.values("lwin18", "product_name")
        .annotate(
            quantity_cases=Sum("quantity_cases"),
            reserved_cases=Sum("reserved_cases"),
            available_cases=Sum("available_cases"),
            locations=Count("location", distinct=True),
        )
        .order_by("product_name")
    )

    return {
        "totals": {key: value or 0 for key, value in totals.items()},
        "by_owner": [
            {
                "owner_id": str(row["owner_id"]),
                "owner_name": row["owner__name"],
                "quantity_cases": row["quantity_cases"] or 0,
                "reserved_cases": row["reserved_cases"] or 0,
                "available_cases": row["available_cases"] or 0,
                "products": row["products"],
            }
            for row in by_owner
        ],
        "by_product": list(by_product),
    }
