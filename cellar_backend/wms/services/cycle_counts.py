# wms/services/cycle_counts.py

"""
CYCLE COUNTS AND ADJUSTMENTS

pending → in_progress (first count recorded) → completed (all lines counted)
→ reconciled (approved discrepancies written to stock).

Reconciliation writes one signed "count" movement per corrected row; a row
counted at zero is deleted.
"""

from __future__ import annotations

import logging

from django.db import transaction
from django.utils import timezone

from wms.models import CycleCount, CycleCountItem, Location, Stock, StockMovement
from wms.services.exceptions import CycleCountError, LocationError, StockError
from wms.services.movements import record_movement, to_int_qty

logger = logging.getLogger(__name__)


def _apply_quantity(*, stock: Stock, new_quantity: int, movement_type: str, reason_code: str, notes: str, user):
    if new_quantity < 0:
        raise StockError("quantity cannot be negative")
    if new_quantity < stock.reserved_cases:
        raise StockError(
            f"{stock.lwin18} at {stock.location.location_code} has {stock.reserved_cases} "
            f"reserved case(s); release them before reducing stock to {new_quantity}"
        )

    delta = new_quantity - stock.quantity_cases
    if delta == 0:
        return None

    movement = record_movement(
        movement_type=movement_type,
        stock=stock,
        quantity_cases=delta,
        from_location=stock.location,
        to_location=stock.location,
        from_owner=stock.owner,
        to_owner=stock.owner,
        reason_code=reason_code,
        notes=notes,
        user=user,
    )

    stock.quantity_cases = new_quantity
    if new_quantity == 0:
        stock.delete()
    else:
        stock.save(update_fields=["quantity_cases", "reserved_cases", "available_cases", "updated_at"])
    return movement


@transaction.atomic
def adjust_stock(*, stock: Stock, new_quantity, reason_code: str = "", notes: str = "", user=None):
    stock = Stock.objects.select_for_update().select_related("location", "owner").get(pk=stock.pk)
    return _apply_quantity(
        stock=stock,
        new_quantity=to_int_qty(new_quantity),
        movement_type=StockMovement.TYPE_ADJUSTMENT,
        reason_code=reason_code or "manual",
        notes=notes,
        user=user,
    )


@transaction.atomic
def create_cycle_count(*, location: Location, user=None, notes: str = "") -> CycleCount:
    if location is None:
        raise LocationError("Location not found")

    count = CycleCount.objects.create(
        location=location,
        created_by=user if getattr(user, "is_authenticated", False) else None,
        notes=notes or "",
    )

    CycleCountItem.objects.bulk_create(
        [
            CycleCountItem(
                cycle_count=count,
                stock=stock,
                lwin18=stock.lwin18,
                product_name=stock.product_name,
                expected_quantity=stock.quantity_cases,
            )
            for stock in Stock.objects.filter(location=location)
        ]
    )
    return count


@transaction.atomic
def record_counts(*, cycle_count: CycleCount, counts: list[dict], user=None) -> CycleCount:
    """
    counts: [{"item_id", "counted_quantity"}]
    """
    count = CycleCount.objects.select_for_update().get(pk=cycle_count.pk)
    if count.status not in (CycleCount.STATUS_PENDING, CycleCount.STATUS_IN_PROGRESS):
        raise CycleCountError(f"Cycle count {count.count_number} is {count.status}")

    items = {str(i.id): i for i in count.items.select_for_update()}
    now = timezone.now()

    for row in counts:
        item = items.get(str(row.get("item_id")))
        if item is None:
            raise CycleCountError(f"Item {row.get('item_id')} is not part of this count")

        counted = to_int_qty(row.get("counted_quantity"))
        if counted < 0:
            raise CycleCountError("counted_quantity cannot be negative")

        item.counted_quantity = counted
        item.counted_at = now
        item.counted_by = user if getattr(user, "is_authenticated", False) else None
        item.save()

    if count.status == CycleCount.STATUS_PENDING:
        count.status = CycleCount.STATUS_IN_PROGRESS
        count.save(update_fields=["status"])
    return count


@transaction.atomic
def complete_cycle_count(*, cycle_count: CycleCount) -> CycleCount:
    count = CycleCount.objects.select_for_update().get(pk=cycle_count.pk)
    if count.status not in (CycleCount.STATUS_PENDING, CycleCount.STATUS_IN_PROGRESS):
        raise CycleCountError(f"Cycle count {count.count_number} is {count.status}")

    uncounted = count.items.filter(counted_quantity__isnull=True).count()
    if uncounted:
        raise CycleCountError(f"{uncounted} line(s) have not been counted")

    count.status = CycleCount.STATUS_COMPLETED
    count.completed_at = timezone.now()
    count.save(update_fields=["status", "completed_at"])
    return count


@transaction.atomic
def reconcile_cycle_count(*, cycle_count: CycleCount, approvals=None, user=None) -> dict:
    """
    approvals: iterable of CycleCountItem ids to apply; None applies every
    line with a discrepancy.
    """
    count = CycleCount.objects.select_for_update().get(pk=cycle_count.pk)
    if count.status != CycleCount.STATUS_COMPLETED:
        raise CycleCountError("Only completed cycle counts can be reconciled")

    approved_ids = None if approvals is None else {str(a) for a in approvals}
    adjusted = []

    for item in count.items.exclude(discrepancy=0):
        if approved_ids is not None and str(item.id) not in approved_ids:
            continue
        if item.stock_id is None:
            continue

        stock = (
            Stock.objects.select_for_update()
            .select_related("location", "owner")
            .filter(pk=item.stock_id)
            .first()
        )
        if stock is None:
            continue

        movement = _apply_quantity(
            stock=stock,
            new_quantity=int(item.counted_quantity),
            movement_type=StockMovement.TYPE_COUNT,
            reason_code="cycle_count",
            notes=count.count_number,
            user=user,
        )
        if movement is not None:
            adjusted.append(
                {
                    "item_id": str(item.id),
                    "lwin18": item.lwin18,
                    "discrepancy": item.discrepancy,
                    "movement_number": movement.movement_number,
                }
            )

    count.status = CycleCount.STATUS_RECONCILED
    count.reconciled_at = timezone.now()
    count.reconciled_by = user if getattr(user, "is_authenticated", False) else None
    count.save(update_fields=["status", "reconciled_at", "reconciled_by"])

    logger.info(
        "Cycle count reconciled",
        extra={"count_number": count.count_number, "adjusted": len(adjusted)},
    )
    return {"cycle_count": count, "adjusted": adjusted}
