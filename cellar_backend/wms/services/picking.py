# wms/services/picking.py

"""
PICK LISTS

pending → in_progress (first line picked) → completed (every line picked).
Each picked line consumes stock through convert_reservation_to_pick and
records a "pick" movement.
"""

from __future__ import annotations

import logging

from django.db import transaction
from django.utils import timezone

from wms.models import Location, PickList, PickListItem, Stock, StockMovement
from wms.services.exceptions import (
    AlreadyPickedError,
    InsufficientStockError,
    LocationError,
    PickError,
)
from wms.services.movements import record_movement, to_int_qty
from wms.services.reservations import convert_reservation_to_pick

logger = logging.getLogger(__name__)


def suggest_location(lwin18: str):
    best = (
        Stock.objects.select_related("location")
        .filter(lwin18=lwin18, available_cases__gt=0, location__is_active=True)
        .order_by("-available_cases")
        .first()
    )
    return best.location if best else None


@transaction.atomic
def create_pick_list(
    *,
    order_type: str,
    order_id,
    order_number: str = "",
    items: list[dict],
    assigned_to=None,
    notes: str = "",
) -> PickList:
    if not items:
        raise PickError("A pick list needs at least one line")

    pick_list = PickList.objects.create(
        order_type=order_type,
        order_id=str(order_id),
        order_number=order_number or "",
        assigned_to=assigned_to,
        notes=notes or "",
    )

    lines = []
    for item in items:
        qty = to_int_qty(item.get("quantity_cases"))
        lwin = (item.get("lwin18") or "").strip()
        if qty <= 0 or not lwin:
            raise PickError("Each pick line needs an lwin18 and a positive quantity")

        lines.append(
            PickListItem(
                pick_list=pick_list,
                order_item_id=str(item.get("order_item_id") or ""),
                lwin18=lwin,
                product_name=item.get("product_name") or "",
                quantity_cases=qty,
                suggested_location=suggest_location(lwin),
            )
        )

    PickListItem.objects.bulk_create(lines)
    pick_list.total_items = len(lines)
    pick_list.save(update_fields=["total_items"])

    logger.info(
        "Pick list created",
        extra={"pick_list_number": pick_list.pick_list_number, "lines": len(lines)},
    )
    return pick_list


@transaction.atomic
def pick_item(*, pick_list_item: PickListItem, location_id, picked_quantity=None, user=None) -> PickListItem:
    item = PickListItem.objects.select_for_update().get(pk=pick_list_item.pk)
    pick_list = PickList.objects.select_for_update().get(pk=item.pick_list_id)

    if item.is_picked:
        raise AlreadyPickedError(f"{item.product_name or item.lwin18} has already been picked")
    if pick_list.status in PickList.CLOSED_STATUSES:
        raise PickError(f"Pick list {pick_list.pick_list_number} is {pick_list.status}")

    location = Location.objects.filter(pk=location_id).first() if location_id else None
    if location is None:
        raise LocationError("Location not found")

    qty = to_int_qty(picked_quantity) if picked_quantity not in (None, "") else item.quantity_cases
    if qty <= 0:
        raise PickError("picked_quantity must be at least 1 case")

    stock = (
        Stock.objects.select_for_update()
        .filter(location=location, lwin18=item.lwin18, quantity_cases__gte=qty)
        .order_by("-quantity_cases")
        .first()
    )
    if stock is None:
        raise InsufficientStockError(
            f"No stock of {item.lwin18} with {qty} cases at {location.location_code}"
        )

    owner = stock.owner
    product_name = stock.product_name
    lot_number = stock.lot_number

    convert_reservation_to_pick(
        stock=stock,
        quantity=qty,
        order_type=pick_list.order_type,
        order_id=pick_list.order_id,
    )

    record_movement(
        movement_type=StockMovement.TYPE_PICK,
        quantity_cases=qty,
        lwin18=item.lwin18,
        product_name=product_name,
        lot_number=lot_number,
        from_location=location,
        from_owner=owner,
        order_type=pick_list.order_type,
        order_id=pick_list.order_id,
        user=user,
    )

    now = timezone.now()
    item.picked_quantity = qty
    item.picked_from_location = location
    item.is_picked = True
    item.picked_at = now
    item.picked_by = user if getattr(user, "is_authenticated", False) else None
    item.save()

    if pick_list.status == PickList.STATUS_PENDING:
        pick_list.status = PickList.STATUS_IN_PROGRESS
        pick_list.started_at = now
    pick_list.picked_items += 1
    pick_list.save(update_fields=["status", "started_at", "picked_items"])

    return item


@transaction.atomic
def complete_pick_list(*, pick_list: PickList, user=None) -> PickList:
    pick_list = PickList.objects.select_for_update().get(pk=pick_list.pk)

    if pick_list.status in PickList.CLOSED_STATUSES:
        raise PickError(f"Pick list {pick_list.pick_list_number} is already {pick_list.status}")

    outstanding = pick_list.items.filter(is_picked=False).count()
    if outstanding:
        raise PickError(f"{outstanding} line(s) have not been picked yet")

    pick_list.status = PickList.STATUS_COMPLETED
    pick_list.completed_at = timezone.now()
    pick_list.save(update_fields=["status", "completed_at"])

    logger.info("Pick list completed", extra={"pick_list_number": pick_list.pick_list_number})
    return pick_list


@transaction.atomic
def cancel_pick_list(*, pick_list: PickList) -> PickList:
    pick_list = PickList.objects.select_for_update().get(pk=pick_list.pk)
    if pick_list.status in PickList.CLOSED_STATUSES:
        raise PickError(f"Pick list {pick_list.pick_list_number} is already {pick_list.status}")

    pick_list.status = PickList.STATUS_CANCELLED
    pick_list.save(update_fields=["status"])
    return pick_list
