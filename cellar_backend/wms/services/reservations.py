# wms/services/reservations.py

"""
======================================================
PATH: wms/services/reservations.py
======================================================
STOCK RESERVATIONS

Reserving moves cases from available → reserved on a Stock row and records a
StockReservation per (order item, stock row). Picking later converts a
reservation into a physical decrement.

RULES:
- Idempotent per order item: an item that already holds an ACTIVE reservation
  is skipped.
- Match by exact lwin18; when nothing matches and the code is shorter than 18
  characters (an LWIN7/LWIN11 on the order), fall back to a prefix match.
- Greedy allocation: rows with the most available cases first, taking
  min(remaining, available) from each.
- Shortfalls are reported, never raised: an order can be partly reserved.
======================================================
"""

from __future__ import annotations

import logging

from django.db import transaction
from django.utils import timezone

from wms.models import Stock, StockReservation
from wms.services.exceptions import InsufficientStockError, StockError
from wms.services.movements import to_int_qty

logger = logging.getLogger(__name__)

LWIN18_LENGTH = 18


def _lock_matching_stock(lwin: str) -> list[Stock]:
    qs = Stock.objects.select_for_update().filter(available_cases__gt=0)
    ordering = ("-available_cases", "created_at")

    rows = list(qs.filter(lwin18=lwin).order_by(*ordering))
    if not rows and len(lwin) < LWIN18_LENGTH:
        rows = list(qs.filter(lwin18__startswith=lwin).order_by(*ordering))
    return rows


def _save_quantities(stock: Stock):
    stock.save(update_fields=["quantity_cases", "reserved_cases", "available_cases", "updated_at"])


@transaction.atomic
def reserve_stock_for_order_items(
    *,
    order_type: str,
    order_id,
    order_number: str = "",
    items: list[dict],
) -> dict:
    """
    items: [{"order_item_id", "lwin18", "product_name", "quantity_cases"}]

    Returns {"reserved": [...], "short": [...], "skipped": [...]}.
    """
    order_id = str(order_id)

    already_reserved = set(
        StockReservation.objects.filter(
            order_type=order_type,
            order_id=order_id,
            status=StockReservation.STATUS_ACTIVE,
        ).values_list("order_item_id", flat=True)
    )

    reserved: list[dict] = []
    short: list[dict] = []
    skipped: list[str] = []

    for item in items:
        item_id = str(item.get("order_item_id") or "")
        lwin = (item.get("lwin18") or "").strip()
        requested = to_int_qty(item.get("quantity_cases"))

        if item_id and item_id in already_reserved:
            skipped.append(item_id)
            continue

        if not lwin or requested <= 0:
            short.append(
                {
                    "order_item_id": item_id,
                    "lwin18": lwin,
                    "requested": requested,
                    "reserved": 0,
                    "short": requested,
                }
            )
            continue

        remaining = requested
        for stock in _lock_matching_stock(lwin):
            if remaining <= 0:
                break

            take = min(remaining, stock.available_cases)
            if take <= 0:
                continue

            stock.reserved_cases += take
            _save_quantities(stock)

            reservation = StockReservation.objects.create(
                stock=stock,
                order_type=order_type,
                order_id=order_id,
                order_number=order_number or "",
                order_item_id=item_id,
                lwin18=stock.lwin18,
                product_name=item.get("product_name") or stock.product_name,
                quantity_cases=take,
            )
            reserved.append(
                {
                    "reservation_id": str(reservation.id),
                    "order_item_id": item_id,
                    "stock_id": str(stock.id),
                    "location_code": stock.location.location_code,
                    "lwin18": stock.lwin18,
                    "quantity_cases": take,
                }
            )
            remaining -= take

        if remaining > 0:
            short.append(
                {
                    "order_item_id": item_id,
                    "lwin18": lwin,
                    "requested": requested,
                    "reserved": requested - remaining,
                    "short": remaining,
                }
            )

    logger.info(
        "Stock reserved for order",
        extra={
            "order_type": order_type,
            "order_id": order_id,
            "reserved_lines": len(reserved),
            "short_lines": len(short),
        },
    )
    return {"reserved": reserved, "short": short, "skipped": skipped}


@transaction.atomic
def release_reservations(*, order_type: str, order_id) -> int:
    """
    Return every ACTIVE reservation of an order to available stock.
    """
    now = timezone.now()
    released = 0

    reservations = StockReservation.objects.select_for_update().filter(
        order_type=order_type,
        order_id=str(order_id),
        status=StockReservation.STATUS_ACTIVE,
    )

    for reservation in reservations:
        if reservation.stock_id:
            stock = Stock.objects.select_for_update().filter(pk=reservation.stock_id).first()
            if stock is not None:
                stock.reserved_cases -= min(reservation.quantity_cases, stock.reserved_cases)
                _save_quantities(stock)

        reservation.status = StockReservation.STATUS_RELEASED
        reservation.released_at = now
        reservation.save(update_fields=["status", "released_at"])
        released += 1

    if released:
        logger.info(
            "Reservations released",
            extra={"order_type": order_type, "order_id": str(order_id), "count": released},
        )
    return released


@transaction.atomic
def convert_reservation_to_pick(*, stock: Stock, quantity, order_type: str = "", order_id="") -> dict:
    """
    Physically take `quantity` cases off a stock row.

    Cases are drawn from the order's ACTIVE reservations on this row first
    (fulfilling or shrinking them); any excess must come from available stock.
    The row is deleted once it reaches zero.
    """
    qty = to_int_qty(quantity)
    if qty <= 0:
        raise StockError("quantity must be at least 1 case")

    stock = Stock.objects.select_for_update().get(pk=stock.pk)

    reservations = []
    if order_type and order_id:
        reservations = list(
            StockReservation.objects.select_for_update()
            .filter(
                stock=stock,
                order_type=order_type,
                order_id=str(order_id),
                status=StockReservation.STATUS_ACTIVE,
            )
            .order_by("created_at")
        )

    # plan first: nothing is written if the row cannot cover the pick
    plan = []
    remaining = qty
    for reservation in reservations:
        if remaining <= 0:
            break
        take = min(reservation.quantity_cases, remaining)
        plan.append((reservation, take))
        remaining -= take

    from_reserved = min(qty - remaining, stock.reserved_cases)
    from_available = qty - from_reserved

    if from_available > stock.available_cases:
        raise InsufficientStockError(
            f"Insufficient stock for {stock.lwin18} at {stock.location.location_code}: "
            f"requested {qty}, reserved {from_reserved}, available {stock.available_cases}"
        )

    now = timezone.now()
    for reservation, take in plan:
        if take >= reservation.quantity_cases:
            reservation.status = StockReservation.STATUS_FULFILLED
            reservation.fulfilled_at = now
            reservation.save(update_fields=["status", "fulfilled_at"])
        else:
            reservation.quantity_cases -= take
            reservation.save(update_fields=["quantity_cases"])

    stock.quantity_cases -= qty
    stock.reserved_cases -= from_reserved

    deleted = stock.quantity_cases == 0
    if deleted:
        stock.delete()
    else:
        _save_quantities(stock)

    return {
        "quantity_cases": qty,
        "from_reserved": from_reserved,
        "from_available": from_available,
        "stock_deleted": deleted,
    }


def get_active_reservations(*, order_type: str, order_id):
    return StockReservation.objects.select_related("stock", "stock__location").filter(
        order_type=order_type,
        order_id=str(order_id),
        status=StockReservation.STATUS_ACTIVE,
    )
