# wms/services/dispatch.py

"""
======================================================
PATH: wms/services/dispatch.py
======================================================
DISPATCH BATCHES

Status is forward-only: draft → picking → staged → dispatched → delivered.

- Orders are attached/detached only while the batch is draft or picking;
  order_count and total_cases are recomputed from the links on every change.
- Moving a batch to "dispatched" moves every linked PCO to stock_in_transit
  through the order service (so the PCO activity log records it).
- quick_dispatch does all of the above in one step for orders that were never
  batched: batch created already dispatched, stock taken off the shelves
  (reservations first), orders moved to stock_in_transit.
======================================================
"""

from __future__ import annotations

import logging

from django.db import transaction
from django.db.models import Count, Sum
from django.utils import timezone

from orders.models import PrivateClientOrder
from orders.services.order_lifecycle import ACTOR_DISPATCH, DISPATCHABLE_STATES
from orders.services.order_service import mark_in_transit
from partners.models import Partner
from wms.models import DispatchBatch, DispatchBatchOrder, Stock, StockMovement, StockReservation
from wms.services.exceptions import DispatchError
from wms.services.movements import record_movement
from wms.services.reservations import LWIN18_LENGTH, convert_reservation_to_pick

logger = logging.getLogger(__name__)

PCO_ORDER_TYPE = StockReservation.ORDER_TYPE_PCO


def _lock_batch(batch) -> DispatchBatch:
    return DispatchBatch.objects.select_for_update().get(pk=getattr(batch, "pk", batch))


def _require_distributor(distributor) -> Partner:
    if distributor is None or distributor.type != Partner.TYPE_DISTRIBUTOR or not distributor.is_active:
        raise DispatchError("Dispatch batches need an active distributor")
    return distributor


def _sync_totals(batch: DispatchBatch):
    agg = batch.orders.aggregate(orders=Count("id"), cases=Sum("case_count"))
    batch.order_count = agg["orders"] or 0
    batch.total_cases = agg["cases"] or 0
    batch.save(update_fields=["order_count", "total_cases", "updated_at"])


def _load_orders(order_ids) -> list[PrivateClientOrder]:
    wanted = [str(i) for i in order_ids or []]
    if not wanted:
        raise DispatchError("No orders given")

    orders = list(PrivateClientOrder.objects.select_for_update().filter(pk__in=wanted))
    found = {str(o.pk) for o in orders}
    missing = [i for i in wanted if i not in found]
    if missing:
        raise DispatchError(f"Orders not found: {', '.join(missing)}")
    return orders


@transaction.atomic
def create_dispatch_batch(*, distributor: Partner, notes: str = "", user=None) -> DispatchBatch:
    _require_distributor(distributor)
    batch = DispatchBatch.objects.create(
        distributor=distributor,
        notes=notes or "",
        created_by=user if getattr(user, "is_authenticated", False) else None,
    )
    logger.info(
        "Dispatch batch created",
        extra={"batch_number": batch.batch_number, "distributor_id": str(distributor.pk)},
    )
    return batch


@transaction.atomic
def add_orders_to_batch(*, batch: DispatchBatch, order_ids, user=None) -> DispatchBatch:
    batch = _lock_batch(batch)
    if batch.status not in DispatchBatch.EDITABLE_STATUSES:
        raise DispatchError(f"Orders cannot be added to a {batch.status} batch")

    for order in _load_orders(order_ids):
        if order.distributor_id != batch.distributor_id:
            raise DispatchError(f"Order {order.order_number} is assigned to a different distributor")
        if order.status not in DISPATCHABLE_STATES:
            raise DispatchError(f"Order {order.order_number} is not ready for dispatch ({order.status})")

        DispatchBatchOrder.objects.get_or_create(
            batch=batch,
            order_type=PCO_ORDER_TYPE,
            order_id=str(order.pk),
            defaults={"order_number": order.order_number, "case_count": order.case_count},
        )

    _sync_totals(batch)
    return batch


@transaction.atomic
def remove_order_from_batch(*, batch: DispatchBatch, order_id) -> DispatchBatch:
    batch = _lock_batch(batch)
    if batch.status not in DispatchBatch.EDITABLE_STATUSES:
        raise DispatchError(f"Orders cannot be removed from a {batch.status} batch")

    deleted, _ = batch.orders.filter(order_type=PCO_ORDER_TYPE, order_id=str(order_id)).delete()
    if not deleted:
        raise DispatchError("Order is not part of this batch")

    _sync_totals(batch)
    return batch


@transaction.atomic
def update_batch_status(*, batch: DispatchBatch, status: str, user=None) -> DispatchBatch:
    batch = _lock_batch(batch)

    if status not in DispatchBatch.STATUS_ORDER:
        raise DispatchError(f"Unknown batch status: {status}")

    current = DispatchBatch.STATUS_ORDER.index(batch.status)
    target = DispatchBatch.STATUS_ORDER.index(status)
    if target <= current:
        raise DispatchError(f"Batch cannot move from {batch.status} back to {status}")

    now = timezone.now()

    if status == DispatchBatch.STATUS_DISPATCHED:
        if not batch.orders.exists():
            raise DispatchError("Cannot dispatch an empty batch")

        order_ids = list(batch.orders.filter(order_type=PCO_ORDER_TYPE).values_list("order_id", flat=True))
        for order in PrivateClientOrder.objects.filter(pk__in=order_ids):
            if order.status == PrivateClientOrder.STATUS_STOCK_IN_TRANSIT:
                continue
            if order.status not in DISPATCHABLE_STATES:
                raise DispatchError(f"Order {order.order_number} cannot be dispatched ({order.status})")
            mark_in_transit(
                order=order,
                user=user,
                actor=ACTOR_DISPATCH,
                notes=f"Dispatched in {batch.batch_number}",
                metadata={"batch_number": batch.batch_number},
            )
        batch.dispatched_at = now

    if status == DispatchBatch.STATUS_DELIVERED:
        batch.delivered_at = now

    batch.status = status
    batch.save()

    logger.info("Dispatch batch status changed", extra={"batch_number": batch.batch_number, "status": status})
    return batch


def _pick_order_item(*, order: PrivateClientOrder, item, user) -> int:
    """
    Take one order line off the shelves: the order's reservations for the line
    first, then any other available stock of the same wine. Returns the number
    of cases that could not be found.
    """
    remaining = int(item.quantity)

    reservations = list(
        StockReservation.objects.select_for_update(of=("self",))
        .filter(
            order_type=PCO_ORDER_TYPE,
            order_id=str(order.pk),
            order_item_id=str(item.pk),
            status=StockReservation.STATUS_ACTIVE,
            stock__isnull=False,
        )
        .select_related("stock", "stock__location", "stock__owner")
        .order_by("created_at")
    )
    sources = [(r.stock, r.quantity_cases) for r in reservations]

    lwin = (item.lwin or "").strip()
    if lwin:
        qs = Stock.objects.select_for_update().select_related("location", "owner").filter(available_cases__gt=0)
        extra = list(qs.filter(lwin18=lwin).order_by("-available_cases"))
        if not extra and len(lwin) < LWIN18_LENGTH:
            extra = list(qs.filter(lwin18__startswith=lwin).order_by("-available_cases"))
        sources.extend((stock, None) for stock in extra)

    for stock, cap in sources:
        if remaining <= 0:
            break
        if not Stock.objects.filter(pk=stock.pk).exists():
            continue
        stock.refresh_from_db()

        # reserved lines carry their own cap; other rows only give what is free
        cap = stock.available_cases if cap is None else cap
        take = min(remaining, cap, stock.quantity_cases)
        if take <= 0:
            continue

        location, owner = stock.location, stock.owner
        lwin18, product_name, lot = stock.lwin18, stock.product_name, stock.lot_number

        convert_reservation_to_pick(
            stock=stock,
            quantity=take,
            order_type=PCO_ORDER_TYPE,
            order_id=order.pk,
        )
        record_movement(
            movement_type=StockMovement.TYPE_PICK,
            quantity_cases=take,
            lwin18=lwin18,
            product_name=product_name,
            lot_number=lot,
            from_location=location,
            from_owner=owner,
            order_type=PCO_ORDER_TYPE,
            order_id=order.pk,
            reason_code="quick_dispatch",
            user=user,
        )
        remaining -= take

    return remaining


@transaction.atomic
def quick_dispatch(*, order_ids, distributor: Partner, notes: str = "", user=None) -> dict:
    _require_distributor(distributor)
    orders = _load_orders(order_ids)

    for order in orders:
        if order.status not in DISPATCHABLE_STATES:
            raise DispatchError(f"Order {order.order_number} cannot be dispatched ({order.status})")
        if order.distributor_id and order.distributor_id != distributor.pk:
            raise DispatchError(f"Order {order.order_number} is assigned to a different distributor")

    now = timezone.now()
    batch = DispatchBatch.objects.create(
        distributor=distributor,
        status=DispatchBatch.STATUS_DISPATCHED,
        dispatched_at=now,
        notes=notes or "",
        created_by=user if getattr(user, "is_authenticated", False) else None,
    )

    short = []
    for order in orders:
        DispatchBatchOrder.objects.create(
            batch=batch,
            order_type=PCO_ORDER_TYPE,
            order_id=str(order.pk),
            order_number=order.order_number,
            case_count=order.case_count,
        )

        for item in order.items.all():
            missing = _pick_order_item(order=order, item=item, user=user)
            if missing:
                short.append(
                    {
                        "order_number": order.order_number,
                        "order_item_id": str(item.pk),
                        "lwin": item.lwin,
                        "short_cases": missing,
                    }
                )

        mark_in_transit(
            order=order,
            user=user,
            actor=ACTOR_DISPATCH,
            notes=f"Quick dispatch {batch.batch_number}",
            metadata={"batch_number": batch.batch_number},
        )

    _sync_totals(batch)

    if short:
        logger.warning(
            "Quick dispatch shipped lines without warehouse stock",
            extra={"batch_number": batch.batch_number, "short_lines": len(short)},
        )
    logger.info(
        "Quick dispatch completed",
        extra={"batch_number": batch.batch_number, "orders": len(orders), "total_cases": batch.total_cases},
    )
    return {"batch": batch, "short": short}
