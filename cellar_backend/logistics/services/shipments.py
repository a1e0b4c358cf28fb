"""
======================================================
PATH: logistics/services/shipments.py
======================================================
SHIPMENT SERVICE

- Status only moves forward along Shipment.STATUS_ORDER (skipping steps is
  allowed, going back is not). cancelled is reachable from any non-final
  status.
- in_transit stamps atd, arrived_port / at_warehouse / delivered stamp ata
  (only when not already set).
- Every status change appends a ShipmentActivityLog row in the same
  transaction.
- recalculate_shipment persists the landed cost figures onto the items.
======================================================
"""

from __future__ import annotations

import logging

from django.db import transaction
from django.utils import timezone

from logistics.models import Shipment, ShipmentActivityLog, ShipmentItem
from logistics.services.landed_cost import calculate_landed_cost
from notifications.services.notify import notify_partner_members

logger = logging.getLogger(__name__)


class ShipmentError(Exception):
    pass


SHIPMENT_FIELDS = {
    "partner",
    "transport_mode",
    "origin_country",
    "origin_city",
    "destination_country",
    "destination_city",
    "carrier_name",
    "tracking_number",
    "etd",
    "eta",
    "freight_cost_usd",
    "insurance_cost_usd",
    "origin_handling_usd",
    "destination_handling_usd",
    "customs_clearance_usd",
    "gov_fees_usd",
    "delivery_cost_usd",
    "other_costs_usd",
    "cost_allocation_method",
    "notes",
}

ITEM_FIELDS = {
    "product_name",
    "lwin",
    "cases",
    "bottles_per_case",
    "total_bottles",
    "gross_weight_kg",
    "product_cost_per_bottle",
    "declared_value_usd",
    "target_selling_price",
}

DEPARTURE_STATUSES = {Shipment.STATUS_IN_TRANSIT}
ARRIVAL_STATUSES = {
    Shipment.STATUS_ARRIVED_PORT,
    Shipment.STATUS_AT_WAREHOUSE,
    Shipment.STATUS_DELIVERED,
}


def _user_or_none(user):
    return user if getattr(user, "is_authenticated", False) else None


def _lock(shipment) -> Shipment:
    return Shipment.objects.select_for_update().get(pk=getattr(shipment, "pk", shipment))


def _log(shipment, *, user, action, previous_status="", new_status="", notes="", metadata=None):
    return ShipmentActivityLog.objects.create(
        shipment=shipment,
        user=_user_or_none(user),
        action=action,
        previous_status=previous_status,
        new_status=new_status,
        notes=notes or "",
        metadata=metadata or {},
    )


@transaction.atomic
def create_shipment(*, data: dict, user=None) -> Shipment:
    shipment = Shipment.objects.create(
        created_by=_user_or_none(user),
        **{k: v for k, v in data.items() if k in SHIPMENT_FIELDS},
    )
    _log(shipment, user=user, action="created", new_status=shipment.status)
    logger.info("Shipment created", extra={"shipment_number": shipment.shipment_number})
    return shipment


@transaction.atomic
def update_shipment(*, shipment: Shipment, data: dict, user=None) -> Shipment:
    shipment = _lock(shipment)
    if shipment.status in Shipment.FINAL_STATUSES:
        raise ShipmentError(f"A {shipment.status} shipment cannot be edited")

    changed = sorted(k for k in data if k in SHIPMENT_FIELDS)
    for key in changed:
        setattr(shipment, key, data[key])
    shipment.save()

    _log(shipment, user=user, action="updated", metadata={"fields": changed})
    return shipment


@transaction.atomic
def add_item(*, shipment: Shipment, data: dict, user=None) -> ShipmentItem:
    shipment = _lock(shipment)
    if shipment.status in Shipment.FINAL_STATUSES:
        raise ShipmentError(f"Items cannot be added to a {shipment.status} shipment")

    item = ShipmentItem.objects.create(
        shipment=shipment,
        **{k: v for k, v in data.items() if k in ITEM_FIELDS},
    )
    _log(shipment, user=user, action="item_added", metadata={"item_id": str(item.id)})
    return item


@transaction.atomic
def remove_item(*, shipment: Shipment, item_id, user=None):
    shipment = _lock(shipment)
    if shipment.status in Shipment.FINAL_STATUSES:
        raise ShipmentError(f"Items cannot be removed from a {shipment.status} shipment")

    deleted, _ = shipment.items.filter(pk=item_id).delete()
    if not deleted:
        raise ShipmentError("Item not found on this shipment")
    _log(shipment, user=user, action="item_removed", metadata={"item_id": str(item_id)})


@transaction.atomic
def recalculate_shipment(*, shipment: Shipment) -> dict:
    shipment = _lock(shipment)
    items = list(shipment.items.all())
    result = calculate_landed_cost(shipment, items)

    by_id = {row["item_id"]: row for row in result["items"]}
    for item in items:
        row = by_id[str(item.id)]
        item.allocated_freight = row["allocated_freight"]
        item.allocated_insurance = row["allocated_insurance"]
        item.allocated_handling = row["allocated_handling"]
        item.allocated_government = row["allocated_government"]
        item.landed_cost_total = row["landed_cost_total"]
        item.landed_cost_per_bottle = row["landed_cost_per_bottle"]
        item.margin_percent = row["margin_percent"]

    ShipmentItem.objects.bulk_update(
        items,
        [
            "allocated_freight",
            "allocated_insurance",
            "allocated_handling",
            "allocated_government",
            "landed_cost_total",
            "landed_cost_per_bottle",
            "margin_percent",
        ],
    )

    logger.info(
        "Landed cost recalculated",
        extra={
            "shipment_number": shipment.shipment_number,
            "items": len(items),
            "total_landed_cost_usd": str(result["summary"]["total_landed_cost_usd"]),
        },
    )
    return result


def can_move(from_status: str, to_status: str) -> bool:
    if from_status in Shipment.FINAL_STATUSES:
        return False
    if to_status == Shipment.STATUS_CANCELLED:
        return True
    if to_status not in Shipment.STATUS_ORDER:
        return False
    return Shipment.STATUS_ORDER.index(to_status) > Shipment.STATUS_ORDER.index(from_status)


@transaction.atomic
def update_shipment_status(*, shipment: Shipment, status: str, user=None, notes: str = "") -> Shipment:
    shipment = _lock(shipment)
    previous = shipment.status

    if not can_move(previous, status):
        raise ShipmentError(f"Shipment cannot move from {previous} to {status}")

    today = timezone.localdate()
    if status in DEPARTURE_STATUSES and shipment.atd is None:
        shipment.atd = today
    if status in ARRIVAL_STATUSES and shipment.ata is None:
        shipment.ata = today

    shipment.status = status
    shipment.save()

    _log(
        shipment,
        user=user,
        action="status_changed",
        previous_status=previous,
        new_status=status,
        notes=notes,
    )

    notify_partner_members(
        partner=shipment.partner,
        type="shipment_status",
        title=f"Shipment {shipment.shipment_number} is {shipment.get_status_display().lower()}",
        entity_type="shipment",
        entity_id=shipment.pk,
        action_url=f"/platform/partner/logistics/{shipment.pk}",
    )

    logger.info(
        "Shipment status changed",
        extra={"shipment_number": shipment.shipment_number, "from": previous, "to": status},
    )
    return shipment
