# wms/services/transfers.py

"""
======================================================
PATH: wms/services/transfers.py
======================================================
RECEIVING, PUTAWAY, TRANSFERS AND OWNERSHIP

Rows are keyed by (location, owner, lwin18, lot_number). Moving cases between
locations or owners decrements the source (deleting it at zero) and merges
into the matching destination row, creating it when absent.

Only AVAILABLE cases may move: reserved cases stay where the reservation
points.
======================================================
"""

from __future__ import annotations

import logging

from django.db import transaction
from django.utils import timezone

from partners.models import Partner
from wms.models import Location, Stock, StockMovement
from wms.services.exceptions import InsufficientStockError, LocationError, StockError
from wms.services.movements import record_movement, to_int_qty

logger = logging.getLogger(__name__)

# copied onto a new row when cases are split off an existing one
PRODUCT_FIELDS = (
    "lwin18",
    "product_name",
    "producer",
    "vintage",
    "bottle_size",
    "case_config",
    "lot_number",
    "sales_arrangement",
    "consignment_commission_percent",
    "received_at",
    "shipment_id",
    "expiry_date",
    "is_perishable",
)


def _lock(stock: Stock) -> Stock:
    return Stock.objects.select_for_update().select_related("location", "owner").get(pk=stock.pk)


def _take_from(stock: Stock, qty: int):
    stock.quantity_cases -= qty
    if stock.quantity_cases == 0:
        stock.delete()
    else:
        stock.save(update_fields=["quantity_cases", "reserved_cases", "available_cases", "updated_at"])


def _merge_into(*, template: Stock, location: Location, owner: Partner, qty: int, **overrides) -> Stock:
    target = (
        Stock.objects.select_for_update()
        .filter(
            location=location,
            owner=owner,
            lwin18=template.lwin18,
            lot_number=template.lot_number,
        )
        .first()
    )
    if target is not None:
        target.quantity_cases += qty
        for field, value in overrides.items():
            setattr(target, field, value)
        target.save()
        return target

    values = {field: getattr(template, field) for field in PRODUCT_FIELDS}
    values.update(overrides)
    return Stock.objects.create(location=location, owner=owner, quantity_cases=qty, **values)


def _validate_destination(stock: Stock, to_location: Location):
    if to_location is None:
        raise LocationError("Destination location not found")
    if not to_location.is_active:
        raise LocationError(f"Location {to_location.location_code} is inactive")
    if to_location.pk == stock.location_id:
        raise LocationError("Destination must differ from the current location")


def _validate_quantity(stock: Stock, quantity) -> int:
    qty = to_int_qty(quantity)
    if qty <= 0:
        raise StockError("quantity must be at least 1 case")
    if qty > stock.available_cases:
        raise InsufficientStockError(
            f"Only {stock.available_cases} case(s) of {stock.lwin18} are available to move"
        )
    return qty


@transaction.atomic
def transfer_stock(
    *,
    stock: Stock,
    to_location: Location,
    quantity,
    user=None,
    notes: str = "",
    movement_type: str = StockMovement.TYPE_TRANSFER,
) -> Stock:
    stock = _lock(stock)
    _validate_destination(stock, to_location)
    qty = _validate_quantity(stock, quantity)

    from_location = stock.location
    owner = stock.owner

    destination = _merge_into(template=stock, location=to_location, owner=owner, qty=qty)

    record_movement(
        movement_type=movement_type,
        stock=stock,
        quantity_cases=qty,
        from_location=from_location,
        to_location=to_location,
        from_owner=owner,
        to_owner=owner,
        notes=notes,
        user=user,
    )

    _take_from(stock, qty)
    return destination


def putaway(*, stock: Stock, to_location: Location, quantity, user=None, notes: str = "") -> Stock:
    return transfer_stock(
        stock=stock,
        to_location=to_location,
        quantity=quantity,
        user=user,
        notes=notes,
        movement_type=StockMovement.TYPE_PUTAWAY,
    )


@transaction.atomic
def transfer_ownership(
    *,
    stock: Stock,
    new_owner: Partner,
    quantity=None,
    sales_arrangement: str | None = None,
    commission_percent=None,
    user=None,
    notes: str = "",
) -> Stock:
    """
    Full transfer (quantity omitted or equal to the row) re-owns the row in
    place. Partial transfer splits the row, merging into the new owner's
    matching row at the same location when one exists.
    """
    stock = _lock(stock)

    if new_owner is None:
        raise StockError("New owner not found")
    if new_owner.pk == stock.owner_id:
        raise StockError("Stock already belongs to this owner")

    qty = stock.quantity_cases if quantity in (None, "") else _validate_quantity(stock, quantity)
    if qty > stock.available_cases:
        raise InsufficientStockError("Reserved cases cannot change owner")

    previous_owner = stock.owner
    overrides = {}
    if sales_arrangement:
        overrides["sales_arrangement"] = sales_arrangement
    if commission_percent not in (None, ""):
        overrides["consignment_commission_percent"] = commission_percent

    if qty == stock.quantity_cases:
        stock.owner = new_owner
        for field, value in overrides.items():
            setattr(stock, field, value)
        stock.save()
        result = stock
    else:
        result = _merge_into(
            template=stock,
            location=stock.location,
            owner=new_owner,
            qty=qty,
            **overrides,
        )
        _take_from(stock, qty)

    record_movement(
        movement_type=StockMovement.TYPE_OWNERSHIP_TRANSFER,
        stock=result,
        quantity_cases=qty,
        from_location=result.location,
        to_location=result.location,
        from_owner=previous_owner,
        to_owner=new_owner,
        notes=notes,
        user=user,
    )

    logger.info(
        "Stock ownership transferred",
        extra={
            "lwin18": result.lwin18,
            "quantity_cases": qty,
            "from_owner": str(previous_owner.pk),
            "to_owner": str(new_owner.pk),
        },
    )
    return result


@transaction.atomic
def receive_stock(*, location: Location, owner: Partner, lines: list[dict], shipment=None, user=None) -> list[Stock]:
    """
    lines: [{"lwin18", "product_name", "quantity_cases", optional producer,
             vintage, bottle_size, case_config, lot_number, expiry_date,
             is_perishable, sales_arrangement}]
    """
    if location is None or not location.is_active:
        raise LocationError("Receiving location not found or inactive")
    if not lines:
        raise StockError("Nothing to receive")

    now = timezone.now()
    received = []

    for line in lines:
        qty = to_int_qty(line.get("quantity_cases"))
        lwin = (line.get("lwin18") or "").strip()
        if qty <= 0 or not lwin:
            raise StockError("Each received line needs an lwin18 and a positive quantity")

        lot_number = line.get("lot_number") or ""
        stock = (
            Stock.objects.select_for_update()
            .filter(location=location, owner=owner, lwin18=lwin, lot_number=lot_number)
            .first()
        )

        if stock is not None:
            stock.quantity_cases += qty
            stock.save()
        else:
            stock = Stock.objects.create(
                location=location,
                owner=owner,
                lwin18=lwin,
                product_name=line.get("product_name") or lwin,
                producer=line.get("producer") or "",
                vintage=str(line.get("vintage") or ""),
                bottle_size=line.get("bottle_size") or "750ml",
                case_config=line.get("case_config") or 12,
                lot_number=lot_number,
                quantity_cases=qty,
                sales_arrangement=line.get("sales_arrangement") or Stock.ARRANGEMENT_CONSIGNMENT,
                received_at=now,
                shipment=shipment,
                expiry_date=line.get("expiry_date"),
                is_perishable=bool(line.get("is_perishable", False)),
            )

        record_movement(
            movement_type=StockMovement.TYPE_RECEIVE,
            stock=stock,
            quantity_cases=qty,
            to_location=location,
            to_owner=owner,
            reason_code="shipment" if shipment is not None else "",
            user=user,
        )
        received.append(stock)

    logger.info(
        "Stock received",
        extra={"location": location.location_code, "lines": len(received)},
    )
    return received
