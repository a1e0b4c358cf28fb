# wms/services/movements.py

from __future__ import annotations

import logging

from wms.models import StockMovement

logger = logging.getLogger(__name__)


def to_int_qty(value) -> int:
    """
    Cases are whole numbers. Strings of digits are accepted from API payloads.
    """
    if value is None or value == "":
        return 0
    if isinstance(value, bool):
        raise ValueError("quantity must be a whole number of cases")
    if isinstance(value, int):
        return value
    if isinstance(value, str) and value.strip().lstrip("-").isdigit():
        return int(value.strip())
    raise ValueError("quantity must be a whole number of cases")


def record_movement(
    *,
    movement_type: str,
    stock=None,
    quantity_cases: int,
    lwin18: str = "",
    product_name: str = "",
    from_location=None,
    to_location=None,
    from_owner=None,
    to_owner=None,
    lot_number: str = "",
    order_type: str = "",
    order_id="",
    reason_code: str = "",
    notes: str = "",
    user=None,
) -> StockMovement:
    """
    Append one ledger row. Product fields default from the stock row when given;
    pass them explicitly when the row is about to be deleted.
    """
    if stock is not None:
        lwin18 = lwin18 or stock.lwin18
        product_name = product_name or stock.product_name
        lot_number = lot_number or stock.lot_number

    movement = StockMovement.objects.create(
        movement_type=movement_type,
        lwin18=lwin18,
        product_name=product_name,
        quantity_cases=quantity_cases,
        from_location=from_location,
        to_location=to_location,
        from_owner=from_owner,
        to_owner=to_owner,
        lot_number=lot_number or "",
        order_type=order_type or "",
        order_id=str(order_id or ""),
        reason_code=reason_code or "",
        notes=notes or "",
        performed_by=user if getattr(user, "is_authenticated", False) else None,
    )

    logger.info(
        "Stock movement recorded",
        extra={
            "movement_number": movement.movement_number,
            "movement_type": movement_type,
            "lwin18": lwin18,
            "quantity_cases": quantity_cases,
        },
    )
    return movement
