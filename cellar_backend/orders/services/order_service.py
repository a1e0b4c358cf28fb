"""
======================================================
PATH: orders/services/order_service.py
======================================================
PRIVATE CLIENT ORDER SERVICE (APPLICATION SERVICE)

Every write to a PrivateClientOrder goes through this module.

GUARANTEES:
- Each operation is ONE transaction with the order row locked
  (select_for_update), so status, timestamps, items and the activity log
  can never disagree after a partial failure.
- Status moves are validated against orders.services.order_lifecycle for the
  acting party (admin / partner / distributor / dispatch).
- Every operation appends one activity log row.
- Notifications are side effects: they never raise and never roll back the
  change that triggered them.
======================================================
"""

from __future__ import annotations

import logging
from decimal import Decimal

from django.conf import settings
from django.db import transaction
from django.db.models import Count, Sum
from django.utils import timezone

from notifications.services.notify import notify_admins, notify_partner_members
from orders.models import (
    PrivateClientContact,
    PrivateClientOrder,
    PrivateClientOrderActivityLog,
    PrivateClientOrderItem,
)
from orders.services.order_lifecycle import (
    ACTOR_ADMIN,
    ACTOR_DISPATCH,
    ACTOR_DISTRIBUTOR,
    ACTOR_PARTNER,
    DISTRIBUTOR_ASSIGNABLE_STATES,
    EDITABLE_STATES,
    TERMINAL_STATES,
    InvalidOrderTransitionError,
    build_payment_reference,
    can_distributor_update,
    validate_distributor_verification,
    validate_transition,
)
from partners.models import Partner
from partners.services.membership import get_partner_for_user
from pricing.services.config import get_exchange_rates, get_module_variables
from pricing.services.pricing_engine import MODULE_PCO, calculate_pco_partner, round2
from wms.models import StockReservation
from wms.services.reservations import release_reservations, reserve_stock_for_order_items

logger = logging.getLogger(__name__)

PCO = PrivateClientOrder
Item = PrivateClientOrderItem
Log = PrivateClientOrderActivityLog


# ============================================================
# DOMAIN ERRORS
# ============================================================


class OrderServiceError(Exception):
    pass


class OrderNotFoundError(OrderServiceError):
    pass


class OrderPermissionError(OrderServiceError):
    pass


class OrderConflictError(OrderServiceError):
    pass


# ============================================================
# INTERNAL HELPERS
# ============================================================


def _now():
    return timezone.now()


def _user_or_none(user):
    return user if getattr(user, "is_authenticated", False) else None


def _lock(order) -> PCO:
    order_id = getattr(order, "pk", order)
    try:
        return PCO.objects.select_for_update().get(pk=order_id)
    except (PCO.DoesNotExist, ValueError, TypeError) as exc:
        raise OrderNotFoundError("Order not found") from exc


def _acting_partner(order: PCO, user, actor: str):
    if actor == ACTOR_PARTNER:
        return order.partner
    if actor == ACTOR_DISTRIBUTOR:
        return order.distributor
    return None


def _assert_scope(order: PCO, user, actor: str):
    """
    Partners act only on their own orders; distributors only on orders
    assigned to them.
    """
    if actor == ACTOR_PARTNER:
        partner = get_partner_for_user(user, Partner.TYPE_WINE_PARTNER)
        if partner is None or partner.pk != order.partner_id:
            raise OrderPermissionError("You can only act on your own orders")
    elif actor == ACTOR_DISTRIBUTOR:
        distributor = get_partner_for_user(user, Partner.TYPE_DISTRIBUTOR)
        if distributor is None or order.distributor_id is None or distributor.pk != order.distributor_id:
            raise OrderPermissionError("This order is not assigned to you")


def _log(order: PCO, *, user, action: str, previous_status="", new_status="", notes="", metadata=None, partner=None):
    return Log.objects.create(
        order=order,
        user=_user_or_none(user),
        partner=partner,
        action=action,
        previous_status=previous_status or "",
        new_status=new_status or "",
        notes=notes or "",
        metadata=metadata or {},
    )


def _move(
    order: PCO,
    *,
    target: str,
    actor: str,
    user,
    action: str,
    notes: str = "",
    metadata: dict | None = None,
    fields: dict | None = None,
    check: bool = True,
) -> PCO:
    if check:
        validate_transition(order=order, target_status=target, actor=actor)

    previous = order.status
    order.status = target
    for name, value in (fields or {}).items():
        setattr(order, name, value)
    order.save()

    _log(
        order,
        user=user,
        action=action,
        previous_status=previous,
        new_status=target,
        notes=notes,
        metadata=metadata,
        partner=_acting_partner(order, user, actor),
    )

    logger.info(
        "PCO status changed",
        extra={
            "order_number": order.order_number,
            "from_status": previous,
            "to_status": target,
            "actor": actor,
        },
    )
    return order


def _payment_reference(order: PCO) -> str:
    return build_payment_reference(
        distributor=order.distributor,
        order=order,
        default_prefix=getattr(settings, "PCO_DEFAULT_PAYMENT_PREFIX", "ORD"),
    )


def _order_url(order: PCO) -> str:
    return f"/platform/private-orders/{order.pk}"


def _notify_partner(order: PCO, *, type: str, title: str, message: str = "", partner=None):
    notify_partner_members(
        partner=partner or order.partner,
        type=type,
        title=title,
        message=message,
        entity_type="private_client_order",
        entity_id=order.pk,
        action_url=_order_url(order),
        metadata={"order_number": order.order_number, "status": order.status},
    )


def _notify_admins(order: PCO, *, type: str, title: str, message: str = ""):
    notify_admins(
        type=type,
        title=title,
        message=message,
        entity_type="private_client_order",
        entity_id=order.pk,
        action_url=f"/platform/admin/private-orders/{order.pk}",
        metadata={"order_number": order.order_number, "status": order.status},
    )


def _require_editable(order: PCO):
    if order.status not in EDITABLE_STATES:
        raise InvalidOrderTransitionError(
            f"Items can only be changed while the order is draft or revision_requested "
            f"(currently '{order.status}')"
        )


def _clean_item_payload(data: dict) -> dict:
    allowed = {
        "product_name",
        "producer",
        "vintage",
        "lwin",
        "bottle_size",
        "case_config",
        "quantity",
        "price_per_case_usd",
        "source",
        "notes",
    }
    return {k: v for k, v in data.items() if k in allowed and v is not None}


# ============================================================
# TOTALS
# ============================================================


def recalculate_totals(order: PCO) -> PCO:
    """
    Line totals are summed at supplier price; the consolidated partner view of
    the PCO pricing engine turns that sum into subtotal/duty/logistics/VAT.
    """
    agg = order.items.aggregate(
        supplier_total=Sum("line_total_usd"),
        cases=Sum("quantity"),
        lines=Count("id"),
    )
    supplier_total = agg["supplier_total"] or Decimal("0")

    rates = get_exchange_rates()
    if agg["lines"]:
        priced = calculate_pco_partner(
            supplier_total,
            get_module_variables(MODULE_PCO),
            rates,
        )
    else:
        priced = {k: Decimal("0.00") for k in ("subtotal_usd", "duty_usd", "logistics_usd", "vat_usd", "total_usd", "total_aed")}

    order.subtotal_usd = priced["subtotal_usd"]
    order.duty_usd = priced["duty_usd"]
    order.logistics_usd = priced["logistics_usd"]
    order.vat_usd = priced["vat_usd"]
    order.total_usd = priced["total_usd"]
    order.total_aed = priced["total_aed"]
    order.usd_to_aed_rate = round2(rates["usd_to_aed"]) if rates.get("usd_to_aed") else None
    order.item_count = agg["lines"] or 0
    order.case_count = agg["cases"] or 0
    order.save(
        update_fields=[
            "subtotal_usd",
            "duty_usd",
            "logistics_usd",
            "vat_usd",
            "total_usd",
            "total_aed",
            "usd_to_aed_rate",
            "item_count",
            "case_count",
            "updated_at",
        ]
    )
    return order


# ============================================================
# CREATE / EDIT
# ============================================================


@transaction.atomic
def create_order(
    *,
    partner: Partner,
    user,
    items: list[dict] | None = None,
    client: PrivateClientContact | None = None,
    client_name: str = "",
    client_email: str = "",
    client_phone: str = "",
    client_address: str = "",
    notes: str = "",
) -> PCO:
    if partner is None or partner.type != Partner.TYPE_WINE_PARTNER:
        raise OrderServiceError("Orders must be placed by a wine partner")
    if client is not None and client.partner_id != partner.pk:
        raise OrderPermissionError("Client belongs to another partner")
    if client is None and not (client_name or "").strip():
        raise OrderServiceError("client or client_name is required")

    order = PCO.objects.create(
        partner=partner,
        client=client,
        client_name=(client.name if client else client_name).strip(),
        client_email=(client.email if client and not client_email else client_email) or "",
        client_phone=(client.phone if client and not client_phone else client_phone) or "",
        client_address=client_address or "",
        partner_notes=notes or "",
        created_by=_user_or_none(user),
    )

    for data in items or []:
        Item.objects.create(order=order, **_clean_item_payload(data))

    recalculate_totals(order)
    _log(order, user=user, action=Log.ACTION_CREATED, new_status=order.status, partner=partner)

    logger.info(
        "PCO created",
        extra={"order_number": order.order_number, "partner_id": str(partner.pk), "items": order.item_count},
    )
    return order


@transaction.atomic
def add_item(*, order: PCO, user, data: dict, actor: str = ACTOR_PARTNER) -> Item:
    order = _lock(order)
    _assert_scope(order, user, actor)
    _require_editable(order)

    item = Item.objects.create(order=order, **_clean_item_payload(data))
    recalculate_totals(order)
    _log(
        order,
        user=user,
        action=Log.ACTION_ITEM_ADDED,
        metadata={"item_id": str(item.pk), "product_name": item.product_name, "quantity": item.quantity},
        partner=_acting_partner(order, user, actor),
    )
    return item


@transaction.atomic
def update_item(*, order: PCO, item_id, user, data: dict, actor: str = ACTOR_PARTNER) -> Item:
    order = _lock(order)
    _assert_scope(order, user, actor)
    _require_editable(order)

    item = order.items.filter(pk=item_id).first()
    if item is None:
        raise OrderNotFoundError("Item not found on this order")

    for name, value in _clean_item_payload(data).items():
        setattr(item, name, value)
    item.save()

    recalculate_totals(order)
    _log(
        order,
        user=user,
        action=Log.ACTION_ITEM_UPDATED,
        metadata={"item_id": str(item.pk), "fields": sorted(_clean_item_payload(data))},
        partner=_acting_partner(order, user, actor),
    )
    return item


@transaction.atomic
def remove_item(*, order: PCO, item_id, user, actor: str = ACTOR_PARTNER) -> PCO:
    order = _lock(order)
    _assert_scope(order, user, actor)
    _require_editable(order)

    item = order.items.filter(pk=item_id).first()
    if item is None:
        raise OrderNotFoundError("Item not found on this order")

    product_name = item.product_name
    item.delete()

    recalculate_totals(order)
    _log(
        order,
        user=user,
        action=Log.ACTION_ITEM_REMOVED,
        metadata={"item_id": str(item_id), "product_name": product_name},
        partner=_acting_partner(order, user, actor),
    )
    return order


# ============================================================
# REVIEW
# ============================================================


@transaction.atomic
def submit_order(*, order: PCO, user, actor: str = ACTOR_PARTNER) -> PCO:
    order = _lock(order)
    _assert_scope(order, user, actor)

    if not order.items.exists():
        raise OrderServiceError("Add at least one item before submitting")

    order = _move(
        order,
        target=PCO.STATUS_SUBMITTED,
        actor=actor,
        user=user,
        action=Log.ACTION_SUBMITTED,
        fields={"submitted_at": _now(), "revision_reason": ""},
    )

    _notify_admins(
        order,
        type="pco_submitted",
        title=f"New private client order {order.order_number}",
        message=f"{order.partner.name} submitted an order for {order.client_name}",
    )
    return order


@transaction.atomic
def start_review(*, order: PCO, user) -> PCO:
    order = _lock(order)
    return _move(
        order,
        target=PCO.STATUS_UNDER_CC_REVIEW,
        actor=ACTOR_ADMIN,
        user=user,
        action=Log.ACTION_REVIEW_STARTED,
    )


@transaction.atomic
def request_revision(*, order: PCO, user, reason: str) -> PCO:
    if not (reason or "").strip():
        raise OrderServiceError("A reason is required when requesting a revision")

    order = _lock(order)
    order = _move(
        order,
        target=PCO.STATUS_REVISION_REQUESTED,
        actor=ACTOR_ADMIN,
        user=user,
        action=Log.ACTION_REVISION_REQUESTED,
        notes=reason,
        fields={"revision_reason": reason},
    )

    _notify_partner(
        order,
        type="pco_revision_requested",
        title=f"Order {order.order_number} needs changes",
        message=reason,
    )
    return order


@transaction.atomic
def approve_order(*, order: PCO, user, item_sources: list[dict] | None = None, notes: str = "") -> PCO:
    """
    item_sources: [{"item_id", "source", "stock_expected_at"?}]

    Stock already in our bond (cc_inventory) is confirmed on approval; every
    other source stays pending until it arrives.
    """
    order = _lock(order)
    validate_transition(order=order, target_status=PCO.STATUS_CC_APPROVED, actor=ACTOR_ADMIN)

    now = _now()
    overrides = {str(row.get("item_id")): row for row in (item_sources or [])}
    items = {str(i.pk): i for i in order.items.select_for_update()}

    unknown = set(overrides) - set(items)
    if unknown:
        raise OrderServiceError(f"Items not on this order: {', '.join(sorted(unknown))}")

    for item_id, item in items.items():
        row = overrides.get(item_id, {})
        source = row.get("source") or item.source
        if source not in dict(Item.SOURCE_CHOICES):
            raise OrderServiceError(f"Unknown stock source: {source}")

        item.source = source
        if source == Item.SOURCE_CC_INVENTORY:
            item.stock_status = Item.STOCK_CONFIRMED
            item.stock_confirmed_at = now
        else:
            item.stock_status = Item.STOCK_PENDING
            if row.get("stock_expected_at"):
                item.stock_expected_at = row["stock_expected_at"]
        item.save()

    order = _move(
        order,
        target=PCO.STATUS_CC_APPROVED,
        actor=ACTOR_ADMIN,
        user=user,
        action=Log.ACTION_APPROVED,
        notes=notes,
        fields={"approved_at": now, "approved_by": _user_or_none(user), "admin_notes": notes or order.admin_notes},
        check=False,
    )

    _notify_partner(
        order,
        type="pco_approved",
        title=f"Order {order.order_number} approved",
        message="Your order has been approved by C&C",
    )
    return order


# ============================================================
# DISTRIBUTOR ASSIGNMENT & VERIFICATION
# ============================================================


@transaction.atomic
def assign_distributor(*, order: PCO, user, distributor_id) -> PCO:
    order = _lock(order)

    if order.status not in DISTRIBUTOR_ASSIGNABLE_STATES:
        raise InvalidOrderTransitionError(
            f"A distributor can only be assigned from {', '.join(sorted(DISTRIBUTOR_ASSIGNABLE_STATES))}"
        )

    distributor = Partner.objects.filter(pk=distributor_id).first()
    if distributor is None:
        raise OrderNotFoundError("Distributor not found")
    if distributor.type != Partner.TYPE_DISTRIBUTOR or not distributor.is_active:
        raise OrderServiceError("Only active distributors can be assigned")

    order.distributor = distributor
    order.distributor_assigned_at = _now()

    if distributor.requires_client_verification:
        target = PCO.STATUS_AWAITING_PARTNER_VERIFICATION
        fields = {"payment_reference": ""}
    else:
        target = PCO.STATUS_AWAITING_CLIENT_PAYMENT
        fields = {"payment_reference": _payment_reference(order)}

    previous = order.status
    if target == previous:
        # reassignment within awaiting_client_payment keeps the status
        for name, value in fields.items():
            setattr(order, name, value)
        order.save()
        _log(
            order,
            user=user,
            action=Log.ACTION_DISTRIBUTOR_ASSIGNED,
            previous_status=previous,
            new_status=target,
            metadata={"distributor_id": str(distributor.pk)},
        )
    else:
        order = _move(
            order,
            target=target,
            actor=ACTOR_ADMIN,
            user=user,
            action=Log.ACTION_DISTRIBUTOR_ASSIGNED,
            metadata={"distributor_id": str(distributor.pk)},
            fields=fields,
        )

    _notify_partner(
        order,
        partner=distributor,
        type="pco_assigned",
        title=f"Order {order.order_number} assigned to you",
        message=f"Client: {order.client_name}",
    )
    if target == PCO.STATUS_AWAITING_PARTNER_VERIFICATION:
        _notify_partner(
            order,
            type="pco_verification_required",
            title=f"Please verify the client on {order.order_number}",
            message=f"Is {order.client_name} known to you?",
        )
    return order


@transaction.atomic
def partner_verification(*, order: PCO, user, response: str, notes: str = "") -> PCO:
    order = _lock(order)
    _assert_scope(order, user, ACTOR_PARTNER)

    if order.status != PCO.STATUS_AWAITING_PARTNER_VERIFICATION:
        raise InvalidOrderTransitionError("Order is not awaiting partner verification")
    if response not in dict(PCO.PARTNER_VERIFICATION_CHOICES):
        raise OrderServiceError(f"Invalid verification response: {response}")

    target = (
        PCO.STATUS_AWAITING_DISTRIBUTOR_VERIFICATION
        if response == PCO.PARTNER_VERIFICATION_YES
        else PCO.STATUS_VERIFICATION_SUSPENDED
    )

    order = _move(
        order,
        target=target,
        actor=ACTOR_PARTNER,
        user=user,
        action=Log.ACTION_PARTNER_VERIFICATION,
        notes=notes,
        metadata={"response": response},
        fields={
            "partner_verification_response": response,
            "partner_verification_at": _now(),
            "partner_verification_by": _user_or_none(user),
        },
    )

    if target == PCO.STATUS_AWAITING_DISTRIBUTOR_VERIFICATION:
        _notify_partner(
            order,
            partner=order.distributor,
            type="pco_verification_required",
            title=f"Please verify the client on {order.order_number}",
            message=f"{order.partner.name} confirmed {order.client_name}",
        )
    else:
        _notify_admins(
            order,
            type="pco_verification_suspended",
            title=f"Verification suspended on {order.order_number}",
            message=f"Partner answered '{response}'",
        )
    return order


@transaction.atomic
def distributor_verification(*, order: PCO, user, response: str, notes: str = "") -> PCO:
    order = _lock(order)
    _assert_scope(order, user, ACTOR_DISTRIBUTOR)

    if order.status != PCO.STATUS_AWAITING_DISTRIBUTOR_VERIFICATION:
        raise InvalidOrderTransitionError("Order is not awaiting distributor verification")
    if response not in dict(PCO.DISTRIBUTOR_VERIFICATION_CHOICES):
        raise OrderServiceError(f"Invalid verification response: {response}")

    fields = {
        "distributor_verification_response": response,
        "distributor_verification_at": _now(),
        "distributor_verification_by": _user_or_none(user),
        "distributor_verification_notes": notes or "",
    }

    if response == PCO.DISTRIBUTOR_VERIFICATION_VERIFIED:
        target = PCO.STATUS_AWAITING_CLIENT_PAYMENT
        fields["payment_reference"] = _payment_reference(order)
    else:
        target = PCO.STATUS_VERIFICATION_SUSPENDED

    validate_distributor_verification(order=order, target_status=target)
    order = _move(
        order,
        target=target,
        actor=ACTOR_DISTRIBUTOR,
        user=user,
        action=Log.ACTION_DISTRIBUTOR_VERIFICATION,
        notes=notes,
        metadata={"response": response},
        fields=fields,
        check=False,
    )

    _notify_partner(
        order,
        type="pco_distributor_verification",
        title=f"Distributor verification on {order.order_number}: {response.replace('_', ' ')}",
        message=notes or "",
    )
    return order


@transaction.atomic
def distributor_unlock_suspended(*, order: PCO, user, notes: str = "") -> PCO:
    order = _lock(order)
    _assert_scope(order, user, ACTOR_DISTRIBUTOR)

    if order.status != PCO.STATUS_VERIFICATION_SUSPENDED:
        raise InvalidOrderTransitionError("Only suspended orders can be unlocked")

    validate_distributor_verification(order=order, target_status=PCO.STATUS_AWAITING_CLIENT_PAYMENT)
    order = _move(
        order,
        target=PCO.STATUS_AWAITING_CLIENT_PAYMENT,
        actor=ACTOR_DISTRIBUTOR,
        user=user,
        action=Log.ACTION_VERIFICATION_UNLOCKED,
        notes=notes,
        fields={"payment_reference": _payment_reference(order)},
        check=False,
    )

    _notify_partner(
        order,
        type="pco_verification_unlocked",
        title=f"Order {order.order_number} unlocked by distributor",
        message=notes or "",
    )
    return order


@transaction.atomic
def admin_reset_verification(*, order: PCO, user, target_status: str, notes: str = "") -> PCO:
    order = _lock(order)

    if order.status != PCO.STATUS_VERIFICATION_SUSPENDED:
        raise InvalidOrderTransitionError("Only suspended orders can have verification reset")

    distributor_fields = {
        "distributor_verification_response": "",
        "distributor_verification_at": None,
        "distributor_verification_by": None,
        "distributor_verification_notes": "",
    }
    partner_fields = {
        "partner_verification_response": "",
        "partner_verification_at": None,
        "partner_verification_by": None,
    }

    if target_status == PCO.STATUS_AWAITING_PARTNER_VERIFICATION:
        fields = {**partner_fields, **distributor_fields}
    elif target_status == PCO.STATUS_AWAITING_DISTRIBUTOR_VERIFICATION:
        fields = dict(distributor_fields)
    elif target_status == PCO.STATUS_AWAITING_CLIENT_PAYMENT:
        fields = {"payment_reference": _payment_reference(order)}
    else:
        raise OrderServiceError(f"Cannot reset verification to '{target_status}'")

    return _move(
        order,
        target=target_status,
        actor=ACTOR_ADMIN,
        user=user,
        action=Log.ACTION_VERIFICATION_RESET,
        notes=notes,
        fields=fields,
    )


# ============================================================
# DISTRIBUTOR PROGRESS
# ============================================================

_DISTRIBUTOR_TIMESTAMPS = {
    PCO.STATUS_CLIENT_PAID: "client_paid_at",
    PCO.STATUS_DISTRIBUTOR_PAID: "distributor_paid_at",
    PCO.STATUS_WITH_DISTRIBUTOR: "stock_received_at",
    PCO.STATUS_OUT_FOR_DELIVERY: "out_for_delivery_at",
    PCO.STATUS_DELIVERED: "delivered_at",
}


@transaction.atomic
def distributor_update_status(
    *,
    order: PCO,
    user,
    status: str,
    notes: str = "",
    city_drinks_account_name: str = "",
    city_drinks_phone: str = "",
) -> PCO:
    order = _lock(order)
    _assert_scope(order, user, ACTOR_DISTRIBUTOR)

    client = order.client
    client_already_verified = bool(client and client.city_drinks_verified_at)
    if not can_distributor_update(
        from_status=order.status,
        to_status=status,
        client_verified=client_already_verified,
    ):
        raise InvalidOrderTransitionError(
            f"Order {order.order_number} cannot move from '{order.status}' to '{status}' "
            "on a distributor status update"
        )

    now = _now()
    fields = {"distributor_notes": notes or order.distributor_notes}

    if status == PCO.STATUS_AWAITING_CLIENT_PAYMENT:
        fields["client_verified_at"] = now
        fields["client_verified_by"] = _user_or_none(user)
        if not order.payment_reference:
            fields["payment_reference"] = _payment_reference(order)
        if client is not None:
            client.city_drinks_verified_at = now
            client.city_drinks_verified_by = _user_or_none(user)
            client.city_drinks_account_name = city_drinks_account_name or client.city_drinks_account_name
            client.city_drinks_phone = city_drinks_phone or client.city_drinks_phone
            client.save()
    elif status in _DISTRIBUTOR_TIMESTAMPS:
        fields[_DISTRIBUTOR_TIMESTAMPS[status]] = now

    order = _move(
        order,
        target=status,
        actor=ACTOR_DISTRIBUTOR,
        user=user,
        action=Log.ACTION_STATUS_CHANGED,
        notes=notes,
        fields=fields,
        check=False,
    )

    if status == PCO.STATUS_DELIVERED:
        order.items.update(stock_status=Item.STOCK_DELIVERED, updated_at=now)

    _notify_partner(
        order,
        type="pco_status_changed",
        title=f"Order {order.order_number}: {order.get_status_display()}",
        message=notes or "",
    )
    return order


# ============================================================
# PAYMENTS
# ============================================================

PAYMENT_STAGE_CLIENT = "client"
PAYMENT_STAGE_DISTRIBUTOR = "distributor"
PAYMENT_STAGE_PARTNER = "partner"


@transaction.atomic
def confirm_payment(*, order: PCO, user, stage: str, reference: str = "", actor: str = ACTOR_ADMIN) -> PCO:
    order = _lock(order)
    now = _now()

    if stage == PAYMENT_STAGE_CLIENT:
        if actor not in (ACTOR_ADMIN, ACTOR_PARTNER):
            raise OrderPermissionError("Only admins or the owning partner can confirm client payment")
        _assert_scope(order, user, actor)
        if order.client_paid_at:
            raise OrderConflictError("Client payment has already been confirmed")

        order = _move(
            order,
            target=PCO.STATUS_AWAITING_PAYMENT_VERIFICATION,
            actor=actor,
            user=user,
            action=Log.ACTION_PAYMENT_CONFIRMED,
            metadata={"stage": stage, "reference": reference},
            fields={"client_payment_reference": reference or ""},
        )
        if order.distributor_id:
            _notify_partner(
                order,
                partner=order.distributor,
                type="pco_payment_verification_required",
                title=f"Payment Verification Required: {order.order_number}",
                message=f"Client payment reported for {order.client_name}. Reference: {reference or 'none given'}",
            )
        else:
            _notify_admins(
                order,
                type="pco_payment_confirmed",
                title=f"Client payment reported on {order.order_number}",
                message=reference or "",
            )
        return order

    if actor != ACTOR_ADMIN:
        raise OrderPermissionError(f"Only admins can confirm {stage} payment")

    if stage == PAYMENT_STAGE_DISTRIBUTOR:
        if order.distributor_paid_at:
            raise OrderConflictError("Distributor payment has already been confirmed")
        target, fields = PCO.STATUS_DISTRIBUTOR_PAID, {
            "distributor_paid_at": now,
            "distributor_payment_reference": reference or "",
        }
    elif stage == PAYMENT_STAGE_PARTNER:
        if order.partner_paid_at:
            raise OrderConflictError("Partner payment has already been confirmed")
        target, fields = PCO.STATUS_PARTNER_PAID, {
            "partner_paid_at": now,
            "partner_payment_reference": reference or "",
        }
    else:
        raise OrderServiceError(f"Unknown payment stage: {stage}")

    order = _move(
        order,
        target=target,
        actor=ACTOR_ADMIN,
        user=user,
        action=Log.ACTION_PAYMENT_CONFIRMED,
        metadata={"stage": stage, "reference": reference},
        fields=fields,
    )
    _notify_partner(
        order,
        partner=order.distributor if stage == PAYMENT_STAGE_DISTRIBUTOR else order.partner,
        type="pco_payment_confirmed",
        title=f"{stage.title()} payment confirmed on {order.order_number}",
        message=reference or "",
    )
    return order


@transaction.atomic
def verify_client_payment(*, order: PCO, user, notes: str = "", actor: str = ACTOR_ADMIN) -> PCO:
    """
    Confirms a client payment the partner reported. Admins and the
    assigned distributor (who holds the client account) can verify.
    """
    if actor not in (ACTOR_ADMIN, ACTOR_DISTRIBUTOR):
        raise OrderPermissionError("Only admins or the assigned distributor can verify client payment")

    order = _lock(order)
    _assert_scope(order, user, actor)
    now = _now()

    if actor == ACTOR_DISTRIBUTOR:
        validate_distributor_verification(order=order, target_status=PCO.STATUS_CLIENT_PAID)
    else:
        validate_transition(order=order, target_status=PCO.STATUS_CLIENT_PAID, actor=actor)

    order = _move(
        order,
        target=PCO.STATUS_CLIENT_PAID,
        actor=actor,
        user=user,
        action=Log.ACTION_PAYMENT_VERIFIED,
        notes=notes,
        fields={"client_paid_at": now, "client_payment_confirmed_at": now},
        check=False,
    )

    _notify_partner(
        order,
        type="pco_payment_verified",
        title=f"Client payment verified on {order.order_number}",
    )
    if order.distributor_id and actor != ACTOR_DISTRIBUTOR:
        _notify_partner(
            order,
            partner=order.distributor,
            type="pco_payment_verified",
            title=f"Client payment verified on {order.order_number}",
        )
    return order


# ============================================================
# SHIPPING / CANCELLATION / OVERRIDES
# ============================================================


@transaction.atomic
def mark_in_transit(*, order: PCO, user, actor: str = ACTOR_ADMIN, notes: str = "", metadata: dict | None = None) -> PCO:
    if actor not in (ACTOR_ADMIN, ACTOR_DISPATCH):
        raise OrderPermissionError("Only admins or dispatch can mark orders in transit")

    order = _lock(order)
    order = _move(
        order,
        target=PCO.STATUS_STOCK_IN_TRANSIT,
        actor=actor,
        user=user,
        action=Log.ACTION_STATUS_CHANGED,
        notes=notes,
        metadata=metadata,
        fields={"stock_in_transit_at": _now()},
    )

    if order.distributor_id:
        _notify_partner(
            order,
            partner=order.distributor,
            type="pco_in_transit",
            title=f"Order {order.order_number} is on its way to you",
        )
    return order


@transaction.atomic
def cancel_order(*, order: PCO, user, reason: str = "", actor: str = ACTOR_PARTNER) -> PCO:
    order = _lock(order)
    _assert_scope(order, user, actor)

    order = _move(
        order,
        target=PCO.STATUS_CANCELLED,
        actor=actor,
        user=user,
        action=Log.ACTION_CANCELLED,
        notes=reason,
        fields={"cancelled_at": _now(), "cancellation_reason": reason or ""},
    )

    released = release_reservations(order_type=StockReservation.ORDER_TYPE_PCO, order_id=order.pk)
    if released:
        logger.info(
            "Reservations released on cancellation",
            extra={"order_number": order.order_number, "count": released},
        )

    if actor == ACTOR_PARTNER:
        _notify_admins(
            order,
            type="pco_cancelled",
            title=f"Order {order.order_number} cancelled by partner",
            message=reason or "",
        )
    else:
        _notify_partner(
            order,
            type="pco_cancelled",
            title=f"Order {order.order_number} cancelled",
            message=reason or "",
        )
    return order


@transaction.atomic
def admin_update_status(*, order: PCO, user, status: str, notes: str = "") -> PCO:
    """
    Admin override: any status, no transition check. Still logged.
    """
    if status not in dict(PCO.STATUS_CHOICES):
        raise OrderServiceError(f"Unknown status: {status}")

    order = _lock(order)
    fields = {}
    if status == PCO.STATUS_CANCELLED and not order.cancelled_at:
        fields["cancelled_at"] = _now()
    if status == PCO.STATUS_DELIVERED and not order.delivered_at:
        fields["delivered_at"] = _now()

    order = _move(
        order,
        target=status,
        actor=ACTOR_ADMIN,
        user=user,
        action=Log.ACTION_STATUS_CHANGED,
        notes=notes,
        metadata={"override": True},
        fields=fields,
        check=False,
    )

    if status == PCO.STATUS_CANCELLED:
        release_reservations(order_type=StockReservation.ORDER_TYPE_PCO, order_id=order.pk)

    _notify_partner(
        order,
        type="pco_status_changed",
        title=f"Order {order.order_number}: {order.get_status_display()}",
        message=notes or "",
    )
    return order


# ============================================================
# ITEM STOCK TRACKING
# ============================================================


def _apply_stock_status(item: Item, *, stock_status: str, notes: str = "", expected_at=None, now=None):
    if stock_status not in dict(Item.STOCK_STATUS_CHOICES):
        raise OrderServiceError(f"Unknown stock status: {stock_status}")

    previous = item.stock_status
    item.stock_status = stock_status
    if stock_status == Item.STOCK_CONFIRMED and previous != Item.STOCK_CONFIRMED:
        item.stock_confirmed_at = now or _now()
    if notes:
        item.stock_notes = notes
    if expected_at:
        item.stock_expected_at = expected_at
    item.save()
    return previous


def _require_trackable(order: PCO):
    if order.status in (PCO.STATUS_DRAFT, PCO.STATUS_CANCELLED):
        raise InvalidOrderTransitionError(f"Stock status cannot change on a {order.status} order")


@transaction.atomic
def update_item_stock_status(*, order: PCO, item_id, user, stock_status: str, notes: str = "", expected_at=None) -> Item:
    order = _lock(order)
    _require_trackable(order)

    item = order.items.select_for_update().filter(pk=item_id).first()
    if item is None:
        raise OrderNotFoundError("Item not found on this order")

    previous = _apply_stock_status(item, stock_status=stock_status, notes=notes, expected_at=expected_at)
    _log(
        order,
        user=user,
        action=Log.ACTION_STOCK_STATUS_UPDATED,
        notes=notes,
        metadata={"item_id": str(item.pk), "from": previous, "to": stock_status},
    )
    return item


@transaction.atomic
def bulk_update_stock_status(*, order: PCO, item_ids, user, stock_status: str, notes: str = "", expected_at=None) -> list[Item]:
    order = _lock(order)
    _require_trackable(order)

    wanted = {str(i) for i in item_ids or []}
    if not wanted:
        raise OrderServiceError("No items given")

    items = list(order.items.select_for_update().filter(pk__in=wanted))
    if len(items) != len(wanted):
        raise OrderServiceError("Some items do not belong to this order")

    now = _now()
    for item in items:
        _apply_stock_status(item, stock_status=stock_status, notes=notes, expected_at=expected_at, now=now)

    _log(
        order,
        user=user,
        action=Log.ACTION_STOCK_STATUS_UPDATED,
        notes=notes,
        metadata={"item_ids": sorted(wanted), "to": stock_status},
    )
    return items


@transaction.atomic
def distributor_confirm_stock_receipt(*, order: PCO, user, item_ids, notes: str = "") -> list[Item]:
    order = _lock(order)
    _assert_scope(order, user, ACTOR_DISTRIBUTOR)

    if order.status == PCO.STATUS_CANCELLED:
        raise InvalidOrderTransitionError("Cannot receive stock for a cancelled order")

    wanted = {str(i) for i in item_ids or []}
    if not wanted:
        raise OrderServiceError("No items given")

    items = list(order.items.select_for_update().filter(pk__in=wanted))
    if len(items) != len(wanted):
        raise OrderServiceError("Some items do not belong to this order")

    now = _now()
    for item in items:
        _apply_stock_status(item, stock_status=Item.STOCK_AT_DISTRIBUTOR, notes=notes, now=now)

    _log(
        order,
        user=user,
        action=Log.ACTION_STOCK_RECEIVED,
        notes=notes,
        metadata={"item_ids": sorted(wanted)},
        partner=order.distributor,
    )
    return items


# ============================================================
# WAREHOUSE
# ============================================================


@transaction.atomic
def reserve_stock(*, order: PCO, user=None) -> dict:
    order = _lock(order)
    if order.status in TERMINAL_STATES:
        raise InvalidOrderTransitionError(f"Cannot reserve stock for a {order.status} order")

    result = reserve_stock_for_order_items(
        order_type=StockReservation.ORDER_TYPE_PCO,
        order_id=order.pk,
        order_number=order.order_number,
        items=[
            {
                "order_item_id": str(item.pk),
                "lwin18": item.lwin,
                "product_name": item.product_name,
                "quantity_cases": item.quantity,
            }
            for item in order.items.all()
        ],
    )

    _log(
        order,
        user=user,
        action=Log.ACTION_STOCK_RESERVED,
        metadata={
            "reserved_lines": len(result["reserved"]),
            "short_lines": len(result["short"]),
        },
    )
    return result


# ============================================================
# DASHBOARDS
# ============================================================


def _status_summary(qs) -> dict:
    by_status = {
        row["status"]: row["count"]
        for row in qs.values("status").annotate(count=Count("id")).order_by()
    }
    total_value = qs.exclude(status=PCO.STATUS_CANCELLED).aggregate(v=Sum("total_usd"))["v"]
    return {
        "total_orders": sum(by_status.values()),
        "total_value_usd": total_value or Decimal("0.00"),
        "by_status": by_status,
    }


def partner_dashboard(*, partner: Partner) -> dict:
    qs = PCO.objects.filter(partner=partner)
    summary = _status_summary(qs)
    summary["awaiting_action"] = qs.filter(
        status__in=[
            PCO.STATUS_DRAFT,
            PCO.STATUS_REVISION_REQUESTED,
            PCO.STATUS_AWAITING_PARTNER_VERIFICATION,
            PCO.STATUS_AWAITING_CLIENT_PAYMENT,
        ]
    ).count()
    return summary


def distributor_dashboard(*, distributor: Partner) -> dict:
    qs = PCO.objects.filter(distributor=distributor)
    summary = _status_summary(qs)
    summary["awaiting_action"] = qs.filter(
        status__in=[
            PCO.STATUS_CC_APPROVED,
            PCO.STATUS_AWAITING_DISTRIBUTOR_VERIFICATION,
            PCO.STATUS_AWAITING_CLIENT_VERIFICATION,
            PCO.STATUS_STOCK_IN_TRANSIT,
            PCO.STATUS_WITH_DISTRIBUTOR,
            PCO.STATUS_OUT_FOR_DELIVERY,
        ]
    ).count()
    return summary


def admin_dashboard() -> dict:
    qs = PCO.objects.all()
    summary = _status_summary(qs)
    summary["awaiting_review"] = qs.filter(
        status__in=[PCO.STATUS_SUBMITTED, PCO.STATUS_UNDER_CC_REVIEW]
    ).count()
    summary["awaiting_payment_verification"] = qs.filter(
        status=PCO.STATUS_AWAITING_PAYMENT_VERIFICATION
    ).count()
    summary["suspended"] = qs.filter(status=PCO.STATUS_VERIFICATION_SUSPENDED).count()
    return summary
