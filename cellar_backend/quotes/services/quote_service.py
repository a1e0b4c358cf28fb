"""
======================================================
PATH: quotes/services/quote_service.py
======================================================
QUOTE SERVICE (APPLICATION SERVICE)

Every write to a Quote goes through this module.

GUARANTEES:
- Each operation is one transaction with the quote row locked.
- Status moves are validated against quotes.services.quote_lifecycle.
- Owner operations are restricted to the user who created the quote.
- Totals (USD and AED) are recomputed from the lines after every line change.
- Every operation appends one QuoteActivityLog row.
======================================================
"""

from __future__ import annotations

import logging

from django.db import transaction
from django.utils import timezone

from notifications.services.notify import notify_admins, notify_users
from partners.services.membership import get_partner_for_user
from pricing.services.config import get_exchange_rates
from pricing.services.pricing_engine import round2, to_decimal
from quotes.models import Quote, QuoteActivityLog, QuoteLineItem
from quotes.services.b2b_calculator import calculate_b2b_quote
from quotes.services.quote_lifecycle import (
    ACTOR_ADMIN,
    ACTOR_OWNER,
    CONFIRMED_STATES,
    EDITABLE_STATES,
    InvalidQuoteTransitionError,
    validate_transition,
)

logger = logging.getLogger(__name__)


# ============================================================
# DOMAIN ERRORS
# ============================================================


class QuoteError(Exception):
    pass


class QuoteNotFoundError(QuoteError):
    pass


class QuotePermissionError(QuoteError):
    pass


# ============================================================
# INTERNAL HELPERS
# ============================================================

QUOTE_FIELDS = {
    "name",
    "client_name",
    "customer_type",
    "notes",
    "transfer_cost_usd",
    "import_tax_percent",
    "margin_type",
    "margin_value",
}

LINE_FIELDS = {
    "product_key",
    "product_name",
    "producer",
    "vintage",
    "lwin",
    "bottle_size",
    "bottles_per_case",
    "quantity",
}

ALTERNATIVE_REQUIRED = ("product_name", "price_per_case", "quantity_available")


def _now():
    return timezone.now()


def _user_or_none(user):
    return user if getattr(user, "is_authenticated", False) else None


def _lock(quote) -> Quote:
    try:
        return Quote.objects.select_for_update().get(pk=getattr(quote, "pk", quote))
    except (Quote.DoesNotExist, ValueError, TypeError) as exc:
        raise QuoteNotFoundError("Quote not found") from exc


def _assert_owner(quote: Quote, user):
    if getattr(user, "pk", None) != quote.created_by_id:
        raise QuotePermissionError("You do not have permission to modify this quote")


def _log(quote: Quote, *, user, action: str, previous_status="", new_status="", notes="", metadata=None):
    return QuoteActivityLog.objects.create(
        quote=quote,
        user=_user_or_none(user),
        action=action,
        previous_status=previous_status or "",
        new_status=new_status or "",
        notes=notes or "",
        metadata=metadata or {},
    )


def _move(quote: Quote, *, target: str, actor: str, user, action: str, notes="", fields=None) -> Quote:
    validate_transition(quote=quote, target_status=target, actor=actor)

    previous = quote.status
    quote.status = target
    for name, value in (fields or {}).items():
        setattr(quote, name, value)
    quote.save()

    _log(quote, user=user, action=action, previous_status=previous, new_status=target, notes=notes)
    logger.info(
        "Quote status changed",
        extra={"quote_number": quote.quote_number, "from_status": previous, "to_status": target},
    )
    return quote


def _notify_owner(quote: Quote, *, type: str, title: str, message: str = ""):
    notify_users(
        users=[quote.created_by],
        partner=quote.partner,
        type=type,
        title=title,
        message=message,
        entity_type="quote",
        entity_id=quote.pk,
        action_url=f"/platform/quotes/{quote.pk}",
        metadata={"quote_number": quote.quote_number, "status": quote.status},
    )


def _notify_admins(quote: Quote, *, type: str, title: str, message: str = ""):
    notify_admins(
        type=type,
        title=title,
        message=message,
        entity_type="quote",
        entity_id=quote.pk,
        action_url=f"/platform/admin/quote-approvals?quote={quote.pk}",
        metadata={"quote_number": quote.quote_number, "status": quote.status},
    )


def _get_line(quote: Quote, line_item_id) -> QuoteLineItem:
    try:
        return quote.line_items.get(pk=line_item_id)
    except (QuoteLineItem.DoesNotExist, ValueError, TypeError) as exc:
        raise QuoteNotFoundError("Line item not found") from exc


def _price_line(line: QuoteLineItem) -> QuoteLineItem:
    line.line_total_usd = round2(to_decimal(line.base_price_usd) * line.effective_quantity)
    return line


def _build_line(quote: Quote, data: dict) -> QuoteLineItem:
    fields = {k: v for k, v in data.items() if k in LINE_FIELDS and v is not None}
    if not (fields.get("product_name") or "").strip():
        raise QuoteError("product_name is required")
    fields.setdefault("product_key", fields.get("lwin") or fields["product_name"])
    if int(fields.get("quantity") or 0) <= 0:
        raise QuoteError("quantity must be at least 1")

    price = round2(data.get("price_per_case_usd"))
    if price < 0:
        raise QuoteError("price_per_case_usd cannot be negative")

    if quote.line_items.filter(product_key=fields["product_key"]).exists():
        raise QuoteError(f"{fields['product_name']} is already on this quote")

    return _price_line(QuoteLineItem(quote=quote, original_price_usd=price, base_price_usd=price, **fields))


def _clean_alternatives(raw) -> list[dict]:
    cleaned = []
    for index, alt in enumerate(raw or []):
        missing = [key for key in ALTERNATIVE_REQUIRED if alt.get(key) in (None, "")]
        if missing:
            raise QuoteError(f"Alternative {index} is missing {', '.join(missing)}")

        price = round2(alt["price_per_case"])
        available = int(alt["quantity_available"])
        if price < 0 or available < 0:
            raise QuoteError(f"Alternative {index} has a negative price or quantity")

        cleaned.append(
            {
                "product_name": str(alt["product_name"]),
                "price_per_case": str(price),
                "bottles_per_case": int(alt.get("bottles_per_case") or 12),
                "bottle_size": str(alt.get("bottle_size") or "750ml"),
                "quantity_available": available,
            }
        )
    return cleaned


# ============================================================
# TOTALS
# ============================================================


def recalculate_totals(quote: Quote) -> Quote:
    total = sum((line.line_total_usd for line in quote.line_items.all()), start=to_decimal(0))
    rate = get_exchange_rates()["usd_to_aed"]

    quote.total_usd = round2(total)
    quote.total_aed = round2(total * rate)
    quote.save(update_fields=["total_usd", "total_aed", "updated_at"])
    return quote


def b2b_breakdown(quote: Quote) -> dict:
    """
    Prices the confirmed in-bond total for the end customer with the quote's
    transfer cost, import tax and distributor margin.
    """
    result = calculate_b2b_quote(
        in_bond_price_usd=quote.total_usd,
        transfer_cost_usd=quote.transfer_cost_usd,
        import_tax_percent=quote.import_tax_percent,
        margin_type=quote.margin_type,
        margin_value=quote.margin_value,
    )
    rate = get_exchange_rates()["usd_to_aed"]
    result["customer_quote_price_aed"] = round2(result["customer_quote_price"] * rate)
    result["usd_to_aed_rate"] = rate
    return result


# ============================================================
# BUILDING
# ============================================================


@transaction.atomic
def create_quote(*, user, data: dict, items: list[dict] | None = None) -> Quote:
    quote = Quote.objects.create(
        created_by=user,
        partner=get_partner_for_user(user),
        **{k: v for k, v in data.items() if k in QUOTE_FIELDS},
    )
    for item in items or []:
        _build_line(quote, item).save()

    recalculate_totals(quote)
    _log(quote, user=user, action="created", new_status=quote.status, metadata={"line_count": len(items or [])})
    logger.info("Quote created", extra={"quote_number": quote.quote_number})
    return quote


@transaction.atomic
def update_quote(*, quote: Quote, user, data: dict) -> Quote:
    quote = _lock(quote)
    _assert_owner(quote, user)
    if quote.status not in EDITABLE_STATES:
        raise InvalidQuoteTransitionError(f"A {quote.status} quote cannot be edited")

    changed = sorted(k for k in data if k in QUOTE_FIELDS)
    for key in changed:
        setattr(quote, key, data[key])
    quote.save()

    _log(quote, user=user, action="updated", metadata={"fields": changed})
    return quote


@transaction.atomic
def add_line_item(*, quote: Quote, user, data: dict) -> QuoteLineItem:
    quote = _lock(quote)
    _assert_owner(quote, user)
    if quote.status not in EDITABLE_STATES:
        raise InvalidQuoteTransitionError(f"Line items cannot be added to a {quote.status} quote")

    line = _build_line(quote, data)
    line.save()
    recalculate_totals(quote)

    _log(quote, user=user, action="line_added", metadata={"product_key": line.product_key})
    return line


@transaction.atomic
def remove_line_item(*, quote: Quote, user, line_item_id) -> Quote:
    """
    Editable quotes drop lines freely. Confirmed, unpaid quotes may drop
    lines too, but never the last one.
    """
    quote = _lock(quote)
    _assert_owner(quote, user)

    if quote.status not in EDITABLE_STATES | CONFIRMED_STATES:
        raise InvalidQuoteTransitionError(f"Cannot remove line items from quote with status '{quote.status}'")

    line = _get_line(quote, line_item_id)
    if quote.status in CONFIRMED_STATES and quote.line_items.count() == 1:
        raise QuoteError("Cannot remove all line items from quote")

    product_key = line.product_key
    line.delete()
    recalculate_totals(quote)

    _log(quote, user=user, action="line_removed", metadata={"product_key": product_key})
    return quote


# ============================================================
# SUBMISSION & REVIEW
# ============================================================


@transaction.atomic
def mark_sent(*, quote: Quote, user) -> Quote:
    quote = _lock(quote)
    _assert_owner(quote, user)
    return _move(quote, target=Quote.STATUS_SENT, actor=ACTOR_OWNER, user=user, action="sent")


@transaction.atomic
def submit_buy_request(*, quote: Quote, user) -> Quote:
    quote = _lock(quote)
    _assert_owner(quote, user)
    if not quote.line_items.exists():
        raise QuoteError("A quote needs at least one line item before it can be submitted")

    quote = _move(
        quote,
        target=Quote.STATUS_BUY_REQUEST_SUBMITTED,
        actor=ACTOR_OWNER,
        user=user,
        action="buy_request_submitted",
        fields={"submitted_at": _now(), "revision_reason": ""},
    )
    _notify_admins(
        quote,
        type="quote_submitted",
        title=f"New buy request {quote.quote_number}",
        message=f"{quote.line_items.count()} line(s), USD {quote.total_usd}",
    )
    return quote


@transaction.atomic
def start_review(*, quote: Quote, user) -> Quote:
    quote = _lock(quote)
    return _move(quote, target=Quote.STATUS_UNDER_CC_REVIEW, actor=ACTOR_ADMIN, user=user, action="review_started")


@transaction.atomic
def request_revision(*, quote: Quote, user, reason: str) -> Quote:
    if not (reason or "").strip():
        raise QuoteError("A revision reason is required")

    quote = _lock(quote)
    quote = _move(
        quote,
        target=Quote.STATUS_REVISION_REQUESTED,
        actor=ACTOR_ADMIN,
        user=user,
        action="revision_requested",
        notes=reason,
        fields={"revision_reason": reason.strip()},
    )
    _notify_owner(
        quote,
        type="quote_revision_requested",
        title=f"Changes requested on {quote.quote_number}",
        message=reason.strip(),
    )
    return quote


@transaction.atomic
def confirm_quote(
    *,
    quote: Quote,
    user,
    delivery_lead_time: str,
    notes: str = "",
    adjustments: list[dict] | None = None,
) -> Quote:
    """
    adjustments: [{"line_item_id", "confirmed_quantity", "admin_notes",
    "admin_alternatives"}]. Lines without an adjustment are confirmed at the
    requested quantity.
    """
    if not (delivery_lead_time or "").strip():
        raise QuoteError("A delivery lead time is required")

    quote = _lock(quote)
    validate_transition(quote=quote, target_status=Quote.STATUS_CC_CONFIRMED, actor=ACTOR_ADMIN)
    by_line = {str(adj.get("line_item_id")): adj for adj in adjustments or []}

    lines = list(quote.line_items.all())
    unknown = set(by_line) - {str(line.pk) for line in lines}
    if unknown:
        raise QuoteError(f"Adjustments reference lines not on this quote: {', '.join(sorted(unknown))}")

    for line in lines:
        adj = by_line.get(str(line.pk), {})
        confirmed = adj.get("confirmed_quantity")
        if confirmed is not None and int(confirmed) < 0:
            raise QuoteError("confirmed_quantity cannot be negative")

        line.confirmed_quantity = line.quantity if confirmed is None else int(confirmed)
        line.admin_notes = adj.get("admin_notes", line.admin_notes) or ""
        if "admin_alternatives" in adj:
            line.admin_alternatives = _clean_alternatives(adj["admin_alternatives"])
        _price_line(line).save()

    if not any(line.effective_quantity > 0 for line in lines):
        raise QuoteError("At least one line must be confirmed with a quantity above zero")

    recalculate_totals(quote)
    quote = _move(
        quote,
        target=Quote.STATUS_CC_CONFIRMED,
        actor=ACTOR_ADMIN,
        user=user,
        action="confirmed",
        notes=notes,
        fields={
            "delivery_lead_time": delivery_lead_time.strip(),
            "cc_confirmation_notes": notes or "",
            "confirmed_at": _now(),
            "confirmed_by": _user_or_none(user),
        },
    )
    _notify_owner(
        quote,
        type="quote_confirmed",
        title=f"Quote {quote.quote_number} confirmed",
        message=f"Delivery lead time: {quote.delivery_lead_time}",
    )
    return quote


@transaction.atomic
def accept_alternative(*, quote: Quote, user, line_item_id, alternative_index: int) -> Quote:
    """
    Swaps a confirmed line to one of the alternatives offered in review. The
    confirmed quantity is capped at the alternative's availability.
    alternative_index = -1 reverts to the original product and quantity.
    """
    quote = _lock(quote)
    _assert_owner(quote, user)
    if quote.status != Quote.STATUS_CC_CONFIRMED:
        raise InvalidQuoteTransitionError(f"Cannot accept alternatives for quote with status '{quote.status}'")

    line = _get_line(quote, line_item_id)
    previous = line.accepted_alternative or {}
    replaced_quantity = previous.get("replaced_quantity", line.effective_quantity)

    if alternative_index == -1:
        if not previous:
            raise QuoteError("No alternative has been accepted on this line")
        line.base_price_usd = line.original_price_usd
        line.confirmed_quantity = replaced_quantity
        line.accepted_alternative = None
        action = "alternative_reverted"
    else:
        alternatives = line.admin_alternatives or []
        if not 0 <= alternative_index < len(alternatives):
            raise QuoteNotFoundError("Alternative not found")

        selected = alternatives[alternative_index]
        line.base_price_usd = round2(selected["price_per_case"])
        line.confirmed_quantity = min(replaced_quantity, int(selected["quantity_available"]))
        line.accepted_alternative = {
            **selected,
            "index": alternative_index,
            "replaced_quantity": replaced_quantity,
            "accepted_at": _now().isoformat(),
        }
        action = "alternative_accepted"

    _price_line(line).save()
    recalculate_totals(quote)

    _log(
        quote,
        user=user,
        action=action,
        metadata={"line_item_id": str(line.pk), "alternative_index": alternative_index},
    )
    return quote


# ============================================================
# SETTLEMENT
# ============================================================


@transaction.atomic
def request_payment(*, quote: Quote, user) -> Quote:
    quote = _lock(quote)
    _assert_owner(quote, user)
    if quote.customer_type != Quote.CUSTOMER_B2C:
        raise QuoteError("B2B quotes are settled by purchase order")

    return _move(
        quote,
        target=Quote.STATUS_AWAITING_PAYMENT,
        actor=ACTOR_OWNER,
        user=user,
        action="payment_requested",
        fields={"payment_reference": quote.payment_reference or quote.quote_number},
    )


@transaction.atomic
def mark_paid(*, quote: Quote, user, reference: str = "") -> Quote:
    quote = _lock(quote)
    quote = _move(
        quote,
        target=Quote.STATUS_PAID,
        actor=ACTOR_ADMIN,
        user=user,
        action="paid",
        fields={"paid_at": _now(), "payment_reference": reference or quote.payment_reference},
    )
    _notify_owner(quote, type="quote_paid", title=f"Payment received for {quote.quote_number}")
    return quote


@transaction.atomic
def submit_po(*, quote: Quote, user, po_number: str) -> Quote:
    if not (po_number or "").strip():
        raise QuoteError("A PO number is required")

    quote = _lock(quote)
    _assert_owner(quote, user)
    if quote.customer_type != Quote.CUSTOMER_B2B:
        raise QuoteError("Only B2B quotes are settled by purchase order")

    quote = _move(
        quote,
        target=Quote.STATUS_PO_SUBMITTED,
        actor=ACTOR_OWNER,
        user=user,
        action="po_submitted",
        fields={"po_number": po_number.strip(), "po_submitted_at": _now()},
    )
    _notify_admins(
        quote,
        type="quote_po_submitted",
        title=f"PO {quote.po_number} submitted for {quote.quote_number}",
    )
    return quote


@transaction.atomic
def confirm_po(*, quote: Quote, user) -> Quote:
    quote = _lock(quote)
    quote = _move(
        quote,
        target=Quote.STATUS_PO_CONFIRMED,
        actor=ACTOR_ADMIN,
        user=user,
        action="po_confirmed",
        fields={"po_confirmed_at": _now()},
    )
    _notify_owner(quote, type="quote_po_confirmed", title=f"PO confirmed for {quote.quote_number}")
    return quote


@transaction.atomic
def mark_delivered(*, quote: Quote, user) -> Quote:
    quote = _lock(quote)
    quote = _move(
        quote,
        target=Quote.STATUS_DELIVERED,
        actor=ACTOR_ADMIN,
        user=user,
        action="delivered",
        fields={"delivered_at": _now()},
    )
    _notify_owner(quote, type="quote_delivered", title=f"Quote {quote.quote_number} delivered")
    return quote
