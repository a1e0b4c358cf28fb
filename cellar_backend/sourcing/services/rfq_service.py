"""
======================================================
PATH: sourcing/services/rfq_service.py
======================================================
RFQ SERVICE (SUPPLIER SOURCING)

Flow:
  admin builds a draft (items + invited partners) → send_to_partners
  → partners submit_quotes → admin select_quote / auto_select_best
  → finalize_rfq (every item resolved)

Rules:
- Items and partners can only be changed while the RFQ is draft.
- A partner quotes only on RFQs it was invited to, before the deadline.
  Re-submitting replaces that partner's earlier quotes for the same items.
- not_available quotes have no price and are never selectable.
- An item's calculated/final price is the SUM of its selected quote prices
  (several partners may each supply part of a line).
- Notifications are side effects and never block a transition.
======================================================
"""

from __future__ import annotations

import logging
from collections import OrderedDict
from decimal import Decimal

from django.db import transaction
from django.utils import timezone

from notifications.services.notify import notify_admins, notify_partner_members
from partners.models import Partner
from pricing.services.pricing_engine import round2, to_decimal
from pricing.services.profit import calculate_profit_analysis
from sourcing.models import Rfq, RfqItem, RfqPartner, RfqQuote

logger = logging.getLogger(__name__)

STRATEGY_LOWEST_PRICE = "lowest_price"
STRATEGY_SINGLE_PARTNER = "single_partner"
STRATEGIES = {STRATEGY_LOWEST_PRICE, STRATEGY_SINGLE_PARTNER}

MARKABLE_ITEM_STATUSES = {RfqItem.STATUS_SELF_SOURCED, RfqItem.STATUS_UNSOURCEABLE}

ITEM_FIELDS = {"product_name", "producer", "vintage", "lwin", "quantity", "quantity_unit"}

QUOTE_FIELDS = {
    "quote_type",
    "quoted_vintage",
    "cost_price_per_case_usd",
    "currency",
    "case_config",
    "bottle_size",
    "available_quantity",
    "lead_time_days",
    "stock_location",
    "alternative_product_name",
    "notes",
}


# ============================================================
# ERRORS
# ============================================================


class RfqError(Exception):
    pass


class RfqPermissionError(RfqError):
    pass


# ============================================================
# HELPERS
# ============================================================


def _user_or_none(user):
    return user if getattr(user, "is_authenticated", False) else None


def _lock(rfq) -> Rfq:
    return Rfq.objects.select_for_update().get(pk=getattr(rfq, "pk", rfq))


def _require_draft(rfq: Rfq):
    if rfq.status != Rfq.STATUS_DRAFT:
        raise RfqError(f"RFQ {rfq.rfq_number} is {rfq.status}; only drafts can be edited")


def _require_selectable(rfq: Rfq):
    if rfq.status not in Rfq.SELECTABLE_STATUSES:
        raise RfqError("RFQ is not in a state where quotes can be selected")


def _refresh_item_selection(item: RfqItem, *, user=None, now=None):
    """
    Re-derive an item's selection fields from its selected quotes.
    """
    selected = list(item.quotes.filter(is_selected=True).order_by("created_at"))

    if selected:
        total = sum((q.cost_price_per_case_usd or Decimal("0") for q in selected), Decimal("0"))
        item.status = RfqItem.STATUS_SELECTED
        item.selected_quote = selected[0]
        item.selected_at = now or timezone.now()
        item.selected_by = _user_or_none(user)
        item.calculated_price_usd = round2(total)
        item.final_price_usd = round2(total)
        item.price_adjusted_by = None
    else:
        has_quotes = item.quotes.exists()
        item.status = RfqItem.STATUS_QUOTED if has_quotes else RfqItem.STATUS_PENDING
        item.selected_quote = None
        item.selected_at = None
        item.selected_by = None
        item.calculated_price_usd = None
        item.final_price_usd = None
        item.price_adjusted_by = None

    item.save()
    return item


def _mark_selecting(rfq: Rfq):
    if rfq.status != Rfq.STATUS_SELECTING:
        rfq.status = Rfq.STATUS_SELECTING
        rfq.save(update_fields=["status", "updated_at"])


# ============================================================
# BUILD
# ============================================================


@transaction.atomic
def create_rfq(*, name: str, user=None, response_deadline=None, distributor_name: str = "", notes: str = "", items=None) -> Rfq:
    if not (name or "").strip():
        raise RfqError("name is required")

    rfq = Rfq.objects.create(
        name=name.strip(),
        response_deadline=response_deadline,
        distributor_name=distributor_name or "",
        notes=notes or "",
        created_by=_user_or_none(user),
    )
    if items:
        add_items(rfq=rfq, items=items)

    logger.info("RFQ created", extra={"rfq_number": rfq.rfq_number})
    return rfq


@transaction.atomic
def add_items(*, rfq: Rfq, items: list[dict]) -> list[RfqItem]:
    rfq = _lock(rfq)
    _require_draft(rfq)

    created = []
    for data in items:
        clean = {k: v for k, v in data.items() if k in ITEM_FIELDS}
        if not (clean.get("product_name") or "").strip():
            raise RfqError("product_name is required for every item")
        created.append(RfqItem.objects.create(rfq=rfq, **clean))
    return created


@transaction.atomic
def remove_item(*, rfq: Rfq, item_id):
    rfq = _lock(rfq)
    _require_draft(rfq)
    deleted, _ = rfq.items.filter(pk=item_id).delete()
    if not deleted:
        raise RfqError("Item not found on this RFQ")


@transaction.atomic
def add_partners(*, rfq: Rfq, partner_ids) -> list[RfqPartner]:
    rfq = _lock(rfq)
    _require_draft(rfq)

    wanted = {str(p) for p in partner_ids or []}
    partners = list(Partner.objects.filter(pk__in=wanted, type=Partner.TYPE_WINE_PARTNER, is_active=True))
    missing = wanted - {str(p.pk) for p in partners}
    if missing:
        raise RfqError(f"Unknown or inactive wine partners: {', '.join(sorted(missing))}")

    return [RfqPartner.objects.get_or_create(rfq=rfq, partner=partner)[0] for partner in partners]


@transaction.atomic
def send_to_partners(*, rfq: Rfq, user=None) -> Rfq:
    rfq = _lock(rfq)
    _require_draft(rfq)

    if not rfq.items.exists():
        raise RfqError("Add at least one item before sending")
    assignments = list(rfq.partners.select_related("partner"))
    if not assignments:
        raise RfqError("Invite at least one partner before sending")

    rfq.status = Rfq.STATUS_SENT
    rfq.sent_at = timezone.now()
    rfq.save(update_fields=["status", "sent_at", "updated_at"])

    for assignment in assignments:
        notify_partner_members(
            partner=assignment.partner,
            type="rfq_received",
            title=f"New quote request {rfq.rfq_number}",
            message=rfq.name,
            entity_type="rfq",
            entity_id=rfq.pk,
            action_url=f"/platform/partner/source/{rfq.pk}",
        )

    logger.info("RFQ sent", extra={"rfq_number": rfq.rfq_number, "partners": len(assignments)})
    return rfq


@transaction.atomic
def cancel_rfq(*, rfq: Rfq) -> Rfq:
    rfq = _lock(rfq)
    if rfq.status in {Rfq.STATUS_FINALIZED, Rfq.STATUS_QUOTE_GENERATED, Rfq.STATUS_CANCELLED}:
        raise RfqError(f"A {rfq.status} RFQ cannot be cancelled")
    rfq.status = Rfq.STATUS_CANCELLED
    rfq.save(update_fields=["status", "updated_at"])
    return rfq


# ============================================================
# PARTNER SIDE
# ============================================================


def list_partner_rfqs(*, partner: Partner):
    return (
        RfqPartner.objects.select_related("rfq")
        .filter(partner=partner)
        .exclude(rfq__status__in=[Rfq.STATUS_DRAFT, Rfq.STATUS_CANCELLED])
        .order_by("-rfq__created_at")
    )


@transaction.atomic
def mark_viewed(*, rfq: Rfq, partner: Partner) -> RfqPartner:
    assignment = RfqPartner.objects.select_for_update().filter(rfq=rfq, partner=partner).first()
    if assignment is None:
        raise RfqPermissionError("This RFQ was not sent to you")
    if assignment.status == RfqPartner.STATUS_PENDING:
        assignment.status = RfqPartner.STATUS_VIEWED
        assignment.viewed_at = timezone.now()
        assignment.save(update_fields=["status", "viewed_at"])
    return assignment


def _deadline_passed(rfq: Rfq, now) -> bool:
    return rfq.response_deadline is not None and rfq.response_deadline < now


@transaction.atomic
def _expire_if_late(*, partner: Partner, rfq: Rfq, now) -> bool:
    assignment = RfqPartner.objects.select_for_update().filter(rfq=rfq, partner=partner).first()
    if assignment is None or not _deadline_passed(rfq, now):
        return False
    if assignment.status != RfqPartner.STATUS_EXPIRED:
        assignment.status = RfqPartner.STATUS_EXPIRED
        assignment.save(update_fields=["status"])
    return True


def submit_quotes(*, partner: Partner, rfq: Rfq, quotes: list[dict], partner_notes: str = "") -> dict:
    # the expiry is committed on its own so it survives the error
    if _expire_if_late(partner=partner, rfq=rfq, now=timezone.now()):
        raise RfqError("The response deadline for this RFQ has passed")
    return _store_quotes(partner=partner, rfq=rfq, quotes=quotes, partner_notes=partner_notes)


@transaction.atomic
def _store_quotes(*, partner: Partner, rfq: Rfq, quotes: list[dict], partner_notes: str) -> dict:
    rfq = _lock(rfq)
    now = timezone.now()

    assignment = RfqPartner.objects.select_for_update().filter(rfq=rfq, partner=partner).first()
    if assignment is None:
        raise RfqPermissionError("This RFQ was not sent to you")
    if rfq.status not in Rfq.QUOTABLE_STATUSES:
        raise RfqError(f"RFQ {rfq.rfq_number} is not accepting quotes ({rfq.status})")

    if not quotes:
        raise RfqError("Submit at least one quote")

    items = {str(i.pk): i for i in rfq.items.all()}
    unknown = sorted({str(q.get("item_id")) for q in quotes} - set(items))
    if unknown:
        raise RfqError(f"Items not on this RFQ: {', '.join(unknown)}")

    quoted_item_ids = {str(q["item_id"]) for q in quotes}
    RfqQuote.objects.filter(rfq=rfq, partner=partner, item_id__in=quoted_item_ids).delete()

    created = []
    for data in quotes:
        clean = {k: v for k, v in data.items() if k in QUOTE_FIELDS}
        quote_type = clean.get("quote_type") or RfqQuote.TYPE_EXACT
        clean["quote_type"] = quote_type

        if quote_type == RfqQuote.TYPE_NOT_AVAILABLE:
            clean["cost_price_per_case_usd"] = None
        elif clean.get("cost_price_per_case_usd") is None:
            raise RfqError("A price is required unless the wine is not available")
        else:
            clean["cost_price_per_case_usd"] = round2(clean["cost_price_per_case_usd"])

        created.append(
            RfqQuote.objects.create(
                rfq=rfq,
                item=items[str(data["item_id"])],
                rfq_partner=assignment,
                partner=partner,
                **clean,
            )
        )

    for item_id in quoted_item_ids:
        item = items[item_id]
        if item.status == RfqItem.STATUS_PENDING:
            item.status = RfqItem.STATUS_QUOTED
            item.save(update_fields=["status"])
        elif item.status == RfqItem.STATUS_SELECTED:
            # replaced quotes may have been the selected ones
            _refresh_item_selection(item)

    assignment.status = RfqPartner.STATUS_SUBMITTED
    assignment.submitted_at = now
    assignment.quote_count = RfqQuote.objects.filter(rfq_partner=assignment).count()
    assignment.partner_notes = partner_notes or assignment.partner_notes
    assignment.save(update_fields=["status", "submitted_at", "quote_count", "partner_notes"])

    if rfq.status == Rfq.STATUS_SENT:
        rfq.status = Rfq.STATUS_COLLECTING
        rfq.save(update_fields=["status", "updated_at"])

    notify_admins(
        type="rfq_quotes_submitted",
        title=f"{partner.name} submitted {len(created)} quote(s) for {rfq.rfq_number}",
        entity_type="rfq",
        entity_id=rfq.pk,
        action_url=f"/platform/admin/source/{rfq.pk}",
    )

    logger.info(
        "RFQ quotes submitted",
        extra={"rfq_number": rfq.rfq_number, "partner_id": str(partner.pk), "quotes": len(created)},
    )
    return {"rfq": rfq, "quotes": created}


# ============================================================
# SELECTION
# ============================================================


@transaction.atomic
def select_quote(*, item: RfqItem, quote: RfqQuote, user=None) -> RfqItem:
    """
    Toggle: selecting an already-selected quote deselects it.
    """
    item = RfqItem.objects.select_for_update().get(pk=item.pk)
    rfq = _lock(item.rfq_id)
    _require_selectable(rfq)

    quote = RfqQuote.objects.select_for_update().get(pk=quote.pk)
    if quote.item_id != item.pk:
        raise RfqError("Quote does not belong to this item")
    if quote.quote_type == RfqQuote.TYPE_NOT_AVAILABLE:
        raise RfqError("A not-available quote cannot be selected")

    quote.is_selected = not quote.is_selected
    quote.save(update_fields=["is_selected"])

    _refresh_item_selection(item, user=user)
    _mark_selecting(rfq)
    return item


@transaction.atomic
def auto_select_best(*, rfq: Rfq, strategy: str = STRATEGY_LOWEST_PRICE, partner_id=None, user=None) -> dict:
    rfq = _lock(rfq)
    _require_selectable(rfq)

    if strategy not in STRATEGIES:
        raise RfqError(f"Unknown strategy: {strategy}")
    if strategy == STRATEGY_SINGLE_PARTNER and not partner_id:
        raise RfqError("partner_id is required for the single_partner strategy")

    valid = (
        RfqQuote.objects.filter(rfq=rfq, cost_price_per_case_usd__isnull=False)
        .exclude(quote_type=RfqQuote.TYPE_NOT_AVAILABLE)
        .order_by("cost_price_per_case_usd", "created_at")
    )

    chosen: dict[str, list[RfqQuote]] = {}
    if strategy == STRATEGY_LOWEST_PRICE:
        for quote in valid:
            chosen.setdefault(str(quote.item_id), [quote])
    else:
        for quote in valid.filter(partner_id=partner_id):
            chosen.setdefault(str(quote.item_id), []).append(quote)

    if not chosen:
        return {"updated": 0, "total_items": rfq.items.count(), "total_value": Decimal("0.00")}

    now = timezone.now()
    RfqQuote.objects.filter(item_id__in=chosen.keys()).update(is_selected=False)
    RfqQuote.objects.filter(pk__in=[q.pk for quotes in chosen.values() for q in quotes]).update(is_selected=True)

    total_value = Decimal("0")
    for item in RfqItem.objects.select_for_update().filter(pk__in=chosen.keys()):
        _refresh_item_selection(item, user=user, now=now)
        total_value += (item.final_price_usd or Decimal("0")) * item.quantity

    _mark_selecting(rfq)

    logger.info(
        "RFQ auto-selection applied",
        extra={"rfq_number": rfq.rfq_number, "strategy": strategy, "items": len(chosen)},
    )
    return {
        "updated": len(chosen),
        "total_items": rfq.items.count(),
        "total_value": round2(total_value),
    }


@transaction.atomic
def mark_item(*, item: RfqItem, status: str, user=None) -> RfqItem:
    if status not in MARKABLE_ITEM_STATUSES:
        raise RfqError(f"Items can only be marked {' or '.join(sorted(MARKABLE_ITEM_STATUSES))}")

    item = RfqItem.objects.select_for_update().get(pk=item.pk)
    rfq = _lock(item.rfq_id)
    if rfq.status in {Rfq.STATUS_FINALIZED, Rfq.STATUS_QUOTE_GENERATED, Rfq.STATUS_CANCELLED}:
        raise RfqError(f"RFQ {rfq.rfq_number} is {rfq.status}")

    item.quotes.filter(is_selected=True).update(is_selected=False)
    item.status = status
    item.selected_quote = None
    item.selected_at = None
    item.selected_by = None
    item.calculated_price_usd = None
    item.final_price_usd = None
    item.save()
    return item


@transaction.atomic
def adjust_item_price(*, item: RfqItem, final_price_usd, user=None) -> RfqItem:
    item = RfqItem.objects.select_for_update().get(pk=item.pk)
    if item.status != RfqItem.STATUS_SELECTED:
        raise RfqError("Only items with a selected quote can be re-priced")

    item.final_price_usd = round2(final_price_usd)
    item.price_adjusted_by = _user_or_none(user)
    item.save(update_fields=["final_price_usd", "price_adjusted_by"])
    return item


# ============================================================
# FINALIZE
# ============================================================


@transaction.atomic
def finalize_rfq(*, rfq: Rfq, user=None) -> dict:
    rfq = _lock(rfq)
    if rfq.status not in Rfq.FINALIZABLE_STATUSES:
        raise RfqError(f"RFQ cannot be finalized from status '{rfq.status}'")

    items = list(rfq.items.all())
    if not items:
        raise RfqError("RFQ has no items")

    unresolved = [i for i in items if i.status not in RfqItem.RESOLVED_STATUSES]
    if unresolved:
        raise RfqError(
            f"{len(unresolved)} item(s) have not been selected. Select quotes for all items "
            "or mark them as self-sourced or unsourceable."
        )

    selected = (
        RfqQuote.objects.select_related("partner", "item")
        .filter(rfq=rfq, is_selected=True, item__status=RfqItem.STATUS_SELECTED)
        .order_by("partner__name", "created_at")
    )

    groups: "OrderedDict[str, dict]" = OrderedDict()
    for quote in selected:
        item = quote.item
        unit = quote.cost_price_per_case_usd or Decimal("0")
        line_total = round2(unit * item.quantity)

        group = groups.setdefault(
            str(quote.partner_id),
            {
                "partner_id": str(quote.partner_id),
                "partner_name": quote.partner.name,
                "items": [],
                "total_usd": Decimal("0.00"),
            },
        )
        group["items"].append(
            {
                "item_id": str(item.pk),
                "quote_id": str(quote.pk),
                "product_name": item.product_name,
                "quantity": item.quantity,
                "quantity_unit": item.quantity_unit,
                "unit_price_usd": round2(unit),
                "line_total_usd": line_total,
            }
        )
        group["total_usd"] += line_total

    rfq.status = Rfq.STATUS_FINALIZED
    rfq.finalized_at = timezone.now()
    rfq.save(update_fields=["status", "finalized_at", "updated_at"])

    partner_selections = list(groups.values())
    partners = {str(p.pk): p for p in Partner.objects.filter(pk__in=groups.keys())}
    for group in partner_selections:
        notify_partner_members(
            partner=partners.get(group["partner_id"]),
            type="rfq_quotes_selected",
            title=f"{len(group['items'])} of your quote(s) on {rfq.rfq_number} were selected",
            entity_type="rfq",
            entity_id=rfq.pk,
            metadata={"total_usd": str(group["total_usd"])},
        )

    logger.info(
        "RFQ finalized",
        extra={"rfq_number": rfq.rfq_number, "partners": len(partner_selections)},
    )
    return {
        "rfq_id": str(rfq.pk),
        "status": rfq.status,
        "partner_selections": partner_selections,
        "summary": {
            "total_partners": len(partner_selections),
            "total_items": sum(1 for i in items if i.status == RfqItem.STATUS_SELECTED),
            "grand_total_usd": round2(sum((g["total_usd"] for g in partner_selections), Decimal("0"))),
            "self_sourced_count": sum(1 for i in items if i.status == RfqItem.STATUS_SELF_SOURCED),
            "unsourceable_count": sum(1 for i in items if i.status == RfqItem.STATUS_UNSOURCEABLE),
        },
    }


# ============================================================
# PROFIT
# ============================================================


def profit_analysis(*, rfq: Rfq, sell_prices: dict) -> dict:
    """
    sell_prices: {item_id: sell price per case (USD)}
    Buy price is the item's final (selected) price.
    """
    rows = []
    for item in rfq.items.all():
        sell = sell_prices.get(str(item.pk))
        rows.append(
            {
                "item_id": str(item.pk),
                "product_name": item.product_name,
                "sell_price_per_case_usd": None if sell is None else to_decimal(sell, field="sell_price"),
                "buy_price_per_case_usd": item.final_price_usd,
                "quantity_cases": item.quantity,
            }
        )
    return calculate_profit_analysis(rows)
