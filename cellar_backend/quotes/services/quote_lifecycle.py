"""
QUOTE LIFECYCLE RULES

Allowed quote status moves per acting party. No database access.
"""

from quotes.models import Quote


class InvalidQuoteTransitionError(Exception):
    pass


ACTOR_OWNER = "owner"
ACTOR_ADMIN = "admin"

# line items can be freely edited in these statuses
EDITABLE_STATES = {
    Quote.STATUS_DRAFT,
    Quote.STATUS_SENT,
    Quote.STATUS_REVISION_REQUESTED,
}

# confirmed but not yet settled: the owner may still drop lines or swap to
# an alternative
CONFIRMED_STATES = {
    Quote.STATUS_CC_CONFIRMED,
    Quote.STATUS_AWAITING_PAYMENT,
}

ALLOWED_TRANSITIONS = {
    ACTOR_OWNER: {
        Quote.STATUS_DRAFT: {Quote.STATUS_SENT, Quote.STATUS_BUY_REQUEST_SUBMITTED},
        Quote.STATUS_SENT: {Quote.STATUS_BUY_REQUEST_SUBMITTED},
        Quote.STATUS_REVISION_REQUESTED: {Quote.STATUS_BUY_REQUEST_SUBMITTED},
        Quote.STATUS_CC_CONFIRMED: {Quote.STATUS_AWAITING_PAYMENT, Quote.STATUS_PO_SUBMITTED},
    },
    ACTOR_ADMIN: {
        Quote.STATUS_BUY_REQUEST_SUBMITTED: {
            Quote.STATUS_UNDER_CC_REVIEW,
            Quote.STATUS_REVISION_REQUESTED,
        },
        Quote.STATUS_UNDER_CC_REVIEW: {
            Quote.STATUS_REVISION_REQUESTED,
            Quote.STATUS_CC_CONFIRMED,
        },
        Quote.STATUS_AWAITING_PAYMENT: {Quote.STATUS_PAID},
        Quote.STATUS_PO_SUBMITTED: {Quote.STATUS_PO_CONFIRMED},
        Quote.STATUS_PAID: {Quote.STATUS_DELIVERED},
        Quote.STATUS_PO_CONFIRMED: {Quote.STATUS_DELIVERED},
    },
}


def can_transition(*, from_status: str, to_status: str, actor: str) -> bool:
    return to_status in ALLOWED_TRANSITIONS.get(actor, {}).get(from_status, set())


def validate_transition(*, quote: Quote, target_status: str, actor: str):
    if not can_transition(from_status=quote.status, to_status=target_status, actor=actor):
        raise InvalidQuoteTransitionError(
            f"Quote {quote.quote_number} cannot transition from "
            f"'{quote.status}' to '{target_status}' as {actor}"
        )
