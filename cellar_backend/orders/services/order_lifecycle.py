"""
PRIVATE CLIENT ORDER LIFECYCLE RULES

This module defines the ONLY allowed lifecycle transitions for
PrivateClientOrder, per acting party.

DESIGN PRINCIPLES:
- No database writes
- No stock mutation
- No side effects
- Single source of truth
"""

from orders.models import PrivateClientOrder as PCO

# ============================================================
# DOMAIN ERRORS
# ============================================================


class OrderLifecycleError(Exception):
    pass


class InvalidOrderTransitionError(OrderLifecycleError):
    pass


# ============================================================
# ACTORS
# ============================================================

ACTOR_ADMIN = "admin"
ACTOR_PARTNER = "partner"
ACTOR_DISTRIBUTOR = "distributor"
ACTOR_DISPATCH = "dispatch"

ACTORS = {ACTOR_ADMIN, ACTOR_PARTNER, ACTOR_DISTRIBUTOR, ACTOR_DISPATCH}


# ============================================================
# STATE DEFINITIONS
# ============================================================

TERMINAL_STATES = {
    PCO.STATUS_DELIVERED,
    PCO.STATUS_CANCELLED,
}

EDITABLE_STATES = {
    PCO.STATUS_DRAFT,
    PCO.STATUS_REVISION_REQUESTED,
}

# statuses from which stock can leave the warehouse for the distributor
DISPATCHABLE_STATES = {
    PCO.STATUS_CC_APPROVED,
    PCO.STATUS_CLIENT_PAID,
    PCO.STATUS_DISTRIBUTOR_PAID,
    PCO.STATUS_PARTNER_PAID,
}

# statuses from which admin may (re)assign a distributor
DISTRIBUTOR_ASSIGNABLE_STATES = {
    PCO.STATUS_CC_APPROVED,
    PCO.STATUS_AWAITING_CLIENT_PAYMENT,
    PCO.STATUS_CLIENT_PAID,
}

# actors allowed to cancel from any non-terminal status
CANCELLING_ACTORS = {ACTOR_ADMIN, ACTOR_PARTNER}

ALLOWED_TRANSITIONS = {
    ACTOR_PARTNER: {
        PCO.STATUS_DRAFT: {PCO.STATUS_SUBMITTED},
        PCO.STATUS_REVISION_REQUESTED: {PCO.STATUS_SUBMITTED},
        PCO.STATUS_AWAITING_PARTNER_VERIFICATION: {
            PCO.STATUS_AWAITING_DISTRIBUTOR_VERIFICATION,
            PCO.STATUS_VERIFICATION_SUSPENDED,
        },
        PCO.STATUS_AWAITING_CLIENT_PAYMENT: {PCO.STATUS_AWAITING_PAYMENT_VERIFICATION},
    },
    ACTOR_ADMIN: {
        PCO.STATUS_DRAFT: {PCO.STATUS_SUBMITTED},
        PCO.STATUS_REVISION_REQUESTED: {PCO.STATUS_SUBMITTED},
        PCO.STATUS_SUBMITTED: {
            PCO.STATUS_UNDER_CC_REVIEW,
            PCO.STATUS_REVISION_REQUESTED,
            PCO.STATUS_CC_APPROVED,
        },
        PCO.STATUS_UNDER_CC_REVIEW: {
            PCO.STATUS_REVISION_REQUESTED,
            PCO.STATUS_CC_APPROVED,
        },
        PCO.STATUS_CC_APPROVED: {
            PCO.STATUS_AWAITING_PARTNER_VERIFICATION,
            PCO.STATUS_AWAITING_CLIENT_PAYMENT,
            PCO.STATUS_STOCK_IN_TRANSIT,
        },
        PCO.STATUS_AWAITING_CLIENT_PAYMENT: {
            PCO.STATUS_AWAITING_PARTNER_VERIFICATION,
            PCO.STATUS_AWAITING_PAYMENT_VERIFICATION,
        },
        PCO.STATUS_VERIFICATION_SUSPENDED: {
            PCO.STATUS_AWAITING_PARTNER_VERIFICATION,
            PCO.STATUS_AWAITING_DISTRIBUTOR_VERIFICATION,
            PCO.STATUS_AWAITING_CLIENT_PAYMENT,
        },
        PCO.STATUS_AWAITING_PAYMENT_VERIFICATION: {PCO.STATUS_CLIENT_PAID},
        PCO.STATUS_CLIENT_PAID: {
            PCO.STATUS_AWAITING_PARTNER_VERIFICATION,
            PCO.STATUS_AWAITING_CLIENT_PAYMENT,
            PCO.STATUS_DISTRIBUTOR_PAID,
            PCO.STATUS_STOCK_IN_TRANSIT,
        },
        PCO.STATUS_AWAITING_DISTRIBUTOR_PAYMENT: {PCO.STATUS_DISTRIBUTOR_PAID},
        PCO.STATUS_DISTRIBUTOR_PAID: {
            PCO.STATUS_AWAITING_PARTNER_PAYMENT,
            PCO.STATUS_PARTNER_PAID,
            PCO.STATUS_STOCK_IN_TRANSIT,
        },
        PCO.STATUS_AWAITING_PARTNER_PAYMENT: {PCO.STATUS_PARTNER_PAID},
        PCO.STATUS_PARTNER_PAID: {PCO.STATUS_STOCK_IN_TRANSIT},
    },
    # free-form progress updates; verification answers use
    # DISTRIBUTOR_VERIFICATION_TRANSITIONS below
    ACTOR_DISTRIBUTOR: {
        PCO.STATUS_CC_APPROVED: {PCO.STATUS_AWAITING_CLIENT_VERIFICATION},
        PCO.STATUS_AWAITING_CLIENT_VERIFICATION: {PCO.STATUS_AWAITING_CLIENT_PAYMENT},
        PCO.STATUS_AWAITING_CLIENT_PAYMENT: {PCO.STATUS_CLIENT_PAID},
        PCO.STATUS_CLIENT_PAID: {PCO.STATUS_AWAITING_DISTRIBUTOR_PAYMENT},
        PCO.STATUS_AWAITING_DISTRIBUTOR_PAYMENT: {PCO.STATUS_DISTRIBUTOR_PAID},
        PCO.STATUS_STOCK_IN_TRANSIT: {PCO.STATUS_WITH_DISTRIBUTOR},
        PCO.STATUS_WITH_DISTRIBUTOR: {PCO.STATUS_OUT_FOR_DELIVERY},
        PCO.STATUS_OUT_FOR_DELIVERY: {PCO.STATUS_DELIVERED},
    },
    ACTOR_DISPATCH: {
        status: {PCO.STATUS_STOCK_IN_TRANSIT} for status in DISPATCHABLE_STATES
    },
}

# answers the assigned distributor gives on client identity and client payment
DISTRIBUTOR_VERIFICATION_TRANSITIONS = {
    PCO.STATUS_AWAITING_DISTRIBUTOR_VERIFICATION: {
        PCO.STATUS_AWAITING_CLIENT_PAYMENT,
        PCO.STATUS_VERIFICATION_SUSPENDED,
    },
    PCO.STATUS_VERIFICATION_SUSPENDED: {PCO.STATUS_AWAITING_CLIENT_PAYMENT},
    PCO.STATUS_AWAITING_PAYMENT_VERIFICATION: {PCO.STATUS_CLIENT_PAID},
}


# ============================================================
# DOMAIN RULES
# ============================================================


def can_transition(*, from_status: str, to_status: str, actor: str) -> bool:
    if from_status in TERMINAL_STATES:
        return False

    if to_status == PCO.STATUS_CANCELLED:
        return actor in CANCELLING_ACTORS

    return to_status in ALLOWED_TRANSITIONS.get(actor, {}).get(from_status, set())


def validate_transition(*, order: PCO, target_status: str, actor: str):
    if not can_transition(
        from_status=order.status,
        to_status=target_status,
        actor=actor,
    ):
        raise InvalidOrderTransitionError(
            f"Order {order.order_number} cannot transition from "
            f"'{order.status}' to '{target_status}' as {actor}"
        )


def build_payment_reference(*, distributor, order: PCO, default_prefix: str = "ORD") -> str:
    prefix = (getattr(distributor, "distributor_code", "") or "").strip() or default_prefix
    return f"{prefix}-{order.order_number}"


def can_distributor_update(*, from_status: str, to_status: str, client_verified: bool = False) -> bool:
    """
    Progress updates posted by the assigned distributor.

    A client the distributor has verified before may go straight from
    cc_approved to awaiting_client_payment.
    """
    if (
        client_verified
        and from_status == PCO.STATUS_CC_APPROVED
        and to_status == PCO.STATUS_AWAITING_CLIENT_PAYMENT
    ):
        return True
    return can_transition(from_status=from_status, to_status=to_status, actor=ACTOR_DISTRIBUTOR)


def validate_distributor_verification(*, order: PCO, target_status: str):
    allowed = DISTRIBUTOR_VERIFICATION_TRANSITIONS.get(order.status, set())
    if target_status not in allowed:
        raise InvalidOrderTransitionError(
            f"Order {order.order_number} cannot move from "
            f"'{order.status}' to '{target_status}' on a distributor verification"
        )
