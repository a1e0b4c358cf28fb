# permissions/roles.py

from __future__ import annotations

from typing import Optional

from rest_framework.permissions import BasePermission


# =========================================================
# ROLE CONSTANTS
# =========================================================
# Mirrors users.User.ROLE_*; kept here so permission code never imports models.
ROLE_ADMIN = "admin"
ROLE_PARTNER = "partner"
ROLE_DISTRIBUTOR = "distributor"
ROLE_WAREHOUSE = "warehouse"
ROLE_CUSTOMER = "customer"


# =========================================================
# CAPABILITIES (THE REAL PERMISSION LANGUAGE)
# =========================================================
# Views protect capabilities, not raw roles.
CAP_ORDERS_ADMIN = "orders.admin"              # approve, assign, reset, override
CAP_ORDERS_PARTNER = "orders.partner"          # create/submit/verify own orders
CAP_ORDERS_DISTRIBUTOR = "orders.distributor"  # verification, payment, delivery

CAP_WMS_VIEW = "wms.view"
CAP_WMS_OPERATE = "wms.operate"                # pick, transfer, receive, count
CAP_WMS_DISPATCH = "wms.dispatch"              # dispatch batches

CAP_PRICING_VIEW = "pricing.view"
CAP_PRICING_EDIT = "pricing.edit"

CAP_SOURCING_ADMIN = "sourcing.admin"
CAP_SOURCING_QUOTE = "sourcing.quote"

CAP_LOGISTICS_VIEW = "logistics.view"
CAP_LOGISTICS_EDIT = "logistics.edit"

CAP_QUOTES_ADMIN = "quotes.admin"              # review, confirm, payment, PO, delivery
CAP_QUOTES_CREATE = "quotes.create"            # build and submit own quotes

CAP_PARTNERS_MANAGE = "partners.manage"

ALL_CAPABILITIES = {
    CAP_ORDERS_ADMIN,
    CAP_ORDERS_PARTNER,
    CAP_ORDERS_DISTRIBUTOR,
    CAP_WMS_VIEW,
    CAP_WMS_OPERATE,
    CAP_WMS_DISPATCH,
    CAP_PRICING_VIEW,
    CAP_PRICING_EDIT,
    CAP_SOURCING_ADMIN,
    CAP_SOURCING_QUOTE,
    CAP_LOGISTICS_VIEW,
    CAP_LOGISTICS_EDIT,
    CAP_QUOTES_ADMIN,
    CAP_QUOTES_CREATE,
    CAP_PARTNERS_MANAGE,
}


# =========================================================
# ROLE → CAPABILITY MAP
# =========================================================
ROLE_CAPABILITIES: dict[str, set[str]] = {
    ROLE_ADMIN: {
        *ALL_CAPABILITIES,
    },
    ROLE_PARTNER: {
        CAP_ORDERS_PARTNER,
        CAP_PRICING_VIEW,
        CAP_SOURCING_QUOTE,
        CAP_LOGISTICS_VIEW,
        CAP_QUOTES_CREATE,
    },
    ROLE_DISTRIBUTOR: {
        CAP_ORDERS_DISTRIBUTOR,
        CAP_PRICING_VIEW,
    },
    ROLE_WAREHOUSE: {
        CAP_WMS_VIEW,
        CAP_WMS_OPERATE,
        CAP_WMS_DISPATCH,
        CAP_LOGISTICS_VIEW,
    },
    ROLE_CUSTOMER: {
        CAP_QUOTES_CREATE,
    },
}


# =========================================================
# Helpers
# =========================================================
def get_user_role(user) -> Optional[str]:
    if getattr(user, "is_superuser", False):
        return ROLE_ADMIN
    return getattr(user, "role", None)


def effective_capabilities_for(request, user) -> set[str]:
    return set(ROLE_CAPABILITIES.get(get_user_role(user), set()))


def user_has_capability(user, capability: str) -> bool:
    return capability in effective_capabilities_for(None, user)


# =========================================================
# Capability Permissions
# =========================================================
class HasCapability(BasePermission):
    """
    Require a specific capability.

    Usage:
        permission_classes = [IsAuthenticated, HasCapability]
        required_capability = CAP_WMS_OPERATE
    """

    def has_permission(self, request, view):
        user = request.user
        if not user or not user.is_authenticated:
            return False

        required = getattr(view, "required_capability", None)
        if not required:
            # deny-by-default to avoid accidental open endpoints
            return False

        return required in effective_capabilities_for(request, user)


class HasAnyCapability(BasePermission):
    """
    Require ANY capability from a set.

    Usage:
        required_any_capabilities = {CAP_ORDERS_ADMIN, CAP_ORDERS_PARTNER}
    """

    def has_permission(self, request, view):
        user = request.user
        if not user or not user.is_authenticated:
            return False

        required = getattr(view, "required_any_capabilities", None)
        if not required:
            return False

        caps = effective_capabilities_for(request, user)
        return any(cap in caps for cap in set(required))



class HasAllCapabilities(BasePermission):
    """
    Require ALL capabilities in a set.

    Usage:
        required_all_capabilities = {CAP_WMS_OPERATE, CAP_WMS_DISPATCH}
    """

    def has_permission(self, request, view):
        user = request.user
        if not user or not user.is_authenticated:
            return False

        required = getattr(view, "required_all_capabilities", None)
        if not required:
            return False

        caps = effective_capabilities_for(request, user)
        return set(required).issubset(caps)
