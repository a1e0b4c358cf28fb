# partners/services/membership.py

"""
PARTNER MEMBERSHIP RESOLUTION

A request user acts on behalf of at most one partner per partner type.
Views call these helpers to scope querysets (partner sees own orders,
distributor sees assigned orders).
"""

from __future__ import annotations

from django.contrib.auth import get_user_model

from partners.models import Partner, PartnerMember


class PartnerAccessError(Exception):
    pass


def get_partner_for_user(user, partner_type: str | None = None) -> Partner | None:
    if user is None or not getattr(user, "is_authenticated", False):
        return None

    qs = PartnerMember.objects.select_related("partner").filter(
        user=user,
        partner__is_active=True,
    )
    if partner_type:
        qs = qs.filter(partner__type=partner_type)

    membership = qs.order_by("created_at").first()
    return membership.partner if membership else None


def require_partner_for_user(user, partner_type: str) -> Partner:
    partner = get_partner_for_user(user, partner_type)
    if partner is None:
        raise PartnerAccessError(
            f"User is not a member of an active {partner_type.replace('_', ' ')}"
        )
    return partner


def list_member_users(partner: Partner):
    User = get_user_model()
    return User.objects.filter(
        partner_memberships__partner=partner,
        is_active=True,
    ).distinct()


def add_member(*, partner: Partner, user, role: str = PartnerMember.ROLE_MEMBER) -> PartnerMember:
    membership, _ = PartnerMember.objects.get_or_create(
        partner=partner,
        user=user,
        defaults={"role": role},
    )
    return membership
