# partners/tests/test_partners.py

from django.contrib.auth import get_user_model
from django.test import TestCase
from rest_framework.test import APIClient

from partners.models import Partner, PartnerMember
from partners.services.membership import (
    PartnerAccessError,
    add_member,
    get_partner_for_user,
    list_member_users,
    require_partner_for_user,
)

User = get_user_model()


class MembershipTests(TestCase):
    """
    GUARANTEES:
    - A user resolves to the partner they belong to
    - Inactive partners are never resolved
    - Membership is idempotent
    """

    def setUp(self):
        self.wine = Partner.objects.create(name="Cru Partners", type=Partner.TYPE_WINE_PARTNER)
        self.dist = Partner.objects.create(
            name="City Drinks",
            type=Partner.TYPE_DISTRIBUTOR,
            distributor_code="CD",
        )
        self.user = User.objects.create_user(email="member@cru.test", password="pass", role="partner")

    def test_resolves_partner_by_type(self):
        add_member(partner=self.wine, user=self.user)
        add_member(partner=self.dist, user=self.user)

        self.assertEqual(get_partner_for_user(self.user, Partner.TYPE_WINE_PARTNER), self.wine)
        self.assertEqual(get_partner_for_user(self.user, Partner.TYPE_DISTRIBUTOR), self.dist)

    def test_inactive_partner_is_ignored(self):
        add_member(partner=self.wine, user=self.user)
        self.wine.is_active = False
        self.wine.save()

        self.assertIsNone(get_partner_for_user(self.user))
        with self.assertRaises(PartnerAccessError):
            require_partner_for_user(self.user, Partner.TYPE_WINE_PARTNER)

    def test_add_member_is_idempotent(self):
        add_member(partner=self.wine, user=self.user, role=PartnerMember.ROLE_OWNER)
        add_member(partner=self.wine, user=self.user)

        self.assertEqual(PartnerMember.objects.filter(partner=self.wine).count(), 1)
        self.assertEqual(list(list_member_users(self.wine)), [self.user])

    def test_anonymous_user_has_no_partner(self):
        self.assertIsNone(get_partner_for_user(None))


class PartnerApiTests(TestCase):
    def setUp(self):
        self.client = APIClient()
        self.admin = User.objects.create_user(email="ops@cellar.test", password="pass", role="admin")
        self.partner_user = User.objects.create_user(email="p@cru.test", password="pass", role="partner")
        self.wine = Partner.objects.create(name="Cru Partners", type=Partner.TYPE_WINE_PARTNER)

    def test_admin_creates_distributor_with_normalized_code(self):
        self.client.force_authenticate(self.admin)
        res = self.client.post(
            "/api/partners/",
            {"name": "City Drinks", "type": "distributor", "distributor_code": " cd "},
            format="json",
        )
        self.assertEqual(res.status_code, 201)
        self.assertEqual(Partner.objects.get(name="City Drinks").distributor_code, "CD")

    def test_wine_partner_cannot_require_client_verification(self):
        self.client.force_authenticate(self.admin)
        res = self.client.post(
            "/api/partners/",
            {"name": "Odd", "type": "wine_partner", "requires_client_verification": True},
            format="json",
        )
        self.assertEqual(res.status_code, 400)

    def test_admin_adds_member_and_member_sees_own_partner(self):
        self.client.force_authenticate(self.admin)
        res = self.client.post(
            f"/api/partners/{self.wine.id}/members/",
            {"user_id": str(self.partner_user.id), "role": "owner"},
            format="json",
        )
        self.assertEqual(res.status_code, 201)

        self.client.force_authenticate(self.partner_user)
        res = self.client.get("/api/partners/me/")
        self.assertEqual(res.status_code, 200)
        self.assertEqual(res.data["name"], "Cru Partners")

    def test_partner_user_cannot_manage_partners(self):
        self.client.force_authenticate(self.partner_user)
        res = self.client.get("/api/partners/")
        self.assertEqual(res.status_code, 403)

    def test_me_without_membership_is_404(self):
        self.client.force_authenticate(self.admin)
        res = self.client.get("/api/partners/me/")
        self.assertEqual(res.status_code, 404)
