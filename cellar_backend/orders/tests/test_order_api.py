# orders/tests/test_order_api.py

from django.contrib.auth import get_user_model
from django.test import TestCase
from rest_framework.test import APIClient

from orders.models import PrivateClientContact, PrivateClientOrder
from partners.models import Partner
from partners.services.membership import add_member

User = get_user_model()

ITEM = {"product_name": "Opus One", "vintage": "2018", "quantity": 1, "price_per_case_usd": "1000.00"}


class OrderApiTests(TestCase):
    """
    GUARANTEES:
    - Partners see only their own orders
    - Admin-only commands are refused to partners
    - Domain errors map to 4xx responses
    """

    def setUp(self):
        self.client = APIClient()
        self.admin = User.objects.create_user(email="ops@cellar.test", password="pass", role="admin")

        self.partner = Partner.objects.create(name="Cru Partners", type=Partner.TYPE_WINE_PARTNER)
        self.partner_user = User.objects.create_user(email="sales@cru.test", password="pass", role="partner")
        add_member(partner=self.partner, user=self.partner_user)

        self.rival = Partner.objects.create(name="Rival Wines", type=Partner.TYPE_WINE_PARTNER)
        self.rival_user = User.objects.create_user(email="sales@rival.test", password="pass", role="partner")
        add_member(partner=self.rival, user=self.rival_user)

        self.warehouse = User.objects.create_user(email="picker@cellar.test", password="pass", role="warehouse")

    def _create(self, user=None):
        self.client.force_authenticate(user or self.partner_user)
        res = self.client.post("/api/orders/", {"client_name": "Ahmed Khalil", "items": [ITEM]}, format="json")
        self.assertEqual(res.status_code, 201, res.data)
        return res.data

    def test_partner_creates_order_with_consolidated_view(self):
        data = self._create()
        self.assertEqual(data["status"], PrivateClientOrder.STATUS_DRAFT)
        self.assertEqual(data["partner_name"], "Cru Partners")
        self.assertEqual(len(data["items"]), 1)

    def test_partner_scoping(self):
        data = self._create()

        self.client.force_authenticate(self.rival_user)
        res = self.client.get(f"/api/orders/{data['id']}/")
        self.assertEqual(res.status_code, 404)

        res = self.client.get("/api/orders/")
        self.assertEqual(res.data["count"], 0)

    def test_warehouse_role_has_no_order_access(self):
        self.client.force_authenticate(self.warehouse)
        res = self.client.get("/api/orders/")
        self.assertEqual(res.status_code, 403)

    def test_partner_cannot_approve(self):
        data = self._create()
        self.client.post(f"/api/orders/{data['id']}/submit/")
        res = self.client.post(f"/api/orders/{data['id']}/approve/", {}, format="json")
        self.assertEqual(res.status_code, 403)

    def test_submit_review_approve(self):
        data = self._create()
        res = self.client.post(f"/api/orders/{data['id']}/submit/")
        self.assertEqual(res.data["status"], PrivateClientOrder.STATUS_SUBMITTED)

        self.client.force_authenticate(self.admin)
        res = self.client.post(f"/api/orders/{data['id']}/start-review/")
        self.assertEqual(res.status_code, 200)
        res = self.client.post(f"/api/orders/{data['id']}/approve/", {"notes": "ok"}, format="json")
        self.assertEqual(res.status_code, 200)
        self.assertEqual(res.data["status"], PrivateClientOrder.STATUS_CC_APPROVED)
        self.assertEqual(res.data["admin_notes"], "ok")

    def test_invalid_transition_is_400(self):
        data = self._create()
        self.client.force_authenticate(self.admin)
        res = self.client.post(f"/api/orders/{data['id']}/start-review/")
        self.assertEqual(res.status_code, 400)

    def test_item_endpoints(self):
        data = self._create()
        res = self.client.post(f"/api/orders/{data['id']}/items/", dict(ITEM, product_name="Dominus"), format="json")
        self.assertEqual(res.status_code, 201)

        res = self.client.patch(
            f"/api/orders/{data['id']}/items/{res.data['id']}/",
            {"quantity": 3},
            format="json",
        )
        self.assertEqual(res.status_code, 200)
        self.assertEqual(res.data["quantity"], 3)

        res = self.client.delete(f"/api/orders/{data['id']}/items/{res.data['id']}/")
        self.assertEqual(res.status_code, 204)

    def test_activity_and_dashboard(self):
        data = self._create()
        res = self.client.get(f"/api/orders/{data['id']}/activity/")
        self.assertEqual(res.status_code, 200)
        self.assertEqual(res.data[0]["action"], "created")

        res = self.client.get("/api/orders/dashboard/")
        self.assertEqual(res.status_code, 200)
        self.assertEqual(res.data["total_orders"], 1)

    def test_assigned_distributor_verifies_client_payment(self):
        distributor = Partner.objects.create(name="City Drinks", type=Partner.TYPE_DISTRIBUTOR, distributor_code="CD")
        desk = User.objects.create_user(email="desk@citydrinks.test", password="pass", role="distributor")
        add_member(partner=distributor, user=desk)

        data = self._create()
        self.client.post(f"/api/orders/{data['id']}/submit/")
        self.client.force_authenticate(self.admin)
        self.client.post(f"/api/orders/{data['id']}/approve/", {}, format="json")
        res = self.client.post(
            f"/api/orders/{data['id']}/assign-distributor/",
            {"distributor_id": str(distributor.pk)},
            format="json",
        )
        self.assertEqual(res.status_code, 200, res.data)

        self.client.force_authenticate(self.partner_user)
        res = self.client.post(
            f"/api/orders/{data['id']}/confirm-payment/",
            {"stage": "client", "reference": "TT-88"},
            format="json",
        )
        self.assertEqual(res.data["status"], PrivateClientOrder.STATUS_AWAITING_PAYMENT_VERIFICATION)

        res = self.client.post(f"/api/orders/{data['id']}/verify-payment/", {}, format="json")
        self.assertEqual(res.status_code, 403)

        self.client.force_authenticate(desk)
        res = self.client.post(f"/api/orders/{data['id']}/verify-payment/", {"notes": "Seen on statement"}, format="json")
        self.assertEqual(res.status_code, 200, res.data)
        self.assertEqual(res.data["status"], PrivateClientOrder.STATUS_CLIENT_PAID)


class ClientContactApiTests(TestCase):
    def setUp(self):
        self.client = APIClient()
        self.partner = Partner.objects.create(name="Cru Partners", type=Partner.TYPE_WINE_PARTNER)
        self.partner_user = User.objects.create_user(email="sales@cru.test", password="pass", role="partner")
        add_member(partner=self.partner, user=self.partner_user)
        self.admin = User.objects.create_user(email="ops@cellar.test", password="pass", role="admin")

    def test_partner_contact_is_attached_to_partner(self):
        self.client.force_authenticate(self.partner_user)
        res = self.client.post("/api/orders/clients/", {"name": "Ahmed Khalil"}, format="json")
        self.assertEqual(res.status_code, 201)
        self.assertEqual(PrivateClientContact.objects.get().partner, self.partner)

    def test_admin_without_partner_cannot_create_contact(self):
        self.client.force_authenticate(self.admin)
        res = self.client.post("/api/orders/clients/", {"name": "Someone"}, format="json")
        self.assertEqual(res.status_code, 403)
