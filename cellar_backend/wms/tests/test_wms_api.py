# wms/tests/test_wms_api.py

from django.contrib.auth import get_user_model
from django.test import TestCase
from rest_framework.test import APIClient

from partners.models import Partner
from partners.services.membership import add_member
from wms.models import StockMovement
from wms.tests.fixtures import MASSETO_2018, SASSICAIA_2016, WarehouseFixtureMixin

User = get_user_model()


class WmsApiTests(WarehouseFixtureMixin, TestCase):
    def setUp(self):
        super().setUp()
        self.client = APIClient()
        self.client.force_authenticate(user=self.operator)

    def test_stock_list_and_filters(self):
        self.make_stock(quantity=5)
        self.make_stock(location=self.rack_b, lwin18=MASSETO_2018, quantity=2, product_name="Masseto 2018")

        res = self.client.get("/api/wms/stock/")
        self.assertEqual(res.status_code, 200)
        self.assertEqual(res.data["count"], 2)

        res = self.client.get("/api/wms/stock/", {"q": "masseto"})
        self.assertEqual(res.data["count"], 1)
        self.assertEqual(res.data["results"][0]["location_code"], "A-01-02")

    def test_create_location(self):
        res = self.client.post("/api/wms/locations/", {"location_code": "b-02-01", "location_type": "floor"}, format="json")
        self.assertEqual(res.status_code, 201)
        self.assertEqual(res.data["location_code"], "B-02-01")

    def test_receive_then_transfer(self):
        res = self.client.post(
            "/api/wms/receive/",
            {
                "location_id": str(self.receiving.pk),
                "owner_id": str(self.owner.pk),
                "lines": [{"lwin18": SASSICAIA_2016, "product_name": "Sassicaia 2016", "quantity_cases": 4}],
            },
            format="json",
        )
        self.assertEqual(res.status_code, 201)
        stock_id = res.data[0]["id"]

        res = self.client.post(
            "/api/wms/transfer/",
            {"stock_id": stock_id, "to_location_id": str(self.rack_a.pk), "quantity_cases": 4, "putaway": True},
            format="json",
        )
        self.assertEqual(res.status_code, 200)
        self.assertEqual(res.data["location_code"], "A-01-01")

        res = self.client.get("/api/wms/movements/", {"movement_type": StockMovement.TYPE_PUTAWAY})
        self.assertEqual(res.data["count"], 1)

    def test_transfer_beyond_available_is_rejected(self):
        stock = self.make_stock(quantity=2)
        res = self.client.post(
            "/api/wms/transfer/",
            {"stock_id": str(stock.pk), "to_location_id": str(self.rack_b.pk), "quantity_cases": 3},
            format="json",
        )
        self.assertEqual(res.status_code, 400)

    def test_adjust_returns_movement(self):
        stock = self.make_stock(quantity=5)
        res = self.client.post(
            "/api/wms/adjust/",
            {"stock_id": str(stock.pk), "new_quantity": 4, "reason_code": "breakage"},
            format="json",
        )
        self.assertEqual(res.status_code, 200)
        self.assertEqual(res.data["quantity_cases"], -1)

    def test_pick_list_endpoints(self):
        self.make_stock(quantity=3)
        res = self.client.post(
            "/api/wms/pick-lists/",
            {
                "order_type": "pco",
                "order_id": "order-1",
                "items": [{"lwin18": SASSICAIA_2016, "quantity_cases": 1}],
            },
            format="json",
        )
        self.assertEqual(res.status_code, 201)
        pick_list_id = res.data["id"]
        item_id = res.data["items"][0]["id"]

        pick_url = f"/api/wms/pick-lists/{pick_list_id}/pick/"
        payload = {"item_id": item_id, "location_id": str(self.rack_a.pk)}
        self.assertEqual(self.client.post(pick_url, payload, format="json").status_code, 200)
        self.assertEqual(self.client.post(pick_url, payload, format="json").status_code, 409)

        res = self.client.post(f"/api/wms/pick-lists/{pick_list_id}/complete/")
        self.assertEqual(res.data["status"], "completed")

    def test_cycle_count_endpoints(self):
        self.make_stock(quantity=5)
        res = self.client.post("/api/wms/cycle-counts/", {"location_id": str(self.rack_a.pk)}, format="json")
        self.assertEqual(res.status_code, 201)
        count_id = res.data["id"]
        item_id = res.data["items"][0]["id"]

        res = self.client.post(
            f"/api/wms/cycle-counts/{count_id}/counts/",
            {"counts": [{"item_id": item_id, "counted_quantity": 6}]},
            format="json",
        )
        self.assertEqual(res.status_code, 200)
        self.client.post(f"/api/wms/cycle-counts/{count_id}/complete/")

        res = self.client.post(f"/api/wms/cycle-counts/{count_id}/reconcile/", {}, format="json")
        self.assertEqual(res.status_code, 200)
        self.assertEqual(res.data["cycle_count"]["status"], "reconciled")
        self.assertEqual(len(res.data["adjusted"]), 1)

    def test_expiring_rejects_bad_days(self):
        res = self.client.get("/api/wms/stock/expiring/", {"days": "soon"})
        self.assertEqual(res.status_code, 400)

    def test_overview(self):
        self.make_stock(quantity=5)
        res = self.client.get("/api/wms/stock/overview/")
        self.assertEqual(res.status_code, 200)
        self.assertEqual(res.data["totals"]["quantity_cases"], 5)


class WmsPermissionTests(WarehouseFixtureMixin, TestCase):
    def setUp(self):
        super().setUp()
        self.client = APIClient()

    def test_partner_cannot_use_the_warehouse(self):
        partner_user = User.objects.create_user(email="sales@cru.test", password="pass", role="partner")
        add_member(partner=self.owner, user=partner_user)
        self.client.force_authenticate(user=partner_user)

        self.assertEqual(self.client.get("/api/wms/stock/").status_code, 403)

    def test_distributor_cannot_create_batches(self):
        distributor = Partner.objects.create(name="City Drinks", type=Partner.TYPE_DISTRIBUTOR, distributor_code="CD")
        user = User.objects.create_user(email="desk@citydrinks.test", password="pass", role="distributor")
        self.client.force_authenticate(user=user)

        res = self.client.post("/api/wms/dispatch-batches/", {"distributor_id": str(distributor.pk)}, format="json")
        self.assertEqual(res.status_code, 403)

    def test_admin_creates_dispatch_batch(self):
        distributor = Partner.objects.create(name="City Drinks", type=Partner.TYPE_DISTRIBUTOR, distributor_code="CD")
        admin = User.objects.create_user(email="ops@cellar.test", password="pass", role="admin")
        self.client.force_authenticate(user=admin)

        res = self.client.post("/api/wms/dispatch-batches/", {"distributor_id": str(distributor.pk)}, format="json")
        self.assertEqual(res.status_code, 201)
        self.assertEqual(res.data["status"], "draft")

    def test_anonymous_is_rejected(self):
        self.assertEqual(self.client.get("/api/wms/locations/").status_code, 401)

    def test_quick_dispatch_needs_operate_and_dispatch(self):
        distributor = Partner.objects.create(name="City Drinks", type=Partner.TYPE_DISTRIBUTOR, distributor_code="CD")
        user = User.objects.create_user(email="desk@citydrinks.test", password="pass", role="distributor")
        self.client.force_authenticate(user=user)

        res = self.client.post(
            "/api/wms/dispatch-batches/quick-dispatch/",
            {"order_ids": [], "distributor_id": str(distributor.pk)},
            format="json",
        )
        self.assertEqual(res.status_code, 403)
