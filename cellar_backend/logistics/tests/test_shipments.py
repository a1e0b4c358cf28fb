# logistics/tests/test_shipments.py

from decimal import Decimal

from django.contrib.auth import get_user_model
from django.test import TestCase
from rest_framework.test import APIClient

from logistics.models import Shipment, ShipmentActivityLog
from logistics.services import shipments as shipment_service
from logistics.services.shipments import ShipmentError
from notifications.models import Notification
from partners.models import Partner
from partners.services.membership import add_member

User = get_user_model()

BAROLO = {
    "product_name": "Barolo 2019",
    "lwin": "1100529",
    "cases": 10,
    "bottles_per_case": 12,
    "product_cost_per_bottle": Decimal("20.00"),
    "target_selling_price": Decimal("33.00"),
}


class ShipmentFixtureMixin:
    def setUp(self):
        self.admin = User.objects.create_user(email="ops@cellar.test", password="pass", role="admin")
        self.partner = Partner.objects.create(name="Cru Partners", type=Partner.TYPE_WINE_PARTNER)
        self.partner_user = User.objects.create_user(email="sales@cru.test", password="pass", role="partner")
        add_member(partner=self.partner, user=self.partner_user)

    def create_shipment(self, **data):
        data.setdefault("partner", self.partner)
        data.setdefault("freight_cost_usd", Decimal("600.00"))
        data.setdefault("insurance_cost_usd", Decimal("60.00"))
        return shipment_service.create_shipment(data=data, user=self.admin)


class ShipmentServiceTests(ShipmentFixtureMixin, TestCase):
    def test_forward_order_excludes_cancelled(self):
        self.assertEqual(Shipment.STATUS_ORDER[0], Shipment.STATUS_DRAFT)
        self.assertEqual(Shipment.STATUS_ORDER[-1], Shipment.STATUS_DELIVERED)
        self.assertNotIn(Shipment.STATUS_CANCELLED, Shipment.STATUS_ORDER)
        self.assertEqual(len(Shipment.STATUS_ORDER), len(Shipment.STATUS_CHOICES) - 1)

    def test_create_numbers_and_logs(self):
        shipment = self.create_shipment()

        self.assertTrue(shipment.shipment_number.startswith("SHP-"))
        self.assertEqual(shipment.status, Shipment.STATUS_DRAFT)
        self.assertEqual(shipment.activity_logs.get().action, "created")

    def test_recalculate_persists_item_figures(self):
        shipment = self.create_shipment()
        item = shipment_service.add_item(shipment=shipment, data=BAROLO, user=self.admin)

        result = shipment_service.recalculate_shipment(shipment=shipment)

        item.refresh_from_db()
        self.assertEqual(item.allocated_freight, Decimal("600.00"))
        self.assertEqual(item.landed_cost_total, Decimal("3060.00"))
        self.assertEqual(item.landed_cost_per_bottle, Decimal("25.50"))
        self.assertEqual(item.margin_percent, Decimal("29.41"))
        self.assertEqual(result["summary"]["total_landed_cost_usd"], Decimal("3060.00"))

    def test_status_moves_forward_and_stamps_dates(self):
        shipment = self.create_shipment()

        shipment = shipment_service.update_shipment_status(shipment=shipment, status=Shipment.STATUS_IN_TRANSIT, user=self.admin)
        self.assertIsNotNone(shipment.atd)
        self.assertIsNone(shipment.ata)

        with self.assertRaises(ShipmentError):
            shipment_service.update_shipment_status(shipment=shipment, status=Shipment.STATUS_BOOKED)

        shipment = shipment_service.update_shipment_status(shipment=shipment, status=Shipment.STATUS_AT_WAREHOUSE)
        self.assertIsNotNone(shipment.ata)

        log = ShipmentActivityLog.objects.filter(shipment=shipment, action="status_changed").order_by("created_at").last()
        self.assertEqual((log.previous_status, log.new_status), (Shipment.STATUS_IN_TRANSIT, Shipment.STATUS_AT_WAREHOUSE))

    def test_cancelled_and_delivered_are_final(self):
        shipment = self.create_shipment()
        shipment = shipment_service.update_shipment_status(shipment=shipment, status=Shipment.STATUS_CANCELLED)

        with self.assertRaises(ShipmentError):
            shipment_service.update_shipment_status(shipment=shipment, status=Shipment.STATUS_BOOKED)
        with self.assertRaises(ShipmentError):
            shipment_service.update_shipment(shipment=shipment, data={"notes": "late"})
        with self.assertRaises(ShipmentError):
            shipment_service.add_item(shipment=shipment, data=BAROLO)

    def test_partner_members_are_notified_of_status_changes(self):
        shipment = self.create_shipment()
        shipment_service.update_shipment_status(shipment=shipment, status=Shipment.STATUS_BOOKED)

        note = Notification.objects.get(user=self.partner_user)
        self.assertEqual(note.type, "shipment_status")
        self.assertIn(shipment.shipment_number, note.title)

    def test_remove_unknown_item(self):
        shipment = self.create_shipment()
        with self.assertRaises(ShipmentError):
            shipment_service.remove_item(shipment=shipment, item_id="00000000-0000-0000-0000-000000000000")


class ShipmentApiTests(ShipmentFixtureMixin, TestCase):
    def setUp(self):
        super().setUp()
        self.client = APIClient()

    def test_admin_creates_and_works_a_shipment(self):
        self.client.force_authenticate(user=self.admin)

        res = self.client.post(
            "/api/logistics/shipments/",
            {"partner": str(self.partner.pk), "transport_mode": "air", "freight_cost_usd": "600.00"},
            format="json",
        )
        self.assertEqual(res.status_code, 201)
        shipment_id = res.data["id"]

        res = self.client.post(
            f"/api/logistics/shipments/{shipment_id}/items/",
            {"product_name": "Barolo 2019", "cases": 10, "product_cost_per_bottle": "20.00"},
            format="json",
        )
        self.assertEqual(res.status_code, 201)
        self.assertEqual(res.data["bottle_count"], 120)
        item_id = res.data["id"]

        res = self.client.post(f"/api/logistics/shipments/{shipment_id}/landed-cost/")
        self.assertEqual(res.status_code, 200)
        self.assertEqual(str(res.data["summary"]["total_landed_cost_usd"]), "3000.00")

        res = self.client.post(f"/api/logistics/shipments/{shipment_id}/status/", {"status": "booked"}, format="json")
        self.assertEqual(res.data["status"], "booked")
        res = self.client.post(f"/api/logistics/shipments/{shipment_id}/status/", {"status": "draft"}, format="json")
        self.assertEqual(res.status_code, 400)

        res = self.client.delete(f"/api/logistics/shipments/{shipment_id}/items/{item_id}/")
        self.assertEqual(res.status_code, 204)

        res = self.client.get(f"/api/logistics/shipments/{shipment_id}/activity/")
        self.assertCountEqual(
            [row["action"] for row in res.data],
            ["created", "item_added", "status_changed", "item_removed"],
        )

    def test_only_draft_shipments_can_be_deleted(self):
        shipment = self.create_shipment()
        shipment_service.update_shipment_status(shipment=shipment, status=Shipment.STATUS_BOOKED)
        self.client.force_authenticate(user=self.admin)

        res = self.client.delete(f"/api/logistics/shipments/{shipment.pk}/")
        self.assertEqual(res.status_code, 400)

    def test_partner_sees_only_own_shipments_read_only(self):
        other = Partner.objects.create(name="Other Cellars", type=Partner.TYPE_WINE_PARTNER)
        mine = self.create_shipment()
        theirs = self.create_shipment(partner=other)
        self.client.force_authenticate(user=self.partner_user)

        res = self.client.get("/api/logistics/shipments/")
        self.assertEqual(res.data["count"], 1)
        self.assertEqual(res.data["results"][0]["id"], str(mine.pk))

        self.assertEqual(self.client.get(f"/api/logistics/shipments/{theirs.pk}/").status_code, 404)
        self.assertEqual(
            self.client.post("/api/logistics/shipments/", {"transport_mode": "air"}, format="json").status_code,
            403,
        )

    def test_warehouse_sees_every_shipment(self):
        other = Partner.objects.create(name="Other Cellars", type=Partner.TYPE_WINE_PARTNER)
        self.create_shipment()
        self.create_shipment(partner=other)
        warehouse = User.objects.create_user(email="floor@cellar.test", password="pass", role="warehouse")
        self.client.force_authenticate(user=warehouse)

        res = self.client.get("/api/logistics/shipments/")
        self.assertEqual(res.data["count"], 2)

    def test_customer_is_rejected(self):
        customer = User.objects.create_user(email="someone@example.test", password="pass")
        self.client.force_authenticate(user=customer)
        self.assertEqual(self.client.get("/api/logistics/shipments/").status_code, 403)
