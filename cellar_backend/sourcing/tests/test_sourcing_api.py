# sourcing/tests/test_sourcing_api.py

from django.test import TestCase
from rest_framework.test import APIClient

from sourcing.models import LwinWine, Rfq, RfqPartner
from sourcing.tests.test_rfq_service import RfqFixtureMixin


class AdminRfqApiTests(RfqFixtureMixin, TestCase):
    def setUp(self):
        super().setUp()
        self.client = APIClient()
        self.client.force_authenticate(user=self.admin)

    def test_build_send_select_finalize(self):
        res = self.client.post(
            "/api/sourcing/rfqs/",
            {"name": "Hotel list Q3", "items": [{"product_name": "Sassicaia 2016", "quantity": 3}]},
            format="json",
        )
        self.assertEqual(res.status_code, 201)
        rfq_id = res.data["id"]
        item_id = res.data["items"][0]["id"]

        res = self.client.post(f"/api/sourcing/rfqs/{rfq_id}/items/", {"items": [{"product_name": "Masseto 2018"}]}, format="json")
        self.assertEqual(res.status_code, 201)
        extra_id = res.data[0]["id"]
        self.assertEqual(self.client.delete(f"/api/sourcing/rfqs/{rfq_id}/items/{extra_id}/").status_code, 204)

        res = self.client.post(f"/api/sourcing/rfqs/{rfq_id}/partners/", {"partner_ids": [str(self.cru.pk)]}, format="json")
        self.assertEqual(res.status_code, 201)

        res = self.client.post(f"/api/sourcing/rfqs/{rfq_id}/send/")
        self.assertEqual(res.data["status"], Rfq.STATUS_SENT)

        rfq = Rfq.objects.get(pk=rfq_id)
        self.quote(self.cru, rfq, {"item_id": item_id, "cost_price_per_case_usd": "110.00"})
        quote_id = str(rfq.quotes.get().pk)

        res = self.client.post("/api/sourcing/select-quote/", {"item_id": item_id, "quote_id": quote_id}, format="json")
        self.assertEqual(res.status_code, 200)
        self.assertEqual(res.data["status"], "selected")

        res = self.client.post(f"/api/sourcing/rfqs/{rfq_id}/profit/", {"sell_prices": {item_id: "150.00"}}, format="json")
        self.assertEqual(str(res.data["summary"]["total_profit_usd"]), "120.00")

        res = self.client.post(f"/api/sourcing/rfqs/{rfq_id}/finalize/")
        self.assertEqual(res.status_code, 200)
        self.assertEqual(res.data["summary"]["total_partners"], 1)

    def test_finalize_with_open_items_is_rejected(self):
        rfq = self.quoted_rfq()
        res = self.client.post(f"/api/sourcing/rfqs/{rfq.pk}/finalize/")
        self.assertEqual(res.status_code, 400)

    def test_auto_select_and_mark_endpoints(self):
        rfq = self.quoted_rfq()

        res = self.client.post(f"/api/sourcing/rfqs/{rfq.pk}/auto-select/", {"strategy": "lowest_price"}, format="json")
        self.assertEqual(res.data["updated"], 2)

        res = self.client.post(
            f"/api/sourcing/rfqs/{rfq.pk}/items/{self.masseto.pk}/price/",
            {"final_price_usd": "190.00"},
            format="json",
        )
        self.assertEqual(res.data["final_price_usd"], "190.00")

        res = self.client.post(
            f"/api/sourcing/rfqs/{rfq.pk}/items/{self.sassicaia.pk}/mark/",
            {"status": "self_sourced"},
            format="json",
        )
        self.assertEqual(res.data["status"], "self_sourced")

    def test_status_filter(self):
        self.draft_rfq()
        self.sent_rfq()
        res = self.client.get("/api/sourcing/rfqs/", {"status": "sent"})
        self.assertEqual(res.data["count"], 1)

    def test_lwin_search(self):
        LwinWine.objects.create(lwin="1014263", display_name="Tenuta San Guido, Sassicaia")

        res = self.client.get("/api/sourcing/lwin-search/", {"q": "sassicaia"})
        self.assertEqual([row["lwin"] for row in res.data], ["1014263"])

        res = self.client.get("/api/sourcing/lwin-search/", {"q": "sassicaia", "limit": "many"})
        self.assertEqual(res.status_code, 400)


class PartnerRfqApiTests(RfqFixtureMixin, TestCase):
    def setUp(self):
        super().setUp()
        self.rfq = self.sent_rfq()
        self.client = APIClient()
        self.client.force_authenticate(user=self.cru_user)

    def test_inbox_and_detail(self):
        res = self.client.get("/api/sourcing/my-rfqs/")
        self.assertEqual(len(res.data), 1)
        self.assertEqual(res.data[0]["rfq_number"], self.rfq.rfq_number)
        self.assertEqual(len(res.data[0]["items"]), 2)

        res = self.client.get(f"/api/sourcing/my-rfqs/{self.rfq.pk}/")
        self.assertEqual(res.status_code, 200)
        self.assertEqual(res.data["status"], RfqPartner.STATUS_VIEWED)
        self.assertEqual(res.data["my_quotes"], [])

    def test_submit_quotes(self):
        res = self.client.post(
            "/api/sourcing/submit-quotes/",
            {
                "rfq_id": str(self.rfq.pk),
                "quotes": [
                    {"item_id": str(self.sassicaia.pk), "cost_price_per_case_usd": "100.00"},
                    {"item_id": str(self.masseto.pk), "quote_type": "not_available"},
                ],
            },
            format="json",
        )
        self.assertEqual(res.status_code, 200)
        self.assertEqual(res.data, {"rfq_number": self.rfq.rfq_number, "status": Rfq.STATUS_COLLECTING, "quotes_submitted": 2})

        res = self.client.get(f"/api/sourcing/my-rfqs/{self.rfq.pk}/")
        self.assertEqual(len(res.data["my_quotes"]), 2)

    def test_uninvited_rfq_is_forbidden(self):
        other = self.sent_rfq()
        RfqPartner.objects.filter(rfq=other, partner=self.cru).delete()

        res = self.client.get(f"/api/sourcing/my-rfqs/{other.pk}/")
        self.assertEqual(res.status_code, 403)

    def test_partner_cannot_use_admin_endpoints(self):
        self.assertEqual(self.client.get("/api/sourcing/rfqs/").status_code, 403)
        self.assertEqual(self.client.get("/api/sourcing/lwin-search/", {"q": "x"}).status_code, 403)

    def test_user_without_wine_partner_cannot_quote(self):
        self.client.force_authenticate(user=self.admin)
        res = self.client.post(
            "/api/sourcing/submit-quotes/",
            {"rfq_id": str(self.rfq.pk), "quotes": [{"item_id": str(self.sassicaia.pk), "cost_price_per_case_usd": "1"}]},
            format="json",
        )
        self.assertEqual(res.status_code, 403)
