# pricing/tests/test_pricing_api.py

from datetime import date
from decimal import Decimal

from django.contrib.auth import get_user_model
from django.test import TestCase
from rest_framework.test import APIClient

from pricing.models import PricingVariable
from pricing.services.config import get_exchange_rates, get_module_variables, record_exchange_rate, set_module_variable

User = get_user_model()


class PricingConfigTests(TestCase):
    def test_stored_variable_overrides_default(self):
        set_module_variable(module="pco", key="cc_margin_percent", value="3")
        self.assertEqual(get_module_variables("pco")["cc_margin_percent"], Decimal("3"))

    def test_setting_twice_updates_the_same_row(self):
        set_module_variable(module="b2b", key="cc_margin_percent", value="6")
        set_module_variable(module="b2b", key="cc_margin_percent", value="7")
        self.assertEqual(PricingVariable.objects.filter(module="b2b").count(), 1)
        self.assertEqual(get_module_variables("b2b")["cc_margin_percent"], Decimal("7"))

    def test_update_is_logged_with_previous_value(self):
        set_module_variable(module="pco", key="vat_percent", value="5")
        with self.assertLogs("pricing.services.config", level="INFO") as logs:
            set_module_variable(module="pco", key="vat_percent", value="6")

        record = logs.records[0]
        self.assertEqual(record.pricing_module, "pco")
        self.assertEqual((Decimal(record.previous), Decimal(record.value)), (Decimal("5"), Decimal("6")))

    def test_latest_exchange_rate_wins(self):
        record_exchange_rate(from_currency="usd", to_currency="aed", rate="3.60", effective_date=date(2026, 1, 1))
        record_exchange_rate(from_currency="USD", to_currency="AED", rate="3.70", effective_date=date(2026, 2, 1))
        self.assertEqual(get_exchange_rates()["usd_to_aed"], Decimal("3.70"))

    def test_settings_fallback_rates(self):
        self.assertEqual(get_exchange_rates()["gbp_to_usd"], Decimal("1.27"))


class PricingApiTests(TestCase):
    """
    GUARANTEES:
    - Admins see the full breakdown
    - Partners see the consolidated view only
    - Customers have no pricing access
    """

    def setUp(self):
        self.client = APIClient()
        self.admin = User.objects.create_user(email="admin@cellar.test", password="pass", role="admin")
        self.partner = User.objects.create_user(email="partner@cellar.test", password="pass", role="partner")
        self.customer = User.objects.create_user(email="buyer@cellar.test", password="pass")

    def test_admin_receives_full_breakdown(self):
        self.client.force_authenticate(self.admin)
        res = self.client.post("/api/pricing/calculate/pco/", {"supplier_price_usd": "1000"}, format="json")
        self.assertEqual(res.status_code, 200)
        self.assertIn("cc_margin_amount", res.data)
        self.assertEqual(res.data["final_price_usd"], Decimal("1405.82"))

    def test_admin_bespoke_variables_flag_result(self):
        self.client.force_authenticate(self.admin)
        res = self.client.post(
            "/api/pricing/calculate/pco/",
            {"supplier_price_usd": "1000", "variables": {"import_duty_percent": "0"}},
            format="json",
        )
        self.assertEqual(res.status_code, 200)
        self.assertTrue(res.data["is_bespoke"])
        self.assertEqual(res.data["import_duty_amount"], Decimal("0.00"))

    def test_partner_receives_consolidated_view(self):
        self.client.force_authenticate(self.partner)
        res = self.client.post("/api/pricing/calculate/pco/", {"supplier_price_usd": "1000"}, format="json")
        self.assertEqual(res.status_code, 200)
        self.assertNotIn("cc_margin_amount", res.data)
        self.assertEqual(res.data["total_usd"], Decimal("1405.82"))

    def test_partner_cannot_use_b2b_calculator(self):
        self.client.force_authenticate(self.partner)
        res = self.client.post("/api/pricing/calculate/b2b/", {"supplier_price_usd": "1000"}, format="json")
        self.assertEqual(res.status_code, 403)

    def test_customer_has_no_pricing_access(self):
        self.client.force_authenticate(self.customer)
        res = self.client.get("/api/pricing/rates/")
        self.assertEqual(res.status_code, 403)

    def test_unknown_variable_is_rejected(self):
        self.client.force_authenticate(self.admin)
        res = self.client.post(
            "/api/pricing/variables/",
            {"module": "pco", "key": "mystery_percent", "value": "1"},
            format="json",
        )
        self.assertEqual(res.status_code, 400)

    def test_posting_an_existing_variable_replaces_it(self):
        self.client.force_authenticate(self.admin)
        payload = {"module": "pco", "key": "distributor_margin_percent", "value": "7.5"}
        self.assertEqual(self.client.post("/api/pricing/variables/", payload, format="json").status_code, 201)

        res = self.client.post("/api/pricing/variables/", {**payload, "value": "8"}, format="json")

        self.assertEqual(res.status_code, 201)
        self.assertEqual(PricingVariable.objects.get(module="pco", key="distributor_margin_percent").value, Decimal("8"))
