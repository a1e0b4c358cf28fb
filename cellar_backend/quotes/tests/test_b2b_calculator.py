# quotes/tests/test_b2b_calculator.py

from decimal import Decimal

from django.test import SimpleTestCase

from pricing.services.pricing_engine import PricingError
from quotes.services.b2b_calculator import MARGIN_FIXED, MARGIN_PERCENTAGE, calculate_b2b_quote


def quote(**overrides):
    values = {
        "in_bond_price_usd": 5000,
        "transfer_cost_usd": 200,
        "import_tax_percent": 20,
        "margin_type": MARGIN_PERCENTAGE,
        "margin_value": 15,
    }
    values.update(overrides)
    return calculate_b2b_quote(**values)


class B2BQuoteCalculatorTests(SimpleTestCase):
    """
    GUARANTEES:
    - Import tax and percentage margins apply to the in-bond price only
    - Fixed margins are added as cash
    - The customer price is the sum of all four parts
    """

    def test_typical_order(self):
        result = quote()
        self.assertEqual(result["in_bond_price"], Decimal("5000.00"))
        self.assertEqual(result["import_tax"], Decimal("1000.00"))
        self.assertEqual(result["distributor_margin"], Decimal("750.00"))
        self.assertEqual(result["transfer_cost"], Decimal("200.00"))
        self.assertEqual(result["customer_quote_price"], Decimal("6950.00"))

    def test_fixed_margin_is_cash(self):
        result = quote(in_bond_price_usd=50000, margin_type=MARGIN_FIXED, margin_value=3000)
        self.assertEqual(result["import_tax"], Decimal("10000.00"))
        self.assertEqual(result["distributor_margin"], Decimal("3000.00"))
        self.assertEqual(result["customer_quote_price"], Decimal("63200.00"))

    def test_zero_in_bond_leaves_transfer_cost(self):
        result = quote(in_bond_price_usd=0)
        self.assertEqual(result["import_tax"], Decimal("0.00"))
        self.assertEqual(result["distributor_margin"], Decimal("0.00"))
        self.assertEqual(result["customer_quote_price"], Decimal("200.00"))

    def test_zero_tax_margin_and_transfer(self):
        self.assertEqual(quote(import_tax_percent=0)["customer_quote_price"], Decimal("5950.00"))
        self.assertEqual(quote(margin_value=0)["customer_quote_price"], Decimal("6200.00"))
        self.assertEqual(quote(transfer_cost_usd=0)["customer_quote_price"], Decimal("6750.00"))

    def test_fractional_percentages(self):
        result = quote(in_bond_price_usd=10000, import_tax_percent="17.5", margin_value="12.5")
        self.assertEqual(result["import_tax"], Decimal("1750.00"))
        self.assertEqual(result["distributor_margin"], Decimal("1250.00"))
        self.assertEqual(result["customer_quote_price"], Decimal("13200.00"))

    def test_total_is_rounded_from_unrounded_parts(self):
        result = quote(in_bond_price_usd="1234.56", transfer_cost_usd="199.99")
        self.assertEqual(result["import_tax"], Decimal("246.91"))
        self.assertEqual(result["distributor_margin"], Decimal("185.18"))
        self.assertEqual(result["customer_quote_price"], Decimal("1866.65"))

    def test_rejects_bad_inputs(self):
        with self.assertRaises(PricingError):
            quote(margin_type="tiered")
        with self.assertRaises(PricingError):
            quote(in_bond_price_usd=-1)
        with self.assertRaises(PricingError):
            quote(import_tax_percent="abc")
