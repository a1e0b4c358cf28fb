# pricing/tests/test_profit.py

from decimal import Decimal

from django.test import SimpleTestCase

from pricing.services.profit import (
    calculate_item_profit,
    calculate_profit_analysis,
    calculate_profit_summary,
)


class ItemProfitTests(SimpleTestCase):
    def test_profit_and_margin(self):
        r = calculate_item_profit(
            sell_price_per_case_usd=200,
            buy_price_per_case_usd=150,
            quantity_cases=3,
        )
        self.assertEqual(r["profit_usd"], Decimal("50.00"))
        self.assertEqual(r["profit_margin_percent"], Decimal("25.00"))
        self.assertEqual(r["line_total_sell_usd"], Decimal("600.00"))
        self.assertEqual(r["line_total_buy_usd"], Decimal("450.00"))
        self.assertEqual(r["line_profit_usd"], Decimal("150.00"))
        self.assertFalse(r["is_losing_item"])

    def test_losing_item(self):
        r = calculate_item_profit(sell_price_per_case_usd=100, buy_price_per_case_usd=120, quantity_cases=1)
        self.assertTrue(r["is_losing_item"])
        self.assertEqual(r["profit_usd"], Decimal("-20.00"))

    def test_missing_buy_price_still_reports_sell_total(self):
        r = calculate_item_profit(sell_price_per_case_usd=100, buy_price_per_case_usd=None, quantity_cases=2)
        self.assertIsNone(r["profit_usd"])
        self.assertIsNone(r["line_total_buy_usd"])
        self.assertEqual(r["line_total_sell_usd"], Decimal("200.00"))

    def test_missing_quantity_counts_one_case(self):
        r = calculate_item_profit(sell_price_per_case_usd=100, buy_price_per_case_usd=80, quantity_cases=None)
        self.assertEqual(r["line_profit_usd"], Decimal("20.00"))

    def test_zero_sell_price_has_zero_margin(self):
        r = calculate_item_profit(sell_price_per_case_usd=0, buy_price_per_case_usd=10, quantity_cases=1)
        self.assertEqual(r["profit_margin_percent"], Decimal("0.00"))


class ProfitSummaryTests(SimpleTestCase):
    def test_summary_totals(self):
        items = [
            {"sell_price_per_case_usd": 200, "buy_price_per_case_usd": 150, "quantity_cases": 2},
            {"sell_price_per_case_usd": 100, "buy_price_per_case_usd": 120, "quantity_cases": 1},
        ]
        s = calculate_profit_summary(items)

        self.assertEqual(s["total_sell_price_usd"], Decimal("500.00"))
        self.assertEqual(s["total_buy_price_usd"], Decimal("420.00"))
        self.assertEqual(s["total_profit_usd"], Decimal("80.00"))
        self.assertEqual(s["profit_margin_percent"], Decimal("16.00"))
        self.assertEqual(s["item_count"], 2)
        self.assertEqual(s["losing_item_count"], 1)

    def test_empty_summary(self):
        s = calculate_profit_summary([])
        self.assertEqual(s["total_profit_usd"], Decimal("0.00"))
        self.assertEqual(s["profit_margin_percent"], Decimal("0.00"))

    def test_analysis_passes_extra_keys_through(self):
        result = calculate_profit_analysis(
            [
                {
                    "item_id": "abc",
                    "product_name": "Sassicaia 2016",
                    "sell_price_per_case_usd": 300,
                    "buy_price_per_case_usd": 250,
                    "quantity_cases": 1,
                }
            ]
        )
        row = result["items"][0]
        self.assertEqual(row["item_id"], "abc")
        self.assertEqual(row["product_name"], "Sassicaia 2016")
        self.assertEqual(row["profit_usd"], Decimal("50.00"))
        self.assertEqual(result["summary"]["item_count"], 1)
