# logistics/tests/test_landed_cost.py

from decimal import Decimal
from types import SimpleNamespace

from django.test import SimpleTestCase

from logistics.services.landed_cost import BY_VALUE, BY_WEIGHT, calculate_landed_cost
from pricing.services.pricing_engine import PricingError


def shipment(**overrides):
    values = {
        "cost_allocation_method": "by_bottle",
        "freight_cost_usd": Decimal("600"),
        "insurance_cost_usd": Decimal("60"),
        "origin_handling_usd": Decimal("100"),
        "destination_handling_usd": Decimal("100"),
        "customs_clearance_usd": Decimal("50"),
        "gov_fees_usd": Decimal("30"),
        "delivery_cost_usd": Decimal("20"),
        "other_costs_usd": Decimal("0"),
    }
    values.update(overrides)
    return SimpleNamespace(**values)


def items():
    return [
        SimpleNamespace(
            id="barolo",
            cases=10,
            bottles_per_case=12,
            gross_weight_kg=Decimal("90"),
            declared_value_usd=Decimal("1000"),
            product_cost_per_bottle=Decimal("20"),
            target_selling_price=Decimal("33"),
        ),
        SimpleNamespace(
            id="champagne",
            cases=5,
            bottles_per_case=6,
            gross_weight_kg=Decimal("10"),
            declared_value_usd=Decimal("3000"),
            product_cost_per_bottle=Decimal("50"),
            target_selling_price=None,
        ),
    ]


class LandedCostTests(SimpleTestCase):
    def test_costs_split_by_bottle(self):
        result = calculate_landed_cost(shipment(), items())
        barolo, champagne = result["items"]

        self.assertEqual(barolo["total_bottles"], 120)
        self.assertEqual(barolo["allocation_ratio"], Decimal("0.800000"))
        self.assertEqual(barolo["allocated_freight"], Decimal("480.00"))
        self.assertEqual(barolo["allocated_handling"], Decimal("216.00"))
        self.assertEqual(barolo["landed_cost_total"], Decimal("3168.00"))
        self.assertEqual(barolo["landed_cost_per_bottle"], Decimal("26.40"))
        self.assertEqual(barolo["margin_per_bottle"], Decimal("6.60"))
        self.assertEqual(barolo["margin_percent"], Decimal("25.00"))

        self.assertEqual(champagne["landed_cost_total"], Decimal("1692.00"))
        self.assertEqual(champagne["landed_cost_per_bottle"], Decimal("56.40"))
        self.assertIsNone(champagne["margin_percent"])

        summary = result["summary"]
        self.assertEqual(summary["total_bottles"], 150)
        self.assertEqual(summary["total_product_cost_usd"], Decimal("3900.00"))
        self.assertEqual(summary["total_shipment_costs_usd"], Decimal("960.00"))
        self.assertEqual(summary["total_landed_cost_usd"], Decimal("4860.00"))
        self.assertEqual(summary["landed_cost_per_bottle_usd"], Decimal("32.40"))

    def test_allocated_costs_add_up_to_shipment_costs(self):
        result = calculate_landed_cost(shipment(), items())
        allocated = sum(row["landed_cost_total"] for row in result["items"])
        self.assertEqual(allocated, result["summary"]["total_landed_cost_usd"])

    def test_costs_split_by_weight(self):
        result = calculate_landed_cost(shipment(cost_allocation_method=BY_WEIGHT), items())
        self.assertEqual(result["items"][0]["allocation_ratio"], Decimal("0.900000"))
        self.assertEqual(result["items"][0]["landed_cost_total"], Decimal("3264.00"))

    def test_costs_split_by_value(self):
        result = calculate_landed_cost(shipment(cost_allocation_method=BY_VALUE), items())
        self.assertEqual(result["items"][0]["allocation_ratio"], Decimal("0.250000"))
        self.assertEqual(result["items"][1]["allocated_freight"], Decimal("450.00"))

    def test_missing_weights_leave_product_cost_only(self):
        rows = items()
        for row in rows:
            row.gross_weight_kg = None

        result = calculate_landed_cost(shipment(cost_allocation_method=BY_WEIGHT), rows)

        self.assertEqual(result["items"][0]["landed_cost_total"], Decimal("2400.00"))
        self.assertEqual(result["summary"]["total_landed_cost_usd"], Decimal("4860.00"))

    def test_explicit_bottle_count_wins(self):
        row = SimpleNamespace(id="magnums", cases=1, bottles_per_case=6, total_bottles=3, product_cost_per_bottle=Decimal("100"))
        result = calculate_landed_cost(shipment(), [row])
        self.assertEqual(result["items"][0]["total_bottles"], 3)
        self.assertEqual(result["items"][0]["landed_cost_total"], Decimal("1260.00"))

    def test_empty_shipment(self):
        result = calculate_landed_cost(shipment(), [])
        self.assertEqual(result["items"], [])
        self.assertEqual(result["summary"]["landed_cost_per_bottle_usd"], Decimal("0.00"))

    def test_unknown_allocation_method(self):
        with self.assertRaises(PricingError):
            calculate_landed_cost(shipment(cost_allocation_method="by_mood"), items())
