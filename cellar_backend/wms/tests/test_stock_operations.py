# wms/tests/test_stock_operations.py

from datetime import timedelta
from decimal import Decimal

from django.test import TestCase, override_settings
from django.utils import timezone

from partners.models import Partner
from wms.models import CycleCount, Location, Stock, StockMovement, StockReservation
from wms.services import cycle_counts, transfers
from wms.services.exceptions import CycleCountError, InsufficientStockError, LocationError, StockError
from wms.services.reports import get_expiring_stock, get_stock_overview
from wms.services.reservations import reserve_stock_for_order_items
from wms.tests.fixtures import MASSETO_2018, SASSICAIA_2016, WarehouseFixtureMixin


def reserve(lwin, qty, order_id="order-1"):
    return reserve_stock_for_order_items(
        order_type=StockReservation.ORDER_TYPE_PCO,
        order_id=order_id,
        items=[{"order_item_id": "i1", "lwin18": lwin, "quantity_cases": qty}],
    )


class TransferTests(WarehouseFixtureMixin, TestCase):
    def test_partial_transfer_splits_the_row(self):
        stock = self.make_stock(quantity=5, lot_number="L1")

        moved = transfers.transfer_stock(stock=stock, to_location=self.rack_b, quantity=2, user=self.operator)

        stock.refresh_from_db()
        self.assertEqual(stock.quantity_cases, 3)
        self.assertEqual(moved.location, self.rack_b)
        self.assertEqual(moved.quantity_cases, 2)
        self.assertEqual(moved.lot_number, "L1")

        movement = StockMovement.objects.get(movement_type=StockMovement.TYPE_TRANSFER)
        self.assertEqual(movement.from_location, self.rack_a)
        self.assertEqual(movement.to_location, self.rack_b)
        self.assertTrue(movement.movement_number.startswith("MOV"))

    def test_transfer_merges_into_matching_row(self):
        stock = self.make_stock(location=self.rack_a, quantity=2)
        existing = self.make_stock(location=self.rack_b, quantity=4)

        moved = transfers.transfer_stock(stock=stock, to_location=self.rack_b, quantity=2)

        self.assertEqual(moved.pk, existing.pk)
        self.assertEqual(moved.quantity_cases, 6)
        self.assertFalse(Stock.objects.filter(pk=stock.pk).exists())

    def test_reserved_cases_do_not_move(self):
        stock = self.make_stock(quantity=5)
        reserve(SASSICAIA_2016, 4)

        with self.assertRaises(InsufficientStockError):
            transfers.transfer_stock(stock=stock, to_location=self.rack_b, quantity=2)

    def test_destination_must_differ_and_be_active(self):
        stock = self.make_stock(quantity=5)
        closed = Location.objects.create(location_code="OLD-01", is_active=False)

        with self.assertRaises(LocationError):
            transfers.transfer_stock(stock=stock, to_location=self.rack_a, quantity=1)
        with self.assertRaises(LocationError):
            transfers.transfer_stock(stock=stock, to_location=closed, quantity=1)

    def test_putaway_records_putaway_movement(self):
        stock = self.make_stock(location=self.receiving, quantity=3)

        transfers.putaway(stock=stock, to_location=self.rack_a, quantity=3)

        self.assertTrue(StockMovement.objects.filter(movement_type=StockMovement.TYPE_PUTAWAY).exists())
        self.assertEqual(Stock.objects.get().location, self.rack_a)


class OwnershipTransferTests(WarehouseFixtureMixin, TestCase):
    def setUp(self):
        super().setUp()
        self.buyer = Partner.objects.create(name="Cellar Club", type=Partner.TYPE_WINE_PARTNER)

    def test_full_transfer_reowns_in_place(self):
        stock = self.make_stock(quantity=3)

        result = transfers.transfer_ownership(
            stock=stock,
            new_owner=self.buyer,
            sales_arrangement=Stock.ARRANGEMENT_PURCHASED,
        )

        self.assertEqual(result.pk, stock.pk)
        self.assertEqual(result.owner, self.buyer)
        self.assertEqual(result.sales_arrangement, Stock.ARRANGEMENT_PURCHASED)

        movement = StockMovement.objects.get(movement_type=StockMovement.TYPE_OWNERSHIP_TRANSFER)
        self.assertEqual(movement.from_owner, self.owner)
        self.assertEqual(movement.to_owner, self.buyer)

    def test_partial_transfer_splits_to_new_owner(self):
        stock = self.make_stock(quantity=5)

        result = transfers.transfer_ownership(
            stock=stock,
            new_owner=self.buyer,
            quantity=2,
            commission_percent=Decimal("12.50"),
        )

        stock.refresh_from_db()
        self.assertEqual(stock.quantity_cases, 3)
        self.assertEqual(result.owner, self.buyer)
        self.assertEqual(result.location, self.rack_a)
        self.assertEqual(result.consignment_commission_percent, Decimal("12.50"))

    def test_same_owner_is_rejected(self):
        stock = self.make_stock(quantity=3)
        with self.assertRaises(StockError):
            transfers.transfer_ownership(stock=stock, new_owner=self.owner)

    def test_reserved_cases_keep_their_owner(self):
        stock = self.make_stock(quantity=3)
        reserve(SASSICAIA_2016, 1)

        with self.assertRaises(InsufficientStockError):
            transfers.transfer_ownership(stock=stock, new_owner=self.buyer)


class ReceiveTests(WarehouseFixtureMixin, TestCase):
    def test_receiving_creates_then_merges(self):
        lines = [{"lwin18": MASSETO_2018, "product_name": "Masseto 2018", "quantity_cases": 3, "vintage": 2018}]

        first = transfers.receive_stock(location=self.receiving, owner=self.owner, lines=lines)
        second = transfers.receive_stock(location=self.receiving, owner=self.owner, lines=lines)

        self.assertEqual(first[0].pk, second[0].pk)
        stock = Stock.objects.get()
        self.assertEqual(stock.quantity_cases, 6)
        self.assertEqual(stock.vintage, "2018")
        self.assertIsNotNone(stock.received_at)
        self.assertEqual(StockMovement.objects.filter(movement_type=StockMovement.TYPE_RECEIVE).count(), 2)

    def test_invalid_lines_are_rejected(self):
        with self.assertRaises(StockError):
            transfers.receive_stock(location=self.receiving, owner=self.owner, lines=[])
        with self.assertRaises(StockError):
            transfers.receive_stock(
                location=self.receiving,
                owner=self.owner,
                lines=[{"lwin18": MASSETO_2018, "quantity_cases": 0}],
            )
        self.assertFalse(Stock.objects.exists())


class AdjustmentTests(WarehouseFixtureMixin, TestCase):
    def test_adjustment_records_signed_movement(self):
        stock = self.make_stock(quantity=5)

        movement = cycle_counts.adjust_stock(stock=stock, new_quantity=3, reason_code="breakage")

        self.assertEqual(movement.movement_type, StockMovement.TYPE_ADJUSTMENT)
        self.assertEqual(movement.quantity_cases, -2)
        self.assertEqual(movement.reason_code, "breakage")
        stock.refresh_from_db()
        self.assertEqual(stock.quantity_cases, 3)

    def test_unchanged_quantity_records_nothing(self):
        stock = self.make_stock(quantity=5)
        self.assertIsNone(cycle_counts.adjust_stock(stock=stock, new_quantity=5))
        self.assertFalse(StockMovement.objects.exists())

    def test_cannot_drop_below_reserved(self):
        stock = self.make_stock(quantity=5)
        reserve(SASSICAIA_2016, 3)

        with self.assertRaises(StockError):
            cycle_counts.adjust_stock(stock=stock, new_quantity=2)

    def test_adjusting_to_zero_deletes_the_row(self):
        stock = self.make_stock(quantity=2)
        cycle_counts.adjust_stock(stock=stock, new_quantity=0)
        self.assertFalse(Stock.objects.filter(pk=stock.pk).exists())


class CycleCountTests(WarehouseFixtureMixin, TestCase):
    def setUp(self):
        super().setUp()
        self.sassicaia = self.make_stock(quantity=5)
        self.masseto = self.make_stock(lwin18=MASSETO_2018, quantity=4, product_name="Masseto 2018")
        self.count = cycle_counts.create_cycle_count(location=self.rack_a, user=self.operator)

    def item_for(self, stock):
        return self.count.items.get(stock=stock)

    def count_all(self, sassicaia, masseto):
        cycle_counts.record_counts(
            cycle_count=self.count,
            counts=[
                {"item_id": self.item_for(self.sassicaia).pk, "counted_quantity": sassicaia},
                {"item_id": self.item_for(self.masseto).pk, "counted_quantity": masseto},
            ],
            user=self.operator,
        )
        return cycle_counts.complete_cycle_count(cycle_count=self.count)

    def test_count_snapshots_expected_quantities(self):
        self.assertTrue(self.count.count_number.startswith("CC-"))
        self.assertEqual(self.count.items.count(), 2)
        self.assertEqual(self.item_for(self.sassicaia).expected_quantity, 5)

    def test_recording_starts_the_count_and_computes_discrepancy(self):
        cycle_counts.record_counts(
            cycle_count=self.count,
            counts=[{"item_id": self.item_for(self.sassicaia).pk, "counted_quantity": 4}],
        )

        self.count.refresh_from_db()
        self.assertEqual(self.count.status, CycleCount.STATUS_IN_PROGRESS)
        self.assertEqual(self.item_for(self.sassicaia).discrepancy, -1)

        with self.assertRaises(CycleCountError):
            cycle_counts.complete_cycle_count(cycle_count=self.count)

    def test_reconcile_applies_every_discrepancy(self):
        self.count_all(sassicaia=4, masseto=0)

        result = cycle_counts.reconcile_cycle_count(cycle_count=self.count, user=self.operator)

        self.assertEqual(result["cycle_count"].status, CycleCount.STATUS_RECONCILED)
        self.assertEqual(len(result["adjusted"]), 2)
        self.sassicaia.refresh_from_db()
        self.assertEqual(self.sassicaia.quantity_cases, 4)
        self.assertFalse(Stock.objects.filter(pk=self.masseto.pk).exists())
        self.assertEqual(StockMovement.objects.filter(movement_type=StockMovement.TYPE_COUNT).count(), 2)

    def test_reconcile_only_approved_lines(self):
        self.count_all(sassicaia=6, masseto=3)

        result = cycle_counts.reconcile_cycle_count(
            cycle_count=self.count,
            approvals=[self.item_for(self.sassicaia).pk],
        )

        self.assertEqual([row["lwin18"] for row in result["adjusted"]], [SASSICAIA_2016])
        self.masseto.refresh_from_db()
        self.assertEqual(self.masseto.quantity_cases, 4)

    def test_reconcile_requires_completed_count(self):
        with self.assertRaises(CycleCountError):
            cycle_counts.reconcile_cycle_count(cycle_count=self.count)

    def test_reconcile_below_reserved_raises(self):
        reserve(SASSICAIA_2016, 5)
        self.count_all(sassicaia=3, masseto=4)

        with self.assertRaises(StockError):
            cycle_counts.reconcile_cycle_count(cycle_count=self.count)

    def test_completed_count_rejects_more_counts(self):
        self.count_all(sassicaia=5, masseto=4)
        with self.assertRaises(CycleCountError):
            cycle_counts.record_counts(
                cycle_count=self.count,
                counts=[{"item_id": self.item_for(self.sassicaia).pk, "counted_quantity": 1}],
            )


class ReportTests(WarehouseFixtureMixin, TestCase):
    @override_settings(WMS_EXPIRY_WARNING_DAYS=30)
    def test_expiring_stock_uses_configured_window(self):
        today = timezone.localdate()
        soon = self.make_stock(lwin18="SOON", is_perishable=True, expiry_date=today + timedelta(days=10))
        self.make_stock(lwin18="LATER", is_perishable=True, expiry_date=today + timedelta(days=200))
        self.make_stock(lwin18="STABLE", is_perishable=False, expiry_date=today + timedelta(days=1))
        expired = self.make_stock(lwin18="GONE", is_perishable=True, expiry_date=today - timedelta(days=3))

        self.assertEqual(list(get_expiring_stock()), [expired, soon])
        self.assertEqual(get_expiring_stock(days=365).count(), 3)

    def test_overview_totals(self):
        self.make_stock(quantity=5)
        self.make_stock(location=self.rack_b, lwin18=MASSETO_2018, quantity=3, product_name="Masseto 2018")
        reserve(SASSICAIA_2016, 2)

        overview = get_stock_overview()

        self.assertEqual(overview["totals"]["quantity_cases"], 8)
        self.assertEqual(overview["totals"]["reserved_cases"], 2)
        self.assertEqual(overview["totals"]["available_cases"], 6)
        self.assertEqual(overview["by_owner"][0]["products"], 2)
        self.assertEqual(len(overview["by_product"]), 2)
