# sourcing/tests/test_rfq_service.py

from datetime import timedelta
from decimal import Decimal

from django.contrib.auth import get_user_model
from django.test import TestCase
from django.utils import timezone

from notifications.models import Notification
from partners.models import Partner
from partners.services.membership import add_member
from sourcing.models import LwinWine, Rfq, RfqItem, RfqPartner, RfqQuote
from sourcing.services import rfq_service
from sourcing.services.lwin import match_lwin
from sourcing.services.rfq_service import RfqError, RfqPermissionError

User = get_user_model()

ITEMS = [
    {"product_name": "Sassicaia 2016", "producer": "Tenuta San Guido", "lwin": "1014263", "quantity": 3},
    {"product_name": "Masseto 2018", "producer": "Masseto", "quantity": 2},
]


class RfqFixtureMixin:
    def setUp(self):
        self.admin = User.objects.create_user(email="ops@cellar.test", password="pass", role="admin")

        self.cru = Partner.objects.create(name="Cru Partners", type=Partner.TYPE_WINE_PARTNER)
        self.cru_user = User.objects.create_user(email="sales@cru.test", password="pass", role="partner")
        add_member(partner=self.cru, user=self.cru_user)

        self.vinum = Partner.objects.create(name="Vinum Trade", type=Partner.TYPE_WINE_PARTNER)
        self.vinum_user = User.objects.create_user(email="desk@vinum.test", password="pass", role="partner")
        add_member(partner=self.vinum, user=self.vinum_user)

    def draft_rfq(self):
        rfq = rfq_service.create_rfq(name="Hotel list Q3", user=self.admin, items=[dict(i) for i in ITEMS])
        rfq_service.add_partners(rfq=rfq, partner_ids=[self.cru.pk, self.vinum.pk])
        return rfq

    def sent_rfq(self):
        rfq = rfq_service.send_to_partners(rfq=self.draft_rfq(), user=self.admin)
        self.sassicaia = rfq.items.get(product_name="Sassicaia 2016")
        self.masseto = rfq.items.get(product_name="Masseto 2018")
        return rfq

    def quote(self, partner, rfq, *rows):
        return rfq_service.submit_quotes(partner=partner, rfq=rfq, quotes=list(rows))

    def quoted_rfq(self):
        rfq = self.sent_rfq()
        self.quote(
            self.cru,
            rfq,
            {"item_id": self.sassicaia.pk, "cost_price_per_case_usd": Decimal("100")},
            {"item_id": self.masseto.pk, "quote_type": RfqQuote.TYPE_NOT_AVAILABLE},
        )
        self.quote(
            self.vinum,
            rfq,
            {"item_id": self.sassicaia.pk, "cost_price_per_case_usd": Decimal("90")},
            {"item_id": self.masseto.pk, "cost_price_per_case_usd": Decimal("200")},
        )
        rfq.refresh_from_db()
        return rfq

    def quote_of(self, partner, item):
        return RfqQuote.objects.get(partner=partner, item=item)


class BuildAndSendTests(RfqFixtureMixin, TestCase):
    def test_create_with_items(self):
        rfq = self.draft_rfq()

        self.assertTrue(rfq.rfq_number.startswith("RFQ-"))
        self.assertEqual(rfq.status, Rfq.STATUS_DRAFT)
        self.assertEqual(rfq.items.count(), 2)
        self.assertEqual(rfq.partners.count(), 2)

    def test_name_is_required(self):
        with self.assertRaises(RfqError):
            rfq_service.create_rfq(name="  ")

    def test_only_active_wine_partners_can_be_invited(self):
        rfq = self.draft_rfq()
        distributor = Partner.objects.create(name="City Drinks", type=Partner.TYPE_DISTRIBUTOR, distributor_code="CD")

        with self.assertRaises(RfqError):
            rfq_service.add_partners(rfq=rfq, partner_ids=[distributor.pk])

    def test_send_needs_items_and_partners(self):
        empty = rfq_service.create_rfq(name="Empty")
        with self.assertRaises(RfqError):
            rfq_service.send_to_partners(rfq=empty)

        rfq_service.add_items(rfq=empty, items=[{"product_name": "Tignanello 2019"}])
        with self.assertRaises(RfqError):
            rfq_service.send_to_partners(rfq=empty)

    def test_send_notifies_partners_and_locks_the_draft(self):
        rfq = self.sent_rfq()

        self.assertEqual(rfq.status, Rfq.STATUS_SENT)
        self.assertIsNotNone(rfq.sent_at)
        self.assertEqual(Notification.objects.filter(type="rfq_received").count(), 2)

        with self.assertRaises(RfqError):
            rfq_service.add_items(rfq=rfq, items=[{"product_name": "Ornellaia 2017"}])
        with self.assertRaises(RfqError):
            rfq_service.remove_item(rfq=rfq, item_id=self.sassicaia.pk)

    def test_cancel(self):
        rfq = rfq_service.cancel_rfq(rfq=self.sent_rfq())
        self.assertEqual(rfq.status, Rfq.STATUS_CANCELLED)
        with self.assertRaises(RfqError):
            rfq_service.cancel_rfq(rfq=rfq)


class PartnerQuoteTests(RfqFixtureMixin, TestCase):
    def test_submitting_moves_rfq_to_collecting(self):
        rfq = self.sent_rfq()

        result = self.quote(
            self.cru,
            rfq,
            {"item_id": self.sassicaia.pk, "cost_price_per_case_usd": Decimal("100")},
            {"item_id": self.masseto.pk, "quote_type": RfqQuote.TYPE_NOT_AVAILABLE, "cost_price_per_case_usd": Decimal("1")},
        )

        self.assertEqual(result["rfq"].status, Rfq.STATUS_COLLECTING)
        self.assertEqual(len(result["quotes"]), 2)
        self.assertIsNone(self.quote_of(self.cru, self.masseto).cost_price_per_case_usd)

        assignment = RfqPartner.objects.get(rfq=rfq, partner=self.cru)
        self.assertEqual(assignment.status, RfqPartner.STATUS_SUBMITTED)
        self.assertEqual(assignment.quote_count, 2)

        self.sassicaia.refresh_from_db()
        self.assertEqual(self.sassicaia.status, RfqItem.STATUS_QUOTED)
        self.assertTrue(Notification.objects.filter(user=self.admin, type="rfq_quotes_submitted").exists())

    def test_resubmission_replaces_earlier_quotes(self):
        rfq = self.sent_rfq()
        self.quote(self.cru, rfq, {"item_id": self.sassicaia.pk, "cost_price_per_case_usd": Decimal("100")})
        self.quote(self.cru, rfq, {"item_id": self.sassicaia.pk, "cost_price_per_case_usd": Decimal("95")})

        self.assertEqual(self.quote_of(self.cru, self.sassicaia).cost_price_per_case_usd, Decimal("95.00"))

    def test_price_is_required_unless_not_available(self):
        rfq = self.sent_rfq()
        with self.assertRaises(RfqError):
            self.quote(self.cru, rfq, {"item_id": self.sassicaia.pk})

    def test_uninvited_partner_cannot_quote(self):
        rfq = self.sent_rfq()
        outsider = Partner.objects.create(name="Outsider", type=Partner.TYPE_WINE_PARTNER)

        with self.assertRaises(RfqPermissionError):
            self.quote(outsider, rfq, {"item_id": self.sassicaia.pk, "cost_price_per_case_usd": Decimal("1")})

    def test_draft_rfq_does_not_accept_quotes(self):
        rfq = self.draft_rfq()
        item = rfq.items.first()
        with self.assertRaises(RfqError):
            self.quote(self.cru, rfq, {"item_id": item.pk, "cost_price_per_case_usd": Decimal("1")})

    def test_quotes_after_the_deadline_expire_the_invitation(self):
        rfq = self.sent_rfq()
        Rfq.objects.filter(pk=rfq.pk).update(response_deadline=timezone.now() - timedelta(hours=1))
        rfq.refresh_from_db()

        with self.assertRaises(RfqError):
            self.quote(self.cru, rfq, {"item_id": self.sassicaia.pk, "cost_price_per_case_usd": Decimal("1")})

        self.assertEqual(RfqPartner.objects.get(rfq=rfq, partner=self.cru).status, RfqPartner.STATUS_EXPIRED)
        self.assertFalse(RfqQuote.objects.exists())

    def test_partner_inbox_and_viewed_state(self):
        self.draft_rfq()
        rfq = self.sent_rfq()

        inbox = rfq_service.list_partner_rfqs(partner=self.cru)
        self.assertEqual([row.rfq_id for row in inbox], [rfq.pk])

        assignment = rfq_service.mark_viewed(rfq=rfq, partner=self.cru)
        self.assertEqual(assignment.status, RfqPartner.STATUS_VIEWED)
        self.assertIsNotNone(assignment.viewed_at)


class SelectionTests(RfqFixtureMixin, TestCase):
    def test_select_quote_toggles(self):
        rfq = self.quoted_rfq()
        quote = self.quote_of(self.vinum, self.sassicaia)

        item = rfq_service.select_quote(item=self.sassicaia, quote=quote, user=self.admin)
        self.assertEqual(item.status, RfqItem.STATUS_SELECTED)
        self.assertEqual(item.final_price_usd, Decimal("90.00"))
        rfq.refresh_from_db()
        self.assertEqual(rfq.status, Rfq.STATUS_SELECTING)

        item = rfq_service.select_quote(item=self.sassicaia, quote=quote, user=self.admin)
        self.assertEqual(item.status, RfqItem.STATUS_QUOTED)
        self.assertIsNone(item.final_price_usd)

    def test_several_selected_quotes_add_up(self):
        self.quoted_rfq()
        rfq_service.select_quote(item=self.sassicaia, quote=self.quote_of(self.vinum, self.sassicaia))
        item = rfq_service.select_quote(item=self.sassicaia, quote=self.quote_of(self.cru, self.sassicaia))

        self.assertEqual(item.calculated_price_usd, Decimal("190.00"))

    def test_not_available_quote_cannot_be_selected(self):
        self.quoted_rfq()
        with self.assertRaises(RfqError):
            rfq_service.select_quote(item=self.masseto, quote=self.quote_of(self.cru, self.masseto))

    def test_quote_must_belong_to_the_item(self):
        self.quoted_rfq()
        with self.assertRaises(RfqError):
            rfq_service.select_quote(item=self.masseto, quote=self.quote_of(self.vinum, self.sassicaia))

    def test_auto_select_lowest_price(self):
        rfq = self.quoted_rfq()

        result = rfq_service.auto_select_best(rfq=rfq, user=self.admin)

        self.assertEqual(result["updated"], 2)
        self.assertEqual(result["total_items"], 2)
        self.assertEqual(result["total_value"], Decimal("670.00"))
        self.assertTrue(self.quote_of(self.vinum, self.sassicaia).is_selected)
        self.assertFalse(self.quote_of(self.cru, self.sassicaia).is_selected)

    def test_auto_select_single_partner(self):
        rfq = self.quoted_rfq()

        result = rfq_service.auto_select_best(
            rfq=rfq,
            strategy=rfq_service.STRATEGY_SINGLE_PARTNER,
            partner_id=self.cru.pk,
        )

        self.assertEqual(result["updated"], 1)
        self.assertEqual(result["total_value"], Decimal("300.00"))
        self.masseto.refresh_from_db()
        self.assertEqual(self.masseto.status, RfqItem.STATUS_QUOTED)

    def test_auto_select_argument_errors(self):
        rfq = self.quoted_rfq()
        with self.assertRaises(RfqError):
            rfq_service.auto_select_best(rfq=rfq, strategy=rfq_service.STRATEGY_SINGLE_PARTNER)
        with self.assertRaises(RfqError):
            rfq_service.auto_select_best(rfq=rfq, strategy="cheapest_vibes")

    def test_mark_item_clears_selection(self):
        rfq = self.quoted_rfq()
        rfq_service.auto_select_best(rfq=rfq)

        item = rfq_service.mark_item(item=self.sassicaia, status=RfqItem.STATUS_SELF_SOURCED)

        self.assertEqual(item.status, RfqItem.STATUS_SELF_SOURCED)
        self.assertIsNone(item.final_price_usd)
        self.assertFalse(item.quotes.filter(is_selected=True).exists())

        with self.assertRaises(RfqError):
            rfq_service.mark_item(item=self.sassicaia, status=RfqItem.STATUS_SELECTED)

    def test_adjust_price_needs_a_selection(self):
        rfq = self.quoted_rfq()
        with self.assertRaises(RfqError):
            rfq_service.adjust_item_price(item=self.sassicaia, final_price_usd=Decimal("85"))

        rfq_service.auto_select_best(rfq=rfq)
        item = rfq_service.adjust_item_price(item=self.sassicaia, final_price_usd=Decimal("85"), user=self.admin)

        self.assertEqual(item.final_price_usd, Decimal("85.00"))
        self.assertEqual(item.calculated_price_usd, Decimal("90.00"))
        self.assertEqual(item.price_adjusted_by, self.admin)


class FinalizeTests(RfqFixtureMixin, TestCase):
    def test_unresolved_items_block_finalize(self):
        rfq = self.quoted_rfq()
        rfq_service.select_quote(item=self.sassicaia, quote=self.quote_of(self.vinum, self.sassicaia))

        with self.assertRaises(RfqError):
            rfq_service.finalize_rfq(rfq=rfq)

    def test_finalize_groups_selections_by_partner(self):
        rfq = self.quoted_rfq()
        rfq_service.select_quote(item=self.sassicaia, quote=self.quote_of(self.cru, self.sassicaia))
        rfq_service.mark_item(item=self.masseto, status=RfqItem.STATUS_UNSOURCEABLE)

        result = rfq_service.finalize_rfq(rfq=rfq, user=self.admin)

        self.assertEqual(result["status"], Rfq.STATUS_FINALIZED)
        [group] = result["partner_selections"]
        self.assertEqual(group["partner_name"], "Cru Partners")
        self.assertEqual(group["items"][0]["line_total_usd"], Decimal("300.00"))
        self.assertEqual(result["summary"]["grand_total_usd"], Decimal("300.00"))
        self.assertEqual(result["summary"]["unsourceable_count"], 1)
        self.assertTrue(Notification.objects.filter(user=self.cru_user, type="rfq_quotes_selected").exists())
        self.assertFalse(Notification.objects.filter(user=self.vinum_user, type="rfq_quotes_selected").exists())

        with self.assertRaises(RfqError):
            rfq_service.finalize_rfq(rfq=rfq)

    def test_profit_analysis_uses_final_prices(self):
        rfq = self.quoted_rfq()
        rfq_service.auto_select_best(rfq=rfq)

        result = rfq_service.profit_analysis(
            rfq=rfq,
            sell_prices={str(self.sassicaia.pk): "120", str(self.masseto.pk): "250"},
        )

        rows = {row["product_name"]: row for row in result["items"]}
        self.assertEqual(rows["Sassicaia 2016"]["profit_usd"], Decimal("30.00"))
        self.assertEqual(rows["Sassicaia 2016"]["profit_margin_percent"], Decimal("25.00"))
        self.assertEqual(result["summary"]["total_sell_price_usd"], Decimal("860.00"))
        self.assertEqual(result["summary"]["total_buy_price_usd"], Decimal("670.00"))
        self.assertEqual(result["summary"]["total_profit_usd"], Decimal("190.00"))
        self.assertEqual(result["summary"]["profit_margin_percent"], Decimal("22.09"))


class LwinSearchTests(TestCase):
    def setUp(self):
        LwinWine.objects.create(lwin="1014263", display_name="Tenuta San Guido, Sassicaia", producer_name="Tenuta San Guido")
        LwinWine.objects.create(lwin="1100529", display_name="Masseto, Toscana IGT", producer_name="Masseto")
        LwinWine.objects.create(lwin="10142630", display_name="Sassicaia, Bolgheri", producer_name="Tenuta San Guido")

    def test_digits_match_lwin_prefix_exact_first(self):
        rows = list(match_lwin("1014263"))
        self.assertEqual([r.lwin for r in rows], ["1014263", "10142630"])

    def test_every_token_must_match(self):
        rows = list(match_lwin("sassicaia guido"))
        self.assertEqual(len(rows), 2)
        self.assertEqual(rows[0].display_name, "Sassicaia, Bolgheri")

    def test_blank_query_and_limit(self):
        self.assertEqual(list(match_lwin("   ")), [])
        self.assertEqual(len(match_lwin("1", limit=1)), 1)
