# quotes/tests/test_quote_service.py

from decimal import Decimal

from django.contrib.auth import get_user_model
from django.test import TestCase, override_settings

from notifications.models import Notification
from partners.models import Partner
from partners.services.membership import add_member
from quotes.models import Quote, QuoteActivityLog
from quotes.services import quote_service
from quotes.services.quote_lifecycle import InvalidQuoteTransitionError
from quotes.services.quote_service import QuoteError, QuoteNotFoundError, QuotePermissionError

User = get_user_model()

TIGNANELLO = {
    "product_name": "Tignanello",
    "producer": "Antinori",
    "vintage": "2019",
    "lwin": "1098765",
    "quantity": 3,
    "price_per_case_usd": Decimal("900.00"),
}

GAJA = {
    "product_name": "Barbaresco",
    "producer": "Gaja",
    "vintage": "2018",
    "quantity": 1,
    "price_per_case_usd": Decimal("2400.00"),
}

ALTERNATIVES = [
    {"product_name": "Tignanello 2020", "price_per_case": "850.00", "quantity_available": 2},
    {"product_name": "Solaia 2019", "price_per_case": "3100.00", "quantity_available": 10},
]


class QuoteFixtureMixin:
    def setUp(self):
        rates = override_settings(PRICING_DEFAULT_EXCHANGE_RATES={"usd_to_aed": "3.67"})
        rates.enable()
        self.addCleanup(rates.disable)

        self.admin = User.objects.create_user(email="ops@cellar.test", password="pass", role="admin")

        self.partner = Partner.objects.create(name="Cru Partners", type=Partner.TYPE_WINE_PARTNER)
        self.partner_user = User.objects.create_user(email="sales@cru.test", password="pass", role="partner")
        add_member(partner=self.partner, user=self.partner_user)

        self.customer = User.objects.create_user(email="collector@example.test", password="pass")

    def create_quote(self, user=None, items=None, **data):
        return quote_service.create_quote(
            user=user or self.partner_user,
            data=data,
            items=[dict(TIGNANELLO), dict(GAJA)] if items is None else items,
        )

    def confirmed_quote(self, adjustments=None, **data):
        quote = self.create_quote(**data)
        quote_service.submit_buy_request(quote=quote, user=self.partner_user)
        quote_service.start_review(quote=quote, user=self.admin)
        return quote_service.confirm_quote(
            quote=quote,
            user=self.admin,
            delivery_lead_time="2-3 weeks",
            adjustments=adjustments,
        )


class QuoteBuildingTests(QuoteFixtureMixin, TestCase):
    def test_create_prices_lines_and_converts_to_aed(self):
        quote = self.create_quote(client_name="Layla Haddad")

        self.assertTrue(quote.quote_number.startswith("QTE-"))
        self.assertEqual(quote.status, Quote.STATUS_DRAFT)
        self.assertEqual(quote.partner, self.partner)
        # 3 x 900 + 1 x 2400
        self.assertEqual(quote.total_usd, Decimal("5100.00"))
        self.assertEqual(quote.total_aed, Decimal("18717.00"))
        self.assertEqual(quote.line_items.get(lwin="1098765").product_key, "1098765")
        self.assertEqual(quote.line_items.get(producer="Gaja").product_key, "Barbaresco")

    def test_customer_without_partner_can_build_a_quote(self):
        quote = self.create_quote(user=self.customer, items=[dict(GAJA)])
        self.assertIsNone(quote.partner)
        self.assertEqual(quote.created_by, self.customer)

    def test_duplicate_product_is_rejected(self):
        quote = self.create_quote(items=[dict(TIGNANELLO)])
        with self.assertRaises(QuoteError):
            quote_service.add_line_item(quote=quote, user=self.partner_user, data=dict(TIGNANELLO))

    def test_add_and_remove_lines_recalculate_totals(self):
        quote = self.create_quote(items=[dict(TIGNANELLO)])
        line = quote_service.add_line_item(quote=quote, user=self.partner_user, data=dict(GAJA))
        quote.refresh_from_db()
        self.assertEqual(quote.total_usd, Decimal("5100.00"))

        quote_service.remove_line_item(quote=quote, user=self.partner_user, line_item_id=line.pk)
        quote.refresh_from_db()
        self.assertEqual(quote.total_usd, Decimal("2700.00"))
        self.assertCountEqual(
            quote.activity_logs.values_list("action", flat=True),
            ["created", "line_added", "line_removed"],
        )

    def test_only_the_creator_may_modify(self):
        quote = self.create_quote()
        with self.assertRaises(QuotePermissionError):
            quote_service.update_quote(quote=quote, user=self.customer, data={"name": "Mine now"})
        with self.assertRaises(QuotePermissionError):
            quote_service.submit_buy_request(quote=quote, user=self.admin)

    def test_unknown_line_is_not_found(self):
        quote = self.create_quote()
        with self.assertRaises(QuoteNotFoundError):
            quote_service.remove_line_item(
                quote=quote,
                user=self.partner_user,
                line_item_id="00000000-0000-0000-0000-000000000000",
            )


class QuoteReviewTests(QuoteFixtureMixin, TestCase):
    def test_submit_notifies_admins(self):
        quote = self.create_quote()
        quote_service.submit_buy_request(quote=quote, user=self.partner_user)

        quote.refresh_from_db()
        self.assertEqual(quote.status, Quote.STATUS_BUY_REQUEST_SUBMITTED)
        self.assertIsNotNone(quote.submitted_at)
        self.assertTrue(Notification.objects.filter(user=self.admin, type="quote_submitted").exists())

    def test_empty_quote_cannot_be_submitted(self):
        quote = self.create_quote(items=[])
        with self.assertRaises(QuoteError):
            quote_service.submit_buy_request(quote=quote, user=self.partner_user)

    def test_revision_round_trip(self):
        quote = self.create_quote()
        quote_service.submit_buy_request(quote=quote, user=self.partner_user)

        with self.assertRaises(QuoteError):
            quote_service.request_revision(quote=quote, user=self.admin, reason="  ")

        quote = quote_service.request_revision(quote=quote, user=self.admin, reason="2019 sold out")
        self.assertEqual(quote.revision_reason, "2019 sold out")
        self.assertTrue(Notification.objects.filter(user=self.partner_user, type="quote_revision_requested").exists())

        # editable again, and resubmission clears the reason
        quote_service.update_quote(quote=quote, user=self.partner_user, data={"notes": "Switched vintage"})
        quote = quote_service.submit_buy_request(quote=quote, user=self.partner_user)
        self.assertEqual(quote.revision_reason, "")

    def test_submitted_quote_is_locked_for_editing(self):
        quote = self.create_quote()
        quote_service.submit_buy_request(quote=quote, user=self.partner_user)

        with self.assertRaises(InvalidQuoteTransitionError):
            quote_service.add_line_item(quote=quote, user=self.partner_user, data=dict(GAJA, product_name="Sori Tildin"))
        with self.assertRaises(InvalidQuoteTransitionError):
            quote_service.remove_line_item(
                quote=quote,
                user=self.partner_user,
                line_item_id=quote.line_items.first().pk,
            )

    def test_confirm_applies_adjustments(self):
        quote = self.create_quote()
        tignanello = quote.line_items.get(lwin="1098765")
        quote_service.submit_buy_request(quote=quote, user=self.partner_user)
        quote_service.start_review(quote=quote, user=self.admin)

        quote = quote_service.confirm_quote(
            quote=quote,
            user=self.admin,
            delivery_lead_time="10 days",
            notes="Partial allocation",
            adjustments=[
                {
                    "line_item_id": tignanello.pk,
                    "confirmed_quantity": 2,
                    "admin_notes": "Only two cases left",
                    "admin_alternatives": ALTERNATIVES,
                }
            ],
        )

        tignanello.refresh_from_db()
        self.assertEqual(quote.status, Quote.STATUS_CC_CONFIRMED)
        self.assertEqual(quote.confirmed_by, self.admin)
        self.assertEqual(quote.delivery_lead_time, "10 days")
        self.assertEqual(tignanello.confirmed_quantity, 2)
        self.assertEqual(tignanello.admin_alternatives[0]["price_per_case"], "850.00")
        self.assertEqual(tignanello.admin_alternatives[0]["bottles_per_case"], 12)
        # 2 x 900 + 1 x 2400
        self.assertEqual(quote.total_usd, Decimal("4200.00"))
        self.assertTrue(Notification.objects.filter(user=self.partner_user, type="quote_confirmed").exists())

    def test_confirm_requires_lead_time_and_a_positive_line(self):
        quote = self.create_quote(items=[dict(GAJA)])
        quote_service.submit_buy_request(quote=quote, user=self.partner_user)
        quote_service.start_review(quote=quote, user=self.admin)
        line = quote.line_items.get()

        with self.assertRaises(QuoteError):
            quote_service.confirm_quote(quote=quote, user=self.admin, delivery_lead_time="")
        with self.assertRaises(QuoteError):
            quote_service.confirm_quote(
                quote=quote,
                user=self.admin,
                delivery_lead_time="1 week",
                adjustments=[{"line_item_id": line.pk, "confirmed_quantity": 0}],
            )

        quote.refresh_from_db()
        self.assertEqual(quote.status, Quote.STATUS_UNDER_CC_REVIEW)

    def test_confirm_rejects_lines_from_another_quote(self):
        other = self.create_quote(items=[dict(GAJA)])
        quote = self.create_quote(items=[dict(TIGNANELLO)])
        quote_service.submit_buy_request(quote=quote, user=self.partner_user)
        quote_service.start_review(quote=quote, user=self.admin)

        with self.assertRaises(QuoteError):
            quote_service.confirm_quote(
                quote=quote,
                user=self.admin,
                delivery_lead_time="1 week",
                adjustments=[{"line_item_id": other.line_items.get().pk, "confirmed_quantity": 1}],
            )

    def test_draft_cannot_be_confirmed(self):
        quote = self.create_quote()
        with self.assertRaises(InvalidQuoteTransitionError):
            quote_service.confirm_quote(quote=quote, user=self.admin, delivery_lead_time="1 week")


class AlternativeTests(QuoteFixtureMixin, TestCase):
    def setUp(self):
        super().setUp()
        draft = self.create_quote()
        line_id = draft.line_items.get(lwin="1098765").pk
        quote_service.submit_buy_request(quote=draft, user=self.partner_user)
        quote_service.start_review(quote=draft, user=self.admin)
        self.quote = quote_service.confirm_quote(
            quote=draft,
            user=self.admin,
            delivery_lead_time="2-3 weeks",
            adjustments=[{"line_item_id": line_id, "admin_alternatives": ALTERNATIVES}],
        )
        self.line_id = line_id

    def accept(self, index):
        return quote_service.accept_alternative(
            quote=self.quote,
            user=self.partner_user,
            line_item_id=self.line_id,
            alternative_index=index,
        )

    def test_accepting_caps_quantity_at_availability(self):
        quote = self.accept(0)
        line = quote.line_items.get(pk=self.line_id)

        self.assertEqual(line.base_price_usd, Decimal("850.00"))
        self.assertEqual(line.original_price_usd, Decimal("900.00"))
        self.assertEqual(line.confirmed_quantity, 2)
        self.assertEqual(line.accepted_alternative["index"], 0)
        self.assertEqual(line.accepted_alternative["replaced_quantity"], 3)
        self.assertEqual(quote.total_usd, Decimal("4100.00"))

    def test_switching_alternatives_keeps_the_original_quantity(self):
        self.accept(0)
        quote = self.accept(1)
        line = quote.line_items.get(pk=self.line_id)

        self.assertEqual(line.confirmed_quantity, 3)
        self.assertEqual(line.base_price_usd, Decimal("3100.00"))
        self.assertEqual(line.accepted_alternative["replaced_quantity"], 3)

    def test_revert_restores_original_product(self):
        self.accept(0)
        quote = self.accept(-1)
        line = quote.line_items.get(pk=self.line_id)

        self.assertEqual(line.base_price_usd, Decimal("900.00"))
        self.assertEqual(line.confirmed_quantity, 3)
        self.assertIsNone(line.accepted_alternative)
        self.assertEqual(quote.total_usd, Decimal("5100.00"))
        self.assertEqual(
            QuoteActivityLog.objects.filter(quote=quote, action__startswith="alternative_").count(),
            2,
        )

    def test_revert_without_acceptance_and_unknown_index(self):
        with self.assertRaises(QuoteError):
            self.accept(-1)
        with self.assertRaises(QuoteNotFoundError):
            self.accept(5)

    def test_only_confirmed_quotes_accept_alternatives(self):
        quote_service.request_payment(quote=self.quote, user=self.partner_user)
        with self.assertRaises(InvalidQuoteTransitionError):
            self.accept(0)

    def test_confirmed_quote_keeps_its_last_line(self):
        gaja = self.quote.line_items.exclude(pk=self.line_id).get()
        quote = quote_service.remove_line_item(quote=self.quote, user=self.partner_user, line_item_id=gaja.pk)
        self.assertEqual(quote.total_usd, Decimal("2700.00"))

        with self.assertRaisesMessage(QuoteError, "Cannot remove all line items from quote"):
            quote_service.remove_line_item(quote=quote, user=self.partner_user, line_item_id=self.line_id)


class SettlementTests(QuoteFixtureMixin, TestCase):
    def test_b2c_payment_track(self):
        quote = self.confirmed_quote(customer_type=Quote.CUSTOMER_B2C)

        with self.assertRaises(QuoteError):
            quote_service.submit_po(quote=quote, user=self.partner_user, po_number="PO-1")

        quote = quote_service.request_payment(quote=quote, user=self.partner_user)
        self.assertEqual(quote.status, Quote.STATUS_AWAITING_PAYMENT)
        self.assertEqual(quote.payment_reference, quote.quote_number)

        quote = quote_service.mark_paid(quote=quote, user=self.admin, reference="TT-20931")
        self.assertEqual(quote.status, Quote.STATUS_PAID)
        self.assertEqual(quote.payment_reference, "TT-20931")

        quote = quote_service.mark_delivered(quote=quote, user=self.admin)
        self.assertEqual(quote.status, Quote.STATUS_DELIVERED)
        self.assertTrue(Notification.objects.filter(user=self.partner_user, type="quote_delivered").exists())

    def test_b2b_purchase_order_track(self):
        quote = self.confirmed_quote(customer_type=Quote.CUSTOMER_B2B)

        with self.assertRaises(QuoteError):
            quote_service.request_payment(quote=quote, user=self.partner_user)
        with self.assertRaises(QuoteError):
            quote_service.submit_po(quote=quote, user=self.partner_user, po_number=" ")

        quote = quote_service.submit_po(quote=quote, user=self.partner_user, po_number=" PO-7781 ")
        self.assertEqual(quote.po_number, "PO-7781")
        self.assertTrue(Notification.objects.filter(user=self.admin, type="quote_po_submitted").exists())

        quote = quote_service.confirm_po(quote=quote, user=self.admin)
        quote = quote_service.mark_delivered(quote=quote, user=self.admin)
        self.assertEqual(quote.status, Quote.STATUS_DELIVERED)
        self.assertIsNotNone(quote.po_confirmed_at)

    def test_delivery_requires_settlement(self):
        quote = self.confirmed_quote()
        with self.assertRaises(InvalidQuoteTransitionError):
            quote_service.mark_delivered(quote=quote, user=self.admin)

    def test_b2b_breakdown_prices_the_confirmed_total(self):
        quote = self.confirmed_quote(
            customer_type=Quote.CUSTOMER_B2B,
            items=[dict(GAJA, price_per_case_usd=Decimal("5000.00"))],
        )
        result = quote_service.b2b_breakdown(quote)

        self.assertEqual(result["customer_quote_price"], Decimal("6950.00"))
        self.assertEqual(result["customer_quote_price_aed"], Decimal("25506.50"))
        self.assertEqual(result["usd_to_aed_rate"], Decimal("3.67"))
