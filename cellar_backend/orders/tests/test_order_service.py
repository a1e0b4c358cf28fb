# orders/tests/test_order_service.py

from decimal import Decimal

from django.contrib.auth import get_user_model
from django.core.exceptions import ValidationError
from django.test import TestCase, override_settings

from notifications.models import Notification
from orders.models import (
    PrivateClientContact,
    PrivateClientOrder,
    PrivateClientOrderActivityLog,
    PrivateClientOrderItem,
)
from orders.services import order_service
from orders.services.order_lifecycle import (
    ACTOR_ADMIN,
    ACTOR_DISTRIBUTOR,
    ACTOR_PARTNER,
    InvalidOrderTransitionError,
)
from orders.services.order_service import (
    OrderConflictError,
    OrderPermissionError,
    OrderServiceError,
)
from partners.models import Partner
from partners.services.membership import add_member

User = get_user_model()

PCO = PrivateClientOrder
Item = PrivateClientOrderItem

SASSICAIA = {
    "product_name": "Sassicaia",
    "producer": "Tenuta San Guido",
    "vintage": "2016",
    "lwin": "1014263",
    "quantity": 2,
    "price_per_case_usd": Decimal("500.00"),
    "source": Item.SOURCE_CC_INVENTORY,
}


class OrderFixtureMixin:
    def setUp(self):
        self.admin = User.objects.create_user(email="ops@cellar.test", password="pass", role="admin")

        self.partner = Partner.objects.create(name="Cru Partners", type=Partner.TYPE_WINE_PARTNER)
        self.partner_user = User.objects.create_user(email="sales@cru.test", password="pass", role="partner")
        add_member(partner=self.partner, user=self.partner_user)

        self.distributor = Partner.objects.create(
            name="City Drinks",
            type=Partner.TYPE_DISTRIBUTOR,
            distributor_code="CD",
        )
        self.distributor_user = User.objects.create_user(email="desk@citydrinks.test", password="pass", role="distributor")
        add_member(partner=self.distributor, user=self.distributor_user)

    def create_order(self, **kwargs):
        kwargs.setdefault("items", [dict(SASSICAIA)])
        kwargs.setdefault("client_name", "Ahmed Khalil")
        return order_service.create_order(partner=self.partner, user=self.partner_user, **kwargs)

    def approved_order(self):
        order = self.create_order()
        order_service.submit_order(order=order, user=self.partner_user)
        order_service.start_review(order=order, user=self.admin)
        return order_service.approve_order(order=order, user=self.admin)


class OrderCreationTests(OrderFixtureMixin, TestCase):
    def test_totals_use_consolidated_pco_pricing(self):
        order = self.create_order()

        self.assertTrue(order.order_number.startswith("PCO-"))
        self.assertEqual(order.status, PCO.STATUS_DRAFT)
        self.assertEqual(order.item_count, 1)
        self.assertEqual(order.case_count, 2)
        self.assertEqual(order.subtotal_usd, Decimal("1025.64"))
        self.assertEqual(order.total_usd, Decimal("1405.82"))
        self.assertEqual(order.total_aed, Decimal("5159.36"))

    def test_order_numbers_are_sequential(self):
        first = self.create_order()
        second = self.create_order()
        self.assertEqual(int(second.order_number[-5:]), int(first.order_number[-5:]) + 1)

    def test_empty_order_has_zero_totals(self):
        order = self.create_order(items=[])
        self.assertEqual(order.total_usd, Decimal("0.00"))
        self.assertEqual(order.item_count, 0)

    def test_client_name_or_contact_required(self):
        with self.assertRaises(OrderServiceError):
            self.create_order(client_name="  ")

    def test_contact_of_another_partner_is_rejected(self):
        other = Partner.objects.create(name="Other Cellars", type=Partner.TYPE_WINE_PARTNER)
        contact = PrivateClientContact.objects.create(partner=other, name="Someone")
        with self.assertRaises(OrderPermissionError):
            self.create_order(client=contact)

    def test_distributor_cannot_place_orders(self):
        with self.assertRaises(OrderServiceError):
            order_service.create_order(partner=self.distributor, user=self.distributor_user, client_name="X")

    def test_item_edits_recalculate_totals(self):
        order = self.create_order()
        item = order.items.get()

        order_service.update_item(order=order, item_id=item.pk, user=self.partner_user, data={"quantity": 4})
        order.refresh_from_db()
        self.assertEqual(order.case_count, 4)
        self.assertEqual(order.subtotal_usd, Decimal("2051.28"))

        order_service.remove_item(order=order, item_id=item.pk, user=self.partner_user)
        order.refresh_from_db()
        self.assertEqual(order.total_usd, Decimal("0.00"))

    def test_other_partner_cannot_edit(self):
        order = self.create_order()
        outsider = User.objects.create_user(email="x@other.test", password="pass", role="partner")
        with self.assertRaises(OrderPermissionError):
            order_service.add_item(order=order, user=outsider, data=dict(SASSICAIA))


class ReviewFlowTests(OrderFixtureMixin, TestCase):
    def test_submit_requires_items(self):
        order = self.create_order(items=[])
        with self.assertRaises(OrderServiceError):
            order_service.submit_order(order=order, user=self.partner_user)

    def test_submit_notifies_admins_and_locks_items(self):
        order = self.create_order()
        order_service.submit_order(order=order, user=self.partner_user)

        order.refresh_from_db()
        self.assertEqual(order.status, PCO.STATUS_SUBMITTED)
        self.assertIsNotNone(order.submitted_at)
        self.assertTrue(Notification.objects.filter(user=self.admin, type="pco_submitted").exists())

        with self.assertRaises(InvalidOrderTransitionError):
            order_service.add_item(order=order, user=self.partner_user, data=dict(SASSICAIA))

    def test_revision_round_trip(self):
        order = self.create_order()
        order_service.submit_order(order=order, user=self.partner_user)

        with self.assertRaises(OrderServiceError):
            order_service.request_revision(order=order, user=self.admin, reason="")

        order_service.request_revision(order=order, user=self.admin, reason="Vintage unavailable")
        order.refresh_from_db()
        self.assertEqual(order.status, PCO.STATUS_REVISION_REQUESTED)
        self.assertEqual(order.revision_reason, "Vintage unavailable")

        order_service.add_item(order=order, user=self.partner_user, data=dict(SASSICAIA, vintage="2017"))
        order_service.submit_order(order=order, user=self.partner_user)
        order.refresh_from_db()
        self.assertEqual(order.status, PCO.STATUS_SUBMITTED)
        self.assertEqual(order.revision_reason, "")

    def test_approval_sets_item_stock_status_by_source(self):
        order = self.create_order(
            items=[dict(SASSICAIA), dict(SASSICAIA, product_name="Ornellaia", source=Item.SOURCE_PARTNER_AIRFREIGHT)]
        )
        order_service.submit_order(order=order, user=self.partner_user)
        order_service.approve_order(order=order, user=self.admin)

        statuses = dict(order.items.values_list("product_name", "stock_status"))
        self.assertEqual(statuses["Sassicaia"], Item.STOCK_CONFIRMED)
        self.assertEqual(statuses["Ornellaia"], Item.STOCK_PENDING)

    def test_partner_cannot_resubmit_during_review(self):
        order = self.create_order()
        order_service.submit_order(order=order, user=self.partner_user)
        order_service.start_review(order=order, user=self.admin)
        with self.assertRaises(InvalidOrderTransitionError):
            order_service.submit_order(order=order, user=self.partner_user)


class FulfilmentFlowTests(OrderFixtureMixin, TestCase):
    """
    GUARANTEES:
    - The happy path reaches delivered with one log row per step
    - Payment references carry the distributor code
    - Verification detours are enforced
    """

    def test_happy_path_to_delivery(self):
        order = self.approved_order()

        order_service.assign_distributor(order=order, user=self.admin, distributor_id=self.distributor.pk)
        order.refresh_from_db()
        self.assertEqual(order.status, PCO.STATUS_AWAITING_CLIENT_PAYMENT)
        self.assertEqual(order.payment_reference, f"CD-{order.order_number}")

        order_service.confirm_payment(order=order, user=self.partner_user, stage="client", reference="TT-1", actor=ACTOR_PARTNER)
        order_service.verify_client_payment(order=order, user=self.admin)
        order.refresh_from_db()
        self.assertEqual(order.status, PCO.STATUS_CLIENT_PAID)
        self.assertIsNotNone(order.client_paid_at)

        order_service.mark_in_transit(order=order, user=self.admin)
        for status in (PCO.STATUS_WITH_DISTRIBUTOR, PCO.STATUS_OUT_FOR_DELIVERY, PCO.STATUS_DELIVERED):
            order_service.distributor_update_status(order=order, user=self.distributor_user, status=status)

        order.refresh_from_db()
        self.assertEqual(order.status, PCO.STATUS_DELIVERED)
        self.assertIsNotNone(order.delivered_at)
        self.assertFalse(order.items.exclude(stock_status=Item.STOCK_DELIVERED).exists())

        actions = list(order.activity_logs.order_by("created_at").values_list("action", flat=True))
        self.assertEqual(actions[0], PrivateClientOrderActivityLog.ACTION_CREATED)
        self.assertIn(PrivateClientOrderActivityLog.ACTION_PAYMENT_VERIFIED, actions)

    def test_client_payment_cannot_be_confirmed_twice(self):
        order = self.approved_order()
        order_service.assign_distributor(order=order, user=self.admin, distributor_id=self.distributor.pk)
        order_service.confirm_payment(order=order, user=self.admin, stage="client")
        order_service.verify_client_payment(order=order, user=self.admin)

        with self.assertRaises(OrderConflictError):
            order_service.confirm_payment(order=order, user=self.admin, stage="client")

    def test_only_admin_confirms_distributor_payment(self):
        order = self.approved_order()
        with self.assertRaises(OrderPermissionError):
            order_service.confirm_payment(order=order, user=self.partner_user, stage="distributor", actor=ACTOR_PARTNER)

    def test_partner_rejection_suspends_and_distributor_unlocks(self):
        self.distributor.requires_client_verification = True
        self.distributor.save()

        order = self.approved_order()
        order_service.assign_distributor(order=order, user=self.admin, distributor_id=self.distributor.pk)
        order.refresh_from_db()
        self.assertEqual(order.status, PCO.STATUS_AWAITING_PARTNER_VERIFICATION)

        order_service.partner_verification(order=order, user=self.partner_user, response=PCO.PARTNER_VERIFICATION_NO)
        order.refresh_from_db()
        self.assertEqual(order.status, PCO.STATUS_VERIFICATION_SUSPENDED)
        self.assertTrue(Notification.objects.filter(user=self.admin, type="pco_verification_suspended").exists())

        order_service.distributor_unlock_suspended(order=order, user=self.distributor_user, notes="Known client")
        order.refresh_from_db()
        self.assertEqual(order.status, PCO.STATUS_AWAITING_CLIENT_PAYMENT)
        self.assertEqual(order.payment_reference, f"CD-{order.order_number}")

    def test_full_verification_path(self):
        self.distributor.requires_client_verification = True
        self.distributor.save()

        order = self.approved_order()
        order_service.assign_distributor(order=order, user=self.admin, distributor_id=self.distributor.pk)
        order_service.partner_verification(order=order, user=self.partner_user, response=PCO.PARTNER_VERIFICATION_YES)
        order_service.distributor_verification(
            order=order,
            user=self.distributor_user,
            response=PCO.DISTRIBUTOR_VERIFICATION_VERIFIED,
        )
        order.refresh_from_db()
        self.assertEqual(order.status, PCO.STATUS_AWAITING_CLIENT_PAYMENT)
        self.assertIsNotNone(order.distributor_verification_at)

    def test_admin_reset_clears_verification(self):
        self.distributor.requires_client_verification = True
        self.distributor.save()

        order = self.approved_order()
        order_service.assign_distributor(order=order, user=self.admin, distributor_id=self.distributor.pk)
        order_service.partner_verification(order=order, user=self.partner_user, response=PCO.PARTNER_VERIFICATION_DONT_KNOW)

        order_service.admin_reset_verification(
            order=order,
            user=self.admin,
            target_status=PCO.STATUS_AWAITING_PARTNER_VERIFICATION,
        )
        order.refresh_from_db()
        self.assertEqual(order.status, PCO.STATUS_AWAITING_PARTNER_VERIFICATION)
        self.assertEqual(order.partner_verification_response, "")
        self.assertIsNone(order.partner_verification_at)

    def test_unassigned_distributor_cannot_act(self):
        order = self.approved_order()
        with self.assertRaises(OrderPermissionError):
            order_service.distributor_update_status(
                order=order,
                user=self.distributor_user,
                status=PCO.STATUS_AWAITING_CLIENT_VERIFICATION,
            )

    def test_verified_client_skips_client_verification(self):
        contact = PrivateClientContact.objects.create(partner=self.partner, name="Ahmed Khalil")
        order = self.create_order(client=contact, client_name="")
        order_service.submit_order(order=order, user=self.partner_user)
        order_service.approve_order(order=order, user=self.admin)
        order_service.assign_distributor(order=order, user=self.admin, distributor_id=self.distributor.pk)
        order_service.admin_update_status(order=order, user=self.admin, status=PCO.STATUS_CC_APPROVED)

        contact.city_drinks_verified_at = order.created_at
        contact.save()

        order_service.distributor_update_status(
            order=order,
            user=self.distributor_user,
            status=PCO.STATUS_AWAITING_CLIENT_PAYMENT,
            city_drinks_account_name="AKHALIL",
        )
        order.refresh_from_db()
        contact.refresh_from_db()
        self.assertEqual(order.status, PCO.STATUS_AWAITING_CLIENT_PAYMENT)
        self.assertEqual(contact.city_drinks_account_name, "AKHALIL")

    def _order_in_verification(self, partner_response):
        self.distributor.requires_client_verification = True
        self.distributor.save()

        contact = PrivateClientContact.objects.create(partner=self.partner, name="Ahmed Khalil")
        order = self.create_order(client=contact, client_name="")
        order_service.submit_order(order=order, user=self.partner_user)
        order_service.approve_order(order=order, user=self.admin)
        order_service.assign_distributor(order=order, user=self.admin, distributor_id=self.distributor.pk)
        order_service.partner_verification(order=order, user=self.partner_user, response=partner_response)
        return order, contact

    def test_status_update_cannot_bypass_distributor_verification(self):
        for response, expected in (
            (PCO.PARTNER_VERIFICATION_YES, PCO.STATUS_AWAITING_DISTRIBUTOR_VERIFICATION),
            (PCO.PARTNER_VERIFICATION_NO, PCO.STATUS_VERIFICATION_SUSPENDED),
        ):
            with self.subTest(response=response):
                order, contact = self._order_in_verification(response)

                with self.assertRaises(InvalidOrderTransitionError):
                    order_service.distributor_update_status(
                        order=order,
                        user=self.distributor_user,
                        status=PCO.STATUS_AWAITING_CLIENT_PAYMENT,
                        city_drinks_account_name="AKHALIL",
                    )

                order.refresh_from_db()
                contact.refresh_from_db()
                self.assertEqual(order.status, expected)
                self.assertEqual(order.distributor_verification_response, "")
                self.assertIsNone(contact.city_drinks_verified_at)
                self.assertEqual(contact.city_drinks_account_name, "")

    def test_reassigning_to_verifying_distributor_clears_reference(self):
        order = self.approved_order()
        order_service.assign_distributor(order=order, user=self.admin, distributor_id=self.distributor.pk)
        order.refresh_from_db()
        self.assertEqual(order.payment_reference, f"CD-{order.order_number}")

        strict = Partner.objects.create(
            name="Maritime Merchants",
            type=Partner.TYPE_DISTRIBUTOR,
            distributor_code="MM",
            requires_client_verification=True,
        )
        order_service.assign_distributor(order=order, user=self.admin, distributor_id=strict.pk)

        order.refresh_from_db()
        self.assertEqual(order.status, PCO.STATUS_AWAITING_PARTNER_VERIFICATION)
        self.assertEqual(order.distributor_id, strict.pk)
        self.assertEqual(order.payment_reference, "")


class ClientPaymentVerificationTests(OrderFixtureMixin, TestCase):
    """
    GUARANTEES:
    - A reported client payment asks the assigned distributor to verify it
    - The assigned distributor (or an admin) moves the order to client_paid
    - Nobody else can verify
    """

    def reported_order(self):
        order = self.approved_order()
        order_service.assign_distributor(order=order, user=self.admin, distributor_id=self.distributor.pk)
        return order_service.confirm_payment(
            order=order,
            user=self.partner_user,
            stage="client",
            reference="TT-88",
            actor=ACTOR_PARTNER,
        )

    def test_reported_payment_notifies_distributor(self):
        order = self.reported_order()

        self.assertEqual(order.status, PCO.STATUS_AWAITING_PAYMENT_VERIFICATION)
        notification = Notification.objects.get(user=self.distributor_user, type="pco_payment_verification_required")
        self.assertTrue(notification.title.startswith("Payment Verification Required"))
        self.assertIn("TT-88", notification.message)

    def test_assigned_distributor_verifies_payment(self):
        order = self.reported_order()

        order_service.verify_client_payment(order=order, user=self.distributor_user, actor=ACTOR_DISTRIBUTOR)

        order.refresh_from_db()
        self.assertEqual(order.status, PCO.STATUS_CLIENT_PAID)
        self.assertIsNotNone(order.client_paid_at)
        self.assertTrue(Notification.objects.filter(user=self.partner_user, type="pco_payment_verified").exists())
        log = order.activity_logs.get(action=PrivateClientOrderActivityLog.ACTION_PAYMENT_VERIFIED)
        self.assertEqual(log.partner_id, self.distributor.pk)

    def test_distributor_cannot_verify_before_payment_is_reported(self):
        order = self.approved_order()
        order_service.assign_distributor(order=order, user=self.admin, distributor_id=self.distributor.pk)

        with self.assertRaises(InvalidOrderTransitionError):
            order_service.verify_client_payment(order=order, user=self.distributor_user, actor=ACTOR_DISTRIBUTOR)

    def test_other_parties_cannot_verify(self):
        order = self.reported_order()

        other = Partner.objects.create(name="Gulf Beverages", type=Partner.TYPE_DISTRIBUTOR)
        other_user = User.objects.create_user(email="desk@gulf.test", password="pass", role="distributor")
        add_member(partner=other, user=other_user)

        with self.assertRaises(OrderPermissionError):
            order_service.verify_client_payment(order=order, user=other_user, actor=ACTOR_DISTRIBUTOR)
        with self.assertRaises(OrderPermissionError):
            order_service.verify_client_payment(order=order, user=self.partner_user, actor=ACTOR_PARTNER)


class CancellationAndOverrideTests(OrderFixtureMixin, TestCase):
    def test_partner_cancels_and_admins_hear_about_it(self):
        order = self.approved_order()
        order_service.cancel_order(order=order, user=self.partner_user, reason="Client changed mind")

        order.refresh_from_db()
        self.assertEqual(order.status, PCO.STATUS_CANCELLED)
        self.assertIsNotNone(order.cancelled_at)
        self.assertTrue(Notification.objects.filter(user=self.admin, type="pco_cancelled").exists())

        with self.assertRaises(InvalidOrderTransitionError):
            order_service.cancel_order(order=order, user=self.admin, actor=ACTOR_ADMIN)

    def test_admin_override_ignores_rules_but_is_logged(self):
        order = self.create_order()
        order_service.admin_update_status(order=order, user=self.admin, status=PCO.STATUS_DELIVERED, notes="Legacy import")

        order.refresh_from_db()
        self.assertEqual(order.status, PCO.STATUS_DELIVERED)
        log = order.activity_logs.order_by("-created_at").first()
        self.assertTrue(log.metadata["override"])

    def test_unknown_override_status(self):
        order = self.create_order()
        with self.assertRaises(OrderServiceError):
            order_service.admin_update_status(order=order, user=self.admin, status="lost")


class StockTrackingTests(OrderFixtureMixin, TestCase):
    def test_item_stock_status_updates(self):
        order = self.approved_order()
        item = order.items.get()

        order_service.update_item_stock_status(
            order=order,
            item_id=item.pk,
            user=self.admin,
            stock_status=Item.STOCK_AT_CC_BONDED,
            notes="Bay 4",
        )
        item.refresh_from_db()
        self.assertEqual(item.stock_status, Item.STOCK_AT_CC_BONDED)
        self.assertEqual(item.stock_notes, "Bay 4")

    def test_draft_orders_are_not_tracked(self):
        order = self.create_order()
        with self.assertRaises(InvalidOrderTransitionError):
            order_service.bulk_update_stock_status(
                order=order,
                item_ids=[order.items.get().pk],
                user=self.admin,
                stock_status=Item.STOCK_CONFIRMED,
            )

    def test_distributor_receipt_marks_items(self):
        order = self.approved_order()
        order_service.assign_distributor(order=order, user=self.admin, distributor_id=self.distributor.pk)
        item = order.items.get()

        order_service.distributor_confirm_stock_receipt(order=order, user=self.distributor_user, item_ids=[item.pk])
        item.refresh_from_db()
        self.assertEqual(item.stock_status, Item.STOCK_AT_DISTRIBUTOR)

    def test_bulk_update_rejects_foreign_items(self):
        order = self.approved_order()
        other = self.approved_order()
        with self.assertRaises(OrderServiceError):
            order_service.bulk_update_stock_status(
                order=order,
                item_ids=[other.items.get().pk],
                user=self.admin,
                stock_status=Item.STOCK_CONFIRMED,
            )


class ActivityLogTests(OrderFixtureMixin, TestCase):
    def test_log_rows_are_immutable(self):
        order = self.create_order()
        log = order.activity_logs.get()

        log.notes = "edited"
        with self.assertRaises(ValidationError):
            log.save()
        with self.assertRaises(ValidationError):
            log.delete()


@override_settings(PCO_DEFAULT_PAYMENT_PREFIX="PAY")
class DashboardTests(OrderFixtureMixin, TestCase):
    def test_dashboards_are_scoped(self):
        self.create_order()
        order = self.approved_order()
        order_service.assign_distributor(order=order, user=self.admin, distributor_id=self.distributor.pk)

        partner = order_service.partner_dashboard(partner=self.partner)
        self.assertEqual(partner["total_orders"], 2)
        self.assertEqual(partner["awaiting_action"], 2)

        distributor = order_service.distributor_dashboard(distributor=self.distributor)
        self.assertEqual(distributor["total_orders"], 1)

        admin = order_service.admin_dashboard()
        self.assertEqual(admin["by_status"][PCO.STATUS_DRAFT], 1)
        self.assertEqual(admin["total_value_usd"], Decimal("2811.64"))

    def test_default_prefix_without_distributor_code(self):
        self.distributor.distributor_code = None
        self.distributor.save()
        order = self.approved_order()
        order_service.assign_distributor(order=order, user=self.admin, distributor_id=self.distributor.pk)
        order.refresh_from_db()
        self.assertEqual(order.payment_reference, f"PAY-{order.order_number}")
