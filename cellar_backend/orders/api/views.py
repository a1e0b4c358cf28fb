# orders/api/views.py

"""
======================================================
PATH: orders/api/views.py
======================================================
PRIVATE CLIENT ORDER ENDPOINTS

Visibility:
- admin        → every order
- wine partner → orders it placed
- distributor  → orders assigned to it

The acting party of a request is resolved from capabilities (admin first) and
passed to the order service, which enforces transitions and ownership.
======================================================
"""

from django.core.exceptions import ValidationError as DjangoValidationError
from drf_spectacular.utils import extend_schema
from rest_framework import mixins, status, viewsets
from rest_framework.decorators import action
from rest_framework.exceptions import PermissionDenied
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response

from orders.api.serializers import (
    ActivityLogSerializer,
    AdminPrivateClientOrderSerializer,
    AdminStatusSerializer,
    ApproveSerializer,
    AssignDistributorSerializer,
    ConfirmPaymentSerializer,
    DistributorStatusSerializer,
    DistributorVerificationSerializer,
    ItemUpdateSerializer,
    ItemWriteSerializer,
    NotesSerializer,
    OrderCreateSerializer,
    PartnerVerificationSerializer,
    PrivateClientContactSerializer,
    PrivateClientOrderItemSerializer,
    PrivateClientOrderSerializer,
    ReasonSerializer,
    ResetVerificationSerializer,
    StockReceiptSerializer,
    StockStatusSerializer,
)
from orders.models import PrivateClientContact, PrivateClientOrder
from orders.services import order_service
from orders.services.order_lifecycle import (
    ACTOR_ADMIN,
    ACTOR_DISTRIBUTOR,
    ACTOR_PARTNER,
    OrderLifecycleError,
)
from orders.services.order_service import (
    OrderConflictError,
    OrderNotFoundError,
    OrderPermissionError,
    OrderServiceError,
)
from partners.models import Partner
from partners.services.membership import get_partner_for_user
from permissions.roles import (
    CAP_ORDERS_ADMIN,
    CAP_ORDERS_DISTRIBUTOR,
    CAP_ORDERS_PARTNER,
    HasAnyCapability,
    user_has_capability,
)
from pricing.services.pricing_engine import PricingError
from wms.services.exceptions import StockError

ORDER_CAPABILITIES = {CAP_ORDERS_ADMIN, CAP_ORDERS_PARTNER, CAP_ORDERS_DISTRIBUTOR}


# ======================================================
# API ERROR NORMALIZATION
# ======================================================


def domain_error_response(exc: Exception) -> Response:
    if isinstance(exc, OrderNotFoundError):
        code = status.HTTP_404_NOT_FOUND
    elif isinstance(exc, OrderPermissionError):
        code = status.HTTP_403_FORBIDDEN
    elif isinstance(exc, OrderConflictError):
        code = status.HTTP_409_CONFLICT
    else:
        code = status.HTTP_400_BAD_REQUEST

    if isinstance(exc, DjangoValidationError):
        detail = exc.message_dict if hasattr(exc, "error_dict") else exc.messages
    else:
        detail = str(exc)
    return Response({"detail": detail}, status=code)


DOMAIN_ERRORS = (
    OrderServiceError,
    OrderLifecycleError,
    PricingError,
    StockError,
    DjangoValidationError,
)


def resolve_actor(user) -> str | None:
    if user_has_capability(user, CAP_ORDERS_ADMIN):
        return ACTOR_ADMIN
    if user_has_capability(user, CAP_ORDERS_PARTNER):
        return ACTOR_PARTNER
    if user_has_capability(user, CAP_ORDERS_DISTRIBUTOR):
        return ACTOR_DISTRIBUTOR
    return None


def _forbidden(message="You do not have permission to perform this action."):
    return Response({"detail": message}, status=status.HTTP_403_FORBIDDEN)


# ======================================================
# ORDERS
# ======================================================


class PrivateClientOrderViewSet(
    mixins.ListModelMixin,
    mixins.RetrieveModelMixin,
    viewsets.GenericViewSet,
):
    """
    Filters:
    - ?status=<status>
    - ?partner=<uuid>, ?distributor=<uuid> (admin)
    """

    permission_classes = [IsAuthenticated, HasAnyCapability]
    required_any_capabilities = ORDER_CAPABILITIES
    filterset_fields = ["status", "partner", "distributor"]

    # -------------------------
    # scoping
    # -------------------------
    def get_queryset(self):
        qs = (
            PrivateClientOrder.objects.select_related("partner", "distributor", "client")
            .prefetch_related("items")
            .order_by("-created_at")
        )
        actor = resolve_actor(self.request.user)

        if actor == ACTOR_ADMIN:
            return qs
        if actor == ACTOR_PARTNER:
            partner = get_partner_for_user(self.request.user, Partner.TYPE_WINE_PARTNER)
            return qs.filter(partner=partner) if partner else qs.none()
        if actor == ACTOR_DISTRIBUTOR:
            distributor = get_partner_for_user(self.request.user, Partner.TYPE_DISTRIBUTOR)
            return qs.filter(distributor=distributor) if distributor else qs.none()
        return qs.none()

    def get_serializer_class(self):
        if resolve_actor(self.request.user) == ACTOR_ADMIN:
            return AdminPrivateClientOrderSerializer
        return PrivateClientOrderSerializer

    @property
    def actor(self):
        return resolve_actor(self.request.user)

    def _respond(self, order, http_status=status.HTTP_200_OK):
        order = PrivateClientOrder.objects.get(pk=order.pk)
        return Response(self.get_serializer_class()(order).data, status=http_status)

    def _command(self, serializer_class):
        s = serializer_class(data=self.request.data)
        s.is_valid(raise_exception=True)
        return s.validated_data

    # -------------------------
    # create
    # -------------------------
    @extend_schema(tags=["orders"], request=OrderCreateSerializer, responses={201: PrivateClientOrderSerializer})
    def create(self, request):
        data = self._command(OrderCreateSerializer)
        actor = self.actor

        if actor == ACTOR_ADMIN and data.get("partner_id"):
            partner = Partner.objects.filter(pk=data["partner_id"]).first()
        elif actor in (ACTOR_PARTNER, ACTOR_ADMIN):
            partner = get_partner_for_user(request.user, Partner.TYPE_WINE_PARTNER)
        else:
            return _forbidden("Only wine partners can place orders")

        if partner is None:
            return Response({"detail": "Wine partner not found"}, status=status.HTTP_404_NOT_FOUND)

        client = None
        if data.get("client_id"):
            client = PrivateClientContact.objects.filter(pk=data["client_id"], partner=partner).first()
            if client is None:
                return Response({"detail": "Client not found"}, status=status.HTTP_404_NOT_FOUND)

        try:
            order = order_service.create_order(
                partner=partner,
                user=request.user,
                items=data.get("items") or [],
                client=client,
                client_name=data.get("client_name", ""),
                client_email=data.get("client_email", ""),
                client_phone=data.get("client_phone", ""),
                client_address=data.get("client_address", ""),
                notes=data.get("notes", ""),
            )
        except DOMAIN_ERRORS as exc:
            return domain_error_response(exc)

        return self._respond(order, status.HTTP_201_CREATED)

    # -------------------------
    # items
    # -------------------------
    @extend_schema(tags=["orders"], request=ItemWriteSerializer, responses={201: PrivateClientOrderItemSerializer})
    @action(detail=True, methods=["post"], url_path="items")
    def add_item(self, request, pk=None):
        order = self.get_object()
        data = self._command(ItemWriteSerializer)
        try:
            item = order_service.add_item(order=order, user=request.user, data=data, actor=self.actor)
        except DOMAIN_ERRORS as exc:
            return domain_error_response(exc)
        return Response(PrivateClientOrderItemSerializer(item).data, status=status.HTTP_201_CREATED)

    @extend_schema(tags=["orders"], request=ItemUpdateSerializer, responses={200: PrivateClientOrderItemSerializer})
    @action(detail=True, methods=["patch", "delete"], url_path=r"items/(?P<item_id>[^/.]+)")
    def item_detail(self, request, pk=None, item_id=None):
        order = self.get_object()
        try:
            if request.method == "DELETE":
                order_service.remove_item(order=order, item_id=item_id, user=request.user, actor=self.actor)
                return Response(status=status.HTTP_204_NO_CONTENT)

            s = ItemUpdateSerializer(data=request.data, partial=True)
            s.is_valid(raise_exception=True)
            item = order_service.update_item(
                order=order,
                item_id=item_id,
                user=request.user,
                data=s.validated_data,
                actor=self.actor,
            )
        except DOMAIN_ERRORS as exc:
            return domain_error_response(exc)
        return Response(PrivateClientOrderItemSerializer(item).data)

    # -------------------------
    # review (partner submits, admin reviews)
    # -------------------------
    @extend_schema(tags=["orders"], request=None)
    @action(detail=True, methods=["post"])
    def submit(self, request, pk=None):
        order = self.get_object()
        if self.actor not in (ACTOR_PARTNER, ACTOR_ADMIN):
            return _forbidden()
        try:
            order = order_service.submit_order(order=order, user=request.user, actor=self.actor)
        except DOMAIN_ERRORS as exc:
            return domain_error_response(exc)
        return self._respond(order)

    @extend_schema(tags=["orders"], request=None)
    @action(detail=True, methods=["post"], url_path="start-review")
    def start_review(self, request, pk=None):
        if self.actor != ACTOR_ADMIN:
            return _forbidden()
        try:
            order = order_service.start_review(order=self.get_object(), user=request.user)
        except DOMAIN_ERRORS as exc:
            return domain_error_response(exc)
        return self._respond(order)

    @extend_schema(tags=["orders"], request=ReasonSerializer)
    @action(detail=True, methods=["post"], url_path="request-revision")
    def request_revision(self, request, pk=None):
        if self.actor != ACTOR_ADMIN:
            return _forbidden()
        data = self._command(ReasonSerializer)
        try:
            order = order_service.request_revision(
                order=self.get_object(),
                user=request.user,
                reason=data.get("reason", ""),
            )
        except DOMAIN_ERRORS as exc:
            return domain_error_response(exc)
        return self._respond(order)

    @extend_schema(tags=["orders"], request=ApproveSerializer)
    @action(detail=True, methods=["post"])
    def approve(self, request, pk=None):
        if self.actor != ACTOR_ADMIN:
            return _forbidden()
        data = self._command(ApproveSerializer)
        try:
            order = order_service.approve_order(
                order=self.get_object(),
                user=request.user,
                item_sources=data.get("item_sources") or [],
                notes=data.get("notes", ""),
            )
        except DOMAIN_ERRORS as exc:
            return domain_error_response(exc)
        return self._respond(order)

    # -------------------------
    # distributor assignment & verification
    # -------------------------
    @extend_schema(tags=["orders"], request=AssignDistributorSerializer)
    @action(detail=True, methods=["post"], url_path="assign-distributor")
    def assign_distributor(self, request, pk=None):
        if self.actor != ACTOR_ADMIN:
            return _forbidden()
        data = self._command(AssignDistributorSerializer)
        try:
            order = order_service.assign_distributor(
                order=self.get_object(),
                user=request.user,
                distributor_id=data["distributor_id"],
            )
        except DOMAIN_ERRORS as exc:
            return domain_error_response(exc)
        return self._respond(order)

    @extend_schema(tags=["orders"], request=PartnerVerificationSerializer)
    @action(detail=True, methods=["post"], url_path="partner-verification")
    def partner_verification(self, request, pk=None):
        data = self._command(PartnerVerificationSerializer)
        try:
            order = order_service.partner_verification(
                order=self.get_object(),
                user=request.user,
                response=data["response"],
                notes=data.get("notes", ""),
            )
        except DOMAIN_ERRORS as exc:
            return domain_error_response(exc)
        return self._respond(order)

    @extend_schema(tags=["orders"], request=DistributorVerificationSerializer)
    @action(detail=True, methods=["post"], url_path="distributor-verification")
    def distributor_verification(self, request, pk=None):
        data = self._command(DistributorVerificationSerializer)
        try:
            order = order_service.distributor_verification(
                order=self.get_object(),
                user=request.user,
                response=data["response"],
                notes=data.get("notes", ""),
            )
        except DOMAIN_ERRORS as exc:
            return domain_error_response(exc)
        return self._respond(order)

    @extend_schema(tags=["orders"], request=NotesSerializer)
    @action(detail=True, methods=["post"], url_path="unlock")
    def unlock(self, request, pk=None):
        data = self._command(NotesSerializer)
        try:
            order = order_service.distributor_unlock_suspended(
                order=self.get_object(),
                user=request.user,
                notes=data.get("notes", ""),
            )
        except DOMAIN_ERRORS as exc:
            return domain_error_response(exc)
        return self._respond(order)

    @extend_schema(tags=["orders"], request=ResetVerificationSerializer)
    @action(detail=True, methods=["post"], url_path="reset-verification")
    def reset_verification(self, request, pk=None):
        if self.actor != ACTOR_ADMIN:
            return _forbidden()
        data = self._command(ResetVerificationSerializer)
        try:
            order = order_service.admin_reset_verification(
                order=self.get_object(),
                user=request.user,
                target_status=data["target_status"],
                notes=data.get("notes", ""),
            )
        except DOMAIN_ERRORS as exc:
            return domain_error_response(exc)
        return self._respond(order)

    # -------------------------
    # distributor progress
    # -------------------------
    @extend_schema(tags=["orders"], request=DistributorStatusSerializer)
    @action(detail=True, methods=["post"], url_path="distributor-status")
    def distributor_status(self, request, pk=None):
        data = self._command(DistributorStatusSerializer)
        try:
            order = order_service.distributor_update_status(
                order=self.get_object(),
                user=request.user,
                status=data["status"],
                notes=data.get("notes", ""),
                city_drinks_account_name=data.get("city_drinks_account_name", ""),
                city_drinks_phone=data.get("city_drinks_phone", ""),
            )
        except DOMAIN_ERRORS as exc:
            return domain_error_response(exc)
        return self._respond(order)

    @extend_schema(tags=["orders"], request=StockReceiptSerializer)
    @action(detail=True, methods=["post"], url_path="confirm-receipt")
    def confirm_receipt(self, request, pk=None):
        data = self._command(StockReceiptSerializer)
        try:
            order_service.distributor_confirm_stock_receipt(
                order=self.get_object(),
                user=request.user,
                item_ids=data["item_ids"],
                notes=data.get("notes", ""),
            )
        except DOMAIN_ERRORS as exc:
            return domain_error_response(exc)
        return self._respond(self.get_object())

    # -------------------------
    # payments
    # -------------------------
    @extend_schema(tags=["orders"], request=ConfirmPaymentSerializer)
    @action(detail=True, methods=["post"], url_path="confirm-payment")
    def confirm_payment(self, request, pk=None):
        data = self._command(ConfirmPaymentSerializer)
        try:
            order = order_service.confirm_payment(
                order=self.get_object(),
                user=request.user,
                stage=data["stage"],
                reference=data.get("reference", ""),
                actor=self.actor,
            )
        except DOMAIN_ERRORS as exc:
            return domain_error_response(exc)
        return self._respond(order)

    @extend_schema(tags=["orders"], request=NotesSerializer)
    @action(detail=True, methods=["post"], url_path="verify-payment")
    def verify_payment(self, request, pk=None):
        if self.actor not in (ACTOR_ADMIN, ACTOR_DISTRIBUTOR):
            return _forbidden()
        data = self._command(NotesSerializer)
        try:
            order = order_service.verify_client_payment(
                order=self.get_object(),
                user=request.user,
                notes=data.get("notes", ""),
                actor=self.actor,
            )
        except DOMAIN_ERRORS as exc:
            return domain_error_response(exc)
        return self._respond(order)

    # -------------------------
    # shipping / cancellation / overrides
    # -------------------------
    @extend_schema(tags=["orders"], request=NotesSerializer)
    @action(detail=True, methods=["post"], url_path="mark-in-transit")
    def mark_in_transit(self, request, pk=None):
        if self.actor != ACTOR_ADMIN:
            return _forbidden()
        data = self._command(NotesSerializer)
        try:
            order = order_service.mark_in_transit(
                order=self.get_object(),
                user=request.user,
                notes=data.get("notes", ""),
            )
        except DOMAIN_ERRORS as exc:
            return domain_error_response(exc)
        return self._respond(order)

    @extend_schema(tags=["orders"], request=ReasonSerializer)
    @action(detail=True, methods=["post"])
    def cancel(self, request, pk=None):
        if self.actor not in (ACTOR_ADMIN, ACTOR_PARTNER):
            return _forbidden()
        data = self._command(ReasonSerializer)
        try:
            order = order_service.cancel_order(
                order=self.get_object(),
                user=request.user,
                reason=data.get("reason", ""),
                actor=self.actor,
            )
        except DOMAIN_ERRORS as exc:
            return domain_error_response(exc)
        return self._respond(order)

    @extend_schema(tags=["orders"], request=AdminStatusSerializer)
    @action(detail=True, methods=["post"], url_path="admin-status")
    def admin_status(self, request, pk=None):
        if self.actor != ACTOR_ADMIN:
            return _forbidden()
        data = self._command(AdminStatusSerializer)
        try:
            order = order_service.admin_update_status(
                order=self.get_object(),
                user=request.user,
                status=data["status"],
                notes=data.get("notes", ""),
            )
        except DOMAIN_ERRORS as exc:
            return domain_error_response(exc)
        return self._respond(order)

    # -------------------------
    # stock tracking
    # -------------------------
    @extend_schema(tags=["orders"], request=StockStatusSerializer)
    @action(detail=True, methods=["post"], url_path="stock-status")
    def stock_status(self, request, pk=None):
        if self.actor != ACTOR_ADMIN:
            return _forbidden()
        data = self._command(StockStatusSerializer)
        order = self.get_object()
        try:
            if data.get("item_ids"):
                order_service.bulk_update_stock_status(
                    order=order,
                    item_ids=data["item_ids"],
                    user=request.user,
                    stock_status=data["stock_status"],
                    notes=data.get("notes", ""),
                    expected_at=data.get("expected_at"),
                )
            else:
                order_service.update_item_stock_status(
                    order=order,
                    item_id=data["item_id"],
                    user=request.user,
                    stock_status=data["stock_status"],
                    notes=data.get("notes", ""),
                    expected_at=data.get("expected_at"),
                )
        except DOMAIN_ERRORS as exc:
            return domain_error_response(exc)
        return self._respond(order)

    @extend_schema(tags=["orders"], request=None)
    @action(detail=True, methods=["post"], url_path="reserve-stock")
    def reserve_stock(self, request, pk=None):
        if self.actor != ACTOR_ADMIN:
            return _forbidden()
        try:
            result = order_service.reserve_stock(order=self.get_object(), user=request.user)
        except DOMAIN_ERRORS as exc:
            return domain_error_response(exc)
        return Response(result)

    # -------------------------
    # read-only extras
    # -------------------------
    @extend_schema(tags=["orders"], responses=ActivityLogSerializer(many=True))
    @action(detail=True, methods=["get"])
    def activity(self, request, pk=None):
        order = self.get_object()
        return Response(ActivityLogSerializer(order.activity_logs.all(), many=True).data)

    @extend_schema(tags=["orders"], responses={200: dict})
    @action(detail=False, methods=["get"])
    def dashboard(self, request):
        actor = self.actor
        if actor == ACTOR_ADMIN:
            return Response(order_service.admin_dashboard())

        if actor == ACTOR_PARTNER:
            partner = get_partner_for_user(request.user, Partner.TYPE_WINE_PARTNER)
            if partner is not None:
                return Response(order_service.partner_dashboard(partner=partner))

        if actor == ACTOR_DISTRIBUTOR:
            distributor = get_partner_for_user(request.user, Partner.TYPE_DISTRIBUTOR)
            if distributor is not None:
                return Response(order_service.distributor_dashboard(distributor=distributor))

        return Response({"detail": "No partner membership found"}, status=status.HTTP_404_NOT_FOUND)


# ======================================================
# CLIENT CONTACTS
# ======================================================


class PrivateClientContactViewSet(viewsets.ModelViewSet):
    """
    A wine partner's address book of private clients.
    Admins see every partner's clients.
    """

    serializer_class = PrivateClientContactSerializer
    permission_classes = [IsAuthenticated, HasAnyCapability]
    required_any_capabilities = {CAP_ORDERS_ADMIN, CAP_ORDERS_PARTNER}
    http_method_names = ["get", "post", "patch", "head", "options"]

    def get_queryset(self):
        qs = PrivateClientContact.objects.select_related("partner").order_by("name")
        if user_has_capability(self.request.user, CAP_ORDERS_ADMIN):
            return qs
        partner = get_partner_for_user(self.request.user, Partner.TYPE_WINE_PARTNER)
        return qs.filter(partner=partner) if partner else qs.none()

    def perform_create(self, serializer):
        partner = get_partner_for_user(self.request.user, Partner.TYPE_WINE_PARTNER)
        if partner is None:
            raise PermissionDenied("Only wine partners keep a client list")
        serializer.save(partner=partner)
