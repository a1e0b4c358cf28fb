# quotes/api/views.py

"""
======================================================
PATH: quotes/api/views.py
======================================================
QUOTE ENDPOINTS

Visibility:
- quotes.admin  → every quote; review, confirm, payment, PO and delivery
- quotes.create → quotes the caller created; build, submit, accept
  alternatives, pay or send a PO

The B2B calculator is a pure endpoint open to both.
======================================================
"""

from django.core.exceptions import ValidationError as DjangoValidationError
from drf_spectacular.utils import extend_schema
from rest_framework import mixins, status, viewsets
from rest_framework.decorators import action
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response

from permissions.roles import (
    CAP_QUOTES_ADMIN,
    CAP_QUOTES_CREATE,
    HasAnyCapability,
    user_has_capability,
)
from pricing.services.pricing_engine import PricingError
from quotes.api.serializers import (
    AcceptAlternativeSerializer,
    B2BCalculatorSerializer,
    ConfirmQuoteSerializer,
    LineItemWriteSerializer,
    PaymentSerializer,
    PurchaseOrderSerializer,
    QuoteActivityLogSerializer,
    QuoteCreateSerializer,
    QuoteLineItemSerializer,
    QuoteSerializer,
    ReasonSerializer,
)
from quotes.models import Quote
from quotes.services import quote_service
from quotes.services.b2b_calculator import calculate_b2b_quote
from quotes.services.quote_lifecycle import InvalidQuoteTransitionError
from quotes.services.quote_service import QuoteError, QuoteNotFoundError, QuotePermissionError

DOMAIN_ERRORS = (QuoteError, InvalidQuoteTransitionError, PricingError, DjangoValidationError)


def domain_error_response(exc: Exception) -> Response:
    if isinstance(exc, QuoteNotFoundError):
        code = status.HTTP_404_NOT_FOUND
    elif isinstance(exc, QuotePermissionError):
        code = status.HTTP_403_FORBIDDEN
    else:
        code = status.HTTP_400_BAD_REQUEST

    if isinstance(exc, DjangoValidationError):
        detail = exc.message_dict if hasattr(exc, "error_dict") else exc.messages
    else:
        detail = str(exc)
    return Response({"detail": detail}, status=code)


def _forbidden():
    return Response(
        {"detail": "You do not have permission to perform this action."},
        status=status.HTTP_403_FORBIDDEN,
    )


class QuoteViewSet(
    mixins.ListModelMixin,
    mixins.RetrieveModelMixin,
    viewsets.GenericViewSet,
):
    """
    Filters:
    - ?status=<status>
    - ?customer_type=b2b|b2c
    """

    serializer_class = QuoteSerializer
    permission_classes = [IsAuthenticated, HasAnyCapability]
    required_any_capabilities = {CAP_QUOTES_ADMIN, CAP_QUOTES_CREATE}
    filterset_fields = ["status", "customer_type"]

    def get_queryset(self):
        qs = (
            Quote.objects.select_related("partner", "created_by")
            .prefetch_related("line_items")
            .order_by("-created_at")
        )
        if self.is_admin:
            return qs
        return qs.filter(created_by=self.request.user)

    @property
    def is_admin(self) -> bool:
        return user_has_capability(self.request.user, CAP_QUOTES_ADMIN)

    def _command(self, serializer_class):
        s = serializer_class(data=self.request.data)
        s.is_valid(raise_exception=True)
        return s.validated_data

    def _respond(self, quote, http_status=status.HTTP_200_OK):
        quote = self.get_queryset().get(pk=quote.pk)
        return Response(QuoteSerializer(quote).data, status=http_status)

    @extend_schema(tags=["quotes"], request=QuoteCreateSerializer, responses={201: QuoteSerializer})
    def create(self, request):
        data = self._command(QuoteCreateSerializer)
        items = data.pop("items", [])
        try:
            quote = quote_service.create_quote(user=request.user, data=data, items=items)
        except DOMAIN_ERRORS as exc:
            return domain_error_response(exc)
        return self._respond(quote, status.HTTP_201_CREATED)

    @extend_schema(tags=["quotes"], request=QuoteCreateSerializer, responses={200: QuoteSerializer})
    def partial_update(self, request, pk=None):
        s = QuoteCreateSerializer(data=request.data, partial=True)
        s.is_valid(raise_exception=True)
        data = dict(s.validated_data)
        data.pop("items", None)
        try:
            quote = quote_service.update_quote(quote=self.get_object(), user=request.user, data=data)
        except DOMAIN_ERRORS as exc:
            return domain_error_response(exc)
        return self._respond(quote)

    # -------------------------
    # line items
    # -------------------------
    @extend_schema(tags=["quotes"], request=LineItemWriteSerializer, responses={201: QuoteLineItemSerializer})
    @action(detail=True, methods=["post"], url_path="items")
    def add_item(self, request, pk=None):
        data = self._command(LineItemWriteSerializer)
        try:
            line = quote_service.add_line_item(quote=self.get_object(), user=request.user, data=data)
        except DOMAIN_ERRORS as exc:
            return domain_error_response(exc)
        return Response(QuoteLineItemSerializer(line).data, status=status.HTTP_201_CREATED)

    @extend_schema(tags=["quotes"], request=None, responses={200: QuoteSerializer})
    @action(detail=True, methods=["delete"], url_path=r"items/(?P<item_id>[^/.]+)")
    def remove_item(self, request, pk=None, item_id=None):
        try:
            quote = quote_service.remove_line_item(quote=self.get_object(), user=request.user, line_item_id=item_id)
        except DOMAIN_ERRORS as exc:
            return domain_error_response(exc)
        return self._respond(quote)

    @extend_schema(tags=["quotes"], request=AcceptAlternativeSerializer, responses={200: QuoteSerializer})
    @action(detail=True, methods=["post"], url_path="accept-alternative")
    def accept_alternative(self, request, pk=None):
        data = self._command(AcceptAlternativeSerializer)
        try:
            quote = quote_service.accept_alternative(
                quote=self.get_object(),
                user=request.user,
                line_item_id=data["line_item_id"],
                alternative_index=data["alternative_index"],
            )
        except DOMAIN_ERRORS as exc:
            return domain_error_response(exc)
        return self._respond(quote)

    # -------------------------
    # owner workflow
    # -------------------------
    @extend_schema(tags=["quotes"], request=None, responses={200: QuoteSerializer})
    @action(detail=True, methods=["post"], url_path="mark-sent")
    def mark_sent(self, request, pk=None):
        try:
            quote = quote_service.mark_sent(quote=self.get_object(), user=request.user)
        except DOMAIN_ERRORS as exc:
            return domain_error_response(exc)
        return self._respond(quote)

    @extend_schema(tags=["quotes"], request=None, responses={200: QuoteSerializer})
    @action(detail=True, methods=["post"])
    def submit(self, request, pk=None):
        try:
            quote = quote_service.submit_buy_request(quote=self.get_object(), user=request.user)
        except DOMAIN_ERRORS as exc:
            return domain_error_response(exc)
        return self._respond(quote)

    @extend_schema(tags=["quotes"], request=None, responses={200: QuoteSerializer})
    @action(detail=True, methods=["post"], url_path="request-payment")
    def request_payment(self, request, pk=None):
        try:
            quote = quote_service.request_payment(quote=self.get_object(), user=request.user)
        except DOMAIN_ERRORS as exc:
            return domain_error_response(exc)
        return self._respond(quote)

    @extend_schema(tags=["quotes"], request=PurchaseOrderSerializer, responses={200: QuoteSerializer})
    @action(detail=True, methods=["post"], url_path="submit-po")
    def submit_po(self, request, pk=None):
        data = self._command(PurchaseOrderSerializer)
        try:
            quote = quote_service.submit_po(quote=self.get_object(), user=request.user, po_number=data["po_number"])
        except DOMAIN_ERRORS as exc:
            return domain_error_response(exc)
        return self._respond(quote)

    # -------------------------
    # admin workflow
    # -------------------------
    @extend_schema(tags=["quotes"], request=None, responses={200: QuoteSerializer})
    @action(detail=True, methods=["post"], url_path="start-review")
    def start_review(self, request, pk=None):
        if not self.is_admin:
            return _forbidden()
        try:
            quote = quote_service.start_review(quote=self.get_object(), user=request.user)
        except DOMAIN_ERRORS as exc:
            return domain_error_response(exc)
        return self._respond(quote)

    @extend_schema(tags=["quotes"], request=ReasonSerializer, responses={200: QuoteSerializer})
    @action(detail=True, methods=["post"], url_path="request-revision")
    def request_revision(self, request, pk=None):
        if not self.is_admin:
            return _forbidden()
        data = self._command(ReasonSerializer)
        try:
            quote = quote_service.request_revision(quote=self.get_object(), user=request.user, reason=data["reason"])
        except DOMAIN_ERRORS as exc:
            return domain_error_response(exc)
        return self._respond(quote)

    @extend_schema(tags=["quotes"], request=ConfirmQuoteSerializer, responses={200: QuoteSerializer})
    @action(detail=True, methods=["post"])
    def confirm(self, request, pk=None):
        if not self.is_admin:
            return _forbidden()
        data = self._command(ConfirmQuoteSerializer)
        try:
            quote = quote_service.confirm_quote(
                quote=self.get_object(),
                user=request.user,
                delivery_lead_time=data["delivery_lead_time"],
                notes=data.get("notes", ""),
                adjustments=data.get("adjustments", []),
            )
        except DOMAIN_ERRORS as exc:
            return domain_error_response(exc)
        return self._respond(quote)

    @extend_schema(tags=["quotes"], request=PaymentSerializer, responses={200: QuoteSerializer})
    @action(detail=True, methods=["post"], url_path="mark-paid")
    def mark_paid(self, request, pk=None):
        if not self.is_admin:
            return _forbidden()
        data = self._command(PaymentSerializer)
        try:
            quote = quote_service.mark_paid(
                quote=self.get_object(),
                user=request.user,
                reference=data.get("reference", ""),
            )
        except DOMAIN_ERRORS as exc:
            return domain_error_response(exc)
        return self._respond(quote)

    @extend_schema(tags=["quotes"], request=None, responses={200: QuoteSerializer})
    @action(detail=True, methods=["post"], url_path="confirm-po")
    def confirm_po(self, request, pk=None):
        if not self.is_admin:
            return _forbidden()
        try:
            quote = quote_service.confirm_po(quote=self.get_object(), user=request.user)
        except DOMAIN_ERRORS as exc:
            return domain_error_response(exc)
        return self._respond(quote)

    @extend_schema(tags=["quotes"], request=None, responses={200: QuoteSerializer})
    @action(detail=True, methods=["post"], url_path="mark-delivered")
    def mark_delivered(self, request, pk=None):
        if not self.is_admin:
            return _forbidden()
        try:
            quote = quote_service.mark_delivered(quote=self.get_object(), user=request.user)
        except DOMAIN_ERRORS as exc:
            return domain_error_response(exc)
        return self._respond(quote)

    # -------------------------
    # pricing / history
    # -------------------------
    @extend_schema(tags=["quotes"], responses={200: dict})
    @action(detail=True, methods=["get"], url_path="b2b-breakdown")
    def b2b_breakdown(self, request, pk=None):
        try:
            result = quote_service.b2b_breakdown(self.get_object())
        except PricingError as exc:
            return domain_error_response(exc)
        return Response(result)

    @extend_schema(tags=["quotes"], request=B2BCalculatorSerializer, responses={200: dict})
    @action(detail=False, methods=["post"], url_path="b2b-calculator")
    def b2b_calculator(self, request):
        data = self._command(B2BCalculatorSerializer)
        try:
            result = calculate_b2b_quote(**data)
        except PricingError as exc:
            return domain_error_response(exc)
        return Response(result)

    @extend_schema(tags=["quotes"], responses=QuoteActivityLogSerializer(many=True))
    @action(detail=True, methods=["get"])
    def activity(self, request, pk=None):
        return Response(QuoteActivityLogSerializer(self.get_object().activity_logs.all(), many=True).data)
