# sourcing/api/views.py

"""
======================================================
PATH: sourcing/api/views.py
======================================================
RFQ ENDPOINTS

Admin (sourcing.admin):
- /rfqs/ ... build, send, select, finalize
- /select-quote/, /lwin-search/

Partner (sourcing.quote):
- /my-rfqs/, /my-rfqs/<rfq_id>/, /submit-quotes/
======================================================
"""

from django.shortcuts import get_object_or_404
from drf_spectacular.utils import extend_schema
from rest_framework import mixins, status, viewsets
from rest_framework.decorators import action
from rest_framework.generics import GenericAPIView
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response

from partners.models import Partner
from partners.services.membership import get_partner_for_user
from permissions.roles import CAP_SOURCING_ADMIN, CAP_SOURCING_QUOTE, HasCapability
from pricing.services.pricing_engine import PricingError
from sourcing.api.serializers import (
    AdjustPriceSerializer,
    AutoSelectSerializer,
    LwinWineSerializer,
    MarkItemSerializer,
    PartnerRfqItemSerializer,
    PartnerRfqSerializer,
    ProfitSerializer,
    RfqCreateSerializer,
    RfqItemSerializer,
    RfqItemsSerializer,
    RfqPartnerSerializer,
    RfqPartnersSerializer,
    RfqSerializer,
    SelectQuoteSerializer,
    SubmitQuotesSerializer,
)
from sourcing.models import Rfq, RfqItem, RfqQuote
from sourcing.services import rfq_service
from sourcing.services.lwin import match_lwin
from sourcing.services.rfq_service import RfqError, RfqPermissionError


def rfq_error_response(exc: Exception) -> Response:
    code = status.HTTP_403_FORBIDDEN if isinstance(exc, RfqPermissionError) else status.HTTP_400_BAD_REQUEST
    return Response({"detail": str(exc)}, status=code)


# ======================================================
# ADMIN
# ======================================================


class RfqViewSet(mixins.CreateModelMixin, viewsets.ReadOnlyModelViewSet):
    """
    Filters:
    - ?status=<status>
    """

    serializer_class = RfqSerializer
    permission_classes = [IsAuthenticated, HasCapability]
    required_capability = CAP_SOURCING_ADMIN
    filterset_fields = ["status"]
    queryset = Rfq.objects.prefetch_related("items__quotes__partner", "partners__partner").order_by("-created_at")

    def _respond(self, rfq, http_status=status.HTTP_200_OK):
        return Response(RfqSerializer(self.get_queryset().get(pk=rfq.pk)).data, status=http_status)

    @extend_schema(tags=["sourcing"], request=RfqCreateSerializer, responses={201: RfqSerializer})
    def create(self, request, *args, **kwargs):
        s = RfqCreateSerializer(data=request.data)
        s.is_valid(raise_exception=True)
        data = s.validated_data
        try:
            rfq = rfq_service.create_rfq(
                name=data["name"],
                user=request.user,
                response_deadline=data.get("response_deadline"),
                distributor_name=data.get("distributor_name", ""),
                notes=data.get("notes", ""),
                items=data.get("items"),
            )
        except RfqError as exc:
            return rfq_error_response(exc)
        return self._respond(rfq, status.HTTP_201_CREATED)

    # -------------------------
    # build
    # -------------------------
    @extend_schema(tags=["sourcing"], request=RfqItemsSerializer, responses={201: RfqItemSerializer(many=True)})
    @action(detail=True, methods=["post"])
    def items(self, request, pk=None):
        s = RfqItemsSerializer(data=request.data)
        s.is_valid(raise_exception=True)
        try:
            created = rfq_service.add_items(rfq=self.get_object(), items=s.validated_data["items"])
        except RfqError as exc:
            return rfq_error_response(exc)
        return Response(RfqItemSerializer(created, many=True).data, status=status.HTTP_201_CREATED)

    @extend_schema(tags=["sourcing"], request=None)
    @action(detail=True, methods=["delete"], url_path=r"items/(?P<item_id>[^/.]+)")
    def remove_item(self, request, pk=None, item_id=None):
        try:
            rfq_service.remove_item(rfq=self.get_object(), item_id=item_id)
        except RfqError as exc:
            return rfq_error_response(exc)
        return Response(status=status.HTTP_204_NO_CONTENT)

    @extend_schema(tags=["sourcing"], request=RfqPartnersSerializer, responses={201: RfqPartnerSerializer(many=True)})
    @action(detail=True, methods=["post"])
    def partners(self, request, pk=None):
        s = RfqPartnersSerializer(data=request.data)
        s.is_valid(raise_exception=True)
        try:
            rows = rfq_service.add_partners(rfq=self.get_object(), partner_ids=s.validated_data["partner_ids"])
        except RfqError as exc:
            return rfq_error_response(exc)
        return Response(RfqPartnerSerializer(rows, many=True).data, status=status.HTTP_201_CREATED)

    @extend_schema(tags=["sourcing"], request=None, responses={200: RfqSerializer})
    @action(detail=True, methods=["post"])
    def send(self, request, pk=None):
        try:
            rfq = rfq_service.send_to_partners(rfq=self.get_object(), user=request.user)
        except RfqError as exc:
            return rfq_error_response(exc)
        return self._respond(rfq)

    @extend_schema(tags=["sourcing"], request=None, responses={200: RfqSerializer})
    @action(detail=True, methods=["post"])
    def cancel(self, request, pk=None):
        try:
            rfq = rfq_service.cancel_rfq(rfq=self.get_object())
        except RfqError as exc:
            return rfq_error_response(exc)
        return self._respond(rfq)

    # -------------------------
    # selection
    # -------------------------
    @extend_schema(tags=["sourcing"], request=AutoSelectSerializer, responses={200: dict})
    @action(detail=True, methods=["post"], url_path="auto-select")
    def auto_select(self, request, pk=None):
        s = AutoSelectSerializer(data=request.data)
        s.is_valid(raise_exception=True)
        try:
            result = rfq_service.auto_select_best(
                rfq=self.get_object(),
                strategy=s.validated_data["strategy"],
                partner_id=s.validated_data.get("partner_id"),
                user=request.user,
            )
        except RfqError as exc:
            return rfq_error_response(exc)
        return Response(result)

    @extend_schema(tags=["sourcing"], request=MarkItemSerializer, responses={200: RfqItemSerializer})
    @action(detail=True, methods=["post"], url_path=r"items/(?P<item_id>[^/.]+)/mark")
    def mark_item(self, request, pk=None, item_id=None):
        item = get_object_or_404(RfqItem, pk=item_id, rfq=self.get_object())
        s = MarkItemSerializer(data=request.data)
        s.is_valid(raise_exception=True)
        try:
            item = rfq_service.mark_item(item=item, status=s.validated_data["status"], user=request.user)
        except RfqError as exc:
            return rfq_error_response(exc)
        return Response(RfqItemSerializer(item).data)

    @extend_schema(tags=["sourcing"], request=AdjustPriceSerializer, responses={200: RfqItemSerializer})
    @action(detail=True, methods=["post"], url_path=r"items/(?P<item_id>[^/.]+)/price")
    def adjust_price(self, request, pk=None, item_id=None):
        item = get_object_or_404(RfqItem, pk=item_id, rfq=self.get_object())
        s = AdjustPriceSerializer(data=request.data)
        s.is_valid(raise_exception=True)
        try:
            item = rfq_service.adjust_item_price(
                item=item,
                final_price_usd=s.validated_data["final_price_usd"],
                user=request.user,
            )
        except RfqError as exc:
            return rfq_error_response(exc)
        return Response(RfqItemSerializer(item).data)

    @extend_schema(tags=["sourcing"], request=None, responses={200: dict})
    @action(detail=True, methods=["post"])
    def finalize(self, request, pk=None):
        try:
            result = rfq_service.finalize_rfq(rfq=self.get_object(), user=request.user)
        except RfqError as exc:
            return rfq_error_response(exc)
        return Response(result)

    @extend_schema(tags=["sourcing"], request=ProfitSerializer, responses={200: dict})
    @action(detail=True, methods=["post"])
    def profit(self, request, pk=None):
        s = ProfitSerializer(data=request.data)
        s.is_valid(raise_exception=True)
        sell_prices = {str(k): v for k, v in s.validated_data["sell_prices"].items()}
        try:
            result = rfq_service.profit_analysis(rfq=self.get_object(), sell_prices=sell_prices)
        except PricingError as exc:
            return rfq_error_response(exc)
        return Response(result)


class SelectQuoteView(GenericAPIView):
    permission_classes = [IsAuthenticated, HasCapability]
    required_capability = CAP_SOURCING_ADMIN
    serializer_class = SelectQuoteSerializer

    @extend_schema(tags=["sourcing"], request=SelectQuoteSerializer, responses={200: RfqItemSerializer})
    def post(self, request):
        s = self.get_serializer(data=request.data)
        s.is_valid(raise_exception=True)
        item = get_object_or_404(RfqItem, pk=s.validated_data["item_id"])
        quote = get_object_or_404(RfqQuote, pk=s.validated_data["quote_id"])
        try:
            item = rfq_service.select_quote(item=item, quote=quote, user=request.user)
        except RfqError as exc:
            return rfq_error_response(exc)
        return Response(RfqItemSerializer(item).data)


class LwinSearchView(GenericAPIView):
    permission_classes = [IsAuthenticated, HasCapability]
    required_capability = CAP_SOURCING_ADMIN
    serializer_class = LwinWineSerializer

    @extend_schema(tags=["sourcing"], responses=LwinWineSerializer(many=True))
    def get(self, request):
        try:
            limit = int(request.query_params.get("limit") or 20)
        except ValueError:
            return Response({"detail": "limit must be a whole number"}, status=status.HTTP_400_BAD_REQUEST)
        rows = match_lwin(request.query_params.get("q", ""), limit=limit)
        return Response(LwinWineSerializer(rows, many=True).data)


# ======================================================
# PARTNER
# ======================================================


class _PartnerQuoteView(GenericAPIView):
    permission_classes = [IsAuthenticated, HasCapability]
    required_capability = CAP_SOURCING_QUOTE

    def _partner(self, request):
        return get_partner_for_user(request.user, Partner.TYPE_WINE_PARTNER)


class MyRfqsView(_PartnerQuoteView):
    serializer_class = PartnerRfqSerializer

    @extend_schema(tags=["sourcing"], responses=PartnerRfqSerializer(many=True))
    def get(self, request):
        partner = self._partner(request)
        if partner is None:
            return Response([])
        rows = rfq_service.list_partner_rfqs(partner=partner).prefetch_related("rfq__items")
        return Response(PartnerRfqSerializer(rows, many=True).data)


class MyRfqDetailView(_PartnerQuoteView):
    serializer_class = PartnerRfqSerializer

    @extend_schema(tags=["sourcing"], responses=PartnerRfqSerializer)
    def get(self, request, rfq_id):
        partner = self._partner(request)
        rfq = get_object_or_404(Rfq, pk=rfq_id)
        if partner is None:
            return Response({"detail": "This RFQ was not sent to you"}, status=status.HTTP_403_FORBIDDEN)
        try:
            assignment = rfq_service.mark_viewed(rfq=rfq, partner=partner)
        except RfqError as exc:
            return rfq_error_response(exc)

        data = PartnerRfqSerializer(assignment).data
        data["my_quotes"] = [
            {
                "item_id": str(q.item_id),
                "quote_type": q.quote_type,
                "cost_price_per_case_usd": q.cost_price_per_case_usd,
                "notes": q.notes,
            }
            for q in assignment.quotes.all()
        ]
        return Response(data)


class SubmitQuotesView(_PartnerQuoteView):
    serializer_class = SubmitQuotesSerializer

    @extend_schema(tags=["sourcing"], request=SubmitQuotesSerializer, responses={200: dict})
    def post(self, request):
        s = self.get_serializer(data=request.data)
        s.is_valid(raise_exception=True)
        data = s.validated_data

        partner = self._partner(request)
        if partner is None:
            return Response({"detail": "Only wine partners can submit quotes"}, status=status.HTTP_403_FORBIDDEN)
        rfq = get_object_or_404(Rfq, pk=data["rfq_id"])

        try:
            result = rfq_service.submit_quotes(
                partner=partner,
                rfq=rfq,
                quotes=data["quotes"],
                partner_notes=data.get("partner_notes", ""),
            )
        except RfqError as exc:
            return rfq_error_response(exc)

        return Response(
            {
                "rfq_number": result["rfq"].rfq_number,
                "status": result["rfq"].status,
                "quotes_submitted": len(result["quotes"]),
            }
        )
