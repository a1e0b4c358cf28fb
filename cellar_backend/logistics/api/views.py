# logistics/api/views.py

"""
SHIPMENT ENDPOINTS

- logistics.edit → every shipment, all writes
- logistics.view → read-only; partners see only their own shipments,
  warehouse staff (wms.view) see every shipment they may receive against
"""

from django.core.exceptions import ValidationError as DjangoValidationError
from django.shortcuts import get_object_or_404
from drf_spectacular.utils import extend_schema
from rest_framework import status, viewsets
from rest_framework.decorators import action
from rest_framework.permissions import SAFE_METHODS, IsAuthenticated
from rest_framework.response import Response

from logistics.api.serializers import (
    ShipmentActivityLogSerializer,
    ShipmentItemSerializer,
    ShipmentSerializer,
    ShipmentStatusSerializer,
)
from logistics.models import Shipment
from logistics.services import shipments as shipment_service
from logistics.services.shipments import ShipmentError
from partners.services.membership import get_partner_for_user
from permissions.roles import (
    CAP_LOGISTICS_EDIT,
    CAP_LOGISTICS_VIEW,
    CAP_WMS_VIEW,
    HasCapability,
    user_has_capability,
)
from pricing.services.pricing_engine import PricingError


def _error(exc) -> Response:
    if isinstance(exc, DjangoValidationError):
        detail = exc.message_dict if hasattr(exc, "error_dict") else exc.messages
    else:
        detail = str(exc)
    return Response({"detail": detail}, status=status.HTTP_400_BAD_REQUEST)


class ShipmentViewSet(viewsets.ModelViewSet):
    """
    Filters:
    - ?status=<status>
    - ?transport_mode=air|sea_fcl|sea_lcl|road
    - ?partner=<uuid>
    """

    serializer_class = ShipmentSerializer
    permission_classes = [IsAuthenticated, HasCapability]
    filterset_fields = ["status", "transport_mode", "partner"]
    http_method_names = ["get", "post", "patch", "delete", "head", "options"]

    @property
    def required_capability(self):
        if self.request.method in SAFE_METHODS:
            return CAP_LOGISTICS_VIEW
        return CAP_LOGISTICS_EDIT

    def get_queryset(self):
        qs = Shipment.objects.select_related("partner").prefetch_related("items").order_by("-created_at")
        user = self.request.user
        if user_has_capability(user, CAP_LOGISTICS_EDIT) or user_has_capability(user, CAP_WMS_VIEW):
            return qs
        partner = get_partner_for_user(user)
        return qs.filter(partner=partner) if partner else qs.none()

    def create(self, request, *args, **kwargs):
        s = self.get_serializer(data=request.data)
        s.is_valid(raise_exception=True)
        shipment = shipment_service.create_shipment(data=s.validated_data, user=request.user)
        return Response(self.get_serializer(shipment).data, status=status.HTTP_201_CREATED)

    def partial_update(self, request, *args, **kwargs):
        s = self.get_serializer(self.get_object(), data=request.data, partial=True)
        s.is_valid(raise_exception=True)
        try:
            shipment = shipment_service.update_shipment(
                shipment=s.instance,
                data=s.validated_data,
                user=request.user,
            )
        except ShipmentError as exc:
            return _error(exc)
        return Response(self.get_serializer(shipment).data)

    def destroy(self, request, *args, **kwargs):
        shipment = self.get_object()
        if shipment.status != Shipment.STATUS_DRAFT:
            return Response(
                {"detail": "Only draft shipments can be deleted"},
                status=status.HTTP_400_BAD_REQUEST,
            )
        shipment.delete()
        return Response(status=status.HTTP_204_NO_CONTENT)

    # -------------------------
    # items
    # -------------------------
    @extend_schema(tags=["logistics"], request=ShipmentItemSerializer, responses={201: ShipmentItemSerializer})
    @action(detail=True, methods=["post"], url_path="items")
    def add_item(self, request, pk=None):
        shipment = self.get_object()
        s = ShipmentItemSerializer(data=request.data)
        s.is_valid(raise_exception=True)
        try:
            item = shipment_service.add_item(shipment=shipment, data=s.validated_data, user=request.user)
        except (ShipmentError, DjangoValidationError) as exc:
            return _error(exc)
        return Response(ShipmentItemSerializer(item).data, status=status.HTTP_201_CREATED)

    @extend_schema(tags=["logistics"], request=None)
    @action(detail=True, methods=["delete"], url_path=r"items/(?P<item_id>[^/.]+)")
    def remove_item(self, request, pk=None, item_id=None):
        shipment = self.get_object()
        get_object_or_404(shipment.items.all(), pk=item_id)
        try:
            shipment_service.remove_item(shipment=shipment, item_id=item_id, user=request.user)
        except ShipmentError as exc:
            return _error(exc)
        return Response(status=status.HTTP_204_NO_CONTENT)

    # -------------------------
    # landed cost / status / history
    # -------------------------
    @extend_schema(tags=["logistics"], request=None, responses={200: dict})
    @action(detail=True, methods=["post"], url_path="landed-cost")
    def landed_cost(self, request, pk=None):
        try:
            result = shipment_service.recalculate_shipment(shipment=self.get_object())
        except PricingError as exc:
            return _error(exc)
        return Response(result)

    @extend_schema(tags=["logistics"], request=ShipmentStatusSerializer, responses={200: ShipmentSerializer})
    @action(detail=True, methods=["post"], url_path="status")
    def set_status(self, request, pk=None):
        s = ShipmentStatusSerializer(data=request.data)
        s.is_valid(raise_exception=True)
        try:
            shipment = shipment_service.update_shipment_status(
                shipment=self.get_object(),
                status=s.validated_data["status"],
                user=request.user,
                notes=s.validated_data.get("notes", ""),
            )
        except ShipmentError as exc:
            return _error(exc)
        return Response(self.get_serializer(shipment).data)

    @extend_schema(tags=["logistics"], responses=ShipmentActivityLogSerializer(many=True))
    @action(detail=True, methods=["get"])
    def activity(self, request, pk=None):
        shipment = self.get_object()
        return Response(ShipmentActivityLogSerializer(shipment.activity_logs.all(), many=True).data)
