# wms/api/views.py

"""
======================================================
PATH: wms/api/views.py
======================================================
WAREHOUSE ENDPOINTS

Reads need wms.view. Writes need wms.operate, except dispatch batches which
need wms.dispatch. Quick dispatch needs both. All stock changes go through
wms.services.
======================================================
"""

from django.contrib.auth import get_user_model
from django.core.exceptions import ValidationError as DjangoValidationError
from django.db.models import Q
from django.shortcuts import get_object_or_404
from drf_spectacular.utils import extend_schema
from rest_framework import mixins, status, viewsets
from rest_framework.decorators import action
from rest_framework.generics import GenericAPIView
from rest_framework.permissions import SAFE_METHODS, IsAuthenticated
from rest_framework.response import Response

from logistics.models import Shipment
from orders.services.order_service import OrderServiceError
from orders.services.order_lifecycle import OrderLifecycleError
from partners.models import Partner
from permissions.roles import (
    CAP_WMS_DISPATCH,
    CAP_WMS_OPERATE,
    CAP_WMS_VIEW,
    HasAllCapabilities,
    HasCapability,
)
from wms.api.serializers import (
    AdjustSerializer,
    BatchOrderRemoveSerializer,
    BatchOrdersSerializer,
    BatchStatusSerializer,
    CycleCountCreateSerializer,
    CycleCountSerializer,
    DispatchBatchCreateSerializer,
    DispatchBatchSerializer,
    LocationSerializer,
    OwnershipTransferSerializer,
    PickListCreateSerializer,
    PickListSerializer,
    PickSerializer,
    PickListItemSerializer,
    QuickDispatchSerializer,
    ReceiveSerializer,
    ReconcileSerializer,
    RecordCountsSerializer,
    StockMovementSerializer,
    StockReservationSerializer,
    StockSerializer,
    TransferSerializer,
)
from wms.models import (
    CycleCount,
    DispatchBatch,
    Location,
    PickList,
    Stock,
    StockMovement,
    StockReservation,
)
from wms.services import cycle_counts, dispatch, picking, transfers
from wms.services.exceptions import AlreadyPickedError, LocationError, StockError
from wms.services.reports import get_expiring_stock, get_stock_overview

WMS_ERRORS = (StockError, OrderServiceError, OrderLifecycleError, DjangoValidationError)


def wms_error_response(exc: Exception) -> Response:
    if isinstance(exc, AlreadyPickedError):
        code = status.HTTP_409_CONFLICT
    elif isinstance(exc, LocationError):
        code = status.HTTP_404_NOT_FOUND
    else:
        code = status.HTTP_400_BAD_REQUEST

    if isinstance(exc, DjangoValidationError):
        detail = exc.message_dict if hasattr(exc, "error_dict") else exc.messages
    else:
        detail = str(exc)
    return Response({"detail": detail}, status=code)


def _as_bool(value) -> bool:
    return str(value or "").strip().lower() in {"1", "true", "yes"}


class WmsCapabilityMixin:
    """
    Safe methods → wms.view
    Everything else → write_capability (wms.operate unless overridden)
    """

    permission_classes = [IsAuthenticated, HasCapability]
    write_capability = CAP_WMS_OPERATE

    @property
    def required_capability(self):
        if self.request.method in SAFE_METHODS:
            return CAP_WMS_VIEW
        return self.write_capability


# ======================================================
# LOCATIONS
# ======================================================


class LocationViewSet(WmsCapabilityMixin, viewsets.ModelViewSet):
    """
    Filters:
    - ?location_type=rack|floor|receiving|shipping|bonded
    - ?is_active=true|false
    """

    serializer_class = LocationSerializer
    queryset = Location.objects.all().order_by("location_code")
    filterset_fields = ["location_type", "is_active"]
    http_method_names = ["get", "post", "patch", "head", "options"]

    @extend_schema(tags=["wms"], responses=StockSerializer(many=True))
    @action(detail=True, methods=["get"])
    def stock(self, request, pk=None):
        location = self.get_object()
        rows = location.stock.select_related("owner").filter(quantity_cases__gt=0).order_by("lwin18")
        return Response(StockSerializer(rows, many=True).data)


# ======================================================
# STOCK
# ======================================================


class StockViewSet(WmsCapabilityMixin, viewsets.ReadOnlyModelViewSet):
    """
    Filters:
    - ?location=<uuid>, ?owner=<uuid>, ?lwin18=<code>
    - ?q=<text> (product, producer or LWIN)
    - ?available_only=true
    """

    serializer_class = StockSerializer
    filterset_fields = ["location", "owner", "lwin18", "sales_arrangement", "shipment"]

    def get_queryset(self):
        qs = Stock.objects.select_related("location", "owner").order_by("lwin18", "location__location_code")

        q = (self.request.query_params.get("q") or "").strip()
        if q:
            qs = qs.filter(
                Q(product_name__icontains=q) | Q(producer__icontains=q) | Q(lwin18__startswith=q)
            )
        if _as_bool(self.request.query_params.get("available_only")):
            qs = qs.filter(available_cases__gt=0)
        return qs

    @extend_schema(tags=["wms"], responses=StockSerializer(many=True))
    @action(detail=False, methods=["get"])
    def expiring(self, request):
        days = request.query_params.get("days")
        try:
            rows = get_expiring_stock(int(days) if days else None)
        except ValueError:
            return Response({"detail": "days must be a whole number"}, status=status.HTTP_400_BAD_REQUEST)
        return Response(StockSerializer(rows, many=True).data)

    @extend_schema(tags=["wms"], responses={200: dict})
    @action(detail=False, methods=["get"])
    def overview(self, request):
        return Response(get_stock_overview())


class StockMovementViewSet(WmsCapabilityMixin, viewsets.ReadOnlyModelViewSet):
    serializer_class = StockMovementSerializer
    filterset_fields = ["movement_type", "lwin18", "order_type", "order_id"]
    queryset = StockMovement.objects.select_related("from_location", "to_location").order_by("-performed_at")


class StockReservationViewSet(WmsCapabilityMixin, viewsets.ReadOnlyModelViewSet):
    serializer_class = StockReservationSerializer
    filterset_fields = ["order_type", "order_id", "status", "lwin18"]
    queryset = StockReservation.objects.all().order_by("-created_at")


# ======================================================
# STOCK OPERATIONS
# ======================================================


class TransferView(WmsCapabilityMixin, GenericAPIView):
    serializer_class = TransferSerializer

    @extend_schema(tags=["wms"], request=TransferSerializer, responses={200: StockSerializer})
    def post(self, request):
        s = self.get_serializer(data=request.data)
        s.is_valid(raise_exception=True)
        data = s.validated_data

        stock = get_object_or_404(Stock, pk=data["stock_id"])
        to_location = get_object_or_404(Location, pk=data["to_location_id"])
        move = transfers.putaway if data["putaway"] else transfers.transfer_stock

        try:
            target = move(
                stock=stock,
                to_location=to_location,
                quantity=data["quantity_cases"],
                user=request.user,
                notes=data.get("notes", ""),
            )
        except WMS_ERRORS as exc:
            return wms_error_response(exc)
        return Response(StockSerializer(target).data)


class OwnershipTransferView(WmsCapabilityMixin, GenericAPIView):
    serializer_class = OwnershipTransferSerializer

    @extend_schema(tags=["wms"], request=OwnershipTransferSerializer, responses={200: StockSerializer})
    def post(self, request):
        s = self.get_serializer(data=request.data)
        s.is_valid(raise_exception=True)
        data = s.validated_data

        stock = get_object_or_404(Stock, pk=data["stock_id"])
        new_owner = get_object_or_404(Partner, pk=data["new_owner_id"])

        try:
            target = transfers.transfer_ownership(
                stock=stock,
                new_owner=new_owner,
                quantity=data.get("quantity_cases"),
                sales_arrangement=data.get("sales_arrangement"),
                commission_percent=data.get("commission_percent"),
                user=request.user,
                notes=data.get("notes", ""),
            )
        except WMS_ERRORS as exc:
            return wms_error_response(exc)
        return Response(StockSerializer(target).data)


class ReceiveView(WmsCapabilityMixin, GenericAPIView):
    serializer_class = ReceiveSerializer

    @extend_schema(tags=["wms"], request=ReceiveSerializer, responses={201: StockSerializer(many=True)})
    def post(self, request):
        s = self.get_serializer(data=request.data)
        s.is_valid(raise_exception=True)
        data = s.validated_data

        location = get_object_or_404(Location, pk=data["location_id"])
        owner = get_object_or_404(Partner, pk=data["owner_id"])
        shipment = None
        if data.get("shipment_id"):
            shipment = get_object_or_404(Shipment, pk=data["shipment_id"])

        try:
            rows = transfers.receive_stock(
                location=location,
                owner=owner,
                lines=data["lines"],
                shipment=shipment,
                user=request.user,
            )
        except WMS_ERRORS as exc:
            return wms_error_response(exc)
        return Response(StockSerializer(rows, many=True).data, status=status.HTTP_201_CREATED)


class AdjustView(WmsCapabilityMixin, GenericAPIView):
    serializer_class = AdjustSerializer

    @extend_schema(tags=["wms"], request=AdjustSerializer, responses={200: StockMovementSerializer})
    def post(self, request):
        s = self.get_serializer(data=request.data)
        s.is_valid(raise_exception=True)
        data = s.validated_data

        stock = get_object_or_404(Stock, pk=data["stock_id"])
        try:
            movement = cycle_counts.adjust_stock(
                stock=stock,
                new_quantity=data["new_quantity"],
                reason_code=data.get("reason_code", ""),
                notes=data.get("notes", ""),
                user=request.user,
            )
        except WMS_ERRORS as exc:
            return wms_error_response(exc)

        if movement is None:
            return Response({"detail": "Quantity unchanged"})
        return Response(StockMovementSerializer(movement).data)


# ======================================================
# PICK LISTS
# ======================================================


class PickListViewSet(WmsCapabilityMixin, mixins.CreateModelMixin, viewsets.ReadOnlyModelViewSet):
    serializer_class = PickListSerializer
    filterset_fields = ["status", "order_type", "order_id"]
    queryset = PickList.objects.prefetch_related("items").order_by("-created_at")

    @extend_schema(tags=["wms"], request=PickListCreateSerializer, responses={201: PickListSerializer})
    def create(self, request, *args, **kwargs):
        s = PickListCreateSerializer(data=request.data)
        s.is_valid(raise_exception=True)
        data = s.validated_data

        assigned_to = None
        if data.get("assigned_to"):
            assigned_to = get_object_or_404(get_user_model(), pk=data["assigned_to"])

        try:
            pick_list = picking.create_pick_list(
                order_type=data["order_type"],
                order_id=data["order_id"],
                order_number=data.get("order_number", ""),
                items=data["items"],
                assigned_to=assigned_to,
                notes=data.get("notes", ""),
            )
        except WMS_ERRORS as exc:
            return wms_error_response(exc)
        return Response(PickListSerializer(pick_list).data, status=status.HTTP_201_CREATED)

    @extend_schema(tags=["wms"], request=PickSerializer, responses={200: PickListItemSerializer})
    @action(detail=True, methods=["post"])
    def pick(self, request, pk=None):
        pick_list = self.get_object()
        s = PickSerializer(data=request.data)
        s.is_valid(raise_exception=True)
        data = s.validated_data

        item = get_object_or_404(pick_list.items.all(), pk=data["item_id"])
        try:
            item = picking.pick_item(
                pick_list_item=item,
                location_id=data["location_id"],
                picked_quantity=data.get("picked_quantity"),
                user=request.user,
            )
        except WMS_ERRORS as exc:
            return wms_error_response(exc)
        return Response(PickListItemSerializer(item).data)

    @extend_schema(tags=["wms"], request=None, responses={200: PickListSerializer})
    @action(detail=True, methods=["post"])
    def complete(self, request, pk=None):
        try:
            pick_list = picking.complete_pick_list(pick_list=self.get_object(), user=request.user)
        except WMS_ERRORS as exc:
            return wms_error_response(exc)
        return Response(PickListSerializer(pick_list).data)

    @extend_schema(tags=["wms"], request=None, responses={200: PickListSerializer})
    @action(detail=True, methods=["post"])
    def cancel(self, request, pk=None):
        try:
            pick_list = picking.cancel_pick_list(pick_list=self.get_object())
        except WMS_ERRORS as exc:
            return wms_error_response(exc)
        return Response(PickListSerializer(pick_list).data)


# ======================================================
# CYCLE COUNTS
# ======================================================


class CycleCountViewSet(WmsCapabilityMixin, mixins.CreateModelMixin, viewsets.ReadOnlyModelViewSet):
    serializer_class = CycleCountSerializer
    filterset_fields = ["status", "location"]
    queryset = CycleCount.objects.select_related("location").prefetch_related("items").order_by("-created_at")

    @extend_schema(tags=["wms"], request=CycleCountCreateSerializer, responses={201: CycleCountSerializer})
    def create(self, request, *args, **kwargs):
        s = CycleCountCreateSerializer(data=request.data)
        s.is_valid(raise_exception=True)
        location = get_object_or_404(Location, pk=s.validated_data["location_id"])
        try:
            count = cycle_counts.create_cycle_count(
                location=location,
                user=request.user,
                notes=s.validated_data.get("notes", ""),
            )
        except WMS_ERRORS as exc:
            return wms_error_response(exc)
        return Response(CycleCountSerializer(count).data, status=status.HTTP_201_CREATED)

    @extend_schema(tags=["wms"], request=RecordCountsSerializer, responses={200: CycleCountSerializer})
    @action(detail=True, methods=["post"])
    def counts(self, request, pk=None):
        s = RecordCountsSerializer(data=request.data)
        s.is_valid(raise_exception=True)
        try:
            count = cycle_counts.record_counts(
                cycle_count=self.get_object(),
                counts=s.validated_data["counts"],
                user=request.user,
            )
        except WMS_ERRORS as exc:
            return wms_error_response(exc)
        return Response(CycleCountSerializer(count).data)

    @extend_schema(tags=["wms"], request=None, responses={200: CycleCountSerializer})
    @action(detail=True, methods=["post"])
    def complete(self, request, pk=None):
        try:
            count = cycle_counts.complete_cycle_count(cycle_count=self.get_object())
        except WMS_ERRORS as exc:
            return wms_error_response(exc)
        return Response(CycleCountSerializer(count).data)

    @extend_schema(tags=["wms"], request=ReconcileSerializer, responses={200: dict})
    @action(detail=True, methods=["post"])
    def reconcile(self, request, pk=None):
        s = ReconcileSerializer(data=request.data)
        s.is_valid(raise_exception=True)
        try:
            result = cycle_counts.reconcile_cycle_count(
                cycle_count=self.get_object(),
                approvals=s.validated_data.get("approvals"),
                user=request.user,
            )
        except WMS_ERRORS as exc:
            return wms_error_response(exc)
        return Response(
            {
                "cycle_count": CycleCountSerializer(result["cycle_count"]).data,
                "adjusted": result["adjusted"],
            }
        )


# ======================================================
# DISPATCH
# ======================================================


class DispatchBatchViewSet(WmsCapabilityMixin, mixins.CreateModelMixin, viewsets.ReadOnlyModelViewSet):
    """
    Filters:
    - ?status=draft|picking|staged|dispatched|delivered
    - ?distributor=<uuid>
    """

    serializer_class = DispatchBatchSerializer
    write_capability = CAP_WMS_DISPATCH
    # quick dispatch also consumes stock
    required_all_capabilities = {CAP_WMS_OPERATE, CAP_WMS_DISPATCH}
    filterset_fields = ["status", "distributor"]
    queryset = DispatchBatch.objects.select_related("distributor").prefetch_related("orders").order_by("-created_at")

    def _distributor(self, distributor_id):
        return get_object_or_404(Partner, pk=distributor_id, type=Partner.TYPE_DISTRIBUTOR)

    @extend_schema(tags=["wms"], request=DispatchBatchCreateSerializer, responses={201: DispatchBatchSerializer})
    def create(self, request, *args, **kwargs):
        s = DispatchBatchCreateSerializer(data=request.data)
        s.is_valid(raise_exception=True)
        try:
            batch = dispatch.create_dispatch_batch(
                distributor=self._distributor(s.validated_data["distributor_id"]),
                notes=s.validated_data.get("notes", ""),
                user=request.user,
            )
        except WMS_ERRORS as exc:
            return wms_error_response(exc)
        return Response(DispatchBatchSerializer(batch).data, status=status.HTTP_201_CREATED)

    @extend_schema(tags=["wms"], request=BatchOrdersSerializer, responses={200: DispatchBatchSerializer})
    @action(detail=True, methods=["post"], url_path="add-orders")
    def add_orders(self, request, pk=None):
        s = BatchOrdersSerializer(data=request.data)
        s.is_valid(raise_exception=True)
        try:
            batch = dispatch.add_orders_to_batch(
                batch=self.get_object(),
                order_ids=s.validated_data["order_ids"],
                user=request.user,
            )
        except WMS_ERRORS as exc:
            return wms_error_response(exc)
        return Response(DispatchBatchSerializer(batch).data)

    @extend_schema(tags=["wms"], request=BatchOrderRemoveSerializer, responses={200: DispatchBatchSerializer})
    @action(detail=True, methods=["post"], url_path="remove-order")
    def remove_order(self, request, pk=None):
        s = BatchOrderRemoveSerializer(data=request.data)
        s.is_valid(raise_exception=True)
        try:
            batch = dispatch.remove_order_from_batch(
                batch=self.get_object(),
                order_id=s.validated_data["order_id"],
            )
        except WMS_ERRORS as exc:
            return wms_error_response(exc)
        return Response(DispatchBatchSerializer(batch).data)

    @extend_schema(tags=["wms"], request=BatchStatusSerializer, responses={200: DispatchBatchSerializer})
    @action(detail=True, methods=["post"], url_path="status")
    def set_status(self, request, pk=None):
        s = BatchStatusSerializer(data=request.data)
        s.is_valid(raise_exception=True)
        try:
            batch = dispatch.update_batch_status(
                batch=self.get_object(),
                status=s.validated_data["status"],
                user=request.user,
            )
        except WMS_ERRORS as exc:
            return wms_error_response(exc)
        return Response(DispatchBatchSerializer(batch).data)

    @extend_schema(tags=["wms"], request=QuickDispatchSerializer, responses={201: dict})
    @action(
        detail=False,
        methods=["post"],
        url_path="quick-dispatch",
        permission_classes=[IsAuthenticated, HasAllCapabilities],
    )
    def quick_dispatch(self, request):
        s = QuickDispatchSerializer(data=request.data)
        s.is_valid(raise_exception=True)
        try:
            result = dispatch.quick_dispatch(
                order_ids=s.validated_data["order_ids"],
                distributor=self._distributor(s.validated_data["distributor_id"]),
                notes=s.validated_data.get("notes", ""),
                user=request.user,
            )
        except WMS_ERRORS as exc:
            return wms_error_response(exc)
        return Response(
            {
                "batch": DispatchBatchSerializer(result["batch"]).data,
                "short": result["short"],
            },
            status=status.HTTP_201_CREATED,
        )
