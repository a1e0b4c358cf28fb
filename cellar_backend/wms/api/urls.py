# wms/api/urls.py

from django.urls import include, path
from rest_framework.routers import DefaultRouter

from wms.api.views import (
    AdjustView,
    CycleCountViewSet,
    DispatchBatchViewSet,
    LocationViewSet,
    OwnershipTransferView,
    PickListViewSet,
    ReceiveView,
    StockMovementViewSet,
    StockReservationViewSet,
    StockViewSet,
    TransferView,
)

router = DefaultRouter()
router.register(r"locations", LocationViewSet, basename="wms-locations")
router.register(r"stock", StockViewSet, basename="wms-stock")
router.register(r"movements", StockMovementViewSet, basename="wms-movements")
router.register(r"reservations", StockReservationViewSet, basename="wms-reservations")
router.register(r"pick-lists", PickListViewSet, basename="wms-pick-lists")
router.register(r"cycle-counts", CycleCountViewSet, basename="wms-cycle-counts")
router.register(r"dispatch-batches", DispatchBatchViewSet, basename="wms-dispatch-batches")

urlpatterns = [
    # explicit routes BEFORE router URLs
    path("transfer/", TransferView.as_view(), name="wms-transfer"),
    path("transfer-ownership/", OwnershipTransferView.as_view(), name="wms-transfer-ownership"),
    path("receive/", ReceiveView.as_view(), name="wms-receive"),
    path("adjust/", AdjustView.as_view(), name="wms-adjust"),
    path("", include(router.urls)),
]
