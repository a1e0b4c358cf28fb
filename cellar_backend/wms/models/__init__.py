from .cycle_count import CycleCount, CycleCountItem
from .dispatch import DispatchBatch, DispatchBatchOrder
from .location import Location
from .movement import StockMovement
from .pick_list import PickList, PickListItem
from .reservation import StockReservation
from .stock import Stock

__all__ = [
    "Location",
    "Stock",
    "StockReservation",
    "StockMovement",
    "PickList",
    "PickListItem",
    "DispatchBatch",
    "DispatchBatchOrder",
    "CycleCount",
    "CycleCountItem",
]
