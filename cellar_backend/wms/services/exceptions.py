# wms/services/exceptions.py

"""
WMS SERVICE ERRORS

Centralized domain errors for warehouse services.
"""


class StockError(Exception):
    """Base exception for all warehouse service failures."""


class InsufficientStockError(StockError):
    """Raised when a location or stock row cannot cover the requested cases."""


class LocationError(StockError):
    """Raised when a location is missing, inactive or not a valid destination."""


class PickError(StockError):
    """Raised when a pick list or pick line cannot be worked."""


class AlreadyPickedError(PickError):
    """Raised when a pick line has already been picked."""


class DispatchError(StockError):
    """Raised when a dispatch batch or an order in it cannot move forward."""


class CycleCountError(StockError):
    """Raised when a cycle count is in the wrong state for the operation."""
