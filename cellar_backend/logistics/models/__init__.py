from .activity_log import ShipmentActivityLog
from .shipment import Shipment
from .shipment_item import ShipmentItem

__all__ = ["Shipment", "ShipmentItem", "ShipmentActivityLog"]
