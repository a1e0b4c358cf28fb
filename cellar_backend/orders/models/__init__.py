from .activity_log import PrivateClientOrderActivityLog
from .client import PrivateClientContact
from .order import PrivateClientOrder
from .order_item import PrivateClientOrderItem

__all__ = [
    "PrivateClientContact",
    "PrivateClientOrder",
    "PrivateClientOrderItem",
    "PrivateClientOrderActivityLog",
]
