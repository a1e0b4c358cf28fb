from .activity_log import QuoteActivityLog
from .line_item import QuoteLineItem
from .quote import Quote

__all__ = ["Quote", "QuoteLineItem", "QuoteActivityLog"]
