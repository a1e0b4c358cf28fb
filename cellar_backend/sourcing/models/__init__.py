from .lwin_wine import LwinWine
from .rfq import Rfq
from .rfq_item import RfqItem
from .rfq_partner import RfqPartner
from .rfq_quote import RfqQuote

__all__ = ["LwinWine", "Rfq", "RfqItem", "RfqPartner", "RfqQuote"]
