from .exchange_rate import ExchangeRate
from .pricing_variable import PricingVariable

__all__ = ["ExchangeRate", "PricingVariable"]
