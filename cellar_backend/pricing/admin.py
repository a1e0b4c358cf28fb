from django.contrib import admin

from pricing.models import ExchangeRate, PricingVariable


@admin.register(PricingVariable)
class PricingVariableAdmin(admin.ModelAdmin):
    list_display = ("module", "key", "value", "updated_by", "updated_at")
    list_filter = ("module",)


@admin.register(ExchangeRate)
class ExchangeRateAdmin(admin.ModelAdmin):
    list_display = ("from_currency", "to_currency", "rate", "effective_date", "source")
    list_filter = ("from_currency", "to_currency")
