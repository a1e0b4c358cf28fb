# sourcing/admin.py

from django.contrib import admin

from sourcing.models import LwinWine, Rfq, RfqItem, RfqPartner, RfqQuote


class RfqItemInline(admin.TabularInline):
    model = RfqItem
    extra = 0
    fields = ("product_name", "vintage", "lwin", "quantity", "quantity_unit", "status", "final_price_usd")


class RfqPartnerInline(admin.TabularInline):
    model = RfqPartner
    extra = 0


@admin.register(Rfq)
class RfqAdmin(admin.ModelAdmin):
    list_display = ("rfq_number", "name", "status", "response_deadline", "created_at")
    list_filter = ("status",)
    search_fields = ("rfq_number", "name")
    readonly_fields = ("rfq_number",)
    inlines = [RfqItemInline, RfqPartnerInline]


@admin.register(RfqQuote)
class RfqQuoteAdmin(admin.ModelAdmin):
    list_display = ("item", "partner", "quote_type", "cost_price_per_case_usd", "is_selected", "created_at")
    list_filter = ("quote_type", "is_selected")


@admin.register(LwinWine)
class LwinWineAdmin(admin.ModelAdmin):
    list_display = ("lwin", "display_name", "producer_name", "country", "region", "colour")
    search_fields = ("lwin", "display_name", "producer_name")
