# quotes/admin.py

from django.contrib import admin

from quotes.models import Quote, QuoteActivityLog, QuoteLineItem


class QuoteLineItemInline(admin.TabularInline):
    model = QuoteLineItem
    extra = 0
    readonly_fields = ("original_price_usd", "line_total_usd", "accepted_alternative")


@admin.register(Quote)
class QuoteAdmin(admin.ModelAdmin):
    list_display = ("quote_number", "created_by", "partner", "customer_type", "status", "total_usd", "created_at")
    list_filter = ("status", "customer_type")
    search_fields = ("quote_number", "client_name", "po_number", "created_by__email")
    readonly_fields = ("quote_number", "total_usd", "total_aed")
    inlines = [QuoteLineItemInline]


@admin.register(QuoteActivityLog)
class QuoteActivityLogAdmin(admin.ModelAdmin):
    list_display = ("quote", "action", "previous_status", "new_status", "created_at")

    def has_change_permission(self, request, obj=None):
        return False

    def has_delete_permission(self, request, obj=None):
        return False
