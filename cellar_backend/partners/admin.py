# partners/admin.py

from django.contrib import admin

from partners.models import Partner, PartnerMember


class PartnerMemberInline(admin.TabularInline):
    model = PartnerMember
    extra = 0
    autocomplete_fields = ("user",)


@admin.register(Partner)
class PartnerAdmin(admin.ModelAdmin):
    list_display = ("name", "type", "distributor_code", "requires_client_verification", "is_active")
    list_filter = ("type", "is_active", "requires_client_verification")
    search_fields = ("name", "distributor_code", "business_email")
    inlines = [PartnerMemberInline]
