from django.contrib import admin

from .models import AuditLog, Geo, Landing, Language, Offer, OfferType, Partner, Vertical


class LandingInline(admin.TabularInline):
    model = Landing
    extra = 0
    fields = ('order', 'type', 'label', 'ext_id', 'locale', 'network_code', 'url')
    ordering = ('type', 'order')


# 1. Offers with their landings
@admin.register(Offer)
class OfferAdmin(admin.ModelAdmin):
    inlines = (LandingInline,)
    list_display = ('title', 'vertical', 'price_usd', 'status', 'order', 'landing_count', 'created_at')
    search_fields = ('title', 'vertical')
    list_filter = ('status', 'vertical', 'created_at')
    readonly_fields = ('created_at', 'updated_at')
    actions = ['activate_offers', 'pause_offers', 'archive_offers']

    def landing_count(self, obj):
        return obj.landings.count()
    landing_count.short_description = 'Landings'

    def activate_offers(self, request, queryset):
        count = queryset.update(status='ACTIVE')
        self.message_user(request, f"{count} offer(s) activated.")
    activate_offers.short_description = "Mark as Active"

    def pause_offers(self, request, queryset):
        count = queryset.update(status='PAUSED')
        self.message_user(request, f"{count} offer(s) paused.")
    pause_offers.short_description = "Mark as Paused"

    def archive_offers(self, request, queryset):
        count = queryset.update(status='ARCHIVED')
        self.message_user(request, f"{count} offer(s) archived.")
    archive_offers.short_description = "Mark as Archived"


# 2. Reference tables
@admin.register(Vertical, OfferType)
class NamedReferenceAdmin(admin.ModelAdmin):
    list_display = ('name', 'description', 'is_active', 'order')
    list_editable = ('is_active', 'order')
    search_fields = ('name',)


@admin.register(Geo, Language, Partner)
class CodedReferenceAdmin(admin.ModelAdmin):
    list_display = ('code', 'name', 'is_active', 'order')
    list_editable = ('is_active', 'order')
    search_fields = ('code', 'name')


# 3. Audit trail (read only)
@admin.register(AuditLog)
class AuditLogAdmin(admin.ModelAdmin):
    list_display = ('action', 'entity', 'entity_id', 'actor', 'created_at')
    list_filter = ('action', 'entity', 'created_at')
    search_fields = ('entity_id', 'actor__email')
    readonly_fields = ('actor', 'action', 'entity', 'entity_id', 'diff', 'created_at')

    def has_add_permission(self, request):
        return False
