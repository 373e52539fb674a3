from django.contrib import admin
from django.utils import timezone

from .models import Domain, DomainRequest


class DomainRequestInline(admin.TabularInline):
    model = DomainRequest
    extra = 0
    fields = ('user', 'status', 'comment', 'created_at')
    readonly_fields = ('created_at',)


# 1. Domain pool
@admin.register(Domain)
class DomainAdmin(admin.ModelAdmin):
    inlines = (DomainRequestInline,)
    list_display = ('domain', 'is_assigned', 'assigned_to', 'assigned_at', 'is_archived', 'cost', 'created_at')
    search_fields = ('domain', 'assigned_to__email', 'note')
    list_filter = ('is_assigned', 'is_archived', 'created_at')
    readonly_fields = ('binom_domain_id', 'created_at', 'updated_at')
    actions = ['release_domains', 'archive_domains']

    fieldsets = (
        ('Domain', {
            'fields': ('domain', 'cost', 'note')
        }),
        ('Assignment', {
            'fields': ('is_assigned', 'assigned_to', 'assigned_at', 'binom_domain_id')
        }),
        ('Archive', {
            'fields': ('is_archived', 'archived_at'),
            'classes': ('collapse',)
        }),
        ('Metadata', {
            'fields': ('created_at', 'updated_at'),
            'classes': ('collapse',)
        }),
    )

    def release_domains(self, request, queryset):
        count = queryset.update(is_assigned=False, assigned_to=None, assigned_at=None)
        self.message_user(request, f"{count} domain(s) returned to the pool.")
    release_domains.short_description = "Return to pool (unassign)"

    def archive_domains(self, request, queryset):
        count = queryset.update(is_archived=True, archived_at=timezone.now())
        self.message_user(request, f"{count} domain(s) archived.")
    archive_domains.short_description = "Mark as Archived"


# 2. Domain requests
@admin.register(DomainRequest)
class DomainRequestAdmin(admin.ModelAdmin):
    list_display = ('user', 'domain', 'status', 'comment_preview', 'created_at')
    search_fields = ('user__email', 'domain__domain', 'comment')
    list_filter = ('status', 'created_at')
    readonly_fields = ('created_at', 'updated_at')

    def comment_preview(self, obj):
        return obj.comment[:50] + '...' if len(obj.comment) > 50 else obj.comment
    comment_preview.short_description = 'Comment'
