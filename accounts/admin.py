from django.contrib import admin
from django.contrib.auth.admin import UserAdmin

from .forms import AppUserChangeForm, AppUserCreationForm
from .models import AppUser, ROLE_ADMIN, ROLE_USER


@admin.register(AppUser)
class AppUserAdmin(UserAdmin):
    form = AppUserChangeForm
    add_form = AppUserCreationForm
    list_display = ('email', 'display_name', 'role', 'is_blocked', 'created_at', 'last_login')
    list_filter = ('role', 'is_blocked', 'created_at')
    search_fields = ('email', 'display_name')
    ordering = ('-created_at',)
    readonly_fields = ('created_at', 'updated_at', 'last_login')
    filter_horizontal = ()
    actions = ['block_users', 'unblock_users', 'promote_users', 'demote_users']

    fieldsets = (
        (None, {
            'fields': ('email', 'password')
        }),
        ('Account', {
            'fields': ('display_name', 'role', 'is_blocked')
        }),
        ('Integrations', {
            'fields': ('binom_url', 'binom_api_key', 'binom_user_id', 'google_sheets_id'),
            'classes': ('collapse',)
        }),
        ('Metadata', {
            'fields': ('last_login', 'created_at', 'updated_at'),
            'classes': ('collapse',)
        }),
    )
    add_fieldsets = (
        (None, {
            'classes': ('wide',),
            'fields': ('email', 'display_name', 'role', 'password1', 'password2'),
        }),
    )

    # Never let an admin lock themselves out from the changelist
    def _others(self, request, queryset):
        return queryset.exclude(pk=request.user.pk)

    def block_users(self, request, queryset):
        count = self._others(request, queryset).update(is_blocked=True)
        self.message_user(request, f"{count} user(s) blocked.")
    block_users.short_description = "Block selected users"

    def unblock_users(self, request, queryset):
        count = queryset.update(is_blocked=False)
        self.message_user(request, f"{count} user(s) unblocked.")
    unblock_users.short_description = "Unblock selected users"

    def promote_users(self, request, queryset):
        count = queryset.update(role=ROLE_ADMIN)
        self.message_user(request, f"{count} user(s) promoted to admin.")
    promote_users.short_description = "Promote to Admin"

    def demote_users(self, request, queryset):
        count = self._others(request, queryset).update(role=ROLE_USER)
        self.message_user(request, f"{count} user(s) demoted to regular users.")
    demote_users.short_description = "Demote to regular User"


admin.site.site_header = "Offer Desk Admin"
admin.site.site_title = "Offer Desk Admin Portal"
admin.site.index_title = "Offers, domains and users"
