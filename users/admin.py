"""
Users — Django Admin Configuration

@file users/admin.py
"""

from django.contrib import admin
from django.contrib.auth.admin import UserAdmin as BaseUserAdmin
from django.utils.translation import gettext_lazy as _

from .models import User


@admin.register(User)
class UserAdmin(BaseUserAdmin):
    """Back-office accounts; the role decides what the upstream API lets them do."""

    list_display = ('email', 'get_full_name', 'role', 'is_active', 'last_login')
    list_filter = ('role', 'is_active', 'is_staff')
    search_fields = ('email', 'first_name', 'last_name')
    readonly_fields = ('id', 'date_joined', 'last_login')
    ordering = ('last_name', 'first_name')
    actions = ['deactivate_users']

    fieldsets = (
        (None, {'fields': ('id', 'email', 'password')}),
        (_('Profile'), {'fields': ('first_name', 'last_name', 'role')}),
        (_('Access'), {'fields': ('is_active', 'is_staff', 'is_superuser')}),
        (_('Activity'), {'fields': ('date_joined', 'last_login')}),
    )
    add_fieldsets = (
        (None, {
            'classes': ('wide',),
            'fields': ('email', 'first_name', 'last_name', 'role', 'password1', 'password2'),
        }),
    )

    @admin.action(description=_('Deactivate selected users'))
    def deactivate_users(self, request, queryset):
        updated = queryset.update(is_active=False)
        self.message_user(request, _('%(count)d user(s) deactivated.') % {'count': updated})
