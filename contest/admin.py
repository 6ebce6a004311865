"""
Django Admin Configuration for the King & Queen contest
=======================================================

Configures the Django admin interface for:
- Candidate management (vote counts read-only)
- Vote viewing (read-only, ballots are immutable)
- Settings flags
- Admin accounts (password hash never editable as text)

Security:
- Votes cannot be added, changed or deleted from the admin
- Vote counters are only changed by the vote commit
"""

from django.contrib import admin  # pyright: ignore[reportMissingModuleSource, reportMissingImports]
from .models import AdminAccount, Candidate, Setting, Vote


@admin.register(Candidate)
class CandidateAdmin(admin.ModelAdmin):
    """
    Admin interface for Candidate model.

    Displays name, category, photo and current vote count.
    """

    list_display = ('name', 'category', 'vote_count', 'created_at')
    list_filter = ('category',)
    search_fields = ('name',)
    readonly_fields = ('id', 'vote_count', 'created_at', 'updated_at')
    fieldsets = (
        ('Candidate Information', {
            'fields': ('id', 'name', 'category', 'photo_url')
        }),
        ('Statistics', {
            'fields': ('vote_count', 'created_at', 'updated_at'),
        }),
    )


@admin.register(Vote)
class VoteAdmin(admin.ModelAdmin):
    """
    Admin interface for Vote model.

    IMPORTANT: Votes are READ-ONLY in admin. Editing one would break the
    candidate counters; deleting is reserved to the seed_contest command.
    """

    list_display = ('id', 'king', 'queen', 'ip_address', 'has_fingerprint', 'voted_at')
    list_filter = ('voted_at',)
    search_fields = ('ip_address', 'cookie_token', 'fingerprint')
    readonly_fields = ('id', 'ip_address', 'cookie_token', 'fingerprint',
                       'king', 'queen', 'voted_at')

    def has_add_permission(self, request):
        return False

    def has_change_permission(self, request, obj=None):
        return False

    def has_delete_permission(self, request, obj=None):
        return False

    @admin.display(boolean=True, description='Fingerprint')
    def has_fingerprint(self, obj):
        return bool(obj.fingerprint)


@admin.register(Setting)
class SettingAdmin(admin.ModelAdmin):
    list_display = ('key', 'value', 'updated_at')
    readonly_fields = ('updated_at',)


@admin.register(AdminAccount)
class AdminAccountAdmin(admin.ModelAdmin):
    """Contest admins. Passwords are set through the API or seed command."""

    list_display = ('email', 'name', 'created_at')
    search_fields = ('email', 'name')
    readonly_fields = ('password', 'created_at')
