"""
Django app configuration for the contest module
===============================================

AppConfig subclass that defines the contest app.
"""

from django.apps import AppConfig  # pyright: ignore[reportMissingModuleSource]


class ContestConfig(AppConfig):
    """Configuration class for the King & Queen contest application."""
    default_auto_field = 'django.db.models.BigAutoField'
    name = 'contest'
    verbose_name = 'King & Queen Contest'
