"""
CMS application configuration.
"""

from django.apps import AppConfig


class CmsConfig(AppConfig):
    """Configuration for the cms Django application."""

    default_auto_field = "django.db.models.BigAutoField"
    name = "cms"
    verbose_name = "Content Management"

    def ready(self):
        """
        Perform application initialization.

        Imports signal handlers so that deleting a Media row also removes
        its rehosted file from the uploads directory.
        """
        from cms import signals  # noqa: F401
