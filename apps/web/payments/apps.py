"""Django app configuration for payments module."""

from django.apps import AppConfig


class PaymentsConfig(AppConfig):
    """Payments app configuration."""

    default_auto_field = "django.db.models.BigAutoField"
    name = "apps.web.payments"
    verbose_name = "Payments"
