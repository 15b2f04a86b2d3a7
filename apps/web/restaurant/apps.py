"""Django app configuration for the storefront (menu, promos, orders)."""

from django.apps import AppConfig


class RestaurantConfig(AppConfig):
    """Storefront app configuration."""

    default_auto_field = "django.db.models.BigAutoField"
    name = "apps.web.restaurant"
    verbose_name = "Restaurant"
