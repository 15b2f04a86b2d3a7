"""
URL routing for storefront API endpoints.

Branches and promo checks are public; everything else needs a session.
"""

from django.urls import path

from apps.web.restaurant import views

app_name = "restaurant"

urlpatterns = [
    # Reference data
    path("branches", views.branch_list, name="branch_list"),
    path("user/addresses", views.addresses, name="address_list"),
    path(
        "user/addresses/<str:address_id>",
        views.address_detail,
        name="address_detail",
    ),
    # Promo endpoint
    path("promos/check", views.promo_check, name="promo_check"),
    # Order endpoints
    path("orders", views.orders, name="orders"),
    path("orders/<str:order_id>", views.order_detail, name="order_detail"),
    path("orders/<str:order_id>/status", views.order_status, name="order_status"),
    # Notifications
    path("notifications", views.notification_list, name="notification_list"),
]
