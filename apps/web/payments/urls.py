"""
URL routing for payment endpoints.
"""

from django.urls import path

from apps.web.payments import views, webhooks

app_name = "payments"

urlpatterns = [
    path("create-transaction", views.create_transaction, name="create-transaction"),
    path("notification", webhooks.midtrans_notification, name="notification"),
]
