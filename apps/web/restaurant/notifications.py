"""
In-app notifications for order and payment events.
"""

import logging

from django.contrib.auth import get_user_model

from apps.web.restaurant.models import (
    Notification,
    NotificationCategory,
    Order,
    PaymentMethod,
    PaymentStatus,
)
from apps.web.restaurant.promos import format_rupiah

logger = logging.getLogger(__name__)


def notify_order_created(order: Order) -> None:
    """Tell the customer their order exists and every admin a new one came in."""
    if order.payment_method == PaymentMethod.COD:
        next_step = "Please pay when you receive your order."
    else:
        next_step = "Please complete your payment."

    Notification.objects.create(
        user=order.user,
        title="Order created",
        description=f"Order #{order.order_number} has been created. {next_step}",
        category=NotificationCategory.ORDER,
        action_url=f"/orders/{order.pk}",
    )

    User = get_user_model()
    admins = User.objects.filter(role=User.Role.ADMIN)
    created = Notification.objects.bulk_create(
        [
            Notification(
                user=admin,
                title="New order received",
                description=(
                    f"New order #{order.order_number} for "
                    f"Rp {format_rupiah(order.total_amount)}"
                ),
                category=NotificationCategory.ORDER,
                action_url="/admin/orders",
            )
            for admin in admins
        ]
    )
    logger.info("Order %s announced to %s admin(s)", order.pk, len(created))


def notify_payment_update(order: Order) -> None:
    """Tell the customer their payment status changed."""
    if order.payment_status == PaymentStatus.PAID:
        title = "Payment successful!"
        description = f"Thank you! We have received payment for order #{order.order_number}."
    elif order.payment_status in (PaymentStatus.FAILED, PaymentStatus.EXPIRED):
        title = "Payment failed"
        description = (
            f"Sorry, payment for order #{order.order_number} "
            "did not go through or has expired."
        )
    else:
        title = "Payment update"
        description = (
            f"Payment status for order #{order.order_number} "
            f"is now {order.payment_status}."
        )

    Notification.objects.create(
        user=order.user,
        title=title,
        description=description,
        category=NotificationCategory.PAYMENT,
        action_url=f"/orders/{order.pk}",
    )
