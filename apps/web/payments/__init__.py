"""Payments module - Midtrans Snap integration for online ordering."""

from apps.web.payments.services import (
    PaymentError,
    SnapTransaction,
    compute_signature,
    create_snap_transaction,
    is_configured,
    verify_notification_signature,
)

__all__ = [
    "PaymentError",
    "SnapTransaction",
    "compute_signature",
    "create_snap_transaction",
    "is_configured",
    "verify_notification_signature",
]
