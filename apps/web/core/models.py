"""
Core models - accounts and shared model bases.

All per-customer models inherit from UserScopedModel.
"""

import uuid

from django.contrib.auth.models import AbstractUser
from django.db import models

from .managers import UserScopedManager


class User(AbstractUser):
    """
    Custom user model with a storefront role.

    Customers place orders; admins receive new-order notifications.
    """

    class Role(models.TextChoices):
        CUSTOMER = "user", "Customer"
        ADMIN = "admin", "Admin"

    role = models.CharField(
        max_length=20,
        choices=Role.choices,
        default=Role.CUSTOMER,
    )
    phone_number = models.CharField(max_length=20, blank=True)

    class Meta:
        ordering = ["username"]

    def __str__(self) -> str:
        return self.username

    @property
    def is_admin(self) -> bool:
        """Check if the user manages the backoffice."""
        return self.role == self.Role.ADMIN


class TimestampedModel(models.Model):
    """
    Abstract base with a UUID primary key and created/updated timestamps.
    """

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        abstract = True


class UserScopedModel(TimestampedModel):
    """
    Abstract base for all customer-owned models.

    Provides:
    - Automatic user FK
    - UserScopedManager for filtered queries
    - UUID key and created/updated timestamps
    """

    user = models.ForeignKey(
        "core.User",
        on_delete=models.CASCADE,
        related_name="%(class)ss",  # e.g., user.orders, user.notifications
    )

    objects = UserScopedManager()

    class Meta:
        abstract = True
