"""
Restaurant models - Menu stock, branches, addresses, promos, and orders.

Customer-owned models follow the ownership pattern with UserScopedModel.
All money amounts are whole Rupiah.
"""

from django.db import models

from apps.web.core.models import TimestampedModel, UserScopedModel


class Branch(TimestampedModel):
    """
    A TakumaEat outlet where takeaway orders are picked up.
    """

    name = models.CharField(max_length=200)
    address = models.TextField()
    operation_hours = models.CharField(
        max_length=100,
        blank=True,
        help_text="Display string, e.g. 10.00 - 22.00 WIB",
    )
    map_url = models.URLField(blank=True)

    class Meta:
        ordering = ["name"]
        verbose_name_plural = "branches"

    def __str__(self) -> str:
        return self.name


class MenuItemStatus(models.TextChoices):
    """Menu item sellability."""

    AVAILABLE = "available", "Available"
    OUT_OF_STOCK = "out_of_stock", "Out of stock"


class MenuItem(TimestampedModel):
    """
    Individual menu item.

    Carts reference items by name, so names are unique.
    """

    name = models.CharField(max_length=200, unique=True)
    description = models.TextField(blank=True)
    price = models.PositiveIntegerField()
    image_url = models.URLField(blank=True)
    stock = models.PositiveIntegerField(default=0)
    status = models.CharField(
        max_length=20,
        choices=MenuItemStatus.choices,
        default=MenuItemStatus.AVAILABLE,
    )

    class Meta:
        ordering = ["name"]
        indexes = [
            models.Index(fields=["status"], name="menuitem_status_idx"),
        ]

    def __str__(self) -> str:
        return self.name


class Address(UserScopedModel):
    """
    A customer's saved delivery address.

    At most one address per user is the default.
    """

    recipient_name = models.CharField(max_length=200)
    phone_number = models.CharField(max_length=20)
    address_line = models.TextField()
    detail = models.CharField(max_length=500, blank=True)
    latitude = models.FloatField(null=True, blank=True)
    longitude = models.FloatField(null=True, blank=True)
    is_default = models.BooleanField(default=False)

    class Meta:
        ordering = ["-is_default", "-created_at"]
        verbose_name_plural = "addresses"

    def __str__(self) -> str:
        return f"{self.recipient_name} - {self.address_line}"


class DiscountType(models.TextChoices):
    """How a promo reduces the subtotal."""

    FIXED = "Fixed", "Fixed amount"
    PERCENTAGE = "Percentage", "Percentage"


class Promo(TimestampedModel):
    """
    A redeemable promo code.

    Codes are stored upper-case; lookups are case-insensitive.
    """

    code = models.CharField(max_length=50, unique=True)
    description = models.TextField(blank=True)
    discount_type = models.CharField(
        max_length=20,
        choices=DiscountType.choices,
        default=DiscountType.PERCENTAGE,
    )
    discount_value = models.PositiveIntegerField(
        help_text="Rupiah for Fixed, percent for Percentage",
    )
    max_discount = models.PositiveIntegerField(
        null=True,
        blank=True,
        help_text="Cap for percentage discounts (blank = uncapped)",
    )
    min_purchase = models.PositiveIntegerField(default=0)
    start_date = models.DateTimeField()
    end_date = models.DateTimeField()
    usage_limit = models.PositiveIntegerField(
        default=0,
        help_text="Maximum redemptions (0 = unlimited)",
    )
    usage_count = models.PositiveIntegerField(default=0)
    is_active = models.BooleanField(default=True)

    class Meta:
        ordering = ["-start_date"]

    def __str__(self) -> str:
        return self.code

    def save(self, *args, **kwargs) -> None:
        self.code = self.code.strip().upper()
        super().save(*args, **kwargs)


class OrderType(models.TextChoices):
    """Order fulfillment type."""

    DELIVERY = "delivery", "Delivery"
    TAKEAWAY = "takeaway", "Takeaway"


class PaymentMethod(models.TextChoices):
    """How the customer pays."""

    GATEWAY = "gateway", "Midtrans"
    COD = "cod", "Cash on delivery/pickup"


class OrderStatus(models.TextChoices):
    """Order lifecycle status."""

    PENDING_PAYMENT = "pending_payment", "Pending payment"
    PROCESSING = "processing", "Processing"
    PREPARING = "preparing", "Preparing"
    READY_FOR_PICKUP = "ready_for_pickup", "Ready for pickup"
    OUT_FOR_DELIVERY = "out_for_delivery", "Out for delivery"
    COMPLETED = "completed", "Completed"
    CANCELLED = "cancelled", "Cancelled"
    REFUNDED = "refunded", "Refunded"


class PaymentStatus(models.TextChoices):
    """Payment processing status."""

    UNPAID = "unpaid", "Unpaid"
    WAITING_FOR_PAYMENT = "waiting_for_payment", "Waiting for payment"
    PENDING_PAYMENT = "pending_payment", "Pending payment"
    PENDING_REVIEW = "pending_review", "Pending review"
    PAID = "paid", "Paid"
    FAILED = "failed", "Failed"
    CANCELLED = "cancelled", "Cancelled"
    EXPIRED = "expired", "Expired"
    REFUNDED = "refunded", "Refunded"
    PARTIAL_REFUND = "partial_refund", "Partial refund"
    COD_PENDING = "cod_pending", "Cash payment pending"


class Order(UserScopedModel):
    """
    Customer order.

    Tracks fulfillment, pricing snapshot, and Midtrans payment state.
    """

    order_type = models.CharField(max_length=20, choices=OrderType.choices)
    status = models.CharField(
        max_length=20,
        choices=OrderStatus.choices,
        default=OrderStatus.PENDING_PAYMENT,
    )
    payment_method = models.CharField(max_length=20, choices=PaymentMethod.choices)
    payment_status = models.CharField(
        max_length=20,
        choices=PaymentStatus.choices,
        default=PaymentStatus.UNPAID,
    )
    payment_channel = models.CharField(
        max_length=100,
        blank=True,
        help_text="e.g. BCA, QRIS, Credit Card (BNI)",
    )

    # Pricing
    subtotal = models.PositiveIntegerField(default=0)
    discount_amount = models.PositiveIntegerField(default=0)
    delivery_fee = models.PositiveIntegerField(default=0)
    tax_amount = models.PositiveIntegerField(default=0)
    total_amount = models.PositiveIntegerField()
    promo_code = models.CharField(max_length=50, blank=True)

    # Fulfillment
    delivery_address = models.JSONField(
        null=True,
        blank=True,
        help_text="Snapshot of the delivery address at order time",
    )
    pickup_branch = models.ForeignKey(
        Branch,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="orders",
    )
    schedule_at = models.DateTimeField(
        null=True,
        blank=True,
        help_text="Requested delivery/pickup time (null = ASAP)",
    )
    notes = models.TextField(blank=True)

    # Midtrans Snap
    snap_token = models.CharField(max_length=255, blank=True)
    snap_redirect_url = models.URLField(max_length=500, blank=True)

    class Meta:
        ordering = ["-created_at"]
        indexes = [
            models.Index(fields=["user", "created_at"], name="order_user_created_idx"),
            models.Index(fields=["status"], name="order_status_idx"),
        ]

    def __str__(self) -> str:
        return f"Order #{self.order_number}"

    @property
    def order_number(self) -> str:
        """Short customer-facing reference."""
        return str(self.pk)[:8].upper()


class OrderItem(TimestampedModel):
    """
    Line item in an order.

    Stores a snapshot of the item at order time.
    """

    order = models.ForeignKey(
        Order,
        on_delete=models.CASCADE,
        related_name="items",
    )
    name = models.CharField(max_length=200)
    price = models.PositiveIntegerField()
    quantity = models.PositiveIntegerField(default=1)
    note = models.TextField(blank=True)
    image_url = models.URLField(blank=True)

    class Meta:
        ordering = ["created_at"]

    def __str__(self) -> str:
        return f"{self.quantity}x {self.name}"

    @property
    def line_total(self) -> int:
        return self.price * self.quantity


class NotificationCategory(models.TextChoices):
    """What a notification is about."""

    ORDER = "order", "Order"
    PAYMENT = "payment", "Payment"


class NotificationStatus(models.TextChoices):
    UNREAD = "unread", "Unread"
    READ = "read", "Read"


class Notification(UserScopedModel):
    """
    In-app notification shown in the storefront or backoffice bell.
    """

    title = models.CharField(max_length=200)
    description = models.TextField()
    category = models.CharField(max_length=20, choices=NotificationCategory.choices)
    status = models.CharField(
        max_length=20,
        choices=NotificationStatus.choices,
        default=NotificationStatus.UNREAD,
    )
    action_url = models.CharField(max_length=500, blank=True)

    class Meta:
        ordering = ["-created_at"]
        indexes = [
            models.Index(
                fields=["user", "status"], name="notification_user_status_idx"
            ),
        ]

    def __str__(self) -> str:
        return self.title
