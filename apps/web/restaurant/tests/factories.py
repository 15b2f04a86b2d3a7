"""Factory classes for storefront models."""

from datetime import timedelta

from django.utils import timezone

import factory

from apps.web.core.models import User
from apps.web.restaurant.models import (
    Address,
    Branch,
    DiscountType,
    MenuItem,
    MenuItemStatus,
    Notification,
    NotificationCategory,
    Order,
    OrderItem,
    OrderStatus,
    OrderType,
    PaymentMethod,
    PaymentStatus,
    Promo,
)


class UserFactory(factory.django.DjangoModelFactory):
    """Factory for User model."""

    class Meta:
        model = User

    username = factory.Sequence(lambda n: f"customer{n}")
    email = factory.LazyAttribute(lambda obj: f"{obj.username}@example.com")
    first_name = factory.Faker("first_name")
    last_name = factory.Faker("last_name")
    role = User.Role.CUSTOMER
    password = factory.django.Password("testpass123")


class AdminFactory(UserFactory):
    username = factory.Sequence(lambda n: f"admin{n}")
    role = User.Role.ADMIN


class BranchFactory(factory.django.DjangoModelFactory):
    """Factory for Branch model."""

    class Meta:
        model = Branch

    name = factory.Sequence(lambda n: f"TakumaEat Branch {n}")
    address = factory.Faker("street_address")
    operation_hours = "10.00 - 22.00 WIB"


class MenuItemFactory(factory.django.DjangoModelFactory):
    """Factory for MenuItem model."""

    class Meta:
        model = MenuItem

    name = factory.Sequence(lambda n: f"Menu Item {n}")
    description = factory.Faker("sentence")
    price = 45000
    image_url = factory.LazyAttribute(lambda obj: f"https://cdn.example.com/{obj.name}.jpg")
    stock = 10
    status = MenuItemStatus.AVAILABLE


class AddressFactory(factory.django.DjangoModelFactory):
    """Factory for Address model."""

    class Meta:
        model = Address

    user = factory.SubFactory(UserFactory)
    recipient_name = factory.Faker("name")
    phone_number = "081234567890"
    address_line = factory.Faker("street_address")
    detail = ""
    is_default = False


class PromoFactory(factory.django.DjangoModelFactory):
    """Factory for Promo model - active, percentage, open window."""

    class Meta:
        model = Promo

    code = factory.Sequence(lambda n: f"PROMO{n}")
    discount_type = DiscountType.PERCENTAGE
    discount_value = 10
    max_discount = None
    min_purchase = 0
    start_date = factory.LazyFunction(lambda: timezone.now() - timedelta(days=1))
    end_date = factory.LazyFunction(lambda: timezone.now() + timedelta(days=30))
    usage_limit = 0
    usage_count = 0
    is_active = True


class OrderFactory(factory.django.DjangoModelFactory):
    """Factory for Order model - takeaway, online payment, unpaid."""

    class Meta:
        model = Order

    user = factory.SubFactory(UserFactory)
    order_type = OrderType.TAKEAWAY
    status = OrderStatus.PENDING_PAYMENT
    payment_method = PaymentMethod.GATEWAY
    payment_status = PaymentStatus.UNPAID
    subtotal = 90000
    discount_amount = 0
    delivery_fee = 0
    total_amount = factory.LazyAttribute(
        lambda obj: max(0, obj.subtotal - obj.discount_amount + obj.delivery_fee)
    )


class OrderItemFactory(factory.django.DjangoModelFactory):
    """Factory for OrderItem model."""

    class Meta:
        model = OrderItem

    order = factory.SubFactory(OrderFactory)
    name = factory.Sequence(lambda n: f"Menu Item {n}")
    price = 45000
    quantity = 2


class NotificationFactory(factory.django.DjangoModelFactory):
    """Factory for Notification model."""

    class Meta:
        model = Notification

    user = factory.SubFactory(UserFactory)
    title = "Order received"
    description = factory.Faker("sentence")
    category = NotificationCategory.ORDER
