"""Tests for CartStore."""

import json

import pytest
from pydantic import ValidationError

from apps.web.checkout.cart import CART_STORAGE_KEY, CartItem, CartStore
from apps.web.checkout.storage import InMemoryStorage


@pytest.fixture
def ramen() -> CartItem:
    return CartItem(name="Ramen", price=45000, note="extra egg", image="ramen.jpg")


@pytest.fixture
def gyoza() -> CartItem:
    return CartItem(name="Gyoza", price=20000)


class TestCartMutations:
    """Tests for add/increment/decrement/remove/clear."""

    def test_add_new_item(self, ramen):
        cart = CartStore()
        cart.add_item(ramen)

        assert cart.items == (ramen,)
        assert cart.cart_item_count == 1
        assert cart.cart_subtotal == 45000

    def test_add_existing_item_merges_and_keeps_first_note(self, ramen):
        cart = CartStore()
        cart.add_item(ramen)
        cart.add_item(CartItem(name="Ramen", price=45000, note="no onion", image="other.jpg"))

        assert len(cart.items) == 1
        item = cart.get("Ramen")
        assert item.quantity == 2
        assert item.note == "extra egg"
        assert item.image == "ramen.jpg"

    def test_increment_and_decrement(self, ramen):
        cart = CartStore(items=[ramen])
        cart.increment_item("Ramen")
        cart.increment_item("Ramen")
        cart.decrement_item("Ramen")

        assert cart.get("Ramen").quantity == 2
        assert cart.cart_subtotal == 90000

    def test_decrement_at_one_removes_item(self, ramen, gyoza):
        cart = CartStore(items=[ramen, gyoza])
        cart.decrement_item("Ramen")

        assert cart.get("Ramen") is None
        assert cart.items == (gyoza,)
        assert cart.cart_item_count == 1

    def test_remove_item(self, ramen, gyoza):
        cart = CartStore(items=[ramen, gyoza])
        cart.remove_item("Gyoza")

        assert cart.items == (ramen,)

    def test_clear_cart(self, ramen, gyoza):
        cart = CartStore(items=[ramen, gyoza])
        cart.clear_cart()

        assert cart.items == ()
        assert cart.cart_item_count == 0
        assert cart.cart_subtotal == 0

    def test_unknown_name_is_noop(self, ramen):
        cart = CartStore(items=[ramen])
        calls = []
        cart.subscribe(calls.append)

        cart.increment_item("Sushi")
        cart.decrement_item("Sushi")
        cart.remove_item("Sushi")

        assert cart.items == (ramen,)
        assert calls == []

    def test_mutation_returns_new_tuple(self, ramen):
        cart = CartStore(items=[ramen])
        before = cart.items
        cart.increment_item("Ramen")

        assert before[0].quantity == 1
        assert cart.items is not before

    def test_count_and_subtotal_over_sequence(self, ramen, gyoza):
        cart = CartStore()
        cart.add_item(ramen)
        cart.add_item(gyoza)
        cart.add_item(gyoza)
        cart.increment_item("Ramen")
        cart.decrement_item("Gyoza")
        cart.decrement_item("Gyoza")
        cart.decrement_item("Gyoza")

        assert cart.cart_item_count == sum(i.quantity for i in cart.items) == 2
        assert cart.cart_subtotal == 90000

    def test_cart_item_rejects_bad_values(self):
        with pytest.raises(ValidationError):
            CartItem(name="Ramen", price=-1)
        with pytest.raises(ValidationError):
            CartItem(name="Ramen", price=1000, quantity=0)


class TestCartListeners:
    """Tests for change notification."""

    def test_listener_receives_new_items(self, ramen):
        cart = CartStore()
        seen = []
        cart.subscribe(seen.append)

        cart.add_item(ramen)
        cart.clear_cart()

        assert seen == [(ramen,), ()]

    def test_unsubscribe(self, ramen):
        cart = CartStore()
        seen = []
        unsubscribe = cart.subscribe(seen.append)
        unsubscribe()

        cart.add_item(ramen)

        assert seen == []


class TestCartPersistence:
    """Tests for saving and loading the cart."""

    def test_saves_on_change_and_reloads(self, ramen):
        storage = InMemoryStorage()
        cart = CartStore(storage=storage)
        cart.add_item(ramen)
        cart.increment_item("Ramen")

        saved = json.loads(storage.get_item(CART_STORAGE_KEY))
        assert saved == [
            {
                "name": "Ramen",
                "price": 45000,
                "quantity": 2,
                "note": "extra egg",
                "image": "ramen.jpg",
            }
        ]

        reloaded = CartStore(storage=storage)
        assert reloaded.cart_item_count == 2
        assert reloaded.get("Ramen").note == "extra egg"

    def test_corrupt_snapshot_is_ignored(self):
        storage = InMemoryStorage({CART_STORAGE_KEY: "{not json"})

        cart = CartStore(storage=storage)

        assert cart.items == ()

    def test_to_order_items(self, ramen):
        cart = CartStore(items=[ramen])
        cart.increment_item("Ramen")

        [line] = cart.to_order_items()
        assert line.name == "Ramen"
        assert line.quantity == 2
        assert line.note == "extra egg"
        assert "image" not in line.to_wire()
