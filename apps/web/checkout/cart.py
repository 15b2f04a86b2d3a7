"""
Cart store - the customer's selected menu items.

Items are keyed by name. Every mutation replaces the items tuple rather
than editing it, so a snapshot handed to a listener never changes under it.
"""

import logging
from collections.abc import Callable, Iterable

from pydantic import ConfigDict, Field, TypeAdapter, ValidationError
from takumaeat_schemas import OrderItemInput, WireModel

from apps.web.checkout.storage import KeyValueStorage

logger = logging.getLogger(__name__)

CART_STORAGE_KEY = "takumaeat:cart-items"


class CartItem(WireModel):
    """A line in the cart."""

    model_config = ConfigDict(frozen=True)

    name: str = Field(..., min_length=1)
    price: int = Field(..., ge=0)
    quantity: int = Field(default=1, ge=1)
    note: str = ""
    image: str = ""

    @property
    def line_total(self) -> int:
        return self.price * self.quantity


CartItems = tuple[CartItem, ...]
CartListener = Callable[[CartItems], None]

_snapshot_adapter = TypeAdapter(list[CartItem])


class CartStore:
    """
    Holds cart items and notifies listeners on change.

    Args:
        storage: Optional backend; when given, the cart is loaded from and
            saved to CART_STORAGE_KEY.
        items: Initial items (skips loading from storage).
    """

    def __init__(
        self,
        storage: KeyValueStorage | None = None,
        items: Iterable[CartItem] = (),
    ) -> None:
        self._storage = storage
        self._listeners: list[CartListener] = []
        initial = tuple(items)
        self._items: CartItems = initial if initial else self._load()

    @property
    def items(self) -> CartItems:
        return self._items

    @property
    def cart_item_count(self) -> int:
        return sum(item.quantity for item in self._items)

    @property
    def cart_subtotal(self) -> int:
        return sum(item.line_total for item in self._items)

    def get(self, name: str) -> CartItem | None:
        return next((item for item in self._items if item.name == name), None)

    def subscribe(self, listener: CartListener) -> Callable[[], None]:
        """Register a change listener. Returns a function that unsubscribes it."""
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    # =========================================================================
    # Mutations
    # =========================================================================

    def add_item(self, item: CartItem) -> None:
        """
        Add an item, or bump the quantity of the item with the same name.

        On merge the existing note and image are kept.
        """
        if self.get(item.name) is None:
            self._commit((*self._items, item))
            return
        self.increment_item(item.name)

    def increment_item(self, name: str) -> None:
        self._commit(
            tuple(
                item.model_copy(update={"quantity": item.quantity + 1})
                if item.name == name
                else item
                for item in self._items
            )
        )

    def decrement_item(self, name: str) -> None:
        """Reduce quantity by one; an item at quantity 1 is removed."""
        updated: list[CartItem] = []
        for item in self._items:
            if item.name != name:
                updated.append(item)
            elif item.quantity > 1:
                updated.append(item.model_copy(update={"quantity": item.quantity - 1}))
        self._commit(tuple(updated))

    def remove_item(self, name: str) -> None:
        self._commit(tuple(item for item in self._items if item.name != name))

    def clear_cart(self) -> None:
        self._commit(())

    def to_order_items(self) -> list[OrderItemInput]:
        """Cart lines as submitted with an order (image is not sent)."""
        return [
            OrderItemInput(
                name=item.name,
                price=item.price,
                quantity=item.quantity,
                note=item.note,
            )
            for item in self._items
        ]

    # =========================================================================
    # Internals
    # =========================================================================

    def _commit(self, items: CartItems) -> None:
        if items == self._items:
            return
        self._items = items
        self._save()
        for listener in list(self._listeners):
            listener(items)

    def _load(self) -> CartItems:
        if self._storage is None:
            return ()
        raw = self._storage.get_item(CART_STORAGE_KEY)
        if not raw:
            return ()
        try:
            return tuple(_snapshot_adapter.validate_json(raw))
        except ValidationError:
            logger.warning("Ignoring corrupt cart snapshot in storage")
            return ()

    def _save(self) -> None:
        if self._storage is None:
            return
        self._storage.set_item(
            CART_STORAGE_KEY,
            _snapshot_adapter.dump_json(list(self._items), by_alias=True).decode(),
        )
