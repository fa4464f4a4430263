"""A single customer tab: catalog, cart and the notices shown to the customer."""

import logging
from typing import List, Mapping, Optional

from schemas import CartLine, OrderRecord, Product

from .cart import Cart, CartTotals
from .catalog import Catalog
from .checkout import submit_order
from .errors import CartValidationError, CheckoutValidationError
from .notices import NoticeBoard
from .storage import PRODUCTS_KEY, StorageEvent

logger = logging.getLogger(__name__)


class Storefront:
    def __init__(self, api, storage, notices: Optional[NoticeBoard] = None):
        self.api = api
        self.storage = storage
        self.catalog = Catalog(api, storage)
        self.cart = Cart(self.catalog, storage)
        self.notices = notices or NoticeBoard()
        storage.add_listener(self.handle_storage_update)

    def open(self):
        if self.catalog.load():
            self.notices.post("Products loaded from database!")
        else:
            self.notices.post("Using offline products. Some items may not be current.", is_error=True)
        self.cart.load()

    def close(self):
        """Stop reacting to catalog changes made in other tabs."""
        self.storage.remove_listener(self.handle_storage_update)

    def handle_storage_update(self, event: StorageEvent):
        # only catalog changes are shared between tabs
        if event.key == PRODUCTS_KEY:
            self.catalog.load()
            self.notices.post("Products updated!")

    def products(self, category: str = "all", search_term: str = "") -> List[Product]:
        return self.catalog.render(category, search_term)

    def add_to_cart(self, product_id: str, quantity: int) -> Optional[CartLine]:
        existed = product_id in self.cart
        try:
            line = self.cart.add_or_update_line(product_id, quantity)
        except CartValidationError as e:
            self.notices.post(str(e), is_error=True)
            return None
        action = "updated in" if existed else "added to"
        self.notices.post(f"{quantity} × 50g of {line.name} {action} cart!")
        return line

    def increment(self, product_id: str) -> Optional[CartLine]:
        try:
            return self.cart.increment_line(product_id)
        except CartValidationError as e:
            self.notices.post(str(e), is_error=True)
            return None

    def decrement(self, product_id: str) -> Optional[CartLine]:
        try:
            line = self.cart.decrement_line(product_id)
        except CartValidationError as e:
            self.notices.post(str(e), is_error=True)
            return None
        if line is None:
            self.notices.post("Item removed from cart.", is_error=True)
        return line

    def remove(self, product_id: str) -> bool:
        if self.cart.remove_line(product_id) is None:
            return False
        self.notices.post("Item removed from cart.", is_error=True)
        return True

    def totals(self) -> CartTotals:
        return self.cart.compute_totals()

    def place_order(self, form: Mapping[str, str]) -> Optional[OrderRecord]:
        try:
            result = submit_order(self.cart, form, self.api)
        except CheckoutValidationError as e:
            self.notices.post(str(e), is_error=True)
            return None
        self.notices.post(result.message, is_error=not result.success)
        return result.order
