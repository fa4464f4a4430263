"""Cart state and total computation.

Lines are keyed by product id and persisted under ``CART_KEY`` after every
change. Cart writes do not notify other tabs; a tab sees another tab's cart
only after calling ``load()`` again.
"""

import logging
from typing import Dict, Iterable, List, Optional

from pydantic import BaseModel

from schemas import SHIPPING, CartLine, order_subtotal

from .errors import CartValidationError
from .storage import CART_KEY

logger = logging.getLogger(__name__)


class CartTotals(BaseModel):
    subtotal: float
    shipping: float
    total: float


def compute_totals(lines: Iterable[CartLine]) -> CartTotals:
    subtotal = order_subtotal(lines)
    return CartTotals(subtotal=subtotal, shipping=SHIPPING, total=subtotal + SHIPPING)


class Cart:
    def __init__(self, catalog, storage):
        self.catalog = catalog
        self.storage = storage
        self.lines: Dict[str, CartLine] = {}

    def load(self):
        try:
            stored = self.storage.get_json(CART_KEY, {})
            self.lines = {pid: CartLine.model_validate(line) for pid, line in stored.items()}
        except (ValueError, AttributeError) as e:
            logger.error("Failed to load cart from storage: %s", e)
            self.lines = {}

    def save(self):
        self.storage.set_json(CART_KEY, {pid: line.model_dump() for pid, line in self.lines.items()})

    def get(self, product_id: str) -> Optional[CartLine]:
        return self.lines.get(product_id)

    def add_or_update_line(self, product_id: str, quantity: int) -> CartLine:
        """Set the quantity for a product, creating the line if needed."""
        if isinstance(quantity, bool) or not isinstance(quantity, int) or quantity <= 0:
            raise CartValidationError("Please select a quantity greater than 0.")
        product = self.catalog.get(product_id)
        if product is None:
            raise CartValidationError(f"Unknown product: {product_id}")
        line = CartLine(
            product_id=product_id,
            name=product.name,
            name_tamil=product.name_tamil,
            unit_price=product.price,
            quantity=quantity,
            line_total=product.price * quantity,
        )
        self.lines[product_id] = line
        self.save()
        return line

    def increment_line(self, product_id: str) -> CartLine:
        line = self._require_line(product_id)
        return self._set_quantity(line, line.quantity + 1)

    def decrement_line(self, product_id: str) -> Optional[CartLine]:
        """Drop one unit; a line at quantity 1 is removed and None returned."""
        line = self._require_line(product_id)
        if line.quantity <= 1:
            self.remove_line(product_id)
            return None
        return self._set_quantity(line, line.quantity - 1)

    def remove_line(self, product_id: str) -> Optional[CartLine]:
        line = self.lines.pop(product_id, None)
        self.save()
        return line

    def clear(self):
        self.lines = {}
        self.save()

    def compute_totals(self) -> CartTotals:
        return compute_totals(self.lines.values())

    def snapshot(self) -> List[CartLine]:
        return [line.model_copy() for line in self.lines.values()]

    @property
    def item_count(self) -> int:
        return sum(line.quantity for line in self.lines.values())

    @property
    def is_empty(self) -> bool:
        return not self.lines

    def _require_line(self, product_id: str) -> CartLine:
        line = self.lines.get(product_id)
        if line is None:
            raise CartValidationError(f"{product_id} is not in the cart")
        return line

    def _set_quantity(self, line: CartLine, quantity: int) -> CartLine:
        updated = line.model_copy(update={"quantity": quantity, "line_total": line.unit_price * quantity})
        self.lines[line.product_id] = updated
        self.save()
        return updated

    def __contains__(self, product_id):
        return product_id in self.lines

    def __len__(self):
        return len(self.lines)
