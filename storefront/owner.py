"""Owner administration: product management, order status and dashboard stats."""

import logging
from typing import Dict, List, Mapping, Optional

from pydantic import BaseModel, ValidationError

from schemas import OrderRecord, Product, can_transition, product_slug

from .catalog import Catalog, matches_search
from .errors import AccessDenied, ApiError, ApiUnavailable, OrderStatusError, ProductValidationError
from .notices import NoticeBoard
from .storage import ORDERS_KEY

logger = logging.getLogger(__name__)


class OwnerStats(BaseModel):
    total_orders: int
    total_revenue: float
    total_products: int
    total_customers: int
    pending_orders: int


class OwnerPortal:
    def __init__(self, api, storage, notices: Optional[NoticeBoard] = None):
        self.api = api
        self.storage = storage
        self.catalog = Catalog(api, storage)
        self.orders: List[OrderRecord] = []
        self.user: Optional[dict] = None
        self.notices = notices or NoticeBoard()

    @property
    def products(self) -> Dict[str, Product]:
        return self.catalog.products

    # ----- Session -----
    def login(self, email: str, password: str) -> dict:
        user = self.api.login(email, password)
        if user.get("role") != "owner":
            self.api.token = None
            raise AccessDenied("Access denied. Owner privileges required.")
        self.user = user
        self.load_products()
        self.load_orders()
        self.notices.post("Welcome to AS Nuts Owner Portal!")
        return user

    def logout(self):
        self.api.token = None
        self.user = None
        self.catalog.products = {}
        self.orders = []

    # ----- Products -----
    def load_products(self) -> bool:
        loaded = self.catalog.load()
        if not loaded:
            self.notices.post("Using offline products. Database connection failed.", is_error=True)
        return loaded

    def add_product(self, fields: Mapping[str, object]) -> Optional[Product]:
        name = str(fields.get("name") or "").strip()
        description = str(fields.get("description") or "").strip()
        image = str(fields.get("image") or "").strip()
        price = fields.get("price")
        if not name or not description or not image or price in (None, ""):
            raise ProductValidationError("Please fill in all required product details.")
        try:
            price = float(price)
        except (TypeError, ValueError):
            raise ProductValidationError("Price must be a positive number.")
        if price <= 0:
            raise ProductValidationError("Price must be a positive number.")

        product_id = product_slug(name)
        if not product_id:
            raise ProductValidationError("Product name must contain letters or digits.")
        if product_id in self.products:
            raise ProductValidationError("A product with this name already exists.")
        try:
            product = Product(
                id=product_id,
                name=name,
                name_tamil=str(fields.get("name_tamil") or "").strip() or None,
                price=price,
                description=description,
                image=image,
                category=fields.get("category") or "cashews",
                badge=fields.get("badge") or None,
            )
        except ValidationError as e:
            raise ProductValidationError(str(e)) from e

        try:
            saved = self.api.create_product(product)
        except AccessDenied:
            raise
        except (ApiError, ApiUnavailable) as e:
            return self._failed("Failed to add product.", e)
        self.products[saved.id] = saved
        self.catalog.persist()
        self.notices.post("New product added successfully!")
        return saved

    def save_product(self, product_id: str, **changes) -> Optional[Product]:
        if product_id not in self.products:
            raise ProductValidationError(f"Unknown product: {product_id}")
        if "price" in changes:
            try:
                valid_price = float(changes["price"]) > 0
            except (TypeError, ValueError):
                valid_price = False
            if not valid_price:
                raise ProductValidationError("Price must be a positive number.")
        try:
            saved = self.api.update_product(product_id, changes)
        except AccessDenied:
            raise
        except (ApiError, ApiUnavailable) as e:
            return self._failed("Failed to save product.", e)
        self.products[product_id] = saved
        self.catalog.persist()
        self.notices.post(f"{saved.name} saved successfully!")
        return saved

    def delete_product(self, product_id: str) -> bool:
        """Delete a product. Existing orders keep their own item snapshots."""
        if product_id not in self.products:
            raise ProductValidationError(f"Unknown product: {product_id}")
        try:
            self.api.delete_product(product_id)
        except AccessDenied:
            raise
        except (ApiError, ApiUnavailable) as e:
            self._failed("Failed to delete product.", e)
            return False
        del self.products[product_id]
        self.catalog.persist()
        self.notices.post("Product deleted successfully!")
        return True

    def search_products(self, search_term: str) -> List[Product]:
        return [p for p in self.products.values() if matches_search(p, search_term)]

    # ----- Orders -----
    def load_orders(self) -> bool:
        try:
            orders = self.api.list_orders()
        except AccessDenied:
            raise
        except (ApiError, ApiUnavailable) as e:
            logger.warning("Using cached orders, order fetch failed: %s", e)
            self.orders = self._cached_orders()
            self.notices.post("Using cached orders. Database connection failed.", is_error=True)
            return False
        self.orders = orders
        self._cache_orders()
        return True

    def update_order_status(self, order_id: str, status: str) -> Optional[OrderRecord]:
        index = next((i for i, o in enumerate(self.orders) if o.id == order_id), None)
        if index is None:
            raise OrderStatusError(f"Order {order_id} not found")
        order = self.orders[index]
        if not can_transition(order.status, status):
            raise OrderStatusError(f"Cannot change order status from {order.status} to {status}")
        try:
            saved = self.api.update_order_status(order_id, status)
        except AccessDenied:
            raise
        except (ApiError, ApiUnavailable) as e:
            return self._failed("Failed to update order status.", e)
        self.orders[index] = order.model_copy(update={"status": saved.status})
        self._cache_orders()
        self.notices.post(f"Order status updated to {saved.status}")
        return self.orders[index]

    def filter_orders(self, status: str = "all") -> List[OrderRecord]:
        if status == "all":
            return list(self.orders)
        return [o for o in self.orders if o.status == status]

    def stats(self) -> OwnerStats:
        return OwnerStats(
            total_orders=len(self.orders),
            total_revenue=sum(o.total for o in self.orders),
            total_products=len(self.products),
            total_customers=len({o.phone for o in self.orders}),
            pending_orders=sum(1 for o in self.orders if o.status == "pending"),
        )

    def _failed(self, message: str, error: Exception):
        # local state is left as it was
        logger.error("%s %s", message, error)
        self.notices.post(message, is_error=True)
        return None

    def _cached_orders(self) -> List[OrderRecord]:
        try:
            return [OrderRecord.model_validate(o) for o in self.storage.get_json(ORDERS_KEY, [])]
        except (ValueError, TypeError) as e:
            logger.error("Failed to load cached orders: %s", e)
            return []

    def _cache_orders(self):
        self.storage.set_json(ORDERS_KEY, [o.model_dump(mode="json") for o in self.orders])
