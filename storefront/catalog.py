"""Product catalog cache: network first, hardcoded fallback otherwise."""

import logging
from typing import Dict, List, Optional

from pydantic import ValidationError

from schemas import Product

from .defaults import DEFAULT_PRODUCTS
from .errors import ApiError, ApiUnavailable
from .storage import PRODUCTS_KEY

logger = logging.getLogger(__name__)


def matches_search(product: Product, search_term: str) -> bool:
    """Case-insensitive substring match on name, description and Tamil name."""
    if not search_term:
        return True
    term = search_term.lower()
    fields = (product.name, product.description, product.name_tamil or "")
    return any(term in field.lower() for field in fields)


class Catalog:
    def __init__(self, api, storage):
        self.api = api
        self.storage = storage
        self.products: Dict[str, Product] = {}
        self.from_network = False

    def load(self) -> bool:
        """Fetch the catalog from the API, falling back to the default list.

        The fallback is persisted so other sessions of the same browser see the
        same catalog until the API answers again. Returns True when the
        network source was used.
        """
        try:
            products = self.api.list_products()
        except (ApiError, ApiUnavailable, ValidationError) as e:
            logger.warning("Using offline products, catalog fetch failed: %s", e)
            self.products = {p["id"]: Product(**p) for p in DEFAULT_PRODUCTS}
            self.from_network = False
            self.persist()
            return False
        self.products = {p.id: p for p in products}
        self.from_network = True
        return True

    def persist(self):
        self.storage.set_json(PRODUCTS_KEY, [p.model_dump() for p in self.products.values()])

    def get(self, product_id: str) -> Optional[Product]:
        return self.products.get(product_id)

    def render(self, category: str = "all", search_term: str = "") -> List[Product]:
        return [
            p
            for p in self.products.values()
            if (category == "all" or p.category == category) and matches_search(p, search_term)
        ]

    def __contains__(self, product_id):
        return product_id in self.products

    def __len__(self):
        return len(self.products)
