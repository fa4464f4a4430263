"""HTTP client for the storefront REST API.

Wraps an ``httpx.Client`` and turns transport failures into ``ApiUnavailable``
and error responses into ``ApiError`` / ``AccessDenied``.
"""

import logging
import os
from typing import List, Optional

import httpx

from schemas import Order, OrderRecord, Product

from .errors import AccessDenied, ApiError, ApiUnavailable

logger = logging.getLogger(__name__)

DEFAULT_API_BASE = os.getenv("STOREFRONT_API_BASE", "http://localhost:8000")
DEFAULT_TIMEOUT = float(os.getenv("STOREFRONT_API_TIMEOUT", "10"))


def _error_detail(response: httpx.Response) -> str:
    try:
        body = response.json()
    except ValueError:
        return response.text or response.reason_phrase
    detail = body.get("detail") if isinstance(body, dict) else None
    if isinstance(detail, list):
        # request validation errors
        return "; ".join(str(d.get("msg", d)) if isinstance(d, dict) else str(d) for d in detail)
    return str(detail or response.reason_phrase)


def _handle_response(response: httpx.Response):
    if response.is_success:
        try:
            return response.json()
        except ValueError:
            logger.warning("Expected JSON, got %s", response.headers.get("content-type", "no content type"))
            raise ApiError(response.status_code, "Invalid response from server")
    detail = _error_detail(response)
    if response.status_code in (401, 403):
        raise AccessDenied(detail, response.status_code)
    raise ApiError(response.status_code, detail)


class StoreApiClient:
    def __init__(self, base_url: Optional[str] = None, client: Optional[httpx.Client] = None, token: Optional[str] = None):
        self._client = client or httpx.Client(base_url=base_url or DEFAULT_API_BASE, timeout=DEFAULT_TIMEOUT)
        self.token = token

    def close(self):
        self._client.close()

    def __enter__(self):
        return self

    def __exit__(self, *exc_info):
        self.close()

    def _request(self, method: str, path: str, auth: bool = False, **kwargs):
        headers = {}
        if auth:
            if not self.token:
                raise AccessDenied("Authentication required", 401)
            headers["Authorization"] = f"Bearer {self.token}"
        try:
            response = self._client.request(method, path, headers=headers, **kwargs)
        except httpx.RequestError as e:
            logger.warning("%s %s failed: %s", method, path, e)
            raise ApiUnavailable(f"Cannot connect to server: {e}") from e
        return _handle_response(response)

    # ----- Auth -----
    def register(self, name: str, email: str, password: str) -> dict:
        data = self._request("POST", "/api/register", json={"name": name, "email": email, "password": password})
        return data["user"]

    def login(self, email: str, password: str) -> dict:
        data = self._request("POST", "/api/login", json={"email": email, "password": password})
        self.token = data["token"]
        return data["user"]

    # ----- Products -----
    def list_products(self) -> List[Product]:
        return [Product.model_validate(p) for p in self._request("GET", "/api/products")]

    def create_product(self, product: Product) -> Product:
        data = self._request("POST", "/api/products", auth=True, json=product.model_dump(exclude_none=True))
        return Product.model_validate(data["product"])

    def update_product(self, product_id: str, changes: dict) -> Product:
        data = self._request("PUT", f"/api/products/{product_id}", auth=True, json=changes)
        return Product.model_validate(data["product"])

    def delete_product(self, product_id: str):
        self._request("DELETE", f"/api/products/{product_id}", auth=True)

    # ----- Orders -----
    def submit_order(self, order: Order) -> OrderRecord:
        data = self._request("POST", "/api/orders", json=order.model_dump(mode="json"))
        return OrderRecord.model_validate(data["order"])

    def list_orders(self) -> List[OrderRecord]:
        return [OrderRecord.model_validate(o) for o in self._request("GET", "/api/orders", auth=True)]

    def update_order_status(self, order_id: str, status: str) -> OrderRecord:
        data = self._request("PATCH", f"/api/orders/{order_id}", auth=True, json={"status": status})
        return OrderRecord.model_validate(data["order"])
