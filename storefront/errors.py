"""Exceptions raised by the storefront client."""

from typing import Optional


class StorefrontError(Exception):
    """Base class for storefront errors."""

    pass


class CartValidationError(StorefrontError):
    """A cart change was rejected before touching any state."""

    pass


class CheckoutValidationError(StorefrontError):
    """The order form or cart is not ready to be submitted."""

    pass


class ProductValidationError(StorefrontError):
    """Owner product form is incomplete or conflicts with an existing product."""

    pass


class OrderStatusError(StorefrontError):
    """Requested order status change is not allowed."""

    pass


class ApiError(StorefrontError):
    """The storefront API answered with an error status."""

    def __init__(self, status_code: int, detail: str):
        self.status_code = status_code
        self.detail = detail
        super().__init__(f"{status_code}: {detail}")


class AccessDenied(ApiError):
    """Missing, invalid or insufficient credentials."""

    def __init__(self, detail: str, status_code: Optional[int] = 403):
        super().__init__(status_code, detail)


class ApiUnavailable(StorefrontError):
    """The storefront API could not be reached."""

    pass
