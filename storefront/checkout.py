"""Order submission: cart + customer form -> order on the server."""

import logging
import os
from typing import Mapping, Optional

from pydantic import BaseModel

from schemas import Order, OrderRecord

from .errors import ApiError, ApiUnavailable, CheckoutValidationError

logger = logging.getLogger(__name__)

CONTACT_PHONE = os.getenv("STOREFRONT_CONTACT_PHONE", "+91 9840694616")

REQUIRED_FIELDS = {
    "customer_name": "name",
    "phone": "phone",
    "address": "address",
    "pincode": "pincode",
    "place": "place",
}
PAYMENT_METHODS = ("cod", "online")


class CheckoutResult(BaseModel):
    success: bool
    message: str
    order: Optional[OrderRecord] = None


def build_order_payload(cart, form: Mapping[str, str]) -> Order:
    if cart.is_empty:
        raise CheckoutValidationError("Your cart is empty. Add some products first!")
    missing = [label for field, label in REQUIRED_FIELDS.items() if not str(form.get(field) or "").strip()]
    if missing:
        raise CheckoutValidationError(f"Please fill in your {', '.join(missing)}.")
    if form.get("payment_method") not in PAYMENT_METHODS:
        raise CheckoutValidationError("Please choose a payment method.")

    return Order(
        customer_name=form["customer_name"].strip(),
        phone=form["phone"].strip(),
        address=form["address"].strip(),
        pincode=form["pincode"].strip(),
        place=form["place"].strip(),
        payment_method=form["payment_method"],
        items=cart.snapshot(),
        total=cart.compute_totals().total,
    )


def confirmation_message(order: Order) -> str:
    if order.payment_method == "cod":
        return (
            f"Order placed successfully, {order.customer_name}! Your order will be delivered to {order.place}. "
            f"We will contact you on {order.phone}. Payment: Cash on Delivery"
        )
    return "Order confirmed! Payment details received. Thank you for choosing AS Nuts!"


def submit_order(cart, form: Mapping[str, str], api) -> CheckoutResult:
    """Send the current cart as an order.

    Validation problems raise ``CheckoutValidationError`` before any request is
    made. A failed request keeps the cart untouched and returns an unsuccessful
    result with the phone fallback; a successful one clears the cart.
    """
    order = build_order_payload(cart, form)
    try:
        saved = api.submit_order(order)
    except (ApiError, ApiUnavailable) as e:
        logger.error("Order submission failed: %s", e)
        return CheckoutResult(success=False, message=f"Failed to place order. Please call us directly at {CONTACT_PHONE}")
    cart.clear()
    return CheckoutResult(success=True, message=confirmation_message(saved), order=saved)
