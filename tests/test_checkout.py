from unittest.mock import MagicMock

import pytest

from storefront.cart import Cart
from storefront.checkout import CONTACT_PHONE, build_order_payload, submit_order
from storefront.errors import ApiError, CheckoutValidationError

from .conftest import CHECKOUT_FORM


@pytest.fixture
def cart(default_catalog, storage):
    cart = Cart(default_catalog, storage)
    cart.add_or_update_line("batham", 2)
    return cart


class TestBuildOrderPayload:
    def test_payload_snapshots_cart(self, cart):
        order = build_order_payload(cart, CHECKOUT_FORM)

        assert order.total == 330
        assert order.status == "pending"
        assert [(i.product_id, i.quantity, i.line_total) for i in order.items] == [("batham", 2, 280)]

    def test_snapshot_is_independent_of_cart(self, cart):
        order = build_order_payload(cart, CHECKOUT_FORM)

        cart.increment_line("batham")

        assert order.items[0].quantity == 2

    def test_fields_are_trimmed(self, cart):
        order = build_order_payload(cart, {**CHECKOUT_FORM, "customer_name": "  Priya  "})

        assert order.customer_name == "Priya"

    @pytest.mark.parametrize("field", ["customer_name", "phone", "address", "pincode", "place"])
    def test_required_fields(self, cart, field):
        with pytest.raises(CheckoutValidationError):
            build_order_payload(cart, {**CHECKOUT_FORM, field: "   "})

    def test_payment_method_required(self, cart):
        with pytest.raises(CheckoutValidationError, match="payment method"):
            build_order_payload(cart, {**CHECKOUT_FORM, "payment_method": "card"})


class TestSubmitOrder:
    def test_empty_cart_never_hits_network(self, default_catalog, storage):
        api = MagicMock()

        with pytest.raises(CheckoutValidationError, match="empty"):
            submit_order(Cart(default_catalog, storage), CHECKOUT_FORM, api)

        api.submit_order.assert_not_called()

    def test_invalid_form_never_hits_network(self, cart):
        api = MagicMock()

        with pytest.raises(CheckoutValidationError):
            submit_order(cart, {**CHECKOUT_FORM, "phone": ""}, api)

        api.submit_order.assert_not_called()
        assert not cart.is_empty

    def test_cod_order(self, cart, api, mongo_db):
        result = submit_order(cart, CHECKOUT_FORM, api)

        assert result.success
        assert "Priya" in result.message
        assert "Panruti" in result.message
        assert "9876543210" in result.message
        assert "Cash on Delivery" in result.message
        assert cart.is_empty
        stored = mongo_db["order"].find_one({})
        assert stored["total"] == 330
        assert stored["status"] == "pending"

    def test_online_order(self, cart, api):
        result = submit_order(cart, {**CHECKOUT_FORM, "payment_method": "online"}, api)

        assert result.success
        assert "Payment details received" in result.message
        assert result.order.payment_method == "online"

    def test_unreachable_server_keeps_cart(self, cart, offline_api):
        result = submit_order(cart, CHECKOUT_FORM, offline_api)

        assert not result.success
        assert CONTACT_PHONE in result.message
        assert cart.get("batham").quantity == 2

    def test_server_error_keeps_cart(self, cart):
        api = MagicMock()
        api.submit_order.side_effect = ApiError(500, "Failed to create order")

        result = submit_order(cart, CHECKOUT_FORM, api)

        assert not result.success
        assert result.order is None
        api.submit_order.assert_called_once()
        assert len(cart) == 1

    def test_non_json_response_keeps_cart(self, cart, captive_portal_api):
        result = submit_order(cart, CHECKOUT_FORM, captive_portal_api)

        assert not result.success
        assert result.message == f"Failed to place order. Please call us directly at {CONTACT_PHONE}"
        assert cart.get("batham").quantity == 2
