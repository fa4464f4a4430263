from storefront.session import Storefront
from storefront.storage import CART_KEY, PRODUCTS_KEY, StorageEvent

from .conftest import CHECKOUT_FORM


class TestStorefront:
    def test_open_online(self, api, seeded, storage):
        shop = Storefront(api, storage)

        shop.open()

        assert shop.notices.latest.message == "Products loaded from database!"
        assert len(shop.products("cashews")) == 6

    def test_open_offline_uses_defaults(self, offline_api, storage):
        shop = Storefront(offline_api, storage)

        shop.open()

        assert shop.notices.latest.is_error
        assert shop.catalog.get("batham").price == 140

    def test_open_restores_cart(self, offline_api, storage):
        first = Storefront(offline_api, storage)
        first.open()
        first.add_to_cart("batham", 2)

        again = Storefront(offline_api, storage)
        again.open()

        assert again.totals().total == 330

    def test_add_to_cart_messages(self, offline_api, storage):
        shop = Storefront(offline_api, storage)
        shop.open()

        shop.add_to_cart("batham", 2)
        assert shop.notices.latest.message == "2 × 50g of Batham Cashew Nuts added to cart!"

        shop.add_to_cart("batham", 3)
        assert shop.notices.latest.message == "3 × 50g of Batham Cashew Nuts updated in cart!"

    def test_zero_quantity_is_a_notice(self, offline_api, storage):
        shop = Storefront(offline_api, storage)
        shop.open()

        assert shop.add_to_cart("batham", 0) is None
        assert shop.notices.latest.is_error
        assert shop.cart.is_empty

    def test_decrement_to_zero_removes(self, offline_api, storage):
        shop = Storefront(offline_api, storage)
        shop.open()
        shop.add_to_cart("w180", 1)

        assert shop.decrement("w180") is None
        assert "w180" not in shop.cart
        assert shop.notices.latest.message == "Item removed from cart."

    def test_remove_missing_line_is_silent(self, offline_api, storage):
        shop = Storefront(offline_api, storage)
        shop.open()
        shop.notices.clear()

        assert shop.remove("w180") is False
        assert shop.notices.latest is None

    def test_remove_line(self, offline_api, storage):
        shop = Storefront(offline_api, storage)
        shop.open()
        shop.add_to_cart("w180", 2)

        assert shop.remove("w180") is True
        assert shop.cart.is_empty
        assert shop.notices.latest.message == "Item removed from cart."

    def test_increment_missing_line_is_a_notice(self, offline_api, storage):
        shop = Storefront(offline_api, storage)
        shop.open()

        assert shop.increment("w180") is None
        assert shop.notices.latest.is_error

    def test_place_order_empty_cart(self, offline_api, storage):
        shop = Storefront(offline_api, storage)
        shop.open()

        assert shop.place_order(CHECKOUT_FORM) is None
        assert "empty" in shop.notices.latest.message

    def test_place_order(self, api, seeded, storage):
        shop = Storefront(api, storage)
        shop.open()
        shop.add_to_cart("batham", 2)
        shop.add_to_cart("w180", 1)

        order = shop.place_order(CHECKOUT_FORM)

        assert order.total == 490
        assert shop.cart.is_empty
        assert not shop.notices.latest.is_error

    def test_place_order_offline_keeps_cart(self, offline_api, storage):
        shop = Storefront(offline_api, storage)
        shop.open()
        shop.add_to_cart("batham", 2)

        assert shop.place_order(CHECKOUT_FORM) is None
        assert shop.notices.latest.is_error
        assert not shop.cart.is_empty


class TestCrossTab:
    def test_catalog_change_reloads_other_tab(self, api, seeded, storage, other_tab):
        shop = Storefront(api, storage)
        shop.open()
        shop.notices.clear()

        other_tab.set_json(PRODUCTS_KEY, [])

        assert shop.notices.latest.message == "Products updated!"

    def test_cart_change_is_not_synced(self, offline_api, storage, other_tab):
        first = Storefront(offline_api, storage)
        second = Storefront(offline_api, other_tab)
        first.open()
        second.open()

        first.add_to_cart("batham", 2)

        assert second.cart.is_empty
        second.cart.load()
        assert "batham" in second.cart

    def test_ignores_unrelated_keys(self, offline_api, storage):
        shop = Storefront(offline_api, storage)
        shop.open()
        shop.notices.clear()

        shop.handle_storage_update(StorageEvent(key=CART_KEY, old_value=None, new_value="{}"))

        assert shop.notices.latest is None

    def test_closed_session_stops_listening(self, offline_api, storage, other_tab):
        shop = Storefront(offline_api, storage)
        shop.open()
        shop.close()
        shop.notices.clear()
        offline_api._client.request.reset_mock()

        other_tab.set_json(PRODUCTS_KEY, [])

        assert shop.notices.latest is None
        offline_api._client.request.assert_not_called()
