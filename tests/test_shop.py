# --- path bootstrap (keep this at the very top) ---
from pathlib import Path
import sys

SRC = Path(__file__).resolve().parents[1] / "src"
if str(SRC) not in sys.path:
    sys.path.insert(0, str(SRC))
# --- end path bootstrap ---

import unittest
from decimal import Decimal

from config import ShopConfig
from errors import InvalidTransitionError, OperationRejectedError
from metrics import (
    OPERATIONS_REJECTED_TOTAL,
    ORDER_TOTAL_AMOUNT,
    ORDERS_PROCESSED_TOTAL,
    PRODUCT_STOCK,
    reset_metrics,
)
from models import Customer, Order, OrderStatus, Product, ProductCategory
from shop import Shop


class ShopTestCase(unittest.TestCase):
    """Seeds a shop with the three demo products and one customer."""

    strict = False

    def setUp(self):
        reset_metrics()
        self.shop = Shop("Isroil Store", strict=self.strict)
        self.iphone = Product(1, "iPhone 15", 15000000, 10, ProductCategory.ELECTRONICS)
        self.tshirt = Product(2, "White T-shirt", 100000, 20, ProductCategory.CLOTHING)
        self.bread = Product(3, "Non", 3000, 50, ProductCategory.FOOD)
        for p in (self.iphone, self.tshirt, self.bread):
            self.shop.add_product(p)
        self.customer = Customer(101, "Marko", "mark@mail.com", "+998901234567")
        self.shop.register_customer(self.customer)


class TestCatalogue(ShopTestCase):

    def test_add_product_is_insert_if_absent(self):
        duplicate = Product(1, "Other phone", 1, 1, ProductCategory.ELECTRONICS)
        result = self.shop.add_product(duplicate)
        self.assertFalse(result)
        self.assertEqual(len(self.shop.products), 3)
        self.assertIs(self.shop.get_product(1), self.iphone)
        self.assertEqual(OPERATIONS_REJECTED_TOTAL.value(operation="shop.add_product"), 1)

    def test_get_product_absent_returns_none(self):
        self.assertIsNone(self.shop.get_product(999))

    def test_stock_gauge_tracks_catalogue(self):
        self.assertEqual(PRODUCT_STOCK.value(product_id="3"), 50.0)
        order = self.shop.create_order(self.customer)
        self.shop.add_item(order, 3, 4)
        self.assertEqual(PRODUCT_STOCK.value(product_id="3"), 46.0)

    def test_search_by_name_and_category(self):
        result = self.shop.search_products("shirt")
        self.assertEqual([p.id for p in result.products], [2])
        self.assertEqual(result.total_count, 1)
        self.assertGreaterEqual(result.search_time, 0.0)

        everything = self.shop.search_products()
        self.assertEqual(everything.total_count, 3)

        food = self.shop.search_products(category=ProductCategory.FOOD)
        self.assertEqual([p.name for p in food.products], ["Non"])

        none = self.shop.search_products("iphone", category=ProductCategory.BOOKS)
        self.assertEqual(none.total_count, 0)
        self.assertEqual(none.products, [])

    def test_stock_levels(self):
        self.assertEqual(self.shop.stock_levels(), {1: 10, 2: 20, 3: 50})


class TestCustomers(ShopTestCase):

    def test_register_same_email_twice(self):
        again = Customer(202, "Marko Two", "mark@mail.com", "+998900000000")
        self.assertFalse(self.shop.register_customer(again))
        self.assertFalse(self.shop.register_customer(self.customer))
        self.assertEqual(len(self.shop.customers), 1)
        self.assertIs(self.shop.find_customer("mark@mail.com"), self.customer)

    def test_other_email_registers(self):
        other = Customer(102, "Aziz", "aziz@mail.com", "+998911111111")
        self.assertTrue(self.shop.register_customer(other))
        self.assertEqual(len(self.shop.customers), 2)
        self.assertIsNone(self.shop.find_customer("nobody@mail.com"))


class TestOrders(ShopTestCase):

    def test_create_order_allocates_ids(self):
        first = self.shop.create_order(self.customer)
        second = self.shop.create_order(self.customer)
        self.assertEqual((first.order_id, second.order_id), (1, 2))
        self.assertEqual(first.status, OrderStatus.PENDING)
        self.assertIs(first.customer, self.customer)

    def test_add_item_by_id(self):
        order = self.shop.create_order(self.customer)
        self.assertTrue(self.shop.add_item(order, 1, 1))
        self.assertTrue(self.shop.add_item(order, 2, 2))
        self.assertTrue(self.shop.add_item(order, 3, 3))
        self.assertEqual(order.calculate_total(), Decimal("15209000"))
        self.assertEqual(self.shop.stock_levels(), {1: 9, 2: 18, 3: 47})

    def test_add_item_rejections_leave_state(self):
        order = self.shop.create_order(self.customer)
        missing = self.shop.add_item(order, 42, 1)
        self.assertFalse(missing)
        self.assertEqual(missing.error_message, "Product not found.")

        self.assertFalse(self.shop.add_item(order, 1, 11))
        self.assertFalse(self.shop.add_item(order, 1, 0))
        self.assertEqual(order.items, [])
        self.assertEqual(self.iphone.stock, 10)
        self.assertEqual(OPERATIONS_REJECTED_TOTAL.value(operation="order.add_item"), 3)

    def test_process_order_links_customer(self):
        order = self.shop.create_order(self.customer)
        self.shop.add_item(order, 3, 2)
        self.assertTrue(self.shop.process_order(order))

        self.assertEqual(self.shop.orders, [order])
        self.assertEqual(self.customer.orders, [order])
        self.assertEqual(self.customer.get_total_orders(), 1)
        self.assertEqual(self.shop.orders_for(self.customer), [order])
        self.assertEqual(ORDERS_PROCESSED_TOTAL.value(), 1)
        self.assertEqual(ORDER_TOTAL_AMOUNT.count(), 1)

    def test_empty_order_is_dropped(self):
        order = self.shop.create_order(self.customer)
        result = self.shop.process_order(order)
        self.assertFalse(result)
        self.assertNotIn(order, self.shop.orders)
        self.assertNotIn(order, self.customer.orders)
        self.assertEqual(ORDERS_PROCESSED_TOTAL.value(), 0)

    def test_orders_are_not_deduplicated(self):
        order = self.shop.create_order(self.customer)
        self.shop.add_item(order, 3, 1)
        self.shop.process_order(order)
        self.shop.process_order(order)
        self.assertEqual(len(self.shop.orders), 2)

    def test_externally_built_order_advances_ids(self):
        order = Order(7, self.customer)
        order.add_item(self.bread, 1)
        self.shop.process_order(order)
        self.assertEqual(self.shop.create_order(self.customer).order_id, 8)

    def test_update_order_status(self):
        order = self.shop.create_order(self.customer)
        self.assertTrue(self.shop.update_order_status(order, OrderStatus.PROCESSING))
        self.assertEqual(order.status.value, "qayta ishlanmoqda")
        self.assertFalse(self.shop.update_order_status(order, OrderStatus.DELIVERED))
        self.assertEqual(order.status, OrderStatus.PROCESSING)


class TestRejectionLogging(ShopTestCase):

    def test_duplicate_product_is_logged(self):
        with self.assertLogs("shop", level="WARNING") as logs:
            self.shop.add_product(Product(1, "Copy", 1, 1, ProductCategory.ELECTRONICS))
        self.assertEqual(len(logs.records), 1)
        self.assertIn("shop.add_product rejected", logs.records[0].getMessage())
        self.assertEqual(logs.records[0].extra["shop"], "Isroil Store")

    def test_empty_order_is_logged_with_order_id(self):
        order = self.shop.create_order(self.customer)
        with self.assertLogs("shop", level="WARNING") as logs:
            self.shop.process_order(order)
        record = logs.records[0]
        self.assertIn("Order has no items.", record.getMessage())
        self.assertEqual(record.order_id, order.order_id)


class TestStrictShop(ShopTestCase):

    strict = True

    def test_duplicate_product_raises(self):
        with self.assertRaises(OperationRejectedError) as ctx:
            self.shop.add_product(Product(2, "Copy", 1, 1, ProductCategory.CLOTHING))
        self.assertEqual(ctx.exception.operation, "shop.add_product")
        self.assertEqual(len(self.shop.products), 3)

    def test_empty_order_raises(self):
        order = self.shop.create_order(self.customer)
        with self.assertRaises(OperationRejectedError):
            self.shop.process_order(order)
        self.assertEqual(self.shop.orders, [])

    def test_insufficient_stock_raises(self):
        order = self.shop.create_order(self.customer)
        with self.assertRaises(OperationRejectedError):
            self.shop.add_item(order, 1, 100)
        self.assertEqual(self.iphone.stock, 10)

    def test_invalid_transition_raises(self):
        order = self.shop.create_order(self.customer)
        with self.assertRaises(InvalidTransitionError) as ctx:
            self.shop.update_order_status(order, OrderStatus.SHIPPED)
        self.assertEqual(ctx.exception.current, "kutilmoqda")
        self.assertEqual(ctx.exception.requested, "yuborilgan")
        self.assertEqual(order.status, OrderStatus.PENDING)

    def test_invalid_transition_is_logged_and_counted_once(self):
        order = self.shop.create_order(self.customer)
        with self.assertLogs("shop", level="WARNING") as logs:
            with self.assertRaises(InvalidTransitionError):
                self.shop.update_order_status(order, OrderStatus.DELIVERED)
        self.assertEqual(len(logs.records), 1)
        self.assertEqual(logs.records[0].order_id, order.order_id)
        self.assertEqual(OPERATIONS_REJECTED_TOTAL.value(operation="order.update_status"), 1)


class TestShopFromConfig(unittest.TestCase):

    def test_settings_flow_into_orders(self):
        config = ShopConfig(shop_name="Test Shop", strict_mode=True, enforce_transitions=False)
        shop = Shop.from_config(config)
        self.assertEqual(shop.name, "Test Shop")
        self.assertTrue(shop.strict)
        customer = Customer(1, "A", "a@mail.com", "1")
        order = shop.create_order(customer)
        self.assertFalse(order.enforce_transitions)
        self.assertTrue(shop.update_order_status(order, OrderStatus.DELIVERED))


if __name__ == "__main__":
    unittest.main(verbosity=2)
