# src/shop.py
from __future__ import annotations

import logging
import time
from typing import Callable, Dict, List, Optional

from errors import InvalidTransitionError
from metrics import (
    OPERATIONS_REJECTED_TOTAL,
    ORDER_TOTAL_AMOUNT,
    ORDERS_PROCESSED_TOTAL,
    PRODUCT_STOCK,
)
from models import (
    Customer,
    Order,
    OrderStatus,
    Product,
    ProductCategory,
    SearchResult,
    ValidationResult,
)

logger = logging.getLogger(__name__)


class Shop:
    """
    Aggregate root holding the product catalogue, registered customers and
    processed orders.

    Every mutating method returns a ValidationResult.  With ``strict`` set,
    a rejected operation raises ``errors.OperationRejectedError`` instead.
    """

    def __init__(self, name: str, strict: bool = False, enforce_transitions: bool = True) -> None:
        self.name = name
        self.strict = strict
        self.enforce_transitions = enforce_transitions
        self.products: List[Product] = []
        self.customers: List[Customer] = []
        self.orders: List[Order] = []
        self._next_order_id = 1

    @classmethod
    def from_config(cls, config) -> "Shop":
        return cls(
            config.shop_name,
            strict=config.strict_mode,
            enforce_transitions=config.enforce_transitions,
        )

    def _finish(
        self,
        operation: str,
        result: ValidationResult,
        error: Optional[Callable[[], Exception]] = None,
        **context,
    ) -> ValidationResult:
        """Log and count a rejection; raise it in strict mode.

        ``error`` builds the exception raised in strict mode; by default an
        ``OperationRejectedError`` carrying the rejection reason.
        """
        if result:
            return result
        OPERATIONS_REJECTED_TOTAL.inc(operation=operation)
        logger.warning(
            f"{operation} rejected: {result.error_message}",
            extra={**context, "extra": {"shop": self.name}},
        )
        if self.strict:
            if error is not None:
                raise error()
            result.raise_if_invalid(operation)
        return result

    # ---- Product catalogue ----

    def add_product(self, product: Product) -> ValidationResult:
        if self.get_product(product.id) is not None:
            result = ValidationResult.rejected(f"Product {product.id} already exists.")
        else:
            self.products.append(product)
            PRODUCT_STOCK.set(product.stock, product_id=str(product.id))
            result = ValidationResult.ok()
        return self._finish("shop.add_product", result)

    def get_product(self, product_id: int) -> Optional[Product]:
        for p in self.products:
            if p.id == product_id:
                return p
        return None

    def search_products(self, query: str = "", category: ProductCategory | None = None) -> SearchResult:
        """Case-insensitive name search, optionally limited to one category."""
        start = time.perf_counter()
        needle = query.strip().lower()
        matches = [
            p
            for p in self.products
            if needle in p.name.lower() and (category is None or p.category == category)
        ]
        return SearchResult(
            products=matches,
            total_count=len(matches),
            search_time=time.perf_counter() - start,
        )

    # ---- Customers ----

    def register_customer(self, customer: Customer) -> ValidationResult:
        if self.find_customer(customer.email) is not None:
            result = ValidationResult.rejected(f"Customer with email {customer.email} already registered.")
        else:
            self.customers.append(customer)
            result = ValidationResult.ok()
        return self._finish("shop.register_customer", result, customer_id=customer.customer_id)

    def find_customer(self, email: str) -> Optional[Customer]:
        for c in self.customers:
            if c.email == email:
                return c
        return None

    # ---- Orders ----

    def create_order(self, customer: Customer) -> Order:
        """Start an empty order with the next free order id."""
        order = Order(self._next_order_id, customer, enforce_transitions=self.enforce_transitions)
        self._next_order_id += 1
        return order

    def add_item(self, order: Order, product_id: int, quantity: int) -> ValidationResult:
        """Add a catalogue product to ``order`` by id; stock is taken from the catalogue entry."""
        product = self.get_product(product_id)
        if product is None:
            result = ValidationResult.rejected("Product not found.")
        else:
            result = order.add_item(product, quantity)
            if result:
                PRODUCT_STOCK.set(product.stock, product_id=str(product.id))
        return self._finish("order.add_item", result, order_id=order.order_id)

    def process_order(self, order: Order) -> ValidationResult:
        """Record a non-empty order with the shop and its customer."""
        if order.is_empty():
            result = ValidationResult.rejected("Order has no items.")
        else:
            self.orders.append(order)
            order.customer.orders.append(order)
            self._next_order_id = max(self._next_order_id, order.order_id + 1)
            total = order.calculate_total()
            ORDERS_PROCESSED_TOTAL.inc()
            ORDER_TOTAL_AMOUNT.observe(float(total))
            logger.info(
                "Order processed",
                extra={
                    "order_id": order.order_id,
                    "customer_id": order.customer.customer_id,
                    "extra": {"items": len(order.items), "total": str(total)},
                },
            )
            result = ValidationResult.ok()
        return self._finish("shop.process_order", result, order_id=order.order_id)

    def update_order_status(self, order: Order, new_status: OrderStatus) -> ValidationResult:
        current = order.status
        result = order.update_status(new_status)
        return self._finish(
            "order.update_status",
            result,
            error=lambda: InvalidTransitionError("order", current.value, OrderStatus(new_status).value),
            order_id=order.order_id,
        )

    def orders_for(self, customer: Customer) -> List[Order]:
        return [o for o in self.orders if o.customer is customer]

    def stock_levels(self) -> Dict[int, int]:
        return {p.id: p.stock for p in self.products}
