"""Domain models for the shop: products, customers and orders.

All entities live in memory and are mutated through small guarded methods.
A guarded method never raises on bad input; it returns a
:class:`ValidationResult` that is falsy when the change was refused, and the
entity is left untouched.  Callers that prefer exceptions can call
:meth:`ValidationResult.raise_if_invalid`.

Enumerated values use the shop's Uzbek labels verbatim, since those labels
are what the console output prints.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from decimal import Decimal
from enum import Enum
from typing import Dict, FrozenSet, List, Optional

from errors import OperationRejectedError

logger = logging.getLogger(__name__)


# ------------------------------------------------------------------------------
# Enumerations
# ------------------------------------------------------------------------------

class ProductCategory(str, Enum):
    ELECTRONICS = "elektronika"
    CLOTHING = "kiyim-kechak"
    BOOKS = "kitoblar"
    FOOD = "oziq-ovqat"
    HOME = "uy-ro'zg'or buyumlari"


class OrderStatus(str, Enum):
    PENDING = "kutilmoqda"
    PROCESSING = "qayta ishlanmoqda"
    SHIPPED = "yuborilgan"
    DELIVERED = "yetkazilgan"
    CANCELLED = "bekor qilingan"


class PaymentMethod(str, Enum):
    CARD = "plastik karta"
    CASH = "naqd pul"
    BANK_TRANSFER = "bank o'tkazmasi"
    DIGITAL_WALLET = "raqamli hamyon"


class PaymentStatus(str, Enum):
    PENDING = "kutilmoqda"
    COMPLETED = "yakunlangan"
    FAILED = "muvaffaqiyatsiz"
    REFUNDED = "qaytarilgan"


# Allowed status moves.  Re-assigning the current status is always accepted.
ORDER_TRANSITIONS: Dict[OrderStatus, FrozenSet[OrderStatus]] = {
    OrderStatus.PENDING: frozenset({OrderStatus.PROCESSING, OrderStatus.CANCELLED}),
    OrderStatus.PROCESSING: frozenset({OrderStatus.SHIPPED, OrderStatus.CANCELLED}),
    OrderStatus.SHIPPED: frozenset({OrderStatus.DELIVERED, OrderStatus.CANCELLED}),
    OrderStatus.DELIVERED: frozenset(),
    OrderStatus.CANCELLED: frozenset(),
}

PAYMENT_TRANSITIONS: Dict[PaymentStatus, FrozenSet[PaymentStatus]] = {
    PaymentStatus.PENDING: frozenset({PaymentStatus.COMPLETED, PaymentStatus.FAILED}),
    PaymentStatus.COMPLETED: frozenset({PaymentStatus.REFUNDED}),
    PaymentStatus.FAILED: frozenset(),
    PaymentStatus.REFUNDED: frozenset(),
}


def can_transition(table, current, requested) -> bool:
    """Return True if ``requested`` may follow ``current`` in ``table``."""
    return requested == current or requested in table.get(current, frozenset())


def to_amount(value) -> Decimal:
    """Convert a price or amount to Decimal without float noise."""
    if isinstance(value, Decimal):
        return value
    return Decimal(str(value))


# ------------------------------------------------------------------------------
# Value records
# ------------------------------------------------------------------------------

@dataclass(frozen=True)
class ValidationResult:
    """Outcome of a guarded operation."""
    is_valid: bool
    error_message: Optional[str] = None

    @classmethod
    def ok(cls) -> "ValidationResult":
        return cls(True)

    @classmethod
    def rejected(cls, reason: str) -> "ValidationResult":
        return cls(False, reason)

    def __bool__(self) -> bool:
        return self.is_valid

    def raise_if_invalid(self, operation: str) -> None:
        if not self.is_valid:
            raise OperationRejectedError(operation, self.error_message)


@dataclass(frozen=True)
class OrderItem:
    """Snapshot of one product line inside an order."""
    product_id: int
    quantity: int
    unit_price: Decimal

    @property
    def total_price(self) -> Decimal:
        return self.unit_price * self.quantity


@dataclass
class SearchResult:
    products: List["Product"]
    total_count: int
    search_time: float


# ------------------------------------------------------------------------------
# Entities
# ------------------------------------------------------------------------------

def _reject(entity: str, operation: str, reason: str) -> ValidationResult:
    logger.debug(f"{entity}.{operation} rejected: {reason}")
    return ValidationResult.rejected(reason)


@dataclass
class Product:
    id: int
    name: str
    price: Decimal
    stock: int
    category: ProductCategory

    def __post_init__(self) -> None:
        self.price = to_amount(self.price)

    def update_price(self, new_price) -> ValidationResult:
        new_price = to_amount(new_price)
        if new_price <= 0:
            return _reject("product", "update_price", "Price must be positive.")
        self.price = new_price
        return ValidationResult.ok()

    def add_stock(self, quantity: int) -> ValidationResult:
        if quantity <= 0:
            return _reject("product", "add_stock", "Quantity must be positive.")
        self.stock += quantity
        return ValidationResult.ok()

    def reduce_stock(self, quantity: int) -> ValidationResult:
        if quantity <= 0:
            return _reject("product", "reduce_stock", "Quantity must be positive.")
        if quantity > self.stock:
            return _reject("product", "reduce_stock", f"Only {self.stock} in stock")
        self.stock -= quantity
        return ValidationResult.ok()

    def is_available(self) -> bool:
        return self.stock > 0


@dataclass(eq=False)
class Customer:
    """A buyer.  ``orders`` holds back-references filled in by the shop."""
    customer_id: int
    full_name: str
    email: str
    phone_number: str
    bonus_points: int = 0
    orders: List["Order"] = field(default_factory=list, repr=False)

    def add_bonus_points(self, points: int) -> ValidationResult:
        if points <= 0:
            return _reject("customer", "add_bonus_points", "Points must be positive.")
        self.bonus_points += points
        return ValidationResult.ok()

    def use_bonus_points(self, points: int) -> ValidationResult:
        if points <= 0:
            return _reject("customer", "use_bonus_points", "Points must be positive.")
        if self.bonus_points < points:
            return _reject(
                "customer", "use_bonus_points", f"Only {self.bonus_points} bonus points available"
            )
        self.bonus_points -= points
        return ValidationResult.ok()

    def update_contact_info(self, email: str, phone: str) -> None:
        self.email = email
        self.phone_number = phone

    def get_total_orders(self) -> int:
        return len(self.orders)


@dataclass(eq=False)
class Order:
    """A cart of line items placed by one customer.

    ``enforce_transitions`` switches :meth:`update_status` between the
    transition table in :data:`ORDER_TRANSITIONS` and free assignment.
    """
    order_id: int
    customer: Customer = field(repr=False)
    items: List[OrderItem] = field(default_factory=list)
    status: OrderStatus = OrderStatus.PENDING
    enforce_transitions: bool = field(default=True, repr=False)

    def add_item(self, product: Product, quantity: int) -> ValidationResult:
        """Append a line for ``product`` and take ``quantity`` out of its stock.

        The stock change on ``product`` is part of this operation: a
        successful call always leaves ``product.stock`` lower by exactly
        ``quantity``.  The unit price is copied, so later price updates do
        not affect the order.
        """
        if quantity <= 0:
            return _reject("order", "add_item", "Quantity must be positive.")
        if not product.is_available():
            return _reject("order", "add_item", f"{product.name} is out of stock")
        if quantity > product.stock:
            return _reject("order", "add_item", f"Only {product.stock} in stock for {product.name}")

        item = OrderItem(product_id=product.id, quantity=quantity, unit_price=product.price)
        reduced = product.reduce_stock(quantity)
        if not reduced:
            return reduced
        self.items.append(item)
        return ValidationResult.ok()

    def calculate_total(self) -> Decimal:
        return sum((item.total_price for item in self.items), Decimal(0))

    def update_status(self, new_status: OrderStatus) -> ValidationResult:
        new_status = OrderStatus(new_status)
        if self.enforce_transitions and not can_transition(ORDER_TRANSITIONS, self.status, new_status):
            return _reject(
                "order",
                "update_status",
                f"cannot move from '{self.status.value}' to '{new_status.value}'",
            )
        self.status = new_status
        return ValidationResult.ok()

    def is_empty(self) -> bool:
        return not self.items
