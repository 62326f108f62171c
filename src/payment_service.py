# payment_service.py
"""
Payments for shop orders.

- ``Payment``: one monetary transaction tied to an order, with a
  pending -> completed -> refunded lifecycle (or pending -> failed).
- ``PaymentService``: allocates payment ids, creates a payment for an
  order's total and drives it through processing/refund while logging
  and recording metrics.

No real gateway is involved: processing succeeds for any positive amount.
"""

from __future__ import annotations

import logging
from decimal import Decimal
from typing import Dict, Optional

from metrics import OPERATIONS_REJECTED_TOTAL, PAYMENTS_TOTAL
from models import (
    PAYMENT_TRANSITIONS,
    Order,
    PaymentMethod,
    PaymentStatus,
    ValidationResult,
    can_transition,
    to_amount,
)

logger = logging.getLogger(__name__)


class Payment:
    """A payment of ``amount`` for ``order``.

    With ``enforce_transitions`` on, status changes follow
    :data:`models.PAYMENT_TRANSITIONS`; otherwise only the amount and
    completed-status guards apply.
    """

    def __init__(
        self,
        payment_id: int,
        order: Order,
        method: PaymentMethod,
        amount,
        enforce_transitions: bool = True,
    ) -> None:
        self.payment_id = payment_id
        self.order = order
        self.method = PaymentMethod(method)
        self.amount: Decimal = to_amount(amount)
        self.status = PaymentStatus.PENDING
        self.enforce_transitions = enforce_transitions

    def __repr__(self) -> str:
        return (
            f"Payment(payment_id={self.payment_id!r}, order_id={self.order.order_id!r}, "
            f"method={self.method.value!r}, amount={self.amount!r}, status={self.status.value!r})"
        )

    # ----- transitions -----
    def _move_to(self, new_status: PaymentStatus) -> ValidationResult:
        if self.enforce_transitions and not can_transition(PAYMENT_TRANSITIONS, self.status, new_status):
            return ValidationResult.rejected(
                f"cannot move from '{self.status.value}' to '{new_status.value}'"
            )
        self.status = new_status
        return ValidationResult.ok()

    def process_payment(self) -> ValidationResult:
        if not self.validate_payment():
            return ValidationResult.rejected("Amount must be positive.")
        if self.enforce_transitions and self.status != PaymentStatus.PENDING:
            return ValidationResult.rejected("Only pending payments can be processed.")
        return self._move_to(PaymentStatus.COMPLETED)

    def refund_payment(self) -> ValidationResult:
        if self.status != PaymentStatus.COMPLETED:
            return ValidationResult.rejected("Only completed payments can be refunded.")
        return self._move_to(PaymentStatus.REFUNDED)

    def mark_failed(self, reason: str = "") -> ValidationResult:
        if self.status != PaymentStatus.PENDING:
            return ValidationResult.rejected("Only pending payments can fail.")
        if reason:
            logger.info(f"Payment {self.payment_id} failed: {reason}")
        return self._move_to(PaymentStatus.FAILED)

    # ----- queries -----
    def validate_payment(self) -> bool:
        return self.amount > 0

    def generate_receipt(self) -> Optional[str]:
        if self.status == PaymentStatus.COMPLETED:
            return f"Receipt: Payment #{self.payment_id} for Order #{self.order.order_id}"
        return None


class PaymentService:
    """Create and settle payments for orders."""

    def __init__(self, first_payment_id: int = 5001, enforce_transitions: bool = True, strict: bool = False) -> None:
        self._next_id = first_payment_id
        self.enforce_transitions = enforce_transitions
        self.strict = strict
        self.payments: Dict[int, Payment] = {}

    def create_payment(self, order: Order, method: PaymentMethod, amount=None) -> Payment:
        """Create a pending payment; ``amount`` defaults to the order total."""
        if amount is None:
            amount = order.calculate_total()
        payment = Payment(
            self._next_id,
            order,
            method,
            amount,
            enforce_transitions=self.enforce_transitions,
        )
        self._next_id += 1
        self.payments[payment.payment_id] = payment
        return payment

    def get_payment(self, payment_id: int) -> Optional[Payment]:
        return self.payments.get(payment_id)

    def _settle(self, payment: Payment, operation: str, result: ValidationResult) -> ValidationResult:
        context = {"payment_id": payment.payment_id, "order_id": payment.order.order_id}
        if result:
            PAYMENTS_TOTAL.inc(status=payment.status.value, method=payment.method.value)
            logger.info(f"Payment {operation}: {payment.status.value}", extra=context)
            return result
        OPERATIONS_REJECTED_TOTAL.inc(operation=f"payment.{operation}")
        logger.warning(
            f"Payment {operation} rejected",
            extra={**context, "extra": {"reason": result.error_message}},
        )
        if self.strict:
            result.raise_if_invalid(f"payment.{operation}")
        return result

    def process(self, payment: Payment) -> ValidationResult:
        return self._settle(payment, "process", payment.process_payment())

    def refund(self, payment: Payment) -> ValidationResult:
        return self._settle(payment, "refund", payment.refund_payment())

    def pay_order(self, order: Order, method: PaymentMethod) -> Payment:
        """Create a payment for the order total and process it."""
        payment = self.create_payment(order, method)
        self.process(payment)
        return payment
