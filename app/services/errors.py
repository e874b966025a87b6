"""Domain errors raised by the order and payment services.

Every error carries a stable ``code`` so the API layer and other callers can
branch on the kind of failure without parsing messages.
"""

from __future__ import annotations

from decimal import Decimal


class OrderingError(Exception):
    """Base class for expected, recoverable ordering failures."""

    code: str = "ordering_error"

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class NotFoundError(OrderingError):
    code = "not_found"


class ValidationFailure(OrderingError):
    code = "validation_failure"


class ConflictError(OrderingError):
    code = "conflict"


class StaffRequired(OrderingError):
    """Raised when a staff-only operation is invoked without staff capability."""

    code = "staff_required"

    def __init__(self, operation: str) -> None:
        super().__init__(f"Only staff can {operation}.")
        self.operation = operation


class MenuNotFound(NotFoundError):
    code = "menu_not_found"

    def __init__(self, menu_id: int) -> None:
        super().__init__(f"Menu item {menu_id} not found.")
        self.menu_id = menu_id


class OrderNotFound(NotFoundError):
    code = "order_not_found"

    def __init__(self, reference: int | str) -> None:
        super().__init__(f"Order {reference} not found.")
        self.reference = reference


class PaymentNotFound(NotFoundError):
    code = "payment_not_found"

    def __init__(self, payment_id: int) -> None:
        super().__init__(f"Payment {payment_id} not found.")
        self.payment_id = payment_id


class InvalidQuantity(ValidationFailure):
    code = "invalid_quantity"

    def __init__(self, menu_id: int, quantity: int, max_quantity: int) -> None:
        super().__init__(f"Quantity for menu item {menu_id} must be between 1 and {max_quantity}, got {quantity}.")
        self.menu_id = menu_id
        self.quantity = quantity


class InvalidAmount(ValidationFailure):
    code = "invalid_amount"


class DuplicateLineItem(ValidationFailure):
    code = "duplicate_line_item"

    def __init__(self, menu_id: int) -> None:
        super().__init__(f"Menu item {menu_id} appears more than once; combine quantities instead.")
        self.menu_id = menu_id


class MenuUnavailable(ValidationFailure):
    code = "menu_unavailable"

    def __init__(self, menu_id: int, name: str) -> None:
        super().__init__(f"Menu '{name}' is not available.")
        self.menu_id = menu_id


class OrderBelowMinimum(ValidationFailure):
    code = "order_below_minimum"

    def __init__(self, total: Decimal, minimum: Decimal) -> None:
        super().__init__(f"Minimum order amount is {minimum}, order total is {total}.")
        self.total = total
        self.minimum = minimum


class OrderAboveMaximum(ValidationFailure):
    code = "order_above_maximum"

    def __init__(self, total: Decimal, maximum: Decimal) -> None:
        super().__init__(f"Maximum order amount is {maximum}, order total is {total}.")
        self.total = total
        self.maximum = maximum


class TransactionIdRequired(ValidationFailure):
    code = "transaction_id_required"

    def __init__(self, method: str) -> None:
        super().__init__(f"Transaction ID is required for {method} payments.")


class TransactionIdNotAllowed(ValidationFailure):
    code = "transaction_id_not_allowed"

    def __init__(self) -> None:
        super().__init__("Transaction ID is not allowed for cash payments.")


class InvalidTransition(ConflictError):
    code = "invalid_transition"

    def __init__(self, current: str, target: str) -> None:
        super().__init__(f"Invalid status transition from {current} to {target}.")
        self.current = current
        self.target = target


class OrderNotEditable(ConflictError):
    code = "order_not_editable"

    def __init__(self, status: str) -> None:
        super().__init__(f"Order cannot be updated in status {status}.")
        self.status = status


class OrderNotCancellable(ConflictError):
    code = "order_not_cancellable"

    def __init__(self, status: str) -> None:
        super().__init__(f"Order cannot be cancelled in status {status}.")
        self.status = status


class OrderCancelled(ConflictError):
    code = "order_cancelled"

    def __init__(self, order_number: str) -> None:
        super().__init__(f"Cannot process payment for cancelled order {order_number}.")


class AmountExceedsBalance(ConflictError):
    code = "amount_exceeds_balance"

    def __init__(self, amount: Decimal, remaining: Decimal) -> None:
        super().__init__(f"Payment amount {amount} exceeds remaining balance {remaining}.")
        self.amount = amount
        self.remaining = remaining


class TotalBelowAmountPaid(ConflictError):
    code = "total_below_amount_paid"

    def __init__(self, total: Decimal, paid: Decimal) -> None:
        super().__init__(f"New order total {total} is below the {paid} already paid; refund first.")
        self.total = total
        self.paid = paid


class DuplicateTransactionId(ConflictError):
    code = "duplicate_transaction_id"

    def __init__(self, transaction_id: str) -> None:
        super().__init__(f"Transaction {transaction_id} is already recorded with a different amount.")
        self.transaction_id = transaction_id


class PaymentAlreadyCompleted(ConflictError):
    code = "payment_already_completed"

    def __init__(self, payment_id: int) -> None:
        super().__init__(f"Cannot update completed payment {payment_id}; refund it and record a new payment.")


class PaymentNotEditable(ConflictError):
    code = "payment_not_editable"

    def __init__(self, payment_id: int, status: str) -> None:
        super().__init__(f"Payment {payment_id} is {status} and can no longer change.")


class PaymentMethodNotEditable(ConflictError):
    code = "payment_method_not_editable"

    def __init__(self, payment_id: int, method: str) -> None:
        super().__init__(
            f"Pending payment {payment_id} cannot switch to {method}; fail it and record a new {method} payment."
        )


class NotRefundable(ConflictError):
    code = "not_refundable"

    def __init__(self, payment_id: int, status: str) -> None:
        super().__init__(f"Can only refund completed payments; payment {payment_id} is {status}.")


class ConcurrentModification(ConflictError):
    code = "concurrent_modification"

    def __init__(self, attempts: int) -> None:
        super().__init__(f"Order changed concurrently; gave up after {attempts} attempts.")
        self.attempts = attempts
