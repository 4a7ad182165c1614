"""
Checkout-related exceptions.

Precondition errors block entry into the checkout flow, validation errors
block a step transition. Neither ever reaches the network layer.
"""

from .base import StorefrontException
from .cart import CartException


class CheckoutException(StorefrontException):
    """Base exception for checkout flow errors."""
    pass


class CheckoutPreconditionException(CheckoutException):
    """Base exception for failed checkout entry guards."""
    pass


class EmptyCartException(CheckoutPreconditionException, CartException):
    """Raised when trying to checkout with empty cart."""

    def __init__(self, user_id: int | None = None):
        super().__init__(
            "Your cart is empty. Add some products first!",
            details={'user_id': user_id}
        )
        self.user_id = user_id


class LoginRequiredException(CheckoutPreconditionException):
    """Raised when an unauthenticated user tries to checkout."""

    def __init__(self, user_id: int | None = None):
        super().__init__(
            "Please login to place an order",
            details={'user_id': user_id}
        )
        self.user_id = user_id


class OutOfStockException(CheckoutPreconditionException):
    """Raised when a cart line exceeds the advisory stock of its product."""

    def __init__(self, product_id: int, product_name: str, requested: int, available: int):
        super().__init__(
            f"{product_name} is out of stock: requested {requested}, available {available}",
            details={'product_id': product_id, 'requested': requested, 'available': available}
        )
        self.product_id = product_id
        self.product_name = product_name
        self.requested = requested
        self.available = available


class InvalidCheckoutStateException(CheckoutException):
    """Raised when checkout is in invalid state for requested operation."""

    def __init__(self, current_state: str, operation: str):
        super().__init__(
            f"Cannot {operation} while checkout is in state '{current_state}'",
            details={'current_state': current_state, 'operation': operation}
        )
        self.current_state = current_state
        self.operation = operation


class DuplicateSubmissionException(CheckoutException):
    """Raised when submit is triggered while a submission is still in flight."""

    def __init__(self):
        super().__init__("Your order is already being submitted")


class DeliveryValidationException(CheckoutException):
    """
    Raised when the delivery details form fails validation.

    Attributes:
        errors: Mapping of form field name to error message
    """

    def __init__(self, errors: dict[str, str]):
        fields = ', '.join(errors)
        super().__init__(
            f"Invalid delivery details: {fields}",
            details={'fields': list(errors)}
        )
        self.errors = errors
