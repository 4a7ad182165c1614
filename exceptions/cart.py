"""
Cart-related exceptions.
"""

from .base import StorefrontException


class CartException(StorefrontException):
    """Base exception for cart-related errors."""
    pass


class CartLineNotFoundException(CartException):
    """Raised when a cart line for a product is not found."""

    def __init__(self, product_id: int):
        super().__init__(
            f"Product {product_id} is not in the cart",
            details={'product_id': product_id}
        )
        self.product_id = product_id
