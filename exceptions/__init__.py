"""
Custom exceptions for the storefront bot.

This module provides a hierarchy of custom exceptions for consistent error handling
throughout the application.

Exception Hierarchy:
--------------------
StorefrontException (base)
├── CartException
│   ├── CartLineNotFoundException
│   └── EmptyCartException (also a CheckoutPreconditionException)
├── CheckoutException
│   ├── CheckoutPreconditionException
│   │   ├── EmptyCartException
│   │   ├── LoginRequiredException
│   │   └── OutOfStockException
│   ├── InvalidCheckoutStateException
│   ├── DuplicateSubmissionException
│   └── DeliveryValidationException
├── PaymentProofException
│   ├── UnsupportedProofTypeException
│   ├── ProofTooLargeException
│   └── ProofProcessingException
├── ApiException
│   ├── ApiRequestException
│   └── OrderSubmissionException
└── StorageException
    └── CartPersistenceException

Usage:
------
Services raise specific exceptions:
    raise OutOfStockException(product_id=5, product_name="G1 Prash", requested=3, available=1)

Handlers catch and display user-friendly messages:
    try:
        controller = CheckoutFlowController.open(...)
    except CheckoutPreconditionException as e:
        await callback.answer(str(e), show_alert=True)
"""

from .base import StorefrontException
from .cart import CartException, CartLineNotFoundException
from .checkout import (
    CheckoutException,
    CheckoutPreconditionException,
    EmptyCartException,
    LoginRequiredException,
    OutOfStockException,
    InvalidCheckoutStateException,
    DuplicateSubmissionException,
    DeliveryValidationException
)
from .payment_proof import (
    PaymentProofException,
    UnsupportedProofTypeException,
    ProofTooLargeException,
    ProofProcessingException
)
from .api import ApiException, ApiRequestException, OrderSubmissionException
from .storage import StorageException, CartPersistenceException

__all__ = [
    # Base
    'StorefrontException',

    # Cart
    'CartException',
    'CartLineNotFoundException',

    # Checkout
    'CheckoutException',
    'CheckoutPreconditionException',
    'EmptyCartException',
    'LoginRequiredException',
    'OutOfStockException',
    'InvalidCheckoutStateException',
    'DuplicateSubmissionException',
    'DeliveryValidationException',

    # Payment proof
    'PaymentProofException',
    'UnsupportedProofTypeException',
    'ProofTooLargeException',
    'ProofProcessingException',

    # API
    'ApiException',
    'ApiRequestException',
    'OrderSubmissionException',

    # Storage
    'StorageException',
    'CartPersistenceException',
]
