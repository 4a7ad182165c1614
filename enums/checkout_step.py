from enum import Enum


class CheckoutStep(Enum):
    DETAILS = "DETAILS"   # Collecting delivery details
    PAYMENT = "PAYMENT"   # Waiting for payment proof and submission
