"""
Delivery Details Validation Utility

Validates the checkout delivery form:
- Required contact fields (name, phone, email)
- Required address fields (city, district, pincode)
- Optional address parts (door/flat number, area, landmark)

Errors are reported per field so they can be shown next to the input
that caused them.
"""

import logging
import re

from pydantic import ValidationError

from exceptions.checkout import DeliveryValidationException

logger = logging.getLogger(__name__)

PHONE_PATTERN = re.compile(r"^\d{10}$")
EMAIL_PATTERN = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")
PINCODE_PATTERN = re.compile(r"^\d{6}$")

# (field, required) in the order the form is filled in
DELIVERY_FORM_FIELDS: tuple[tuple[str, bool], ...] = (
    ("name", True),
    ("phone", True),
    ("email", True),
    ("doorNo", False),
    ("area", False),
    ("landmark", False),
    ("city", True),
    ("district", True),
    ("pincode", True),
)

FIELD_ERROR_MESSAGES: dict[str, str] = {
    "name": "Name must be at least 2 characters",
    "phone": "Enter a valid 10-digit phone number",
    "email": "Enter a valid email address",
    "doorNo": "Invalid door/flat number",
    "area": "Invalid area",
    "landmark": "Invalid landmark",
    "city": "City is required",
    "district": "District is required",
    "pincode": "Enter a valid 6-digit pincode",
}


def validate_delivery_form(form: dict):
    """
    Validate raw delivery form input.

    Args:
        form: Mapping of field name to the raw value typed by the user

    Returns:
        DeliveryDetailsDTO: Validated delivery details

    Raises:
        DeliveryValidationException: With one message per invalid field

    Example:
        >>> validate_delivery_form({"name": "Asha", "phone": "12345", ...})
        Traceback (most recent call last):
        DeliveryValidationException: Invalid delivery details: phone
    """
    from models.delivery import DeliveryDetailsDTO

    try:
        return DeliveryDetailsDTO.model_validate(form)
    except ValidationError as e:
        errors: dict[str, str] = {}
        for error in e.errors():
            field = str(error["loc"][0]) if error["loc"] else "form"
            errors.setdefault(field, FIELD_ERROR_MESSAGES.get(field, error["msg"]))
        logger.info(f"Delivery form rejected, invalid fields: {', '.join(errors)}")
        raise DeliveryValidationException(errors) from e


def first_invalid_field(errors: dict[str, str]) -> str | None:
    """
    Return the earliest form field (in fill-in order) that has an error.

    Used to restart the field-by-field form at the first broken input.
    """
    for field, _ in DELIVERY_FORM_FIELDS:
        if field in errors:
            return field
    return None
