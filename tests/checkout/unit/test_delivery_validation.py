"""
Unit Tests: Delivery details validation

Tests for utils/delivery_validation.py and models/delivery.py.
"""

import pytest

from exceptions.checkout import DeliveryValidationException
from utils.delivery_validation import (
    DELIVERY_FORM_FIELDS,
    FIELD_ERROR_MESSAGES,
    first_invalid_field,
    validate_delivery_form,
)


class TestValidateDeliveryForm:

    def test_valid_form(self, delivery_form):
        details = validate_delivery_form(delivery_form)

        assert details.name == "Asha Rao"
        assert details.pincode == "560001"

    def test_whitespace_is_stripped(self, delivery_form):
        delivery_form["name"] = "  Asha Rao  "
        delivery_form["phone"] = " 9876543210 "

        details = validate_delivery_form(delivery_form)

        assert details.name == "Asha Rao"
        assert details.phone == "9876543210"

    @pytest.mark.parametrize("field,value", [
        ("phone", "12345"),
        ("phone", "98765432100"),
        ("phone", "98765abcde"),
        ("email", "asha.example.com"),
        ("email", "asha@example"),
        ("pincode", "5600"),
        ("pincode", "56000a"),
        ("name", "A"),
        ("city", ""),
        ("district", "   "),
    ])
    def test_invalid_field_is_reported(self, delivery_form, field, value):
        delivery_form[field] = value

        with pytest.raises(DeliveryValidationException) as exc_info:
            validate_delivery_form(delivery_form)

        assert exc_info.value.errors == {field: FIELD_ERROR_MESSAGES[field]}

    def test_missing_required_fields_are_all_reported(self):
        with pytest.raises(DeliveryValidationException) as exc_info:
            validate_delivery_form({})

        required = {field for field, is_required in DELIVERY_FORM_FIELDS if is_required}
        assert set(exc_info.value.errors) == required

    def test_optional_fields_may_be_left_out(self, delivery_form):
        for field in ("doorNo", "area", "landmark"):
            delivery_form.pop(field)

        details = validate_delivery_form(delivery_form)

        assert details.delivery_address == "Bengaluru, Bengaluru Urban - 560001"


class TestDeliveryAddress:

    def test_address_joins_all_parts(self, delivery_form):
        delivery_form["landmark"] = "Near Metro"

        details = validate_delivery_form(delivery_form)

        assert details.delivery_address == "12B, MG Road, Near Metro, Bengaluru, Bengaluru Urban - 560001"

    def test_blank_optional_parts_are_skipped(self, delivery_form):
        delivery_form["area"] = "   "

        details = validate_delivery_form(delivery_form)

        assert details.area is None
        assert details.delivery_address == "12B, Bengaluru, Bengaluru Urban - 560001"


class TestFirstInvalidField:

    def test_returns_earliest_field_in_form_order(self):
        assert first_invalid_field({"pincode": "x", "email": "y"}) == "email"

    def test_no_errors(self):
        assert first_invalid_field({}) is None
