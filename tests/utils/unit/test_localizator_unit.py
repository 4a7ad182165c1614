"""
Unit tests for Localizator.

Tests cover:
- Lookup of user and common texts
- Price formatting with the configured currency symbol
- Every delivery form field has a prompt
"""

from decimal import Decimal
from unittest.mock import patch

import pytest

from enums.bot_entity import BotEntity
from utils.delivery_validation import DELIVERY_FORM_FIELDS
from utils.localizator import Localizator


class TestGetText:

    def test_user_text(self):
        assert Localizator.get_text(BotEntity.USER, "cart") == "🛒 Cart"

    def test_common_text(self):
        assert "Welcome" in Localizator.get_text(BotEntity.COMMON, "start_message")

    def test_unknown_key_raises(self):
        with pytest.raises(KeyError):
            Localizator.get_text(BotEntity.USER, "no_such_key")

    @pytest.mark.parametrize("field", [field for field, _ in DELIVERY_FORM_FIELDS])
    def test_every_delivery_field_has_a_prompt(self, field):
        assert Localizator.get_text(BotEntity.USER, f"delivery_prompt_{field}")


class TestFormatPrice:

    def test_two_decimals(self):
        assert Localizator.format_price(Decimal("998")) == "₹998.00"

    @patch('config.CURRENCY_SYMBOL', '$')
    def test_configured_symbol(self):
        assert Localizator.format_price(Decimal("149.5")) == "$149.50"
