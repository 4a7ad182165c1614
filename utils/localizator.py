import json
from decimal import Decimal
from pathlib import Path
from typing import Optional

import config
from enums.bot_entity import BotEntity

L10N_DIR = Path(__file__).resolve().parent.parent / "l10n"


class Localizator:

    @staticmethod
    def get_text(entity: BotEntity, key: str, lang: Optional[str] = None) -> str:
        """
        Get localized text for given entity and key.

        Args:
            entity: Entity type (USER, COMMON)
            key: Localization key
            lang: Optional language code (e.g., "en").
                  If None, uses config.BOT_LANGUAGE (default).

        Returns:
            Localized text string
        """
        language = lang if lang is not None else config.BOT_LANGUAGE
        localization_file = L10N_DIR / f"{language}.json"

        with open(localization_file, "r", encoding="UTF-8") as f:
            data = json.loads(f.read())
            if entity == BotEntity.USER:
                return data["user"][key]
            else:
                return data["common"][key]

    @staticmethod
    def get_currency_symbol() -> str:
        return config.CURRENCY_SYMBOL

    @staticmethod
    def format_price(amount: Decimal) -> str:
        """
        Format an amount with the currency symbol and two decimals.

        Examples:
            >>> Localizator.format_price(Decimal("998"))
            '₹998.00'
        """
        return f"{Localizator.get_currency_symbol()}{Decimal(amount):.2f}"
