from aiogram.filters import BaseFilter
from aiogram.types import Message

from enums.bot_entity import BotEntity
from utils.localizator import Localizator


class ButtonTextFilter(BaseFilter):
    """
    Filter that matches reply keyboard button text at runtime instead of import time.

    Usage:
        @router.message(ButtonTextFilter("cart"))
        async def handler(message: Message, storefront: Storefront):
            ...
    """

    def __init__(self, localization_key: str, entity: BotEntity = BotEntity.USER):
        self.localization_key = localization_key
        self.entity = entity

    async def __call__(self, message: Message) -> bool:
        expected_text = Localizator.get_text(self.entity, self.localization_key)
        return message.text == expected_text
