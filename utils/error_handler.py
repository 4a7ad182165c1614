"""
Error Handler Utility for Telegram Bot Handlers

Turns storefront exceptions into the text shown to the user. Exceptions
raised by services already carry a user-facing message; a few are mapped
to a localized text with bot specific guidance instead.

Usage in handlers:
    from utils.error_handler import handle_service_error

    try:
        controller = await storefront.open_checkout(user_id)
    except StorefrontException as e:
        await callback.answer(handle_service_error(e), show_alert=True)
"""

import logging

from enums.bot_entity import BotEntity
from exceptions import (
    StorefrontException,
    EmptyCartException,
    InvalidCheckoutStateException,
    LoginRequiredException,
    OutOfStockException,
)
from utils.localizator import Localizator


def handle_service_error(exception: StorefrontException, entity: BotEntity = BotEntity.USER) -> str:
    """
    Convert service exception to a user-friendly error message.

    Args:
        exception: The custom exception raised by a service
        entity: Bot entity for localization

    Returns:
        Error message string, plain text (not HTML escaped)
    """
    logging.warning(f"Service error handled: {type(exception).__name__} - {str(exception)}")

    if isinstance(exception, EmptyCartException):
        return Localizator.get_text(entity, "no_cart_items")
    if isinstance(exception, LoginRequiredException):
        return Localizator.get_text(entity, "checkout_login_required")
    if isinstance(exception, OutOfStockException):
        return Localizator.get_text(entity, "checkout_out_of_stock").format(
            name=exception.product_name,
            available=exception.available
        )
    if isinstance(exception, InvalidCheckoutStateException):
        return Localizator.get_text(entity, "checkout_expired")
    return exception.message
