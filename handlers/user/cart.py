import logging

from aiogram import Router
from aiogram.exceptions import TelegramBadRequest
from aiogram.fsm.context import FSMContext
from aiogram.types import CallbackQuery, InlineKeyboardButton, InlineKeyboardMarkup, Message
from aiogram.utils.keyboard import InlineKeyboardBuilder

from callbacks import CartCallback
from enums.bot_entity import BotEntity
from exceptions.cart import CartLineNotFoundException
from models.cart import CartLineDTO
from services.cart import CartManager
from services.storefront import Storefront
from utils.custom_filters import ButtonTextFilter
from utils.html_escape import safe_html
from utils.localizator import Localizator

cart_router = Router()


@cart_router.message(ButtonTextFilter("cart"))
async def cart_text_message(message: Message, storefront: Storefront):
    logging.info("🛒 CART BUTTON HANDLER TRIGGERED")
    await show_cart(message, storefront)


def build_cart_view(cart: CartManager) -> tuple[str, InlineKeyboardMarkup | None]:
    """
    Render the cart as message text plus quantity controls.

    Lines above their advisory stock are flagged; nothing is corrected
    here, checkout entry blocks them instead.
    """
    if cart.is_empty:
        return Localizator.get_text(BotEntity.USER, "no_cart_items"), None

    msg_lines = [Localizator.get_text(BotEntity.USER, "cart_header")]
    kb_builder = InlineKeyboardBuilder()
    for line in cart.lines:
        text = Localizator.get_text(BotEntity.USER, "cart_line").format(
            name=safe_html(line.productName),
            quantity=line.quantity,
            price=Localizator.format_price(line.price),
            line_total=Localizator.format_price(line.line_total)
        )
        if line.exceeds_stock():
            text += "\n" + Localizator.get_text(BotEntity.USER, "cart_line_stock_warning").format(stock=line.stock)
        msg_lines.append(text)
        kb_builder.row(
            InlineKeyboardButton(text="➖", callback_data=CartCallback(action="dec", product_id=line.productId).pack()),
            InlineKeyboardButton(text=f"{line.productName} x{line.quantity}",
                                 callback_data=CartCallback(action="view").pack()),
            InlineKeyboardButton(text="➕", callback_data=CartCallback(action="inc", product_id=line.productId).pack()),
            InlineKeyboardButton(text="❌", callback_data=CartCallback(action="remove", product_id=line.productId).pack())
        )

    msg_lines.append(Localizator.get_text(BotEntity.USER, "cart_total").format(
        count=cart.get_item_count(),
        total=Localizator.format_price(cart.get_total())
    ))
    kb_builder.row(InlineKeyboardButton(
        text=Localizator.get_text(BotEntity.USER, "cart_clear"),
        callback_data=CartCallback(action="clear").pack()
    ))
    kb_builder.row(InlineKeyboardButton(
        text=Localizator.get_text(BotEntity.USER, "checkout"),
        callback_data=CartCallback(action="checkout").pack()
    ))
    return "\n\n".join(msg_lines), kb_builder.as_markup()


async def show_cart(event: Message | CallbackQuery, storefront: Storefront):
    cart = await storefront.get_cart(event.from_user.id)
    text, markup = build_cart_view(cart)

    if isinstance(event, Message):
        await event.answer(text, reply_markup=markup)
        return

    try:
        await event.message.edit_text(text, reply_markup=markup)
    except TelegramBadRequest as e:
        # raised when the rendered cart did not change
        logging.debug(f"Cart view not edited: {e}")


def _require_line(cart: CartManager, product_id: int) -> CartLineDTO:
    line = cart.get_line(product_id)
    if line is None:
        raise CartLineNotFoundException(product_id)
    return line


@cart_router.callback_query(CartCallback.filter())
async def navigate_cart(callback: CallbackQuery, callback_data: CartCallback, state: FSMContext,
                        storefront: Storefront):
    action = callback_data.action

    if action == "checkout":
        from handlers.user.checkout import start_checkout
        await start_checkout(callback, state, storefront)
        return

    cart = await storefront.get_cart(callback.from_user.id)
    notice = None
    try:
        if action == "inc":
            line = _require_line(cart, callback_data.product_id)
            await cart.update_quantity(line.productId, line.quantity + 1)
            updated = cart.get_line(line.productId)
            if updated.exceeds_stock():
                notice = Localizator.get_text(BotEntity.USER, "stock_warning").format(
                    stock=updated.stock, name=updated.productName
                )
        elif action == "dec":
            line = _require_line(cart, callback_data.product_id)
            await cart.update_quantity(line.productId, line.quantity - 1)
        elif action == "remove":
            await cart.remove_item(callback_data.product_id)
        elif action == "clear":
            await cart.clear_cart()
            notice = Localizator.get_text(BotEntity.USER, "cart_cleared")
    except CartLineNotFoundException as e:
        logging.info(f"Stale cart button from user {callback.from_user.id}: {e}")

    await show_cart(callback, storefront)
    await callback.answer(notice)
