import logging

from aiogram import Router
from aiogram.types import CallbackQuery, Message
from aiogram.utils.keyboard import InlineKeyboardBuilder

from callbacks import CartCallback, CatalogCallback
from enums.bot_entity import BotEntity
from exceptions.api import ApiRequestException
from services.storefront import Storefront
from utils.custom_filters import ButtonTextFilter
from utils.html_escape import safe_html
from utils.localizator import Localizator

catalog_router = Router()


@catalog_router.message(ButtonTextFilter("catalog"))
async def catalog_text_message(message: Message, storefront: Storefront):
    logging.info("🛍 CATALOG BUTTON HANDLER TRIGGERED")
    await show_catalog(message, storefront)


async def show_catalog(message: Message, storefront: Storefront):
    try:
        products = await storefront.catalog.get_all_products()
    except ApiRequestException as e:
        await message.answer(
            Localizator.get_text(BotEntity.USER, "catalog_unavailable").format(error=safe_html(e.message))
        )
        return

    if not products:
        await message.answer(Localizator.get_text(BotEntity.USER, "no_products"))
        return

    msg_lines = [Localizator.get_text(BotEntity.USER, "catalog_header")]
    kb_builder = InlineKeyboardBuilder()
    for product in products:
        msg_lines.append(Localizator.get_text(BotEntity.USER, "catalog_line").format(
            name=safe_html(product.name),
            price=Localizator.format_price(product.price)
        ))
        kb_builder.button(
            text=Localizator.get_text(BotEntity.USER, "add_button").format(name=product.name),
            callback_data=CatalogCallback(product_id=product.productId)
        )
    kb_builder.button(
        text=Localizator.get_text(BotEntity.USER, "cart"),
        callback_data=CartCallback(action="view")
    )
    kb_builder.adjust(1)
    await message.answer("\n".join(msg_lines), reply_markup=kb_builder.as_markup())


@catalog_router.callback_query(CatalogCallback.filter())
async def add_to_cart(callback: CallbackQuery, callback_data: CatalogCallback, storefront: Storefront):
    try:
        product = await storefront.catalog.get_product(callback_data.product_id)
    except ApiRequestException as e:
        await callback.answer(e.message, show_alert=True)
        return

    cart = await storefront.get_cart(callback.from_user.id)
    await cart.add_item(product)

    line = cart.get_line(product.productId)
    if line is not None and line.exceeds_stock():
        await callback.answer(
            Localizator.get_text(BotEntity.USER, "stock_warning").format(stock=line.stock, name=product.name),
            show_alert=True
        )
        return

    await callback.answer(Localizator.get_text(BotEntity.USER, "item_added_to_cart").format(name=product.name))
