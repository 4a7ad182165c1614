import logging

from aiogram import F, Router, types
from aiogram.filters import CommandObject, CommandStart
from aiogram.fsm.context import FSMContext
from aiogram.types import ErrorEvent, Message

from utils.logging_config import setup_logging

# Initialize centralized logging configuration
setup_logging()

from bot import dp, main
from enums.bot_entity import BotEntity
from exceptions.checkout import DuplicateSubmissionException
from handlers.user.auth import auth_router
from handlers.user.cart import cart_router
from handlers.user.catalog import catalog_router
from handlers.user.checkout import checkout_router
from handlers.user.referral import capture_start_payload
from services.storefront import Storefront
from utils.localizator import Localizator

main_router = Router()


@main_router.message(CommandStart())
async def start(message: types.Message, command: CommandObject, state: FSMContext, storefront: Storefront):
    try:
        storefront.close_checkout(message.from_user.id)
        await state.clear()
    except DuplicateSubmissionException:
        # the pending submit reports its own result
        logging.info(f"/start from user {message.from_user.id} while an order is being submitted")

    catalog_button = types.KeyboardButton(text=Localizator.get_text(BotEntity.USER, "catalog"))
    cart_button = types.KeyboardButton(text=Localizator.get_text(BotEntity.USER, "cart"))
    login_button = types.KeyboardButton(text=Localizator.get_text(BotEntity.USER, "login"))
    keyboard = [[catalog_button, cart_button], [login_button]]
    start_markup = types.ReplyKeyboardMarkup(resize_keyboard=True, keyboard=keyboard)
    await message.answer(Localizator.get_text(BotEntity.COMMON, "start_message"), reply_markup=start_markup)

    capture_text = await capture_start_payload(message.from_user.id, command.args, storefront)
    if capture_text is not None:
        await message.answer(capture_text)


@main_router.error(F.update.message.as_("message"))
async def error_handler(event: ErrorEvent, message: Message):
    logging.error(f"Unhandled exception in handler: {event.exception}", exc_info=event.exception)
    await message.answer(Localizator.get_text(BotEntity.COMMON, "error_unexpected"))


@main_router.error(F.update.callback_query.as_("callback"))
async def callback_error_handler(event: ErrorEvent, callback: types.CallbackQuery):
    logging.error(f"Unhandled exception in callback handler: {event.exception}", exc_info=event.exception)
    await callback.answer(Localizator.get_text(BotEntity.COMMON, "error_unexpected"), show_alert=True)


users_routers = Router()
# menu buttons and commands are matched before free-text checkout input
users_routers.include_routers(
    catalog_router,
    cart_router,
    auth_router,
    checkout_router
)
main_router.include_router(users_routers)
dp.include_router(main_router)

if __name__ == '__main__':
    logging.info("Starting storefront bot")
    main()
