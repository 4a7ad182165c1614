import logging

from aiogram import F, Router
from aiogram.exceptions import TelegramBadRequest
from aiogram.filters import Command
from aiogram.fsm.context import FSMContext
from aiogram.types import Message

from enums.bot_entity import BotEntity
from exceptions.api import ApiRequestException
from exceptions.storage import StorageException
from handlers.user.auth_states import LoginStates
from services.storefront import Storefront
from utils.custom_filters import ButtonTextFilter
from utils.html_escape import safe_html
from utils.localizator import Localizator

auth_router = Router()


@auth_router.message(Command("login"))
@auth_router.message(ButtonTextFilter("login"))
async def login_start(message: Message, state: FSMContext):
    await state.set_state(LoginStates.email)
    await message.answer(Localizator.get_text(BotEntity.USER, "login_email"))


@auth_router.message(LoginStates.email, F.text)
async def login_email(message: Message, state: FSMContext):
    await state.update_data(email=message.text.strip())
    await state.set_state(LoginStates.password)
    await message.answer(Localizator.get_text(BotEntity.USER, "login_password"))


@auth_router.message(LoginStates.password, F.text)
async def login_password(message: Message, state: FSMContext, storefront: Storefront):
    password = message.text
    data = await state.get_data()
    await state.clear()

    # keep the password out of the chat history
    try:
        await message.delete()
    except TelegramBadRequest as e:
        logging.warning(f"Could not delete password message of user {message.from_user.id}: {e}")

    try:
        auth = await storefront.auth.login(message.from_user.id, data.get("email", ""), password)
    except (ApiRequestException, StorageException) as e:
        await message.answer(Localizator.get_text(BotEntity.USER, "login_failed").format(error=safe_html(e.message)))
        return

    username = auth.user.username or auth.user.email or str(auth.user.id)
    await message.answer(Localizator.get_text(BotEntity.USER, "login_success").format(username=safe_html(username)))


@auth_router.message(Command("logout"))
async def logout(message: Message, state: FSMContext, storefront: Storefront):
    storefront.close_checkout(message.from_user.id)
    await state.clear()
    try:
        await storefront.auth.logout(message.from_user.id)
    except StorageException as e:
        await message.answer(safe_html(e.message))
        return
    await message.answer(Localizator.get_text(BotEntity.USER, "logout_success"))
