"""
Two-step checkout conversation.

Step 1 collects the delivery form one field at a time, step 2 shows the
UPI payment link and waits for the payment screenshot. The checkout state
itself lives in CheckoutFlowController; the FSM only tracks which input
the bot is waiting for.
"""

import logging

from aiogram import F, Router
from aiogram.fsm.context import FSMContext
from aiogram.types import CallbackQuery, Message
from aiogram.utils.keyboard import InlineKeyboardBuilder

from callbacks import CheckoutCallback
from enums.bot_entity import BotEntity
from enums.submission_state import SubmissionState
from exceptions import (
    CheckoutPreconditionException,
    DeliveryValidationException,
    DuplicateSubmissionException,
    OrderSubmissionException,
    PaymentProofException,
    StorefrontException,
)
from handlers.user.checkout_states import CheckoutStates
from services.checkout import CheckoutFlowController
from services.payment_proof import PaymentProofService
from services.storefront import Storefront
from services.upi import build_upi_uri
from utils.delivery_validation import DELIVERY_FORM_FIELDS, first_invalid_field
from utils.error_handler import handle_service_error
from utils.html_escape import safe_html
from utils.localizator import Localizator

checkout_router = Router()

SKIP_VALUE = "-"
KEEP_VALUE = "."


async def start_checkout(callback: CallbackQuery, state: FSMContext, storefront: Storefront):
    try:
        await storefront.open_checkout(callback.from_user.id)
    except CheckoutPreconditionException as e:
        await callback.answer(handle_service_error(e), show_alert=True)
        return
    except DuplicateSubmissionException:
        await callback.answer(Localizator.get_text(BotEntity.USER, "order_in_progress"), show_alert=True)
        return

    await state.set_state(CheckoutStates.delivery_details)
    await state.update_data(form={}, field_index=0)
    await callback.answer()
    await callback.message.answer(Localizator.get_text(BotEntity.USER, "delivery_intro"))
    await ask_delivery_field(callback.message, 0, {})


async def ask_delivery_field(message: Message, index: int, form: dict):
    field, required = DELIVERY_FORM_FIELDS[index]
    text = Localizator.get_text(BotEntity.USER, f"delivery_prompt_{field}")
    if not required:
        text += "\n" + Localizator.get_text(BotEntity.USER, "delivery_optional_hint")
    if form.get(field):
        text += "\n" + Localizator.get_text(BotEntity.USER, "delivery_keep_hint").format(value=safe_html(form[field]))

    kb_builder = InlineKeyboardBuilder()
    kb_builder.button(
        text=Localizator.get_text(BotEntity.COMMON, "cancel"),
        callback_data=CheckoutCallback(action="cancel")
    )
    await message.answer(text, reply_markup=kb_builder.as_markup())


async def _get_active_checkout(message: Message, state: FSMContext,
                               storefront: Storefront) -> CheckoutFlowController | None:
    controller = storefront.get_checkout(message.from_user.id)
    if controller is None or controller.is_closed:
        await state.clear()
        await message.answer(Localizator.get_text(BotEntity.USER, "checkout_expired"))
        return None
    return controller


@checkout_router.message(CheckoutStates.delivery_details, F.text)
async def process_delivery_field(message: Message, state: FSMContext, storefront: Storefront):
    controller = await _get_active_checkout(message, state, storefront)
    if controller is None:
        return

    data = await state.get_data()
    form = data.get("form", {})
    index = data.get("field_index", 0)
    field, required = DELIVERY_FORM_FIELDS[index]

    value = message.text.strip()
    if value == KEEP_VALUE and form.get(field):
        pass
    elif value in (SKIP_VALUE, KEEP_VALUE) and not required:
        form[field] = ""
    else:
        form[field] = value

    index += 1
    if index < len(DELIVERY_FORM_FIELDS):
        await state.update_data(form=form, field_index=index)
        await ask_delivery_field(message, index, form)
        return

    try:
        controller.submit_details(form)
    except DeliveryValidationException as e:
        errors = "\n".join(f"• {safe_html(error)}" for error in e.errors.values())
        await message.answer(Localizator.get_text(BotEntity.USER, "delivery_errors").format(errors=errors))
        restart_field = first_invalid_field(e.errors)
        restart_index = next(i for i, (name, _) in enumerate(DELIVERY_FORM_FIELDS) if name == restart_field)
        await state.update_data(form=form, field_index=restart_index)
        await ask_delivery_field(message, restart_index, form)
        return
    except StorefrontException as e:
        await message.answer(safe_html(handle_service_error(e)))
        return

    await state.update_data(form=form, field_index=0)
    await state.set_state(CheckoutStates.payment_proof)
    await show_payment_step(message, controller)


async def show_payment_step(message: Message, controller: CheckoutFlowController):
    details = controller.delivery_data
    total = controller.cart.get_total()
    text = Localizator.get_text(BotEntity.USER, "payment_step").format(
        name=safe_html(details.name),
        address=safe_html(details.delivery_address),
        total=Localizator.format_price(total),
        upi_uri=safe_html(build_upi_uri(total))
    )

    kb_builder = InlineKeyboardBuilder()
    kb_builder.button(text=Localizator.get_text(BotEntity.COMMON, "back"),
                      callback_data=CheckoutCallback(action="back"))
    kb_builder.button(text=Localizator.get_text(BotEntity.COMMON, "cancel"),
                      callback_data=CheckoutCallback(action="cancel"))
    await message.answer(text, reply_markup=kb_builder.as_markup())


def _submit_keyboard(controller: CheckoutFlowController):
    submit_key = "retry_order" if controller.submission_state == SubmissionState.FAILED else "submit_order"
    kb_builder = InlineKeyboardBuilder()
    kb_builder.button(text=Localizator.get_text(BotEntity.USER, submit_key),
                      callback_data=CheckoutCallback(action="submit"))
    kb_builder.button(text=Localizator.get_text(BotEntity.USER, "remove_proof"),
                      callback_data=CheckoutCallback(action="remove_proof"))
    kb_builder.button(text=Localizator.get_text(BotEntity.COMMON, "back"),
                      callback_data=CheckoutCallback(action="back"))
    kb_builder.button(text=Localizator.get_text(BotEntity.COMMON, "cancel"),
                      callback_data=CheckoutCallback(action="cancel"))
    kb_builder.adjust(1, 1, 2)
    return kb_builder.as_markup()


@checkout_router.message(CheckoutStates.payment_proof, F.photo | F.document)
async def process_payment_proof(message: Message, state: FSMContext, storefront: Storefront):
    controller = await _get_active_checkout(message, state, storefront)
    if controller is None:
        return

    if message.photo:
        # Telegram re-encodes photos as JPEG; the last size is the largest
        file = message.photo[-1]
        content_type = "image/jpeg"
    else:
        file = message.document
        content_type = message.document.mime_type

    try:
        PaymentProofService.validate(content_type, file.file_size or 0)
        await message.answer(Localizator.get_text(BotEntity.USER, "proof_processing"))
        downloaded = await message.bot.download(file)
        content = downloaded.read()
        artifact = await controller.attach_payment_proof(content, content_type, len(content))
    except PaymentProofException as e:
        await message.answer(safe_html(e.message))
        return
    except StorefrontException as e:
        await message.answer(safe_html(handle_service_error(e)))
        return

    if artifact is None:
        return
    await message.answer(Localizator.get_text(BotEntity.USER, "proof_attached"),
                         reply_markup=_submit_keyboard(controller))


@checkout_router.message(CheckoutStates.payment_proof)
async def payment_proof_expected(message: Message):
    await message.answer(Localizator.get_text(BotEntity.USER, "proof_expected"))


@checkout_router.callback_query(CheckoutCallback.filter())
async def navigate_checkout(callback: CallbackQuery, callback_data: CheckoutCallback, state: FSMContext,
                            storefront: Storefront):
    owner_id = callback.from_user.id
    action = callback_data.action

    if action == "cancel":
        try:
            storefront.close_checkout(owner_id)
        except DuplicateSubmissionException:
            await callback.answer(Localizator.get_text(BotEntity.USER, "order_in_progress"), show_alert=True)
            return
        await state.clear()
        await callback.answer()
        await callback.message.answer(Localizator.get_text(BotEntity.USER, "checkout_cancelled"))
        return

    controller = storefront.get_checkout(owner_id)
    if controller is None or controller.is_closed:
        await state.clear()
        await callback.answer(Localizator.get_text(BotEntity.USER, "checkout_expired"), show_alert=True)
        return

    if action == "submit":
        await submit_order(callback, state, storefront, controller)
        return

    try:
        if action == "back":
            controller.back_to_details()
            data = await state.get_data()
            form = data.get("form", {})
            await state.update_data(field_index=0)
            await state.set_state(CheckoutStates.delivery_details)
            await callback.answer()
            await callback.message.answer(Localizator.get_text(BotEntity.USER, "delivery_intro"))
            await ask_delivery_field(callback.message, 0, form)
        elif action == "remove_proof":
            controller.remove_payment_proof()
            await callback.answer(Localizator.get_text(BotEntity.USER, "proof_removed"))
    except StorefrontException as e:
        await callback.answer(handle_service_error(e), show_alert=True)


async def submit_order(callback: CallbackQuery, state: FSMContext, storefront: Storefront,
                       controller: CheckoutFlowController):
    owner_id = callback.from_user.id
    await callback.answer(Localizator.get_text(BotEntity.USER, "order_submitting"))
    # the cart is emptied once the order is accepted
    submitted_total = controller.cart.get_total()

    try:
        confirmation = await controller.submit()
    except DuplicateSubmissionException:
        logging.info(f"Duplicate order submit tap from user {owner_id}")
        return
    except OrderSubmissionException as e:
        await callback.message.answer(
            Localizator.get_text(BotEntity.USER, "order_failed").format(error=safe_html(e.message)),
            reply_markup=_submit_keyboard(controller)
        )
        return
    except StorefrontException as e:
        await callback.message.answer(safe_html(handle_service_error(e)))
        return

    address = confirmation.deliveryAddress or controller.delivery_data.delivery_address
    total = confirmation.totalAmount if confirmation.totalAmount is not None else submitted_total
    storefront.close_checkout(owner_id, controller)
    await state.clear()

    fields = dict(
        total=Localizator.format_price(total),
        status=safe_html(confirmation.status or "PENDING"),
        address=safe_html(address)
    )
    if confirmation.orderId is None:
        text = Localizator.get_text(BotEntity.USER, "order_success_unconfirmed").format(**fields)
    else:
        text = Localizator.get_text(BotEntity.USER, "order_success").format(order_id=confirmation.orderId, **fields)
    await callback.message.answer(text)
