"""
FSM States for the two checkout steps.
"""
from aiogram.fsm.state import State, StatesGroup


class CheckoutStates(StatesGroup):
    delivery_details = State()  # Collecting the delivery form field by field
    payment_proof = State()  # Waiting for the payment screenshot
