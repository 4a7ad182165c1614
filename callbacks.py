from aiogram.filters.callback_data import CallbackData


class CatalogCallback(CallbackData, prefix="catalog"):
    product_id: int


class CartCallback(CallbackData, prefix="cart"):
    action: str  # view, inc, dec, remove, clear, checkout
    product_id: int = -1


class CheckoutCallback(CallbackData, prefix="checkout"):
    action: str  # back, remove_proof, submit, cancel
