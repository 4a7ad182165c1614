import logging

from redis.asyncio import Redis

from enums.submission_state import SubmissionState
from exceptions.checkout import DuplicateSubmissionException
from repositories.affiliate import AffiliateRepository
from repositories.cart_store import CartStoreRepository
from repositories.user_session import UserSessionRepository
from services.affiliate import AffiliateService
from services.auth import AuthService
from services.cart import CartManager, CartManagerRegistry
from services.catalog import CatalogService
from services.checkout import CheckoutFlowController
from services.order import OrderClient
from storefront_api.api_client import StorefrontApiClient

logger = logging.getLogger(__name__)


class Storefront:
    """
    Application services wired together once at startup.

    Handed to every handler through the dispatcher, so handlers never reach
    for module-level state. Holds the per-user cart managers and the open
    checkout sessions for the lifetime of the bot process.
    """

    def __init__(self, redis: Redis, api: StorefrontApiClient):
        self.api = api
        self.sessions = UserSessionRepository(redis)
        self.affiliates = AffiliateService(api, AffiliateRepository(redis))
        self.catalog = CatalogService(api)
        self.auth = AuthService(api, self.sessions)
        self.carts = CartManagerRegistry(CartStoreRepository(redis))
        self._checkouts: dict[int, CheckoutFlowController] = {}

    async def get_cart(self, owner_id: int) -> CartManager:
        return await self.carts.get(owner_id)

    async def open_checkout(self, owner_id: int) -> CheckoutFlowController:
        """
        Open a new checkout session, replacing any session still open.

        Raises:
            CheckoutPreconditionException: If an entry guard fails
            DuplicateSubmissionException: The open session is still sending its order
        """
        self._ensure_not_submitting(owner_id)
        cart = await self.carts.get(owner_id)
        buyer = await self.sessions.get_user(owner_id)
        token = await self.sessions.get_token(owner_id)

        controller = CheckoutFlowController.open(cart, buyer, OrderClient(self.api, token), self.affiliates)

        self.close_checkout(owner_id)
        self._checkouts[owner_id] = controller
        return controller

    def get_checkout(self, owner_id: int) -> CheckoutFlowController | None:
        return self._checkouts.get(owner_id)

    def close_checkout(self, owner_id: int, controller: CheckoutFlowController | None = None):
        """
        Abandon the user's checkout session.

        When controller is given, the session is only closed if it is still
        the current one.

        Raises:
            DuplicateSubmissionException: The session is still sending its order
        """
        current = self._checkouts.get(owner_id)
        if current is None or (controller is not None and current is not controller):
            return
        self._ensure_not_submitting(owner_id)
        del self._checkouts[owner_id]
        current.close()

    def _ensure_not_submitting(self, owner_id: int):
        current = self._checkouts.get(owner_id)
        if current is not None and current.submission_state == SubmissionState.SUBMITTING:
            logger.warning(f"Checkout of user {owner_id} kept open while its order is being submitted")
            raise DuplicateSubmissionException()
