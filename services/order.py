import logging

from pydantic import ValidationError

from exceptions.api import ApiRequestException, OrderSubmissionException
from models.order import OrderConfirmationDTO, OrderPayloadDTO
from storefront_api.api_client import StorefrontApiClient

logger = logging.getLogger(__name__)


class OrderClient:
    """
    Order submission client: turns a checkout payload into a persisted order.

    Bound to the bearer token of the buyer placing the order.
    """

    def __init__(self, api: StorefrontApiClient, token: str | None):
        self.api = api
        self.token = token

    async def create_order(self, payload: OrderPayloadDTO) -> OrderConfirmationDTO:
        """
        POST the order to the storefront API.

        Any successful status counts as a placed order. If the reply body is
        not a readable confirmation, an empty confirmation (no orderId) is
        returned.

        Raises:
            OrderSubmissionException: With the server message verbatim
        """
        logger.info(
            f"Submitting order for buyer {payload.buyerId}: "
            f"{len(payload.items)} line(s), total {payload.totalAmount}"
        )
        try:
            body = await self.api.fetch_api_request(
                "/orders",
                method="POST",
                data=payload.model_dump_json(),
                token=self.token
            )
        except ApiRequestException as e:
            raise OrderSubmissionException(e.message, status=e.status) from e

        # a 2xx means the order exists, so an unreadable reply must not lead to a retry
        try:
            confirmation = OrderConfirmationDTO.model_validate(body)
        except ValidationError as e:
            logger.warning(f"Order accepted for buyer {payload.buyerId} but the confirmation is unreadable: {e}")
            return OrderConfirmationDTO()

        logger.info(f"Order {confirmation.orderId} created for buyer {payload.buyerId}")
        return confirmation
