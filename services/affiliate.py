import logging

from exceptions.api import ApiRequestException
from exceptions.storage import StorageException
from models.affiliate import AffiliateInfoDTO, AffiliateLookupDTO, AttributionDTO
from repositories.affiliate import AffiliateRepository
from storefront_api.api_client import StorefrontApiClient

logger = logging.getLogger(__name__)


class AffiliateService:
    def __init__(self, api: StorefrontApiClient, repository: AffiliateRepository):
        self.api = api
        self.repository = repository

    async def capture_affiliate(self, owner_id: int, code: str) -> AffiliateInfoDTO:
        """
        Remember an affiliate code from a followed affiliate link.

        The code is looked up to resolve the affiliate's user ID. If the lookup
        fails the bare code is stored, the server re-validates it on order
        creation.
        """
        affiliate_user_id = None
        try:
            body = await self.api.fetch_api_request(f"/affiliate/{code}")
            affiliate_user_id = AffiliateLookupDTO.model_validate(body).affiliateUserId
        except ApiRequestException as e:
            logger.warning(f"Affiliate code lookup failed, storing code only: {e}")
        return await self.repository.set_affiliate(owner_id, code, affiliate_user_id)

    async def capture_referral(self, owner_id: int, seller_id: int):
        await self.repository.set_referral_id(owner_id, seller_id)

    async def resolve_attribution(self, owner_id: int) -> AttributionDTO:
        """
        Resolve who referred this buyer.

        sellerId is the stored referral seller, falling back to the
        affiliate's user ID. affiliateCode is the stored affiliate code.
        """
        referral_id = await self.repository.get_referral_id(owner_id)
        affiliate = await self.repository.get_affiliate(owner_id)

        seller_id = referral_id
        if seller_id is None and affiliate is not None:
            seller_id = affiliate.affiliateUserId

        return AttributionDTO(
            sellerId=seller_id,
            affiliateCode=affiliate.affiliateCode if affiliate else None
        )

    async def clear_attribution(self, owner_id: int):
        """Forget affiliate and referral after a completed purchase."""
        try:
            await self.repository.clear(owner_id)
        except StorageException as e:
            logger.error(f"Failed to clear attribution of user {owner_id}: {e}")
