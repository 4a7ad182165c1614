"""
Affiliate and referral capture from /start deep links.

t.me/<bot>?start=aff_<code> stores an affiliate code, and
t.me/<bot>?start=ref_<userId> stores the referring seller. Both are
attached to the next order.
"""

import logging

from enums.bot_entity import BotEntity
from exceptions.storage import StorageException
from services.storefront import Storefront
from utils.html_escape import safe_html
from utils.localizator import Localizator

AFFILIATE_PREFIX = "aff_"
REFERRAL_PREFIX = "ref_"


async def capture_start_payload(owner_id: int, payload: str | None, storefront: Storefront) -> str | None:
    """
    Store the attribution carried by a /start payload.

    Returns:
        Confirmation text for the user, or None if nothing was stored
    """
    if not payload:
        return None

    try:
        if payload.startswith(AFFILIATE_PREFIX) and len(payload) > len(AFFILIATE_PREFIX):
            info = await storefront.affiliates.capture_affiliate(owner_id, payload[len(AFFILIATE_PREFIX):])
            return Localizator.get_text(BotEntity.USER, "affiliate_captured").format(
                code=safe_html(info.affiliateCode)
            )
        referral = payload[len(REFERRAL_PREFIX):]
        if payload.startswith(REFERRAL_PREFIX) and referral.isdigit():
            await storefront.affiliates.capture_referral(owner_id, int(referral))
            return Localizator.get_text(BotEntity.USER, "referral_captured")
    except StorageException as e:
        logging.error(f"Failed to store start payload of user {owner_id}: {e}")
        return None

    logging.info(f"Ignoring unknown start payload from user {owner_id}")
    return None
