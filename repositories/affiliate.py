"""
Affiliate and referral capture storage.

A user who follows an affiliate or referral link keeps that attribution
until their next successful order (or until the affiliate TTL runs out).
"""

import logging
import time

from pydantic import ValidationError
from redis.asyncio import Redis
from redis.exceptions import RedisError

import config
from exceptions.storage import StorageException
from models.affiliate import AffiliateInfoDTO

logger = logging.getLogger(__name__)

AFFILIATE_STORAGE_KEY = "divaksha_affiliate"
REFERRAL_STORAGE_KEY = "divaksha_referral_id"


class AffiliateRepository:
    def __init__(self, redis: Redis, ttl_days: int | None = None):
        self.redis = redis
        self.ttl_days = ttl_days if ttl_days is not None else config.AFFILIATE_TTL_DAYS

    @property
    def ttl_seconds(self) -> int:
        return self.ttl_days * 24 * 60 * 60

    @staticmethod
    def _affiliate_key(owner_id: int) -> str:
        return f"{AFFILIATE_STORAGE_KEY}:{owner_id}"

    @staticmethod
    def _referral_key(owner_id: int) -> str:
        return f"{REFERRAL_STORAGE_KEY}:{owner_id}"

    async def set_affiliate(self, owner_id: int, affiliate_code: str,
                            affiliate_user_id: int | None = None) -> AffiliateInfoDTO:
        info = AffiliateInfoDTO(
            affiliateUserId=affiliate_user_id,
            affiliateCode=affiliate_code,
            timestamp=int(time.time() * 1000)
        )
        key = self._affiliate_key(owner_id)
        try:
            await self.redis.set(key, info.model_dump_json(), ex=self.ttl_seconds)
        except RedisError as e:
            raise StorageException(key, str(e)) from e
        logger.info(f"Affiliate code stored for user {owner_id}")
        return info

    async def get_affiliate(self, owner_id: int) -> AffiliateInfoDTO | None:
        """
        Get the stored affiliate attribution.

        Returns None when nothing is stored, the stored value is corrupt, or
        it is older than the affiliate TTL.
        """
        key = self._affiliate_key(owner_id)
        try:
            raw = await self.redis.get(key)
        except RedisError as e:
            logger.error(f"Failed to read affiliate for user {owner_id}: {e}")
            return None

        if raw is None:
            return None

        try:
            info = AffiliateInfoDTO.model_validate_json(raw)
        except ValidationError as e:
            logger.warning(f"Discarding corrupt affiliate record for user {owner_id}: {e}")
            return None

        age_seconds = time.time() - info.timestamp / 1000
        if age_seconds > self.ttl_seconds:
            try:
                await self.clear_affiliate(owner_id)
            except StorageException as e:
                logger.warning(f"Failed to drop expired affiliate for user {owner_id}: {e.message}")
            return None
        return info

    async def clear_affiliate(self, owner_id: int):
        key = self._affiliate_key(owner_id)
        try:
            await self.redis.delete(key)
        except RedisError as e:
            raise StorageException(key, str(e)) from e

    async def set_referral_id(self, owner_id: int, seller_id: int):
        key = self._referral_key(owner_id)
        try:
            await self.redis.set(key, str(seller_id))
        except RedisError as e:
            raise StorageException(key, str(e)) from e
        logger.info(f"Referral seller {seller_id} stored for user {owner_id}")

    async def get_referral_id(self, owner_id: int) -> int | None:
        key = self._referral_key(owner_id)
        try:
            raw = await self.redis.get(key)
        except RedisError as e:
            logger.error(f"Failed to read referral for user {owner_id}: {e}")
            return None

        if raw is None:
            return None
        if isinstance(raw, bytes):
            raw = raw.decode()
        try:
            return int(raw)
        except ValueError:
            logger.warning(f"Discarding corrupt referral id for user {owner_id}")
            return None

    async def clear_referral_id(self, owner_id: int):
        key = self._referral_key(owner_id)
        try:
            await self.redis.delete(key)
        except RedisError as e:
            raise StorageException(key, str(e)) from e

    async def clear(self, owner_id: int):
        """Remove both the affiliate and the referral attribution."""
        await self.clear_affiliate(owner_id)
        await self.clear_referral_id(owner_id)
