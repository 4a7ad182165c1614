"""
Persisted Cart Store

Redis mirror of a user's cart so the cart survives bot restarts. The value
is a JSON array of cart lines:

    [{"productId": 5, "productName": "G1 Prash", "price": 499.0, "quantity": 2,
      "imageUrl": "...", "stock": 10}, ...]

The in-memory CartManager owns the cart, this repository is a passive mirror.
There is no locking between bot instances: one writer per user is assumed.
"""

import json
import logging

from pydantic import ValidationError
from redis.asyncio import Redis
from redis.exceptions import RedisError

from exceptions.storage import CartPersistenceException
from models.cart import CartLineDTO

logger = logging.getLogger(__name__)

CART_STORAGE_KEY = "distribio_cart"


class CartStoreRepository:
    def __init__(self, redis: Redis):
        self.redis = redis

    @staticmethod
    def key_for(owner_id: int) -> str:
        return f"{CART_STORAGE_KEY}:{owner_id}"

    async def load(self, owner_id: int) -> list[CartLineDTO]:
        """
        Load the last saved cart.

        Missing, unreadable or corrupt data hydrates to an empty cart. This
        method never raises.

        Args:
            owner_id: Telegram user ID owning the cart

        Returns:
            List of cart lines in stored order
        """
        key = self.key_for(owner_id)
        try:
            raw = await self.redis.get(key)
        except RedisError as e:
            logger.error(f"Failed to read cart {key}, starting empty: {e}")
            return []

        if raw is None:
            return []

        try:
            data = json.loads(raw)
            if not isinstance(data, list):
                raise ValueError(f"expected a list, got {type(data).__name__}")
            lines = [CartLineDTO.model_validate(entry) for entry in data]
        except (ValueError, TypeError, ValidationError) as e:
            logger.warning(f"Discarding corrupt cart {key}: {e}")
            return []

        product_ids = [line.productId for line in lines]
        if len(set(product_ids)) != len(product_ids):
            logger.warning(f"Discarding corrupt cart {key}: duplicate product lines")
            return []

        return lines

    async def save(self, owner_id: int, lines: list[CartLineDTO]):
        """
        Overwrite the stored cart with a full serialization of the given lines.

        Raises:
            CartPersistenceException: If Redis rejects the write
        """
        key = self.key_for(owner_id)
        payload = json.dumps([line.model_dump(mode="json", exclude_none=True) for line in lines])
        try:
            await self.redis.set(key, payload)
        except RedisError as e:
            raise CartPersistenceException(key, str(e)) from e

    async def clear(self, owner_id: int):
        """
        Remove the stored cart entirely.

        Raises:
            CartPersistenceException: If Redis rejects the delete
        """
        key = self.key_for(owner_id)
        try:
            await self.redis.delete(key)
        except RedisError as e:
            raise CartPersistenceException(key, str(e)) from e
