import logging

from pydantic import ValidationError
from redis.asyncio import Redis
from redis.exceptions import RedisError

from exceptions.storage import StorageException
from models.user import UserDTO

logger = logging.getLogger(__name__)

USER_STORAGE_KEY = "divaksha_current_user"
TOKEN_STORAGE_KEY = "divaksha_auth_token"


class UserSessionRepository:
    """Logged-in storefront user and bearer token, per Telegram user."""

    def __init__(self, redis: Redis):
        self.redis = redis

    async def save(self, owner_id: int, user: UserDTO, token: str):
        try:
            await self.redis.set(f"{USER_STORAGE_KEY}:{owner_id}", user.model_dump_json())
            await self.redis.set(f"{TOKEN_STORAGE_KEY}:{owner_id}", token)
        except RedisError as e:
            raise StorageException(f"{USER_STORAGE_KEY}:{owner_id}", str(e)) from e

    async def get_user(self, owner_id: int) -> UserDTO | None:
        try:
            raw = await self.redis.get(f"{USER_STORAGE_KEY}:{owner_id}")
        except RedisError as e:
            logger.error(f"Failed to read session for user {owner_id}: {e}")
            return None

        if raw is None:
            return None
        try:
            return UserDTO.model_validate_json(raw)
        except ValidationError:
            logger.warning(f"Discarding corrupt session for user {owner_id}")
            return None

    async def get_token(self, owner_id: int) -> str | None:
        try:
            raw = await self.redis.get(f"{TOKEN_STORAGE_KEY}:{owner_id}")
        except RedisError as e:
            logger.error(f"Failed to read token for user {owner_id}: {e}")
            return None

        if isinstance(raw, bytes):
            raw = raw.decode()
        return raw or None

    async def clear(self, owner_id: int):
        try:
            await self.redis.delete(f"{USER_STORAGE_KEY}:{owner_id}", f"{TOKEN_STORAGE_KEY}:{owner_id}")
        except RedisError as e:
            raise StorageException(f"{USER_STORAGE_KEY}:{owner_id}", str(e)) from e
