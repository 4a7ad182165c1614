import json
import logging

from models.user import AuthResponseDTO
from repositories.user_session import UserSessionRepository
from storefront_api.api_client import StorefrontApiClient

logger = logging.getLogger(__name__)


class AuthService:
    def __init__(self, api: StorefrontApiClient, sessions: UserSessionRepository):
        self.api = api
        self.sessions = sessions

    async def login(self, owner_id: int, email: str, password: str) -> AuthResponseDTO:
        """
        Log in against the storefront API and remember the session.

        Raises:
            ApiRequestException: If the credentials are rejected
        """
        body = await self.api.fetch_api_request(
            "/auth/login",
            method="POST",
            data=json.dumps({"email": email, "password": password})
        )
        auth = AuthResponseDTO.model_validate(body)
        await self.sessions.save(owner_id, auth.user, auth.token)
        logger.info(f"Telegram user {owner_id} logged in as storefront user {auth.user.id}")
        return auth

    async def logout(self, owner_id: int):
        await self.sessions.clear(owner_id)
        logger.info(f"Telegram user {owner_id} logged out")
