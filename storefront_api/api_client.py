"""
HTTP client for the storefront REST API.

All requests send and receive JSON. When a bearer token is given it is sent
in the Authorization header. Failures are normalised into
ApiRequestException:

- Server answered with an error status: the "message" field of the response
  body (or the HTTP reason) is used verbatim
- No response (connection error, timeout): a generic network error message
"""

import asyncio
import json
import logging
from typing import Any

import aiohttp

import config
from exceptions.api import ApiRequestException

logger = logging.getLogger(__name__)

NETWORK_ERROR_MESSAGE = "Network error. Please check your connection."


class StorefrontApiClient:
    def __init__(self, base_url: str | None = None, timeout_seconds: float | None = None):
        self.base_url = (base_url or config.API_BASE_URL).rstrip("/")
        self.timeout = aiohttp.ClientTimeout(total=timeout_seconds or config.API_TIMEOUT_SECONDS)
        self._session: aiohttp.ClientSession | None = None

    def _get_session(self) -> aiohttp.ClientSession:
        # created on first use so it binds to the running event loop
        if self._session is None or self._session.closed:
            self._session = aiohttp.ClientSession(timeout=self.timeout)
        return self._session

    async def close(self):
        """Close the shared HTTP session. A later request opens a new one."""
        if self._session is not None and not self._session.closed:
            await self._session.close()
        self._session = None

    async def fetch_api_request(self, path: str, method: str = "GET", data: str | None = None,
                                params: dict | None = None, token: str | None = None) -> Any:
        """
        Perform a request against the storefront API.

        Args:
            path: API path starting with "/" (e.g., "/orders")
            method: HTTP method
            data: JSON-encoded request body
            params: Query string parameters
            token: Bearer token of the logged-in user

        Returns:
            Decoded JSON body, raw text for non-JSON bodies, or None for empty bodies

        Raises:
            ApiRequestException: On error status, connection failure or timeout
        """
        url = f"{self.base_url}{path}"
        headers = {"Content-Type": "application/json"}
        if token:
            headers["Authorization"] = f"Bearer {token}"

        session = self._get_session()
        try:
            async with session.request(method, url, data=data, params=params, headers=headers) as response:
                body = await self._read_body(response)
                if response.status >= 400:
                    message = self._error_message(body, response)
                    logger.warning(f"API {method} {path} failed with status {response.status}: {message}")
                    raise ApiRequestException(message, status=response.status, path=path)
                return body
        except (aiohttp.ClientError, asyncio.TimeoutError) as e:
            logger.error(f"API {method} {path} got no response: {e!r}")
            raise ApiRequestException(NETWORK_ERROR_MESSAGE, path=path) from e

    @staticmethod
    async def _read_body(response: aiohttp.ClientResponse) -> Any:
        text = await response.text()
        if not text:
            return None
        try:
            return json.loads(text)
        except ValueError:
            return text

    @staticmethod
    def _error_message(body: Any, response: aiohttp.ClientResponse) -> str:
        if isinstance(body, dict) and body.get("message"):
            return str(body["message"])
        return response.reason or "An error occurred"
