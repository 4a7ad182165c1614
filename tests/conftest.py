"""
Pytest configuration and fixtures for tests.

This file is automatically loaded by pytest and provides shared fixtures
and configuration for all tests.
"""

import sys
import os
from decimal import Decimal
from unittest.mock import MagicMock

import pytest
import pytest_asyncio
from fakeredis import FakeAsyncRedis

# Add parent directory to Python path so tests can import modules
sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), '..')))

# Mock config module completely before any imports
config_mock = MagicMock()
config_mock.TOKEN = "123456:ABC-DEF1234ghIkl-zyx57W2v1u123ew11"  # Test bot token
config_mock.WEBHOOK_PATH = "/webhook"
config_mock.WEBHOOK_SECRET_TOKEN = "test_webhook_secret_1234567890abcdef1234567890"
config_mock.WEBHOOK_HOST = None
config_mock.WEBHOOK_URL = None
config_mock.WEBAPP_HOST = "127.0.0.1"
config_mock.WEBAPP_PORT = 8000
config_mock.REDIS_HOST = "localhost"
config_mock.REDIS_PASSWORD = None
config_mock.API_BASE_URL = "http://storefront.test/api"
config_mock.API_TIMEOUT_SECONDS = 5.0
config_mock.BOT_LANGUAGE = "en"  # For Localizator
config_mock.CURRENCY_SYMBOL = "₹"
config_mock.UPI_ID = "divaksha@okaxis"
config_mock.MERCHANT_NAME = "Divaksha Wellness"
config_mock.AFFILIATE_TTL_DAYS = 30
config_mock.LOG_LEVEL = "INFO"
config_mock.LOG_RETENTION_DAYS = 7
config_mock.LOG_MASK_SECRETS = True

sys.modules['config'] = config_mock


# ============================================================================
# Redis Fixtures
# ============================================================================

@pytest_asyncio.fixture
async def redis_client():
    """Create fake Redis client for testing (no real Redis server needed)."""
    client = FakeAsyncRedis(decode_responses=True)
    yield client
    await client.aclose()


# ============================================================================
# Domain Fixtures
# ============================================================================

@pytest.fixture
def product_factory():
    """Build catalog products with sensible defaults."""
    from models.product import ProductDTO

    def _make(product_id: int = 5, name: str = "G1 Prash", price: str = "499.00", stock: int | None = 10):
        return ProductDTO(productId=product_id, name=name, price=Decimal(price), stock=stock)

    return _make


@pytest.fixture
def buyer():
    """Logged-in storefront user."""
    from models.user import UserDTO
    return UserDTO(id=42, username="asha", email="asha@example.com")


@pytest.fixture
def delivery_form():
    """A delivery form that passes validation."""
    return {
        "name": "Asha Rao",
        "phone": "9876543210",
        "email": "asha@example.com",
        "doorNo": "12B",
        "area": "MG Road",
        "landmark": "",
        "city": "Bengaluru",
        "district": "Bengaluru Urban",
        "pincode": "560001",
    }
