import os
import logging

from dotenv import load_dotenv

# Load .env but don't override existing environment variables
# This allows test scripts to set variables before import
load_dotenv(".env", override=False)

# Webhook configuration (initialized lazily at startup to avoid side-effects)
WEBHOOK_HOST = os.environ.get("WEBHOOK_HOST")
WEBHOOK_PATH = os.environ.get("WEBHOOK_PATH", "/webhook")
WEBHOOK_SECRET_TOKEN = os.environ.get("WEBHOOK_SECRET_TOKEN")
WEBHOOK_URL = None


def initialize_webhook_config():
    """
    Initialize webhook configuration.

    This function must be called explicitly during bot startup.

    Returns:
        str: The webhook URL, or None when no WEBHOOK_HOST is configured
    """
    global WEBHOOK_URL

    if not WEBHOOK_HOST:
        logging.warning("[Init] WEBHOOK_HOST is not set, webhook will not be registered")
        WEBHOOK_URL = None
        return None

    WEBHOOK_URL = f"{WEBHOOK_HOST.rstrip('/')}{WEBHOOK_PATH}"
    return WEBHOOK_URL


WEBAPP_HOST = os.environ.get("WEBAPP_HOST", "0.0.0.0")
WEBAPP_PORT = int(os.environ.get("WEBAPP_PORT")) if os.environ.get("WEBAPP_PORT") else 8000
TOKEN = os.environ.get("TOKEN")

REDIS_HOST = os.environ.get("REDIS_HOST", "localhost")
REDIS_PASSWORD = os.environ.get("REDIS_PASSWORD")

# Storefront REST API (orders, products, auth, affiliate lookup)
API_BASE_URL = os.environ.get("API_BASE_URL", "http://localhost:8080/api").rstrip("/")

# Parse API_TIMEOUT_SECONDS with error handling
try:
    API_TIMEOUT_SECONDS = float(os.environ.get("API_TIMEOUT_SECONDS", "30"))
    if API_TIMEOUT_SECONDS <= 0:
        raise ValueError(f"API_TIMEOUT_SECONDS must be positive (got: {API_TIMEOUT_SECONDS})")
except ValueError as e:
    import sys
    print(f"\n ERROR: Invalid API_TIMEOUT_SECONDS configuration\n", file=sys.stderr)
    print(f"Reason: {e}", file=sys.stderr)
    print(f"Expected: Positive number of seconds (e.g., 15, 30)", file=sys.stderr)
    print(f"Current value: {os.environ.get('API_TIMEOUT_SECONDS', '(not set)')}\n", file=sys.stderr)
    sys.exit(1)

BOT_LANGUAGE = os.environ.get("BOT_LANGUAGE", "en")  # Default to English
CURRENCY_SYMBOL = os.environ.get("CURRENCY_SYMBOL", "₹")

# UPI payment instructions shown in the payment step
UPI_ID = os.environ.get("UPI_ID", "your-vpa@bank")
MERCHANT_NAME = os.environ.get("MERCHANT_NAME", "Divaksha")

# Parse AFFILIATE_TTL_DAYS with error handling
try:
    AFFILIATE_TTL_DAYS = int(os.environ.get("AFFILIATE_TTL_DAYS", "30"))
    if AFFILIATE_TTL_DAYS <= 0:
        raise ValueError(f"AFFILIATE_TTL_DAYS must be positive (got: {AFFILIATE_TTL_DAYS})")
except ValueError as e:
    import sys
    print(f"\n ERROR: Invalid AFFILIATE_TTL_DAYS configuration\n", file=sys.stderr)
    print(f"Reason: {e}", file=sys.stderr)
    print(f"Expected: Positive integer (e.g., 7, 30)", file=sys.stderr)
    print(f"Current value: {os.environ.get('AFFILIATE_TTL_DAYS', '(not set)')}\n", file=sys.stderr)
    sys.exit(1)

# Logging
LOG_LEVEL = os.environ.get("LOG_LEVEL", "INFO")
LOG_RETENTION_DAYS = int(os.environ.get("LOG_RETENTION_DAYS", "7"))
LOG_MASK_SECRETS = os.environ.get("LOG_MASK_SECRETS", "true") == "true"  # Default: enabled
