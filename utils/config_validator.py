"""
Configuration Validation Module

Validates critical configuration values at startup to fail-fast
with clear error messages instead of runtime failures.
"""

import sys
from typing import Optional
from urllib.parse import urlparse


class ConfigValidationError(Exception):
    """Raised when configuration validation fails."""
    pass


def validate_webhook_secret(webhook_secret: Optional[str]) -> None:
    """
    Validate Telegram webhook secret token.

    Raises:
        ConfigValidationError: If secret is missing, empty, or too weak
    """
    if not webhook_secret or len(webhook_secret.strip()) == 0:
        raise ConfigValidationError(
            "WEBHOOK_SECRET_TOKEN is required and must not be empty!\n"
            "Generate a secure token with: openssl rand -hex 32\n"
            "Add to .env: WEBHOOK_SECRET_TOKEN=<your-generated-token>"
        )

    if len(webhook_secret) < 32:
        raise ConfigValidationError(
            f"WEBHOOK_SECRET_TOKEN is too weak (length: {len(webhook_secret)}, minimum: 32)!\n"
            "Generate a secure token with: openssl rand -hex 32"
        )


def validate_api_base_url(api_base_url: Optional[str]) -> None:
    """
    Validate the storefront API base URL.

    Raises:
        ConfigValidationError: If the URL is not an absolute http(s) URL
    """
    parsed = urlparse(api_base_url or "")
    if parsed.scheme not in ("http", "https") or not parsed.netloc:
        raise ConfigValidationError(
            f"API_BASE_URL must be an absolute http(s) URL (got: {api_base_url!r})\n"
            "Add to .env: API_BASE_URL=https://shop.example.com/api"
        )


def validate_upi_id(upi_id: Optional[str]) -> None:
    """
    Validate the UPI virtual payment address buyers pay to.

    Raises:
        ConfigValidationError: If the VPA is not of the form name@bank
    """
    if not upi_id or upi_id.count("@") != 1 or upi_id.startswith("@") or upi_id.endswith("@"):
        raise ConfigValidationError(
            f"UPI_ID must be a virtual payment address like merchant@bank (got: {upi_id!r})"
        )


def validate_required_config(value: Optional[str], name: str, example: str = "") -> None:
    """
    Validate that a required config value is set.

    Raises:
        ConfigValidationError: If value is missing
    """
    if not value:
        error_msg = f"{name} is required but not set!"
        if example:
            error_msg += f"\nAdd to .env: {name}={example}"
        raise ConfigValidationError(error_msg)


def validate_startup_config(config_module) -> None:
    """
    Validate all critical configuration at startup.

    Raises:
        ConfigValidationError: If any validation fails
    """
    validate_required_config(getattr(config_module, 'TOKEN', None), 'TOKEN', '<your-telegram-bot-token>')
    validate_webhook_secret(getattr(config_module, 'WEBHOOK_SECRET_TOKEN', None))
    validate_api_base_url(getattr(config_module, 'API_BASE_URL', None))
    validate_upi_id(getattr(config_module, 'UPI_ID', None))


def validate_or_exit(config_module) -> None:
    """
    Validate configuration and exit with error code 1 if validation fails.

    This is the main entry point for startup validation.
    """
    try:
        validate_startup_config(config_module)
    except ConfigValidationError as e:
        print(f"\n ERROR: Configuration Validation Failed\n", file=sys.stderr)
        print(str(e), file=sys.stderr)
        print("\nBot startup aborted. Please fix configuration and try again.\n", file=sys.stderr)
        sys.exit(1)
