"""
Configuration Validation for xpost

This module contains configuration validation logic and credential loading.
Extracted from settings.py for better separation of concerns.
"""

import os
import stat
from pathlib import Path
from typing import Union

from data.models import Credentials
from utils.exceptions import ConfigurationError
from utils.logger import get_logger

logger = get_logger(__name__)

CREDENTIALS_HELP = (
    "Create {env_file} with your X API credentials:\n\n"
    "TWITTER_API_KEY=your_api_key\n"
    "TWITTER_API_KEY_SECRET=your_api_secret\n"
    "TWITTER_ACCESS_TOKEN=your_access_token\n"
    "TWITTER_ACCESS_TOKEN_SECRET=your_access_token_secret\n\n"
    "Get your credentials at: https://developer.x.com/en/portal/dashboard"
)


def validate_settings():
    """
    Validate that all required settings are properly configured.

    Raises:
        ConfigurationError: If required settings are missing or invalid.
    """
    # Import settings here to avoid circular imports
    from config import settings

    errors = []

    required_vars = [
        ("TWITTER_API_KEY", settings.TWITTER_API_KEY),
        ("TWITTER_API_KEY_SECRET", settings.TWITTER_API_KEY_SECRET),
        ("TWITTER_ACCESS_TOKEN", settings.TWITTER_ACCESS_TOKEN),
        ("TWITTER_ACCESS_TOKEN_SECRET", settings.TWITTER_ACCESS_TOKEN_SECRET),
    ]

    for var_name, var_value in required_vars:
        if not var_value or not str(var_value).strip():
            errors.append(f"Missing required environment variable: {var_name}")

    numeric_validations = [
        ("POST_QUEUE_CAPACITY", settings.POST_QUEUE_CAPACITY, 1, 100),
        ("UI_POLL_INTERVAL_MS", settings.UI_POLL_INTERVAL_MS, 10, 1000),
        ("STATS_FETCH_LIMIT", settings.STATS_FETCH_LIMIT, 1, settings.TWITTER_API_MAX_RESULTS),
        ("REPLIES_FETCH_LIMIT", settings.REPLIES_FETCH_LIMIT, 1, settings.TWITTER_API_MAX_RESULTS),
    ]

    for name, value, min_val, max_val in numeric_validations:
        if value < min_val or value > max_val:
            errors.append(f"{name} must be between {min_val} and {max_val}, got {value}")

    if settings.TWITTER_REQUEST_TIMEOUT is None:
        errors.append("TWITTER_REQUEST_TIMEOUT must be a number, "
                      f"got {os.getenv('TWITTER_REQUEST_TIMEOUT')!r}")
    elif settings.TWITTER_REQUEST_TIMEOUT <= 0:
        errors.append(f"TWITTER_REQUEST_TIMEOUT must be positive, got {settings.TWITTER_REQUEST_TIMEOUT}")

    # Raise all errors at once
    if errors:
        error_msg = "Configuration validation failed:\n" + "\n".join(f"  - {e}" for e in errors)
        error_msg += "\n\n" + CREDENTIALS_HELP.format(env_file=settings.ENV_FILE)
        raise ConfigurationError(error_msg)

    return True


def load_credentials() -> Credentials:
    """
    Validate settings and build the OAuth credentials.

    Returns:
        Credentials: The four OAuth 1.0a secrets.

    Raises:
        ConfigurationError: If validation fails.
    """
    from config import settings

    validate_settings()
    secure_config_file(settings.ENV_FILE)

    return Credentials(
        consumer_key=settings.TWITTER_API_KEY.strip(),
        consumer_secret=settings.TWITTER_API_KEY_SECRET.strip(),
        access_token=settings.TWITTER_ACCESS_TOKEN.strip(),
        access_token_secret=settings.TWITTER_ACCESS_TOKEN_SECRET.strip(),
    )


def secure_config_file(path: Union[str, Path]) -> bool:
    """
    Restrict a credentials file to user read/write (0600) on POSIX systems.

    Args:
        path: The file to secure.

    Returns:
        bool: True if permissions were changed, False if nothing was done.

    Raises:
        ConfigurationError: If the permissions cannot be changed.
    """
    path = Path(path)
    if os.name != "posix" or not path.is_file():
        return False

    mode = stat.S_IMODE(path.stat().st_mode)
    if mode == 0o600:
        return False

    try:
        os.chmod(path, 0o600)
    except OSError as e:
        raise ConfigurationError(f"Could not restrict permissions on {path}: {e}") from e

    logger.info(f"Restricted permissions on {path} to 0600 (was {oct(mode)})")
    return True
