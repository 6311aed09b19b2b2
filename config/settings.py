"""
Configuration Settings for xpost

This module centralizes all configuration settings for the xpost application,
including environment variables, API credentials, and application constants.
"""

import os
from pathlib import Path
from dotenv import load_dotenv

# Determine the application root directory
APP_ROOT = Path(__file__).resolve().parent.parent

# Per-user configuration directory (credentials, drafts, log file)
CONFIG_DIR = Path(os.getenv("XPOST_CONFIG_DIR", str(Path.home() / ".config" / "xpost"))).expanduser()
ENV_FILE = CONFIG_DIR / ".env"


def get_float_env(name: str, default: str):
    """Read a float from the environment; None when the value is not a number."""
    value = os.getenv(name, default)
    try:
        return float(value)
    except (TypeError, ValueError):
        return None


# Load environment variables from .env files; the user file wins over the repo one
load_dotenv(dotenv_path=os.path.join(APP_ROOT, '.env'))
load_dotenv(dotenv_path=ENV_FILE, override=True)

# Twitter API Authentication (OAuth 1.0a user context)
TWITTER_API_KEY = os.getenv("TWITTER_API_KEY")
TWITTER_API_KEY_SECRET = os.getenv("TWITTER_API_KEY_SECRET")
TWITTER_ACCESS_TOKEN = os.getenv("TWITTER_ACCESS_TOKEN")
TWITTER_ACCESS_TOKEN_SECRET = os.getenv("TWITTER_ACCESS_TOKEN_SECRET")

# =============================================================================
# Twitter API Settings
# =============================================================================

TWITTER_API_BASE = "https://api.twitter.com/2"
TWITTER_UPLOAD_URL = "https://upload.twitter.com/1.1/media/upload.json"
TWITTER_POST_URL_TEMPLATE = "https://x.com/i/status/{post_id}"
TWITTER_REQUEST_TIMEOUT = get_float_env("TWITTER_REQUEST_TIMEOUT", "30")  # Seconds, per request; None if invalid
TWITTER_POST_FIELDS = "created_at,public_metrics,conversation_id"
TWITTER_USER_POSTS_MIN_RESULTS = 5     # /users/:id/tweets accepts 5..100
TWITTER_SEARCH_MIN_RESULTS = 10        # /tweets/search/recent accepts 10..100
TWITTER_API_MAX_RESULTS = 100
TWITTER_CHARACTER_LIMIT = 280          # Shown next to the character count

# =============================================================================
# Posting Pipeline / UI Settings
# =============================================================================

POST_QUEUE_CAPACITY = 10               # Bound for both pipeline channels
UI_POLL_INTERVAL_MS = 100              # Input poll period of the UI loop

# =============================================================================
# Stats View Settings
# =============================================================================

STATS_FETCH_LIMIT = 10                 # Recent posts listed in the stats view
REPLIES_FETCH_LIMIT = 10               # Replies fetched for the detail view
POST_PREVIEW_LENGTH = 80               # Max characters of a post in the list

# =============================================================================
# Drafts / Files
# =============================================================================

DRAFTS_DIR = CONFIG_DIR / "drafts"
DRAFT_PREVIEW_LENGTH = 60              # Max characters of a draft's first line
LOG_FILE = CONFIG_DIR / "xpost.log"


def get_config_summary() -> dict:
    """
    Returns a summary of current configuration (without sensitive values).
    Useful for logging startup state.
    """
    return {
        "credentials": {
            "api_key": bool(TWITTER_API_KEY),
            "api_key_secret": bool(TWITTER_API_KEY_SECRET),
            "access_token": bool(TWITTER_ACCESS_TOKEN),
            "access_token_secret": bool(TWITTER_ACCESS_TOKEN_SECRET),
        },
        "paths": {
            "config_dir": str(CONFIG_DIR),
            "drafts_dir": str(DRAFTS_DIR),
        },
        "network": {
            "request_timeout": TWITTER_REQUEST_TIMEOUT,
        },
        "pipeline": {
            "queue_capacity": POST_QUEUE_CAPACITY,
            "poll_interval_ms": UI_POLL_INTERVAL_MS,
        },
    }
