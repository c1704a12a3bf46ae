"""Centralized configuration for environment variables."""

import os

API_URL_ENV = "BASEBALL_API_URL"
API_TOKEN_ENV = "BASEBALL_API_TOKEN"
POLL_INTERVAL_ENV = "BASEBALL_POLL_INTERVAL"

DEFAULT_API_URL = "http://localhost:8080/baseball"
DEFAULT_POLL_INTERVAL = 5.0  # seconds


def get_base_url() -> str:
    """Return the game server base URL without a trailing slash."""
    return os.environ.get(API_URL_ENV, DEFAULT_API_URL).rstrip("/")


def get_token() -> str:
    """Return the game server access token, or empty string if not set."""
    return os.environ.get(API_TOKEN_ENV, "")


def require_token(message: str = "") -> str:
    """Return the access token or exit with an error."""
    token = get_token()
    if not token:
        import sys

        msg = message or f"{API_TOKEN_ENV} environment variable not set."
        print(f"Error: {msg}", file=sys.stderr)
        sys.exit(1)
    return token


def get_poll_interval() -> float:
    """Return the configured poll interval, falling back to the default."""
    raw = os.environ.get(POLL_INTERVAL_ENV, "")
    try:
        value = float(raw)
    except ValueError:
        return DEFAULT_POLL_INTERVAL
    return value if value > 0 else DEFAULT_POLL_INTERVAL
