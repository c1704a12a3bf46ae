# /// script
# requires-python = ">=3.12"
# dependencies = []
# ///
"""Client for the baseball game server.

Fetches the game list, starts (or resumes) a game for a chosen team, and
reads the scoreboard and per-team player scores.  All functions return the
raw JSON payloads; validation happens in ``game_state_ingestion``.

Requests carry the session token as a bearer token.  Each call makes a
single attempt; callers that poll (``live_game_feed``) simply try again on
their next tick.  The client only reads: the server's pitch endpoint, which
submits a client-decided game state, is not wrapped.

Usage::

    from data.game_api import get_game_list, start_game, get_game_scores

    games = get_game_list(token=token)
    game = start_game("Captain", token=token)
"""

from __future__ import annotations

import json
import urllib.error
import urllib.parse
import urllib.request
from typing import Any

from config import get_base_url, get_token


# ---------------------------------------------------------------------------
# Constants
# ---------------------------------------------------------------------------

DEFAULT_TIMEOUT = 10  # seconds

PATH_GAME_LIST = "/games"
PATH_GAME_START = "/games/{team}"
PATH_GAME_SCORES = "/games/scores"
PATH_PLAYER_SCORES = "/games/scores/{team}"


# ---------------------------------------------------------------------------
# Exceptions
# ---------------------------------------------------------------------------

class GameApiError(Exception):
    """Base exception for game server errors."""

    def __init__(self, message: str, status_code: int | None = None,
                 url: str | None = None):
        self.status_code = status_code
        self.url = url
        super().__init__(message)


class GameApiNotFoundError(GameApiError):
    """Raised when a resource is not found (404)."""


class GameApiAuthError(GameApiError):
    """Raised when the token is missing, expired or rejected (401/403)."""


class GameApiConnectionError(GameApiError):
    """Raised when a connection to the server cannot be established."""


class GameApiTimeoutError(GameApiError):
    """Raised when a request to the server times out."""


# ---------------------------------------------------------------------------
# Low-level HTTP helpers
# ---------------------------------------------------------------------------

def build_url(path: str, base_url: str | None = None, **params: str) -> str:
    """Join *path* onto the base URL, quoting path parameters."""
    quoted = {k: urllib.parse.quote(str(v), safe="") for k, v in params.items()}
    return f"{(base_url or get_base_url()).rstrip('/')}{path.format(**quoted)}"


def _fetch_json(url: str, token: str | None = None,
                timeout: int = DEFAULT_TIMEOUT) -> Any:
    """Fetch and decode JSON from *url*.

    Raises:
        GameApiNotFoundError: If the server returns 404.
        GameApiAuthError: If the server returns 401 or 403.
        GameApiTimeoutError: If the request times out.
        GameApiConnectionError: If the server is unreachable.
        GameApiError: For other HTTP errors or an undecodable body.
    """
    token = get_token() if token is None else token
    req = urllib.request.Request(url)
    req.add_header("Accept", "application/json")
    if token:
        req.add_header("Authorization", f"Bearer {token}")

    try:
        with urllib.request.urlopen(req, timeout=timeout) as resp:
            data = resp.read()
    except urllib.error.HTTPError as exc:
        if exc.code == 404:
            raise GameApiNotFoundError(
                f"Resource not found: {url}", status_code=404, url=url,
            ) from exc
        if exc.code in (401, 403):
            raise GameApiAuthError(
                f"Not authorized ({exc.code}): {url}", status_code=exc.code, url=url,
            ) from exc
        raise GameApiError(
            f"HTTP {exc.code} from {url}", status_code=exc.code, url=url,
        ) from exc
    except urllib.error.URLError as exc:
        if isinstance(exc.reason, TimeoutError):
            raise GameApiTimeoutError(f"Request timed out: {url}", url=url) from exc
        raise GameApiConnectionError(f"Connection failed: {exc}", url=url) from exc
    except TimeoutError as exc:
        raise GameApiTimeoutError(f"Request timed out: {url}", url=url) from exc
    except OSError as exc:
        raise GameApiConnectionError(f"Connection error: {exc}", url=url) from exc

    try:
        return json.loads(data)
    except (json.JSONDecodeError, UnicodeDecodeError) as exc:
        raise GameApiError(f"Invalid JSON from {url}: {exc}", url=url) from exc


# ---------------------------------------------------------------------------
# Endpoints
# ---------------------------------------------------------------------------

def get_game_list(token: str | None = None, base_url: str | None = None) -> list[dict]:
    """Fetch the selectable home/away pairs."""
    return _fetch_json(build_url(PATH_GAME_LIST, base_url), token)


def start_game(team: str, token: str | None = None,
               base_url: str | None = None) -> dict[str, Any]:
    """Start or resume the game for *team* and return the game payload."""
    return _fetch_json(build_url(PATH_GAME_START, base_url, team=team), token)


def get_game_scores(token: str | None = None,
                    base_url: str | None = None) -> dict[str, Any]:
    """Fetch the home/away inning lines."""
    return _fetch_json(build_url(PATH_GAME_SCORES, base_url), token)


def get_player_scores(team: str, token: str | None = None,
                      base_url: str | None = None) -> list[dict]:
    """Fetch the player score list for *team*."""
    return _fetch_json(build_url(PATH_PLAYER_SCORES, base_url, team=team), token)
