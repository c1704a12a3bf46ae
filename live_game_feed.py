# /// script
# requires-python = ">=3.12"
# dependencies = [
#     "pydantic>=2.0",
# ]
# ///
"""Live game feed service.

Polls the game server for the chosen team's game, its scoreboard and both
teams' player scores, and refreshes a :class:`SnapshotProvider` with each
successful poll.  The full story is rebuilt on every refresh; new play
events are detected by comparing the round and story length with the
previous poll so they can be logged.

Usage::

    # Follow the game the "Captain" team is playing
    uv run live_game_feed.py --team Captain

    # Custom poll interval, stop after 20 polls
    uv run live_game_feed.py --team Captain --interval 2 --max-polls 20
"""

from __future__ import annotations

import functools
import logging
import time
from dataclasses import dataclass, field
from typing import Any, Callable

from data.game_api import (
    GameApiError,
    get_game_list,
    get_game_scores,
    get_player_scores,
    start_game,
)
from game_state_ingestion import MalformedInputError, ingest_game_list
from models import GameSnapshot
from snapshot_provider import SnapshotProvider
from state_engine import InvalidStateError

# ---------------------------------------------------------------------------
# Constants
# ---------------------------------------------------------------------------

DEFAULT_POLL_INTERVAL = 5  # seconds
MIN_POLL_INTERVAL = 1
MAX_POLL_INTERVAL = 120
BACKOFF_POLL_INTERVAL = 15  # seconds, used when the server is unavailable
MAX_CONSECUTIVE_ERRORS = 10  # stop after this many consecutive poll failures

# ---------------------------------------------------------------------------
# Logging
# ---------------------------------------------------------------------------

logger = logging.getLogger("live_game_feed")


# ---------------------------------------------------------------------------
# Data classes
# ---------------------------------------------------------------------------

@dataclass
class Fetchers:
    """The three server calls one poll makes."""
    game: Callable[[str], dict[str, Any]]
    scores: Callable[[], dict[str, Any]]
    players: Callable[[str], list[dict[str, Any]]]


def default_fetchers(token: str | None = None,
                     base_url: str | None = None) -> Fetchers:
    """Fetchers backed by :mod:`data.game_api`."""
    return Fetchers(
        game=functools.partial(start_game, token=token, base_url=base_url),
        scores=functools.partial(get_game_scores, token=token, base_url=base_url),
        players=functools.partial(get_player_scores, token=token, base_url=base_url),
    )


@dataclass
class GameFeedState:
    """Tracks the polling state for one game session."""
    team: str
    poll_interval: float = DEFAULT_POLL_INTERVAL
    last_round: int = -1
    last_story_length: int = -1
    consecutive_errors: int = 0
    total_polls: int = 0
    total_refreshes: int = 0
    error_log: list = field(default_factory=list)


@dataclass
class PollResult:
    """Result of a single poll.

    Attributes:
        new_events: True if the round or the story changed since last poll.
        snapshot: The published snapshot (None on error or if superseded).
        error: Error message if the poll failed.
        error_type: Machine-readable error category.
    """
    new_events: bool = False
    snapshot: GameSnapshot | None = None
    error: str | None = None
    error_type: str | None = None


# ---------------------------------------------------------------------------
# Polling
# ---------------------------------------------------------------------------

def _record_error(state: GameFeedState, error_type: str, message: str) -> PollResult:
    state.consecutive_errors += 1
    logger.warning(message)
    state.error_log.append({
        "timestamp": time.time(),
        "error_type": error_type,
        "error": message,
        "consecutive_errors": state.consecutive_errors,
    })
    return PollResult(error=message, error_type=error_type)


def _team_name(scoreboard: dict[str, Any], key: str) -> str | None:
    team = scoreboard.get(key) if isinstance(scoreboard, dict) else None
    if isinstance(team, dict):
        return team.get("teamName")
    return None


def poll_game(
    state: GameFeedState,
    provider: SnapshotProvider,
    fetchers: Fetchers,
) -> PollResult:
    """Fetch the current payloads and refresh *provider*.

    Args:
        state: Polling state (updated in place).
        provider: Snapshot provider to refresh.
        fetchers: Server calls to use.

    Returns:
        PollResult describing what happened.
    """
    try:
        game_payload = fetchers.game(state.team)
        scoreboard = fetchers.scores()
        home_name = _team_name(scoreboard, "homeTeam")
        away_name = _team_name(scoreboard, "awayTeam")
        home_players = fetchers.players(home_name) if home_name else None
        away_players = fetchers.players(away_name) if away_name else None
    except GameApiError as exc:
        return _record_error(state, "feed_fetch_error", f"Failed to fetch game feed: {exc}")

    try:
        snapshot = provider.refresh(game_payload, scoreboard, home_players, away_players)
    except MalformedInputError as exc:
        return _record_error(state, "malformed_input", f"Malformed game payload: {exc}")
    except InvalidStateError as exc:
        return _record_error(state, "invalid_state", f"Cannot replay story: {exc}")

    state.consecutive_errors = 0
    state.total_polls += 1
    if snapshot is None:
        return PollResult()

    state.total_refreshes += 1
    story_length = len(snapshot.game.story)
    new_events = (snapshot.state.round != state.last_round
                  or story_length != state.last_story_length)
    state.last_round = snapshot.state.round
    state.last_story_length = story_length
    return PollResult(new_events=new_events, snapshot=snapshot)


def list_games(token: str | None = None, base_url: str | None = None,
               fetch: Callable[..., Any] = get_game_list) -> list[str]:
    """Return one ``"home vs away"`` line per selectable game."""
    pairs = ingest_game_list(fetch(token=token, base_url=base_url))
    return [f"{p.home_team} vs {p.away_team}" for p in pairs]


def describe_snapshot(snapshot: GameSnapshot) -> str:
    """One-line summary used in log output."""
    display = snapshot.round_display()
    offense_score, defense_score = snapshot.score_info()
    state = snapshot.state
    return (
        f"Round {display.round} ({display.half.value.lower()} {display.inning}): "
        f"{display.batting_team} {offense_score} - {display.fielding_team} {defense_score}, "
        f"{state.balls}-{state.strikes}, {state.outs} out, bases {state.bases_string()}"
    )


# ---------------------------------------------------------------------------
# Main loop
# ---------------------------------------------------------------------------

def run_feed(
    team: str,
    provider: SnapshotProvider | None = None,
    poll_interval: float = DEFAULT_POLL_INTERVAL,
    max_polls: int | None = None,
    max_consecutive_errors: int = MAX_CONSECUTIVE_ERRORS,
    fetchers: Fetchers | None = None,
) -> GameFeedState:
    """Poll the game server until stopped.

    Args:
        team: Team whose game to follow.
        provider: Provider to refresh (a new one if None).
        poll_interval: Seconds between polls, clamped to
            ``[MIN_POLL_INTERVAL, MAX_POLL_INTERVAL]``.
        max_polls: Stop after this many poll attempts (None = forever).
        max_consecutive_errors: Stop after this many consecutive errors.
        fetchers: Override for the server calls (for testing).

    Returns:
        Final GameFeedState.
    """
    interval = max(MIN_POLL_INTERVAL, min(MAX_POLL_INTERVAL, poll_interval))
    provider = provider or SnapshotProvider()
    fetchers = fetchers or default_fetchers()
    state = GameFeedState(team=team, poll_interval=interval)

    logger.info("Following %s (poll interval %ss)", team, interval)

    attempts = 0
    try:
        while max_polls is None or attempts < max_polls:
            attempts += 1
            result = poll_game(state, provider, fetchers)

            if result.error:
                if state.consecutive_errors >= max_consecutive_errors:
                    logger.error("Stopping: %d consecutive errors reached",
                                 max_consecutive_errors)
                    break
                time.sleep(BACKOFF_POLL_INTERVAL)
                continue

            if result.new_events and result.snapshot is not None:
                logger.info("%s", describe_snapshot(result.snapshot))

            time.sleep(interval)
    except KeyboardInterrupt:
        logger.info("Interrupted")

    logger.info("Polls: %d, refreshes: %d, errors: %d",
                state.total_polls, state.total_refreshes, len(state.error_log))
    return state


# ---------------------------------------------------------------------------
# CLI entry point
# ---------------------------------------------------------------------------

if __name__ == "__main__":
    import argparse

    from config import get_base_url, get_poll_interval, require_token

    parser = argparse.ArgumentParser(
        description="Follow a game on the game server and log its progress."
    )
    parser.add_argument(
        "--team", type=str, default=None,
        help="Team whose game to follow",
    )
    parser.add_argument(
        "--list", action="store_true",
        help="List the selectable games and exit",
    )
    parser.add_argument(
        "--interval", type=float, default=get_poll_interval(),
        help="Poll interval in seconds",
    )
    parser.add_argument(
        "--base-url", type=str, default=get_base_url(),
        help="Game server base URL",
    )
    parser.add_argument(
        "--max-polls", type=int, default=None,
        help="Stop after this many polls",
    )
    parser.add_argument(
        "--verbose", action="store_true",
        help="Log every refresh at DEBUG level",
    )

    args = parser.parse_args()

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s [%(name)s] %(levelname)s: %(message)s",
    )

    token = require_token()

    if args.list:
        for line in list_games(token=token, base_url=args.base_url):
            print(line)
    elif args.team:
        run_feed(
            team=args.team,
            poll_interval=args.interval,
            max_polls=args.max_polls,
            fetchers=default_fetchers(token=token, base_url=args.base_url),
        )
    else:
        parser.error("either --team or --list is required")
