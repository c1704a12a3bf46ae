# /// script
# requires-python = ">=3.12"
# dependencies = ["pydantic>=2.0"]
# ///
"""Score and team snapshots for the view layer.

A :class:`GameSnapshot` is built wholesale from the latest game and
scoreboard payloads and then published by a :class:`SnapshotProvider`.
Consumers either read :attr:`SnapshotProvider.snapshot` on demand or
subscribe to be called with each new snapshot.

Publication follows "last request wins": every refresh takes a request id
when it starts, and only the most recent id may publish.  A slower, older
rebuild that finishes late is dropped, and a rebuild that fails leaves the
previously published snapshot in place.  Deliveries to subscribers are
serialized, and a snapshot that is superseded while it is being delivered
is not handed to the remaining subscribers.
"""

from __future__ import annotations

import logging
import threading
from typing import Any, Callable

from game_state_ingestion import (
    ingest_game_payload,
    ingest_player_scores,
    ingest_scoreboard,
)
from history import build_history
from models import GameSnapshot, ScoreBoard

logger = logging.getLogger(__name__)

Subscriber = Callable[[GameSnapshot], None]


def build_snapshot(
    game_payload: dict[str, Any] | str,
    scoreboard_payload: dict[str, Any] | str | None = None,
    home_players_payload: list[dict[str, Any]] | str | None = None,
    away_players_payload: list[dict[str, Any]] | str | None = None,
    generation: int = 0,
) -> GameSnapshot:
    """Validate raw payloads and build a complete snapshot.

    The replay log is rebuilt from the game's story.  Player boards are only
    attached when a scoreboard payload is given.

    Raises:
        MalformedInputError: If any payload is malformed.
        InvalidStateError: If the story cannot be replayed.
    """
    game = ingest_game_payload(game_payload)
    history = build_history(game.round_context, game.story)

    scoreboard = None
    if scoreboard_payload is not None:
        home, away = ingest_scoreboard(scoreboard_payload)
        scoreboard = ScoreBoard(
            home_team=home,
            away_team=away,
            home_players=ingest_player_scores(home_players_payload),
            away_players=ingest_player_scores(away_players_payload),
        )

    return GameSnapshot(
        generation=generation,
        game=game,
        history=tuple(history),
        scoreboard=scoreboard,
    )


class SnapshotProvider:
    """Holds the latest published snapshot for one game session."""

    def __init__(self) -> None:
        self._snapshot: GameSnapshot | None = None
        self._latest_request = 0
        self._lock = threading.Lock()
        self._subscribers: list[Subscriber] = []
        # Serializes deliveries so subscribers never see an older snapshot last
        self._notify_lock = threading.RLock()
        self._delivered_request = 0

    @property
    def snapshot(self) -> GameSnapshot | None:
        return self._snapshot

    # -------------------------------------------------------------------
    # Subscription
    # -------------------------------------------------------------------

    def subscribe(self, callback: Subscriber) -> Callable[[], None]:
        """Register *callback*; returns a function that unregisters it."""
        with self._lock:
            self._subscribers.append(callback)

        def unsubscribe() -> None:
            with self._lock:
                if callback in self._subscribers:
                    self._subscribers.remove(callback)

        return unsubscribe

    def _notify(self, request_id: int, snapshot: GameSnapshot) -> None:
        """Deliver *snapshot* unless a newer one was published meanwhile."""
        with self._notify_lock:
            if request_id < self._delivered_request:
                logger.debug("Skipping delivery of request %d, request %d already delivered",
                             request_id, self._delivered_request)
                return
            self._delivered_request = request_id
            with self._lock:
                subscribers = list(self._subscribers)

            for callback in subscribers:
                if self._snapshot is not snapshot:
                    logger.debug("Request %d superseded during delivery", request_id)
                    return
                try:
                    callback(snapshot)
                except Exception:
                    logger.exception("Snapshot subscriber %r failed", callback)

    # -------------------------------------------------------------------
    # Refresh
    # -------------------------------------------------------------------

    def begin_refresh(self) -> int:
        """Claim a request id; any earlier request can no longer publish."""
        with self._lock:
            self._latest_request += 1
            return self._latest_request

    def publish(self, request_id: int, snapshot: GameSnapshot) -> bool:
        """Publish *snapshot* if *request_id* is still the latest request.

        Returns True if published, False if a newer request superseded it.
        """
        with self._lock:
            if request_id != self._latest_request:
                logger.info("Dropping superseded snapshot (request %d, latest %d)",
                            request_id, self._latest_request)
                return False
            self._snapshot = snapshot
        self._notify(request_id, snapshot)
        return True

    def refresh(
        self,
        game_payload: dict[str, Any] | str,
        scoreboard_payload: dict[str, Any] | str | None = None,
        home_players_payload: list[dict[str, Any]] | str | None = None,
        away_players_payload: list[dict[str, Any]] | str | None = None,
    ) -> GameSnapshot | None:
        """Rebuild from fresh payloads and publish.

        Returns the published snapshot, or None if a newer refresh started
        while this one was building.  Errors propagate and the previous
        snapshot stays published.
        """
        request_id = self.begin_refresh()
        snapshot = build_snapshot(
            game_payload,
            scoreboard_payload,
            home_players_payload,
            away_players_payload,
            generation=request_id,
        )
        if not self.publish(request_id, snapshot):
            return None
        logger.debug("Published snapshot %d: round %d, %d history entries",
                     request_id, snapshot.state.round, len(snapshot.history))
        return snapshot
