# /// script
# requires-python = ">=3.12"
# dependencies = ["pydantic>=2.0"]
# ///
"""Per-player and per-team plate appearance totals.

Only the event that closes a plate appearance counts toward ``tpa``:
``OUT``, a hit, or a ``WALK``.  Pitch-level events (balls, strikes, fouls)
are ignored by :func:`aggregate`.  :func:`aggregate_history` works from a
replay log instead, where each entry's resolution already tells whether a
fourth ball became a walk or a third strike became an out.

Team totals use :func:`models.total_player_score_count`, re-exported here
alongside the per-player aggregators.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, Mapping

from models import (
    HIT_KINDS,
    PLATE_APPEARANCE_KINDS,
    HistoryEntry,
    PlayerScoreBoard,
    PlayEvent,
    PlayKind,
    total_player_score_count,
)


@dataclass
class _Tally:
    tpa: int = 0
    hits: int = 0
    out: int = 0

    def record(self, kind: PlayKind) -> None:
        if kind not in PLATE_APPEARANCE_KINDS:
            return
        self.tpa += 1
        if kind == PlayKind.OUT:
            self.out += 1
        elif kind in HIT_KINDS:
            self.hits += 1


def _boards(tallies: dict[int, _Tally],
            names: Mapping[int, str] | None) -> dict[int, PlayerScoreBoard]:
    names = names or {}
    return {
        player_id: PlayerScoreBoard(
            id=player_id,
            name=names.get(player_id, ""),
            tpa=t.tpa,
            hits=t.hits,
            out=t.out,
        )
        for player_id, t in tallies.items()
    }


def aggregate(
    player_events: Iterable[tuple[int, PlayEvent]],
    names: Mapping[int, str] | None = None,
) -> dict[int, PlayerScoreBoard]:
    """Fold ``(player_id, event)`` pairs into one board per player.

    Players appear in first-seen order, including those whose only events
    were pitches (their totals stay at zero).
    """
    tallies: dict[int, _Tally] = {}
    for player_id, event in player_events:
        tallies.setdefault(player_id, _Tally()).record(event.kind)
    return _boards(tallies, names)


def aggregate_history(
    entries: Iterable[HistoryEntry],
    names: Mapping[int, str] | None = None,
) -> dict[int, PlayerScoreBoard]:
    """Like :func:`aggregate`, but counts each entry by its resolution."""
    tallies: dict[int, _Tally] = {}
    for entry in entries:
        tallies.setdefault(entry.event.player_id, _Tally()).record(entry.resolution)
    return _boards(tallies, names)
