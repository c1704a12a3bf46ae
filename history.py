# /// script
# requires-python = ">=3.12"
# dependencies = ["pydantic>=2.0"]
# ///
"""Replay log construction.

Folds the state engine over a round's story and records, for every event,
the state it produced and the running score.  The score is kept from the
point of view of the teams that were on offense and defense when the story
started; when a half-inning ends mid-story the batting side flips and later
runs are credited to the other team.
"""

from __future__ import annotations

from typing import Iterable

from models import CountBaseState, HistoryEntry, PlayEvent, RoundContext, Score
from state_engine import apply


def build_history(
    context: RoundContext,
    events: Iterable[PlayEvent] | None,
) -> list[HistoryEntry]:
    """Replay *events* from an empty state at ``context.round``.

    Returns one :class:`HistoryEntry` per event, in input order.  An empty
    or missing story gives an empty log.

    Raises:
        InvalidStateError: Propagated from the state engine; no partial
            log is returned.
    """
    if not events:
        return []

    state = CountBaseState.initial(round=context.round)
    score = Score()
    initial_offense_batting = True
    entries: list[HistoryEntry] = []

    for index, event in enumerate(events):
        batting_team = (context.offense_team if initial_offense_batting
                        else context.defense_team)
        transition = apply(state, event)
        score = score.credit(transition.runs_scored, initial_offense_batting)
        entries.append(HistoryEntry(
            index=index,
            event=event,
            resolution=transition.resolution,
            resulting_state=transition.state,
            runs_scored=transition.runs_scored,
            inning_ended=transition.inning_ended,
            batting_team=batting_team,
            accumulated_score=score,
        ))
        state = transition.state
        if transition.inning_ended:
            initial_offense_batting = not initial_offense_batting

    return entries


def final_score(entries: list[HistoryEntry]) -> Score:
    """Score after the last entry, or zero for an empty log."""
    if not entries:
        return Score()
    return entries[-1].accumulated_score
