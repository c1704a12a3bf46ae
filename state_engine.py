# /// script
# requires-python = ">=3.12"
# dependencies = ["pydantic>=2.0"]
# ///
"""Count, base and out transitions.

Applies one play event to a :class:`CountBaseState` and returns the next
state together with the runs that crossed the plate and whether the
half-inning ended.  Every function here is pure: states are immutable and
each call returns a fresh snapshot.

Rules:

* four balls force a walk, three strikes record an out;
* a foul with two strikes leaves the count alone;
* a walk advances runners only when forced, a hit advances every runner
  by the number of bases the batter took;
* the third out clears the bases and the count and moves to the next
  round (half-inning).
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Callable

from models import CountBaseState, PlayEvent, PlayKind

logger = logging.getLogger(__name__)

HOME_PLATE = 4
OUTS_PER_HALF_INNING = 3
STRIKES_FOR_OUT = 3
BALLS_FOR_WALK = 4


# ---------------------------------------------------------------------------
# Exceptions
# ---------------------------------------------------------------------------

class InvalidStateError(Exception):
    """Raised when an event is applied to a state that has not settled.

    A state with three outs (or a full count that was never resolved) must
    be rotated by the caller before another event can be applied.
    """

    def __init__(self, message: str, state: CountBaseState | None = None,
                 event: PlayEvent | None = None):
        self.state = state
        self.event = event
        super().__init__(message)


# ---------------------------------------------------------------------------
# Transition result
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class Transition:
    """Outcome of applying one event.

    ``resolution`` is what the event amounted to: a fourth ``BALL`` resolves
    as ``WALK``, a third ``STRIKE`` as ``OUT``, everything else as itself.
    """
    state: CountBaseState
    runs_scored: int = 0
    inning_ended: bool = False
    resolution: PlayKind = PlayKind.BALL


# ---------------------------------------------------------------------------
# Base running helpers
# ---------------------------------------------------------------------------

def _advance_runners(state: CountBaseState, advance: int
                     ) -> tuple[tuple[bool, bool, bool], int]:
    """Move every runner and the batter *advance* bases.

    The batter starts at home (base 0), so the batter lands on base
    ``advance``; runners already on base move the same distance.  Runners
    reaching home plate score.
    """
    occupied = [False, False, False]
    runs = 0
    for base, on_base in enumerate(state.bases, start=1):
        if not on_base:
            continue
        target = base + advance
        if target >= HOME_PLATE:
            runs += 1
        else:
            occupied[target - 1] = True
    if advance >= HOME_PLATE:
        runs += 1
    else:
        occupied[advance - 1] = True
    return (occupied[0], occupied[1], occupied[2]), runs


def _force_runners(state: CountBaseState) -> tuple[tuple[bool, bool, bool], int]:
    """Put the batter on first, pushing forward only runners who are forced."""
    first, second, third = state.bases
    runs = 0
    if first:
        if second:
            if third:
                runs = 1
            third = True
        second = True
    first = True
    return (first, second, third), runs


def _next_batter(state: CountBaseState, bases: tuple[bool, bool, bool],
                 runs: int, resolution: PlayKind) -> Transition:
    """Close the plate appearance with the batter aboard or scored."""
    first, second, third = bases
    next_state = state.model_copy(update={
        "strikes": 0,
        "balls": 0,
        "first_base": first,
        "second_base": second,
        "third_base": third,
    })
    return Transition(state=next_state, runs_scored=runs, resolution=resolution)


# ---------------------------------------------------------------------------
# Resolvers, one per PlayKind
# ---------------------------------------------------------------------------

def _resolve_out(state: CountBaseState) -> Transition:
    outs = state.outs + 1
    if outs >= OUTS_PER_HALF_INNING:
        logger.debug("Round %d over, rotating to round %d",
                     state.round, state.round + 1)
        return Transition(
            state=CountBaseState.initial(round=state.round + 1),
            inning_ended=True,
            resolution=PlayKind.OUT,
        )
    next_state = state.model_copy(update={"outs": outs, "strikes": 0, "balls": 0})
    return Transition(state=next_state, resolution=PlayKind.OUT)


def _resolve_walk(state: CountBaseState) -> Transition:
    bases, runs = _force_runners(state)
    return _next_batter(state, bases, runs, PlayKind.WALK)


def _resolve_ball(state: CountBaseState) -> Transition:
    balls = state.balls + 1
    if balls >= BALLS_FOR_WALK:
        return _resolve_walk(state)
    return Transition(state=state.model_copy(update={"balls": balls}),
                      resolution=PlayKind.BALL)


def _resolve_strike(state: CountBaseState) -> Transition:
    strikes = state.strikes + 1
    if strikes >= STRIKES_FOR_OUT:
        return _resolve_out(state)
    return Transition(state=state.model_copy(update={"strikes": strikes}),
                      resolution=PlayKind.STRIKE)


def _resolve_foul_strike(state: CountBaseState) -> Transition:
    # A foul never produces the third strike
    strikes = min(state.strikes + 1, STRIKES_FOR_OUT - 1)
    return Transition(state=state.model_copy(update={"strikes": strikes}),
                      resolution=PlayKind.FOUL_STRIKE)


def _hit(advance: int, kind: PlayKind) -> Callable[[CountBaseState], Transition]:
    def resolve(state: CountBaseState) -> Transition:
        bases, runs = _advance_runners(state, advance)
        return _next_batter(state, bases, runs, kind)
    resolve.__name__ = f"_resolve_{kind.value.lower()}"
    return resolve


_RESOLVERS: dict[PlayKind, Callable[[CountBaseState], Transition]] = {
    PlayKind.BALL: _resolve_ball,
    PlayKind.STRIKE: _resolve_strike,
    PlayKind.FOUL_STRIKE: _resolve_foul_strike,
    PlayKind.OUT: _resolve_out,
    PlayKind.SINGLE: _hit(1, PlayKind.SINGLE),
    PlayKind.DOUBLE: _hit(2, PlayKind.DOUBLE),
    PlayKind.TRIPLE: _hit(3, PlayKind.TRIPLE),
    PlayKind.HOME_RUN: _hit(HOME_PLATE, PlayKind.HOME_RUN),
    PlayKind.WALK: _resolve_walk,
}

_unhandled = set(PlayKind) - set(_RESOLVERS)
if _unhandled:
    raise RuntimeError(
        f"No transition defined for play kinds: {sorted(k.value for k in _unhandled)}"
    )


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------

def apply(state: CountBaseState, event: PlayEvent) -> Transition:
    """Apply *event* to *state* and return the resulting :class:`Transition`.

    Raises:
        InvalidStateError: If *state* already holds three outs, three
            strikes or four balls.
    """
    if state.outs >= OUTS_PER_HALF_INNING:
        raise InvalidStateError(
            f"Round {state.round} already has {state.outs} outs; "
            f"rotate the inning before applying {event.kind.value}",
            state=state,
            event=event,
        )
    if not state.is_settled:
        raise InvalidStateError(
            f"Unsettled count {state.balls}-{state.strikes} in round "
            f"{state.round}; cannot apply {event.kind.value}",
            state=state,
            event=event,
        )
    return _RESOLVERS[event.kind](state)
