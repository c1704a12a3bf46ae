# /// script
# requires-python = ">=3.12"
# dependencies = ["pydantic>=2.0"]
# ///
"""Game server payload ingestion.

Parses the raw JSON payloads delivered by the game server into validated
models:

* **game payload** -- the current round, both teams, the team chosen by
  the user and the round's story (ordered play events);
* **scoreboard payload** -- runs per inning for the home and away teams;
* **player score payload** -- one entry per player with ``tpa``, ``hits``
  and ``out``;
* **game list payload** -- the home/away pairs a user can pick from.

The server speaks camelCase (``roundInfo``, ``offenceTeam``); the models are
snake_case.  Missing fields, unknown story codes and negative counts are
rejected with :class:`MalformedInputError` rather than replaced with
defaults, so a bad payload can never masquerade as a real score.  An empty
or missing story, or an empty roster, is valid.
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any

from pydantic import BaseModel, ValidationError

from models import (
    CountBaseState,
    GameInfo,
    PairTeams,
    PlayerScoreBoard,
    PlayEvent,
    PlayKind,
    TeamScores,
)


# ---------------------------------------------------------------------------
# Exceptions
# ---------------------------------------------------------------------------

class MalformedInputError(Exception):
    """Raised when a payload is missing fields or carries impossible values."""

    def __init__(self, message: str, field: str | None = None,
                 details: list[str] | None = None):
        self.field = field
        self.details = details or []
        super().__init__(message)


class MalformedInputValidationError(MalformedInputError):
    """Raised when a parsed payload fails Pydantic validation."""

    def __init__(self, message: str, validation_errors: list[dict]):
        self.validation_errors = validation_errors
        super().__init__(message, details=[
            f"{e.get('loc', '?')}: {e.get('msg', '?')}" for e in validation_errors
        ])


# ---------------------------------------------------------------------------
# Story codes
# ---------------------------------------------------------------------------

# Short codes used by the server's story strings
STORY_CODES: dict[str, PlayKind] = {
    "B": PlayKind.BALL,
    "S": PlayKind.STRIKE,
    "F": PlayKind.FOUL_STRIKE,
    "O": PlayKind.OUT,
    "1B": PlayKind.SINGLE,
    "H": PlayKind.SINGLE,
    "2B": PlayKind.DOUBLE,
    "3B": PlayKind.TRIPLE,
    "HR": PlayKind.HOME_RUN,
    "BB": PlayKind.WALK,
    "W": PlayKind.WALK,
}


def parse_play_kind(code: Any, field: str = "story") -> PlayKind:
    """Map a story code (``"B"``, ``"HR"``) or kind name (``"HOME_RUN"``)."""
    if not isinstance(code, str) or not code.strip():
        raise MalformedInputError(
            f"Story entry must be a non-empty string code, got {code!r}",
            field=field,
        )
    key = code.strip().upper()
    if key in STORY_CODES:
        return STORY_CODES[key]
    try:
        return PlayKind(key)
    except ValueError:
        raise MalformedInputError(
            f"Unknown story code '{code}'",
            field=field,
            details=sorted(STORY_CODES) + [k.value for k in PlayKind],
        ) from None


def parse_story(
    story: list[Any] | None,
    default_player_id: int | None = None,
) -> tuple[PlayEvent, ...]:
    """Convert raw story entries into play events, keeping their order.

    Entries are either a code string, credited to *default_player_id*
    (the current hitter), or an object with ``kind`` and ``playerId``.
    """
    if not story:
        return ()
    if not isinstance(story, list):
        raise MalformedInputError(
            f"story must be a list, got {type(story).__name__}",
            field="story",
        )

    events = []
    for i, entry in enumerate(story):
        path = f"story[{i}]"
        if isinstance(entry, dict):
            kind = parse_play_kind(entry.get("kind"), field=f"{path}.kind")
            player_id = entry.get("playerId", entry.get("player_id"))
            if player_id is None:
                player_id = default_player_id
        else:
            kind = parse_play_kind(entry, field=path)
            player_id = default_player_id
        if player_id is None:
            raise MalformedInputError(
                f"Cannot attribute {path} to a player: no playerId and no "
                f"current hitter in the payload",
                field=path,
            )
        events.append(_build(PlayEvent, {"kind": kind, "player_id": player_id},
                             "PlayEvent"))
    return tuple(events)


# ---------------------------------------------------------------------------
# Field helpers
# ---------------------------------------------------------------------------

def _load(payload: Any, name: str) -> Any:
    """Parse a JSON string if needed."""
    if isinstance(payload, str):
        try:
            return json.loads(payload)
        except json.JSONDecodeError as exc:
            raise MalformedInputError(
                f"Invalid JSON {name} payload: {exc}",
                field=name,
            ) from exc
    return payload


def _require_dict(payload: Any, field: str) -> dict[str, Any]:
    if not isinstance(payload, dict):
        raise MalformedInputError(
            f"{field} must be an object, got {type(payload).__name__}",
            field=field,
        )
    return payload


def _require(raw: dict[str, Any], key: str, path: str) -> Any:
    value = raw.get(key)
    if value is None:
        raise MalformedInputError(f"Missing required field: {path}", field=path)
    return value


def _require_count(raw: dict[str, Any], key: str, path: str,
                   minimum: int = 0) -> int:
    value = _require(raw, key, path)
    if isinstance(value, bool) or not isinstance(value, int):
        raise MalformedInputError(
            f"{path} must be an integer, got {value!r}",
            field=path,
        )
    if value < minimum:
        raise MalformedInputError(
            f"{path} must be >= {minimum}, got {value}",
            field=path,
        )
    return value


def _optional_flag(raw: dict[str, Any], key: str, path: str) -> bool:
    """A JSON boolean; absent or null means False."""
    value = raw.get(key)
    if value is None:
        return False
    if not isinstance(value, bool):
        raise MalformedInputError(
            f"{path} must be a boolean, got {value!r}",
            field=path,
        )
    return value


def _require_name(raw: dict[str, Any], key: str, path: str) -> str:
    value = _require(raw, key, path)
    if not isinstance(value, str) or not value.strip():
        raise MalformedInputError(
            f"{path} must be a non-empty string, got {value!r}",
            field=path,
        )
    return value


def _build(model: type[BaseModel], data: dict[str, Any], name: str) -> Any:
    """Validate *data* into *model*, converting Pydantic errors."""
    try:
        return model(**data)
    except ValidationError as exc:
        errors = [{
            "model": name,
            "loc": str(e.get("loc", "")),
            "msg": e.get("msg", ""),
            "type": e.get("type", ""),
        } for e in exc.errors()]
        raise MalformedInputValidationError(
            f"{name} validation failed with {len(errors)} error(s)",
            validation_errors=errors,
        ) from exc


# ---------------------------------------------------------------------------
# Game payload
# ---------------------------------------------------------------------------

def _extract_round_info(raw: dict[str, Any]) -> dict[str, Any]:
    path = "roundInfo"
    return {
        "round": _require_count(raw, "round", f"{path}.round", minimum=1),
        "strikes": _require_count(raw, "strike", f"{path}.strike"),
        "balls": _require_count(raw, "ball", f"{path}.ball"),
        "outs": _require_count(raw, "out", f"{path}.out"),
        "first_base": _optional_flag(raw, "firstBase", f"{path}.firstBase"),
        "second_base": _optional_flag(raw, "secondBase", f"{path}.secondBase"),
        "third_base": _optional_flag(raw, "thirdBase", f"{path}.thirdBase"),
    }


def _extract_player(raw: dict[str, Any] | None, path: str) -> dict[str, Any] | None:
    if raw is None:
        return None
    raw = _require_dict(raw, path)
    return {
        "id": _require_count(raw, "id", f"{path}.id"),
        "name": raw.get("name") or "",
    }


def _extract_team(raw: dict[str, Any], path: str, player_key: str) -> dict[str, Any]:
    raw = _require_dict(raw, path)
    return {
        "team_name": _require_name(raw, "teamName", f"{path}.teamName"),
        "score": _require_count(raw, "score", f"{path}.score"),
        "player": _extract_player(raw.get(player_key), f"{path}.{player_key}"),
    }


def ingest_game_payload(payload: dict[str, Any] | str) -> GameInfo:
    """Convert a raw game payload into a validated :class:`GameInfo`.

    Raises:
        MalformedInputError: If required fields are missing or invalid.
        MalformedInputValidationError: If the parsed data fails validation.
    """
    raw = _require_dict(_load(payload, "game"), "game")

    round_info = _extract_round_info(
        _require_dict(_require(raw, "roundInfo", "roundInfo"), "roundInfo")
    )
    offense = _extract_team(_require(raw, "offenceTeam", "offenceTeam"),
                            "offenceTeam", "hitter")
    defense = _extract_team(_require(raw, "defenseTeam", "defenseTeam"),
                            "defenseTeam", "pitcher")
    play_team = _require_name(raw, "playTeam", "playTeam")

    hitter = offense["player"]
    story = parse_story(raw.get("story"),
                        default_player_id=hitter["id"] if hitter else None)

    return _build(GameInfo, {
        "play_team": play_team,
        "round_info": _build(CountBaseState, round_info, "CountBaseState"),
        "offense_team": offense,
        "defense_team": defense,
        "story": story,
    }, "GameInfo")


# ---------------------------------------------------------------------------
# Scoreboard payloads
# ---------------------------------------------------------------------------

def _extract_team_scores(raw: Any, path: str) -> TeamScores:
    raw = _require_dict(raw, path)
    name = _require_name(raw, "teamName", f"{path}.teamName")
    scores = raw.get("scores") or []
    if not isinstance(scores, list):
        raise MalformedInputError(f"{path}.scores must be a list", field=f"{path}.scores")
    for i, runs in enumerate(scores):
        if isinstance(runs, bool) or not isinstance(runs, int) or runs < 0:
            raise MalformedInputError(
                f"{path}.scores[{i}] must be a non-negative integer, got {runs!r}",
                field=f"{path}.scores[{i}]",
            )
    return _build(TeamScores, {"team_name": name, "scores": scores}, "TeamScores")


def ingest_scoreboard(payload: dict[str, Any] | str) -> tuple[TeamScores, TeamScores]:
    """Return ``(home, away)`` inning lines from a scoreboard payload."""
    raw = _require_dict(_load(payload, "scoreboard"), "scoreboard")
    home = _extract_team_scores(_require(raw, "homeTeam", "homeTeam"), "homeTeam")
    away = _extract_team_scores(_require(raw, "awayTeam", "awayTeam"), "awayTeam")
    return home, away


def ingest_player_scores(
    payload: list[dict[str, Any]] | str | None,
) -> tuple[PlayerScoreBoard, ...]:
    """Validate a team's player score list.  ``None`` or ``[]`` is empty."""
    raw = _load(payload, "players")
    if not raw:
        return ()
    if not isinstance(raw, list):
        raise MalformedInputError(
            f"players must be a list, got {type(raw).__name__}",
            field="players",
        )

    boards = []
    seen: set[int] = set()
    for i, entry in enumerate(raw):
        path = f"players[{i}]"
        entry = _require_dict(entry, path)
        player_id = _require_count(entry, "id", f"{path}.id")
        if player_id in seen:
            raise MalformedInputError(f"Duplicate player id {player_id}", field=f"{path}.id")
        seen.add(player_id)
        boards.append(_build(PlayerScoreBoard, {
            "id": player_id,
            "name": _require_name(entry, "name", f"{path}.name"),
            "tpa": _require_count(entry, "tpa", f"{path}.tpa"),
            "hits": _require_count(entry, "hits", f"{path}.hits"),
            "out": _require_count(entry, "out", f"{path}.out"),
        }, "PlayerScoreBoard"))
    return tuple(boards)


def ingest_game_list(payload: list[dict[str, Any]] | str | None) -> list[PairTeams]:
    """Parse the list of selectable games."""
    raw = _load(payload, "games")
    if not raw:
        return []
    if not isinstance(raw, list):
        raise MalformedInputError(
            f"games must be a list, got {type(raw).__name__}",
            field="games",
        )

    pairs = []
    for i, entry in enumerate(raw):
        path = f"games[{i}]"
        entry = _require_dict(entry, path)
        names = {}
        for key in ("homeTeam", "awayTeam"):
            team = _require(entry, key, f"{path}.{key}")
            if isinstance(team, dict):
                names[key] = _require_name(team, "teamName", f"{path}.{key}.teamName")
            else:
                names[key] = _require_name(entry, key, f"{path}.{key}")
        pairs.append(_build(PairTeams, {
            "home_team": names["homeTeam"],
            "away_team": names["awayTeam"],
        }, "PairTeams"))
    return pairs


# ---------------------------------------------------------------------------
# Bundles and files
# ---------------------------------------------------------------------------

def ingest_bundle(bundle: dict[str, Any] | str) -> dict[str, Any]:
    """Ingest a combined payload with ``game`` and optional scoreboard parts.

    Accepted keys: ``game`` (required), ``scoreboard``, ``homePlayers``,
    ``awayPlayers``.

    Returns:
        Dict with ``game`` (:class:`GameInfo`), ``scoreboard`` (a
        ``(home, away)`` tuple of :class:`TeamScores` or ``None``),
        ``home_players`` and ``away_players`` (tuples of boards).
    """
    raw = _require_dict(_load(bundle, "bundle"), "bundle")
    scoreboard = raw.get("scoreboard")
    return {
        "game": ingest_game_payload(_require(raw, "game", "game")),
        "scoreboard": ingest_scoreboard(scoreboard) if scoreboard is not None else None,
        "home_players": ingest_player_scores(raw.get("homePlayers")),
        "away_players": ingest_player_scores(raw.get("awayPlayers")),
    }


def ingest_from_file(path: str | Path) -> dict[str, Any]:
    """Load a bundle JSON file and ingest it.

    Raises:
        FileNotFoundError: If the file does not exist.
        MalformedInputError: On parse/validation errors.
    """
    p = Path(path)
    if not p.exists():
        raise FileNotFoundError(f"Game payload file not found: {path}")

    with open(p) as f:
        data = json.load(f)

    return ingest_bundle(data)
