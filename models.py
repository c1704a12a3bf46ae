# /// script
# requires-python = ">=3.12"
# dependencies = ["pydantic>=2.0"]
# ///
"""Data models for the baseball scoreboard engine."""

from __future__ import annotations

from enum import Enum
from typing import Iterable, NamedTuple, Optional

from pydantic import BaseModel, ConfigDict, Field, model_validator


# ---------------------------------------------------------------------------
# Enums
# ---------------------------------------------------------------------------

class Half(str, Enum):
    TOP = "TOP"
    BOTTOM = "BOTTOM"


class Side(str, Enum):
    HOME = "HOME"
    AWAY = "AWAY"


class PlayKind(str, Enum):
    """Every atomic outcome a play event can carry."""
    BALL = "BALL"
    STRIKE = "STRIKE"
    FOUL_STRIKE = "FOUL_STRIKE"
    OUT = "OUT"
    SINGLE = "SINGLE"
    DOUBLE = "DOUBLE"
    TRIPLE = "TRIPLE"
    HOME_RUN = "HOME_RUN"
    WALK = "WALK"


# Kinds that close a plate appearance
PLATE_APPEARANCE_KINDS = frozenset({
    PlayKind.OUT, PlayKind.SINGLE, PlayKind.DOUBLE,
    PlayKind.TRIPLE, PlayKind.HOME_RUN, PlayKind.WALK,
})

HIT_KINDS = frozenset({
    PlayKind.SINGLE, PlayKind.DOUBLE, PlayKind.TRIPLE, PlayKind.HOME_RUN,
})


# ---------------------------------------------------------------------------
# Count / base state
# ---------------------------------------------------------------------------

class CountBaseState(BaseModel):
    """One moment of a half-inning: the count, the outs and the runners.

    Boundary values (3 strikes, 4 balls, 3 outs) are accepted so that a
    payload carrying them can be rejected by the state engine, but the
    engine itself never produces them.
    """
    model_config = ConfigDict(frozen=True)

    round: int = Field(default=1, ge=1, description="Half-inning number")
    strikes: int = Field(default=0, ge=0, le=3)
    balls: int = Field(default=0, ge=0, le=4)
    outs: int = Field(default=0, ge=0, le=3)
    first_base: bool = False
    second_base: bool = False
    third_base: bool = False

    @classmethod
    def initial(cls, round: int = 1) -> CountBaseState:
        """Empty bases and a fresh count at the start of *round*."""
        return cls(round=round)

    @property
    def inning(self) -> int:
        return (self.round + 1) // 2

    @property
    def half(self) -> Half:
        return Half.TOP if self.round % 2 == 1 else Half.BOTTOM

    @property
    def bases(self) -> tuple[bool, bool, bool]:
        return (self.first_base, self.second_base, self.third_base)

    @property
    def runners(self) -> int:
        return sum(self.bases)

    @property
    def is_settled(self) -> bool:
        return self.strikes < 3 and self.balls < 4 and self.outs < 3

    def bases_string(self) -> str:
        """Return base state string like '110' for runners on 1st and 2nd."""
        return "".join("1" if occupied else "0" for occupied in self.bases)


# ---------------------------------------------------------------------------
# Play events and the replay log
# ---------------------------------------------------------------------------

class PlayEvent(BaseModel):
    model_config = ConfigDict(frozen=True)

    kind: PlayKind
    player_id: int


class Score(BaseModel):
    """Running score of the teams that started a replay on offense/defense."""
    model_config = ConfigDict(frozen=True)

    offense: int = Field(default=0, ge=0)
    defense: int = Field(default=0, ge=0)

    def credit(self, runs: int, initial_offense_batting: bool) -> Score:
        if runs == 0:
            return self
        if initial_offense_batting:
            return Score(offense=self.offense + runs, defense=self.defense)
        return Score(offense=self.offense, defense=self.defense + runs)


class RoundContext(BaseModel):
    """Where a replayed story starts and which teams are playing it."""
    model_config = ConfigDict(frozen=True)

    round: int = Field(default=1, ge=1)
    offense_team: str = Field(min_length=1)
    defense_team: str = Field(min_length=1)


class HistoryEntry(BaseModel):
    """One row of the replay log."""
    model_config = ConfigDict(frozen=True)

    index: int = Field(ge=0)
    event: PlayEvent
    resolution: PlayKind
    resulting_state: CountBaseState
    runs_scored: int = Field(default=0, ge=0)
    inning_ended: bool = False
    batting_team: str
    accumulated_score: Score


# ---------------------------------------------------------------------------
# Scoreboards
# ---------------------------------------------------------------------------

class PlayerScore(NamedTuple):
    tpa: int
    hits: int
    out: int


class PlayerScoreBoard(BaseModel):
    """A player's plate appearances, hits and outs."""
    model_config = ConfigDict(frozen=True)

    id: int
    name: str = ""
    tpa: int = Field(default=0, ge=0, description="Total plate appearances")
    hits: int = Field(default=0, ge=0)
    out: int = Field(default=0, ge=0)

    @model_validator(mode="after")
    def _check_totals(self) -> PlayerScoreBoard:
        if self.hits + self.out > self.tpa:
            raise ValueError(
                f"hits ({self.hits}) + out ({self.out}) exceeds tpa ({self.tpa})"
            )
        return self

    @property
    def totals(self) -> PlayerScore:
        return PlayerScore(self.tpa, self.hits, self.out)


def total_player_score_count(boards: Iterable[PlayerScoreBoard]) -> PlayerScore:
    """Element-wise sum of ``tpa``, ``hits`` and ``out`` across *boards*."""
    tpa = hits = out = 0
    for board in boards:
        tpa += board.tpa
        hits += board.hits
        out += board.out
    return PlayerScore(tpa=tpa, hits=hits, out=out)


class TeamScores(BaseModel):
    """Runs per inning for one team."""
    model_config = ConfigDict(frozen=True)

    team_name: str = Field(min_length=1)
    scores: tuple[int, ...] = ()

    @model_validator(mode="after")
    def _check_scores(self) -> TeamScores:
        negative = [s for s in self.scores if s < 0]
        if negative:
            raise ValueError(f"inning scores must be non-negative, got {negative}")
        return self

    @property
    def total(self) -> int:
        return sum(self.scores)


class ScoreBoard(BaseModel):
    model_config = ConfigDict(frozen=True)

    home_team: TeamScores
    away_team: TeamScores
    home_players: tuple[PlayerScoreBoard, ...] = ()
    away_players: tuple[PlayerScoreBoard, ...] = ()

    def players(self, side: Side) -> tuple[PlayerScoreBoard, ...]:
        return self.home_players if side == Side.HOME else self.away_players

    def team(self, side: Side) -> TeamScores:
        return self.home_team if side == Side.HOME else self.away_team


# ---------------------------------------------------------------------------
# Game payload models
# ---------------------------------------------------------------------------

class PlayerRef(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: int
    name: str = ""


class TeamInfo(BaseModel):
    """A team as it appears in the current game payload."""
    model_config = ConfigDict(frozen=True)

    team_name: str = Field(min_length=1)
    score: int = Field(default=0, ge=0)
    player: Optional[PlayerRef] = None  # hitter for offense, pitcher for defense


class GameInfo(BaseModel):
    model_config = ConfigDict(frozen=True)

    play_team: str = Field(min_length=1, description="Team chosen by the user")
    round_info: CountBaseState
    offense_team: TeamInfo
    defense_team: TeamInfo
    story: tuple[PlayEvent, ...] = ()

    @property
    def round_context(self) -> RoundContext:
        return RoundContext(
            round=self.round_info.round,
            offense_team=self.offense_team.team_name,
            defense_team=self.defense_team.team_name,
        )


class PairTeams(BaseModel):
    """One entry of the game list."""
    model_config = ConfigDict(frozen=True)

    home_team: str = Field(min_length=1)
    away_team: str = Field(min_length=1)


# ---------------------------------------------------------------------------
# Snapshot
# ---------------------------------------------------------------------------

class RoundDisplay(BaseModel):
    """Values behind a "round N, top, batting" line."""
    model_config = ConfigDict(frozen=True)

    round: int
    inning: int
    half: Half
    batting_team: str
    fielding_team: str
    play_team_batting: bool


class GameSnapshot(BaseModel):
    """Everything the view layer reads, rebuilt wholesale on each refresh."""
    model_config = ConfigDict(frozen=True)

    generation: int = Field(default=0, ge=0)
    game: GameInfo
    history: tuple[HistoryEntry, ...] = ()
    scoreboard: Optional[ScoreBoard] = None

    @property
    def state(self) -> CountBaseState:
        return self.game.round_info

    def team_info(self) -> tuple[str, str]:
        """(offense team name, defense team name)."""
        return self.game.offense_team.team_name, self.game.defense_team.team_name

    def score_info(self) -> tuple[int, int]:
        """(offense score, defense score)."""
        return self.game.offense_team.score, self.game.defense_team.score

    def round_display(self) -> RoundDisplay:
        offense, defense = self.team_info()
        return RoundDisplay(
            round=self.state.round,
            inning=self.state.inning,
            half=self.state.half,
            batting_team=offense,
            fielding_team=defense,
            play_team_batting=self.game.play_team == offense,
        )

    def total_player_score_count(self, side: Side) -> PlayerScore:
        if self.scoreboard is None:
            return PlayerScore(0, 0, 0)
        return total_player_score_count(self.scoreboard.players(side))
