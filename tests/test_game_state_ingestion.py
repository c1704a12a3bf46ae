# /// script
# requires-python = ">=3.12"
# dependencies = ["pytest>=7.0", "pydantic>=2.0"]
# ///
"""Tests for game server payload ingestion.

Validates:
  1. The bundled sample payload loads into valid models
  2. Missing fields, negative counts and unknown story codes are rejected
  3. Story codes are mapped and credited to the right player
  4. An empty or missing story is valid
  5. Scoreboard, player score and game list payloads parse
  6. JSON strings are accepted wherever a dict or list is
"""

import copy
import json
import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).resolve().parent.parent))

import pytest

from game_state_ingestion import (
    MalformedInputError,
    MalformedInputValidationError,
    ingest_bundle,
    ingest_from_file,
    ingest_game_list,
    ingest_game_payload,
    ingest_player_scores,
    ingest_scoreboard,
    parse_play_kind,
    parse_story,
)
from models import CountBaseState, PlayKind

SAMPLE_FILE = Path(__file__).resolve().parent.parent / "data" / "sample_game.json"


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------

@pytest.fixture
def sample_bundle():
    with open(SAMPLE_FILE) as f:
        return json.load(f)


@pytest.fixture
def game_payload(sample_bundle):
    return copy.deepcopy(sample_bundle["game"])


# -----------------------------------------------------------------------
# Sample file
# -----------------------------------------------------------------------


class TestSampleFile:
    def test_loads_from_file(self):
        result = ingest_from_file(SAMPLE_FILE)
        game = result["game"]
        assert game.play_team == "Captain"
        assert game.offense_team.team_name == "Captain"
        assert game.defense_team.team_name == "Marvel"
        assert game.round_info == CountBaseState(round=1, outs=1)
        assert len(game.story) == 7

    def test_sample_scoreboard_and_players(self):
        result = ingest_from_file(SAMPLE_FILE)
        home, away = result["scoreboard"]
        assert home.team_name == "Marvel"
        assert away.total == 2
        assert len(result["home_players"]) == 2
        assert [p.id for p in result["away_players"]] == [1, 2, 3, 4]

    def test_missing_file(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            ingest_from_file(tmp_path / "nope.json")

    def test_bundle_without_scoreboard(self, sample_bundle):
        result = ingest_bundle({"game": sample_bundle["game"]})
        assert result["scoreboard"] is None
        assert result["home_players"] == ()
        assert result["away_players"] == ()

    def test_bundle_requires_game(self):
        with pytest.raises(MalformedInputError) as exc_info:
            ingest_bundle({"scoreboard": None})
        assert exc_info.value.field == "game"


# -----------------------------------------------------------------------
# Game payload
# -----------------------------------------------------------------------


class TestGamePayload:
    def test_missing_team_name(self, game_payload):
        del game_payload["offenceTeam"]["teamName"]
        with pytest.raises(MalformedInputError) as exc_info:
            ingest_game_payload(game_payload)
        assert exc_info.value.field == "offenceTeam.teamName"

    def test_blank_team_name(self, game_payload):
        game_payload["defenseTeam"]["teamName"] = "  "
        with pytest.raises(MalformedInputError):
            ingest_game_payload(game_payload)

    def test_missing_round(self, game_payload):
        del game_payload["roundInfo"]["round"]
        with pytest.raises(MalformedInputError) as exc_info:
            ingest_game_payload(game_payload)
        assert exc_info.value.field == "roundInfo.round"

    def test_round_zero_rejected(self, game_payload):
        game_payload["roundInfo"]["round"] = 0
        with pytest.raises(MalformedInputError):
            ingest_game_payload(game_payload)

    def test_negative_count_rejected(self, game_payload):
        game_payload["roundInfo"]["ball"] = -1
        with pytest.raises(MalformedInputError) as exc_info:
            ingest_game_payload(game_payload)
        assert exc_info.value.field == "roundInfo.ball"

    def test_negative_score_rejected(self, game_payload):
        game_payload["offenceTeam"]["score"] = -2
        with pytest.raises(MalformedInputError):
            ingest_game_payload(game_payload)

    def test_non_integer_count_rejected(self, game_payload):
        game_payload["roundInfo"]["strike"] = "two"
        with pytest.raises(MalformedInputError):
            ingest_game_payload(game_payload)

    def test_boolean_count_rejected(self, game_payload):
        game_payload["roundInfo"]["out"] = True
        with pytest.raises(MalformedInputError):
            ingest_game_payload(game_payload)

    def test_out_of_range_count_fails_validation(self, game_payload):
        game_payload["roundInfo"]["ball"] = 9
        with pytest.raises(MalformedInputValidationError) as exc_info:
            ingest_game_payload(game_payload)
        assert exc_info.value.validation_errors
        assert exc_info.value.details

    def test_bases_default_to_empty(self, game_payload):
        for key in ("firstBase", "secondBase", "thirdBase"):
            del game_payload["roundInfo"][key]
        game = ingest_game_payload(game_payload)
        assert game.round_info.bases == (False, False, False)

    @pytest.mark.parametrize("value", ["false", "0", 1, 0, "yes"])
    def test_non_boolean_base_rejected(self, game_payload, value):
        game_payload["roundInfo"]["firstBase"] = value
        with pytest.raises(MalformedInputError) as exc_info:
            ingest_game_payload(game_payload)
        assert exc_info.value.field == "roundInfo.firstBase"

    def test_null_base_is_empty(self, game_payload):
        game_payload["roundInfo"]["thirdBase"] = None
        assert ingest_game_payload(game_payload).round_info.third_base is False

    def test_boolean_bases_kept(self, game_payload):
        game_payload["roundInfo"]["secondBase"] = True
        assert ingest_game_payload(game_payload).round_info.bases == (False, True, False)

    def test_missing_play_team(self, game_payload):
        del game_payload["playTeam"]
        with pytest.raises(MalformedInputError) as exc_info:
            ingest_game_payload(game_payload)
        assert exc_info.value.field == "playTeam"

    def test_not_an_object(self):
        with pytest.raises(MalformedInputError):
            ingest_game_payload([1, 2, 3])

    def test_json_string_accepted(self, game_payload):
        game = ingest_game_payload(json.dumps(game_payload))
        assert game.offense_team.player.id == 4

    def test_invalid_json_string(self):
        with pytest.raises(MalformedInputError) as exc_info:
            ingest_game_payload("{not json")
        assert exc_info.value.field == "game"

    def test_round_context(self, game_payload):
        ctx = ingest_game_payload(game_payload).round_context
        assert ctx.round == 1
        assert ctx.offense_team == "Captain"
        assert ctx.defense_team == "Marvel"


# -----------------------------------------------------------------------
# Story
# -----------------------------------------------------------------------


class TestStory:
    def test_codes_mapped(self):
        assert parse_play_kind("B") == PlayKind.BALL
        assert parse_play_kind("f") == PlayKind.FOUL_STRIKE
        assert parse_play_kind("1B") == PlayKind.SINGLE
        assert parse_play_kind("HR") == PlayKind.HOME_RUN
        assert parse_play_kind("BB") == PlayKind.WALK
        assert parse_play_kind("home_run") == PlayKind.HOME_RUN

    def test_unknown_code_rejected(self):
        with pytest.raises(MalformedInputError) as exc_info:
            parse_play_kind("XX", field="story[3]")
        assert exc_info.value.field == "story[3]"
        assert "HR" in exc_info.value.details

    def test_non_string_code_rejected(self):
        with pytest.raises(MalformedInputError):
            parse_play_kind(7)

    def test_string_codes_credited_to_hitter(self, game_payload):
        game_payload["story"] = ["B", "S", "HR"]
        game = ingest_game_payload(game_payload)
        assert [e.player_id for e in game.story] == [4, 4, 4]
        assert [e.kind for e in game.story] == [
            PlayKind.BALL, PlayKind.STRIKE, PlayKind.HOME_RUN,
        ]

    def test_object_entries_keep_player(self, game_payload):
        game = ingest_game_payload(game_payload)
        assert [e.player_id for e in game.story] == [1, 1, 1, 2, 2, 3, 3]

    def test_null_story_is_empty(self, game_payload):
        game_payload["story"] = None
        assert ingest_game_payload(game_payload).story == ()

    def test_missing_story_is_empty(self, game_payload):
        del game_payload["story"]
        assert ingest_game_payload(game_payload).story == ()

    def test_unknown_code_in_payload(self, game_payload):
        game_payload["story"].append({"kind": "BALK", "playerId": 3})
        with pytest.raises(MalformedInputError) as exc_info:
            ingest_game_payload(game_payload)
        assert exc_info.value.field == "story[7].kind"

    def test_unattributable_entry_rejected(self):
        with pytest.raises(MalformedInputError):
            parse_story(["B"], default_player_id=None)

    def test_story_must_be_list(self):
        with pytest.raises(MalformedInputError):
            parse_story({"kind": "B"}, default_player_id=1)


# -----------------------------------------------------------------------
# Scoreboard and player scores
# -----------------------------------------------------------------------


class TestScoreboards:
    def test_scoreboard(self, sample_bundle):
        home, away = ingest_scoreboard(sample_bundle["scoreboard"])
        assert home.team_name == "Marvel"
        assert away.scores == (2,)

    def test_scoreboard_negative_inning(self):
        payload = {
            "homeTeam": {"teamName": "Marvel", "scores": [0, -1]},
            "awayTeam": {"teamName": "Captain", "scores": []},
        }
        with pytest.raises(MalformedInputError) as exc_info:
            ingest_scoreboard(payload)
        assert exc_info.value.field == "homeTeam.scores[1]"

    def test_scoreboard_missing_team(self):
        with pytest.raises(MalformedInputError):
            ingest_scoreboard({"homeTeam": {"teamName": "Marvel", "scores": []}})

    def test_player_scores(self, sample_bundle):
        boards = ingest_player_scores(sample_bundle["awayPlayers"])
        assert boards[0].name == "Kim Kwang-jin"
        assert boards[2].totals == (1, 0, 1)

    def test_empty_roster(self):
        assert ingest_player_scores([]) == ()
        assert ingest_player_scores(None) == ()

    def test_duplicate_player_rejected(self):
        entry = {"id": 1, "name": "A", "tpa": 0, "hits": 0, "out": 0}
        with pytest.raises(MalformedInputError) as exc_info:
            ingest_player_scores([entry, dict(entry)])
        assert exc_info.value.field == "players[1].id"

    def test_inconsistent_player_rejected(self):
        entry = {"id": 1, "name": "A", "tpa": 1, "hits": 1, "out": 1}
        with pytest.raises(MalformedInputValidationError):
            ingest_player_scores([entry])

    def test_negative_tpa_rejected(self):
        entry = {"id": 1, "name": "A", "tpa": -1, "hits": 0, "out": 0}
        with pytest.raises(MalformedInputError):
            ingest_player_scores([entry])


# -----------------------------------------------------------------------
# Game list
# -----------------------------------------------------------------------


class TestGameList:
    def test_plain_names(self):
        pairs = ingest_game_list([{"homeTeam": "Marvel", "awayTeam": "Captain"}])
        assert pairs[0].home_team == "Marvel"
        assert pairs[0].away_team == "Captain"

    def test_team_objects(self):
        pairs = ingest_game_list(json.dumps([
            {"homeTeam": {"teamName": "Twins"}, "awayTeam": {"teamName": "Tigers"}},
        ]))
        assert (pairs[0].home_team, pairs[0].away_team) == ("Twins", "Tigers")

    def test_empty(self):
        assert ingest_game_list([]) == []

    def test_missing_team(self):
        with pytest.raises(MalformedInputError):
            ingest_game_list([{"homeTeam": "Marvel"}])
