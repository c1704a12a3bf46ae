# /// script
# requires-python = ">=3.12"
# dependencies = ["flask>=3.0", "pydantic>=2.0"]
# ///
"""JSON API over the current game snapshot.

Serves the latest snapshot, the replay log and the player boards to a view
layer, accepts raw payloads to refresh from, and streams each newly
published snapshot as a server-sent event.

Usage:
    uv run app.py
"""

from __future__ import annotations

import json
import logging
import os
import queue

from flask import Flask, Response, jsonify, request

from game_state_ingestion import MalformedInputError, MalformedInputValidationError
from models import GameSnapshot, Side
from snapshot_provider import SnapshotProvider
from state_engine import InvalidStateError

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# App setup
# ---------------------------------------------------------------------------

app = Flask(__name__)

PROVIDER = SnapshotProvider()

SSE_KEEPALIVE_SECONDS = 30


def _snapshot_dict(snapshot: GameSnapshot) -> dict:
    display = snapshot.round_display()
    offense_score, defense_score = snapshot.score_info()
    return {
        "generation": snapshot.generation,
        "play_team": snapshot.game.play_team,
        "state": snapshot.state.model_dump(mode="json"),
        "round": display.model_dump(mode="json"),
        "offense_team": {"team_name": display.batting_team, "score": offense_score},
        "defense_team": {"team_name": display.fielding_team, "score": defense_score},
        "history_length": len(snapshot.history),
        "scoreboard": (snapshot.scoreboard.model_dump(mode="json")
                       if snapshot.scoreboard else None),
    }


def _no_snapshot():
    return jsonify({"error": "No snapshot published yet"}), 404


# ---------------------------------------------------------------------------
# API routes
# ---------------------------------------------------------------------------


@app.route("/api/snapshot")
def api_snapshot():
    snapshot = PROVIDER.snapshot
    if snapshot is None:
        return _no_snapshot()
    return jsonify(_snapshot_dict(snapshot))


@app.route("/api/history")
def api_history():
    snapshot = PROVIDER.snapshot
    if snapshot is None:
        return _no_snapshot()
    return jsonify([entry.model_dump(mode="json") for entry in snapshot.history])


@app.route("/api/players/<side>")
def api_players(side: str):
    try:
        team_side = Side(side.upper())
    except ValueError:
        return jsonify({"error": f"Unknown side '{side}', expected home or away"}), 400
    snapshot = PROVIDER.snapshot
    if snapshot is None:
        return _no_snapshot()
    if snapshot.scoreboard is None:
        return jsonify({"error": "No scoreboard in the current snapshot"}), 404

    totals = snapshot.total_player_score_count(team_side)
    return jsonify({
        "team_name": snapshot.scoreboard.team(team_side).team_name,
        "players": [p.model_dump(mode="json")
                    for p in snapshot.scoreboard.players(team_side)],
        "totals": totals._asdict(),
    })


@app.route("/api/refresh", methods=["POST"])
def api_refresh():
    data = request.get_json(silent=True)
    if not isinstance(data, dict) or "game" not in data:
        return jsonify({"error": "Body must be a JSON object with a 'game' payload"}), 400

    try:
        snapshot = PROVIDER.refresh(
            data["game"],
            data.get("scoreboard"),
            data.get("homePlayers"),
            data.get("awayPlayers"),
        )
    except MalformedInputValidationError as exc:
        logger.warning("Refresh rejected: %s", exc)
        return jsonify({
            "error": str(exc),
            "details": exc.details,
            "validation_errors": exc.validation_errors,
        }), 400
    except MalformedInputError as exc:
        logger.warning("Refresh rejected: %s", exc)
        return jsonify({"error": str(exc), "field": exc.field, "details": exc.details}), 400
    except InvalidStateError as exc:
        logger.warning("Story could not be replayed: %s", exc)
        return jsonify({"error": str(exc)}), 409

    if snapshot is None:
        logger.info("Refresh superseded by a newer request")
        return jsonify({"status": "superseded"}), 202
    return jsonify(_snapshot_dict(snapshot))


@app.route("/api/events")
def api_events():
    q: queue.Queue = queue.Queue()
    unsubscribe = PROVIDER.subscribe(q.put)

    def generate():
        try:
            while True:
                try:
                    snapshot = q.get(timeout=SSE_KEEPALIVE_SECONDS)
                except queue.Empty:
                    yield ":\n\n"
                    continue
                data = json.dumps(_snapshot_dict(snapshot))
                yield f"event: snapshot\ndata: {data}\n\n"
        finally:
            unsubscribe()

    return Response(
        generate(),
        mimetype="text/event-stream",
        headers={
            "Cache-Control": "no-cache",
            "X-Accel-Buffering": "no",
        },
    )


# ---------------------------------------------------------------------------
# Entry point
# ---------------------------------------------------------------------------

if __name__ == "__main__":
    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s [%(name)s] %(levelname)s: %(message)s",
    )
    port = int(os.environ.get("PORT", 5050))
    app.run(debug=True, host="0.0.0.0", port=port, threaded=True)
