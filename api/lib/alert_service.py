"""
Poll entry point for the serverless API, local server and CLI.

One poll: load rosters -> pick live games -> fetch each game's play-by-play ->
run the alert engine -> deliver new alerts.
"""

import logging
import os
from datetime import datetime, timezone

from .alert_engine import AlertEngine
from .alert_ledger import ledger_from_env
from .alert_models import GamePollResult
from .espn_feed import FeedError, fetch_game_snapshot
from .notify import deliver_events, notifier_from_env
from .rosters import load_roster_entries, select_live_games

logger = logging.getLogger(__name__)

DEFAULT_ROSTER_PATH = "rosters.csv"


def run_poll(games, engine, notifier=None, fetch_snapshot=None):
    """
    Process every live game once.

    `games` maps ESPN game id -> roster entries. A game whose feed or ledger
    fails is reported in its result and the poll moves on to the next game;
    alerts recorded before a ledger failure are still delivered.
    """
    fetch_snapshot = fetch_snapshot or fetch_game_snapshot
    results = []
    for game_id, roster in games.items():
        logger.info("Parsing play by play for game %s (%d rostered)", game_id, len(roster))
        try:
            snapshot = fetch_snapshot(game_id, roster)
            result = engine.process_game(snapshot)
        except FeedError as e:
            logger.error("Game %s skipped this poll: %s", game_id, e)
            results.append(GamePollResult(game_id=str(game_id), error=str(e)))
            continue
        if notifier is not None:
            deliver_events(notifier, result.events)
        results.append(result)
    return results


def summarize_results(results):
    return {
        "games": len(results),
        "alerts": sum(len(r.events) for r in results),
        "suppressed": sum(len(r.suppressed) for r in results),
        "ambiguous": sum(len(r.ambiguous) for r in results),
        "parseMisses": sum(len(r.misses) for r in results),
        "failedGames": [{"gameId": r.game_id, "error": r.error} for r in results if r.error],
    }


def parse_games(roster_path=None, now=None, engine=None, notifier=None):
    """
    Main function behind POST /api/alerts/parse-games.

    Returns the response payload.
    """
    roster_path = roster_path or os.environ.get('ROSTER_PATH') or DEFAULT_ROSTER_PATH
    games = select_live_games(load_roster_entries(roster_path), now=now)
    engine = engine or AlertEngine.from_env(ledger=ledger_from_env())
    notifier = notifier or notifier_from_env()

    results = run_poll(games, engine, notifier)
    payload = {
        "message": "Games processed successfully",
        "timestamp": datetime.now(timezone.utc).isoformat(),
    }
    payload.update(summarize_results(results))
    return payload


def preview_game_alerts(game_id, roster, engine=None, fetch_snapshot=None):
    """Every alert a game would produce right now, ignoring the ledger."""
    engine = engine or AlertEngine.from_env()
    fetch_snapshot = fetch_snapshot or fetch_game_snapshot
    result = engine.classify_game(fetch_snapshot(game_id, roster))
    return {
        "gameId": str(game_id),
        "alerts": [e.to_payload() for e in result.events],
        "ambiguous": [[e.to_payload() for e in r.events] for r in result.ambiguous],
        "parseMisses": [{"text": m.text, "reason": m.reason} for m in result.misses],
    }
