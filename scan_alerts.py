#!/usr/bin/env python3
"""
Poll live games for touchdown and big-play alerts.

    python scan_alerts.py                         # one poll of every live rostered game
    python scan_alerts.py --loop --interval 60    # keep polling
    python scan_alerts.py --dry-run --game 401772896 --html-file page.html
"""

import argparse
import logging
import os
import sys
import time
from pathlib import Path

import pandas as pd
from dotenv import load_dotenv

# Add api/ to path for shared core imports
sys.path.insert(0, os.path.join(os.path.dirname(__file__), 'api'))
from lib.alert_engine import AlertEngine  # noqa: E402
from lib.alert_ledger import ledger_from_env  # noqa: E402
from lib.alert_service import DEFAULT_ROSTER_PATH, run_poll, summarize_results  # noqa: E402
from lib.espn_feed import build_game_snapshot, extract_espnfitt_json, fetch_game_snapshot  # noqa: E402
from lib.notify import notifier_from_env  # noqa: E402
from lib.rosters import group_by_game, load_roster_entries, select_live_games  # noqa: E402

load_dotenv('.env.local')

EVENT_COLS = ['Game', 'Qtr', 'Clock', 'Player', 'Owner', 'Kind', 'Type', 'Yards', 'Message']


def events_frame(events):
    rows = [{
        'Game': e.key.game_id,
        'Qtr': e.quarter,
        'Clock': e.clock,
        'Player': e.participant.player_name,
        'Owner': e.participant.owner_name or e.participant.owner_id,
        'Kind': e.kind,
        'Type': e.subtype,
        'Yards': e.yardage,
        'Message': e.message,
    } for e in events]
    return pd.DataFrame(rows, columns=EVENT_COLS)


def snapshot_loader(html_file=None):
    """Live fetch, or a saved play-by-play page for offline runs."""
    if not html_file:
        return fetch_game_snapshot
    html = Path(html_file).read_text()

    def load(game_id, roster):
        return build_game_snapshot(game_id, extract_espnfitt_json(html), roster)
    return load


def select_games(entries, game_ids=None):
    if game_ids:
        by_game = group_by_game(entries)
        return {gid: by_game.get(gid, []) for gid in game_ids}
    return select_live_games(entries)


def dry_run(games, engine, fetch_snapshot):
    events = []
    for game_id, roster in games.items():
        result = engine.classify_game(fetch_snapshot(game_id, roster))
        events.extend(result.events)
        for miss in result.misses:
            print(f"  [{game_id}] skipped ({miss.reason}): {miss.text}")
    return events


def main():
    parser = argparse.ArgumentParser(description="NFL touchdown and big-play alerts")
    parser.add_argument("--roster", default=os.environ.get('ROSTER_PATH') or DEFAULT_ROSTER_PATH,
                        help="Roster CSV or JSON (default: $ROSTER_PATH or rosters.csv)")
    parser.add_argument("--game", action="append", dest="games",
                        help="Only this ESPN gameId (repeatable); ignores the live-game window")
    parser.add_argument("--html-file", help="Parse a saved play-by-play page instead of fetching ESPN")
    parser.add_argument("--dry-run", action="store_true", help="Print alerts without recording or sending them")
    parser.add_argument("--loop", action="store_true", help="Keep polling until interrupted")
    parser.add_argument("--interval", type=int, default=int(os.environ.get('POLL_INTERVAL_SECONDS') or 60),
                        help="Seconds between polls with --loop (default: 60)")
    parser.add_argument("-v", "--verbose", action="store_true", help="Debug logging")
    args = parser.parse_args()

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    fetch_snapshot = snapshot_loader(args.html_file)

    if args.dry_run:
        engine = AlertEngine.from_env()
        games = select_games(load_roster_entries(args.roster), args.games)
        events = dry_run(games, engine, fetch_snapshot)
        if events:
            print(events_frame(events).to_string(index=False))
        else:
            print("No alerts.")
        return

    engine = AlertEngine.from_env(ledger=ledger_from_env())
    notifier = notifier_from_env()
    while True:
        games = select_games(load_roster_entries(args.roster), args.games)
        print(f"Polling {len(games)} game(s)...")
        results = run_poll(games, engine, notifier, fetch_snapshot=fetch_snapshot)
        summary = summarize_results(results)
        print(f"  alerts: {summary['alerts']}, already sent: {summary['suppressed']}, "
              f"skipped plays: {summary['parseMisses']}, failed games: {len(summary['failedGames'])}")
        if not args.loop:
            break
        try:
            time.sleep(args.interval)
        except KeyboardInterrupt:
            print("\nStopping.")
            break


if __name__ == "__main__":
    main()
