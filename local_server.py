#!/usr/bin/env python3
"""
Local development server for testing the alert APIs.
Run with: python local_server.py
APIs will be available at http://localhost:8000
"""

from dotenv import load_dotenv
load_dotenv('.env.local')

from http.server import HTTPServer, BaseHTTPRequestHandler
from datetime import datetime, timezone
import json
import logging
import sys
import os

# Add project root to path
sys.path.insert(0, os.path.dirname(os.path.abspath(__file__)))

from api.lib.alert_service import DEFAULT_ROSTER_PATH, parse_games, preview_game_alerts
from api.lib.espn_feed import FeedError
from api.lib.rosters import RosterError, group_by_game, load_roster_entries


def _parse_game_alerts_path(path):
    """'/api/game/401772896/alerts' -> '401772896'; None when the id is not numeric."""
    parts = path.strip('/').split('/')
    if len(parts) != 4 or parts[:2] != ['api', 'game'] or parts[3] != 'alerts':
        return None
    return parts[2] if parts[2].isdigit() else None


class LocalAPIHandler(BaseHTTPRequestHandler):
    def _send_json(self, data, status=200):
        self.send_response(status)
        self.send_header('Content-type', 'application/json')
        self.send_header('Access-Control-Allow-Origin', '*')
        self.end_headers()
        self.wfile.write(json.dumps(data).encode())

    def do_OPTIONS(self):
        self.send_response(200)
        self.send_header('Access-Control-Allow-Origin', '*')
        self.send_header('Access-Control-Allow-Methods', 'GET, POST, OPTIONS')
        self.send_header('Access-Control-Allow-Headers', 'Content-Type')
        self.end_headers()

    def do_GET(self):
        path = self.path.split('?')[0]

        # Health check
        if path in ('/api/health', '/api/alerts/health'):
            self._send_json({"status": "ok", "server": "local",
                             "timestamp": datetime.now(timezone.utc).isoformat()})
            return

        # Dry run for one game
        if path.startswith('/api/game/'):
            game_id = _parse_game_alerts_path(path)
            if game_id is None:
                self._send_json({"error": "Invalid game ID"}, 400)
                return
            try:
                entries = load_roster_entries(os.environ.get('ROSTER_PATH') or DEFAULT_ROSTER_PATH)
                roster = group_by_game(entries).get(game_id, [])
                self._send_json(preview_game_alerts(game_id, roster))
            except (RosterError, FeedError) as e:
                self._send_json({"error": str(e), "gameId": game_id}, 500)
            return

        # 404
        self._send_json({"error": "Not found"}, 404)

    def do_POST(self):
        path = self.path.split('?')[0]

        if path == '/api/alerts/parse-games':
            try:
                self._send_json(parse_games())
            except Exception as e:
                logging.getLogger(__name__).exception("parse-games failed")
                self._send_json({"error": str(e)}, 500)
            return

        self._send_json({"error": "Not found"}, 404)


def run(port=8000):
    logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)s %(name)s: %(message)s")
    server = HTTPServer(('localhost', port), LocalAPIHandler)
    print(f"Local API server running at http://localhost:{port}")
    print("Available endpoints:")
    print("  GET  /api/alerts/health")
    print("  POST /api/alerts/parse-games")
    print("  GET  /api/game/<gameId>/alerts")
    print("\nPress Ctrl+C to stop")
    try:
        server.serve_forever()
    except KeyboardInterrupt:
        print("\nShutting down...")
        server.shutdown()

if __name__ == '__main__':
    run()
