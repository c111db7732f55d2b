from http.server import BaseHTTPRequestHandler
from datetime import datetime, timezone
import json
import logging
import sys
import os

# Add the api directory to the path for imports
sys.path.insert(0, os.path.dirname(os.path.abspath(__file__)))

from lib.alert_service import parse_games

logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)s %(name)s: %(message)s")


class handler(BaseHTTPRequestHandler):
    def _send_json(self, data, status=200):
        self.send_response(status)
        self.send_header('Content-type', 'application/json')
        self.send_header('Access-Control-Allow-Origin', '*')
        self.send_header('Cache-Control', 'no-store')
        self.end_headers()
        self.wfile.write(json.dumps(data).encode())

    def do_GET(self):
        path = self.path.split('?')[0].rstrip('/')
        if path.endswith('/health'):
            self._send_json({"status": "ok", "timestamp": datetime.now(timezone.utc).isoformat()})
            return
        self._send_json({"error": "Not found"}, 404)

    def do_POST(self):
        path = self.path.split('?')[0].rstrip('/')
        if not path.endswith('/parse-games'):
            self._send_json({"error": "Not found"}, 404)
            return
        try:
            self._send_json(parse_games())
        except Exception as e:
            logging.getLogger(__name__).exception("parse-games failed")
            self._send_json({"error": str(e)}, 500)

    def do_OPTIONS(self):
        self.send_response(200)
        self.send_header('Access-Control-Allow-Origin', '*')
        self.send_header('Access-Control-Allow-Methods', 'GET, POST, OPTIONS')
        self.send_header('Access-Control-Allow-Headers', 'Content-Type')
        self.end_headers()
