"""
Alert ledger: remembers which event keys already produced an alert.

The feed keeps mutating the same plays between polls, so every alert is keyed
by (game, quarter, clock, participant) and only the first poll that sees a key
gets to send it. Redis is used when REDIS_URL is set; otherwise keys are kept
as small JSON files under /tmp.
"""

from __future__ import annotations

import json
import os
from datetime import datetime, timedelta
from typing import Any, Dict, Optional

import redis


LEDGER_VERSION = "v1"
LEDGER_TTL_SECONDS = 60 * 60 * 24 * 7  # 7 days


class LedgerError(Exception):
    """The ledger store could not be read or written."""


def ledger_key(key) -> str:
    return f"alerts:{LEDGER_VERSION}:{key.as_string()}"


def _record(event) -> Dict[str, Any]:
    if event is None:
        return {"recorded_at": datetime.now().isoformat()}
    record = event.to_payload()
    record["recorded_at"] = datetime.now().isoformat()
    return record


class RedisAlertLedger:
    def __init__(self, redis_url: Optional[str] = None, client=None, ttl: int = LEDGER_TTL_SECONDS) -> None:
        self.redis_url = redis_url or os.environ.get("REDIS_URL")
        self.ttl = ttl
        self._client = client

    def _get_client(self):
        if self._client is None:
            if not self.redis_url:
                raise LedgerError("REDIS_URL is not set")
            self._client = redis.from_url(self.redis_url, decode_responses=True)
        return self._client

    def record_new(self, key, event=None) -> bool:
        """Store the key if absent; True when this call stored it."""
        try:
            stored = self._get_client().set(ledger_key(key), json.dumps(_record(event)), nx=True, ex=self.ttl)
        except redis.RedisError as e:
            raise LedgerError(f"redis set failed for {key.as_string()}: {e}") from e
        return bool(stored)

    def has_recorded(self, key) -> bool:
        try:
            return bool(self._get_client().exists(ledger_key(key)))
        except redis.RedisError as e:
            raise LedgerError(f"redis exists failed for {key.as_string()}: {e}") from e


class LocalFileAlertLedger:
    def __init__(self, ledger_dir: str = "/tmp/nfl_alert_ledger", ttl: int = LEDGER_TTL_SECONDS) -> None:
        self.ledger_dir = ledger_dir
        self.ttl = ttl
        os.makedirs(self.ledger_dir, exist_ok=True)

    def _key_to_path(self, key) -> str:
        safe = ledger_key(key).replace(":", "_").replace("/", "_").replace(" ", "_")
        return os.path.join(self.ledger_dir, f"{safe}.json")

    def has_recorded(self, key) -> bool:
        path = self._key_to_path(key)
        if not os.path.exists(path):
            return False
        try:
            with open(path, "r") as f:
                data = json.load(f)
            recorded_at = datetime.fromisoformat(data["recorded_at"])
        except (OSError, ValueError, KeyError) as e:
            raise LedgerError(f"unreadable ledger entry {path}: {e}") from e
        if datetime.now() - recorded_at > timedelta(seconds=self.ttl):
            os.remove(path)
            return False
        return True

    def record_new(self, key, event=None) -> bool:
        if self.has_recorded(key):
            return False
        path = self._key_to_path(key)
        try:
            with open(path, "w") as f:
                json.dump(_record(event), f)
        except OSError as e:
            raise LedgerError(f"could not write ledger entry {path}: {e}") from e
        return True


class MemoryAlertLedger:
    """Ledger for a single process (tests, dry runs)."""

    def __init__(self) -> None:
        self._records: Dict[str, Dict[str, Any]] = {}

    def has_recorded(self, key) -> bool:
        return key.as_string() in self._records

    def record_new(self, key, event=None) -> bool:
        if self.has_recorded(key):
            return False
        self._records[key.as_string()] = _record(event)
        return True

    def __len__(self) -> int:
        return len(self._records)


def ledger_from_env(environ=None):
    environ = os.environ if environ is None else environ
    ttl = int(environ.get("ALERT_LEDGER_TTL_SECONDS") or LEDGER_TTL_SECONDS)
    if environ.get("REDIS_URL"):
        return RedisAlertLedger(environ["REDIS_URL"], ttl=ttl)
    return LocalFileAlertLedger(environ.get("ALERT_LEDGER_DIR") or "/tmp/nfl_alert_ledger", ttl=ttl)
