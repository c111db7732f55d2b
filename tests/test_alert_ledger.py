import json
import os
import sys

import pytest
import redis

sys.path.append(os.path.abspath(os.path.join(os.path.dirname(__file__), "..", "api")))

from lib.alert_ledger import (  # noqa: E402
    LedgerError,
    LocalFileAlertLedger,
    MemoryAlertLedger,
    RedisAlertLedger,
    ledger_from_env,
    ledger_key,
)
from lib.alert_models import event_key  # noqa: E402


KEY = event_key("401547403", 2, "4:31", "George Kittle")


class FakeRedis:
    def __init__(self, fail=False):
        self.store = {}
        self.calls = []
        self.fail = fail

    def set(self, name, value, nx=False, ex=None):
        if self.fail:
            raise redis.ConnectionError("down")
        self.calls.append((name, nx, ex))
        if nx and name in self.store:
            return None
        self.store[name] = value
        return True

    def exists(self, name):
        return 1 if name in self.store else 0


def test_ledger_key_format():
    assert ledger_key(KEY) == "alerts:v1:401547403:2:4:31:George Kittle"


def test_memory_ledger_records_once():
    ledger = MemoryAlertLedger()
    assert ledger.record_new(KEY) is True
    assert ledger.record_new(KEY) is False
    assert ledger.has_recorded(KEY) is True
    assert len(ledger) == 1


def test_redis_ledger_uses_set_nx_with_ttl():
    fake = FakeRedis()
    ledger = RedisAlertLedger(client=fake, ttl=60)
    assert ledger.record_new(KEY) is True
    assert ledger.record_new(KEY) is False
    assert ledger.has_recorded(KEY) is True
    assert fake.calls[0] == (ledger_key(KEY), True, 60)
    assert "recorded_at" in json.loads(fake.store[ledger_key(KEY)])


def test_redis_ledger_errors_are_wrapped():
    ledger = RedisAlertLedger(client=FakeRedis(fail=True))
    with pytest.raises(LedgerError):
        ledger.record_new(KEY)


def test_redis_ledger_without_url(monkeypatch):
    monkeypatch.delenv("REDIS_URL", raising=False)
    with pytest.raises(LedgerError):
        RedisAlertLedger().record_new(KEY)


def test_local_file_ledger_persists_between_instances(tmp_path):
    first = LocalFileAlertLedger(str(tmp_path))
    assert first.record_new(KEY) is True
    second = LocalFileAlertLedger(str(tmp_path))
    assert second.record_new(KEY) is False


def test_local_file_ledger_expires(tmp_path):
    ledger = LocalFileAlertLedger(str(tmp_path), ttl=-1)
    assert ledger.record_new(KEY) is True
    assert ledger.has_recorded(KEY) is False


def test_ledger_from_env(tmp_path):
    assert isinstance(ledger_from_env({"ALERT_LEDGER_DIR": str(tmp_path)}), LocalFileAlertLedger)
    assert isinstance(ledger_from_env({"REDIS_URL": "redis://localhost:6379/0"}), RedisAlertLedger)
