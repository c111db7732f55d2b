import os
import sys
from datetime import datetime

import requests

sys.path.append(os.path.abspath(os.path.join(os.path.dirname(__file__), "..", "api")))

from lib.alert_models import BIG_PLAY, RUSH, ClassifiedEvent, RosterEntry, event_key  # noqa: E402
from lib.notify import ConsoleNotifier, WebhookNotifier, deliver_events, notifier_from_env  # noqa: E402


ENTRY = RosterEntry(
    player_name="James Conner",
    team_abbreviation="ARI",
    opponent_abbreviation="BUF",
    season=2024,
    owner_id=7,
    game_date=datetime(2024, 9, 8, 13, 0),
    espn_game_id="401671744",
    owner_name="Alex",
    phone_number="5551234567",
    player_position="RB",
)


def _event(name="James Conner"):
    return ClassifiedEvent(
        kind=BIG_PLAY,
        subtype=RUSH,
        participant=ENTRY,
        yardage=33,
        quarter=1,
        clock="9:12",
        message="🚀 Big play! James Conner rushed for 33 yards.",
        key=event_key("401671744", 1, "9:12", name),
    )


class FakeResponse:
    def __init__(self, status=200):
        self.status = status

    def raise_for_status(self):
        if self.status >= 400:
            raise requests.HTTPError(f"{self.status} error")


class FakeSession:
    def __init__(self, statuses=()):
        self.posts = []
        self.statuses = list(statuses)

    def post(self, url, json=None, timeout=None):
        self.posts.append((url, json, timeout))
        return FakeResponse(self.statuses.pop(0) if self.statuses else 200)


def test_webhook_posts_play_details():
    session = FakeSession()
    WebhookNotifier("https://alerts.example/hook", session=session).send(_event())

    url, body, timeout = session.posts[0]
    assert url == "https://alerts.example/hook"
    assert timeout == 10
    assert body["playerName"] == "James Conner"
    assert body["ownerId"] == 7
    assert body["phoneNumber"] == "5551234567"
    assert body["opponentAbbreviation"] == "BUF"
    assert body["gameId"] == "401671744"
    assert body["message"].startswith("🚀 Big play!")


def test_failed_delivery_does_not_stop_the_rest():
    session = FakeSession(statuses=[500, 200])
    notifier = WebhookNotifier("https://alerts.example/hook", session=session)
    assert deliver_events(notifier, [_event(), _event()]) == 1
    assert len(session.posts) == 2


def test_console_notifier_prints(capsys):
    ConsoleNotifier().send(_event())
    assert "James Conner rushed for 33 yards" in capsys.readouterr().out


def test_notifier_from_env():
    assert isinstance(notifier_from_env({}), ConsoleNotifier)
    notifier = notifier_from_env({"ALERT_WEBHOOK_URL": "https://alerts.example/hook"})
    assert isinstance(notifier, WebhookNotifier)
    assert notifier.url == "https://alerts.example/hook"
