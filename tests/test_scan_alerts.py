import json
import os
import sys
from datetime import datetime

sys.path.append(os.path.abspath(os.path.join(os.path.dirname(__file__), "..")))

import scan_alerts as sa
from lib.alert_engine import AlertEngine
from lib.alert_models import RosterEntry


CONNER = RosterEntry("James Conner", "ARI", "BUF", 2024, 1, datetime(2024, 9, 8, 13, 0), "401671744", owner_name="Alex")

PAYLOAD = {
    "page": {
        "content": {
            "gamepackage": {
                "allPlys": [{"items": [{"plays": [
                    {"description": "(9:12 - 1st) J.Conner up the middle to BUF 27 for 33 yards (T.Bernard)."},
                    {"description": "(8:30 - 1st) J.Conner left end to BUF 20 for 7 yards (T.Bernard)."},
                ]}]}],
                "scrSumm": [],
                "gmStrp": {"tms": []},
            }
        }
    }
}


def _write_page(tmp_path):
    path = tmp_path / "page.html"
    path.write_text("<script>window['__espnfitt__']=" + json.dumps(PAYLOAD) + ";</script>")
    return path


def test_saved_page_dry_run(tmp_path):
    fetch = sa.snapshot_loader(str(_write_page(tmp_path)))
    events = sa.dry_run({"401671744": [CONNER]}, AlertEngine(), fetch)

    df = sa.events_frame(events)
    assert list(df.columns) == sa.EVENT_COLS
    assert len(df) == 1
    row = df.iloc[0]
    assert row["Player"] == "James Conner"
    assert row["Owner"] == "Alex"
    assert row["Yards"] == 33
    assert row["Qtr"] == 1


def test_events_frame_empty():
    df = sa.events_frame([])
    assert df.empty
    assert list(df.columns) == sa.EVENT_COLS


def test_select_games_explicit_ids():
    games = sa.select_games([CONNER], ["401671744", "999"])
    assert games == {"401671744": [CONNER], "999": []}
