"""
Unit tests for api/lib/big_plays.py - rushing/passing/receiving big plays.
"""
import os
import sys
from datetime import datetime

import pytest

sys.path.append(os.path.abspath(os.path.join(os.path.dirname(__file__), "..", "api")))

from lib.alert_models import BIG_PLAY, PASS, RECEPTION, RUSH, RosterEntry, event_key
from lib.big_plays import (
    LOST_FUMBLE_NOTE,
    classify_big_play,
    is_big_play_candidate,
    truncate_at_fumble,
)
from lib.play_text import PlayTextParseError


GAME_ID = "401547403"


def _entry(name, team="ARZ", opponent="NE", owner_id=1):
    return RosterEntry(
        player_name=name,
        team_abbreviation=team,
        opponent_abbreviation=opponent,
        season=2024,
        owner_id=owner_id,
        game_date=datetime(2024, 9, 8, 13, 0),
        espn_game_id=GAME_ID,
    )


CONNER = _entry("James Conner")
COUSINS = _entry("Kirk Cousins", team="MIN", opponent="LAC")
COOK = _entry("Dalvin Cook", team="MIN", opponent="LAC")


def _rush(yards):
    return f"(9:12 - 1st) J.Conner up the middle to ARZ 27 for {yards} yards (Ma.Jones)."


def _pass(yards):
    return f"(10:21 - 4th) (Shotgun) K.Cousins pass short middle to D.Cook to MIN 26 for {yards} yards (J.Blackmon; B.Okereke)."


# =============================================================================
# Filters
# =============================================================================
class TestIsBigPlayCandidate:
    @pytest.mark.parametrize("text", [
        "(9:18 - 1st) M.Palardy punts 42 yards to ARZ 8, Center-J.Cardona, fair catch by G.Dortch.",
        "(9:22 - 1st) (Shotgun) PENALTY on NE-T.Brown, False Start, 5 yards, enforced at ARZ 45 - No Play.",
        "(2:15 - 1st) M.Jones pass short middle intended for T.Thornton INTERCEPTED by I.Simmons (C.Thomas) at NE 41. I.Simmons to NE 36 for 5 yards (Ma.Jones).",
        "(15:00 - 1st) J.Sanders kicks 65 yards from MIA 35 to end zone, Touchback.",
        "(3:02 - 2nd) J.Conner left end for 31 yards, TOUCHDOWN.",
        "(11:18 - 1st) (Shotgun) C.McCoy pass incomplete short left to D.Hopkins (Ja.Jones).",
        "(10:39 - 1st) M.Prater 50 yard field goal is No Good, Wide Left, Center-A.Brewer, Holder-A.Lee.",
    ])
    def test_lookalikes_rejected(self, text):
        assert is_big_play_candidate(text) is False

    def test_gain_accepted(self):
        assert is_big_play_candidate(_rush(30)) is True


class TestExcludedPlaysNeverAlert:
    @pytest.mark.parametrize("text", [
        "(9:18 - 1st) J.Conner punts 42 yards to ARZ 8.",
        "(9:22 - 1st) J.Conner up the middle for 40 yards. PENALTY on ARZ-T.Brown, Holding, 10 yards, enforced at ARZ 45 - No Play.",
        "(2:15 - 1st) K.Cousins pass deep left INTERCEPTED by I.Simmons at NE 41. I.Simmons to NE 1 for 60 yards (D.Cook).",
        "(15:00 - 1st) J.Conner kicks 65 yards from ARZ 35.",
    ])
    def test_no_event(self, text):
        result = classify_big_play(GAME_ID, text, [CONNER, COUSINS, COOK])
        assert result.events == ()
        assert not result.is_event


def test_truncate_at_fumble():
    text = "J.Wilson up the middle for 6 yards (A.Gilman). FUMBLES (A.Gilman), recovered by MIA-T.Hill"
    assert truncate_at_fumble(text) == "J.Wilson up the middle for 6 yards (A.Gilman). "
    assert truncate_at_fumble("no fumble here") == "no fumble here"


# =============================================================================
# Rushing
# =============================================================================
class TestRushThreshold:
    def test_24_yards_no_event(self):
        result = classify_big_play(GAME_ID, _rush(24), [CONNER])
        assert result.events == ()

    def test_25_yards_one_rush_event(self):
        result = classify_big_play(GAME_ID, _rush(25), [CONNER])
        assert result.is_event
        assert len(result.events) == 1
        event = result.events[0]
        assert event.kind == BIG_PLAY
        assert event.subtype == RUSH
        assert event.yardage == 25
        assert event.quarter == 1
        assert event.clock == "9:12"
        assert event.participant is CONNER
        assert event.message == "🚀 Big play! James Conner rushed for 25 yards."
        assert event.key == event_key(GAME_ID, 1, "9:12", "James Conner")

    def test_unrostered_runner_no_event(self):
        result = classify_big_play(GAME_ID, _rush(50), [COOK])
        assert result.events == ()


# =============================================================================
# Passing / receiving
# =============================================================================
class TestPassThresholds:
    def test_39_yards_reception_only(self):
        result = classify_big_play(GAME_ID, _pass(39), [COUSINS, COOK])
        assert [(e.participant.player_name, e.subtype) for e in result.events] == [("Dalvin Cook", RECEPTION)]
        assert result.events[0].message == "🚀 Big play! Dalvin Cook caught a pass of 39 yards."

    def test_40_yards_pass_and_reception(self):
        result = classify_big_play(GAME_ID, _pass(40), [COUSINS, COOK])
        assert result.is_event
        subtypes = {e.participant.player_name: e for e in result.events}
        assert subtypes["Kirk Cousins"].subtype == PASS
        assert subtypes["Kirk Cousins"].counterpart == "D.Cook"
        assert subtypes["Kirk Cousins"].message == "🚀 Big play! Kirk Cousins threw a pass of 40 yards to D.Cook!"
        assert subtypes["Dalvin Cook"].subtype == RECEPTION
        assert subtypes["Kirk Cousins"].key != subtypes["Dalvin Cook"].key

    def test_passer_only_rostered(self):
        result = classify_big_play(GAME_ID, _pass(55), [COUSINS])
        assert [e.subtype for e in result.events] == [PASS]

    def test_custom_thresholds(self):
        result = classify_big_play(GAME_ID, _pass(35), [COUSINS, COOK], thresholds={PASS: 30, RECEPTION: 36})
        assert [e.subtype for e in result.events] == [PASS]


# =============================================================================
# Fumbles
# =============================================================================
class TestFumbles:
    def test_gain_before_fumble_below_threshold(self):
        text = "J.Conner up the middle to ARZ 27 for 23 yards (Ma.Jones). FUMBLES (X), recovered by OPP-T.Hill at OPP 43."
        result = classify_big_play(GAME_ID, "(9:12 - 1st) " + text, [CONNER])
        assert result.events == ()

    def test_lost_fumble_note_when_opponent_recovers(self):
        text = ("(8:45 - 2nd) (Shotgun) J.Conner up the middle to NE 40 for 35 yards (A.Gilman). "
                "FUMBLES (A.Gilman), recovered by NE-T.Hill at NE 43. T.Hill for 57 yards, TOUCHDOWN.")
        result = classify_big_play(GAME_ID, text.replace("TOUCHDOWN", "return"), [CONNER])
        event = result.events[0]
        assert event.lost_fumble is True
        assert event.message == "🚀 Big play! James Conner rushed for 35 yards." + LOST_FUMBLE_NOTE

    def test_recovered_by_own_team_no_note(self):
        text = ("(8:45 - 2nd) J.Conner up the middle to NE 40 for 35 yards (A.Gilman). "
                "FUMBLES (A.Gilman), recovered by ARZ-K.Murray at NE 43.")
        event = classify_big_play(GAME_ID, text, [CONNER]).events[0]
        assert event.lost_fumble is False
        assert LOST_FUMBLE_NOTE not in event.message

    def test_recovery_credit_not_given_to_recoverer(self):
        recoverer = _entry("Tyreek Hill", team="NE", opponent="ARZ")
        text = ("(8:45 - 2nd) J.Conner up the middle to NE 40 for 35 yards (A.Gilman). "
                "FUMBLES (A.Gilman), recovered by NE-T.Hill at NE 43. T.Hill to ARZ 10 for 47 yards.")
        result = classify_big_play(GAME_ID, text, [recoverer])
        assert result.events == ()


# =============================================================================
# Failures and ambiguity
# =============================================================================
def test_unrecognized_quarter_raises():
    with pytest.raises(PlayTextParseError):
        classify_big_play(GAME_ID, "(9:12 - 9th) J.Conner up the middle for 30 yards.", [CONNER])


def test_shared_abbreviation_is_ambiguous():
    jalen = _entry("Jalen Conner", owner_id=2)
    result = classify_big_play(GAME_ID, _rush(30), [CONNER, jalen])
    assert result.is_ambiguous
    assert [e.participant.player_name for e in result.events] == ["James Conner", "Jalen Conner"]
