"""
Big-play detection for rushing, passing and receiving gains.

Works on the drive play descriptions ("allPlys"), which look like:

    "(9:12 - 1st) J.Conner up the middle to ARZ 27 for 23 yards (Ma.Jones)."
    "(10:21 - 4th) (Shotgun) K.Cousins pass short middle to D.Cook to MIN 26 for 13 yards (J.Blackmon; B.Okereke)."

Plays that never count here:
  - incomplete passes and field goals (no "yards")
  - punts ("punts"), kickoffs ("kicks"), penalties ("PENALTY"), interceptions ("INTERCEPTED")
  - scoring plays ("TOUCHDOWN"), which the touchdown classifier handles
"""

import logging

from .alert_models import (
    BIG_PLAY,
    DEFAULT_BIG_PLAY_THRESHOLDS,
    PASS,
    RECEPTION,
    RUSH,
    ClassificationResult,
    ClassifiedEvent,
    PlayRecord,
    event_key,
    resolve_candidates,
)
from .play_text import (
    name_in_text,
    parse_game_clock,
    parse_pass_target,
    parse_play_yardage,
    parse_quarter,
    parse_recovering_team,
)

logger = logging.getLogger(__name__)

_EXCLUDED_MARKERS = ('punts', 'penalty', 'intercepted', 'kicks', 'touchdown')

LOST_FUMBLE_NOTE = " (FUMBLE - Lost ball on the play)"


def is_big_play_candidate(text):
    """A gain of some yardage that is not a kick, penalty, pick or score."""
    text_lower = (text or '').lower()
    if 'yards' not in text_lower:
        return False
    return not any(marker in text_lower for marker in _EXCLUDED_MARKERS)


def truncate_at_fumble(text):
    """
    Cut the description at "FUMBLES".

    Forward progress after a fumble (the recovery return) is not credited to the
    ball carrier.
    """
    idx = text.lower().find('fumbles')
    return text if idx == -1 else text[:idx]


def is_lost_fumble(original_text, entry):
    """True when the opponent recovered a fumble on this play."""
    if 'fumbles' not in original_text.lower():
        return False
    recovering_team = parse_recovering_team(original_text)
    if not recovering_team or not entry.opponent_abbreviation:
        return False
    return recovering_team.lower() == entry.opponent_abbreviation.lower()


def merge_thresholds(thresholds=None):
    merged = dict(DEFAULT_BIG_PLAY_THRESHOLDS)
    merged.update(thresholds or {})
    return merged


def _rush_message(name, yards):
    return f"🚀 Big play! {name} rushed for {yards} yards."


def _reception_message(name, yards):
    return f"🚀 Big play! {name} caught a pass of {yards} yards."


def _pass_message(name, yards, receiver):
    return f"🚀 Big play! {name} threw a pass of {yards} yards to {receiver}!"


def classify_big_play(game_id, record, roster, thresholds=None):
    """
    Classify one play description against the game's roster.

    Returns a ClassificationResult; raises PlayTextParseError when the
    description has the shape of a gain but its yardage/quarter/clock cannot be
    read.
    """
    text = record.text if isinstance(record, PlayRecord) else record
    thresholds = merge_thresholds(thresholds)

    if not is_big_play_candidate(text):
        return ClassificationResult.none("not a scrimmage gain")

    original_text = text
    text = truncate_at_fumble(text)

    yards = parse_play_yardage(text)
    if yards < min(thresholds[RUSH], thresholds[RECEPTION]):
        return ClassificationResult.none("below big-play yardage")

    quarter = parse_quarter(text)
    clock = parse_game_clock(text)

    text_lower = text.lower()
    pass_pos = text_lower.find('pass')

    roles = {}
    for entry in roster:
        abbreviated = entry.abbreviated_name
        if not name_in_text(text, abbreviated):
            continue

        receiver = None
        lost_fumble = False
        if pass_pos != -1:
            if text.find(abbreviated) < pass_pos:
                if yards < thresholds[PASS]:
                    continue
                subtype = PASS
                receiver = parse_pass_target(text)
                message = _pass_message(entry.player_name, yards, receiver)
            else:
                if yards < thresholds[RECEPTION]:
                    continue
                subtype = RECEPTION
                message = _reception_message(entry.player_name, yards)
        else:
            if yards < thresholds[RUSH]:
                continue
            subtype = RUSH
            message = _rush_message(entry.player_name, yards)

        if subtype != PASS and is_lost_fumble(original_text, entry):
            lost_fumble = True
            message += LOST_FUMBLE_NOTE

        logger.debug("Big play candidate: %s", message)
        roles.setdefault(subtype, []).append(ClassifiedEvent(
            kind=BIG_PLAY,
            subtype=subtype,
            participant=entry,
            yardage=yards,
            quarter=quarter,
            clock=clock,
            message=message,
            key=event_key(game_id, quarter, clock, entry.player_name),
            counterpart=receiver,
            lost_fumble=lost_fumble,
        ))

    return resolve_candidates(roles, reason_if_empty="no rostered participant qualified")
