"""
Touchdown detection from the scoring summary ("scrSumm") records.

Scoring summaries use full names, and the offensive formats differ between a
live game and a finished one:

    Rush:      "Christian McCaffrey 1 Yd Rush, R.Gould extra point is GOOD, ..."
               "Austin Ekeler 1 Yd Run (Cameron Dicker Kick)"
    Pass:      "George Kittle Pass From Brock Purdy for 28 Yds, R.Gould extra point is GOOD, ..."  (live)
               "Tyreek Hill 60 Yd pass from Tua Tagovailoa (Jason Sanders Kick)"  (final)
    Fumble:    "Tyreek Hill 57 Yd Fumble Recovery (Jason Sanders Kick)"

Defensive scores never name the defense, only the scoring team id:

    "Blocked Kick Recovered by JoJo Domann (IND), C.McLaughlin extra point is GOOD, ..."
    "Julian Blackmon 17 Yd Interception Return, C.McLaughlin extra point is GOOD, ..."
    "Calvin Austin III 73 Yd Punt Return (Chris Boswell Kick)"
"""

import logging

from .alert_models import (
    DEFENSIVE_BLOCKED_KICK,
    DEFENSIVE_INTERCEPTION_RETURN,
    DEFENSIVE_PUNT_RETURN,
    FUMBLE_RECOVERY,
    PASS,
    RECEPTION,
    RUSH,
    TOUCHDOWN,
    ClassificationResult,
    ClassifiedEvent,
    event_key,
    resolve_candidates,
)
from .play_text import (
    PlayTextParseError,
    name_precedes_any,
    parse_touchdown_passer,
    parse_touchdown_receiver,
    parse_touchdown_yardage,
)

logger = logging.getLogger(__name__)

# Checked in order; the first marker found decides the defensive subtype.
DEFENSIVE_MARKERS = (
    ('blocked kick', DEFENSIVE_BLOCKED_KICK),
    ('interception return', DEFENSIVE_INTERCEPTION_RETURN),
    ('punt return', DEFENSIVE_PUNT_RETURN),
)

DEFENSIVE_MESSAGES = {
    DEFENSIVE_BLOCKED_KICK: "🎉 Defensive Touchdown! {name} blocked a kick and returned it for a TD!",
    DEFENSIVE_INTERCEPTION_RETURN: "🎉 Defensive Touchdown! {name} just got a pick 6!",
    DEFENSIVE_PUNT_RETURN: "🎉 Defensive Touchdown! {name} just returned a punt for a TD!",
}

# A thrower's name sits before the kicker clause, which starts at "(" (final) or "," (live).
_PASSER_NAME_BOUNDARIES = ('(', ',')

_SCORER = 'scorer'
_PASSER = 'passer'


def defensive_subtype(text):
    text_lower = (text or '').lower()
    for marker, subtype in DEFENSIVE_MARKERS:
        if marker in text_lower:
            return subtype
    return None


def resolve_scoring_defense(team_id, team_names, roster):
    """
    Roster entries for the defense that scored.

    Defenses are rostered by team display name ("Indianapolis Colts"), so the
    scoring team id is mapped to its display name first.
    """
    team_name = (team_names or {}).get(str(team_id)) if team_id is not None else None
    if not team_name:
        return []
    return [e for e in roster if e.player_name.lower() == team_name.lower()]


def _scoring_quarter(record):
    try:
        quarter = int(record.period)
    except (TypeError, ValueError):
        quarter = 0
    if quarter < 1:
        raise PlayTextParseError(f"unrecognized quarter {record.period!r}", record.text)
    if not record.clock:
        raise PlayTextParseError("no game clock", record.text)
    return quarter


def _defensive_yardage(text):
    # "Blocked Kick Recovered by ..." carries no yardage at all.
    try:
        return parse_touchdown_yardage(text)
    except PlayTextParseError:
        return 0


def _scorer_event(text, entry):
    """(subtype, yards, counterpart, message) for a participant whose name leads the text."""
    text_lower = text.lower()
    yards = parse_touchdown_yardage(text)
    name = entry.player_name
    if 'pass from' in text_lower:
        passer = parse_touchdown_passer(text)
        return RECEPTION, yards, passer, f"🎉 Touchdown! {name} caught a {yards} yard TD from {passer}!"
    if 'fumble recovery' in text_lower:
        return FUMBLE_RECOVERY, yards, None, f"🎉 Touchdown! {name} recovered a fumble for a {yards} yard TD!"
    if 'run' in text_lower or 'rush' in text_lower:
        return RUSH, yards, None, f"🎉 Touchdown! {name} ran for a {yards} yard TD!"
    return None


def classify_touchdown(game_id, record, roster, team_names=None):
    """
    Classify one scoring summary record against the game's roster.

    `team_names` maps team id -> display name and is only needed for defensive
    scores. Raises PlayTextParseError when the record's yardage, names, period
    or clock cannot be read.
    """
    if not record.is_touchdown:
        return ClassificationResult.none("not a touchdown")

    text = record.text or ''
    quarter = _scoring_quarter(record)
    clock = record.clock

    def build(entry, subtype, yards, message, counterpart=None):
        return ClassifiedEvent(
            kind=TOUCHDOWN,
            subtype=subtype,
            participant=entry,
            yardage=yards,
            quarter=quarter,
            clock=clock,
            message=message,
            key=event_key(game_id, quarter, clock, entry.player_name),
            counterpart=counterpart,
        )

    subtype = defensive_subtype(text)
    if subtype:
        defenses = resolve_scoring_defense(record.team_id, team_names, roster)
        if not defenses:
            logger.debug("No rostered defense for team %s: %s", record.team_id, text)
            return ClassificationResult.none("no rostered defense")
        yards = _defensive_yardage(text)
        events = [
            build(entry, subtype, yards, DEFENSIVE_MESSAGES[subtype].format(name=entry.player_name))
            for entry in defenses
        ]
        return resolve_candidates({subtype: events})

    roles = {}
    unknown = False
    text_lower = text.lower()
    for entry in roster:
        name = entry.player_name
        if text.startswith(name):
            scored = _scorer_event(text, entry)
            if scored is None:
                logger.info("Unknown! Play text: %s", text)
                unknown = True
                continue
            subtype, yards, counterpart, message = scored
            roles.setdefault(_SCORER, []).append(build(entry, subtype, yards, message, counterpart))
        elif name in text and name_precedes_any(text, name, _PASSER_NAME_BOUNDARIES):
            if 'pass from' not in text_lower:
                continue
            yards = parse_touchdown_yardage(text)
            receiver = parse_touchdown_receiver(text)
            message = f"🎉 Touchdown! {name} threw a {yards} yard TD to {receiver}!"
            roles.setdefault(_PASSER, []).append(build(entry, PASS, yards, message, receiver))

    reason = "unknown touchdown type" if unknown else "no rostered scorer"
    return resolve_candidates(roles, reason_if_empty=reason)
