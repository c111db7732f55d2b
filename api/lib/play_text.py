"""
Play text parsing shared by the big-play and touchdown classifiers.

ESPN play descriptions are free text and change shape between the live feed and
the finalized game, e.g.:

    "(9:12 - 1st) J.Conner up the middle to ARZ 27 for 23 yards (Ma.Jones)."
    "George Kittle Pass From Brock Purdy for 28 Yds, R.Gould extra point is GOOD, ..."
    "Tyreek Hill 60 Yd pass from Tua Tagovailoa (Jason Sanders Kick)"

Every matcher here raises PlayTextParseError when its marker is missing so the
caller can skip that single record and move on.
"""

import re


class PlayTextParseError(ValueError):
    """An expected marker or pattern was not found in a play description."""

    def __init__(self, reason, text=''):
        super().__init__(f"{reason}: {text!r}" if text else reason)
        self.reason = reason
        self.text = text


# "(9:12 - 1st) ..." -> quarter token after the first dash, up to ')'.
_QUARTER_TOKEN_RE = re.compile(r"^[^-]*-\s*([^)]*?)\s*\)")
# "(9:12 - 1st) ..." -> clock is everything between '(' and the first space.
_CLOCK_RE = re.compile(r"^\s*\(([^\s()]+)\s")
# "... to ARZ 27 for 23 yards ..." / "... sacked at ARZ 38 for -5 yards ..."
_PLAY_YARDS_RE = re.compile(r" for ([-+]?\d+) yards", re.IGNORECASE)
# Integer tokens in touchdown summaries: "Christian McCaffrey 1 Yd Rush, ..."
_INT_TOKEN_RE = re.compile(r"(?:^|\s)([-+]?\d+)(?=\s|$)")
# "... recovered by MIA-T.Hill at MIA 43." -> "MIA"
_RECOVERED_BY_RE = re.compile(r"recovered by\s+([^-\s]+)\s*-", re.IGNORECASE)
# "K.Cousins pass short middle to D.Cook to MIN 26 ..." -> "D.Cook"
_PASS_TARGET_RE = re.compile(r"\bpass\b.*?\bto\s+(\S+)", re.IGNORECASE)
# "... Pass From Brock Purdy for 28 Yds, ..." / "... pass from Tua Tagovailoa (Jason Sanders Kick)"
_TD_PASSER_RE = re.compile(r"\bfrom\s+(.+?)(?=\s+for\b|\s*\(|\s*,|$)", re.IGNORECASE)
# "Tyreek Hill 60 Yd pass from ..." / "George Kittle Pass From ..." -> receiver name
_TD_RECEIVER_RE = re.compile(r"^\s*(.+?)(?:\s+[-+]?\d+\s+Yds?)?\s+pass from\b", re.IGNORECASE)

QUARTER_NUMBERS = {
    '1st': 1,
    '2nd': 2,
    '3rd': 3,
    '4th': 4,
    'OT': 5,
}


# =============================================================================
# Name matching
# =============================================================================

def abbreviate_name(full_name):
    """
    Convert a full participant name to the "F.Last" form used in play text.

    "Justin Jefferson" -> "J.Jefferson", "Amon-Ra St. Brown" -> "A.St. Brown".
    Multi-token surnames are kept literally after the first space.
    """
    name = (full_name or '').strip()
    if not name:
        raise ValueError("participant name is empty")
    _, _, rest = name.partition(' ')
    return f"{name[0]}.{rest or name}"


def name_in_text(text, name):
    """Literal, case-sensitive containment test."""
    return bool(name) and name in (text or '')


def name_precedes(text, name, marker):
    """
    True when `name` occurs in `text` before the first occurrence of `marker`.

    A missing marker never counts as "after" the name.
    """
    if not text or not name:
        return False
    name_pos = text.find(name)
    marker_pos = text.find(marker)
    return name_pos != -1 and marker_pos != -1 and name_pos < marker_pos


def name_precedes_any(text, name, markers):
    return any(name_precedes(text, name, m) for m in markers)


# =============================================================================
# Yardage, quarter and clock
# =============================================================================

def parse_play_yardage(text):
    """
    Yards gained on a rushing/passing play: the integer in "for N yards".

    Plays without the word "yards" ("for no gain", "for 1 yard") return 0.
    """
    if 'yards' not in (text or '').lower():
        return 0
    match = _PLAY_YARDS_RE.search(text)
    if not match:
        raise PlayTextParseError("no 'for N yards' phrase", text)
    return int(match.group(1))


def parse_touchdown_yardage(text):
    """First whitespace-delimited integer token of a touchdown summary."""
    match = _INT_TOKEN_RE.search(text or '')
    if not match:
        raise PlayTextParseError("no yardage in touchdown text", text)
    return int(match.group(1))


def parse_quarter(text):
    """
    Quarter number from a "(clock - period)" prefix; OT is 5.

    Unknown period tokens raise instead of falling back to a valid quarter.
    """
    match = _QUARTER_TOKEN_RE.search(text or '')
    if not match:
        raise PlayTextParseError("no quarter marker", text)
    token = match.group(1)
    if token not in QUARTER_NUMBERS:
        raise PlayTextParseError(f"unrecognized quarter {token!r}", text)
    return QUARTER_NUMBERS[token]


def parse_game_clock(text):
    match = _CLOCK_RE.search(text or '')
    if not match:
        raise PlayTextParseError("no game clock", text)
    return match.group(1)


# =============================================================================
# Participants named in the text
# =============================================================================

def parse_recovering_team(text):
    """
    Team abbreviation after "recovered by" ("recovered by MIA-T.Hill" -> "MIA").

    Returns None when the fumble text has no recovery clause (ball out of bounds).
    """
    match = _RECOVERED_BY_RE.search(text or '')
    return match.group(1) if match else None


def parse_pass_target(text):
    """Receiver token following "pass ... to " in a play description."""
    match = _PASS_TARGET_RE.search(text or '')
    if not match:
        raise PlayTextParseError("no pass target", text)
    return match.group(1).rstrip('.,;')


def parse_touchdown_passer(text):
    """
    Name of the player who threw a touchdown pass.

    Live games read "X Pass From Y for 28 Yds, ..." and final games read
    "X 60 Yd pass from Y (Kicker Kick)"; both end the name at " for", "(" or ",".
    """
    match = _TD_PASSER_RE.search(text or '')
    if not match:
        raise PlayTextParseError("no 'from' passer", text)
    return match.group(1).strip()


def parse_touchdown_receiver(text):
    """Name before "pass from", with a trailing "60 Yd" phrase removed."""
    match = _TD_RECEIVER_RE.search(text or '')
    if not match:
        raise PlayTextParseError("no 'pass from' receiver", text)
    return match.group(1).strip()
