"""
Value types for touchdown and big-play alerts.

Everything here is created fresh for one poll and discarded afterwards; nothing
is persisted by the classifiers.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, Optional, Tuple

from .play_text import abbreviate_name


BIG_PLAY = "big_play"
TOUCHDOWN = "touchdown"

RUSH = "rush"
PASS = "pass"
RECEPTION = "reception"
FUMBLE_RECOVERY = "fumble_recovery"
DEFENSIVE_BLOCKED_KICK = "defensive_blocked_kick"
DEFENSIVE_INTERCEPTION_RETURN = "defensive_interception_return"
DEFENSIVE_PUNT_RETURN = "defensive_punt_return"

# Minimum yards for a big play, keyed by subtype.
DEFAULT_BIG_PLAY_THRESHOLDS = {
    RUSH: 25,
    RECEPTION: 25,
    PASS: 40,
}


@dataclass(frozen=True)
class RosterEntry:
    """One rostered participant in one game. Defenses are rostered by team name."""

    player_name: str
    team_abbreviation: str
    opponent_abbreviation: str
    season: int
    owner_id: int
    game_date: datetime
    espn_game_id: str
    owner_name: Optional[str] = None
    phone_number: Optional[str] = None
    player_position: Optional[str] = None
    game_ended: bool = False

    @property
    def abbreviated_name(self) -> str:
        return abbreviate_name(self.player_name)


@dataclass(frozen=True)
class PlayRecord:
    text: str
    sequence: int = 0


@dataclass(frozen=True)
class ScoringRecord:
    type_abbreviation: str
    text: str
    period: int
    clock: str
    team_id: Optional[str] = None
    sequence: int = 0

    @property
    def is_touchdown(self) -> bool:
        return self.type_abbreviation == "TD"


@dataclass(frozen=True)
class EventKey:
    game_id: str
    quarter: int
    clock: str
    participant: str

    def as_string(self) -> str:
        return f"{self.game_id}:{self.quarter}:{self.clock}:{self.participant}"


def event_key(game_id, quarter, clock, participant) -> EventKey:
    """
    Identity of an alert across polls.

    Clock resolution is one second, so two events for the same participant in the
    same quarter and second collapse into one key.
    """
    return EventKey(str(game_id), int(quarter), str(clock).strip(), participant)


@dataclass(frozen=True)
class ClassifiedEvent:
    kind: str
    subtype: str
    participant: RosterEntry
    yardage: int
    quarter: int
    clock: str
    message: str
    key: EventKey
    counterpart: Optional[str] = None
    lost_fumble: bool = False

    def __post_init__(self):
        if not self.message:
            raise ValueError("alert message must not be empty")

    @property
    def opponent_abbreviation(self) -> str:
        return self.participant.opponent_abbreviation

    def to_payload(self) -> Dict[str, Any]:
        """Delivery body: the roster details plus what happened."""
        entry = self.participant
        return {
            "season": entry.season,
            "ownerId": entry.owner_id,
            "ownerName": entry.owner_name,
            "playerName": entry.player_name,
            "playerPosition": entry.player_position,
            "phoneNumber": entry.phone_number,
            "teamAbbreviation": entry.team_abbreviation,
            "opponentAbbreviation": entry.opponent_abbreviation,
            "gameDate": entry.game_date.isoformat() if entry.game_date else None,
            "gameId": self.key.game_id,
            "kind": self.kind,
            "subtype": self.subtype,
            "yardage": self.yardage,
            "quarter": self.quarter,
            "clock": self.clock,
            "message": self.message,
        }


NO_EVENT = "none"
UNIQUE = "unique"
AMBIGUOUS = "ambiguous"


@dataclass(frozen=True)
class ClassificationResult:
    """
    Outcome of classifying one record.

    `unique` holds one event per credited role (a completed pass can credit both
    the passer and the receiver). `ambiguous` means several roster participants
    were credited with the same role and the caller has to choose.
    """

    status: str
    events: Tuple[ClassifiedEvent, ...] = ()
    reason: str = ""

    @classmethod
    def none(cls, reason: str = "") -> "ClassificationResult":
        return cls(NO_EVENT, (), reason)

    @classmethod
    def unique(cls, events) -> "ClassificationResult":
        return cls(UNIQUE, tuple(events))

    @classmethod
    def ambiguous(cls, candidates, reason: str = "") -> "ClassificationResult":
        return cls(AMBIGUOUS, tuple(candidates), reason)

    @property
    def is_event(self) -> bool:
        return self.status == UNIQUE

    @property
    def is_ambiguous(self) -> bool:
        return self.status == AMBIGUOUS


def resolve_candidates(role_candidates, reason_if_empty=""):
    """
    Build a ClassificationResult from {role: [events...]}.

    A role credited to more than one participant makes the whole record ambiguous.
    """
    events = []
    contested = []
    for role, candidates in role_candidates.items():
        if len(candidates) > 1:
            contested.append(role)
        events.extend(candidates)
    if not events:
        return ClassificationResult.none(reason_if_empty)
    if contested:
        return ClassificationResult.ambiguous(
            events, reason=f"multiple participants credited with {', '.join(contested)}"
        )
    return ClassificationResult.unique(events)


@dataclass(frozen=True)
class GameSnapshot:
    """One poll's view of a game: feed records plus who is rostered in it."""

    game_id: str
    plays: Tuple[PlayRecord, ...] = ()
    scoring: Tuple[ScoringRecord, ...] = ()
    roster: Tuple[RosterEntry, ...] = ()
    team_names: Dict[str, str] = field(default_factory=dict)


@dataclass(frozen=True)
class ParseMiss:
    game_id: str
    text: str
    reason: str


@dataclass
class GamePollResult:
    game_id: str
    events: list = field(default_factory=list)
    suppressed: list = field(default_factory=list)
    ambiguous: list = field(default_factory=list)
    misses: list = field(default_factory=list)
    error: Optional[str] = None
