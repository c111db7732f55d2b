"""
Roster loading and live-game selection.

Rosters are exported one row per rostered player per week with the columns of
the weekly roster query:

    Season, OwnerID, OwnerName, PhoneNumber, PlayerName, PlayerPosition,
    TeamAbbreviation, OpponentAbbreviation, GameEnded, GameDate, EspnGameId

GameDate is the kickoff time in US/Eastern.
"""

from __future__ import annotations

import json
from datetime import datetime, timezone
from pathlib import Path
from typing import Dict, Iterable, List, Optional
from zoneinfo import ZoneInfo

import pandas as pd

from .alert_models import RosterEntry


EASTERN = ZoneInfo("America/New_York")

COLUMN_MAP = {
    "Season": "season",
    "OwnerID": "owner_id",
    "OwnerName": "owner_name",
    "PhoneNumber": "phone_number",
    "PlayerName": "player_name",
    "PlayerPosition": "player_position",
    "TeamAbbreviation": "team_abbreviation",
    "OpponentAbbreviation": "opponent_abbreviation",
    "GameEnded": "game_ended",
    "GameDate": "game_date",
    "EspnGameId": "espn_game_id",
}
REQUIRED_COLUMNS = [
    "Season", "OwnerID", "PlayerName", "TeamAbbreviation",
    "OpponentAbbreviation", "GameDate", "EspnGameId",
]


class RosterError(ValueError):
    """Roster file is missing, unreadable, or lacks required columns."""


def load_roster_frame(path) -> pd.DataFrame:
    path = Path(path)
    if not path.exists():
        raise RosterError(f"Roster file not found: {path}")
    try:
        if path.suffix.lower() == ".json":
            rows = json.loads(path.read_text())
            if isinstance(rows, dict):
                rows = rows.get("rosters") or []
            df = pd.DataFrame(rows)
        else:
            df = pd.read_csv(path, dtype={"EspnGameId": str, "PhoneNumber": str})
    except (OSError, ValueError) as e:
        raise RosterError(f"Could not read roster file {path}: {e}") from e

    missing = [c for c in REQUIRED_COLUMNS if c not in df.columns]
    if missing:
        raise RosterError(f"Roster file {path} is missing columns: {', '.join(missing)}")
    return df


def _parse_bool(value) -> bool:
    if isinstance(value, str):
        return value.strip().lower() in {"1", "true", "yes", "y"}
    if value is None or pd.isna(value):
        return False
    return bool(value)


def _optional_str(value) -> Optional[str]:
    if value is None or (not isinstance(value, str) and pd.isna(value)):
        return None
    text = str(value).strip()
    return text or None


def _parse_game_date(value) -> datetime:
    ts = pd.to_datetime(value)
    if ts.tzinfo is None:
        ts = ts.tz_localize(EASTERN)
    else:
        ts = ts.tz_convert(EASTERN)
    return ts.to_pydatetime()


def roster_entries_from_frame(df: pd.DataFrame) -> List[RosterEntry]:
    entries: List[RosterEntry] = []
    for i, row in enumerate(df.to_dict(orient="records")):
        try:
            entries.append(RosterEntry(
                player_name=str(row["PlayerName"]).strip(),
                team_abbreviation=str(row["TeamAbbreviation"]).strip(),
                opponent_abbreviation=str(row["OpponentAbbreviation"]).strip(),
                season=int(row["Season"]),
                owner_id=int(row["OwnerID"]),
                game_date=_parse_game_date(row["GameDate"]),
                espn_game_id=str(row["EspnGameId"]).strip(),
                owner_name=_optional_str(row.get("OwnerName")),
                phone_number=_optional_str(row.get("PhoneNumber")),
                player_position=_optional_str(row.get("PlayerPosition")),
                game_ended=_parse_bool(row.get("GameEnded")),
            ))
        except (TypeError, ValueError) as e:
            raise RosterError(f"Invalid roster row {i + 1}: {e}") from e
    return entries


def load_roster_entries(path) -> List[RosterEntry]:
    return roster_entries_from_frame(load_roster_frame(path))


def is_game_live(entry: RosterEntry, now: Optional[datetime] = None) -> bool:
    """Kicked off already and not yet marked as ended."""
    now = now or datetime.now(timezone.utc)
    if now.tzinfo is None:
        now = now.replace(tzinfo=EASTERN)
    return entry.game_date < now and not entry.game_ended


def group_by_game(entries: Iterable[RosterEntry]) -> Dict[str, List[RosterEntry]]:
    """ESPN game id -> roster entries, in first-seen order."""
    games: Dict[str, List[RosterEntry]] = {}
    for entry in entries:
        games.setdefault(entry.espn_game_id, []).append(entry)
    return games


def select_live_games(entries: Iterable[RosterEntry], now: Optional[datetime] = None) -> Dict[str, List[RosterEntry]]:
    return group_by_game(e for e in entries if is_game_live(e, now))
