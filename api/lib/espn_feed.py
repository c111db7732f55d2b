"""
ESPN play-by-play page fetching and record extraction.

The live play-by-play page embeds its whole data model in a script tag:

    window['__espnfitt__']={"app": ..., "page": {"content": {"gamepackage": {...}}}};

Inside `gamepackage`:
  - allPlys[].items[].plays[].description   drive plays, one quarter per entry
  - scrSumm[].items[]                        scoring summary, one quarter per entry
  - gmStrp.tms[]                             the two teams (id, displayName, abbrev)
"""

import gzip
import json
import logging
import urllib.error
import urllib.request

from bs4 import BeautifulSoup

from .alert_models import GameSnapshot, PlayRecord, ScoringRecord

logger = logging.getLogger(__name__)

PLAY_BY_PLAY_URL = "https://www.espn.com/nfl/playbyplay/_/gameId/{game_id}"
ESPNFITT_MARKER = "window['__espnfitt__']"

ESPN_REQUEST_HEADERS = {
    # ESPN frequently blocks/behaves differently for non-browser UAs.
    'User-Agent': 'Mozilla/5.0 (Macintosh; Intel Mac OS X 10_15_7) AppleWebKit/537.36 (KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36',
    'Accept': 'text/html,application/xhtml+xml,application/xml;q=0.9,*/*;q=0.8',
    'Accept-Language': 'en-US,en;q=0.9',
    'Referer': 'https://www.espn.com/',
}


class FeedError(Exception):
    """The play-by-play page could not be fetched or had no embedded game data."""


def _decompress_response(data):
    """Decompress gzip data if needed, return raw data otherwise."""
    if data[:2] == b'\x1f\x8b':  # gzip magic bytes
        return gzip.decompress(data)
    return data


def fetch_playbyplay_html(game_id, timeout=15):
    url = PLAY_BY_PLAY_URL.format(game_id=game_id)
    req = urllib.request.Request(url, headers=ESPN_REQUEST_HEADERS)
    try:
        with urllib.request.urlopen(req, timeout=timeout) as response:
            return _decompress_response(response.read()).decode('utf-8', errors='replace')
    except urllib.error.HTTPError as e:
        raise FeedError(f"play-by-play HTTP {e.code} for game {game_id}") from e
    except urllib.error.URLError as e:
        raise FeedError(f"play-by-play URL error for game {game_id}: {e.reason}") from e


def extract_espnfitt_json(html):
    """
    Pull the JSON assigned to window['__espnfitt__'] out of the page.

    Since August 2023 other statements can precede the assignment in the same
    script, so the JSON starts at the first '=' after the marker.
    """
    soup = BeautifulSoup(html or '', 'html.parser')
    for script in soup.find_all('script'):
        content = script.get_text().strip()
        marker_pos = content.find(ESPNFITT_MARKER)
        if marker_pos == -1:
            continue
        equal_pos = content.find('=', marker_pos + len(ESPNFITT_MARKER))
        if equal_pos == -1:
            continue
        body = content[equal_pos + 1:].strip().rstrip(';')
        try:
            return json.loads(body)
        except json.JSONDecodeError as e:
            raise FeedError(f"embedded play-by-play JSON is malformed: {e}") from e
    raise FeedError("no window['__espnfitt__'] payload in play-by-play page")


def get_gamepackage(payload):
    return ((payload or {}).get('page', {}).get('content', {}) or {}).get('gamepackage') or {}


def extract_play_records(gamepackage):
    records = []
    for quarter in gamepackage.get('allPlys') or []:
        for drive in quarter.get('items') or []:
            for play in drive.get('plays') or []:
                description = play.get('description')
                if description:
                    records.append(PlayRecord(text=str(description), sequence=len(records)))
    return records


def _parse_int(value):
    try:
        return int(value)
    except (TypeError, ValueError):
        return None


def extract_scoring_records(gamepackage):
    records = []
    for quarter in gamepackage.get('scrSumm') or []:
        for item in quarter.get('items') or []:
            team_id = item.get('teamId')
            records.append(ScoringRecord(
                type_abbreviation=str(item.get('typeAbbreviation') or ''),
                text=str(item.get('playText') or ''),
                period=_parse_int(item.get('periodNum')) or 0,
                clock=str(item.get('clock') or ''),
                team_id=str(team_id) if team_id is not None else None,
                sequence=len(records),
            ))
    return records


def extract_team_names(gamepackage):
    """Map team id -> display name ("Indianapolis Colts")."""
    teams = {}
    for team in (gamepackage.get('gmStrp') or {}).get('tms') or []:
        team_id = team.get('id')
        name = team.get('displayName')
        if team_id is not None and name:
            teams[str(team_id)] = name
    return teams


def build_game_snapshot(game_id, payload, roster):
    gamepackage = get_gamepackage(payload)
    if not gamepackage:
        raise FeedError(f"no gamepackage in play-by-play payload for game {game_id}")
    return GameSnapshot(
        game_id=str(game_id),
        plays=tuple(extract_play_records(gamepackage)),
        scoring=tuple(extract_scoring_records(gamepackage)),
        roster=tuple(roster),
        team_names=extract_team_names(gamepackage),
    )


def fetch_game_snapshot(game_id, roster):
    html = fetch_playbyplay_html(game_id)
    payload = extract_espnfitt_json(html)
    logger.info("Play by play JSON is good for game %s", game_id)
    return build_game_snapshot(game_id, payload, roster)
