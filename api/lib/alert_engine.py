"""
Alert engine: runs both classifiers over one game's records.

The classifiers are pure; the only collaborator the engine talks to is the
alert ledger, which answers "was this event key already recorded?".
"""

from __future__ import annotations

import logging
import os
from typing import Dict, Iterator, Mapping, Optional, Tuple

from .alert_ledger import LedgerError
from .alert_models import (
    DEFAULT_BIG_PLAY_THRESHOLDS,
    PASS,
    RECEPTION,
    RUSH,
    ClassificationResult,
    GamePollResult,
    GameSnapshot,
    ParseMiss,
)
from .big_plays import classify_big_play
from .play_text import PlayTextParseError
from .touchdowns import classify_touchdown

logger = logging.getLogger(__name__)

EMIT_ALL = "emit_all"
SKIP = "skip"
AMBIGUITY_POLICIES = (EMIT_ALL, SKIP)

THRESHOLD_ENV_VARS = {
    RUSH: "BIG_PLAY_RUSH_YARDS",
    RECEPTION: "BIG_PLAY_RECEPTION_YARDS",
    PASS: "BIG_PLAY_PASS_YARDS",
}


def thresholds_from_env(environ: Optional[Mapping[str, str]] = None) -> Dict[str, int]:
    """Big-play thresholds, overridable per subtype with BIG_PLAY_*_YARDS."""
    environ = os.environ if environ is None else environ
    thresholds = dict(DEFAULT_BIG_PLAY_THRESHOLDS)
    for subtype, var in THRESHOLD_ENV_VARS.items():
        raw = environ.get(var)
        if raw in (None, ""):
            continue
        try:
            thresholds[subtype] = int(raw)
        except ValueError:
            raise ValueError(f"{var} must be an integer, got {raw!r}")
    return thresholds


class AlertEngine:
    def __init__(self, ledger=None, thresholds=None, ambiguity_policy: str = EMIT_ALL):
        if ambiguity_policy not in AMBIGUITY_POLICIES:
            raise ValueError(f"Invalid ambiguity policy: {ambiguity_policy}")
        self.ledger = ledger
        self.thresholds = dict(DEFAULT_BIG_PLAY_THRESHOLDS)
        self.thresholds.update(thresholds or {})
        self.ambiguity_policy = ambiguity_policy

    @classmethod
    def from_env(cls, ledger=None, environ: Optional[Mapping[str, str]] = None) -> "AlertEngine":
        environ = os.environ if environ is None else environ
        return cls(
            ledger=ledger,
            thresholds=thresholds_from_env(environ),
            ambiguity_policy=environ.get("ALERT_AMBIGUITY_POLICY") or EMIT_ALL,
        )

    def iter_results(self, snapshot: GameSnapshot) -> Iterator[Tuple[str, ClassificationResult]]:
        """
        Yield (record text, result) for every record, big plays first.

        Records whose text cannot be parsed yield a ParseMiss instead of a result.
        """
        roster = list(snapshot.roster)
        for play in snapshot.plays:
            try:
                yield play.text, classify_big_play(snapshot.game_id, play, roster, self.thresholds)
            except PlayTextParseError as e:
                yield play.text, ParseMiss(snapshot.game_id, play.text, e.reason)

        for scoring in snapshot.scoring:
            try:
                yield scoring.text, classify_touchdown(snapshot.game_id, scoring, roster, snapshot.team_names)
            except PlayTextParseError as e:
                yield scoring.text, ParseMiss(snapshot.game_id, scoring.text, e.reason)

    def classify_game(self, snapshot: GameSnapshot) -> GamePollResult:
        """Every alertable event in the snapshot, without consulting the ledger."""
        return self._run(snapshot, gate=None)

    def process_game(self, snapshot: GameSnapshot) -> GamePollResult:
        """Alertable events not already recorded by the ledger."""
        if self.ledger is None:
            raise ValueError("process_game requires an alert ledger")
        return self._run(snapshot, gate=self.ledger)

    def _run(self, snapshot: GameSnapshot, gate) -> GamePollResult:
        result = GamePollResult(game_id=snapshot.game_id)
        if not snapshot.roster:
            return result

        for text, outcome in self.iter_results(snapshot):
            if isinstance(outcome, ParseMiss):
                logger.warning("Skipping unparsed play in game %s (%s): %s",
                               snapshot.game_id, outcome.reason, text)
                result.misses.append(outcome)
                continue

            if outcome.is_ambiguous:
                result.ambiguous.append(outcome)
                if self.ambiguity_policy == SKIP:
                    logger.warning("Skipping ambiguous play in game %s (%s): %s",
                                   snapshot.game_id, outcome.reason, text)
                    continue
            elif not outcome.is_event:
                continue

            for event in outcome.events:
                try:
                    is_new = gate is None or gate.record_new(event.key, event)
                except LedgerError as e:
                    # Keys already recorded this poll must still be delivered.
                    logger.error("Ledger failed in game %s; stopping this game: %s", snapshot.game_id, e)
                    result.error = str(e)
                    return result
                if is_new:
                    logger.info("%s", event.message)
                    result.events.append(event)
                else:
                    logger.info("Did NOT log %s for %s; already parsed earlier.",
                                event.kind, event.participant.player_name)
                    result.suppressed.append(event)
        return result
