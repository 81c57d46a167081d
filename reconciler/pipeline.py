"""End-to-end reconciliation of one tournament's inputs."""

import logging
from typing import Iterable, Mapping

from reconciler import Reconciliation, RosterEntry
from reconciler.audit import detect_issues
from reconciler.indexes import build_indexes
from reconciler.resolution import (
    collect_participants,
    resolve_estimated_ratings,
    resolve_matches,
)

log = logging.getLogger(__name__)


def reconcile(
    registry_rows: Iterable[Mapping],
    roster_rows: Iterable[Mapping],
    match_rows: Iterable[Mapping],
    rating_rows: Iterable[Mapping] = (),
) -> Reconciliation:
    """Reconcile registry, roster and match results.

    Args:
        registry_rows: Membership registry rows.
        roster_rows: Roster rows (``id``, ``memberId``, ``firstName``, ``lastName``).
        match_rows: Match rows (``MemNum_W``, ``MemNum_L``, ``Score``, ``Division``).
        rating_rows: Optional auxiliary rating records (players.json).

    Returns:
        Reconciliation with both output row sets and the audit issues.
    """
    roster = [RosterEntry.from_row(row) for row in roster_rows]
    matches = list(match_rows)

    indexes = build_indexes(registry_rows, roster, rating_rows)
    participants = collect_participants(matches, indexes.players.id_to_membership)
    match_records = resolve_matches(matches, indexes)
    estimated = resolve_estimated_ratings(roster, indexes, participants)
    issues = detect_issues(indexes, participants, match_records, estimated)

    log.info(
        "Abgleich abgeschlossen: %d Spiele, %d Teilnehmer, %d Hinweise",
        len(match_records), len(estimated), len(issues),
    )
    return Reconciliation(
        matches=match_records,
        estimated_ratings=estimated,
        participants=participants,
        issues=issues,
    )
