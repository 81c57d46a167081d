"""Issue detection across the reconciled sources.

The audit only reports. It never changes which records are linked or what
ends up in the output rows.
"""

import unicodedata

from rapidfuzz.distance import JaroWinkler

from reconciler import (
    EstimatedRatingRecord,
    Indexes,
    MatchRecord,
    Participants,
    ReconciliationIssue,
)
from reconciler.identifiers import format_name, normalize_identifier

ISSUE_CODES = (
    'NAME_VARIANT',
    'NAME_MISMATCH',
    'NOT_IN_REGISTRY',
    'UNRESOLVED_KEY',
    'UNNAMED_PARTICIPANT',
    'MISSING_RATING',
)


def normalize_for_tolerant_comparison(text: str) -> str:
    """Normalize a name for tolerant comparison.

    Removes accents/diacritics via NFD decomposition, strips spaces,
    hyphens, dots, commas, semicolons and apostrophes, then uppercases.
    """
    decomposed = unicodedata.normalize('NFD', text)
    stripped = ''.join(ch for ch in decomposed if unicodedata.category(ch) != 'Mn')
    for ch in (' ', '-', '.', ',', ';', "'"):
        stripped = stripped.replace(ch, '')
    return stripped.upper()


def compare_names(roster_name: str, registry_name: str) -> tuple[str | None, float]:
    """Classify the difference between two spellings of the same player.

    Returns:
        (issue code or None, Jaro-Winkler similarity on the upper-cased names)
    """
    if roster_name == registry_name:
        return None, 1.0
    similarity = JaroWinkler.similarity(roster_name.upper(), registry_name.upper())
    if (normalize_for_tolerant_comparison(roster_name)
            == normalize_for_tolerant_comparison(registry_name)):
        return 'NAME_VARIANT', similarity
    return 'NAME_MISMATCH', similarity


def detect_issues(
    indexes: Indexes,
    participants: Participants,
    matches: list[MatchRecord],
    estimated: list[EstimatedRatingRecord],
) -> list[ReconciliationIssue]:
    """Detect disagreements and gaps between registry, roster and matches.

    Args:
        indexes: Lookups from build_indexes().
        participants: Result of collect_participants().
        matches: Resolved "Match Results" records.
        estimated: Resolved "Estimated Ratings" records.

    Returns:
        List of issues, grouped by code in ISSUE_CODES order.
    """
    issues: list[ReconciliationIssue] = []

    for membership, entry in sorted(indexes.players.membership_to_roster.items()):
        record = indexes.registry.get(membership)
        if record is None:
            if membership in participants.resolved_memberships:
                issues.append(ReconciliationIssue(
                    code='NOT_IN_REGISTRY',
                    key=membership,
                    detail=format_name(entry.first_name, entry.last_name),
                ))
            continue
        roster_name = format_name(entry.first_name, entry.last_name)
        registry_name = format_name(record.first_name, record.last_name)
        code, similarity = compare_names(roster_name, registry_name)
        if code:
            issues.append(ReconciliationIssue(
                code=code,
                key=membership,
                detail=f'Roster "{roster_name}" / Register "{registry_name}"',
                similarity=round(similarity, 4),
            ))

    for key in sorted(participants.fallback_keys):
        entry = indexes.players.id_to_roster.get(normalize_identifier(key))
        detail = format_name(entry.first_name, entry.last_name) if entry else ''
        issues.append(ReconciliationIssue(code='UNRESOLVED_KEY', key=key, detail=detail))

    unnamed = set()
    for match in matches:
        for name, membership in ((match.winner_name, match.winner_membership),
                                 (match.loser_name, match.loser_membership)):
            if membership and not name:
                unnamed.add(membership)
    issues.extend(
        ReconciliationIssue(code='UNNAMED_PARTICIPANT', key=m) for m in sorted(unnamed)
    )

    for row in estimated:
        if not row.rating:
            issues.append(ReconciliationIssue(
                code='MISSING_RATING', key=row.membership_number, detail=row.name,
            ))

    issues.sort(key=lambda issue: ISSUE_CODES.index(issue.code))
    return issues
