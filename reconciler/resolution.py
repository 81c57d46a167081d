"""Resolution of match participants to membership numbers and names."""

import logging
from typing import Iterable, Mapping

from reconciler import (
    EstimatedRatingRecord,
    Indexes,
    MatchRecord,
    MembershipRecord,
    Participants,
    PlayerIndex,
    RosterEntry,
)
from reconciler.identifiers import (
    format_name,
    is_membership_number,
    normalize_identifier,
    normalize_text,
)

log = logging.getLogger(__name__)

WINNER_KEY = 'MemNum_W'
LOSER_KEY = 'MemNum_L'
SCORE_KEY = 'Score'
EVENT_KEY = 'Division'


def resolve_membership(key, id_to_membership: Mapping[str, str]) -> str:
    """Resolve a raw match key to a membership number.

    Keys known to the player index resolve through it. An unknown key that
    already has the numeric membership form is taken as is (registered, but
    not on the roster). Anything else is unresolved.

    Returns:
        Membership number, or the empty string if unresolved.
    """
    normalized = normalize_identifier(key)
    if not normalized:
        return ''
    membership = id_to_membership.get(normalized)
    if membership:
        return membership
    if is_membership_number(normalized):
        return normalized
    return ''


def resolve_name(
    membership: str,
    key,
    registry: Mapping[str, MembershipRecord],
    players: PlayerIndex,
) -> str:
    """Resolve the display name for one side of a match.

    Priority: registry name, roster entry by membership number, roster entry
    by the raw key used as internal id, empty.
    """
    if membership:
        record = registry.get(membership)
        if record:
            return format_name(record.first_name, record.last_name)
        entry = players.membership_to_roster.get(membership)
        if entry:
            return format_name(entry.first_name, entry.last_name)

    fallback = normalize_identifier(key)
    if fallback:
        entry = players.id_to_roster.get(fallback)
        if entry:
            return format_name(entry.first_name, entry.last_name)

    return ''


def collect_participants(
    matches: Iterable[Mapping],
    id_to_membership: Mapping[str, str],
) -> Participants:
    """Collect everyone who played at least one match.

    Args:
        matches: Match rows with ``MemNum_W`` and ``MemNum_L``.
        id_to_membership: Lookup from build_player_index().

    Returns:
        Participants with resolved membership numbers and the raw keys
        that could not be resolved.
    """
    memberships: set[str] = set()
    fallback_keys: set[str] = set()

    for row in matches:
        for column in (WINNER_KEY, LOSER_KEY):
            key = normalize_text(row.get(column))
            membership = resolve_membership(key, id_to_membership)
            if membership:
                memberships.add(membership)
            elif key:
                fallback_keys.add(key)

    log.debug(
        "Teilnehmer: %d Mitgliedsnummern, %d unaufgeloeste Schluessel",
        len(memberships), len(fallback_keys),
    )
    return Participants(
        resolved_memberships=frozenset(memberships),
        fallback_keys=frozenset(fallback_keys),
    )


def resolve_matches(matches: Iterable[Mapping], indexes: Indexes) -> list[MatchRecord]:
    """Normalize match rows into "Match Results" records.

    Rows without any key, membership number, score and event are blank source
    rows and are dropped. Scores and event are kept as text.
    """
    id_to_membership = indexes.players.id_to_membership
    records: list[MatchRecord] = []
    dropped = 0

    for row in matches:
        winner_key = row.get(WINNER_KEY)
        loser_key = row.get(LOSER_KEY)
        winner_membership = resolve_membership(winner_key, id_to_membership)
        loser_membership = resolve_membership(loser_key, id_to_membership)
        scores = normalize_text(row.get(SCORE_KEY))
        event = normalize_text(row.get(EVENT_KEY))

        if not (winner_membership or loser_membership or scores or event
                or normalize_text(winner_key) or normalize_text(loser_key)):
            dropped += 1
            continue

        records.append(MatchRecord(
            winner_name=resolve_name(winner_membership, winner_key, indexes.registry, indexes.players),
            winner_membership=winner_membership,
            loser_name=resolve_name(loser_membership, loser_key, indexes.registry, indexes.players),
            loser_membership=loser_membership,
            scores=scores,
            event=event,
        ))

    if dropped:
        log.debug("%d leere Spielzeilen verworfen", dropped)
    return records


def resolve_estimated_ratings(
    roster: Iterable[RosterEntry],
    indexes: Indexes,
    participants: Participants,
) -> list[EstimatedRatingRecord]:
    """Build the "Estimated Ratings" rows for roster entries that played.

    An entry participated if its membership number was seen on the match
    sheet, or if its raw id or member id appears among the unresolved keys.
    The rating comes from the registry, then from the auxiliary ratings.
    The name is always the roster's own spelling.
    """
    id_to_membership = indexes.players.id_to_membership
    records: list[EstimatedRatingRecord] = []

    for entry in roster:
        membership = (
            resolve_membership(entry.internal_id, id_to_membership)
            or resolve_membership(entry.member_id, id_to_membership)
        )

        played = bool(membership) and membership in participants.resolved_memberships
        if not played:
            raw_keys = (normalize_text(entry.internal_id), normalize_text(entry.member_id))
            played = any(k and k in participants.fallback_keys for k in raw_keys)
        if not played:
            continue

        rating = ''
        if membership:
            record = indexes.registry.get(membership)
            rating = (record.est_rating if record else '') or indexes.ratings.get(membership, '')

        records.append(EstimatedRatingRecord(
            name=format_name(entry.first_name, entry.last_name),
            membership_number=membership,
            rating=rating,
        ))

    return records
