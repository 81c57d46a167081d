"""Lookup tables built once per run from the registry, roster and ratings.

All builders follow the same collision rule: when two rows share a key the
later row wins. Collisions are logged so duplicated source rows do not go
unnoticed.
"""

import logging
from types import MappingProxyType
from typing import Iterable, Mapping

from reconciler import Indexes, MembershipRecord, PlayerIndex, RosterEntry
from reconciler.identifiers import normalize_identifier, normalize_text

log = logging.getLogger(__name__)

# Candidate identifier fields of the auxiliary ratings source, in priority order
RATING_ID_FIELDS = ('usattId', 'memberId', 'omnipongId')


def build_registry_index(rows: Iterable[Mapping]) -> Mapping[str, MembershipRecord]:
    """Index registry rows by canonical membership number.

    Args:
        rows: Registry rows with ``Membership#``, ``FirstName``,
            ``LastName`` and ``EstRating``.

    Returns:
        Read-only mapping of membership number to MembershipRecord.
    """
    index: dict[str, MembershipRecord] = {}
    skipped = 0
    for row in rows:
        number = normalize_identifier(row.get('Membership#'))
        if not number:
            skipped += 1
            continue
        if number in index:
            log.warning("Mitgliedsnummer %s mehrfach im Register, letzte Zeile gilt", number)
        index[number] = MembershipRecord(
            membership_number=number,
            first_name=normalize_text(row.get('FirstName')),
            last_name=normalize_text(row.get('LastName')),
            est_rating=normalize_text(row.get('EstRating')),
        )
    log.debug("Register: %d Mitglieder, %d Zeilen ohne Nummer", len(index), skipped)
    return MappingProxyType(index)


def build_player_index(
    roster: Iterable[RosterEntry],
    registry: Mapping[str, MembershipRecord],
) -> PlayerIndex:
    """Build the id/membership lookups for the roster.

    The registry's number is preferred over the roster's own value, so a
    differently formatted number on the roster resolves to the registry key.
    Both the internal id and the normalized member id point to the resolved
    membership number.

    Args:
        roster: Entries from the roster.
        registry: Index from build_registry_index().

    Returns:
        PlayerIndex with read-only lookups.
    """
    id_to_membership: dict[str, str] = {}
    membership_to_roster: dict[str, RosterEntry] = {}
    id_to_roster: dict[str, RosterEntry] = {}

    for entry in roster:
        internal_id = normalize_identifier(entry.internal_id)
        member_id = normalize_identifier(entry.member_id)

        membership = ''
        if member_id:
            record = registry.get(member_id)
            membership = record.membership_number if record else member_id

        if internal_id:
            if internal_id in id_to_roster:
                log.warning("Spieler-ID %s mehrfach im Roster, letzter Eintrag gilt", internal_id)
            id_to_roster[internal_id] = entry

        if membership:
            if internal_id:
                id_to_membership[internal_id] = membership
            id_to_membership[member_id] = membership
            if membership in membership_to_roster:
                log.warning("Mitgliedsnummer %s mehrfach im Roster, letzter Eintrag gilt", membership)
            membership_to_roster[membership] = entry

    return PlayerIndex(
        id_to_membership=MappingProxyType(id_to_membership),
        membership_to_roster=MappingProxyType(membership_to_roster),
        id_to_roster=MappingProxyType(id_to_roster),
    )


def build_rating_index(rows: Iterable[Mapping]) -> Mapping[str, str]:
    """Index externally estimated ratings by membership number.

    The first non-empty field of RATING_ID_FIELDS identifies a record.
    Records without identifier or rating are ignored.
    """
    index: dict[str, str] = {}
    for row in rows:
        number = ''
        for name in RATING_ID_FIELDS:
            number = normalize_identifier(row.get(name))
            if number:
                break
        rating = normalize_text(row.get('rating'))
        if number and rating:
            index[number] = rating
    return MappingProxyType(index)


def build_indexes(
    registry_rows: Iterable[Mapping],
    roster: Iterable[RosterEntry],
    rating_rows: Iterable[Mapping] = (),
) -> Indexes:
    """Build all lookups in dependency order."""
    registry = build_registry_index(registry_rows)
    players = build_player_index(roster, registry)
    ratings = build_rating_index(rating_rows)
    log.info(
        "Indizes aufgebaut: %d Mitglieder, %d Roster-Spieler, %d Zusatz-Ratings",
        len(registry), len(players.id_to_roster), len(ratings),
    )
    return Indexes(registry=registry, players=players, ratings=ratings)
