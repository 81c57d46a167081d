"""Core module for tt-results-reconciler."""

from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Mapping, Optional


@dataclass(frozen=True)
class MembershipRecord:
    """Represents one row of the membership registry."""

    membership_number: str     # canonical identifier
    first_name: str
    last_name: str
    est_rating: str = ''


@dataclass(frozen=True)
class RosterEntry:
    """Represents a player from the tournament roster."""

    internal_id: str
    member_id: str             # raw, possibly unnormalized
    first_name: str
    last_name: str
    usatt_id: str = ''
    omnipong_id: str = ''
    rating: str = ''

    @classmethod
    def from_row(cls, row: Mapping) -> 'RosterEntry':
        """Build an entry from a roster row (CSV dict or players.json object)."""

        def text(key: str) -> str:
            value = row.get(key)
            if value is None:
                return ''
            return value.strip() if isinstance(value, str) else str(value)

        return cls(
            internal_id=text('id'),
            member_id=text('memberId'),
            first_name=text('firstName'),
            last_name=text('lastName'),
            usatt_id=text('usattId'),
            omnipong_id=text('omnipongId'),
            rating=text('rating'),
        )


@dataclass(frozen=True)
class PlayerIndex:
    """Three parallel lookups built from the roster in a single pass."""

    id_to_membership: Mapping[str, str]
    membership_to_roster: Mapping[str, RosterEntry]
    id_to_roster: Mapping[str, RosterEntry]


@dataclass(frozen=True)
class Indexes:
    """All read-only lookups needed by the resolvers."""

    registry: Mapping[str, MembershipRecord]
    players: PlayerIndex
    ratings: Mapping[str, str] = field(default_factory=lambda: MappingProxyType({}))


@dataclass(frozen=True)
class Participants:
    """Participants of the tournament as seen on the match sheet.

    ``resolved_memberships`` holds canonical membership numbers,
    ``fallback_keys`` the raw keys that could not be resolved.
    """

    resolved_memberships: frozenset
    fallback_keys: frozenset


@dataclass(frozen=True)
class MatchRecord:
    """One normalized row of the "Match Results" sheet."""

    winner_name: str
    winner_membership: str
    loser_name: str
    loser_membership: str
    scores: str                # opaque text, e.g. "8,5,5"
    event: str

    def as_row(self) -> list[str]:
        return [
            self.winner_name, self.winner_membership,
            self.loser_name, self.loser_membership,
            self.scores, self.event,
        ]


@dataclass(frozen=True)
class EstimatedRatingRecord:
    """One row of the "Estimated Ratings" sheet."""

    name: str
    membership_number: str
    rating: str

    def as_row(self) -> list[str]:
        return [self.name, self.membership_number, self.rating]


@dataclass
class ReconciliationIssue:
    """A disagreement or gap found while reconciling the sources."""

    code: str                  # NAME_VARIANT, NAME_MISMATCH, NOT_IN_REGISTRY, ...
    key: str
    detail: str = ''
    similarity: Optional[float] = None


@dataclass
class Reconciliation:
    """Everything one run produces from its three inputs."""

    matches: list[MatchRecord]
    estimated_ratings: list[EstimatedRatingRecord]
    participants: Participants
    issues: list[ReconciliationIssue] = field(default_factory=list)
