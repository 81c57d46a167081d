"""Tests for reconciler.pipeline module."""

from reconciler.pipeline import reconcile


class TestScenario:
    """The small three-source scenario."""

    def test_single_match(self):
        result = reconcile(
            registry_rows=[{'Membership#': '100', 'FirstName': 'Ann', 'LastName': 'Lee', 'EstRating': '1500'}],
            roster_rows=[{'id': 'p1', 'memberId': '100', 'firstName': 'Ann', 'lastName': 'Lee'}],
            match_rows=[{'MemNum_W': '100', 'MemNum_L': 'p2', 'Score': '11,9', 'Division': 'Open'}],
        )
        assert [m.as_row() for m in result.matches] == [
            ['Ann Lee', '100', '', '', '11,9', 'Open'],
        ]
        assert ['Ann Lee', '100', '1500'] in [e.as_row() for e in result.estimated_ratings]
        assert result.participants.fallback_keys == {'p2'}


class TestFixtureTournament:
    """Full run over the shared fixture rows."""

    def test_match_rows(self, registry_rows, roster_rows, match_rows, rating_rows):
        result = reconcile(registry_rows, roster_rows, match_rows, rating_rows)
        assert [m.as_row() for m in result.matches] == [
            ['Ann Lee', '100', 'Bob Stone', '200', '8,5,5', 'Open'],
            ['Dana New', '', 'Eve Park', '400', '11,9', 'U1800'],
            ['', '999', '', '', '-5,9,9', 'Open'],
        ]

    def test_estimated_rows(self, registry_rows, roster_rows, match_rows, rating_rows):
        result = reconcile(registry_rows, roster_rows, match_rows, rating_rows)
        assert [e.as_row() for e in result.estimated_ratings] == [
            ['Ann Lee', '100', '1500'],
            ['Bobby Stone', '200', '1610'],
            ['Dana New', '', ''],
            ['Eve Park', '400', '1350'],
        ]

    def test_participants(self, registry_rows, roster_rows, match_rows):
        result = reconcile(registry_rows, roster_rows, match_rows)
        assert result.participants.resolved_memberships == {'100', '200', '400', '999'}
        assert result.participants.fallback_keys == {'p3', 'x7'}

    def test_issues(self, registry_rows, roster_rows, match_rows, rating_rows):
        result = reconcile(registry_rows, roster_rows, match_rows, rating_rows)
        assert [(i.code, i.key) for i in result.issues] == [
            ('NAME_MISMATCH', '200'),
            ('NOT_IN_REGISTRY', '400'),
            ('UNRESOLVED_KEY', 'p3'),
            ('UNRESOLVED_KEY', 'x7'),
            ('UNNAMED_PARTICIPANT', '999'),
            ('MISSING_RATING', ''),
        ]

    def test_deterministic(self, registry_rows, roster_rows, match_rows, rating_rows):
        first = reconcile(registry_rows, roster_rows, match_rows, rating_rows)
        second = reconcile(registry_rows, roster_rows, match_rows, rating_rows)
        assert first == second


class TestHugeIdentifiers:
    """Identifiers too large to expand do not abort the run."""

    def test_huge_exponent_membership(self):
        result = reconcile(
            registry_rows=[{'Membership#': '1e5000', 'FirstName': 'Big', 'LastName': 'Number', 'EstRating': ''}],
            roster_rows=[],
            match_rows=[{'MemNum_W': '1e5000', 'MemNum_L': '100', 'Score': '11,9', 'Division': 'Open'}],
        )
        assert result.matches[0].loser_membership == '100'
        assert result.participants.fallback_keys == {'1e5000'}
