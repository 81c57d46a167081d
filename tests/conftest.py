"""Shared test fixtures."""

import csv
import json
from pathlib import Path

import pytest


REGISTRY_ROWS = [
    {'Membership#': '100', 'FirstName': 'Ann', 'LastName': 'Lee', 'EstRating': '1500'},
    {'Membership#': '200.0', 'FirstName': 'Bob', 'LastName': 'Stone', 'EstRating': ''},
    {'Membership#': '300', 'FirstName': 'Carla', 'LastName': 'Diaz', 'EstRating': '1720'},
    {'Membership#': '', 'FirstName': 'Nobody', 'LastName': 'Blank', 'EstRating': '900'},
]

ROSTER_ROWS = [
    {'id': 'p1', 'memberId': '100', 'firstName': 'Ann', 'lastName': 'Lee'},
    {'id': 'p2', 'memberId': '200', 'firstName': 'Bobby', 'lastName': 'Stone'},
    {'id': 'p3', 'memberId': '', 'firstName': 'Dana', 'lastName': 'New'},
    {'id': 'p4', 'memberId': '400', 'firstName': 'Eve', 'lastName': 'Park'},
    {'id': 'p5', 'memberId': '300', 'firstName': 'Carla', 'lastName': 'Diaz'},
]

MATCH_ROWS = [
    {'MemNum_W': '100', 'MemNum_L': 'p2', 'Score': '8,5,5', 'Division': 'Open'},
    {'MemNum_W': 'p3', 'MemNum_L': '400.0', 'Score': '11,9', 'Division': 'U1800'},
    {'MemNum_W': '', 'MemNum_L': '', 'Score': '', 'Division': ''},
    {'MemNum_W': '999', 'MemNum_L': 'x7', 'Score': '-5,9,9', 'Division': 'Open'},
]

RATING_ROWS = [
    {'usattId': '400', 'firstName': 'Eve', 'lastName': 'Park', 'rating': 1350},
    {'memberId': '200', 'rating': '1610'},
]


def write_csv(path: Path, rows: list[dict]) -> Path:
    """Write rows as a comma separated UTF-8 CSV file."""
    with open(path, 'w', newline='', encoding='utf-8') as f:
        writer = csv.DictWriter(f, fieldnames=list(rows[0].keys()))
        writer.writeheader()
        writer.writerows(rows)
    return path


@pytest.fixture
def registry_rows() -> list[dict]:
    return [dict(r) for r in REGISTRY_ROWS]


@pytest.fixture
def roster_rows() -> list[dict]:
    return [dict(r) for r in ROSTER_ROWS]


@pytest.fixture
def match_rows() -> list[dict]:
    return [dict(r) for r in MATCH_ROWS]


@pytest.fixture
def rating_rows() -> list[dict]:
    return [dict(r) for r in RATING_ROWS]


@pytest.fixture
def tournament_dir(tmp_path) -> Path:
    """A tournament folder with all three CSVs and a players.json."""
    folder = tmp_path / '202512'
    folder.mkdir()
    write_csv(folder / 'usatt-memberships.csv', REGISTRY_ROWS)
    write_csv(folder / 'players.csv', ROSTER_ROWS)
    write_csv(folder / 'match-results.csv', MATCH_ROWS)
    (folder / 'players.json').write_text(json.dumps(RATING_ROWS), encoding='utf-8')
    return folder
