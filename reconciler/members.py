"""Member import sheet (JustGo format) built from a tournament's players.json."""

import json
import logging
from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path

from openpyxl import Workbook
from openpyxl.styles import Font

from reconciler.identifiers import format_name, normalize_text
from reconciler.reporter import (
    ESTIMATED_HEADERS,
    ESTIMATED_SHEET,
    fill_sheet,
    open_workbook,
    replace_sheet,
)

log = logging.getLogger(__name__)

MEMBERS_SHEET = 'Members'
MEMBERS_FILENAME = 'justgo-import.xlsx'
RATINGS_PATTERN = 'HCTT {date} Results.xlsx'

HEADER = [
    'Firstname*',
    'Lastname*',
    'EmailAddress*',
    'DOB*',
    'Username*',
    'Gender',
    'Title',
    'Address1',
    'Address2',
    'Town',
    'County',
    'PostCode',
    'Country',
    'Mobile Telephone',
    'Home Telephone',
    'Emergency Contact First Name',
    'Emergency Contact Surname',
    'Emergency Contact Relationship',
    'Emergency Contact Number',
    'Emergency Contact Email Address',
    'Parent FirstName',
    'Parent Surname',
    'Parent EmailAddress',
]

REQUIRED_FIELDS = ['firstName', 'lastName', 'email', 'dob']

DOB_FORMATS = ('%Y-%m-%d', '%m/%d/%Y', '%Y/%m/%d', '%d.%m.%Y', '%b %d %Y', '%B %d %Y', '%d %b %Y')


@dataclass
class MemberRow:
    """One row of the import sheet plus the required fields it lacks."""

    index: int
    name: str
    values: list[str]
    missing: list[str] = field(default_factory=list)


def normalize_dob(value) -> str:
    """Render a date of birth as MM/DD/YYYY.

    Values that cannot be parsed are returned trimmed but otherwise unchanged.
    """
    raw = normalize_text(value)
    if not raw:
        return raw
    parsed = None
    try:
        parsed = datetime.fromisoformat(raw.replace('Z', '+00:00'))
    except ValueError:
        for fmt in DOB_FORMATS:
            try:
                parsed = datetime.strptime(raw.replace(',', ''), fmt)
                break
            except ValueError:
                continue
    if parsed is None:
        return raw
    return parsed.strftime('%m/%d/%Y')


def build_username(player: dict) -> str:
    """Use the email address, else ``first.last`` in lower case."""
    email = normalize_text(player.get('email'))
    if email:
        return email
    parts = [normalize_text(player.get('firstName')), normalize_text(player.get('lastName'))]
    return '.'.join(p for p in parts if p).lower()


def map_player_to_row(player: dict, index: int = 0) -> MemberRow:
    """Map a players.json entry onto the import columns."""
    def text(key: str) -> str:
        return normalize_text(player.get(key))

    values = [''] * len(HEADER)
    values[0] = text('firstName')
    values[1] = text('lastName')
    values[2] = text('email')
    values[3] = normalize_dob(player.get('dob'))
    values[4] = build_username(player)
    values[5] = text('gender')
    values[7] = text('address')
    values[9] = text('city')
    values[10] = text('state')
    values[13] = text('phone')

    missing = [f for f in REQUIRED_FIELDS if not text(f)]
    return MemberRow(
        index=index,
        name=format_name(player.get('firstName'), player.get('lastName')),
        values=values,
        missing=missing,
    )


def load_players(path: Path) -> list[dict]:
    """Load players.json.

    Raises:
        FileNotFoundError: If the file does not exist.
        ValueError: If the file does not contain a JSON array.
    """
    with open(path, 'r', encoding='utf-8') as f:
        players = json.load(f)
    if not isinstance(players, list):
        raise ValueError(f"{path} muss eine Liste enthalten")
    return players


def write_members_workbook(rows: list[MemberRow], output_path: Path) -> None:
    """Write the Members sheet. Rows with missing fields are written too."""
    output_path = Path(output_path)
    output_path.parent.mkdir(parents=True, exist_ok=True)

    wb = Workbook()
    ws = wb.active
    ws.title = MEMBERS_SHEET
    ws.append(HEADER)
    for cell in ws[1]:
        cell.font = Font(bold=True)
    for row in rows:
        ws.append(row.values)
    wb.save(output_path)
    log.info("%d Spieler geschrieben nach %s", len(rows), output_path)


def ratings_filename(folder_name: str) -> str:
    """Results workbook name; ``202512`` becomes ``HCTT 2025-12-01 Results.xlsx``."""
    date = folder_name
    if len(folder_name) == 6 and folder_name.isdigit():
        date = f'{folder_name[:4]}-{folder_name[4:]}-01'
    return RATINGS_PATTERN.format(date=date)


def map_player_to_rating_row(player: dict) -> list[str]:
    """Name, USATT number and rating of a players.json entry."""
    return [
        format_name(player.get('firstName'), player.get('lastName')),
        normalize_text(player.get('usattId')),
        normalize_text(player.get('rating')),
    ]


def write_player_ratings_workbook(
    rows: list[list[str]],
    output_path: Path,
    template: Path | None = None,
) -> None:
    """Write every registered player into the "Estimated Ratings" sheet.

    Unlike the results command this lists all players of players.json,
    whether they played or not.
    """
    output_path = Path(output_path)
    output_path.parent.mkdir(parents=True, exist_ok=True)

    wb = open_workbook(template)
    fill_sheet(replace_sheet(wb, ESTIMATED_SHEET), ESTIMATED_HEADERS, rows)
    wb.save(output_path)
    log.info("Estimated Ratings geschrieben: %s (%d Zeilen)", output_path, len(rows))


def export_members(
    folder: Path,
    output_path: Path | None = None,
    template: Path | None = None,
) -> list[MemberRow]:
    """Build the import workbook and the player ratings workbook for a tournament folder.

    Returns:
        All mapped rows; rows with non-empty ``missing`` lack required fields.
    """
    folder = Path(folder)
    players = load_players(folder / 'players.json')
    rows = [map_player_to_row(p, i) for i, p in enumerate(players) if isinstance(p, dict)]
    write_members_workbook(rows, output_path or folder / MEMBERS_FILENAME)

    ratings_rows = [map_player_to_rating_row(p) for p in players if isinstance(p, dict)]
    write_player_ratings_workbook(ratings_rows, folder / ratings_filename(folder.name), template)

    incomplete = [r for r in rows if r.missing]
    if incomplete:
        log.warning("%d Spieler mit fehlenden Pflichtfeldern:", len(incomplete))
        for r in incomplete:
            log.warning("- #%d %s -> fehlt: %s", r.index + 1, r.name or '(kein Name)', ', '.join(r.missing))
    return rows
