"""CSV input with encoding detection, latest-file discovery and loading."""

import csv
import io
import json
import logging
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from pathlib import Path

log = logging.getLogger(__name__)

MATCH_TOKEN = 'match-results'
ROSTER_TOKEN = 'players'
REGISTRY_TOKEN = 'usatt-memberships'
RATINGS_FILENAME = 'players.json'

REGISTRY_COLUMNS = {'Membership#', 'FirstName', 'LastName', 'EstRating'}
ROSTER_COLUMNS = {'id', 'memberId', 'firstName', 'lastName'}
MATCH_COLUMNS = {'MemNum_W', 'MemNum_L', 'Score', 'Division'}


class MissingInputError(FileNotFoundError):
    """A required input file could not be located."""


@dataclass
class TournamentInputs:
    """Raw rows of one tournament folder."""

    folder: Path
    registry: list[dict]
    roster: list[dict]
    matches: list[dict]
    ratings: list[dict] = field(default_factory=list)


def detect_encoding(path: Path) -> str:
    """Detect file encoding by checking for BOM bytes.

    Args:
        path: Path to the CSV file.

    Returns:
        Encoding string suitable for open().
    """
    with open(path, 'rb') as f:
        bom = f.read(2)
    if bom == b'\xff\xfe':
        return 'utf-16-le'
    return 'utf-8-sig'


def read_rows(path: str | Path, required_cols: set[str] = frozenset()) -> list[dict]:
    """Read a CSV file into a list of dicts with text values.

    Values are kept exactly as written (e.g. a score "8,5,5" stays text),
    empty cells become ''. Header names are stripped.

    Args:
        path: Path to the CSV file.
        required_cols: Columns that must be present in the header.

    Returns:
        List of row dicts.

    Raises:
        FileNotFoundError: If the file does not exist.
        ValueError: If the file has no header or required columns are missing.
    """
    path = Path(path)
    encoding = detect_encoding(path)

    with open(path, 'r', encoding=encoding, newline='') as f:
        content = f.read()

    # Strip BOM if present
    content = content.lstrip('\ufeff')

    reader = csv.DictReader(io.StringIO(content))
    if reader.fieldnames is None:
        raise ValueError(f"Datei {path} ist leer oder hat keine Header-Zeile.")
    actual_cols = {c.strip() for c in reader.fieldnames if c}
    missing = set(required_cols) - actual_cols
    if missing:
        raise ValueError(
            f"Fehlende Spalten in {path}: {', '.join(sorted(missing))}"
        )

    rows = [
        {k.strip(): (v if v is not None else '') for k, v in row.items() if k is not None}
        for row in reader
    ]
    log.info("%d Zeilen gelesen aus %s", len(rows), path.name)
    return rows


def find_latest_file(folder: Path, token: str, suffix: str = '.csv') -> Path | None:
    """Return the most recently modified file whose name contains ``token``.

    Args:
        folder: Directory to search (not recursive).
        token: Substring the file name must contain.
        suffix: Required file extension.

    Returns:
        Path of the newest candidate, or None if there is none.
    """
    candidates = [
        p for p in Path(folder).iterdir()
        if p.is_file() and token in p.name and p.suffix.lower() == suffix
    ]
    if not candidates:
        return None
    return max(candidates, key=lambda p: p.stat().st_mtime)


def read_ratings_json(folder: Path) -> list[dict]:
    """Read the optional players.json of a tournament folder.

    Returns an empty list when the file is absent or not a JSON array.
    """
    path = Path(folder) / RATINGS_FILENAME
    try:
        with open(path, 'r', encoding='utf-8') as f:
            data = json.load(f)
    except FileNotFoundError:
        log.debug("Keine %s in %s", RATINGS_FILENAME, folder)
        return []
    if not isinstance(data, list):
        log.warning("%s enthaelt keine Liste und wird ignoriert", path)
        return []
    return [p for p in data if isinstance(p, dict)]


def resolve_folder(folder: str | Path, tournaments_dir: Path) -> Path:
    """Interpret a folder argument as absolute path or name below tournaments_dir."""
    folder = Path(folder)
    if folder.is_absolute():
        return folder
    return tournaments_dir / folder


def load_inputs(folder: Path) -> TournamentInputs:
    """Locate and read all inputs of a tournament folder.

    The three CSVs are independent and read concurrently.

    Raises:
        MissingInputError: If the folder or any required CSV is missing.
    """
    folder = Path(folder)
    if not folder.is_dir():
        raise MissingInputError(f"Turnierordner nicht gefunden: {folder}")

    sources = {
        'registry': (REGISTRY_TOKEN, REGISTRY_COLUMNS),
        'roster': (ROSTER_TOKEN, ROSTER_COLUMNS),
        'matches': (MATCH_TOKEN, MATCH_COLUMNS),
    }
    paths = {name: find_latest_file(folder, token) for name, (token, _) in sources.items()}
    missing = [sources[name][0] for name, path in paths.items() if path is None]
    if missing:
        raise MissingInputError(
            f"Eingabedateien fehlen in {folder}: {', '.join(missing)}"
        )

    with ThreadPoolExecutor(max_workers=len(sources)) as pool:
        futures = {
            name: pool.submit(read_rows, paths[name], sources[name][1])
            for name in sources
        }
        rows = {name: future.result() for name, future in futures.items()}

    return TournamentInputs(
        folder=folder,
        registry=rows['registry'],
        roster=rows['roster'],
        matches=rows['matches'],
        ratings=read_ratings_json(folder),
    )
