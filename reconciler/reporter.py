"""Report generation for reconciliation results (workbook, HTML, summary)."""

import logging
from collections import Counter
from pathlib import Path

from jinja2 import Environment, FileSystemLoader
from openpyxl import Workbook, load_workbook
from openpyxl.styles import Font

from reconciler import Reconciliation

log = logging.getLogger(__name__)

TEMPLATE_DIR = Path(__file__).resolve().parent / 'templates'

MATCH_SHEET = 'Match Results'
ESTIMATED_SHEET = 'Estimated Ratings'

MATCH_HEADERS = [
    'Winner Name',
    'Winner Membership#',
    'Loser Name',
    'Loser Membership#',
    'Scores',
    'Event',
]
ESTIMATED_HEADERS = ['Name', 'Membership#', 'Est Rating']

OUTPUT_PATTERN = 'hctt-{folder}-results.xlsx'


def build_output_path(folder: Path) -> Path:
    """Default workbook path inside a tournament folder."""
    folder = Path(folder)
    return folder / OUTPUT_PATTERN.format(folder=folder.name)


def archive_existing_output(output_path: Path) -> Path | None:
    """Rename an existing output file to the next free ``_v<N>`` name.

    Args:
        output_path: Path the new report will be written to.

    Returns:
        The archive path, or None if there was nothing to archive.
    """
    output_path = Path(output_path)
    if not output_path.exists():
        return None

    version = 1
    while True:
        candidate = output_path.with_name(
            f'{output_path.stem}_v{version}{output_path.suffix}'
        )
        if not candidate.exists():
            output_path.rename(candidate)
            log.info("Vorheriger Report archiviert: %s", candidate.name)
            return candidate
        version += 1


def fill_sheet(ws, headers: list[str], rows: list[list[str]]) -> None:
    """Write header and text rows into a worksheet."""
    ws.append(headers)
    for cell in ws[1]:
        cell.font = Font(bold=True)
    for row in rows:
        ws.append(row)
        for cell in ws[ws.max_row]:
            # Keep values like "=1" literal instead of turning them into formulas
            if cell.data_type == 'f':
                cell.data_type = 's'
    ws.freeze_panes = 'A2'


def replace_sheet(wb, name: str):
    """Return an empty sheet called ``name`` at the position of the old one."""
    if name in wb.sheetnames:
        index = wb.sheetnames.index(name)
        wb.remove(wb[name])
        return wb.create_sheet(name, index)
    return wb.create_sheet(name)


def open_workbook(template: Path | None):
    if template is not None:
        template = Path(template)
        if template.suffix.lower() == '.xls':
            log.warning("Vorlage %s ist .xls und kann nicht geladen werden, ignoriert", template.name)
        elif template.exists():
            log.info("Verwende Vorlage %s", template.name)
            return load_workbook(template)
        else:
            log.info("Vorlage %s nicht gefunden, neue Arbeitsmappe", template)
    wb = Workbook()
    wb.remove(wb.active)
    return wb


def write_workbook(
    result: Reconciliation,
    output_path: Path,
    template: Path | None = None,
) -> Path | None:
    """Write "Match Results" and "Estimated Ratings" sheets to an xlsx file.

    An existing file at ``output_path`` is archived first. The workbook is
    saved to a temporary file and moved into place, so a failed save never
    leaves a truncated report behind.

    Args:
        result: Output of reconcile().
        output_path: Target .xlsx path.
        template: Optional .xlsx workbook whose other sheets are kept.

    Returns:
        Path of the archived previous report, if any.
    """
    output_path = Path(output_path)
    output_path.parent.mkdir(parents=True, exist_ok=True)

    match_rows = [m.as_row() for m in result.matches]
    estimated_rows = [e.as_row() for e in result.estimated_ratings]
    log.info(
        "Schreibe %d Zeilen '%s' und %d Zeilen '%s' nach %s",
        len(match_rows), MATCH_SHEET, len(estimated_rows), ESTIMATED_SHEET, output_path,
    )

    wb = open_workbook(template)
    fill_sheet(replace_sheet(wb, MATCH_SHEET), MATCH_HEADERS, match_rows)
    fill_sheet(replace_sheet(wb, ESTIMATED_SHEET), ESTIMATED_HEADERS, estimated_rows)

    tmp_path = output_path.with_name(f'.{output_path.stem}.tmp{output_path.suffix}')
    try:
        wb.save(tmp_path)
    except Exception:
        tmp_path.unlink(missing_ok=True)
        raise

    archived = archive_existing_output(output_path)
    tmp_path.replace(output_path)
    log.info("Arbeitsmappe geschrieben: %s", output_path)
    return archived


def compute_stats(result: Reconciliation) -> dict:
    """Compute summary statistics from a reconciliation."""
    sides = [(m.winner_membership, m.winner_name) for m in result.matches]
    sides += [(m.loser_membership, m.loser_name) for m in result.matches]
    codes = Counter(issue.code for issue in result.issues)
    return {
        'matches': len(result.matches),
        'participants': len(result.estimated_ratings),
        'resolved': len(result.participants.resolved_memberships),
        'fallback': len(result.participants.fallback_keys),
        'unnamed_sides': sum(1 for _, name in sides if not name),
        'missing_rating': codes['MISSING_RATING'],
        'name_variant': codes['NAME_VARIANT'],
        'name_mismatch': codes['NAME_MISMATCH'],
        'not_in_registry': codes['NOT_IN_REGISTRY'],
        'unresolved_key': codes['UNRESOLVED_KEY'],
        'unnamed_participant': codes['UNNAMED_PARTICIPANT'],
        'issues_total': len(result.issues),
    }


def write_html_report(
    result: Reconciliation,
    output_path: Path,
    tournament_name: str = '',
) -> None:
    """Write the reconciliation as an HTML report using Jinja2.

    Args:
        result: Output of reconcile().
        output_path: Path for the output HTML file.
        tournament_name: Name of the tournament folder (for the report title).
    """
    output_path = Path(output_path)
    output_path.parent.mkdir(parents=True, exist_ok=True)

    env = Environment(
        loader=FileSystemLoader(str(TEMPLATE_DIR)),
        autoescape=True,
    )
    template = env.get_template('report.html')

    html = template.render(
        tournament_name=tournament_name,
        match_headers=MATCH_HEADERS,
        match_rows=[m.as_row() for m in result.matches],
        estimated_headers=ESTIMATED_HEADERS,
        estimated_rows=[e.as_row() for e in result.estimated_ratings],
        issues=result.issues,
        stats=compute_stats(result),
    )

    output_path.write_text(html, encoding='utf-8')
    log.info("HTML-Report geschrieben: %s", output_path)


def print_summary(result: Reconciliation, tournament_name: str = '') -> None:
    """Print a summary of the reconciliation to stdout."""
    stats = compute_stats(result)

    print(f"\n=== Ergebnis-Abgleich: {tournament_name} ===")
    print(f"Spiele:                    {stats['matches']:>5}")
    print(f"Teilnehmer (Ratings):      {stats['participants']:>5}")
    print(f"Mitgliedsnummern:          {stats['resolved']:>5}")
    print(f"Unaufgeloeste Schluessel:  {stats['fallback']:>5}")
    print(f"Spielseiten ohne Namen:    {stats['unnamed_sides']:>5}")
    print("---")
    print(f"Hinweise gesamt:           {stats['issues_total']:>5}")
    print(f"  - Namensvariante:        {stats['name_variant']:>5}")
    print(f"  - Name abweichend:       {stats['name_mismatch']:>5}")
    print(f"  - Nicht im Register:     {stats['not_in_registry']:>5}")
    print(f"  - Ohne Rating:           {stats['missing_rating']:>5}")
    print(f"  - Schluessel offen:      {stats['unresolved_key']:>5}")
    print(f"  - Nummer ohne Namen:     {stats['unnamed_participant']:>5}")
    print()
