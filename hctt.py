"""hctt – CLI-Tool zum Abgleich von Tischtennis-Turnierergebnissen."""

import argparse
import logging
import sys
from datetime import date
from pathlib import Path

from reconciler.members import export_members
from reconciler.pipeline import reconcile
from reconciler.reader import load_inputs, resolve_folder
from reconciler.reporter import (
    build_output_path,
    print_summary,
    write_html_report,
    write_workbook,
)

TOURNAMENTS_DIR = Path(__file__).resolve().parent / 'tournaments'
TEMPLATE_PATH = Path(__file__).resolve().parent / 'USATT tournament results template.xlsx'


def build_parser() -> argparse.ArgumentParser:
    """Build the argument parser for the CLI."""
    parser = argparse.ArgumentParser(
        description='Abgleich von Mitgliederregister, Spielerliste und Spielergebnissen.',
        prog='hctt.py',
    )
    parser.add_argument(
        '--tournaments-dir', type=Path, default=TOURNAMENTS_DIR,
        help='Basisverzeichnis der Turnierordner (Standard: ./tournaments)',
    )
    parser.add_argument(
        '-v', '--verbose', action='store_true',
        help='Debug-Ausgaben aktivieren',
    )
    sub = parser.add_subparsers(dest='command', required=True)

    results = sub.add_parser('results', help='Ergebnis-Arbeitsmappe erzeugen')
    results.add_argument(
        'folder',
        help='Turnierordner (Name unterhalb von --tournaments-dir oder absoluter Pfad)',
    )
    results.add_argument(
        '--template', type=Path, default=TEMPLATE_PATH,
        help='xlsx-Vorlage, deren uebrige Blaetter uebernommen werden',
    )
    results.add_argument(
        '--output', type=Path,
        help='Pfad fuer die Arbeitsmappe (Standard: hctt-<ordner>-results.xlsx im Turnierordner)',
    )
    results.add_argument(
        '--html', action='store_true',
        help='Zusaetzlich einen HTML-Report erzeugen',
    )
    results.add_argument(
        '--summary', action='store_true',
        help='Zusammenfassung auf stdout ausgeben',
    )

    members = sub.add_parser('members', help='JustGo-Importdatei aus players.json erzeugen')
    members.add_argument(
        'folder', nargs='?',
        help='Turnierordner im Format yyyymm (Standard: aktueller Monat)',
    )
    members.add_argument(
        '--output', type=Path,
        help='Pfad fuer die Importdatei (Standard: justgo-import.xlsx im Turnierordner)',
    )
    members.add_argument(
        '--template', type=Path, default=TEMPLATE_PATH,
        help='xlsx-Vorlage fuer die Arbeitsmappe mit den Estimated Ratings',
    )
    return parser


def run_results(args: argparse.Namespace) -> None:
    """Reconcile one tournament folder and write its reports."""
    folder = resolve_folder(args.folder, args.tournaments_dir)
    inputs = load_inputs(folder)
    result = reconcile(inputs.registry, inputs.roster, inputs.matches, inputs.ratings)

    output_path = args.output or build_output_path(folder)
    archived = write_workbook(result, output_path, args.template)

    logging.info("Match Results: %d Zeilen", len(result.matches))
    logging.info("Estimated Ratings: %d Zeilen", len(result.estimated_ratings))
    if archived:
        logging.info("Vorherige Ausgabe archiviert: %s", archived)
    logging.info("Ausgabe: %s", output_path)

    if args.html:
        write_html_report(result, output_path.with_suffix('.html'), folder.name)

    if args.summary:
        print_summary(result, folder.name)


def run_members(args: argparse.Namespace, parser: argparse.ArgumentParser) -> None:
    """Write the member import workbook of one tournament folder."""
    name = args.folder or date.today().strftime('%Y%m')
    if not (len(name) == 6 and name.isdigit()):
        parser.error('Turnierordner muss im Format yyyymm angegeben werden.')
    export_members(resolve_folder(name, args.tournaments_dir), args.output, args.template)


def main() -> None:
    """Main entry point."""
    parser = build_parser()
    args = parser.parse_args()

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format='%(levelname)s: %(message)s',
    )

    try:
        if args.command == 'results':
            run_results(args)
        else:
            run_members(args, parser)
    except (OSError, ValueError) as exc:
        logging.error("%s", exc)
        sys.exit(1)


if __name__ == '__main__':
    main()
