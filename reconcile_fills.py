"""
Command line entry point: reconcile an exchange fills export into LIFO lots.

Examples:
    reconcile-fills fills.csv
    reconcile-fills fills.csv --remainder-mode legacy_sum --json out/lots.json
    reconcile-fills fills.csv --show-records --summary -v

Copyright (c) 2026 Andreas Wagner. All rights reserved.
"""

import sys
from pathlib import Path

import click

from calculators.lot_events import RemainderTotalMode
from calculators.report import export_to_json, render_records, render_report, summarize
from core.config import ReconcilerConfig
from core.exceptions import ReconciliationError
from services.pipeline import reconcile_csv
from utils.logging_config import setup_logger, set_level

logger = setup_logger(__name__)


@click.command(name="reconcile-fills")
@click.argument('csv_file', type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.option('--remainder-mode', default=None,
              type=click.Choice([m.value for m in RemainderTotalMode]),
              help='Total of split remainders: product (size * price) or legacy_sum (size + price). '
                   'Defaults to LOT_REMAINDER_MODE or product.')
@click.option('--json', 'json_path', default=None,
              type=click.Path(dir_okay=False, path_type=Path),
              help='Also export every lot to this JSON file')
@click.option('--show-records', is_flag=True, default=False,
              help='Print the sorted fills before the report')
@click.option('--summary', is_flag=True, default=False,
              help='Print per-product totals after the report')
@click.option('--verbose', '-v', is_flag=True, default=False,
              help='Debug logging')
def main(csv_file: Path, remainder_mode: str, json_path: Path, show_records: bool,
         summary: bool, verbose: bool):
    """Reconcile CSV_FILE (fills export) into matched buy/sell lots."""
    try:
        config = ReconcilerConfig.from_env().with_overrides(
            remainder_mode=remainder_mode,
            log_level='DEBUG' if verbose else None
        )
    except ValueError as e:
        click.echo(f"Configuration error: {e}", err=True)
        sys.exit(2)

    set_level(config.log_level)
    logger.info(f"Reconciling {csv_file} (remainder mode: {config.remainder_mode.value})")

    try:
        content = csv_file.read_text(encoding='utf-8-sig')
    except OSError as e:
        click.echo(f"Could not read {csv_file}: {e}", err=True)
        sys.exit(1)

    try:
        result = reconcile_csv(content, config)
    except ReconciliationError as e:
        click.echo(f"Reconciliation failed: {e}", err=True)
        sys.exit(1)

    if show_records:
        click.echo(render_records(result.records))
        click.echo("")

    click.echo(render_report(result.matches, config.date_format, config.decimals))

    if summary:
        click.echo(summarize(result.matches).to_string(index=False))
        click.echo("")

    if json_path:
        export_to_json(result.matches, json_path)
        click.echo(f"Exported {result.lot_count} lots to {json_path}")

    click.echo(f"Fingerprint: {result.fingerprint}")


if __name__ == "__main__":
    main()
