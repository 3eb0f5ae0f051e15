# cli.py - Command line interface for linktriage
"""
linktriage CLI - Find hard links in LMS course exports

COMMANDS:
    linktriage triage ARCHIVE... [--output-dir DIR]   Triage export archives into .xlsx reports
    linktriage scan DIR [--output FILE]               Triage an already extracted export
    linktriage classify URL [--assessment]            Explain how one URL is bucketed
    linktriage init [--force]                         Write a linktriage.yaml template
    linktriage version                                Show version information

EXAMPLES:
    # One report per export, next to each archive
    linktriage triage ExportFile_ABC101_20240101.zip

    # Several exports, reports collected in one folder
    linktriage triage exports/*.zip --output-dir reports/

    # Why was this link flagged?
    linktriage classify "/courses/1/page.html"
"""

import sys
from pathlib import Path
from typing import Optional, Tuple

import click

from linktriage import __version__
from linktriage.classifier import classify_url, normalize_url, platform_markers
from linktriage.config_utils import (
    CONFIG_FILENAME,
    TriageConfig,
    create_config_template,
    get_config,
    with_base_url,
)
from linktriage.errors import TriageError
from linktriage.icons import ARCHIVE, ERROR, REPORT, SUCCESS, WARNING
from linktriage.log_utils import setup_logging
from linktriage.models import ContentType, TriageResult
from linktriage.processor import triage_archive, triage_directory
from linktriage.report import report_name_for, summary_lines, write_report


# ============================================================================
# Context
# ============================================================================

class TriageContext:
    """Shared context for CLI commands"""

    def __init__(self):
        self.work_dir = Path.cwd()
        self._config: Optional[TriageConfig] = None

    @property
    def config(self) -> TriageConfig:
        if self._config is None:
            self._config = get_config(self.work_dir)
        return self._config


def _write(result: TriageResult, output: Path, config: TriageConfig) -> None:
    summary = write_report(output, result, config.skip_name_pattern)
    click.echo(f"{REPORT} Report: {summary.path}")
    for line in summary_lines(summary):
        click.echo(f"   {line}")
    if result.skipped:
        click.echo(f"{WARNING}  {len(result.skipped)} item(s) could not be parsed and were skipped")


# ============================================================================
# Click Group Setup
# ============================================================================

@click.group()
@click.pass_context
def cli(ctx):
    """
    linktriage - Find hard links in LMS course exports

    Classifies every link in a course export as a hard link, a discarded
    link or an x-id link, and writes a spreadsheet for cleanup.
    """
    ctx.obj = TriageContext()


@cli.command()
@click.argument('archives', nargs=-1, required=True, type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.option('--output-dir', '-o', type=click.Path(file_okay=False, path_type=Path),
              help='Directory for reports (default: next to each archive)')
@click.option('--base-url', help='Override the LMS base URL')
@click.option('--keep-temp', is_flag=True, help='Keep extracted files for inspection')
@click.option('--verbose', '-v', count=True, help='Show per-link decisions')
@click.pass_obj
def triage(ctx: TriageContext, archives: Tuple[Path, ...], output_dir: Optional[Path],
           base_url: Optional[str], keep_temp: bool, verbose: int):
    """
    Triage one or more course export archives

    Each archive is processed on its own and gets its own report, named
    after the archive (ExportFile_X_Y.zip -> triage_X.xlsx).

    Examples:
        linktriage triage ExportFile_ABC101_20240101.zip
        linktriage triage *.zip --output-dir reports/
    """
    setup_logging(verbose)
    failures = 0

    try:
        config = with_base_url(ctx.config, base_url)
    except TriageError as e:
        click.echo(str(e), err=True)
        sys.exit(1)

    out_dir = output_dir or config.report_dir
    if out_dir:
        out_dir.mkdir(parents=True, exist_ok=True)

    for archive in archives:
        click.echo(f"\n{ARCHIVE} {archive.name}")
        try:
            result = triage_archive(archive, config.base_url, keep_temp or config.keep_temp)
            target_dir = out_dir or archive.parent
            _write(result, target_dir / report_name_for(archive), config)
        except TriageError as e:
            failures += 1
            click.echo(str(e), err=True)

    if failures:
        click.echo(f"\n{ERROR} {failures} of {len(archives)} archive(s) failed", err=True)
        sys.exit(1)

    click.echo(f"\n{SUCCESS} Complete!")


@cli.command()
@click.argument('export_dir', type=click.Path(exists=True, file_okay=False, path_type=Path))
@click.option('--output', '-o', type=click.Path(dir_okay=False, path_type=Path),
              help='Report path (default: <dir>.xlsx next to the directory)')
@click.option('--base-url', help='Override the LMS base URL')
@click.option('--verbose', '-v', count=True, help='Show per-link decisions')
@click.pass_obj
def scan(ctx: TriageContext, export_dir: Path, output: Optional[Path], base_url: Optional[str], verbose: int):
    """
    Triage an export that is already extracted

    Filenames must already have their __xid-... suffixes removed.
    """
    setup_logging(verbose)
    try:
        config = with_base_url(ctx.config, base_url)
        result = triage_directory(export_dir, config.base_url)
        target = output or export_dir.parent / f"{export_dir.name}.xlsx"
        _write(result, target, config)
    except TriageError as e:
        click.echo(str(e), err=True)
        sys.exit(1)


@cli.command()
@click.argument('url')
@click.option('--assessment', is_flag=True, help='Classify as if found inside a test or survey')
@click.option('--base-url', help='Override the LMS base URL')
@click.pass_obj
def classify(ctx: TriageContext, url: str, assessment: bool, base_url: Optional[str]):
    """
    Show how a single URL would be bucketed

    Examples:
        linktriage classify "https://bblearn.nau.edu/webapps/blackboard/content/listContent.jsp"
        linktriage classify "ppg/test1.htm" --assessment
    """
    try:
        base = with_base_url(ctx.config, base_url).base_url
    except TriageError as e:
        click.echo(str(e), err=True)
        sys.exit(1)

    normalized = normalize_url(url.strip(), base)
    content_type = ContentType.ASSESSMENT if assessment else ContentType.UNCLASSIFIED
    category, resolve = classify_url(normalized, content_type, platform_markers(base))

    click.echo(f"Normalized: {normalized}")
    click.echo(f"Bucket:     {category.value}")
    click.echo(f"Resolve:    {'yes' if resolve else 'no'}")


@cli.command()
@click.option('--force', is_flag=True, help='Overwrite an existing linktriage.yaml')
@click.pass_obj
def init(ctx: TriageContext, force: bool):
    """Write a commented linktriage.yaml in the current directory"""
    target = ctx.work_dir / CONFIG_FILENAME
    if target.exists() and not force:
        click.echo(f"[!] {CONFIG_FILENAME} already exists (use --force to overwrite)", err=True)
        sys.exit(1)

    target.write_text(create_config_template())
    click.echo(f"{SUCCESS} Created {target}")


# ============================================================================
# Version
# ============================================================================

@cli.command()
def version():
    """Show linktriage version"""
    click.echo(f"linktriage v{__version__}")
    click.echo("Hard-link triage for LMS course exports")


# ============================================================================
# Entry Point
# ============================================================================

if __name__ == '__main__':
    cli()
