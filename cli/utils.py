# cli/utils.py
import click
from typing import Any, Dict, List

from magpie.offline.reconciler import SyncReport
from magpie.offline.store import ChangeAction, ChangeEntry

ACTION_COLORS = {
    ChangeAction.CREATE: 'green',
    ChangeAction.UPDATE: 'cyan',
    ChangeAction.DELETE: 'red',
}


def describe_change(change: ChangeEntry) -> str:
    title = change.data.get('title') or ''
    label = f"{change.isbn} {title}".strip()
    return (click.style(f"{change.action.value:<7}", fg=ACTION_COLORS[change.action]) +
            click.style(label, fg='white') +
            click.style(f"  ({change.timestamp:%Y-%m-%d %H:%M})", fg='blue'))


def print_changes(changes: List[ChangeEntry]) -> None:
    """Print pending change entries, oldest first"""
    if not changes:
        click.echo(click.style("No pending changes", fg='green'))
        return
    click.echo(click.style(f"\n{len(changes)} pending change(s):", fg='blue'))
    for change in changes:
        click.echo("  " + describe_change(change))


def print_sync_report(report: SyncReport) -> None:
    """Print the results of a reconciliation pass"""
    if report.cancelled:
        click.echo(click.style("\nSync cancelled, nothing was sent", fg='yellow'))
        return

    click.echo("\n" + click.style("Results:", fg='blue'))
    if report.pulled:
        click.echo(click.style("Pulled: ", fg='blue') +
                   click.style(str(report.pulled), fg='cyan') +
                   click.style(" books", fg='blue'))
    click.echo(click.style("Applied: ", fg='blue') +
               click.style(str(len(report.applied)), fg='green') +
               click.style(" changes", fg='blue'))

    if report.failed:
        click.echo(click.style("\nFailed changes (kept for the next sync):", fg='red'))
        for failure in report.failed:
            click.echo("  " + describe_change(failure.change))
            click.echo(click.style(f"    {failure.status_code}: {failure.error.message}", fg='red'))
    if report.skipped:
        click.echo(click.style(f"\nHeld back {len(report.skipped)} change(s) queued behind a failure", fg='yellow'))


def print_book(record: Dict[str, Any], verbose: bool = False) -> None:
    authors = ', '.join(record.get('authors') or [])
    line = (click.style(record['isbn'], fg='cyan') + "  " +
            click.style(record.get('title') or '', fg='white'))
    if authors:
        line += click.style(f" by {authors}", fg='blue')
    if record.get('isFavourite'):
        line += click.style(" *", fg='yellow')
    loan = record.get('loanStatus') or {}
    if loan.get('isLoaned'):
        line += click.style(f" [loaned to {loan.get('loanedTo') or 'someone'}]", fg='magenta')
    click.echo(line)

    if verbose:
        for key in ('publisher', 'publishingYear', 'genre', 'condition', 'physicalLocation', 'ownerId'):
            if record.get(key) is not None:
                click.echo(f"    {key}: {record[key]}")
