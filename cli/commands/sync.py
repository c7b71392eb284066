import asyncio
import sys
from typing import List, Optional

import click

from magpie.config import Settings
from magpie.errors import NetworkError
from magpie.offline.client import RemoteCatalogClient
from magpie.offline.reconciler import SyncReconciler, SyncReport
from magpie.offline.store import LAST_SYNC_KEY, ChangeEntry, LocalStore
from cli.utils import print_changes, print_sync_report


@click.group()
def sync():
    """Offline change log and synchronization commands"""
    pass


async def _run_sync(store: LocalStore, settings: Settings, token: Optional[str], yes: bool) -> SyncReport:
    def review(changes: List[ChangeEntry]) -> bool:
        print_changes(changes)
        return yes or click.confirm("\nSend these changes to the catalog?", default=True)

    async with RemoteCatalogClient(settings.api_url, token=token, timeout=settings.http_timeout) as remote:
        reconciler = SyncReconciler(store, remote)
        return await reconciler.sync(confirm=review)


@sync.command()
@click.option('--yes', is_flag=True, help='Send pending changes without asking')
@click.option('--token', default=None, help='Identity token (defaults to MAGPIE_TOKEN)')
def run(yes: bool, token: Optional[str]):
    """Reconcile the local catalog with the remote one

    Pending changes are listed for review first. With nothing pending, every
    visible book is pulled from the remote catalog instead.

    Example:
        magpie sync run          # Review, then send
        magpie sync run --yes    # Send without asking
    """
    settings = Settings()
    store = LocalStore(settings.local_db_path)
    try:
        report = asyncio.run(_run_sync(store, settings, token or settings.token, yes))
    except NetworkError as e:
        click.echo(click.style(f"\nCould not reach {settings.api_url}: {e}", fg='red'), err=True)
        click.echo(click.style("Pending changes are kept and will be sent next time.", fg='yellow'))
        sys.exit(1)
    finally:
        store.database.dispose()

    print_sync_report(report)
    if not report.ok and not report.cancelled:
        sys.exit(1)


@sync.command()
def pending():
    """List changes waiting to be sent"""
    settings = Settings()
    store = LocalStore(settings.local_db_path)
    try:
        print_changes(store.list_unsynced())
    finally:
        store.database.dispose()


@sync.command()
def status():
    """Show the last sync time and pending counts"""
    settings = Settings()
    store = LocalStore(settings.local_db_path)
    try:
        _print_status(store, settings)
    finally:
        store.database.dispose()


def _print_status(store: LocalStore, settings: Settings):
    last_sync = store.get_metadata(LAST_SYNC_KEY)

    click.echo(click.style("Local catalog: ", fg='blue') + click.style(settings.local_db_path, fg='cyan'))
    click.echo(click.style("Remote catalog: ", fg='blue') + click.style(settings.api_url, fg='cyan'))
    click.echo(click.style("Last sync: ", fg='blue') +
               click.style(last_sync or 'never', fg='cyan' if last_sync else 'yellow'))
    click.echo(click.style("Books: ", fg='blue') + click.style(str(len(store.list_records())), fg='cyan'))
    click.echo(click.style("Pending changes: ", fg='blue') +
               click.style(str(len(store.list_unsynced())), fg='cyan'))
    unsynced_books = store.pending_isbns()
    if unsynced_books:
        click.echo(click.style("Books with local edits: ", fg='blue') +
                   click.style(', '.join(unsynced_books), fg='yellow'))
