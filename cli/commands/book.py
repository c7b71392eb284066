import click
from contextlib import contextmanager
from datetime import datetime, UTC
from typing import Iterator, Optional, Tuple

from magpie.config import Settings
from magpie.errors import CatalogError
from magpie.offline.store import LocalStore
from cli.utils import print_book


@contextmanager
def _store() -> Iterator[LocalStore]:
    store = LocalStore(Settings().local_db_path)
    try:
        yield store
    finally:
        store.database.dispose()


def _fail(error: CatalogError) -> None:
    click.echo(click.style(f"Error: {error.message}", fg='red'), err=True)
    raise SystemExit(1)


@click.group()
def book():
    """Offline book commands, queued for the next sync"""
    pass


@book.command()
@click.argument('isbn')
@click.option('--title', required=True)
@click.option('--author', 'authors', multiple=True, required=True, help='Repeat for several authors')
@click.option('--publisher', required=True)
@click.option('--year', 'publishing_year', required=True, type=int)
@click.option('--type', 'book_type', type=click.Choice(['reference', 'personal']), default='personal')
@click.option('--genre', default=None)
@click.option('--edition', default=None)
@click.option('--pages', default=None, type=int)
@click.option('--condition', type=click.Choice(['excellent', 'good', 'fair', 'poor']), default=None)
@click.option('--location', 'physical_location', default=None, help='Where the physical copy lives')
@click.option('--notes', default=None)
def add(isbn: str, title: str, authors: Tuple[str, ...], publisher: str, publishing_year: int,
        book_type: str, genre: Optional[str], edition: Optional[str], pages: Optional[int],
        condition: Optional[str], physical_location: Optional[str], notes: Optional[str]):
    """Add a book to the local catalog

    Example:
        magpie book add 9780132350884 --title "Clean Code" --author "Robert C. Martin" \\
            --publisher "Prentice Hall" --year 2008
    """
    with _store() as store:
        if store.get_record(isbn) is not None:
            click.echo(click.style(f"Book {isbn} is already in the local catalog, use 'edit'", fg='yellow'))
            return

        record = {
            'isbn': isbn,
            'title': title,
            'authors': list(authors),
            'publisher': publisher,
            'publishingYear': publishing_year,
            'type': book_type,
            'genre': genre,
            'edition': edition,
            'pages': pages,
            'condition': condition,
            'physicalLocation': physical_location,
            'notes': notes,
            'isFavourite': False,
            'loanStatus': {'isLoaned': False},
        }
        try:
            change = store.save_record({k: v for k, v in record.items() if v is not None})
        except CatalogError as e:
            _fail(e)
    click.echo(click.style(f"Added {change.isbn}, queued for sync", fg='green'))


@book.command()
@click.argument('isbn')
@click.option('--title', default=None)
@click.option('--author', 'authors', multiple=True, help='Replaces the author list')
@click.option('--publisher', default=None)
@click.option('--year', 'publishing_year', default=None, type=int)
@click.option('--genre', default=None)
@click.option('--condition', type=click.Choice(['excellent', 'good', 'fair', 'poor']), default=None)
@click.option('--location', 'physical_location', default=None)
@click.option('--notes', default=None)
def edit(isbn: str, title: Optional[str], authors: Tuple[str, ...], publisher: Optional[str],
         publishing_year: Optional[int], genre: Optional[str], condition: Optional[str],
         physical_location: Optional[str], notes: Optional[str]):
    """Edit a book in the local catalog"""
    changes = {
        'title': title,
        'authors': list(authors) or None,
        'publisher': publisher,
        'publishingYear': publishing_year,
        'genre': genre,
        'condition': condition,
        'physicalLocation': physical_location,
        'notes': notes,
    }
    changes = {k: v for k, v in changes.items() if v is not None}
    if not changes:
        click.echo(click.style("Nothing to change", fg='yellow'))
        return

    with _store() as store:
        record = store.get_record(isbn)
        if record is None:
            click.echo(click.style(f"Book {isbn} is not in the local catalog", fg='red'), err=True)
            raise SystemExit(1)
        store.save_record({**record, **changes})
    click.echo(click.style(f"Updated {isbn}: {', '.join(changes)}", fg='green'))


@book.command()
@click.argument('isbn')
@click.confirmation_option(prompt='Delete this book from the catalog?')
def delete(isbn: str):
    """Delete a book, locally now and remotely on the next sync"""
    try:
        with _store() as store:
            store.delete_record(isbn)
    except CatalogError as e:
        _fail(e)
    click.echo(click.style(f"Deleted {isbn}, queued for sync", fg='green'))


@book.command()
@click.argument('isbn')
@click.option('--off', is_flag=True, help='Remove the favourite mark instead')
def favourite(isbn: str, off: bool):
    """Mark a book as a favourite"""
    try:
        with _store() as store:
            store.set_favourite(isbn, not off)
    except CatalogError as e:
        _fail(e)
    click.echo(click.style(f"{isbn} {'unmarked' if off else 'marked'} as favourite", fg='green'))


@book.command()
@click.argument('isbn')
@click.option('--to', 'loaned_to', default=None, help='Who borrowed the book')
@click.option('--until', 'expected_return', default=None, type=click.DateTime(formats=['%Y-%m-%d']),
              help='Expected return date (YYYY-MM-DD)')
@click.option('--returned', is_flag=True, help='Mark the book as returned')
def loan(isbn: str, loaned_to: Optional[str], expected_return: Optional[datetime], returned: bool):
    """Record a loan, or a return with --returned

    Example:
        magpie book loan 9780132350884 --to "Sam" --until 2026-12-01
        magpie book loan 9780132350884 --returned
    """
    if returned:
        loan_status = {'isLoaned': False}
    elif loaned_to:
        loan_status = {
            'isLoaned': True,
            'loanedTo': loaned_to,
            'loanedDate': datetime.now(UTC).isoformat(),
        }
        if expected_return:
            loan_status['expectedReturnDate'] = expected_return.replace(tzinfo=UTC).isoformat()
    else:
        raise click.UsageError("Give --to NAME for a loan, or --returned")

    try:
        with _store() as store:
            store.update_loan_status(isbn, loan_status)
    except CatalogError as e:
        _fail(e)
    click.echo(click.style(f"Loan status of {isbn} updated", fg='green'))


@book.command(name='list')
@click.option('--query', '-q', default=None, help='Filter by title, author, genre or ISBN')
@click.option('--verbose', is_flag=True, help='Show more details')
def list_books(query: Optional[str], verbose: bool):
    """List books in the local catalog"""
    with _store() as store:
        records = store.search_records(query) if query else store.list_records()
    if not records:
        click.echo(click.style("No books found", fg='yellow'))
        return
    for record in records:
        print_book(record, verbose=verbose)
    click.echo(click.style(f"\n{len(records)} book(s)", fg='blue'))
