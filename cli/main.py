# cli/main.py
import click

from magpie.config import Settings
from magpie.logging_config import configure_logging
from .commands.server import server
from .commands.sync import sync
from .commands.book import book


@click.group()
@click.option('--log-level', default=None, help='Override LOG_LEVEL for this run')
def cli(log_level):
    """Magpie catalog CLI"""
    configure_logging(log_level or Settings().log_level)


cli.add_command(server)
cli.add_command(sync)
cli.add_command(book)


def main():
    """Entry point for the CLI"""
    cli()


if __name__ == '__main__':
    main()
