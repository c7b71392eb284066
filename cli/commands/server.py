import click

from magpie.config import Settings
from magpie.logging_config import configure_logging
from magpie.sa.database import Database


@click.group()
def server():
    """Catalog API server commands"""
    pass


@server.command()
def init_db():
    """Create the catalog schema"""
    settings = Settings()
    db = Database(settings.database_url)
    try:
        db.init_db()
        click.echo(click.style("Database initialized", fg='green'))
    finally:
        db.dispose()


@server.command()
@click.option('--host', default='127.0.0.1', help='Interface to bind')
@click.option('--port', default=8000, type=int, help='Port to listen on')
@click.option('--reload/--no-reload', default=False, help='Reload on code changes')
def run(host: str, port: int, reload: bool):
    """Run the catalog API with uvicorn

    Example:
        magpie server run --port 8080
    """
    import uvicorn

    settings = Settings()
    configure_logging(settings.log_level)
    click.echo(click.style(f"Serving the catalog on http://{host}:{port}/api", fg='blue'))
    uvicorn.run("api.main:create_app", factory=True, host=host, port=port, reload=reload)
