"""Flask CLI commands for Habitline."""

from __future__ import annotations

import click
from sqlalchemy.engine import make_url


def init_app(app) -> None:
    """Register CLI commands on the Flask app."""

    @app.cli.command("habitline-init-db")
    def habitline_init_db() -> None:
        """Create database tables if they do not exist."""

        from .extensions import get_state
        from .infra.database import init_database

        state = get_state()
        if state.engine is None:
            click.echo("App is using an externally managed session factory; nothing to do.")
            return
        init_database(state.engine)
        url = make_url(state.config.DATABASE_URL).render_as_string(hide_password=True)
        click.echo(f"Database ready: {url}")
