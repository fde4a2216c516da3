"""TeamPulse CLI tool (teampulse)."""

import typer

app = typer.Typer(name="teampulse", help="TeamPulse CLI")
db_app = typer.Typer(help="Database management commands")
sessions_app = typer.Typer(help="Session store maintenance")
app.add_typer(db_app, name="db")
app.add_typer(sessions_app, name="sessions")


def _database_url() -> str:
    from teampulse.core.config import settings

    if not settings.DATABASE_URL:
        typer.echo("DATABASE_URL is not set; nothing to do for the in-memory store", err=True)
        raise typer.Exit(code=1)
    return settings.DATABASE_URL


def _create_mysql_database(url) -> None:
    import pymysql

    conn = pymysql.connect(
        host=url.host or "localhost",
        port=url.port or 3306,
        user=url.username,
        password=url.password or "",
    )
    try:
        cursor = conn.cursor()
        cursor.execute(
            f"CREATE DATABASE IF NOT EXISTS `{url.database}` "
            "CHARACTER SET utf8mb4 COLLATE utf8mb4_unicode_ci"
        )
        conn.commit()
        typer.echo(f"Database '{url.database}' created (or already exists)")
    finally:
        conn.close()


@db_app.command("create")
def db_create():
    """Create the MySQL database if needed, then all tables."""
    from sqlalchemy.engine import make_url

    import teampulse.models  # noqa: F401  registers every table
    from teampulse.db.base import Base
    from teampulse.db.session import create_db_engine

    url = make_url(_database_url())
    if url.get_backend_name() == "mysql":
        _create_mysql_database(url)

    engine = create_db_engine(url.render_as_string(hide_password=False))
    Base.metadata.create_all(bind=engine)
    typer.echo(f"Tables ready: {', '.join(sorted(Base.metadata.tables))}")


@db_app.command("seed-admin")
def db_seed_admin(
    email: str = typer.Option(None, help="Admin email (default: ADMIN_EMAIL)"),
    password: str = typer.Option(None, help="Admin password (default: ADMIN_PASSWORD)"),
):
    """Create an approved admin account, or promote an existing one."""
    from teampulse.core.config import settings
    from teampulse.services.auth_service import auth_service
    from teampulse.storage import build_backends

    storage, _ = build_backends(_database_url())
    admin, created = auth_service.ensure_admin(
        storage, email or settings.ADMIN_EMAIL, password or settings.ADMIN_PASSWORD
    )
    if created:
        typer.echo(f"Created admin: {admin.email}")
    else:
        typer.echo(f"Promoted existing user to admin: {admin.email}")


@sessions_app.command("prune")
def sessions_prune():
    """Delete expired sessions."""
    from teampulse.storage import build_backends

    _, session_store = build_backends(_database_url())
    removed = session_store.prune_expired()
    typer.echo(f"Removed {removed} expired session(s)")


@app.command("serve")
def serve(
    host: str = typer.Option("0.0.0.0", help="Host"),
    port: int = typer.Option(8000, help="Port"),
    reload: bool = typer.Option(False, help="Auto-reload"),
):
    """Start the API server."""
    import uvicorn
    uvicorn.run("teampulse.main:app", host=host, port=port, reload=reload)


if __name__ == "__main__":
    app()
