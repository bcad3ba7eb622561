from psycopg_pool import ConnectionPool

from medtranscribe.config.settings import Settings


def build_conninfo(settings: Settings) -> str:
    """Build a libpq connection string from settings."""
    return (
        f"host={settings.db_host} "
        f"port={settings.db_port} "
        f"dbname={settings.db_database} "
        f"user={settings.db_username} "
        f"password={settings.db_password}"
    )


def create_pool(settings: Settings) -> ConnectionPool:
    """Open a connection pool. The caller owns it and must close it on shutdown."""
    return ConnectionPool(build_conninfo(settings), min_size=1, max_size=10, open=True)
