from collections.abc import Generator
from contextlib import contextmanager
from typing import Any

import psycopg

from intake.config.settings import Settings


def build_conninfo(settings: Settings) -> str:
    """Build a libpq connection string from settings."""
    return (
        f"host={settings.db_host} "
        f"port={settings.db_port} "
        f"dbname={settings.db_database} "
        f"user={settings.db_username} "
        f"password={settings.db_password}"
    )


@contextmanager
def get_connection(settings: Settings) -> Generator[psycopg.Connection[Any], None, None]:
    """Yield a short-lived connection. Policies are read once at startup,
    so no pool is kept open."""
    with psycopg.connect(build_conninfo(settings)) as conn:
        yield conn
