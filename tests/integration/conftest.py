import os
import uuid
from collections.abc import Generator
from pathlib import Path
from typing import Any

import psycopg
import pytest
from psycopg_pool import ConnectionPool

from medtranscribe.config.settings import Settings
from medtranscribe.database.connection import create_pool
from medtranscribe.database.repositories.report_repository import ReportRepository

SCHEMA = Path(__file__).with_name("schema.sql")


def _test_settings() -> Settings:
    os.environ.setdefault("DB_DATABASE", "medtranscribe_test")
    return Settings()


@pytest.fixture(scope="session")
def test_settings() -> Settings:
    return _test_settings()


@pytest.fixture(scope="session")
def integration_pool(test_settings: Settings) -> Generator[ConnectionPool, None, None]:
    pool = create_pool(test_settings)
    try:
        pool.wait(timeout=5)
    except Exception as e:
        pool.close()
        pytest.skip(f"PostgreSQL test DB not available: {e}. Set DB_* env to run.")
    with pool.connection() as conn:
        conn.execute(SCHEMA.read_text())
        conn.commit()
    try:
        yield pool
    finally:
        pool.close()


@pytest.fixture
def db_conn(integration_pool: ConnectionPool) -> Generator[psycopg.Connection[Any], None, None]:
    with integration_pool.connection() as conn:
        yield conn


@pytest.fixture
def repo(integration_pool: ConnectionPool) -> ReportRepository:
    return ReportRepository(integration_pool)


@pytest.fixture
def integration_cleanup(
    integration_pool: ConnectionPool,
) -> Generator[list[str], None, None]:
    cleanup: list[str] = []
    yield cleanup
    if not cleanup:
        return
    with integration_pool.connection() as conn:
        conn.execute("DELETE FROM reports WHERE id = ANY(%s::uuid[])", (cleanup,))
        conn.commit()


@pytest.fixture
def seed_report(
    db_conn: psycopg.Connection[Any],
    integration_cleanup: list[str],
):
    """Insert a report row; returns its id."""

    def _seed(
        owner_id: str = "u1",
        *,
        status: str = "draft",
        media_key: str | None = None,
        job_name: str | None = None,
        age_seconds: int = 0,
    ) -> str:
        record_id = str(uuid.uuid4())
        with db_conn.cursor() as cur:
            cur.execute(
                """
                INSERT INTO reports (id, owner_id, status, media_key, job_name,
                                     created_at, updated_at)
                VALUES (%s, %s, %s, %s, %s,
                        NOW() - make_interval(secs => %s),
                        NOW() - make_interval(secs => %s))
                """,
                (record_id, owner_id, status, media_key, job_name, age_seconds, age_seconds),
            )
        db_conn.commit()
        integration_cleanup.append(record_id)
        return record_id

    return _seed
