from collections.abc import Iterable, Mapping
from typing import Any, ClassVar

from psycopg import sql
from psycopg.rows import dict_row
from psycopg.types.json import Jsonb
from psycopg_pool import ConnectionPool

from medtranscribe.database.models import RecordStatus, ReportRecord

_COLUMNS = (
    "id, owner_id, media_key, job_name, status, transcript, annotation, "
    "failure_kind, error_reason, created_at, updated_at"
)


class ReportRepository:
    """Database operations for the reports table.

    Every write is keyed by (id, owner_id). Reads by a single secondary key
    exist so background triggers can recover the true owner of a record.
    """

    UPDATABLE_COLUMNS: ClassVar[frozenset[str]] = frozenset(
        {"job_name", "transcript", "annotation", "failure_kind", "error_reason"}
    )
    JSON_COLUMNS: ClassVar[frozenset[str]] = frozenset({"annotation"})

    def __init__(self, pool: ConnectionPool) -> None:
        self._pool = pool

    def find(self, record_id: str, owner_id: str) -> ReportRecord | None:
        """Find a record by its full key."""
        return self._fetch_one(
            f"SELECT {_COLUMNS} FROM reports WHERE id = %s AND owner_id = %s",
            (record_id, owner_id),
        )

    def find_by_id(self, record_id: str) -> ReportRecord | None:
        """Find a record by id alone (ids are UUIDs, unique across owners)."""
        return self._fetch_one(
            f"SELECT {_COLUMNS} FROM reports WHERE id = %s",
            (record_id,),
        )

    def find_by_job_name(self, job_name: str) -> ReportRecord | None:
        """Find the record a transcription job was submitted for."""
        return self._fetch_one(
            f"SELECT {_COLUMNS} FROM reports WHERE job_name = %s",
            (job_name,),
        )

    def find_by_media_key(self, owner_id: str, media_key: str) -> ReportRecord | None:
        """Find the record the uploader created for an audio object."""
        return self._fetch_one(
            f"SELECT {_COLUMNS} FROM reports WHERE owner_id = %s AND media_key = %s",
            (owner_id, media_key),
        )

    def list_by_owner(self, owner_id: str) -> list[ReportRecord]:
        """List an owner's records, most recent first."""
        return self._fetch_all(
            f"""
            SELECT {_COLUMNS} FROM reports
            WHERE owner_id = %s
            ORDER BY created_at DESC
            """,
            (owner_id,),
        )

    def list_stale_processing(self, older_than_seconds: float) -> list[ReportRecord]:
        """List processing records with a job that have not changed for a while."""
        return self._fetch_all(
            f"""
            SELECT {_COLUMNS} FROM reports
            WHERE status = 'processing'
              AND job_name IS NOT NULL
              AND updated_at < NOW() - make_interval(secs => %s)
            ORDER BY updated_at
            """,
            (older_than_seconds,),
        )

    def apply_update(
        self,
        record_id: str,
        owner_id: str,
        status: RecordStatus,
        allowed_from: Iterable[RecordStatus],
        fields: Mapping[str, Any],
    ) -> ReportRecord | None:
        """Conditionally set status and the given fields in one statement.

        The row is only touched if its current status is in allowed_from.
        updated_at always moves forward, even within the same clock tick.

        Returns:
            The updated record, or None when no row matched.
        """
        unknown = set(fields) - self.UPDATABLE_COLUMNS
        if unknown:
            raise ValueError(f"Columns not updatable: {sorted(unknown)}")

        assignments = [sql.SQL("status = %s")]
        params: list[Any] = [status.value]
        for column, value in fields.items():
            assignments.append(sql.SQL("{} = %s").format(sql.Identifier(column)))
            if column in self.JSON_COLUMNS and value is not None:
                value = Jsonb(value)
            params.append(value)
        assignments.append(
            sql.SQL(
                "updated_at = GREATEST(NOW(), updated_at + INTERVAL '1 millisecond')"
            )
        )
        params.extend(
            [record_id, owner_id, [s.value for s in allowed_from]]
        )

        query = sql.SQL(
            "UPDATE reports SET {assignments} "
            "WHERE id = %s AND owner_id = %s AND status = ANY(%s) "
            "RETURNING {columns}"
        ).format(
            assignments=sql.SQL(", ").join(assignments),
            columns=sql.SQL(_COLUMNS),
        )

        with self._pool.connection() as conn:
            with conn.cursor(row_factory=dict_row) as cur:
                cur.execute(query, params)
                row = cur.fetchone()
            conn.commit()

        return _to_record(row) if row is not None else None

    def _fetch_one(self, query: str, params: tuple[Any, ...]) -> ReportRecord | None:
        with self._pool.connection() as conn:
            with conn.cursor(row_factory=dict_row) as cur:
                cur.execute(query, params)
                row = cur.fetchone()
        return _to_record(row) if row is not None else None

    def _fetch_all(self, query: str, params: tuple[Any, ...]) -> list[ReportRecord]:
        with self._pool.connection() as conn:
            with conn.cursor(row_factory=dict_row) as cur:
                cur.execute(query, params)
                rows = cur.fetchall()
        return [_to_record(row) for row in rows]


def _to_record(row: Mapping[str, Any]) -> ReportRecord:
    return ReportRecord(
        id=str(row["id"]),
        owner_id=row["owner_id"],
        status=RecordStatus(row["status"]),
        media_key=row["media_key"],
        job_name=row["job_name"],
        transcript=row["transcript"],
        annotation=row["annotation"],
        failure_kind=row["failure_kind"],
        error_reason=row["error_reason"],
        created_at=row["created_at"],
        updated_at=row["updated_at"],
    )
