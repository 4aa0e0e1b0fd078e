"""
SQLite-backed store for canonical call rows using aiosqlite.

Keeps every upload's calls (all dates) so a result can later be rebuilt
with ``build_parse_result_from_records`` for another date or different
office hours, without the original file.
"""

from __future__ import annotations

import aiosqlite
from datetime import date, datetime
from pathlib import Path
from typing import Iterable, Optional

import structlog

from callgaps.models import Direction, SourceFormat, StoredCallRecord, UploadInfo

log = structlog.get_logger(__name__)

_SCHEMA = """
CREATE TABLE IF NOT EXISTS call_gap_uploads (
    id               INTEGER PRIMARY KEY AUTOINCREMENT,
    file_name        TEXT NOT NULL,
    source_format    TEXT NOT NULL,
    raw_call_count   INTEGER DEFAULT 0,
    created_at       TEXT NOT NULL
);

CREATE TABLE IF NOT EXISTS call_gap_records (
    id               INTEGER PRIMARY KEY AUTOINCREMENT,
    upload_id        INTEGER NOT NULL REFERENCES call_gap_uploads(id),
    agent_name       TEXT NOT NULL,
    call_start       TEXT NOT NULL,
    call_date        TEXT NOT NULL,
    duration_seconds INTEGER DEFAULT 0,
    direction        TEXT NOT NULL,
    contact_name     TEXT DEFAULT '',
    contact_phone    TEXT DEFAULT '',
    result           TEXT DEFAULT '',
    UNIQUE(agent_name, call_start, contact_phone, direction)
);

CREATE INDEX IF NOT EXISTS idx_call_gap_records_upload ON call_gap_records(upload_id);
CREATE INDEX IF NOT EXISTS idx_call_gap_records_date ON call_gap_records(call_date);
"""


class CallGapStore:
    """Async SQLite wrapper for persisted call-gap uploads."""

    def __init__(self, db_path: Path):
        self._path = db_path
        self._db: Optional[aiosqlite.Connection] = None

    async def connect(self) -> None:
        self._path.parent.mkdir(parents=True, exist_ok=True)
        self._db = await aiosqlite.connect(str(self._path))
        self._db.row_factory = aiosqlite.Row
        await self._db.executescript(_SCHEMA)
        await self._db.commit()

    async def close(self) -> None:
        if self._db:
            await self._db.close()

    # ── Uploads ─────────────────────────────────────────────────

    async def save_upload(
        self,
        file_name: str,
        source_format: SourceFormat,
        raw_call_count: int,
        records: Iterable[StoredCallRecord],
    ) -> tuple[int, int]:
        """
        Store an upload and its rows.

        Rows already stored (same agent, start, contact phone and direction,
        from any upload) are skipped.

        Returns
        -------
        (upload_id, duplicates_skipped)
        """
        rows = list(records)
        now = datetime.utcnow().isoformat()
        cursor = await self._db.execute(
            """
            INSERT INTO call_gap_uploads (file_name, source_format, raw_call_count, created_at)
            VALUES (?, ?, ?, ?)
            """,
            (file_name, source_format.value, raw_call_count, now),
        )
        upload_id = cursor.lastrowid

        before = self._db.total_changes
        await self._db.executemany(
            """
            INSERT OR IGNORE INTO call_gap_records
                (upload_id, agent_name, call_start, call_date, duration_seconds,
                 direction, contact_name, contact_phone, result)
            VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?)
            """,
            [
                (
                    upload_id,
                    r.agent_name,
                    r.call_start.isoformat(),
                    r.call_date.isoformat(),
                    r.duration_seconds,
                    r.direction.value,
                    r.contact_name,
                    r.contact_phone,
                    r.result,
                )
                for r in rows
            ],
        )
        inserted = self._db.total_changes - before
        await self._db.commit()

        skipped = len(rows) - inserted
        log.info(
            "upload_saved",
            upload_id=upload_id,
            file=file_name,
            records=inserted,
            duplicates_skipped=skipped,
        )
        return upload_id, skipped

    async def list_uploads(self) -> list[UploadInfo]:
        cursor = await self._db.execute(
            """
            SELECT u.*, COUNT(r.id) AS record_count
            FROM call_gap_uploads u
            LEFT JOIN call_gap_records r ON r.upload_id = u.id
            GROUP BY u.id
            ORDER BY u.created_at DESC, u.id DESC
            """
        )
        rows = await cursor.fetchall()
        return [
            UploadInfo(
                id=row["id"],
                file_name=row["file_name"],
                source_format=SourceFormat(row["source_format"]),
                raw_call_count=row["raw_call_count"],
                record_count=row["record_count"],
                created_at=datetime.fromisoformat(row["created_at"]),
            )
            for row in rows
        ]

    async def get_records(
        self, upload_id: int
    ) -> tuple[Optional[SourceFormat], list[StoredCallRecord]]:
        """Source format and rows of one upload; (None, []) if it doesn't exist."""
        cursor = await self._db.execute(
            "SELECT source_format FROM call_gap_uploads WHERE id = ?",
            (upload_id,),
        )
        upload = await cursor.fetchone()
        if upload is None:
            return None, []

        cursor = await self._db.execute(
            """
            SELECT * FROM call_gap_records
            WHERE upload_id = ?
            ORDER BY call_start ASC, id ASC
            """,
            (upload_id,),
        )
        rows = await cursor.fetchall()
        return SourceFormat(upload["source_format"]), [self._row_to_record(r) for r in rows]

    # ── Helpers ─────────────────────────────────────────────────

    @staticmethod
    def _row_to_record(row) -> StoredCallRecord:
        return StoredCallRecord(
            agent_name=row["agent_name"],
            call_start=datetime.fromisoformat(row["call_start"]),
            call_date=date.fromisoformat(row["call_date"]),
            duration_seconds=row["duration_seconds"],
            direction=Direction(row["direction"]),
            contact_name=row["contact_name"],
            contact_phone=row["contact_phone"],
            result=row["result"],
        )
