"""SQLiteベースの違反ストレージ。"""

import logging
import sqlite3
from datetime import UTC, datetime
from pathlib import Path
from typing import Any

from rulestudio.models.errors import StorageError
from rulestudio.models.violation import Violation, ViolationFilter

logger = logging.getLogger(__name__)

_SCHEMA = """
CREATE TABLE IF NOT EXISTS violations (
    id TEXT PRIMARY KEY,
    workspace_id TEXT NOT NULL,
    rule_id TEXT NOT NULL,
    file_path TEXT NOT NULL,
    line INTEGER NOT NULL,
    column_number INTEGER,
    severity TEXT NOT NULL,
    message TEXT NOT NULL,
    detected_at TEXT NOT NULL,
    resolved_at TEXT,
    suppressed INTEGER NOT NULL DEFAULT 0,
    suppression_reason TEXT
);
CREATE INDEX IF NOT EXISTS idx_violations_workspace ON violations(workspace_id);
CREATE INDEX IF NOT EXISTS idx_violations_rule ON violations(rule_id);
CREATE INDEX IF NOT EXISTS idx_violations_file ON violations(file_path);
CREATE INDEX IF NOT EXISTS idx_violations_detected ON violations(detected_at);
CREATE INDEX IF NOT EXISTS idx_violations_workspace_rule ON violations(workspace_id, rule_id);
"""

_COLUMNS = (
    "id, rule_id, file_path, line, column_number, severity, message, "
    "detected_at, resolved_at, suppressed, suppression_reason"
)


def _to_iso(value: datetime | None) -> str | None:
    if value is None:
        return None
    if value.tzinfo is None:
        value = value.replace(tzinfo=UTC)
    return value.astimezone(UTC).isoformat()


def _row_to_violation(row: sqlite3.Row) -> Violation:
    return Violation(
        id=row["id"],
        rule_id=row["rule_id"],
        file_path=row["file_path"],
        line=row["line"],
        column=row["column_number"],
        severity=row["severity"],
        message=row["message"],
        detected_at=datetime.fromisoformat(row["detected_at"]),
        resolved_at=datetime.fromisoformat(row["resolved_at"]) if row["resolved_at"] else None,
        suppressed=bool(row["suppressed"]),
        suppression_reason=row["suppression_reason"],
    )


def _placeholders(count: int) -> str:
    return ", ".join("?" for _ in range(count))


def _build_where(violation_filter: ViolationFilter | None, workspace_id: str | None) -> tuple[str, list[Any]]:
    clauses: list[str] = []
    params: list[Any] = []
    if workspace_id is not None:
        clauses.append("workspace_id = ?")
        params.append(workspace_id)
    if violation_filter is not None:
        if violation_filter.rule_ids:
            clauses.append(f"rule_id IN ({_placeholders(len(violation_filter.rule_ids))})")
            params.extend(violation_filter.rule_ids)
        if violation_filter.file_paths:
            clauses.append(f"file_path IN ({_placeholders(len(violation_filter.file_paths))})")
            params.extend(violation_filter.file_paths)
        if violation_filter.severities:
            clauses.append(f"severity IN ({_placeholders(len(violation_filter.severities))})")
            params.extend(violation_filter.severities)
        if violation_filter.suppressed_only:
            clauses.append("suppressed = 1")
        if violation_filter.date_range is not None:
            start, end = violation_filter.date_range
            clauses.append("detected_at BETWEEN ? AND ?")
            params.extend([_to_iso(start), _to_iso(end)])
    where = f" WHERE {' AND '.join(clauses)}" if clauses else ""
    return where, params


class ViolationStorage:
    """ワークスペース単位で違反を保存・検索・更新する。

    db_path に ``":memory:"`` を渡すとインメモリDBになる。
    """

    def __init__(self, db_path: Path | str) -> None:
        if str(db_path) != ":memory:":
            Path(db_path).parent.mkdir(parents=True, exist_ok=True)
        try:
            self._conn = sqlite3.connect(str(db_path), check_same_thread=False)
            self._conn.row_factory = sqlite3.Row
            self._conn.executescript(_SCHEMA)
        except sqlite3.Error as e:
            raise StorageError(f"Failed to open violation database {db_path}: {e}") from e

    def close(self) -> None:
        self._conn.close()

    async def store_violations(self, violations: list[Violation], workspace_id: str) -> None:
        """ワークスペースの違反を丸ごと置き換える。"""
        rows = [
            (
                v.id,
                workspace_id,
                v.rule_id,
                v.file_path,
                v.line,
                v.column,
                v.severity,
                v.message,
                _to_iso(v.detected_at),
                _to_iso(v.resolved_at),
                int(v.suppressed),
                v.suppression_reason,
            )
            for v in violations
        ]
        try:
            with self._conn:
                self._conn.execute("DELETE FROM violations WHERE workspace_id = ?", (workspace_id,))
                self._conn.executemany(
                    "INSERT OR REPLACE INTO violations (id, workspace_id, rule_id, file_path, line, column_number, "
                    "severity, message, detected_at, resolved_at, suppressed, suppression_reason) "
                    f"VALUES ({_placeholders(12)})",
                    rows,
                )
        except sqlite3.Error as e:
            raise StorageError(f"Failed to store violations: {e}") from e
        logger.debug("Stored %d violations for workspace %s", len(rows), workspace_id)

    async def fetch_violations(
        self,
        violation_filter: ViolationFilter | None = None,
        workspace_id: str | None = None,
    ) -> list[Violation]:
        """条件に合う違反を検出日時の新しい順に返す。"""
        where, params = _build_where(violation_filter, workspace_id)
        try:
            cursor = self._conn.execute(
                f"SELECT {_COLUMNS} FROM violations{where} ORDER BY detected_at DESC, file_path, line",
                params,
            )
            return [_row_to_violation(row) for row in cursor.fetchall()]
        except sqlite3.Error as e:
            raise StorageError(f"Failed to fetch violations: {e}") from e

    async def get_violation_count(
        self,
        violation_filter: ViolationFilter | None = None,
        workspace_id: str | None = None,
    ) -> int:
        where, params = _build_where(violation_filter, workspace_id)
        try:
            row = self._conn.execute(f"SELECT COUNT(*) FROM violations{where}", params).fetchone()
        except sqlite3.Error as e:
            raise StorageError(f"Failed to count violations: {e}") from e
        return int(row[0])

    async def suppress_violations(self, violation_ids: list[str], reason: str) -> None:
        if not violation_ids:
            return
        self._update(
            f"UPDATE violations SET suppressed = 1, suppression_reason = ? WHERE id IN ({_placeholders(len(violation_ids))})",
            [reason, *violation_ids],
        )

    async def resolve_violations(self, violation_ids: list[str]) -> None:
        if not violation_ids:
            return
        self._update(
            f"UPDATE violations SET resolved_at = ? WHERE id IN ({_placeholders(len(violation_ids))})",
            [_to_iso(datetime.now(UTC)), *violation_ids],
        )

    async def delete_violations(self, workspace_id: str) -> None:
        self._update("DELETE FROM violations WHERE workspace_id = ?", [workspace_id])

    def _update(self, sql: str, params: list[Any]) -> None:
        try:
            with self._conn:
                self._conn.execute(sql, params)
        except sqlite3.Error as e:
            raise StorageError(f"Failed to update violations: {e}") from e
