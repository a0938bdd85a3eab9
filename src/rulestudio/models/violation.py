"""違反・解析結果のデータモデル。"""

import uuid
from datetime import UTC, datetime
from typing import Literal

from pydantic import BaseModel, Field

from rulestudio.models.rule import Severity

GroupingOption = Literal["none", "file", "rule", "severity"]
SortOption = Literal["file", "rule", "severity", "date", "line"]
SortOrder = Literal["ascending", "descending"]


class Violation(BaseModel):
    """swiftlint lint が報告した1件の違反。"""

    id: str = Field(default_factory=lambda: str(uuid.uuid4()))
    rule_id: str
    file_path: str
    line: int
    column: int | None = None
    severity: Severity = "warning"
    message: str = ""
    detected_at: datetime = Field(default_factory=lambda: datetime.now(UTC))
    resolved_at: datetime | None = None
    suppressed: bool = False
    suppression_reason: str | None = None


class ViolationFilter(BaseModel):
    """違反検索の条件。空の条件は絞り込みを行わない。"""

    rule_ids: list[str] | None = None
    file_paths: list[str] | None = None
    severities: list[Severity] | None = None
    suppressed_only: bool = False
    date_range: tuple[datetime, datetime] | None = None


class AnalysisResult(BaseModel):
    """ワークスペース解析の結果。"""

    violations: list[Violation] = Field(default_factory=list)
    files_analyzed: int = 0
    duration: float = 0.0
    started_at: datetime
    completed_at: datetime
    config_hash: str | None = None

    @property
    def error_count(self) -> int:
        return sum(1 for v in self.violations if v.severity == "error")

    @property
    def warning_count(self) -> int:
        return sum(1 for v in self.violations if v.severity == "warning")
