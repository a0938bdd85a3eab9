"""swiftlint lint でワークスペースを解析し、違反を保存するサービス。"""

import hashlib
import json
import logging
import time
from datetime import UTC, datetime
from pathlib import Path
from typing import Any

from rulestudio.models.configuration import Workspace
from rulestudio.models.errors import AnalysisFailedError, InvalidLintOutputError, StudioError
from rulestudio.models.violation import AnalysisResult, Violation
from rulestudio.services.swiftlint_cli import SwiftLintCLI
from rulestudio.storage.violations import ViolationStorage

logger = logging.getLogger(__name__)


def _relative_path(file_path: str, workspace_path: Path) -> str:
    path = Path(file_path)
    if not path.is_absolute():
        return file_path
    try:
        return str(path.resolve().relative_to(workspace_path.resolve()))
    except ValueError:
        return file_path


def parse_lint_output(output: str, workspace_path: Path, detected_at: datetime | None = None) -> list[Violation]:
    """``swiftlint lint --reporter json`` の出力を違反リストに変換する。

    必須項目（file, line, rule_id）が欠けた要素は読み飛ばす。

    Raises:
        InvalidLintOutputError: JSON配列として解釈できない場合。
    """
    if not output.strip():
        return []
    try:
        items = json.loads(output)
    except json.JSONDecodeError as e:
        raise InvalidLintOutputError(str(e)) from e
    if not isinstance(items, list):
        raise InvalidLintOutputError("expected a JSON array")

    detected_at = detected_at or datetime.now(UTC)
    violations: list[Violation] = []
    for item in items:
        if not isinstance(item, dict):
            continue
        file_path = item.get("file")
        line = item.get("line")
        rule_id = item.get("rule_id") or item.get("type")
        if not file_path or not isinstance(line, int) or not rule_id:
            continue
        severity = str(item.get("severity", "warning")).lower()
        column: Any = item.get("character")
        violations.append(
            Violation(
                rule_id=str(rule_id),
                file_path=_relative_path(str(file_path), workspace_path),
                line=line,
                column=column if isinstance(column, int) else None,
                severity="error" if severity == "error" else "warning",
                message=str(item.get("reason") or item.get("message") or ""),
                detected_at=detected_at,
            )
        )
    return violations


def config_hash(config_path: Path | None) -> str | None:
    """設定ファイルのSHA-256。ファイルが無い場合はNone。"""
    if config_path is None or not config_path.exists():
        return None
    return hashlib.sha256(config_path.read_bytes()).hexdigest()


class WorkspaceAnalyzer:
    """ワークスペース全体を lint し、結果を ViolationStorage に保存する。"""

    def __init__(self, cli: SwiftLintCLI, storage: ViolationStorage) -> None:
        self._cli = cli
        self._storage = storage
        self.is_analyzing = False

    async def analyze(self, workspace: Workspace, config_path: Path | None = None) -> AnalysisResult:
        """ワークスペースを解析する。

        Args:
            workspace: 解析対象。
            config_path: 使用する設定ファイル。Noneの場合はワークスペースの設定。

        Raises:
            AnalysisFailedError: lint の実行・解析・保存のいずれかに失敗した場合。
        """
        self.is_analyzing = True
        started_at = datetime.now(UTC)
        started = time.monotonic()
        try:
            effective_config = config_path or workspace.config_path
            if effective_config is not None and not effective_config.exists():
                effective_config = None

            output = await self._cli.execute_lint_command(effective_config, workspace.path)
            violations = parse_lint_output(output, workspace.path, detected_at=started_at)
            await self._storage.store_violations(violations, workspace.id)

            result = AnalysisResult(
                violations=violations,
                files_analyzed=len({v.file_path for v in violations}),
                duration=time.monotonic() - started,
                started_at=started_at,
                completed_at=datetime.now(UTC),
                config_hash=config_hash(effective_config),
            )
            logger.info(
                "Analyzed %s: %d violations in %d files (%.2fs)",
                workspace.name,
                len(violations),
                result.files_analyzed,
                result.duration,
            )
            return result
        except AnalysisFailedError:
            raise
        except (StudioError, OSError) as e:
            raise AnalysisFailedError(str(e)) from e
        finally:
            self.is_analyzing = False
