"""違反インスペクタ画面の状態とロジック。"""

import logging

from rulestudio.models.configuration import Workspace
from rulestudio.models.errors import StudioError
from rulestudio.models.violation import GroupingOption, SortOption, SortOrder, Violation, ViolationFilter
from rulestudio.services.workspace_analyzer import WorkspaceAnalyzer
from rulestudio.storage.violations import ViolationStorage

logger = logging.getLogger(__name__)

_SEVERITY_RANK = {"error": 0, "warning": 1}


class ViolationInspectorViewModel:
    """違反の読み込み・絞り込み・並び替え・選択と、抑制・解決の操作。"""

    def __init__(self, storage: ViolationStorage, analyzer: WorkspaceAnalyzer | None = None) -> None:
        self._storage = storage
        self._analyzer = analyzer

        self.workspace_id: str | None = None
        self.current_workspace: Workspace | None = None
        self.violations: list[Violation] = []

        self.search_text = ""
        self.selected_rule_ids: set[str] = set()
        self.selected_severities: set[str] = set()
        self.selected_files: set[str] = set()
        self.show_suppressed_only = False
        self.sort_option: SortOption = "file"
        self.sort_order: SortOrder = "ascending"
        self.grouping_option: GroupingOption = "none"

        self.selected_violation_id: str | None = None
        self.selected_violation_ids: set[str] = set()

        self.is_loading = False
        self.error: Exception | None = None

    @property
    def is_analyzing(self) -> bool:
        return self._analyzer is not None and self._analyzer.is_analyzing

    # --- 読み込み ---

    async def _reload_from_storage(self) -> None:
        if self.workspace_id is None:
            return
        self.violations = await self._storage.fetch_violations(ViolationFilter(), self.workspace_id)

    async def load_violations(self, workspace_id: str, workspace: Workspace | None = None) -> None:
        """ワークスペースの違反を読み込む。解析器があれば先に解析する。

        解析の失敗はログに残し、保存済みの違反の読み込みは続ける。
        """
        if self.is_loading:
            return
        self.is_loading = True
        self.error = None
        try:
            self.workspace_id = workspace_id
            if workspace is not None:
                self.current_workspace = workspace
            target = workspace or self.current_workspace
            if target is not None and self._analyzer is not None:
                try:
                    await self._analyzer.analyze(target, target.config_path)
                except StudioError as e:
                    logger.warning("Analysis of %s failed: %s", target.name, e)
            await self._reload_from_storage()
        except StudioError as e:
            self.error = e
        finally:
            self.is_loading = False

    async def refresh_violations(self) -> None:
        """再解析して読み込み直す。解析器が無い場合は保存済みの違反を読み直す。"""
        if self.workspace_id is None:
            return
        if self.current_workspace is None or self._analyzer is None:
            try:
                await self._reload_from_storage()
            except StudioError as e:
                self.error = e
            return
        await self.load_violations(self.workspace_id, self.current_workspace)

    def clear_violations(self) -> None:
        self.violations = []
        self.workspace_id = None
        self.selected_violation_id = None
        self.selected_violation_ids = set()

    # --- 絞り込み・並び替え ---

    def _matches(self, violation: Violation) -> bool:
        query = self.search_text.strip().lower()
        if query and not (
            query in violation.rule_id.lower()
            or query in violation.message.lower()
            or query in violation.file_path.lower()
        ):
            return False
        if self.selected_rule_ids and violation.rule_id not in self.selected_rule_ids:
            return False
        if self.selected_severities and violation.severity not in self.selected_severities:
            return False
        if self.selected_files and violation.file_path not in self.selected_files:
            return False
        return not self.show_suppressed_only or violation.suppressed

    def _sorted(self, violations: list[Violation]) -> list[Violation]:
        reverse = self.sort_order == "descending"
        if self.sort_option == "file":
            return sorted(violations, key=lambda v: (v.file_path, v.line), reverse=reverse)
        if self.sort_option == "rule":
            return sorted(violations, key=lambda v: (v.rule_id, v.file_path), reverse=reverse)
        if self.sort_option == "severity":
            return sorted(violations, key=lambda v: (_SEVERITY_RANK[v.severity], v.file_path))
        if self.sort_option == "date":
            return sorted(violations, key=lambda v: v.detected_at, reverse=True)
        return sorted(violations, key=lambda v: v.line)

    @property
    def filtered_violations(self) -> list[Violation]:
        return self._sorted([v for v in self.violations if self._matches(v)])

    @property
    def grouped_violations(self) -> list[tuple[str, list[Violation]]]:
        filtered = self.filtered_violations
        if self.grouping_option == "none":
            return [("", filtered)] if filtered else []
        groups: dict[str, list[Violation]] = {}
        for violation in filtered:
            if self.grouping_option == "file":
                key = violation.file_path
            elif self.grouping_option == "rule":
                key = violation.rule_id
            else:
                key = violation.severity
            groups.setdefault(key, []).append(violation)
        if self.grouping_option == "severity":
            return sorted(groups.items(), key=lambda item: _SEVERITY_RANK[item[0]])
        return sorted(groups.items())

    def clear_filters(self) -> None:
        self.search_text = ""
        self.selected_rule_ids = set()
        self.selected_severities = set()
        self.selected_files = set()
        self.show_suppressed_only = False

    @property
    def violation_count(self) -> int:
        return len(self.filtered_violations)

    @property
    def error_count(self) -> int:
        return sum(1 for v in self.filtered_violations if v.severity == "error")

    @property
    def warning_count(self) -> int:
        return sum(1 for v in self.filtered_violations if v.severity == "warning")

    @property
    def unique_rules(self) -> list[str]:
        return sorted({v.rule_id for v in self.violations})

    @property
    def unique_files(self) -> list[str]:
        return sorted({v.file_path for v in self.violations})

    # --- 選択 ---

    def _set_primary_selection(self, violation_id: str | None) -> None:
        self.selected_violation_id = violation_id
        self.selected_violation_ids = {violation_id} if violation_id else set()

    def _step_selection(self, offset: int) -> None:
        ordered = self.filtered_violations
        if not ordered:
            return
        if self.selected_violation_id is None:
            self._set_primary_selection(ordered[0].id if offset > 0 else ordered[-1].id)
            return
        ids = [v.id for v in ordered]
        if self.selected_violation_id not in ids:
            return
        index = ids.index(self.selected_violation_id) + offset
        if 0 <= index < len(ids):
            self._set_primary_selection(ids[index])

    def select_next_violation(self) -> None:
        self._step_selection(1)

    def select_previous_violation(self) -> None:
        self._step_selection(-1)

    def select_all(self) -> None:
        self.selected_violation_ids = {v.id for v in self.filtered_violations}

    def deselect_all(self) -> None:
        self.selected_violation_ids = set()

    # --- 操作 ---

    async def suppress_selected_violations(self, reason: str) -> None:
        """選択中の違反を抑制済みにする。再解析はせず保存済みの状態を読み直す。"""
        if self.workspace_id is None:
            return
        try:
            await self._storage.suppress_violations(sorted(self.selected_violation_ids), reason)
            await self._reload_from_storage()
        except StudioError as e:
            self.error = e
            return
        self.selected_violation_ids = set()

    async def resolve_selected_violations(self) -> None:
        if self.workspace_id is None:
            return
        try:
            await self._storage.resolve_violations(sorted(self.selected_violation_ids))
            await self._reload_from_storage()
        except StudioError as e:
            self.error = e
            return
        self.selected_violation_ids = set()
