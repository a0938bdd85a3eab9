"""違反解析・閲覧のMCPツール定義。"""

from datetime import UTC, datetime
from typing import Any

from fastmcp import FastMCP

from rulestudio.models.errors import StudioError
from rulestudio.models.violation import GroupingOption, SortOption, SortOrder, Violation
from rulestudio.services.workspace import WorkspaceManager
from rulestudio.services.workspace_analyzer import WorkspaceAnalyzer
from rulestudio.storage.violations import ViolationStorage
from rulestudio.viewmodels.violation_inspector import ViolationInspectorViewModel


def _dump(violations: list[Violation]) -> list[dict[str, Any]]:
    return [v.model_dump(mode="json") for v in violations]


def register_violation_tools(
    mcp: FastMCP,
    workspace_manager: WorkspaceManager,
    analyzer: WorkspaceAnalyzer,
    storage: ViolationStorage,
) -> None:
    """違反関連のMCPツールを登録する。"""

    async def load_inspector() -> ViolationInspectorViewModel:
        workspace = workspace_manager.require_workspace()
        vm = ViolationInspectorViewModel(storage)
        await vm.load_violations(workspace.id, workspace)
        if vm.error is not None:
            raise vm.error
        return vm

    @mcp.tool()
    async def analyze_workspace(config_path: str | None = None) -> dict[str, Any]:
        """現在のワークスペースを swiftlint lint で解析し、違反を保存する。

        前回の解析結果は置き換えられます。

        Args:
            config_path: 使用する設定ファイル（省略時はワークスペースの .swiftlint.yml）。
        """
        try:
            workspace = workspace_manager.require_workspace()
            if analyzer.is_analyzing:
                return {"error": "AnalysisInProgress", "message": "Analysis is already running"}
            result = await analyzer.analyze(
                workspace,
                workspace_manager.resolve_config_path(config_path) if config_path else None,
            )
            workspace.last_analyzed = datetime.now(UTC)
            workspace_manager.mark_analyzed(workspace)
            return {
                "workspace_id": workspace.id,
                "violation_count": len(result.violations),
                "error_count": result.error_count,
                "warning_count": result.warning_count,
                "files_analyzed": result.files_analyzed,
                "duration": round(result.duration, 3),
                "config_hash": result.config_hash,
            }
        except (StudioError, ValueError) as e:
            return {"error": type(e).__name__, "message": str(e)}

    @mcp.tool()
    async def list_violations(
        search: str = "",
        rule_ids: list[str] | None = None,
        severities: list[str] | None = None,
        files: list[str] | None = None,
        suppressed_only: bool = False,
        sort_by: SortOption = "file",
        sort_order: SortOrder = "ascending",
        group_by: GroupingOption = "none",
        limit: int = 200,
    ) -> dict[str, Any]:
        """保存済みの違反を絞り込み・並び替えて返す。

        Args:
            search: ルールID・メッセージ・ファイルパスに対する部分一致検索。
            rule_ids: 対象のルールID。
            severities: "warning" / "error"。
            files: 対象のファイルパス（ワークスペースからの相対パス）。
            suppressed_only: 抑制済みの違反だけを返す。
            sort_by: file / rule / severity / date / line のいずれか。
            sort_order: ascending / descending。
            group_by: none / file / rule / severity のいずれか。
            limit: 返す違反の最大件数。
        """
        try:
            vm = await load_inspector()
        except (StudioError, ValueError) as e:
            return {"error": type(e).__name__, "message": str(e)}

        vm.search_text = search
        vm.selected_rule_ids = set(rule_ids or [])
        vm.selected_severities = set(severities or [])
        vm.selected_files = set(files or [])
        vm.show_suppressed_only = suppressed_only
        vm.sort_option = sort_by
        vm.sort_order = sort_order
        vm.grouping_option = group_by

        response: dict[str, Any] = {
            "total": vm.violation_count,
            "error_count": vm.error_count,
            "warning_count": vm.warning_count,
            "rules": vm.unique_rules,
            "files": vm.unique_files,
        }
        if group_by == "none":
            response["violations"] = _dump(vm.filtered_violations[:limit])
        else:
            response["groups"] = [
                {"key": key, "count": len(items), "violations": _dump(items[:limit])}
                for key, items in vm.grouped_violations
            ]
        return response

    @mcp.tool()
    async def suppress_violations(violation_ids: list[str], reason: str) -> dict[str, Any]:
        """違反を抑制済みにする。

        Args:
            violation_ids: 対象の違反ID。
            reason: 抑制の理由。
        """
        try:
            vm = await load_inspector()
            vm.selected_violation_ids = set(violation_ids)
            await vm.suppress_selected_violations(reason)
            if vm.error is not None:
                raise vm.error
            return {"suppressed": len(violation_ids)}
        except (StudioError, ValueError) as e:
            return {"error": type(e).__name__, "message": str(e)}

    @mcp.tool()
    async def resolve_violations(violation_ids: list[str]) -> dict[str, Any]:
        """違反を解決済みにする（resolved_at を記録する）。

        Args:
            violation_ids: 対象の違反ID。
        """
        try:
            vm = await load_inspector()
            vm.selected_violation_ids = set(violation_ids)
            await vm.resolve_selected_violations()
            if vm.error is not None:
                raise vm.error
            return {"resolved": len(violation_ids)}
        except (StudioError, ValueError) as e:
            return {"error": type(e).__name__, "message": str(e)}
