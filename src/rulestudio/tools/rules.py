"""ルール閲覧・設定のMCPツール定義。"""

from typing import Any

from fastmcp import FastMCP

from rulestudio.models.errors import StudioError
from rulestudio.models.rule import Severity
from rulestudio.services.rule_registry import RuleRegistry
from rulestudio.services.workspace import WorkspaceManager
from rulestudio.services.yaml_engine import YAMLConfigurationEngine
from rulestudio.viewmodels.rule_browser import RuleBrowserViewModel
from rulestudio.viewmodels.rule_detail import RuleDetailViewModel


def register_rule_tools(mcp: FastMCP, registry: RuleRegistry, workspace_manager: WorkspaceManager) -> None:
    """ルール関連のMCPツールを登録する。"""

    async def ensure_rules_loaded() -> None:
        if not registry.rules:
            await registry.load_rules()
        workspace = workspace_manager.current_workspace
        if workspace is not None and workspace.config_path is not None and workspace.config_path.exists():
            registry.apply_configuration(YAMLConfigurationEngine(workspace.config_path).load())

    def rule_summary(rule: Any) -> dict[str, Any]:
        return {
            "id": rule.id,
            "name": rule.name,
            "category": rule.category,
            "is_opt_in": rule.is_opt_in,
            "is_enabled": rule.is_enabled,
            "configured_severity": rule.configured_severity,
        }

    @mcp.tool()
    async def list_rules(
        search: str = "",
        category: str | None = None,
        status: str = "all",
        sort_by: str = "name",
        group_by_category: bool = False,
    ) -> dict[str, Any]:
        """SwiftLintのルール一覧を検索・絞り込みして返す。

        ワークスペースが開かれていれば、その .swiftlint.yml の有効状態を反映します。

        Args:
            search: ID・名前・説明に対する部分一致検索。
            category: style / lint / metrics / performance / idiomatic のいずれか。
            status: all / enabled / disabled / opt_in のいずれか。
            sort_by: name / identifier / category のいずれか。
            group_by_category: Trueの場合カテゴリごとにまとめて返す。
        """
        try:
            await ensure_rules_loaded()
        except StudioError as e:
            return {"error": type(e).__name__, "message": str(e)}

        vm = RuleBrowserViewModel(registry)
        vm.search_text = search
        vm.selected_category = category  # type: ignore[assignment]
        vm.selected_status = status  # type: ignore[assignment]
        vm.selected_sort_option = sort_by  # type: ignore[assignment]
        response: dict[str, Any] = {
            "total": len(registry.rules),
            "category_counts": vm.category_counts,
        }
        if group_by_category:
            response["groups"] = [
                {"category": category_name, "rules": [rule_summary(r) for r in rules]}
                for category_name, rules in vm.grouped_rules
            ]
        else:
            response["rules"] = [rule_summary(r) for r in vm.filtered_rules]
        if registry.error is not None:
            response["warning"] = f"Using cached rules: {registry.error}"
        return response

    @mcp.tool()
    async def get_rule_detail(rule_id: str) -> dict[str, Any]:
        """ルールの説明・例・現在の設定を返す。

        Args:
            rule_id: ルールID（例: "line_length"）。
        """
        try:
            await ensure_rules_loaded()
            rule = await registry.fetch_rule_details_if_needed(rule_id)
            if rule is None:
                raise ValueError(f"Unknown rule: {rule_id}")
            return rule.model_dump(mode="json")
        except (StudioError, ValueError) as e:
            return {"error": type(e).__name__, "message": str(e)}

    @mcp.tool()
    async def configure_rule(
        rule_id: str,
        enabled: bool | None = None,
        severity: Severity | None = None,
        parameters: dict[str, Any] | None = None,
        dry_run: bool = False,
        config_path: str | None = None,
    ) -> dict[str, Any]:
        """1つのルールの有効状態・重大度・パラメータを変更する。

        保存前に既存ファイルは <name>.<timestamp>.backup に退避されます。
        dry_run=True の場合は差分だけを返し、ファイルは変更しません。

        Args:
            rule_id: ルールID。
            enabled: 有効にするかどうか（省略時は変更しない）。
            severity: "warning" または "error"（省略時は変更しない）。
            parameters: 設定するパラメータ。値にnullを指定するとそのパラメータを削除する。
            dry_run: 差分のみを返す。
            config_path: 対象の .swiftlint.yml（省略時は現在のワークスペース）。
        """
        try:
            await ensure_rules_loaded()
            rule = registry.get_rule(rule_id)
            if rule is None:
                raise ValueError(f"Unknown rule: {rule_id}")
            engine = YAMLConfigurationEngine(workspace_manager.resolve_config_path(config_path))
            vm = RuleDetailViewModel(rule, engine)
            vm.load_configuration()
            if enabled is not None:
                vm.update_enabled(enabled)
            if severity is not None:
                vm.update_severity(severity)
            for name, value in (parameters or {}).items():
                vm.update_parameter(name, value)

            pending = vm.pending_changes
            if pending is None:
                return {"rule_id": rule_id, "changed": False}
            diff = vm.generate_diff()
            if vm.save_error is not None:
                raise vm.save_error
            if not dry_run:
                vm.save_configuration()
                registry.apply_configuration(engine.config)
            return {
                "rule_id": rule_id,
                "changed": True,
                "saved": not dry_run,
                "pending_changes": pending.model_dump(),
                "diff": diff.model_dump() if diff else None,
            }
        except (StudioError, ValueError) as e:
            return {"error": type(e).__name__, "message": str(e)}

    @mcp.tool()
    async def bulk_update_rules(
        rule_ids: list[str],
        action: str,
        severity: Severity | None = None,
        warning: int | None = None,
        error: int | None = None,
        dry_run: bool = False,
        config_path: str | None = None,
    ) -> dict[str, Any]:
        """複数ルールを一括で変更する。

        Args:
            rule_ids: 対象のルールID。
            action: enable / disable / set_severity / set_thresholds のいずれか。
            severity: action=set_severity のときの重大度。
            warning: action=set_thresholds のときの warning しきい値。
            error: action=set_thresholds のときの error しきい値。
            dry_run: 差分のみを返す。
            config_path: 対象の .swiftlint.yml（省略時は現在のワークスペース）。
        """
        try:
            engine = YAMLConfigurationEngine(workspace_manager.resolve_config_path(config_path))
            engine.load()
            vm = RuleBrowserViewModel(registry)
            vm.toggle_multi_select()
            for rule_id in rule_ids:
                vm.toggle_rule_selection(rule_id)

            if action == "enable":
                diff = vm.enable_selected_rules(engine)
            elif action == "disable":
                diff = vm.disable_selected_rules(engine)
            elif action == "set_severity":
                if severity is None:
                    raise ValueError("severity is required for action 'set_severity'")
                diff = vm.set_severity_for_selected(severity, engine)
            elif action == "set_thresholds":
                if warning is None and error is None:
                    raise ValueError("warning or error is required for action 'set_thresholds'")
                diff = vm.set_thresholds_for_selected(warning, error, engine)
            else:
                raise ValueError(f"Unknown action: {action}")

            if diff is None:
                return {"changed": False}
            if not dry_run:
                await vm.save_bulk_changes(engine)
                if vm.error is not None:
                    return {"error": type(vm.error).__name__, "message": str(vm.error)}
            return {"changed": diff.has_changes, "saved": not dry_run, "diff": diff.model_dump()}
        except (StudioError, ValueError) as e:
            return {"error": type(e).__name__, "message": str(e)}
