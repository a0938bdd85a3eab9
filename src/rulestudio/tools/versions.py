"""SwiftLintバージョン互換性・移行のMCPツール定義。"""

from typing import Any

from fastmcp import FastMCP

from rulestudio.models.errors import StudioError
from rulestudio.services.compatibility import VersionCompatibilityChecker
from rulestudio.services.migration import MigrationAssistant
from rulestudio.services.swiftlint_cli import SwiftLintCLI
from rulestudio.services.workspace import WorkspaceManager
from rulestudio.viewmodels.migration import MigrationAssistantViewModel
from rulestudio.viewmodels.version_compatibility import VersionCompatibilityViewModel


def register_version_tools(
    mcp: FastMCP,
    workspace_manager: WorkspaceManager,
    cli: SwiftLintCLI,
    checker: VersionCompatibilityChecker,
    assistant: MigrationAssistant,
) -> None:
    """バージョン関連のMCPツールを登録する。"""

    @mcp.tool()
    async def get_swiftlint_version() -> dict[str, Any]:
        """インストールされている swiftlint のバージョンを返す。"""
        try:
            return {"version": await cli.get_version()}
        except StudioError as e:
            return {"error": type(e).__name__, "message": str(e)}

    @mcp.tool()
    async def check_version_compatibility(config_path: str | None = None) -> dict[str, Any]:
        """設定をインストール済みSwiftLintに対してチェックする。

        非推奨・削除・改名されたルールと、まだ設定していない新しいルールを返します。

        Args:
            config_path: 対象の設定ファイル（省略時は現在のワークスペースの設定）。
        """
        try:
            vm = VersionCompatibilityViewModel(checker, cli, workspace_manager.resolve_config_path(config_path))
            await vm.check_compatibility()
            if vm.error is not None:
                raise vm.error
            if vm.report is None:
                raise ValueError("Compatibility check produced no report")
            return vm.report.model_dump()
        except (StudioError, ValueError) as e:
            return {"error": type(e).__name__, "message": str(e)}

    @mcp.tool()
    async def apply_compatibility_fixes(config_path: str | None = None) -> dict[str, Any]:
        """改名されたルールを全て新しいIDに置き換える。

        保存前に既存ファイルはバックアップされます。非推奨・削除されたルールは変更しません。

        Args:
            config_path: 対象の設定ファイル（省略時は現在のワークスペースの設定）。
        """
        try:
            vm = VersionCompatibilityViewModel(checker, cli, workspace_manager.resolve_config_path(config_path))
            await vm.check_compatibility()
            if vm.error is not None:
                raise vm.error
            if vm.report is None:
                raise ValueError("Compatibility check produced no report")
            renamed = [r.model_dump() for r in vm.report.renamed_rules]
            await vm.apply_all_fixes()
            if vm.error is not None:
                raise vm.error
            return {
                "renamed": renamed,
                "report": vm.report.model_dump() if vm.report else None,
            }
        except (StudioError, ValueError) as e:
            return {"error": type(e).__name__, "message": str(e)}

    @mcp.tool()
    async def plan_migration(
        from_version: str,
        apply: bool = False,
        config_path: str | None = None,
    ) -> dict[str, Any]:
        """以前のSwiftLintバージョンからインストール済みバージョンへの移行計画を作る。

        apply=True の場合、自動適用できるステップをバックアップ付きで保存します。

        Args:
            from_version: 以前使っていたSwiftLintのバージョン（例: "0.50.0"）。
            apply: 自動適用できるステップを設定ファイルに適用する。
            config_path: 対象の設定ファイル（省略時は現在のワークスペースの設定）。
        """
        try:
            vm = MigrationAssistantViewModel(assistant, cli, workspace_manager.resolve_config_path(config_path))
            vm.previous_version = from_version
            await vm.detect_migrations()
            if vm.error is not None:
                raise vm.error
            if vm.migration_plan is None:
                raise ValueError("Migration detection produced no plan")
            vm.preview_changes()
            if apply:
                vm.apply_migration()
            if vm.error is not None:
                raise vm.error
            return {
                "plan": vm.migration_plan.model_dump(),
                "preview_diff": vm.preview_diff.model_dump() if vm.preview_diff else None,
                "applied": vm.migration_complete,
            }
        except (StudioError, ValueError) as e:
            return {"error": type(e).__name__, "message": str(e)}
