"""設定ファイルの比較・インポート・履歴・gitブランチ比較のMCPツール定義。"""

from pathlib import Path
from typing import Any

from fastmcp import FastMCP

from rulestudio.models.comparison import ConfigComparisonResult
from rulestudio.models.config_import import ImportMode
from rulestudio.models.configuration import CONFIG_FILE_NAME
from rulestudio.models.errors import ConfigFileNotFoundError, StudioError
from rulestudio.models.history import ConfigBackup
from rulestudio.services.comparison import ConfigComparisonService
from rulestudio.services.config_import import ConfigImportService
from rulestudio.services.git_branch_diff import GitBranchDiffService
from rulestudio.services.version_history import ConfigVersionHistoryService
from rulestudio.services.workspace import WorkspaceManager
from rulestudio.viewmodels.config_comparison import ConfigComparisonViewModel
from rulestudio.viewmodels.config_import import ConfigImportViewModel
from rulestudio.viewmodels.git_branch_diff import GitBranchDiffViewModel
from rulestudio.viewmodels.version_history import ConfigVersionHistoryViewModel


def _comparison_payload(result: ConfigComparisonResult) -> dict[str, Any]:
    payload = result.model_dump(mode="json")
    payload["total_differences"] = result.total_differences
    return payload


def _backup_payload(backup: ConfigBackup) -> dict[str, Any]:
    return {
        "id": backup.id,
        "path": str(backup.path),
        "date": backup.formatted_date,
        "size": backup.formatted_size,
    }


def register_configuration_tools(
    mcp: FastMCP,
    workspace_manager: WorkspaceManager,
    comparison_service: ConfigComparisonService,
    import_service: ConfigImportService,
    history_service: ConfigVersionHistoryService,
    branch_diff_service: GitBranchDiffService,
    backup_keep_count: int = 10,
) -> None:
    """設定ファイル関連のMCPツールを登録する。"""

    async def load_history(config_path: str | None) -> ConfigVersionHistoryViewModel:
        vm = ConfigVersionHistoryViewModel(history_service, workspace_manager.resolve_config_path(config_path))
        await vm.load_backups()
        return vm

    def find_backup(vm: ConfigVersionHistoryViewModel, backup_id: str) -> ConfigBackup:
        for backup in vm.backups:
            if backup.id == backup_id:
                return backup
        raise ConfigFileNotFoundError(backup_id)

    # --- 比較 ---

    @mcp.tool()
    async def compare_configs(first_path: str, second_path: str | None = None) -> dict[str, Any]:
        """2つの .swiftlint.yml をルール単位で比較する。

        Args:
            first_path: 比較元の設定ファイル。
            second_path: 比較先の設定ファイル（省略時は現在のワークスペースの設定）。
        """
        try:
            vm = ConfigComparisonViewModel(comparison_service, workspace_manager.current_workspace)
            vm.select_left(Path(first_path).expanduser())
            vm.select_right(workspace_manager.resolve_config_path(second_path))
            await vm.compare()
            if vm.error is not None:
                raise vm.error
            if vm.comparison_result is None:
                raise ValueError("Nothing to compare")
            return _comparison_payload(vm.comparison_result)
        except (StudioError, ValueError) as e:
            return {"error": type(e).__name__, "message": str(e)}

    # --- URLからのインポート ---

    @mcp.tool()
    async def preview_config_import(url: str, config_path: str | None = None) -> dict[str, Any]:
        """URLから .swiftlint.yml を取得し、適用前の内容と差分を返す。

        GitHub・Gist の閲覧用URLは raw URL に変換されます。
        https 以外のURLは拒否されます。

        Args:
            url: 取得する設定ファイルのURL。
            config_path: 比較対象の設定ファイル（省略時は現在のワークスペースの設定）。
        """
        try:
            vm = ConfigImportViewModel(import_service, workspace_manager.resolve_config_path(config_path))
            vm.url_string = url
            await vm.fetch_preview()
            if vm.error is not None:
                raise vm.error
            if vm.preview is None:
                raise ValueError("No configuration was fetched")
            return vm.preview.model_dump(mode="json", exclude={"parsed_config"})
        except (StudioError, ValueError) as e:
            return {"error": type(e).__name__, "message": str(e)}

    @mcp.tool()
    async def apply_config_import(
        url: str,
        mode: ImportMode = "merge",
        config_path: str | None = None,
    ) -> dict[str, Any]:
        """URLから取得した設定を適用する。

        既存ファイルがあれば保存前にバックアップされます。

        Args:
            url: 取得する設定ファイルのURL。
            mode: "replace" は丸ごと置き換え、"merge" は現在の設定に上書きマージ。
            config_path: 保存先の設定ファイル（省略時は現在のワークスペースの設定）。
        """
        try:
            vm = ConfigImportViewModel(import_service, workspace_manager.resolve_config_path(config_path))
            vm.url_string = url
            vm.import_mode = mode
            await vm.fetch_preview()
            if vm.error is None:
                await vm.apply_import()
            if vm.error is not None:
                raise vm.error
            if vm.preview is None:
                raise ValueError("No configuration was fetched")
            return {
                "imported": vm.import_complete,
                "mode": mode,
                "config_path": str(vm.config_path),
                "warnings": vm.preview.validation_errors,
            }
        except (StudioError, ValueError) as e:
            return {"error": type(e).__name__, "message": str(e)}

    # --- バージョン履歴 ---

    @mcp.tool()
    async def list_config_backups(config_path: str | None = None) -> dict[str, Any]:
        """設定ファイルのバックアップを新しい順に返す。

        Args:
            config_path: 対象の設定ファイル（省略時は現在のワークスペースの設定）。
        """
        try:
            vm = await load_history(config_path)
            return {"backups": [_backup_payload(b) for b in vm.backups]}
        except (StudioError, ValueError) as e:
            return {"error": type(e).__name__, "message": str(e)}

    @mcp.tool()
    async def diff_config_backups(
        first_backup_id: str,
        second_backup_id: str,
        config_path: str | None = None,
    ) -> dict[str, Any]:
        """2つのバックアップ間の差分を返す。

        Args:
            first_backup_id: 比較元のバックアップID（list_config_backups の id）。
            second_backup_id: 比較先のバックアップID。
            config_path: 対象の設定ファイル（省略時は現在のワークスペースの設定）。
        """
        try:
            vm = await load_history(config_path)
            await vm.select_for_comparison(find_backup(vm, first_backup_id))
            await vm.select_for_comparison(find_backup(vm, second_backup_id))
            if vm.error is not None:
                raise vm.error
            if vm.current_diff is None:
                raise ValueError("Select two different backups to compare")
            return {
                "first": first_backup_id,
                "second": second_backup_id,
                "diff": vm.current_diff.model_dump(),
            }
        except (StudioError, ValueError) as e:
            return {"error": type(e).__name__, "message": str(e)}

    @mcp.tool()
    async def restore_config_backup(backup_id: str, config_path: str | None = None) -> dict[str, Any]:
        """バックアップを現在の設定ファイルに書き戻す。

        書き戻す前に現在の内容を新しいバックアップとして退避します。

        Args:
            backup_id: 復元するバックアップID。
            config_path: 対象の設定ファイル（省略時は現在のワークスペースの設定）。
        """
        try:
            vm = await load_history(config_path)
            vm.confirm_restore(find_backup(vm, backup_id))
            await vm.restore_version()
            if vm.error is not None:
                raise vm.error
            return {"restored": backup_id, "backups": [_backup_payload(b) for b in vm.backups]}
        except (StudioError, ValueError) as e:
            return {"error": type(e).__name__, "message": str(e)}

    @mcp.tool()
    async def prune_config_backups(keep_count: int | None = None, config_path: str | None = None) -> dict[str, Any]:
        """新しい順に keep_count 件を残して古いバックアップを削除する。

        Args:
            keep_count: 残すバックアップの件数（省略時はサーバー設定の既定値）。
            config_path: 対象の設定ファイル（省略時は現在のワークスペースの設定）。
        """
        try:
            vm = await load_history(config_path)
            before = len(vm.backups)
            await vm.prune_old(backup_keep_count if keep_count is None else keep_count)
            if vm.error is not None:
                raise vm.error
            return {"removed": before - len(vm.backups), "remaining": len(vm.backups)}
        except (StudioError, ValueError) as e:
            return {"error": type(e).__name__, "message": str(e)}

    # --- gitブランチ比較 ---

    def branch_diff_vm(config_relative_path: str) -> GitBranchDiffViewModel:
        workspace = workspace_manager.require_workspace()
        return GitBranchDiffViewModel(branch_diff_service, workspace.path, config_relative_path)

    @mcp.tool()
    async def list_git_refs() -> dict[str, Any]:
        """現在のワークスペースのブランチとタグを返す。"""
        try:
            vm = branch_diff_vm(CONFIG_FILE_NAME)
            await vm.load_refs()
            if vm.is_not_git_repo:
                return {"is_git_repository": False}
            if vm.error is not None:
                raise vm.error
            if vm.available_refs is None:
                raise ValueError("No git refs were loaded")
            return {"is_git_repository": True, **vm.available_refs.model_dump()}
        except (StudioError, ValueError) as e:
            return {"error": type(e).__name__, "message": str(e)}

    @mcp.tool()
    async def compare_config_with_git_ref(
        ref: str,
        config_relative_path: str = CONFIG_FILE_NAME,
    ) -> dict[str, Any]:
        """作業ツリーの設定をブランチまたはタグ上の設定と比較する。

        Args:
            ref: 比較対象のブランチ名またはタグ名。
            config_relative_path: リポジトリ内の設定ファイルの相対パス。
        """
        try:
            vm = branch_diff_vm(config_relative_path)
            vm.selected_ref = ref
            await vm.compare_with_selected()
            if vm.is_not_git_repo:
                return {"is_git_repository": False}
            if vm.error is not None:
                raise vm.error
            if vm.comparison_result is None:
                raise ValueError("Nothing to compare")
            return _comparison_payload(vm.comparison_result)
        except (StudioError, ValueError) as e:
            return {"error": type(e).__name__, "message": str(e)}
