"""ワークスペース操作のMCPツール定義。"""

from pathlib import Path
from typing import Any

from fastmcp import FastMCP

from rulestudio.models.errors import StudioError
from rulestudio.services.workspace import WorkspaceManager


def register_workspace_tools(mcp: FastMCP, workspace_manager: WorkspaceManager) -> None:
    """ワークスペース関連のMCPツールを登録する。"""

    @mcp.tool()
    async def open_workspace(path: str) -> dict[str, Any]:
        """Swiftプロジェクトのディレクトリをワークスペースとして開く。

        以降のツールは config_path を省略すると、このワークスペースの .swiftlint.yml を対象にします。

        Args:
            path: プロジェクトのディレクトリ（Package.swift、.xcodeproj、.swift ファイルのいずれかを含む）。
        """
        try:
            workspace = await workspace_manager.open_workspace(Path(path))
            return {
                "workspace": workspace.model_dump(mode="json"),
                "config_file_exists": not workspace_manager.config_file_missing,
            }
        except (StudioError, ValueError) as e:
            return {"error": type(e).__name__, "message": str(e)}

    @mcp.tool()
    async def close_workspace() -> dict[str, Any]:
        """現在のワークスペースを閉じる。"""
        workspace_manager.close_workspace()
        return {"closed": True}

    @mcp.tool()
    async def get_workspace_status() -> dict[str, Any]:
        """現在のワークスペースと設定ファイルの有無を返す。"""
        workspace = workspace_manager.current_workspace
        if workspace is None:
            return {"workspace": None, "config_file_exists": False}
        return {
            "workspace": workspace.model_dump(mode="json"),
            "config_file_exists": workspace_manager.check_config_file_exists(),
        }

    @mcp.tool()
    async def create_default_config() -> dict[str, Any]:
        """現在のワークスペースに既定の .swiftlint.yml を作成する。

        既に設定ファイルがある場合は上書きしません。
        """
        try:
            config_path = workspace_manager.create_default_config_file()
            return {"config_path": str(config_path), "config_file_exists": True}
        except StudioError as e:
            return {"error": type(e).__name__, "message": str(e)}

    @mcp.tool()
    async def list_recent_workspaces() -> dict[str, Any]:
        """最近開いたワークスペースを新しい順に返す。"""
        return {"workspaces": [w.model_dump(mode="json") for w in workspace_manager.recent_workspaces]}
