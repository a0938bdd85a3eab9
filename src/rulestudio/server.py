"""FastMCPベースのMCPサーバーエントリポイント。"""

from fastmcp import FastMCP
from starlette.requests import Request
from starlette.responses import JSONResponse

from rulestudio.config import ServerConfig
from rulestudio.prompts.workflow import register_workflow_prompts
from rulestudio.resources.studio import register_studio_resources
from rulestudio.services.comparison import ConfigComparisonService
from rulestudio.services.compatibility import VersionCompatibilityChecker
from rulestudio.services.config_import import ConfigImportService
from rulestudio.services.deprecations import DeprecationDatabase
from rulestudio.services.git import GitService
from rulestudio.services.git_branch_diff import GitBranchDiffService
from rulestudio.services.migration import MigrationAssistant
from rulestudio.services.rule_registry import RuleRegistry
from rulestudio.services.swiftlint_cli import SwiftLintCLI
from rulestudio.services.url_fetcher import URLConfigFetcher
from rulestudio.services.version_history import ConfigVersionHistoryService
from rulestudio.services.workspace import WorkspaceManager
from rulestudio.services.workspace_analyzer import WorkspaceAnalyzer
from rulestudio.storage.cache import CacheManager
from rulestudio.storage.violations import ViolationStorage
from rulestudio.tools.configuration import register_configuration_tools
from rulestudio.tools.rules import register_rule_tools
from rulestudio.tools.versions import register_version_tools
from rulestudio.tools.violations import register_violation_tools
from rulestudio.tools.workspace import register_workspace_tools


def create_server(
    config: ServerConfig | None = None,
    cli: SwiftLintCLI | None = None,
    fetcher: URLConfigFetcher | None = None,
) -> FastMCP:
    """RuleStudio MCPサーバーを作成し、ツール・リソース・プロンプトを登録する。

    Args:
        config: サーバー設定。Noneの場合はデフォルト設定を使用。
        cli: swiftlint の実行に使うCLI。Noneの場合は設定から作成する。
        fetcher: 設定ファイルの取得に使うフェッチャー。Noneの場合は設定から作成する。

    Returns:
        設定済みのFastMCPインスタンス。
    """
    if config is None:
        config = ServerConfig()

    mcp = FastMCP("rulestudio")

    # データアクセス層
    cache = CacheManager(cache_dir=config.data_dir / "cache")
    violation_storage = ViolationStorage(config.data_dir / "violations.db")
    deprecations = DeprecationDatabase(config.config_dir)

    # サービス層
    if cli is None:
        cli = SwiftLintCLI(cache, swiftlint_path=config.swiftlint_path, timeout=config.swiftlint_timeout)
    if fetcher is None:
        fetcher = URLConfigFetcher(timeout=config.fetch_timeout)
    registry = RuleRegistry(cli, cache)
    workspace_manager = WorkspaceManager(
        data_dir=config.data_dir,
        config_dir=config.config_dir,
        max_recent=config.max_recent_workspaces,
    )
    analyzer = WorkspaceAnalyzer(cli, violation_storage)
    comparison_service = ConfigComparisonService()
    import_service = ConfigImportService(fetcher)
    history_service = ConfigVersionHistoryService()
    git_service = GitService(git_path=config.git_path, timeout=config.git_timeout)
    branch_diff_service = GitBranchDiffService(git_service, comparison_service)
    checker = VersionCompatibilityChecker(deprecations)
    assistant = MigrationAssistant(deprecations)

    # MCPインターフェース登録: ワークスペース・ルール
    register_workspace_tools(mcp, workspace_manager)
    register_rule_tools(mcp, registry, workspace_manager)

    # MCPインターフェース登録: 違反
    register_violation_tools(mcp, workspace_manager, analyzer, violation_storage)

    # MCPインターフェース登録: 設定ファイル
    register_configuration_tools(
        mcp,
        workspace_manager,
        comparison_service,
        import_service,
        history_service,
        branch_diff_service,
        backup_keep_count=config.backup_keep_count,
    )

    # MCPインターフェース登録: バージョン
    register_version_tools(mcp, workspace_manager, cli, checker, assistant)

    # MCPインターフェース登録: リソース・プロンプト
    register_studio_resources(mcp, config.config_dir, deprecations)
    register_workflow_prompts(mcp)

    # ヘルスチェックエンドポイント
    @mcp.custom_route("/health", methods=["GET"])
    async def health_check(request: Request) -> JSONResponse:
        return JSONResponse({"status": "ok"})

    return mcp
