"""現在の設定とgitブランチ・タグ上の設定を比較するサービス。"""

import logging
from pathlib import Path

from rulestudio.models.comparison import ConfigComparisonResult
from rulestudio.models.configuration import CONFIG_FILE_NAME
from rulestudio.models.errors import (
    ComparisonFailedError,
    ConfigNotFoundOnBranchError,
    GitServiceError,
    InvalidRefError,
    NotGitRepoError,
    YAMLConfigError,
)
from rulestudio.models.git import GitRefs
from rulestudio.services.comparison import ConfigComparisonService
from rulestudio.services.git import GitService

logger = logging.getLogger(__name__)

CURRENT_LABEL = "Current"


class GitBranchDiffService:
    """GitServiceとConfigComparisonServiceを組み合わせる。"""

    def __init__(self, git_service: GitService, comparison_service: ConfigComparisonService) -> None:
        self._git = git_service
        self._comparison = comparison_service

    async def list_available_refs(self, repo: Path) -> GitRefs:
        """比較対象に選べるブランチとタグを返す。

        Raises:
            NotGitRepoError: repo がgitリポジトリでない場合。
        """
        repo = Path(repo)
        if not await self._git.is_git_repository(repo):
            raise NotGitRepoError()
        try:
            return GitRefs(
                current_branch=await self._git.get_current_branch(repo),
                branches=await self._git.list_branches(repo),
                tags=await self._git.list_tags(repo),
            )
        except GitServiceError as e:
            raise ComparisonFailedError(str(e)) from e

    async def compare_config_with_branch(
        self,
        repo: Path,
        branch: str,
        config_relative_path: str = CONFIG_FILE_NAME,
    ) -> ConfigComparisonResult:
        """作業ツリーの設定を branch 上の設定と比較する。

        Raises:
            NotGitRepoError: repo がgitリポジトリでない場合。
            ConfigNotFoundOnBranchError: branch 上に設定ファイルが無い場合。
            ComparisonFailedError: 設定の読み込みや比較に失敗した場合。
        """
        repo = Path(repo)
        if not await self._git.is_git_repository(repo):
            raise NotGitRepoError()
        try:
            branch_text = await self._git.show_file(repo, branch, config_relative_path)
        except InvalidRefError as e:
            raise ComparisonFailedError(str(e)) from e
        except GitServiceError as e:
            logger.info("No %s on %s: %s", config_relative_path, branch, e)
            raise ConfigNotFoundOnBranchError(branch) from e

        current_path = repo / config_relative_path
        try:
            current_text = current_path.read_text(encoding="utf-8") if current_path.exists() else ""
            return await self._comparison.compare_content(current_text, CURRENT_LABEL, branch_text, branch)
        except (OSError, UnicodeDecodeError, YAMLConfigError) as e:
            raise ComparisonFailedError(str(e)) from e
