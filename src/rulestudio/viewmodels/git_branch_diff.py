"""gitブランチ比較画面の状態とロジック。"""

from pathlib import Path

from rulestudio.models.comparison import ConfigComparisonResult
from rulestudio.models.configuration import CONFIG_FILE_NAME
from rulestudio.models.errors import NotGitRepoError, StudioError
from rulestudio.models.git import GitRefs
from rulestudio.services.git_branch_diff import GitBranchDiffService


class GitBranchDiffViewModel:
    """現在の設定をブランチ・タグ上の設定と比較する。"""

    def __init__(
        self,
        service: GitBranchDiffService,
        workspace_path: Path | None,
        config_relative_path: str = CONFIG_FILE_NAME,
    ) -> None:
        self._service = service
        self.workspace_path = workspace_path
        self.config_relative_path = config_relative_path
        self.available_refs: GitRefs | None = None
        self.selected_ref: str | None = None
        self.comparison_result: ConfigComparisonResult | None = None
        self.is_loading = False
        self.is_comparing = False
        self.is_not_git_repo = False
        self.error: Exception | None = None

    async def load_refs(self) -> None:
        """ブランチとタグを読み込む。gitリポジトリでない場合は is_not_git_repo を立てる。"""
        if self.workspace_path is None:
            self.is_not_git_repo = True
            return
        if self.is_loading:
            return
        self.is_loading = True
        self.error = None
        self.is_not_git_repo = False
        try:
            self.available_refs = await self._service.list_available_refs(self.workspace_path)
        except NotGitRepoError:
            self.is_not_git_repo = True
        except StudioError as e:
            self.error = e
        finally:
            self.is_loading = False

    async def compare_with_selected(self) -> None:
        if self.workspace_path is None or not self.selected_ref or self.is_comparing:
            return
        self.is_comparing = True
        self.error = None
        self.comparison_result = None
        try:
            self.comparison_result = await self._service.compare_config_with_branch(
                self.workspace_path, self.selected_ref, self.config_relative_path
            )
        except NotGitRepoError:
            self.is_not_git_repo = True
        except StudioError as e:
            self.error = e
        finally:
            self.is_comparing = False
