"""git コマンドを実行するサービス。"""

import asyncio
import logging
from pathlib import Path

from rulestudio.models.errors import (
    GitExecutionError,
    GitFileNotFoundError,
    GitTimeoutError,
    InvalidRefError,
    NotARepositoryError,
)

logger = logging.getLogger(__name__)

DEFAULT_GIT_TIMEOUT = 30.0

# git show が「ファイルが無い」ことを示すstderrの断片
_FILE_MISSING_MARKERS = ("does not exist", "fatal: path", "exists on disk, but not in")


def check_ref(ref: str) -> None:
    """refを検証する。先頭が "-" のrefはgitのオプションとして解釈されるため拒否する。

    Raises:
        InvalidRefError: refが空、または "-" で始まる場合。
    """
    if not ref or ref.startswith("-"):
        raise InvalidRefError(ref)


class GitService:
    """ブランチ・タグの列挙と特定refのファイル取得を行う。"""

    def __init__(self, git_path: str = "git", timeout: float = DEFAULT_GIT_TIMEOUT) -> None:
        self._git_path = git_path
        self._timeout = timeout

    async def _run_subprocess(self, args: list[str], cwd: str | None = None) -> tuple[int, str, str]:
        """サブプロセスを非同期で実行し、結果を返す。

        Args:
            args: 実行するコマンドと引数のリスト。
            cwd: 作業ディレクトリ。

        Returns:
            (exit_code, stdout, stderr) のタプル。

        Raises:
            GitTimeoutError: タイムアウトした場合。
            GitExecutionError: git を起動できない場合。
        """
        try:
            proc = await asyncio.create_subprocess_exec(
                *args,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
                cwd=cwd,
            )
        except OSError as e:
            raise GitExecutionError(str(e)) from e
        try:
            stdout_bytes, stderr_bytes = await asyncio.wait_for(proc.communicate(), timeout=self._timeout)
        except TimeoutError:
            proc.kill()
            await proc.wait()
            raise GitTimeoutError(self._timeout) from None
        return (
            proc.returncode or 0,
            stdout_bytes.decode("utf-8", errors="replace"),
            stderr_bytes.decode("utf-8", errors="replace"),
        )

    async def _git(self, repo: Path, *args: str) -> str:
        exit_code, stdout, stderr = await self._run_subprocess([self._git_path, *args], cwd=str(repo))
        if exit_code != 0:
            raise GitExecutionError(stderr or stdout, exit_code)
        return stdout

    async def _ensure_repository(self, repo: Path) -> None:
        if not await self.is_git_repository(repo):
            raise NotARepositoryError(str(repo))

    async def is_git_repository(self, path: Path) -> bool:
        """path がgitの作業ツリー内かどうか。失敗時はFalse。"""
        if not Path(path).is_dir():
            return False
        try:
            output = await self._git(Path(path), "rev-parse", "--is-inside-work-tree")
        except (GitExecutionError, GitTimeoutError):
            return False
        return output.strip() == "true"

    async def get_current_branch(self, repo: Path) -> str:
        await self._ensure_repository(repo)
        return (await self._git(repo, "rev-parse", "--abbrev-ref", "HEAD")).strip()

    async def list_branches(self, repo: Path) -> list[str]:
        await self._ensure_repository(repo)
        output = await self._git(repo, "branch", "--format=%(refname:short)")
        return [line.strip() for line in output.splitlines() if line.strip()]

    async def list_tags(self, repo: Path) -> list[str]:
        await self._ensure_repository(repo)
        output = await self._git(repo, "tag", "--list")
        return [line.strip() for line in output.splitlines() if line.strip()]

    async def show_file(self, repo: Path, ref: str, relative_path: str) -> str:
        """ref 時点のファイル内容を返す。

        Raises:
            NotARepositoryError: repo がgitリポジトリでない場合。
            InvalidRefError: refが不正な場合。
            GitFileNotFoundError: ref にファイルが存在しない場合。
            GitExecutionError: その他のgitエラー。
        """
        check_ref(ref)
        await self._ensure_repository(repo)
        try:
            return await self._git(repo, "show", f"{ref}:{relative_path}")
        except GitExecutionError as e:
            if any(marker in e.stderr for marker in _FILE_MISSING_MARKERS):
                raise GitFileNotFoundError(relative_path, ref) from e
            raise

    async def diff_file(self, repo: Path, from_ref: str, to_ref: str, relative_path: str) -> str:
        """2つのref間のファイル差分（unified diff）を返す。"""
        check_ref(from_ref)
        check_ref(to_ref)
        await self._ensure_repository(repo)
        return await self._git(repo, "diff", from_ref, to_ref, "--", relative_path)
