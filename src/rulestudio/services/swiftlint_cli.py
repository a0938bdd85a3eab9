"""swiftlint コマンドラインツールを実行するサービス。"""

import asyncio
import logging
import os
import shutil
import time
from collections.abc import Awaitable, Callable
from pathlib import Path

from rulestudio.models.errors import InvalidVersionError, SwiftLintExecutionError, SwiftLintNotFoundError
from rulestudio.storage.cache import CacheManager

logger = logging.getLogger(__name__)

CommandRunner = Callable[[list[str]], Awaitable[tuple[int, str, str]]]

DEFAULT_SWIFTLINT_TIMEOUT = 300.0

# Homebrew等の標準的なインストール先（優先順）
_CANDIDATE_DIRS = ("/opt/homebrew/bin", "/usr/local/bin", "/usr/bin")
_EXTRA_PATH = "/opt/homebrew/bin:/usr/local/bin"


def check_process_output(stderr: str) -> None:
    """stderrの内容から失敗を判定する。

    swiftlint は違反があると非ゼロで終了するため、終了コードではなくstderrで判断する。

    Raises:
        SwiftLintNotFoundError: シェルがコマンドを見つけられなかった場合。
        SwiftLintExecutionError: swiftlint がエラーを報告した場合。
    """
    if "command not found" in stderr:
        raise SwiftLintNotFoundError()
    if "error:" in stderr and "warning:" not in stderr and "is not a valid rule identifier" not in stderr:
        raise SwiftLintExecutionError(stderr.strip(), stderr=stderr)


class SwiftLintCLI:
    """swiftlint の rules / lint / version / generate-docs を実行する。

    ``runner`` を渡すとサブプロセス実行を差し替えられる。その場合バイナリの探索は行わない。
    """

    def __init__(
        self,
        cache: CacheManager,
        swiftlint_path: str = "",
        timeout: float = DEFAULT_SWIFTLINT_TIMEOUT,
        docs_root: Path | None = None,
        runner: CommandRunner | None = None,
    ) -> None:
        self._cache = cache
        self._configured_path = swiftlint_path
        self._timeout = timeout
        self._docs_root = docs_root or cache.cache_dir / "rule_docs"
        self._runner = runner
        self._detected_path: Path | None = None

    def detect_swiftlint_path(self) -> Path:
        """swiftlint の実行ファイルを探す。

        Raises:
            SwiftLintNotFoundError: 見つからない場合。
        """
        if self._detected_path is not None and self._detected_path.exists():
            return self._detected_path
        self._detected_path = None

        if self._configured_path:
            configured = Path(self._configured_path)
            if configured.is_file() and os.access(configured, os.X_OK):
                self._detected_path = configured
                return configured
            raise SwiftLintNotFoundError(self._configured_path)

        for directory in _CANDIDATE_DIRS:
            candidate = Path(directory) / "swiftlint"
            if candidate.is_file() and os.access(candidate, os.X_OK):
                self._detected_path = candidate
                return candidate

        found = shutil.which("swiftlint")
        if found:
            self._detected_path = Path(found)
            return self._detected_path
        raise SwiftLintNotFoundError()

    def _executable(self) -> str:
        if self._runner is not None:
            return self._configured_path or "swiftlint"
        return str(self.detect_swiftlint_path())

    async def _run_subprocess(self, args: list[str]) -> tuple[int, str, str]:
        """サブプロセスを非同期で実行し、結果を返す。

        Returns:
            (exit_code, stdout, stderr) のタプル。

        Raises:
            SwiftLintExecutionError: タイムアウトまたは起動に失敗した場合。
        """
        env = dict(os.environ)
        env["PATH"] = f"{_EXTRA_PATH}:{env.get('PATH', '')}"
        try:
            proc = await asyncio.create_subprocess_exec(
                *args,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
                env=env,
            )
        except OSError as e:
            raise SwiftLintExecutionError(str(e)) from e
        try:
            stdout_bytes, stderr_bytes = await asyncio.wait_for(proc.communicate(), timeout=self._timeout)
        except TimeoutError:
            proc.kill()
            await proc.wait()
            raise SwiftLintExecutionError(f"timed out after {self._timeout:g} seconds") from None
        return (
            proc.returncode or 0,
            stdout_bytes.decode("utf-8", errors="replace"),
            stderr_bytes.decode("utf-8", errors="replace"),
        )

    async def _execute(self, *args: str) -> str:
        command = [self._executable(), *args]
        started = time.monotonic()
        runner = self._runner or self._run_subprocess
        exit_code, stdout, stderr = await runner(command)
        logger.debug(
            "swiftlint %s exited %d in %.2fs",
            " ".join(args[:2]),
            exit_code,
            time.monotonic() - started,
        )
        check_process_output(stderr)
        return stdout

    async def execute_rules_command(self) -> str:
        """``swiftlint rules`` の表形式出力を返す。"""
        return await self._execute("rules")

    async def execute_rule_detail_command(self, rule_id: str) -> str:
        """``swiftlint rules <id>`` の出力を返す。"""
        return await self._execute("rules", rule_id)

    async def execute_lint_command(self, config_path: Path | None, workspace_path: Path) -> str:
        """``swiftlint lint --reporter json`` のJSON出力を返す。設定ファイルは存在する場合のみ渡す。"""
        args = ["lint", "--reporter", "json"]
        if config_path is not None and Path(config_path).exists():
            args += ["--config", str(config_path)]
        args.append(str(workspace_path))
        return await self._execute(*args)

    async def get_version(self) -> str:
        """SwiftLintのバージョン文字列を返す。

        Raises:
            InvalidVersionError: 出力が空の場合。
        """
        version = (await self._execute("version")).strip()
        if not version:
            raise InvalidVersionError()
        return version

    async def generate_docs_for_rule(self, rule_id: str) -> str | None:
        """ルールのMarkdownドキュメントを返す。

        ``generate-docs`` の出力はSwiftLintのバージョン単位でキャッシュする。
        """
        version = await self.get_version()
        docs_dir = self._cache.get_cached_docs_directory()
        if docs_dir is None or self._cache.get_cached_swiftlint_version() != version:
            docs_dir = self._docs_root / version
            docs_dir.mkdir(parents=True, exist_ok=True)
            await self._execute("generate-docs", "--path", str(docs_dir))
            self._cache.save_docs_directory(docs_dir)
            self._cache.save_swiftlint_version(version)
            logger.info("Generated rule docs for SwiftLint %s", version)

        doc_file = docs_dir / f"{rule_id}.md"
        if not doc_file.exists():
            return None
        return doc_file.read_text(encoding="utf-8")
