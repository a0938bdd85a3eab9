"""ルール一覧・SwiftLintバージョン・ドキュメント生成先のファイルキャッシュ。"""

import json
import logging
from pathlib import Path

from pydantic import TypeAdapter, ValidationError

from rulestudio.models.errors import StorageError
from rulestudio.models.rule import Rule

logger = logging.getLogger(__name__)

_RULES_ADAPTER = TypeAdapter(list[Rule])


class CacheManager:
    """data_dir/cache 配下のキャッシュファイルを管理する。"""

    RULES_FILE = "rules_cache.json"
    VERSION_FILE = "swiftlint_version.txt"
    DOCS_DIR_FILE = "docs_directory.txt"

    def __init__(self, cache_dir: Path) -> None:
        self._cache_dir = cache_dir

    @property
    def cache_dir(self) -> Path:
        return self._cache_dir

    def _write(self, name: str, content: str) -> None:
        try:
            self._cache_dir.mkdir(parents=True, exist_ok=True)
            (self._cache_dir / name).write_text(content, encoding="utf-8")
        except OSError as e:
            raise StorageError(f"Failed to write cache file {name}: {e}") from e

    def _read(self, name: str) -> str | None:
        path = self._cache_dir / name
        if not path.exists():
            return None
        try:
            return path.read_text(encoding="utf-8")
        except OSError as e:
            raise StorageError(f"Failed to read cache file {name}: {e}") from e

    def save_cached_rules(self, rules: list[Rule]) -> None:
        self._write(self.RULES_FILE, _RULES_ADAPTER.dump_json(rules, indent=2).decode("utf-8"))

    def load_cached_rules(self) -> list[Rule]:
        """キャッシュ済みのルールを返す。無い・壊れている場合は空リスト。"""
        content = self._read(self.RULES_FILE)
        if content is None:
            return []
        try:
            return _RULES_ADAPTER.validate_json(content)
        except ValidationError:
            logger.warning("Ignoring corrupt rules cache at %s", self._cache_dir / self.RULES_FILE)
            return []

    def save_swiftlint_version(self, version: str) -> None:
        self._write(self.VERSION_FILE, version)

    def get_cached_swiftlint_version(self) -> str | None:
        content = self._read(self.VERSION_FILE)
        if content is None:
            return None
        return content.strip() or None

    def save_docs_directory(self, path: Path) -> None:
        self._write(self.DOCS_DIR_FILE, str(path))

    def get_cached_docs_directory(self) -> Path | None:
        content = self._read(self.DOCS_DIR_FILE)
        if not content or not content.strip():
            return None
        path = Path(content.strip())
        return path if path.is_dir() else None

    def clear_cache(self) -> None:
        for name in (self.RULES_FILE, self.VERSION_FILE, self.DOCS_DIR_FILE):
            (self._cache_dir / name).unlink(missing_ok=True)


def load_json_list(path: Path) -> list[dict[str, object]]:
    """JSON配列ファイルを読み込む。無い・壊れている場合は空リスト。"""
    if not path.exists():
        return []
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except (json.JSONDecodeError, OSError):
        return []
    return data if isinstance(data, list) else []
