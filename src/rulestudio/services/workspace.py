"""ワークスペースのオープン・検証・最近使った一覧を管理するサービス。"""

import json
import logging
import os
from pathlib import Path

from rulestudio.models.configuration import CONFIG_FILE_NAME, Workspace
from rulestudio.models.errors import (
    ConfigWriteError,
    NoWorkspaceError,
    NotASwiftProjectError,
    StorageError,
    WorkspaceAccessError,
    WorkspaceNotADirectoryError,
)
from rulestudio.storage.cache import load_json_list

logger = logging.getLogger(__name__)

DEFAULT_CONFIG_TEMPLATE = "default-swiftlint.yml"
RECENT_WORKSPACES_FILE = "recent_workspaces.json"

_PROJECT_MARKER_SUFFIXES = (".xcodeproj", ".xcworkspace")
_PROJECT_MARKER_NAMES = ("Package.swift", ".swiftpm")
_SKIPPED_DIRS = frozenset({".build", "Pods", "node_modules", ".git"})
_MAX_SCAN_DEPTH = 3


def _has_swift_files(directory: Path, depth: int = 0) -> bool:
    if depth > _MAX_SCAN_DEPTH:
        return False
    try:
        entries = list(os.scandir(directory))
    except OSError:
        return False
    for entry in entries:
        if entry.is_file() and entry.name.endswith(".swift"):
            return True
    for entry in entries:
        if entry.is_dir(follow_symlinks=False) and entry.name not in _SKIPPED_DIRS:
            if _has_swift_files(Path(entry.path), depth + 1):
                return True
    return False


def validate_workspace(path: Path) -> None:
    """path がSwiftプロジェクトのディレクトリか検証する。

    Raises:
        WorkspaceNotADirectoryError: ディレクトリでない場合。
        WorkspaceAccessError: 読み取れない場合。
        NotASwiftProjectError: Swiftプロジェクトの目印が見つからない場合。
    """
    if not path.is_dir():
        raise WorkspaceNotADirectoryError(str(path))
    try:
        names = [entry.name for entry in os.scandir(path)]
    except OSError as e:
        raise WorkspaceAccessError(str(path)) from e

    if any(name.endswith(_PROJECT_MARKER_SUFFIXES) or name in _PROJECT_MARKER_NAMES for name in names):
        return
    if _has_swift_files(path):
        return
    raise NotASwiftProjectError(str(path))


class WorkspaceManager:
    """現在のワークスペースと最近使ったワークスペースを管理する。"""

    def __init__(self, data_dir: Path, config_dir: Path, max_recent: int = 10) -> None:
        self._recent_file = data_dir / RECENT_WORKSPACES_FILE
        self._template_file = config_dir / DEFAULT_CONFIG_TEMPLATE
        self._max_recent = max_recent
        self.current_workspace: Workspace | None = None
        self.config_file_missing = False
        self.recent_workspaces: list[Workspace] = self._load_recent()

    def _load_recent(self) -> list[Workspace]:
        workspaces: list[Workspace] = []
        for item in load_json_list(self._recent_file):
            try:
                workspace = Workspace.model_validate(item)
            except ValueError:
                continue
            if workspace.path.is_dir():
                workspaces.append(workspace)
        return workspaces[: self._max_recent]

    def _save_recent(self) -> None:
        data = [json.loads(w.model_dump_json()) for w in self.recent_workspaces]
        try:
            self._recent_file.parent.mkdir(parents=True, exist_ok=True)
            self._recent_file.write_text(json.dumps(data, indent=2), encoding="utf-8")
        except OSError as e:
            raise StorageError(f"Failed to save recent workspaces: {e}") from e

    def _add_to_recent(self, workspace: Workspace) -> None:
        remaining = [w for w in self.recent_workspaces if w.path != workspace.path]
        self.recent_workspaces = [workspace, *remaining][: self._max_recent]
        self._save_recent()

    async def open_workspace(self, path: Path) -> Workspace:
        """ワークスペースを開く。

        最近使った一覧に同じパスがあれば、そのIDを引き継ぐ（違反履歴を保つため）。
        """
        path = Path(path).expanduser().resolve()
        validate_workspace(path)

        existing = next((w for w in self.recent_workspaces if w.path == path), None)
        workspace = existing.model_copy() if existing is not None else Workspace(path=path)
        self.current_workspace = workspace
        self._add_to_recent(workspace)
        self.check_config_file_exists()
        logger.info("Opened workspace %s", path)
        return workspace

    def close_workspace(self) -> None:
        self.current_workspace = None
        self.config_file_missing = False

    def require_workspace(self) -> Workspace:
        """現在のワークスペースを返す。

        Raises:
            NoWorkspaceError: ワークスペースが開かれていない場合。
        """
        if self.current_workspace is None:
            raise NoWorkspaceError()
        return self.current_workspace

    def resolve_config_path(self, config_path: str | None = None) -> Path:
        """明示されたパス、なければ現在のワークスペースの設定ファイルパスを返す。"""
        if config_path:
            return Path(config_path).expanduser()
        workspace = self.require_workspace()
        return workspace.config_path or workspace.path / CONFIG_FILE_NAME

    def check_config_file_exists(self) -> bool:
        workspace = self.current_workspace
        exists = bool(workspace and workspace.config_path and workspace.config_path.exists())
        self.config_file_missing = workspace is not None and not exists
        return exists

    def create_default_config_file(self) -> Path:
        """既定の .swiftlint.yml を作る。既にある場合は何もしない。

        Raises:
            NoWorkspaceError: ワークスペースが開かれていない場合。
        """
        workspace = self.current_workspace
        if workspace is None or workspace.config_path is None:
            raise NoWorkspaceError()
        config_path = workspace.config_path
        if not config_path.exists():
            try:
                config_path.write_text(self._template_file.read_text(encoding="utf-8"), encoding="utf-8")
            except OSError as e:
                raise ConfigWriteError(str(config_path), str(e)) from e
            logger.info("Created default configuration at %s", config_path)
        self.check_config_file_exists()
        return config_path

    def mark_analyzed(self, workspace: Workspace) -> None:
        """解析完了時刻を記録する。"""
        for recent in self.recent_workspaces:
            if recent.id == workspace.id:
                recent.last_analyzed = workspace.last_analyzed
        self._save_recent()

    def remove_from_recent_workspaces(self, workspace: Workspace) -> None:
        self.recent_workspaces = [w for w in self.recent_workspaces if w.id != workspace.id]
        self._save_recent()

    def clear_recent_workspaces(self) -> None:
        self.recent_workspaces = []
        self._save_recent()
