"""設定バージョン履歴画面の状態とロジック。"""

import logging
from pathlib import Path

from rulestudio.models.configuration import ConfigDiff
from rulestudio.models.errors import StudioError
from rulestudio.models.history import ConfigBackup
from rulestudio.services.version_history import ConfigVersionHistoryService

logger = logging.getLogger(__name__)


class ConfigVersionHistoryViewModel:
    """バックアップの一覧・2点比較・復元・整理。"""

    def __init__(self, service: ConfigVersionHistoryService, config_path: Path | None) -> None:
        self._service = service
        self.config_path = config_path
        self.backups: list[ConfigBackup] = []
        self.selected_backup: ConfigBackup | None = None
        self.comparison_backup: ConfigBackup | None = None
        self.current_diff: ConfigDiff | None = None
        self.backup_to_restore: ConfigBackup | None = None
        self.show_restore_confirmation = False
        self.is_loading = False
        self.error: Exception | None = None

    async def load_backups(self) -> None:
        if self.config_path is None:
            self.backups = []
            return
        self.is_loading = True
        try:
            self.backups = await self._service.list_backups(self.config_path)
        finally:
            self.is_loading = False

    async def select_for_comparison(self, backup: ConfigBackup) -> None:
        """比較対象を選ぶ。1つ目、2つ目（差分を生成）、3つ目で選び直しの順に巡回する。"""
        if self.selected_backup is None:
            self.selected_backup = backup
        elif self.comparison_backup is None:
            self.comparison_backup = backup
            await self._generate_diff()
        else:
            self.selected_backup = backup
            self.comparison_backup = None
            self.current_diff = None

    def clear_comparison(self) -> None:
        self.selected_backup = None
        self.comparison_backup = None
        self.current_diff = None

    async def _generate_diff(self) -> None:
        if self.selected_backup is None or self.comparison_backup is None:
            return
        try:
            self.current_diff = await self._service.diff_between(self.selected_backup, self.comparison_backup)
        except StudioError as e:
            self.error = e

    def confirm_restore(self, backup: ConfigBackup) -> None:
        self.backup_to_restore = backup
        self.show_restore_confirmation = True

    async def restore_version(self) -> None:
        """confirm_restore で選んだバックアップを復元する。"""
        backup = self.backup_to_restore
        if backup is None or self.config_path is None:
            return
        try:
            await self._service.restore_backup(backup, self.config_path)
            self.error = None
            await self.load_backups()
        except StudioError as e:
            self.error = e
        finally:
            self.backup_to_restore = None
            self.show_restore_confirmation = False

    async def prune_old(self, keep_count: int = 10) -> None:
        if self.config_path is None:
            return
        try:
            await self._service.prune_old_backups(self.config_path, keep_count)
            await self.load_backups()
        except StudioError as e:
            self.error = e
