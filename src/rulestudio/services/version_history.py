"""設定ファイルのバックアップ（バージョン履歴）を管理するサービス。"""

import logging
import re
from datetime import datetime
from pathlib import Path

from rulestudio.models.configuration import ConfigDiff
from rulestudio.models.errors import ConfigFileNotFoundError, ConfigParseError, ConfigWriteError
from rulestudio.models.history import ConfigBackup
from rulestudio.services.yaml_engine import diff_configs, next_backup_path, parse_config_text

logger = logging.getLogger(__name__)


class ConfigVersionHistoryService:
    """``<name>.<timestamp>.backup`` 形式のバックアップを一覧・復元・比較・整理する。"""

    def _backup_pattern(self, config_path: Path) -> re.Pattern[str]:
        return re.compile(rf"^{re.escape(config_path.name)}\.(\d+)\.backup$")

    async def list_backups(self, config_path: Path) -> list[ConfigBackup]:
        """バックアップを新しい順に返す。ディレクトリを読めない場合は空リスト。"""
        config_path = Path(config_path)
        pattern = self._backup_pattern(config_path)
        try:
            entries = list(config_path.parent.iterdir())
        except OSError:
            return []

        backups: list[ConfigBackup] = []
        for entry in entries:
            match = pattern.match(entry.name)
            if match is None or not entry.is_file():
                continue
            try:
                size = entry.stat().st_size
            except OSError:
                size = 0
            backups.append(
                ConfigBackup(
                    id=entry.name,
                    path=entry,
                    timestamp=datetime.fromtimestamp(int(match.group(1))),
                    file_size=size,
                )
            )
        backups.sort(key=lambda b: b.timestamp, reverse=True)
        return backups

    async def load_backup(self, backup: ConfigBackup) -> str:
        """バックアップの内容を返す。

        Raises:
            ConfigFileNotFoundError: バックアップファイルが存在しない場合。
            ConfigParseError: UTF-8として読めない場合。
        """
        try:
            return backup.path.read_text(encoding="utf-8")
        except FileNotFoundError:
            raise ConfigFileNotFoundError(str(backup.path)) from None
        except UnicodeDecodeError as e:
            raise ConfigParseError(f"{backup.path.name} is not UTF-8 text") from e

    async def restore_backup(self, backup: ConfigBackup, config_path: Path) -> None:
        """バックアップを現在の設定に書き戻す。

        書き戻す前に現在の設定を新しいバックアップとして退避するため、復元も取り消せる。
        """
        config_path = Path(config_path)
        content = await self.load_backup(backup)
        try:
            if config_path.exists():
                next_backup_path(config_path).write_bytes(config_path.read_bytes())
            config_path.write_text(content, encoding="utf-8")
        except OSError as e:
            raise ConfigWriteError(str(config_path), str(e)) from e
        logger.info("Restored %s from %s", config_path.name, backup.id)

    async def diff_between(self, first: ConfigBackup, second: ConfigBackup) -> ConfigDiff:
        """2つのバックアップ間の差分を返す。"""
        first_text = await self.load_backup(first)
        second_text = await self.load_backup(second)
        return diff_configs(
            parse_config_text(first_text),
            parse_config_text(second_text),
            before_text=first_text,
            after_text=second_text,
        )

    async def prune_old_backups(self, config_path: Path, keep_count: int) -> int:
        """新しい順に keep_count 件を残して古いバックアップを削除する。

        Returns:
            削除した件数。
        """
        backups = await self.list_backups(config_path)
        removed = 0
        for backup in backups[max(keep_count, 0) :]:
            try:
                backup.path.unlink()
                removed += 1
            except FileNotFoundError:
                continue
        if removed:
            logger.info("Pruned %d old backups of %s", removed, Path(config_path).name)
        return removed
