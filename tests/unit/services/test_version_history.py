"""ConfigVersionHistoryServiceのユニットテスト。"""

from pathlib import Path

import pytest

from rulestudio.models.errors import ConfigFileNotFoundError
from rulestudio.services.version_history import ConfigVersionHistoryService
from rulestudio.services.yaml_engine import backup_path_for


@pytest.fixture
def history_service() -> ConfigVersionHistoryService:
    return ConfigVersionHistoryService()


def _write_backup(config_path: Path, timestamp: int, content: str) -> Path:
    path = backup_path_for(config_path, timestamp)
    path.write_text(content, encoding="utf-8")
    return path


class TestListBackups:
    async def test_newest_first(self, history_service: ConfigVersionHistoryService, config_path: Path) -> None:
        _write_backup(config_path, 1700000000, "rules:\n  todo: true\n")
        _write_backup(config_path, 1700000500, "rules:\n  todo: false\n")
        (config_path.parent / "other.yml.1700000100.backup").write_text("x", encoding="utf-8")
        (config_path.parent / ".swiftlint.yml.notanumber.backup").write_text("x", encoding="utf-8")

        backups = await history_service.list_backups(config_path)
        assert [b.id for b in backups] == [
            ".swiftlint.yml.1700000500.backup",
            ".swiftlint.yml.1700000000.backup",
        ]
        assert backups[0].file_size == len("rules:\n  todo: false\n")

    async def test_missing_directory(self, history_service: ConfigVersionHistoryService, tmp_path: Path) -> None:
        assert await history_service.list_backups(tmp_path / "missing" / ".swiftlint.yml") == []


class TestLoadAndDiff:
    async def test_load_backup(self, history_service: ConfigVersionHistoryService, config_path: Path) -> None:
        _write_backup(config_path, 1700000000, "rules:\n  todo: true\n")
        (backup,) = await history_service.list_backups(config_path)
        assert await history_service.load_backup(backup) == "rules:\n  todo: true\n"

    async def test_load_deleted_backup_raises(
        self, history_service: ConfigVersionHistoryService, config_path: Path
    ) -> None:
        path = _write_backup(config_path, 1700000000, "rules: {}\n")
        (backup,) = await history_service.list_backups(config_path)
        path.unlink()
        with pytest.raises(ConfigFileNotFoundError):
            await history_service.load_backup(backup)

    async def test_diff_between(self, history_service: ConfigVersionHistoryService, config_path: Path) -> None:
        _write_backup(config_path, 1700000000, "rules:\n  todo: true\n  force_cast: true\n")
        _write_backup(config_path, 1700000500, "rules:\n  todo: false\n  empty_count: true\n")
        newer, older = await history_service.list_backups(config_path)

        diff = await history_service.diff_between(older, newer)
        assert diff.added_rules == ["empty_count"]
        assert diff.removed_rules == ["force_cast"]
        assert diff.modified_rules == ["todo"]
        assert diff.before == "rules:\n  todo: true\n  force_cast: true\n"


class TestRestoreBackup:
    async def test_restore_writes_safety_backup(
        self, history_service: ConfigVersionHistoryService, config_path: Path, sample_config_text: str
    ) -> None:
        _write_backup(config_path, 1600000000, "rules:\n  todo: false\n")
        (backup,) = await history_service.list_backups(config_path)

        await history_service.restore_backup(backup, config_path)

        assert config_path.read_text(encoding="utf-8") == "rules:\n  todo: false\n"
        backups = await history_service.list_backups(config_path)
        assert len(backups) == 2
        assert await history_service.load_backup(backups[0]) == sample_config_text

    async def test_restore_when_config_missing(
        self, history_service: ConfigVersionHistoryService, tmp_path: Path
    ) -> None:
        config_path = tmp_path / ".swiftlint.yml"
        _write_backup(config_path, 1600000000, "rules: {}\n")
        (backup,) = await history_service.list_backups(config_path)

        await history_service.restore_backup(backup, config_path)
        assert config_path.read_text(encoding="utf-8") == "rules: {}\n"
        assert len(await history_service.list_backups(config_path)) == 1


class TestPruneOldBackups:
    async def test_keeps_newest(self, history_service: ConfigVersionHistoryService, config_path: Path) -> None:
        for offset in range(5):
            _write_backup(config_path, 1700000000 + offset, f"# {offset}\n")

        removed = await history_service.prune_old_backups(config_path, keep_count=2)

        assert removed == 3
        remaining = await history_service.list_backups(config_path)
        assert [b.id for b in remaining] == [
            ".swiftlint.yml.1700000004.backup",
            ".swiftlint.yml.1700000003.backup",
        ]

    async def test_nothing_to_prune(self, history_service: ConfigVersionHistoryService, config_path: Path) -> None:
        _write_backup(config_path, 1700000000, "# only\n")
        assert await history_service.prune_old_backups(config_path, keep_count=10) == 0
