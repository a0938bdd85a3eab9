"""移行アシスタント画面の状態とロジック。"""

from pathlib import Path

from rulestudio.models.configuration import ConfigDiff
from rulestudio.models.errors import ConfigFileNotFoundError, NoPreviousVersionError, StudioError
from rulestudio.models.migration import MigrationPlan
from rulestudio.services.migration import MigrationAssistant
from rulestudio.services.swiftlint_cli import SwiftLintCLI
from rulestudio.services.yaml_engine import YAMLConfigurationEngine


class MigrationAssistantViewModel:
    """移行元バージョンを受け取り、インストール済みSwiftLintへの移行計画を作って適用する。"""

    def __init__(self, assistant: MigrationAssistant, cli: SwiftLintCLI, config_path: Path | None) -> None:
        self._assistant = assistant
        self._cli = cli
        self.config_path = config_path
        self.previous_version = ""
        self.current_version: str | None = None
        self.migration_plan: MigrationPlan | None = None
        self.preview_diff: ConfigDiff | None = None
        self.is_detecting = False
        self.is_migrating = False
        self.migration_complete = False
        self.error: Exception | None = None

    async def detect_migrations(self) -> None:
        if not self.previous_version.strip():
            self.error = NoPreviousVersionError()
            return
        if self.config_path is None:
            self.error = ConfigFileNotFoundError()
            return
        if self.is_detecting:
            return

        self.is_detecting = True
        self.error = None
        self.migration_plan = None
        self.preview_diff = None
        self.migration_complete = False
        try:
            self.current_version = await self._cli.get_version()
            config = YAMLConfigurationEngine(self.config_path).load()
            self.migration_plan = self._assistant.detect_migrations(
                config, self.previous_version.strip(), self.current_version
            )
        except StudioError as e:
            self.error = e
        finally:
            self.is_detecting = False

    def preview_changes(self) -> None:
        if self.config_path is None or self.migration_plan is None:
            return
        try:
            engine = YAMLConfigurationEngine(self.config_path)
            config = engine.load()
            self.preview_diff = engine.generate_diff(self._assistant.apply_migration(self.migration_plan, config))
        except StudioError as e:
            self.error = e

    def apply_migration(self) -> None:
        if self.config_path is None or self.migration_plan is None or self.is_migrating:
            return
        self.is_migrating = True
        self.error = None
        try:
            engine = YAMLConfigurationEngine(self.config_path)
            config = engine.load()
            engine.save(self._assistant.apply_migration(self.migration_plan, config), create_backup=True)
            self.migration_complete = True
        except StudioError as e:
            self.error = e
        finally:
            self.is_migrating = False
