"""バージョン互換性画面の状態とロジック。"""

import logging
from pathlib import Path

from rulestudio.models.compatibility import CompatibilityReport, RenamedRuleInfo
from rulestudio.models.errors import ConfigFileNotFoundError, StudioError
from rulestudio.services.compatibility import VersionCompatibilityChecker
from rulestudio.services.migration import rename_rule
from rulestudio.services.swiftlint_cli import SwiftLintCLI
from rulestudio.services.yaml_engine import YAMLConfigurationEngine

logger = logging.getLogger(__name__)


class VersionCompatibilityViewModel:
    """インストール済みSwiftLintに対する設定の互換性を調べ、改名を適用する。"""

    def __init__(self, checker: VersionCompatibilityChecker, cli: SwiftLintCLI, config_path: Path | None) -> None:
        self._checker = checker
        self._cli = cli
        self.config_path = config_path
        self.current_version: str | None = None
        self.report: CompatibilityReport | None = None
        self.is_checking = False
        self.error: Exception | None = None

    async def check_compatibility(self) -> None:
        if self.config_path is None:
            self.error = ConfigFileNotFoundError()
            return
        if self.is_checking:
            return
        self.is_checking = True
        self.error = None
        self.report = None
        try:
            self.current_version = await self._cli.get_version()
            config = YAMLConfigurationEngine(self.config_path).load()
            self.report = self._checker.check_compatibility(config, self.current_version)
        except StudioError as e:
            self.error = e
        finally:
            self.is_checking = False

    def _apply_renames(self, renames: list[RenamedRuleInfo]) -> None:
        """改名をまとめて適用し、バックアップ付きで1回だけ保存する。"""
        if self.config_path is None or not renames:
            return
        engine = YAMLConfigurationEngine(self.config_path)
        config = engine.load()
        for renamed in renames:
            rename_rule(config, renamed.old_id, renamed.new_id)
        engine.save(config, create_backup=True)
        for renamed in renames:
            logger.info("Renamed %s to %s", renamed.old_id, renamed.new_id)

    async def apply_renaming(self, renamed: RenamedRuleInfo) -> None:
        """1件の改名を適用して再チェックする。"""
        try:
            self._apply_renames([renamed])
        except StudioError as e:
            self.error = e
            return
        await self.check_compatibility()

    async def apply_all_fixes(self) -> None:
        """レポート中の全ての改名を適用する。"""
        if self.report is None:
            return
        try:
            self._apply_renames(self.report.renamed_rules)
        except StudioError as e:
            self.error = e
            return
        await self.check_compatibility()
