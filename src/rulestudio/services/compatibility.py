"""設定と特定バージョンのSwiftLintとの互換性をチェックするサービス。"""

import logging

from rulestudio.models.compatibility import (
    CompatibilityReport,
    DeprecatedRuleInfo,
    RemovedRuleInfo,
    RenamedRuleInfo,
)
from rulestudio.models.configuration import YAMLConfig
from rulestudio.services.deprecations import DeprecationDatabase, is_version_less_than

logger = logging.getLogger(__name__)


class VersionCompatibilityChecker:
    """非推奨・削除・改名されたルールと、まだ使っていない新ルールを洗い出す。"""

    def __init__(self, database: DeprecationDatabase) -> None:
        self._db = database

    def check_compatibility(self, config: YAMLConfig, swiftlint_version: str) -> CompatibilityReport:
        """config を swiftlint_version に対してチェックする。"""
        rule_ids = sorted(config.all_rule_ids())

        def reached(changed_in: str) -> bool:
            return not is_version_less_than(swiftlint_version, changed_in)

        removed: list[RemovedRuleInfo] = []
        removed_ids: set[str] = set()
        for rule_id in rule_ids:
            removal = self._db.removed_rules.get(rule_id)
            if removal is not None and reached(removal.removed_in):
                removed.append(
                    RemovedRuleInfo(
                        rule_id=rule_id,
                        removed_in=removal.removed_in,
                        replacement=removal.replacement,
                        message=removal.message,
                    )
                )
                removed_ids.add(rule_id)

        deprecated: list[DeprecatedRuleInfo] = []
        for rule_id in rule_ids:
            deprecation = self._db.deprecated_rules.get(rule_id)
            if deprecation is None or rule_id in removed_ids or not reached(deprecation.deprecated_in):
                continue
            deprecated.append(
                DeprecatedRuleInfo(
                    rule_id=rule_id,
                    deprecated_in=deprecation.deprecated_in,
                    replacement=deprecation.replacement,
                    message=deprecation.message,
                )
            )

        renamed = [
            RenamedRuleInfo(old_id=rule_id, new_id=self._db.renamed_rules[rule_id])
            for rule_id in rule_ids
            if rule_id in self._db.renamed_rules
        ]

        configured = set(rule_ids)
        new_rules = [rule for rule in self._db.rules_available_in(swiftlint_version) if rule not in configured]

        report = CompatibilityReport(
            swiftlint_version=swiftlint_version,
            deprecated_rules=deprecated,
            removed_rules=removed,
            renamed_rules=renamed,
            available_new_rules=new_rules,
        )
        logger.info("Compatibility with %s: %d issues", swiftlint_version, report.total_issue_count)
        return report
