"""SwiftLintのバージョンアップに伴う設定移行を計画・適用するサービス。"""

import logging

from rulestudio.models.configuration import YAMLConfig
from rulestudio.models.migration import MigrationPlan, MigrationStep
from rulestudio.services.deprecations import DeprecationDatabase, is_version_less_than

logger = logging.getLogger(__name__)

_LIST_FIELDS = ("disabled_rules", "opt_in_rules", "analyzer_rules", "only_rules")


def _crossed(from_version: str, to_version: str, changed_in: str) -> bool:
    """from < changed_in <= to かどうか。"""
    return is_version_less_than(from_version, changed_in) and not is_version_less_than(to_version, changed_in)


def _rename_in_lists(config: YAMLConfig, old_id: str, new_id: str) -> None:
    for field in _LIST_FIELDS:
        values = getattr(config, field)
        if not values or old_id not in values:
            continue
        renamed: list[str] = []
        for value in values:
            target = new_id if value == old_id else value
            if target not in renamed:
                renamed.append(target)
        setattr(config, field, renamed)


def _remove_from_lists(config: YAMLConfig, rule_id: str) -> None:
    for field in _LIST_FIELDS:
        values = getattr(config, field)
        if not values:
            continue
        remaining = [value for value in values if value != rule_id]
        setattr(config, field, remaining or None)


def rename_rule(config: YAMLConfig, old_id: str, new_id: str) -> None:
    """設定内のルールIDを old_id から new_id に付け替える（インプレース）。

    rules のエントリは新IDに移し、新IDが既にある場合は既存の設定を残す。
    """
    if old_id in config.rules:
        entry = config.rules.pop(old_id)
        config.rules.setdefault(new_id, entry)
        if old_id in config.top_level_rules:
            config.top_level_rules = [new_id if r == old_id else r for r in config.top_level_rules]
        if old_id in config.key_order:
            config.key_order = [new_id if k == old_id else k for k in config.key_order]
        if old_id in config.comments and new_id not in config.comments:
            config.comments[new_id] = config.comments.pop(old_id)
    _rename_in_lists(config, old_id, new_id)


class MigrationAssistant:
    """設定を移行元バージョンから移行先バージョンへ移すための手順を作る。"""

    def __init__(self, database: DeprecationDatabase) -> None:
        self._db = database

    def detect_migrations(self, config: YAMLConfig, from_version: str, to_version: str) -> MigrationPlan:
        """移行計画を作成する。

        手順は改名、削除、非推奨ルールの置き換え、新ルールの案内の順に並ぶ。
        """
        rule_ids = sorted(config.all_rule_ids())
        steps: list[MigrationStep] = []
        handled: set[str] = set()

        renamed = self._db.renamed_rules
        for rule_id in rule_ids:
            if rule_id in renamed:
                steps.append(MigrationStep.rename(rule_id, renamed[rule_id]))
                handled.add(rule_id)

        for rule_id in rule_ids:
            removal = self._db.removed_rules.get(rule_id)
            if removal is None or rule_id in handled:
                continue
            if _crossed(from_version, to_version, removal.removed_in):
                steps.append(MigrationStep.remove(rule_id, removal.message))
                handled.add(rule_id)

        for rule_id in rule_ids:
            deprecation = self._db.deprecated_rules.get(rule_id)
            if deprecation is None or rule_id in handled or deprecation.replacement is None:
                continue
            if _crossed(from_version, to_version, deprecation.deprecated_in):
                steps.append(MigrationStep.rename(rule_id, deprecation.replacement))
                handled.add(rule_id)

        new_rules = self._db.rules_added(from_version, to_version)
        if new_rules:
            steps.append(
                MigrationStep.manual(
                    "new-rules",
                    f"New rules available: {', '.join(new_rules)}. Consider enabling them.",
                )
            )

        logger.info("Migration %s -> %s: %d steps", from_version, to_version, len(steps))
        return MigrationPlan(from_version=from_version, to_version=to_version, steps=steps)

    def apply_migration(self, plan: MigrationPlan, config: YAMLConfig) -> YAMLConfig:
        """自動適用できる手順を適用した設定のコピーを返す。"""
        migrated = config.model_copy(deep=True)
        for step in plan.auto_applyable_steps:
            if step.rule_id is None:
                continue
            if step.kind == "rename_rule" and step.new_rule_id:
                rename_rule(migrated, step.rule_id, step.new_rule_id)
            elif step.kind == "remove_deprecated_rule":
                migrated.rules.pop(step.rule_id, None)
                _remove_from_lists(migrated, step.rule_id)
            elif step.kind == "update_parameter" and step.old_parameter and step.new_parameter:
                rule_config = migrated.rules.get(step.rule_id)
                if rule_config is not None and rule_config.parameters and step.old_parameter in rule_config.parameters:
                    rule_config.parameters[step.new_parameter] = rule_config.parameters.pop(step.old_parameter)
        return migrated
