"""ルールブラウザ画面の状態とロジック。"""

import logging
from typing import Any, Literal

from rulestudio.models.configuration import ConfigDiff, RuleConfiguration, YAMLConfig
from rulestudio.models.errors import StudioError
from rulestudio.models.rule import CATEGORY_DISPLAY_NAMES, PLACEHOLDER_DESCRIPTION, Rule, RuleCategory, Severity
from rulestudio.services.rule_registry import RuleRegistry
from rulestudio.services.yaml_engine import YAMLConfigurationEngine, enable_in_rule_lists

logger = logging.getLogger(__name__)

RuleStatusFilter = Literal["all", "enabled", "disabled", "opt_in"]
RuleSortOption = Literal["name", "identifier", "category"]


class RuleBrowserViewModel:
    """ルール一覧の検索・絞り込み・並び替えと、複数選択による一括編集。"""

    def __init__(self, registry: RuleRegistry) -> None:
        self._registry = registry
        self.search_text = ""
        self.selected_category: RuleCategory | None = None
        self.selected_status: RuleStatusFilter = "all"
        self.selected_sort_option: RuleSortOption = "name"

        self.is_multi_select_mode = False
        self.selected_rule_ids: set[str] = set()
        self.bulk_diff: ConfigDiff | None = None
        self._pending_config: YAMLConfig | None = None

        self.is_saving = False
        self.error: Exception | None = None

    # --- 絞り込み ---

    def _matches_search(self, rule: Rule) -> bool:
        query = self.search_text.strip().lower()
        if not query:
            return True
        if query in rule.id.lower() or query in rule.name.lower():
            return True
        return rule.description != PLACEHOLDER_DESCRIPTION and query in rule.description.lower()

    def _matches_status(self, rule: Rule) -> bool:
        if self.selected_status == "enabled":
            return rule.is_enabled
        if self.selected_status == "disabled":
            return not rule.is_enabled
        if self.selected_status == "opt_in":
            return rule.is_opt_in
        return True

    def _sort(self, rules: list[Rule]) -> list[Rule]:
        if self.selected_sort_option == "identifier":
            return sorted(rules, key=lambda r: r.id)
        if self.selected_sort_option == "category":
            return sorted(rules, key=lambda r: (CATEGORY_DISPLAY_NAMES[r.category], r.name.lower()))
        return sorted(rules, key=lambda r: r.name.lower())

    @property
    def filtered_rules(self) -> list[Rule]:
        rules = [
            rule
            for rule in self._registry.rules
            if self._matches_search(rule)
            and self._matches_status(rule)
            and (self.selected_category is None or rule.category == self.selected_category)
        ]
        return self._sort(rules)

    @property
    def grouped_rules(self) -> list[tuple[RuleCategory, list[Rule]]]:
        """カテゴリ表示名順のグループ。"""
        groups: dict[RuleCategory, list[Rule]] = {}
        for rule in self.filtered_rules:
            groups.setdefault(rule.category, []).append(rule)
        return sorted(groups.items(), key=lambda item: CATEGORY_DISPLAY_NAMES[item[0]])

    @property
    def category_counts(self) -> dict[RuleCategory, int]:
        """カテゴリ別件数。検索と状態の絞り込みだけを適用する。"""
        counts: dict[RuleCategory, int] = {}
        for rule in self._registry.rules:
            if self._matches_search(rule) and self._matches_status(rule):
                counts[rule.category] = counts.get(rule.category, 0) + 1
        return counts

    def clear_filters(self) -> None:
        self.search_text = ""
        self.selected_category = None
        self.selected_status = "all"

    # --- 複数選択 ---

    def toggle_multi_select(self) -> None:
        self.is_multi_select_mode = not self.is_multi_select_mode
        if not self.is_multi_select_mode:
            self.clear_selection()

    def toggle_rule_selection(self, rule_id: str) -> None:
        if rule_id in self.selected_rule_ids:
            self.selected_rule_ids.discard(rule_id)
        else:
            self.selected_rule_ids.add(rule_id)

    def select_all_filtered(self) -> None:
        self.selected_rule_ids = {rule.id for rule in self.filtered_rules}

    def clear_selection(self) -> None:
        self.selected_rule_ids = set()
        self.bulk_diff = None
        self._pending_config = None

    # --- 一括編集 ---

    def _bulk_update(self, engine: YAMLConfigurationEngine, update: Any, enabling: bool = False) -> ConfigDiff | None:
        if not self.selected_rule_ids:
            return None
        config = engine.get_config()
        rule_ids = sorted(self.selected_rule_ids)
        for rule_id in rule_ids:
            current = config.rules.get(rule_id, RuleConfiguration())
            config.rules[rule_id] = update(current)
        if enabling:
            enable_in_rule_lists(config, rule_ids)
        self._pending_config = config
        self.bulk_diff = engine.generate_diff(config)
        return self.bulk_diff

    def enable_selected_rules(self, engine: YAMLConfigurationEngine) -> ConfigDiff | None:
        return self._bulk_update(engine, lambda c: c.model_copy(update={"enabled": True}), enabling=True)

    def disable_selected_rules(self, engine: YAMLConfigurationEngine) -> ConfigDiff | None:
        return self._bulk_update(engine, lambda c: c.model_copy(update={"enabled": False}))

    def set_severity_for_selected(self, severity: Severity, engine: YAMLConfigurationEngine) -> ConfigDiff | None:
        return self._bulk_update(engine, lambda c: c.model_copy(update={"severity": severity}))

    def set_thresholds_for_selected(
        self,
        warning: int | None,
        error: int | None,
        engine: YAMLConfigurationEngine,
    ) -> ConfigDiff | None:
        """選択中ルールの warning/error しきい値パラメータを設定する。Noneの値は変更しない。"""

        def update(current: RuleConfiguration) -> RuleConfiguration:
            parameters = dict(current.parameters or {})
            if warning is not None:
                parameters["warning"] = warning
            if error is not None:
                parameters["error"] = error
            return current.model_copy(update={"parameters": parameters or None})

        return self._bulk_update(engine, update)

    async def save_bulk_changes(self, engine: YAMLConfigurationEngine) -> None:
        """保留中の一括変更をバックアップ付きで保存する。"""
        if self.is_saving or self._pending_config is None:
            return
        self.is_saving = True
        self.error = None
        try:
            engine.save(self._pending_config, create_backup=True)
            self._registry.apply_configuration(engine.config)
            logger.info("Saved bulk changes for %d rules", len(self.selected_rule_ids))
            self.bulk_diff = None
            self._pending_config = None
        except StudioError as e:
            self.error = e
        finally:
            self.is_saving = False
