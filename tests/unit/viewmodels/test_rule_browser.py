"""RuleBrowserViewModelのユニットテスト。"""

from pathlib import Path
from unittest.mock import AsyncMock

import pytest

from rulestudio.models.rule import Rule
from rulestudio.services.rule_registry import RuleRegistry
from rulestudio.services.swiftlint_cli import SwiftLintCLI
from rulestudio.services.yaml_engine import YAMLConfigurationEngine, parse_config_text
from rulestudio.storage.cache import CacheManager
from rulestudio.viewmodels.rule_browser import RuleBrowserViewModel


@pytest.fixture
def registry(cache: CacheManager) -> RuleRegistry:
    registry = RuleRegistry(AsyncMock(spec=SwiftLintCLI), cache)
    registry.set_rules(
        [
            Rule(id="force_cast", name="Force Cast", category="idiomatic", is_enabled=True),
            Rule(id="empty_count", name="Empty Count", category="performance", is_opt_in=True),
            Rule(
                id="line_length",
                name="Line Length",
                category="metrics",
                is_enabled=True,
                description="Lines should not span too many characters.",
            ),
            Rule(id="todo", name="Todo", category="lint"),
        ]
    )
    return registry


@pytest.fixture
def vm(registry: RuleRegistry) -> RuleBrowserViewModel:
    return RuleBrowserViewModel(registry)


def ids(rules: list[Rule]) -> list[str]:
    return [r.id for r in rules]


class TestFiltering:
    def test_search_matches_id_name_and_description(self, vm: RuleBrowserViewModel) -> None:
        vm.search_text = "LINE"
        assert ids(vm.filtered_rules) == ["line_length"]
        vm.search_text = "characters"
        assert ids(vm.filtered_rules) == ["line_length"]

    def test_placeholder_description_is_not_searched(self, vm: RuleBrowserViewModel) -> None:
        vm.search_text = "loading"
        assert vm.filtered_rules == []

    def test_status_filters(self, vm: RuleBrowserViewModel) -> None:
        vm.selected_status = "enabled"
        assert ids(vm.filtered_rules) == ["force_cast", "line_length"]
        vm.selected_status = "disabled"
        assert ids(vm.filtered_rules) == ["empty_count", "todo"]
        vm.selected_status = "opt_in"
        assert ids(vm.filtered_rules) == ["empty_count"]

    def test_category_filter_and_counts(self, vm: RuleBrowserViewModel) -> None:
        vm.selected_status = "enabled"
        vm.selected_category = "metrics"
        assert ids(vm.filtered_rules) == ["line_length"]
        assert vm.category_counts == {"idiomatic": 1, "metrics": 1}

        vm.clear_filters()
        assert len(vm.filtered_rules) == 4

    def test_sorting_and_grouping(self, vm: RuleBrowserViewModel) -> None:
        vm.selected_sort_option = "category"
        assert ids(vm.filtered_rules) == ["force_cast", "todo", "line_length", "empty_count"]
        assert [category for category, _ in vm.grouped_rules] == ["idiomatic", "lint", "metrics", "performance"]

        vm.selected_sort_option = "identifier"
        assert ids(vm.filtered_rules) == ["empty_count", "force_cast", "line_length", "todo"]


class TestSelection:
    def test_multi_select(self, vm: RuleBrowserViewModel) -> None:
        vm.toggle_multi_select()
        vm.toggle_rule_selection("todo")
        vm.toggle_rule_selection("force_cast")
        vm.toggle_rule_selection("todo")
        assert vm.selected_rule_ids == {"force_cast"}

        vm.selected_status = "enabled"
        vm.select_all_filtered()
        assert vm.selected_rule_ids == {"force_cast", "line_length"}

        vm.toggle_multi_select()
        assert vm.selected_rule_ids == set()


class TestBulkEdit:
    def test_no_selection(self, vm: RuleBrowserViewModel, config_path: Path) -> None:
        engine = YAMLConfigurationEngine(config_path)
        engine.load()
        assert vm.disable_selected_rules(engine) is None

    async def test_disable_and_save(
        self, vm: RuleBrowserViewModel, registry: RuleRegistry, config_path: Path
    ) -> None:
        engine = YAMLConfigurationEngine(config_path)
        engine.load()
        vm.selected_rule_ids = {"force_cast", "todo"}

        diff = vm.disable_selected_rules(engine)
        assert diff is not None
        assert diff.added_rules == ["todo"]
        assert diff.modified_rules == ["force_cast"]

        await vm.save_bulk_changes(engine)
        assert vm.error is None
        assert vm.bulk_diff is None
        saved = parse_config_text(config_path.read_text(encoding="utf-8"))
        assert saved.rules["force_cast"].enabled is False
        assert saved.rules["force_cast"].severity == "error"
        assert registry.get_rule("force_cast").is_enabled is False  # type: ignore[union-attr]
        assert list(config_path.parent.glob("*.backup"))

    async def test_enable_rule_from_disabled_list(
        self, vm: RuleBrowserViewModel, registry: RuleRegistry, config_path: Path
    ) -> None:
        engine = YAMLConfigurationEngine(config_path)
        engine.load()
        registry.apply_configuration(engine.config)
        assert registry.get_rule("todo").is_enabled is False  # type: ignore[union-attr]
        vm.toggle_rule_selection("todo")

        vm.enable_selected_rules(engine)
        await vm.save_bulk_changes(engine)

        saved = parse_config_text(config_path.read_text(encoding="utf-8"))
        assert saved.disabled_rules is None
        assert saved.rules["todo"].enabled is True
        assert registry.get_rule("todo").is_enabled is True  # type: ignore[union-attr]

    async def test_enable_adds_to_only_rules(
        self, vm: RuleBrowserViewModel, registry: RuleRegistry, config_path: Path
    ) -> None:
        config_path.write_text("only_rules:\n  - force_cast\n", encoding="utf-8")
        engine = YAMLConfigurationEngine(config_path)
        engine.load()
        vm.selected_rule_ids = {"todo"}

        vm.enable_selected_rules(engine)
        await vm.save_bulk_changes(engine)

        saved = parse_config_text(config_path.read_text(encoding="utf-8"))
        assert saved.only_rules == ["force_cast", "todo"]
        assert registry.get_rule("todo").is_enabled is True  # type: ignore[union-attr]
        assert registry.get_rule("line_length").is_enabled is False  # type: ignore[union-attr]

    async def test_thresholds_and_severity(self, vm: RuleBrowserViewModel, config_path: Path) -> None:
        engine = YAMLConfigurationEngine(config_path)
        engine.load()
        vm.selected_rule_ids = {"line_length"}

        vm.set_thresholds_for_selected(100, None, engine)
        await vm.save_bulk_changes(engine)
        vm.set_severity_for_selected("error", engine)
        await vm.save_bulk_changes(engine)

        rule = parse_config_text(config_path.read_text(encoding="utf-8")).rules["line_length"]
        assert rule.parameters == {"warning": 100, "error": 200}
        assert rule.severity == "error"

    async def test_save_without_pending_changes(self, vm: RuleBrowserViewModel, config_path: Path) -> None:
        engine = YAMLConfigurationEngine(config_path)
        engine.load()
        await vm.save_bulk_changes(engine)
        assert not list(config_path.parent.glob("*.backup"))
