"""RuleDetailViewModelのユニットテスト。"""

from pathlib import Path

import pytest

from rulestudio.models.errors import NoWorkspaceError
from rulestudio.models.rule import Rule, RuleParameter
from rulestudio.services.yaml_engine import YAMLConfigurationEngine, parse_config_text
from rulestudio.viewmodels.rule_detail import RuleDetailViewModel


def saved_rules(config_path: Path) -> dict:
    return parse_config_text(config_path.read_text(encoding="utf-8")).rules


class TestEditing:
    def test_pending_changes_follow_edits(self, config_path: Path) -> None:
        rule = Rule(id="force_cast", name="Force Cast", is_enabled=True)
        vm = RuleDetailViewModel(rule, YAMLConfigurationEngine(config_path))
        vm.load_configuration()
        assert vm.severity == "error"
        assert vm.pending_changes is None

        vm.update_severity("warning")
        assert vm.pending_changes is not None
        assert vm.pending_changes.severity == "warning"

        vm.update_severity("error")
        assert vm.pending_changes is None

    def test_unconfigured_opt_in_rule_starts_disabled(self, config_path: Path) -> None:
        rule = Rule(id="closure_spacing", name="Closure Spacing", is_opt_in=True)
        vm = RuleDetailViewModel(rule, YAMLConfigurationEngine(config_path))
        vm.load_configuration()
        assert vm.is_enabled is False

        vm.update_enabled(True)
        diff = vm.generate_diff()
        assert diff is not None
        assert diff.added_rules == ["closure_spacing"]

    def test_default_parameter_values(self) -> None:
        rule = Rule(
            id="line_length",
            name="Line Length",
            parameters=[RuleParameter(name="warning", type="integer", default_value=120)],
        )
        assert RuleDetailViewModel(rule).default_parameter_values() == {"warning": 120}

    def test_cancel_restores_file_state(self, config_path: Path) -> None:
        vm = RuleDetailViewModel(Rule(id="force_cast", name="Force Cast"), YAMLConfigurationEngine(config_path))
        vm.load_configuration()
        vm.update_enabled(False)
        vm.cancel_changes()
        assert vm.is_enabled is True
        assert vm.pending_changes is None


class TestSave:
    def test_save_severity(self, config_path: Path) -> None:
        vm = RuleDetailViewModel(Rule(id="force_cast", name="Force Cast"), YAMLConfigurationEngine(config_path))
        vm.load_configuration()
        vm.update_severity("warning")
        vm.save_configuration()

        assert saved_rules(config_path)["force_cast"].severity == "warning"
        assert vm.pending_changes is None
        assert len(list(config_path.parent.glob("*.backup"))) == 1

    def test_save_parameters(self, config_path: Path) -> None:
        vm = RuleDetailViewModel(Rule(id="line_length", name="Line Length"), YAMLConfigurationEngine(config_path))
        vm.load_configuration()
        vm.update_parameter("warning", 100)
        vm.update_parameter("error", None)
        vm.save_configuration()

        assert saved_rules(config_path)["line_length"].parameters == {"warning": 100}

    def test_disable_keeps_other_settings(self, config_path: Path) -> None:
        vm = RuleDetailViewModel(Rule(id="force_cast", name="Force Cast"), YAMLConfigurationEngine(config_path))
        vm.load_configuration()
        vm.update_enabled(False)
        vm.save_configuration()

        rule = saved_rules(config_path)["force_cast"]
        assert rule.enabled is False
        assert rule.severity == "error"

    def test_enable_rule_from_disabled_list(self, config_path: Path) -> None:
        vm = RuleDetailViewModel(Rule(id="todo", name="Todo"), YAMLConfigurationEngine(config_path))
        vm.load_configuration()
        assert vm.is_enabled is False

        vm.update_enabled(True)
        vm.save_configuration()

        saved = parse_config_text(config_path.read_text(encoding="utf-8"))
        assert saved.disabled_rules is None
        assert saved.rules["todo"].enabled is True

    def test_disable_keeps_changed_severity(self, config_path: Path) -> None:
        vm = RuleDetailViewModel(Rule(id="force_cast", name="Force Cast"), YAMLConfigurationEngine(config_path))
        vm.load_configuration()
        vm.update_enabled(False)
        vm.update_severity("warning")
        assert vm.pending_changes is not None
        assert vm.pending_changes.severity == "warning"
        vm.save_configuration()

        rule = saved_rules(config_path)["force_cast"]
        assert rule.enabled is False
        assert rule.severity == "warning"

    def test_enable_adds_to_only_rules(self, config_path: Path) -> None:
        config_path.write_text("only_rules:\n  - force_cast\n", encoding="utf-8")
        vm = RuleDetailViewModel(Rule(id="todo", name="Todo"), YAMLConfigurationEngine(config_path))
        vm.load_configuration()
        assert vm.is_enabled is False

        vm.update_enabled(True)
        vm.save_configuration()

        saved = parse_config_text(config_path.read_text(encoding="utf-8"))
        assert saved.only_rules == ["force_cast", "todo"]

    def test_save_without_engine(self) -> None:
        with pytest.raises(NoWorkspaceError):
            RuleDetailViewModel(Rule(id="todo", name="Todo")).save_configuration()
