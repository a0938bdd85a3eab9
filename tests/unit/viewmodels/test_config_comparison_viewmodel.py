"""ConfigComparisonViewModelのユニットテスト。"""

from pathlib import Path

from rulestudio.models.configuration import Workspace
from rulestudio.models.errors import ConfigParseError
from rulestudio.services.comparison import ConfigComparisonService
from rulestudio.viewmodels.config_comparison import ConfigComparisonViewModel


def write_config(directory: Path, content: str) -> Path:
    directory.mkdir(parents=True, exist_ok=True)
    path = directory / ".swiftlint.yml"
    path.write_text(content, encoding="utf-8")
    return path


class TestConfigComparisonViewModel:
    async def test_defaults_left_to_workspace(self, swift_project: Path) -> None:
        vm = ConfigComparisonViewModel(ConfigComparisonService(), Workspace(path=swift_project))
        assert vm.left_path == swift_project / ".swiftlint.yml"
        assert vm.can_compare is False

        await vm.compare()
        assert vm.comparison_result is None

    async def test_compare(self, config_path: Path, tmp_path: Path) -> None:
        other = write_config(tmp_path / "TeamConfig", "rules:\n  force_cast:\n    severity: warning\n  todo: true\n")
        vm = ConfigComparisonViewModel(ConfigComparisonService())
        vm.select_left(config_path)
        vm.select_right(other)

        await vm.compare()

        result = vm.comparison_result
        assert result is not None
        assert (result.first_label, result.second_label) == ("MyApp", "TeamConfig")
        assert result.only_in_second == ["todo"]
        assert [d.rule_id for d in result.in_both_different] == ["force_cast"]
        assert vm.is_comparing is False

    async def test_selection_resets_result(self, config_path: Path) -> None:
        vm = ConfigComparisonViewModel(ConfigComparisonService())
        vm.select_left(config_path)
        vm.select_right(config_path)
        await vm.compare()
        assert vm.comparison_result is not None

        vm.select_right(config_path)
        assert vm.comparison_result is None

    async def test_parse_error_is_kept(self, config_path: Path, tmp_path: Path) -> None:
        broken = write_config(tmp_path / "Broken", "rules: [unclosed")
        vm = ConfigComparisonViewModel(ConfigComparisonService())
        vm.select_left(config_path)
        vm.select_right(broken)

        await vm.compare()
        assert isinstance(vm.error, ConfigParseError)
        assert vm.comparison_result is None
