"""ConfigComparisonServiceのユニットテスト。"""

from pathlib import Path

import pytest

from rulestudio.models.errors import ConfigParseError
from rulestudio.services.comparison import ConfigComparisonService

FIRST = """\
rules:
  force_cast:
    severity: error
  line_length:
    warning: 120
  todo: true
"""

SECOND = """\
rules:
  force_cast:
    severity: warning
  line_length:
    warning: 120
  empty_count: true
"""


@pytest.fixture
def comparison_service() -> ConfigComparisonService:
    return ConfigComparisonService()


class TestCompareContent:
    async def test_classifies_rules(self, comparison_service: ConfigComparisonService) -> None:
        result = await comparison_service.compare_content(FIRST, "Team", SECOND, "Mine")

        assert result.first_label == "Team"
        assert result.second_label == "Mine"
        assert result.only_in_first == ["todo"]
        assert result.only_in_second == ["empty_count"]
        assert result.in_both_same == ["line_length"]
        assert [d.rule_id for d in result.in_both_different] == ["force_cast"]
        assert result.in_both_different[0].differences == ["Severity: Team=error, Mine=warning"]
        assert result.total_differences == 3

    async def test_diff_mirrors_classification(self, comparison_service: ConfigComparisonService) -> None:
        result = await comparison_service.compare_content(FIRST, "A", SECOND, "B")

        assert result.diff.added_rules == ["empty_count"]
        assert result.diff.removed_rules == ["todo"]
        assert result.diff.modified_rules == ["force_cast"]
        assert result.diff.before == FIRST
        assert result.diff.after == SECOND

    async def test_enabled_difference_is_described(self, comparison_service: ConfigComparisonService) -> None:
        result = await comparison_service.compare_content(
            "rules:\n  todo: true\n", "A", "rules:\n  todo: false\n", "B"
        )
        assert result.in_both_different[0].differences == ["A: enabled, B: disabled"]

    async def test_identical_configs(self, comparison_service: ConfigComparisonService) -> None:
        result = await comparison_service.compare_content(FIRST, "A", FIRST, "B")
        assert result.total_differences == 0
        assert result.diff.has_changes is False

    async def test_invalid_yaml_raises(self, comparison_service: ConfigComparisonService) -> None:
        with pytest.raises(ConfigParseError):
            await comparison_service.compare_content("rules: [", "A", SECOND, "B")


class TestCompareFiles:
    async def test_compare_files(self, comparison_service: ConfigComparisonService, tmp_path: Path) -> None:
        first = tmp_path / "first.yml"
        second = tmp_path / "second.yml"
        first.write_text(FIRST, encoding="utf-8")
        second.write_text(SECOND, encoding="utf-8")

        result = await comparison_service.compare(first, "first", second, "second")
        assert result.only_in_first == ["todo"]
        assert result.diff.before == FIRST

    async def test_missing_file_is_empty(self, comparison_service: ConfigComparisonService, tmp_path: Path) -> None:
        first = tmp_path / "first.yml"
        first.write_text(FIRST, encoding="utf-8")

        result = await comparison_service.compare(first, "first", tmp_path / "missing.yml", "missing")
        assert result.only_in_first == ["force_cast", "line_length", "todo"]
        assert result.only_in_second == []
        assert result.diff.after == ""
