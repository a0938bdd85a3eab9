"""DeprecationDatabaseのユニットテスト。"""

from pathlib import Path

import pytest

from rulestudio.models.errors import StorageError
from rulestudio.services.deprecations import DeprecationDatabase, is_version_less_than


class TestIsVersionLessThan:
    def test_numeric_comparison(self) -> None:
        assert is_version_less_than("0.9.0", "0.10.0") is True
        assert is_version_less_than("0.50.0", "0.49.1") is False

    def test_missing_components_are_zero(self) -> None:
        assert is_version_less_than("0.50", "0.50.0") is False
        assert is_version_less_than("0.50.0", "0.50") is False
        assert is_version_less_than("0.50", "0.50.1") is True

    def test_prefix_and_suffix(self) -> None:
        assert is_version_less_than("v0.49.0", "0.50.0-rc1") is True

    def test_equal_versions(self) -> None:
        assert is_version_less_than("0.50.0", "0.50.0") is False


class TestDeprecationDatabase:
    def test_loads_bundled_data(self, deprecations: DeprecationDatabase) -> None:
        assert deprecations.renamed_rules["variable_name"] == "identifier_name"
        assert deprecations.deprecated_rules["inert_defer"].replacement == "no_empty_block"
        assert deprecations.removed_rules["variable_name"].removed_in == "0.35.0"
        assert "0.50.0" in deprecations.version_rule_additions

    def test_rules_added_between_versions(self, deprecations: DeprecationDatabase) -> None:
        added = deprecations.rules_added("0.48.0", "0.52.0")
        assert "superfluous_else" in added
        assert "self_binding" in added
        assert "direct_return" not in added
        assert "blanket_disable_command" not in added

    def test_rules_available_in(self, deprecations: DeprecationDatabase) -> None:
        available = deprecations.rules_available_in("0.30.0")
        assert "identifier_name" in available
        assert "overridden_super_call" in available
        assert "anyobject_protocol" not in available

    def test_as_dict(self, deprecations: DeprecationDatabase) -> None:
        data = deprecations.as_dict()
        assert set(data) == {"renamed_rules", "deprecated_rules", "removed_rules", "version_rule_additions"}

    def test_missing_file_raises(self, tmp_path: Path) -> None:
        with pytest.raises(StorageError):
            _ = DeprecationDatabase(tmp_path).renamed_rules

    def test_empty_file(self, tmp_path: Path) -> None:
        (tmp_path / "swiftlint-deprecations.yaml").write_text("", encoding="utf-8")
        database = DeprecationDatabase(tmp_path)
        assert database.renamed_rules == {}
        assert database.rules_added("0.1.0", "1.0.0") == []
