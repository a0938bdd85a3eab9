"""ConfigImportServiceのユニットテスト。"""

from pathlib import Path
from unittest.mock import AsyncMock

import pytest

from rulestudio.models.configuration import RuleConfiguration, YAMLConfig
from rulestudio.models.errors import ImportParseError, NetworkError
from rulestudio.services.config_import import EMPTY_CONFIG_WARNING, ConfigImportService, merge_configs
from rulestudio.services.url_fetcher import URLConfigFetcher
from rulestudio.services.yaml_engine import parse_config_text

REMOTE = """\
disabled_rules:
  - force_cast
excluded:
  - Generated
rules:
  line_length:
    warning: 100
  empty_count: true
"""


def _service(content: str) -> ConfigImportService:
    fetcher = URLConfigFetcher()
    fetcher.fetch_config = AsyncMock(return_value=content)  # type: ignore[method-assign]
    return ConfigImportService(fetcher)


class TestMergeConfigs:
    def test_imported_rules_win_and_lists_union(self) -> None:
        current = YAMLConfig(
            rules={"line_length": RuleConfiguration(parameters={"warning": 120}), "todo": RuleConfiguration()},
            disabled_rules=["todo"],
            excluded=["Pods"],
        )
        imported = YAMLConfig(
            rules={"line_length": RuleConfiguration(parameters={"warning": 100})},
            disabled_rules=["force_cast"],
            excluded=["Pods", "Generated"],
        )
        merged = merge_configs(current, imported)

        assert merged.rules["line_length"].parameters == {"warning": 100}
        assert "todo" in merged.rules
        assert merged.disabled_rules == ["force_cast", "todo"]
        assert merged.excluded == ["Generated", "Pods"]
        assert merged.opt_in_rules is None
        assert current.rules["line_length"].parameters == {"warning": 120}


class TestFetchAndPreview:
    async def test_preview_with_diff(self, config_path: Path, sample_config_text: str) -> None:
        preview = await _service(REMOTE).fetch_and_preview("https://example.com/a.yml", config_path)

        assert preview.source_url == "https://example.com/a.yml"
        assert preview.fetched_yaml == REMOTE
        assert set(preview.parsed_config.rules) == {"line_length", "empty_count"}
        assert preview.diff is not None
        assert preview.diff.added_rules == ["empty_count"]
        assert preview.diff.modified_rules == ["line_length"]
        assert preview.diff.before == sample_config_text
        assert preview.validation_errors == []

    async def test_preview_without_current_file(self, tmp_path: Path) -> None:
        preview = await _service(REMOTE).fetch_and_preview("https://example.com/a.yml", tmp_path / "missing.yml")
        assert preview.diff is None

    async def test_empty_config_warning(self) -> None:
        preview = await _service("reporter: xcode\n").fetch_and_preview("https://example.com/a.yml", None)
        assert preview.validation_errors == [EMPTY_CONFIG_WARNING]

    async def test_non_mapping_raises_parse_error(self) -> None:
        with pytest.raises(ImportParseError):
            await _service("- a\n- b\n").fetch_and_preview("https://example.com/a.yml", None)

    async def test_fetch_errors_propagate(self) -> None:
        fetcher = URLConfigFetcher()
        fetcher.fetch_config = AsyncMock(side_effect=NetworkError("offline"))  # type: ignore[method-assign]
        with pytest.raises(NetworkError):
            await ConfigImportService(fetcher).fetch_and_preview("https://example.com/a.yml", None)


class TestApplyImport:
    async def test_replace(self, config_path: Path) -> None:
        service = _service(REMOTE)
        preview = await service.fetch_and_preview("https://example.com/a.yml", config_path)

        result = await service.apply_import(preview, "replace", config_path)

        saved = parse_config_text(config_path.read_text(encoding="utf-8"))
        assert set(saved.rules) == {"line_length", "empty_count"}
        assert saved.disabled_rules == ["force_cast"]
        assert result.rules == saved.rules
        assert len(list(config_path.parent.glob(".swiftlint.yml.*.backup"))) == 1

    async def test_merge(self, config_path: Path) -> None:
        service = _service(REMOTE)
        preview = await service.fetch_and_preview("https://example.com/a.yml", config_path)

        await service.apply_import(preview, "merge", config_path)

        saved = parse_config_text(config_path.read_text(encoding="utf-8"))
        assert set(saved.rules) == {"line_length", "force_cast", "trailing_whitespace", "empty_count"}
        assert saved.rules["line_length"].parameters == {"warning": 100}
        assert saved.disabled_rules == ["force_cast", "todo"]
        assert saved.excluded == ["Carthage", "Generated", "Pods"]

    async def test_new_file_has_no_backup(self, tmp_path: Path) -> None:
        config_path = tmp_path / ".swiftlint.yml"
        service = _service(REMOTE)
        preview = await service.fetch_and_preview("https://example.com/a.yml", config_path)

        await service.apply_import(preview, "merge", config_path)

        assert config_path.exists()
        assert not list(tmp_path.glob("*.backup"))
