"""RuleRegistryとルール出力パーサーのユニットテスト。"""

from unittest.mock import AsyncMock

import pytest

from rulestudio.models.configuration import YAMLConfig
from rulestudio.models.errors import SwiftLintExecutionError, SwiftLintNotFoundError
from rulestudio.models.rule import PLACEHOLDER_DESCRIPTION, Rule
from rulestudio.services.rule_registry import RuleRegistry, parse_rule_detail, parse_rule_markdown, parse_rules_table
from rulestudio.services.swiftlint_cli import SwiftLintCLI
from rulestudio.services.yaml_engine import parse_config_text
from rulestudio.storage.cache import CacheManager

RULES_TABLE = """\
+---------------------+--------+-------------+------------------------+-------------+----------+
| identifier          | opt-in | correctable | enabled in your config | kind        | analyzer |
+---------------------+--------+-------------+------------------------+-------------+----------+
| empty_count         | yes    | no          | no                     | performance | no       |
| force_cast          | no     | no          | yes                    | idiomatic   | no       |
| line_length         | no     | no          | yes                    | metrics     | no       |
| todo                | no     | no          | yes                    | lint        | no       |
| trailing_whitespace | no     | yes         | yes                    | style       | no       |
+---------------------+--------+-------------+------------------------+-------------+----------+
"""

RULE_DETAIL = """\
Force Cast (force_cast): Force casts should be avoided
Triggering Examples (violation is marked with '↓'):

Example #1

NSNumber() ↓as! Int

Non Triggering Examples:

Example #1

NSNumber() as? Int
"""

RULE_MARKDOWN = """\
# Force Cast

Force casts should be avoided

* **Identifier:** `force_cast`
* **Enabled by default:** Yes
* **Supports autocorrection:** No
* **Kind:** idiomatic
* **Minimum Swift compiler version:** 5.0.0
* **Default configuration:**
  <table>
  <tr>
  <td>severity</td>
  <td>error</td>
  </tr>
  </table>

## Non Triggering Examples

```swift
NSNumber() as? Int
```

## Triggering Examples

```swift
NSNumber() ↓as! Int
```
"""


@pytest.fixture
def cli() -> AsyncMock:
    mock = AsyncMock(spec=SwiftLintCLI)
    mock.execute_rules_command.return_value = RULES_TABLE
    mock.execute_rule_detail_command.return_value = RULE_DETAIL
    mock.generate_docs_for_rule.return_value = RULE_MARKDOWN
    return mock


@pytest.fixture
def registry(cli: AsyncMock, cache: CacheManager) -> RuleRegistry:
    return RuleRegistry(cli, cache)


class TestParseRulesTable:
    def test_parses_rows(self) -> None:
        rules = parse_rules_table(RULES_TABLE)
        assert [r.id for r in rules] == ["empty_count", "force_cast", "line_length", "todo", "trailing_whitespace"]

        empty_count = rules[0]
        assert empty_count.name == "Empty Count"
        assert empty_count.category == "performance"
        assert empty_count.is_opt_in is True
        assert empty_count.is_enabled is False
        assert empty_count.description == PLACEHOLDER_DESCRIPTION
        assert empty_count.documentation == "https://realm.github.io/SwiftLint/empty_count.html"

        assert rules[4].supports_autocorrection is True
        assert rules[4].is_enabled is True

    def test_ignores_noise(self) -> None:
        assert parse_rules_table("Loading configuration\n| a | b |\n") == []


class TestParseRuleDetail:
    def test_header_and_examples(self) -> None:
        doc = parse_rule_detail(RULE_DETAIL)
        assert doc.name == "Force Cast"
        assert doc.description == "Force casts should be avoided"
        assert doc.triggering_examples == ["NSNumber() as! Int"]
        assert doc.non_triggering_examples == ["NSNumber() as? Int"]

    def test_unparseable_header(self) -> None:
        doc = parse_rule_detail("something unexpected")
        assert doc.name == ""
        assert doc.triggering_examples == []


class TestParseRuleMarkdown:
    def test_metadata_and_examples(self) -> None:
        doc = parse_rule_markdown(RULE_MARKDOWN)
        assert doc.name == "Force Cast"
        assert doc.description == "Force casts should be avoided"
        assert doc.supports_autocorrection is False
        assert doc.minimum_swift_version == "5.0.0"
        assert doc.default_severity == "error"
        assert doc.triggering_examples == ["NSNumber() as! Int"]
        assert doc.non_triggering_examples == ["NSNumber() as? Int"]


class TestLoadRules:
    async def test_loads_and_caches(self, registry: RuleRegistry, cache: CacheManager) -> None:
        rules = await registry.load_rules()
        assert len(rules) == 5
        assert registry.error is None
        assert registry.is_loading is False
        assert [r.id for r in cache.load_cached_rules()] == [r.id for r in rules]

    async def test_falls_back_to_cache(self, registry: RuleRegistry, cli: AsyncMock, cache: CacheManager) -> None:
        cache.save_cached_rules([Rule(id="force_cast", name="Force Cast")])
        cli.execute_rules_command.side_effect = SwiftLintNotFoundError()

        rules = await registry.load_rules()
        assert [r.id for r in rules] == ["force_cast"]
        assert isinstance(registry.error, SwiftLintNotFoundError)

    async def test_raises_without_cache(self, registry: RuleRegistry, cli: AsyncMock) -> None:
        cli.execute_rules_command.side_effect = SwiftLintNotFoundError()
        with pytest.raises(SwiftLintNotFoundError):
            await registry.load_rules()
        assert registry.is_loading is False

    async def test_empty_output_raises(self, registry: RuleRegistry, cli: AsyncMock) -> None:
        cli.execute_rules_command.return_value = "no table here"
        with pytest.raises(SwiftLintExecutionError, match="No rules found"):
            await registry.load_rules()

    async def test_keeps_fetched_details(self, registry: RuleRegistry) -> None:
        await registry.load_rules()
        await registry.fetch_rule_details_if_needed("force_cast")
        rules = await registry.load_rules()

        force_cast = next(r for r in rules if r.id == "force_cast")
        assert force_cast.description == "Force casts should be avoided"


class TestFetchRuleDetails:
    async def test_uses_generated_markdown(self, registry: RuleRegistry, cli: AsyncMock) -> None:
        await registry.load_rules()
        rule = await registry.fetch_rule_details_if_needed("force_cast")

        assert rule is not None
        assert rule.description == "Force casts should be avoided"
        assert rule.default_severity == "error"
        assert rule.severity == "error"
        assert rule.markdown_documentation == RULE_MARKDOWN
        cli.execute_rule_detail_command.assert_not_awaited()

    async def test_falls_back_to_rule_detail(self, registry: RuleRegistry, cli: AsyncMock) -> None:
        cli.generate_docs_for_rule.side_effect = SwiftLintExecutionError("generate-docs failed")
        await registry.load_rules()
        rule = await registry.fetch_rule_details_if_needed("force_cast")

        assert rule is not None
        assert rule.triggering_examples == ["NSNumber() as! Int"]
        assert rule.markdown_documentation is None

    async def test_skips_when_already_loaded(self, registry: RuleRegistry, cli: AsyncMock) -> None:
        await registry.load_rules()
        await registry.fetch_rule_details_if_needed("force_cast")
        await registry.fetch_rule_details_if_needed("force_cast")
        assert cli.generate_docs_for_rule.await_count == 1

    async def test_unknown_rule(self, registry: RuleRegistry) -> None:
        await registry.load_rules()
        assert await registry.fetch_rule_details_if_needed("missing") is None


class TestApplyConfiguration:
    async def test_applies_config_state(self, registry: RuleRegistry, sample_config_text: str) -> None:
        await registry.load_rules()
        registry.apply_configuration(parse_config_text(sample_config_text))

        def rule(rule_id: str) -> Rule:
            found = registry.get_rule(rule_id)
            assert found is not None
            return found

        assert rule("empty_count").is_enabled is True
        assert rule("todo").is_enabled is False
        assert rule("trailing_whitespace").is_enabled is False
        assert rule("force_cast").configured_severity == "error"
        assert rule("line_length").configured_parameters == {"warning": 120, "error": 200}

    async def test_opt_in_rule_disabled_by_default(self, registry: RuleRegistry) -> None:
        await registry.load_rules()
        registry.apply_configuration(YAMLConfig())
        assert registry.get_rule("empty_count").is_enabled is False  # type: ignore[union-attr]
        assert registry.get_rule("force_cast").is_enabled is True  # type: ignore[union-attr]

    async def test_only_rules(self, registry: RuleRegistry) -> None:
        await registry.load_rules()
        registry.apply_configuration(YAMLConfig(only_rules=["todo"]))
        assert [r.id for r in registry.rules if r.is_enabled] == ["todo"]
