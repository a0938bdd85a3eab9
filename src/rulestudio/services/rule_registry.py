"""SwiftLintのルール一覧を取得・保持するレジストリ。"""

import logging
import re
from dataclasses import dataclass, field

from rulestudio.models.configuration import YAMLConfig
from rulestudio.models.errors import StorageError, SwiftLintError, SwiftLintExecutionError
from rulestudio.models.rule import (
    PLACEHOLDER_DESCRIPTION,
    SEVERITIES,
    Rule,
    category_from_kind,
    display_name_from_id,
)
from rulestudio.services.swiftlint_cli import SwiftLintCLI
from rulestudio.storage.cache import CacheManager

logger = logging.getLogger(__name__)

_DOCS_URL = "https://realm.github.io/SwiftLint/{rule_id}.html"
_HEADER_RE = re.compile(r"^(?P<name>[^(:]+?)\s*\((?P<id>[\w-]+)\)\s*:\s*(?P<description>.*)$")
_TD_RE = re.compile(r"</?td>")
_METADATA_RE = re.compile(r"^\*\s+\*\*(?P<key>[^:*]+):\*\*\s*(?P<value>.*)$")


@dataclass
class RuleDocumentation:
    """ルール詳細（rules <id> の出力または generate-docs のMarkdown）の解析結果。"""

    name: str = ""
    description: str = ""
    supports_autocorrection: bool = False
    minimum_swift_version: str | None = None
    default_severity: str | None = None
    triggering_examples: list[str] = field(default_factory=list)
    non_triggering_examples: list[str] = field(default_factory=list)


def parse_rules_table(text: str) -> list[Rule]:
    """``swiftlint rules`` の表を解析する。

    列は identifier, opt-in, correctable, enabled in your config, kind, ... の順。
    """
    rules: list[Rule] = []
    for line in text.splitlines():
        stripped = line.strip()
        if not stripped.startswith("|") or "opt-in" in stripped.lower():
            continue
        columns = [c.strip() for c in stripped.split("|") if c.strip()]
        if len(columns) < 5:
            continue
        rule_id = columns[0]
        if not re.fullmatch(r"[\w-]+", rule_id):
            continue
        is_opt_in = columns[1].lower() == "yes"
        rules.append(
            Rule(
                id=rule_id,
                name=display_name_from_id(rule_id),
                category=category_from_kind(columns[4]),
                is_opt_in=is_opt_in,
                supports_autocorrection=columns[2].lower() == "yes",
                is_enabled=not is_opt_in,
                documentation=_DOCS_URL.format(rule_id=rule_id),
            )
        )
    return rules


def _flush(example: list[str], section: str | None, doc: RuleDocumentation) -> None:
    text = "\n".join(example).strip()
    if not text or section is None:
        return
    if section == "triggering":
        doc.triggering_examples.append(text)
    else:
        doc.non_triggering_examples.append(text)


def _section_of(line: str) -> str | None:
    lowered = line.lower()
    if "non-triggering examples" in lowered or "non triggering examples" in lowered:
        return "non_triggering"
    if "triggering examples" in lowered:
        return "triggering"
    return None


def parse_rule_detail(text: str) -> RuleDocumentation:
    """``swiftlint rules <id>`` の出力を解析する。"""
    doc = RuleDocumentation()
    lines = text.splitlines()
    if lines:
        match = _HEADER_RE.match(lines[0].strip())
        if match:
            doc.name = match.group("name").strip()
            doc.description = match.group("description").strip()

    section: str | None = None
    example: list[str] = []
    for line in lines[1:]:
        found = _section_of(line)
        if found is not None:
            _flush(example, section, doc)
            example = []
            section = found
            continue
        if section is None:
            continue
        if not line.strip() or "Example #" in line or "Configuration" in line:
            _flush(example, section, doc)
            example = []
            if "Configuration" in line:
                section = None
            continue
        example.append(line.replace("↓", "").strip())
    _flush(example, section, doc)
    return doc


def parse_rule_markdown(markdown: str) -> RuleDocumentation:
    """``swiftlint generate-docs`` が出力するMarkdownを解析する。"""
    doc = RuleDocumentation()
    lines = markdown.splitlines()
    if lines and lines[0].startswith("#"):
        doc.name = lines[0].lstrip("#").strip()

    section: str | None = None
    in_code = False
    example: list[str] = []
    expect_severity = False
    for line in lines[1:]:
        stripped = line.strip()
        if stripped.startswith("```"):
            if in_code:
                _flush(example, section, doc)
                example = []
            in_code = not in_code
            continue
        if in_code:
            example.append(line.replace("↓", ""))
            continue

        if stripped.startswith("#"):
            section = _section_of(stripped)
            continue

        metadata = _METADATA_RE.match(stripped)
        if metadata:
            key = metadata.group("key").strip().lower()
            value = metadata.group("value").strip().strip("`")
            if key == "supports autocorrection":
                doc.supports_autocorrection = value.lower() == "yes"
            elif key == "minimum swift compiler version":
                doc.minimum_swift_version = value
            continue

        # 既定設定の表は <td>severity</td> の次のセルに値がある
        cell = _TD_RE.sub("", stripped).strip().lower()
        if expect_severity:
            if cell:
                if cell in SEVERITIES:
                    doc.default_severity = cell
                expect_severity = False
            continue
        if cell == "severity":
            expect_severity = True
            continue

        if stripped and not doc.description and not stripped.startswith(("*", "<", "|")):
            doc.description = stripped
    return doc


class RuleRegistry:
    """ルール一覧の取得・キャッシュ・設定状態の反映を行う。

    取得に失敗してもキャッシュがあればキャッシュを返し、error にエラーを残す。
    """

    def __init__(self, cli: SwiftLintCLI, cache: CacheManager) -> None:
        self._cli = cli
        self._cache = cache
        self._rules: dict[str, Rule] = {}
        self.is_loading = False
        self.error: Exception | None = None

    @property
    def rules(self) -> list[Rule]:
        return list(self._rules.values())

    def set_rules(self, rules: list[Rule]) -> None:
        self._rules = {rule.id: rule for rule in rules}

    def get_rule(self, rule_id: str) -> Rule | None:
        return self._rules.get(rule_id)

    async def load_rules(self) -> list[Rule]:
        """ルール一覧を読み込む。

        Raises:
            SwiftLintError: 取得に失敗し、キャッシュも無い場合。
        """
        self.is_loading = True
        self.error = None
        try:
            if not self._rules:
                self.set_rules(self._cache.load_cached_rules())
            try:
                fetched = parse_rules_table(await self._cli.execute_rules_command())
                if not fetched:
                    raise SwiftLintExecutionError(
                        "No rules found in SwiftLint output. Make sure SwiftLint is installed and accessible."
                    )
            except SwiftLintError as e:
                if not self._rules:
                    raise
                logger.warning("Rule refresh failed, using %d cached rules: %s", len(self._rules), e)
                self.error = e
                return self.rules

            # 取得済みの詳細は引き継ぐ
            merged: list[Rule] = []
            for rule in fetched:
                previous = self._rules.get(rule.id)
                if previous is not None and previous.description != PLACEHOLDER_DESCRIPTION:
                    rule = previous.model_copy(
                        update={
                            "category": rule.category,
                            "is_opt_in": rule.is_opt_in,
                            "supports_autocorrection": rule.supports_autocorrection,
                        }
                    )
                merged.append(rule)
            self.set_rules(merged)
            logger.info("Loaded %d rules from SwiftLint", len(merged))
            self._save_cache()
            return self.rules
        finally:
            self.is_loading = False

    async def refresh_rules(self) -> list[Rule]:
        """キャッシュを使わずに再取得する。"""
        self._rules = {}
        return await self.load_rules()

    def _save_cache(self) -> None:
        try:
            self._cache.save_cached_rules(self.rules)
        except StorageError as e:
            logger.warning("Failed to cache rules: %s", e)

    async def fetch_rule_details_if_needed(self, rule_id: str) -> Rule | None:
        """説明・例が未取得なら詳細を取得して更新したルールを返す。"""
        rule = self._rules.get(rule_id)
        if rule is None:
            return None
        if rule.description != PLACEHOLDER_DESCRIPTION and (rule.triggering_examples or rule.non_triggering_examples):
            return rule

        doc = RuleDocumentation()
        markdown: str | None = None
        try:
            markdown = await self._cli.generate_docs_for_rule(rule_id)
        except SwiftLintError as e:
            logger.warning("generate-docs failed for %s: %s", rule_id, e)
        if markdown:
            doc = parse_rule_markdown(markdown)
        if not doc.triggering_examples and not doc.non_triggering_examples:
            try:
                detail = parse_rule_detail(await self._cli.execute_rule_detail_command(rule_id))
            except SwiftLintError as e:
                logger.warning("Failed to fetch details for %s: %s", rule_id, e)
            else:
                doc.name = doc.name or detail.name
                doc.description = doc.description or detail.description
                doc.triggering_examples = detail.triggering_examples
                doc.non_triggering_examples = detail.non_triggering_examples

        updated = rule.model_copy(
            update={
                "name": doc.name or rule.name,
                "description": doc.description or rule.description,
                "triggering_examples": doc.triggering_examples or rule.triggering_examples,
                "non_triggering_examples": doc.non_triggering_examples or rule.non_triggering_examples,
                "supports_autocorrection": doc.supports_autocorrection or rule.supports_autocorrection,
                "minimum_swift_version": doc.minimum_swift_version or rule.minimum_swift_version,
                "default_severity": doc.default_severity or rule.default_severity,
                "severity": doc.default_severity or rule.severity,
                "markdown_documentation": markdown or rule.markdown_documentation,
            }
        )
        self._rules[rule_id] = updated
        self._save_cache()
        return updated

    def apply_configuration(self, config: YAMLConfig) -> None:
        """設定ファイルの内容を各ルールの有効状態・重大度・パラメータに反映する。"""
        disabled = set(config.disabled_rules or [])
        opt_in = set(config.opt_in_rules or [])
        only = set(config.only_rules or []) if config.only_rules is not None else None

        for rule_id, rule in list(self._rules.items()):
            rule_config = config.rules.get(rule_id)
            if only is not None:
                enabled = rule_id in only
            elif rule_id in disabled:
                enabled = False
            elif rule.is_opt_in:
                enabled = rule_id in opt_in or (rule_config is not None and rule_config.enabled)
            else:
                enabled = True
            if rule_config is not None and not rule_config.enabled:
                enabled = False

            severity = rule_config.severity if rule_config is not None else None
            self._rules[rule_id] = rule.model_copy(
                update={
                    "is_enabled": enabled,
                    "configured_severity": severity if severity in SEVERITIES else None,
                    "configured_parameters": rule_config.parameters if rule_config is not None else None,
                }
            )
