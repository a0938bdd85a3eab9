""".swiftlint.yml の読み込み・差分生成・検証・保存を行うエンジン。"""

import logging
import os
import re
import shutil
import time
import uuid
from pathlib import Path
from typing import Any

import yaml

from rulestudio.models.configuration import ConfigDiff, RuleConfiguration, YAMLConfig
from rulestudio.models.errors import (
    ConfigParseError,
    ConfigSerializationError,
    ConfigWriteError,
    InvalidPathError,
    InvalidSeverityError,
)
from rulestudio.models.rule import SEVERITIES

logger = logging.getLogger(__name__)

_LIST_FIELDS = ("included", "excluded", "disabled_rules", "opt_in_rules", "analyzer_rules", "only_rules")
_SCALAR_FIELDS = ("reporter", "warning_threshold", "strict")

# キー順序が不明な場合の出力順
_CANONICAL_ORDER = (
    "included",
    "excluded",
    "disabled_rules",
    "opt_in_rules",
    "analyzer_rules",
    "only_rules",
    "reporter",
    "warning_threshold",
    "strict",
    "rules",
)

# トップレベルに置かれてもルールとして扱わないSwiftLintのオプション
_NON_RULE_KEYS = frozenset(
    {
        "custom_rules",
        "parent_config",
        "child_config",
        "swiftlint_version",
        "baseline",
        "write_baseline",
        "check_for_updates",
        "allow_zero_lintable_files",
        "lenient",
    }
)

# ファイル末尾のコメントを保持するキー
TRAILING_COMMENT_KEY = "__end__"

_KEY_LINE_RE = re.compile(r"^(?P<indent>\s*)(?P<key>[A-Za-z_][\w\-]*)\s*:")


def backup_path_for(config_path: Path, timestamp: int | None = None) -> Path:
    """``<name>.<unix秒>.backup`` 形式のバックアップパスを返す。"""
    if timestamp is None:
        timestamp = int(time.time())
    return config_path.with_name(f"{config_path.name}.{timestamp}.backup")


def next_backup_path(config_path: Path, timestamp: int | None = None) -> Path:
    """既存のバックアップと重ならないバックアップパスを返す。同じ秒のものがあれば秒を進める。"""
    if timestamp is None:
        timestamp = int(time.time())
    path = backup_path_for(config_path, timestamp)
    while path.exists():
        timestamp += 1
        path = backup_path_for(config_path, timestamp)
    return path


def _as_bool(value: Any, default: bool = True) -> bool:
    if isinstance(value, bool):
        return value
    if isinstance(value, str):
        lowered = value.strip().lower()
        if lowered in ("true", "yes", "on"):
            return True
        if lowered in ("false", "no", "off"):
            return False
    return default


def _parse_rule_value(value: Any) -> RuleConfiguration | None:
    """rules の1エントリをRuleConfigurationに変換する。解釈できない値はNone。"""
    if isinstance(value, bool):
        return RuleConfiguration(enabled=value)
    if isinstance(value, str) and value.strip().lower() in ("true", "false"):
        return RuleConfiguration(enabled=_as_bool(value))
    if isinstance(value, int):
        # line_length: 120 の短縮記法
        return RuleConfiguration(parameters={"warning": value})
    if isinstance(value, list) and value and all(isinstance(v, int) for v in value):
        keys = ("warning", "error")
        return RuleConfiguration(parameters=dict(zip(keys, value, strict=False)))
    if isinstance(value, dict):
        severity = value.get("severity")
        if severity not in SEVERITIES:
            severity = None
        parameters = {str(k): v for k, v in value.items() if k not in ("severity", "enabled")}
        return RuleConfiguration(
            enabled=_as_bool(value.get("enabled", True)),
            severity=severity,
            parameters=parameters or None,
        )
    return None


def _as_str_list(value: Any) -> list[str] | None:
    if value is None:
        return None
    if isinstance(value, list):
        return [str(v) for v in value if v is not None]
    return [str(value)]


def extract_comments(text: str) -> dict[str, str]:
    """行コメントを直後のキー（トップレベルキーまたは rules 直下のルールID）に紐付けて抽出する。

    ネストした行の前にあるコメントは、それを含むキーに紐付ける。
    末尾に残ったコメントは TRAILING_COMMENT_KEY に入る。行末コメントは保持しない。
    """
    comments: dict[str, list[str]] = {}
    pending: list[str] = []
    current_key: str | None = None
    in_rules = False
    rules_indent: int | None = None

    for line in text.splitlines():
        stripped = line.strip()
        if not stripped:
            continue
        if stripped.startswith("#"):
            pending.append(stripped[1:].strip())
            continue

        match = _KEY_LINE_RE.match(line)
        indent = len(line) - len(line.lstrip())
        key: str | None = None
        if match and indent == 0:
            key = match.group("key")
            in_rules = key == "rules"
            rules_indent = None
        elif match and in_rules:
            if rules_indent is None:
                rules_indent = indent
            if indent == rules_indent:
                key = match.group("key")

        target = key or current_key
        if pending and target is not None:
            comments.setdefault(target, []).extend(pending)
            pending = []
        if key is not None:
            current_key = key

    if pending:
        comments.setdefault(TRAILING_COMMENT_KEY, []).extend(pending)
    return {key: "\n".join(lines) for key, lines in comments.items()}


def parse_config_text(text: str) -> YAMLConfig:
    """YAMLテキストをYAMLConfigに変換する。

    Args:
        text: .swiftlint.yml の内容。

    Returns:
        パース済みの設定。空のドキュメントは空の設定になる。

    Raises:
        ConfigParseError: YAMLとして不正、またはルートがマッピングでない場合。
    """
    try:
        data = yaml.safe_load(text)
    except yaml.YAMLError as e:
        raise ConfigParseError(str(e)) from e

    config = YAMLConfig(comments=extract_comments(text))
    if data is None:
        return config
    if not isinstance(data, dict):
        raise ConfigParseError(f"expected a mapping at the document root, got {type(data).__name__}")

    config.key_order = [str(key) for key in data]

    rules_section = data.get("rules")
    if isinstance(rules_section, dict):
        for rule_id, value in rules_section.items():
            parsed = _parse_rule_value(value)
            if parsed is not None:
                config.rules[str(rule_id)] = parsed

    for field in _LIST_FIELDS:
        setattr(config, field, _as_str_list(data.get(field)))

    reporter = data.get("reporter")
    config.reporter = str(reporter) if reporter is not None else None
    threshold = data.get("warning_threshold")
    if isinstance(threshold, int) and not isinstance(threshold, bool):
        config.warning_threshold = threshold
    strict = data.get("strict")
    if strict is not None:
        config.strict = _as_bool(strict, default=False)

    for key, value in data.items():
        key = str(key)
        if key == "rules" or key in _LIST_FIELDS or key in _SCALAR_FIELDS:
            continue
        if key not in _NON_RULE_KEYS and isinstance(value, bool | dict):
            parsed = _parse_rule_value(value)
            if parsed is not None:
                config.rules[key] = parsed
                config.top_level_rules.append(key)
                continue
        config.extra[key] = value

    return config


def rule_value(rule_config: RuleConfiguration) -> Any:
    """RuleConfigurationをYAMLに書き出す値に変換する。"""
    if rule_config.is_simple:
        return rule_config.enabled
    value: dict[str, Any] = {}
    if rule_config.severity:
        value["severity"] = rule_config.severity
    value.update(rule_config.parameters or {})
    if not rule_config.enabled:
        value["enabled"] = False
    return value


def enable_in_rule_lists(config: YAMLConfig, rule_ids: list[str]) -> None:
    """有効化するルールを disabled_rules から外し、only_rules があればそこへ加える。"""
    if config.disabled_rules:
        config.disabled_rules = [r for r in config.disabled_rules if r not in rule_ids] or None
    if config.only_rules is not None:
        config.only_rules = config.only_rules + [r for r in rule_ids if r not in config.only_rules]


def _dump(key: str, value: Any, indent: int = 0) -> list[str]:
    try:
        text = yaml.safe_dump({key: value}, sort_keys=False, default_flow_style=False, allow_unicode=True)
    except yaml.YAMLError as e:
        raise ConfigSerializationError(str(e)) from e
    prefix = " " * indent
    return [prefix + line for line in text.rstrip("\n").splitlines()]


def _comment_lines(comment: str, indent: int = 0) -> list[str]:
    prefix = " " * indent
    return [f"{prefix}# {line}" if line else f"{prefix}#" for line in comment.split("\n")]


def serialize_config(config: YAMLConfig) -> str:
    """YAMLConfigをYAMLテキストに変換する。

    元ファイルのキー順序とコメントをできる限り保つ。
    ルールは元ファイルでトップレベルに書かれていたものはトップレベルに、
    それ以外は ``rules:`` 配下に出力する。
    """
    nested_layout = "rules" in config.key_order or not config.top_level_rules
    if nested_layout:
        top_level_ids = set(config.top_level_rules) & set(config.rules)
    else:
        top_level_ids = set(config.rules)
    nested_ids = sorted(set(config.rules) - top_level_ids)

    used_comments: set[str] = set()
    blocks: dict[str, list[str]] = {}

    def with_comment(key: str, lines: list[str], indent: int = 0) -> list[str]:
        comment = config.comments.get(key)
        if comment is None or key in used_comments:
            return lines
        used_comments.add(key)
        return _comment_lines(comment, indent) + lines

    for field in _LIST_FIELDS + _SCALAR_FIELDS:
        value = getattr(config, field)
        if value is not None:
            blocks[field] = with_comment(field, _dump(field, value))
    for key, value in config.extra.items():
        blocks[key] = with_comment(key, _dump(key, value))
    for rule_id in sorted(top_level_ids):
        blocks[rule_id] = with_comment(rule_id, _dump(rule_id, rule_value(config.rules[rule_id])))
    if nested_ids:
        lines = with_comment("rules", ["rules:"])
        for rule_id in nested_ids:
            lines.extend(with_comment(rule_id, _dump(rule_id, rule_value(config.rules[rule_id]), indent=2), indent=2))
        blocks["rules"] = lines

    order: list[str] = []
    for key in (*config.key_order, *_CANONICAL_ORDER, *sorted(blocks)):
        if key in blocks and key not in order:
            order.append(key)

    sections = ["\n".join(blocks[key]) for key in order]

    leftovers = {
        key: comment
        for key, comment in config.comments.items()
        if key not in used_comments and key != TRAILING_COMMENT_KEY
    }
    if leftovers:
        preserved = ["# Preserved comments:"]
        for key in sorted(leftovers):
            preserved.extend(f"# {key}: {line}" for line in leftovers[key].split("\n"))
        sections.append("\n".join(preserved))
    if TRAILING_COMMENT_KEY in config.comments:
        sections.append("\n".join(_comment_lines(config.comments[TRAILING_COMMENT_KEY])))

    if not sections:
        return ""
    return "\n\n".join(sections) + "\n"


def diff_configs(
    before: YAMLConfig,
    after: YAMLConfig,
    before_text: str | None = None,
    after_text: str | None = None,
) -> ConfigDiff:
    """2つの設定のルール差分を計算する。

    Args:
        before: 変更前の設定。
        after: 変更後の設定。
        before_text: 差分表示に使う変更前テキスト。Noneの場合はシリアライズ結果。
        after_text: 差分表示に使う変更後テキスト。Noneの場合はシリアライズ結果。
    """
    before_ids = set(before.rules)
    after_ids = set(after.rules)
    modified = sorted(rule_id for rule_id in before_ids & after_ids if before.rules[rule_id] != after.rules[rule_id])
    return ConfigDiff(
        added_rules=sorted(after_ids - before_ids),
        removed_rules=sorted(before_ids - after_ids),
        modified_rules=modified,
        before=serialize_config(before) if before_text is None else before_text,
        after=serialize_config(after) if after_text is None else after_text,
    )


class YAMLConfigurationEngine:
    """1つの .swiftlint.yml を読み書きする。

    保存は一時ファイルへの書き込みと置換で行い、既存ファイルは
    ``<name>.<timestamp>.backup`` に退避する。
    """

    def __init__(self, config_path: Path) -> None:
        self.config_path = Path(config_path)
        self._config = YAMLConfig()
        self._original_content = ""

    @property
    def config(self) -> YAMLConfig:
        return self._config

    @property
    def original_content(self) -> str:
        return self._original_content

    def load(self) -> YAMLConfig:
        """設定ファイルを読み込む。ファイルが無い場合は空の設定になる。

        Raises:
            ConfigParseError: 読み込めない、UTF-8でない、またはYAMLとして不正な場合。
        """
        if not self.config_path.exists():
            self._config = YAMLConfig()
            self._original_content = ""
            return self._config

        try:
            content = self.config_path.read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError) as e:
            raise ConfigParseError(f"cannot read {self.config_path.name}: {e}") from e
        self._config = parse_config_text(content)
        self._original_content = content
        logger.debug("Loaded %s (%d rules)", self.config_path, len(self._config.rules))
        return self._config

    def get_config(self) -> YAMLConfig:
        return self._config.model_copy(deep=True)

    def update_config(self, config: YAMLConfig) -> None:
        """メモリ上の設定だけを差し替える。ファイルには書き込まない。"""
        self._config = config.model_copy(deep=True)

    def serialize(self, config: YAMLConfig) -> str:
        return serialize_config(config)

    def generate_diff(self, proposed: YAMLConfig) -> ConfigDiff:
        return diff_configs(self._config, proposed)

    def validate(self, config: YAMLConfig) -> None:
        """設定を検証する。

        Raises:
            InvalidSeverityError: warning/error 以外の重大度がある場合。
            InvalidPathError: included/excluded に空のパスがある場合。
        """
        for rule_id, rule_config in config.rules.items():
            if rule_config.severity is not None and rule_config.severity not in SEVERITIES:
                raise InvalidSeverityError(rule_id, rule_config.severity)
        for paths in (config.included, config.excluded):
            for path in paths or []:
                if not path.strip():
                    raise InvalidPathError(path)

    def create_backup(self, timestamp: int | None = None) -> Path | None:
        """現在のファイルをバックアップする。ファイルが無ければ何もしない。"""
        if not self.config_path.exists():
            return None
        backup_path = next_backup_path(self.config_path, timestamp)
        try:
            shutil.copyfile(self.config_path, backup_path)
        except OSError as e:
            raise ConfigWriteError(str(backup_path), str(e)) from e
        logger.info("Created backup %s", backup_path.name)
        return backup_path

    def save(self, config: YAMLConfig, create_backup: bool = True) -> None:
        """設定を検証して保存する。

        Args:
            config: 保存する設定。
            create_backup: 既存ファイルをバックアップするかどうか。

        Raises:
            InvalidSeverityError: 検証に失敗した場合。
            InvalidPathError: 検証に失敗した場合。
            ConfigWriteError: 書き込みに失敗した場合。
        """
        self.validate(config)
        content = serialize_config(config)

        if create_backup:
            self.create_backup()

        tmp_path = self.config_path.with_name(f"{self.config_path.name}.{uuid.uuid4().hex}.tmp")
        try:
            self.config_path.parent.mkdir(parents=True, exist_ok=True)
            tmp_path.write_text(content, encoding="utf-8")
            os.replace(tmp_path, self.config_path)
        except OSError as e:
            tmp_path.unlink(missing_ok=True)
            raise ConfigWriteError(str(self.config_path), str(e)) from e

        self._config = config.model_copy(deep=True)
        self._original_content = content
        logger.info("Saved %s (%d rules)", self.config_path, len(config.rules))
