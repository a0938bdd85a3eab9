""".swiftlint.yml とワークスペース関連のデータモデル。"""

import uuid
from datetime import datetime
from pathlib import Path
from typing import Any

from pydantic import BaseModel, Field, model_validator

CONFIG_FILE_NAME = ".swiftlint.yml"


class RuleConfiguration(BaseModel):
    """rules 配下の1ルール分の設定。"""

    enabled: bool = True
    severity: str | None = None
    parameters: dict[str, Any] | None = None

    @property
    def is_simple(self) -> bool:
        """true/false だけで表現できる設定かどうか。"""
        return self.severity is None and not self.parameters


class YAMLConfig(BaseModel):
    """.swiftlint.yml 全体の構造化表現。"""

    rules: dict[str, RuleConfiguration] = Field(default_factory=dict)
    included: list[str] | None = None
    excluded: list[str] | None = None
    reporter: str | None = None
    disabled_rules: list[str] | None = None
    opt_in_rules: list[str] | None = None
    analyzer_rules: list[str] | None = None
    only_rules: list[str] | None = None
    warning_threshold: int | None = None
    strict: bool | None = None

    # 未対応のトップレベルキー（custom_rules など）はそのまま保持する
    extra: dict[str, Any] = Field(default_factory=dict)

    # レイアウト保持用のメタデータ
    comments: dict[str, str] = Field(default_factory=dict)
    key_order: list[str] = Field(default_factory=list)
    top_level_rules: list[str] = Field(default_factory=list)

    def all_rule_ids(self) -> set[str]:
        """rules と各ルールリストに現れる全ルールIDを返す。"""
        ids = set(self.rules)
        for values in (self.disabled_rules, self.opt_in_rules, self.analyzer_rules, self.only_rules):
            if values:
                ids.update(values)
        return ids

    def has_any_rules(self) -> bool:
        return bool(self.all_rule_ids())


class ConfigDiff(BaseModel):
    """2つの設定間のルール差分。"""

    added_rules: list[str] = Field(default_factory=list)
    removed_rules: list[str] = Field(default_factory=list)
    modified_rules: list[str] = Field(default_factory=list)
    before: str = ""
    after: str = ""

    @property
    def has_changes(self) -> bool:
        return bool(self.added_rules or self.removed_rules or self.modified_rules)


class Workspace(BaseModel):
    """開いているSwiftプロジェクト。"""

    id: str = Field(default_factory=lambda: str(uuid.uuid4()))
    path: Path
    name: str = ""
    config_path: Path | None = None
    last_analyzed: datetime | None = None

    @model_validator(mode="after")
    def _fill_defaults(self) -> "Workspace":
        if not self.name:
            self.name = self.path.name
        if self.config_path is None:
            self.config_path = self.path / CONFIG_FILE_NAME
        return self
