"""バージョン互換性チェックのデータモデル。"""

from pydantic import BaseModel, Field, computed_field


class DeprecatedRuleInfo(BaseModel):
    """非推奨になったルール。"""

    rule_id: str
    deprecated_in: str
    replacement: str | None = None
    message: str


class RemovedRuleInfo(BaseModel):
    """削除されたルール。"""

    rule_id: str
    removed_in: str
    replacement: str | None = None
    message: str


class RenamedRuleInfo(BaseModel):
    """改名されたルール。"""

    old_id: str
    new_id: str


class CompatibilityReport(BaseModel):
    """現在の設定と特定バージョンのSwiftLintとの互換性。"""

    swiftlint_version: str
    deprecated_rules: list[DeprecatedRuleInfo] = Field(default_factory=list)
    removed_rules: list[RemovedRuleInfo] = Field(default_factory=list)
    renamed_rules: list[RenamedRuleInfo] = Field(default_factory=list)
    available_new_rules: list[str] = Field(default_factory=list)

    @computed_field  # type: ignore[prop-decorator]
    @property
    def has_issues(self) -> bool:
        return bool(self.deprecated_rules or self.removed_rules or self.renamed_rules)

    @computed_field  # type: ignore[prop-decorator]
    @property
    def total_issue_count(self) -> int:
        return len(self.deprecated_rules) + len(self.removed_rules) + len(self.renamed_rules)
