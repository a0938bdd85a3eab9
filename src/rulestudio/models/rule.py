"""SwiftLintルール関連のデータモデル。"""

from typing import Any, Literal

from pydantic import BaseModel, Field

Severity = Literal["warning", "error"]
RuleCategory = Literal["style", "lint", "metrics", "performance", "idiomatic"]

SEVERITIES: tuple[str, ...] = ("warning", "error")

CATEGORY_DISPLAY_NAMES: dict[str, str] = {
    "style": "Style",
    "lint": "Lint",
    "metrics": "Metrics",
    "performance": "Performance",
    "idiomatic": "Idiomatic",
}

# 詳細未取得のルールに入る仮の説明文
PLACEHOLDER_DESCRIPTION = "Loading..."


class RuleParameter(BaseModel):
    """ルールの設定可能パラメータ。"""

    name: str
    type: str = "string"
    default_value: Any = None
    description: str = ""


class Rule(BaseModel):
    """swiftlint rules から取得したルール定義とアプリ側の設定状態。"""

    id: str
    name: str
    description: str = PLACEHOLDER_DESCRIPTION
    category: RuleCategory = "style"
    is_opt_in: bool = False
    severity: Severity = "warning"
    parameters: list[RuleParameter] | None = None
    triggering_examples: list[str] = Field(default_factory=list)
    non_triggering_examples: list[str] = Field(default_factory=list)
    documentation: str | None = None

    # 設定ファイル由来の状態
    is_enabled: bool = False
    configured_severity: Severity | None = None
    configured_parameters: dict[str, Any] | None = None

    supports_autocorrection: bool = False
    minimum_swift_version: str | None = None
    default_severity: Severity | None = None
    markdown_documentation: str | None = None

    @property
    def effective_default_severity(self) -> Severity:
        return self.default_severity or self.severity


def category_from_kind(kind: str) -> RuleCategory:
    """swiftlint rules の kind 列をカテゴリに変換する。未知の値は style とする。"""
    value = kind.strip().lower()
    if value in CATEGORY_DISPLAY_NAMES:
        return value  # type: ignore[return-value]
    return "style"


def display_name_from_id(rule_id: str) -> str:
    """ルールIDから表示名を作る（例: ``force_cast`` → ``Force Cast``）。"""
    return " ".join(part.capitalize() for part in rule_id.split("_") if part)
