"""設定比較のデータモデル。"""

from pydantic import BaseModel, Field

from rulestudio.models.configuration import ConfigDiff, RuleConfiguration


class RuleComparisonDiff(BaseModel):
    """両方の設定に存在するが内容が異なるルール。"""

    rule_id: str
    first_config: RuleConfiguration
    second_config: RuleConfiguration
    differences: list[str] = Field(default_factory=list)


class ConfigComparisonResult(BaseModel):
    """2つの .swiftlint.yml の比較結果。"""

    first_label: str
    second_label: str
    only_in_first: list[str] = Field(default_factory=list)
    only_in_second: list[str] = Field(default_factory=list)
    in_both_different: list[RuleComparisonDiff] = Field(default_factory=list)
    in_both_same: list[str] = Field(default_factory=list)
    diff: ConfigDiff = Field(default_factory=ConfigDiff)

    @property
    def total_differences(self) -> int:
        return len(self.only_in_first) + len(self.only_in_second) + len(self.in_both_different)
