"""SwiftLintバージョン移行のデータモデル。"""

from typing import Literal

from pydantic import BaseModel, Field, computed_field

MigrationStepKind = Literal["rename_rule", "remove_deprecated_rule", "update_parameter", "manual_action"]


class MigrationStep(BaseModel):
    """移行計画の1ステップ。"""

    id: str
    kind: MigrationStepKind
    description: str
    rule_id: str | None = None
    new_rule_id: str | None = None
    reason: str | None = None
    old_parameter: str | None = None
    new_parameter: str | None = None

    @computed_field  # type: ignore[prop-decorator]
    @property
    def can_auto_apply(self) -> bool:
        return self.kind != "manual_action"

    @classmethod
    def rename(cls, old_id: str, new_id: str) -> "MigrationStep":
        return cls(
            id=f"rename-{old_id}-{new_id}",
            kind="rename_rule",
            description=f"Rename '{old_id}' to '{new_id}'",
            rule_id=old_id,
            new_rule_id=new_id,
        )

    @classmethod
    def remove(cls, rule_id: str, reason: str) -> "MigrationStep":
        return cls(
            id=f"remove-{rule_id}",
            kind="remove_deprecated_rule",
            description=f"Remove '{rule_id}': {reason}",
            rule_id=rule_id,
            reason=reason,
        )

    @classmethod
    def update_parameter(cls, rule_id: str, old_param: str, new_param: str) -> "MigrationStep":
        return cls(
            id=f"param-{rule_id}-{old_param}",
            kind="update_parameter",
            description=f"Update parameter on '{rule_id}': '{old_param}' -> '{new_param}'",
            rule_id=rule_id,
            old_parameter=old_param,
            new_parameter=new_param,
        )

    @classmethod
    def manual(cls, step_id: str, description: str) -> "MigrationStep":
        return cls(id=f"manual-{step_id}", kind="manual_action", description=description)


class MigrationPlan(BaseModel):
    """移行元から移行先バージョンへの移行計画。"""

    from_version: str
    to_version: str
    steps: list[MigrationStep] = Field(default_factory=list)

    @computed_field  # type: ignore[prop-decorator]
    @property
    def total_steps(self) -> int:
        return len(self.steps)

    @computed_field  # type: ignore[prop-decorator]
    @property
    def can_auto_apply(self) -> bool:
        return any(step.can_auto_apply for step in self.steps)

    @property
    def auto_applyable_steps(self) -> list[MigrationStep]:
        return [step for step in self.steps if step.can_auto_apply]

    @property
    def manual_steps(self) -> list[MigrationStep]:
        return [step for step in self.steps if not step.can_auto_apply]
