"""ルール詳細画面の状態とロジック。"""

import logging
from typing import Any

from pydantic import BaseModel

from rulestudio.models.configuration import ConfigDiff, RuleConfiguration, YAMLConfig
from rulestudio.models.errors import NoWorkspaceError, StudioError
from rulestudio.models.rule import Rule, Severity
from rulestudio.services.yaml_engine import YAMLConfigurationEngine, enable_in_rule_lists

logger = logging.getLogger(__name__)


class PendingRuleChanges(BaseModel):
    """未保存の変更内容。"""

    enabled: bool
    severity: str | None = None
    parameters: dict[str, Any] | None = None


def _listed_as_enabled(rule: Rule, config: YAMLConfig) -> bool:
    """rules に無いルールの有効状態をルールリストから判定する。"""
    if config.only_rules is not None:
        return rule.id in config.only_rules
    if rule.id in (config.disabled_rules or []):
        return False
    if rule.is_opt_in:
        return rule.id in (config.opt_in_rules or [])
    return True


class RuleDetailViewModel:
    """1ルールの有効化・重大度・パラメータを編集して .swiftlint.yml に保存する。"""

    def __init__(self, rule: Rule, engine: YAMLConfigurationEngine | None = None) -> None:
        self.rule = rule
        self.engine = engine
        self.is_enabled = rule.is_enabled
        self.severity: str | None = rule.configured_severity or rule.severity
        self.parameters: dict[str, Any] | None = rule.configured_parameters
        self.pending_changes: PendingRuleChanges | None = None
        self.is_saving = False
        self.save_error: Exception | None = None

        self._original_enabled = self.is_enabled
        self._original_severity = self.severity
        self._original_parameters = self.parameters

    def load_configuration(self) -> None:
        """設定ファイルから現在の状態を読み込む。"""
        if self.engine is None:
            return
        config = self.engine.load()
        rule_config = config.rules.get(self.rule.id)
        if rule_config is not None:
            self.is_enabled = rule_config.enabled
            self.severity = rule_config.severity
            self.parameters = dict(rule_config.parameters) if rule_config.parameters else None
        else:
            self.is_enabled = _listed_as_enabled(self.rule, config)
            self.severity = self.rule.default_severity
            self.parameters = None
        self._original_enabled = self.is_enabled
        self._original_severity = self.severity
        self._original_parameters = self.parameters
        self.pending_changes = None

    def update_enabled(self, enabled: bool) -> None:
        self.is_enabled = enabled
        self._update_pending_changes()

    def update_severity(self, severity: Severity) -> None:
        self.severity = severity
        self._update_pending_changes()

    def update_parameter(self, name: str, value: Any) -> None:
        parameters = dict(self.parameters or {})
        if value is None:
            parameters.pop(name, None)
        else:
            parameters[name] = value
        self.parameters = parameters or None
        self._update_pending_changes()

    def default_parameter_values(self) -> dict[str, Any]:
        """ルール定義上のパラメータ既定値。"""
        return {p.name: p.default_value for p in self.rule.parameters or []}

    def _update_pending_changes(self) -> None:
        changed = (
            self.is_enabled != self._original_enabled
            or self.severity != self._original_severity
            or self.parameters != self._original_parameters
        )
        if changed:
            self.pending_changes = PendingRuleChanges(
                enabled=self.is_enabled,
                severity=self.severity,
                parameters=self.parameters,
            )
        else:
            self.pending_changes = None

    def _apply_to(self, config: YAMLConfig) -> YAMLConfig:
        proposed = config.model_copy(deep=True)
        existing = proposed.rules.get(self.rule.id)
        rule_config = existing or RuleConfiguration()
        rule_config.enabled = self.is_enabled
        if self.is_enabled:
            if self.severity is not None:
                rule_config.severity = self.severity
            enable_in_rule_lists(proposed, [self.rule.id])
        elif self.severity != self._original_severity:
            rule_config.severity = self.severity
        if self.parameters != self._original_parameters:
            rule_config.parameters = dict(self.parameters) if self.parameters else None
        proposed.rules[self.rule.id] = rule_config
        return proposed

    def generate_diff(self) -> ConfigDiff | None:
        """保存した場合の差分を返す。"""
        if self.engine is None:
            return None
        try:
            self.engine.load()
        except StudioError as e:
            self.save_error = e
            return None
        return self.engine.generate_diff(self._apply_to(self.engine.get_config()))

    def save_configuration(self) -> None:
        """変更をバックアップ付きで保存する。

        Raises:
            NoWorkspaceError: 設定エンジンが無い場合。
            StudioError: 読み込み・検証・保存に失敗した場合。
        """
        if self.engine is None:
            raise NoWorkspaceError()
        self.is_saving = True
        try:
            self.engine.load()
            config = self._apply_to(self.engine.get_config())
            self.engine.validate(config)
            self.engine.save(config, create_backup=True)
            self._original_enabled = self.is_enabled
            self._original_severity = self.severity
            self._original_parameters = self.parameters
            self.pending_changes = None
            self.save_error = None
            logger.info("Saved configuration for rule %s", self.rule.id)
        except StudioError as e:
            self.save_error = e
            raise
        finally:
            self.is_saving = False

    def cancel_changes(self) -> None:
        """設定ファイルの状態に戻す。"""
        try:
            self.load_configuration()
        except StudioError as e:
            self.save_error = e
        self.pending_changes = None
