"""2つの .swiftlint.yml を比較するサービス。"""

import logging
from pathlib import Path

from rulestudio.models.comparison import ConfigComparisonResult, RuleComparisonDiff
from rulestudio.models.configuration import ConfigDiff, RuleConfiguration, YAMLConfig
from rulestudio.models.errors import ConfigParseError
from rulestudio.services.yaml_engine import YAMLConfigurationEngine, parse_config_text

logger = logging.getLogger(__name__)


def _describe_differences(
    first: RuleConfiguration,
    second: RuleConfiguration,
    first_label: str,
    second_label: str,
) -> list[str]:
    differences: list[str] = []
    if first.enabled != second.enabled:
        differences.append(
            f"{first_label}: {'enabled' if first.enabled else 'disabled'}, "
            f"{second_label}: {'enabled' if second.enabled else 'disabled'}"
        )
    if first.severity != second.severity:
        differences.append(
            f"Severity: {first_label}={first.severity or 'default'}, {second_label}={second.severity or 'default'}"
        )
    if first.parameters != second.parameters:
        differences.append("Parameters differ")
    return differences


def _read_text(path: Path) -> str:
    try:
        return path.read_text(encoding="utf-8")
    except OSError:
        return ""
    except UnicodeDecodeError as e:
        raise ConfigParseError(f"{path.name} is not UTF-8 text") from e


class ConfigComparisonService:
    """設定ファイル同士のルール単位の比較を行う。"""

    def compare_configs(
        self,
        first: YAMLConfig,
        first_label: str,
        second: YAMLConfig,
        second_label: str,
        first_text: str = "",
        second_text: str = "",
    ) -> ConfigComparisonResult:
        """パース済みの設定同士を比較する。"""
        first_ids = set(first.rules)
        second_ids = set(second.rules)

        different: list[RuleComparisonDiff] = []
        same: list[str] = []
        for rule_id in sorted(first_ids & second_ids):
            first_rule = first.rules[rule_id]
            second_rule = second.rules[rule_id]
            if first_rule == second_rule:
                same.append(rule_id)
                continue
            different.append(
                RuleComparisonDiff(
                    rule_id=rule_id,
                    first_config=first_rule,
                    second_config=second_rule,
                    differences=_describe_differences(first_rule, second_rule, first_label, second_label),
                )
            )

        only_in_first = sorted(first_ids - second_ids)
        only_in_second = sorted(second_ids - first_ids)
        return ConfigComparisonResult(
            first_label=first_label,
            second_label=second_label,
            only_in_first=only_in_first,
            only_in_second=only_in_second,
            in_both_different=different,
            in_both_same=same,
            diff=ConfigDiff(
                added_rules=only_in_second,
                removed_rules=only_in_first,
                modified_rules=[d.rule_id for d in different],
                before=first_text,
                after=second_text,
            ),
        )

    async def compare(
        self,
        first_path: Path,
        first_label: str,
        second_path: Path,
        second_label: str,
    ) -> ConfigComparisonResult:
        """2つの設定ファイルを読み込んで比較する。

        Args:
            first_path: 1つ目の .swiftlint.yml。
            first_label: 1つ目の表示名。
            second_path: 2つ目の .swiftlint.yml。
            second_label: 2つ目の表示名。

        Raises:
            ConfigParseError: いずれかのファイルがYAMLとして不正な場合。
        """
        first_engine = YAMLConfigurationEngine(first_path)
        second_engine = YAMLConfigurationEngine(second_path)
        first = first_engine.load()
        second = second_engine.load()
        result = self.compare_configs(
            first,
            first_label,
            second,
            second_label,
            first_text=_read_text(Path(first_path)),
            second_text=_read_text(Path(second_path)),
        )
        logger.info(
            "Compared %s with %s: %d differences",
            first_label,
            second_label,
            result.total_differences,
        )
        return result

    async def compare_content(
        self,
        first_text: str,
        first_label: str,
        second_text: str,
        second_label: str,
    ) -> ConfigComparisonResult:
        """メモリ上のYAMLテキスト同士を比較する。"""
        return self.compare_configs(
            parse_config_text(first_text),
            first_label,
            parse_config_text(second_text),
            second_label,
            first_text=first_text,
            second_text=second_text,
        )
