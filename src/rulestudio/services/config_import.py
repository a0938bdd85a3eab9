"""リモート設定のプレビューと適用を行うサービス。"""

import logging
from pathlib import Path

from rulestudio.models.config_import import ConfigImportPreview, ImportMode
from rulestudio.models.configuration import YAMLConfig
from rulestudio.models.errors import ConfigParseError, ImportParseError, ImportSaveError, YAMLConfigError
from rulestudio.services.url_fetcher import URLConfigFetcher
from rulestudio.services.yaml_engine import YAMLConfigurationEngine, diff_configs, parse_config_text

logger = logging.getLogger(__name__)

EMPTY_CONFIG_WARNING = "Configuration appears empty - no rules defined."


def _union(first: list[str] | None, second: list[str] | None) -> list[str] | None:
    if first is None and second is None:
        return None
    return sorted(set(first or []) | set(second or []))


def merge_configs(current: YAMLConfig, imported: YAMLConfig) -> YAMLConfig:
    """取り込んだ設定を現在の設定にマージする。

    ルールは取り込んだ側が優先し、disabled_rules・opt_in_rules・excluded は和集合になる。
    """
    merged = current.model_copy(deep=True)
    for rule_id, rule_config in imported.rules.items():
        merged.rules[rule_id] = rule_config.model_copy(deep=True)
    merged.disabled_rules = _union(current.disabled_rules, imported.disabled_rules)
    merged.opt_in_rules = _union(current.opt_in_rules, imported.opt_in_rules)
    merged.excluded = _union(current.excluded, imported.excluded)
    return merged


class ConfigImportService:
    """URLから設定を取得してプレビューし、置換またはマージで適用する。"""

    def __init__(self, fetcher: URLConfigFetcher) -> None:
        self._fetcher = fetcher

    async def fetch_and_preview(self, url: str, current_config_path: Path | None) -> ConfigImportPreview:
        """設定を取得して適用前のプレビューを作る。

        Args:
            url: 取得元URL。
            current_config_path: 現在の .swiftlint.yml。存在すれば差分を計算する。

        Raises:
            URLConfigFetcherError: 取得に失敗した場合。
            ImportParseError: 取得内容を設定として解釈できない場合。
        """
        content = await self._fetcher.fetch_config(url)
        try:
            parsed = parse_config_text(content)
        except ConfigParseError as e:
            raise ImportParseError(e.detail) from e

        warnings: list[str] = []
        if not parsed.has_any_rules():
            warnings.append(EMPTY_CONFIG_WARNING)

        diff = None
        if current_config_path is not None and Path(current_config_path).exists():
            engine = YAMLConfigurationEngine(Path(current_config_path))
            try:
                current = engine.load()
            except ConfigParseError as e:
                warnings.append(f"Current configuration could not be parsed: {e.detail}")
            else:
                diff = diff_configs(current, parsed, before_text=engine.original_content, after_text=content)

        return ConfigImportPreview(
            source_url=url,
            fetched_yaml=content,
            parsed_config=parsed,
            diff=diff,
            validation_errors=warnings,
        )

    async def apply_import(self, preview: ConfigImportPreview, mode: ImportMode, config_path: Path) -> YAMLConfig:
        """プレビュー済みの設定を適用する。

        Returns:
            書き込んだ設定。

        Raises:
            ImportSaveError: 保存に失敗した場合。
        """
        engine = YAMLConfigurationEngine(Path(config_path))
        exists = engine.config_path.exists()
        try:
            if mode == "merge" and exists:
                result = merge_configs(engine.load(), preview.parsed_config)
            else:
                result = preview.parsed_config
            engine.save(result, create_backup=exists)
        except YAMLConfigError as e:
            raise ImportSaveError(str(e)) from e
        logger.info("Imported configuration from %s (%s)", preview.source_url, mode)
        return result
