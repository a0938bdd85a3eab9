"""リモート設定インポートのデータモデル。"""

from typing import Literal

from pydantic import BaseModel, Field

from rulestudio.models.configuration import ConfigDiff, YAMLConfig

ImportMode = Literal["replace", "merge"]
URLValidation = Literal["valid", "invalid_format", "insecure_scheme", "unsupported_scheme"]


class ConfigImportPreview(BaseModel):
    """取得した設定の適用前プレビュー。"""

    source_url: str
    fetched_yaml: str
    parsed_config: YAMLConfig
    diff: ConfigDiff | None = None
    validation_errors: list[str] = Field(default_factory=list)
