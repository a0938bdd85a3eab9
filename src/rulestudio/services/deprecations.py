"""SwiftLintのルール改名・非推奨・削除情報のデータベース。"""

import re
from pathlib import Path
from typing import Any

import yaml
from pydantic import BaseModel, Field

from rulestudio.models.errors import StorageError

DEPRECATIONS_FILE = "swiftlint-deprecations.yaml"


class DeprecationEntry(BaseModel):
    deprecated_in: str
    replacement: str | None = None
    message: str


class RemovalEntry(BaseModel):
    removed_in: str
    replacement: str | None = None
    message: str


class DeprecationData(BaseModel):
    renamed_rules: dict[str, str] = Field(default_factory=dict)
    deprecated_rules: dict[str, DeprecationEntry] = Field(default_factory=dict)
    removed_rules: dict[str, RemovalEntry] = Field(default_factory=dict)
    version_rule_additions: dict[str, list[str]] = Field(default_factory=dict)


def _version_parts(version: str) -> list[int]:
    parts: list[int] = []
    for piece in version.strip().lstrip("vV").split("."):
        match = re.match(r"\d+", piece)
        if match:
            parts.append(int(match.group()))
    return parts


def is_version_less_than(first: str, second: str) -> bool:
    """ドット区切りのバージョンを数値として比較する。足りない桁は0とみなす。"""
    a = _version_parts(first)
    b = _version_parts(second)
    width = max(len(a), len(b))
    a += [0] * (width - len(a))
    b += [0] * (width - len(b))
    return a < b


class DeprecationDatabase:
    """config/swiftlint-deprecations.yaml を読み込んで参照する。"""

    def __init__(self, config_dir: Path) -> None:
        self._config_dir = config_dir
        self._data: DeprecationData | None = None

    def _load(self) -> DeprecationData:
        if self._data is not None:
            return self._data
        data_file = self._config_dir / DEPRECATIONS_FILE
        try:
            with open(data_file, encoding="utf-8") as f:
                raw: dict[str, Any] = yaml.safe_load(f) or {}
        except FileNotFoundError:
            raise StorageError(f"Deprecation data not found: {data_file}") from None
        self._data = DeprecationData.model_validate(raw)
        return self._data

    @property
    def renamed_rules(self) -> dict[str, str]:
        return self._load().renamed_rules

    @property
    def deprecated_rules(self) -> dict[str, DeprecationEntry]:
        return self._load().deprecated_rules

    @property
    def removed_rules(self) -> dict[str, RemovalEntry]:
        return self._load().removed_rules

    @property
    def version_rule_additions(self) -> dict[str, list[str]]:
        return self._load().version_rule_additions

    def rules_added(self, from_version: str, to_version: str) -> list[str]:
        """from_version より後、to_version 以前に追加されたルール。"""
        added: set[str] = set()
        for version, rules in self.version_rule_additions.items():
            if is_version_less_than(from_version, version) and not is_version_less_than(to_version, version):
                added.update(rules)
        return sorted(added)

    def rules_available_in(self, version: str) -> list[str]:
        """version 以前に追加された全ルール。"""
        available: set[str] = set()
        for added_in, rules in self.version_rule_additions.items():
            if not is_version_less_than(version, added_in):
                available.update(rules)
        return sorted(available)

    def as_dict(self) -> dict[str, Any]:
        return self._load().model_dump()
