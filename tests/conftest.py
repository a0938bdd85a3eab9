"""テスト共通フィクスチャ。"""

import shutil
import subprocess
from collections.abc import Iterator
from pathlib import Path

import pytest

from rulestudio.config import ServerConfig
from rulestudio.services.deprecations import DeprecationDatabase
from rulestudio.storage.cache import CacheManager
from rulestudio.storage.violations import ViolationStorage

SAMPLE_CONFIG = """\
# Paths to skip
excluded:
  - Pods
  - Carthage

disabled_rules:
  - todo

opt_in_rules:
  - empty_count

# Rule settings
rules:
  # Keep lines readable
  line_length:
    warning: 120
    error: 200
  force_cast:
    severity: error
  trailing_whitespace: false
"""


@pytest.fixture
def sample_config_text() -> str:
    """テスト用の .swiftlint.yml の内容。"""
    return SAMPLE_CONFIG


@pytest.fixture
def tmp_data_dir(tmp_path: Path) -> Path:
    """テスト用の一時データディレクトリ。"""
    return tmp_path / "rulestudio-test"


@pytest.fixture
def config_dir() -> Path:
    """設定ファイルディレクトリ。"""
    return Path(__file__).parent.parent / "config"


@pytest.fixture
def server_config(tmp_data_dir: Path, config_dir: Path) -> ServerConfig:
    """テスト用ServerConfig。"""
    return ServerConfig(data_dir=tmp_data_dir, config_dir=config_dir)


@pytest.fixture
def cache(tmp_data_dir: Path) -> CacheManager:
    """テスト用CacheManager。"""
    return CacheManager(cache_dir=tmp_data_dir / "cache")


@pytest.fixture
def violation_storage() -> Iterator[ViolationStorage]:
    """インメモリのViolationStorage。"""
    storage = ViolationStorage(":memory:")
    yield storage
    storage.close()


@pytest.fixture
def deprecations(config_dir: Path) -> DeprecationDatabase:
    """リポジトリ同梱の非推奨ルールデータ。"""
    return DeprecationDatabase(config_dir)


@pytest.fixture
def swift_project(tmp_path: Path) -> Path:
    """Package.swift と .swiftlint.yml を持つSwiftプロジェクト。"""
    project = tmp_path / "MyApp"
    (project / "Sources").mkdir(parents=True)
    (project / "Package.swift").write_text("// swift-tools-version:5.9\n", encoding="utf-8")
    (project / "Sources" / "main.swift").write_text('print("hello")\n', encoding="utf-8")
    (project / ".swiftlint.yml").write_text(SAMPLE_CONFIG, encoding="utf-8")
    return project


@pytest.fixture
def config_path(swift_project: Path) -> Path:
    """swift_project の .swiftlint.yml。"""
    return swift_project / ".swiftlint.yml"


def _run_git(repo: Path, *args: str) -> None:
    subprocess.run(
        ["git", "-c", "user.name=Test", "-c", "user.email=test@example.com", *args],
        cwd=repo,
        check=True,
        capture_output=True,
    )


@pytest.fixture
def git_repo(swift_project: Path) -> Path:
    """.swiftlint.yml をコミット済みのgitリポジトリ（main ブランチ、v1.0 タグ、legacy ブランチ）。"""
    if shutil.which("git") is None:
        pytest.skip("git is not installed")
    _run_git(swift_project, "init", "-q")
    _run_git(swift_project, "symbolic-ref", "HEAD", "refs/heads/main")
    _run_git(swift_project, "add", ".")
    _run_git(swift_project, "commit", "-q", "-m", "Initial commit")
    _run_git(swift_project, "tag", "v1.0")
    _run_git(swift_project, "branch", "legacy")
    return swift_project
