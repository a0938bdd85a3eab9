"""Rule Studioサーバーの設定管理。"""

from pathlib import Path

from pydantic_settings import BaseSettings

_PACKAGE_ROOT = Path(__file__).parent
_REPO_ROOT = _PACKAGE_ROOT.parent.parent


class ServerConfig(BaseSettings):
    """サーバー設定。環境変数から読み込み可能。"""

    model_config = {"env_prefix": "RULESTUDIO_"}

    data_dir: Path = _REPO_ROOT / ".rulestudio"
    config_dir: Path = _REPO_ROOT / "config"
    host: str = "0.0.0.0"
    port: int = 8000
    url_token: str = ""
    log_level: str = "INFO"

    # 外部コマンド
    swiftlint_path: str = ""
    git_path: str = "git"
    swiftlint_timeout: float = 300.0
    git_timeout: float = 30.0
    fetch_timeout: float = 30.0

    # バックアップ・ワークスペース履歴
    backup_keep_count: int = 10
    max_recent_workspaces: int = 10
