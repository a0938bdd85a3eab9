"""RuleStudioのMCPリソース定義。"""

from pathlib import Path

import yaml
from fastmcp import FastMCP

from rulestudio.services.deprecations import DeprecationDatabase
from rulestudio.services.workspace import DEFAULT_CONFIG_TEMPLATE


def register_studio_resources(mcp: FastMCP, config_dir: Path, database: DeprecationDatabase) -> None:
    """RuleStudio関連のMCPリソースを登録する。"""

    @mcp.resource("rulestudio://deprecations")
    async def deprecations() -> str:
        """ルールの改名・非推奨・削除の一覧を取得する。

        バージョン互換性チェックと移行計画の作成に使われるデータを返します。
        """
        return yaml.dump(database.as_dict(), allow_unicode=True, default_flow_style=False)

    @mcp.resource("rulestudio://templates/default-config")
    async def default_config() -> str:
        """create_default_config で作成される .swiftlint.yml のテンプレートを取得する。"""
        with open(config_dir / DEFAULT_CONFIG_TEMPLATE, encoding="utf-8") as f:
            return f.read()
