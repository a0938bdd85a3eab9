"""ワークフロー統合MCPプロンプト定義。"""

from fastmcp import FastMCP


def register_workflow_prompts(mcp: FastMCP) -> None:
    """ワークフロー系のMCPプロンプトを登録する。"""

    def _workspace_phase() -> str:
        return (
            "## Step 1: ワークスペース\n\n"
            "1. `open_workspace` ツールでSwiftプロジェクトのディレクトリを開いてください。\n"
            "2. `config_file_exists` が false の場合は、利用者に確認してから "
            "`create_default_config` で既定の .swiftlint.yml を作成してください。\n\n"
        )

    def _notes() -> str:
        return (
            "## 注意事項\n\n"
            "- 設定を変更するツールは、保存前に `.swiftlint.yml.<timestamp>.backup` を作成します。\n"
            "- 変更前に `dry_run: true` で差分を利用者に提示し、承認を得てから保存してください。\n"
            "- 誤った変更は `list_config_backups` と `restore_config_backup` で元に戻せます。\n"
        )

    @mcp.prompt()
    async def tune_rules() -> str:
        """違反の状況を見ながらルール設定を調整するワークフロー。"""
        return (
            "# SwiftLintルール調整ワークフロー\n\n"
            + _workspace_phase()
            + "## Step 2: 現状把握\n\n"
            "1. `analyze_workspace` でプロジェクトを解析してください。\n"
            "2. `list_violations` を `group_by: rule` で呼び、違反の多いルールを確認してください。\n"
            "3. `get_rule_detail` でルールの説明と例を確認してください。\n\n"
            "## Step 3: 調整\n\n"
            "1. 1ルールの変更は `configure_rule`、複数ルールは `bulk_update_rules` を使ってください。\n"
            "2. 意図的な違反は `suppress_violations` に理由を添えて抑制してください。\n"
            "3. 変更後に `analyze_workspace` を再実行し、違反数の変化を報告してください。\n\n"
            + _notes()
        )

    @mcp.prompt()
    async def upgrade_swiftlint(previous_version: str) -> str:
        """SwiftLintのバージョンアップに合わせて設定を移行するワークフロー。

        Args:
            previous_version: これまで使っていたSwiftLintのバージョン。
        """
        return (
            "# SwiftLintバージョン移行ワークフロー\n\n"
            f"移行元バージョン: {previous_version}\n\n"
            + _workspace_phase()
            + "## Step 2: 互換性チェック\n\n"
            "1. `get_swiftlint_version` でインストール済みのバージョンを確認してください。\n"
            "2. `check_version_compatibility` で非推奨・削除・改名されたルールを確認してください。\n\n"
            "## Step 3: 移行\n\n"
            f"1. `plan_migration` を `from_version: {previous_version}` で呼び、計画と差分を提示してください。\n"
            "2. 利用者の承認後、`apply: true` で自動適用できるステップを適用してください。\n"
            "3. 手動対応のステップ（manual_action）は内容を説明し、利用者に対応を依頼してください。\n"
            "4. `available_new_rules` から有用そうな新ルールを提案してください。\n\n"
            + _notes()
        )
