"""Rule Studioのカスタム例外クラス。"""


class StudioError(Exception):
    """Rule Studioの基底例外クラス。"""


class StorageError(StudioError):
    """違反データベース・キャッシュ操作のエラー。"""


class NoWorkspaceError(StudioError):
    """ワークスペース（設定エンジン）が未選択の場合の例外。"""

    def __init__(self) -> None:
        super().__init__("No workspace is open. Open a workspace before editing its configuration.")


class NoPreviousVersionError(StudioError):
    """移行元バージョンが入力されていない場合の例外。"""

    def __init__(self) -> None:
        super().__init__("Please enter the previous SwiftLint version you are migrating from.")


# --- YAML設定 ---


class YAMLConfigError(StudioError):
    """.swiftlint.yml の読み書きに関するエラー。"""


class ConfigParseError(YAMLConfigError):
    """YAMLのパースに失敗した場合の例外。"""

    def __init__(self, detail: str) -> None:
        super().__init__(f"Failed to parse YAML: {detail}")
        self.detail = detail


class ConfigSerializationError(YAMLConfigError):
    """YAMLへのシリアライズに失敗した場合の例外。"""

    def __init__(self, detail: str) -> None:
        super().__init__(f"Failed to serialize YAML: {detail}")
        self.detail = detail


class InvalidSeverityError(YAMLConfigError):
    """warning/error 以外の重大度が指定された場合の例外。"""

    def __init__(self, rule_id: str, severity: str) -> None:
        super().__init__(f"Invalid severity '{severity}' for rule '{rule_id}'. Must be 'warning' or 'error'.")
        self.rule_id = rule_id
        self.severity = severity


class InvalidPathError(YAMLConfigError):
    """included/excluded に不正なパスが含まれる場合の例外。"""

    def __init__(self, path: str) -> None:
        super().__init__(f"Invalid path: {path!r}")
        self.path = path


class ConfigFileNotFoundError(YAMLConfigError):
    """設定ファイルが存在しない場合の例外。"""

    def __init__(self, path: str = "") -> None:
        message = "Configuration file not found"
        if path:
            message = f"{message}: {path}"
        super().__init__(message)
        self.path = path


class ConfigWriteError(YAMLConfigError):
    """設定ファイル・バックアップの書き込みに失敗した場合の例外。"""

    def __init__(self, path: str, detail: str) -> None:
        super().__init__(f"Failed to write {path}: {detail}")
        self.path = path
        self.detail = detail


# --- ワークスペース ---


class WorkspaceError(StudioError):
    """ワークスペースのオープン・検証エラー。"""


class WorkspaceNotADirectoryError(WorkspaceError):
    """指定パスがディレクトリでない場合の例外。"""

    def __init__(self, path: str) -> None:
        super().__init__(f"The selected path is not a directory: {path}")
        self.path = path


class WorkspaceAccessError(WorkspaceError):
    """ディレクトリを読み取れない場合の例外。"""

    def __init__(self, path: str) -> None:
        super().__init__(f"Unable to access directory: {path}")
        self.path = path


class NotASwiftProjectError(WorkspaceError):
    """Swiftプロジェクトとして認識できない場合の例外。"""

    def __init__(self, path: str) -> None:
        super().__init__(
            f"The selected directory does not appear to be a Swift project: {path}. "
            "Select a directory containing .swift files, Package.swift, or an Xcode project."
        )
        self.path = path


# --- 解析 ---


class WorkspaceAnalyzerError(StudioError):
    """ワークスペース解析のエラー。"""


class InvalidLintOutputError(WorkspaceAnalyzerError):
    """swiftlint lint の出力がJSONとして解釈できない場合の例外。"""

    def __init__(self, detail: str) -> None:
        super().__init__(f"Invalid lint output: {detail}")
        self.detail = detail


class AnalysisFailedError(WorkspaceAnalyzerError):
    """解析全体が失敗した場合の例外。"""

    def __init__(self, detail: str) -> None:
        super().__init__(f"Analysis failed: {detail}")
        self.detail = detail


# --- SwiftLint CLI ---


class SwiftLintError(StudioError):
    """SwiftLint CLI実行エラー。"""


class SwiftLintNotFoundError(SwiftLintError):
    """swiftlint バイナリが見つからない場合の例外。"""

    def __init__(self, path: str = "") -> None:
        message = "SwiftLint not found. Install it with 'brew install swiftlint' or set RULESTUDIO_SWIFTLINT_PATH."
        if path:
            message = f"SwiftLint not found at {path}"
        super().__init__(message)
        self.path = path


class SwiftLintExecutionError(SwiftLintError):
    """swiftlint コマンドが失敗した場合の例外。"""

    def __init__(self, message: str, stderr: str = "", exit_code: int = 0) -> None:
        super().__init__(f"SwiftLint execution failed: {message}")
        self.stderr = stderr
        self.exit_code = exit_code


class InvalidVersionError(SwiftLintError):
    """swiftlint version の出力が空の場合の例外。"""

    def __init__(self) -> None:
        super().__init__("Unable to determine SwiftLint version")


# --- Git ---


class GitServiceError(StudioError):
    """git コマンド実行エラー。"""


class NotARepositoryError(GitServiceError):
    """ディレクトリがgitリポジトリでない場合の例外。"""

    def __init__(self, path: str = "") -> None:
        super().__init__("The specified directory is not a git repository.")
        self.path = path


class GitExecutionError(GitServiceError):
    """git コマンドが非ゼロで終了した場合の例外。"""

    def __init__(self, stderr: str, exit_code: int = 1) -> None:
        super().__init__(f"Git command failed: {stderr.strip()}")
        self.stderr = stderr
        self.exit_code = exit_code


class GitTimeoutError(GitServiceError):
    """git コマンドがタイムアウトした場合の例外。"""

    def __init__(self, timeout: float) -> None:
        super().__init__(f"Git command timed out after {timeout:g} seconds.")
        self.timeout = timeout


class InvalidRefError(GitServiceError):
    """refが空、またはオプションとして解釈される形式の場合の例外。"""

    def __init__(self, ref: str) -> None:
        super().__init__(f"Invalid git ref: '{ref}'.")
        self.ref = ref


class GitFileNotFoundError(GitServiceError):
    """指定refにファイルが存在しない場合の例外。"""

    def __init__(self, path: str, ref: str) -> None:
        super().__init__(f"File '{path}' not found on branch '{ref}'.")
        self.path = path
        self.ref = ref


class GitBranchDiffError(StudioError):
    """ブランチ間比較のエラー。"""


class NotGitRepoError(GitBranchDiffError):
    """ワークスペースがgitリポジトリでない場合の例外。"""

    def __init__(self) -> None:
        super().__init__("The workspace is not a git repository.")


class ConfigNotFoundOnBranchError(GitBranchDiffError):
    """指定ブランチに設定ファイルが存在しない場合の例外。"""

    def __init__(self, branch: str) -> None:
        super().__init__(f"No .swiftlint.yml found on branch '{branch}'.")
        self.branch = branch


class ComparisonFailedError(GitBranchDiffError):
    """ブランチ比較処理そのものが失敗した場合の例外。"""

    def __init__(self, detail: str) -> None:
        super().__init__(f"Comparison failed: {detail}")
        self.detail = detail


# --- リモート取得・インポート ---


class URLConfigFetcherError(StudioError):
    """リモート設定取得のエラー。"""


class InvalidURLError(URLConfigFetcherError):
    """URLの形式が不正な場合の例外。"""

    def __init__(self, url: str = "") -> None:
        super().__init__("The URL is not valid.")
        self.url = url


class InsecureURLError(URLConfigFetcherError):
    """HTTPS以外のURLが指定された場合の例外。"""

    def __init__(self, url: str = "") -> None:
        super().__init__("Only HTTPS URLs are supported for security.")
        self.url = url


class NetworkError(URLConfigFetcherError):
    """ネットワーク通信に失敗した場合の例外。"""

    def __init__(self, detail: str) -> None:
        super().__init__(f"Network error: {detail}")
        self.detail = detail


class InvalidYAMLError(URLConfigFetcherError):
    """取得内容がYAMLとして解釈できない場合の例外。"""

    def __init__(self, detail: str) -> None:
        super().__init__(f"The fetched content is not valid YAML: {detail}")
        self.detail = detail


class HTTPStatusError(URLConfigFetcherError):
    """2xx以外のHTTPステータスが返された場合の例外。"""

    def __init__(self, status_code: int) -> None:
        super().__init__(f"HTTP error {status_code}.")
        self.status_code = status_code


class FetchTimeoutError(URLConfigFetcherError):
    """取得がタイムアウトした場合の例外。"""

    def __init__(self, timeout: float) -> None:
        super().__init__(f"Request timed out after {timeout:g} seconds.")
        self.timeout = timeout


class ConfigImportError(StudioError):
    """設定インポートのエラー。"""


class ImportParseError(ConfigImportError):
    """取得した設定のパースに失敗した場合の例外。"""

    def __init__(self, detail: str) -> None:
        super().__init__(f"Failed to parse imported configuration: {detail}")
        self.detail = detail


class ImportSaveError(ConfigImportError):
    """インポート結果の保存に失敗した場合の例外。"""

    def __init__(self, detail: str) -> None:
        super().__init__(f"Failed to save imported configuration: {detail}")
        self.detail = detail
