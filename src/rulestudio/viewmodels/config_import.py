"""リモート設定インポート画面の状態とロジック。"""

from pathlib import Path

from rulestudio.models.config_import import ConfigImportPreview, ImportMode
from rulestudio.models.errors import InvalidURLError, StudioError
from rulestudio.services.config_import import ConfigImportService
from rulestudio.services.url_fetcher import validate_url


class ConfigImportViewModel:
    """URLから設定を取得してプレビューし、置換またはマージで取り込む。"""

    def __init__(self, service: ConfigImportService, config_path: Path | None) -> None:
        self._service = service
        self.config_path = config_path
        self.url_string = ""
        self.import_mode: ImportMode = "merge"
        self.preview: ConfigImportPreview | None = None
        self.is_fetching = False
        self.is_importing = False
        self.import_complete = False
        self.error: Exception | None = None

    async def fetch_preview(self) -> None:
        """URLの設定を取得してプレビューを作る。"""
        if self.is_fetching:
            return
        url = self.url_string.strip()
        if not url or validate_url(url) == "invalid_format":
            self.error = InvalidURLError(url)
            return

        self.is_fetching = True
        self.error = None
        self.preview = None
        self.import_complete = False
        try:
            self.preview = await self._service.fetch_and_preview(url, self.config_path)
        except StudioError as e:
            self.error = e
        finally:
            self.is_fetching = False

    async def apply_import(self) -> None:
        """プレビュー中の設定を import_mode で適用する。"""
        if self.is_importing or self.preview is None or self.config_path is None:
            return
        self.is_importing = True
        self.error = None
        try:
            await self._service.apply_import(self.preview, self.import_mode, self.config_path)
            self.import_complete = True
        except StudioError as e:
            self.error = e
        finally:
            self.is_importing = False
