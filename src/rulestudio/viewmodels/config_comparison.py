"""設定比較画面の状態とロジック。"""

from pathlib import Path

from rulestudio.models.comparison import ConfigComparisonResult
from rulestudio.models.configuration import Workspace
from rulestudio.models.errors import StudioError
from rulestudio.services.comparison import ConfigComparisonService


def _label_for(path: Path) -> str:
    # 設定ファイルは通常プロジェクト直下にあるため、親ディレクトリ名を表示名にする
    return path.parent.name or str(path)


class ConfigComparisonViewModel:
    """左右2つの .swiftlint.yml を選んで比較する。"""

    def __init__(self, service: ConfigComparisonService, current_workspace: Workspace | None = None) -> None:
        self._service = service
        self.left_path: Path | None = current_workspace.config_path if current_workspace else None
        self.right_path: Path | None = None
        self.comparison_result: ConfigComparisonResult | None = None
        self.is_comparing = False
        self.error: Exception | None = None

    def select_left(self, path: Path) -> None:
        self.left_path = Path(path)
        self.comparison_result = None

    def select_right(self, path: Path) -> None:
        self.right_path = Path(path)
        self.comparison_result = None

    @property
    def can_compare(self) -> bool:
        return self.left_path is not None and self.right_path is not None and not self.is_comparing

    async def compare(self) -> None:
        """左右の設定を比較する。どちらかが未選択なら何もしない。"""
        if not self.can_compare or self.left_path is None or self.right_path is None:
            return
        self.is_comparing = True
        self.error = None
        try:
            self.comparison_result = await self._service.compare(
                self.left_path,
                _label_for(self.left_path),
                self.right_path,
                _label_for(self.right_path),
            )
        except StudioError as e:
            self.error = e
        finally:
            self.is_comparing = False
