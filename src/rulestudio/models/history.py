"""設定バックアップ（バージョン履歴）のデータモデル。"""

from datetime import datetime
from pathlib import Path

from pydantic import BaseModel

_SIZE_UNITS = ("bytes", "KB", "MB", "GB")


class ConfigBackup(BaseModel):
    """``<name>.<timestamp>.backup`` 形式のバックアップファイル。"""

    id: str
    path: Path
    timestamp: datetime
    file_size: int

    @property
    def formatted_date(self) -> str:
        return self.timestamp.strftime("%Y-%m-%d %H:%M:%S")

    @property
    def formatted_size(self) -> str:
        size = float(self.file_size)
        for unit in _SIZE_UNITS:
            if size < 1024 or unit == _SIZE_UNITS[-1]:
                if unit == "bytes":
                    return f"{int(size)} bytes"
                return f"{size:.1f} {unit}"
            size /= 1024
        return f"{self.file_size} bytes"
