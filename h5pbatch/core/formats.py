"""輸出格式定義"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from pathlib import Path

# 輸入封裝副檔名
PACKAGE_SUFFIX = ".h5p"


class ExportFormat(Enum):
    """支援的輸出格式"""

    SCORM = "scorm"
    EXTERNAL = "external"

    @property
    def directory_name(self) -> str:
        """每個項目底下的格式子目錄名稱"""
        return "SCORM" if self is ExportFormat.SCORM else "HTML"

    @property
    def display_name(self) -> str:
        """顯示名稱"""
        names = {
            ExportFormat.SCORM: "SCORM",
            ExportFormat.EXTERNAL: "HTML external",
        }
        return names[self]

    def target_name(self, base_name: str) -> str:
        """取得輸出檔名

        Args:
            base_name: 項目名稱（不含 .h5p）

        Returns:
            SCORM 為 <base_name>.zip，HTML 為 index.html
        """
        if self is ExportFormat.SCORM:
            return f"{base_name}.zip"
        return "index.html"


class ExportSelection(str, Enum):
    """CLI 的 --format 選項值"""

    SCORM = "scorm"
    EXTERNAL = "external"
    BOTH = "both"

    @property
    def formats(self) -> tuple[ExportFormat, ...]:
        """展開為要輸出的格式，固定 SCORM 在前"""
        if self is ExportSelection.SCORM:
            return (ExportFormat.SCORM,)
        if self is ExportSelection.EXTERNAL:
            return (ExportFormat.EXTERNAL,)
        return (ExportFormat.SCORM, ExportFormat.EXTERNAL)

    @classmethod
    def from_string(cls, value: str) -> ExportSelection:
        """從字串轉換為 ExportSelection（區分大小寫）

        Raises:
            ValueError: 不支援的格式
        """
        try:
            return cls(value)
        except ValueError:
            raise ValueError("Format must be: scorm, external, or both") from None


@dataclass(frozen=True)
class ExportOptions:
    """傳給匯出器的選項"""

    format: ExportFormat
    css_path: Path | None = None
    language: str = "en"
    mastery_score: int = 75
    margin_x: int = 0
    margin_y: int = 20
    max_width: int = 1200
    restrict_width_and_center: bool = True
    show_embed: bool = True
    show_rights: bool = True
    include_reporter: bool = False
