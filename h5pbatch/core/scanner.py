"""檔案掃描模組"""

import logging
import os
from dataclasses import dataclass
from pathlib import Path

from h5pbatch.core.errors import DiscoveryError
from h5pbatch.core.formats import PACKAGE_SUFFIX

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class DiscoveredItem:
    """掃描到的 H5P 檔案"""

    path: Path
    base_name: str

    @classmethod
    def from_path(cls, path: Path) -> "DiscoveredItem":
        """由檔案路徑建立，base_name 為去除 .h5p（不分大小寫）後的檔名

        檔名只有 .h5p 時保留原檔名，確保每個項目都有自己的輸出目錄。
        """
        name = path.name
        if name.lower().endswith(PACKAGE_SUFFIX) and len(name) > len(PACKAGE_SUFFIX):
            name = name[: -len(PACKAGE_SUFFIX)]
        return cls(path=path, base_name=name)

    def __str__(self) -> str:
        return self.path.name


class FileScanner:
    """檔案掃描器

    只列出輸入目錄本身的檔案，不進入子目錄。
    """

    def __init__(self, input_dir: Path | str, suffix: str = PACKAGE_SUFFIX):
        """
        初始化掃描器

        Args:
            input_dir: 輸入目錄
            suffix: 要掃描的副檔名（不分大小寫）
        """
        self.input_dir = Path(input_dir).resolve()
        self.suffix = suffix.lower()

    def check(self) -> None:
        """確認輸入目錄存在且可讀取

        Raises:
            DiscoveryError: 目錄不存在、不是目錄或無法讀取
        """
        if not self.input_dir.exists():
            raise DiscoveryError(f"Input directory does not exist: {self.input_dir}")
        if not self.input_dir.is_dir():
            raise DiscoveryError(f"Input path is not a directory: {self.input_dir}")
        if not os.access(self.input_dir, os.R_OK | os.X_OK):
            raise DiscoveryError(f"Input directory is not readable: {self.input_dir}")

    def scan(self) -> list[DiscoveredItem]:
        """
        掃描輸入目錄

        順序依作業系統列舉順序，不排序。

        Returns:
            找到的 H5P 檔案

        Raises:
            DiscoveryError: 目錄不存在或無法讀取
        """
        self.check()

        items: list[DiscoveredItem] = []
        try:
            with os.scandir(self.input_dir) as entries:
                for entry in entries:
                    if not entry.name.lower().endswith(self.suffix):
                        continue
                    # 只接受一般檔案，目錄即使名稱符合也略過
                    if not entry.is_file():
                        continue
                    items.append(DiscoveredItem.from_path(Path(entry.path)))
        except OSError as e:
            raise DiscoveryError(f"Cannot read input directory {self.input_dir}: {e}") from e

        logger.debug(f"Scanned {self.input_dir}: {len(items)} file(s)")
        return items


def discover_items(input_dir: Path | str) -> list[DiscoveredItem]:
    """掃描輸入目錄中的 H5P 檔案"""
    return FileScanner(input_dir).scan()
