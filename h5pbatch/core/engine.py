"""H5P 引擎介面與執行期 context

EngineContext 是整個批次唯一的共用可變狀態（content store、library store、
翻譯函式），由 BatchRunner 建立一次並明確傳給每個 ItemProcessor。
"""

import logging
import shutil
from dataclasses import dataclass, field
from pathlib import Path
from typing import Callable, Optional, Protocol

from h5pbatch.core.errors import CleanupError
from h5pbatch.core.formats import ExportFormat, ExportOptions
from h5pbatch.core.paths import get_data_dir

logger = logging.getLogger(__name__)

Translator = Callable[[str], str]

# 匯出頁面使用的英文字串
DEFAULT_LABELS = {
    "embed": "Embed",
    "rights-of-use": "Rights of use",
    "no-javascript": "This content requires JavaScript.",
}


def default_translate(key: str) -> str:
    """內建翻譯函式，找不到時回傳 key 本身"""
    return DEFAULT_LABELS.get(key, key)


@dataclass(frozen=True)
class Operator:
    """執行匯入、匯出與刪除的使用者身分"""

    id: str = "1"
    name: str = "h5pbatch"
    email: str = "h5pbatch@localhost"
    type: str = "local"


@dataclass(frozen=True)
class ExportJob:
    """單一格式的匯出工作"""

    content_id: str
    target_path: Path
    format: ExportFormat
    options: ExportOptions


class ContentEngine(Protocol):
    """內容引擎介面"""

    def import_package(self, data: bytes, operator: Operator) -> str:
        """匯入 H5P 封裝，回傳 content id

        Raises:
            PackageError: 封裝損毀或不支援
        """
        ...

    def export_content(self, job: ExportJob, operator: Operator) -> None:
        """依 job 匯出內容

        Raises:
            ExportError: 匯出失敗
        """
        ...

    def delete_content(self, content_id: str, operator: Operator) -> None:
        """刪除 content store 中的內容"""
        ...


@dataclass(frozen=True)
class EnginePaths:
    """CLI 工作目錄配置"""

    root: Path

    @property
    def content(self) -> Path:
        return self.root / "content"

    @property
    def libraries(self) -> Path:
        return self.root / "libraries"

    @property
    def tmp(self) -> Path:
        return self.root / "tmp"

    def ensure(self) -> None:
        """建立所需目錄"""
        for path in (self.root, self.content, self.libraries, self.tmp):
            path.mkdir(parents=True, exist_ok=True)


@dataclass
class EngineContext:
    """批次執行期 context

    以 context manager 使用，離開時一定會移除暫存目錄：

        with create_engine_context() as context:
            ...
    """

    engine: ContentEngine
    paths: EnginePaths
    translate: Translator = default_translate
    operator: Operator = field(default_factory=Operator)

    def __enter__(self) -> "EngineContext":
        self.paths.ensure()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        try:
            self.remove_temporary_files()
        except CleanupError as e:
            logger.warning(str(e))

    def remove_temporary_files(self) -> None:
        """移除暫存目錄

        Raises:
            CleanupError: 無法移除
        """
        if not self.paths.tmp.exists():
            return
        logger.info("Cleaning up temporary files...")
        try:
            shutil.rmtree(self.paths.tmp)
        except OSError as e:
            raise CleanupError(f"Could not remove temporary directory {self.paths.tmp}: {e}") from e


def create_engine_context(
    root: Optional[Path] = None,
    translate: Translator = default_translate,
) -> EngineContext:
    """建立使用本機引擎的 context

    Args:
        root: 工作目錄，None 表示使用 get_data_dir()
        translate: 翻譯函式

    Returns:
        尚未進入的 EngineContext
    """
    from h5pbatch.core.h5p import LocalH5PEngine

    paths = EnginePaths(Path(root) if root is not None else get_data_dir())
    logger.info("Initializing H5P infrastructure...")
    logger.debug(f"Working directory: {paths.root}")
    engine = LocalH5PEngine(paths, translate)
    return EngineContext(engine=engine, paths=paths, translate=translate)
