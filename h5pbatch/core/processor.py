"""單一 H5P 檔案的匯入、匯出與清理"""

import logging
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Optional

from h5pbatch.core.config import BatchConfiguration
from h5pbatch.core.engine import EngineContext, ExportJob
from h5pbatch.core.errors import CleanupError, ItemError
from h5pbatch.core.formats import ExportFormat
from h5pbatch.core.scanner import DiscoveredItem

logger = logging.getLogger(__name__)


class ItemPhase(Enum):
    """處理階段"""

    PENDING = "pending"
    IMPORTING = "importing"
    EXPORTING = "exporting"
    CLEANING_UP = "cleaning_up"
    COMPLETED = "completed"


class ItemStatus(Enum):
    """處理結果"""

    COMPLETED = "completed"
    FAILED = "failed"


@dataclass
class ItemResult:
    """單一項目的處理結果

    失敗時 phase 為失敗發生的階段。
    """

    item: DiscoveredItem
    status: ItemStatus
    phase: ItemPhase
    message: str = ""
    content_id: Optional[str] = None
    outputs: list[Path] = field(default_factory=list)
    cleanup_error: Optional[str] = None
    # 依序經過的階段，如 pending → importing → exporting → cleaning_up → completed
    phases: list[ItemPhase] = field(default_factory=list)

    @property
    def succeeded(self) -> bool:
        return self.status is ItemStatus.COMPLETED


class ItemProcessor:
    """單一項目處理器

    process() 不會拋出一般例外：任何階段的錯誤都轉為失敗的 ItemResult。
    匯入成功後，不論匯出結果如何都會刪除 content store 中的內容。
    任一格式匯出失敗時，略過該項目剩餘的格式。
    """

    def __init__(
        self,
        config: BatchConfiguration,
        context: EngineContext,
        output_dir: Optional[Path] = None,
    ):
        """
        Args:
            config: 批次設定
            context: 共用的引擎 context
            output_dir: 已解析的輸出目錄，None 表示使用 config.output_dir
        """
        self.config = config
        self.context = context
        self.output_dir = Path(output_dir) if output_dir is not None else config.output_dir

    def process(self, item: DiscoveredItem, index: int = 1, total: int = 1) -> ItemResult:
        """
        處理單一項目

        Args:
            item: 掃描到的檔案
            index: 目前處理到第幾個（1-based）
            total: 總項目數

        Returns:
            處理結果
        """
        logger.info(f"[{index}/{total}] Processing: {item.base_name}")

        phases: list[ItemPhase] = [ItemPhase.PENDING]
        content_id: Optional[str] = None
        outputs: list[Path] = []
        failure: Optional[Exception] = None
        cleanup_error: Optional[str] = None

        try:
            phases.append(ItemPhase.IMPORTING)
            content_id = self._import(item)

            phases.append(ItemPhase.EXPORTING)
            item_dir = self.output_dir / item.base_name
            item_dir.mkdir(parents=True, exist_ok=True)

            for fmt in self.config.formats:
                outputs.append(self._export(content_id, item, item_dir, fmt))
        except Exception as e:
            failure = e
        finally:
            # 匯出失敗或中斷時也要清理，避免 content store 殘留
            if content_id is not None:
                phases.append(ItemPhase.CLEANING_UP)
                cleanup_error = self._cleanup(content_id)

        if failure is not None:
            # 失敗的階段是清理之前的最後一個階段
            phase = next(p for p in reversed(phases) if p is not ItemPhase.CLEANING_UP)
            message = str(failure) or type(failure).__name__
            logger.error(f"  ✗ Error processing file {item} during {phase.value}: {message}")
            if not isinstance(failure, ItemError):
                logger.debug("Unexpected error", exc_info=failure)
            logger.error("  Skipping and continuing...")
            return ItemResult(
                item=item,
                status=ItemStatus.FAILED,
                phase=phase,
                message=message,
                content_id=content_id,
                outputs=outputs,
                cleanup_error=cleanup_error,
                phases=phases,
            )

        phases.append(ItemPhase.COMPLETED)
        logger.info("  ✓ Completed successfully")
        return ItemResult(
            item=item,
            status=ItemStatus.COMPLETED,
            phase=ItemPhase.COMPLETED,
            message="Completed successfully",
            content_id=content_id,
            outputs=outputs,
            cleanup_error=cleanup_error,
            phases=phases,
        )

    def _import(self, item: DiscoveredItem) -> str:
        """讀取並匯入 H5P 檔案，回傳 content id"""
        logger.info(f"  Importing: {item.path.name}")
        data = item.path.read_bytes()
        content_id = self.context.engine.import_package(data, self.context.operator)
        logger.info(f"  Content ID: {content_id}")
        return content_id

    def _export(
        self,
        content_id: str,
        item: DiscoveredItem,
        item_dir: Path,
        fmt: ExportFormat,
    ) -> Path:
        """匯出單一格式，回傳輸出檔案路徑"""
        logger.info(f"  Exporting to {fmt.display_name}...")

        format_dir = item_dir / fmt.directory_name
        format_dir.mkdir(parents=True, exist_ok=True)

        job = ExportJob(
            content_id=content_id,
            target_path=format_dir / fmt.target_name(item.base_name),
            format=fmt,
            options=self.config.export_options(fmt),
        )
        self.context.engine.export_content(job, self.context.operator)

        logger.info(f"  Exported to: {job.target_path}")
        return job.target_path

    def _cleanup(self, content_id: str) -> Optional[str]:
        """刪除匯入的內容

        Returns:
            失敗時回傳錯誤訊息，成功為 None
        """
        logger.debug(f"  Deleting content {content_id}")
        try:
            self.context.engine.delete_content(content_id, self.context.operator)
        except Exception as e:
            error = CleanupError(f"Could not delete content {content_id}: {e}")
            logger.warning(f"  {error} (during {ItemPhase.CLEANING_UP.value})")
            return str(error)
        return None
