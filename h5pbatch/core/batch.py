"""批次匯出流程"""

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Callable, Optional, Protocol

from h5pbatch.core.config import BatchConfiguration
from h5pbatch.core.engine import EngineContext, create_engine_context
from h5pbatch.core.errors import ConfigurationError
from h5pbatch.core.processor import ItemProcessor, ItemResult
from h5pbatch.core.scanner import DiscoveredItem, FileScanner
from h5pbatch.core.validation import validate_output_dir, validate_stylesheet

logger = logging.getLogger(__name__)


@dataclass
class BatchStats:
    """批次統計結果"""

    succeeded: int = 0
    failed: int = 0

    @classmethod
    def from_results(cls, results: list[ItemResult]) -> "BatchStats":
        """從處理結果建立統計"""
        stats = cls()
        for result in results:
            if result.succeeded:
                stats.succeeded += 1
            else:
                stats.failed += 1
        return stats

    @property
    def total(self) -> int:
        return self.succeeded + self.failed

    def format_summary(self) -> str:
        """格式化摘要字串"""
        return f"Succeeded: {self.succeeded}, Failed: {self.failed}"


@dataclass
class BatchResult:
    """批次執行結果

    processed 是嘗試處理的數量，不代表全部成功。
    """

    discovered: int
    processed: int
    output_dir: Path
    results: list[ItemResult] = field(default_factory=list)

    @property
    def stats(self) -> BatchStats:
        return BatchStats.from_results(self.results)


class ProgressCallback(Protocol):
    """進度回呼介面"""

    def __call__(
        self,
        current: int,
        total: int,
        item: DiscoveredItem,
        result: ItemResult | None,
    ) -> None:
        """
        進度回呼

        Args:
            current: 目前處理到第幾個（1-based）
            total: 總項目數
            item: 目前處理的項目
            result: 處理結果（None 表示尚未處理完）
        """
        ...


class BatchRunner:
    """批次匯出執行器

    依掃描順序逐一處理，一次只處理一個項目。
    """

    def __init__(
        self,
        config: BatchConfiguration,
        context_factory: Callable[[], EngineContext] = create_engine_context,
        on_progress: Optional[ProgressCallback] = None,
    ):
        """
        Args:
            config: 批次設定
            context_factory: 建立引擎 context 的函式
            on_progress: 進度回呼函數
        """
        self.config = config
        self.context_factory = context_factory
        self.on_progress = on_progress

    def prepare(self) -> tuple[FileScanner, Path]:
        """驗證輸入、輸出與樣式表，並建立輸出目錄

        Returns:
            (輸入目錄掃描器, 已解析的輸出目錄)

        Raises:
            DiscoveryError: 輸入目錄不存在或無法讀取
            ConfigurationError: 輸出路徑或 CSS 檔案無效
        """
        scanner = FileScanner(self.config.input_dir)
        scanner.check()

        output_dir = self.config.output_dir.resolve()
        valid, error = validate_output_dir(output_dir)
        if not valid:
            raise ConfigurationError(error)

        valid, error = validate_stylesheet(self.config.css_path)
        if not valid:
            raise ConfigurationError(error)

        try:
            output_dir.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise ConfigurationError(f"Cannot create output directory {output_dir}: {e}") from e

        return scanner, output_dir

    def run(self) -> BatchResult:
        """
        執行批次匯出

        Returns:
            批次結果

        Raises:
            DiscoveryError: 輸入目錄不存在或無法讀取
            ConfigurationError: 輸出路徑或 CSS 檔案無效
        """
        scanner, output_dir = self.prepare()

        # 離開 with 時移除暫存目錄，即使中途拋出例外
        with self.context_factory() as context:
            logger.info("Scanning for H5P files...")
            items = scanner.scan()

            if not items:
                logger.info("No H5P files found in input directory.")
                return BatchResult(discovered=0, processed=0, output_dir=output_dir)

            logger.info(f"Found {len(items)} H5P file(s)")

            processor = ItemProcessor(self.config, context, output_dir)
            results: list[ItemResult] = []
            total = len(items)

            for idx, item in enumerate(items, start=1):
                if self.on_progress:
                    self.on_progress(idx, total, item, None)

                result = processor.process(item, idx, total)
                results.append(result)

                if self.on_progress:
                    self.on_progress(idx, total, item, result)

        return BatchResult(
            discovered=total,
            processed=len(results),
            output_dir=output_dir,
            results=results,
        )


def run_batch(
    config: BatchConfiguration,
    context_factory: Callable[[], EngineContext] = create_engine_context,
    on_progress: Optional[ProgressCallback] = None,
) -> BatchResult:
    """執行批次匯出（BatchRunner 的捷徑）"""
    return BatchRunner(config, context_factory, on_progress).run()
