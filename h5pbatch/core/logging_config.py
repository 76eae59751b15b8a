"""日誌配置模組

提供統一的日誌配置功能，支援：
- Console 輸出（使用 RichHandler）
- 檔案輸出（使用 TimedRotatingFileHandler）
- 自動 fallback 策略（處理權限問題）
- Verbosity 層級控制
"""

import logging
from logging.handlers import TimedRotatingFileHandler
from pathlib import Path
from typing import Optional

from rich.console import Console
from rich.logging import RichHandler

from h5pbatch.core.paths import get_data_dir

LOG_FILE_NAME = "h5pbatch.log"


def _get_writable_log_dir(preferred_dir: Optional[Path]) -> Optional[Path]:
    """嘗試找到可寫入的日誌目錄

    依序嘗試以下路徑：
    1. preferred_dir（如果提供）
    2. 當前工作目錄的 logs/
    3. CLI 工作目錄下的 logs/（跨平台 fallback）

    Args:
        preferred_dir: 優先使用的日誌目錄

    Returns:
        可寫入的路徑，若所有路徑都失敗則返回 None
    """
    candidates = []

    if preferred_dir:
        candidates.append(Path(preferred_dir))

    candidates.append(Path.cwd() / "logs")
    candidates.append(get_data_dir() / "logs")

    for path in candidates:
        try:
            path.mkdir(parents=True, exist_ok=True)

            # 測試寫入權限
            test_file = path / ".write_test"
            test_file.touch()
            test_file.unlink()

            return path
        except OSError:
            continue

    return None


def setup_logging(
    verbose: bool = False,
    log_dir: Optional[Path | str] = None,
    console: Optional[Console] = None,
) -> None:
    """設定日誌系統

    配置 Console Handler 和 File Handler（若可用）。

    Args:
        verbose: 是否啟用詳細模式（DEBUG 層級）
        log_dir: 日誌目錄路徑，None 表示僅使用 Console Handler
        console: 共用的 Console 實例，需與 Progress 共用以避免輸出競爭
    """
    root_logger = logging.getLogger()
    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)

    # 根日誌層級為 DEBUG，由 handler 決定實際輸出層級
    root_logger.setLevel(logging.DEBUG)

    _console = console if console is not None else Console()

    console_level = logging.DEBUG if verbose else logging.INFO
    console_handler = RichHandler(
        console=_console,
        rich_tracebacks=True,
        show_path=False,
        markup=False,
        level=console_level,
    )
    console_handler.setFormatter(logging.Formatter("%(message)s"))
    root_logger.addHandler(console_handler)

    if log_dir is None:
        return

    writable_dir = _get_writable_log_dir(Path(log_dir))
    if writable_dir is None:
        logging.warning("No writable log directory found, logging to console only")
        return

    log_file = writable_dir / LOG_FILE_NAME
    try:
        file_handler = TimedRotatingFileHandler(
            filename=str(log_file),
            when="midnight",
            interval=1,
            backupCount=30,
            encoding="utf-8",
            delay=True,  # 首次寫入時才建立檔案
        )
        file_handler.suffix = "%Y-%m-%d"
        file_handler.setLevel(logging.DEBUG)  # 檔案永遠記錄 DEBUG
        file_handler.setFormatter(
            logging.Formatter(
                "%(asctime)s | %(levelname)-8s | %(name)s | %(message)s",
                datefmt="%Y-%m-%d %H:%M:%S",
            )
        )
        root_logger.addHandler(file_handler)

        if verbose:
            logging.info(f"Log file: {log_file}")
    except OSError as e:
        logging.warning(f"Could not create log file: {e}, logging to console only")


def get_logger(name: str) -> logging.Logger:
    """取得具名 logger"""
    return logging.getLogger(name)
