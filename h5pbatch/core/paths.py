"""路徑處理輔助模組

CLI 的工作目錄與 GUI 版資料目錄分開，預設為 ~/.h5pbatch-cli，
可用環境變數 H5PBATCH_HOME 覆寫。
"""

import os
from pathlib import Path

HOME_ENV_VAR = "H5PBATCH_HOME"


def get_data_dir() -> Path:
    """取得 CLI 工作目錄

    Returns:
        Path: 工作目錄路徑（不保證已存在）
    """
    override = os.environ.get(HOME_ENV_VAR)
    if override:
        return Path(override).expanduser()
    return Path.home() / ".h5pbatch-cli"


def get_log_dir() -> Path:
    """取得日誌目錄

    目錄由 setup_logging 建立，無法寫入時會改用其他路徑。

    Returns:
        Path: 日誌目錄路徑
    """
    return get_data_dir() / "logs"
