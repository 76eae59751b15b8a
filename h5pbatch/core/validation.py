"""路徑驗證模組

批次開始前的輸出目錄與樣式表檢查。
輸入目錄的檢查由 FileScanner.check 負責（DiscoveryError）。
"""

from pathlib import Path


def validate_output_dir(path: Path | str) -> tuple[bool, str]:
    """驗證輸出目錄

    不要求輸出目錄必須存在（會自動建立），但會檢查路徑的有效性。

    Args:
        path: 輸出目錄路徑

    Returns:
        (是否有效, 錯誤訊息)。有效時錯誤訊息為空字串。

    Examples:
        >>> valid, error = validate_output_dir("/some/output/path")
        >>> if not valid:
        ...     raise ConfigurationError(error)
    """
    if not path:
        return False, "--output is required"

    path = Path(path)

    if path.exists() and not path.is_dir():
        return False, f"Output path exists but is not a directory: {path}"

    return True, ""


def validate_stylesheet(path: Path | str | None) -> tuple[bool, str]:
    """驗證自訂 CSS 檔案

    Args:
        path: CSS 檔案路徑，None 表示未指定

    Returns:
        (是否有效, 錯誤訊息)。有效時錯誤訊息為空字串。
    """
    if path is None:
        return True, ""

    path = Path(path)

    if not path.is_file():
        return False, f"Custom CSS file does not exist: {path}"

    return True, ""
