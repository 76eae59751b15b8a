"""批次匯出錯誤類別

致命錯誤（ConfigurationError、DiscoveryError）會中止整個批次；
ItemError 只在單一項目內處理；CleanupError 只記錄不上拋。
"""


class BatchExportError(Exception):
    """批次匯出錯誤基底類別"""


class ConfigurationError(BatchExportError):
    """參數錯誤或缺少必要參數"""


class DiscoveryError(BatchExportError):
    """輸入目錄不存在或無法讀取"""


class ItemError(BatchExportError):
    """單一項目處理失敗"""


class PackageError(ItemError):
    """H5P 封裝損毀或不支援的內容類型"""


class ExportError(ItemError):
    """匯出失敗"""


class CleanupError(BatchExportError):
    """清理內容或暫存目錄失敗"""
