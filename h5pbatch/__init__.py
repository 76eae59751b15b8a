"""H5P 批次匯出工具"""

__version__ = "1.0.0"
