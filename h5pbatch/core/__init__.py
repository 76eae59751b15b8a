"""核心批次匯出模組"""

from h5pbatch.core.batch import BatchResult, BatchRunner, BatchStats, run_batch
from h5pbatch.core.config import BatchConfiguration, build_configuration
from h5pbatch.core.engine import EngineContext, ExportJob, Operator, create_engine_context
from h5pbatch.core.errors import (
    BatchExportError,
    CleanupError,
    ConfigurationError,
    DiscoveryError,
    ExportError,
    ItemError,
    PackageError,
)
from h5pbatch.core.formats import ExportFormat, ExportOptions, ExportSelection
from h5pbatch.core.processor import ItemPhase, ItemProcessor, ItemResult, ItemStatus
from h5pbatch.core.scanner import DiscoveredItem, FileScanner, discover_items

__all__ = [
    "BatchResult",
    "BatchRunner",
    "BatchStats",
    "run_batch",
    "BatchConfiguration",
    "build_configuration",
    "EngineContext",
    "ExportJob",
    "Operator",
    "create_engine_context",
    "BatchExportError",
    "CleanupError",
    "ConfigurationError",
    "DiscoveryError",
    "ExportError",
    "ItemError",
    "PackageError",
    "ExportFormat",
    "ExportOptions",
    "ExportSelection",
    "ItemPhase",
    "ItemProcessor",
    "ItemResult",
    "ItemStatus",
    "DiscoveredItem",
    "FileScanner",
    "discover_items",
]
