"""批次匯出設定模組

BatchConfiguration 在解析完成後即不可變。
CLI 參數文法定義於 h5pbatch.cli.main，此處只負責預設值與驗證。
"""

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Optional

from h5pbatch.core.errors import ConfigurationError
from h5pbatch.core.formats import ExportFormat, ExportOptions, ExportSelection

logger = logging.getLogger(__name__)

# 實際套用的預設值，help 文字與此一致
DEFAULTS: dict[str, Any] = {
    "export_format": ExportSelection.BOTH,
    "language": "en",
    "mastery_score": 75,
    "margin_x": 0,
    "margin_y": 20,
    "max_width": 1200,
    "restrict_width": True,
    "show_embed": True,
    "show_rights": True,
}


@dataclass(frozen=True)
class BatchConfiguration:
    """批次匯出設定"""

    input_dir: Path
    output_dir: Path
    export_format: ExportSelection = DEFAULTS["export_format"]
    mastery_score: int = DEFAULTS["mastery_score"]
    css_path: Optional[Path] = None
    language: str = DEFAULTS["language"]
    margin_x: int = DEFAULTS["margin_x"]
    margin_y: int = DEFAULTS["margin_y"]
    max_width: int = DEFAULTS["max_width"]
    restrict_width: bool = DEFAULTS["restrict_width"]
    show_embed: bool = DEFAULTS["show_embed"]
    show_rights: bool = DEFAULTS["show_rights"]
    verbose: bool = False

    @property
    def formats(self) -> tuple[ExportFormat, ...]:
        """要輸出的格式（依固定順序）"""
        return self.export_format.formats

    def export_options(self, fmt: ExportFormat) -> ExportOptions:
        """建立指定格式的匯出選項"""
        return ExportOptions(
            format=fmt,
            css_path=self.css_path,
            language=self.language,
            mastery_score=self.mastery_score,
            margin_x=self.margin_x,
            margin_y=self.margin_y,
            max_width=self.max_width,
            restrict_width_and_center=self.restrict_width,
            show_embed=self.show_embed,
            show_rights=self.show_rights,
        )


def build_configuration(
    input_dir: Optional[str | Path],
    output_dir: Optional[str | Path],
    export_format: ExportSelection | str = DEFAULTS["export_format"],
    mastery_score: int = DEFAULTS["mastery_score"],
    css_path: Optional[str | Path] = None,
    language: str = DEFAULTS["language"],
    margin_x: int = DEFAULTS["margin_x"],
    margin_y: int = DEFAULTS["margin_y"],
    max_width: int = DEFAULTS["max_width"],
    restrict_width: bool = DEFAULTS["restrict_width"],
    show_embed: bool = DEFAULTS["show_embed"],
    show_rights: bool = DEFAULTS["show_rights"],
    verbose: bool = False,
) -> BatchConfiguration:
    """驗證參數並建立設定

    驗證順序：格式 → 必要路徑 → 數值範圍。不會存取檔案系統。

    Args:
        input_dir: 輸入目錄（必要）
        output_dir: 輸出目錄（必要）
        export_format: scorm、external 或 both
        其餘參數見 BatchConfiguration

    Returns:
        BatchConfiguration: 驗證後的設定

    Raises:
        ConfigurationError: 參數無效或缺少必要參數
    """
    if not isinstance(export_format, ExportSelection):
        try:
            export_format = ExportSelection.from_string(export_format)
        except ValueError as e:
            raise ConfigurationError(str(e)) from e

    missing = []
    if not input_dir:
        missing.append("--input")
    if not output_dir:
        missing.append("--output")
    if missing:
        raise ConfigurationError(f"{' and '.join(missing)} {'is' if len(missing) == 1 else 'are'} required")

    for name, value in (
        ("--masteryScore", mastery_score),
        ("--marginX", margin_x),
        ("--marginY", margin_y),
        ("--maxWidth", max_width),
    ):
        if isinstance(value, bool) or not isinstance(value, int):
            raise ConfigurationError(f"{name} must be an integer, got {value!r}")

    if not 0 <= mastery_score <= 100:
        raise ConfigurationError(f"--masteryScore must be between 0 and 100, got {mastery_score}")
    if max_width < 1:
        raise ConfigurationError(f"--maxWidth must be a positive integer, got {max_width}")
    if not language:
        raise ConfigurationError("--language must not be empty")

    config = BatchConfiguration(
        input_dir=Path(input_dir),
        output_dir=Path(output_dir),
        export_format=export_format,
        mastery_score=mastery_score,
        css_path=Path(css_path) if css_path else None,
        language=language,
        margin_x=margin_x,
        margin_y=margin_y,
        max_width=max_width,
        restrict_width=restrict_width,
        show_embed=show_embed,
        show_rights=show_rights,
        verbose=verbose,
    )
    logger.debug(f"Resolved configuration: {config}")
    return config
