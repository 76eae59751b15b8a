"""CLI 入口模組"""

import importlib
import sys
from pathlib import Path
from typing import Annotated, Optional, Sequence

import typer
from rich.console import Console
from rich.markup import escape
from rich.progress import (
    BarColumn,
    MofNCompleteColumn,
    Progress,
    SpinnerColumn,
    TaskProgressColumn,
    TextColumn,
    TimeRemainingColumn,
)
from rich.table import Table

from h5pbatch.core import (
    BatchConfiguration,
    BatchResult,
    ConfigurationError,
    DiscoveredItem,
    DiscoveryError,
    ExportSelection,
    ItemResult,
    build_configuration,
    run_batch,
)
from h5pbatch.core.config import DEFAULTS
from h5pbatch.core.logging_config import get_logger, setup_logging
from h5pbatch.core.paths import get_log_dir

PROG_NAME = "h5pbatch"
USAGE_HINT = "Use --help for usage information"

app = typer.Typer(
    name=PROG_NAME,
    help="H5P batch export: convert a directory of .h5p files to SCORM and HTML",
    rich_markup_mode="rich",
    add_completion=False,
    context_settings={"help_option_names": ["-h", "--help"]},
)

console = Console(legacy_windows=False)
logger = get_logger(__name__)

# typer 可能使用獨立的 click 或內建的版本，例外類別取自 typer 實際使用的模組
_click_exceptions = importlib.import_module(typer.BadParameter.__module__)

# 常見的打字錯誤，提示正確的參數
_FLAG_HINTS = {
    "--i": "-i or --input",
    "--o": "-o or --output",
    "--f": "-f or --format",
    "--m": "-m or --masteryScore",
}


def _check_format(value: str) -> str:
    """--format 為 eager 參數，先於其他參數驗證"""
    try:
        return ExportSelection.from_string(value).value
    except ValueError as e:
        raise typer.BadParameter(str(e)) from e


@app.command()
def export(
    input_dir: Annotated[
        Optional[str],
        typer.Option(
            "--input", "-i",
            help="Input directory containing H5P files",
            metavar="PATH",
            show_default=False,
        ),
    ] = None,
    output_dir: Annotated[
        Optional[str],
        typer.Option(
            "--output", "-o",
            help="Output directory for exported files",
            metavar="PATH",
            show_default=False,
        ),
    ] = None,
    export_format: Annotated[
        str,
        typer.Option(
            "--format", "-f",
            help="Export format: scorm, external, or both",
            metavar="TYPE",
            is_eager=True,
            callback=_check_format,
        ),
    ] = DEFAULTS["export_format"].value,
    mastery_score: Annotated[
        int,
        typer.Option("--masteryScore", "-m", help="SCORM mastery score 0-100", metavar="SCORE"),
    ] = DEFAULTS["mastery_score"],
    css_path: Annotated[
        Optional[Path],
        typer.Option("--css", "-c", help="Path to custom CSS file", metavar="PATH", show_default=False),
    ] = None,
    language: Annotated[
        str,
        typer.Option("--language", "-l", help="Language code", metavar="CODE"),
    ] = DEFAULTS["language"],
    margin_x: Annotated[
        int,
        typer.Option("--marginX", help="Horizontal margin", metavar="PIXELS"),
    ] = DEFAULTS["margin_x"],
    margin_y: Annotated[
        int,
        typer.Option("--marginY", help="Vertical margin", metavar="PIXELS"),
    ] = DEFAULTS["margin_y"],
    max_width: Annotated[
        int,
        typer.Option("--maxWidth", help="Maximum content width", metavar="PIXELS"),
    ] = DEFAULTS["max_width"],
    restrict_width: Annotated[
        bool,
        typer.Option("--restrictWidth/--no-restrictWidth", help="Restrict width and center content"),
    ] = DEFAULTS["restrict_width"],
    hide_embed: Annotated[
        bool,
        typer.Option("--hideEmbed", help="Hide embed button"),
    ] = False,
    hide_rights: Annotated[
        bool,
        typer.Option("--hideRights", help="Hide copyright information"),
    ] = False,
    verbose: Annotated[
        bool,
        typer.Option("--verbose", "-v", help="Show debug logging"),
    ] = False,
) -> BatchConfiguration:
    """
    Batch export H5P files to SCORM and HTML

    Every .h5p file directly inside the input directory is imported, exported
    and removed from the content store again. A failing file is skipped.

    Examples:
    - All files to SCORM: h5pbatch -i ./h5p-files -o ./exports -f scorm
    - HTML with mastery 80: h5pbatch -i ./h5p-files -o ./exports -f external -m 80
    - Both with custom CSS: h5pbatch -i ./h5p-files -o ./exports -c ./custom.css
    """
    return build_configuration(
        input_dir=input_dir,
        output_dir=output_dir,
        export_format=export_format,
        mastery_score=mastery_score,
        css_path=css_path,
        language=language,
        margin_x=margin_x,
        margin_y=margin_y,
        max_width=max_width,
        restrict_width=restrict_width,
        show_embed=not hide_embed,
        show_rights=not hide_rights,
        verbose=verbose,
    )


def _unknown_option_message(option: str) -> str:
    hint = _FLAG_HINTS.get(option)
    if hint:
        return f"Unknown option: {option}. Did you mean {hint}?"
    return f"Unknown option: {option}. {USAGE_HINT}."


def resolve_config(argv: Optional[Sequence[str]] = None) -> BatchConfiguration:
    """
    解析命令列參數

    Args:
        argv: 參數列表，None 表示使用 sys.argv[1:]

    Returns:
        BatchConfiguration

    Raises:
        ConfigurationError: 參數無效或缺少必要參數
        typer.Exit: 指定 --help，說明已輸出（exit code 0）
    """
    args = list(sys.argv[1:] if argv is None else argv)
    command = typer.main.get_command(app)

    try:
        result = command.main(args=args, prog_name=PROG_NAME, standalone_mode=False)
    except _click_exceptions.NoSuchOption as e:
        raise ConfigurationError(_unknown_option_message(e.option_name)) from e
    except _click_exceptions.ClickException as e:
        raise ConfigurationError(e.format_message()) from e

    if not isinstance(result, BatchConfiguration):
        # --help 已輸出說明
        raise typer.Exit(0)
    return result


def _print_configuration(config: BatchConfiguration) -> None:
    console.print()
    console.print("[bold]Configuration:[/bold]")
    console.print(f"[bold blue]  Input:        [/bold blue]{escape(str(config.input_dir.resolve()))}")
    console.print(f"[bold blue]  Output:       [/bold blue]{escape(str(config.output_dir.resolve()))}")
    console.print(f"[bold blue]  Format:       [/bold blue]{config.export_format.value}")
    console.print(f"[bold blue]  Mastery:      [/bold blue]{config.mastery_score}%")
    console.print(f"[bold blue]  Language:     [/bold blue]{escape(config.language)}")
    if config.css_path:
        console.print(f"[bold blue]  Custom CSS:   [/bold blue]{escape(str(config.css_path))}")
    console.print()


def _run_batch(config: BatchConfiguration) -> BatchResult:
    """執行批次匯出並顯示進度條"""
    with Progress(
        SpinnerColumn(),
        TextColumn("[progress.description]{task.description}"),
        BarColumn(),
        MofNCompleteColumn(),
        TaskProgressColumn(),
        TimeRemainingColumn(),
        TextColumn("{task.fields[filename]}", style="cyan"),
        console=console,
        expand=True,
        transient=True,
    ) as progress:
        task_id = None

        def on_progress(
            current: int,
            total: int,
            item: DiscoveredItem,
            result: ItemResult | None,
        ) -> None:
            nonlocal task_id
            if task_id is None:
                task_id = progress.add_task("[bold green]Exporting...", total=total, filename="")
            if result is None:
                progress.update(task_id, filename=item.path.name)
            else:
                progress.update(task_id, advance=1, filename="", refresh=True)

        return run_batch(config, on_progress=on_progress)


def _print_summary(result: BatchResult) -> None:
    stats = result.stats
    failed = [r for r in result.results if not r.succeeded]

    if failed:
        table = Table(title="Failed files")
        table.add_column("File", style="cyan")
        table.add_column("Phase", style="yellow")
        table.add_column("Error", style="red")
        for item_result in failed:
            table.add_row(
                escape(item_result.item.path.name),
                item_result.phase.value,
                escape(item_result.message),
            )
        console.print(table)

    console.print()
    console.print("=" * 60)
    console.print("[bold]Batch export completed![/bold]")
    console.print("=" * 60)
    console.print(f"Total files processed: {result.processed}")
    style = "red" if stats.failed > 0 else "green"
    console.print(f"[{style}]{stats.format_summary()}[/{style}]")
    console.print(f"Output directory: {escape(str(result.output_dir))}")
    console.print()


def main(argv: Optional[Sequence[str]] = None) -> int:
    """
    執行批次匯出

    Args:
        argv: 參數列表，None 表示使用 sys.argv[1:]

    Returns:
        exit code：0 成功（含沒有檔案或 --help），1 設定或輸入目錄錯誤，
        130 使用者中斷。個別檔案失敗不影響 exit code。
    """
    console.print("=" * 60)
    console.print("[bold]H5P Batch Export CLI[/bold]")
    console.print("=" * 60)

    try:
        config = resolve_config(argv)
    except ConfigurationError as e:
        message = str(e)
        console.print(f"[red]Error: {escape(message)}[/red]")
        if USAGE_HINT not in message:
            console.print(USAGE_HINT)
        return 1
    except typer.Exit as e:
        return e.exit_code

    setup_logging(verbose=config.verbose, log_dir=get_log_dir(), console=console)
    logger.debug(f"Arguments: {argv if argv is not None else sys.argv[1:]}")
    _print_configuration(config)

    try:
        result = _run_batch(config)
    except (ConfigurationError, DiscoveryError) as e:
        console.print(f"[red]Error: {escape(str(e))}[/red]")
        logger.debug(f"Batch aborted: {e}")
        return 1
    except KeyboardInterrupt:
        console.print("[yellow]Interrupted[/yellow]")
        return 130
    except Exception as e:
        logger.exception(f"Fatal error: {e}")
        return 1

    if result.discovered:
        _print_summary(result)
    return 0


if __name__ == "__main__":
    sys.exit(main())
