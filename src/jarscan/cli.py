"""Command-line interface for jarscan."""

import signal
import threading
from pathlib import Path
from typing import Optional

import pyperclip
import typer
from rich.progress import Progress

from . import __version__
from .config import AppConfig, load_config, resolve_inputs, write_default_config
from .decompiler import get_decompiler
from .errors import ConfigLoadError, DecompileError
from .log import setup_logger
from .model import ArchiveSummary
from .output import console, render_report
from .runner import ScanCoordinator

app = typer.Typer(
    name="jarscan",
    help="Find JAR archives whose classes import the given packages",
    add_completion=False,
)

DEFAULT_CONFIG_PATH = Path.home() / ".config" / "jarscan" / "config.toml"

# 退出码：0 完成；1 配置错误；2 存在无法处理的压缩包
EXIT_OK = 0
EXIT_CONFIG_ERROR = 1
EXIT_ARCHIVE_ERRORS = 2


def read_clipboard_paths() -> list[str]:
    try:
        text = (pyperclip.paste() or "").strip()
    except pyperclip.PyperclipException as e:
        raise ConfigLoadError("clipboard", f"无法读取剪贴板: {e}") from e
    if not text:
        return []
    return [ln.strip().strip('"') for ln in text.splitlines() if ln.strip()]


def apply_overrides(
    cfg: AppConfig,
    jobs: Optional[int],
    decompiler: Optional[str],
    cfr_jar: Optional[str],
    timeout: Optional[float],
    archive_timeout: Optional[float],
    recursive: bool,
    json_output: bool,
    no_summary: bool,
    hide_unmatched: bool,
) -> AppConfig:
    """命令行参数覆盖配置文件"""
    if jobs:
        cfg.general.jobs = jobs
    if decompiler:
        cfg.decompiler.backend = decompiler
    if cfr_jar:
        cfg.decompiler.cfr_jar = cfr_jar
    if timeout is not None:
        cfg.decompiler.timeout = timeout
    if archive_timeout is not None:
        cfg.general.archive_timeout = archive_timeout
    if recursive:
        cfg.scan.recursive = True
    if json_output:
        cfg.output.json = True
    if no_summary:
        cfg.output.summary = False
    if hide_unmatched:
        cfg.output.show_unmatched = False
    return cfg


def _version_callback(value: bool) -> None:
    if value:
        console.print(f"jarscan {__version__}")
        raise typer.Exit()


@app.command()
def main(
    paths: Optional[list[str]] = typer.Argument(
        None,
        help="JAR files or directories containing JAR files",
    ),
    packages: Optional[list[str]] = typer.Option(
        None,
        "-p",
        "--package",
        help="目标包名，可多次使用 (例如 -p javax.crypto)",
    ),
    archives_file: Optional[str] = typer.Option(
        None,
        "-A",
        "--archives-file",
        help="压缩包路径列表文件（一行一个）",
    ),
    packages_file: Optional[str] = typer.Option(
        None,
        "-P",
        "--packages-file",
        help="目标包名列表文件（一行一个）",
    ),
    config: Optional[str] = typer.Option(
        None,
        "-c",
        "--config",
        help="TOML 配置文件",
    ),
    jobs: Optional[int] = typer.Option(
        None,
        "-j",
        "--jobs",
        min=1,
        help="并行扫描的压缩包数量",
    ),
    decompiler: Optional[str] = typer.Option(
        None,
        "-d",
        "--decompiler",
        help="反编译后端: constant-pool / cfr",
    ),
    cfr_jar: Optional[str] = typer.Option(
        None,
        "--cfr-jar",
        help="cfr.jar 路径（cfr 后端需要）",
    ),
    timeout: Optional[float] = typer.Option(
        None,
        "--timeout",
        help="单个 class 反编译超时（秒）",
    ),
    archive_timeout: Optional[float] = typer.Option(
        None,
        "--archive-timeout",
        help="单个压缩包扫描超时（秒），0 表示不限",
    ),
    recursive: bool = typer.Option(
        False,
        "-r",
        "--recursive",
        help="目录递归查找 *.jar",
    ),
    json_output: bool = typer.Option(
        False,
        "--json",
        help="输出 JSON 格式（方便 jq 处理）",
    ),
    no_summary: bool = typer.Option(
        False,
        "--no-summary",
        help="不输出统计信息",
    ),
    hide_unmatched: bool = typer.Option(
        False,
        "--hide-unmatched",
        help="结果表中不列出未命中的压缩包",
    ),
    clipboard: bool = typer.Option(
        False,
        "--clipboard",
        help="从剪贴板读取压缩包路径",
    ),
    log_file: bool = typer.Option(
        False,
        "--log-file",
        help="同时写入日志文件 (~/.jarscan/logs)",
    ),
    verbose: bool = typer.Option(
        False,
        "-v",
        "--verbose",
        help="输出调试日志",
    ),
    init_config: bool = typer.Option(
        False,
        "--init-config",
        help="生成默认配置文件（写入 --config 指定路径或 ~/.config/jarscan/config.toml）",
    ),
    version: bool = typer.Option(
        False,
        "-V",
        "--version",
        callback=_version_callback,
        is_eager=True,
        help="Show version information",
    ),
) -> None:
    """
    Scan JAR archives for classes that import any of the target packages.

    Examples:

        jarscan libs/ -r -p javax.crypto -p javax.swing

        jarscan -A jar_directories.txt -P javax_packages.txt --json
    """
    setup_logger(verbose=verbose, log_file=log_file)

    if init_config:
        path = write_default_config(config or DEFAULT_CONFIG_PATH)
        console.print(f"[green]默认配置已写入[/green] {path}")
        raise typer.Exit(EXIT_OK)

    try:
        cfg = load_config(config)
        apply_overrides(
            cfg, jobs, decompiler, cfr_jar, timeout, archive_timeout,
            recursive, json_output, no_summary, hide_unmatched,
        )
        raw_paths = list(paths or [])
        if clipboard:
            raw_paths.extend(read_clipboard_paths())
        inputs = resolve_inputs(cfg, raw_paths, packages or [], archives_file, packages_file)
        backend = get_decompiler(cfg.decompiler.backend, **cfg.decompiler.options())
    except ConfigLoadError as error:
        console.print(f"[red]配置错误:[/red] {error}")
        raise typer.Exit(EXIT_CONFIG_ERROR)
    except (ValueError, DecompileError) as error:
        console.print(f"[red]参数错误:[/red] {error}")
        raise typer.Exit(EXIT_CONFIG_ERROR)

    show_progress = console.is_terminal and not cfg.output.json
    with Progress(console=console, transient=True, disable=not show_progress) as progress:
        task = progress.add_task("扫描", total=len(inputs.archives))

        def on_archive_done(summary: ArchiveSummary) -> None:
            progress.advance(task)

        coordinator = ScanCoordinator(
            inputs.packages,
            backend,
            jobs=cfg.general.jobs,
            archive_timeout=cfg.general.archive_timeout,
            progress_callback=on_archive_done,
        )

        # Ctrl-C: 不再调度新的压缩包，已开始的照常完成
        def on_interrupt(signum, frame) -> None:
            console.print("\n[yellow]用户中断，等待进行中的压缩包完成…[/yellow]")
            coordinator.request_stop()

        in_main_thread = threading.current_thread() is threading.main_thread()
        previous = signal.signal(signal.SIGINT, on_interrupt) if in_main_thread else None
        try:
            report = coordinator.scan(inputs.archives)
        finally:
            if in_main_thread and previous is not None:
                signal.signal(signal.SIGINT, previous)

    render_report(report, cfg)
    raise typer.Exit(EXIT_ARCHIVE_ERRORS if report.total_errors() else EXIT_OK)


def run() -> None:
    app()


if __name__ == "__main__":  # pragma: no cover
    run()
