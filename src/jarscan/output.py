from __future__ import annotations
import json
from rich.console import Console
from rich.markup import escape
from rich.table import Table
from .model import ArchiveStatus, ScanReport
from .config import AppConfig

console = Console()

_STATUS_LABELS = {
    ArchiveStatus.MATCHED: "[green]matched[/green]",
    ArchiveStatus.UNMATCHED: "no-match",
    ArchiveStatus.FAILED: "[red]ERROR[/red]",
    ArchiveStatus.CANCELLED: "[yellow]cancelled[/yellow]",
}


def build_table(report: ScanReport, cfg: AppConfig) -> Table:
    table = Table(title="jarscan 扫描结果", show_lines=False)
    table.add_column("Archive", overflow="fold")
    table.add_column("Class", overflow="fold")
    table.add_column("Package", overflow="fold")
    table.add_column("Status")
    for summary in report.summaries:
        if summary.status is ArchiveStatus.MATCHED:
            for record in report.records_for(summary.archive):
                table.add_row(escape(record.archive), escape(record.entry_name), escape(record.target_package), _STATUS_LABELS[summary.status])
            continue
        if summary.status is ArchiveStatus.FAILED:
            table.add_row(escape(summary.archive), "-", "-", f"{_STATUS_LABELS[summary.status]}:{escape(summary.error or '')}")
            continue
        if cfg.output.show_unmatched:
            table.add_row(escape(summary.archive), "-", "-", _STATUS_LABELS[summary.status])
    return table


def print_matched_archives(report: ScanReport):
    console.print("\n[bold]包含导入目标包的类的 JAR 文件:[/bold]")
    if not report.matched_archives:
        console.print("  [yellow](无)[/yellow]")
        return
    for archive in report.matched_archives:
        console.print(f"  {archive}", markup=False, highlight=False)


def print_summary(report: ScanReport):
    skipped = sum(s.skipped_entries for s in report.summaries)
    console.print(
        f"[bold]统计[/bold] archives={report.total_archives()} matched={len(report.matched_archives)} "
        f"records={report.total_records()} skipped_entries={skipped} errors={report.total_errors()}"
    )


def print_json(report: ScanReport):
    console.print(
        json.dumps(report.to_dict(), ensure_ascii=False, indent=2),
        markup=False,
        highlight=False,
        soft_wrap=True,
    )


def render_report(report: ScanReport, cfg: AppConfig):
    if cfg.output.json:
        print_json(report)
        return
    console.print(build_table(report, cfg))
    print_matched_archives(report)
    if cfg.output.summary:
        print_summary(report)
