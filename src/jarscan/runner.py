"""
扫描协调器

逐个压缩包、逐个 class 条目：读取 -> 反编译 -> import 匹配 -> 汇总。
单个压缩包或条目的失败只记录日志，不会中断整个扫描。
"""

from __future__ import annotations

import concurrent.futures
import threading
import time
from dataclasses import dataclass, field
from typing import Callable, Iterable

from loguru import logger

from .archive.jar_reader import open_archive
from .decompiler.base import BaseDecompiler
from .decompiler.constant_pool import ConstantPoolDecompiler
from .errors import ArchiveOpenError, DecompileError, EntryReadError
from .matcher import ImportMatcher
from .model import (
    ArchiveStatus,
    ArchiveSummary,
    ClassEntry,
    MatchRecord,
    ReportBuilder,
    ScanReport,
)

# 每个压缩包处理完成后的回调 (用于进度条)
ProgressCallback = Callable[[ArchiveSummary], None]


@dataclass(slots=True)
class ArchiveOutcome:
    summary: ArchiveSummary
    records: list[MatchRecord] = field(default_factory=list)


class ScanCoordinator:
    """驱动整个扫描流程并汇总结果"""

    def __init__(
        self,
        targets: Iterable[str],
        decompiler: BaseDecompiler | None = None,
        jobs: int = 1,
        archive_timeout: float | None = None,
        progress_callback: ProgressCallback | None = None,
    ):
        """
        Args:
            targets: 目标包名，重复项自动合并
            decompiler: 反编译后端，默认使用常量池提取
            jobs: 并行扫描的压缩包数量，1 表示顺序执行
            archive_timeout: 单个压缩包的最长扫描时间（秒），None 或 0 表示不限
            progress_callback: 每个压缩包完成后调用
        """
        self.matcher = ImportMatcher(targets)
        self.decompiler = decompiler or ConstantPoolDecompiler()
        self.jobs = max(1, jobs)
        self.archive_timeout = archive_timeout or None
        self.progress_callback = progress_callback
        self._stop = threading.Event()

    @property
    def targets(self) -> frozenset[str]:
        return self.matcher.targets

    def request_stop(self) -> None:
        """不再调度新的压缩包；进行中的压缩包照常完成"""
        self._stop.set()

    @property
    def stop_requested(self) -> bool:
        return self._stop.is_set()

    def _decompile(self, archive: str, entry: ClassEntry) -> str | None:
        try:
            with open_archive(path) as archive:
                deadline = time.monotonic() + self.archive_timeout if self.archive_timeout else None

                def check_deadline() -> None:
                    if deadline is not None and time.monotonic() > deadline:
                        raise ArchiveOpenError(path, f"timed out after {self.archive_timeout}s")

                for entry in archive.entries(on_error=on_read_error):
                    check_deadline()
                    class_count += 1
                    text = self._decompile(path, entry)
                    # 反编译后再检查一次，包括最后一个条目
                    check_deadline()
                    if text is None:
                        skipped += 1
                        continue
                    for package in self.matcher.find_ordered(text):
                        key = (entry.entry_name, package)
                        # 同名条目重复出现时也只记录一次
                        if key in seen:
                            continue
                        seen.add(key)
                        records.append(MatchRecord(path, entry.entry_name, package))
                        logger.info(f"类 {entry.entry_name} 导入了包: {package}")
        except ArchiveOpenError as e:
            logger.error(f"无法处理压缩包 {path}: {e.reason}")
            summary = ArchiveSummary(path, ArchiveStatus.FAILED, class_count, skipped, 0, e.reason)
            return ArchiveOutcome(summary)
        except Exception as ex:
            logger.exception(f"处理压缩包 {path} 时发生意外错误")
            summary = ArchiveSummary(
                path, ArchiveStatus.FAILED, class_count, skipped, 0, f"{type(ex).__name__}:{ex}"
            )
            return ArchiveOutcome(summary)

        status = ArchiveStatus.MATCHED if records else ArchiveStatus.UNMATCHED
        summary = ArchiveSummary(path, status, class_count, skipped, len(records))
        return ArchiveOutcome(summary, records)

    def _scan_unless_stopped(self, path: str) -> ArchiveOutcome:
        if self._stop.is_set():
            logger.debug(f"已请求停止，跳过 {path}")
            return ArchiveOutcome(ArchiveSummary(path, ArchiveStatus.CANCELLED))
        return self.scan_archive(path)

    def _collect(self, builder: ReportBuilder, outcome: ArchiveOutcome) -> None:
        for record in outcome.records:
            builder.add_record(record)
        builder.add_summary(outcome.summary)
        if self.progress_callback:
            self.progress_callback(outcome.summary)

    def scan(self, archive_paths: Iterable[str]) -> ScanReport:
        """按输入顺序扫描所有压缩包，返回不可变的 ScanReport"""
        paths = [str(p) for p in archive_paths]
        builder = ReportBuilder()
        logger.debug(f"开始扫描 {len(paths)} 个压缩包，目标包 {sorted(self.targets)}，jobs={self.jobs}")

        if self.jobs == 1 or len(paths) <= 1:
            for path in paths:
                self._collect(builder, self._scan_unless_stopped(path))
        else:
            with concurrent.futures.ThreadPoolExecutor(max_workers=self.jobs) as ex:
                futures = [ex.submit(self._scan_unless_stopped, p) for p in paths]
                # 由调用线程按提交顺序统一汇总，结果与顺序执行一致
                for fut in futures:
                    self._collect(builder, fut.result())

        report = builder.build()
        logger.info(
            f"扫描完成: 压缩包 {report.total_archives()} 个，匹配记录 {report.total_records()} 条，"
            f"命中压缩包 {len(report.matched_archives)} 个，失败 {report.total_errors()} 个"
        )
        return report


def run_scan(
    archive_paths: Iterable[str],
    targets: Iterable[str],
    decompiler: BaseDecompiler | None = None,
    jobs: int = 1,
    archive_timeout: float | None = None,
) -> ScanReport:
    coordinator = ScanCoordinator(targets, decompiler, jobs=jobs, archive_timeout=archive_timeout)
    return coordinator.scan(archive_paths)
