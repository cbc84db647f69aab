from __future__ import annotations
from dataclasses import dataclass, field, asdict
from enum import Enum


class ArchiveStatus(str, Enum):
    MATCHED = "matched"
    UNMATCHED = "unmatched"
    FAILED = "failed"
    CANCELLED = "cancelled"


@dataclass(slots=True)
class ClassEntry:
    # 仅在处理单个条目期间存在
    entry_name: str
    raw_bytes: bytes


@dataclass(frozen=True, slots=True)
class MatchRecord:
    archive: str
    entry_name: str
    target_package: str


@dataclass(frozen=True, slots=True)
class ArchiveSummary:
    archive: str
    status: ArchiveStatus
    class_count: int = 0
    skipped_entries: int = 0
    match_count: int = 0
    error: str | None = None


@dataclass(frozen=True)
class ScanReport:
    matched_archives: tuple[str, ...] = ()
    records: tuple[MatchRecord, ...] = ()
    summaries: tuple[ArchiveSummary, ...] = ()

    def total_archives(self) -> int:
        return len(self.summaries)

    def total_records(self) -> int:
        return len(self.records)

    def total_errors(self) -> int:
        return sum(1 for s in self.summaries if s.status is ArchiveStatus.FAILED)

    def records_for(self, archive: str) -> list[MatchRecord]:
        return [r for r in self.records if r.archive == archive]

    def to_dict(self):  # for JSON
        summaries = []
        for s in self.summaries:
            item = asdict(s)
            item["status"] = s.status.value
            summaries.append(item)
        return {
            "matched_archives": list(self.matched_archives),
            "records": [asdict(r) for r in self.records],
            "summaries": summaries,
            "stats": {
                "archives": self.total_archives(),
                "records": self.total_records(),
                "matched": len(self.matched_archives),
                "errors": self.total_errors(),
            },
        }


@dataclass
class ReportBuilder:
    """按输入顺序累积结果；命中的压缩包用 列表+集合 去重，保持首次命中顺序"""

    _matched_order: list[str] = field(default_factory=list)
    _matched_set: set[str] = field(default_factory=set)
    _records: list[MatchRecord] = field(default_factory=list)
    _summaries: list[ArchiveSummary] = field(default_factory=list)

    def add_record(self, record: MatchRecord) -> None:
        self._records.append(record)
        self.mark_matched(record.archive)

    def mark_matched(self, archive: str) -> None:
        if archive not in self._matched_set:
            self._matched_set.add(archive)
            self._matched_order.append(archive)

    def add_summary(self, summary: ArchiveSummary) -> None:
        self._summaries.append(summary)

    def build(self) -> ScanReport:
        return ScanReport(
            matched_archives=tuple(self._matched_order),
            records=tuple(self._records),
            summaries=tuple(self._summaries),
        )
