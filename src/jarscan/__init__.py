"""jarscan: 扫描 JAR 包，找出导入了目标包的 class。

流程：逐个压缩包枚举 .class 条目 -> 反编译为文本 -> 按 "import <包名>" 子串匹配 -> 去重汇总。
"""

__version__ = "0.1.0"

from .errors import ArchiveOpenError, ConfigLoadError, DecompileError, EntryReadError, JarScanError  # noqa: E402
from .matcher import ImportMatcher, find_matches  # noqa: E402
from .model import ArchiveStatus, ArchiveSummary, MatchRecord, ScanReport  # noqa: E402
from .runner import ScanCoordinator, run_scan  # noqa: E402

__all__ = [
    "ArchiveOpenError",
    "ArchiveStatus",
    "ArchiveSummary",
    "ConfigLoadError",
    "DecompileError",
    "EntryReadError",
    "ImportMatcher",
    "JarScanError",
    "MatchRecord",
    "ScanCoordinator",
    "ScanReport",
    "find_matches",
    "run_scan",
]
