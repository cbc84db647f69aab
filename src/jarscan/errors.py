"""Error taxonomy for jarscan.

Only :class:`ConfigLoadError` is fatal; archive and entry level errors are
recovered by the scan coordinator.
"""

from __future__ import annotations


class JarScanError(Exception):
    """Base class for all jarscan errors."""


class ConfigLoadError(JarScanError):
    """配置或输入列表无法加载（致命，扫描前抛出）"""

    def __init__(self, source: str, reason: str):
        self.source = source
        self.reason = reason
        super().__init__(f"{source}: {reason}")


class ArchiveOpenError(JarScanError):
    """Raised when an archive cannot be opened or its scan timed out."""

    def __init__(self, archive: str, reason: str):
        self.archive = archive
        self.reason = reason
        super().__init__(f"{archive}: {reason}")


class EntryReadError(JarScanError):
    """Raised when the bytes of a single archive entry cannot be read."""

    def __init__(self, archive: str, entry_name: str, reason: str):
        self.archive = archive
        self.entry_name = entry_name
        self.reason = reason
        super().__init__(f"{archive}!{entry_name}: {reason}")


class DecompileError(JarScanError):
    """Raised when class bytes cannot be turned into text."""

    def __init__(self, reason: str, entry_name: str | None = None):
        self.reason = reason
        self.entry_name = entry_name
        super().__init__(f"{entry_name}: {reason}" if entry_name else reason)
