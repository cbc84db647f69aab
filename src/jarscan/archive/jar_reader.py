from __future__ import annotations
import zipfile
import zlib
from pathlib import Path
from typing import Callable, Iterator

from ..errors import ArchiveOpenError, EntryReadError
from ..model import ClassEntry

CLASS_SUFFIX = ".class"

ErrorHandler = Callable[[EntryReadError], None]


def is_class_entry(name: str) -> bool:
    return not name.endswith("/") and name.endswith(CLASS_SUFFIX)


class JarArchive:
    """一个已打开的 jar；逐条读取 .class 条目，不在条目之间保留缓冲"""

    def __init__(self, path: str, zf: zipfile.ZipFile):
        self.path = path
        self._zf = zf

    def __enter__(self) -> "JarArchive":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    def close(self) -> None:
        self._zf.close()

    def read(self, info: zipfile.ZipInfo) -> ClassEntry:
        try:
            with self._zf.open(info) as fp:
                data = fp.read()
        except (zipfile.BadZipFile, zlib.error, EOFError, OSError, ValueError, RuntimeError) as e:
            raise EntryReadError(self.path, info.filename, f"{type(e).__name__}: {e}") from e
        return ClassEntry(entry_name=info.filename, raw_bytes=data)

    def entries(self, on_error: ErrorHandler | None = None) -> Iterator[ClassEntry]:
        """惰性产出 ClassEntry；单个条目读取失败时交给 on_error 并继续"""
        for info in self._zf.infolist():
            # 目录和非 class 条目直接跳过，不读取数据
            if info.is_dir() or not is_class_entry(info.filename):
                continue
            try:
                entry = self.read(info)
            except EntryReadError as e:
                if on_error is not None:
                    on_error(e)
                continue
            yield entry


def open_archive(path: str | Path) -> JarArchive:
    p = Path(path)
    try:
        zf = zipfile.ZipFile(p)
    except zipfile.BadZipFile as e:
        raise ArchiveOpenError(str(path), "not a valid archive") from e
    except FileNotFoundError as e:
        raise ArchiveOpenError(str(path), "file not found") from e
    except (OSError, ValueError, EOFError) as e:
        raise ArchiveOpenError(str(path), f"{type(e).__name__}: {e}") from e
    return JarArchive(str(path), zf)
