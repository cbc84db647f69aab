"""
反编译后端

- constant-pool: 进程内读取常量池（默认）
- cfr: 通过 java -jar cfr.jar 子进程反编译
"""

from __future__ import annotations

from typing import Any

from ..errors import DecompileError
from .base import BaseDecompiler
from .cfr import CfrDecompiler
from .constant_pool import ConstantPoolDecompiler

DECOMPILERS: dict[str, type[BaseDecompiler]] = {
    ConstantPoolDecompiler.name: ConstantPoolDecompiler,
    CfrDecompiler.name: CfrDecompiler,
}


def get_decompiler(name: str, **options: Any) -> BaseDecompiler:
    """按名称创建反编译后端；未知名称抛出 ValueError"""
    try:
        cls = DECOMPILERS[name]
    except KeyError:
        known = ", ".join(sorted(DECOMPILERS))
        raise ValueError(f"unknown decompiler {name!r} (choose from: {known})") from None
    if cls is ConstantPoolDecompiler:
        return cls()
    return cls(**options)


__all__ = [
    "BaseDecompiler",
    "CfrDecompiler",
    "ConstantPoolDecompiler",
    "DECOMPILERS",
    "DecompileError",
    "get_decompiler",
]
