"""
反编译适配器基类

扫描协调器只依赖 decompile(bytes) -> str 这一约定，
具体后端（常量池提取 / CFR 子进程）可以随意替换。
"""

from __future__ import annotations

from abc import ABC, abstractmethod


class BaseDecompiler(ABC):
    """反编译后端基类；实现必须无状态，可被多个线程同时调用"""

    name = "base"

    @abstractmethod
    def decompile(self, raw_bytes: bytes) -> str:
        """将 class 字节转换为文本

        Args:
            raw_bytes: 单个 class 条目的原始字节

        Returns:
            str: 反编译文本（至少包含 import 声明）

        Raises:
            DecompileError: 字节码无效或后端失败
        """
