"""CFR decompiler backend.

Runs ``java -jar cfr.jar <file.class>`` in a subprocess and captures the
decompiled source from stdout. Every call writes the class bytes into its own
temporary directory, which is removed when the call returns or fails.
"""

from __future__ import annotations

import shutil
import subprocess
import tempfile
from pathlib import Path

from loguru import logger

from ..errors import DecompileError
from .base import BaseDecompiler

__all__ = ["CfrDecompiler", "DEFAULT_TIMEOUT"]

DEFAULT_TIMEOUT = 30.0


class CfrDecompiler(BaseDecompiler):
    name = "cfr"

    def __init__(
        self,
        cfr_jar: str | Path,
        java: str = "java",
        timeout: float | None = DEFAULT_TIMEOUT,
        extra_args: list[str] | None = None,
    ):
        if not cfr_jar:
            raise DecompileError("CFR backend requires the path of cfr.jar")
        self.cfr_jar = Path(cfr_jar).expanduser()
        self.java = java
        self.timeout = timeout
        self.extra_args = list(extra_args or [])

    def _java_executable(self) -> str:
        path = shutil.which(self.java)
        if path:
            return path
        raise DecompileError(f"未找到可执行文件 `{self.java}`，请先安装 Java 或配置环境变量")

    def build_command(self, class_file: Path) -> list[str]:
        return [
            self._java_executable(),
            "-jar",
            str(self.cfr_jar),
            str(class_file),
            "--silent",
            "true",
            *self.extra_args,
        ]

    def decompile(self, raw_bytes: bytes) -> str:
        if not self.cfr_jar.is_file():
            raise DecompileError(f"cfr.jar not found: {self.cfr_jar}")
        with tempfile.TemporaryDirectory(prefix="jarscan-") as tmpdir:
            class_file = Path(tmpdir) / "Entry.class"
            class_file.write_bytes(raw_bytes)
            command = self.build_command(class_file)
            try:
                completed = subprocess.run(
                    command,
                    check=False,
                    capture_output=True,
                    text=True,
                    timeout=self.timeout,
                )
            except subprocess.TimeoutExpired as e:
                raise DecompileError(f"CFR timed out after {self.timeout}s") from e
            except OSError as e:
                raise DecompileError(f"CFR could not be started: {e}") from e
        if completed.returncode != 0:
            raise DecompileError(
                f"CFR 执行失败 (退出码 {completed.returncode}): {completed.stderr.strip()}"
            )
        logger.debug(f"CFR 输出 {len(completed.stdout)} 字符")
        return completed.stdout
