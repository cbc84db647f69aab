from __future__ import annotations

"""Configuration loading utilities for jarscan."""

from dataclasses import dataclass, field
from pathlib import Path
from typing import Iterable, Sequence
import os
import sys
import textwrap

if sys.version_info >= (3, 11):
    import tomllib
else:  # pragma: no cover - Python <3.11
    import tomli as tomllib

from .errors import ConfigLoadError

__all__ = [
    "AppConfig",
    "ScanSection",
    "DecompilerSection",
    "GeneralSection",
    "OutputSection",
    "ScanInputs",
    "load_config",
    "write_default_config",
    "read_list_file",
    "normalize_targets",
    "expand_archive_paths",
    "resolve_inputs",
    "DEFAULT_CONFIG_TOML",
]

ARCHIVE_SUFFIX = ".jar"

DEFAULT_CONFIG_TOML = textwrap.dedent(
    """
    [scan]
    archives = []
    packages = []
    archives_file = ""
    packages_file = ""
    recursive = false

    [decompiler]
    backend = "constant-pool"
    cfr_jar = ""
    java = "java"
    timeout = 30.0

    [general]
    jobs = 1
    archive_timeout = 0

    [output]
    json = false
    show_unmatched = true
    summary = true
    """
)


@dataclass(slots=True)
class ScanSection:
    archives: list[str] = field(default_factory=list)
    packages: list[str] = field(default_factory=list)
    archives_file: str = ""
    packages_file: str = ""
    recursive: bool = False


@dataclass(slots=True)
class DecompilerSection:
    backend: str = "constant-pool"
    cfr_jar: str = ""
    java: str = "java"
    timeout: float = 30.0

    def options(self) -> dict:
        """Keyword arguments for :func:`jarscan.decompiler.get_decompiler`."""
        return {
            "cfr_jar": self.cfr_jar,
            "java": self.java,
            "timeout": self.timeout or None,
        }


@dataclass(slots=True)
class GeneralSection:
    jobs: int = 1
    archive_timeout: float = 0.0


@dataclass(slots=True)
class OutputSection:
    json: bool = False
    show_unmatched: bool = True
    summary: bool = True


@dataclass(slots=True)
class AppConfig:
    """Runtime configuration for the jarscan command."""

    scan: ScanSection = field(default_factory=ScanSection)
    decompiler: DecompilerSection = field(default_factory=DecompilerSection)
    general: GeneralSection = field(default_factory=GeneralSection)
    output: OutputSection = field(default_factory=OutputSection)
    source: str = "<defaults>"


@dataclass(slots=True)
class ScanInputs:
    archives: list[str]
    packages: frozenset[str]


def load_config(config_path: str | Path | None = None) -> AppConfig:
    """Load configuration from a candidate list of paths.

    Resolution order:
        1. explicit ``config_path`` argument (must exist)
        2. ``JARSCAN_CONFIG`` environment variable
        3. ``~/.config/jarscan/config.toml``
        4. packaged default configuration
    """

    if config_path:
        explicit = Path(config_path).expanduser()
        if not explicit.is_file():
            raise ConfigLoadError(str(explicit), "config file not found")
        return _config_from_path(explicit)

    candidates: list[Path] = []
    env_path = os.environ.get("JARSCAN_CONFIG")
    if env_path:
        candidates.append(Path(env_path).expanduser())
    candidates.append(Path.home() / ".config" / "jarscan" / "config.toml")

    for candidate in candidates:
        if candidate.is_file():
            return _config_from_path(candidate)

    return _config_from_toml(DEFAULT_CONFIG_TOML, "<defaults>")


def _config_from_path(path: Path) -> AppConfig:
    try:
        raw = path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as e:
        raise ConfigLoadError(str(path), f"cannot read config: {e}") from e
    return _config_from_toml(raw, str(path))


def _config_from_toml(content: str, source: str) -> AppConfig:
    try:
        data = tomllib.loads(content)
    except tomllib.TOMLDecodeError as e:
        raise ConfigLoadError(source, f"invalid TOML: {e}") from e

    scan = data.get("scan", {})
    dec = data.get("decompiler", {})
    general = data.get("general", {})
    output = data.get("output", {})

    try:
        return AppConfig(
            scan=ScanSection(
                archives=_list_or_default(scan.get("archives"), []),
                packages=_list_or_default(scan.get("packages"), []),
                archives_file=str(scan.get("archives_file", "")),
                packages_file=str(scan.get("packages_file", "")),
                recursive=bool(scan.get("recursive", False)),
            ),
            decompiler=DecompilerSection(
                backend=str(dec.get("backend", "constant-pool")),
                cfr_jar=str(dec.get("cfr_jar", "")),
                java=str(dec.get("java", "java")),
                timeout=float(dec.get("timeout", 30.0)),
            ),
            general=GeneralSection(
                jobs=int(general.get("jobs", 1)),
                archive_timeout=float(general.get("archive_timeout", 0)),
            ),
            output=OutputSection(
                json=bool(output.get("json", False)),
                show_unmatched=bool(output.get("show_unmatched", True)),
                summary=bool(output.get("summary", True)),
            ),
            source=source,
        )
    except (TypeError, ValueError) as e:
        raise ConfigLoadError(source, f"invalid value: {e}") from e


def _list_or_default(values: Iterable[str] | None, fallback: Iterable[str]) -> list[str]:
    if values is None:
        return list(fallback)
    if isinstance(values, str):
        return [values]
    return [str(item) for item in values]


def write_default_config(target_path: str | Path) -> Path:
    """Write the default configuration to ``target_path``.

    Creates parent directories if needed and returns the absolute path
    to the created file.
    """

    target = Path(target_path).expanduser()
    target.parent.mkdir(parents=True, exist_ok=True)
    target.write_text(DEFAULT_CONFIG_TOML, encoding="utf-8")
    return target.resolve()


def read_list_file(path: str | Path) -> list[str]:
    """读取一行一个值的列表文件，忽略空行与 # 注释"""
    p = Path(path).expanduser()
    try:
        text = p.read_text(encoding="utf-8")
    except FileNotFoundError as e:
        raise ConfigLoadError(str(p), "file not found") from e
    except (OSError, UnicodeDecodeError) as e:
        raise ConfigLoadError(str(p), f"cannot read file: {e}") from e
    values: list[str] = []
    for line in text.splitlines():
        line = line.strip()
        if not line or line.startswith("#"):
            continue
        values.append(line)
    return values


def normalize_targets(values: Iterable[str]) -> frozenset[str]:
    return frozenset(v.strip() for v in values if v and v.strip())


def expand_archive_paths(paths: Sequence[str], recursive: bool = False) -> list[str]:
    """目录展开为其中的 *.jar；文件原样保留（不存在的路径也保留，由扫描阶段报告）"""
    out: list[str] = []
    seen: set[str] = set()
    for raw in paths:
        path = Path(raw).expanduser()
        if path.is_dir():
            found = path.rglob(f"*{ARCHIVE_SUFFIX}") if recursive else path.glob(f"*{ARCHIVE_SUFFIX}")
            candidates = sorted(str(f) for f in found if f.is_file())
        else:
            candidates = [raw]
        for candidate in candidates:
            if candidate not in seen:
                seen.add(candidate)
                out.append(candidate)
    return out


def resolve_inputs(
    cfg: AppConfig,
    archives: Sequence[str] = (),
    packages: Sequence[str] = (),
    archives_file: str | None = None,
    packages_file: str | None = None,
) -> ScanInputs:
    """合并命令行、配置文件与列表文件中的输入

    Raises:
        ConfigLoadError: 列表文件无法读取，或最终没有压缩包/目标包
    """

    raw_archives = list(archives) + list(cfg.scan.archives)
    archive_list = archives_file or cfg.scan.archives_file
    if archive_list:
        raw_archives.extend(read_list_file(archive_list))

    raw_packages = list(packages) + list(cfg.scan.packages)
    package_list = packages_file or cfg.scan.packages_file
    if package_list:
        raw_packages.extend(read_list_file(package_list))

    archive_paths = expand_archive_paths(
        [a.strip() for a in raw_archives if a.strip()], cfg.scan.recursive
    )
    targets = normalize_targets(raw_packages)
    if not archive_paths:
        raise ConfigLoadError(archive_list or "<arguments>", "no archive paths supplied")
    if not targets:
        raise ConfigLoadError(package_list or "<arguments>", "no target packages supplied")
    return ScanInputs(archives=archive_paths, packages=targets)
