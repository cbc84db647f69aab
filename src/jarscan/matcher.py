from __future__ import annotations
from typing import Iterable

IMPORT_KEYWORD = "import"


def import_needle(package: str) -> str:
    return f"{IMPORT_KEYWORD} {package}"


def find_matches(text: str, targets: Iterable[str]) -> set[str]:
    """返回 text 中出现 "import <包名>" 子串的目标包

    纯子串匹配，区分大小写；"import javax.foo" 同样命中 "import javax.foobar"。
    """
    return {p for p in set(targets) if import_needle(p) in text}


class ImportMatcher:
    def __init__(self, targets: Iterable[str]):
        self.targets = frozenset(targets)
        self._needles = [(import_needle(p), p) for p in sorted(self.targets)]

    def find(self, text: str) -> set[str]:
        return {p for needle, p in self._needles if needle in text}

    def find_ordered(self, text: str) -> list[str]:
        # 按包名排序，保证记录顺序稳定
        return [p for needle, p in self._needles if needle in text]
