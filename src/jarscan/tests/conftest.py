"""
测试公共工具：构造 jar、构造最小 class 文件、文本“反编译器”、日志捕获
"""

import struct
import zipfile
from pathlib import Path

import pytest
from loguru import logger

from jarscan.decompiler.base import BaseDecompiler
from jarscan.errors import DecompileError


def make_jar(path: Path, entries: dict) -> Path:
    """写入一个 jar；值为 None 的条目按目录处理"""
    path.parent.mkdir(parents=True, exist_ok=True)
    with zipfile.ZipFile(path, "w", compression=zipfile.ZIP_DEFLATED) as zf:
        for name, data in entries.items():
            if data is None:
                zf.writestr(zipfile.ZipInfo(name if name.endswith("/") else name + "/"), b"")
            else:
                zf.writestr(name, data)
    return path


class TextDecompiler(BaseDecompiler):
    """把 class 字节当作 UTF-8 文本；以 BAD 开头的字节视为无效字节码"""

    name = "text"

    def decompile(self, raw_bytes: bytes) -> str:
        if raw_bytes.startswith(b"BAD"):
            raise DecompileError("malformed bytecode")
        return raw_bytes.decode("utf-8")


class ClassFileBuilder:
    """构造最小可解析的 class 文件（常量池 + 头部 + 字段/方法描述符）"""

    def __init__(self):
        self._entries: list[bytes] = []
        self._next = 1
        self._utf8: dict[str, int] = {}
        self._classes: dict[str, int] = {}

    def _add(self, raw: bytes, wide: bool = False) -> int:
        index = self._next
        self._entries.append(raw)
        self._next += 2 if wide else 1
        return index

    def utf8(self, value: str) -> int:
        if value not in self._utf8:
            data = value.encode("utf-8")
            self._utf8[value] = self._add(struct.pack(">BH", 1, len(data)) + data)
        return self._utf8[value]

    def cls(self, name: str) -> int:
        if name not in self._classes:
            name_index = self.utf8(name)
            self._classes[name] = self._add(struct.pack(">BH", 7, name_index))
        return self._classes[name]

    def long(self, value: int) -> int:
        return self._add(struct.pack(">Bq", 5, value), wide=True)

    def string(self, value: str) -> int:
        return self._add(struct.pack(">BH", 8, self.utf8(value)))

    def name_and_type(self, name: str, descriptor: str) -> int:
        return self._add(struct.pack(">BHH", 12, self.utf8(name), self.utf8(descriptor)))

    def pool_bytes(self) -> bytes:
        return struct.pack(">H", self._next) + b"".join(self._entries)

    def attribute(self, name: str, body: bytes) -> bytes:
        return struct.pack(">HI", self.utf8(name), len(body)) + body

    def annotation(self, spec) -> bytes:
        """spec 为类型描述符，或 (类型描述符, [(元素名, tag, 值), ...])"""
        type_desc, elements = (spec, ()) if isinstance(spec, str) else spec
        out = struct.pack(">HH", self.utf8(type_desc), len(elements))
        for name, tag, value in elements:
            out += struct.pack(">H", self.utf8(name)) + self.element_value(tag, value)
        return out

    def element_value(self, tag: str, value) -> bytes:
        if tag == "e":
            type_desc, const = value
            return b"e" + struct.pack(">HH", self.utf8(type_desc), self.utf8(const))
        if tag in ("c", "s"):
            return tag.encode() + struct.pack(">H", self.utf8(value))
        if tag == "@":
            return b"@" + self.annotation(value)
        if tag == "[":
            return b"[" + struct.pack(">H", len(value)) + b"".join(self.element_value(t, v) for t, v in value)
        raise ValueError(tag)

    def member_attributes(self, extra: dict) -> list[bytes]:
        attributes = []
        if extra.get("signature"):
            attributes.append(self.attribute("Signature", struct.pack(">H", self.utf8(extra["signature"]))))
        if extra.get("annotations"):
            body = struct.pack(">H", len(extra["annotations"]))
            body += b"".join(self.annotation(a) for a in extra["annotations"])
            name = "RuntimeVisibleAnnotations" if extra.get("visible", True) else "RuntimeInvisibleAnnotations"
            attributes.append(self.attribute(name, body))
        if extra.get("parameter_annotations"):
            params = extra["parameter_annotations"]
            body = struct.pack(">B", len(params))
            for annotations in params:
                body += struct.pack(">H", len(annotations)) + b"".join(self.annotation(a) for a in annotations)
            attributes.append(self.attribute("RuntimeVisibleParameterAnnotations", body))
        if "default" in extra:
            tag, value = extra["default"]
            attributes.append(self.attribute("AnnotationDefault", self.element_value(tag, value)))
        return attributes


def _split_member(member) -> tuple[str, str, dict]:
    name, descriptor, *rest = member
    return name, descriptor, (rest[0] if rest else {})


def build_class(
    this_class: str,
    super_class: str = "java/lang/Object",
    interfaces=(),
    refs=(),
    fields=(),
    methods=(),
    name_and_types=(),
    strings=(),
    longs=(),
    class_attributes=None,
) -> bytes:
    """fields / methods 的元素为 (名称, 描述符) 或 (名称, 描述符, 属性)，
    属性支持 signature / annotations / visible / parameter_annotations / default"""
    b = ClassFileBuilder()
    this_index = b.cls(this_class)
    super_index = b.cls(super_class) if super_class else 0
    interface_indexes = [b.cls(name) for name in interfaces]
    for value in longs:
        b.long(value)
    for name in refs:
        b.cls(name)
    for value in strings:
        b.string(value)
    for name, descriptor in name_and_types:
        b.name_and_type(name, descriptor)
    code_index = b.utf8("Code") if methods else 0
    field_parts = []
    for member in fields:
        name, descriptor, extra = _split_member(member)
        field_parts.append((b.utf8(name), b.utf8(descriptor), b.member_attributes(extra)))
    method_parts = []
    for member in methods:
        name, descriptor, extra = _split_member(member)
        # 每个方法带一个 Code 属性，验证属性被正确跳过
        code = struct.pack(">HI", code_index, 4) + b"\x00\x01\x02\x03"
        method_parts.append((b.utf8(name), b.utf8(descriptor), [code] + b.member_attributes(extra)))
    class_parts = b.member_attributes(class_attributes or {})

    out = struct.pack(">IHH", 0xCAFEBABE, 0, 52) + b.pool_bytes()
    out += struct.pack(">HHHH", 0x0021, this_index, super_index, len(interface_indexes))
    out += b"".join(struct.pack(">H", i) for i in interface_indexes)
    for access, parts in ((0x0002, field_parts), (0x0001, method_parts)):
        out += struct.pack(">H", len(parts))
        for name_index, desc_index, attributes in parts:
            out += struct.pack(">HHHH", access, name_index, desc_index, len(attributes))
            out += b"".join(attributes)
    out += struct.pack(">H", len(class_parts)) + b"".join(class_parts)
    return out


@pytest.fixture(autouse=True, scope="session")
def quiet_logger():
    # 测试期间不输出日志；需要断言日志时使用 log_messages
    logger.remove()
    yield


@pytest.fixture
def log_messages():
    messages: list[str] = []
    handler_id = logger.add(lambda m: messages.append(m.record["level"].name + "|" + m.record["message"]), level="DEBUG")
    yield messages
    logger.remove(handler_id)
