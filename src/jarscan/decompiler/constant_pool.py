"""Import extraction straight from the class-file constant pool.

Instead of full decompilation this backend reads the constant pool, the
class header, the field/method descriptors and the attributes that carry
annotation types and generic signatures, and renders a source-like
header::

    package com.example;

    import java.util.List;
    import javax.crypto.Cipher;

Only the ``package`` line and the ``import`` lines are produced, which is all
the import matcher looks at.
"""

from __future__ import annotations

import re
import struct

from ..errors import DecompileError
from .base import BaseDecompiler

__all__ = ["ConstantPoolDecompiler", "ClassFileInfo", "parse_class_file", "render_imports"]

MAGIC = 0xCAFEBABE

TAG_UTF8 = 1
TAG_CLASS = 7
TAG_NAME_AND_TYPE = 12
TAG_METHOD_TYPE = 16

# tag -> 常量项占用的字节数（不含 tag 本身）；Utf8 长度可变单独处理
_FIXED_SIZES = {
    3: 4,   # Integer
    4: 4,   # Float
    5: 8,   # Long
    6: 8,   # Double
    7: 2,   # Class
    8: 2,   # String
    9: 4,   # Fieldref
    10: 4,  # Methodref
    11: 4,  # InterfaceMethodref
    12: 4,  # NameAndType
    15: 3,  # MethodHandle
    16: 2,  # MethodType
    17: 4,  # Dynamic
    18: 4,  # InvokeDynamic
    19: 2,  # Module
    20: 2,  # Package
}
_WIDE_TAGS = {5, 6}

_ANNOTATION_ATTRIBUTES = {"RuntimeVisibleAnnotations", "RuntimeInvisibleAnnotations"}
_PARAMETER_ANNOTATION_ATTRIBUTES = {
    "RuntimeVisibleParameterAnnotations",
    "RuntimeInvisibleParameterAnnotations",
}
# 注解元素中直接引用常量池的基本类型与字符串
_CONST_ELEMENT_TAGS = set("BCDFIJSZs")

# 描述符与泛型签名中的对象类型；签名里的类型参数以 < 结束，类型变量边界含 :
_OBJECT_TYPE_RE = re.compile(r"L([^;<>:.]+)[;<]")


class ClassFileInfo:
    """解析结果：类名（内部形式）与被引用的类型集合"""

    def __init__(self, this_class: str, referenced: set[str]):
        self.this_class = this_class
        self.referenced = referenced

    @property
    def package(self) -> str:
        return _package_of(self.this_class)


def _package_of(internal_name: str) -> str:
    if "/" not in internal_name:
        return ""
    return internal_name.rsplit("/", 1)[0]


def _types_in_descriptor(descriptor: str) -> list[str]:
    return _OBJECT_TYPE_RE.findall(descriptor)


class _Reader:
    def __init__(self, data: bytes):
        self.data = data
        self.pos = 0

    def u1(self) -> int:
        (value,) = struct.unpack_from(">B", self.data, self.pos)
        self.pos += 1
        return value

    def u2(self) -> int:
        (value,) = struct.unpack_from(">H", self.data, self.pos)
        self.pos += 2
        return value

    def u4(self) -> int:
        (value,) = struct.unpack_from(">I", self.data, self.pos)
        self.pos += 4
        return value

    def take(self, size: int) -> bytes:
        end = self.pos + size
        if end > len(self.data):
            raise DecompileError("truncated class file")
        chunk = self.data[self.pos:end]
        self.pos = end
        return chunk

    def skip(self, size: int) -> None:
        self.take(size)


def _read_constant_pool(reader: _Reader) -> dict[int, tuple[int, object]]:
    count = reader.u2()
    pool: dict[int, tuple[int, object]] = {}
    index = 1
    while index < count:
        tag = reader.u1()
        if tag == TAG_UTF8:
            length = reader.u2()
            pool[index] = (tag, reader.take(length).decode("utf-8", errors="replace"))
        elif tag == TAG_CLASS:
            pool[index] = (tag, reader.u2())
        elif tag == TAG_NAME_AND_TYPE:
            reader.u2()
            pool[index] = (tag, reader.u2())
        elif tag == TAG_METHOD_TYPE:
            pool[index] = (tag, reader.u2())
        elif tag in _FIXED_SIZES:
            reader.skip(_FIXED_SIZES[tag])
            pool[index] = (tag, None)
        else:
            raise DecompileError(f"unknown constant pool tag {tag} at index {index}")
        # long / double 占两个槽位
        index += 2 if tag in _WIDE_TAGS else 1
    return pool


def _utf8(pool: dict[int, tuple[int, object]], index: int) -> str:
    item = pool.get(index)
    if item is None or item[0] != TAG_UTF8:
        raise DecompileError(f"constant pool index {index} is not a Utf8 entry")
    return item[1]  # type: ignore[return-value]


def _class_name(pool: dict[int, tuple[int, object]], index: int) -> str:
    item = pool.get(index)
    if item is None or item[0] != TAG_CLASS:
        raise DecompileError(f"constant pool index {index} is not a Class entry")
    return _utf8(pool, item[1])  # type: ignore[arg-type]


def _read_element_value(reader: _Reader, pool, descriptors: list[str]) -> None:
    tag = chr(reader.u1())
    if tag in _CONST_ELEMENT_TAGS:
        reader.u2()
    elif tag == "e":
        descriptors.append(_utf8(pool, reader.u2()))
        reader.u2()  # const_name_index
    elif tag == "c":
        descriptors.append(_utf8(pool, reader.u2()))
    elif tag == "@":
        _read_annotation(reader, pool, descriptors)
    elif tag == "[":
        for _ in range(reader.u2()):
            _read_element_value(reader, pool, descriptors)
    else:
        raise DecompileError(f"unknown annotation element tag {tag!r}")


def _read_annotation(reader: _Reader, pool, descriptors: list[str]) -> None:
    descriptors.append(_utf8(pool, reader.u2()))
    for _ in range(reader.u2()):
        reader.u2()  # element_name_index
        _read_element_value(reader, pool, descriptors)


def _read_attributes(reader: _Reader, pool, descriptors: list[str]) -> None:
    """注解与泛型签名中的类型只出现在属性里，其余属性（Code 等）整体跳过"""
    for _ in range(reader.u2()):
        name = _utf8(pool, reader.u2())
        body = _Reader(reader.take(reader.u4()))
        if name == "Signature":
            descriptors.append(_utf8(pool, body.u2()))
        elif name in _ANNOTATION_ATTRIBUTES:
            for _ in range(body.u2()):
                _read_annotation(body, pool, descriptors)
        elif name in _PARAMETER_ANNOTATION_ATTRIBUTES:
            for _ in range(body.u1()):
                for _ in range(body.u2()):
                    _read_annotation(body, pool, descriptors)
        elif name == "AnnotationDefault":
            _read_element_value(body, pool, descriptors)


def _read_members(reader: _Reader, pool, descriptors: list[str]) -> None:
    count = reader.u2()
    for _ in range(count):
        reader.u2()  # access_flags
        reader.u2()  # name_index
        descriptors.append(_utf8(pool, reader.u2()))
        _read_attributes(reader, pool, descriptors)


def parse_class_file(data: bytes) -> ClassFileInfo:
    """Parse ``data`` and collect every class it references.

    Raises:
        DecompileError: bad magic, truncated data, unknown tags or
            dangling constant pool indexes.
    """
    reader = _Reader(data)
    try:
        if reader.u4() != MAGIC:
            raise DecompileError("bad magic, not a class file")
        reader.u2()  # minor
        reader.u2()  # major
        pool = _read_constant_pool(reader)
        reader.u2()  # access_flags
        this_class = _class_name(pool, reader.u2())
        super_index = reader.u2()

        referenced: set[str] = set()
        descriptors: list[str] = []
        if super_index:
            referenced.add(_class_name(pool, super_index))
        for _ in range(reader.u2()):
            referenced.add(_class_name(pool, reader.u2()))
        _read_members(reader, pool, descriptors)  # fields
        _read_members(reader, pool, descriptors)  # methods
        _read_attributes(reader, pool, descriptors)  # class
    except struct.error as e:
        raise DecompileError("truncated class file") from e

    for tag, value in pool.values():
        if tag == TAG_CLASS:
            name = _utf8(pool, value)  # type: ignore[arg-type]
            if name.startswith("["):
                descriptors.append(name)
            else:
                referenced.add(name)
        elif tag in (TAG_NAME_AND_TYPE, TAG_METHOD_TYPE):
            descriptors.append(_utf8(pool, value))  # type: ignore[arg-type]

    for descriptor in descriptors:
        referenced.update(_types_in_descriptor(descriptor))
    return ClassFileInfo(this_class, referenced)


def render_imports(info: ClassFileInfo) -> str:
    own_package = info.package
    own_outer = info.this_class.split("$", 1)[0]
    imports: set[str] = set()
    for name in info.referenced:
        # 内部类按最外层类导入
        outer = name.split("$", 1)[0]
        package = _package_of(outer)
        if not package or package == own_package or package == "java/lang":
            continue
        if outer == own_outer:
            continue
        imports.add(outer.replace("/", "."))

    lines: list[str] = []
    if own_package:
        lines.append(f"package {own_package.replace('/', '.')};")
        lines.append("")
    lines.extend(f"import {name};" for name in sorted(imports))
    return "\n".join(lines) + "\n"


class ConstantPoolDecompiler(BaseDecompiler):
    """进程内后端：直接读取常量池，无临时文件、无外部依赖"""

    name = "constant-pool"

    def decompile(self, raw_bytes: bytes) -> str:
        return render_imports(parse_class_file(raw_bytes))
