"""
Import 匹配测试
包含属性测试（重复目标包合并、子串语义）
"""

from hypothesis import given, strategies as st, settings

from jarscan.matcher import ImportMatcher, find_matches, import_needle

packages = st.from_regex(r"[a-z]{1,6}(\.[a-z]{1,6}){0,3}", fullmatch=True)


# ==================== 属性测试 ====================

@settings(max_examples=50, deadline=None)
@given(st.lists(packages, min_size=1, max_size=6), st.lists(packages, max_size=6))
def test_duplicate_targets_collapse(targets, imported):
    """重复的目标包不影响匹配结果"""
    text = "\n".join(f"import {p};" for p in imported)
    assert find_matches(text, targets + targets) == find_matches(text, targets)


@settings(max_examples=50, deadline=None)
@given(st.lists(packages, min_size=1, max_size=6))
def test_every_imported_target_matches(targets):
    """文本中以 import 声明出现的目标包一定被命中"""
    text = "package x;\n\n" + "\n".join(f"import {p}.Thing;" for p in targets)
    assert find_matches(text, targets) == set(targets)
    assert ImportMatcher(targets).find(text) == set(targets)


# ==================== 单元测试 ====================

def test_concrete_crypto_scenario():
    text = "package a;\n\nimport javax.crypto.Cipher;\n\npublic class A {}\n"
    assert find_matches(text, {"javax.crypto", "javax.swing"}) == {"javax.crypto"}


def test_prefix_over_matching_is_preserved():
    """import javax.foo 是 import javax.foobar 的前缀，同样命中"""
    assert find_matches("import javax.foobar.Baz;", ["javax.foo"]) == {"javax.foo"}


def test_case_sensitive():
    assert find_matches("import javax.Crypto.Cipher;", ["javax.crypto"]) == set()
    assert find_matches("IMPORT javax.crypto.Cipher;", ["javax.crypto"]) == set()


def test_package_without_import_keyword_does_not_match():
    text = "javax.crypto.Cipher c = javax.crypto.Cipher.getInstance(\"AES\");"
    assert find_matches(text, ["javax.crypto"]) == set()


def test_static_import_is_not_a_plain_import():
    assert find_matches("import static javax.crypto.Cipher.ENCRYPT_MODE;", ["javax.crypto"]) == set()


def test_string_literal_over_matches():
    """字符串字面量中的 import 子串也会命中（已知限制）"""
    text = 'String s = "import javax.swing.JFrame";'
    assert find_matches(text, ["javax.swing"]) == {"javax.swing"}


def test_find_ordered_is_sorted():
    matcher = ImportMatcher(["javax.swing", "javax.crypto", "javax.crypto"])
    text = "import javax.swing.JFrame;\nimport javax.crypto.Cipher;"
    assert matcher.find_ordered(text) == ["javax.crypto", "javax.swing"]
    assert matcher.targets == frozenset({"javax.crypto", "javax.swing"})


def test_import_needle():
    assert import_needle("com.foo.bar") == "import com.foo.bar"
