# tests/test_preview.py

import json

import pytest

from flowshape.render.preview import (
    CIRCULAR,
    FALLBACK,
    MAX_ARRAY_ITEMS,
    MAX_DEPTH,
    MAX_OBJECT_KEYS,
    MAX_PREVIEW_CHARS,
    MAX_STRING_LENGTH,
    REDACTED,
    TRUNCATED,
    preview_value,
    sanitize_value,
)


def _nested_lists(levels: int):
    value = "bottom"
    for _ in range(levels):
        value = [value]
    return value


def _depth_of(value):
    depth = 0
    while isinstance(value, list):
        value = value[0]
        depth += 1
    return depth, value


class Exploding:
    def __str__(self):
        raise RuntimeError("no")

    __repr__ = __str__


class BadStr:
    def __str__(self):
        return 42


def test_plain_values_are_json():
    assert json.loads(preview_value({"a": [1, 2.5, None, True]})) == {"a": [1, 2.5, None, True]}
    assert preview_value("x") == '"x"'


def test_output_is_escaped():
    text = preview_value({"emoji": "café ☃", "ctrl": "a\nb"})
    assert text.isascii()
    assert "\\u00e9" in text
    assert "\\n" in text


def test_self_reference_returns_string():
    d = {"name": "loop"}
    d["self"] = d
    lst = [1]
    lst.append(lst)

    out = preview_value(d)
    assert isinstance(out, str)
    assert json.loads(out) == {"name": "loop", "self": CIRCULAR}
    assert json.loads(preview_value(lst)) == [1, CIRCULAR]


def test_shared_but_acyclic_reference_is_not_circular():
    shared = {"v": 1}
    assert json.loads(preview_value([shared, shared])) == [{"v": 1}, {"v": 1}]


def test_unserializable_members():
    value = {"fn": len, "obj": object(), "exc": ValueError("boom"), "raw": b"\x00\x01"}
    out = json.loads(preview_value(value))
    assert out["fn"].startswith("<built-in function len")
    assert out["exc"] == {"name": "ValueError", "message": "boom"}
    assert out["raw"] == "<2 bytes>"


@pytest.mark.parametrize("value", [Exploding(), BadStr(), {"x": Exploding()}, [BadStr()]])
def test_failing_str_degrades_to_placeholder(value):
    out = preview_value(value)
    assert isinstance(out, str)
    assert FALLBACK in out


def test_mapping_that_fails_to_iterate():
    class Broken(dict):
        def items(self):
            raise RuntimeError("broken")

    assert preview_value(Broken(a=1)) == FALLBACK


def test_nan_and_infinity():
    assert json.loads(preview_value([float("nan"), float("inf")])) == ["nan", "inf"]


def test_depth_boundary():
    # MAX_DEPTH - 1 nested lists: the string sits at depth MAX_DEPTH - 1 and survives
    kept, truncated = sanitize_value(_nested_lists(MAX_DEPTH - 1))
    assert not truncated
    assert _depth_of(kept) == (MAX_DEPTH - 1, "bottom")

    # one more level and the innermost value is cut
    cut, truncated = sanitize_value(_nested_lists(MAX_DEPTH))
    assert truncated
    assert _depth_of(cut) == (MAX_DEPTH, TRUNCATED)


def test_far_beyond_depth_cap_is_bounded():
    value = _nested_lists(10000)
    out = preview_value(value)
    assert json.loads(out) is not None
    assert out.count("[") <= MAX_DEPTH + 1


def test_collection_caps():
    clean, truncated = sanitize_value(list(range(MAX_ARRAY_ITEMS + 5)))
    assert truncated and len(clean) == MAX_ARRAY_ITEMS

    clean, truncated = sanitize_value({f"k{i}": i for i in range(MAX_OBJECT_KEYS + 5)})
    assert truncated and len(clean) == MAX_OBJECT_KEYS

    clean, truncated = sanitize_value("x" * (MAX_STRING_LENGTH + 1))
    assert truncated and clean == "x" * MAX_STRING_LENGTH + "..."

    clean, truncated = sanitize_value("x" * MAX_STRING_LENGTH)
    assert not truncated and len(clean) == MAX_STRING_LENGTH


def test_total_output_size_is_bounded():
    huge = [{f"k{i}": "y" * 5000 for i in range(100)} for _ in range(100)]
    out = preview_value(huge)
    assert len(out) <= MAX_PREVIEW_CHARS + len("\n... " + TRUNCATED)
    assert out.endswith(TRUNCATED)


@pytest.mark.parametrize("key", ["apiKey", "api_key", "Authorization", "password", "clientSecret", "accessToken", "signature"])
def test_sensitive_keys_are_redacted(key):
    out = json.loads(preview_value({key: "hunter2", "user": "bob"}))
    assert out == {key: REDACTED, "user": "bob"}


def test_non_string_keys_and_sets():
    out = json.loads(preview_value({1: {2}, None: (3,)}))
    assert out == {"1": [2], "None": [3]}


def test_keys_colliding_after_str_keep_the_first():
    clean, truncated = sanitize_value({1: "a", "1": "b", "z": 0})
    assert clean == {"1": "a", "z": 0}
    assert truncated


def test_int_digit_boundary():
    kept, truncated = sanitize_value(10 ** MAX_STRING_LENGTH - 1)
    assert not truncated and kept == 10 ** MAX_STRING_LENGTH - 1

    cut, truncated = sanitize_value(10 ** MAX_STRING_LENGTH)
    assert truncated
    assert cut == "1" + "0" * (MAX_STRING_LENGTH - 1) + "..."


def test_huge_int_does_not_hide_the_rest_of_the_value():
    out = json.loads(preview_value({"user": "bob", "n": 10 ** 5000}))
    assert out["user"] == "bob"
    assert isinstance(out["n"], str)


def test_set_members_are_sorted():
    words = {f"w{i}" for i in range(5)} | {3, None}
    out = json.loads(preview_value(frozenset(words)))
    assert out == ["w0", "w1", "w2", "w3", "w4", 3, None]

    many, truncated = sanitize_value(set(range(MAX_ARRAY_ITEMS + 5)))
    assert truncated and len(many) == MAX_ARRAY_ITEMS
