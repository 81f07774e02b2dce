import pytest

from bencoding import encode, loads
from values import BencDict, BencInt, BencList, BencString, Kind, from_python, to_python

ITERATION_COUNT = 128


def roundtrip(obj):
    encoded = encode(obj)
    assert encode(loads(encoded)) == encoded
    return encoded

# --- Scalars ---

def test_int_range():
    assert BencInt(2 ** 63 - 1).value == 2 ** 63 - 1
    assert BencInt(-(2 ** 63)).value == -(2 ** 63)
    with pytest.raises(OverflowError):
        BencInt(2 ** 63)
    with pytest.raises(OverflowError):
        BencInt(-(2 ** 63) - 1)


def test_int_rejects_bool_and_other_types():
    with pytest.raises(TypeError):
        BencInt(True)
    with pytest.raises(TypeError):
        BencInt("12")


def test_string_text_and_raw_views():
    s = BencString("ä€")
    assert s.raw == b"\xc3\xa4\xe2\x82\xac"
    assert s.text == "ä€"
    assert len(s) == 5
    with pytest.raises(UnicodeDecodeError):
        BencString(b"a\x82").text


def test_string_from_raw_with_explicit_length():
    assert BencString.from_raw(b"a\x82").raw == b"a\x82"
    assert BencString.from_raw(b"a\x82", 1).raw == b"a"
    assert BencString.from_raw(b"a\x00b", 3).raw == b"a\x00b"
    with pytest.raises(ValueError):
        BencString.from_raw(b"ab", 3)


def test_string_is_a_copy_of_mutable_input():
    buf = bytearray(b"spam")
    s = BencString(buf)
    buf[0] = ord("x")
    assert s.raw == b"spam"

# --- Lists ---

def test_list_add_raw():
    array = BencList()
    array.add_raw(b"a\x82")
    array.add_raw(b"a\x82", 1)
    assert array.get_string(0).raw == b"a\x82"
    assert encode(array.get_string(0)) == b"2:a\x82"
    assert array.get_string(1).raw == b"a"
    assert encode(array.get_string(1)) == b"1:a"


def test_list_append_get_remove():
    array = BencList()
    for i in range(1, ITERATION_COUNT + 1):
        assert array.add(i) == i
    array.add(BencDict())

    for i in range(1, ITERATION_COUNT + 1):
        obj = array.get_int(i - 1)
        assert obj is not None and obj.kind is Kind.INTEGER
        assert obj.value == i
        assert array.get_string(i - 1) is None
        assert array.get_list(i - 1) is None
        assert array.get_dict(i - 1) is None
    assert array.get_int(ITERATION_COUNT) is None
    assert array.get_dict(ITERATION_COUNT) is not None
    roundtrip(array)

    assert array.remove(ITERATION_COUNT) == BencDict()
    assert array.remove(0) == BencInt(1)
    assert array.remove(ITERATION_COUNT + 13) is None
    assert array.remove(-1) is None
    assert len(array) == ITERATION_COUNT - 1
    assert array.get_int(0).value == 2
    assert array.get_int(ITERATION_COUNT - 2).value == ITERATION_COUNT
    roundtrip(array)


def test_list_out_of_range_and_negative_index():
    array = BencList([1, b"x"])
    assert array.get(2) is None
    assert array.get(-1) is None
    assert [item.kind for item in array] == [Kind.INTEGER, Kind.STRING]


def test_list_convenience_inputs():
    array = BencList()
    array.add(-7)
    array.add(b"\x00raw")
    array.add("text")
    assert encode(array) == b"li-7e4:\x00raw4:texte"
    with pytest.raises(TypeError):
        array.add(True)
    with pytest.raises(TypeError):
        array.add(1.5)

# --- Dictionaries ---

def test_dict_ascending_insertion():
    d = BencDict()
    for i in range(1, ITERATION_COUNT + 1):
        key = f"{i:04d}"
        assert d.add(key, i) == i
        assert d.get_int(key) is not None
        assert d.get_string(key) is None
        assert d.get_list(key) is None
        assert d.get_dict(key) is None
    assert d.get_int("0123").value == 123
    roundtrip(d)


def test_dict_descending_insertion():
    d = BencDict()
    for i in range(ITERATION_COUNT, 0, -1):
        key = f"{i:04d}"
        d.add(key, BencInt(i))
        assert len(d) == ITERATION_COUNT + 1 - i
        assert d.get_int(key) is not None
    assert d.get_int("0123").value == 123
    assert d.keys() == sorted(d.keys())
    roundtrip(d)


def test_dict_keys_sorted_bytewise():
    d = BencDict()
    for key in [b"b", b"\xff", b"a", b"", b"B", b"ab", b"\x00"]:
        d.add(key, 0)
    assert d.keys() == [b"", b"\x00", b"B", b"a", b"ab", b"b", b"\xff"]


def test_dict_replace_keeps_order_and_count():
    d = BencDict({"a": 1, "b": 2, "c": 3})
    old = d.get("b")
    assert d.add("b", "two") == 3
    assert d.keys() == [b"a", b"b", b"c"]
    assert d.get_string("b").text == "two"
    assert old.owner is None


def test_dict_remove_keeps_sorted_remainder():
    d = BencDict({"c": 3, "a": 1, "b": 2})
    removed = d.remove("b")
    assert removed == BencInt(2)
    assert removed.owner is None
    assert d.remove("b") is None
    assert d.keys() == [b"a", b"c"]
    assert "a" in d and b"c" in d and "b" not in d


def test_dict_add_raw():
    d = BencDict()
    d.add_raw("1", b"a\x82")
    d.add_raw("2", b"a\x82", 1)
    assert d.get_string("1").raw == b"a\x82"
    assert d.get_string("2").raw == b"a"
    assert encode(d) == b"d1:12:a\x821:21:ae"


def test_dict_typed_lookup_misses():
    d = BencDict({"n": 1, "l": [], "d": {}, "s": "x"})
    assert d.get_int("missing") is None
    assert d.get_list("n") is None
    assert d.get_dict("l") is None
    assert d.get_string("d") is None
    assert d.get_int("s") is None
    assert d.get_list("l") == BencList()
    assert d.get_dict("d") == BencDict()

# --- Ownership ---

def test_value_cannot_have_two_owners():
    child = BencInt(1)
    first = BencList()
    first.add(child)
    assert child.owner is first
    with pytest.raises(ValueError):
        BencList().add(child)
    with pytest.raises(ValueError):
        BencDict().add("k", child)


def test_removed_value_can_be_added_elsewhere():
    child = BencList([1])
    src = BencDict({"k": child})
    dst = BencList()
    moved = src.remove("k")
    assert moved is child
    dst.add(moved)
    assert child.owner is dst
    assert encode(dst) == b"lli1eee"


def test_container_cycles_are_rejected():
    outer = BencList()
    inner = BencDict()
    outer.add(inner)
    with pytest.raises(ValueError):
        outer.add(outer)
    with pytest.raises(ValueError):
        inner.add("loop", outer)
    assert len(inner) == 0

# --- Python conversion ---

def test_from_python_and_back():
    data = {b"announce": b"http://x", "info": {"length": 10, "files": [[b"a", b"b"], ()]}}
    tree = from_python(data)
    assert to_python(tree) == {
        b"announce": b"http://x",
        b"info": {b"files": [[b"a", b"b"], []], b"length": 10},
    }
    assert list(to_python(tree)[b"info"]) == [b"files", b"length"]


def test_from_python_rejects_unknown_types():
    with pytest.raises(TypeError):
        from_python({"k": None})
    with pytest.raises(TypeError):
        from_python({1: 2})


def test_to_python_deep_tree():
    node = BencList([7])
    for _ in range(1499):
        outer = BencList()
        outer.add(node)
        node = outer
    result = to_python(node)
    depth = 1
    while result != [7]:
        result = result[0]
        depth += 1
    assert depth == 1500

# --- Failed construction ---

def test_failed_list_constructor_releases_items():
    a = BencInt(1)
    with pytest.raises(TypeError):
        BencList([a, None])
    assert a.owner is None
    holder = BencList()
    holder.add(a)
    assert a.owner is holder


def test_failed_dict_constructor_releases_items():
    a = BencString(b"x")
    with pytest.raises(TypeError):
        BencDict({"a": a, "b": 1.5})
    assert a.owner is None
    assert BencDict().add("k", a) == 1


def test_failed_constructor_releases_values_inside_built_containers():
    a = BencInt(1)
    b = BencInt(2)
    with pytest.raises(TypeError):
        from_python({"x": [a, {"y": b}], "z": None})
    assert a.owner is None
    assert b.owner is None


def test_failed_constructor_keeps_existing_containers_intact():
    inner = BencList([1, 2])
    with pytest.raises(TypeError):
        BencList([inner, object()])
    assert inner.owner is None
    assert len(inner) == 2
    assert all(item.owner is inner for item in inner)


def test_failed_constructor_leaves_values_owned_elsewhere_alone():
    other = BencList()
    a = BencInt(1)
    other.add(a)
    with pytest.raises(ValueError):
        BencList([3, a])
    assert a.owner is other
