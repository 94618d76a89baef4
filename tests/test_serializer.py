"""Snapshot serializer tests."""

import datetime
import enum
from collections import OrderedDict

import pytest

from gitversioned.errors import SerializationError
from gitversioned.serializer import deserialize, serialize


class Color(enum.IntEnum):
    RED = 1


class Tag(str, enum.Enum):
    A = "a"


class TestRoundTrip:
    def test_scalars(self):
        attrs = {"id": 1, "name": "Ada", "score": 9.5, "active": True, "deleted_at": None}
        assert deserialize(serialize(attrs)) == attrs

    def test_nested(self):
        attrs = {
            "id": 3,
            "profile": {"city": "London", "languages": ["en", "fr"]},
            "history": [{"at": 1, "what": "created"}, {"at": 2, "what": "renamed"}],
        }
        assert deserialize(serialize(attrs)) == attrs

    def test_dates(self):
        attrs = {
            "born": datetime.date(1815, 12, 10),
            "updated_at": datetime.datetime(2024, 5, 1, 12, 30, 15, 250000),
        }
        assert deserialize(serialize(attrs)) == attrs

    def test_ambiguous_strings_stay_strings(self):
        attrs = {"a": "yes", "b": "1.0", "c": "null", "d": "2024-01-01", "e": "", "f": "x: y"}
        assert deserialize(serialize(attrs)) == attrs

    def test_unicode(self):
        attrs = {"name": "Zoë", "city": "東京"}
        data = serialize(attrs)
        assert "Zoë".encode("utf-8") in data
        assert deserialize(data) == attrs

    def test_multiline_string(self):
        attrs = {"bio": "line one\nline two\n"}
        assert deserialize(serialize(attrs)) == attrs

    def test_empty_map(self):
        assert deserialize(serialize({})) == {}

    def test_next_line_character(self):
        attrs = {"s": "a\x85b", "t": "\x85", "plain": "b"}
        data = serialize(attrs)
        assert deserialize(data) == attrs
        assert b"plain: b\n" in data

    def test_unicode_line_separators(self):
        attrs = {"s": "a\u2028b\u2029c"}
        assert deserialize(serialize(attrs)) == attrs


class TestStableFormat:
    def test_insertion_order_does_not_matter(self):
        a = {"b": 2, "a": 1, "c": {"y": 1, "x": 2}}
        b = {"c": {"x": 2, "y": 1}, "a": 1, "b": 2}
        assert serialize(a) == serialize(b)

    def test_block_style_under_attributes(self):
        text = serialize({"name": "Ada", "id": 1}).decode()
        assert text == "attributes:\n  id: 1\n  name: Ada\n"

    def test_changes_are_line_local(self):
        before = serialize({"a": 1, "b": 2, "c": 3}).decode().splitlines()
        after = serialize({"a": 1, "b": 20, "c": 3}).decode().splitlines()
        changed = [i for i, (x, y) in enumerate(zip(before, after)) if x != y]
        assert len(before) == len(after)
        assert len(changed) == 1


class TestRejectedValues:
    @pytest.mark.parametrize(
        "value",
        [(1, 2), {1, 2}, b"raw", object(), Color.RED, Tag.A, OrderedDict(a=1)],
    )
    def test_unsupported_value(self, value):
        with pytest.raises(SerializationError):
            serialize({"field": value})

    def test_enum_key(self):
        with pytest.raises(SerializationError):
            serialize({Tag.A: "one"})

    def test_unsupported_nested_value(self):
        with pytest.raises(SerializationError, match=r"attributes\.outer\[1\]"):
            serialize({"outer": [1, (2, 3)]})

    def test_non_string_key(self):
        with pytest.raises(SerializationError):
            serialize({1: "one"})

    def test_not_a_mapping(self):
        with pytest.raises(SerializationError):
            serialize([1, 2, 3])


class TestMalformedBlobs:
    def test_invalid_yaml(self):
        with pytest.raises(SerializationError):
            deserialize(b"attributes: [unclosed\n")

    def test_missing_root_key(self):
        with pytest.raises(SerializationError):
            deserialize(b"name: Ada\n")

    def test_root_not_mapping(self):
        with pytest.raises(SerializationError):
            deserialize(b"- 1\n- 2\n")

    def test_attributes_not_mapping(self):
        with pytest.raises(SerializationError):
            deserialize(b"attributes:\n- 1\n")

    def test_empty_attributes(self):
        assert deserialize(b"attributes:\n") == {}

    def test_not_utf8(self):
        with pytest.raises(SerializationError):
            deserialize(b"\xff\xfe\x00")

    def test_serialization_error_is_value_error(self):
        with pytest.raises(ValueError):
            deserialize(b"")
