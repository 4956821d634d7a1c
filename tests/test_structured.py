"""Tests for structured-log helpers."""

import pytest

from nrforwarder.errors import ParseError
from nrforwarder.structured import (
    LogShape,
    decode_json,
    dig,
    retag_json_field,
    strip_hyphens,
    to_epoch_millis,
)


class TestToEpochMillis:
    def test_utc_z(self):
        assert to_epoch_millis("2024-01-01T00:00:00Z") == 1704067200000

    def test_seven_fraction_digits(self):
        assert to_epoch_millis("2024-01-01T00:00:00.1234567Z") == 1704067200123

    def test_offset(self):
        assert to_epoch_millis("2024-01-01T01:00:00+01:00") == 1704067200000

    def test_naive_is_utc(self):
        assert to_epoch_millis("2024-01-01T00:00:00") == 1704067200000

    def test_number_passthrough(self):
        assert to_epoch_millis(1704067200000) == 1704067200000

    @pytest.mark.parametrize("value", [None, "", "yesterday", True, {}])
    def test_unparseable(self, value):
        assert to_epoch_millis(value) is None


class TestDecodeJson:
    def test_strict(self):
        assert decode_json('{"a": 1}') == {"a": 1}

    def test_lenient_single_quotes(self):
        assert decode_json("{'a': 'b'}", lenient=True) == {"a": "b"}

    def test_lenient_keeps_valid_json_with_apostrophe(self):
        value = '{"message": "Can\'t reach host"}'
        assert decode_json(value, lenient=True) == {"message": "Can't reach host"}

    def test_failure(self):
        with pytest.raises(ParseError):
            decode_json("{'a': 1}")

    def test_non_string(self):
        with pytest.raises(ParseError):
            decode_json(12)


class TestRetagJsonField:
    def test_compacts_and_tags(self, context):
        container = {"body": '{ "a" : 1 }'}
        retag_json_field(container, "body", "RequestBody", context, "request body")
        assert container["body"] == 'RequestBody::{"a":1}'

    def test_invalid_left_alone_with_warning(self, context, caplog):
        container = {"body": "plain text"}
        retag_json_field(container, "body", "RequestBody", context, "request body")
        assert container["body"] == "plain text"
        assert "Can't process request body." in caplog.text

    @pytest.mark.parametrize("value", [{"Accept": "a"}, ["x"]])
    def test_non_string_value_untouched(self, context, caplog, value):
        container = {"headers": value}
        retag_json_field(container, "headers", "RequestHeaders", context, "request headers")
        assert container["headers"] == value
        assert "Can't process request headers." in caplog.text

    def test_missing_key_or_container(self, context):
        container = {}
        retag_json_field(container, "body", "X", context, "x")
        retag_json_field(None, "body", "X", context, "x")
        assert container == {}


class TestLogShape:
    def test_build(self):
        shape = LogShape("az")
        log = shape.build({"p": 1}, {"time": "2024-01-01T00:00:00Z"}, level="info", serviceName=None)
        assert log == {
            "level": "info",
            "az": {"p": 1},
            "az.meta": {"time": "2024-01-01T00:00:00Z"},
            "timestamp": 1704067200000,
        }
        assert shape.properties(log) == {"p": 1}
        assert shape.meta({}) == {}


def test_dig():
    data = {"a": {"b": {"c": 3}}, "s": "x"}
    assert dig(data, "a", "b", "c") == 3
    assert dig(data, "a", "missing", "c") is None
    assert dig(data, "s", "c") is None


def test_strip_hyphens():
    assert strip_hyphens("a-b-c") == "abc"
    assert strip_hyphens("") is None
    assert strip_hyphens(None) is None
