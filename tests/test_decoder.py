"""Test severity-aware tolerant decoding"""

import pytest

from icloud_album.core.decoder import (
    DecodeEvents,
    FieldSpec,
    Severity,
    Shape,
    coerce_integer,
    decode,
)
from icloud_album.core.exceptions import SchemaViolationError


def _int_field(severity, default=None):
    return (FieldSpec("fileSize", "file_size", severity, Shape.INTEGER, default=default),)


class TestCoerceInteger:
    """Test integer coercion"""

    def test_accepted_forms(self):
        assert coerce_integer(42) == 42
        assert coerce_integer("42") == 42
        assert coerce_integer(42.0) == 42
        assert coerce_integer("007") == 7
        assert coerce_integer(0) == 0

    @pytest.mark.parametrize("value", ["abc", "4.2", "-1", "", " 42", "42\n", -1, 4.5, True, None, [], {}])
    def test_rejected_forms(self, value):
        assert coerce_integer(value) is None


class TestDecodeSeverities:
    """Test REQUIRED / OPTIONAL / LENIENT behavior"""

    def test_optional_digit_string(self):
        events = DecodeEvents()
        assert decode({"fileSize": "42"}, _int_field(Severity.OPTIONAL), events) == {"file_size": 42}
        assert len(events) == 0

    def test_lenient_bad_value_gives_default_and_warning(self):
        events = DecodeEvents()

        record = decode({"fileSize": "abc"}, _int_field(Severity.LENIENT, default=0), events)

        assert record == {"file_size": 0}
        assert len(events) == 1
        assert events.warnings[0].field == "fileSize"
        assert "abc" in events.warnings[0].reason

    def test_required_bad_value_raises(self):
        with pytest.raises(SchemaViolationError) as exc_info:
            decode({"fileSize": "abc"}, _int_field(Severity.REQUIRED), DecodeEvents())
        assert exc_info.value.field == "fileSize"

    def test_required_trailing_newline_raises(self):
        with pytest.raises(SchemaViolationError) as exc_info:
            decode({"fileSize": "42\n"}, _int_field(Severity.REQUIRED), DecodeEvents())
        assert exc_info.value.field == "fileSize"

    @pytest.mark.parametrize("severity", [Severity.OPTIONAL, Severity.LENIENT])
    def test_trailing_newline_gives_default_and_warning(self, severity):
        events = DecodeEvents()

        record = decode({"fileSize": "42\n"}, _int_field(severity, default=0), events)

        assert record == {"file_size": 0}
        assert len(events) == 1
        assert events.warnings[0].field == "fileSize"

    def test_required_missing_raises(self):
        with pytest.raises(SchemaViolationError, match="missing"):
            decode({}, _int_field(Severity.REQUIRED), DecodeEvents())

    def test_required_null_raises(self):
        with pytest.raises(SchemaViolationError):
            decode({"fileSize": None}, _int_field(Severity.REQUIRED), DecodeEvents())

    def test_optional_missing_is_silent(self):
        events = DecodeEvents()
        assert decode({}, _int_field(Severity.OPTIONAL), events) == {"file_size": None}
        assert len(events) == 0

    def test_optional_wrong_shape_warns(self):
        events = DecodeEvents()
        assert decode({"fileSize": "big"}, _int_field(Severity.OPTIONAL), events) == {"file_size": None}
        assert [w.field for w in events] == ["fileSize"]

    def test_lenient_missing_warns(self):
        events = DecodeEvents()
        fields = (FieldSpec("streamName", "stream_name", Severity.LENIENT, Shape.STRING, default=""),)

        assert decode({}, fields, events) == {"stream_name": ""}
        assert events.warnings[0].reason == "missing"

    def test_unknown_keys_ignored(self):
        record = decode({"fileSize": 1, "extra": "x"}, _int_field(Severity.OPTIONAL), DecodeEvents())
        assert record == {"file_size": 1}

    def test_non_object_root_raises(self):
        with pytest.raises(SchemaViolationError) as exc_info:
            decode(["not", "an", "object"], _int_field(Severity.OPTIONAL), DecodeEvents())
        assert exc_info.value.field == "<root>"


class TestDecodeShapes:
    """Test shape checks and nesting"""

    ITEM = (FieldSpec("checksum", "checksum", Severity.REQUIRED, Shape.STRING),)

    def test_string_rejects_number(self):
        events = DecodeEvents()
        fields = (FieldSpec("caption", "caption", Severity.OPTIONAL, Shape.STRING),)

        assert decode({"caption": 5}, fields, events) == {"caption": None}
        assert len(events) == 1

    def test_list_default_is_fresh(self):
        fields = (FieldSpec("photos", "photos", Severity.OPTIONAL, Shape.LIST),)
        first = decode({}, fields, DecodeEvents())
        second = decode({}, fields, DecodeEvents())

        first["photos"].append(1)

        assert second["photos"] == []

    def test_any_keeps_value(self):
        fields = (FieldSpec("locations", "locations", Severity.OPTIONAL, Shape.ANY),)
        assert decode({"locations": [1, "a"]}, fields, DecodeEvents()) == {"locations": [1, "a"]}

    def test_nested_list_violation_has_full_path(self):
        fields = (
            FieldSpec("photos", "photos", Severity.REQUIRED, Shape.LIST, fields=(
                FieldSpec("derivatives", "derivatives", Severity.REQUIRED, Shape.MAPPING,
                          fields=self.ITEM),
            )),
        )
        raw = {"photos": [
            {"derivatives": {"1": {"checksum": "a"}}},
            {"derivatives": {"2": {"checksum": 7}}},
        ]}

        with pytest.raises(SchemaViolationError) as exc_info:
            decode(raw, fields, DecodeEvents())

        assert exc_info.value.field == "photos[1].derivatives.2.checksum"

    def test_nested_required_propagates_through_optional_parent(self):
        fields = (FieldSpec("items", "items", Severity.OPTIONAL, Shape.MAPPING, fields=self.ITEM),)

        with pytest.raises(SchemaViolationError) as exc_info:
            decode({"items": {"x": {}}}, fields, DecodeEvents())

        assert exc_info.value.field == "items.x.checksum"

    def test_nested_warnings_carry_path(self):
        fields = (
            FieldSpec("photos", "photos", Severity.REQUIRED, Shape.LIST, fields=(
                FieldSpec("width", "width", Severity.OPTIONAL, Shape.INTEGER),
            )),
        )
        events = DecodeEvents()

        record = decode({"photos": [{"width": "10"}, {"width": "wide"}]}, fields, events)

        assert record == {"photos": [{"width": 10}, {"width": None}]}
        assert [w.field for w in events] == ["photos[1].width"]

    def test_collectors_are_independent(self):
        first, second = DecodeEvents(), DecodeEvents()

        decode({"fileSize": "x"}, _int_field(Severity.LENIENT), first)

        assert len(first) == 1
        assert len(second) == 0
