from dataclasses import dataclass
from datetime import date, datetime

import pytest

from jira_fields.core.codecs import (
    CascadingSelectCodec,
    KeyReferenceCodec,
    MultiStringCodec,
    NumberCodec,
    OptionCodec,
    RawJsonCodec,
    ScalarValueCodec,
    SelectValueCodec,
    SingleUserCodec,
    ValueCodec,
    codec_for_schema,
    decode_wire_as,
    get_codec,
    register_codec,
    registered_codecs,
)
from jira_fields.core.errors import CodecError
from jira_fields.core.models import FieldDefinition


# Codecs that only accept some strings take their own sample values
SAMPLES = {"number": ("1.5", "2.0")}


@pytest.mark.parametrize("name", sorted(registered_codecs()))
@pytest.mark.parametrize("count", [0, 1, 2])
def test_round_trip(name, count):
    codec = get_codec(name)
    values = list(SAMPLES.get(name, ("A", "B"))[:count])
    assert codec.decode(codec.encode(values)) == values


@pytest.mark.parametrize("name", sorted(registered_codecs()))
def test_none_means_cleared(name):
    codec = get_codec(name)
    assert codec.encode(None) is None
    assert codec.decode(None) is None


def test_default_codec_is_select_reference_objects():
    assert isinstance(get_codec(), SelectValueCodec)
    assert get_codec().encode(["A", "B"]) == [{"value": "A"}, {"value": "B"}]


def test_key_reference_codec():
    assert KeyReferenceCodec().encode(["SUP-423609"]) == [{"key": "SUP-423609"}]


def test_multistring_codec_plain_strings():
    assert MultiStringCodec().encode(["a", "b"]) == ["a", "b"]


def test_cascading_wire_shape():
    codec = CascadingSelectCodec()
    assert codec.encode(["EU"]) == {"value": "EU"}
    assert codec.encode(["EU", "Berlin"]) == {"value": "EU", "child": {"value": "Berlin"}}
    assert codec.decode({"id": "3", "value": "EU", "child": {"id": "4", "value": "Berlin"}}) == ["EU", "Berlin"]
    with pytest.raises(CodecError):
        codec.encode(["a", "b", "c"])


def test_select_decodes_single_object_and_ignores_ids():
    assert SelectValueCodec().decode({"id": "10", "value": "High"}) == ["High"]
    assert SelectValueCodec().decode([{"id": "1", "value": "a"}, {"id": "2", "value": "b"}]) == ["a", "b"]


def test_select_rejects_object_without_value():
    with pytest.raises(CodecError):
        SelectValueCodec().decode([{"id": "1"}])


def test_register_custom_codec():
    class UpperCodec(ValueCodec):
        name = "upper"

        def encode(self, values):
            return None if values is None else [v.upper() for v in values]

        def decode(self, wire):
            return None if wire is None else [v.lower() for v in wire]

    codec = UpperCodec()
    register_codec("Upper", codec)
    assert get_codec("upper") is codec
    assert codec.encode(["a"]) == ["A"]


def test_unknown_codec_name():
    with pytest.raises(CodecError):
        get_codec("does-not-exist")


def test_codec_for_schema():
    cascading = FieldDefinition(
        id="customfield_1",
        name="Region",
        schema_custom="com.atlassian.jira.plugin.system.customfieldtypes:cascadingselect",
    )
    components = FieldDefinition(id="components", name="components", schema_custom="components", custom=False)
    plain = FieldDefinition(id="customfield_2", name="Text", schema_custom="something:else")
    assert codec_for_schema(cascading).name == "cascading"
    assert codec_for_schema(components).name == "name"
    assert codec_for_schema(plain).name == "select"
    assert codec_for_schema(None).name == "select"


@dataclass
class Asset:
    key: str
    label: str | None = None


def test_decode_wire_as_scalars():
    assert decode_wire_as(5.0, float) == 5.0
    assert decode_wire_as("7", int) == 7
    assert decode_wire_as({"value": "High"}, str) == "High"
    assert decode_wire_as("true", bool) is True
    with pytest.raises(CodecError):
        decode_wire_as("abc", int)
    with pytest.raises(CodecError):
        decode_wire_as(True, int)


def test_decode_wire_as_datetime_uses_timezone():
    value = decode_wire_as("2024-09-01T10:00:00.000+0000", datetime, tz="America/Santiago")
    assert value.utcoffset() is not None
    assert (value.year, value.month, value.day, value.hour) == (2024, 9, 1, 6)
    assert decode_wire_as("2024-09-01", date) == date(2024, 9, 1)
    with pytest.raises(CodecError):
        decode_wire_as("not a date", datetime)


def test_decode_wire_as_collections_and_dataclass():
    assert decode_wire_as([{"value": "a"}, {"value": "b"}], list[str]) == ["a", "b"]
    assert decode_wire_as({"key": "SUP-1", "label": "x", "extra": 1}, Asset) == Asset("SUP-1", "x")
    with pytest.raises(CodecError):
        decode_wire_as(["SUP-1"], Asset)
    with pytest.raises(CodecError):
        decode_wire_as([1], dict)


def test_single_value_codecs_send_bare_objects():
    assert OptionCodec().encode(["High"]) == {"value": "High"}
    assert OptionCodec().encode(["a", "b"]) == [{"value": "a"}, {"value": "b"}]
    assert OptionCodec().decode({"id": "1", "value": "High"}) == ["High"]
    assert SingleUserCodec().encode(["5b10a"]) == {"accountId": "5b10a"}
    assert SingleUserCodec().decode({"accountId": "5b10a", "displayName": "Alice"}) == ["5b10a"]
    assert SingleUserCodec().decode({"name": "alice", "key": "JIRAUSER1"}) == ["alice"]


def test_scalar_codecs():
    assert ScalarValueCodec().encode(["2024-09-01"]) == "2024-09-01"
    assert ScalarValueCodec().decode("text") == ["text"]
    with pytest.raises(CodecError):
        ScalarValueCodec().decode({"value": "x"})
    assert NumberCodec().encode(["8"]) == 8.0
    assert NumberCodec().decode(5) == ["5.0"]
    with pytest.raises(CodecError):
        NumberCodec().encode(["eight"])


def test_raw_json_codec_keeps_objects():
    wire = {"requestType": {"id": "12"}, "_links": {}}
    values = RawJsonCodec().decode(wire)
    assert values == ['{"_links": {}, "requestType": {"id": "12"}}']
    assert RawJsonCodec().encode(values) == wire
    assert RawJsonCodec().decode([1, "x"]) == ["1", "x"]


def test_codec_for_schema_types():
    def definition(custom, schema_type):
        return FieldDefinition(id="customfield_9", name="X", schema_custom=custom, schema_type=schema_type)

    base = "com.atlassian.jira.plugin.system.customfieldtypes"
    assert codec_for_schema(definition(f"{base}:float", "number")).name == "number"
    assert codec_for_schema(definition(f"{base}:textfield", "string")).name == "value"
    assert codec_for_schema(definition(f"{base}:datepicker", "date")).name == "value"
    assert codec_for_schema(definition(f"{base}:select", "option")).name == "option"
    assert codec_for_schema(definition(f"{base}:userpicker", "user")).name == "user"
    assert codec_for_schema(definition(f"{base}:multiuserpicker", "array")).name == "users"
