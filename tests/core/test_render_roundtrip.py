# tests/core/test_render_roundtrip.py
import pytest

from mgmt_shell.core.parsing.address import Address, escape_token
from mgmt_shell.core.parsing.operation_grammar import parse_operation_request
from mgmt_shell.core.parsing.value_grammar import parse_value
from mgmt_shell.core.services.render_service import render_address, render_string, render_value
from mgmt_shell.model import (
    BytesValue,
    ListValue,
    ObjectValue,
    PropertyListValue,
    StringValue,
)


def s(text):
    return StringValue(text=text)


@pytest.mark.parametrize("address", [
    Address(),
    Address.of(("subsystem", "logging")),
    Address.of(("subsystem", "datasources"), ("data-source", "java:/H2DS")),
    Address.of(("location", "/")),
    Address.of(("x", "a b=c,d")),
    Address.of(("deployment", "..")),
    Address.of(("deployment", ".type")),
    Address.of(("subsystem", "logging"), ("logger",)),
])
def test_address_round_trip(address):
    """De canonieke vorm van een adres wordt weer tot hetzelfde adres geparsed."""
    text = render_address(address)
    assert parse_operation_request(text).address == address


def test_address_text():
    assert render_address(Address()) == "/"
    assert render_address(Address.of(("a", "b"), ("c",))) == "/a=b/c"
    assert str(Address.of(("data-source", "java:/H2DS"))) == "/data-source=java\\:\\/H2DS"


def test_escape_token():
    assert escape_token("plain-name_1.war") == "plain-name_1.war"
    assert escape_token("*") == "*"
    assert escape_token("-a") == "\\-a"
    assert escape_token("..") == "\\.."


@pytest.mark.parametrize("text, expected", [
    ("plain", "plain"),
    ("", '""'),
    ("a,b", '"a,b"'),
    ("with space", '"with space"'),
    ('say "hi"', '"say \\"hi\\""'),
    ("bytes{1}", '"bytes{1}"'),
    ("line\nbreak", '"line\\nbreak"'),
])
def test_render_string(text, expected):
    assert render_string(text) == expected


@pytest.mark.parametrize("value", [
    s("plain"),
    s(""),
    s("a,b"),
    s('say "hi"\n'),
    s("a\\b"),
    s("$dollar ${expr}"),
    s(">arrow"),
    s("bytes{1}"),
    ListValue(items=[]),
    ListValue(items=[s("a"), s("b c"), ListValue(items=[s("d")])]),
    ObjectValue(entries={}),
    ObjectValue(entries={"a b": ListValue(items=[s("x y"), s("bytes{1}")]), "c": s("d")}),
    PropertyListValue(properties=[("a", s("1")), ("b", ObjectValue(entries={"c": s("2")}))]),
    BytesValue(values=[1, -1, 127, -128]),
    BytesValue(values=[]),
])
def test_value_round_trip(value):
    """render_value gevolgd door parse_value geeft dezelfde getypeerde waarde."""
    rendered = render_value(value)
    assert parse_value(rendered) == value
    # Nog een keer renderen verandert niets meer.
    assert render_value(parse_value(rendered)) == rendered


def test_rendered_forms():
    assert render_value(ListValue(items=[])) == "[]"
    assert render_value(ObjectValue(entries={})) == "{}"
    assert render_value(BytesValue(values=[1, -1])) == "bytes{1,-1}"
    assert render_value(PropertyListValue(properties=[("a", s("1"))])) == "[a=1]"


def test_empty_property_list_reads_back_as_a_list():
    """Een lege property-lijst heeft dezelfde tekst als een lege lijst."""
    rendered = render_value(PropertyListValue())

    assert rendered == "[]"
    assert parse_value(rendered) == ListValue(items=[])
