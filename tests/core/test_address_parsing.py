# tests/core/test_address_parsing.py
import pytest

from mgmt_shell.core.parsing.address import Address
from mgmt_shell.core.parsing.errors import StructuralError, TokenValidationError
from mgmt_shell.core.parsing.operation_grammar import parse_operation_request
from mgmt_shell.model import Node


def nodes(result):
    """De adresnodes als (type, naam) paren."""
    return [(n.type, n.name) for n in result.address]


def test_node_type_only():
    """Alleen een type: het adres eindigt op een type."""
    result = parse_operation_request("subsystem")

    assert result.has_address
    assert not result.has_operation_name
    assert result.ends_on_type
    assert not result.ends_on_node_separator
    assert not result.ends_on_node_type_name_separator
    assert nodes(result) == [("subsystem", None)]


def test_node_type_name_separator():
    """'subsystem=' eindigt op het '=' scheidingsteken."""
    result = parse_operation_request("subsystem=")

    assert result.ends_on_type
    assert result.ends_on_node_type_name_separator
    assert nodes(result) == [("subsystem", None)]


def test_one_node():
    """Eén volledige node zonder operatie."""
    result = parse_operation_request("subsystem=logging")

    assert nodes(result) == [("subsystem", "logging")]
    assert not result.ends_on_type
    assert not result.has_operation_name
    assert not result.is_request_complete


def test_one_node_with_node_separator():
    result = parse_operation_request("subsystem=logging/")

    assert nodes(result) == [("subsystem", "logging")]
    assert result.ends_on_node_separator
    assert not result.ends_on_type


def test_ends_on_type():
    result = parse_operation_request("a=b/c")
    assert nodes(result) == [("a", "b"), ("c", None)]
    assert result.ends_on_type


def test_node_type_with_prefix():
    """Relatief aan een prefix-adres wordt een type toegevoegd."""
    prefix = Address.of(("a", "b"))
    result = parse_operation_request("subsystem", prefix)

    assert nodes(result) == [("a", "b"), ("subsystem", None)]
    # Het prefix zelf blijft ongewijzigd.
    assert prefix == [Node(type="a", name="b")]


def test_child_node_type_with_prefix():
    """'./subsystem' is hetzelfde als 'subsystem'."""
    result = parse_operation_request("./subsystem", Address.of(("a", "b")))
    assert nodes(result) == [("a", "b"), ("subsystem", None)]
    assert not result.ends_on_node_separator


def test_root_node_type_with_prefix():
    """Een leidende '/' negeert het prefix."""
    result = parse_operation_request("/subsystem", Address.of(("a", "b")))
    assert nodes(result) == [("subsystem", None)]


def test_node_name_only():
    """Eindigt het prefix op een type, dan is het token een naam."""
    result = parse_operation_request("b", Address.of(("a",)))
    assert nodes(result) == [("a", "b")]
    assert not result.ends_on_type


def test_node_name_only_with_node_separator():
    result = parse_operation_request("b/", Address.of(("a",)))
    assert nodes(result) == [("a", "b")]
    assert result.ends_on_node_separator


def test_node_with_prefix():
    result = parse_operation_request("c=d", Address.of(("a", "b")))
    assert nodes(result) == [("a", "b"), ("c", "d")]


def test_root_only():
    result = parse_operation_request("/", Address.of(("a", "b")))

    assert result.has_address
    assert nodes(result) == []
    assert result.ends_on_node_separator
    assert not result.ends_on_type


def test_root_in_combination():
    result = parse_operation_request("/e=f", Address.of(("a", "b")))
    assert nodes(result) == [("e", "f")]


def test_parent_only():
    result = parse_operation_request("..", Address.of(("a", "b")))
    assert nodes(result) == []
    assert not result.ends_on_type


def test_parent_in_combination():
    result = parse_operation_request("c=d/../e=f")
    assert nodes(result) == [("e", "f")]


def test_parent_past_root_fails():
    """'..' op het root-adres is een fout."""
    with pytest.raises(StructuralError):
        parse_operation_request("..")


def test_to_type_only():
    """'.type' laat de naam van de laatste node vallen."""
    result = parse_operation_request(".type", Address.of(("a", "b")))
    assert nodes(result) == [("a", None)]
    assert result.ends_on_type


def test_to_type_in_combination():
    result = parse_operation_request("b/.type/c", Address.of(("a",)))
    assert nodes(result) == [("a", "c")]
    assert not result.ends_on_type


def test_quoted_name_with_colon_and_slash():
    """Een naam tussen quotes mag ':' en '/' bevatten."""
    result = parse_operation_request('data-source="java:/H2DS"')
    assert nodes(result) == [("data-source", "java:/H2DS")]
    assert not result.ends_on_node_separator


def test_escaped_colon_and_slash_in_name():
    """'\\:' en '\\/' worden letterlijk deel van de naam."""
    result = parse_operation_request("/subsystem=mail/mail-session=java\\:\\/")
    assert nodes(result) == [("subsystem", "mail"), ("mail-session", "java:/")]
    assert not result.ends_on_node_separator

    result = parse_operation_request("/subsystem=datasources/data-source=java\\:\\/H2DS")
    assert nodes(result) == [("subsystem", "datasources"), ("data-source", "java:/H2DS")]


def test_slash_as_node_name():
    result = parse_operation_request(
        "/subsystem=undertow/server=default-server/host=default-host/location=\\/")
    assert nodes(result) == [
        ("subsystem", "undertow"),
        ("server", "default-server"),
        ("host", "default-host"),
        ("location", "/"),
    ]


def test_root_then_trailing_separator():
    """'/a/' is een root gevolgd door een type en een scheidingsteken."""
    result = parse_operation_request("/a/")
    assert nodes(result) == [("a", None)]
    assert result.ends_on_node_separator

    result = parse_operation_request("/a=b/")
    assert nodes(result) == [("a", "b")]


@pytest.mark.parametrize("line", ["//", "/a=b//", "/a=b//a=b"])
def test_root_character_in_the_middle(line):
    """Een tweede root-teken midden in het pad is niet toegestaan."""
    with pytest.raises(StructuralError):
        parse_operation_request(line)


@pytest.mark.parametrize("token", ["_", "a_b", "_-_", "a-", "read1"])
def test_valid_node_types(token):
    result = parse_operation_request(f"{token}=x")
    assert nodes(result) == [(token, "x")]


@pytest.mark.parametrize("token", ["-", "-a", "a+b", "a.b"])
def test_invalid_node_types(token):
    with pytest.raises(TokenValidationError):
        parse_operation_request(f"{token}=x")


def test_node_names_accept_wildcard_and_dots():
    result = parse_operation_request("/subsystem=threads/thread-factory=*")
    assert nodes(result) == [("subsystem", "threads"), ("thread-factory", "*")]

    result = parse_operation_request("deployment=app.war")
    assert nodes(result) == [("deployment", "app.war")]


def test_without_validation_tokens_are_not_checked():
    """Met validatie uit worden tokens niet gecontroleerd (voor completion)."""
    result = parse_operation_request("a+b=x", validation=False)
    assert nodes(result) == [("a+b", "x")]
