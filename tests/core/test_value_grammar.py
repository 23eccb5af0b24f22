# tests/core/test_value_grammar.py
import pytest

from mgmt_shell.core.parsing.errors import ResolutionError, StructuralError, ValueRangeError
from mgmt_shell.core.parsing.value_grammar import parse_bytes, parse_value
from mgmt_shell.core.services.expression_service import ExpressionResolver
from mgmt_shell.model import (
    BytesValue,
    ListValue,
    ObjectValue,
    PropertyListValue,
    StringValue,
)


def s(text):
    return StringValue(text=text)


# --- Strings ---

@pytest.mark.parametrize("raw, expected", [
    ("text", "text"),
    ("${test.expression}", "${test.expression}"),
    ("test ${expression} in the middle", "test ${expression} in the middle"),
    ('"${test.expression}"', "${test.expression}"),
    ('" "', " "),
    (' " "', " "),
    (' " \\""', ' "'),
    ("  padded  ", "padded"),
    ("", ""),
])
def test_strings(raw, expected):
    assert parse_value(raw) == s(expected)


def test_control_escapes():
    """\\n, \\t en \\\\ worden vertaald; een onbekende letter-escape is een fout."""
    assert parse_value("a\\nb\\tc\\\\d") == s("a\nb\tc\\d")
    with pytest.raises(StructuralError):
        parse_value("a\\qb")


def test_escaped_quotes():
    value = parse_value('"substituteAll(\\"JBAS\\",\\"DUMMY\\")"')
    assert value == s('substituteAll("JBAS","DUMMY")')


def test_deactivated_structural_characters():
    """'\\{', '\\[' en '\\=' zijn gewone tekens."""
    assert parse_value(">{b\\=c}") == s(">{b=c}")
    assert parse_value(">\\{b\\=c}") == s(">{b=c}")
    assert parse_value("a[bc") == s("a[bc")
    assert parse_value("a\\[bc") == s("a[bc")
    assert parse_value("a \\[ b c") == s("a [ b c")


def test_brackets_inside_a_string_value():
    """Haakjes in een string-waarde bepalen alleen het einde, ze typeren niet."""
    value = parse_value("a=b{c[d=e]}]}")
    assert value == ObjectValue(entries={"a": s("b{c[d=e]}]}")})


def test_any_expression():
    quoted = parse_value('"any(not(match(\\"Prepared response is\\")),match(\\"Scanning\\"))"')
    assert quoted == s('any(not(match("Prepared response is")),match("Scanning"))')

    unquoted = parse_value('any(not(match("Prepared response is")),match("Scanning"))')
    assert unquoted == ListValue(items=[
        s('any(not(match("Prepared response is"))'),
        s('match("Scanning"))'),
    ])


# --- Lists, objects and property lists ---

def test_list_in_brackets():
    assert parse_value("[a,b,c]") == ListValue(items=[s("a"), s("b"), s("c")])


def test_nested_list():
    value = parse_value("[a,b,[c,d]]")
    assert value == ListValue(items=[s("a"), s("b"), ListValue(items=[s("c"), s("d")])])


def test_list_without_brackets():
    assert parse_value("a, b ,c") == ListValue(items=[s("a"), s("b"), s("c")])


def test_property_list_in_brackets():
    value = parse_value("[a=b,c=d]")
    assert isinstance(value, PropertyListValue)
    assert value.properties == [("a", s("b")), ("c", s("d"))]


def test_object_without_braces():
    value = parse_value("a=b,c=d")
    assert value == ObjectValue(entries={"a": s("b"), "c": s("d")})


def test_object_in_braces():
    value = parse_value("{a=b,c=d}")
    assert value == ObjectValue(entries={"a": s("b"), "c": s("d")})
    assert list(value.entries) == ["a", "c"]


def test_object_with_list():
    value = parse_value("a=b,c=[d,e]")
    assert value == ObjectValue(entries={"a": s("b"), "c": ListValue(items=[s("d"), s("e")])})


def test_object_with_child_object():
    value = parse_value("a=b,c={d=e}")
    assert value == ObjectValue(entries={"a": s("b"), "c": ObjectValue(entries={"d": s("e")})})


def test_object_with_property_list():
    value = parse_value("a=b,c=[d=e,f=g]")
    assert value.entries["c"] == PropertyListValue(properties=[("d", s("e")), ("f", s("g"))])


def test_list_of_objects():
    value = parse_value("[{a=b},{c=[d=e,f={g=h}]}]")

    assert isinstance(value, ListValue)
    first, second = value.items
    assert first == ObjectValue(entries={"a": s("b")})
    assert second.entries["c"] == PropertyListValue(properties=[
        ("d", s("e")),
        ("f", ObjectValue(entries={"g": s("h")})),
    ])


def test_braces_without_names_are_a_string():
    """{a,b} heeft geen name=value paren en blijft dus tekst."""
    assert parse_value("{a,b}") == s("{a,b}")


def test_mixed_unbracketed_list():
    """Niet elk element heeft een naam: een lijst van ruwe strings."""
    assert parse_value("a=b,c") == ListValue(items=[s("a=b"), s("c")])


def test_arrow_separator():
    value = parse_value('{"operation"=>"add","name"=>"test","value"="v"}')
    assert value == ObjectValue(entries={"operation": s("add"), "name": s("test"), "value": s("v")})


def test_arrow_value_from_the_property_list():
    """De ruwe waarde van 'keystore=>{...}' begint met '>'."""
    value = parse_value(">{password=1234test,url=/Users/xxx/clientcert.jks}")
    assert value == ObjectValue(entries={
        ">{password": s("1234test"),
        "url": s("/Users/xxx/clientcert.jks}"),
    })


def test_nested_values():
    value = parse_value("[{ c=[s], m=s, p=[{k=a,v=b},{k=b,v=c}] }]")

    assert isinstance(value, ListValue)
    (item,) = value.items
    assert item.entries["c"] == ListValue(items=[s("s")])
    assert item.entries["m"] == s("s")
    assert item.entries["p"] == ListValue(items=[
        ObjectValue(entries={"k": s("a"), "v": s("b")}),
        ObjectValue(entries={"k": s("b"), "v": s("c")}),
    ])


LOGIN_MODULES = (
    "[{code=Database, flag=required, module-options=[unauthenticatedIdentity=guest,"
    "dsJndiName=java:jboss/jdbc/ApplicationDS,"
    "principalsQuery= select password from users where username=? ,"
    "rolesQuery = \"select name, 'Roles' FROM user_roless ur, roles r, user u "
    "WHERE u.username=? and u.id = ur.user_id and ur.role_id = r.id\" ,"
    "hashAlgorithm = MD5,hashEncoding = hex] }]"
)

LOGIN_MODULES_WITH_LINE_BREAKS = "\n".join([
    "[ \\",
    "\t\t{ \\",
    "\t\t\tcode=Database, \\",
    "\t\t\tflag= \\",
    "required, \\",
    "\t\t\tmodule-options=[ \\",
    "\t\t\t\t\tunauthenticatedIdentity=guest, \\",
    "\t\t\t\t\tdsJndiName=java:jboss/jdbc/ApplicationDS, \\",
    "\t\t\t\t\tprincipalsQuery= select password from users where username=? , \\",
    "\t\t\t\t\trolesQuery = \"select name, 'Roles' FROM user_roless ur, roles r, user u "
    "WHERE u.username=? and u.id = ur.user_id and ur.role_id = r.id\" , \\",
    "\t\t\t\t\thashAlgorithm = MD5, \\",
    "\t\t\t\t\thashEncoding = hex \\",
    "\t\t\t\t] \\",
    "\t\t} \\",
    "]",
])


@pytest.mark.parametrize("raw", [LOGIN_MODULES, LOGIN_MODULES_WITH_LINE_BREAKS])
def test_login_modules(raw):
    """Een realistische, diep geneste waarde; ook verdeeld over meerdere regels."""
    value = parse_value(raw)

    assert isinstance(value, ListValue)
    (module,) = value.items
    assert module.entries["code"] == s("Database")
    assert module.entries["flag"] == s("required")

    options = dict(module.entries["module-options"].properties)
    assert options == {
        "unauthenticatedIdentity": s("guest"),
        "dsJndiName": s("java:jboss/jdbc/ApplicationDS"),
        "principalsQuery": s("select password from users where username=?"),
        "rolesQuery": s("select name, 'Roles' FROM user_roless ur, roles r, user u "
                        "WHERE u.username=? and u.id = ur.user_id and ur.role_id = r.id"),
        "hashAlgorithm": s("MD5"),
        "hashEncoding": s("hex"),
    }


# --- Bytes ---

@pytest.mark.parametrize("raw", [
    "{a=bytes{31,0x32,-99}}",
    "{a=  bytes   {   31 ,  0x32  , -99 }}",
    "{a=bytes{+31,0x32,-99}}",
    "{a=  bytes   { +31 ,  0x32 , -99  }}",
])
def test_bytes_value(raw):
    value = parse_value(raw)
    assert value.entries["a"] == BytesValue(values=[31, 50, -99])


def test_empty_bytes():
    value = parse_value("{a=bytes{}}")
    assert value.entries["a"] == BytesValue(values=[])
    assert value.entries["a"].data == b""


@pytest.mark.parametrize("raw, expected", [
    ("bytes{127}", [127]),
    ("bytes{-128}", [-128]),
    ("bytes{0xff}", [-1]),
    ("bytes{0x0, 0x1, 0x01, 0xff, 0x0ff, 0x80, 0x7f}", [0, 1, 1, -1, -1, -128, 127]),
])
def test_bytes_border_values(raw, expected):
    assert parse_value(raw) == BytesValue(values=expected)


@pytest.mark.parametrize("raw", ["bytes{128}", "bytes{-129}", "bytes{-0x1}", "bytes{0x100}", "bytes{1,,2}", "bytes{zz}"])
def test_bytes_out_of_range(raw):
    with pytest.raises(ValueRangeError):
        parse_value(raw)


def test_bytes_error_offset():
    """De offset wijst naar het foute element."""
    with pytest.raises(ValueRangeError) as exc_info:
        parse_bytes(" 1, 300", 10)
    assert exc_info.value.offset == 14


def test_bytes_data():
    assert parse_value("bytes{0x41,66}").data == b"AB"


# --- Structural errors ---

@pytest.mark.parametrize("raw", ["[a,b", "{a=b", '"open', "[a]b", "{a=[b]c}", "bytes{1", "${a"])
def test_unbalanced_values_fail(raw):
    with pytest.raises(StructuralError):
        parse_value(raw)


def test_missing_name_before_equals():
    with pytest.raises(StructuralError):
        parse_value("{=b}")


def test_depth_limit():
    parse_value("[" * 5 + "]" * 5, max_depth=8)
    with pytest.raises(StructuralError):
        parse_value("[" * 10 + "]" * 10, max_depth=8)


# --- Expressions ---

def test_leaves_are_resolved_after_typing():
    """Een resolver wordt pas na het typeren op de bladeren toegepast."""
    resolver = ExpressionResolver({"host": "localhost", "list": "a,b"})
    value = parse_value("{h=${host},l=${list}}", resolver=resolver)
    assert value == ObjectValue(entries={"h": s("localhost"), "l": s("a,b")})


def test_unresolved_leaf():
    with pytest.raises(ResolutionError):
        parse_value("[${missing}]", resolver=ExpressionResolver({}))
