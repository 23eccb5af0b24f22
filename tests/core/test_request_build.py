# tests/core/test_request_build.py
import pytest

from mgmt_shell.core.parsing.errors import ResolutionError, StructuralError, ValueRangeError
from mgmt_shell.core.parsing.operation_grammar import parse_operation_request
from mgmt_shell.core.services.expression_service import ExpressionResolver
from mgmt_shell.core.services.request_build_service import RequestBuildService
from mgmt_shell.model import BytesValue, ListValue, Node, ObjectValue, StringValue


@pytest.fixture
def service():
    return RequestBuildService()


def test_typed_parameters(service):
    """Elke ruwe waarde gaat door de value grammar."""
    result = parse_operation_request(
        "/subsystem=logging:op(a=1,b=[x,y],c={d=e},f=bytes{1,0x02},g)")
    request = service.build(result)

    assert request.address == [Node(type="subsystem", name="logging")]
    assert request.operation == "op"
    assert request.parameters == {
        "a": StringValue(text="1"),
        "b": ListValue(items=[StringValue(text="x"), StringValue(text="y")]),
        "c": ObjectValue(entries={"d": StringValue(text="e")}),
        "f": BytesValue(values=[1, 2]),
        "g": StringValue(text="true"),
    }
    assert list(request.parameters) == ["a", "b", "c", "f", "g"]


def test_request_as_python(service):
    request = service.build(parse_operation_request("/subsystem=logging:op(a=[1,2]){rollout id=plan1}"))

    assert request.to_python() == {
        "address": [{"subsystem": "logging"}],
        "operation": "op",
        "a": ["1", "2"],
        "operation-headers": {"rollout": "id=plan1"},
    }


def test_missing_operation_name(service):
    with pytest.raises(StructuralError) as exc_info:
        service.build(parse_operation_request("/subsystem=logging"))
    assert "operation name is missing" in exc_info.value.message


def test_address_ending_on_a_type(service):
    result = parse_operation_request("/a=b/c:op", validation=False)
    with pytest.raises(StructuralError):
        service.build(result)


def test_missing_value(service):
    with pytest.raises(StructuralError) as exc_info:
        service.build(parse_operation_request(":op(a=)"))
    assert exc_info.value.message == "The value of 'a' is missing"


def test_invalid_value_names_the_parameter(service):
    with pytest.raises(ValueRangeError) as exc_info:
        service.build(parse_operation_request(":op(x=bytes{300})"))
    assert exc_info.value.message.startswith("Invalid value of 'x'")


def test_headers_are_typed_except_rollout(service):
    """De rollout header blijft een string; andere headers worden getypeerd."""
    request = service.build(parse_operation_request(
        ":op{rollout in-series=[a,b]; allow-resource-service-restart=true; blocking-timeout=5}"))

    assert request.headers["rollout"] == StringValue(text="in-series=[a,b]")
    assert request.headers["allow-resource-service-restart"] == StringValue(text="true")
    assert request.headers["blocking-timeout"] == StringValue(text="5")


def test_output_target_is_copied(service):
    request = service.build(parse_operation_request(":read-resource > out.json"))
    assert request.output_target == "out.json"


def test_leaves_resolved_with_resolver():
    service = RequestBuildService(resolver=ExpressionResolver({"port": "9990"}))
    request = service.build(parse_operation_request(":op(a=${port},b=[${port}])"))

    assert request.parameters["a"] == StringValue(text="9990")
    assert request.parameters["b"] == ListValue(items=[StringValue(text="9990")])


def test_unresolved_leaf_with_resolver():
    service = RequestBuildService(resolver=ExpressionResolver({}))
    with pytest.raises(ResolutionError):
        service.build(parse_operation_request(":op(a=${missing})"))


def test_value_depth_limit():
    service = RequestBuildService(max_value_depth=2)
    with pytest.raises(StructuralError):
        service.build(parse_operation_request(":op(a=[[[x]]])"))
