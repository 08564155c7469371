# tests/core/graph/test_stack.py
"""
Testes da Stack: declaração de Nodes, exports, inputs requeridos e a
regra de que valores só cruzam Stacks via export/require.
"""

import pytest

from stackgraph.core.exceptions import BrokenReference, DuplicateNode
from stackgraph.core.graph.stack import Stack
from stackgraph.core.graph.types import ResourceKind, StackState, ValueType


def test_declare_keeps_declaration_order():
    stack = Stack("web", region="eu-west-1")
    stack.declare(ResourceKind.DNS_ZONE, "zone", {"domain_name": "example.com"})
    stack.declare("network", "network", {"cidr": "10.0.0.0/16"})

    assert [n.id for n in stack.nodes()] == ["web/zone", "web/network"]
    assert stack.has("web/network") and stack.has("network")
    assert stack.get("web/zone").kind is ResourceKind.DNS_ZONE


def test_duplicate_node_rejected():
    stack = Stack("web", region="eu-west-1")
    stack.declare(ResourceKind.NETWORK, "network", {"cidr": "10.0.0.0/16"})
    with pytest.raises(DuplicateNode):
        stack.declare(ResourceKind.NETWORK, "network", {"cidr": "10.1.0.0/16"})


def test_direct_cross_stack_reference_rejected():
    shared = Stack("shared", region="eu-west-1")
    app = Stack("app", region="eu-west-1")
    network = shared.declare(ResourceKind.NETWORK, "network", {"cidr": "10.0.0.0/16"})

    with pytest.raises(BrokenReference) as exc:
        app.declare(ResourceKind.SECURITY_GROUP, "sg", {"network_id": network.ref("network_id")})

    assert exc.value.details["producer"] == "shared/network"
    assert not app.has("sg")


def test_require_input_creates_virtual_node():
    shared = Stack("shared", region="us-east-1")
    app = Stack("app", region="eu-west-1")

    node = app.require_input("certificate_arn", ValueType.STRING, from_stack=shared)

    assert node.id == "app/input.certificate_arn"
    assert node.kind is ResourceKind.STACK_INPUT
    assert node.spec.virtual
    required = app.inputs["certificate_arn"]
    assert required.from_stack == "shared"
    assert required.export_name == "certificate_arn"
    assert app.input_ref("certificate_arn").producer_id == "app/input.certificate_arn"


def test_require_input_errors():
    app = Stack("app", region="eu-west-1")
    app.require_input("domain_name", "string")

    with pytest.raises(DuplicateNode):
        app.require_input("domain_name", "string")
    with pytest.raises(ValueError):
        app.require_input("self_ref", from_stack=app)
    with pytest.raises(KeyError):
        app.input_ref("unknown")


def test_export_output_and_duplicates():
    stack = Stack("certificates", region="us-east-1")
    cert = stack.declare(
        ResourceKind.CERTIFICATE,
        "certificate",
        {"domain_name": "www.example.com", "zone_id": "Z1"},
    )

    exported = stack.export_output("certificate_arn", cert, "certificate_arn")

    assert exported.node_id == "certificates/certificate"
    with pytest.raises(DuplicateNode):
        stack.export_output("certificate_arn", "certificate", "certificate_arn")


def test_depends_on_is_deduplicated():
    app = Stack("app", region="eu-west-1")
    app.depends_on("shared")
    app.depends_on(Stack("shared", region="eu-west-1"))
    assert app.dependencies == ["shared"]


@pytest.mark.parametrize("name,region", [("", "eu-west-1"), ("a/b", "eu-west-1"), ("web", " ")])
def test_invalid_identity(name, region):
    with pytest.raises(ValueError):
        Stack(name, region=region)


def test_stack_state_follows_nodes_and_exports():
    stack = Stack("shared", region="eu-west-1")
    network = stack.declare(ResourceKind.NETWORK, "network", {"cidr": "10.0.0.0/16"})
    zone = stack.declare(ResourceKind.DNS_ZONE, "zone", {"domain_name": "example.com"})
    stack.export_output("network_id", network, "network_id")

    assert stack.state() is StackState.DECLARED

    network.restore({"network_id": "vpc-1"})
    assert stack.state() is StackState.INCOMPLETE

    zone.restore({"zone_id": "Z1"})
    assert stack.exports_resolvable()
    assert stack.state() is StackState.APPLIED


def test_unresolvable_export_keeps_stack_incomplete():
    stack = Stack("shared", region="eu-west-1")
    network = stack.declare(ResourceKind.NETWORK, "network", {"cidr": "10.0.0.0/16"})
    stack.export_output("network_id", network, "network_id")

    network.restore({"vpc": "vpc-1"})

    assert not stack.exports_resolvable()
    assert stack.state() is StackState.INCOMPLETE
