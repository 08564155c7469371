# tests/core/graph/test_kinds.py
"""
Testes de validação de literais por tipo de recurso (InvalidInput).
"""

import pytest

from stackgraph.core.exceptions import InvalidInput
from stackgraph.core.graph.kinds import KIND_SPECS, spec_for
from stackgraph.core.graph.node import ResourceNode
from stackgraph.core.graph.types import ResourceKind


def _node(kind, inputs):
    return ResourceNode(name="n", kind=kind, stack="s", inputs=inputs)


def test_every_kind_has_a_spec():
    assert set(KIND_SPECS) == set(ResourceKind)
    assert spec_for("stack_input").virtual
    assert not spec_for(ResourceKind.DATABASE).virtual


def test_valid_database_literals_pass():
    _node(
        ResourceKind.DATABASE,
        {
            "engine": "mysql",
            "engine_version": "8.0",
            "instance_type": "t3.micro",
            "subnet_ids": ["a", "b"],
            "security_group_id": "sg-1",
            "multi_az": True,
            "allocated_storage_gib": 20,
            "storage_type": "gp2",
        },
    ).validate()


@pytest.mark.parametrize(
    "kind,inputs,input_name",
    [
        (ResourceKind.NETWORK, {"cidr": "10.0.0.0/33"}, "cidr"),
        (ResourceKind.NETWORK, {}, "cidr"),
        (ResourceKind.NETWORK, {"cidr": "10.0.0.0/16", "vpc_name": "x"}, "vpc_name"),
        (ResourceKind.NETWORK, {"cidr": 10}, "cidr"),
        (ResourceKind.LISTENER, {"load_balancer_arn": "a", "target_group_arn": "t", "port": 70000}, "port"),
        (ResourceKind.SECURITY_GROUP, {"network_id": "n", "ingress_ports": [80, "443"]}, "ingress_ports"),
        (ResourceKind.CERTIFICATE, {"domain_name": "bad domain", "zone_id": "Z"}, "domain_name"),
        (ResourceKind.CDN_DISTRIBUTION, {
            "origin_domain_name": "o",
            "domain_names": ["www.example.com"],
            "certificate_arn": "arn",
            "viewer_protocol_policy": "sometimes",
        }, "viewer_protocol_policy"),
    ],
)
def test_invalid_literals(kind, inputs, input_name):
    with pytest.raises(InvalidInput) as exc:
        _node(kind, inputs).validate()
    assert exc.value.details["input"] == input_name
    assert exc.value.details["node"] == "s/n"


def test_boolean_is_not_an_integer():
    with pytest.raises(InvalidInput):
        _node(ResourceKind.TARGET_GROUP, {"network_id": "n", "port": True, "compute_group_name": "g"}).validate()


def test_capacity_bounds_checked_across_inputs():
    inputs = {
        "subnet_ids": ["a"],
        "launch_template_id": "lt",
        "min_capacity": 1,
        "max_capacity": 3,
        "desired_capacity": 5,
    }
    with pytest.raises(InvalidInput) as exc:
        _node(ResourceKind.COMPUTE_GROUP, inputs).validate()
    assert "min <= desired <= max" in exc.value.details["reason"]


def test_bindings_skip_literal_checks():
    network = ResourceNode(name="net", kind=ResourceKind.NETWORK, stack="s", inputs={"cidr": "10.0.0.0/16"})
    sg = ResourceNode(
        name="sg",
        kind=ResourceKind.SECURITY_GROUP,
        stack="s",
        inputs={"network_id": network.ref("network_id")},
    )
    sg.validate()
