# tests/core/engine/test_executor_partial_failure.py
"""
Testes de falha parcial: Node `failed`, dependentes transitivos `skipped`,
ramos independentes seguem até o fim.
"""

import pytest

from stackgraph.core.engine.executor import Executor
from stackgraph.core.graph.stack import Stack
from stackgraph.core.graph.types import NodeState, ResourceKind, RunStatus, StackState
from tests.fixtures.providers import RecordingProvider


@pytest.fixture
def chain_deployment(make_deployment):
    """network → sg → launch_template → compute_group, mais uma zona independente."""
    deployment = make_deployment()
    s = deployment.add_stack(Stack("s", region="eu-west-1"))
    network = s.declare(ResourceKind.NETWORK, "network", {"cidr": "10.0.0.0/16"})
    sg = s.declare(ResourceKind.SECURITY_GROUP, "sg", {"network_id": network.ref("network_id")})
    template = s.declare(
        ResourceKind.LAUNCH_TEMPLATE,
        "template",
        {
            "instance_type": "t3.micro",
            "machine_image": "ami-0123",
            "security_group_id": sg.ref("group_id"),
        },
    )
    s.declare(
        ResourceKind.COMPUTE_GROUP,
        "group",
        {
            "subnet_ids": network.ref("public_subnet_ids"),
            "launch_template_id": template.ref("launch_template_id"),
            "min_capacity": 1,
            "max_capacity": 3,
            "desired_capacity": 2,
        },
    )
    s.declare(ResourceKind.DNS_ZONE, "zone", {"domain_name": "example.com"})
    return deployment


def test_failure_skips_transitive_dependents(chain_deployment):
    provider = RecordingProvider(fail_on=["s/sg"])
    report = Executor(deployment=chain_deployment, provider=provider).apply()

    assert report.status is RunStatus.PARTIAL_FAILURE
    assert report.in_state(NodeState.FAILED) == ["s/sg"]
    assert report.in_state(NodeState.SKIPPED) == ["s/group", "s/template"]
    assert report.in_state(NodeState.APPLIED) == ["s/network", "s/zone"]
    assert "s/template" not in provider.started()
    assert "s/group" not in provider.started()


def test_failed_and_skipped_nodes_explain_themselves(chain_deployment):
    provider = RecordingProvider(fail_on=["s/sg"])
    report = Executor(deployment=chain_deployment, provider=provider).apply()

    failed = report.nodes["s/sg"]
    assert failed.error.type == "PROVIDER_ERROR"
    assert failed.error.details == {"node": "s/sg"}
    assert failed.outputs is None
    assert report.nodes["s/group"].reason == "dependência s/sg falhou"
    assert report.nodes["s/template"].error is None


def test_unexpected_provider_exception_is_wrapped(chain_deployment):
    provider = RecordingProvider(raise_plain_on=["s/zone"])
    report = Executor(deployment=chain_deployment, provider=provider).apply()

    assert report.status is RunStatus.PARTIAL_FAILURE
    error = report.nodes["s/zone"].error
    assert error.type == "PROVIDER_ERROR"
    assert error.details["exception_class"] == "RuntimeError"
    assert report.in_state(NodeState.APPLIED) == ["s/group", "s/network", "s/sg", "s/template"]


def test_failure_propagates_across_stacks(two_stack_deployment):
    provider = RecordingProvider(fail_on=["shared/network"])
    report = Executor(deployment=two_stack_deployment(), provider=provider).apply()

    assert report.in_state(NodeState.FAILED) == ["shared/network"]
    assert report.in_state(NodeState.SKIPPED) == ["app/input.network_id", "app/targets", "shared/sg"]
    # mesma região: a zona de `app` não depende de `shared`
    assert report.in_state(NodeState.APPLIED) == ["app/zone"]


def test_failure_before_cross_region_barrier_skips_whole_stack(two_stack_deployment):
    provider = RecordingProvider(fail_on=["shared/sg"])
    report = Executor(deployment=two_stack_deployment(app_region="us-west-2"), provider=provider).apply()

    assert report.in_state(NodeState.FAILED) == ["shared/sg"]
    assert report.in_state(NodeState.SKIPPED) == ["app/input.network_id", "app/targets", "app/zone"]
    assert report.in_state(NodeState.APPLIED) == ["shared/network"]
    assert provider.started() == ["shared/network", "shared/sg"]


def test_stack_with_failed_node_is_not_applied(two_stack_deployment):
    provider = RecordingProvider(fail_on=["shared/sg"])
    report = Executor(deployment=two_stack_deployment(), provider=provider).apply()

    assert report.status is RunStatus.PARTIAL_FAILURE
    assert report.stacks["shared"] is StackState.INCOMPLETE
    assert report.stacks["app"] is StackState.APPLIED
    assert report.stacks_in_state(StackState.APPLIED) == ["app"]
