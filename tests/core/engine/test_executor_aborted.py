# tests/core/engine/test_executor_aborted.py
"""
Testes de execuções abortadas: grafo ou configuração inválidos e
Deployments já executados nunca chegam ao provider.
"""

from datetime import datetime, timezone

import pytest

from stackgraph.core.engine.executor import Executor
from stackgraph.core.exceptions import CyclicDependency, UnresolvedReference
from stackgraph.core.graph.binding import ReferenceBinding
from stackgraph.core.graph.stack import Stack
from stackgraph.core.graph.types import NodeState, ResourceKind, RunStatus, ValueType
from stackgraph.core.traceability import manifest as mf


def test_cycle_aborts_without_provider_calls(two_stack_deployment, provider):
    deployment = two_stack_deployment()
    deployment.get_stack("shared").depends_on("app")
    executor = Executor(deployment=deployment, provider=provider)

    report = executor.apply()

    assert report.status is RunStatus.ABORTED
    assert report.error.type == "CYCLIC_DEPENDENCY"
    assert report.error.details["scope"] == "deployment"
    assert provider.calls == []
    assert report.transitions == ()
    assert set(report.states().values()) == {NodeState.DECLARED}
    assert report.graph_fingerprint is None
    with pytest.raises(CyclicDependency):
        executor.plan()


def test_missing_parameter_aborts(two_stack_deployment, provider):
    deployment = two_stack_deployment()
    deployment.get_stack("app").require_input("zone_name", ValueType.STRING)

    report = Executor(deployment=deployment, provider=provider).apply()

    assert report.status is RunStatus.ABORTED
    assert report.error.type == "BROKEN_REFERENCE"
    assert report.error.details["producer"] == "parameters.zone_name"
    assert "parameters.zone_name" in report.error.hint
    assert provider.calls == []


def test_aborted_destroy(two_stack_deployment, provider):
    deployment = two_stack_deployment()
    deployment.get_stack("app").require_input("ghost", ValueType.STRING, from_stack="nowhere")

    report = Executor(deployment=deployment, provider=provider).destroy()

    assert report.operation == "destroy"
    assert report.status is RunStatus.ABORTED
    assert provider.calls == []


def test_abort_is_logged(two_stack_deployment, provider):
    deployment = two_stack_deployment()
    deployment.get_stack("shared").depends_on("app")

    Executor(deployment=deployment, provider=provider).apply()

    aborted = [e for e in deployment.events if e["event"] == "run_aborted"]
    assert len(aborted) == 1
    assert aborted[0]["level"] == "error"
    assert aborted[0]["error_type"] == "CYCLIC_DEPENDENCY"


def test_reading_binding_before_producer_is_internal_error(two_stack_deployment, provider):
    executor = Executor(deployment=two_stack_deployment(), provider=provider)
    graph = executor.plan()
    binding = ReferenceBinding(
        producer_id="shared/network",
        output_name="network_id",
        consumer_id="shared/sg",
        input_name="network_id",
    )

    with pytest.raises(UnresolvedReference) as exc:
        binding.resolve(graph.nodes)
    assert exc.value.details["producer_state"] == "declared"


def test_malformed_parameters_section_aborts(make_deployment, provider):
    deployment = make_deployment()
    deployment.config["parameters"] = ["not", "a", "dict"]
    deployment.add_stack(Stack("web", region="eu-west-1")).declare(
        ResourceKind.DNS_ZONE, "zone", {"domain_name": "example.com"}
    )

    for operation in ("apply", "destroy"):
        report = getattr(Executor(deployment=deployment, provider=provider), operation)()

        assert report.status is RunStatus.ABORTED
        assert report.operation == operation
        assert report.error.type == "CONFIGURATION_ERROR"
        assert report.error.details["exception_class"] == "InvalidSettingsError"
        assert "parameters" in report.error.message
    assert provider.calls == []
    assert deployment.locks.held() == []


def test_second_apply_on_same_deployment_aborts(two_stack_deployment, provider):
    manifest = mf.create_manifest(
        run_id="run-test-001",
        started_at=datetime(2026, 1, 16, tzinfo=timezone.utc),
        stackgraph_version="0.1.0",
        config_hash="abc",
    )
    deployment = two_stack_deployment()
    executor = Executor(deployment=deployment, provider=provider, manifest=manifest)
    executor.apply()
    calls = list(provider.calls)

    report = executor.apply()

    assert report.status is RunStatus.ABORTED
    assert report.error.type == "DEPLOYMENT_ALREADY_RUN"
    assert report.error.details["nodes"] == sorted(deployment.nodes())
    assert "prior_state" in report.error.hint
    assert set(report.states().values()) == {NodeState.APPLIED}
    assert provider.calls == calls
    assert deployment.locks.held() == []

    again = Executor(deployment=deployment, provider=provider).apply()
    assert again.error.type == "DEPLOYMENT_ALREADY_RUN"

    kinds = [e["event_type"] for e in manifest.events]
    assert kinds.count("run_started") == kinds.count("run_finished") == 2
    assert kinds[-1] == "run_finished"
    assert manifest.run["status"] == "aborted"
