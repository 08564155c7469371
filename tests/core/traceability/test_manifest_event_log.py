# tests/core/traceability/test_manifest_event_log.py
"""
Testes do Event Log do Manifest (traceability).

Os testes garantem que:
- eventos são adicionados somente por chamadas explícitas à API
- a ordem de inserção dos eventos é preservada
- os helpers de Node atualizam estado incremental e Event Log juntos
- a ordem de criação e os outputs podem ser recuperados do log

Decisões arquiteturais:
    - O Event Log não gera eventos implicitamente
    - Não há reordenação automática por timestamp
"""

import pytest
from datetime import datetime, timezone

try:
    from stackgraph.core.traceability.manifest import (
        add_event,
        applied_order,
        create_manifest,
        manifest_outputs,
        node_failed,
        node_finished,
        node_skipped,
        node_started,
        run_finished,
        run_started,
    )
except Exception as e:
    create_manifest = None
    _IMPORT_ERR = e
else:
    _IMPORT_ERR = None


def _require_imports():
    """
    Garante que a API de Event Log esteja disponível para os testes.

    Falha imediatamente, com o contrato esperado na mensagem, quando as
    funções canônicas não podem ser importadas.
    """
    if _IMPORT_ERR is not None:
        pytest.fail(
            "Missing event log APIs. Implement:\n"
            "- add_event(manifest, event_type, ts, node_id=None, payload=None)\n"
            "- run_started / node_started / node_finished / node_failed / node_skipped / run_finished\n"
            f"Import error: {_IMPORT_ERR}"
        )


def _ts(second: int) -> datetime:
    return datetime(2026, 1, 16, 12, 0, second, tzinfo=timezone.utc)


def _manifest():
    return create_manifest(
        run_id="run-003",
        started_at=_ts(0),
        stackgraph_version="0.1.0",
        config_hash="c" * 64,
    )


def test_event_log_appends_ordered_events():
    _require_imports()
    m = _manifest()

    add_event(m, event_type="run_started", ts=_ts(0), payload={"note": "begin"})
    add_event(m, event_type="node_started", ts=_ts(1), node_id="web/network", payload={"kind": "network"})

    assert len(m.events) == 2
    assert m.events[0] == {
        "event_type": "run_started",
        "timestamp": "2026-01-16T12:00:00+00:00",
        "payload": {"note": "begin"},
    }
    assert m.events[1]["node_id"] == "web/network"


def test_node_lifecycle_updates_state_and_log():
    _require_imports()
    m = _manifest()

    run_started(m, ts=_ts(0), operation="apply")
    node_started(m, node_id="web/network", kind="network", stack="web", ts=_ts(1), action="create")
    node_finished(m, node_id="web/network", ts=_ts(3), status="applied", outputs={"network_id": "vpc-1"})
    node_started(m, node_id="web/sg", kind="security_group", stack="web", ts=_ts(3), action="create")
    node_failed(m, node_id="web/sg", ts=_ts(4), error={"type": "PROVIDER_ERROR", "message": "boom"})
    node_skipped(m, node_id="web/template", ts=_ts(4), reason="dependência web/sg falhou")
    run_finished(m, ts=_ts(5), status="partial_failure")

    assert [e["event_type"] for e in m.events] == [
        "run_started",
        "node_started",
        "node_finished",
        "node_started",
        "node_failed",
        "node_skipped",
        "run_finished",
    ]
    network = m.nodes["web/network"]
    assert network["status"] == "applied"
    assert network["duration_ms"] == 2000
    assert network["outputs"] == {"network_id": "vpc-1"}
    assert m.nodes["web/sg"]["error"]["type"] == "PROVIDER_ERROR"
    assert m.nodes["web/template"] == {
        "node_id": "web/template",
        "status": "skipped",
        "reason": "dependência web/sg falhou",
    }
    assert m.run["status"] == "partial_failure"


def test_delete_action_marks_destroying():
    _require_imports()
    m = _manifest()

    node_started(m, node_id="web/network", kind="network", stack="web", ts=_ts(1), action="delete")
    assert m.nodes["web/network"]["status"] == "destroying"

    node_finished(m, node_id="web/network", ts=_ts(2), status="destroyed")
    assert m.nodes["web/network"]["status"] == "destroyed"
    assert "outputs" not in m.nodes["web/network"]


def test_applied_order_and_outputs():
    _require_imports()
    m = _manifest()

    for i, nid in enumerate(["web/zone", "web/network", "web/sg"]):
        node_started(m, node_id=nid, kind="x", stack="web", ts=_ts(i), action="create")
    node_finished(m, node_id="web/network", ts=_ts(4), status="applied", outputs={"network_id": "vpc-1"})
    node_failed(m, node_id="web/sg", ts=_ts(5), error={"type": "PROVIDER_ERROR"})
    node_finished(m, node_id="web/zone", ts=_ts(6), status="applied", outputs={"zone_id": "Z1"})

    assert applied_order(m) == ["web/network", "web/zone"]
    assert manifest_outputs(m) == {
        "web/network": {"network_id": "vpc-1"},
        "web/zone": {"zone_id": "Z1"},
    }
