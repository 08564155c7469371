# src/stackgraph/core/traceability/manifest.py
"""
DeploymentManifest — registro forense de execuções do stackgraph.

O Manifest consolida, de forma determinística e auditável:
    - metadados da execução (run_id, operação, versão, início)
    - hashes da configuração efetiva e do grafo planejado
    - estado incremental de cada Node (estado, outputs, erro)
    - Event Log ordenado de eventos explícitos

Eventos canônicos:
    run_started, node_started, node_finished, node_failed,
    node_skipped, run_finished

Um Manifest de apply é suficiente para destruir o deploy mais tarde:
`applied_order` devolve a ordem de criação registrada e
`manifest_outputs` os outputs de cada Node aplicado.

Decisões arquiteturais:
    - UTC é o timezone canônico dos timestamps
    - Persistência em JSON determinístico (chaves ordenadas)
    - Nenhum evento é emitido implicitamente

Limites explícitos:
    - Não executa o deploy
    - Não decide políticas de execução
    - Não migra versões de schema
"""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence

RUN_STARTED = "run_started"
NODE_STARTED = "node_started"
NODE_FINISHED = "node_finished"
NODE_FAILED = "node_failed"
NODE_SKIPPED = "node_skipped"
RUN_FINISHED = "run_finished"


def _utc(dt: datetime) -> datetime:
    """Timestamps sem timezone são assumidos como UTC."""
    return dt.replace(tzinfo=timezone.utc) if dt.tzinfo is None else dt.astimezone(timezone.utc)


def _iso(dt: datetime) -> str:
    return _utc(dt).isoformat()


def _elapsed_ms(started_iso: Optional[str], finished: datetime) -> int:
    if not started_iso:
        return 0
    delta = _utc(finished) - _utc(datetime.fromisoformat(started_iso))
    return max(0, int(delta.total_seconds() * 1000))


@dataclass
class DeploymentManifest:
    """
    Manifest de uma execução.

    Campos:
        - run: metadados (run_id, operation, started_at, stackgraph_version)
        - inputs: config_hash e graph_hash
        - nodes: estado incremental indexado por NodeId
        - events: Event Log ordenado
    """

    run: Dict[str, Any]
    inputs: Dict[str, Any]
    nodes: Dict[str, Dict[str, Any]] = field(default_factory=dict)
    events: List[Dict[str, Any]] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "run": dict(self.run),
            "inputs": dict(self.inputs),
            "nodes": {k: dict(v) for k, v in self.nodes.items()},
            "events": [dict(e) for e in self.events],
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "DeploymentManifest":
        return cls(
            run=dict(data.get("run", {})),
            inputs=dict(data.get("inputs", {})),
            nodes={k: dict(v) for k, v in (data.get("nodes", {}) or {}).items()},
            events=[dict(e) for e in (data.get("events", []) or [])],
        )


def create_manifest(
    *,
    run_id: str,
    started_at: datetime,
    stackgraph_version: str,
    config_hash: str,
    operation: str = "apply",
    graph_hash: Optional[str] = None,
) -> DeploymentManifest:
    """
    Cria o Manifest inicial de uma execução.

    O Event Log inicia vazio: `run_started` é registrado pelo Executor.

    Args:
        run_id (str): Identificador da execução.
        started_at (datetime): Início da execução.
        stackgraph_version (str): Versão do stackgraph em uso.
        config_hash (str): Hash da configuração efetiva.
        operation (str): `apply` ou `destroy`.
        graph_hash (Optional[str]): Fingerprint do grafo, se já conhecido.

    Returns:
        DeploymentManifest: Manifest com `nodes` e `events` vazios.
    """
    return DeploymentManifest(
        run={
            "run_id": run_id,
            "operation": operation,
            "started_at": _iso(started_at),
            "stackgraph_version": stackgraph_version,
        },
        inputs={
            "config_hash": config_hash,
            "graph_hash": graph_hash,
        },
        nodes={},
        events=[],
    )


def add_event(
    manifest: DeploymentManifest,
    *,
    event_type: str,
    ts: datetime,
    node_id: Optional[str] = None,
    payload: Optional[Dict[str, Any]] = None,
) -> None:
    """Adiciona um evento ao Event Log, preservando a ordem de chamada."""
    ev: Dict[str, Any] = {"event_type": event_type, "timestamp": _iso(ts)}
    if node_id is not None:
        ev["node_id"] = node_id
    if payload is not None:
        ev["payload"] = payload
    manifest.events.append(ev)


def record_graph(manifest: DeploymentManifest, *, graph_hash: str, order: Sequence[str]) -> None:
    """Registra o fingerprint e a ordem planejada do grafo."""
    manifest.inputs["graph_hash"] = graph_hash
    manifest.run["planned_order"] = list(order)


def run_started(manifest: DeploymentManifest, *, ts: datetime, operation: str) -> None:
    manifest.run["operation"] = operation
    add_event(manifest, event_type=RUN_STARTED, ts=ts, payload={"operation": operation})


def node_started(
    manifest: DeploymentManifest,
    *,
    node_id: str,
    kind: str,
    stack: str,
    ts: datetime,
    action: str,
) -> None:
    """
    Registra o início da materialização (ou remoção) de um Node.

    `action` é `create`, `update` ou `delete`.
    """
    n = manifest.nodes.setdefault(node_id, {"node_id": node_id})
    n.update(
        {
            "kind": kind,
            "stack": stack,
            "status": "destroying" if action == "delete" else "applying",
            "action": action,
            "started_at": _iso(ts),
        }
    )
    add_event(
        manifest,
        event_type=NODE_STARTED,
        ts=ts,
        node_id=node_id,
        payload={"kind": kind, "stack": stack, "action": action},
    )


def node_finished(
    manifest: DeploymentManifest,
    *,
    node_id: str,
    ts: datetime,
    status: str,
    outputs: Optional[Dict[str, Any]] = None,
) -> None:
    """Registra a conclusão de um Node (`applied` ou `destroyed`) e seus outputs."""
    n = manifest.nodes.setdefault(node_id, {"node_id": node_id})
    n.update(
        {
            "status": status,
            "finished_at": _iso(ts),
            "duration_ms": _elapsed_ms(n.get("started_at"), ts),
        }
    )
    if outputs is not None:
        n["outputs"] = dict(outputs)

    add_event(
        manifest,
        event_type=NODE_FINISHED,
        ts=ts,
        node_id=node_id,
        payload={"status": status, "duration_ms": n["duration_ms"]},
    )


def node_failed(manifest: DeploymentManifest, *, node_id: str, ts: datetime, error: Dict[str, Any]) -> None:
    n = manifest.nodes.setdefault(node_id, {"node_id": node_id})
    n.update({"status": "failed", "finished_at": _iso(ts), "error": dict(error)})
    add_event(manifest, event_type=NODE_FAILED, ts=ts, node_id=node_id, payload={"error": dict(error)})


def node_skipped(manifest: DeploymentManifest, *, node_id: str, ts: datetime, reason: str) -> None:
    n = manifest.nodes.setdefault(node_id, {"node_id": node_id})
    n.update({"status": "skipped", "reason": reason})
    add_event(manifest, event_type=NODE_SKIPPED, ts=ts, node_id=node_id, payload={"reason": reason})


def run_finished(manifest: DeploymentManifest, *, ts: datetime, status: str) -> None:
    manifest.run["finished_at"] = _iso(ts)
    manifest.run["status"] = status
    add_event(manifest, event_type=RUN_FINISHED, ts=ts, payload={"status": status})


def applied_order(manifest: DeploymentManifest) -> List[str]:
    """Ordem de criação registrada: Nodes com `node_finished` em `applied`, na ordem do Event Log."""
    order: List[str] = []
    for ev in manifest.events:
        if ev.get("event_type") != NODE_FINISHED:
            continue
        if (ev.get("payload") or {}).get("status") == "applied":
            order.append(ev["node_id"])
    return order


def manifest_outputs(manifest: DeploymentManifest) -> Dict[str, Dict[str, Any]]:
    """Outputs registrados de cada Node aplicado."""
    return {
        nid: dict(n.get("outputs") or {})
        for nid, n in manifest.nodes.items()
        if n.get("status") == "applied"
    }


def save_manifest(manifest: DeploymentManifest, path: Path) -> None:
    """
    Persiste o Manifest em JSON determinístico.

    Raises:
        OSError: Falha ao criar diretórios ou escrever o arquivo.
        TypeError: Conteúdo não serializável em JSON.
    """
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(
        json.dumps(manifest.to_dict(), ensure_ascii=False, indent=2, sort_keys=True),
        encoding="utf-8",
    )


def load_manifest(path: Path) -> DeploymentManifest:
    data = json.loads(path.read_text(encoding="utf-8"))
    return DeploymentManifest.from_dict(data)
