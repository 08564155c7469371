# src/stackgraph/core/engine/report.py
"""
Relatório estruturado de uma execução (apply ou destroy).

O RunReport é o único resultado de uma execução do Executor e reflete
explicitamente o estado final de cada Node:
    - `applied`  → outputs materializados
    - `failed`   → ErrorPayload capturado
    - `skipped`  → motivo (dependência falhou, cancelamento, fail-fast)

Status da execução:
    - success          → todos os Nodes atingiram o estado final esperado
    - partial_failure  → ao menos um Node falhou ou foi pulado
    - aborted          → grafo inválido ou Stack bloqueada; nada foi tentado
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Tuple

from stackgraph.core.errors import ErrorPayload
from stackgraph.core.graph.types import NodeId, NodeState, ResourceKind, RunStatus, StackState


@dataclass(frozen=True)
class NodeReport:
    node_id: NodeId
    stack: str
    kind: ResourceKind
    state: NodeState
    outputs: Optional[Dict[str, Any]] = None
    error: Optional[ErrorPayload] = None
    reason: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "node_id": self.node_id,
            "stack": self.stack,
            "kind": self.kind.value,
            "state": self.state.value,
            "outputs": dict(self.outputs) if self.outputs is not None else None,
            "error": self.error.to_dict() if self.error else None,
            "reason": self.reason,
        }


@dataclass(frozen=True)
class RunReport:
    """
    Resultado agregado de uma execução.

    Campos:
        - order: Nodes na ordem em que atingiram o estado final com sucesso
          (ordem de criação no apply, ordem de remoção no destroy)
        - transitions: sequência registrada de transições `(NodeId, estado)`
        - stack_outputs: exports resolvidos por Stack
        - stacks: estado agregado de cada Stack ao fim da execução
        - error: payload do erro que abortou a execução, se houver
    """

    run_id: str
    operation: str
    status: RunStatus
    nodes: Dict[NodeId, NodeReport] = field(default_factory=dict)
    order: Tuple[NodeId, ...] = ()
    transitions: Tuple[Tuple[NodeId, NodeState], ...] = ()
    stack_outputs: Dict[str, Dict[str, Any]] = field(default_factory=dict)
    stacks: Dict[str, StackState] = field(default_factory=dict)
    error: Optional[ErrorPayload] = None
    graph_fingerprint: Optional[str] = None

    def states(self) -> Dict[NodeId, NodeState]:
        return {nid: r.state for nid, r in self.nodes.items()}

    def in_state(self, state: NodeState) -> List[NodeId]:
        return sorted(nid for nid, r in self.nodes.items() if r.state is state)

    def transitions_to(self, state: NodeState) -> List[NodeId]:
        return [nid for nid, s in self.transitions if s is state]

    def stacks_in_state(self, state: StackState) -> List[str]:
        return sorted(name for name, s in self.stacks.items() if s is state)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "run_id": self.run_id,
            "operation": self.operation,
            "status": self.status.value,
            "nodes": {nid: r.to_dict() for nid, r in sorted(self.nodes.items())},
            "order": list(self.order),
            "transitions": [[nid, s.value] for nid, s in self.transitions],
            "stack_outputs": {k: dict(v) for k, v in self.stack_outputs.items()},
            "stacks": {k: v.value for k, v in sorted(self.stacks.items())},
            "error": self.error.to_dict() if self.error else None,
            "graph_fingerprint": self.graph_fingerprint,
        }
