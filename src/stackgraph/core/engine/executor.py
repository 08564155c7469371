# src/stackgraph/core/engine/executor.py
"""
Executor topológico do stackgraph.

Orquestra **quando** e **em que ordem** o provider é chamado para cada
Node do grafo planejado:

    - apply(): Nodes prontos (todos os predecessores `applied`) materializam
      concorrentemente num pool de threads limitado por `engine.parallelism`
    - destroy(): remove os Nodes no inverso exato da ordem de criação

Políticas:
    - falha do provider → Node `failed`, dependentes transitivos `skipped`;
      ramos independentes seguem até o fim
    - `engine.fail_fast: true` → nenhum Node novo inicia após a primeira falha
    - cancel() → chamadas em andamento terminam, nenhum Node novo inicia,
      os restantes ficam `skipped`
    - ConfigurationError, ConfigError, Deployment já executado ou Stack
      bloqueada → RunReport `aborted`, nenhum Node chega a `applying`
    - UnresolvedReference é bug interno e é propagada

Decisões arquiteturais:
    - Bindings são resolvidos exclusivamente aqui, imediatamente antes da
      submissão do Node ao pool (nunca por polling)
    - O agendamento (fila de prontos, transições registradas, Manifest e
      log) é mutado apenas pela thread que chamou apply/destroy; o worker
      executa a chamada ao provider e a transição do próprio Node para
      `applied`/`failed`, sob o lock do Node
    - Cada run detém o lock exclusivo de todas as Stacks do deploy
"""

from __future__ import annotations

import threading
from concurrent.futures import FIRST_COMPLETED, Future, ThreadPoolExecutor, wait
from datetime import datetime, timezone
from typing import Any, Callable, Dict, List, Mapping, Optional, Sequence, Tuple

from stackgraph.core.config.settings import EngineSettings
from stackgraph.core.config.errors import ConfigError
from stackgraph.core.errors import deployment_already_run, exception_to_payload
from stackgraph.core.exceptions import ConfigurationError, ProviderError, StackLocked
from stackgraph.core.graph.binding import ReferenceBinding
from stackgraph.core.graph.deployment import Deployment
from stackgraph.core.graph.node import ResourceNode
from stackgraph.core.graph.types import NodeId, NodeState, ResourceKind, RunStatus, StackState
from stackgraph.core.traceability import manifest as mf

from .planner import DependencyGraph, build_graph
from .provider import Provider
from .report import NodeReport, RunReport

_CANCELLED = "execução cancelada"


def _now() -> datetime:
    return datetime.now(timezone.utc)


class Executor:
    """Executor canônico do stackgraph (Linker + Builder + execução)."""

    def __init__(
        self,
        *,
        deployment: Deployment,
        provider: Provider,
        settings: Optional[EngineSettings] = None,
        manifest: Optional[mf.DeploymentManifest] = None,
        prior_state: Optional[Mapping[NodeId, Mapping[str, Any]]] = None,
    ):
        self.deployment = deployment
        self.provider = provider
        self.settings = settings or EngineSettings.from_config(deployment.config)
        self.manifest = manifest
        self.prior_state: Dict[NodeId, Dict[str, Any]] = {k: dict(v) for k, v in (prior_state or {}).items()}

        self._graph: Optional[DependencyGraph] = None
        self._cancelled = threading.Event()
        self._owner = f"{deployment.run_id}#{id(self):x}"
        self._reset()

    def _reset(self) -> None:
        self._transitions: List[Tuple[NodeId, NodeState]] = []
        self._order: List[NodeId] = []
        self._reasons: Dict[NodeId, str] = {}
        self._halt: Optional[str] = None

    # -----------------------------
    # API pública
    # -----------------------------
    def plan(self) -> DependencyGraph:
        """
        Linka e valida o deploy, retornando o grafo planejado.

        Raises:
            ConfigurationError: Grafo inválido (nada é executado).
        """
        if self._graph is None:
            self._graph = build_graph(self.deployment)
        return self._graph

    def cancel(self) -> None:
        """Solicita cancelamento: nenhum Node novo inicia a partir daqui."""
        if not self._cancelled.is_set():
            self._cancelled.set()
            self.deployment.log(level="warning", message="cancelamento solicitado", event="run_cancel_requested")

    @property
    def cancelled(self) -> bool:
        return self._cancelled.is_set()

    def apply(self) -> RunReport:
        """Cria/atualiza todos os Nodes do deploy respeitando o DAG."""
        self._reset()
        self._record(mf.run_started, operation="apply")
        self.deployment.log(level="info", message="apply iniciado", event="run_started")

        try:
            graph = self.plan()
        except (ConfigurationError, ConfigError) as e:
            return self._aborted("apply", e)

        stale = [nid for nid, node in graph.nodes.items() if node.state is not NodeState.DECLARED]
        if stale:
            error = deployment_already_run(run_id=self.deployment.run_id, nodes=stale)
            return self._aborted("apply", error, graph)

        stacks = self._stack_names()
        try:
            self.deployment.locks.acquire(stacks, self._owner)
        except StackLocked as e:
            return self._aborted("apply", e, graph)

        try:
            self._record_graph(graph)
            for nid in graph.order:
                self._set_state(graph.nodes[nid], NodeState.PLANNED)
            self._run_apply(graph)
        finally:
            self.deployment.locks.release(stacks, self._owner)

        ok = all(node.state is NodeState.APPLIED for node in graph.nodes.values())
        return self._finish("apply", graph, RunStatus.SUCCESS if ok else RunStatus.PARTIAL_FAILURE)

    def destroy(
        self,
        report: Optional[RunReport] = None,
        *,
        creation_order: Optional[Sequence[NodeId]] = None,
    ) -> RunReport:
        """
        Remove os Nodes aplicados no inverso exato da ordem de criação.

        A ordem de criação vem, por prioridade, de `creation_order`, da
        ordem registrada em `report` ou da ordem topológica do grafo. Nodes
        ainda não aplicados neste processo são adotados de `prior_state`
        (ex.: outputs de um Manifest anterior).

        Uma falha de remoção marca o Node `failed` e pula (`skipped`) os
        Nodes dos quais ele depende, que permanecem aplicados.
        """
        self._reset()
        self._record(mf.run_started, operation="destroy")
        self.deployment.log(level="info", message="destroy iniciado", event="run_started")

        try:
            graph = self.plan()
        except (ConfigurationError, ConfigError) as e:
            return self._aborted("destroy", e)

        if creation_order is None and report is not None:
            creation_order = report.order

        stacks = self._stack_names()
        try:
            self.deployment.locks.acquire(stacks, self._owner)
        except StackLocked as e:
            return self._aborted("destroy", e, graph)

        try:
            self._record_graph(graph)
            self._adopt_prior_state(graph)
            order = [
                nid
                for nid in (creation_order if creation_order is not None else graph.order)
                if nid in graph.nodes and graph.nodes[nid].state is NodeState.APPLIED
            ]
            targets = graph.destruction_order(order)
            self._run_destroy(graph, targets)
        finally:
            self.deployment.locks.release(stacks, self._owner)

        ok = all(graph.nodes[nid].state is NodeState.DESTROYED for nid in targets)
        return self._finish("destroy", graph, RunStatus.SUCCESS if ok else RunStatus.PARTIAL_FAILURE)

    # -----------------------------
    # Apply
    # -----------------------------
    def _run_apply(self, graph: DependencyGraph) -> None:
        position = {nid: i for i, nid in enumerate(graph.order)}
        waiting = {nid: set(graph.predecessors[nid]) for nid in graph.order}
        ready = [nid for nid in graph.order if not waiting[nid]]
        running: Dict[Future, NodeId] = {}
        limit = self.settings.parallelism

        with ThreadPoolExecutor(max_workers=limit, thread_name_prefix="stackgraph") as pool:
            while ready or running:
                while ready and len(running) < limit and not self._stopping():
                    nid = ready.pop(0)
                    running[self._submit(pool, graph, nid)] = nid

                if not running:
                    break

                done, _ = wait(list(running), return_when=FIRST_COMPLETED)
                for future in sorted(done, key=lambda f: position[running[f]]):
                    nid = running.pop(future)
                    error = future.exception()
                    if error is None:
                        self._applied(graph.nodes[nid])
                        for child in graph.successors[nid]:
                            waiting[child].discard(nid)
                            if not waiting[child] and graph.nodes[child].state is NodeState.PLANNED:
                                ready.append(child)
                        continue

                    if not isinstance(error, ProviderError):
                        raise error
                    self._failed(graph.nodes[nid])
                    reason = f"dependência {nid} falhou"
                    for dep in sorted(graph.dependents(nid), key=position.get):
                        if graph.nodes[dep].state is NodeState.PLANNED:
                            self._skip(graph.nodes[dep], reason)
                    ready = [r for r in ready if graph.nodes[r].state is NodeState.PLANNED]
                    if self.settings.fail_fast and self._halt is None:
                        self._halt = f"fail_fast: execução interrompida após falha de {nid}"

                ready.sort(key=position.get)

        reason = _CANCELLED if self.cancelled else self._halt
        for nid in graph.order:
            node = graph.nodes[nid]
            if node.state is NodeState.PLANNED:
                self._skip(node, reason or _CANCELLED)

    def _submit(self, pool: ThreadPoolExecutor, graph: DependencyGraph, nid: NodeId) -> Future:
        node = graph.nodes[nid]
        # UnresolvedReference aqui é bug interno: propaga
        inputs = {
            name: value.resolve(graph.nodes) if isinstance(value, ReferenceBinding) else value
            for name, value in graph.inputs[nid].items()
        }
        current = None if node.spec.virtual else self.prior_state.get(nid)
        action = "update" if current is not None else "create"

        self._set_state(node, NodeState.APPLYING)
        self._record(mf.node_started, node_id=nid, kind=node.kind.value, stack=node.stack, action=action)
        self.deployment.log(level="info", message=f"{action} {node.kind.value}", node_id=nid, event="node_started")
        return pool.submit(node.materialize, self.provider, inputs, current=current)

    def _applied(self, node: ResourceNode) -> None:
        self._transitions.append((node.id, node.state))
        self._order.append(node.id)
        self._record(mf.node_finished, node_id=node.id, status=node.state.value, outputs=dict(node.outputs or {}))
        self.deployment.log(level="info", message="aplicado", node_id=node.id, event="node_finished")

    def _failed(self, node: ResourceNode) -> None:
        self._transitions.append((node.id, node.state))
        error = node.error.to_dict() if node.error else {}
        self._record(mf.node_failed, node_id=node.id, error=error)
        self.deployment.log(
            level="error",
            message=error.get("message", "falha do provider"),
            node_id=node.id,
            event="node_failed",
            error_type=error.get("type"),
        )

    def _stopping(self) -> bool:
        return self.cancelled or self._halt is not None

    # -----------------------------
    # Destroy
    # -----------------------------
    def _adopt_prior_state(self, graph: DependencyGraph) -> None:
        for nid, outputs in sorted(self.prior_state.items()):
            node = graph.nodes.get(nid)
            if node is None:
                self.deployment.add_warning(node_id=nid, message="estado anterior de Node não declarado; ignorado")
                continue
            if node.state is NodeState.DECLARED:
                node.restore(outputs)

    def _run_destroy(self, graph: DependencyGraph, targets: Sequence[NodeId]) -> None:
        for nid in targets:
            node = graph.nodes[nid]
            if node.state is not NodeState.APPLIED:
                continue
            if self._stopping():
                self._skip(node, _CANCELLED if self.cancelled else self._halt or _CANCELLED)
                continue

            self._set_state(node, NodeState.DESTROYING)
            self._record(mf.node_started, node_id=nid, kind=node.kind.value, stack=node.stack, action="delete")
            self.deployment.log(level="info", message=f"delete {node.kind.value}", node_id=nid, event="node_started")
            try:
                node.destroy(self.provider)
            except ProviderError:
                self._failed(node)
                reason = f"remoção de {nid} falhou"
                for dep in sorted(graph.dependencies(nid)):
                    if graph.nodes[dep].state is NodeState.APPLIED:
                        self._skip(graph.nodes[dep], reason)
                if self.settings.fail_fast and self._halt is None:
                    self._halt = f"fail_fast: execução interrompida após falha de {nid}"
                continue

            self._transitions.append((nid, node.state))
            self._order.append(nid)
            self._record(mf.node_finished, node_id=nid, status=node.state.value)
            self.deployment.log(level="info", message="removido", node_id=nid, event="node_finished")

    # -----------------------------
    # Helpers
    # -----------------------------
    def _stack_names(self) -> List[str]:
        return sorted(s.name for s in self.deployment.stacks())

    def _set_state(self, node: ResourceNode, state: NodeState) -> None:
        node.transition(state)
        self._transitions.append((node.id, state))

    def _skip(self, node: ResourceNode, reason: str) -> None:
        self._set_state(node, NodeState.SKIPPED)
        self._reasons[node.id] = reason
        self._record(mf.node_skipped, node_id=node.id, reason=reason)
        self.deployment.log(level="warning", message=reason, node_id=node.id, event="node_skipped")

    def _record(self, fn: Callable[..., None], **kwargs: Any) -> None:
        if self.manifest is not None:
            fn(self.manifest, ts=_now(), **kwargs)

    def _record_graph(self, graph: DependencyGraph) -> None:
        if self.manifest is not None:
            mf.record_graph(self.manifest, graph_hash=graph.fingerprint(), order=graph.order)

    def _aborted(
        self,
        operation: str,
        exc: Exception,
        graph: Optional[DependencyGraph] = None,
    ) -> RunReport:
        payload = exception_to_payload(exc)
        self.deployment.log(
            level="error",
            message=payload.message,
            event="run_aborted",
            error_type=payload.type,
        )
        nodes = graph.nodes if graph is not None else self.deployment.nodes()
        report = RunReport(
            run_id=self.deployment.run_id,
            operation=operation,
            status=RunStatus.ABORTED,
            nodes={nid: self._node_report(node) for nid, node in sorted(nodes.items())},
            stacks=self._stack_states(),
            error=payload,
            graph_fingerprint=graph.fingerprint() if graph is not None else None,
        )
        self._record(mf.run_finished, status=report.status.value)
        return report

    def _node_report(self, node: ResourceNode) -> NodeReport:
        applied = node.state is NodeState.APPLIED and node.outputs is not None
        return NodeReport(
            node_id=node.id,
            stack=node.stack,
            kind=node.kind,
            state=node.state,
            outputs=dict(node.outputs) if applied else None,
            error=node.error if node.state is NodeState.FAILED else None,
            reason=self._reasons.get(node.id),
        )

    def _stack_outputs(self, graph: DependencyGraph) -> Dict[str, Dict[str, Any]]:
        result: Dict[str, Dict[str, Any]] = {}
        for stack in sorted(self.deployment.stacks(), key=lambda s: s.name):
            values: Dict[str, Any] = {}
            for name, exported in sorted(stack.exports.items()):
                node = graph.nodes[exported.node_id]
                if node.state is NodeState.APPLIED and node.outputs is not None:
                    values[name] = node.outputs[exported.output_name]
            for node in stack.nodes():
                if node.kind is ResourceKind.STACK_OUTPUT and node.state is NodeState.APPLIED:
                    values.setdefault(node.name, (node.outputs or {}).get("value"))
            result[stack.name] = values
        return result

    def _stack_states(self) -> Dict[str, StackState]:
        return {stack.name: stack.state() for stack in sorted(self.deployment.stacks(), key=lambda s: s.name)}

    def _finish(self, operation: str, graph: DependencyGraph, status: RunStatus) -> RunReport:
        report = RunReport(
            run_id=self.deployment.run_id,
            operation=operation,
            status=status,
            nodes={nid: self._node_report(graph.nodes[nid]) for nid in graph.order},
            order=tuple(self._order),
            transitions=tuple(self._transitions),
            stack_outputs=self._stack_outputs(graph),
            stacks=self._stack_states(),
            graph_fingerprint=graph.fingerprint(),
        )
        self._record(mf.run_finished, status=status.value)
        self.deployment.log(
            level="info" if status is RunStatus.SUCCESS else "warning",
            message=f"{operation} finalizado: {status.value}",
            event="run_finished",
            counts={s.value: len(report.in_state(s)) for s in NodeState if report.in_state(s)},
        )
        return report
