# src/stackgraph/core/engine/planner.py
"""
Construtor do grafo de dependências de um deploy (DAG).

Este módulo valida a estrutura declarada por todas as Stacks e produz um
`DependencyGraph` único, com ordem topológica determinística.

Arestas do grafo:
    - Bindings intra-Stack (`producer.output → consumer.input`)
    - Bindings sintetizados pelo Linker entre Stacks
    - barreiras de Stack (link entre regiões ou `depends_on`): todo Node
      da Stack produtora precede todo Node da Stack consumidora

Ordem das validações:
    1. literais de cada Node (`InvalidInput`)
    2. referências entre Stacks (Linker)
    3. Bindings intra-Stack: produtor existe e declara o output; tipos
       compatíveis
    4. ciclos: primeiro o subgrafo local de cada Stack, depois o grafo de
       Stacks, por fim o grafo global
    5. ordenação topológica (Kahn com desempate lexicográfico por NodeId)

Invariantes:
    - Nenhum Node aparece antes de qualquer produtor do qual depende
    - A mesma declaração produz sempre o mesmo grafo e a mesma ordem
    - Qualquer erro estrutural é levantado antes de qualquer chamada ao provider

Limites explícitos:
    - Não materializa Nodes
    - Não altera estado de Nodes nem de Stacks
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, Iterable, List, Mapping, Optional, Sequence, Set, Tuple

from stackgraph.core.config.hashing import canonical_hash
from stackgraph.core.errors import broken_reference, cyclic_dependency, type_mismatch, unknown_export
from stackgraph.core.graph.binding import ReferenceBinding
from stackgraph.core.graph.deployment import Deployment
from stackgraph.core.graph.node import ResourceNode
from stackgraph.core.graph.types import NodeId

from .linker import LinkResult, link

_WHITE, _GREY, _BLACK = 0, 1, 2


def find_cycle(vertices: Iterable[str], successors: Mapping[str, Iterable[str]]) -> Optional[List[str]]:
    """
    Busca em profundidade com marcador de pilha de recursão.

    Retorna os membros do primeiro ciclo encontrado, em ordem, repetindo o
    vértice inicial ao final (`[a, b, a]`), ou None se o grafo for acíclico.
    A travessia é iterativa e visita vértices em ordem lexicográfica.
    """
    color: Dict[str, int] = {v: _WHITE for v in vertices}

    for root in sorted(color):
        if color[root] != _WHITE:
            continue
        color[root] = _GREY
        path = [root]
        pending = [iter(sorted(successors.get(root, ())))]

        while pending:
            child = next(pending[-1], None)
            if child is None:
                color[path.pop()] = _BLACK
                pending.pop()
                continue
            state = color.get(child, _WHITE)
            if state == _GREY:
                return path[path.index(child):] + [child]
            if state == _WHITE:
                color[child] = _GREY
                path.append(child)
                pending.append(iter(sorted(successors.get(child, ()))))
    return None


def _toposort(
    ids: Sequence[NodeId],
    predecessors: Mapping[NodeId, Set[NodeId]],
    successors: Mapping[NodeId, Set[NodeId]],
) -> List[NodeId]:
    incoming = {nid: len(predecessors[nid]) for nid in ids}
    ready = sorted(nid for nid, count in incoming.items() if count == 0)
    order: List[NodeId] = []

    while ready:
        nid = ready.pop(0)  # menor NodeId
        order.append(nid)
        for child in sorted(successors[nid]):
            incoming[child] -= 1
            if incoming[child] == 0:
                ready.append(child)
                ready.sort()

    if len(order) != len(ids):
        stuck = sorted(set(ids) - set(order))
        raise cyclic_dependency(cycle=find_cycle(stuck, successors) or stuck)
    return order


@dataclass(frozen=True)
class DependencyGraph:
    """
    Grafo de dependências planejado para um deploy.

    Campos:
        - nodes: NodeId → ResourceNode (os mesmos objetos do Deployment)
        - inputs: inputs efetivos por Node (declarados + sintetizados pelo Linker)
        - predecessors / successors: arestas do DAG
        - order: ordem topológica determinística (ordem de criação)
        - links: resultado do Linker usado na construção
    """

    nodes: Mapping[NodeId, ResourceNode]
    inputs: Mapping[NodeId, Mapping[str, Any]]
    predecessors: Mapping[NodeId, Set[NodeId]]
    successors: Mapping[NodeId, Set[NodeId]]
    order: Tuple[NodeId, ...]
    links: LinkResult

    def stack_of(self, nid: NodeId) -> str:
        return self.nodes[nid].stack

    def bindings_for(self, nid: NodeId) -> List[ReferenceBinding]:
        return [v for _, v in sorted(self.inputs[nid].items()) if isinstance(v, ReferenceBinding)]

    def _reach(self, nid: NodeId, edges: Mapping[NodeId, Set[NodeId]]) -> Set[NodeId]:
        seen: Set[NodeId] = set()
        frontier = list(edges[nid])
        while frontier:
            current = frontier.pop()
            if current in seen:
                continue
            seen.add(current)
            frontier.extend(edges[current])
        return seen

    def dependents(self, nid: NodeId) -> Set[NodeId]:
        """Dependentes transitivos (tudo que consome, direta ou indiretamente, `nid`)."""
        return self._reach(nid, self.successors)

    def dependencies(self, nid: NodeId) -> Set[NodeId]:
        """Dependências transitivas de `nid`."""
        return self._reach(nid, self.predecessors)

    def creation_order(self) -> List[NodeId]:
        return list(self.order)

    def destruction_order(self, creation_order: Optional[Sequence[NodeId]] = None) -> List[NodeId]:
        """Inverso exato da ordem de criação (registrada ou planejada)."""
        return list(reversed(list(creation_order if creation_order is not None else self.order)))

    def edges(self) -> List[Tuple[NodeId, NodeId]]:
        return sorted((p, c) for p, children in self.successors.items() for c in children)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "nodes": {
                nid: {"kind": node.kind.value, "stack": node.stack}
                for nid, node in sorted(self.nodes.items())
            },
            "edges": [list(e) for e in self.edges()],
            "order": list(self.order),
            "links": [
                {
                    "producer_stack": lk.producer_stack,
                    "export": lk.export_name,
                    "consumer_stack": lk.consumer_stack,
                    "input": lk.input_name,
                    "cross_region": lk.cross_region,
                }
                for lk in self.links.links
            ],
            "barriers": [list(b) for b in self.links.barriers],
        }

    def fingerprint(self) -> str:
        """SHA-256 da representação canônica do grafo."""
        return canonical_hash(self.to_dict())


def _check_intra_stack_binding(nodes: Mapping[NodeId, ResourceNode], binding: ReferenceBinding) -> None:
    producer = nodes.get(binding.producer_id)
    if producer is None:
        raise broken_reference(
            consumer=f"{binding.consumer_id}.{binding.input_name}",
            producer=binding.producer_id,
            reason="Node produtor não declarado",
        )
    outputs = producer.spec.declare_outputs()
    if binding.output_name not in outputs:
        raise unknown_export(producer=producer.id, name=binding.output_name, available=list(outputs))

    consumer = nodes[binding.consumer_id]
    expected = consumer.spec.declare_inputs()[binding.input_name].type
    actual = outputs[binding.output_name]
    if not expected.compatible_with(actual):
        raise type_mismatch(
            consumer=consumer.id,
            name=binding.input_name,
            expected=expected.value,
            actual=actual.value,
        )


def build_graph(deployment: Deployment) -> DependencyGraph:
    """
    Valida o deploy e constrói o grafo de dependências.

    Args:
        deployment (Deployment): Deploy com todas as Stacks declaradas.

    Returns:
        DependencyGraph: Grafo validado com ordem topológica determinística.

    Raises:
        InvalidInput: Literal inválido em algum Node.
        BrokenReference / UnknownExport / TypeMismatch: Referência inválida.
        CyclicDependency: Ciclo local, entre Stacks ou global.
    """
    nodes: Dict[NodeId, ResourceNode] = deployment.nodes()
    ids = sorted(nodes)

    for nid in ids:
        nodes[nid].validate()

    links = link(deployment)
    synthesized = links.bindings_by_consumer()
    parameters = dict(links.parameters)

    inputs: Dict[NodeId, Dict[str, Any]] = {}
    for nid in ids:
        effective = dict(nodes[nid].inputs)
        if nid in synthesized:
            effective["value"] = synthesized[nid]
        elif nid in parameters:
            effective["value"] = parameters[nid]
        inputs[nid] = effective

    predecessors: Dict[NodeId, Set[NodeId]] = {nid: set() for nid in ids}
    successors: Dict[NodeId, Set[NodeId]] = {nid: set() for nid in ids}

    def add_edge(producer: NodeId, consumer: NodeId) -> None:
        successors[producer].add(consumer)
        predecessors[consumer].add(producer)

    for nid in ids:
        for binding in nodes[nid].bindings():
            _check_intra_stack_binding(nodes, binding)
            add_edge(binding.producer_id, nid)

    # subgrafo local de cada Stack, antes de qualquer aresta entre Stacks
    for stack in sorted(deployment.stacks(), key=lambda s: s.name):
        local = [n.id for n in stack.nodes()]
        cycle = find_cycle(local, successors)
        if cycle:
            raise cyclic_dependency(cycle=cycle, scope=stack.name)

    stack_successors: Dict[str, Set[str]] = {s.name: set() for s in deployment.stacks()}
    for producer_stack, consumer_stack in links.stack_edges:
        stack_successors[producer_stack].add(consumer_stack)
    cycle = find_cycle(stack_successors, stack_successors)
    if cycle:
        raise cyclic_dependency(
            cycle=cycle,
            scope="deployment",
            hint="Stacks não podem requerer valores umas das outras mutuamente; extraia o valor para uma terceira Stack.",
        )

    for stack_link in links.links:
        add_edge(*stack_link.edge)
    for producer_stack, consumer_stack in links.barriers:
        for producer in deployment.get_stack(producer_stack).nodes():
            for consumer in deployment.get_stack(consumer_stack).nodes():
                add_edge(producer.id, consumer.id)

    cycle = find_cycle(ids, successors)
    if cycle:
        raise cyclic_dependency(cycle=cycle)

    order = _toposort(ids, predecessors, successors)

    return DependencyGraph(
        nodes=nodes,
        inputs=inputs,
        predecessors=predecessors,
        successors=successors,
        order=tuple(order),
        links=links,
    )
