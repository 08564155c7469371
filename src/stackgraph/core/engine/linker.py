# src/stackgraph/core/engine/linker.py
"""
Linker de referências entre Stacks e entre regiões.

O Linker resolve, em nível estrutural, todos os valores que atravessam a
fronteira de uma Stack:

    1. coleta cada par `require_input` / `export_output` declarado
    2. verifica existência da Stack produtora, do export e do Node/output
       exportado, e a compatibilidade de tipos
    3. sintetiza o Binding `produtor.node.output → consumidor.input.<nome>`
    4. se as regiões diferem, marca o link como `cross_region` e registra
       uma barreira de Stack: todo Node da Stack produtora precede todo
       Node da Stack consumidora

Inputs sem Stack produtora são resolvidos a partir de `parameters` da
configuração do deploy.

Decisões arquiteturais:
    - O Linker nunca muta Stacks nem Nodes
    - A saída é ordenada: a mesma declaração produz sempre o mesmo resultado
    - Qualquer referência inválida aborta o deploy antes do provisionamento

Limites explícitos:
    - Não detecta ciclos (responsabilidade do planner)
    - Não resolve valores materializados
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Set, Tuple

from stackgraph.core.errors import broken_reference, type_mismatch, unknown_export
from stackgraph.core.graph.binding import ReferenceBinding
from stackgraph.core.graph.deployment import Deployment
from stackgraph.core.graph.stack import ExportedOutput, RequiredInput, Stack
from stackgraph.core.graph.types import NodeId, ResourceKind, ValueType, node_id


@dataclass(frozen=True)
class StackLink:
    """Valor exportado por uma Stack e consumido por outra."""

    producer_stack: str
    export_name: str
    consumer_stack: str
    input_name: str
    binding: ReferenceBinding
    cross_region: bool

    @property
    def edge(self) -> Tuple[NodeId, NodeId]:
        return (self.binding.producer_id, self.binding.consumer_id)


@dataclass(frozen=True)
class LinkResult:
    """
    Resultado de uma passada do Linker.

    Campos:
        - links: links entre Stacks, ordenados por (consumidor, input)
        - parameters: Node virtual → valor literal vindo de `parameters`
        - barriers: pares (produtora, consumidora) com barreira total de Stack
        - stack_edges: dependências entre Stacks (links + depends_on)
    """

    links: Tuple[StackLink, ...]
    parameters: Tuple[Tuple[NodeId, Any], ...]
    barriers: Tuple[Tuple[str, str], ...]
    stack_edges: Tuple[Tuple[str, str], ...]

    def bindings_by_consumer(self) -> Dict[NodeId, ReferenceBinding]:
        return {link.binding.consumer_id: link.binding for link in self.links}


def export_type(producer: Stack, exported: ExportedOutput) -> ValueType:
    """
    Tipo do valor exportado, verificando que Node e output existem.

    Raises:
        BrokenReference: Se o Node exportado não existir na Stack.
        UnknownExport: Se o Node não declarar o output exportado.
    """
    if not producer.has(exported.node_id):
        raise broken_reference(
            consumer=f"{producer.name}.exports.{exported.name}",
            producer=exported.node_id,
            reason="Node exportado não existe na Stack",
        )
    node = producer.get(exported.node_id)
    outputs = node.spec.declare_outputs()
    if exported.output_name not in outputs:
        raise unknown_export(producer=node.id, name=exported.output_name, available=list(outputs))

    if node.kind is ResourceKind.STACK_INPUT:
        # reexport de um valor importado: herda o tipo requerido
        for required in producer.inputs.values():
            if required.node_name == node.name:
                return required.type
    return outputs[exported.output_name]


def _link_parameter(
    consumer: Stack,
    required: RequiredInput,
    parameters: Dict[str, Any],
) -> Tuple[NodeId, Any]:
    consumer_id = node_id(consumer.name, required.node_name)
    if required.name not in parameters:
        raise broken_reference(
            consumer=consumer_id,
            producer=f"parameters.{required.name}",
            reason="parâmetro do deploy ausente",
            hint=f"Declare 'parameters.{required.name}' na configuração do deploy.",
        )
    value = parameters[required.name]
    if not required.type.accepts(value):
        raise type_mismatch(
            consumer=consumer.name,
            name=required.name,
            expected=required.type.value,
            actual=type(value).__name__,
        )
    return consumer_id, value


def _link_stack_input(deployment: Deployment, consumer: Stack, required: RequiredInput) -> StackLink:
    consumer_id = node_id(consumer.name, required.node_name)
    producer_name = required.from_stack or ""
    if not deployment.has_stack(producer_name):
        raise broken_reference(
            consumer=consumer_id,
            producer=producer_name,
            reason="Stack produtora não existe no deploy",
        )
    producer = deployment.get_stack(producer_name)

    exported = producer.exports.get(required.export_name)
    if exported is None:
        raise unknown_export(
            producer=producer.name,
            name=required.export_name,
            available=list(producer.exports),
        )

    actual = export_type(producer, exported)
    if not required.type.compatible_with(actual):
        raise type_mismatch(
            consumer=consumer.name,
            name=required.name,
            expected=required.type.value,
            actual=actual.value,
        )

    cross_region = producer.region != consumer.region
    binding = ReferenceBinding(
        producer_id=exported.node_id,
        output_name=exported.output_name,
        consumer_id=consumer_id,
        input_name="value",
        cross_stack=True,
        producer_stack=producer.name,
        producer_region=producer.region,
    )
    return StackLink(
        producer_stack=producer.name,
        export_name=exported.name,
        consumer_stack=consumer.name,
        input_name=required.name,
        binding=binding,
        cross_region=cross_region,
    )


def link(deployment: Deployment) -> LinkResult:
    """
    Executa uma passada completa do Linker sobre o deploy.

    Args:
        deployment (Deployment): Deploy com todas as Stacks declaradas.

    Returns:
        LinkResult: Links, parâmetros, barreiras e dependências entre Stacks.

    Raises:
        BrokenReference: Stack/Node produtor inexistente ou parâmetro ausente.
        UnknownExport: Export ou output não declarado pelo produtor.
        TypeMismatch: Tipo requerido incompatível com o exportado.
    """
    stacks = sorted(deployment.stacks(), key=lambda s: s.name)
    parameters = deployment.parameters

    # exports inválidos são erro mesmo sem consumidores
    for stack in stacks:
        for name in sorted(stack.exports):
            export_type(stack, stack.exports[name])

    links: List[StackLink] = []
    params: List[Tuple[NodeId, Any]] = []
    barriers: Set[Tuple[str, str]] = set()
    stack_edges: Set[Tuple[str, str]] = set()

    for consumer in stacks:
        for name in sorted(consumer.inputs):
            required = consumer.inputs[name]
            if required.from_stack is None:
                params.append(_link_parameter(consumer, required, parameters))
                continue
            stack_link = _link_stack_input(deployment, consumer, required)
            links.append(stack_link)
            stack_edges.add((stack_link.producer_stack, consumer.name))
            if stack_link.cross_region:
                barriers.add((stack_link.producer_stack, consumer.name))

        for dependency in sorted(consumer.dependencies):
            if not deployment.has_stack(dependency):
                raise broken_reference(
                    consumer=consumer.name,
                    producer=dependency,
                    reason="depends_on referencia Stack inexistente",
                )
            barriers.add((dependency, consumer.name))
            stack_edges.add((dependency, consumer.name))

    return LinkResult(
        links=tuple(links),
        parameters=tuple(params),
        barriers=tuple(sorted(barriers)),
        stack_edges=tuple(sorted(stack_edges)),
    )


def find_link(result: LinkResult, consumer_stack: str, input_name: str) -> Optional[StackLink]:
    for stack_link in result.links:
        if stack_link.consumer_stack == consumer_stack and stack_link.input_name == input_name:
            return stack_link
    return None
