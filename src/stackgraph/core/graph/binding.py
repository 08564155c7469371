# src/stackgraph/core/graph/binding.py
"""
Reference Bindings — promessas tipadas entre outputs e inputs de Nodes.

Um Binding liga o slot de input de um Node consumidor ao slot de output
de um Node produtor. Bindings são criados na fase de declaração, como
objetos de valor explícitos, e resolvidos exclusivamente pelo Executor.

Componentes:
    - OutputRef        → referência não ligada (`node.ref("output")`),
                         usada como valor de input na declaração
    - ReferenceBinding → referência ligada a um consumidor concreto
    - PENDING          → sentinela retornada por `peek` enquanto o
                         produtor não atinge `applied`

Invariantes:
    - Cada slot de input de um consumidor possui no máximo um Binding
    - Vários Bindings podem apontar para o mesmo output (fan-out)
    - Ler um Binding antes do produtor estar `applied` é bug interno
      (`UnresolvedReference`); a ordem do grafo impede isso por construção
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, Mapping, Optional

from stackgraph.core.errors import broken_reference
from stackgraph.core.exceptions import UnresolvedReference

from .types import NodeId, NodeState

if TYPE_CHECKING:
    from .node import ResourceNode


class _Pending:
    _instance: Optional["_Pending"] = None

    def __new__(cls) -> "_Pending":
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __repr__(self) -> str:
        return "PENDING"

    def __bool__(self) -> bool:
        return False


PENDING = _Pending()


@dataclass(frozen=True)
class OutputRef:
    """Referência a um output de um Node, ainda sem consumidor."""

    producer_id: NodeId
    output_name: str
    producer_stack: str

    def bind(self, *, consumer_id: NodeId, input_name: str) -> "ReferenceBinding":
        return ReferenceBinding(
            producer_id=self.producer_id,
            output_name=self.output_name,
            consumer_id=consumer_id,
            input_name=input_name,
        )


@dataclass(frozen=True)
class ReferenceBinding:
    """
    Ligação tipada `producer.output → consumer.input`.

    Campos opcionais descrevem Bindings sintetizados pelo Linker quando o
    valor atravessa fronteiras de Stack ou de região.
    """

    producer_id: NodeId
    output_name: str
    consumer_id: NodeId
    input_name: str
    cross_stack: bool = False
    producer_stack: Optional[str] = None
    producer_region: Optional[str] = None

    def _producer(self, nodes: Mapping[NodeId, "ResourceNode"]) -> "ResourceNode":
        producer = nodes.get(self.producer_id)
        if producer is None:
            raise broken_reference(
                consumer=f"{self.consumer_id}.{self.input_name}",
                producer=self.producer_id,
                reason="Node produtor não existe",
            )
        return producer

    def peek(self, nodes: Mapping[NodeId, "ResourceNode"]) -> Any:
        """Valor do output, ou `PENDING` se o produtor ainda não foi aplicado."""
        producer = self._producer(nodes)
        if producer.state is not NodeState.APPLIED or producer.outputs is None:
            return PENDING
        return producer.outputs[self.output_name]

    def resolve(self, nodes: Mapping[NodeId, "ResourceNode"]) -> Any:
        """
        Resolve o valor do Binding.

        Raises:
            BrokenReference: Se o produtor não existir.
            UnresolvedReference: Se o produtor ainda não estiver `applied`.
        """
        value = self.peek(nodes)
        if value is PENDING:
            producer = nodes[self.producer_id]
            raise UnresolvedReference(
                message=(
                    f"Binding {self.producer_id}.{self.output_name} -> "
                    f"{self.consumer_id}.{self.input_name} lido antes do produtor ser aplicado"
                ),
                details={
                    "producer": self.producer_id,
                    "output": self.output_name,
                    "consumer": self.consumer_id,
                    "input": self.input_name,
                    "producer_state": producer.state.value,
                },
            )
        return value

    def describe(self) -> str:
        return f"{self.producer_id}.{self.output_name} -> {self.consumer_id}.{self.input_name}"
