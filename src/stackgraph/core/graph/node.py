# src/stackgraph/core/graph/node.py
"""
Resource Node — unidade declarativa atômica do stackgraph.

Um Node representa uma instância de recurso (rede, security group,
banco de dados, distribuição de CDN, ...) pertencente a uma única Stack.

Responsabilidades:
    - manter identidade (`<stack>/<name>`), tipo e inputs declarados
    - converter `OutputRef` recebidos na declaração em `ReferenceBinding`
    - expor outputs somente após a materialização
    - controlar as transições de estado permitidas

Invariantes:
    - Outputs são ausentes (`None`) até a materialização
    - Depois de materializados, outputs são imutáveis
    - Um Node só transita por caminhos válidos do ciclo de vida

Limites explícitos:
    - Não decide quando materializar (responsabilidade do Executor)
    - Não resolve Bindings por conta própria
"""

from __future__ import annotations

import threading
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import TYPE_CHECKING, Any, Dict, List, Mapping, Optional

from stackgraph.core.errors import ErrorPayload, exception_to_payload, unknown_export
from stackgraph.core.exceptions import ProviderError

from .binding import OutputRef, ReferenceBinding
from .kinds import KindSpec, spec_for
from .types import NodeId, NodeState, ResourceKind, node_id

if TYPE_CHECKING:
    from stackgraph.core.engine.provider import Provider


_TRANSITIONS: Dict[NodeState, frozenset] = {
    NodeState.DECLARED: frozenset({NodeState.PLANNED}),
    NodeState.PLANNED: frozenset({NodeState.APPLYING, NodeState.SKIPPED}),
    NodeState.APPLYING: frozenset({NodeState.APPLIED, NodeState.FAILED}),
    NodeState.APPLIED: frozenset({NodeState.DESTROYING, NodeState.SKIPPED}),
    NodeState.DESTROYING: frozenset({NodeState.DESTROYED, NodeState.FAILED}),
    NodeState.FAILED: frozenset(),
    NodeState.SKIPPED: frozenset(),
    NodeState.DESTROYED: frozenset(),
}


def is_literal(value: Any) -> bool:
    return not isinstance(value, (ReferenceBinding, OutputRef))


@dataclass(eq=False)
class ResourceNode:
    """
    Recurso declarado dentro de uma Stack.

    Campos:
        - name: nome único dentro da Stack
        - kind: tipo do recurso (`ResourceKind`)
        - stack: nome da Stack dona do Node
        - inputs: nome do input → literal ou `ReferenceBinding`
        - state: estado corrente no ciclo de vida
        - error: payload do erro capturado quando `failed`
    """

    name: str
    kind: ResourceKind
    stack: str
    inputs: Dict[str, Any] = field(default_factory=dict)
    state: NodeState = NodeState.DECLARED
    error: Optional[ErrorPayload] = None

    _outputs: Optional[Mapping[str, Any]] = field(default=None, init=False, repr=False)
    _lock: threading.Lock = field(default_factory=threading.Lock, init=False, repr=False)

    def __post_init__(self) -> None:
        if not isinstance(self.name, str) or not self.name.strip() or "/" in self.name:
            raise ValueError(f"node name must be a non-empty string without '/': {self.name!r}")
        self.kind = ResourceKind(self.kind)

        bound: Dict[str, Any] = {}
        for input_name, value in self.inputs.items():
            if isinstance(value, OutputRef):
                value = value.bind(consumer_id=self.id, input_name=input_name)
            elif isinstance(value, ReferenceBinding) and (
                value.consumer_id != self.id or value.input_name != input_name
            ):
                raise ValueError(
                    f"binding {value.describe()} cannot feed {self.id}.{input_name}"
                )
            bound[input_name] = value
        self.inputs = bound

    @property
    def id(self) -> NodeId:
        return node_id(self.stack, self.name)

    @property
    def spec(self) -> KindSpec:
        return spec_for(self.kind)

    @property
    def outputs(self) -> Optional[Mapping[str, Any]]:
        return self._outputs

    def bindings(self) -> List[ReferenceBinding]:
        return [v for _, v in sorted(self.inputs.items()) if isinstance(v, ReferenceBinding)]

    def literals(self) -> Dict[str, Any]:
        return {k: v for k, v in self.inputs.items() if is_literal(v)}

    def ref(self, output_name: str) -> OutputRef:
        """Referência a um output declarado deste Node."""
        if output_name not in self.spec.declare_outputs():
            raise unknown_export(
                producer=self.id,
                name=output_name,
                available=list(self.spec.declare_outputs()),
            )
        return OutputRef(producer_id=self.id, output_name=output_name, producer_stack=self.stack)

    def validate(self) -> None:
        """Valida literais contra o KindSpec (InvalidInput)."""
        self.spec.validate_literals(self.id, self.inputs, is_literal)

    # -----------------------------
    # Ciclo de vida
    # -----------------------------
    def transition(self, state: NodeState) -> None:
        with self._lock:
            if state not in _TRANSITIONS[self.state]:
                raise RuntimeError(
                    f"illegal transition for {self.id}: {self.state.value} -> {state.value}"
                )
            self.state = state

    def restore(self, outputs: Mapping[str, Any]) -> None:
        """Adota outputs de uma execução anterior (ex.: Manifest) para destruição."""
        with self._lock:
            if self.state is not NodeState.DECLARED or self._outputs is not None:
                raise RuntimeError(f"cannot restore {self.id} in state {self.state.value}")
            self._outputs = MappingProxyType(dict(outputs))
            self.state = NodeState.APPLIED

    def materialize(
        self,
        provider: "Provider",
        resolved_inputs: Dict[str, Any],
        *,
        current: Optional[Dict[str, Any]] = None,
    ) -> Mapping[str, Any]:
        """
        Materializa o Node via provider (ou localmente, se virtual).

        O Node deve estar em `applying`. Em caso de sucesso os outputs
        tornam-se legíveis e o estado passa a `applied`; em caso de falha
        o estado passa a `failed`, o erro é capturado e um `ProviderError`
        é propagado ao chamador.

        Raises:
            ProviderError: falha de materialização (exceções arbitrárias
                do provider são encapsuladas).
        """
        if self._outputs is not None:
            raise RuntimeError(f"{self.id} already materialized; outputs are immutable")
        try:
            outputs = self.spec.materialize(provider, resolved_inputs, node_id=self.id, current=current)
        except ProviderError as e:
            self._fail(e)
            raise
        except Exception as e:
            wrapped = ProviderError(
                message=str(e) or f"Falha ao materializar {self.id}",
                details={"node": self.id, "exception_class": e.__class__.__name__},
            )
            self._fail(wrapped)
            raise wrapped from e

        self._outputs = MappingProxyType(dict(outputs))
        self.transition(NodeState.APPLIED)
        return self._outputs

    def destroy(self, provider: "Provider") -> None:
        """Remove o recurso. O Node deve estar em `destroying`."""
        try:
            if not self.spec.virtual:
                provider.delete(self.kind, dict(self._outputs or {}), node_id=self.id)
        except ProviderError as e:
            self._fail(e)
            raise
        except Exception as e:
            wrapped = ProviderError(
                message=str(e) or f"Falha ao destruir {self.id}",
                details={"node": self.id, "exception_class": e.__class__.__name__},
            )
            self._fail(wrapped)
            raise wrapped from e
        self.transition(NodeState.DESTROYED)

    def _fail(self, exc: BaseException) -> None:
        self.error = exception_to_payload(exc)
        self.transition(NodeState.FAILED)
