# src/stackgraph/core/graph/stack.py
"""
Stack — coleção nomeada e implantável de Resource Nodes.

Uma Stack pertence a uma única região e declara explicitamente:
    - os Nodes que possui (em ordem de declaração)
    - os outputs que exporta (nome → Node.output)
    - os inputs que requer (nome → tipo, Stack produtora opcional)
    - restrições explícitas de ordenação entre Stacks

Acoplamento entre Stacks:
    O único canal pelo qual uma Stack depende de um valor materializado de
    outra é o par `export_output` / `require_input`. Um Node que referencia
    diretamente um Node de outra Stack é rejeitado na declaração.

    `require_input` cria um Node virtual `input.<nome>` (tipo `stack_input`)
    cujo valor é ligado pelo Linker ao export da Stack produtora, ou, sem
    Stack produtora, a `parameters.<nome>` da configuração do deploy.

Invariantes:
    - Nomes de Nodes são únicos dentro da Stack
    - O subgrafo local da Stack deve ser acíclico (verificado pelo Builder)
    - A Stack só está `applied` quando todos os seus Nodes estão `applied`
      e todos os seus exports são resolvíveis
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Mapping, Optional, Union

from stackgraph.core.errors import broken_reference
from stackgraph.core.exceptions import DuplicateNode

from .binding import OutputRef
from .node import ResourceNode
from .types import NodeId, NodeState, ResourceKind, StackState, ValueType

INPUT_PREFIX = "input."


@dataclass(frozen=True)
class ExportedOutput:
    """Output publicado por uma Stack: `name → node.output_name`."""

    name: str
    node_id: NodeId
    output_name: str


@dataclass(frozen=True)
class RequiredInput:
    """
    Valor requerido por uma Stack.

    `from_stack=None` indica parâmetro do deploy; caso contrário `export`
    nomeia o export da Stack produtora (por padrão, o próprio `name`).
    """

    name: str
    type: ValueType
    from_stack: Optional[str] = None
    export: Optional[str] = None

    @property
    def node_name(self) -> str:
        return f"{INPUT_PREFIX}{self.name}"

    @property
    def export_name(self) -> str:
        return self.export or self.name


@dataclass(eq=False)
class Stack:
    """Unidade implantável independente, com região e imports/exports declarados."""

    name: str
    region: str

    exports: Dict[str, ExportedOutput] = field(default_factory=dict, init=False)
    inputs: Dict[str, RequiredInput] = field(default_factory=dict, init=False)
    dependencies: List[str] = field(default_factory=list, init=False)

    _nodes: Dict[str, ResourceNode] = field(default_factory=dict, init=False, repr=False)
    _order: List[str] = field(default_factory=list, init=False, repr=False)

    def __post_init__(self) -> None:
        for attr in ("name", "region"):
            value = getattr(self, attr)
            if not isinstance(value, str) or not value.strip() or "/" in value:
                raise ValueError(f"stack.{attr} must be a non-empty string without '/': {value!r}")

    # -----------------------------
    # Nodes
    # -----------------------------
    def declare(
        self,
        kind: Union[ResourceKind, str],
        name: str,
        inputs: Optional[Mapping[str, Any]] = None,
    ) -> ResourceNode:
        """Declara um Node nesta Stack e o retorna (`node.id` é o NodeId)."""
        node = ResourceNode(name=name, kind=ResourceKind(kind), stack=self.name, inputs=dict(inputs or {}))
        self.add_node(node)
        return node

    def add_node(self, node: ResourceNode) -> None:
        if node.stack != self.name:
            raise ValueError(f"node {node.id} belongs to stack '{node.stack}', not '{self.name}'")
        if node.name in self._nodes:
            raise DuplicateNode(
                message=f"Node duplicado: {node.id}",
                details={"stack": self.name, "node": node.name},
                hint="Use nomes únicos por Stack.",
            )
        for binding in node.bindings():
            producer_stack = binding.producer_id.split("/", 1)[0]
            if producer_stack != self.name:
                raise broken_reference(
                    consumer=f"{node.id}.{binding.input_name}",
                    producer=binding.producer_id,
                    reason="referência direta entre Stacks; use export_output/require_input",
                )
        self._nodes[node.name] = node
        self._order.append(node.name)

    def get(self, name: str) -> ResourceNode:
        return self._nodes[self._local_name(name)]

    def has(self, name: str) -> bool:
        return self._local_name(name) in self._nodes

    def nodes(self) -> List[ResourceNode]:
        return [self._nodes[n] for n in self._order]

    def _local_name(self, name: str) -> str:
        prefix = f"{self.name}/"
        return name[len(prefix):] if name.startswith(prefix) else name

    # -----------------------------
    # Exports / inputs
    # -----------------------------
    def export_output(self, name: str, node: Union[ResourceNode, str], output_name: str) -> ExportedOutput:
        """Publica `node.output_name` sob `name` para outras Stacks."""
        local = node.name if isinstance(node, ResourceNode) else self._local_name(node)
        if name in self.exports:
            raise DuplicateNode(
                message=f"Export duplicado '{name}' na Stack '{self.name}'",
                details={"stack": self.name, "export": name},
            )
        exported = ExportedOutput(name=name, node_id=f"{self.name}/{local}", output_name=output_name)
        self.exports[name] = exported
        return exported

    def require_input(
        self,
        name: str,
        type: Union[ValueType, str] = ValueType.ANY,
        from_stack: Optional[Union["Stack", str]] = None,
        *,
        export: Optional[str] = None,
    ) -> ResourceNode:
        """Declara um input da Stack e retorna o Node virtual que o representa."""
        if name in self.inputs:
            raise DuplicateNode(
                message=f"Input duplicado '{name}' na Stack '{self.name}'",
                details={"stack": self.name, "input": name},
            )
        producer = from_stack.name if isinstance(from_stack, Stack) else from_stack
        if producer == self.name:
            raise ValueError(f"stack '{self.name}' cannot require its own export '{name}'")
        required = RequiredInput(name=name, type=ValueType(type), from_stack=producer, export=export)
        node = self.declare(ResourceKind.STACK_INPUT, required.node_name)
        self.inputs[name] = required
        return node

    def input_ref(self, name: str) -> OutputRef:
        """Referência ao valor de um input declarado, para uso em Nodes locais."""
        if name not in self.inputs:
            raise KeyError(f"stack '{self.name}' does not require input '{name}'")
        return self.get(self.inputs[name].node_name).ref("value")

    def depends_on(self, other: Union["Stack", str]) -> None:
        """Restrição explícita: `other` deve ser totalmente aplicada antes desta Stack."""
        other_name = other.name if isinstance(other, Stack) else other
        if other_name not in self.dependencies:
            self.dependencies.append(other_name)

    # -----------------------------
    # Estado agregado
    # -----------------------------
    def exports_resolvable(self) -> bool:
        for exported in self.exports.values():
            local = self._local_name(exported.node_id)
            node = self._nodes.get(local)
            if node is None or node.state is not NodeState.APPLIED:
                return False
            if exported.output_name not in (node.outputs or {}):
                return False
        return True

    def state(self) -> StackState:
        states = {node.state for node in self._nodes.values()}
        if states <= {NodeState.APPLIED} and self.exports_resolvable():
            return StackState.APPLIED
        if states == {NodeState.DESTROYED}:
            return StackState.DESTROYED
        if states <= {NodeState.DECLARED, NodeState.PLANNED}:
            return StackState.DECLARED
        return StackState.INCOMPLETE
