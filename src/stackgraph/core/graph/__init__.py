# src/stackgraph/core/graph/__init__.py
"""
# Graph Core — stackgraph

Este pacote define as **estruturas declarativas** de um deploy:

- **types**: `ResourceKind`, `NodeState`, `StackState`, `ValueType`, `RunStatus`
- **kinds**: capacidades por tipo de recurso (inputs, outputs, materialização)
- **binding**: `OutputRef`, `ReferenceBinding`, `PENDING`
- **node**: `ResourceNode`
- **stack**: `Stack`, `ExportedOutput`, `RequiredInput`
- **deployment**: `Deployment`, contexto explícito de um deploy
- **locks**: `StackLockRegistry`

## Princípios

- Nodes e Bindings são construídos uma única vez, na declaração
- Valores entre Stacks fluem apenas por exports e inputs declarados
- Nenhum valor é avaliado de forma preguiçosa fora do Executor
"""

from .binding import PENDING, OutputRef, ReferenceBinding
from .deployment import Deployment
from .kinds import KIND_SPECS, InputSpec, KindSpec, spec_for
from .locks import DEFAULT_STACK_LOCKS, StackLockRegistry
from .node import ResourceNode
from .stack import ExportedOutput, RequiredInput, Stack
from .types import NodeId, NodeState, ResourceKind, RunStatus, StackState, ValueType, node_id

__all__ = [
    "PENDING",
    "OutputRef",
    "ReferenceBinding",
    "Deployment",
    "KIND_SPECS",
    "InputSpec",
    "KindSpec",
    "spec_for",
    "DEFAULT_STACK_LOCKS",
    "StackLockRegistry",
    "ResourceNode",
    "ExportedOutput",
    "RequiredInput",
    "Stack",
    "NodeId",
    "NodeState",
    "ResourceKind",
    "RunStatus",
    "StackState",
    "ValueType",
    "node_id",
]
