# src/stackgraph/core/graph/deployment.py
"""
Deployment — contexto explícito de um deploy.

Substitui o objeto de aplicação global: o Deployment é criado pelo
chamador, recebe as Stacks declaradas e é passado explicitamente ao
Builder e ao Executor. Além do registro de locks por Stack, não existe
estado compartilhado implícito entre Deployments.

O Deployment consolida:
    - identidade da execução (run_id, created_at)
    - configuração efetiva (seções `engine` e `parameters`)
    - o conjunto de Stacks, em ordem de registro
    - log estruturado de eventos e warnings por Node
    - o registro de locks por Stack (por padrão, o registro do processo)

Invariantes:
    - Nomes de Stack são únicos no Deployment
    - Eventos de log sempre incluem `run_id`
"""

from __future__ import annotations

import threading
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional, Union

from stackgraph.core.config.settings import deployment_parameters
from stackgraph.core.exceptions import DuplicateNode

from .locks import DEFAULT_STACK_LOCKS, StackLockRegistry
from .node import ResourceNode
from .stack import Stack
from .types import NodeId, ValueType


@dataclass
class Deployment:
    """
    Contexto de um deploy: Stacks, configuração e log de uma execução.

    Uso típico:
        deployment = Deployment(run_id="run-001", created_at=now, config=config)
        certs = deployment.add_stack(Stack("certificates", region="us-east-1"))
        web = deployment.add_stack(Stack("web", region="eu-west-1"))
    """

    run_id: str
    created_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    config: Dict[str, Any] = field(default_factory=dict)
    meta: Dict[str, Any] = field(default_factory=dict)
    locks: StackLockRegistry = field(default=DEFAULT_STACK_LOCKS, repr=False)

    events: List[Dict[str, Any]] = field(default_factory=list, init=False)
    warnings: Dict[str, List[str]] = field(default_factory=dict, init=False)

    _stacks: Dict[str, Stack] = field(default_factory=dict, init=False, repr=False)
    _log_guard: threading.Lock = field(default_factory=threading.Lock, init=False, repr=False)

    # -----------------------------
    # Stacks
    # -----------------------------
    def add_stack(self, stack: Stack) -> Stack:
        if stack.name in self._stacks:
            raise DuplicateNode(
                message=f"Stack duplicada: {stack.name}",
                details={"stack": stack.name},
                hint="Use nomes únicos por Deployment.",
            )
        self._stacks[stack.name] = stack
        return stack

    def get_stack(self, name: str) -> Stack:
        return self._stacks[name]

    def has_stack(self, name: str) -> bool:
        return name in self._stacks

    def stacks(self) -> List[Stack]:
        return list(self._stacks.values())

    def nodes(self) -> Dict[NodeId, ResourceNode]:
        return {node.id: node for stack in self.stacks() for node in stack.nodes()}

    @property
    def parameters(self) -> Dict[str, Any]:
        return deployment_parameters(self.config)

    def share(
        self,
        producer: Stack,
        node: Union[ResourceNode, str],
        output_name: str,
        consumer: Stack,
        name: str,
        type: Union[ValueType, str] = ValueType.ANY,
    ) -> ResourceNode:
        """Exporta `node.output_name` de `producer` e o requer em `consumer` sob `name`."""
        producer.export_output(name, node, output_name)
        return consumer.require_input(name, type, from_stack=producer)

    # -----------------------------
    # Logging & warnings
    # -----------------------------
    def log(self, *, level: str, message: str, node_id: Optional[str] = None, **extra: Any) -> None:
        event = {
            "run_id": self.run_id,
            "node_id": node_id,
            "level": level,
            "message": message,
            "timestamp": datetime.now(timezone.utc).isoformat(),
        }
        event.update(extra)
        with self._log_guard:
            self.events.append(event)

    def add_warning(self, *, node_id: str, message: str) -> None:
        with self._log_guard:
            self.warnings.setdefault(node_id, []).append(message)
