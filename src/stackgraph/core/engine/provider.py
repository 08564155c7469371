# src/stackgraph/core/engine/provider.py
"""
Contrato do provider — colaborador externo que realiza os recursos.

O core apenas orquestra **quando** e **em que ordem** estas chamadas
acontecem; cada chamada é tratada como bloqueante e não preemptível.
Idempotência em retry é responsabilidade do provider: o core nunca
repete automaticamente uma chamada que falhou.

Falhas devem ser sinalizadas com `ProviderError`; qualquer outra exceção
é encapsulada como `ProviderError` pelo Node que a recebeu.
"""

from __future__ import annotations

from typing import Any, Dict, Protocol, runtime_checkable

from stackgraph.core.graph.types import ResourceKind


@runtime_checkable
class Provider(Protocol):
    """
    Contrato mínimo de um provider de recursos.

    `node_id` identifica logicamente o recurso (`<stack>/<name>`) e é
    estável entre execuções do mesmo deploy.
    """

    def create(self, kind: ResourceKind, inputs: Dict[str, Any], *, node_id: str) -> Dict[str, Any]:
        """Cria o recurso e retorna seus outputs declarados."""
        ...

    def update(
        self,
        kind: ResourceKind,
        current: Dict[str, Any],
        inputs: Dict[str, Any],
        *,
        node_id: str,
    ) -> Dict[str, Any]:
        """Atualiza um recurso existente (`current` = outputs anteriores)."""
        ...

    def delete(self, kind: ResourceKind, outputs: Dict[str, Any], *, node_id: str) -> None:
        """Remove o recurso identificado pelos seus outputs."""
        ...
