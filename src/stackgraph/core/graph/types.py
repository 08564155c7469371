# src/stackgraph/core/graph/types.py
"""
Tipos canônicos do grafo de recursos do stackgraph.

Este módulo define os enums compartilhados entre declaração (Stacks e
Nodes), Linker, Builder e Executor:

    - ResourceKind → conjunto fechado de tipos de recurso
    - NodeState    → ciclo de vida de um Node durante uma execução
    - ValueType    → tipos de valores que fluem por Bindings
    - RunStatus    → estado final de uma execução

Os valores são strings para facilitar serialização em JSON, persistência
no Manifest e inspeção de relatórios.

Invariantes:
    - Enums possuem valores textuais canônicos e estáveis
    - Nenhuma lógica de execução vive neste módulo
"""

from __future__ import annotations

from enum import Enum
from typing import Any

NodeId = str


class ResourceKind(str, Enum):
    """
    Conjunto fechado de tipos de recurso declaráveis.

    Cada valor possui uma especificação de capacidades em `graph.kinds`
    (inputs aceitos, outputs produzidos). Não existe herança entre tipos:
    o comportamento por tipo é resolvido por tabela, não por hierarquia.

    `STACK_INPUT` é virtual: representa um valor importado de outra Stack
    (ou de um parâmetro do deploy) e é materializado pelo próprio Executor.
    """
    NETWORK = "network"
    SECURITY_GROUP = "security_group"
    LAUNCH_TEMPLATE = "launch_template"
    COMPUTE_GROUP = "compute_group"
    DATABASE = "database"
    CERTIFICATE = "certificate"
    LOAD_BALANCER = "load_balancer"
    LISTENER = "listener"
    TARGET_GROUP = "target_group"
    CDN_DISTRIBUTION = "cdn_distribution"
    DNS_ZONE = "dns_zone"
    DNS_RECORD = "dns_record"
    STACK_OUTPUT = "stack_output"
    STACK_INPUT = "stack_input"


class NodeState(str, Enum):
    """
    Estados de um Node ao longo de uma execução.

    Transições de criação:
        declared → planned → applying → applied | failed
        planned → skipped (dependência falhou ou execução cancelada)

    Transições de destruição:
        applied → destroying → destroyed | failed
        applied → skipped (dependente falhou ao ser destruído)
    """
    DECLARED = "declared"
    PLANNED = "planned"
    APPLYING = "applying"
    APPLIED = "applied"
    FAILED = "failed"
    SKIPPED = "skipped"
    DESTROYING = "destroying"
    DESTROYED = "destroyed"


class ValueType(str, Enum):
    """Tipos de valores trocados entre Nodes e entre Stacks."""
    STRING = "string"
    INTEGER = "integer"
    BOOLEAN = "boolean"
    LIST = "list"
    MAPPING = "mapping"
    ANY = "any"

    def accepts(self, value: Any) -> bool:
        """Verifica se um literal Python pertence a este tipo."""
        if self is ValueType.ANY:
            return True
        if self is ValueType.STRING:
            return isinstance(value, str)
        if self is ValueType.BOOLEAN:
            return isinstance(value, bool)
        if self is ValueType.INTEGER:
            return isinstance(value, int) and not isinstance(value, bool)
        if self is ValueType.LIST:
            return isinstance(value, (list, tuple))
        return isinstance(value, dict)

    def compatible_with(self, other: "ValueType") -> bool:
        """Compatibilidade entre tipo requerido e tipo exportado."""
        return self is other or ValueType.ANY in (self, other)


class StackState(str, Enum):
    """
    Estado agregado de uma Stack, derivado dos estados dos seus Nodes.

        - DECLARED: nenhum Node saiu de `declared`/`planned`
        - APPLIED: todos os Nodes `applied` e todos os exports resolvíveis
        - DESTROYED: todos os Nodes `destroyed`
        - INCOMPLETE: qualquer outra combinação (falha, skip, em andamento)
    """
    DECLARED = "declared"
    APPLIED = "applied"
    DESTROYED = "destroyed"
    INCOMPLETE = "incomplete"


class RunStatus(str, Enum):
    """
    Estado final de uma execução.

        - SUCCESS: todos os Nodes atingiram o estado final esperado
        - PARTIAL_FAILURE: ao menos um Node falhou ou foi pulado
        - ABORTED: grafo inválido (ou Stack bloqueada); nada foi tentado
    """
    SUCCESS = "success"
    PARTIAL_FAILURE = "partial_failure"
    ABORTED = "aborted"


def node_id(stack: str, name: str) -> NodeId:
    """Identificador global de um Node: `<stack>/<name>`."""
    return f"{stack}/{name}"
