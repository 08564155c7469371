"""
stackgraph — Canonical Error Structures (v1)

Este módulo define o padrão canônico de erros reportados pelo stackgraph.
Erros fazem parte do relatório estruturado de uma execução e devem ser:

- explícitos
- serializáveis
- rastreáveis
- acionáveis

Nenhuma decisão implícita é permitida.
"""

from __future__ import annotations

from dataclasses import dataclass, asdict
from typing import Any, Dict, List, Optional

from .config.errors import ConfigError
from .exceptions import (
    BrokenReference,
    ConfigurationError,
    CyclicDependency,
    DeploymentAlreadyRun,
    DuplicateNode,
    InvalidInput,
    ProviderError,
    StackGraphException,
    StackLocked,
    TypeMismatch,
    UnknownExport,
    UnresolvedReference,
)


# ---------------------------------------------------------------------------
# Payload canônico
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class ErrorPayload:
    """
    Payload canônico de erro do stackgraph.

    Campos:
    - type: código estável do erro (não é texto livre)
    - message: mensagem curta, humana e objetiva
    - details: dados estruturados relevantes para diagnóstico
    - hint: ação sugerida ao operador (onde corrigir)
    """

    type: str
    message: str
    details: Dict[str, Any]
    hint: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        """Retorna representação serializável do erro."""
        return asdict(self)


# ---------------------------------------------------------------------------
# Catálogo canônico de tipos de erro (v1)
# ---------------------------------------------------------------------------

# Configuração do grafo
CYCLIC_DEPENDENCY = "CYCLIC_DEPENDENCY"
BROKEN_REFERENCE = "BROKEN_REFERENCE"
UNKNOWN_EXPORT = "UNKNOWN_EXPORT"
TYPE_MISMATCH = "TYPE_MISMATCH"
INVALID_INPUT = "INVALID_INPUT"
DUPLICATE_NODE = "DUPLICATE_NODE"
DEPLOYMENT_ALREADY_RUN = "DEPLOYMENT_ALREADY_RUN"
CONFIGURATION_ERROR = "CONFIGURATION_ERROR"

# Execução
PROVIDER_ERROR = "PROVIDER_ERROR"
UNRESOLVED_REFERENCE = "UNRESOLVED_REFERENCE"
STACK_LOCKED = "STACK_LOCKED"


_CODES = (
    (CyclicDependency, CYCLIC_DEPENDENCY),
    (BrokenReference, BROKEN_REFERENCE),
    (UnknownExport, UNKNOWN_EXPORT),
    (TypeMismatch, TYPE_MISMATCH),
    (InvalidInput, INVALID_INPUT),
    (DuplicateNode, DUPLICATE_NODE),
    (DeploymentAlreadyRun, DEPLOYMENT_ALREADY_RUN),
    (ConfigurationError, CONFIGURATION_ERROR),
    (ProviderError, PROVIDER_ERROR),
    (UnresolvedReference, UNRESOLVED_REFERENCE),
    (StackLocked, STACK_LOCKED),
)


def error_code_for(exc: BaseException) -> str:
    """Código estável do catálogo para uma exceção (subclasses primeiro)."""
    for cls, code in _CODES:
        if isinstance(exc, cls):
            return code
    return PROVIDER_ERROR


def exception_to_payload(exc: BaseException) -> ErrorPayload:
    """Converte exceções em ErrorPayload (serializável, acionável).

    Regras:
    - StackGraphException: já vem com message/details/hint.
    - ConfigError (arquivos, seções `engine`/`parameters`): CONFIGURATION_ERROR.
    - Outras exceções: encapsular como PROVIDER_ERROR sem expor stack trace.
    """
    if isinstance(exc, StackGraphException):
        return ErrorPayload(
            type=error_code_for(exc),
            message=str(exc) or "Erro de execução",
            details=dict(exc.details or {}),
            hint=exc.hint,
        )

    if isinstance(exc, ConfigError):
        return ErrorPayload(
            type=CONFIGURATION_ERROR,
            message=str(exc) or "Configuração de deploy inválida",
            details={"exception_class": exc.__class__.__name__},
            hint="Corrija a configuração efetiva do deploy (seções `engine` e `parameters`).",
        )

    return ErrorPayload(
        type=PROVIDER_ERROR,
        message=str(exc) or "Erro inesperado durante materialização",
        details={"exception_class": exc.__class__.__name__},
        hint="Verifique o log do provider e a declaração do recurso",
    )


# ---------------------------------------------------------------------------
# Helpers de fábrica
# ---------------------------------------------------------------------------

def cyclic_dependency(
    *,
    cycle: List[str],
    scope: Optional[str] = None,
    hint: str = "Remova uma das referências do ciclo ou mova o valor compartilhado para uma Stack produtora independente.",
) -> CyclicDependency:
    where = f" na Stack '{scope}'" if scope else ""
    return CyclicDependency(
        message=f"Dependência cíclica{where}: {' -> '.join(cycle)}",
        details={"cycle": list(cycle), "scope": scope},
        hint=hint,
    )


def broken_reference(
    *,
    consumer: str,
    producer: str,
    reason: str,
    hint: str = "Declare o Node/Stack produtor ou corrija o identificador referenciado.",
) -> BrokenReference:
    return BrokenReference(
        message=f"Referência quebrada de '{consumer}' para '{producer}': {reason}",
        details={"consumer": consumer, "producer": producer, "reason": reason},
        hint=hint,
    )


def unknown_export(
    *,
    producer: str,
    name: str,
    available: List[str],
    hint: str = "Exporte o valor na Stack produtora (export_output) ou corrija o nome requerido.",
) -> UnknownExport:
    return UnknownExport(
        message=f"'{producer}' não declara '{name}'",
        details={"producer": producer, "name": name, "available": sorted(available)},
        hint=hint,
    )


def type_mismatch(
    *,
    consumer: str,
    name: str,
    expected: str,
    actual: str,
    hint: str = "Ajuste o tipo declarado em require_input ou exporte um output compatível.",
) -> TypeMismatch:
    return TypeMismatch(
        message=f"Input '{name}' de '{consumer}' espera {expected}, export fornece {actual}",
        details={"consumer": consumer, "name": name, "expected": expected, "actual": actual},
        hint=hint,
    )


def invalid_input(
    *,
    node: str,
    input_name: str,
    reason: str,
    hint: str = "Corrija o valor literal declarado antes de reexecutar o deploy.",
) -> InvalidInput:
    return InvalidInput(
        message=f"Input inválido '{input_name}' em '{node}': {reason}",
        details={"node": node, "input": input_name, "reason": reason},
        hint=hint,
    )


def deployment_already_run(
    *,
    run_id: str,
    nodes: List[str],
    hint: str = "Crie um novo Deployment e passe os outputs anteriores em `prior_state` para atualizar os recursos.",
) -> DeploymentAlreadyRun:
    return DeploymentAlreadyRun(
        message=f"Deployment '{run_id}' já foi executado: {len(nodes)} Node(s) fora de `declared`",
        details={"run_id": run_id, "nodes": sorted(nodes)},
        hint=hint,
    )
