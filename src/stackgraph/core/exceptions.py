"""
stackgraph — Canonical Exceptions (v1)

Este módulo define as exceções tipadas internas do stackgraph.

Objetivo:
- Permitir que Stacks, Linker, Builder e Executor levantem exceções semânticas
- Facilitar o mapeamento determinístico para ErrorPayload (ver `core.errors`)
- Separar explicitamente erros de configuração, de provider e de consistência interna

Taxonomia:
- ConfigurationError → grafo inválido (ciclo, referência quebrada, tipo incompatível).
  Sempre fatal, detectado antes de qualquer chamada ao provider.
- ProviderError → falha de materialização de um único Node. Contida ao subgrafo.
- UnresolvedReference → violação de invariante interna (Binding lido antes do
  produtor estar `applied`). Nunca é recuperável.
- StackLocked → outra execução detém o lock exclusivo de uma Stack.
- DeploymentAlreadyRun → apply repetido sobre Nodes que já saíram de `declared`.

Regras:
- Exceções carregam apenas dados estruturados (serializáveis) em `details`.
- Mensagem curta e humana; `hint` aponta onde corrigir.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, Optional


@dataclass(eq=False)
class StackGraphException(Exception):
    """Base class para exceções internas do stackgraph.

    Importante:
    - Sempre carregar dados estruturados em `details`
    - Não embedar stack trace em payloads de erro
    - Mensagem deve ser curta e humana
    """

    message: str
    details: Dict[str, Any] = field(default_factory=dict)
    hint: Optional[str] = None

    def __str__(self) -> str:  # pragma: no cover
        return self.message


# ---------------------------------------------------------------------------
# Configuração do grafo (fatal, zero efeitos colaterais)
# ---------------------------------------------------------------------------

@dataclass(eq=False)
class ConfigurationError(StackGraphException):
    """Declaração inválida detectada antes de qualquer provisionamento."""


@dataclass(eq=False)
class CyclicDependency(ConfigurationError):
    """O grafo de dependências contém um ciclo.

    `details["cycle"]` lista os membros do ciclo na ordem em que foram
    percorridos, repetindo o primeiro membro ao final.
    """


@dataclass(eq=False)
class BrokenReference(ConfigurationError):
    """Binding cujo Node/Stack produtor não existe."""


@dataclass(eq=False)
class UnknownExport(ConfigurationError):
    """O produtor não declara o output ou export solicitado."""


@dataclass(eq=False)
class TypeMismatch(ConfigurationError):
    """Tipo requerido por um input de Stack incompatível com o export."""


@dataclass(eq=False)
class InvalidInput(ConfigurationError):
    """Valor literal falhou na validação de tipo/formato."""


@dataclass(eq=False)
class DuplicateNode(ConfigurationError):
    """Dois Nodes com o mesmo nome na mesma Stack (ou Stacks duplicadas)."""


@dataclass(eq=False)
class DeploymentAlreadyRun(ConfigurationError):
    """Nodes do Deployment já passaram de `declared`; um Deployment aplica uma única vez."""


# ---------------------------------------------------------------------------
# Execução
# ---------------------------------------------------------------------------

@dataclass(eq=False)
class ProviderError(StackGraphException):
    """Falha do provider ao materializar (ou destruir) um Node."""


@dataclass(eq=False)
class UnresolvedReference(StackGraphException):
    """Binding lido antes do produtor atingir `applied` (bug interno)."""


@dataclass(eq=False)
class StackLocked(StackGraphException):
    """Outra execução detém o lock exclusivo da Stack."""
