# src/stackgraph/core/engine/__init__.py
"""
Engine do stackgraph.

Este pacote **planeja** e **executa** deploys compostos por várias Stacks.

Componentes principais:
    - linker   → resolve exports/inputs entre Stacks e barreiras entre regiões
    - planner  → valida o deploy e constrói o DAG com ordem determinística
    - executor → apply/destroy concorrentes, com semântica de falha parcial
    - provider → contrato do colaborador externo que realiza os recursos
    - report   → RunReport estruturado por Node

Princípios fundamentais:
    - Planejamento e execução são responsabilidades separadas
    - Erros de configuração abortam antes de qualquer efeito colateral
    - Falhas do provider ficam contidas ao subgrafo afetado

Limites explícitos:
    - Não implementa recursos concretos (responsabilidade do provider)
    - Não repete chamadas que falharam
"""

from .executor import Executor
from .linker import LinkResult, StackLink, link
from .planner import DependencyGraph, build_graph, find_cycle
from .provider import Provider
from .report import NodeReport, RunReport

__all__ = [
    "Executor",
    "LinkResult",
    "StackLink",
    "link",
    "DependencyGraph",
    "build_graph",
    "find_cycle",
    "Provider",
    "NodeReport",
    "RunReport",
]
