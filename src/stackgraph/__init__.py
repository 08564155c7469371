# src/stackgraph/__init__.py
"""
stackgraph — resolvedor de dependências e ligação de referências entre
Stacks para provisionamento declarativo de infraestrutura.

Dado um conjunto de Stacks (grupos implantáveis de recursos, cada um numa
região), o stackgraph calcula de forma determinística:
    - a ordem em que os recursos são criados, atualizados e removidos
    - os valores que fluem entre recursos e entre Stacks, inclusive entre regiões

Arquitetura em alto nível:
    - core.config       → carregamento, merge, hashing e settings do executor
    - core.graph        → Nodes, Bindings, Stacks e o Deployment
    - core.engine       → Linker, construção do DAG e execução
    - core.traceability → Manifest e Event Log
    - blueprints        → composições prontas (ex.: camada web)

Limites explícitos:
    - Não implementa chamadas a provedores de nuvem (colaborador externo)
    - Não repete chamadas de provider que falharam
"""

__version__ = "0.1.0"

__all__ = ["__version__"]
