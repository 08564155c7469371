# src/stackgraph/core/__init__.py
"""
Core do stackgraph.

Componentes principais:
    - config       → resolução de configuração (merge, hashing, settings)
    - graph        → estruturas declarativas (Node, Binding, Stack, Deployment)
    - engine       → Linker, planejamento (DAG) e execução controlada
    - traceability → Manifest e Event Log para auditoria

Princípios fundamentais:
    - Nenhuma decisão silenciosa: todo comportamento é explícito e testado
    - Erros de configuração são detectados antes de qualquer efeito colateral
    - Estado e efeitos colaterais são sempre rastreáveis
"""
