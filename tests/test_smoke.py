# tests/test_smoke.py
"""
Testes de sanidade estrutural (smoke tests) do stackgraph.

Garantem apenas que o pacote é importável e que a descoberta de testes
funciona. Não validam comportamento de domínio, engine ou blueprints.

Limites explícitos:
    - Não testar lógica de negócio
    - Não acumular asserts funcionais
"""


def test_smoke():
    """Sentinela mínima: o pacote importa e expõe sua versão."""
    import stackgraph

    assert stackgraph.__version__
