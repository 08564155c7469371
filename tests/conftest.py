# tests/conftest.py
"""
Fixtures compartilhados para testes do stackgraph.

Este módulo fornece:
- configurações mínimas e determinísticas (YAML como string e dict resolvido)
- fábricas de Deployment com run_id e created_at fixos
- um provider falso, sem I/O, que registra todas as chamadas
- uma declaração pequena de duas Stacks usada por vários testes de engine

Decisões arquiteturais:
    - Fixtures são simples e explícitas
    - Imports do core são lazy para que falhas de import apareçam no teste
    - Nenhuma fixture executa apply/destroy

Limites explícitos:
    - Não substitui testes de integração
    - Não contém lógica de domínio
"""

import pytest
from datetime import datetime, timezone


# =====================================================
# Config
# =====================================================

@pytest.fixture
def project_like_config_defaults_yaml() -> str:
    """YAML típico de `config.defaults.yaml`: base completa sobre a qual overrides são aplicados."""
    return """\
engine:
  parallelism: 4
  fail_fast: false
parameters:
  domain_name: example.com
  region: eu-west-1
"""


@pytest.fixture
def project_like_config_local_yaml() -> str:
    """YAML típico de `config.local.yaml`: apenas overrides."""
    return """\
engine:
  parallelism: 2
parameters:
  region: sa-east-1
"""


@pytest.fixture
def dummy_config() -> dict:
    return {
        "engine": {"parallelism": 4, "fail_fast": False},
        "parameters": {"domain_name": "example.com", "region": "eu-west-1"},
    }


# =====================================================
# Deployment + provider
# =====================================================

@pytest.fixture
def make_deployment(dummy_config):
    """
    Fábrica de Deployments determinísticos.

    Aceita overrides de `engine` e `parameters` por chamada; cada chamada
    cria um Deployment novo (estado de Nodes nunca é compartilhado).
    """
    from stackgraph.core.graph.deployment import Deployment

    def _make(*, engine=None, parameters=None, run_id="run-test-001", locks=None):
        config = {
            "engine": dict(dummy_config["engine"], **(engine or {})),
            "parameters": dict(dummy_config["parameters"], **(parameters or {})),
        }
        kwargs = {}
        if locks is not None:
            kwargs["locks"] = locks
        return Deployment(
            run_id=run_id,
            created_at=datetime(2026, 1, 16, 0, 0, 0, tzinfo=timezone.utc),
            config=config,
            meta={"source": "pytest"},
            **kwargs,
        )

    return _make


@pytest.fixture
def provider():
    from tests.fixtures.providers import RecordingProvider

    return RecordingProvider()


@pytest.fixture
def two_stack_deployment(make_deployment):
    """
    Deploy mínimo com duas Stacks na mesma região.

        shared:  network → sg
        app:     input.network_id → targets
                 zone (independente)

    `shared` exporta `network_id`; `app` o requer.
    """
    from stackgraph.core.graph.stack import Stack
    from stackgraph.core.graph.types import ResourceKind, ValueType

    def _build(*, app_region="eu-west-1", **kwargs):
        deployment = make_deployment(**kwargs)
        shared = deployment.add_stack(Stack("shared", region="eu-west-1"))
        app = deployment.add_stack(Stack("app", region=app_region))

        network = shared.declare(ResourceKind.NETWORK, "network", {"cidr": "10.0.0.0/16"})
        sg = shared.declare(
            ResourceKind.SECURITY_GROUP,
            "sg",
            {"network_id": network.ref("network_id"), "ingress_ports": [443]},
        )
        shared.export_output("network_id", network, "network_id")
        shared.export_output("group_id", sg, "group_id")

        app.require_input("network_id", ValueType.STRING, from_stack=shared)
        app.declare(
            ResourceKind.TARGET_GROUP,
            "targets",
            {"network_id": app.input_ref("network_id"), "port": 80, "compute_group_name": "web"},
        )
        app.declare(ResourceKind.DNS_ZONE, "zone", {"domain_name": "example.com", "lookup": True})
        return deployment

    return _build
