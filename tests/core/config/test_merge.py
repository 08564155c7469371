# tests/core/config/test_merge.py
"""
Testes do deep-merge de configuração.

Regras verificadas:
- dicionários são mesclados recursivamente
- listas são substituídas por inteiro
- conflito de tipo na mesma chave é erro estrutural
- a chave sem default (`None`) aceita qualquer override
- as entradas nunca são mutadas
"""

import pytest

try:
    from stackgraph.core.config.merge import deep_merge
    from stackgraph.core.config.errors import ConfigTypeConflictError
except Exception as e:  # noqa: BLE001
    deep_merge = None
    ConfigTypeConflictError = None
    _IMPORT_ERR = e
else:
    _IMPORT_ERR = None


def _require_imports():
    if _IMPORT_ERR is not None:
        pytest.fail(
            "Missing config merge modules. Implement:\n"
            "- src/stackgraph/core/config/merge.py (deep_merge)\n"
            "- src/stackgraph/core/config/errors.py (ConfigTypeConflictError)\n"
            f"Import error: {_IMPORT_ERR}"
        )


def test_merge_simple_override_does_not_mutate_inputs():
    _require_imports()
    base = {"engine": {"parallelism": 4}, "parameters": {"region": "eu-west-1"}}
    override = {"parameters": {"region": "us-east-1"}}

    out = deep_merge(base, override)

    assert out == {"engine": {"parallelism": 4}, "parameters": {"region": "us-east-1"}}
    assert base["parameters"]["region"] == "eu-west-1"
    assert override == {"parameters": {"region": "us-east-1"}}


def test_merge_nested_dict_keeps_untouched_keys():
    _require_imports()
    out = deep_merge(
        {"engine": {"parallelism": 4, "fail_fast": False}},
        {"engine": {"fail_fast": True}},
    )
    assert out == {"engine": {"parallelism": 4, "fail_fast": True}}


def test_merge_list_is_replaced():
    _require_imports()
    out = deep_merge(
        {"parameters": {"ingress_ports": [80, 443]}},
        {"parameters": {"ingress_ports": [443]}},
    )
    assert out["parameters"]["ingress_ports"] == [443]


def test_merge_type_conflict_raises():
    """Dicionário não pode ser sobrescrito por escalar (e vice-versa)."""
    _require_imports()
    with pytest.raises(ConfigTypeConflictError):
        deep_merge({"engine": {"parallelism": 4}}, {"engine": "fast"})

    with pytest.raises(ConfigTypeConflictError):
        deep_merge({"engine": {"parallelism": 4}}, {"engine": {"parallelism": "4"}})


def test_none_default_accepts_any_override():
    _require_imports()
    out = deep_merge({"parameters": {"domain_name": None}}, {"parameters": {"domain_name": "example.com"}})
    assert out["parameters"]["domain_name"] == "example.com"


def test_conflict_message_names_full_key_path():
    _require_imports()
    with pytest.raises(ConfigTypeConflictError) as exc:
        deep_merge({"engine": {"parallelism": 4}}, {"engine": {"parallelism": True}})
    assert "'engine.parallelism'" in str(exc.value)
