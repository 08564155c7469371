# src/stackgraph/core/config/merge.py
"""
Deep-merge canônico da configuração de deploy.

Combina o arquivo de defaults com o override local de um ambiente
(ex.: parâmetros de domínio, paralelismo do executor).

Política de merge (v1):
    - dict → merge recursivo por chave
    - list → sobrescrita total (sem merge elemento a elemento)
    - escalar → sobrescrita direta
    - conflito de tipos → erro estrutural explícito, com o caminho da chave

Invariantes:
    - Nenhum input é mutado
    - A mesma entrada sempre produz a mesma saída
"""

from copy import deepcopy
from typing import Any, Dict

from .errors import ConfigTypeConflictError


def _type_name(value: Any) -> str:
    return type(value).__name__


def _merge_at(path: str, current: Any, incoming: Any) -> Any:
    if isinstance(current, dict) and isinstance(incoming, dict):
        merged = dict(current)
        for key, value in incoming.items():
            child = f"{path}.{key}" if path else str(key)
            merged[key] = _merge_at(child, current[key], value) if key in current else deepcopy(value)
        return merged

    # None no default significa "sem valor": aceita qualquer override;
    # listas são sempre substituídas por inteiro
    compatible = current is None or isinstance(incoming, list) or type(current) is type(incoming)
    if not compatible:
        raise ConfigTypeConflictError(
            f"Conflito de tipo na chave '{path}': {_type_name(current)} vs {_type_name(incoming)}"
        )
    return deepcopy(incoming)


def deep_merge(base: Dict[str, Any], override: Dict[str, Any]) -> Dict[str, Any]:
    """
    Aplica `override` sobre `base` e retorna uma nova configuração.

    Args:
        base (Dict[str, Any]): Configuração base (defaults).
        override (Dict[str, Any]): Overrides explícitos (ex.: config.local.yaml).

    Raises:
        ConfigTypeConflictError: Raiz não-dict, ou a mesma chave com tipos incompatíveis.
    """
    if not isinstance(base, dict) or not isinstance(override, dict):
        raise ConfigTypeConflictError(
            f"Deep-merge requer dicts no nível raiz, recebido: {_type_name(base)} vs {_type_name(override)}"
        )
    return _merge_at("", deepcopy(base), override)
