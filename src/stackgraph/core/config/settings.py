# src/stackgraph/core/config/settings.py
"""
Configurações tipadas do executor.

Traduz a seção `engine` da configuração efetiva para um objeto imutável
consumido pelo Executor. Valores ausentes assumem os defaults abaixo;
valores fora do domínio levantam `InvalidSettingsError`.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, Optional

from .errors import InvalidSettingsError

DEFAULT_PARALLELISM = 4


@dataclass(frozen=True)
class EngineSettings:
    """Política de execução de um deploy.

    Campos:
        - parallelism: número máximo de Nodes em `applying` simultaneamente
        - fail_fast: quando True, nenhum Node novo inicia após a primeira falha
    """

    parallelism: int = DEFAULT_PARALLELISM
    fail_fast: bool = False

    @classmethod
    def from_config(cls, config: Optional[Dict[str, Any]]) -> "EngineSettings":
        engine_cfg = (config or {}).get("engine", {}) or {}
        if not isinstance(engine_cfg, dict):
            raise InvalidSettingsError(
                f"Seção 'engine' deve ser dict, recebido: {type(engine_cfg).__name__}"
            )

        parallelism = engine_cfg.get("parallelism", DEFAULT_PARALLELISM)
        # bool é subclasse de int: rejeitar explicitamente
        if isinstance(parallelism, bool) or not isinstance(parallelism, int) or parallelism < 1:
            raise InvalidSettingsError(
                f"engine.parallelism deve ser inteiro >= 1, recebido: {parallelism!r}"
            )

        fail_fast = engine_cfg.get("fail_fast", False)
        if not isinstance(fail_fast, bool):
            raise InvalidSettingsError(
                f"engine.fail_fast deve ser booleano, recebido: {fail_fast!r}"
            )

        return cls(parallelism=parallelism, fail_fast=fail_fast)


def deployment_parameters(config: Optional[Dict[str, Any]]) -> Dict[str, Any]:
    """Retorna a seção `parameters` (valores externos de require_input)."""
    params = (config or {}).get("parameters", {}) or {}
    if not isinstance(params, dict):
        raise InvalidSettingsError(
            f"Seção 'parameters' deve ser dict, recebido: {type(params).__name__}"
        )
    return dict(params)
