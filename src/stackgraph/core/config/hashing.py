# src/stackgraph/core/config/hashing.py
"""
Hashing canônico de estruturas declarativas do stackgraph.

Gera a identidade estrutural de:
    - configuração efetiva de um deploy
    - grafo de dependências planejado (`DependencyGraph.fingerprint`)

Política (v1): JSON canônico (chaves ordenadas, separadores compactos,
UTF-8) seguido de SHA-256. Estruturas equivalentes produzem o mesmo hash,
independentemente da ordem original das chaves.
"""

import hashlib
import json
from typing import Any, Dict


def canonical_hash(data: Any) -> str:
    """SHA-256 hexadecimal (64 caracteres) do JSON canônico de `data`."""
    canonical_json = json.dumps(
        data,
        sort_keys=True,
        separators=(",", ":"),
        ensure_ascii=False,
        default=str,
    )
    return hashlib.sha256(canonical_json.encode("utf-8")).hexdigest()


def compute_config_hash(config: Dict[str, Any]) -> str:
    """
    Gera um hash determinístico da configuração efetiva do deploy.

    Args:
        config (Dict[str, Any]): Configuração resolvida (defaults + local).

    Returns:
        str: Hash SHA-256 hexadecimal da configuração.

    Raises:
        TypeError: Se o objeto fornecido não for um dicionário.
    """

    if not isinstance(config, dict):
        raise TypeError(
            f"Config para hashing deve ser dict, recebido: {type(config).__name__}"
        )

    return canonical_hash(config)
