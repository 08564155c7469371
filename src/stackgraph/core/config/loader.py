# src/stackgraph/core/config/loader.py
"""
Loader canônico de configuração de deploy.

A configuração efetiva é resolvida a partir de:
    - um arquivo de defaults (obrigatório)
    - um arquivo local de overrides (opcional; ignorado se não existir)

Seções reconhecidas pelo core:
    - engine.parallelism → limite de Nodes materializados em paralelo
    - engine.fail_fast   → interrompe o agendamento após a primeira falha
    - parameters         → valores de `require_input` sem Stack produtora

Invariantes:
    - O resultado é sempre um dicionário puro (`dict`)
    - Overrides nunca mutam os defaults
    - Erros estruturais são fatais
"""

import json
from pathlib import Path
from typing import Any, Callable, Dict, Optional, Union

import yaml  # PyYAML

from .errors import (
    DefaultsNotFoundError,
    InvalidConfigRootTypeError,
    UnsupportedConfigFormatError,
)
from .merge import deep_merge

PathLike = Union[str, Path]

_PARSERS: Dict[str, Callable[[str], Any]] = {
    ".yaml": yaml.safe_load,
    ".yml": yaml.safe_load,
    ".json": json.loads,
}


def read_config_file(path: PathLike) -> Dict[str, Any]:
    """
    Lê um arquivo YAML ou JSON cuja raiz deve ser um mapeamento.

    Arquivos vazios (ou só com comentários) valem `{}`.

    Raises:
        DefaultsNotFoundError: Se o arquivo não existir.
        UnsupportedConfigFormatError: Se a extensão não for suportada.
        InvalidConfigRootTypeError: Se o conteúdo raiz não for um dicionário.
    """
    path = Path(path)
    if not path.exists():
        raise DefaultsNotFoundError(f"Arquivo de configuração não encontrado: {path}")

    parse = _PARSERS.get(path.suffix.lower())
    if parse is None:
        raise UnsupportedConfigFormatError(
            f"Formato não suportado: {path.suffix or '(sem extensão)'} (aceitos: {sorted(_PARSERS)})"
        )

    text = path.read_text(encoding="utf-8")
    data = parse(text) if text.strip() else None
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise InvalidConfigRootTypeError(f"Config root deve ser dict, recebido: {type(data).__name__}")
    return data


def load_config(*, defaults_path: PathLike, local_path: Optional[PathLike] = None) -> Dict[str, Any]:
    """
    Carrega e resolve a configuração efetiva de um deploy.

    O arquivo local, quando existe, tem prioridade sobre os defaults.

    Raises:
        DefaultsNotFoundError: Se o arquivo de defaults não existir.
        UnsupportedConfigFormatError: Se o formato do arquivo não for suportado.
        InvalidConfigRootTypeError: Se o conteúdo não for um dicionário.
        ConfigTypeConflictError: Se ocorrer conflito estrutural durante o merge.
    """
    defaults = read_config_file(defaults_path)
    if local_path is None or not Path(local_path).exists():
        return defaults
    return deep_merge(defaults, read_config_file(local_path))
