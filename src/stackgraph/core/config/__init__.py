# src/stackgraph/core/config/__init__.py

"""
Camada de configuração do stackgraph.

Responsabilidades do pacote:
    - Carregamento de arquivos de configuração (defaults + overrides locais)
    - Resolução da configuração final via deep-merge determinístico
    - Geração de hash canônico para rastreabilidade do deploy
    - Tradução da seção `engine` em `EngineSettings`

Limites explícitos:
    - Não carrega credenciais de cloud
    - Não declara Stacks nem Nodes
"""

from .errors import (
    ConfigError,
    ConfigTypeConflictError,
    DefaultsNotFoundError,
    InvalidConfigRootTypeError,
    InvalidSettingsError,
    UnsupportedConfigFormatError,
)
from .hashing import canonical_hash, compute_config_hash
from .loader import load_config, read_config_file
from .merge import deep_merge
from .settings import EngineSettings, deployment_parameters

__all__ = [
    "ConfigError",
    "ConfigTypeConflictError",
    "DefaultsNotFoundError",
    "InvalidConfigRootTypeError",
    "InvalidSettingsError",
    "UnsupportedConfigFormatError",
    "canonical_hash",
    "compute_config_hash",
    "load_config",
    "read_config_file",
    "deep_merge",
    "EngineSettings",
    "deployment_parameters",
]
