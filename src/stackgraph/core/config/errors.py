# src/stackgraph/core/config/errors.py
"""
Exceções da camada de configuração do stackgraph.

Estas exceções representam falhas ao carregar, mesclar ou interpretar a
configuração de um deploy (arquivos de defaults/override e a seção
`engine`). Não se confundem com `ConfigurationError` de `core.exceptions`,
que descreve um grafo de recursos inválido.

Invariantes:
    - Todas as exceções de configuração herdam de `ConfigError`
    - Nenhuma exceção representa falha de provider ou de execução de Node
"""


class ConfigError(Exception):
    """
    Exceção base para erros de configuração de deploy.

    Permite captura genérica de falhas de config sem confundi-las com
    erros de declaração do grafo ou de materialização.
    """


class DefaultsNotFoundError(ConfigError):
    """
    Arquivo de configuração base (defaults) ausente.

    O arquivo de defaults é obrigatório: sem ele não existe configuração
    efetiva de deploy. Nenhum default implícito é criado.
    """


class UnsupportedConfigFormatError(ConfigError):
    """
    Extensão de arquivo não suportada pelo loader.

    Formatos suportados (v1): YAML (.yaml, .yml) e JSON (.json).
    O formato nunca é inferido pelo conteúdo.
    """


class InvalidConfigRootTypeError(ConfigError):
    """O conteúdo raiz do arquivo não é um mapa chave-valor."""


class ConfigTypeConflictError(ConfigError):
    """
    Conflito de tipos durante o deep-merge.

    Exemplo de conflito:
        - base:     {"engine": {"parallelism": 4}}
        - override: {"engine": "serial"}

    Nenhum merge parcial é produzido e nenhuma coerção é tentada.
    """


class InvalidSettingsError(ConfigError):
    """Valor fora do domínio aceito na seção `engine` ou `parameters`."""
