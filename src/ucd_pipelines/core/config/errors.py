# src/ucd_pipelines/core/config/errors.py
"""
Exceções canônicas da camada de configuração do UCD Pipelines.

As exceções aqui definidas representam violações estruturais da
configuração de execução, e não falhas de processamento de arquivos.

Invariantes:
    - Todas as exceções de configuração herdam de `ConfigError`
    - Nenhuma exceção representa erro escopado de run (ver `core.errors`)
"""


class ConfigError(Exception):
    """
    Exceção base para erros de configuração.

    Permite captura genérica de falhas de carregamento, merge e
    interpretação de settings, distinta das falhas de definição do
    pipeline (`PipelineDefinitionError`).
    """


class DefaultsNotFoundError(ConfigError):
    """Arquivo de defaults obrigatório não encontrado."""


class UnsupportedConfigFormatError(ConfigError):
    """
    Extensão de arquivo de configuração não suportada.

    Formatos suportados (v1):
        - YAML (.yaml, .yml)
        - JSON (.json)

    O formato nunca é inferido pelo conteúdo.
    """


class InvalidConfigRootTypeError(ConfigError):
    """Conteúdo raiz da configuração não é um dicionário."""


class ConfigTypeConflictError(ConfigError):
    """
    Conflito de tipos durante o deep-merge.

    Exemplo de conflito:
        - base:     {"engine": {"concurrency": 4}}
        - override: {"engine": "fast"}

    Nenhum merge parcial é produzido.
    """


class InvalidEngineSettingsError(ConfigError):
    """
    Valor inválido na seção `engine` (ou em `versions`).

    Exemplos:
        - `concurrency` não inteiro ou menor que 1
        - `strict` / `cache` não booleanos
        - `versions` que não é lista de strings
    """
