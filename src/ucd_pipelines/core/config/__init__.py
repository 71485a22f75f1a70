# src/ucd_pipelines/core/config/__init__.py

"""
Camada de configuração do UCD Pipelines.

Este pacote carrega, mescla e identifica as configurações de execução do
engine (concorrência, modo strict, cache e versões a processar).

A configuração é:
    - declarativa (YAML ou JSON)
    - determinística (mesma entrada, mesma configuração final)
    - separada da definição de rotas, que é código

Componentes:
    - loader   → leitura de defaults + overrides locais
    - merge    → deep-merge determinístico
    - hashing  → hash canônico de configuração e de conteúdo
    - settings → projeção tipada da seção `engine`

Limites explícitos:
    - Não define rotas nem fontes
    - Não executa pipeline
"""

from .errors import (
    ConfigError,
    ConfigTypeConflictError,
    DefaultsNotFoundError,
    InvalidConfigRootTypeError,
    InvalidEngineSettingsError,
    UnsupportedConfigFormatError,
)
from .hashing import compute_config_hash, compute_content_hash
from .loader import load_config
from .merge import deep_merge
from .settings import EngineSettings

__all__ = [
    "ConfigError",
    "ConfigTypeConflictError",
    "DefaultsNotFoundError",
    "InvalidConfigRootTypeError",
    "InvalidEngineSettingsError",
    "UnsupportedConfigFormatError",
    "compute_config_hash",
    "compute_content_hash",
    "load_config",
    "deep_merge",
    "EngineSettings",
]
