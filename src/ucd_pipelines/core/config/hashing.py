# src/ucd_pipelines/core/config/hashing.py
"""
Hashing canônico do UCD Pipelines.

Dois usos:
    - identidade estrutural da configuração efetiva (registrada no Manifest)
    - identidade de conteúdo de um arquivo de entrada (chave de cache)

Política (v1):
    - SHA-256, saída hexadecimal de 64 caracteres
    - configuração serializada em JSON canônico (chaves ordenadas,
      separadores compactos, UTF-8)
    - conteúdo textual codificado em UTF-8 sem normalização
"""

import hashlib
import json
from typing import Any, Dict


def compute_config_hash(config: Dict[str, Any]) -> str:
    """
    Gera o hash determinístico da configuração efetiva.

    Configurações estruturalmente equivalentes (mesmas chaves e valores,
    independentemente da ordem) produzem o mesmo hash.

    Raises:
        TypeError: Se `config` não for um dicionário.
    """
    if not isinstance(config, dict):
        raise TypeError(
            f"Config para hashing deve ser dict, recebido: {type(config).__name__}"
        )

    canonical_json = json.dumps(
        config,
        sort_keys=True,
        separators=(",", ":"),
        ensure_ascii=False,
    )
    return hashlib.sha256(canonical_json.encode("utf-8")).hexdigest()


def compute_content_hash(content: str) -> str:
    """Hash SHA-256 do conteúdo textual de um arquivo."""
    if not isinstance(content, str):
        raise TypeError(
            f"Conteúdo para hashing deve ser str, recebido: {type(content).__name__}"
        )
    return hashlib.sha256(content.encode("utf-8")).hexdigest()
