# src/ucd_pipelines/core/cache/store.py
"""
Camada de cache de saídas de rotas.

Uma entrada de cache guarda o resultado de uma unidade (rota, arquivo,
versão): as saídas do resolver e os artefatos que a rota emitiu.

Chave:
    CacheKey(route_id, version, path, content_hash)

    - `route_id`: o mesmo arquivo pode ser processado por várias rotas
    - `version`: o mesmo path pode ter conteúdo diferente entre versões
    - `content_hash`: SHA-256 do conteúdo (ou o hash informado pelo backend)

A entrada também registra o hash dos artefatos consumidos pela rota. Se
algum deles mudou desde a gravação, o engine trata a entrada como
desatualizada e reprocessa o arquivo.

Invariantes:
    - `get` contabiliza hit ou miss; `has` não altera estatísticas
    - `clear` zera entradas e estatísticas
"""

from __future__ import annotations

import hashlib
import json
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Protocol, runtime_checkable


@dataclass(frozen=True)
class CacheKey:
    route_id: str
    version: str
    path: str
    content_hash: str


def serialize_cache_key(key: CacheKey) -> str:
    return f"{key.route_id}|{key.version}|{key.path}|{key.content_hash}"


def hash_artifact(value: Any) -> str:
    """Hash estável de um valor de artefato (JSON canônico, `str` como fallback)."""
    payload = json.dumps(value, sort_keys=True, separators=(",", ":"), ensure_ascii=False, default=str)
    return hashlib.sha256(payload.encode("utf-8")).hexdigest()


@dataclass
class CacheEntry:
    key: CacheKey
    outputs: List[Any]
    produced_artifacts: Dict[str, Any] = field(default_factory=dict)
    artifact_hashes: Dict[str, str] = field(default_factory=dict)
    created_at: str = ""
    meta: Dict[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class CacheStats:
    entries: int
    hits: int = 0
    misses: int = 0

    def to_dict(self) -> Dict[str, int]:
        return {"entries": self.entries, "hits": self.hits, "misses": self.misses}


@runtime_checkable
class CacheStore(Protocol):
    def get(self, key: CacheKey) -> Optional[CacheEntry]:
        ...

    def put(self, entry: CacheEntry) -> None:
        ...

    def has(self, key: CacheKey) -> bool:
        ...

    def delete(self, key: CacheKey) -> bool:
        ...

    def clear(self) -> None:
        ...

    def stats(self) -> CacheStats:
        ...


class MemoryCacheStore:
    """Cache em memória, vivo enquanto a instância existir."""

    def __init__(self) -> None:
        self._entries: Dict[str, CacheEntry] = {}
        self._hits = 0
        self._misses = 0

    def get(self, key: CacheKey) -> Optional[CacheEntry]:
        entry = self._entries.get(serialize_cache_key(key))
        if entry is None:
            self._misses += 1
        else:
            self._hits += 1
        return entry

    def put(self, entry: CacheEntry) -> None:
        self._entries[serialize_cache_key(entry.key)] = entry

    def has(self, key: CacheKey) -> bool:
        return serialize_cache_key(key) in self._entries

    def delete(self, key: CacheKey) -> bool:
        return self._entries.pop(serialize_cache_key(key), None) is not None

    def clear(self) -> None:
        self._entries.clear()
        self._hits = 0
        self._misses = 0

    def stats(self) -> CacheStats:
        return CacheStats(entries=len(self._entries), hits=self._hits, misses=self._misses)
