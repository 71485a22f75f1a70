# src/ucd_pipelines/core/cache/joblib_store.py
"""
Cache persistente em disco (joblib).

Cada entrada vira um arquivo `<sha256 da chave serializada>.joblib` dentro
do diretório configurado, de modo que o cache sobrevive entre processos.
Estatísticas de hit/miss valem para a instância, não para o diretório.

Decisões:
    - Formato: joblib (o mesmo de outros artefatos persistidos do projeto)
    - Nome de arquivo determinístico a partir da chave
    - Entradas ilegíveis são tratadas como ausentes e removidas

Limites explícitos:
    - Sem expiração nem limite de tamanho
    - Sem lock entre processos
"""

from __future__ import annotations

import hashlib
import pickle
from pathlib import Path
from typing import Optional, Union

import joblib

from .store import CacheEntry, CacheKey, CacheStats, serialize_cache_key


class JoblibCacheStore:
    SUFFIX = ".joblib"

    def __init__(self, directory: Union[str, Path]):
        self.directory = Path(directory)
        self._hits = 0
        self._misses = 0

    def entry_path(self, key: CacheKey) -> Path:
        digest = hashlib.sha256(serialize_cache_key(key).encode("utf-8")).hexdigest()
        return self.directory / f"{digest}{self.SUFFIX}"

    def _load(self, path: Path) -> Optional[CacheEntry]:
        try:
            entry = joblib.load(path)
        except (OSError, EOFError, ValueError, IndexError, KeyError, AttributeError, ImportError, pickle.UnpicklingError):
            path.unlink(missing_ok=True)
            return None
        return entry if isinstance(entry, CacheEntry) else None

    def get(self, key: CacheKey) -> Optional[CacheEntry]:
        path = self.entry_path(key)
        entry = self._load(path) if path.exists() else None
        if entry is None:
            self._misses += 1
        else:
            self._hits += 1
        return entry

    def put(self, entry: CacheEntry) -> None:
        path = self.entry_path(entry.key)
        path.parent.mkdir(parents=True, exist_ok=True)
        joblib.dump(entry, path)

    def has(self, key: CacheKey) -> bool:
        return self.entry_path(key).exists()

    def delete(self, key: CacheKey) -> bool:
        path = self.entry_path(key)
        if not path.exists():
            return False
        path.unlink()
        return True

    def clear(self) -> None:
        if self.directory.exists():
            for path in self.directory.glob(f"*{self.SUFFIX}"):
                path.unlink()
        self._hits = 0
        self._misses = 0

    def stats(self) -> CacheStats:
        entries = len(list(self.directory.glob(f"*{self.SUFFIX}"))) if self.directory.exists() else 0
        return CacheStats(entries=entries, hits=self._hits, misses=self._misses)
