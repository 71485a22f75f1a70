# src/ucd_pipelines/backends/memory.py
"""
Backend de fonte em memória.

Estrutura: `{versão: {path: conteúdo}}`. Útil como fixture de testes e
para embutir pequenos conjuntos de arquivos num pipeline.
"""

from __future__ import annotations

from typing import AsyncIterator, Dict, List, Mapping, Optional

from ucd_pipelines.core.config.hashing import compute_content_hash
from ucd_pipelines.core.exceptions import SourceNotFoundError
from ucd_pipelines.core.pipeline.types import FileIdentity

DEFAULT_CHUNK_SIZE = 64 * 1024


class MemoryBackend:
    def __init__(self, files: Optional[Mapping[str, Mapping[str, str]]] = None):
        self._files: Dict[str, Dict[str, str]] = {
            version: dict(entries) for version, entries in (files or {}).items()
        }
        self.reads: List[str] = []

    def add_file(self, version: str, path: str, content: str) -> None:
        self._files.setdefault(version, {})[path] = content

    async def list_files(self, version: str) -> List[FileIdentity]:
        return [FileIdentity.from_path(version, path) for path in self._files.get(version, {})]

    def _content(self, file: FileIdentity) -> str:
        try:
            return self._files[file.version][file.path]
        except KeyError:
            raise SourceNotFoundError(
                message=f"File not found: {file.version}/{file.path}",
                details={"version": file.version, "path": file.path},
            ) from None

    async def read_file(self, file: FileIdentity) -> str:
        content = self._content(file)
        self.reads.append(file.path)
        return content

    async def read_file_stream(
        self,
        file: FileIdentity,
        *,
        chunk_size: Optional[int] = None,
        start: Optional[int] = None,
        end: Optional[int] = None,
    ) -> AsyncIterator[bytes]:
        data = self._content(file).encode("utf-8")[start:end]
        self.reads.append(file.path)
        size = chunk_size or DEFAULT_CHUNK_SIZE
        for offset in range(0, len(data), size):
            yield data[offset:offset + size]

    async def get_metadata(self, file: FileIdentity) -> Dict[str, object]:
        content = self._content(file)
        return {"size": len(content.encode("utf-8")), "hash": compute_content_hash(content)}
