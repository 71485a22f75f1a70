# src/ucd_pipelines/backends/local.py
"""
Backend de fonte sobre um espelho local em disco.

Layout esperado:

    <root>/<versão>/<path relativo>

A categoria de diretório (`FileIdentity.dir`) é o primeiro segmento do
path relativo; arquivos na raiz da versão ficam na categoria `ucd`.

Decisões:
    - I/O de disco roda em `asyncio.to_thread` para não bloquear o loop
    - `read_file_stream` lê blocos de tamanho fixo respeitando `start`/`end`
    - `get_metadata` retorna tamanho, SHA-256 e mtime em ISO-8601 UTC

Limites explícitos:
    - Não baixa arquivos (espelho já sincronizado)
    - Ignora arquivos ocultos (prefixo `.`)
"""

from __future__ import annotations

import asyncio
import hashlib
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, AsyncIterator, Dict, List, Optional, Union

from ucd_pipelines.core.exceptions import SourceNotFoundError
from ucd_pipelines.core.pipeline.types import FileIdentity

DEFAULT_CHUNK_SIZE = 64 * 1024


class LocalBackend:
    def __init__(self, root: Union[str, Path]):
        self.root = Path(root)

    def _version_dir(self, version: str) -> Path:
        return self.root / version

    def _path(self, file: FileIdentity) -> Path:
        path = self._version_dir(file.version) / file.path
        if not path.is_file():
            raise SourceNotFoundError(
                message=f"File not found: {path}",
                details={"version": file.version, "path": file.path},
                hint="Sincronize o espelho local antes de executar o pipeline.",
            )
        return path

    def _list(self, version: str) -> List[FileIdentity]:
        base = self._version_dir(version)
        if not base.is_dir():
            raise SourceNotFoundError(
                message=f"Version directory not found: {base}",
                details={"version": version, "root": str(self.root)},
            )
        files = []
        for path in sorted(base.rglob("*")):
            rel = path.relative_to(base)
            if not path.is_file() or any(part.startswith(".") for part in rel.parts):
                continue
            files.append(FileIdentity.from_path(version, rel.as_posix()))
        return files

    async def list_files(self, version: str) -> List[FileIdentity]:
        return await asyncio.to_thread(self._list, version)

    async def read_file(self, file: FileIdentity) -> str:
        path = self._path(file)
        return await asyncio.to_thread(path.read_text, encoding="utf-8")

    async def read_file_stream(
        self,
        file: FileIdentity,
        *,
        chunk_size: Optional[int] = None,
        start: Optional[int] = None,
        end: Optional[int] = None,
    ) -> AsyncIterator[bytes]:
        path = self._path(file)
        size = chunk_size or DEFAULT_CHUNK_SIZE
        with path.open("rb") as handle:
            position = start or 0
            handle.seek(position)
            while end is None or position < end:
                want = size if end is None else min(size, end - position)
                chunk = await asyncio.to_thread(handle.read, want)
                if not chunk:
                    break
                position += len(chunk)
                yield chunk

    def _metadata(self, path: Path) -> Dict[str, Any]:
        stat = path.stat()
        return {
            "size": stat.st_size,
            "hash": hashlib.sha256(path.read_bytes()).hexdigest(),
            "last_modified": datetime.fromtimestamp(stat.st_mtime, tz=timezone.utc).isoformat(),
        }

    async def get_metadata(self, file: FileIdentity) -> Dict[str, Any]:
        return await asyncio.to_thread(self._metadata, self._path(file))
