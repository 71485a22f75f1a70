# src/ucd_pipelines/core/pipeline/source.py
"""
Fontes de arquivos e resolução do conjunto de arquivos de uma versão.

Uma fonte associa um id a um backend (colaborador externo que lista e lê
arquivos) e a filtros opcionais de inclusão/exclusão.

Contrato do backend (métodos síncronos ou assíncronos):

    list_files(version) -> Sequence[FileIdentity]
    read_file(file) -> str
    read_file_stream(file, *, chunk_size=None, start=None, end=None) -> AsyncIterable[bytes]   (opcional)
    get_metadata(file) -> {"size": int, "hash": str?, "last_modified": str?}                  (opcional)

Invariantes:
    - Um arquivo é mantido se (sem include OU include aceita) E (sem exclude OU exclude rejeita)
    - No merge de múltiplas fontes, a última fonte a listar um `path` vence
    - A posição do arquivo no resultado é a da primeira ocorrência do `path`

Limites explícitos:
    - Não faz retry (responsabilidade do backend)
    - Não conhece o formato dos arquivos
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Protocol, Sequence, runtime_checkable

from .filters import PipelineFilter
from .streams import resolve_maybe_awaitable
from .types import FileIdentity, FilterContext, SourceFile


@runtime_checkable
class SourceBackend(Protocol):
    def list_files(self, version: str) -> Any:
        ...

    def read_file(self, file: FileIdentity) -> Any:
        ...


@dataclass(frozen=True)
class SourceDefinition:
    id: str
    backend: SourceBackend
    includes: Optional[PipelineFilter] = None
    excludes: Optional[PipelineFilter] = None

    def accepts(self, file: FileIdentity) -> bool:
        ctx = FilterContext(file=file, source=self.id)
        if self.includes is not None and not self.includes(ctx):
            return False
        if self.excludes is not None and self.excludes(ctx):
            return False
        return True


async def resolve_source_files(source: SourceDefinition, version: str) -> List[SourceFile]:
    """Lista os arquivos de uma fonte, aplica filtros e anota a origem."""
    listed = await resolve_maybe_awaitable(source.backend.list_files(version))
    return [SourceFile.tag(f, source.id) for f in (listed or []) if source.accepts(f)]


async def resolve_multiple_source_files(
    sources: Sequence[SourceDefinition],
    version: str,
) -> List[SourceFile]:
    """Merge de fontes com deduplicação por `path` (última fonte vence)."""
    by_path: Dict[str, SourceFile] = {}
    for source in sources:
        for file in await resolve_source_files(source, version):
            by_path[file.path] = file
    return list(by_path.values())
