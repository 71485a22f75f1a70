# src/ucd_pipelines/core/pipeline/__init__.py
"""
# Pipeline Core — UCD Pipelines

Contratos e estruturas usados para declarar um pipeline.

## Componentes

- **types**: `FileIdentity`, `SourceFile`, `Record`, `FilterContext`
- **dependencies**: parser de tokens `route:` / `artifact:`
- **filters**: predicados de arquivo/linha e combinadores
- **route**: `RouteDefinition`, `TransformDefinition`, `ArtifactDefinition`, fallback
- **source**: `SourceDefinition` e resolução de arquivos por versão
- **registry**: `PipelineRegistry`
- **context**: `VersionContext`, `ParseContext`, `ResolveContext`
- **parsing**: parser genérico de linhas separadas por `;`

## Limites Explícitos

- Não planeja execução (ver `core.engine.planner`)
- Não executa pipeline
"""

from .context import ParseContext, ResolveContext, VersionContext
from .dependencies import (
    ArtifactDependency,
    RouteDependency,
    artifact_dependency,
    format_dependency,
    is_artifact_dependency,
    is_route_dependency,
    parse_dependency,
    route_dependency,
)
from .filters import always, and_, by_dir, by_ext, by_glob, by_name, by_path, by_prop, by_source, never, not_, or_
from .parsing import parse_data_lines
from .registry import DuplicateSourceIdError, PipelineRegistry
from .route import (
    FALLBACK_ROUTE_ID,
    ArtifactDefinition,
    ArtifactScope,
    FallbackDefinition,
    PipelineArtifactDefinition,
    RouteDefinition,
    TransformContext,
    TransformDefinition,
    apply_transforms,
)
from .source import SourceDefinition, resolve_multiple_source_files, resolve_source_files
from .types import FileIdentity, FilterContext, Record, RecordKind, RowContext, SourceFile, normalize_entries

__all__ = [
    "ParseContext",
    "ResolveContext",
    "VersionContext",
    "ArtifactDependency",
    "RouteDependency",
    "artifact_dependency",
    "format_dependency",
    "is_artifact_dependency",
    "is_route_dependency",
    "parse_dependency",
    "route_dependency",
    "always",
    "and_",
    "by_dir",
    "by_ext",
    "by_glob",
    "by_name",
    "by_path",
    "by_prop",
    "by_source",
    "never",
    "not_",
    "or_",
    "parse_data_lines",
    "DuplicateSourceIdError",
    "PipelineRegistry",
    "FALLBACK_ROUTE_ID",
    "ArtifactDefinition",
    "ArtifactScope",
    "FallbackDefinition",
    "PipelineArtifactDefinition",
    "RouteDefinition",
    "TransformContext",
    "TransformDefinition",
    "apply_transforms",
    "SourceDefinition",
    "resolve_multiple_source_files",
    "resolve_source_files",
    "FileIdentity",
    "FilterContext",
    "Record",
    "RecordKind",
    "RowContext",
    "SourceFile",
    "normalize_entries",
]
