# src/ucd_pipelines/core/pipeline/route.py
"""
Declarações de rotas, transforms, artefatos e fallback.

Uma rota é a unidade de processamento do pipeline: um predicado de
arquivo, dependências declaradas, artefatos emitidos e a cadeia
parse → transforms → resolve.

Assinaturas esperadas (síncronas ou assíncronas):

    parser(ctx: ParseContext) -> Iterable[Record] | AsyncIterable[Record]
    transform.fn(ctx: TransformContext, rows) -> Iterable | AsyncIterable
    resolver(ctx: ResolveContext, rows) -> Any | List[Any]

Decisões arquiteturais:
    - Declarações são dados imutáveis; o comportamento vive em funções
    - `emits` é normalizado para um mapeamento nome → ArtifactDefinition
    - Transforms são aplicados em ordem declarada, de forma preguiçosa

Limites explícitos:
    - Não valida o grafo (responsabilidade do planner)
    - Não executa rotas
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, AsyncIterator, Callable, Dict, Mapping, Optional, Sequence, Tuple, Union

from .filters import PipelineFilter
from .streams import as_async_iterator
from .types import FileIdentity

FALLBACK_ROUTE_ID = "__fallback__"


class ArtifactScope(str, Enum):
    VERSION = "version"
    GLOBAL = "global"


@dataclass(frozen=True)
class ArtifactDefinition:
    """
    Declaração de um artefato emitido por uma rota.

    `validator`, quando presente, é chamado no momento da emissão; retorno
    falso ou exceção invalida a emissão. Artefatos `global` permanecem
    visíveis para as versões seguintes da mesma run.
    """

    name: str
    validator: Optional[Callable[[Any], Any]] = None
    scope: ArtifactScope = ArtifactScope.VERSION

    @property
    def is_global(self) -> bool:
        return ArtifactScope(self.scope) == ArtifactScope.GLOBAL


@dataclass(frozen=True)
class TransformContext:
    version: str
    file: FileIdentity


@dataclass(frozen=True)
class TransformDefinition:
    id: str
    fn: Callable[[TransformContext, Any], Any]


EmitsDeclaration = Union[
    Mapping[str, Optional[ArtifactDefinition]],
    Sequence[Union[str, ArtifactDefinition]],
    None,
]


def _normalize_emits(emits: EmitsDeclaration) -> Dict[str, ArtifactDefinition]:
    if not emits:
        return {}
    normalized: Dict[str, ArtifactDefinition] = {}
    if isinstance(emits, Mapping):
        for name, definition in emits.items():
            normalized[name] = definition if definition is not None else ArtifactDefinition(name=name)
        return normalized
    for item in emits:
        if isinstance(item, ArtifactDefinition):
            normalized[item.name] = item
        else:
            normalized[str(item)] = ArtifactDefinition(name=str(item))
    return normalized


@dataclass(frozen=True)
class RouteDefinition:
    """
    Declaração de uma rota.

    Campos:
        - id: identificador único no pipeline
        - filter: predicado de arquivo (também aplicado por linha)
        - parser / resolver: etapas obrigatórias
        - depends: tokens `route:<id>` / `artifact:<id>:<nome>`
        - emits: artefatos declarados (nomes ou ArtifactDefinition)
        - transforms: cadeia aplicada entre parser e resolver
        - cache: `False` desativa o cache apenas para esta rota
    """

    id: str
    filter: PipelineFilter
    parser: Callable[..., Any]
    resolver: Callable[..., Any]
    depends: Tuple[str, ...] = ()
    emits: Any = None
    transforms: Tuple[TransformDefinition, ...] = ()
    cache: bool = True

    _artifacts: Dict[str, ArtifactDefinition] = field(init=False, repr=False, compare=False)

    def __post_init__(self) -> None:
        object.__setattr__(self, "depends", tuple(self.depends or ()))
        object.__setattr__(self, "transforms", tuple(self.transforms or ()))
        object.__setattr__(self, "_artifacts", _normalize_emits(self.emits))

    @property
    def artifacts(self) -> Dict[str, ArtifactDefinition]:
        return dict(self._artifacts)

    @property
    def emitted_artifact_names(self) -> Tuple[str, ...]:
        return tuple(self._artifacts)


@dataclass(frozen=True)
class FallbackDefinition:
    """Tratador para arquivos sem rota; sem cadeia de transforms."""

    parser: Callable[..., Any]
    resolver: Callable[..., Any]
    filter: Optional[PipelineFilter] = None


@dataclass(frozen=True)
class PipelineArtifactDefinition:
    """
    Artefato construído no nível do pipeline, uma vez por versão, antes
    de qualquer camada de rotas.

    `build(ctx, rows)` recebe um `ResolveContext` sem arquivo associado
    (ou com o primeiro arquivo aceito por `filter`) e as linhas produzidas
    por `parser`, se declarado.
    """

    id: str
    build: Callable[..., Any]
    filter: Optional[PipelineFilter] = None
    parser: Optional[Callable[..., Any]] = None


async def apply_transforms(
    ctx: TransformContext,
    rows: Any,
    transforms: Sequence[TransformDefinition],
) -> AsyncIterator[Any]:
    """Encadeia transforms em ordem declarada, sem bufferizar."""
    current: Any = as_async_iterator(rows)
    for transform in transforms:
        current = as_async_iterator(transform.fn(ctx, current))
    async for item in current:
        yield item
