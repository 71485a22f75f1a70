# src/ucd_pipelines/core/pipeline/registry.py
"""
Registro de rotas e fontes de um pipeline.

O `PipelineRegistry` guarda as declarações na ordem de registro. Fontes
têm id único validado no momento do registro. Rotas com id repetido são
aceitas aqui e reportadas pelo planner com os índices de cada ocorrência,
junto com os demais erros de definição.

Invariantes:
    - A ordem de registro é preservada
    - `source.id` é único no registry

Limites explícitos:
    - Não valida dependências nem ciclos (responsabilidade do planner)
    - Não executa rotas
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, List, Optional

from .route import RouteDefinition
from .source import SourceDefinition


class DuplicateSourceIdError(ValueError):
    """Duas fontes registradas com o mesmo id."""


@dataclass
class PipelineRegistry:
    _routes: List[RouteDefinition] = field(default_factory=list, init=False, repr=False)
    _sources: Dict[str, SourceDefinition] = field(default_factory=dict, init=False, repr=False)

    def add_route(self, route: RouteDefinition) -> None:
        route_id = getattr(route, "id", None)
        if not isinstance(route_id, str) or not route_id.strip():
            raise ValueError("route.id must be a non-empty string")
        self._routes.append(route)

    def add_source(self, source: SourceDefinition) -> None:
        source_id = getattr(source, "id", None)
        if not isinstance(source_id, str) or not source_id.strip():
            raise ValueError("source.id must be a non-empty string")
        if source_id in self._sources:
            raise DuplicateSourceIdError(f"Duplicate source id: {source_id}")
        self._sources[source_id] = source

    def route(self, route_id: str) -> Optional[RouteDefinition]:
        for route in self._routes:
            if route.id == route_id:
                return route
        return None

    def source(self, source_id: str) -> SourceDefinition:
        return self._sources[source_id]

    def routes(self) -> List[RouteDefinition]:
        return list(self._routes)

    def sources(self) -> List[SourceDefinition]:
        return list(self._sources.values())
