# src/ucd_pipelines/core/pipeline/dependencies.py
"""
Parser de tokens de dependência entre rotas.

Uma rota declara dependências como strings:

    - "route:<routeId>"                    → depende da rota inteira
    - "artifact:<routeId>:<artifactName>"  → depende de um artefato emitido

Todos os segmentos devem ser não vazios e sem espaços em branco. Tokens como "route:",
"artifact::x" ou "artifact:x:" são rejeitados com
`InvalidDependencyFormat`, nunca aceitos silenciosamente.

Funções puras, sem efeitos colaterais.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Union

from ucd_pipelines.core.exceptions import InvalidDependencyFormat

_ROUTE_RE = re.compile(r"route:([^:\s]+)")
_ARTIFACT_RE = re.compile(r"artifact:([^:\s]+):([^:\s]+)")


@dataclass(frozen=True)
class RouteDependency:
    """Dependência de uma rota inteira."""

    route_id: str
    kind: str = "route"


@dataclass(frozen=True)
class ArtifactDependency:
    """Dependência de um artefato nomeado emitido por uma rota."""

    route_id: str
    artifact_name: str
    kind: str = "artifact"

    @property
    def key(self) -> str:
        return f"{self.route_id}:{self.artifact_name}"


DependencyReference = Union[RouteDependency, ArtifactDependency]


def parse_dependency(token: str) -> DependencyReference:
    """
    Converte um token de dependência em `DependencyReference`.

    Raises:
        InvalidDependencyFormat: Se o token não seguir nenhum dos dois formatos
            ou possuir segmento vazio.
    """
    if isinstance(token, str):
        match = _ROUTE_RE.fullmatch(token)
        if match:
            return RouteDependency(route_id=match.group(1))

        match = _ARTIFACT_RE.fullmatch(token)
        if match:
            return ArtifactDependency(route_id=match.group(1), artifact_name=match.group(2))

    raise InvalidDependencyFormat(
        message=(
            f'Invalid dependency format: {token}. '
            f'Expected "route:<id>" or "artifact:<routeId>:<artifactName>"'
        ),
        details={"token": token},
        hint="Use route:<id> ou artifact:<routeId>:<artifactName> com todos os segmentos preenchidos.",
    )


def format_dependency(ref: DependencyReference) -> str:
    """Inverso de `parse_dependency`."""
    if isinstance(ref, ArtifactDependency):
        return f"artifact:{ref.route_id}:{ref.artifact_name}"
    return f"route:{ref.route_id}"


def route_dependency(route_id: str) -> str:
    return format_dependency(RouteDependency(route_id=route_id))


def artifact_dependency(route_id: str, artifact_name: str) -> str:
    return format_dependency(ArtifactDependency(route_id=route_id, artifact_name=artifact_name))


def is_route_dependency(token: str) -> bool:
    return isinstance(token, str) and _ROUTE_RE.fullmatch(token) is not None


def is_artifact_dependency(token: str) -> bool:
    return isinstance(token, str) and _ARTIFACT_RE.fullmatch(token) is not None
