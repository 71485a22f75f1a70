"""
UCD Pipelines — Canonical Run Error Structures (v1)

Este módulo define o padrão canônico de erros coletados durante uma run.
Erros de execução são considerados artefatos de domínio e fazem parte do
contrato operacional do sistema, devendo ser:

- explícitos
- escopados (pipeline, version, file, route, artifact)
- serializáveis
- acionáveis

Falhas por item nunca atravessam a fronteira da unidade que as produziu:
são convertidas em `RunError` e anexadas ao resultado.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, Optional


class ErrorScope(str, Enum):
    """Escopo de isolamento de uma falha."""

    PIPELINE = "pipeline"
    VERSION = "version"
    FILE = "file"
    ROUTE = "route"
    ARTIFACT = "artifact"


# ---------------------------------------------------------------------------
# Payload canônico
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class RunError:
    """
    Payload canônico de erro de uma run.

    Campos:
    - scope: escopo da falha (ver `ErrorScope`)
    - message: mensagem curta, humana e objetiva
    - type: código estável do erro (não é texto livre)
    - cause: exceção original, quando existir
    - file: identidade do arquivo envolvido
    - route_id / artifact_id / version: coordenadas da falha
    - hint: ação sugerida ao operador
    """

    scope: ErrorScope
    message: str
    type: str
    cause: Optional[BaseException] = None
    file: Any = None
    route_id: Optional[str] = None
    artifact_id: Optional[str] = None
    version: Optional[str] = None
    hint: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        """Retorna representação serializável do erro (sem stack trace)."""
        data: Dict[str, Any] = {
            "scope": self.scope.value,
            "type": self.type,
            "message": self.message,
            "route_id": self.route_id,
            "artifact_id": self.artifact_id,
            "version": self.version,
            "hint": self.hint,
        }
        if self.file is not None:
            data["file"] = self.file.to_dict() if hasattr(self.file, "to_dict") else str(self.file)
        if self.cause is not None:
            data["cause"] = {
                "exception_class": self.cause.__class__.__name__,
                "message": str(self.cause),
            }
        return data


# ---------------------------------------------------------------------------
# Catálogo canônico de tipos de erro (v1)
# ---------------------------------------------------------------------------

PIPELINE_DEFINITION_ERROR = "PIPELINE_DEFINITION_ERROR"
VERSION_EXECUTION_ERROR = "VERSION_EXECUTION_ERROR"
NO_MATCHING_ROUTE = "NO_MATCHING_ROUTE"
FALLBACK_EXECUTION_ERROR = "FALLBACK_EXECUTION_ERROR"
ROUTE_EXECUTION_ERROR = "ROUTE_EXECUTION_ERROR"
ARTIFACT_BUILD_ERROR = "ARTIFACT_BUILD_ERROR"


def _describe(exc: BaseException) -> str:
    return str(exc) or exc.__class__.__name__


# ---------------------------------------------------------------------------
# Helpers de fábrica
# ---------------------------------------------------------------------------

def pipeline_definition_error(
    *,
    pipeline_id: str,
    exc: BaseException,
    hint: Optional[str] = None,
) -> RunError:
    """
    Converte uma definição rejeitada (ex.: `PipelineDefinitionError`) em
    `RunError` de escopo `pipeline`, para quem registra a falha num Manifest
    sem ter chegado a executar.
    """
    return RunError(
        scope=ErrorScope.PIPELINE,
        type=PIPELINE_DEFINITION_ERROR,
        message=f"Pipeline {pipeline_id} definition is invalid: {_describe(exc)}",
        cause=exc,
        hint=hint or getattr(exc, "hint", None),
    )


def version_execution_error(
    *,
    version: str,
    exc: BaseException,
    hint: str = "Verifique o backend da fonte para esta versão. Nenhum retry é aplicado pelo engine.",
) -> RunError:
    return RunError(
        scope=ErrorScope.VERSION,
        type=VERSION_EXECUTION_ERROR,
        message=f"Version {version} aborted: {_describe(exc)}",
        cause=exc,
        version=version,
        hint=hint,
    )


def no_matching_route(
    *,
    file: Any,
    version: str,
    hint: str = "Declare uma rota (ou fallback) que aceite este arquivo, ou desative o modo strict.",
) -> RunError:
    return RunError(
        scope=ErrorScope.FILE,
        type=NO_MATCHING_ROUTE,
        message=f"No matching route for file: {file.path}",
        file=file,
        version=version,
        hint=hint,
    )


def fallback_execution_error(
    *,
    file: Any,
    version: str,
    exc: BaseException,
    hint: Optional[str] = None,
) -> RunError:
    return RunError(
        scope=ErrorScope.FILE,
        type=FALLBACK_EXECUTION_ERROR,
        message=_describe(exc),
        cause=exc,
        file=file,
        version=version,
        hint=hint,
    )


def route_execution_error(
    *,
    route_id: str,
    file: Any,
    version: str,
    exc: BaseException,
    hint: Optional[str] = None,
) -> RunError:
    return RunError(
        scope=ErrorScope.ROUTE,
        type=ROUTE_EXECUTION_ERROR,
        message=_describe(exc),
        cause=exc,
        file=file,
        route_id=route_id,
        version=version,
        hint=hint or getattr(exc, "hint", None),
    )


def artifact_build_error(
    *,
    artifact_id: str,
    version: str,
    exc: BaseException,
    hint: str = "Revise o passo `build` do artefato; rotas que dependem dele verão o artefato como ausente.",
) -> RunError:
    return RunError(
        scope=ErrorScope.ARTIFACT,
        type=ARTIFACT_BUILD_ERROR,
        message=_describe(exc),
        cause=exc,
        artifact_id=artifact_id,
        version=version,
        hint=hint,
    )
