"""
UCD Pipelines — Canonical Exceptions (v1)

Este módulo define exceções tipadas internas do UCD Pipelines.

Objetivo:
- Permitir que o planner, o engine e as rotas levantem exceções semânticas tipadas
- Facilitar o mapeamento determinístico para `RunError`
- Evitar ValueError/RuntimeError genéricos em guardrails críticos

Regras:
- Não contém lógica de parsing de nenhum formato específico.
- Exceções devem carregar apenas dados estruturados (serializáveis).
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional


@dataclass(frozen=True)
class PipelineException(Exception):
    """Base class para exceções internas do UCD Pipelines.

    Importante:
    - Sempre carregar dados estruturados em `details`
    - Não embedar stack trace em payloads de erro
    - Mensagem deve ser curta e humana
    """

    message: str
    details: Dict[str, Any] = field(default_factory=dict)
    hint: Optional[str] = None

    def __str__(self) -> str:  # pragma: no cover
        return self.message


# ---------------------------------------------------------------------------
# Definição do pipeline (DAG)
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class InvalidDependencyFormat(PipelineException):
    """Token de dependência fora de `route:<id>` ou `artifact:<id>:<nome>`."""


@dataclass(frozen=True)
class PipelineDefinitionError(PipelineException):
    """Definição do pipeline inválida (ids duplicados, referências, ciclos).

    `errors` carrega a lista completa de erros de validação do DAG, na ordem
    em que foram coletados.
    """

    errors: List[Any] = field(default_factory=list)


# ---------------------------------------------------------------------------
# Execução
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class ArtifactValidationError(PipelineException):
    """Valor emitido para um artefato foi rejeitado pelo validador declarado."""


@dataclass(frozen=True)
class SourceNotFoundError(PipelineException):
    """Nenhum backend registrado para a fonte de um arquivo."""
