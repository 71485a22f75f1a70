# src/ucd_pipelines/__init__.py
"""
UCD Pipelines — engine de pipelines orientado a DAG para arquivos do
Unicode Character Database, uma versão do corpus por vez.

Arquitetura em alto nível:
    - core.config       → configuração declarativa do engine
    - core.pipeline     → rotas, fontes, filtros, dependências e contextos
    - core.engine       → DAG de rotas e scheduler com concorrência limitada
    - core.cache        → cache opcional de saídas por (rota, arquivo, versão)
    - core.traceability → eventos, proveniência e Manifest
    - backends          → fontes de arquivos (disco local, memória)

Limites explícitos:
    - Não baixa nem sincroniza arquivos do corpus
    - Não define gramáticas de formatos específicos
    - Não é um scheduler distribuído
"""

__version__ = "0.1.0"

from ucd_pipelines.core.engine import Pipeline, PipelineDefinition, RunResult, run_pipeline
from ucd_pipelines.core.pipeline import (
    ArtifactDefinition,
    FallbackDefinition,
    PipelineArtifactDefinition,
    RouteDefinition,
    SourceDefinition,
    TransformDefinition,
)

__all__ = [
    "__version__",
    "Pipeline",
    "PipelineDefinition",
    "RunResult",
    "run_pipeline",
    "ArtifactDefinition",
    "FallbackDefinition",
    "PipelineArtifactDefinition",
    "RouteDefinition",
    "SourceDefinition",
    "TransformDefinition",
]
