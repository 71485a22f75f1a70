# src/ucd_pipelines/core/engine/__init__.py
"""
Engine do UCD Pipelines.

Componentes principais:
    - planner → validação do DAG de rotas, ordem topológica e camadas
    - queue   → fila de tarefas com limite de concorrência
    - engine  → execução por versão, camada e par (rota, arquivo)
    - results → RunResult e RunSummary

Princípios fundamentais:
    - Planejamento e execução são responsabilidades separadas
    - Erros de definição falham na construção do pipeline, nunca no meio da run
    - Falhas por item são coletadas e a run sempre termina

Limites explícitos:
    - Não define rotas de domínio
    - Não persiste resultados automaticamente
"""

from .engine import Pipeline, PipelineDefinition, run_pipeline
from .planner import (
    DAGNode,
    DAGValidationError,
    DAGValidationResult,
    DependencyGraph,
    build_dag,
    get_execution_layers,
    plan_execution,
)
from .queue import ProcessingQueue
from .results import RunResult, RunSummary

__all__ = [
    "Pipeline",
    "PipelineDefinition",
    "run_pipeline",
    "DAGNode",
    "DAGValidationError",
    "DAGValidationResult",
    "DependencyGraph",
    "build_dag",
    "get_execution_layers",
    "plan_execution",
    "ProcessingQueue",
    "RunResult",
    "RunSummary",
]
