# src/ucd_pipelines/core/engine/results.py
"""
Resultado agregado de uma run (RunResult).

O RunResult pertence exclusivamente ao chamador da run. Nenhum estado
mutável sobrevive entre runs, exceto o cache opcional.

Invariantes:
    - `outputs` segue a ordem em que cada tarefa disponibilizou suas saídas
    - `errors` segue a ordem de coleta
    - `status` é "completed" sem erros e "failed" com pelo menos um erro
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List

from ucd_pipelines.core.errors import ErrorScope, RunError
from ucd_pipelines.core.traceability.events import PipelineEvent
from ucd_pipelines.core.traceability.provenance import ProvenanceGraph


@dataclass(frozen=True)
class RunSummary:
    versions: List[str]
    total_files: int = 0
    matched_files: int = 0
    skipped_files: int = 0
    fallback_files: int = 0
    total_outputs: int = 0
    duration_ms: float = 0.0
    cache_hits: int = 0
    cache_misses: int = 0
    error_count: int = 0

    def to_dict(self) -> Dict[str, Any]:
        return {
            "versions": list(self.versions),
            "total_files": self.total_files,
            "matched_files": self.matched_files,
            "skipped_files": self.skipped_files,
            "fallback_files": self.fallback_files,
            "total_outputs": self.total_outputs,
            "duration_ms": self.duration_ms,
            "cache_hits": self.cache_hits,
            "cache_misses": self.cache_misses,
            "error_count": self.error_count,
        }


@dataclass(frozen=True)
class RunResult:
    pipeline_id: str
    run_id: str
    outputs: List[Any]
    provenance: ProvenanceGraph
    errors: List[RunError]
    summary: RunSummary
    events: List[PipelineEvent] = field(default_factory=list)
    logs: List[Dict[str, Any]] = field(default_factory=list)
    warnings: Dict[str, List[str]] = field(default_factory=dict)

    @property
    def status(self) -> str:
        return "completed" if not self.errors else "failed"

    def errors_in_scope(self, scope: ErrorScope) -> List[RunError]:
        wanted = ErrorScope(scope)
        return [e for e in self.errors if e.scope == wanted]
