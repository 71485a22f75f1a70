# src/ucd_pipelines/core/traceability/events.py
"""
Stream de eventos do ciclo de vida de uma run.

Cada transição relevante (pipeline, versão, arquivo, parse, resolve,
artefato, cache, erro) gera exatamente um `PipelineEvent`, entregue a um
único observador registrado.

Decisões arquiteturais:
    - A emissão é serializada por um `asyncio.Lock`: o observador vê uma
      ordem total, sem intercalação, mesmo com rotas concorrentes
    - Se o observador retornar um awaitable, o engine aguarda sua conclusão
      antes de prosseguir
    - Falhas do observador propagam para quem emitiu o evento

Invariantes:
    - `events` é append-only e reflete a ordem de emissão
    - `timestamp` é monotônico (ms, `time.perf_counter`)
    - `span_id` é único por run
"""

from __future__ import annotations

import asyncio
import inspect
import itertools
import time
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable, Dict, List, Optional


class EventType(str, Enum):
    PIPELINE_START = "pipeline:start"
    PIPELINE_END = "pipeline:end"
    VERSION_START = "version:start"
    VERSION_END = "version:end"
    ARTIFACT_START = "artifact:start"
    ARTIFACT_END = "artifact:end"
    ARTIFACT_PRODUCED = "artifact:produced"
    ARTIFACT_CONSUMED = "artifact:consumed"
    FILE_MATCHED = "file:matched"
    FILE_SKIPPED = "file:skipped"
    FILE_FALLBACK = "file:fallback"
    PARSE_START = "parse:start"
    PARSE_END = "parse:end"
    RESOLVE_START = "resolve:start"
    RESOLVE_END = "resolve:end"
    CACHE_HIT = "cache:hit"
    CACHE_MISS = "cache:miss"
    CACHE_STORE = "cache:store"
    ERROR = "error"


def monotonic_ms() -> float:
    return time.perf_counter() * 1000.0


@dataclass(frozen=True)
class PipelineEvent:
    """
    Evento emitido durante uma run.

    Campos de coordenada (`version`, `file`, `route_id`, `artifact_id`) são
    preenchidos conforme o tipo; dados específicos ficam em `data`
    (ex.: `duration_ms`, `row_count`, `reason`, `error`).
    """

    type: EventType
    timestamp: float
    span_id: str
    version: Optional[str] = None
    file: Any = None
    route_id: Optional[str] = None
    artifact_id: Optional[str] = None
    data: Dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        out: Dict[str, Any] = {
            "type": self.type.value,
            "timestamp": self.timestamp,
            "span_id": self.span_id,
        }
        if self.version is not None:
            out["version"] = self.version
        if self.file is not None:
            out["file"] = self.file.to_dict() if hasattr(self.file, "to_dict") else self.file
        if self.route_id is not None:
            out["route_id"] = self.route_id
        if self.artifact_id is not None:
            out["artifact_id"] = self.artifact_id
        for key, value in self.data.items():
            out[key] = value.to_dict() if hasattr(value, "to_dict") else value
        return out


EventObserver = Callable[[PipelineEvent], Any]


class EventEmitter:
    def __init__(self, observer: Optional[EventObserver] = None):
        self._observer = observer
        self._lock = asyncio.Lock()
        self._spans = itertools.count(1)
        self.events: List[PipelineEvent] = []

    def next_span_id(self) -> str:
        return f"span-{next(self._spans)}"

    async def emit(
        self,
        type: EventType,
        *,
        span_id: Optional[str] = None,
        version: Optional[str] = None,
        file: Any = None,
        route_id: Optional[str] = None,
        artifact_id: Optional[str] = None,
        **data: Any,
    ) -> PipelineEvent:
        async with self._lock:
            event = PipelineEvent(
                type=EventType(type),
                timestamp=monotonic_ms(),
                span_id=span_id or self.next_span_id(),
                version=version,
                file=file,
                route_id=route_id,
                artifact_id=artifact_id,
                data=data,
            )
            self.events.append(event)
            if self._observer is not None:
                outcome = self._observer(event)
                if inspect.isawaitable(outcome):
                    await outcome
            return event

    def of_type(self, type: EventType) -> List[PipelineEvent]:
        return [e for e in self.events if e.type == type]
