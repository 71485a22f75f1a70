# src/ucd_pipelines/core/traceability/__init__.py
"""
Pacote de rastreabilidade do UCD Pipelines.

API pública exposta:
    - EventType / PipelineEvent / EventEmitter → stream ordenado de eventos da run
    - ProvenanceGraph                        → grafo source → file → route → artifact/output
    - RunManifest e funções do Manifest      → registro forense persistível em JSON
    - ManifestRecorder                       → observador que alimenta o Manifest

Decisões arquiteturais:
    - Nenhum evento é emitido implicitamente
    - A ordem do Event Log reflete a ordem de emissão
    - Manifest e grafo são independentes do engine
"""

from .events import EventEmitter, EventType, PipelineEvent
from .manifest import (
    ManifestRecorder,
    RunManifest,
    add_event,
    create_manifest,
    load_manifest,
    record_result,
    save_manifest,
    version_finished,
    version_started,
)
from .provenance import EdgeType, NodeType, ProvenanceEdge, ProvenanceGraph, ProvenanceNode

__all__ = [
    "EventEmitter",
    "EventType",
    "PipelineEvent",
    "ProvenanceGraph",
    "ProvenanceNode",
    "ProvenanceEdge",
    "NodeType",
    "EdgeType",
    "RunManifest",
    "ManifestRecorder",
    "create_manifest",
    "add_event",
    "version_started",
    "version_finished",
    "record_result",
    "save_manifest",
    "load_manifest",
]
