# src/ucd_pipelines/core/traceability/provenance.py
"""
Grafo de proveniência de uma run.

Nós: source, file, route, artifact, output.
Arestas: provides (source → file/artifact), matched (file → route),
resolved (route → artifact, route/file → output).

Ids de nó são determinísticos:

    source:<versão>
    file:<versão>:<path>
    route:<versão>:<routeId>
    artifact:<versão>:<artifactId>
    output:<versão>:<índice>

Invariantes:
    - Inserir o mesmo nó (id) ou a mesma aresta (from, to, type) duas vezes é no-op
    - A ordem de inserção é preservada
    - Inserções são protegidas por lock (tarefas concorrentes da mesma camada)
"""

from __future__ import annotations

import threading
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional, Tuple

from ucd_pipelines.core.pipeline.types import FileIdentity


class NodeType(str, Enum):
    SOURCE = "source"
    FILE = "file"
    ROUTE = "route"
    ARTIFACT = "artifact"
    OUTPUT = "output"


class EdgeType(str, Enum):
    PROVIDES = "provides"
    MATCHED = "matched"
    RESOLVED = "resolved"


@dataclass(frozen=True)
class ProvenanceNode:
    id: str
    type: NodeType
    attrs: Dict[str, Any] = field(default_factory=dict, compare=False)

    def to_dict(self) -> Dict[str, Any]:
        return {"id": self.id, "type": self.type.value, **self.attrs}


@dataclass(frozen=True)
class ProvenanceEdge:
    source: str
    target: str
    type: EdgeType

    def to_dict(self) -> Dict[str, Any]:
        return {"from": self.source, "to": self.target, "type": self.type.value}


class ProvenanceGraph:
    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._nodes: Dict[str, ProvenanceNode] = {}
        self._edges: Dict[Tuple[str, str, EdgeType], ProvenanceEdge] = {}

    @property
    def nodes(self) -> List[ProvenanceNode]:
        with self._lock:
            return list(self._nodes.values())

    @property
    def edges(self) -> List[ProvenanceEdge]:
        with self._lock:
            return list(self._edges.values())

    def add_node(self, node_id: str, type: NodeType, **attrs: Any) -> str:
        with self._lock:
            if node_id not in self._nodes:
                self._nodes[node_id] = ProvenanceNode(id=node_id, type=NodeType(type), attrs=attrs)
        return node_id

    def add_edge(self, source: str, target: str, type: EdgeType) -> None:
        key = (source, target, EdgeType(type))
        with self._lock:
            if key not in self._edges:
                self._edges[key] = ProvenanceEdge(source=source, target=target, type=EdgeType(type))

    # -----------------------------
    # Construtores de nós
    # -----------------------------
    def add_source_node(self, version: str) -> str:
        return self.add_node(f"source:{version}", NodeType.SOURCE, version=version)

    def add_file_node(self, file: FileIdentity) -> str:
        return self.add_node(f"file:{file.version}:{file.path}", NodeType.FILE, file=file.to_dict())

    def add_route_node(self, route_id: str, version: str) -> str:
        return self.add_node(f"route:{version}:{route_id}", NodeType.ROUTE, route_id=route_id, version=version)

    def add_artifact_node(self, artifact_id: str, version: str) -> str:
        return self.add_node(
            f"artifact:{version}:{artifact_id}", NodeType.ARTIFACT, artifact_id=artifact_id, version=version
        )

    def add_output_node(self, index: int, version: str, property: Optional[str] = None) -> str:
        attrs: Dict[str, Any] = {"output_index": index, "version": version}
        if property is not None:
            attrs["property"] = property
        return self.add_node(f"output:{version}:{index}", NodeType.OUTPUT, **attrs)

    # -----------------------------
    # Consultas
    # -----------------------------
    def get_node(self, node_id: str) -> Optional[ProvenanceNode]:
        with self._lock:
            return self._nodes.get(node_id)

    def nodes_of_type(self, type: NodeType) -> List[ProvenanceNode]:
        wanted = NodeType(type)
        return [n for n in self.nodes if n.type == wanted]

    def edges_from(self, node_id: str) -> List[ProvenanceEdge]:
        return [e for e in self.edges if e.source == node_id]

    def edges_to(self, node_id: str) -> List[ProvenanceEdge]:
        return [e for e in self.edges if e.target == node_id]

    def to_dict(self) -> Dict[str, Any]:
        return {
            "nodes": [n.to_dict() for n in self.nodes],
            "edges": [e.to_dict() for e in self.edges],
        }
