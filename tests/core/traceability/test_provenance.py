from __future__ import annotations

from ucd_pipelines.core.pipeline.types import FileIdentity
from ucd_pipelines.core.traceability.provenance import EdgeType, NodeType, ProvenanceGraph


def test_node_ids_are_deterministic_and_idempotent():
    graph = ProvenanceGraph()
    file = FileIdentity.from_path("16.0.0", "ucd/LineBreak.txt")

    assert graph.add_source_node("16.0.0") == "source:16.0.0"
    assert graph.add_file_node(file) == "file:16.0.0:ucd/LineBreak.txt"
    assert graph.add_file_node(file) == "file:16.0.0:ucd/LineBreak.txt"
    assert graph.add_route_node("line-break", "16.0.0") == "route:16.0.0:line-break"
    assert graph.add_artifact_node("line-break:classes", "16.0.0") == "artifact:16.0.0:line-break:classes"
    assert graph.add_output_node(0, "16.0.0", property="Line_Break") == "output:16.0.0:0"

    assert len(graph.nodes) == 5
    assert [n.id for n in graph.nodes_of_type(NodeType.FILE)] == ["file:16.0.0:ucd/LineBreak.txt"]
    assert graph.get_node("output:16.0.0:0").attrs["property"] == "Line_Break"
    assert graph.get_node("missing") is None


def test_edges_are_deduplicated_and_queryable():
    graph = ProvenanceGraph()
    graph.add_edge("source:16.0.0", "file:16.0.0:a.txt", EdgeType.PROVIDES)
    graph.add_edge("source:16.0.0", "file:16.0.0:a.txt", EdgeType.PROVIDES)
    graph.add_edge("file:16.0.0:a.txt", "route:16.0.0:r", EdgeType.MATCHED)
    graph.add_edge("route:16.0.0:r", "output:16.0.0:0", EdgeType.RESOLVED)

    assert len(graph.edges) == 3
    assert [e.target for e in graph.edges_from("source:16.0.0")] == ["file:16.0.0:a.txt"]
    assert [e.type for e in graph.edges_to("route:16.0.0:r")] == [EdgeType.MATCHED]


def test_to_dict_preserves_insertion_order():
    graph = ProvenanceGraph()
    graph.add_route_node("r", "16.0.0")
    graph.add_source_node("16.0.0")
    graph.add_edge("source:16.0.0", "route:16.0.0:r", "resolved")

    d = graph.to_dict()

    assert [n["id"] for n in d["nodes"]] == ["route:16.0.0:r", "source:16.0.0"]
    assert d["nodes"][0] == {"id": "route:16.0.0:r", "type": "route", "route_id": "r", "version": "16.0.0"}
    assert d["edges"] == [{"from": "source:16.0.0", "to": "route:16.0.0:r", "type": "resolved"}]
