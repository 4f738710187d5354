"""Scenario graph: vertices are operation invocations, edges carry field mappings.

Vertex ids are dense and assigned in insertion order; they are never reused
or renumbered, so vertices live in a plain list indexed by id.
"""

import json
from pathlib import Path

import networkx as nx
from pydantic import ValidationError

from slsbench.model.datamodel import DataStructure, Field, WireModel


class CycleError(ValueError):
    """Raised when a scenario graph has no topological order."""


class UnknownVertexError(KeyError):
    """Raised when an edge references a vertex id that does not exist."""


class ScenarioFormatError(ValueError):
    """Raised when a scenario file cannot be turned back into a graph."""


class ScenarioGraphVertex(WireModel):
    path: str
    method: str
    parameters: list[Field] = []
    request_body: DataStructure | None = None
    response_code: str

    def label(self) -> str:
        return f"{self.method} {self.path} [{self.response_code}]"


class ScenarioGraphEdge(WireModel):
    source: int
    target: int
    # key: source field path, value: target field path
    mappings: dict[str, str] = {}

    def add_mapping(self, source_field: str, target_field: str) -> None:
        self.mappings[source_field] = target_field


class ScenarioGraph:
    """Append-only directed graph of scenario steps."""

    def __init__(self):
        self._vertices: list[ScenarioGraphVertex] = []
        self._edges: list[ScenarioGraphEdge] = []

    def __len__(self) -> int:
        return len(self._vertices)

    @property
    def vertices(self) -> dict[int, ScenarioGraphVertex]:
        return dict(enumerate(self._vertices))

    @property
    def edges(self) -> list[ScenarioGraphEdge]:
        return list(self._edges)

    def add_vertex(self, vertex: ScenarioGraphVertex) -> int:
        """Store a vertex and return its id."""
        self._vertices.append(vertex)
        return len(self._vertices) - 1

    def get_vertex(self, vertex_id: int) -> ScenarioGraphVertex | None:
        if 0 <= vertex_id < len(self._vertices):
            return self._vertices[vertex_id]
        return None

    def add_edge(self, source: int, target: int) -> ScenarioGraphEdge:
        """Append an edge with an empty mapping set and return it for population.

        Duplicate (source, target) pairs are not rejected here.
        """
        for vertex_id in (source, target):
            if self.get_vertex(vertex_id) is None:
                raise UnknownVertexError(vertex_id)
        edge = ScenarioGraphEdge(source=source, target=target)
        self._edges.append(edge)
        return edge

    def get_edge(self, source: int, target: int) -> ScenarioGraphEdge | None:
        """Return the first edge from ``source`` to ``target``, if any."""
        for edge in self._edges:
            if edge.source == source and edge.target == target:
                return edge
        return None

    def topological_sort(self) -> list[int]:
        """Order vertex ids so every edge points forward.

        Raises CycleError when the graph has a cycle; no partial order is returned.
        """
        digraph = nx.DiGraph()
        digraph.add_nodes_from(range(len(self._vertices)))
        digraph.add_edges_from((edge.source, edge.target) for edge in self._edges)
        try:
            return list(nx.topological_sort(digraph))
        except nx.NetworkXUnfeasible as e:
            cycle = " -> ".join(str(source) for source, _ in nx.find_cycle(digraph))
            raise CycleError(
                f"cycle detected in scenario graph ({cycle}): cannot determine execution order"
            ) from e

    # -- rendering ------------------------------------------------------------

    def edge_label(self, edge: ScenarioGraphEdge) -> str:
        source = self.get_vertex(edge.source)
        target = self.get_vertex(edge.target)
        source_label = source.label() if source else "(unknown)"
        target_label = target.label() if target else "(unknown)"
        return f"[{edge.source}] {source_label} -> [{edge.target}] {target_label}"

    def render(self) -> str:
        """Human-readable dump of vertices, edges and mappings."""
        lines = ["", "========== SCENARIO GRAPH ==========", "", "--- VERTICES ---"]
        if not self._vertices:
            lines.append("  (no vertices)")
        for vertex_id, vertex in enumerate(self._vertices):
            lines.append(f"  [{vertex_id}] {vertex.label()}")

        lines.extend(["", "--- EDGES ---"])
        if not self._edges:
            lines.append("  (no edges)")
        for edge in self._edges:
            lines.append(f"  {self.edge_label(edge)}")
            if edge.mappings:
                lines.append("    Mappings:")
                for source_field, target_field in edge.mappings.items():
                    lines.append(f"      {source_field} -> {target_field}")
        lines.append("=====================================")
        return "\n".join(lines) + "\n"

    # -- serialization --------------------------------------------------------

    def to_dict(self) -> dict:
        return {
            "vertices": {str(vertex_id): v.to_wire() for vertex_id, v in enumerate(self._vertices)},
            "edges": [e.to_wire() for e in self._edges],
        }

    @classmethod
    def from_dict(cls, data: dict) -> "ScenarioGraph":
        if not isinstance(data, dict) or not isinstance(data.get("vertices", {}), dict):
            raise ScenarioFormatError("scenario data must be an object with a vertices mapping")
        raw_edges = data.get("edges") or []
        if not isinstance(raw_edges, list):
            raise ScenarioFormatError("scenario edges must be a list")

        raw_vertices = {}
        for key, value in (data.get("vertices") or {}).items():
            try:
                vertex_id = int(key)
            except (TypeError, ValueError) as e:
                raise ScenarioFormatError(f"vertex ids must be integers: {e}") from e
            if vertex_id in raw_vertices:
                raise ScenarioFormatError(f"duplicate vertex id {vertex_id} (key {key!r})")
            raw_vertices[vertex_id] = value
        ids = sorted(raw_vertices)
        if ids != list(range(len(ids))):
            raise ScenarioFormatError(f"vertex ids must be dense from 0, got {ids}")

        graph = cls()
        try:
            for vertex_id in ids:
                graph.add_vertex(ScenarioGraphVertex.model_validate(raw_vertices[vertex_id]))
            for raw_edge in raw_edges:
                edge = ScenarioGraphEdge.model_validate(raw_edge)
                graph.add_edge(edge.source, edge.target).mappings.update(edge.mappings)
        except ValidationError as e:
            raise ScenarioFormatError(f"invalid scenario data: {e}") from e
        except UnknownVertexError as e:
            raise ScenarioFormatError(f"edge references unknown vertex {e}") from e
        return graph

    def save(self, file_path: Path) -> None:
        file_path.write_text(json.dumps(self.to_dict(), indent=2), encoding="utf-8")

    @classmethod
    def load(cls, file_path: Path) -> "ScenarioGraph":
        try:
            data = json.loads(file_path.read_text(encoding="utf-8"))
        except json.JSONDecodeError as e:
            raise ScenarioFormatError(f"failed to parse scenario file {file_path}: {e}") from e
        return cls.from_dict(data)
