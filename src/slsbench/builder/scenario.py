"""Scenario builder: assembles a scenario graph from a data model.

Each menu action is a transition on the builder's state (the graph plus the
catalogue of available operations) and can be applied on its own; ``run``
only repeats "show graph, select action, apply" until the user finishes.
All questions go through a Selector, so the same code serves a terminal
session and a scripted replay.
"""

import logging
from dataclasses import dataclass
from enum import Enum

import click

from slsbench.builder.datamodel import build_data_model
from slsbench.model.datamodel import DataModel, Field, Operation
from slsbench.model.graph import CycleError, ScenarioGraph, ScenarioGraphEdge, ScenarioGraphVertex
from slsbench.selector import SelectionError, Selector

logger = logging.getLogger(__name__)

DEFAULT_RESPONSE_CODE = "default"


class Action(Enum):
    ADD_VERTEX = "Add new endpoint (vertex)"
    ADD_EDGE = "Add connection between endpoints"
    ADD_MAPPING = "Add field mapping to connection"
    FINISH = "Done - finish building graph"


MENU = list(Action)


@dataclass
class AvailableOperation:
    """An operation that can be placed into the graph."""

    path: str
    method: str
    operation: Operation

    def label(self) -> str:
        return f"{self.method} {self.path}"


def build_available_operations(data_model: DataModel) -> list[AvailableOperation]:
    """One entry per (endpoint, method), in document order."""
    return [
        AvailableOperation(path=endpoint.path, method=method, operation=operation)
        for endpoint in data_model.endpoints.values()
        for method, operation in endpoint.operations.items()
    ]


def collect_request_fields(vertex: ScenarioGraphVertex) -> list[str]:
    """Field paths of a vertex's request: ``body.*`` then ``<in>.<name>`` parameters."""
    fields = []
    if vertex.request_body is not None:
        fields.extend(collect_field_paths(vertex.request_body.fields, "body"))
    for param in vertex.parameters:
        fields.append(f"{param.location or 'param'}.{param.name}")
    return fields


def collect_field_paths(fields: list[Field], prefix: str) -> list[str]:
    paths = []
    for field in fields:
        field_path = f"{prefix}.{field.name}"
        paths.append(field_path)
        paths.extend(_nested_paths(field, field_path))
    return paths


def _nested_paths(field: Field, field_path: str) -> list[str]:
    paths = []
    if field.properties:
        paths.extend(collect_field_paths(list(field.properties.values()), field_path))
    if field.items is not None:
        item_path = f"{field_path}[]"
        paths.append(item_path)
        paths.extend(_nested_paths(field.items, item_path))
    return paths


class ScenarioBuilder:
    """Builds a ScenarioGraph one action at a time."""

    def __init__(self, data_model: DataModel, selector: Selector, graph: ScenarioGraph | None = None):
        self.selector = selector
        self.graph = graph if graph is not None else ScenarioGraph()
        self.available = build_available_operations(data_model)

    def run(self) -> ScenarioGraph:
        if not self.available:
            click.echo("No operations found in the data model.")
            return self.graph

        while True:
            click.echo(self.graph.render(), nl=False)
            try:
                index, _ = self.selector.select("Select action", [action.value for action in MENU])
            except SelectionError as e:
                logger.warning("Action selection failed: %s", e)
                break
            if not self.apply(MENU[index]):
                break
        return self.graph

    def apply(self, action: Action) -> bool:
        """Apply one menu action. Returns False once the user is done."""
        if action is Action.FINISH:
            click.echo("Finished building scenario graph.")
            click.echo(self.graph.render(), nl=False)
            return False

        handlers = {
            Action.ADD_VERTEX: self.add_vertex,
            Action.ADD_EDGE: self.add_edge,
            Action.ADD_MAPPING: self.add_field_mapping,
        }
        try:
            handlers[action]()
        except SelectionError as e:
            logger.warning("%s abandoned: %s", action.value, e)
        return True

    # -- actions --------------------------------------------------------------

    def add_vertex(self) -> int | None:
        if not self.available:
            click.echo("No available operations to add.")
            return None

        index, _ = self.selector.select("Select endpoint to add", [op.label() for op in self.available])
        selected = self.available[index]
        response_code = self._choose_response_code(selected.operation)

        vertex = ScenarioGraphVertex(
            path=selected.path,
            method=selected.method,
            parameters=list(selected.operation.parameters),
            request_body=selected.operation.request_body,
            response_code=response_code,
        )
        vertex_id = self.graph.add_vertex(vertex)
        click.echo(f"Added vertex [{vertex_id}]: {vertex.label()}")
        return vertex_id

    def _choose_response_code(self, operation: Operation) -> str:
        codes = list(operation.responses)
        if not codes:
            return DEFAULT_RESPONSE_CODE
        if len(codes) == 1:
            return codes[0]

        options = [
            code if operation.responses[code] is not None else f"{code} (no body)"
            for code in codes
        ]
        index, _ = self.selector.select("Select response code", options)
        return codes[index]

    def add_edge(self) -> ScenarioGraphEdge | None:
        vertices = self.graph.vertices
        if len(vertices) < 2:
            click.echo("Need at least 2 vertices to create a connection.")
            return None

        source_ids = list(vertices)
        index, _ = self.selector.select(
            "Select SOURCE vertex (response provider)",
            [f"[{vid}] {vertices[vid].label()}" for vid in source_ids],
        )
        source = source_ids[index]

        target_ids = [vid for vid in vertices if vid != source]
        index, _ = self.selector.select(
            "Select TARGET vertex (request consumer)",
            [f"[{vid}] {vertices[vid].label()}" for vid in target_ids],
        )
        target = target_ids[index]

        if self.graph.get_edge(source, target) is not None:
            click.echo(f"Connection already exists between [{source}] and [{target}].")
            return None

        edge = self.graph.add_edge(source, target)
        click.echo(f"Added connection: [{edge.source}] -> [{edge.target}]")
        return edge

    def add_field_mapping(self) -> tuple[str, str] | None:
        edges = self.graph.edges
        if not edges:
            click.echo("No connections exist. Create a connection first.")
            return None

        index, _ = self.selector.select(
            "Select connection to add mapping to", [self.graph.edge_label(e) for e in edges]
        )
        edge = edges[index]

        source_fields = collect_request_fields(self.graph.get_vertex(edge.source))
        if not source_fields:
            click.echo("No fields available in source vertex (no request body or parameters).")
            return None
        target_fields = collect_request_fields(self.graph.get_vertex(edge.target))
        if not target_fields:
            click.echo("No request fields available in target vertex.")
            return None

        if edge.mappings:
            click.echo("\nExisting mappings:")
            for source_field, target_field in edge.mappings.items():
                click.echo(f"  {source_field} -> {target_field}")
            click.echo()

        index, _ = self.selector.select("Select SOURCE field (from previous request)", source_fields)
        source_field = source_fields[index]
        if source_field in edge.mappings:
            click.echo(
                f"Warning: Field '{source_field}' is already mapped to "
                f"'{edge.mappings[source_field]}'. It will be overwritten."
            )

        index, _ = self.selector.select("Select TARGET field (to map to)", target_fields)
        target_field = target_fields[index]

        edge.add_mapping(source_field, target_field)
        click.echo(f"Added mapping: {source_field} -> {target_field}")
        return source_field, target_field


def log_execution_order(graph: ScenarioGraph) -> list[int] | None:
    """Log the topological order of the graph; None when it has a cycle."""
    try:
        order = graph.topological_sort()
    except CycleError as e:
        logger.warning("Failed to compute topological order: %s", e)
        logger.warning("Graph may contain cycles. Execution order may be undefined.")
        return None

    logger.info("Topological order of endpoints:")
    for position, vertex_id in enumerate(order, start=1):
        logger.info("  %d. [%d] %s", position, vertex_id, graph.get_vertex(vertex_id).label())
    return order


def create_scenario(document: dict | None, selector: Selector, refs: dict[int, str] | None = None) -> ScenarioGraph:
    """Build the data model of a document and assemble a scenario from it."""
    data_model = build_data_model(document, refs)
    graph = ScenarioBuilder(data_model, selector).run()
    log_execution_order(graph)
    return graph
