"""Hint enrichment: asks for a semantic hint for every leaf field of a document.

Hints are written onto the schema objects themselves as ``x-user-hint`` so
they survive saving the document and are picked up when the data model is
built. Containers never receive a hint: arrays pass the question on to their
item schema, objects with properties leave it to their properties and maps
leave it to their value schema.
"""

import logging

from slsbench.model.hints import HINT_EXTENSION, HINT_OPTIONS
from slsbench.selector import SelectionError, Selector
from slsbench.spec.walker import SpecVisitor, SpecWalker, schema_type

logger = logging.getLogger(__name__)

HTTP_METHOD_NAMES = {"GET", "POST", "PUT", "PATCH", "DELETE", "OPTIONS", "HEAD", "TRACE"}
LOCATION_LABELS = {"requestBody": "Request Body", "parameter": "Parameter"}


class HintEnricher(SpecVisitor):
    """Visitor writing hints chosen by a selector onto leaf schemas."""

    def __init__(self, document: dict | None, selector: Selector, skip_hinted: bool = False):
        self.document = document
        self.selector = selector
        self.skip_hinted = skip_hinted

    def set_hints(self) -> dict | None:
        """Walk the document and return it, enriched in place."""
        SpecWalker(self.document).walk(self)
        return self.document

    def visit_component_schema(self, name: str, schema: dict) -> None:
        logger.debug("Visiting component schema: %s", name)

    def visit_property(self, path: str, schema: dict) -> None:
        self.set_hint_on_schema(schema, path)

    def set_hint_on_schema(self, schema, path: str) -> None:
        if not isinstance(schema, dict):
            return

        kind = schema_type(schema)
        if kind == "array":
            self.set_hint_on_schema(schema.get("items"), f"{path}[]")
            return
        if kind == "object" and schema.get("properties"):
            return
        # maps: the value schema is visited as <path>/additionalProperties
        if isinstance(schema.get("additionalProperties"), dict):
            return

        if self.skip_hinted and isinstance(schema.get(HINT_EXTENSION), str):
            return

        label = f"Select hint for {format_path_for_prompt(path)}"
        try:
            index, _ = self.selector.select(label, HINT_OPTIONS)
        except SelectionError as e:
            logger.warning("Hint selection failed for %s: %s", path, e)
            return
        schema[HINT_EXTENSION] = HINT_OPTIONS[index]


def format_path_for_prompt(path: str) -> str:
    """Readable form of a walker path.

    ``/wrk2-api/movie-info/write/POST/requestBody/application/json.avg_rating``
    becomes ``avg_rating (POST - /wrk2-api/movie-info/write - Request Body)``.
    """
    field_name = ""
    base_path, dot, tail = path.rpartition(".")
    if dot:
        field_name = tail
    else:
        base_path = path
        last = path.rsplit("/", 1)[-1]
        if last not in ("requestBody", "response", "parameter"):
            field_name = last

    parts = base_path.split("/")
    if parts and parts[0] == "":
        parts = parts[1:]
    if not parts:
        return field_name or _clean_path(path)

    method = endpoint = location = ""
    method_index = next((i for i, p in enumerate(parts) if p in HTTP_METHOD_NAMES), -1)
    if method_index >= 0:
        method = parts[method_index]
        if method_index > 0:
            endpoint = "/" + "/".join(parts[:method_index])
        rest = parts[method_index + 1:]
        if rest and rest[0] == "response":
            location = f"Response {rest[1]}" if len(rest) > 1 else "Response"
        elif rest:
            location = LOCATION_LABELS.get(rest[0], "")
            if rest[0] == "parameter" and len(rest) > 1 and not field_name:
                field_name = rest[1]

    context = [part for part in (method, endpoint, location) if part]
    if not context:
        return field_name or _clean_path(path)
    if not field_name:
        return " - ".join(context)
    return f"{field_name} ({' - '.join(context)})"


def _clean_path(path: str) -> str:
    return path.replace("/", " → ").replace(".", " > ")
