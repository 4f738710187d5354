"""Builds a DataModel from walker events.

Fields are composed by a recursion of their own rather than from the
walker's property stream, because each field owns its nested items and
properties. The recursion guards against cyclic schemas the same way the
walker does: a schema on the active stack is not expanded again.
"""

from slsbench.model.datamodel import DataModel, DataStructure, Endpoint, Field, Operation
from slsbench.model.hints import HINT_EXTENSION, UNIQUE_EXTENSION
from slsbench.spec.walker import Location, SpecVisitor, SpecWalker, schema_type

KEPT_PARAMETER_LOCATIONS = ("query", "path")
PREFERRED_CONTENT_TYPE = "application/json"


def build_data_model(document: dict | None, refs: dict[int, str] | None = None) -> DataModel:
    """Walk a document and return its endpoints, operations and fields."""
    builder = DataModelBuilder(refs=refs)
    SpecWalker(document).walk(builder)
    return builder.data_model


class DataModelBuilder(SpecVisitor):
    """Visitor accumulating a DataModel.

    ``refs`` maps ``id(schema)`` to the component pointer a schema was
    referenced by, as produced by the loader.
    """

    def __init__(self, refs: dict[int, str] | None = None):
        self.data_model = DataModel()
        self.refs = refs or {}
        self._path_parameters: dict[str, list[Field]] = {}
        # content type each stored body came from, keyed by (endpoint, method, status or None)
        self._body_content_types: dict[tuple, str] = {}

    def ensure_operation(self, endpoint_path: str, method: str) -> Operation:
        endpoint = self.data_model.endpoints.get(endpoint_path)
        if endpoint is None:
            endpoint = Endpoint(path=endpoint_path)
            self.data_model.endpoints[endpoint_path] = endpoint

        operation = endpoint.operations.get(method)
        if operation is None:
            operation = Operation(method=method)
            endpoint.operations[method] = operation
        return operation

    # -- visitor callbacks ----------------------------------------------------

    def visit_operation(self, path: str, location: Location, operation: dict) -> None:
        op = self.ensure_operation(location.endpoint, location.method)
        # Path-level parameters apply to every operation of the endpoint.
        for field in self._path_parameters.get(location.endpoint, []):
            op.parameters.append(field.model_copy(deep=True))

    def visit_parameter(self, path: str, location: Location, parameter: dict) -> None:
        schema = parameter.get("schema")
        if not isinstance(schema, dict):
            return
        if parameter.get("in") not in KEPT_PARAMETER_LOCATIONS:
            return

        field = self.build_field(str(parameter["name"]), schema, path, set())
        field.required = bool(parameter.get("required", False))
        field.location = parameter["in"]

        if location.method is None:
            self._path_parameters.setdefault(location.endpoint, []).append(field)
            return

        op = self.ensure_operation(location.endpoint, location.method)
        # An operation-level parameter overrides an inherited one with the same name and location.
        op.parameters = [
            p for p in op.parameters if (p.name, p.location) != (field.name, field.location)
        ]
        op.parameters.append(field)

    def visit_request_body(self, path: str, location: Location, content_type: str, request_body: dict) -> None:
        media = request_body.get("content", {}).get(content_type)
        schema = media.get("schema") if isinstance(media, dict) else None
        if not isinstance(schema, dict):
            return

        op = self.ensure_operation(location.endpoint, location.method)
        key = (location.endpoint, location.method, None)
        if self._keeps_existing(key, content_type):
            return
        op.request_body = self.build_data_structure(path, schema, content_type)
        self._body_content_types[key] = content_type

    def visit_response(
        self, path: str, location: Location, status_code: str, content_type: str | None, response: dict
    ) -> None:
        op = self.ensure_operation(location.endpoint, location.method)
        key = (location.endpoint, location.method, status_code)

        schema = None
        if content_type is not None:
            media = response.get("content", {}).get(content_type)
            schema = media.get("schema") if isinstance(media, dict) else None
        if not isinstance(schema, dict):
            op.responses.setdefault(status_code, None)
            return

        if self._keeps_existing(key, content_type):
            return
        op.responses[status_code] = self.build_data_structure(path, schema, content_type)
        self._body_content_types[key] = content_type

    def _keeps_existing(self, key: tuple, content_type: str) -> bool:
        """JSON wins over other content types, otherwise the first one seen stays."""
        existing = self._body_content_types.get(key)
        if existing is None:
            return False
        return existing == PREFERRED_CONTENT_TYPE or content_type != PREFERRED_CONTENT_TYPE

    # -- field construction ---------------------------------------------------

    def build_data_structure(self, path: str, schema: dict, content_type: str) -> DataStructure:
        return DataStructure(
            name=path,
            ref=self.refs.get(id(schema)),
            content_type=content_type,
            fields=self.build_fields(schema, path, set()),
        )

    def build_fields(self, schema: dict, base_path: str, on_stack: set[int]) -> list[Field]:
        """Top-level fields of a body: its properties plus those of allOf branches."""
        if id(schema) in on_stack:
            return []
        on_stack.add(id(schema))
        try:
            fields = self._build_properties(schema, base_path, on_stack)
            for i, branch in enumerate(schema.get("allOf") or []):
                if isinstance(branch, dict):
                    fields.extend(self.build_fields(branch, f"{base_path}/allOf[{i}]", on_stack))
            return fields
        finally:
            on_stack.discard(id(schema))

    def build_field(self, name: str, schema: dict, path: str, on_stack: set[int]) -> Field:
        field = Field(
            name=name,
            path=path,
            type=schema_type(schema),
            format=_typed(schema.get("format"), str),
            hint=_typed(schema.get(HINT_EXTENSION), str),
            unique=_typed(schema.get(UNIQUE_EXTENSION), bool),
            min=_number(schema.get("minimum")),
            max=_number(schema.get("maximum")),
            min_length=_count(schema.get("minLength")),
            max_length=_count(schema.get("maxLength")),
            pattern=_typed(schema.get("pattern"), str),
            ref=self.refs.get(id(schema)),
        )

        if id(schema) in on_stack:
            return field
        on_stack.add(id(schema))
        try:
            items = schema.get("items")
            if isinstance(items, dict):
                field.items = self.build_field("", items, f"{path}[]", on_stack)
            properties = self._build_properties(schema, path, on_stack)
            if properties:
                field.properties = {p.name: p for p in properties}
        finally:
            on_stack.discard(id(schema))
        return field

    def _build_properties(self, schema: dict, base_path: str, on_stack: set[int]) -> list[Field]:
        properties = schema.get("properties")
        if not isinstance(properties, dict):
            return []
        required = schema.get("required")
        if not isinstance(required, list):
            required = []
        fields = []
        for name, prop in properties.items():
            if not isinstance(prop, dict):
                continue
            field = self.build_field(str(name), prop, f"{base_path}.{name}", on_stack)
            field.required = name in required
            fields.append(field)
        return fields


def _typed(value, kind: type):
    return value if isinstance(value, kind) else None


def _number(value) -> float | None:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return None
    return value


def _count(value) -> int | None:
    if isinstance(value, bool) or not isinstance(value, int):
        return None
    return value
