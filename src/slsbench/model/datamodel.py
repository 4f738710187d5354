"""Data model built from a walked OpenAPI document.

The tree mirrors the document: endpoints -> operations -> data structures
-> fields. Every entity serializes with the camelCase keys the benchmark
harness reads.
"""

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel

_ALIASES = {"location": "in", "source": "from", "target": "to"}


def wire_alias(name: str) -> str:
    """Map a python attribute name to its JSON key."""
    return _ALIASES.get(name, to_camel(name))


class WireModel(BaseModel):
    """Base for every model written to the scenario file."""

    model_config = ConfigDict(alias_generator=wire_alias, populate_by_name=True)

    def to_wire(self) -> dict:
        return self.model_dump(by_alias=True, exclude_none=True)


class Field(WireModel):
    """A single parameter or body field, possibly nested."""

    name: str
    path: str  # /api/users/POST/requestBody/application/json.email
    type: str = ""  # string / integer / number / boolean / object / array
    format: str | None = None
    required: bool = False
    hint: str | None = None  # x-user-hint
    unique: bool | None = None  # x-slsbench-unique
    min: float | None = None
    max: float | None = None
    min_length: int | None = None
    max_length: int | None = None
    pattern: str | None = None
    ref: str | None = None
    items: "Field | None" = None
    properties: "dict[str, Field] | None" = None
    location: str | None = None  # query / path, parameters only


class DataStructure(WireModel):
    """A request or response body shape for one content type."""

    name: str
    ref: str | None = None
    content_type: str
    fields: list[Field] = []


class Operation(WireModel):
    method: str
    parameters: list[Field] = []
    request_body: DataStructure | None = None
    # A None value is a declared response without a body (e.g. 204).
    responses: dict[str, DataStructure | None] = {}


class Endpoint(WireModel):
    path: str  # /owners/{ownerId}
    operations: dict[str, Operation] = {}


class DataModel(WireModel):
    endpoints: dict[str, Endpoint] = {}

    def operation(self, path: str, method: str) -> Operation | None:
        endpoint = self.endpoints.get(path)
        if endpoint is None:
            return None
        return endpoint.operations.get(method)
