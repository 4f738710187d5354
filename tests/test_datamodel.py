from pathlib import Path

from slsbench.builder.datamodel import build_data_model
from slsbench.model.datamodel import DataModel, DataStructure, Field
from slsbench.spec.loader import load_spec

FIXTURES = Path(__file__).parent / "fixtures"


def _model(fixture: str) -> DataModel:
    spec = load_spec(FIXTURES / fixture)
    return build_data_model(spec.document, spec.refs)


class TestBuildDataModel:
    def test_simple_response_fields(self):
        model = _model("simple.yaml")
        op = model.operation("/api/users", "GET")
        body = op.responses["200"]
        assert body.content_type == "application/json"
        assert [f.name for f in body.fields] == ["id", "name", "email"]
        assert body.fields[0].type == "integer"
        assert body.fields[2].format == "email"
        assert body.fields[2].path == "/api/users/GET/response/200/application/json.email"

    def test_nested_properties_and_items(self):
        model = _model("nested.yaml")
        fields = {f.name: f for f in model.operation("/api/users", "GET").responses["200"].fields}
        address = fields["address"]
        assert address.type == "object"
        assert list(address.properties) == ["street", "city"]
        assert address.properties["city"].path.endswith(".address.city")

        nicknames = fields["nicknames"]
        assert nicknames.items.type == "array"
        assert nicknames.items.items.type == "string"
        assert nicknames.items.path.endswith(".nicknames[]")

    def test_top_level_array_body_has_no_fields(self):
        model = _model("arrays.yaml")
        assert model.operation("/api/users", "GET").responses["200"].fields == []

    def test_refs_recorded(self):
        model = _model("references.yaml")
        body = model.operation("/api/users", "GET").responses["200"]
        assert body.ref == "#/components/schemas/User"
        address = next(f for f in body.fields if f.name == "address")
        assert address.ref == "#/components/schemas/Address"
        assert address.properties["zipCode"].type == "string"

    def test_cyclic_schema_terminates(self):
        model = _model("circular.yaml")
        fields = {f.name: f for f in model.operation("/api/nodes", "GET").responses["200"].fields}
        assert fields["parent"].ref == "#/components/schemas/Node"
        assert fields["parent"].properties is None
        assert fields["children"].items.ref == "#/components/schemas/Node"
        assert fields["children"].items.properties is None

    def test_mutual_reference_terminates(self):
        model = _model("circular.yaml")
        body = model.operation("/api/people", "POST").request_body
        employer = body.fields[1]
        assert employer.name == "employer"
        assert employer.properties["owner"].ref == "#/components/schemas/Person"
        assert employer.properties["owner"].properties is None

    def test_allof_fields_are_merged(self):
        model = _model("composition.yaml")
        body = model.operation("/api/users", "GET").responses["200"]
        assert [f.name for f in body.fields] == ["id", "name", "email"]

    def test_constraints_and_required(self):
        model = _model("parameters.yaml")
        fields = {f.name: f for f in model.operation("/api/vets/{vetId}", "GET").responses["200"].fields}
        assert fields["id"].required is True
        assert fields["name"].required is False
        assert fields["name"].min_length == 2
        assert fields["name"].max_length == 40
        assert fields["name"].pattern == "^[A-Z]"

    def test_hints_and_unique(self):
        model = _model("scenario.yaml")
        body = model.operation("/api/users", "POST").request_body
        fields = {f.name: f for f in body.fields}
        assert fields["name"].hint == "name"
        assert fields["email"].hint == "email"
        assert fields["email"].unique is True
        assert fields["email"].required is True
        assert fields["address"].required is False


class TestParameters:
    def test_only_query_and_path_kept(self):
        model = _model("parameters.yaml")
        op = model.operation("/api/vets/{vetId}", "GET")
        assert [(p.name, p.location) for p in op.parameters] == [("vetId", "path"), ("limit", "query")]

    def test_path_level_parameter_inherited(self):
        model = _model("parameters.yaml")
        vet_id = model.operation("/api/vets/{vetId}", "GET").parameters[0]
        assert vet_id.required is True
        assert vet_id.type == "integer"
        assert vet_id.min == 1

    def test_operation_parameter_overrides_path_level(self):
        model = _model("parameters.yaml")
        params = model.operation("/api/vets/{vetId}", "DELETE").parameters
        assert len(params) == 1
        assert params[0].type == "string"
        assert params[0].format == "uuid"

    def test_query_constraints(self):
        model = _model("parameters.yaml")
        limit = model.operation("/api/vets/{vetId}", "GET").parameters[1]
        assert limit.required is False
        assert limit.min == 1
        assert limit.max == 100
        assert limit.path == "/api/vets/{vetId}/GET/parameter/limit"


class TestResponses:
    def test_bodiless_responses_recorded_as_none(self):
        model = _model("parameters.yaml")
        assert model.operation("/api/vets/{vetId}", "GET").responses["404"] is None
        assert model.operation("/api/vets/{vetId}", "DELETE").responses == {"204": None}

    def test_operation_without_responses(self):
        model = _model("scenario.yaml")
        op = model.operation("/api/health", "GET")
        assert op is not None
        assert op.responses == {}

    def test_json_preferred_over_other_content_types(self):
        document = {
            "paths": {
                "/items": {
                    "get": {
                        "responses": {
                            "200": {
                                "content": {
                                    "application/xml": {
                                        "schema": {"type": "object", "properties": {"xml": {"type": "string"}}}
                                    },
                                    "application/json": {
                                        "schema": {"type": "object", "properties": {"json": {"type": "string"}}}
                                    },
                                    "text/plain": {
                                        "schema": {"type": "object", "properties": {"text": {"type": "string"}}}
                                    },
                                }
                            }
                        }
                    }
                }
            }
        }
        body = build_data_model(document).operation("/items", "GET").responses["200"]
        assert body.content_type == "application/json"
        assert [f.name for f in body.fields] == ["json"]

    def test_first_content_type_wins_without_json(self):
        document = {
            "paths": {
                "/items": {
                    "post": {
                        "requestBody": {
                            "content": {
                                "application/xml": {"schema": {"type": "object"}},
                                "text/plain": {"schema": {"type": "string"}},
                            }
                        }
                    }
                }
            }
        }
        body = build_data_model(document).operation("/items", "POST").request_body
        assert body.content_type == "application/xml"

    def test_empty_document(self):
        assert build_data_model(None).endpoints == {}
        assert build_data_model({}).endpoints == {}


class TestWireFormat:
    def test_field_aliases(self):
        field = Field(name="id", path="p", type="string", min_length=1, location="path")
        wire = field.to_wire()
        assert wire["minLength"] == 1
        assert wire["in"] == "path"
        assert "format" not in wire

    def test_data_structure_aliases(self):
        structure = DataStructure(name="body", content_type="application/json")
        assert structure.to_wire()["contentType"] == "application/json"

    def test_populate_from_wire(self):
        field = Field.model_validate({"name": "id", "path": "p", "in": "query", "maxLength": 5})
        assert field.location == "query"
        assert field.max_length == 5
