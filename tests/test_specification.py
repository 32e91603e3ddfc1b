"""
Tests for loading OpenAPI documents and looking up operations and contracts.
"""

import json

import pytest
import yaml

from oasrouter import Specification, SpecificationError, UnknownOperationError
from oasrouter.specification import is_json_media_type, thaw
from tests.conftest import petstore_document

MINIMAL_DOCUMENT = {
    "openapi": "3.0.3",
    "info": {"title": "Minimal", "version": "1.0.0"},
    "paths": {
        "/pets": {
            "get": {
                "operationId": "listPets",
                "responses": {"200": {"description": "OK"}},
            },
        },
    },
}


class TestSpecificationLoading:
    """Test building a Specification from dicts and files."""

    def test_from_dict(self):
        spec = Specification.from_dict(petstore_document())
        assert spec.version == "3.0.3"
        assert "/pets" in spec.paths()
        assert "/pets/{petId}" in spec.paths()

    def test_document_must_be_mapping(self):
        with pytest.raises(SpecificationError):
            Specification(["not", "a", "document"])

    def test_document_must_have_paths(self):
        with pytest.raises(SpecificationError):
            Specification({"openapi": "3.0.3", "info": {"title": "x", "version": "1"}})

    def test_from_yaml_file(self, tmp_path):
        filename = tmp_path / "openapi.yaml"
        filename.write_text(yaml.safe_dump(MINIMAL_DOCUMENT), encoding="utf-8")

        spec = Specification.from_file(filename)

        assert spec.operation("/pets", "get").operation_id == "listPets"

    def test_from_json_file(self, tmp_path):
        filename = tmp_path / "openapi.json"
        filename.write_text(json.dumps(MINIMAL_DOCUMENT), encoding="utf-8")

        spec = Specification.from_file(str(filename))

        assert spec.has_operation("/pets", "get")

    def test_missing_file(self, tmp_path):
        with pytest.raises(SpecificationError) as exc_info:
            Specification.from_file(tmp_path / "missing.yaml")
        assert "Cannot read" in str(exc_info.value)

    def test_unparseable_file(self, tmp_path):
        filename = tmp_path / "openapi.json"
        filename.write_text("{not json", encoding="utf-8")

        with pytest.raises(SpecificationError) as exc_info:
            Specification.from_file(filename)
        assert "Cannot parse" in str(exc_info.value)
        assert exc_info.value.original_exception is not None

    def test_file_without_mapping(self, tmp_path):
        filename = tmp_path / "openapi.yaml"
        filename.write_text("- just\n- a list\n", encoding="utf-8")

        with pytest.raises(SpecificationError):
            Specification.from_file(filename)

    def test_validate_accepts_valid_document(self, tmp_path):
        filename = tmp_path / "openapi.yaml"
        filename.write_text(yaml.safe_dump(MINIMAL_DOCUMENT), encoding="utf-8")

        spec = Specification.from_file(filename, validate=True)

        assert spec.has_operation("/pets", "get")

    def test_validate_rejects_invalid_document(self, tmp_path):
        document = dict(MINIMAL_DOCUMENT)
        del document["info"]
        filename = tmp_path / "openapi.yaml"
        filename.write_text(yaml.safe_dump(document), encoding="utf-8")

        with pytest.raises(SpecificationError) as exc_info:
            Specification.from_file(filename, validate=True)
        assert "Invalid OpenAPI document" in str(exc_info.value)

    def test_invalid_document_loads_without_validation(self, tmp_path):
        document = dict(MINIMAL_DOCUMENT)
        del document["info"]
        filename = tmp_path / "openapi.yaml"
        filename.write_text(yaml.safe_dump(document), encoding="utf-8")

        assert Specification.from_file(filename).has_operation("/pets", "get")


class TestOperationLookup:
    """Test operation descriptors built from the document."""

    def test_operation_fields(self, petstore_spec):
        descriptor = petstore_spec.operation("/pets/{petId}", "get")

        assert descriptor.path == "/pets/{petId}"
        assert descriptor.method == "get"
        assert descriptor.operation_id == "showPetById"
        assert descriptor.controller == "petController"

    def test_operation_without_overrides(self, petstore_spec):
        descriptor = petstore_spec.operation("/pets", "post")
        assert descriptor.operation_id is None
        assert descriptor.controller is None

    def test_method_is_case_insensitive(self, petstore_spec):
        assert petstore_spec.operation("/pets", "GET") is petstore_spec.operation("/pets", "get")
        assert petstore_spec.has_operation("/pets", "POST")

    def test_unknown_method(self, petstore_spec):
        with pytest.raises(UnknownOperationError) as exc_info:
            petstore_spec.operation("/pets", "patch")
        assert exc_info.value.status_code == 500

    def test_unknown_path(self, petstore_spec):
        assert not petstore_spec.has_operation("/cats", "get")
        with pytest.raises(UnknownOperationError):
            petstore_spec.operation("/cats", "get")

    def test_methods_skip_path_level_keys(self, petstore_spec):
        assert sorted(petstore_spec.methods("/pets/{petId}")) == ["delete", "get"]

    def test_methods_of_unknown_path(self, petstore_spec):
        assert petstore_spec.methods("/cats") == []


class TestResponseContracts:
    """Test choosing the response contract for a status code."""

    def make_descriptor(self, responses):
        return Specification.from_dict({
            "openapi": "3.0.3",
            "info": {"title": "Contracts", "version": "1"},
            "paths": {"/things": {"get": {"responses": responses}}},
        }).operation("/things", "get")

    def test_exact_code(self, petstore_spec):
        key, contract = petstore_spec.operation("/pets", "get").response_contract(200)
        assert key == "200"
        assert contract.has_content
        assert contract.json_media_type() == "application/json"

    def test_exact_code_wins_over_range_and_default(self):
        descriptor = self.make_descriptor({
            "200": {"description": "exact"},
            "2XX": {"description": "range"},
            "default": {"description": "fallback"},
        })
        key, contract = descriptor.response_contract(200)
        assert key == "200"
        assert contract.description == "exact"

    def test_range_key(self):
        descriptor = self.make_descriptor({
            "2XX": {"description": "range"},
            "default": {"description": "fallback"},
        })
        assert descriptor.response_contract(202)[0] == "2XX"

    def test_default_key(self, petstore_spec):
        key, _ = petstore_spec.operation("/pets", "post").response_contract(500)
        assert key == "default"

    def test_undeclared_code(self, petstore_spec):
        assert petstore_spec.operation("/brew", "get").response_contract(418) is None

    def test_contract_without_content(self, petstore_spec):
        _, contract = petstore_spec.operation("/pets", "post").response_contract(201)
        assert not contract.has_content
        assert contract.json_schema() is None

    def test_non_json_content_has_no_json_schema(self, petstore_spec):
        _, contract = petstore_spec.operation("/echo", "post").response_contract(200)
        assert contract.has_content
        assert contract.json_schema() is None

    def test_vendor_json_media_type(self):
        descriptor = self.make_descriptor({
            "200": {
                "description": "problem",
                "content": {"application/problem+json": {"schema": {"type": "object"}}},
            },
        })
        _, contract = descriptor.response_contract(200)
        assert thaw(contract.json_schema()) == {"type": "object"}

    @pytest.mark.parametrize("media_type,expected", [
        ("application/json", True),
        ("application/json; charset=utf-8", True),
        ("Application/JSON", True),
        ("application/vnd.api+json", True),
        ("text/plain", False),
        ("application/xml", False),
    ])
    def test_is_json_media_type(self, media_type, expected):
        assert is_json_media_type(media_type) is expected


class TestImmutability:
    """Test that a loaded specification cannot be changed."""

    def test_document_is_read_only(self, petstore_spec):
        with pytest.raises(TypeError):
            petstore_spec.document["paths"]["/cats"] = {}

    def test_source_document_changes_do_not_leak(self):
        document = petstore_document()
        spec = Specification.from_dict(document)

        document["paths"]["/pets"]["get"]["operationId"] = "changed"

        assert spec.operation("/pets", "get").operation_id == "listPets"

    def test_descriptor_is_frozen(self, petstore_spec):
        descriptor = petstore_spec.operation("/pets", "get")
        with pytest.raises(AttributeError):
            descriptor.operation_id = "changed"

    def test_thaw_returns_plain_structures(self, petstore_spec):
        components = thaw(petstore_spec.components)
        assert isinstance(components, dict)
        assert components["schemas"]["Pet"]["required"] == ["id", "name"]
