"""Tests for callspec.parser.operations -- the operationId index."""

from __future__ import annotations

from typing import Any

import pytest

from callspec.exceptions import SpecParseError, UnknownOperationError
from callspec.models import HTTPMethod, ParameterLocation
from callspec.output import OutputManager, set_output
from callspec.parser.operations import OperationIndex


def _doc(paths: dict[str, Any], **extra: Any) -> dict[str, Any]:
    return {"openapi": "3.0.0", "info": {"title": "T", "version": "1"}, "paths": paths, **extra}


class TestBuild:
    def test_petstore_operations(self, petstore_index: OperationIndex) -> None:
        assert sorted(petstore_index) == ["createPet", "deletePet", "getPet", "listPets", "login"]
        assert len(petstore_index) == 5

    def test_operation_without_id_skipped(self, petstore_index: OperationIndex) -> None:
        assert all(petstore_index.get(op).path != "/health" for op in petstore_index)

    def test_contains(self, petstore_index: OperationIndex) -> None:
        assert "getPet" in petstore_index
        assert "nope" not in petstore_index

    def test_info(self, petstore_index: OperationIndex) -> None:
        info = petstore_index.get("listPets")
        assert info.method == HTTPMethod.GET
        assert info.path == "/pets"
        assert info.summary == "List all pets"

    def test_paths_not_mapping(self) -> None:
        with pytest.raises(SpecParseError, match="'paths' must be a mapping"):
            OperationIndex.build({"paths": ["/a"]})

    def test_no_paths(self) -> None:
        assert len(OperationIndex.build({"openapi": "3.0.0"})) == 0

    def test_non_method_keys_ignored(self) -> None:
        index = OperationIndex.build(
            _doc({"/a": {"summary": "s", "servers": [], "get": {"operationId": "getA"}}})
        )
        assert list(index) == ["getA"]


class TestFragment:
    def test_single_path_with_shared_fields(
        self, petstore_index: OperationIndex, petstore_raw: dict[str, Any]
    ) -> None:
        fragment = petstore_index.fragment("getPet")
        assert fragment["paths"] == {"/pets/{petId}": {"get": petstore_raw["paths"]["/pets/{petId}"]["get"]}}
        assert fragment["servers"] == petstore_raw["servers"]
        assert fragment["components"] == petstore_raw["components"]
        assert fragment["info"]["title"] == "Petstore"

    def test_sibling_methods_excluded(self, petstore_index: OperationIndex) -> None:
        fragment = petstore_index.fragment("createPet")
        assert list(fragment["paths"]["/pets"]) == ["post"]

    def test_unknown_operation(self, petstore_index: OperationIndex) -> None:
        with pytest.raises(UnknownOperationError) as exc_info:
            petstore_index.fragment("launchRocket")
        assert str(exc_info.value) == 'No swagger operation exists with operationId "launchRocket"'

    def test_get_unknown_operation(self, petstore_index: OperationIndex) -> None:
        with pytest.raises(UnknownOperationError, match="launchRocket"):
            petstore_index.get("launchRocket")


class TestParameters:
    def test_path_level_ref_merged(self, petstore_index: OperationIndex) -> None:
        params = {p.name: p for p in petstore_index.get("getPet").parameters}
        assert set(params) == {"petId", "X-Trace", "session"}
        assert params["petId"].location == ParameterLocation.PATH
        assert params["petId"].required is True
        assert params["petId"].schema_type == "integer"
        assert params["X-Trace"].location == ParameterLocation.HEADER
        assert params["session"].location == ParameterLocation.COOKIE

    def test_enum(self, petstore_index: OperationIndex) -> None:
        params = {p.name: p for p in petstore_index.get("listPets").parameters}
        assert params["status"].enum_values == ["available", "sold"]
        assert params["limit"].required is False

    def test_operation_level_overrides_path_level(self) -> None:
        doc = _doc(
            {
                "/a": {
                    "parameters": [{"name": "q", "in": "query", "schema": {"type": "string"}}],
                    "get": {
                        "operationId": "getA",
                        "parameters": [
                            {"name": "q", "in": "query", "required": True, "schema": {"type": "integer"}}
                        ],
                    },
                }
            }
        )
        (param,) = OperationIndex.build(doc).get("getA").parameters
        assert param.required is True
        assert param.schema_type == "integer"

    def test_path_parameter_always_required(self) -> None:
        doc = _doc({"/a/{id}": {"get": {"operationId": "getA", "parameters": [{"name": "id", "in": "path"}]}}})
        assert OperationIndex.build(doc).get("getA").parameters[0].required is True

    def test_nullable_type_array(self) -> None:
        doc = _doc(
            {"/a": {"get": {"operationId": "getA", "parameters": [
                {"name": "n", "in": "query", "schema": {"type": ["null", "integer"]}}
            ]}}}
        )
        assert OperationIndex.build(doc).get("getA").parameters[0].schema_type == "integer"

    def test_request_content_types(self, petstore_index: OperationIndex) -> None:
        assert petstore_index.get("login").request_content_types == [
            "application/x-www-form-urlencoded"
        ]
        assert petstore_index.get("createPet").request_content_types == ["application/json"]
        assert petstore_index.get("deletePet").request_content_types == []


class TestDuplicates:
    def _duplicated(self) -> dict[str, Any]:
        return _doc(
            {
                "/a": {"get": {"operationId": "dup", "summary": "first"}},
                "/b": {"post": {"operationId": "dup", "summary": "second"}},
            }
        )

    def test_last_wins_with_warning(self, capsys: pytest.CaptureFixture[str]) -> None:
        set_output(OutputManager(no_color=True))
        index = OperationIndex.build(self._duplicated())
        assert index.get("dup").path == "/b"
        assert index.fragment("dup")["paths"] == {"/b": {"post": {"operationId": "dup", "summary": "second"}}}
        assert "Duplicate operationId 'dup'" in capsys.readouterr().err

    def test_strict_raises(self) -> None:
        with pytest.raises(SpecParseError, match="Duplicate operationId 'dup'"):
            OperationIndex.build(self._duplicated(), strict=True)
