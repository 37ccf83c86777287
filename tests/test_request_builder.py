"""Tests for callspec.request_builder -- resolving calls into request data."""

from __future__ import annotations

from typing import Any

import pytest

from callspec.context import RunContext
from callspec.exceptions import FileParseError, InvalidParameterError, UnknownVariableError
from callspec.models import CallSpec
from callspec.parser.operations import OperationIndex
from callspec.request_builder import build_request


def _call(**fields: Any) -> CallSpec:
    return CallSpec.model_validate(fields)


class TestParameters:
    def test_path_parameter(self, petstore_index: OperationIndex, context: RunContext) -> None:
        request = build_request(
            _call(call="getPet", parameters={"petId": 7}), petstore_index.get("getPet"), context
        )
        assert request.method == "GET"
        assert request.path == "/pets/7"

    def test_path_parameter_quoted(self, petstore_index: OperationIndex, context: RunContext) -> None:
        request = build_request(
            _call(call="getPet", parameters={"petId": "1 2"}), petstore_index.get("getPet"), context
        )
        assert request.path == "/pets/1%202"

    def test_path_parameter_from_variable(
        self, petstore_index: OperationIndex, context: RunContext
    ) -> None:
        context.set("petId", 42)
        request = build_request(
            _call(call="getPet", parameters={"petId": "$var.petId"}),
            petstore_index.get("getPet"),
            context,
        )
        assert request.path == "/pets/42"

    def test_query_parameters(self, petstore_index: OperationIndex, context: RunContext) -> None:
        request = build_request(
            _call(call="listPets", parameters={"limit": 10, "status": "sold"}),
            petstore_index.get("listPets"),
            context,
        )
        assert request.params == {"limit": 10, "status": "sold"}
        assert request.path == "/pets"

    def test_header_and_cookie_parameters(
        self, petstore_index: OperationIndex, context: RunContext
    ) -> None:
        request = build_request(
            _call(call="getPet", parameters={"petId": 1, "X-Trace": "t-1", "session": "s"}),
            petstore_index.get("getPet"),
            context,
        )
        assert request.headers == {"X-Trace": "t-1"}
        assert request.cookies == {"session": "s"}

    def test_missing_required(self, petstore_index: OperationIndex, context: RunContext) -> None:
        with pytest.raises(InvalidParameterError, match="petId"):
            build_request(_call(call="getPet", parameters={"X-Trace": "t"}), petstore_index.get("getPet"), context)

    def test_unknown_parameter(self, petstore_index: OperationIndex, context: RunContext) -> None:
        with pytest.raises(InvalidParameterError, match="unknown parameters: colour"):
            build_request(
                _call(call="listPets", parameters={"colour": "red"}),
                petstore_index.get("listPets"),
                context,
            )

    def test_validated_after_resolution(
        self, petstore_index: OperationIndex, context: RunContext
    ) -> None:
        context.set("status", "lost")
        with pytest.raises(InvalidParameterError, match="must be one of"):
            build_request(
                _call(call="listPets", parameters={"status": "$var.status"}),
                petstore_index.get("listPets"),
                context,
            )

    def test_unknown_variable(self, petstore_index: OperationIndex, context: RunContext) -> None:
        with pytest.raises(UnknownVariableError):
            build_request(
                _call(call="getPet", parameters={"petId": "$var.petId"}),
                petstore_index.get("getPet"),
                context,
            )


class TestHeaderAndQuery:
    def test_explicit_blocks_resolved(
        self, petstore_index: OperationIndex, context: RunContext
    ) -> None:
        context.set("token", "abc")
        request = build_request(
            _call(
                call="listPets",
                header={"Authorization": "Bearer {{token}}", "X-Count": 3},
                query={"page": 2, "owner": "$env.API_USER"},
            ),
            petstore_index.get("listPets"),
            context,
        )
        assert request.headers == {"Authorization": "Bearer abc", "X-Count": "3"}
        assert request.params == {"page": 2, "owner": "alice"}

    def test_explicit_entries_win(self, petstore_index: OperationIndex, context: RunContext) -> None:
        request = build_request(
            _call(
                call="getPet",
                parameters={"petId": 1, "X-Trace": "from-param"},
                header={"X-Trace": "from-header"},
            ),
            petstore_index.get("getPet"),
            context,
        )
        assert request.headers["X-Trace"] == "from-header"


class TestBody:
    def test_json_body(self, petstore_index: OperationIndex, context: RunContext) -> None:
        context.set("petName", "Rex")
        request = build_request(
            _call(call="createPet", data={"name": "$var.petName", "tags": ["a"]}),
            petstore_index.get("createPet"),
            context,
        )
        assert request.method == "POST"
        assert request.json_body == {"name": "Rex", "tags": ["a"]}
        assert request.form_data is None

    def test_form_body(self, petstore_index: OperationIndex, context: RunContext) -> None:
        request = build_request(
            _call(call="login", data={"user": "$env.API_USER", "password": "pw"}),
            petstore_index.get("login"),
            context,
        )
        assert request.form_data == {"user": "alice", "password": "pw"}
        assert request.json_body is None

    def test_file_override(self, petstore_index: OperationIndex, context: RunContext) -> None:
        context.set("petName", "Rex")
        request = build_request(
            _call(call="createPet", data={"$file": "pet.json"}),
            petstore_index.get("createPet"),
            context,
        )
        assert request.json_body == {"name": "Rex", "tag": "dog"}

    def test_file_override_missing(self, petstore_index: OperationIndex, context: RunContext) -> None:
        with pytest.raises(FileParseError):
            build_request(
                _call(call="createPet", data={"$file": "missing"}),
                petstore_index.get("createPet"),
                context,
            )

    def test_no_body(self, petstore_index: OperationIndex, context: RunContext) -> None:
        request = build_request(_call(call="deletePet", parameters={"petId": 1}), petstore_index.get("deletePet"), context)
        assert request.method == "DELETE"
        assert request.json_body is None
        assert request.form_data is None


class TestBasicAuth:
    def test_credentials(self, petstore_index: OperationIndex, context: RunContext) -> None:
        request = build_request(
            _call(call="listPets", basicAuth={"username": "$env.API_USER", "password": "pw"}),
            petstore_index.get("listPets"),
            context,
        )
        assert request.auth == ("alice", "pw")

    def test_from_file(self, petstore_index: OperationIndex, context: RunContext) -> None:
        request = build_request(
            _call(call="listPets", basicAuth={"$file": "credentials"}),
            petstore_index.get("listPets"),
            context,
        )
        assert request.auth == ("alice", "secret")

    def test_password_optional(self, petstore_index: OperationIndex, context: RunContext) -> None:
        request = build_request(
            _call(call="listPets", basicAuth={"username": "bob"}),
            petstore_index.get("listPets"),
            context,
        )
        assert request.auth == ("bob", "")

    def test_username_required(self, petstore_index: OperationIndex, context: RunContext) -> None:
        with pytest.raises(InvalidParameterError, match="username"):
            build_request(
                _call(call="listPets", basicAuth={"password": "pw"}),
                petstore_index.get("listPets"),
                context,
            )

    def test_none_without_block(self, petstore_index: OperationIndex, context: RunContext) -> None:
        request = build_request(_call(call="listPets"), petstore_index.get("listPets"), context)
        assert request.auth is None
