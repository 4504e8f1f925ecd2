"""Unit tests for command-line list parsing (cleanarch.validation.parsing)."""

from __future__ import annotations

import pytest

from cleanarch.errors import ValidationError
from cleanarch.validation.parsing import (
    implementation_package,
    parse_endpoints,
    parse_fields,
    parse_methods,
    resolve_package_name,
)


class TestParseFields:
    @pytest.mark.unit
    def test_basic(self):
        fields = parse_fields("name:String, age:Integer?")
        assert [(f.name, f.type, f.nullable) for f in fields] == [
            ("name", "String", False),
            ("age", "Integer", True),
        ]

    @pytest.mark.unit
    def test_empty(self):
        assert parse_fields(None) == []
        assert parse_fields("  ") == []

    @pytest.mark.unit
    def test_all_errors_reported(self):
        with pytest.raises(ValidationError) as exc_info:
            parse_fields("name,age:")
        assert len(exc_info.value.errors) == 2
        assert "Expected format: name:type" in exc_info.value.errors[0]


class TestParseMethods:
    @pytest.mark.unit
    def test_methods_with_parameters(self):
        methods = parse_methods("findById:Mono<User>:id:String|save:Mono<User>:user:User")
        assert methods[0].name == "findById"
        assert methods[0].return_type == "Mono<User>"
        assert [(p.name, p.type) for p in methods[0].parameters] == [("id", "String")]
        assert methods[1].parameters[0].type == "User"

    @pytest.mark.unit
    def test_comma_separated_parameters(self):
        method = parse_methods("search:Flux<User>:name:String,age:Integer")[0]
        assert [(p.name, p.type) for p in method.parameters] == [("name", "String"), ("age", "Integer")]

    @pytest.mark.unit
    def test_no_parameters(self):
        assert parse_methods("findAll:Flux<User>")[0].parameters == ()

    @pytest.mark.unit
    def test_invalid(self):
        with pytest.raises(ValidationError, match="Invalid method format: findAll"):
            parse_methods("findAll")


class TestParseEndpoints:
    @pytest.mark.unit
    def test_endpoint_with_parameters(self):
        endpoint = parse_endpoints("/users/{id}:get:findUser:Mono<User>:id:path:String")[0]
        assert endpoint.path == "/users/{id}"
        assert endpoint.method == "GET"
        assert endpoint.use_case_method == "findUser"
        assert [(p.name, p.kind, p.type) for p in endpoint.parameters] == [("id", "PATH", "String")]

    @pytest.mark.unit
    def test_multiple_endpoints(self):
        endpoints = parse_endpoints("/users:POST:create:Mono<User>:user:BODY:User|/users:GET:list:Flux<User>")
        assert [e.method for e in endpoints] == ["POST", "GET"]

    @pytest.mark.unit
    def test_bad_method_and_kind(self):
        with pytest.raises(ValidationError) as exc_info:
            parse_endpoints("/a:FETCH:x:Y|/b:GET:x:Y:id:HEADER:String")
        assert any("Unknown HTTP method: 'FETCH'" in e for e in exc_info.value.errors)
        assert any("Unknown parameter kind: 'HEADER'" in e for e in exc_info.value.errors)


class TestResolvePackageName:
    @pytest.mark.unit
    def test_explicit_wins(self):
        assert resolve_package_name("entity", "com.acme", " com.other.model ") == "com.other.model"

    @pytest.mark.unit
    @pytest.mark.parametrize("kind,adapter_type,expected", [
        ("entity", None, "com.acme.domain.model"),
        ("use-case", None, "com.acme.domain.port.in"),
        ("adapter", "redis", "com.acme.infrastructure.drivenadapters.redis"),
        ("adapter", "rest-client", "com.acme.infrastructure.drivenadapters.restclient"),
        ("adapter", "postgres", "com.acme.infrastructure.drivenadapters.postgresql"),
        ("input-adapter", "rest", "com.acme.infrastructure.entrypoints.rest"),
    ])
    def test_derived(self, kind, adapter_type, expected):
        assert resolve_package_name(kind, "com.acme", adapter_type=adapter_type) == expected

    @pytest.mark.unit
    def test_needs_base_package(self):
        with pytest.raises(ValidationError, match="Could not determine package name"):
            resolve_package_name("entity", "")

    @pytest.mark.unit
    def test_unknown_kind(self):
        with pytest.raises(ValidationError, match="Unknown artifact kind: widget"):
            resolve_package_name("widget", "com.acme")


class TestImplementationPackage:
    @pytest.mark.unit
    def test_port_package_maps_to_application(self):
        assert implementation_package("com.acme.domain.port.in") == "com.acme.application.usecase"

    @pytest.mark.unit
    def test_other_packages_get_impl_suffix(self):
        assert implementation_package("com.acme.usecases") == "com.acme.usecases.impl"
