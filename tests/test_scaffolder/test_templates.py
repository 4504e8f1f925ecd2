"""Unit tests for the Jinja template provider (cleanarch.scaffolder.templates).

Tests cover:
- Metadata parsing (dependency forms, configuration classes, errors)
- Architecture structure loading for every built-in architecture
- Template validation and rendering, error mapping
- The built-in tree as a whole
"""

from __future__ import annotations

from pathlib import Path

import pytest

from cleanarch.errors import TemplateNotFoundError, TemplateSyntaxError, ValidationError
from cleanarch.scaffolder.templates import (
    JinjaTemplateProvider,
    parse_architecture_metadata,
    parse_artifact_metadata,
    parse_dependency,
    parse_dependency_list,
)
from cleanarch.structure.models import ArchitectureType


# ---------------------------------------------------------------------------
# Metadata parsing
# ---------------------------------------------------------------------------


class TestParseDependency:
    @pytest.mark.unit
    def test_coordinate_string(self):
        dep = parse_dependency("org.postgresql:r2dbc-postgresql:1.0.2.RELEASE", "compile")
        assert (dep.group, dep.artifact, dep.version, dep.scope) == (
            "org.postgresql", "r2dbc-postgresql", "1.0.2.RELEASE", "compile"
        )

    @pytest.mark.unit
    def test_maven_style_keys(self):
        dep = parse_dependency({"groupId": "g", "artifactId": "a", "version": "1"}, "test")
        assert dep.coordinate == "g:a:1"
        assert dep.scope == "test"

    @pytest.mark.unit
    def test_explicit_scope_wins(self):
        assert parse_dependency({"group": "g", "artifact": "a", "scope": "runtime"}, "compile").scope == "runtime"

    @pytest.mark.unit
    def test_missing_group(self):
        with pytest.raises(ValueError, match="'group' or 'groupId' is missing"):
            parse_dependency({"artifact": "a"}, "compile")

    @pytest.mark.unit
    def test_nested_gradle_list(self):
        deps = parse_dependency_list({"gradle": ["g:a:1", "g:b:2"]}, "compile")
        assert [d.artifact for d in deps] == ["a", "b"]
        assert parse_dependency_list(None, "compile") == []


class TestParseArtifactMetadata:
    @pytest.mark.unit
    def test_template_ids_are_relative_to_root(self):
        metadata = parse_artifact_metadata(
            {
                "name": "mongodb-adapter",
                "type": "driven",
                "applicationPropertiesTemplate": "application.yml.j2",
                "configurationClasses": [
                    {"name": "MongoConfig", "packagePath": "infrastructure.config", "templatePath": "MongoConfig.java.j2"}
                ],
            },
            "driven",
            "adapters/driven/mongodb",
        )
        assert metadata.template == "adapters/driven/mongodb/Adapter.java.j2"
        assert metadata.properties_template == "adapters/driven/mongodb/application.yml.j2"
        assert metadata.configuration_classes[0].template == "adapters/driven/mongodb/MongoConfig.java.j2"
        assert metadata.configuration_classes[0].package_suffix == "infrastructure.config"

    @pytest.mark.unit
    def test_required_fields(self):
        with pytest.raises(ValueError, match="'name' is missing"):
            parse_artifact_metadata({"type": "driven"}, "driven", "x")
        with pytest.raises(ValueError, match="missing: packagePath, templatePath"):
            parse_artifact_metadata(
                {"name": "a", "type": "driven", "configurationClasses": [{"name": "C"}]}, "driven", "x"
            )


class TestParseArchitectureMetadata:
    @pytest.mark.unit
    def test_adapter_paths_alias(self):
        metadata = parse_architecture_metadata({"adapterPaths": {"entity": "{name}.java"}}, "custom")
        assert metadata.architecture == "custom"
        assert metadata.paths == {"entity": "{name}.java"}
        assert metadata.layer_dependencies is None

    @pytest.mark.unit
    def test_paths_required(self):
        with pytest.raises(ValueError, match="non-empty 'paths'"):
            parse_architecture_metadata({}, "custom")


# ---------------------------------------------------------------------------
# Provider
# ---------------------------------------------------------------------------


@pytest.fixture
def custom_provider(tmp_path: Path) -> JinjaTemplateProvider:
    root = tmp_path / "templates"
    (root / "broken").mkdir(parents=True)
    (root / "ok.j2").write_text("Hello {{ name | pascal_case }}!")
    (root / "broken" / "bad.j2").write_text("{% if %}")
    (root / "architectures" / "weird").mkdir(parents=True)
    (root / "architectures" / "weird" / "structure.yml").write_text("- not a mapping\n")
    return JinjaTemplateProvider(root)


class TestJinjaTemplateProvider:
    @pytest.mark.unit
    def test_render_with_filters(self, custom_provider):
        assert custom_provider.render("ok.j2", {"name": "user-repository"}) == "Hello UserRepository!"

    @pytest.mark.unit
    def test_render_missing(self, custom_provider):
        with pytest.raises(TemplateNotFoundError, match="Template not found: nope.j2"):
            custom_provider.render("nope.j2", {})

    @pytest.mark.unit
    def test_render_syntax_error(self, custom_provider):
        with pytest.raises(TemplateSyntaxError) as exc_info:
            custom_provider.render("broken/bad.j2", {})
        assert exc_info.value.template_id == "broken/bad.j2"

    @pytest.mark.unit
    def test_validate(self, custom_provider):
        assert custom_provider.validate("ok.j2").valid
        assert custom_provider.validate("nope.j2").errors == ["Template not found: nope.j2"]
        assert "Template syntax error in broken/bad.j2" in custom_provider.validate("broken/bad.j2").errors[0]

    @pytest.mark.unit
    def test_validate_all_and_listing(self, custom_provider):
        assert custom_provider.list_templates() == ["broken/bad.j2", "ok.j2"]
        assert custom_provider.list_templates("missing") == []
        result = custom_provider.validate_all()
        assert not result.valid
        assert len(result.errors) == 1

    @pytest.mark.unit
    def test_non_mapping_structure(self, custom_provider):
        with pytest.raises(ValidationError, match="must contain a mapping"):
            custom_provider.load_architecture("weird")

    @pytest.mark.unit
    def test_missing_metadata(self, custom_provider):
        with pytest.raises(TemplateNotFoundError, match="adapters/driven/redis/metadata.yml"):
            custom_provider.load_artifact_metadata("driven", "redis")


class TestBuiltInTemplates:
    @pytest.mark.unit
    def test_every_template_parses(self, provider):
        assert provider.list_templates()
        assert provider.validate_all().valid

    @pytest.mark.unit
    @pytest.mark.parametrize("architecture", [a.value for a in ArchitectureType])
    def test_every_architecture_loads(self, provider, architecture):
        metadata = provider.load_architecture(architecture)
        assert metadata.architecture == architecture
        for role in ("entity", "use-case-port", "use-case-impl", "driven-adapter",
                     "driving-adapter", "configuration", "build-descriptor", "application-properties"):
            assert role in metadata.paths
        assert metadata.has_layer_dependencies
        assert metadata.is_multi_module == ArchitectureType.from_value(architecture).is_multi_module

    @pytest.mark.unit
    @pytest.mark.parametrize("adapter_type", ["redis", "mongodb", "postgresql", "rest-client", "kafka"])
    def test_every_adapter_metadata_loads(self, provider, adapter_type):
        metadata = provider.load_artifact_metadata("driven", adapter_type)
        assert metadata.validate_metadata().valid
        assert provider.exists(metadata.template)
        assert metadata.dependencies
        if metadata.has_properties:
            assert provider.exists(metadata.properties_template)
        for config_class in metadata.configuration_classes:
            assert provider.exists(config_class.template)

    @pytest.mark.unit
    def test_redis_ships_configuration_class(self, provider):
        metadata = provider.load_artifact_metadata("driven", "redis")
        assert [c.name for c in metadata.configuration_classes] == ["RedisConfig"]
        assert metadata.has_test_dependencies

    @pytest.mark.unit
    def test_entity_template(self, provider):
        output = provider.render("entities/Entity.java.j2", {
            "packageName": "com.acme.domain.model",
            "className": "User",
            "entityName": "User",
            "fields": [{"name": "email", "type": "String", "nullable": False},
                       {"name": "nickname", "type": "String", "nullable": True}],
            "hasId": True,
            "idType": "UUID",
        })
        assert output.startswith("package com.acme.domain.model;")
        assert "import java.util.UUID;" in output
        assert "private UUID id;" in output
        assert "public String getEmail()" in output
        assert 'Objects.requireNonNull(email, "email must not be null")' in output
        assert "this.nickname = nickname;" in output

    @pytest.mark.unit
    def test_rest_entry_point(self, provider):
        output = provider.render("entrypoints/rest/EntryPoint.java.j2", {
            "packageName": "com.acme.infrastructure.entrypoints.rest",
            "basePackage": "com.acme",
            "className": "UserController",
            "useCaseName": "CreateUser",
            "endpoints": [{
                "path": "/users",
                "method": "POST",
                "use_case_method": "execute",
                "return_type": "Mono<User>",
                "parameters": [{"name": "user", "type": "User", "kind": "BODY"}],
            }],
        })
        assert "import com.acme.domain.port.in.CreateUserUseCase;" in output
        assert '@PostMapping("/users")' in output
        assert "public Mono<User> execute(@RequestBody User user)" in output
        assert "return useCase.execute(user);" in output
