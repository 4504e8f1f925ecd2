"""Unit tests for project initialisation through the orchestrator.

Tests cover:
- Settings file, base build descriptor and application.yml for a new project
- Existing build files left alone, existing application.yml merged
- Rejection of initialised projects and of invalid names, packages and enums
- Multi-module paths taken from structure.yml
- Rollback of a failed init
"""

from __future__ import annotations

from pathlib import Path
from unittest.mock import patch

import pytest
import yaml

from conftest import APPLICATION_YML, BUILD_GRADLE

from cleanarch.config import ProjectSettings
from cleanarch.errors import GenerationError
from cleanarch.pipeline import GenerationOrchestrator, OrchestratorState
from cleanarch.structure.models import (
    ArchitectureType,
    Framework,
    InitRequest,
    Paradigm,
)
from cleanarch.validation.validators import validate_init


S = OrchestratorState
PROPERTIES = Path("src/main/resources/application.yml")


def _init(root: Path, **overrides) -> InitRequest:
    data = dict(project_root=root, name="payments", package_name="com.acme.payments")
    data.update(overrides)
    return InitRequest(**data)


def _snapshot(root: Path) -> dict[str, bytes]:
    return {
        p.relative_to(root).as_posix(): p.read_bytes()
        for p in sorted(root.rglob("*"))
        if p.is_file() and ".cleanarch" not in p.relative_to(root).parts
    }


class TestValidateInit:
    @pytest.mark.unit
    def test_valid(self, tmp_project_dir: Path):
        assert validate_init(_init(tmp_project_dir)).valid

    @pytest.mark.unit
    def test_collects_every_problem(self, tmp_project_dir: Path):
        result = validate_init(_init(
            tmp_project_dir, name="", package_name="Com.Acme",
            architecture="layered", framework="django", paradigm="async",
        ))
        assert "Project name is required" in result.errors
        assert "Invalid package segment 'Com' in Com.Acme" in result.errors
        assert "Package name must follow Java naming conventions (e.g., com.company.service)" in result.errors
        assert any(e.startswith("Unknown architecture type: 'layered'") for e in result.errors)
        assert any(e.startswith("Unknown framework: 'django'") for e in result.errors)
        assert any(e.startswith("Unknown paradigm: 'async'") for e in result.errors)

    @pytest.mark.unit
    def test_empty_package(self, tmp_project_dir: Path):
        result = validate_init(_init(tmp_project_dir, package_name=""))
        assert result.errors == ["Base package cannot be empty"]

    @pytest.mark.unit
    def test_project_name_characters(self, tmp_project_dir: Path):
        assert validate_init(_init(tmp_project_dir, name="payment-service_v2")).valid
        assert not validate_init(_init(tmp_project_dir, name="payment service")).valid


class TestInitialiseProject:
    @pytest.mark.unit
    def test_empty_project(self, tmp_project_dir: Path):
        orchestrator = GenerationOrchestrator()
        result = orchestrator.generate(_init(tmp_project_dir))

        assert result.success, result.errors
        assert orchestrator.history == [
            S.IDLE, S.VALIDATING, S.VALIDATED, S.BACKING_UP, S.GENERATING, S.COMMITTED, S.DONE,
        ]
        assert sorted(f.path.relative_to(tmp_project_dir).as_posix() for f in result.files) == [
            ".cleanarch.yml", "build.gradle.kts", PROPERTIES.as_posix(),
        ]
        assert {f.action for f in result.files} == {"created"}

        settings = ProjectSettings.load(tmp_project_dir)
        assert settings.project.name == "payments"
        assert settings.base_package == "com.acme.payments"
        assert settings.architecture.type == ArchitectureType.HEXAGONAL_SINGLE
        assert settings.architecture.framework == Framework.SPRING
        assert settings.architecture.paradigm == Paradigm.REACTIVE

        build = (tmp_project_dir / "build.gradle.kts").read_text()
        assert 'id("org.springframework.boot") version "3.2.1"' in build
        assert 'group = "com.acme.payments"' in build
        assert 'implementation("org.springframework.boot:spring-boot-starter-webflux:3.2.1")' in build
        assert build.count("dependencies {") == 1

        properties = yaml.safe_load((tmp_project_dir / PROPERTIES).read_text())
        assert properties == {"server": {"port": 8080}, "spring": {"application": {"name": "payments"}}}

        assert orchestrator.backups.list_backups(tmp_project_dir) == []

    @pytest.mark.unit
    def test_imperative_quarkus(self, tmp_project_dir: Path):
        result = GenerationOrchestrator().generate(
            _init(tmp_project_dir, framework="quarkus", paradigm="imperative")
        )

        assert result.success, result.errors
        build = (tmp_project_dir / "build.gradle.kts").read_text()
        assert 'id("io.quarkus") version "3.6.4"' in build
        assert 'implementation("io.quarkus:quarkus-resteasy")' in build
        assert "springframework" not in build
        properties = yaml.safe_load((tmp_project_dir / PROPERTIES).read_text())
        assert properties["quarkus"]["application"]["name"] == "payments"

    @pytest.mark.unit
    def test_existing_build_is_kept_and_properties_are_merged(self, tmp_project_dir: Path):
        (tmp_project_dir / "build.gradle.kts").write_text(BUILD_GRADLE)
        (tmp_project_dir / "src" / "main" / "resources").mkdir(parents=True)
        (tmp_project_dir / PROPERTIES).write_text(APPLICATION_YML + "logging:\n  level:\n    root: INFO\n")

        result = GenerationOrchestrator().generate(_init(tmp_project_dir, name="billing"))

        assert result.success, result.errors
        assert (tmp_project_dir / "build.gradle.kts").read_text() == BUILD_GRADLE
        assert "build.gradle.kts already exists and was left unchanged" in result.warnings
        properties = yaml.safe_load((tmp_project_dir / PROPERTIES).read_text())
        assert properties["spring"]["application"]["name"] == "payments"
        assert properties["logging"]["level"]["root"] == "INFO"
        assert any("spring.application.name" in w for w in result.warnings)
        assert (tmp_project_dir / ".cleanarch.yml").is_file()

    @pytest.mark.unit
    def test_multi_module_paths(self, tmp_project_dir: Path):
        result = GenerationOrchestrator().generate(_init(tmp_project_dir, architecture="hexagonal-multi"))

        assert result.success, result.errors
        assert (tmp_project_dir / "infrastructure" / "build.gradle.kts").is_file()
        assert (tmp_project_dir / "application" / "src" / "main" / "resources" / "application.yml").is_file()
        assert not (tmp_project_dir / "build.gradle.kts").exists()


class TestInitRejection:
    @pytest.mark.unit
    def test_already_initialised(self, sample_project: Path):
        before = _snapshot(sample_project)
        orchestrator = GenerationOrchestrator()

        result = orchestrator.generate(_init(sample_project))

        assert not result.success
        assert result.errors[:2] == [
            "Project is already initialized. Found .cleanarch.yml file.",
            "If you want to reinitialize, delete the .cleanarch.yml file first.",
        ]
        assert orchestrator.history[-2:] == [S.REJECTED, S.DONE]
        assert _snapshot(sample_project) == before

    @pytest.mark.unit
    def test_invalid_request_writes_nothing(self, tmp_project_dir: Path):
        result = GenerationOrchestrator().generate(
            _init(tmp_project_dir, package_name="com.acme.class", architecture="layered")
        )

        assert not result.success
        assert any("reserved keyword" in e for e in result.errors)
        assert any(e.startswith("Unknown architecture type") for e in result.errors)
        assert list(tmp_project_dir.iterdir()) == []


class TestInitRollback:
    @pytest.mark.unit
    def test_failure_restores_project(self, tmp_project_dir: Path):
        (tmp_project_dir / "src" / "main" / "resources").mkdir(parents=True)
        (tmp_project_dir / PROPERTIES).write_text(APPLICATION_YML)
        before = _snapshot(tmp_project_dir)
        orchestrator = GenerationOrchestrator()

        with patch("cleanarch.pipeline.merge_yaml_text", side_effect=GenerationError("disk full")):
            result = orchestrator.generate(_init(tmp_project_dir))

        assert not result.success
        assert result.errors[0] == "Failed to initialize project: disk full"
        assert "All changes have been rolled back." in result.errors
        assert S.ROLLING_BACK in orchestrator.history
        assert _snapshot(tmp_project_dir) == before
        assert not (tmp_project_dir / "build.gradle.kts").exists()
        assert not (tmp_project_dir / ".cleanarch.yml").exists()
        assert orchestrator.backups.backup_path(tmp_project_dir, result.backup_id).is_dir()
