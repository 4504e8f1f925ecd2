"""Shared pytest fixtures for the cleanarch test suite.

Provides reusable fixtures for:
- Temporary initialised projects (``.cleanarch.yml``, build file, properties)
- Loaded project settings
- The built-in Jinja template provider
- A minimal in-memory template provider for orchestrator tests
"""

from __future__ import annotations

import textwrap
from pathlib import Path
from typing import Any, Callable, Mapping

import pytest

from cleanarch.config import ProjectSettings
from cleanarch.errors import TemplateNotFoundError
from cleanarch.scaffolder.templates import JinjaTemplateProvider
from cleanarch.structure.models import (
    ArchitectureMetadata,
    ArtifactMetadata,
    Dependency,
    LayerDependencies,
    ValidationResult,
)


BASE_PACKAGE = "com.acme.payments"

BUILD_GRADLE = textwrap.dedent("""\
    plugins {
        java
        id("org.springframework.boot") version "3.2.0"
    }

    repositories {
        mavenCentral()
    }

    dependencies {
        implementation("org.springframework.boot:spring-boot-starter-webflux:3.2.0")
        testImplementation("org.junit.jupiter:junit-jupiter:5.10.1")
    }

    tasks.test {
        useJUnitPlatform()
    }
""")

APPLICATION_YML = textwrap.dedent("""\
    server:
      port: 8080
    spring:
      application:
        name: payments
""")


def write_settings(
    project_dir: Path,
    architecture: str = "hexagonal-single",
    framework: str = "spring",
    paradigm: str = "reactive",
    overrides: Mapping[str, str] | None = None,
    local_templates: str | None = None,
) -> Path:
    lines = [
        "project:",
        "  name: payments",
        f"  basePackage: {BASE_PACKAGE}",
        "architecture:",
        f"  type: {architecture}",
        f"  framework: {framework}",
        f"  paradigm: {paradigm}",
    ]
    if overrides:
        lines.append("dependencyOverrides:")
        lines.extend(f'  "{key}": "{value}"' for key, value in overrides.items())
    if local_templates:
        lines += ["templates:", f"  localPath: {local_templates}"]
    path = project_dir / ".cleanarch.yml"
    path.write_text("\n".join(lines) + "\n", encoding="utf-8")
    return path


# ---------------------------------------------------------------------------
# Projects
# ---------------------------------------------------------------------------

@pytest.fixture
def tmp_project_dir(tmp_path: Path) -> Path:
    """Empty project directory (auto-cleanup)."""
    project_dir = tmp_path / "payments"
    project_dir.mkdir()
    yield project_dir


@pytest.fixture
def sample_project(tmp_project_dir: Path) -> Path:
    """Initialised single-module project with a build file and application.yml."""
    write_settings(tmp_project_dir)
    (tmp_project_dir / "build.gradle.kts").write_text(BUILD_GRADLE, encoding="utf-8")
    resources = tmp_project_dir / "src" / "main" / "resources"
    resources.mkdir(parents=True)
    (resources / "application.yml").write_text(APPLICATION_YML, encoding="utf-8")
    yield tmp_project_dir


@pytest.fixture
def make_project(tmp_path: Path) -> Callable[..., Path]:
    """Factory for projects with a chosen architecture and settings."""
    counter = {"n": 0}

    def _make(architecture: str = "hexagonal-single", with_build: bool = True, **kwargs: Any) -> Path:
        counter["n"] += 1
        project_dir = tmp_path / f"project-{counter['n']}"
        project_dir.mkdir()
        write_settings(project_dir, architecture=architecture, **kwargs)
        if with_build:
            (project_dir / "build.gradle.kts").write_text(BUILD_GRADLE, encoding="utf-8")
        return project_dir

    return _make


@pytest.fixture
def settings(sample_project: Path) -> ProjectSettings:
    return ProjectSettings.load(sample_project)


# ---------------------------------------------------------------------------
# Template providers
# ---------------------------------------------------------------------------

@pytest.fixture
def provider() -> JinjaTemplateProvider:
    """The built-in template tree."""
    return JinjaTemplateProvider()


class FakeProvider:
    """In-memory provider with a single-module architecture and one adapter type."""

    def __init__(self) -> None:
        self.templates: dict[str, str] = {
            "entities/Entity.java.j2": "entity {{ className }}",
            "usecases/InputPort.java.j2": "port {{ className }}",
            "usecases/UseCase.java.j2": "impl {{ className }}",
            "adapters/driven/redis/Adapter.java.j2": "adapter {{ className }}",
            "adapters/driven/redis/DataEntity.java.j2": "data {{ className }}",
            "adapters/driven/common/Mapper.java.j2": "mapper {{ className }}",
            "adapters/driven/redis/application.yml.j2": "spring:\n  data:\n    redis:\n      port: 6379\n",
        }
        self.architecture = ArchitectureMetadata(
            architecture="hexagonal-single",
            paths={
                "entity": "src/main/java/{packagePath}/{name}.java",
                "use-case-port": "src/main/java/{packagePath}/{name}.java",
                "use-case-impl": "src/main/java/{packagePath}/{name}.java",
                "driven-adapter": "src/main/java/{packagePath}/{name}.java",
                "driving-adapter": "src/main/java/{packagePath}/{name}.java",
                "configuration": "src/main/java/{packagePath}/{name}.java",
                "build-descriptor": "{buildDescriptor}",
                "application-properties": "src/main/resources/{applicationProperties}",
            },
            layer_dependencies=LayerDependencies(
                allowed={"domain": [], "application": ["domain"], "infrastructure": ["domain", "application"]}
            ),
        )
        self.metadata = ArtifactMetadata(
            name="redis-adapter",
            type="driven",
            template="adapters/driven/redis/Adapter.java.j2",
            dependencies=[Dependency.compile("org.springframework.boot", "spring-boot-starter-data-redis-reactive", "3.2.0")],
            properties_template="adapters/driven/redis/application.yml.j2",
        )
        self.rendered: list[str] = []

    def exists(self, template_id: str) -> bool:
        return template_id in self.templates

    def validate(self, template_id: str) -> ValidationResult:
        if template_id not in self.templates:
            return ValidationResult.failure(f"Template not found: {template_id}")
        return ValidationResult.success()

    def render(self, template_id: str, bindings: Mapping[str, Any]) -> str:
        if template_id not in self.templates:
            raise TemplateNotFoundError(template_id)
        self.rendered.append(template_id)
        return self.templates[template_id].replace("{{ className }}", str(bindings.get("className", "")))

    def load_architecture(self, architecture: str) -> ArchitectureMetadata:
        return self.architecture

    def load_artifact_metadata(self, role: str, artifact_type: str) -> ArtifactMetadata:
        if artifact_type != "redis":
            raise TemplateNotFoundError(f"adapters/{role}/{artifact_type}/metadata.yml")
        return self.metadata


@pytest.fixture
def fake_provider() -> FakeProvider:
    return FakeProvider()
