"""Text-level insertion of dependency lines into a Gradle Kotlin DSL file.

The build descriptor is never parsed into a syntax tree: it may hold
plugins, repositories, custom tasks and anything else, all of which must
survive byte-for-byte.  The merger only ever *inserts* whole lines into the
first top-level ``dependencies { ... }`` block (or appends a new block), so
existing lines keep their text and their relative order.
"""

from __future__ import annotations

import re
from typing import Iterable

from pydantic import BaseModel, ConfigDict, Field

from cleanarch.structure.models import Dependency


DEFAULT_INDENT = "    "

SCOPE_CONFIGURATIONS: dict[str, str] = {
    "compile": "implementation",
    "test": "testImplementation",
    "runtime": "runtimeOnly",
    "provided": "compileOnly",
}

# Reverse mapping used when reading a descriptor back.
CONFIGURATION_SCOPES: dict[str, str] = {
    "implementation": "compile",
    "api": "compile",
    "testImplementation": "test",
    "testRuntimeOnly": "test",
    "runtimeOnly": "runtime",
    "compileOnly": "provided",
}

_STRING_LITERAL = re.compile(r'"(?:\\.|[^"\\])*"')
_BLOCK_OPEN = re.compile(r"^\s*dependencies\s*\{")
_DECLARATION = re.compile(
    r'\b(?P<conf>[A-Za-z]+)\(\s*"(?P<group>[^":\s]+):(?P<artifact>[^":\s]+)(?::(?P<version>[^"\s]+))?"\s*\)'
)


class DescriptorMergeResult(BaseModel):
    """Outcome of :func:`merge_dependencies`.

    ``changed`` is ``False`` when every dependency was already declared; the
    caller must then skip the write entirely.
    """
    model_config = ConfigDict(frozen=True)

    content: str
    added: list[Dependency] = Field(default_factory=list)
    skipped: list[Dependency] = Field(default_factory=list)
    changed: bool = False


# ---------------------------------------------------------------------------
# Rendering helpers
# ---------------------------------------------------------------------------


def gradle_configuration(scope: str) -> str:
    """Map a logical scope (``compile``, ``test``...) to a Gradle configuration."""
    try:
        return SCOPE_CONFIGURATIONS[scope.lower()]
    except KeyError:
        raise ValueError(
            f"Unknown dependency scope '{scope}'. Valid scopes: {', '.join(SCOPE_CONFIGURATIONS)}"
        ) from None


def render_declaration(dep: Dependency) -> str:
    """``implementation("g:a:v")`` for a compile dependency, and so on."""
    return f'{gradle_configuration(dep.scope)}("{dep.coordinate}")'


def marker_comment(scope: str) -> str:
    return f"// {scope.strip().capitalize()} dependencies"


# ---------------------------------------------------------------------------
# Block scanning
# ---------------------------------------------------------------------------


def _brace_delta(line: str) -> int:
    code = _STRING_LITERAL.sub('""', line)
    code = code.split("//", 1)[0]
    return code.count("{") - code.count("}")


def _last_closing_brace(line: str) -> int:
    """Index of the last ``}`` outside string literals and line comments."""
    code = _STRING_LITERAL.sub(lambda m: '"' + " " * (len(m.group()) - 2) + '"', line)
    comment = code.find("//")
    if comment >= 0:
        code = code[:comment]
    return code.rfind("}")


def _find_dependency_block(lines: list[str]) -> tuple[int, int] | None:
    """Return ``(open_index, close_index)`` of the first top-level block.

    Blocks nested in ``buildscript { }`` or ``subprojects { }`` are ignored.
    A block whose braces open and close on the same line comes back as
    ``(index, index)``.
    """
    depth = 0
    for index, line in enumerate(lines):
        if depth == 0 and _BLOCK_OPEN.match(line):
            inner = _brace_delta(line)
            if inner <= 0:
                return index, index
            for close in range(index + 1, len(lines)):
                inner += _brace_delta(lines[close])
                if inner <= 0:
                    return index, close
            return None
        depth += _brace_delta(line)
    return None


def _statements(lines: list[str], start: int, end: int) -> list[tuple[int, int]]:
    """Top-level statements inside a block, as ``(first_line, last_line)`` pairs.

    A declaration with a trailing closure (``implementation("x") { ... }``)
    spans several lines; insertions go after its last line.
    """
    result: list[tuple[int, int]] = []
    index = start + 1
    while index < end:
        first = index
        depth = _brace_delta(lines[index])
        while depth > 0 and index + 1 < end:
            index += 1
            depth += _brace_delta(lines[index])
        result.append((first, index))
        index += 1
    return result


def _indent_of(line: str) -> str:
    return line[: len(line) - len(line.lstrip())]


def _newline(text: str) -> str:
    return "\r\n" if "\r\n" in text else "\n"


# ---------------------------------------------------------------------------
# Insertion
# ---------------------------------------------------------------------------


def _insert_declaration(text: str, declaration: str, configuration: str, scope: str) -> str:
    nl = _newline(text)
    lines = text.splitlines(keepends=True)
    block = _find_dependency_block(lines)

    if block is None:
        prefix = text if not text or text.endswith(("\n", "\r\n")) else text + nl
        separator = nl if prefix.strip() else ""
        return f"{prefix}{separator}dependencies {{{nl}{DEFAULT_INDENT}{declaration}{nl}}}{nl}"

    start, end = block
    if start == end:
        # dependencies {} -> move the closing brace onto its own line
        line = lines[start]
        brace = _last_closing_brace(line)
        head = line[:brace].rstrip(" \t")
        lines[start:start + 1] = [f"{head}{nl}", f"{_indent_of(line)}{line[brace:]}"]
        end = start + 1
    statements = _statements(lines, start, end)

    same_configuration = [
        (first, last) for first, last in statements
        if lines[first].lstrip().startswith(f"{configuration}(")
    ]
    if same_configuration:
        first, last = same_configuration[-1]
        indent = _indent_of(lines[first])
        lines.insert(last + 1, f"{indent}{declaration}{nl}")
        return "".join(lines)

    indent = DEFAULT_INDENT
    for first, _ in statements:
        stripped = lines[first].strip()
        if stripped and not stripped.startswith("//"):
            indent = _indent_of(lines[first])
            break

    marker = marker_comment(scope)
    for first, _ in statements:
        if lines[first].strip() == marker:
            lines.insert(first + 1, f"{_indent_of(lines[first])}{declaration}{nl}")
            return "".join(lines)

    if not lines[end - 1].endswith(("\n", "\r\n")):
        lines[end - 1] = lines[end - 1] + nl
    lines[end:end] = [f"{indent}{marker}{nl}", f"{indent}{declaration}{nl}"]
    return "".join(lines)


def merge_dependencies(text: str, dependencies: Iterable[Dependency]) -> DescriptorMergeResult:
    """Ensure every dependency is declared in the descriptor *text*.

    A dependency whose rendered declaration already appears verbatim anywhere
    in the text is skipped.  The rest are inserted after the last declaration
    with the same configuration, or under a ``// <Scope> dependencies`` marker
    just before the block's closing brace when the configuration is new.
    """
    content = text
    added: list[Dependency] = []
    skipped: list[Dependency] = []

    for dep in dependencies:
        declaration = render_declaration(dep)
        if declaration in content:
            skipped.append(dep)
            continue
        content = _insert_declaration(content, declaration, gradle_configuration(dep.scope), dep.scope)
        added.append(dep)

    return DescriptorMergeResult(
        content=content,
        added=added,
        skipped=skipped,
        changed=content != text,
    )


def parse_declared_dependencies(text: str) -> list[Dependency]:
    """Read back the ``configuration("g:a[:v]")`` declarations of a descriptor.

    Configurations outside :data:`CONFIGURATION_SCOPES` (``kapt``,
    ``annotationProcessor``, plugin ids...) are ignored.
    """
    found: list[Dependency] = []
    for match in _DECLARATION.finditer(text):
        scope = CONFIGURATION_SCOPES.get(match.group("conf"))
        if scope is None:
            continue
        found.append(
            Dependency(
                group=match.group("group"),
                artifact=match.group("artifact"),
                version=match.group("version") or "",
                scope=scope,
            )
        )
    return found
