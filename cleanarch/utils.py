"""Shared utility functions for cleanarch.

Provides the Rich console used for all user-facing output, YAML file
loading and Java-style name conversions.
"""

from __future__ import annotations

import re
from pathlib import Path
from typing import Any

import yaml
from rich.console import Console
from rich.table import Table

console = Console()

# ---------------------------------------------------------------------------
# Name helpers
# ---------------------------------------------------------------------------

_WORD_BOUNDARY = re.compile(r"[\s_\-]+")
_CAMEL_SPLIT = re.compile(r"(?<=[a-z0-9])(?=[A-Z])")


def _words(value: str) -> list[str]:
    parts: list[str] = []
    for chunk in _WORD_BOUNDARY.split(value.strip()):
        parts.extend(p for p in _CAMEL_SPLIT.split(chunk) if p)
    return parts


def to_pascal_case(value: str) -> str:
    """``"user-repository"`` -> ``"UserRepository"``."""
    return "".join(w[:1].upper() + w[1:] for w in _words(value))


def to_camel_case(value: str) -> str:
    """``"UserRepository"`` -> ``"userRepository"``."""
    pascal = to_pascal_case(value)
    return pascal[:1].lower() + pascal[1:]


def to_kebab_case(value: str) -> str:
    """``"UserRepository"`` -> ``"user-repository"``."""
    return "-".join(w.lower() for w in _words(value))


def to_snake_case(value: str) -> str:
    return "_".join(w.lower() for w in _words(value))


def package_to_path(package_name: str) -> str:
    """``"com.example.domain"`` -> ``"com/example/domain"``."""
    return package_name.replace(".", "/")


# ---------------------------------------------------------------------------
# YAML I/O
# ---------------------------------------------------------------------------


def load_yaml(path: str | Path) -> dict[str, Any]:
    """Load a YAML file whose root is a mapping.

    An empty file yields ``{}``.

    Raises:
        FileNotFoundError: If the file does not exist.
        yaml.YAMLError: If the file is not valid YAML.
        ValueError: If the document root is not a mapping.
    """
    file_path = Path(path)
    data = yaml.safe_load(file_path.read_text(encoding="utf-8"))
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ValueError(f"Expected a mapping at the root of {file_path}")
    return data


# ---------------------------------------------------------------------------
# Rich output helpers
# ---------------------------------------------------------------------------


def print_summary_table(data: dict[str, str], title: str = "Summary") -> None:
    """Print a two-column key/value summary table."""
    table = Table(title=title, show_header=True, header_style="bold cyan")
    table.add_column("Item", style="dim", no_wrap=True)
    table.add_column("Value")

    for key, value in data.items():
        table.add_row(key, str(value))

    console.print(table)
    console.print()


def print_success(message: str) -> None:
    """Print a green success message."""
    console.print(f"[bold green]{message}[/bold green]")


def print_error(message: str) -> None:
    """Print a red error message."""
    console.print(f"[bold red]{message}[/bold red]")


def print_warning(message: str) -> None:
    """Print a yellow warning message."""
    console.print(f"[bold yellow]{message}[/bold yellow]")
