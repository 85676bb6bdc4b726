"""Shared pytest fixtures for the Brickyard test suite.

Provides reusable fixtures for:
- A scripted prompter standing in for an interactive user
- A template renderer
- A sample brick directory (``brick.yaml`` plus ``__brick__`` tree)
- Mocked ``httpx.AsyncClient`` downloads
"""

from __future__ import annotations

import textwrap
from pathlib import Path
from typing import Any
from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from brickyard.generator.templates import TemplateRenderer


# ---------------------------------------------------------------------------
# Prompting
# ---------------------------------------------------------------------------


class FakePrompter:
    """Answers prompts from a fixed script and records every question."""

    def __init__(self, answers: list[str]) -> None:
        self.answers = list(answers)
        self.messages: list[str] = []

    def prompt(self, message: str) -> str:
        self.messages.append(message)
        return self.answers.pop(0)


@pytest.fixture
def make_prompter():
    """Factory for ``FakePrompter`` instances."""
    return FakePrompter


# ---------------------------------------------------------------------------
# Rendering
# ---------------------------------------------------------------------------


@pytest.fixture
def renderer() -> TemplateRenderer:
    return TemplateRenderer()


# ---------------------------------------------------------------------------
# Brick directories
# ---------------------------------------------------------------------------

SAMPLE_BRICK_YAML = textwrap.dedent(
    """\
    name: widget
    description: A sample widget brick
    version: 0.2.0
    vars:
      name:
        type: string
        description: Widget name
        default: MyWidget
        prompt: What is the widget called?
      models:
        type: array
        description: Model names
    """
)


def write_brick(root: Path, files: dict[str, str], brick_yaml: str = SAMPLE_BRICK_YAML) -> Path:
    """Write ``brick.yaml`` and the ``__brick__`` *files* below *root*."""
    root.mkdir(parents=True, exist_ok=True)
    (root / "brick.yaml").write_text(brick_yaml, encoding="utf-8")
    for relative, content in files.items():
        path = root / "__brick__" / relative
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(content, encoding="utf-8")
    return root


@pytest.fixture
def sample_brick(tmp_path: Path) -> Path:
    """A brick with a plain file, a looped path, and a partial."""
    return write_brick(
        tmp_path / "bricks" / "widget",
        {
            "lib/{{snakeCase name}}.dart": (
                "class {{pascalCase name}} {}\n{{> footer.dart }}"
            ),
            "lib/models/{{#models}}{{{.}}}{{/models}}.dart": (
                "class {{pascalCase models}} {}\n"
            ),
            "{{~ footer.dart }}": "// generated for {{name}}\n",
            "README.md": "# {{titleCase name}}\n",
        },
    )


# ---------------------------------------------------------------------------
# HTTP
# ---------------------------------------------------------------------------


@pytest.fixture
def mock_download():
    """Patch ``httpx.AsyncClient`` so every GET returns ``b"downloaded"``.

    Yields the mocked client so tests can assert on ``get`` calls.
    """
    mock_response = MagicMock()
    mock_response.content = b"downloaded"
    mock_response.raise_for_status = MagicMock()

    mock_client = AsyncMock()
    mock_client.get = AsyncMock(return_value=mock_response)
    mock_client.__aenter__ = AsyncMock(return_value=mock_client)
    mock_client.__aexit__ = AsyncMock(return_value=False)

    with patch("httpx.AsyncClient", return_value=mock_client) as client_cls:
        mock_client.client_cls = client_cls
        yield mock_client


def read_tree(root: Path) -> dict[str, Any]:
    """Return ``{relative posix path: text}`` for every file under *root*."""
    return {
        p.relative_to(root).as_posix(): p.read_text(encoding="utf-8")
        for p in sorted(root.rglob("*"))
        if p.is_file()
    }


@pytest.fixture
def brick_writer():
    """Factory that writes a brick directory; see ``write_brick``."""
    return write_brick


@pytest.fixture
def tree_reader():
    """Factory that snapshots a directory tree; see ``read_tree``."""
    return read_tree
