"""Generation orchestrator.

A ``Generator`` owns a brick's template files and partials.  ``generate()``
walks the templates in order, expands and renders each one, and commits the
results through a ``GeneratorTarget``.  Templates whose path carries the
``{{% key %}}`` marker are not rendered; the file named by ``vars[key]`` (a
local path or an http(s) URL) is copied in verbatim instead.
"""

from __future__ import annotations

import asyncio
import re
from collections.abc import Iterable, Mapping
from pathlib import Path, PurePosixPath
from typing import Any
from urllib.parse import urlparse

import httpx
import yaml
from pydantic import BaseModel, Field, ValidationError, field_validator

from brickyard.config import GeneratorConfig
from brickyard.errors import BrickLoadError, FetchError
from .files import FileContents, TemplateFile
from .hooks import GeneratorHooks
from .target import (
    FileConflictResolution,
    GeneratedFile,
    GeneratorTarget,
)
from .templates import FILE_RE, TemplateRenderer, partial_name


_ROOT_RE = re.compile(r"^(?:\w:\\|\w:/|/|\\)")
_SEPARATOR_RE = re.compile(r"[/\\]")


# ---------------------------------------------------------------------------
# brick.yaml model
# ---------------------------------------------------------------------------


class BrickVar(BaseModel):
    """A variable declared in ``brick.yaml``."""

    type: str = Field(default="string")
    description: str = Field(default="")
    default: Any = Field(default=None)
    prompt: str | None = Field(default=None)


class BrickYaml(BaseModel):
    """Pydantic model of a ``brick.yaml`` file."""

    name: str = Field(..., description="Brick name, used as the generator id")
    description: str = Field(default="")
    version: str = Field(default="0.1.0")
    vars: dict[str, BrickVar] = Field(default_factory=dict)

    @field_validator("vars", mode="before")
    @classmethod
    def _normalise_vars(cls, value: Any) -> Any:
        # Older bricks list bare variable names.
        if value is None:
            return {}
        if isinstance(value, list):
            return {str(name): {} for name in value}
        if isinstance(value, dict):
            return {key: spec if spec is not None else {} for key, spec in value.items()}
        return value

    def default_vars(self) -> dict[str, Any]:
        """Return ``{name: default}`` for every variable that declares one."""
        return {
            name: spec.default
            for name, spec in self.vars.items()
            if spec.default is not None
        }


def load_brick_yaml(path: str | Path) -> BrickYaml:
    """Read and validate a ``brick.yaml`` file.

    Raises:
        BrickLoadError: If the file is missing, not YAML, or invalid.
    """
    file_path = Path(path)
    try:
        data = yaml.safe_load(file_path.read_text(encoding="utf-8"))
    except OSError as exc:
        raise BrickLoadError(f"Cannot read {file_path}: {exc}") from exc
    except yaml.YAMLError as exc:
        raise BrickLoadError(f"Invalid YAML in {file_path}: {exc}") from exc

    if not isinstance(data, dict):
        raise BrickLoadError(f"{file_path} must contain a mapping")
    try:
        return BrickYaml.model_validate(data)
    except ValidationError as exc:
        raise BrickLoadError(f"Invalid brick definition in {file_path}: {exc}") from exc


# ---------------------------------------------------------------------------
# Generator
# ---------------------------------------------------------------------------


class Generator:
    """Renders a set of template files onto a ``GeneratorTarget``.

    Attributes:
        id: Unique identifier (the brick name).
        description: Human readable description.
        files: Renderable templates, in the order they were added.
        partials: Partial templates keyed by their ``{{~ name }}`` path.
        vars: Names of the variables the brick declares.
        defaults: Declared default values, applied by :meth:`make`.
    """

    def __init__(
        self,
        id: str,
        description: str = "",
        files: Iterable[TemplateFile | None] = (),
        hooks: GeneratorHooks | None = None,
        vars: Iterable[str] = (),
        defaults: Mapping[str, Any] | None = None,
        config: GeneratorConfig | None = None,
    ) -> None:
        self.id = id
        self.description = description
        self.hooks = hooks or GeneratorHooks()
        self.vars = list(vars)
        self.defaults = dict(defaults or {})
        self.config = config or GeneratorConfig()
        self.renderer = TemplateRenderer()
        self.files: list[TemplateFile] = []
        self.partials: dict[str, bytes] = {}
        for file in files:
            self.add_template_file(file)

    # -- Construction ------------------------------------------------------

    @classmethod
    async def from_directory(
        cls, path: str | Path, config: GeneratorConfig | None = None
    ) -> Generator:
        """Load a brick from *path* (``brick.yaml`` plus a ``__brick__`` tree).

        Files are read concurrently, at most ``config.descriptor_pool_size``
        at a time.  Files that cannot be read are left out.
        """
        config = config or GeneratorConfig()
        root = Path(path)
        brick = await asyncio.to_thread(load_brick_yaml, root / config.brick_file)
        brick_dir = root / config.brick_dir
        paths = await asyncio.to_thread(_list_files, brick_dir)
        semaphore = asyncio.Semaphore(config.descriptor_pool_size)

        async def _read(file_path: Path) -> TemplateFile | None:
            async with semaphore:
                try:
                    content = await asyncio.to_thread(file_path.read_bytes)
                except OSError:
                    return None
            return TemplateFile(file_path.relative_to(brick_dir).as_posix(), content)

        files = await asyncio.gather(*[_read(p) for p in paths])
        return cls(
            brick.name,
            brick.description,
            files=files,
            vars=brick.vars.keys(),
            defaults=brick.default_vars(),
            config=config,
        )

    def add_template_file(self, file: TemplateFile | None) -> None:
        """Add *file* as a template, or as a partial if its path is ``{{~ name }}``."""
        if file is None:
            return
        if partial_name(file.path) is not None:
            self.partials[file.path] = file.content
        else:
            self.files.append(file)

    # -- Generation --------------------------------------------------------

    async def generate(
        self,
        target: GeneratorTarget,
        vars: Mapping[str, Any] | None = None,
        file_conflict_resolution: FileConflictResolution | None = None,
    ) -> list[GeneratedFile]:
        """Render every template onto *target* and return one record per file.

        Templates are processed strictly in order; each one is rendered in a
        worker thread and committed before the next starts.

        Raises:
            FetchError: If an external file cannot be read or downloaded.
            PromptUnavailableError: If a conflict needs a prompt and the
                target has no prompter.
            OSError: If a file cannot be written.
        """
        vars = dict(vars or {})
        overwrite_rule = (
            file_conflict_resolution.to_overwrite_rule()
            if file_conflict_resolution is not None
            else None
        )
        generated: list[GeneratedFile] = []

        for file in self.files:
            file_match = FILE_RE.search(file.path)
            if file_match is not None:
                fetched = await self._fetch(file_match.group(1), vars)
                if fetched is None:
                    continue
                generated.append(
                    await target.create_file(
                        fetched.path, fetched.content, overwrite_rule=overwrite_rule
                    )
                )
                continue

            results = await asyncio.to_thread(
                file.run_substitution, dict(vars), dict(self.partials), self.renderer
            )
            for result in results:
                if not is_valid_output_path(result.path, file.path):
                    continue
                generated.append(
                    await target.create_file(
                        result.path, result.content, overwrite_rule=overwrite_rule
                    )
                )

        return generated

    async def make(
        self,
        target: GeneratorTarget,
        vars: Mapping[str, Any] | None = None,
        file_conflict_resolution: FileConflictResolution | None = None,
    ) -> list[GeneratedFile]:
        """Apply declared defaults, run the pre-gen hook, generate, run post-gen."""
        merged = {**self.defaults, **(vars or {})}
        merged = await self.hooks.run_pre_gen(merged)
        if file_conflict_resolution is None:
            file_conflict_resolution = FileConflictResolution(
                self.config.file_conflict_resolution
            )
        files = await self.generate(target, merged, file_conflict_resolution)
        await self.hooks.run_post_gen(files)
        return files

    # -- External files ----------------------------------------------------

    async def _fetch(self, key: str, vars: Mapping[str, Any]) -> FileContents | None:
        """Read the file bound to *key*; ``None`` when it has no basename."""
        source = vars.get(key)
        if not isinstance(source, str) or not source:
            raise FetchError(f"{{{{% {key} %}}}}", "no path or URL bound")

        if urlparse(source).scheme in ("http", "https"):
            name = PurePosixPath(urlparse(source).path).name
            if not name:
                return None
            return FileContents(name, await self._download(source))

        local = Path(source)
        if not local.name:
            return None
        try:
            content = await asyncio.to_thread(local.read_bytes)
        except OSError as exc:
            raise FetchError(source, str(exc)) from exc
        return FileContents(local.name, content)

    async def _download(self, url: str) -> bytes:
        fetch = self.config.fetch
        try:
            async with httpx.AsyncClient(
                timeout=httpx.Timeout(fetch.timeout, connect=fetch.connect_timeout),
                follow_redirects=fetch.follow_redirects,
            ) as client:
                response = await client.get(url)
                response.raise_for_status()
                return response.content
        except httpx.HTTPError as exc:
            raise FetchError(url, str(exc)) from exc

    # -- Dunder ------------------------------------------------------------

    def __lt__(self, other: Generator) -> bool:
        return self.id.lower() < other.id.lower()

    def __str__(self) -> str:
        return f"[{self.id}: {self.description}]"


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def is_valid_output_path(path: str, template_path: str) -> bool:
    """Return ``False`` for expanded paths that must not be written.

    A path is dropped when it is empty, when it has an empty segment, or when
    expansion made it absolute (or relative) unlike the template path.
    """
    if not path:
        return False
    root = _ROOT_RE.match(path)
    if bool(root) != bool(_ROOT_RE.match(template_path)):
        return False
    relative = path[root.end() :] if root else path
    return "" not in _SEPARATOR_RE.split(relative)


def _list_files(directory: Path) -> list[Path]:
    if not directory.is_dir():
        return []
    return sorted(p for p in directory.rglob("*") if p.is_file())
