"""Brickyard configuration.

Typed settings for loading bricks and running generators.  All settings are
Pydantic v2 models so they are validated at construction time and can be
serialised to/from JSON or read from environment variables.
"""

from __future__ import annotations

import os
from pathlib import Path
from typing import Any, Literal

from pydantic import BaseModel, Field

ConflictPolicy = Literal["prompt", "overwrite", "skip", "append"]


class FetchConfig(BaseModel):
    """Settings for ``{{% key %}}`` files pulled from a URL."""

    timeout: float = Field(default=30.0, gt=0, description="Per-request timeout in seconds")
    connect_timeout: float = Field(default=10.0, gt=0)
    follow_redirects: bool = Field(default=True)


class GeneratorConfig(BaseModel):
    """Settings shared by brick loading and generation.

    Instances are usually created once by the caller (or via
    :meth:`from_env`) and passed to ``Generator.from_directory``.
    """

    descriptor_pool_size: int = Field(
        default=32, ge=1, description="Maximum brick files read concurrently"
    )
    brick_file: str = Field(default="brick.yaml")
    brick_dir: str = Field(default="__brick__")
    file_conflict_resolution: ConflictPolicy = Field(
        default="prompt", description="Policy used by Generator.make when none is given"
    )
    fetch: FetchConfig = Field(default_factory=FetchConfig)

    # ------------------------------------------------------------------
    # Serialisation helpers
    # ------------------------------------------------------------------

    def save(self, path: Path) -> Path:
        """Persist the configuration to a JSON file and return its path."""
        target = Path(path)
        target.parent.mkdir(parents=True, exist_ok=True)
        target.write_text(self.model_dump_json(indent=2), encoding="utf-8")
        return target

    @classmethod
    def load(cls, path: Path) -> "GeneratorConfig":
        """Load a previously-saved configuration from JSON."""
        raw = Path(path).read_text(encoding="utf-8")
        return cls.model_validate_json(raw)

    @classmethod
    def from_env(cls) -> "GeneratorConfig":
        """Build a ``GeneratorConfig`` from environment variables.

        Recognised variables (all optional):
            BRICKYARD_DESCRIPTOR_POOL_SIZE, BRICKYARD_BRICK_FILE,
            BRICKYARD_BRICK_DIR, BRICKYARD_ON_CONFLICT,
            BRICKYARD_FETCH_TIMEOUT.
        """
        kwargs: dict[str, Any] = {}
        if os.environ.get("BRICKYARD_DESCRIPTOR_POOL_SIZE"):
            kwargs["descriptor_pool_size"] = int(os.environ["BRICKYARD_DESCRIPTOR_POOL_SIZE"])
        if os.environ.get("BRICKYARD_BRICK_FILE"):
            kwargs["brick_file"] = os.environ["BRICKYARD_BRICK_FILE"]
        if os.environ.get("BRICKYARD_BRICK_DIR"):
            kwargs["brick_dir"] = os.environ["BRICKYARD_BRICK_DIR"]
        if os.environ.get("BRICKYARD_ON_CONFLICT"):
            kwargs["file_conflict_resolution"] = os.environ["BRICKYARD_ON_CONFLICT"].strip().lower()

        fetch_kwargs: dict[str, Any] = {}
        if os.environ.get("BRICKYARD_FETCH_TIMEOUT"):
            fetch_kwargs["timeout"] = float(os.environ["BRICKYARD_FETCH_TIMEOUT"])

        return cls(fetch=FetchConfig(**fetch_kwargs), **kwargs)
