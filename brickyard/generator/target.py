"""Generation targets and file conflict resolution.

A ``GeneratorTarget`` commits rendered files somewhere.  The
``DirectoryGeneratorTarget`` writes them below a root directory and, when a
file already exists with different content, asks its ``ConflictResolver``
whether to overwrite, append or skip.
"""

from __future__ import annotations

import asyncio
from abc import ABC, abstractmethod
from enum import Enum
from pathlib import Path
from typing import TYPE_CHECKING, Protocol

from pydantic import BaseModel, Field

from brickyard.errors import PromptUnavailableError

if TYPE_CHECKING:
    from brickyard.utils import ScaffoldLogger


# ---------------------------------------------------------------------------
# Results
# ---------------------------------------------------------------------------


class GeneratedFileStatus(str, Enum):
    CREATED = "created"
    OVERWRITTEN = "overwritten"
    APPENDED = "appended"
    SKIPPED = "skipped"
    IDENTICAL = "identical"


class GeneratedFile(BaseModel):
    """Outcome of committing one rendered file."""

    path: str = Field(..., description="Absolute path of the target file")
    status: GeneratedFileStatus

    @classmethod
    def created(cls, path: str) -> GeneratedFile:
        return cls(path=path, status=GeneratedFileStatus.CREATED)

    @classmethod
    def overwritten(cls, path: str) -> GeneratedFile:
        return cls(path=path, status=GeneratedFileStatus.OVERWRITTEN)

    @classmethod
    def appended(cls, path: str) -> GeneratedFile:
        return cls(path=path, status=GeneratedFileStatus.APPENDED)

    @classmethod
    def skipped(cls, path: str) -> GeneratedFile:
        return cls(path=path, status=GeneratedFileStatus.SKIPPED)

    @classmethod
    def identical(cls, path: str) -> GeneratedFile:
        return cls(path=path, status=GeneratedFileStatus.IDENTICAL)


# ---------------------------------------------------------------------------
# Rules
# ---------------------------------------------------------------------------


class OverwriteRule(str, Enum):
    """How a conflicting file is handled."""

    ALWAYS_OVERWRITE = "alwaysOverwrite"
    ALWAYS_SKIP = "alwaysSkip"
    ALWAYS_APPEND = "alwaysAppend"
    OVERWRITE_ONCE = "overwriteOnce"
    SKIP_ONCE = "skipOnce"
    APPEND_ONCE = "appendOnce"

    @classmethod
    def from_answer(cls, answer: str) -> OverwriteRule:
        """Map a ``(Yyna)`` prompt answer to a rule; unknown answers overwrite once."""
        return _ANSWERS.get(answer.strip(), cls.OVERWRITE_ONCE)

    @property
    def is_sticky(self) -> bool:
        """Whether the rule applies to every later conflict without asking."""
        return self in (
            OverwriteRule.ALWAYS_OVERWRITE,
            OverwriteRule.ALWAYS_SKIP,
            OverwriteRule.ALWAYS_APPEND,
        )

    @property
    def skips(self) -> bool:
        return self in (OverwriteRule.ALWAYS_SKIP, OverwriteRule.SKIP_ONCE)

    @property
    def appends(self) -> bool:
        return self in (OverwriteRule.ALWAYS_APPEND, OverwriteRule.APPEND_ONCE)


_ANSWERS: dict[str, OverwriteRule] = {
    "Y": OverwriteRule.ALWAYS_OVERWRITE,
    "y": OverwriteRule.OVERWRITE_ONCE,
    "n": OverwriteRule.SKIP_ONCE,
    "a": OverwriteRule.APPEND_ONCE,
}


class FileConflictResolution(str, Enum):
    """Caller-facing conflict policy for a whole generation run."""

    PROMPT = "prompt"
    OVERWRITE = "overwrite"
    SKIP = "skip"
    APPEND = "append"

    def to_overwrite_rule(self) -> OverwriteRule | None:
        """Return the matching sticky rule, or ``None`` to ask interactively."""
        return {
            FileConflictResolution.OVERWRITE: OverwriteRule.ALWAYS_OVERWRITE,
            FileConflictResolution.SKIP: OverwriteRule.ALWAYS_SKIP,
            FileConflictResolution.APPEND: OverwriteRule.ALWAYS_APPEND,
        }.get(self)


# ---------------------------------------------------------------------------
# Conflict resolution
# ---------------------------------------------------------------------------


class Prompter(Protocol):
    """Anything that can ask the user a question and return the answer."""

    def prompt(self, message: str) -> str: ...


class ConflictResolver:
    """Tracks the overwrite rule across all conflicts of one target.

    The rule starts out as the first non-``None`` rule offered to
    :meth:`offer`.  A sticky rule (``always*``) answers every conflict; any
    other state asks the prompter again and adopts its answer.
    """

    def __init__(self, prompter: Prompter | None = None) -> None:
        self.prompter = prompter
        self.current_rule: OverwriteRule | None = None

    def offer(self, rule: OverwriteRule | None) -> None:
        if self.current_rule is None and rule is not None:
            self.current_rule = rule

    def resolve(self, path: Path) -> OverwriteRule:
        """Decide what to do with the conflicting file at *path*.

        Raises:
            PromptUnavailableError: If an answer is needed and there is no
                prompter.
        """
        if self.current_rule is not None and self.current_rule.is_sticky:
            return self.current_rule
        if self.prompter is None:
            raise PromptUnavailableError(str(path))
        answer = self.prompter.prompt(f"Overwrite {path.name}? (Yyna)")
        self.current_rule = OverwriteRule.from_answer(answer)
        return self.current_rule


# ---------------------------------------------------------------------------
# Targets
# ---------------------------------------------------------------------------


class GeneratorTarget(ABC):
    """Knows how to create a file given a path and contents."""

    @abstractmethod
    async def create_file(
        self,
        path: str,
        content: bytes,
        *,
        overwrite_rule: OverwriteRule | None = None,
    ) -> GeneratedFile: ...


class DirectoryGeneratorTarget(GeneratorTarget):
    """Writes generated files below ``directory``.

    Calls must be sequential: the conflict state carried between calls is not
    guarded against concurrent use.
    """

    def __init__(
        self,
        directory: str | Path,
        *,
        logger: ScaffoldLogger | None = None,
        prompter: Prompter | None = None,
    ) -> None:
        self.directory = Path(directory).resolve()
        self.directory.mkdir(parents=True, exist_ok=True)
        self.logger = logger
        self.resolver = ConflictResolver(prompter)

    async def create_file(
        self,
        path: str,
        content: bytes,
        *,
        overwrite_rule: OverwriteRule | None = None,
    ) -> GeneratedFile:
        self.resolver.offer(overwrite_rule)
        file = self.directory / path
        display = _display_path(file)

        if not await asyncio.to_thread(file.exists):
            await asyncio.to_thread(_write_file, file, content, False)
            self._delayed("green", "created", display)
            return GeneratedFile.created(str(file))

        existing = await asyncio.to_thread(file.read_bytes)
        if existing == content:
            self._delayed("cyan", "identical", display)
            return GeneratedFile.identical(str(file))

        if self.logger is not None and not (
            self.resolver.current_rule and self.resolver.current_rule.is_sticky
        ):
            self.logger.info(f"[bold red]conflict[/bold red] {display}")
        rule = self.resolver.resolve(file)

        if rule.skips:
            self._delayed("yellow", "skipped", display)
            return GeneratedFile.skipped(str(file))

        await asyncio.to_thread(_write_file, file, content, rule.appends)
        if rule.appends:
            self._delayed("bright_blue", "modified", display)
            return GeneratedFile.appended(str(file))
        self._delayed("green", "created", display)
        return GeneratedFile.overwritten(str(file))

    def _delayed(self, color: str, label: str, display: str) -> None:
        if self.logger is not None:
            self.logger.delayed(f"  [{color}]{label}[/{color}] [dim]{display}[/dim]")


# ---------------------------------------------------------------------------
# Internal helpers
# ---------------------------------------------------------------------------


def _write_file(path: Path, content: bytes, append: bool) -> None:
    """Synchronous helper: create parent dirs and write or append *content*."""
    path.parent.mkdir(parents=True, exist_ok=True)
    with path.open("ab" if append else "wb") as handle:
        handle.write(content)


def _display_path(path: Path) -> str:
    try:
        return str(path.resolve().relative_to(Path.cwd()))
    except ValueError:
        return str(path)
