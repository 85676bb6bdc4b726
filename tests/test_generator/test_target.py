"""Tests for DirectoryGeneratorTarget and conflict resolution.

Covers:
- created / identical outcomes (never prompt)
- overwrite / skip / append policies
- Interactive answers (once vs always) and re-prompting
- Missing prompter as a fatal configuration error
- OverwriteRule / FileConflictResolution mappings
- Delayed status lines through a logger
"""

from __future__ import annotations

from pathlib import Path
from unittest.mock import MagicMock

import pytest

from brickyard.errors import PromptUnavailableError
from brickyard.generator.target import (
    ConflictResolver,
    DirectoryGeneratorTarget,
    FileConflictResolution,
    GeneratedFile,
    GeneratedFileStatus,
    OverwriteRule,
)


pytestmark = pytest.mark.unit


@pytest.fixture
def existing(tmp_path: Path) -> Path:
    """A target directory holding ``a.txt`` and ``b.txt`` with ``old`` content."""
    root = tmp_path / "out"
    root.mkdir()
    (root / "a.txt").write_bytes(b"old")
    (root / "b.txt").write_bytes(b"old")
    return root


# ---------------------------------------------------------------------------
# Mappings
# ---------------------------------------------------------------------------


class TestOverwriteRule:
    @pytest.mark.parametrize(
        ("answer", "rule"),
        [
            ("Y", OverwriteRule.ALWAYS_OVERWRITE),
            ("y", OverwriteRule.OVERWRITE_ONCE),
            ("n", OverwriteRule.SKIP_ONCE),
            ("a", OverwriteRule.APPEND_ONCE),
            ("", OverwriteRule.OVERWRITE_ONCE),
            ("whatever", OverwriteRule.OVERWRITE_ONCE),
        ],
    )
    def test_from_answer(self, answer, rule):
        assert OverwriteRule.from_answer(answer) is rule

    def test_sticky(self):
        assert OverwriteRule.ALWAYS_SKIP.is_sticky
        assert not OverwriteRule.SKIP_ONCE.is_sticky

    def test_skips_and_appends(self):
        assert OverwriteRule.SKIP_ONCE.skips
        assert OverwriteRule.ALWAYS_APPEND.appends
        assert not OverwriteRule.OVERWRITE_ONCE.skips
        assert not OverwriteRule.OVERWRITE_ONCE.appends


class TestFileConflictResolution:
    def test_mapping(self):
        assert FileConflictResolution.OVERWRITE.to_overwrite_rule() is OverwriteRule.ALWAYS_OVERWRITE
        assert FileConflictResolution.SKIP.to_overwrite_rule() is OverwriteRule.ALWAYS_SKIP
        assert FileConflictResolution.APPEND.to_overwrite_rule() is OverwriteRule.ALWAYS_APPEND
        assert FileConflictResolution.PROMPT.to_overwrite_rule() is None

    def test_from_value(self):
        assert FileConflictResolution("skip") is FileConflictResolution.SKIP


class TestGeneratedFile:
    def test_constructors(self):
        assert GeneratedFile.created("p").status is GeneratedFileStatus.CREATED
        assert GeneratedFile.overwritten("p").status is GeneratedFileStatus.OVERWRITTEN
        assert GeneratedFile.appended("p").status is GeneratedFileStatus.APPENDED
        assert GeneratedFile.skipped("p").status is GeneratedFileStatus.SKIPPED
        assert GeneratedFile.identical("p").status is GeneratedFileStatus.IDENTICAL


# ---------------------------------------------------------------------------
# ConflictResolver
# ---------------------------------------------------------------------------


class TestConflictResolver:
    def test_first_rule_wins(self):
        resolver = ConflictResolver()
        resolver.offer(None)
        resolver.offer(OverwriteRule.ALWAYS_SKIP)
        resolver.offer(OverwriteRule.ALWAYS_OVERWRITE)
        assert resolver.current_rule is OverwriteRule.ALWAYS_SKIP

    def test_sticky_rule_does_not_prompt(self, make_prompter):
        prompter = make_prompter([])
        resolver = ConflictResolver(prompter)
        resolver.offer(OverwriteRule.ALWAYS_APPEND)
        assert resolver.resolve(Path("x.txt")) is OverwriteRule.ALWAYS_APPEND
        assert prompter.messages == []

    def test_prompt_message(self, make_prompter):
        prompter = make_prompter(["n"])
        resolver = ConflictResolver(prompter)
        assert resolver.resolve(Path("/tmp/out/x.txt")) is OverwriteRule.SKIP_ONCE
        assert prompter.messages == ["Overwrite x.txt? (Yyna)"]

    def test_no_prompter(self):
        with pytest.raises(PromptUnavailableError):
            ConflictResolver().resolve(Path("x.txt"))


# ---------------------------------------------------------------------------
# DirectoryGeneratorTarget
# ---------------------------------------------------------------------------


class TestCreated:
    def test_directory_created_on_init(self, tmp_path):
        DirectoryGeneratorTarget(tmp_path / "new" / "dir")
        assert (tmp_path / "new" / "dir").is_dir()

    async def test_creates_file_and_parents(self, tmp_path):
        target = DirectoryGeneratorTarget(tmp_path)
        result = await target.create_file("a/b/c.txt", b"hi")
        assert result.status is GeneratedFileStatus.CREATED
        assert result.path == str((tmp_path / "a" / "b" / "c.txt").resolve())
        assert (tmp_path / "a" / "b" / "c.txt").read_bytes() == b"hi"

    async def test_relative_directory_gives_absolute_paths(self, tmp_path, monkeypatch):
        monkeypatch.chdir(tmp_path)
        target = DirectoryGeneratorTarget("out")
        result = await target.create_file("a.txt", b"x")
        assert Path(result.path).is_absolute()
        assert Path(result.path) == (tmp_path / "out" / "a.txt").resolve()
        assert target.directory.is_absolute()


class TestIdentical:
    @pytest.mark.parametrize("rule", [None, *OverwriteRule])
    async def test_identical_regardless_of_rule(self, existing, rule):
        target = DirectoryGeneratorTarget(existing)
        result = await target.create_file("a.txt", b"old", overwrite_rule=rule)
        assert result.status is GeneratedFileStatus.IDENTICAL

    async def test_identical_never_prompts(self, existing):
        # No prompter: an identical file must not need one.
        target = DirectoryGeneratorTarget(existing)
        result = await target.create_file("a.txt", b"old")
        assert result.status is GeneratedFileStatus.IDENTICAL


class TestPolicies:
    async def test_overwrite(self, existing):
        target = DirectoryGeneratorTarget(existing)
        for name in ("a.txt", "b.txt"):
            result = await target.create_file(
                name, b"new", overwrite_rule=OverwriteRule.ALWAYS_OVERWRITE
            )
            assert result.status is GeneratedFileStatus.OVERWRITTEN
            assert (existing / name).read_bytes() == b"new"

    async def test_skip(self, existing):
        target = DirectoryGeneratorTarget(existing)
        for name in ("a.txt", "b.txt"):
            result = await target.create_file(name, b"new", overwrite_rule=OverwriteRule.ALWAYS_SKIP)
            assert result.status is GeneratedFileStatus.SKIPPED
            assert (existing / name).read_bytes() == b"old"

    async def test_append(self, existing):
        target = DirectoryGeneratorTarget(existing)
        result = await target.create_file("a.txt", b"+new", overwrite_rule=OverwriteRule.ALWAYS_APPEND)
        assert result.status is GeneratedFileStatus.APPENDED
        assert (existing / "a.txt").read_bytes() == b"old+new"

    async def test_first_rule_kept_for_run(self, existing):
        target = DirectoryGeneratorTarget(existing)
        await target.create_file("a.txt", b"new", overwrite_rule=OverwriteRule.ALWAYS_SKIP)
        result = await target.create_file("b.txt", b"new", overwrite_rule=OverwriteRule.ALWAYS_OVERWRITE)
        assert result.status is GeneratedFileStatus.SKIPPED


class TestPrompting:
    async def test_skip_once_then_reprompt(self, existing, make_prompter):
        prompter = make_prompter(["n", "y"])
        target = DirectoryGeneratorTarget(existing, prompter=prompter)

        first = await target.create_file("a.txt", b"new")
        second = await target.create_file("b.txt", b"new")

        assert first.status is GeneratedFileStatus.SKIPPED
        assert second.status is GeneratedFileStatus.OVERWRITTEN
        assert prompter.messages == ["Overwrite a.txt? (Yyna)", "Overwrite b.txt? (Yyna)"]
        assert (existing / "a.txt").read_bytes() == b"old"
        assert (existing / "b.txt").read_bytes() == b"new"

    async def test_always_overwrite_sticks(self, existing, make_prompter):
        prompter = make_prompter(["Y"])
        target = DirectoryGeneratorTarget(existing, prompter=prompter)

        first = await target.create_file("a.txt", b"new")
        second = await target.create_file("b.txt", b"new")

        assert first.status is GeneratedFileStatus.OVERWRITTEN
        assert second.status is GeneratedFileStatus.OVERWRITTEN
        assert len(prompter.messages) == 1

    async def test_append_once(self, existing, make_prompter):
        target = DirectoryGeneratorTarget(existing, prompter=make_prompter(["a"]))
        result = await target.create_file("a.txt", b"!")
        assert result.status is GeneratedFileStatus.APPENDED
        assert (existing / "a.txt").read_bytes() == b"old!"

    async def test_created_files_never_prompt(self, tmp_path, make_prompter):
        prompter = make_prompter([])
        target = DirectoryGeneratorTarget(tmp_path, prompter=prompter)
        await target.create_file("fresh.txt", b"x")
        assert prompter.messages == []

    async def test_missing_prompter_is_fatal(self, existing):
        target = DirectoryGeneratorTarget(existing)
        with pytest.raises(PromptUnavailableError):
            await target.create_file("a.txt", b"new")
        assert (existing / "a.txt").read_bytes() == b"old"


class TestLogging:
    async def test_status_lines_are_delayed(self, existing):
        logger = MagicMock()
        target = DirectoryGeneratorTarget(existing, logger=logger)

        await target.create_file("c.txt", b"x")
        await target.create_file("a.txt", b"old")
        await target.create_file("b.txt", b"new", overwrite_rule=OverwriteRule.ALWAYS_SKIP)

        lines = [call.args[0] for call in logger.delayed.call_args_list]
        assert "created" in lines[0]
        assert "identical" in lines[1]
        assert "skipped" in lines[2]
        logger.info.assert_not_called()

    async def test_conflict_announced_before_prompt(self, existing, make_prompter):
        logger = MagicMock()
        target = DirectoryGeneratorTarget(existing, logger=logger, prompter=make_prompter(["a"]))
        await target.create_file("a.txt", b"!")
        assert "conflict" in logger.info.call_args.args[0]
        assert "modified" in logger.delayed.call_args.args[0]
