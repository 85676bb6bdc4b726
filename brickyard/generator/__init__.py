"""Brickyard generator -- renders brick templates onto a target directory.

A brick is a set of template files whose paths and contents use a small
mustache-style markup (variables, loops over list bindings, partials and
case transforms).  The generator expands every template against a map of
variables and commits the results, resolving conflicts with existing files.

Quick usage::

    from brickyard.generator import (
        DirectoryGeneratorTarget,
        FileConflictResolution,
        Generator,
    )

    generator = await Generator.from_directory("bricks/widget")
    target = DirectoryGeneratorTarget("/tmp/output")
    files = await generator.generate(
        target,
        vars={"name": "MyWidget", "models": ["user", "order"]},
        file_conflict_resolution=FileConflictResolution.SKIP,
    )
"""

from .casing import CaseTransform
from .files import FileContents, TemplateFile
from .generator import BrickYaml, Generator, load_brick_yaml
from .hooks import GeneratorHooks
from .target import (
    ConflictResolver,
    DirectoryGeneratorTarget,
    FileConflictResolution,
    GeneratedFile,
    GeneratedFileStatus,
    GeneratorTarget,
    OverwriteRule,
)
from .templates import TemplateRenderer

__all__ = [
    "BrickYaml",
    "CaseTransform",
    "ConflictResolver",
    "DirectoryGeneratorTarget",
    "FileConflictResolution",
    "FileContents",
    "GeneratedFile",
    "GeneratedFileStatus",
    "Generator",
    "GeneratorHooks",
    "GeneratorTarget",
    "OverwriteRule",
    "TemplateFile",
    "TemplateRenderer",
    "load_brick_yaml",
]
