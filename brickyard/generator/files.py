"""Template files and path expansion.

A ``TemplateFile`` path may itself contain loop sections, e.g.
``components/{{#models}}{{{.}}}/model.dart{{/models}}``.  Expanding such a
file produces one output per combination of the list-valued bindings.
"""

from __future__ import annotations

import itertools
import re
from collections.abc import Iterator, Mapping, Sequence
from dataclasses import dataclass
from typing import Any

from .casing import CaseTransform
from .templates import TemplateRenderer, default_renderer


_LOOP_RE = re.compile(r"\{\{#.*?\}\}.*?\{\{\{.*?\}\}\}.*?\{\{/.*?\}\}")
_LOOP_KEY_RE = re.compile(r"\{\{#(.*?)\}\}")
_LOOP_VALUE_REPLACE_RE = re.compile(r"\{\{\{.*?\}\}\}")


def _loop_re(key: str) -> re.Pattern[str]:
    name = re.escape(key)
    return re.compile(
        rf"\{{\{{#\s*{name}\s*\}}\}}"
        rf"(?P<inner>.*?\{{\{{\{{(?P<value>.*?)\}}\}}\}}.*?)"
        rf"\{{\{{/\s*{name}\s*\}}\}}"
    )


# ---------------------------------------------------------------------------
# Value types
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class FileContents:
    """A rendered file: its path and bytes."""

    path: str
    content: bytes


@dataclass(frozen=True)
class TemplateFile:
    """A file in a brick.  Both ``path`` and ``content`` may contain markup."""

    path: str
    content: bytes

    @classmethod
    def from_text(cls, path: str, text: str) -> TemplateFile:
        return cls(path, text.encode("utf-8"))

    # -- Expansion ---------------------------------------------------------

    def run_substitution(
        self,
        bindings: Mapping[str, Any],
        partials: Mapping[str, bytes],
        renderer: TemplateRenderer | None = None,
    ) -> list[FileContents]:
        """Render the path and content of this file against *bindings*.

        Returns the distinct ``FileContents`` produced, in the order they were
        first produced.  A path without loop sections yields exactly one
        entry; a path with loop sections yields one entry per combination of
        every list-valued binding.
        """
        renderer = renderer or default_renderer
        file_path = self.path.replace("\\", "/")

        if not _LOOP_RE.search(file_path):
            return [
                FileContents(
                    renderer.render_string(file_path, bindings),
                    renderer.render(self.content, bindings, partials),
                )
            ]

        file_path = rewrite_path_loops(file_path, bindings)
        keys = [key for key, value in bindings.items() if isinstance(value, list)]
        results: dict[FileContents, None] = {}
        for permutation in permutations([bindings[key] for key in keys]):
            overlay = {**bindings, **dict(zip(keys, permutation))}
            results[
                FileContents(
                    renderer.render_string(file_path, overlay),
                    renderer.render(self.content, overlay, partials),
                )
            ] = None
        return list(results)


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def rewrite_path_loops(path: str, bindings: Mapping[str, Any]) -> str:
    """Turn loop sections over list bindings into plain substitutions.

    ``a/{{#models}}{{{.}}}/b{{/models}}`` becomes ``a/{{models}}/b`` and
    ``{{#models}}{{{name}}}.dart{{/models}}`` becomes ``{{models.name}}.dart``.
    Sections over transform names or non-list bindings are left alone.
    """
    for raw_key in _LOOP_KEY_RE.findall(path):
        key = raw_key.strip()
        if CaseTransform.lookup(key) is not None:
            continue
        if not isinstance(bindings.get(key), list):
            continue
        match = _loop_re(key).search(path)
        if match is None:
            continue
        value = match.group("value").strip()
        target = f"{{{{{key}}}}}" if value == "." else f"{{{{{key}.{value}}}}}"
        inner = _LOOP_VALUE_REPLACE_RE.sub(lambda _: target, match.group("inner"), count=1)
        path = path[: match.start()] + inner + path[match.end() :]
    return path


def permutations(lists: Sequence[Sequence[Any]]) -> Iterator[tuple[Any, ...]]:
    """Yield every combination picking one element from each of *lists*.

    The product is generated iteratively, so the number of lists does not
    affect stack depth.  Any empty list yields no combinations; no lists at
    all yields a single empty combination.
    """
    return itertools.product(*lists)
