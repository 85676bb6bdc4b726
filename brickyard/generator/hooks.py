"""Pre- and post-generation hooks.

Hooks are plain async callables supplied by the caller.  How a hook is
implemented (a script, a subprocess, an in-process function) is up to the
caller; the generator only awaits it.
"""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Optional

from .target import GeneratedFile

PreGenHook = Callable[[dict[str, Any]], Awaitable[Optional[Mapping[str, Any]]]]
PostGenHook = Callable[[list[GeneratedFile]], Awaitable[None]]


@dataclass
class GeneratorHooks:
    """Optional callables run around :meth:`Generator.generate`.

    ``pre_gen`` receives a copy of the vars and may return replacement vars
    (returning ``None`` keeps them).  ``post_gen`` receives the generated
    files once every file has been committed.
    """

    pre_gen: Optional[PreGenHook] = None
    post_gen: Optional[PostGenHook] = None

    async def run_pre_gen(self, vars: Mapping[str, Any]) -> dict[str, Any]:
        if self.pre_gen is None:
            return dict(vars)
        updated = await self.pre_gen(dict(vars))
        return dict(vars) if updated is None else dict(updated)

    async def run_post_gen(self, files: Sequence[GeneratedFile]) -> None:
        if self.post_gen is not None:
            await self.post_gen(list(files))
