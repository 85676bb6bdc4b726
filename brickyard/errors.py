"""Exceptions raised by Brickyard."""

from __future__ import annotations


class ScaffoldError(Exception):
    """Base class for every error Brickyard raises on purpose."""


class TemplateSyntaxError(ScaffoldError):
    """Raised while parsing template markup.

    Never escapes :meth:`TemplateRenderer.render`; a template that fails to
    parse is emitted unchanged.
    """


class FetchError(ScaffoldError):
    """Raised when an external file referenced by ``{{% key %}}`` cannot be read."""

    def __init__(self, source: str, message: str) -> None:
        self.source = source
        super().__init__(f"Unable to fetch {source!r}: {message}")


class PromptUnavailableError(ScaffoldError):
    """Raised when a file conflict needs an answer but nobody can be asked.

    Pass ``FileConflictResolution.OVERWRITE``, ``SKIP`` or ``APPEND`` when
    generating without an interactive prompter.
    """

    def __init__(self, path: str) -> None:
        self.path = path
        super().__init__(
            f"File conflict at {path} requires a prompt but no prompter is "
            "configured; choose a non-interactive file conflict resolution."
        )


class BrickLoadError(ScaffoldError):
    """Raised when a brick directory or its ``brick.yaml`` is invalid."""
