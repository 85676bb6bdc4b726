"""Case conversion for template substitutions.

The renderer understands a closed set of transform names (``snakeCase``,
``pascalCase`` ...).  Each name is a ``CaseTransform`` member and maps to a
pure ``str -> str`` function; the mapping is resolved once when a template is
parsed.
"""

from __future__ import annotations

import re
from enum import Enum
from typing import Any, Callable


# ---------------------------------------------------------------------------
# Word splitting
# ---------------------------------------------------------------------------

# Runs of letters and digits in any script; underscores separate words.
_RUN_RE = re.compile(r"[^\W_]+")


def _kind(char: str) -> str:
    if char.isdigit():
        return "digit"
    return "upper" if char.isupper() else "lower"


def _split_run(run: str) -> list[str]:
    words: list[str] = []
    start = 0
    for i in range(1, len(run)):
        prev, cur = _kind(run[i - 1]), _kind(run[i])
        acronym_end = (
            prev == "upper"
            and cur == "upper"
            and i + 1 < len(run)
            and _kind(run[i + 1]) == "lower"
        )
        if (
            (prev == "digit") != (cur == "digit")
            or (prev == "lower" and cur == "upper")
            or acronym_end
        ):
            words.append(run[start:i])
            start = i
    words.append(run[start:])
    return words


def split_words(value: Any) -> list[str]:
    """Split *value* into words on separators and case boundaries.

    Letters outside ASCII count like any other; caseless scripts are treated
    as lower case.

    Examples::

        split_words("MyWidget")      -> ["My", "Widget"]
        split_words("my-cool_thing") -> ["my", "cool", "thing"]
        split_words("HTTPServer")    -> ["HTTP", "Server"]
        split_words("caféAuLait")    -> ["café", "Au", "Lait"]
    """
    return [word for run in _RUN_RE.findall(str(value)) for word in _split_run(run)]


def _lower_words(value: Any) -> list[str]:
    return [w.lower() for w in split_words(value)]


def _capitalize(word: str) -> str:
    return word[:1].upper() + word[1:].lower()


# ---------------------------------------------------------------------------
# Transforms
# ---------------------------------------------------------------------------


def camel_case(value: Any) -> str:
    words = _lower_words(value)
    if not words:
        return ""
    return words[0] + "".join(_capitalize(w) for w in words[1:])


def constant_case(value: Any) -> str:
    return "_".join(w.upper() for w in split_words(value))


def dot_case(value: Any) -> str:
    return ".".join(_lower_words(value))


def header_case(value: Any) -> str:
    return "-".join(_capitalize(w) for w in split_words(value))


def lower_case(value: Any) -> str:
    return str(value).lower()


def pascal_case(value: Any) -> str:
    return "".join(_capitalize(w) for w in split_words(value))


def param_case(value: Any) -> str:
    return "-".join(_lower_words(value))


def path_case(value: Any) -> str:
    return "/".join(_lower_words(value))


def sentence_case(value: Any) -> str:
    """``"MyWidget"`` -> ``"My widget"``."""
    words = _lower_words(value)
    if not words:
        return ""
    return " ".join([_capitalize(words[0]), *words[1:]])


def snake_case(value: Any) -> str:
    return "_".join(_lower_words(value))


def title_case(value: Any) -> str:
    return " ".join(_capitalize(w) for w in split_words(value))


def upper_case(value: Any) -> str:
    return str(value).upper()


class CaseTransform(str, Enum):
    """Transform names accepted by the template markup."""

    CAMEL = "camelCase"
    CONSTANT = "constantCase"
    DOT = "dotCase"
    HEADER = "headerCase"
    LOWER = "lowerCase"
    PASCAL = "pascalCase"
    PARAM = "paramCase"
    PATH = "pathCase"
    SENTENCE = "sentenceCase"
    SNAKE = "snakeCase"
    TITLE = "titleCase"
    UPPER = "upperCase"

    @classmethod
    def lookup(cls, name: str) -> CaseTransform | None:
        """Return the transform called *name*, or ``None``."""
        try:
            return cls(name.strip())
        except ValueError:
            return None

    @property
    def function(self) -> Callable[[Any], str]:
        return _TRANSFORMS[self]

    @property
    def filter_name(self) -> str:
        """Name under which the transform is registered as a Jinja2 filter."""
        return snake_case(self.value)

    def apply(self, value: Any) -> str:
        return _TRANSFORMS[self](value)


_TRANSFORMS: dict[CaseTransform, Callable[[Any], str]] = {
    CaseTransform.CAMEL: camel_case,
    CaseTransform.CONSTANT: constant_case,
    CaseTransform.DOT: dot_case,
    CaseTransform.HEADER: header_case,
    CaseTransform.LOWER: lower_case,
    CaseTransform.PASCAL: pascal_case,
    CaseTransform.PARAM: param_case,
    CaseTransform.PATH: path_case,
    CaseTransform.SENTENCE: sentence_case,
    CaseTransform.SNAKE: snake_case,
    CaseTransform.TITLE: title_case,
    CaseTransform.UPPER: upper_case,
}
