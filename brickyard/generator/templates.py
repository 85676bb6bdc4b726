"""Template rendering for brick files.

Brick templates use a small mustache-flavoured markup:

- ``{{name}}`` / ``{{name.field}}`` substitute a binding (missing -> empty).
- ``{{snakeCase name}}`` substitutes through a case transform.
- ``{{#items}}-{{{.}}}-{{/items}}`` repeats its body for every element of a
  list binding; ``{{{field}}}`` picks ``element[field]``.  A section whose
  binding is not a list renders nothing.
- ``{{#snakeCase}}...{{/snakeCase}}`` transforms the rendered body.
- ``{{> name}}`` includes the partial stored as ``{{~ name }}``.
- ``{{~ anything }}`` is a comment.

The markup is parsed into a small node tree which is then compiled to a
Jinja2 template.  Literal text is handed to Jinja2 as data, never as source,
so brick files that themselves contain Jinja2 (or any other ``{%``/``{#``
syntax) come out untouched.

Rendering is best effort: content that cannot be decoded, parsed or rendered
is returned exactly as it came in.
"""

from __future__ import annotations

import re
from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any, Union

from jinja2 import Environment, StrictUndefined

from brickyard.errors import TemplateSyntaxError
from .casing import CaseTransform


# ---------------------------------------------------------------------------
# Markup patterns
# ---------------------------------------------------------------------------

DELIMITER_RE = re.compile(rb"\{\{([^;,=]*?)\}\}")
PARTIAL_RE = re.compile(r"\{\{~\s(.+)\s\}\}")
FILE_RE = re.compile(r"\{\{%\s?([a-zA-Z]+)\s?%\}\}")

_TOKEN_RE = re.compile(r"\{\{\{([^{}\n]*?)\}\}\}|\{\{([^{}\n]*?)\}\}")
_NAME_RE = re.compile(r"^(?:\.|[A-Za-z_][\w-]*(?:\.[\w-]+)*)$")

_MAX_PARTIAL_DEPTH = 16


# ---------------------------------------------------------------------------
# Nodes
# ---------------------------------------------------------------------------


@dataclass
class Text:
    value: str


@dataclass
class Variable:
    path: str
    transform: CaseTransform | None = None
    triple: bool = False


@dataclass
class Section:
    """A ``{{#name}}...{{/name}}`` block.

    With ``transform`` set the block is a lambda section over its rendered
    body; otherwise it loops over the list bound to ``name``.
    """

    name: str
    transform: CaseTransform | None = None
    children: list[Node] = field(default_factory=list)

    @property
    def is_loop(self) -> bool:
        return self.transform is None


Node = Union[Text, Variable, Section]


# ---------------------------------------------------------------------------
# Parsing
# ---------------------------------------------------------------------------


def partial_name(path: str) -> str | None:
    """Return the include name of a partial path (``{{~ header.md }}`` -> ``header.md``)."""
    match = PARTIAL_RE.search(path)
    return match.group(1).strip() if match else None


class _Parser:
    """Turns markup into a node list, inlining partials as it goes."""

    def __init__(self, partials: Mapping[str, bytes]) -> None:
        self.partials: dict[str, bytes] = {}
        for key, value in partials.items():
            name = partial_name(key)
            self.partials[name if name is not None else key] = value

    def parse(self, source: str, active_partials: tuple[str, ...] = ()) -> list[Node]:
        root: list[Node] = []
        stack: list[Section] = []

        def current() -> list[Node]:
            return stack[-1].children if stack else root

        position = 0
        for match in _TOKEN_RE.finditer(source):
            if match.start() > position:
                current().append(Text(source[position : match.start()]))
            position = match.end()

            if match.group(1) is not None:
                inner = match.group(1).strip()
                if _NAME_RE.match(inner):
                    current().append(Variable(inner, triple=True))
                else:
                    current().append(Text(match.group(0)))
                continue

            inner = match.group(2).strip()
            if inner.startswith("~"):
                continue
            if inner.startswith(">"):
                current().extend(self._include(inner[1:].strip(), active_partials))
            elif inner.startswith("#"):
                name = inner[1:].strip()
                if name == "." or not _NAME_RE.match(name):
                    raise TemplateSyntaxError(f"Invalid section name {name!r}")
                transform = CaseTransform.lookup(name)
                if transform is None and any(s.is_loop for s in stack):
                    raise TemplateSyntaxError(
                        f"Nested loop section {{{{#{name}}}}} is not supported"
                    )
                section = Section(name, transform)
                current().append(section)
                stack.append(section)
            elif inner.startswith("/"):
                name = inner[1:].strip()
                if not stack or stack[-1].name != name:
                    raise TemplateSyntaxError(f"Unexpected closing tag {{{{/{name}}}}}")
                stack.pop()
            else:
                current().append(self._variable(inner) or Text(match.group(0)))

        if position < len(source):
            current().append(Text(source[position:]))
        if stack:
            raise TemplateSyntaxError(f"Unclosed section {{{{#{stack[-1].name}}}}}")
        return root

    @staticmethod
    def _variable(inner: str) -> Variable | None:
        parts = inner.split()
        if len(parts) == 1 and _NAME_RE.match(parts[0]):
            return Variable(parts[0])
        if len(parts) == 2 and _NAME_RE.match(parts[1]):
            transform = CaseTransform.lookup(parts[0])
            if transform is not None:
                return Variable(parts[1], transform)
        return None

    def _include(self, name: str, active: tuple[str, ...]) -> list[Node]:
        if name in active or len(active) >= _MAX_PARTIAL_DEPTH:
            raise TemplateSyntaxError(f"Recursive partial {name!r}")
        content = self.partials.get(name)
        if content is None:
            return []
        return self.parse(content.decode("utf-8"), (*active, name))


# ---------------------------------------------------------------------------
# Compilation to Jinja2
# ---------------------------------------------------------------------------


class _Compiler:
    def __init__(self) -> None:
        self.texts: list[str] = []

    def compile(self, nodes: list[Node], depth: int = 0) -> str:
        return "".join(self._node(node, depth) for node in nodes)

    def _node(self, node: Node, depth: int) -> str:
        if isinstance(node, Text):
            self.texts.append(node.value)
            return f"{{{{ _text[{len(self.texts) - 1}] }}}}"
        if isinstance(node, Variable):
            expr = self._lookup(node, depth)
            if node.transform is not None:
                expr = f"{expr} | {node.transform.filter_name}"
            return f"{{{{ {expr} }}}}"
        body = self.compile(node.children, depth + 1 if node.is_loop else depth)
        if node.transform is not None:
            name = node.transform.filter_name
            return f"{{% filter {name} %}}{body}{{% endfilter %}}"
        items = self._scopes(depth)
        return (
            f"{{% for _item{depth} in _iterate(_lookup(_vars, {node.name!r}{items})) %}}"
            f"{body}{{% endfor %}}"
        )

    def _lookup(self, node: Variable, depth: int) -> str:
        if depth and (node.triple or node.path == "."):
            item = f"_item{depth - 1}"
            return item if node.path == "." else f"_field({item}, {node.path!r})"
        return f"_lookup(_vars, {node.path!r}{self._scopes(depth)})"

    @staticmethod
    def _scopes(depth: int) -> str:
        return "".join(f", _item{i}" for i in range(depth))


# ---------------------------------------------------------------------------
# Jinja2 helpers
# ---------------------------------------------------------------------------


def _stringify(value: Any) -> Any:
    if value is None:
        return ""
    if isinstance(value, bool):
        return "true" if value else "false"
    return value


def _field(value: Any, path: str) -> Any:
    for part in path.split("."):
        if not isinstance(value, Mapping):
            return None
        value = value.get(part)
    return value


def _lookup(bindings: Mapping[str, Any], path: str, *scopes: Any) -> Any:
    """Resolve a dotted *path*, innermost loop element first."""
    if path == ".":
        return None
    head, _, rest = path.partition(".")
    for scope in reversed(scopes):
        if isinstance(scope, Mapping) and head in scope:
            value = scope[head]
            break
    else:
        value = bindings.get(head)
    return _field(value, rest) if rest else value


def _iterate(value: Any) -> list[Any]:
    return value if isinstance(value, list) else []


def _make_filter(transform: CaseTransform):
    def _filter(value: Any) -> str:
        return transform.apply(_stringify(value))

    return _filter


# ---------------------------------------------------------------------------
# TemplateRenderer
# ---------------------------------------------------------------------------


class TemplateRenderer:
    """Renders brick markup against a binding map and a set of partials.

    The renderer is stateless apart from its Jinja2 environment, so one
    instance can be shared freely between threads.
    """

    def __init__(self) -> None:
        self.env = Environment(
            autoescape=False,
            keep_trailing_newline=True,
            undefined=StrictUndefined,
            finalize=_stringify,
        )
        self.env.globals.update(
            _lookup=_lookup,
            _field=_field,
            _iterate=_iterate,
        )
        for transform in CaseTransform:
            self.env.filters[transform.filter_name] = _make_filter(transform)

    # -- Rendering ---------------------------------------------------------

    def render(
        self,
        content: bytes,
        bindings: Mapping[str, Any],
        partials: Mapping[str, bytes] | None = None,
    ) -> bytes:
        """Render template *content* and return the rendered bytes.

        Content without any ``{{...}}`` delimiter is returned as-is (the
        same object).  Any failure returns *content* unchanged.
        """
        if not DELIMITER_RE.search(content):
            return content
        try:
            decoded = content.decode("utf-8")
            return self._render(decoded, bindings, partials or {}).encode("utf-8")
        except Exception:
            return content

    def render_string(
        self,
        template_string: str,
        bindings: Mapping[str, Any],
        partials: Mapping[str, bytes] | None = None,
    ) -> str:
        """Render an inline template string, e.g. a file path.

        Follows the same best-effort contract as :meth:`render`.
        """
        try:
            return self._render(template_string, bindings, partials or {})
        except Exception:
            return template_string

    def compile(
        self, source: str, partials: Mapping[str, bytes] | None = None
    ) -> tuple[str, list[str]]:
        """Return the Jinja2 source and literal table for *source*.

        Raises:
            TemplateSyntaxError: If the markup is malformed.
        """
        nodes = _Parser(partials or {}).parse(source)
        compiler = _Compiler()
        return compiler.compile(nodes), compiler.texts

    # -- Internal ----------------------------------------------------------

    def _render(
        self,
        source: str,
        bindings: Mapping[str, Any],
        partials: Mapping[str, bytes],
    ) -> str:
        jinja_source, texts = self.compile(source, partials)
        template = self.env.from_string(jinja_source)
        return template.render(_vars=bindings, _text=texts)


default_renderer = TemplateRenderer()
