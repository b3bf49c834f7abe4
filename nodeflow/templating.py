"""Sandboxed template rendering for user-authored node configuration.

Supported syntax::

    {{name}}            value of ``name`` from the context
    {{user.address.0}}  dotted lookup through mappings and lists
    {{{name}}}          same as ``{{name}}``
    {{json payload}}    ``payload`` dumped as indented JSON
    {{! note }}         comment, renders nothing (``{{!-- --}}`` may contain ``}}``)

Nothing else is evaluated. Unknown variables render as an empty string;
malformed templates raise :class:`TemplateCompileError`.
"""

from __future__ import annotations

import json
import re
from functools import lru_cache
from typing import Any, List, Mapping, Optional, Tuple, Union

from .errors import TemplateCompileError

_PATH_RE = re.compile(r"^[A-Za-z_$][\w$-]*(\.[\w$-]+)*$")
_MISSING = object()

# A compiled template is a sequence of literal strings and (helper, path) tags.
_Part = Union[str, Tuple[Optional[str], str]]


def _lookup(context: Mapping[str, Any], path: str) -> Any:
    value: Any = context
    for key in path.split("."):
        if isinstance(value, Mapping):
            value = value.get(key, _MISSING)
        elif isinstance(value, (list, tuple)) and key.isdigit():
            position = int(key)
            value = value[position] if position < len(value) else _MISSING
        else:
            return _MISSING
        if value is _MISSING:
            return _MISSING
    return value


def _to_text(value: Any) -> str:
    if value is _MISSING or value is None:
        return ""
    if isinstance(value, str):
        return value
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    if isinstance(value, (Mapping, list, tuple)):
        return json.dumps(value, ensure_ascii=False, default=str)
    return str(value)


def _to_json(value: Any) -> str:
    if value is _MISSING:
        return ""
    return json.dumps(value, indent=2, ensure_ascii=False, default=str)


class Template:
    """A parsed template ready to be rendered against many contexts."""

    def __init__(self, source: str, parts: List[_Part]) -> None:
        self.source = source
        self._parts = parts

    def render(self, context: Mapping[str, Any]) -> str:
        out: List[str] = []
        for part in self._parts:
            if isinstance(part, str):
                out.append(part)
                continue
            helper, path = part
            value = _lookup(context, path)
            out.append(_to_json(value) if helper == "json" else _to_text(value))
        return "".join(out)


def _parse_tag(expression: str, source: str) -> Tuple[Optional[str], str]:
    tokens = expression.split()
    if not tokens:
        raise TemplateCompileError(f"Empty expression in template: {source!r}")
    if tokens[0][0] in "#/^>!&":
        raise TemplateCompileError(
            f"Unsupported template tag '{{{{{expression}}}}}' in: {source!r}"
        )
    if len(tokens) == 1:
        helper, path = None, tokens[0]
    elif tokens[0] == "json":
        if len(tokens) != 2:
            raise TemplateCompileError(
                f"The json helper takes exactly one argument: '{{{{{expression}}}}}'"
            )
        helper, path = "json", tokens[1]
    else:
        raise TemplateCompileError(f"Unknown template helper '{tokens[0]}'")
    if path == "this":
        raise TemplateCompileError("'this' is not supported in templates")
    if not _PATH_RE.match(path):
        raise TemplateCompileError(f"Invalid variable reference '{path}'")
    return helper, path


def _skip_comment(source: str, start: int) -> int:
    """Return the position just past the comment opening at ``start``."""
    closer = "--}}" if source.startswith("{{!--", start) else "}}"
    end = source.find(closer, start + 3)
    if end == -1:
        raise TemplateCompileError(
            f"Unclosed comment at position {start} in template: {source!r}"
        )
    return end + len(closer)


def _parse(source: str) -> List[_Part]:
    parts: List[_Part] = []
    position = 0
    while True:
        start = source.find("{{", position)
        if start == -1:
            if position < len(source):
                parts.append(source[position:])
            return parts
        if start > position:
            parts.append(source[position:start])
        if source.startswith("{{!", start):
            position = _skip_comment(source, start)
            continue
        triple = source.startswith("{{{", start)
        opener, closer = ("{{{", "}}}") if triple else ("{{", "}}")
        end = source.find(closer, start + len(opener))
        if end == -1:
            raise TemplateCompileError(
                f"Unclosed '{opener}' at position {start} in template: {source!r}"
            )
        parts.append(_parse_tag(source[start + len(opener) : end], source))
        position = end + len(closer)


@lru_cache(maxsize=256)
def compile_template(source: str) -> Template:
    """Parse ``source`` into a :class:`Template`."""
    return Template(source, _parse(source))


class TemplateEngine:
    """Renders node configuration strings against an execution context."""

    def compile(self, source: str) -> Template:
        if not isinstance(source, str):
            raise TemplateCompileError(
                f"Templates must be strings, got {type(source).__name__}"
            )
        return compile_template(source)

    def render(self, source: str, context: Mapping[str, Any]) -> str:
        return self.compile(source).render(context)


__all__ = ["Template", "TemplateEngine", "compile_template"]
