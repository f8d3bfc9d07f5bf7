"""Remote path templates.

A release source declares where artifacts live with a template such as::

    {{.Name}}/{{trimSuffix .Name "-release"}}-{{.Version}}-{{.StemcellOS}}-{{.StemcellVersion}}.tgz

The same template is used three ways: rendered for an exact spec, cut at the
first version dependent segment to get a directory worth listing, and turned
into a regular expression whose named groups capture the version and stemcell
version of the files found there.
"""
import json
import re
from dataclasses import dataclass
from typing import Any, Callable

from tilefetch.errors import TemplateEvaluationError

FIELDS: dict[str, str] = {
    "Name": "name",
    "Version": "version",
    "StemcellOS": "stemcell_os",
    "StemcellVersion": "stemcell_version",
    "GitHubRepository": "github_repository",
}

FUNCTIONS: dict[str, tuple[int, Callable[..., str]]] = {
    "trimSuffix": (2, lambda s, suffix: s.removesuffix(suffix)),
    "trimPrefix": (2, lambda s, prefix: s.removeprefix(prefix)),
}

VERSION_FIELDS = ("Version", "StemcellVersion")

SEMVER_PATTERN = r"\d+(?:\.\d+)*(?:-[0-9A-Za-z-]+(?:\.[0-9A-Za-z-]+)*)?"
STEMCELL_VERSION_PATTERN = r"\d+(?:\.\d+)*"

_ACTION = re.compile(r"\{\{(-\s)?\s*(.*?)\s*(\s-)?\}\}", re.DOTALL)
_TOKEN = re.compile(r'"(?:[^"\\]|\\.)*"|\S+')
_MARKER = "\x00"


@dataclass(frozen=True)
class _Text:
    value: str


@dataclass(frozen=True)
class _Field:
    name: str


@dataclass(frozen=True)
class _Literal:
    value: str


@dataclass(frozen=True)
class _Call:
    function: str
    args: tuple[Any, ...]


class PathTemplate:
    def __init__(self, text: str):
        self.text: str = text
        self._nodes: list[Any] = self._parse(text)

    def __repr__(self) -> str:
        return f"PathTemplate({self.text!r})"

    def render(self, spec: Any) -> str:
        return "".join(self._evaluate(node, spec) for node in self._nodes)

    def search_directory(self, spec: Any) -> str:
        """Directory prefix of the rendered path that does not depend on the version."""
        rendered = "".join(self._evaluate(node, spec, version_marker=True) for node in self._nodes)
        segments = rendered.split("/")
        prefix: list[str] = []
        for segment in segments[:-1]:
            if _MARKER in segment:
                break
            prefix.append(segment)
        return "/".join(prefix)

    def pattern(self, spec: Any) -> re.Pattern[str]:
        seen: set[str] = set()
        parts: list[str] = []
        for node in self._nodes:
            if isinstance(node, _Field) and node.name in VERSION_FIELDS:
                group = FIELDS[node.name]
                if group in seen:
                    parts.append(f"(?P={group})")
                elif node.name == "Version":
                    parts.append(f"v?(?P<{group}>{SEMVER_PATTERN})")
                else:
                    parts.append(f"(?P<{group}>{STEMCELL_VERSION_PATTERN})")
                seen.add(group)
                continue
            if isinstance(node, _Call) and any(isinstance(a, _Field) and a.name in VERSION_FIELDS for a in node.args):
                raise TemplateEvaluationError(
                    f"unable to build a search pattern from path_template {self.text!r}: "
                    f"{node.function} may not be applied to a version field"
                )
            parts.append(re.escape(self._evaluate(node, spec)))
        return re.compile("".join(parts))

    def _evaluate(self, node: Any, spec: Any, version_marker: bool = False) -> str:
        if isinstance(node, (_Text, _Literal)):
            return node.value
        if isinstance(node, _Field):
            if version_marker and node.name == "Version":
                return _MARKER
            if node.name not in FIELDS:
                raise TemplateEvaluationError(
                    f"unable to evaluate path_template {self.text!r}: can't evaluate field {node.name}"
                )
            value = getattr(spec, FIELDS[node.name], None)
            return "" if value is None else str(value)
        _, function = FUNCTIONS[node.function]
        return function(*(self._evaluate(a, spec, version_marker) for a in node.args))

    def _parse(self, text: str) -> list[Any]:
        nodes: list[Any] = []
        position = 0
        pending_trim = False
        for match in _ACTION.finditer(text):
            literal = text[position:match.start()]
            if pending_trim:
                literal = literal.lstrip()
            if match.group(1):
                literal = literal.rstrip()
            self._append_text(nodes, literal)
            nodes.append(self._parse_action(match.group(2)))
            pending_trim = bool(match.group(3))
            position = match.end()
        tail = text[position:]
        if pending_trim:
            tail = tail.lstrip()
        self._append_text(nodes, tail)
        return nodes

    def _append_text(self, nodes: list[Any], literal: str) -> None:
        if "{{" in literal:
            raise TemplateEvaluationError(f"failed to parse path_template {self.text!r}: unclosed action")
        if literal:
            nodes.append(_Text(literal))

    def _parse_action(self, action: str) -> Any:
        tokens = _TOKEN.findall(action)
        if not tokens:
            raise TemplateEvaluationError(f"failed to parse path_template {self.text!r}: missing value for command")
        if len(tokens) == 1:
            return self._parse_argument(tokens[0])
        function, *args = tokens
        if function not in FUNCTIONS:
            raise TemplateEvaluationError(
                f'failed to parse path_template {self.text!r}: function "{function}" not defined'
            )
        arity, _ = FUNCTIONS[function]
        if len(args) != arity:
            raise TemplateEvaluationError(
                f"failed to parse path_template {self.text!r}: wrong number of args for {function}: "
                f"want {arity} got {len(args)}"
            )
        return _Call(function, tuple(self._parse_argument(a) for a in args))

    def _parse_argument(self, token: str) -> Any:
        if token.startswith(".") and token[1:].isidentifier():
            return _Field(token[1:])
        if token.startswith('"'):
            try:
                return _Literal(json.loads(token))
            except json.JSONDecodeError as e:
                raise TemplateEvaluationError(f"failed to parse path_template {self.text!r}: {e}") from e
        raise TemplateEvaluationError(f"failed to parse path_template {self.text!r}: unexpected {token!r}")
