import re

from semantic_version import NpmSpec, Version

ANY_VERSION = ">0"

# one comparison operand, e.g. ">0", "^0.2", "~1.2.3", "1.2.x"
_OPERAND = re.compile(
    r"(?P<op>\^|~|>=|<=|>|<|=)?\s*v?(?P<version>[0-9xX*]+(?:\.[0-9xX*]+){0,2})(?P<pre>-[0-9A-Za-z.-]+)?"
)
_WILDCARDS = {"x", "X", "*"}


def parse_version(raw: str) -> Version:
    """Parse a release version leniently ("v1.2", "235" and "1.2.3" are all accepted)."""
    if raw is None or not raw.strip():
        raise ValueError("version is empty")
    return Version.coerce(raw.strip().removeprefix("v"))


def try_parse_version(raw: str) -> Version | None:
    try:
        return parse_version(raw)
    except ValueError:
        return None


def _pad(version: str) -> str:
    parts = version.split(".")
    return ".".join(parts + ["0"] * (3 - len(parts)))


def _rewrite_operand(match: re.Match) -> str:
    op, version, pre = match.group("op") or "", match.group("version"), match.group("pre") or ""
    parts = version.split(".")
    if any(p in _WILDCARDS for p in parts):
        return f"{op}{version}{pre}"
    padded = _pad(version) + pre
    match op:
        case ">" | ">=" | "<":
            # a partial operand compares as zero padded, so ">0" admits 0.0.1
            return f"{op}{padded}"
        case "^":
            # caret keeps the major version, 0.x included
            return f">={padded} <{int(parts[0]) + 1}.0.0"
        case "~" if padded == "0.0.0" and len(parts) == 3:
            return ">=0.0.0"
        case _:
            return f"{op}{version}{pre}"


def _to_npm(text: str) -> str:
    groups = []
    for group in text.split("||"):
        # comma separated clauses are an AND, like a space in npm ranges
        group = " ".join(part.strip() for part in group.split(","))
        groups.append(" ".join(_OPERAND.sub(_rewrite_operand, group).split()))
    return " || ".join(groups)


def parse_constraint(raw: str | None) -> NpmSpec:
    """Parse a version range with the semantics of Masterminds semver v1.

    The range is translated into an npm range: partial operands of ">", ">="
    and "<" are zero padded and "^" spans the whole major version, including
    0.x. "<=" with a partial operand keeps admitting patches of that minor.
    """
    text = (raw or "").strip() or ANY_VERSION
    try:
        return NpmSpec(_to_npm(text))
    except ValueError as e:
        raise ValueError(f"expected version to be a constraint: {raw!r}: {e}") from e


def is_exact_version(raw: str) -> bool:
    try:
        Version(raw.strip().removeprefix("v"))
        return True
    except ValueError:
        return False


def satisfies(version: str, constraint: NpmSpec) -> bool:
    parsed = try_parse_version(version)
    return parsed is not None and constraint.match(parsed)
