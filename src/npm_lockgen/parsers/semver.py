"""npm range checking built atop packaging.version.

Used only to flag installed packages that do not satisfy the range their
requirer declares. Supported expressions:
- exact and partial versions (e.g., "1.2.3", "1.2", "1", "1.x", "*")
- caret ranges ^x.y.z, including the 0.x special cases
- tilde ranges ~x.y.z
- comparator sets split by spaces, e.g., ">=1.0.0 <2.0.0"
- hyphen ranges "1.0.0 - 2.0.0"
- alternatives joined with "||"

Anything else (dist-tags, URLs, ``file:``/``npm:``/``workspace:`` specifiers)
yields None, meaning "cannot tell".
"""

from __future__ import annotations

import re

from packaging.version import InvalidVersion, Version

_PARTIAL = re.compile(
    r"^v?(?P<major>\d+|[xX*])(?:\.(?P<minor>\d+|[xX*]))?(?:\.(?P<patch>\d+|[xX*]))?"
    r"(?:-(?P<pre>[0-9A-Za-z.-]+))?(?:\+[0-9A-Za-z.-]+)?$"
)
_OPS = (">=", "<=", ">", "<", "=")

Comparator = tuple[str, Version]


class _Unsupported(ValueError):
    pass


def _parse_version(v: str) -> Version:
    core = v.split("+", 1)[0].lstrip("v=")
    if re.search(r"-\d+(\.|$)", core):
        # Numeric prerelease tags read as post-releases under PEP 440.
        raise _Unsupported(v)
    return Version(core)


def _num(part: str | None) -> int | None:
    if part is None or part in {"x", "X", "*"}:
        return None
    return int(part)


def _partial(text: str) -> tuple[int | None, int | None, int | None, str | None]:
    match = _PARTIAL.match(text)
    if match is None:
        raise _Unsupported(text)
    major = _num(match.group("major"))
    minor = _num(match.group("minor")) if major is not None else None
    patch = _num(match.group("patch")) if minor is not None else None
    return major, minor, patch, match.group("pre")


def _v(major: int, minor: int = 0, patch: int = 0, pre: str | None = None) -> Version:
    return _parse_version(f"{major}.{minor}.{patch}" + (f"-{pre}" if pre else ""))


def _caret(text: str) -> list[Comparator]:
    major, minor, patch, pre = _partial(text)
    if major is None:
        return []
    lower = _v(major, minor or 0, patch or 0, pre)
    if major > 0 or minor is None:
        upper = _v(major + 1)
    elif minor > 0 or patch is None:
        upper = _v(0, minor + 1)
    else:
        upper = _v(0, 0, patch + 1)
    return [(">=", lower), ("<", upper)]


def _tilde(text: str) -> list[Comparator]:
    major, minor, patch, pre = _partial(text)
    if major is None:
        return []
    lower = _v(major, minor or 0, patch or 0, pre)
    upper = _v(major + 1) if minor is None else _v(major, minor + 1)
    return [(">=", lower), ("<", upper)]


def _primitive(op: str, text: str) -> list[Comparator]:
    major, minor, patch, pre = _partial(text)
    if major is None:
        if op in {">", "<"}:
            raise _Unsupported(f"{op}{text}")
        return []
    if patch is not None:
        return [(op, _v(major, minor or 0, patch, pre))]

    # Partial versions expand to the range they cover.
    lower = _v(major, minor or 0)
    upper = _v(major + 1) if minor is None else _v(major, minor + 1)
    if op == "=":
        return [(">=", lower), ("<", upper)]
    if op == ">":
        return [(">=", upper)]
    if op == "<=":
        return [("<", upper)]
    if op == "<":
        return [("<", lower)]
    return [(">=", lower)]


def _comparator(token: str) -> list[Comparator]:
    if token.startswith("^"):
        return _caret(token[1:])
    if token.startswith("~"):
        return _tilde(token[1:].lstrip(">"))
    for op in _OPS:
        if token.startswith(op):
            return _primitive(op, token[len(op) :].strip())
    return _primitive("=", token)


def _hyphen(low: str, high: str) -> list[Comparator]:
    lower = _primitive(">=", low)
    major, minor, patch, pre = _partial(high)
    if major is None:
        return lower
    upper = [("<=", _v(major, minor or 0, patch, pre))] if patch is not None else _primitive("<=", high)
    return lower + upper


def _comparator_set(expr: str) -> list[Comparator]:
    expr = re.sub(r"(>=|<=|>|<|=|\^|~)\s+", r"\1", expr.strip())
    if " - " in expr:
        low, high = expr.split(" - ", 1)
        return _hyphen(low.strip(), high.strip())
    comparators: list[Comparator] = []
    for token in expr.split():
        comparators.extend(_comparator(token))
    return comparators


def _test(v: Version, comparators: list[Comparator]) -> bool:
    for op, bound in comparators:
        if op == ">=" and not v >= bound:
            return False
        if op == ">" and not v > bound:
            return False
        if op == "<=" and not v <= bound:
            return False
        if op == "<" and not v < bound:
            return False
        if op == "=" and not v == bound:
            return False

    if v.is_prerelease:
        # Prereleases only match when a comparator targets the same release.
        return any(bound.is_prerelease and bound.release == v.release for _, bound in comparators)
    return True


def satisfies(installed: str, expr: str) -> bool | None:
    """Return whether ``installed`` satisfies npm range ``expr``.

    None means either side is outside what this module understands.
    """
    if ":" in expr or "/" in expr:
        return None
    try:
        v = _parse_version(installed)
        alternatives = [_comparator_set(part) for part in expr.split("||")]
    except (InvalidVersion, _Unsupported):
        return None
    return any(_test(v, comparators) for comparators in alternatives)
