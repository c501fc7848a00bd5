"""
Version comparison utilities for depgauge.

npm versions follow SemVer 2.0 and npm ranges use their own grammar
(``^``, ``~``, ``x``-ranges, hyphen ranges, ``||`` alternatives, and
prerelease opt-in rules). Both are handled by ``semantic_version``'s
:class:`~semantic_version.NpmSpec`; this module wraps it so that callers
never see parser exceptions.
"""

from __future__ import annotations

import re
from functools import lru_cache
from typing import Optional

from semantic_version import NpmSpec, Version

# ">= 1.2.3" is accepted by npm but not by NpmSpec
_OPERATOR_SPACE_RE = re.compile(r"(>=|<=|>|<|=|\^|~)\s+")


def parse_version(value: Optional[str]) -> Optional[Version]:
    """Parse an exact npm version string.

    A leading ``v`` or ``=`` is tolerated, as npm does.

    Returns:
        The parsed :class:`Version`, or ``None`` if ``value`` is not valid
        SemVer.

    Examples:
        >>> parse_version("v1.2.3")
        Version('1.2.3')
        >>> parse_version("latest") is None
        True
    """
    if not value:
        return None
    text = value.strip().lstrip("=v").strip()
    try:
        return Version(text)
    except ValueError:
        return None


@lru_cache(maxsize=4096)
def parse_range(value: Optional[str]) -> Optional[NpmSpec]:
    """Parse an npm range expression, or return ``None`` if it is not one.

    Git URLs, ``file:`` / ``npm:`` aliases and dist-tags are not ranges.
    An empty range means "any version", like in npm.
    """
    if value is None:
        return None
    text = value.strip()
    if not text:
        text = "*"
    text = _OPERATOR_SPACE_RE.sub(r"\1", text)
    try:
        return NpmSpec(text)
    except ValueError:
        return None


def satisfies(version: Optional[str], range_: Optional[str]) -> Optional[bool]:
    """Return whether ``version`` lies inside ``range_``.

    Returns:
        ``True``/``False``, or ``None`` when either side cannot be parsed.

    Examples:
        >>> satisfies("18.3.0", "^17.0.0")
        False
        >>> satisfies("4.2.0", "^4.1.0")
        True
        >>> satisfies("1.0.0", "github:user/repo") is None
        True
    """
    parsed = parse_version(version)
    spec = parse_range(range_)
    if parsed is None or spec is None:
        return None
    return parsed in spec


def compare_versions(left: Optional[str], right: Optional[str]) -> Optional[int]:
    """Three-way compare two versions (-1, 0, 1), or ``None`` if invalid."""
    a = parse_version(left)
    b = parse_version(right)
    if a is None or b is None:
        return None
    if a < b:
        return -1
    if a > b:
        return 1
    return 0


def major_of(version: Optional[str]) -> Optional[int]:
    """Return the major component of ``version`` (``None`` if invalid)."""
    parsed = parse_version(version)
    return parsed.major if parsed is not None else None


def get_update_type(current_version: Optional[str], target_version: Optional[str]) -> str:
    """Classify the jump from ``current_version`` to ``target_version``.

    Returns:
        ``"major"`` when the major component grows, ``"minor"`` when the
        minor component grows, ``"patch"`` otherwise (including when either
        version is not valid SemVer).

    Examples:
        >>> get_update_type("1.0.0", "2.0.0")
        'major'
        >>> get_update_type("1.2.3", "1.4.0")
        'minor'
        >>> get_update_type("1.2.3", "1.2.9")
        'patch'
    """
    current = parse_version(current_version)
    target = parse_version(target_version)

    if current is None or target is None:
        return "patch"

    if target.major > current.major:
        return "major"
    if target.minor > current.minor:
        return "minor"
    return "patch"
