"""
depgauge version information.

This module provides a single source of truth for the package version.
It follows Semantic Versioning: https://semver.org/

Version format:
    MAJOR.MINOR.PATCH[-PRERELEASE]
"""

from __future__ import annotations

import re
from typing import Dict, Optional, Union

# ---------------------------------------------------------------------------
# Main version (single source of truth)
# ---------------------------------------------------------------------------

__version__ = "0.3.0"


# ---------------------------------------------------------------------------
# Structured version metadata
# ---------------------------------------------------------------------------


def _parse_version(version: str) -> Dict[str, Union[int, Optional[str], bool]]:
    """Break a semantic version into its components.

    Raises:
        ValueError: If ``version`` is not ``MAJOR.MINOR.PATCH[-PRE]``.
    """
    pattern = r"^(\d+)\.(\d+)\.(\d+)(?:[.-]([a-zA-Z0-9]+))?$"
    match = re.match(pattern, version)

    if not match:
        raise ValueError(f"Invalid version string: {version}")

    major, minor, patch, pre = match.groups()

    return {
        "major": int(major),
        "minor": int(minor),
        "patch": int(patch),
        "prerelease": pre,
        "is_dev": pre is not None and pre.startswith("dev"),
    }


VERSION_INFO = _parse_version(__version__)

#: Human-readable version (for CLI)
VERSION_STRING = f"depgauge {__version__}"
