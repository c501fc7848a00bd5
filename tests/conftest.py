from __future__ import annotations

import json
from pathlib import Path
from typing import Any, Callable, Dict, Optional

import pytest


def lock_entry(
    version: str,
    dependencies: Optional[Dict[str, str]] = None,
    peer_dependencies: Optional[Dict[str, str]] = None,
) -> Dict[str, Any]:
    """Build one ``packages`` entry of a package-lock.json."""
    entry: Dict[str, Any] = {"version": version}
    if dependencies:
        entry["dependencies"] = dependencies
    if peer_dependencies:
        entry["peerDependencies"] = peer_dependencies
    return entry


def build_lockfile(packages: Dict[str, Dict[str, Any]], name: str = "demo") -> Dict[str, Any]:
    """Wrap ``{install_path: entry}`` in a lockfileVersion 3 document."""
    return {
        "name": name,
        "version": "1.0.0",
        "lockfileVersion": 3,
        "requires": True,
        "packages": {"": {"name": name, "version": "1.0.0"}, **packages},
    }


@pytest.fixture
def write_project(tmp_path: Path) -> Callable[..., Path]:
    """Factory writing package.json and package-lock.json into ``tmp_path``.

    Returns:
        Callable taking ``dependencies``, ``packages`` and optional
        ``dev_dependencies``/``scripts``; returns the project directory.
    """

    def _write(
        dependencies: Optional[Dict[str, str]] = None,
        packages: Optional[Dict[str, Dict[str, Any]]] = None,
        *,
        dev_dependencies: Optional[Dict[str, str]] = None,
        scripts: Optional[Dict[str, str]] = None,
        lockfile: bool = True,
    ) -> Path:
        manifest: Dict[str, Any] = {"name": "demo", "version": "1.0.0"}
        if dependencies is not None:
            manifest["dependencies"] = dependencies
        if dev_dependencies is not None:
            manifest["devDependencies"] = dev_dependencies
        if scripts is not None:
            manifest["scripts"] = scripts

        (tmp_path / "package.json").write_text(json.dumps(manifest, indent=2), encoding="utf-8")
        if lockfile:
            (tmp_path / "package-lock.json").write_text(
                json.dumps(build_lockfile(packages or {}), indent=2),
                encoding="utf-8",
            )
        return tmp_path

    return _write


@pytest.fixture
def react_project(write_project: Callable[..., Path]) -> Path:
    """Project where old-ui-kit pins react to ^17 while react 18 is out."""
    return write_project(
        {"react": "^17.0.0", "lodash": "^4.17.0", "old-ui-kit": "^1.0.0"},
        {
            "node_modules/react": lock_entry("17.0.2"),
            "node_modules/lodash": lock_entry("4.17.20"),
            "node_modules/old-ui-kit": lock_entry("1.2.0", peer_dependencies={"react": "^17.0.0"}),
        },
    )
