"""Manifest and lockfile loader for npm projects.

Reads ``package.json`` (the *manifest*: what the project asks for) and
``package-lock.json`` (the *lockfile*: what is actually installed) and
turns them into typed records. Shapes are validated once, here; the rest
of depgauge trusts the returned objects.

Only lockfiles with a ``packages`` section (npm 7+, ``lockfileVersion``
2 or 3) are supported. Each key of that section is an install path such
as ``node_modules/a/node_modules/@scope/b``; the logical package name is
the segment after the last ``node_modules/``.

Typical usage::

    from depgauge.core.loader import detect_project, load_project

    if detect_project("."):
        project = load_project(".")
        for record in project.records().values():
            print(record.name, record.resolved_version)
"""

from __future__ import annotations

import re
import json
from pathlib import Path
from dataclasses import dataclass, field
from typing import Any, Dict, List, Mapping, Optional, Union

from depgauge.models.package import PackageRecord
from depgauge.utils.logger import get_logger
from depgauge.utils.filesystem import file_exists, safe_read_file
from depgauge.constants import LOCKFILE_FILE, MANIFEST_FILE, NESTING_MARKER
from depgauge.exceptions import (
    InvalidProjectError,
    MalformedLockfileError,
    MalformedManifestError,
)

logger = get_logger("loader")

_VALID_NAME_RE = re.compile(r"^(@[a-z0-9-.]+/[a-z0-9-.]+|[a-z0-9-.]+)$")


# ---------------------------------------------------------------------------
# Package names
# ---------------------------------------------------------------------------


def extract_package_name(install_path: str) -> str:
    """Return the logical package name for a lockfile install path.

    Examples:
        >>> extract_package_name("node_modules/react")
        'react'
        >>> extract_package_name("node_modules/clipboardy/node_modules/execa")
        'execa'
        >>> extract_package_name("node_modules/@types/node")
        '@types/node'
        >>> extract_package_name("node_modules/")
        ''
    """
    if not install_path or not install_path.strip():
        return ""

    parts = install_path.split(NESTING_MARKER)
    if len(parts) < 2:
        return ""

    last = parts[-1]
    if not last:
        return ""

    segments = last.split("/")
    if segments[0].startswith("@") and len(segments) == 2 and segments[1]:
        return f"{segments[0]}/{segments[1]}"
    return segments[-1]


def is_valid_package_name(name: str) -> bool:
    """Whether ``name`` may be sent to the registry.

    Lowercase letters, digits, ``-`` and ``.`` only, optionally scoped.
    Names failing this check stay in the graph but are never looked up.
    """
    if not name or not name.strip():
        return False
    return _VALID_NAME_RE.match(name.strip()) is not None


def _nesting_depth(install_path: str) -> int:
    return install_path.count(NESTING_MARKER)


# ---------------------------------------------------------------------------
# Decoded documents
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class Manifest:
    """Decoded ``package.json``."""

    name: Optional[str] = None
    version: Optional[str] = None
    dependencies: Mapping[str, str] = field(default_factory=dict)
    dev_dependencies: Mapping[str, str] = field(default_factory=dict)
    scripts: Mapping[str, str] = field(default_factory=dict)

    @property
    def requested(self) -> Dict[str, str]:
        """Requested ranges, devDependencies overriding dependencies."""
        merged = dict(self.dependencies)
        merged.update(self.dev_dependencies)
        return merged

    def is_dev_only(self, name: str) -> bool:
        return name in self.dev_dependencies and name not in self.dependencies

    @property
    def has_test_script(self) -> bool:
        return bool(self.scripts.get("test"))


@dataclass(frozen=True)
class LockfileEntry:
    """One installed package from the lockfile's ``packages`` section."""

    path: str
    name: str
    version: str
    dependencies: Mapping[str, str] = field(default_factory=dict)
    peer_dependencies: Mapping[str, str] = field(default_factory=dict)

    @property
    def depth(self) -> int:
        return _nesting_depth(self.path)


@dataclass(frozen=True)
class Lockfile:
    """Decoded ``package-lock.json``.

    Attributes:
        lockfile_version: Value of ``lockfileVersion`` (``None`` if absent).
        entries: One entry per logical package name; when a name is
            installed at several paths, the shallowest path wins and ties
            keep the first occurrence.
    """

    lockfile_version: Optional[int] = None
    entries: Mapping[str, LockfileEntry] = field(default_factory=dict)

    def get(self, name: str) -> Optional[LockfileEntry]:
        return self.entries.get(name)

    def __contains__(self, name: object) -> bool:
        return name in self.entries

    def __len__(self) -> int:
        return len(self.entries)


@dataclass(frozen=True)
class ProjectSnapshot:
    """Manifest and lockfile of one project, loaded together."""

    directory: Path
    manifest: Manifest
    lockfile: Lockfile

    @property
    def manifest_path(self) -> Path:
        return self.directory / MANIFEST_FILE

    @property
    def lockfile_path(self) -> Path:
        return self.directory / LOCKFILE_FILE

    def records(self) -> Dict[str, PackageRecord]:
        """Return a record for every installed package, keyed by name."""
        return build_records(self.manifest, self.lockfile)


# ---------------------------------------------------------------------------
# Decoding
# ---------------------------------------------------------------------------


def _decode_json(content: str, *, error_cls: type, file_name: str) -> Dict[str, Any]:
    try:
        data = json.loads(content)
    except ValueError as exc:
        raise error_cls(
            f"Invalid JSON in {file_name}: {exc}",
            file_path=file_name,
        ) from exc

    if not isinstance(data, dict):
        raise error_cls(
            f"{file_name} must contain a JSON object, got {type(data).__name__}",
            file_path=file_name,
        )
    return data


def _string_mapping(
    value: Any,
    *,
    error_cls: type,
    file_name: str,
    entry: str,
) -> Dict[str, str]:
    """Validate a ``{name: range}`` object; ``None`` means empty."""
    if value is None:
        return {}
    if not isinstance(value, dict):
        raise error_cls(
            f"'{entry}' must be an object in {file_name}",
            file_path=file_name,
            entry=entry,
        )
    for key, item in value.items():
        if not isinstance(item, str):
            raise error_cls(
                f"'{entry}.{key}' must be a string in {file_name}",
                file_path=file_name,
                entry=f"{entry}.{key}",
            )
    return dict(value)


def parse_manifest(content: str) -> Manifest:
    """Decode the text of a ``package.json``.

    Raises:
        MalformedManifestError: Not JSON, not an object, or a dependency
            table that does not map names to strings.
    """
    data = _decode_json(content, error_cls=MalformedManifestError, file_name=MANIFEST_FILE)

    def table(key: str) -> Dict[str, str]:
        return _string_mapping(
            data.get(key),
            error_cls=MalformedManifestError,
            file_name=MANIFEST_FILE,
            entry=key,
        )

    name = data.get("name")
    version = data.get("version")
    return Manifest(
        name=name if isinstance(name, str) else None,
        version=version if isinstance(version, str) else None,
        dependencies=table("dependencies"),
        dev_dependencies=table("devDependencies"),
        scripts=table("scripts"),
    )


def parse_lockfile(content: str) -> Lockfile:
    """Decode the text of a ``package-lock.json``.

    The root entry (``""``) and workspace links (``"link": true``) are
    skipped, as are paths that do not name a package.

    Raises:
        MalformedLockfileError: Not JSON, no ``packages`` object, or an
            entry without a string ``version``.
    """
    data = _decode_json(content, error_cls=MalformedLockfileError, file_name=LOCKFILE_FILE)

    packages = data.get("packages")
    if not isinstance(packages, dict):
        raise MalformedLockfileError(
            f"{LOCKFILE_FILE} has no 'packages' object "
            f"(lockfileVersion {data.get('lockfileVersion', 'missing')})",
            file_path=LOCKFILE_FILE,
            entry="packages",
        )

    entries: Dict[str, LockfileEntry] = {}
    skipped = 0

    for path, info in packages.items():
        if path == "":
            continue

        if not isinstance(info, dict):
            raise MalformedLockfileError(
                f"Lockfile entry '{path}' must be an object",
                file_path=LOCKFILE_FILE,
                entry=path,
            )

        if info.get("link") is True:
            skipped += 1
            continue

        name = extract_package_name(path)
        if not name:
            skipped += 1
            continue

        version = info.get("version")
        if not isinstance(version, str):
            raise MalformedLockfileError(
                f"Lockfile entry '{path}' has no version",
                file_path=LOCKFILE_FILE,
                entry=path,
            )

        entry = LockfileEntry(
            path=path,
            name=name,
            version=version,
            dependencies=_string_mapping(
                info.get("dependencies"),
                error_cls=MalformedLockfileError,
                file_name=LOCKFILE_FILE,
                entry=f"{path}.dependencies",
            ),
            peer_dependencies=_string_mapping(
                info.get("peerDependencies"),
                error_cls=MalformedLockfileError,
                file_name=LOCKFILE_FILE,
                entry=f"{path}.peerDependencies",
            ),
        )

        existing = entries.get(name)
        if existing is None or entry.depth < existing.depth:
            entries[name] = entry

    if skipped:
        logger.debug("Skipped %d lockfile entries without a package name", skipped)

    lockfile_version = data.get("lockfileVersion")
    return Lockfile(
        lockfile_version=lockfile_version if isinstance(lockfile_version, int) else None,
        entries=entries,
    )


def build_records(manifest: Manifest, lockfile: Lockfile) -> Dict[str, PackageRecord]:
    """Join manifest and lockfile into one record per installed package.

    Top-level records carry the requested range; ``latest_version`` is
    left unset for the resolver to fill in.
    """
    requested = manifest.requested
    records: Dict[str, PackageRecord] = {}

    for name, entry in lockfile.entries.items():
        records[name] = PackageRecord(
            name=name,
            resolved_version=entry.version,
            requested_range=requested.get(name),
            dependency_ranges=entry.dependencies,
            peer_dependency_ranges=entry.peer_dependencies,
            is_dev=manifest.is_dev_only(name),
        )

    return records


def top_level_names(manifest: Manifest, lockfile: Lockfile) -> List[str]:
    """Requested names that are installed, in manifest order."""
    return [name for name in manifest.requested if name in lockfile]


# ---------------------------------------------------------------------------
# Project directories
# ---------------------------------------------------------------------------


def detect_project(directory: Union[str, Path]) -> bool:
    """Return True when ``directory`` holds both a manifest and a lockfile."""
    root = Path(directory)
    return file_exists(root / MANIFEST_FILE) and file_exists(root / LOCKFILE_FILE)


def load_manifest(directory: Union[str, Path]) -> Manifest:
    """Read and decode ``package.json`` from ``directory``."""
    path = Path(directory) / MANIFEST_FILE
    try:
        return parse_manifest(safe_read_file(path))
    except MalformedManifestError as exc:
        exc.file_path = str(path)
        exc.details["file"] = str(path)
        raise


def load_lockfile(directory: Union[str, Path]) -> Lockfile:
    """Read and decode ``package-lock.json`` from ``directory``."""
    path = Path(directory) / LOCKFILE_FILE
    try:
        return parse_lockfile(safe_read_file(path))
    except MalformedLockfileError as exc:
        exc.file_path = str(path)
        exc.details["file"] = str(path)
        raise


def load_project(directory: Union[str, Path]) -> ProjectSnapshot:
    """Load the manifest and lockfile of the project in ``directory``.

    Raises:
        InvalidProjectError: Either file is missing.
        MalformedManifestError: ``package.json`` cannot be decoded.
        MalformedLockfileError: ``package-lock.json`` cannot be decoded.
        FileOperationError: A file exists but cannot be read.
    """
    root = Path(directory).resolve()
    if not detect_project(root):
        raise InvalidProjectError(str(root))

    manifest = load_manifest(root)
    lockfile = load_lockfile(root)

    logger.info(
        "Loaded %s: %d requested, %d installed packages",
        root,
        len(manifest.requested),
        len(lockfile),
    )
    return ProjectSnapshot(directory=root, manifest=manifest, lockfile=lockfile)
