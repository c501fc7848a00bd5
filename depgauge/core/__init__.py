"""
Core functionality exports for depgauge.

This module provides convenient access to the core subsystems of depgauge.
Importing from here keeps user-facing imports clean and stable:

    from depgauge.core import ProjectAnalyzer, UpdateManager
"""

from __future__ import annotations

from depgauge.core.graph import DependencyGraph
from depgauge.core.backup import BackupManager
from depgauge.core.updater import UpdateManager
from depgauge.core.analyzer import ProjectAnalyzer
from depgauge.core.package_manager import CommandResult, NpmRunner
from depgauge.core.planner import build_update_plan, suggest_update_order
from depgauge.core.registry import VersionCache, VersionResolver
from depgauge.core.classifier import BlockerClassifier, classify_dependencies
from depgauge.core.validation import TestRunner, TestRunResult, UpdateValidator
from depgauge.core.loader import (
    ProjectSnapshot,
    detect_project,
    extract_package_name,
    is_valid_package_name,
    load_project,
    parse_lockfile,
    parse_manifest,
)

__all__ = [
    "ProjectSnapshot",
    "detect_project",
    "load_project",
    "parse_manifest",
    "parse_lockfile",
    "extract_package_name",
    "is_valid_package_name",
    "DependencyGraph",
    "VersionCache",
    "VersionResolver",
    "BlockerClassifier",
    "classify_dependencies",
    "ProjectAnalyzer",
    "build_update_plan",
    "suggest_update_order",
    "CommandResult",
    "NpmRunner",
    "UpdateValidator",
    "TestRunner",
    "TestRunResult",
    "BackupManager",
    "UpdateManager",
]
