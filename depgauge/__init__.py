"""
depgauge — upgrade-risk analysis for npm projects

depgauge reads a project's ``package.json`` and ``package-lock.json``,
asks the npm registry for the latest published version of each direct
dependency, and sorts every pending upgrade into one of three buckets:

    • safe       — no installed package objects to the new version
    • blocked    — another installed package declares a range that the
                   new version would violate
    • majorJump  — the upgrade crosses a major version boundary

On top of the analysis it offers a guarded update workflow: validation,
backups, dry runs, test runs around ``npm install`` and manual rollback.
"""

from __future__ import annotations

from depgauge.__version__ import __version__

# ---------------------------------------------------------------------------
# Package Metadata
# ---------------------------------------------------------------------------

__author__ = "depgauge Contributors"
__license__ = "Apache-2.0"
__description__ = "Find safe, blocked and major-jump upgrades in npm lockfiles."

__all__ = [
    "__version__",
]
