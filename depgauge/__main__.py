"""
Executable module for depgauge.

Running:
    python -m depgauge

is equivalent to:
    depgauge
"""

from __future__ import annotations

import sys


def main() -> int:
    """Main entrypoint when executing ``python -m depgauge``.

    Returns:
        Exit code returned by the CLI.
    """
    from depgauge.cli import main as cli_main

    return cli_main()


if __name__ == "__main__":
    sys.exit(main())
